from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from household_ledger.db.core import Base, engine
from household_ledger.exceptions import LedgerError
from household_ledger.logging_config import setup_logging, get_logger
from household_ledger.routers.accounts import router as accounts_router
from household_ledger.routers.transactions import expenses_router, incomes_router, transfers_router
from household_ledger.routers.checks import router as checks_router
from household_ledger.routers.loans import router as loans_router
from household_ledger.routers.debts import router as debts_router
from household_ledger.routers.goals import router as goals_router
from household_ledger.routers.categories import router as categories_router
from household_ledger.routers.payees import router as payees_router
from household_ledger.routers.dashboard import router as dashboard_router

logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    "NotFound": status.HTTP_404_NOT_FOUND,
    "HasDependents": status.HTTP_409_CONFLICT,
    "InvalidState": status.HTTP_409_CONFLICT,
    "Conflict": status.HTTP_409_CONFLICT,
    "AccessDenied": status.HTTP_403_FORBIDDEN,
}


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("Household ledger started")
    yield


app = FastAPI(title="Household Ledger", lifespan=lifespan)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=status_code, content={"kind": exc.kind, "detail": exc.detail})


app.include_router(accounts_router)
app.include_router(expenses_router)
app.include_router(incomes_router)
app.include_router(transfers_router)
app.include_router(checks_router)
app.include_router(loans_router)
app.include_router(debts_router)
app.include_router(goals_router)
app.include_router(categories_router)
app.include_router(payees_router)
app.include_router(dashboard_router)


@app.get("/")
def read_root():
    return "Server is running."
