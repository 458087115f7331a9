from typing import Optional

from fastapi import Header

from household_ledger.db.core import DEFAULT_FAMILY_ID
from household_ledger.logging_config import bind_request_context


# Placeholders for a proper authentication dependency.
# In a real deployment these would come from the verified session or token.
# Async so the bound log context is visible to the endpoint's worker thread.
async def get_family_id(x_family_id: Optional[str] = Header(default=None)) -> str:
    family_id = x_family_id or DEFAULT_FAMILY_ID
    bind_request_context(family_id=family_id)
    return family_id


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    user_id = x_user_id or "anonymous"
    bind_request_context(user_id=user_id)
    return user_id
