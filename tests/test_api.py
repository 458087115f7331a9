from conftest import FAMILY_ID


def create_account(client, balance, owner_id="ali"):
    response = client.post("/accounts/", json={"owner_id": owner_id, "bank_name": "Test Bank", "initial_balance": balance})
    assert response.status_code == 201
    return response.json()


def create_category(client, name="Groceries"):
    response = client.post("/categories/", json={"name": name})
    assert response.status_code == 201
    return response.json()


def test_root(client):
    assert client.get("/").status_code == 200


def test_expense_flow(client):
    account = create_account(client, 1000)
    category = create_category(client)

    response = client.post("/expenses/", json={"bank_account_id": account["id"], "category_id": category["id"], "amount": 300})

    assert response.status_code == 201
    body = response.json()
    assert (body["balance_before"], body["balance_after"]) == (1000, 700)
    assert body["registered_by_user_id"] == "tester"
    assert client.get(f"/accounts/{account['id']}").json()["balance"] == 700

    assert client.delete(f"/expenses/{body['id']}").status_code == 204
    assert client.get(f"/accounts/{account['id']}").json()["balance"] == 1000


def test_insufficient_funds_renders_kind_and_detail(client):
    account = create_account(client, 100)
    category = create_category(client)

    response = client.post("/expenses/", json={"bank_account_id": account["id"], "category_id": category["id"], "amount": 101})

    assert response.status_code == 400
    assert response.json()["kind"] == "InsufficientFunds"
    assert response.json()["detail"]


def test_error_status_codes(client):
    missing = client.delete("/expenses/missing")
    assert missing.status_code == 404
    assert missing.json()["kind"] == "NotFound"

    account = create_account(client, 1000)
    category = create_category(client)
    client.post("/expenses/", json={"bank_account_id": account["id"], "category_id": category["id"], "amount": 1})

    conflict = client.delete(f"/accounts/{account['id']}")
    assert conflict.status_code == 409
    assert conflict.json()["kind"] == "HasDependents"

    same = client.post("/transfers/", json={"from_bank_account_id": account["id"], "to_bank_account_id": account["id"], "amount": 1})
    assert same.status_code == 400
    assert same.json()["kind"] == "InvalidOperation"


def test_duplicate_shared_account_is_bad_request(client):
    create_account(client, 0, owner_id="shared")

    response = client.post("/accounts/", json={"owner_id": "shared", "bank_name": "Again"})

    assert response.status_code == 400


def test_check_clearing_over_http(client):
    account = create_account(client, 1000)
    category = create_category(client)
    payee = client.post("/payees/", json={"name": "Landlord"}).json()

    check = client.post("/checks/", json={
        "bank_account_id": account["id"],
        "payee_id": payee["id"],
        "category_id": category["id"],
        "amount": 400,
        "issue_date": "2024-01-01",
        "due_date": "2024-02-01",
    }).json()
    assert check["status"] == "pending"

    cleared = client.post(f"/checks/{check['id']}/clear")
    assert cleared.status_code == 200
    assert cleared.json()["check"]["status"] == "cleared"
    assert cleared.json()["expense"]["check_id"] == check["id"]

    again = client.post(f"/checks/{check['id']}/clear")
    assert again.status_code == 409
    assert again.json()["kind"] == "InvalidState"

    pending = client.get("/checks/", params={"check_status": "pending"}).json()
    assert pending == []


def create_pending_check(client, account, category, payee):
    response = client.post("/checks/", json={
        "bank_account_id": account["id"],
        "payee_id": payee["id"],
        "category_id": category["id"],
        "amount": 400,
        "issue_date": "2024-01-01",
        "due_date": "2024-02-01",
    })
    assert response.status_code == 201
    return response.json()


def test_updates_cannot_null_required_fields(client):
    account = create_account(client, 1000)
    category = create_category(client)
    payee = client.post("/payees/", json={"name": "Landlord"}).json()
    check = create_pending_check(client, account, category, payee)
    goal = client.post("/goals/", json={"name": "TV", "owner_id": "ali", "target_amount": 500}).json()

    assert client.put(f"/checks/{check['id']}", json={"amount": None}).status_code == 422
    assert client.put(f"/checks/{check['id']}", json={"payee_id": None}).status_code == 422
    assert client.put(f"/goals/{goal['id']}", json={"name": None}).status_code == 422
    assert client.put(f"/accounts/{account['id']}", json={"bank_name": None}).status_code == 422
    assert client.put(f"/categories/{category['id']}", json={"name": None}).status_code == 422
    assert client.put(f"/payees/{payee['id']}", json={"name": None}).status_code == 422
    assert client.get(f"/checks/{check['id']}").json()["amount"] == 400

    described = client.put(f"/checks/{check['id']}", json={"description": None})
    assert described.status_code == 200
    assert described.json()["description"] is None


def test_check_edit_rejects_non_numeric_sayad_id(client):
    account = create_account(client, 1000)
    category = create_category(client)
    payee = client.post("/payees/", json={"name": "Landlord"}).json()
    check = create_pending_check(client, account, category, payee)

    assert client.put(f"/checks/{check['id']}", json={"sayad_id": "12345678abcdefgh"}).status_code == 422

    edited = client.put(f"/checks/{check['id']}", json={"sayad_id": "1234567890123456"})
    assert edited.status_code == 200
    assert edited.json()["sayad_id"] == "1234567890123456"


def test_expense_with_unknown_category_is_not_found(client):
    account = create_account(client, 1000)

    response = client.post("/expenses/", json={"bank_account_id": account["id"], "category_id": "nope", "amount": 10})

    assert response.status_code == 404
    assert response.json()["kind"] == "NotFound"
    assert client.get(f"/accounts/{account['id']}").json()["balance"] == 1000


def test_loan_payment_over_http(client):
    account = create_account(client, 2000)
    loan = client.post("/loans/", json={
        "title": "Car", "owner_id": "ali", "amount": 1000, "installment_amount": 100,
        "number_of_installments": 10, "start_date": "2024-01-01", "payment_day": 5,
    }).json()

    result = client.post(f"/loans/{loan['id']}/payments", json={"bank_account_id": account["id"], "amount": 100})

    assert result.status_code == 201
    assert result.json()["loan"]["remaining_amount"] == 900
    assert result.json()["expense"]["sub_type"] == "loan_payment"
    assert len(client.get(f"/loans/{loan['id']}/payments").json()) == 1


def test_goal_round_trip_over_http(client):
    account = create_account(client, 1000)
    goal = client.post("/goals/", json={
        "name": "TV", "owner_id": "ali", "target_amount": 500,
        "initial_contribution_amount": 500, "initial_contribution_bank_account_id": account["id"],
    }).json()
    assert goal["current_amount"] == 500
    assert client.get(f"/accounts/{account['id']}").json()["available_balance"] == 500

    achieved = client.post(f"/goals/{goal['id']}/achieve", json={"actual_cost": 500}).json()
    assert achieved["is_achieved"] is True
    assert client.get(f"/accounts/{account['id']}").json()["balance"] == 500

    reverted = client.post(f"/goals/{goal['id']}/revert").json()
    assert reverted["is_achieved"] is False
    restored = client.get(f"/accounts/{account['id']}").json()
    assert (restored["balance"], restored["blocked_balance"]) == (1000, 500)


def test_dashboard(client):
    account = create_account(client, 1000)
    create_account(client, 250, owner_id="fatemeh")
    client.post("/incomes/", json={"bank_account_id": account["id"], "amount": 500})

    dashboard = client.get("/dashboard/")

    assert dashboard.status_code == 200
    body = dashboard.json()
    assert body["summary"]["total_assets"] == 1750
    assert body["summary"]["total_income"] == 500
    assert body["owner_balances"] == {"ali": 1500, "fatemeh": 250, "shared": 0}
    assert len(body["recent_transactions"]) == 1

    fatemeh_only = client.get("/dashboard/summary", params={"owner": "fatemeh"}).json()
    assert fatemeh_only["total_assets"] == 250


def test_dashboard_rejects_unknown_preset(client):
    assert client.get("/dashboard/summary", params={"preset": "someday"}).status_code == 400


def test_account_ledger_endpoint(client):
    account = create_account(client, 0)
    client.post("/incomes/", json={"bank_account_id": account["id"], "amount": 500, "date": "2024-01-01T10:00:00"})

    rows = client.get(f"/accounts/{account['id']}/ledger").json()

    assert [(r["type"], r["balance_before"], r["balance_after"]) for r in rows] == [("income", 0, 500)]


def test_families_are_isolated(client):
    account = create_account(client, 1000)

    response = client.get(f"/accounts/{account['id']}", headers={"X-Family-Id": "someone-else"})

    assert response.status_code == 404
    assert client.get("/accounts/", headers={"X-Family-Id": FAMILY_ID}).json()[0]["id"] == account["id"]


def test_seed_categories_endpoint(client):
    created = client.post("/categories/defaults")

    assert created.status_code == 201
    assert len(created.json()) == 10
    assert client.post("/categories/defaults").json() == []
