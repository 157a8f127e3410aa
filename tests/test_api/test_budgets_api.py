"""
Tests for the HTTP surface: auth, budgets, lines, transactions, error shape
"""
import uuid
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from homebudget.main import app
from homebudget.api.deps import get_db, get_read_session_factory


@pytest.fixture
def client(db_engine):
    """TestClient wired to the in-memory database"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False)

    def _get_test_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_read_session_factory] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(client):
    """Client with a registered, logged-in user, two members and the default categories"""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "owner@example.com", "password": "password123", "householdName": "Home"},
    )
    assert response.status_code == 201
    alice = client.post("/api/v1/household-members", json={"fullName": "Alice"}).json()
    bob = client.post("/api/v1/household-members", json={"fullName": "Bob"}).json()
    categories = {c["name"]: c["id"] for c in client.get("/api/v1/categories").json()["data"]}
    client.ids = {"alice": alice["id"], "bob": bob["id"], **categories}
    return client


def _march_payload(ids):
    return {
        "month": "2025-03",
        "note": "March",
        "incomes": [
            {"householdMemberId": ids["alice"], "amount": 5000},
            {"householdMemberId": ids["bob"], "amount": 4500},
        ],
        "plannedExpenses": [
            {"categoryId": ids["Groceries"], "limitAmount": 1500},
            {"categoryId": ids["Transport"], "limitAmount": 800},
        ],
    }


class TestAuth:
    def test_requires_login(self, client):
        response = client.get("/api/v1/budgets")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_login_logout(self, client):
        client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "password123"})
        assert client.post("/api/v1/auth/logout").status_code == 204
        assert client.get("/api/v1/budgets").status_code == 401

        response = client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "password123"})
        assert response.status_code == 200
        assert client.get("/api/v1/budgets").status_code == 200

    def test_wrong_password(self, client):
        client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "password123"})
        response = client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_email_taken(self, client):
        payload = {"email": "a@example.com", "password": "password123"}
        client.post("/api/v1/auth/register", json=payload)
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 409


class TestBudgetsApi:
    def test_create_and_fetch(self, authenticated_client):
        client = authenticated_client
        response = client.post("/api/v1/budgets", json=_march_payload(client.ids))

        assert response.status_code == 201
        assert response.headers["X-Result-Code"] == "BUDGET_CREATED"
        created = response.json()
        assert created["month"] == "2025-03-01"
        assert "createdAt" in created

        detail = client.get(f"/api/v1/budgets/{created['id']}", params={"includeTransactions": "true"}).json()
        assert detail["summary"]["totalIncome"] == 9500
        assert detail["summary"]["totalPlanned"] == 2300
        assert detail["summary"]["freeFunds"] == 7200
        assert detail["summary"]["progress"] == 0
        assert {c["status"] for c in detail["summary"]["perCategory"]} == {"ok"}

    def test_duplicate_month_conflict(self, authenticated_client):
        client = authenticated_client
        client.post("/api/v1/budgets", json=_march_payload(client.ids))
        response = client.post("/api/v1/budgets", json=_march_payload(client.ids))

        assert response.status_code == 409
        assert response.json() == {
            "error": {"code": "BUDGET_ALREADY_EXISTS", "message": "A budget already exists for this month"}
        }

    def test_invalid_member_is_400(self, authenticated_client):
        client = authenticated_client
        payload = _march_payload(client.ids)
        payload["incomes"][0]["householdMemberId"] = str(uuid.uuid4())

        response = client.post("/api/v1/budgets", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_MEMBER"

    def test_duplicate_member_on_create_is_400(self, authenticated_client):
        client = authenticated_client
        payload = _march_payload(client.ids)
        payload["incomes"][1]["householdMemberId"] = client.ids["alice"]

        response = client.post("/api/v1/budgets", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DUPLICATE_MEMBER"
        listing = client.get("/api/v1/budgets", params={"status": "all"}).json()
        assert listing["meta"]["totalItems"] == 0

    def test_duplicate_category_on_create_is_400(self, authenticated_client):
        client = authenticated_client
        payload = _march_payload(client.ids)
        payload["plannedExpenses"][1]["categoryId"] = client.ids["Groceries"]

        response = client.post("/api/v1/budgets", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DUPLICATE_CATEGORY"
        listing = client.get("/api/v1/budgets", params={"status": "all"}).json()
        assert listing["data"] == []

    def test_bad_month_format(self, authenticated_client):
        payload = _march_payload(authenticated_client.ids)
        payload["month"] = "March"
        response = authenticated_client.post("/api/v1/budgets", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PAYLOAD"

    def test_bad_budget_id(self, authenticated_client):
        response = authenticated_client.get("/api/v1/budgets/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_BUDGET_ID"

    def test_unknown_budget(self, authenticated_client):
        response = authenticated_client.get(f"/api/v1/budgets/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "BUDGET_NOT_FOUND"

    def test_list_with_summary(self, authenticated_client):
        client = authenticated_client
        client.post("/api/v1/budgets", json=_march_payload(client.ids))

        body = client.get("/api/v1/budgets", params={"status": "all", "includeSummary": "true"}).json()
        assert body["meta"] == {"page": 1, "pageSize": 12, "totalItems": 1, "totalPages": 1}
        assert body["data"][0]["summary"]["freeFunds"] == 7200

    def test_patch_note_and_delete(self, authenticated_client):
        client = authenticated_client
        budget_id = client.post("/api/v1/budgets", json=_march_payload(client.ids)).json()["id"]

        patched = client.patch(f"/api/v1/budgets/{budget_id}", json={"note": "  changed "})
        assert patched.status_code == 200
        assert patched.json()["note"] == "changed"

        assert client.delete(f"/api/v1/budgets/{budget_id}").status_code == 204
        assert client.get(f"/api/v1/budgets/{budget_id}").status_code == 404


class TestLinesAndTransactionsApi:
    def test_spending_flow(self, authenticated_client):
        client = authenticated_client
        budget_id = client.post("/api/v1/budgets", json=_march_payload(client.ids)).json()["id"]

        for amount in (1000, 300):
            response = client.post(
                f"/api/v1/budgets/{budget_id}/transactions",
                json={"categoryId": client.ids["Groceries"], "amount": amount, "transactionDate": "2025-03-10"},
            )
            assert response.status_code == 201

        summary = client.get(f"/api/v1/budgets/{budget_id}/summary").json()
        groceries = next(c for c in summary["perCategory"] if c["name"] == "Groceries")
        assert groceries["progress"] == 86.67
        assert groceries["status"] == "warning"

        listing = client.get(f"/api/v1/budgets/{budget_id}/transactions", params={"sort": "amount_asc"}).json()
        assert [t["amount"] for t in listing["data"]] == [300, 1000]
        assert listing["meta"]["pageSize"] == 25

    def test_replace_incomes_duplicate_member(self, authenticated_client):
        client = authenticated_client
        budget_id = client.post("/api/v1/budgets", json=_march_payload(client.ids)).json()["id"]

        response = client.put(
            f"/api/v1/budgets/{budget_id}/incomes",
            json={"incomes": [
                {"householdMemberId": client.ids["alice"], "amount": 1},
                {"householdMemberId": client.ids["alice"], "amount": 2},
            ]},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DUPLICATE_MEMBER"

    def test_invalid_amount(self, authenticated_client):
        client = authenticated_client
        budget_id = client.post("/api/v1/budgets", json=_march_payload(client.ids)).json()["id"]

        response = client.post(
            f"/api/v1/budgets/{budget_id}/transactions",
            json={"categoryId": client.ids["Groceries"], "amount": 10.555, "transactionDate": "2025-03-10"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_AMOUNT"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.text == "ok"
