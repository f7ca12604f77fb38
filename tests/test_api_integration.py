"""
Integration tests for the PG Bank API
Tests end-to-end flows using FastAPI TestClient
"""

import pytest
from fastapi.testclient import TestClient

from pgbank.api import app
from pgbank.api.dependencies import get_ledger_system
from pgbank.config import LedgerConfig
from pgbank.system import LedgerSystem


@pytest.fixture
def system():
    return LedgerSystem(LedgerConfig(allow_overdraft=True, _env_file=None))


@pytest.fixture
def client(system):
    """Test client bound to a fresh ledger system"""
    app.dependency_overrides[get_ledger_system] = lambda: system
    yield TestClient(app)
    app.dependency_overrides.clear()


def open_account(client, user_id, name, **extra):
    r = client.post("/accounts", json={"user_id": user_id, "name": name, **extra})
    assert r.status_code == 201
    return r.json()


class TestHealth:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestAccounts:

    def test_open_and_get(self, client):
        account = open_account(client, "user-1", "Checking")

        assert account["balance"] == 0
        assert account["currency"] == "USD"
        assert account["state"] == "active"
        assert account["balance_display"] == "USD 0.00"

        r = client.get(f"/accounts/{account['id']}")
        assert r.status_code == 200
        assert r.json()["id"] == account["id"]

    def test_list_in_insertion_order(self, client):
        first = open_account(client, "user-1", "First")
        second = open_account(client, "user-2", "Second")

        r = client.get("/accounts")
        assert [a["id"] for a in r.json()] == [first["id"], second["id"]]

    def test_unknown_account_is_404(self, client):
        r = client.get("/accounts/missing")
        assert r.status_code == 404
        assert r.json()["code"] == "not_found"

    def test_missing_fields_rejected(self, client):
        r = client.post("/accounts", json={"user_id": "user-1"})
        assert r.status_code == 422

    def test_unsupported_currency_is_400(self, client):
        r = client.post("/accounts", json={"user_id": "u", "name": "n", "currency": "ABC"})
        assert r.status_code == 400
        assert r.json()["code"] == "invalid_argument"

    def test_close_account(self, client):
        account = open_account(client, "user-1", "Checking")
        r = client.post(f"/accounts/{account['id']}/close")
        assert r.status_code == 200
        assert r.json()["state"] == "closed"


class TestTransferFlow:

    def test_failed_transfer_queues_alert(self, client):
        x = open_account(client, "user-x", "X")
        y = open_account(client, "user-y", "Y")

        r = client.post("/transfers", json={
            "from_account_id": x["id"], "to_account_id": y["id"], "amount": 100
        })
        assert r.status_code == 201
        assert r.json()["status"] == "failed"
        assert r.json()["failure_reason"] == "insufficient_funds"

        alerts = client.get("/alerts", params={"user_id": "user-x"}).json()
        assert len(alerts) == 1
        assert alerts[0]["type"] == "transfer_failed"
        assert client.get("/alerts", params={"user_id": "user-x"}).json() == []

    def test_funded_transfer_and_history(self, client):
        funding = open_account(client, "bank", "Funding", overdraft_limit=100_000)
        x = open_account(client, "user-x", "X")
        y = open_account(client, "user-y", "Y")

        for amount in (200, 300):
            r = client.post("/transfers", json={
                "from_account_id": funding["id"], "to_account_id": x["id"], "amount": amount
            })
            assert r.json()["status"] == "settled"

        r = client.post("/transfers", json={
            "from_account_id": x["id"], "to_account_id": y["id"], "amount": 150,
            "transfer_id": "TR-1"
        })
        assert r.json() == {
            "transfer_id": "TR-1", "status": "settled", "failure_reason": None, "sequence": 3
        }

        assert client.get(f"/accounts/{x['id']}").json()["balance"] == 350
        assert client.get(f"/accounts/{y['id']}").json()["balance"] == 150

        history = client.get("/transactions", params={"account_id": x["id"]}).json()
        assert [t["amount"] for t in history] == [200, 300, 150]
        assert len(client.get("/transactions").json()) == 3
        assert client.get("/transactions/TR-1").json()["to_account_id"] == y["id"]

    def test_same_account_is_400(self, client):
        x = open_account(client, "user-x", "X")
        r = client.post("/transfers", json={
            "from_account_id": x["id"], "to_account_id": x["id"], "amount": 1
        })
        assert r.status_code == 400

    def test_reused_transfer_id_is_400(self, client):
        funding = open_account(client, "bank", "Funding", overdraft_limit=100_000)
        x = open_account(client, "user-x", "X")
        body = {
            "from_account_id": funding["id"], "to_account_id": x["id"], "amount": 100,
            "transfer_id": "TR-9"
        }

        assert client.post("/transfers", json=body).json()["status"] == "settled"
        r = client.post("/transfers", json=body)

        assert r.status_code == 400
        assert client.get(f"/accounts/{x['id']}").json()["balance"] == 100
        assert len(client.get("/transactions").json()) == 1

    @pytest.mark.parametrize("amount", [0, -1, "10", 1.5])
    def test_bad_amount_is_422(self, client, amount):
        r = client.post("/transfers", json={
            "from_account_id": "a", "to_account_id": "b", "amount": amount
        })
        assert r.status_code == 422


class TestPaymentsAndAlerts:

    def test_card_authorization(self, client):
        r = client.post("/payments/card/authorize", json={
            "card_token": "tok_visa_4242", "terminal_id": "T-1", "amount": 2_500
        })
        assert r.status_code == 200
        data = r.json()
        assert data["approved"] is True
        assert data["hold_amount"] == 2_500
        assert data["auth_id"]

        history = client.get("/transactions").json()
        assert history[0]["type"] == "card_authorization"

    def test_subscribe(self, client, system):
        r = client.post("/alerts/subscribe", json={
            "user_id": "user-1", "email": "a@example.com", "expoPushToken": "ExponentPushToken[x]"
        })
        assert r.status_code == 204
        subscription = system.alerts.get_subscription("user-1")
        assert subscription.push_token == "ExponentPushToken[x]"

    def test_subscribe_without_channel_is_400(self, client):
        r = client.post("/alerts/subscribe", json={"user_id": "user-1"})
        assert r.status_code == 400

    def test_drain_requires_user_id(self, client):
        assert client.get("/alerts").status_code == 422
