"""HTTP tests: auth, unlock endpoints, payout endpoints, error payloads."""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from directrent.db.session import get_db
from directrent.identity.tokens import TokenVerifier
from directrent.main import app


def _auth(user_id):
    return {"Authorization": f"Bearer {TokenVerifier().create_access_token(user_id)}"}


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with patch("directrent.services.payouts.service.SettlementScheduler") as mock_scheduler:
        mock_scheduler.return_value.schedule.return_value = True
        yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def listings(make_user, make_property):
    make_user("landlord-1", role="LANDLORD")
    for n in range(1, 5):
        make_property(f"p{n}", "landlord-1")


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-Id": "req_test"})
        assert resp.headers["X-Request-Id"] == "req_test"


class TestAuth:
    def test_missing_token(self, client):
        resp = client.post("/unlock", json={"targetId": "p1"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "InvalidCredential"
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_bad_token(self, client):
        resp = client.get("/unlock/mine", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "InvalidCredential"

    def test_unknown_principal(self, client):
        resp = client.get("/unlock/mine", headers=_auth("ghost"))
        assert resp.status_code == 401
        assert resp.json()["error"] == "PrincipalNotFound"


class TestUnlockRoutes:
    def test_unlock_then_repeat(self, client, make_user, listings):
        make_user("t1")

        first = client.post("/unlock", json={"targetId": "p1"}, headers=_auth("t1"))
        again = client.post("/unlock", json={"targetId": "p1"}, headers=_auth("t1"))

        assert first.status_code == 200
        body = first.json()
        assert body["status"] == "UNLOCKED"
        assert body["targetId"] == "p1"
        assert body["unitsRemaining"] == 2
        assert body["owner"]["id"] == "landlord-1"
        assert again.status_code == 200
        assert again.json()["status"] == "ALREADY_UNLOCKED"
        assert again.json()["unitsRemaining"] == 2

    def test_quota_exhausted(self, client, make_user, listings):
        make_user("t1")
        for target in ("p1", "p2", "p3"):
            assert client.post("/unlock", json={"targetId": target}, headers=_auth("t1")).status_code == 200

        resp = client.post("/unlock", json={"targetId": "p4"}, headers=_auth("t1"))

        assert resp.status_code == 403
        body = resp.json()
        assert body["error"] == "QuotaExhausted"
        assert body["tier"] == "FREE"
        assert body["ceiling"] == 3
        assert body["requiresSubscription"] is True
        assert [t["tier"] for t in body["subscriptionTiers"]] == ["BASIC", "RELAX", "SUPERUSER"]
        # already-unlocked targets stay reachable
        assert client.post("/unlock", json={"targetId": "p2"}, headers=_auth("t1")).status_code == 200

    def test_superuser_unlimited(self, client, make_user, listings):
        make_user("vip", tier="SUPERUSER", expires_in_days=30)
        resp = client.post("/unlock", json={"targetId": "p1"}, headers=_auth("vip"))
        assert resp.json()["unitsRemaining"] == "UNLIMITED"

    def test_unknown_target(self, client, make_user, listings):
        make_user("t1")
        resp = client.post("/unlock", json={"targetId": "nope"}, headers=_auth("t1"))
        assert resp.status_code == 404
        assert resp.json() == {"error": "TargetNotFound", "targetId": "nope"}

    def test_empty_target(self, client, make_user):
        make_user("t1")
        resp = client.post("/unlock", json={"targetId": ""}, headers=_auth("t1"))
        assert resp.status_code == 400
        assert resp.json()["error"] == "ValidationError"
        assert resp.json()["field"] == "targetId"

    def test_mine_and_status(self, client, make_user, listings):
        make_user("t1")
        client.post("/unlock", json={"targetId": "p2"}, headers=_auth("t1"))
        client.post("/unlock", json={"targetId": "p3"}, headers=_auth("t1"))

        mine = client.get("/unlock/mine", headers=_auth("t1")).json()["unlocks"]
        assert [u["targetId"] for u in mine] == ["p3", "p2"]
        assert mine[0]["owner"]["phone"]

        status = client.get("/unlock/status/p2", headers=_auth("t1")).json()
        assert status["isUnlocked"] is True
        assert status["unitsRemaining"] == 1
        assert status["subscriptionTier"] == "FREE"
        assert status["subscriptionActive"] is False
        assert client.get("/unlock/status/p1", headers=_auth("t1")).json()["isUnlocked"] is False


class TestPayoutRoutes:
    PAYLOAD = {
        "providerId": "1",
        "amount": 500,
        "method": "MTN",
        "accountNumber": "0241234567",
        "accountName": "Kwame Mensah",
    }

    def test_request_and_history(self, client, make_user, set_balance):
        make_user("1", role="PROVIDER")
        set_balance("1", "1540")

        resp = client.post("/payouts/request", json=self.PAYLOAD, headers=_auth("1"))

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "PENDING"
        assert body["amount"] == 500.0
        assert body["reference"].startswith("REF-")

        history = client.get("/payouts/history/1", headers=_auth("1")).json()
        assert history["availableBalance"] == 1040.0
        assert [p["id"] for p in history["payouts"]] == [body["id"]]

    def test_validation_error(self, client, make_user, set_balance):
        make_user("1", role="PROVIDER")
        set_balance("1", "1540")

        resp = client.post(
            "/payouts/request", json={**self.PAYLOAD, "amount": 9.99}, headers=_auth("1")
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "ValidationError"
        assert resp.json()["field"] == "amount"
        assert client.get("/payouts/history/1", headers=_auth("1")).json()["availableBalance"] == 1540.0

    def test_first_violation_reported_in_order(self, client, make_user, set_balance):
        make_user("admin", role="ADMIN")
        set_balance("1", "1540")
        body = {"providerId": "1", "amount": 6000, "method": "PAYPAL"}

        resp = client.post("/payouts/request", json=body, headers=_auth("admin"))

        assert resp.status_code == 400
        assert resp.json()["field"] == "amount"

        resp = client.post("/payouts/request", json={"amount": 500, "method": "MTN"}, headers=_auth("admin"))
        assert resp.json()["field"] == "accountNumber"

    def test_insufficient_funds(self, client, make_user, set_balance):
        make_user("2", role="PROVIDER")
        set_balance("2", "850")

        resp = client.post(
            "/payouts/request",
            json={**self.PAYLOAD, "providerId": "2", "amount": 1000},
            headers=_auth("2"),
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "InsufficientFunds"
        assert resp.json()["currentBalance"] == 850.0

    def test_other_providers_balance_forbidden(self, client, make_user, set_balance):
        make_user("1", role="PROVIDER")
        make_user("2", role="PROVIDER")
        set_balance("1", "1540")

        assert client.get("/payouts/history/1", headers=_auth("2")).status_code == 403
        resp = client.post("/payouts/request", json=self.PAYLOAD, headers=_auth("2"))
        assert resp.status_code == 403
        assert resp.json()["error"] == "InsufficientRole"

    def test_tenant_forbidden(self, client, make_user):
        make_user("t1")
        assert client.get("/payouts/history/t1", headers=_auth("t1")).status_code == 403

    def test_admin_fail_restores(self, client, make_user, set_balance):
        make_user("1", role="PROVIDER")
        make_user("admin", role="ADMIN")
        set_balance("1", "1540")
        payout_id = client.post("/payouts/request", json=self.PAYLOAD, headers=_auth("1")).json()["id"]

        resp = client.post(
            f"/payouts/{payout_id}/fail", json={"reason": "wrong_account"}, headers=_auth("admin")
        )

        assert resp.status_code == 200
        assert resp.json()["status"] == "FAILED"
        assert resp.json()["failureReason"] == "wrong_account"
        assert client.get("/payouts/history/1", headers=_auth("admin")).json()["availableBalance"] == 1540.0

        # second fail is a no-op: no double refund
        again = client.post(f"/payouts/{payout_id}/fail", headers=_auth("admin"))
        assert again.json()["status"] == "FAILED"
        assert client.get("/payouts/history/1", headers=_auth("1")).json()["availableBalance"] == 1540.0

    def test_fail_requires_admin(self, client, make_user, set_balance):
        make_user("1", role="PROVIDER")
        set_balance("1", "1540")
        payout_id = client.post("/payouts/request", json=self.PAYLOAD, headers=_auth("1")).json()["id"]

        resp = client.post(f"/payouts/{payout_id}/fail", headers=_auth("1"))
        assert resp.status_code == 403

    def test_fail_unknown_payout(self, client, make_user):
        make_user("admin", role="ADMIN")
        resp = client.post("/payouts/nope/fail", headers=_auth("admin"))
        assert resp.status_code == 404
        assert resp.json()["error"] == "PayoutNotFound"
