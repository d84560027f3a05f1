"""Testes HTTP dos endpoints de conta e assinatura."""

from datetime import datetime, timedelta

SELF = {"x-actor-id": "10", "x-actor-role": "shipper"}
OTHER = {"x-actor-id": "11", "x-actor-role": "shipper"}
ADMIN = {"x-actor-id": "1", "x-actor-role": "Administrador"}
PAID = {
    "chargeId": "ch1",
    "correlationId": "querofretes-10-1772452800000",
    "status": "COMPLETED",
    "planType": "monthly",
    "occurredAt": "2026-03-02T11:59:00Z",
}


class TestAccountRoutes:
    def test_open_account_is_idempotent(self, client) -> None:
        first = client.post("/accounts/10", headers=SELF)
        second = client.post("/accounts/10", headers=ADMIN)

        assert first.status_code == 200
        assert first.json() == second.json()
        assert first.json()["state"] == "none"
        assert first.json()["has_access"] is False

    def test_open_other_account_forbidden(self, client) -> None:
        response = client.post("/accounts/10", headers=OTHER)

        assert response.status_code == 403

    def test_trial_then_already_used(self, client, clock) -> None:
        client.post("/accounts/10", headers=SELF)

        trial = client.post("/accounts/10/trial", headers=SELF)
        assert trial.status_code == 200
        assert trial.json()["state"] == "trial_active"
        assert trial.json()["has_access"] is True

        clock.advance(timedelta(days=8))
        status = client.get("/accounts/10/subscription", headers=SELF)
        assert status.json()["state"] == "trial_used"

        again = client.post("/accounts/10/trial", headers=SELF)
        assert again.status_code == 409
        assert again.json()["error"] == "already_used"

    def test_trial_unknown_account(self, client) -> None:
        response = client.post("/accounts/10/trial", headers=SELF)

        assert response.status_code == 404

    def test_cancel_without_paid_plan(self, client) -> None:
        client.post("/accounts/10", headers=SELF)

        response = client.post("/accounts/10/subscription/cancel", headers=SELF)

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_subscription_of_other_account_forbidden(self, client) -> None:
        client.post("/accounts/10", headers=SELF)

        response = client.get("/accounts/10/subscription", headers=OTHER)

        assert response.status_code == 403


class TestPaymentHistory:
    def test_history_lists_each_event_once(self, client, clock) -> None:
        client.post("/accounts/10", headers=SELF)
        created = {**PAID, "status": "CREATED", "occurredAt": "2026-03-02T11:00:00Z"}
        client.post("/webhook/openpix", json=created)
        client.post("/webhook/openpix", json=PAID)
        client.post("/webhook/openpix", json=PAID)

        response = client.get("/accounts/10/payments", headers=SELF)

        assert response.status_code == 200
        assert [(p["charge_id"], p["charge_status"]) for p in response.json()] == [
            ("ch1", "created"),
            ("ch1", "completed"),
        ]
        assert datetime.fromisoformat(response.json()[1]["recorded_at"]) == clock.now()

    def test_history_of_other_account_forbidden(self, client) -> None:
        response = client.get("/accounts/10/payments", headers=OTHER)

        assert response.status_code == 403

    def test_admin_reads_empty_history(self, client) -> None:
        response = client.get("/accounts/10/payments", headers=ADMIN)

        assert response.status_code == 200
        assert response.json() == []
