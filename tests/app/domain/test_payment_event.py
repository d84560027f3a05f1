"""Testes do parsing de eventos de pagamento e do correlationID."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from app.domain.ledger import LedgerEntry, ledger_key
from app.domain.payment_event import (
    ChargeStatus,
    MalformedEventError,
    PlanType,
    parse_correlation_account_id,
    parse_payment_event,
)


def _raw(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "chargeId": "charge-abc",
        "correlationId": "querofretes-42-1767225600000",
        "status": "COMPLETED",
        "planType": "mensal",
        "occurredAt": "2026-03-02T12:00:00Z",
    }
    payload.update(overrides)
    return payload


def _correlation_id(account_id: int, created_at: datetime) -> str:
    """correlationID como o serviço de cobrança o monta."""
    return f"querofretes-{account_id}-{int(created_at.timestamp() * 1000)}"


class TestParsePaymentEvent:
    def test_normalizes_status_and_plan_alias(self) -> None:
        event = parse_payment_event(_raw())

        assert event.charge_status is ChargeStatus.COMPLETED
        assert event.plan_type is PlanType.MONTHLY
        assert event.occurred_at == datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
        assert event.provider_event_id is None

    def test_blank_plan_is_absent(self) -> None:
        assert parse_payment_event(_raw(planType="")).plan_type is None

    def test_naive_occurred_at_assumed_utc(self) -> None:
        event = parse_payment_event(_raw(occurredAt="2026-03-02T12:00:00"))
        assert event.occurred_at.tzinfo is not None

    def test_not_an_object(self) -> None:
        with pytest.raises(MalformedEventError, match="payload_not_object"):
            parse_payment_event(["chargeId"])

    def test_reports_invalid_fields(self) -> None:
        with pytest.raises(MalformedEventError) as exc_info:
            parse_payment_event(_raw(status="paid_twice", chargeId=""))

        assert "chargeId" in str(exc_info.value)
        assert "status" in str(exc_info.value)

    def test_unknown_plan_is_malformed(self) -> None:
        with pytest.raises(MalformedEventError):
            parse_payment_event(_raw(planType="semestral"))


class TestCorrelationId:
    def test_build_and_parse(self) -> None:
        created_at = datetime(2026, 1, 1, tzinfo=UTC)
        correlation_id = _correlation_id(42, created_at)

        assert correlation_id == "querofretes-42-1767225600000"
        assert parse_correlation_account_id(correlation_id) == 42

    @pytest.mark.parametrize(
        "value",
        ["querofretes-abc-1", "other-42-1", "querofretes-42", "querofretes-42-1-extra"],
    )
    def test_foreign_formats_rejected(self, value: str) -> None:
        assert parse_correlation_account_id(value) is None

    def test_custom_prefix(self) -> None:
        assert parse_correlation_account_id("qf.staging-7-99", "qf.staging") == 7


class TestLedgerKey:
    def test_key_depends_on_charge_and_status(self) -> None:
        completed = ledger_key("charge-1", ChargeStatus.COMPLETED)

        assert completed == ledger_key("charge-1", ChargeStatus.COMPLETED)
        assert completed != ledger_key("charge-1", ChargeStatus.REFUNDED)
        assert completed != ledger_key("charge-2", ChargeStatus.COMPLETED)
        assert completed.startswith("completed-")
        assert "charge-1" not in completed

    def test_store_dict_roundtrip_drops_timestamp_field(self) -> None:
        entry = LedgerEntry(
            charge_id="charge-1",
            charge_status=ChargeStatus.REFUNDED,
            occurred_at=datetime(2026, 3, 2, tzinfo=UTC),
            recorded_at=datetime(2026, 3, 2, 1, tzinfo=UTC),
            account_id=42,
        )

        data = entry.to_store_dict()

        assert data["recorded_at_ts"] == entry.recorded_at.timestamp()
        assert "occurred_at_ts" not in data
        assert LedgerEntry.from_store_dict(data) == entry
