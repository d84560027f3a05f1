"""Testes de assinatura e parse do webhook OpenPix."""

import pytest

from api.connectors.openpix import (
    InvalidJsonError,
    InvalidSignatureError,
    compute_signature,
    parse_webhook_request,
    verify_openpix_signature,
)

BODY = b'{"chargeId":"ch1"}'
HEADER = "x-webhook-signature"


class TestVerifySignature:
    def test_without_secret_is_skipped(self) -> None:
        result = verify_openpix_signature(BODY, {}, None, HEADER)

        assert result.valid is True
        assert result.skipped is True

    def test_valid_signature(self) -> None:
        headers = {HEADER: compute_signature(BODY, "segredo")}

        result = verify_openpix_signature(BODY, headers, "segredo", HEADER)

        assert result.valid is True
        assert result.skipped is False

    @pytest.mark.parametrize(
        ("headers", "error"),
        [
            ({}, "missing_signature"),
            ({HEADER: "abc123"}, "malformed_signature"),
            ({HEADER: "sha256=" + "0" * 64}, "signature_mismatch"),
        ],
    )
    def test_rejections(self, headers, error) -> None:
        result = verify_openpix_signature(BODY, headers, "segredo", HEADER)

        assert result.valid is False
        assert result.error == error

    def test_body_tampering_detected(self) -> None:
        headers = {HEADER: compute_signature(BODY, "segredo")}

        result = verify_openpix_signature(b'{"chargeId":"ch2"}', headers, "segredo", HEADER)

        assert result.error == "signature_mismatch"


class TestParseWebhookRequest:
    def test_returns_payload(self) -> None:
        payload, signature = parse_webhook_request(BODY, {}, None, HEADER)

        assert payload == {"chargeId": "ch1"}
        assert signature.skipped is True

    def test_invalid_signature_raises(self) -> None:
        with pytest.raises(InvalidSignatureError, match="missing_signature"):
            parse_webhook_request(BODY, {}, "segredo", HEADER)

    @pytest.mark.parametrize(
        ("raw", "reason"),
        [(b"{nope", "invalid_json"), (b"[1, 2]", "payload_not_object"), (b"\xff", "invalid_json")],
    )
    def test_invalid_json(self, raw, reason) -> None:
        with pytest.raises(InvalidJsonError, match=reason):
            parse_webhook_request(raw, {}, None, HEADER)
