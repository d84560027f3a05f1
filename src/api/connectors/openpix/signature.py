"""Validação de assinatura HMAC-SHA256 dos webhooks OpenPix."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

_SIGNATURE_PREFIX = "sha256="


@dataclass(frozen=True, slots=True)
class SignatureResult:
    """Resultado da validação de assinatura.

    Attributes:
        valid: Assinatura aceita (ou validação desabilitada)
        skipped: Sem secret configurado; nada foi verificado
        error: Motivo da recusa (sem PII)
    """

    valid: bool
    skipped: bool = False
    error: str | None = None


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Assinatura no formato do header: `sha256=<hex>`."""
    digest = hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()
    return f"{_SIGNATURE_PREFIX}{digest}"


def verify_openpix_signature(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: str | None,
    header_name: str,
) -> SignatureResult:
    """Confere o header de assinatura contra o corpo bruto.

    Sem secret a validação é pulada (desenvolvimento local).
    """
    if not secret:
        return SignatureResult(valid=True, skipped=True)

    received = headers.get(header_name.lower(), "")
    if not received:
        return SignatureResult(valid=False, error="missing_signature")
    if not received.startswith(_SIGNATURE_PREFIX):
        return SignatureResult(valid=False, error="malformed_signature")

    expected = compute_signature(raw_body, secret)
    if not hmac.compare_digest(received, expected):
        return SignatureResult(valid=False, error="signature_mismatch")
    return SignatureResult(valid=True)
