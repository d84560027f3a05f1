"""Connector OpenPix: assinatura e parsing seguro de webhooks."""

from api.connectors.openpix.signature import (
    SignatureResult,
    compute_signature,
    verify_openpix_signature,
)
from api.connectors.openpix.webhook import (
    InvalidJsonError,
    InvalidSignatureError,
    WebhookRequestError,
    parse_webhook_request,
)

__all__ = [
    "InvalidJsonError",
    "InvalidSignatureError",
    "SignatureResult",
    "WebhookRequestError",
    "compute_signature",
    "parse_webhook_request",
    "verify_openpix_signature",
]
