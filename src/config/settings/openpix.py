"""Settings do provedor PIX (OpenPix).

Apenas o lado de recebimento de webhooks; a criação de cobranças
via API HTTP do provedor fica fora deste serviço.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_SIGNATURE_HEADER = "x-webhook-signature"


@dataclass(frozen=True)
class OpenPixSettings:
    """Configurações do webhook OpenPix.

    Attributes:
        webhook_secret: Secret HMAC-SHA256 compartilhado (vazio = sem validação)
        signature_header: Header que carrega `sha256=<hex>`
        correlation_prefix: Prefixo do correlationID das cobranças
    """

    webhook_secret: str = ""
    signature_header: str = DEFAULT_SIGNATURE_HEADER
    correlation_prefix: str = "querofretes"

    def validate(self, *, strict: bool = False) -> list[str]:
        """Valida configurações.

        Args:
            strict: Exige secret (staging/production).
        """
        errors: list[str] = []
        if strict and not self.webhook_secret:
            errors.append("OPENPIX_WEBHOOK_SECRET não configurado")
        if not self.correlation_prefix or "-" in self.correlation_prefix:
            errors.append("OPENPIX_CORRELATION_PREFIX deve ser não-vazio e sem '-'")
        return errors


@lru_cache(maxsize=1)
def get_openpix_settings() -> OpenPixSettings:
    """Retorna instância cacheada de OpenPixSettings."""
    return OpenPixSettings(
        webhook_secret=os.getenv("OPENPIX_WEBHOOK_SECRET", ""),
        signature_header=os.getenv(
            "OPENPIX_SIGNATURE_HEADER", DEFAULT_SIGNATURE_HEADER
        ).lower(),
        correlation_prefix=os.getenv("OPENPIX_CORRELATION_PREFIX", "querofretes"),
    )
