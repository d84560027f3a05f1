"""Formatters de logging estruturado.

Define o formatter JSON com os campos obrigatórios:
timestamp, level, logger, message, request_id e service.
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Ordem de emissão dos campos obrigatórios
REQUIRED_LOG_FIELDS = (
    "asctime",
    "levelname",
    "name",
    "message",
    "request_id",
    "service",
)

FIELD_RENAME_MAP = {
    "asctime": "timestamp",
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Exemplo de output:
        {
            "timestamp": "2026-02-02T10:30:00",
            "level": "INFO",
            "logger": "app.services.freight_lifecycle",
            "message": "freight_reactivated",
            "request_id": "abc-123",
            "service": "querofretes-core"
        }
    """
    format_string = " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS)

    return JsonFormatter(
        format_string,
        rename_fields=FIELD_RENAME_MAP,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
