"""Configuração de logging estruturado.

Re-exporta funções e classes para configuração de logging JSON.

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização (bootstrap)
    configure_logging(level="INFO", service_name="querofretes-core")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("freight_created", extra={"freight_id": 42})

Campos obrigatórios em todo log:
- timestamp
- level
- logger
- message
- request_id
- service

Identificadores de conta e de cobrança vão mascarados (mask_identifier).
"""

from config.logging.config import configure_logging, get_logger, mask_identifier
from config.logging.filters import RequestIdFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "RequestIdFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
    "mask_identifier",
]
