"""Configuração centralizada de logging.

Funções para configurar logging estruturado JSON com:
- Campos obrigatórios (request_id, service, level, logger, message)
- Formatação padronizada
- Níveis configuráveis por ambiente
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import RequestIdFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "querofretes-core"

# Caracteres preservados no fim do identificador mascarado
_MASK_VISIBLE_SUFFIX = 4


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    request_id_getter: Callable[[], str] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Deve ser chamada uma vez na inicialização do serviço (app/bootstrap/).

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço para identificação nos logs.
        request_id_getter: Função opcional que retorna o request_id
            do contexto atual (ex: de ContextVar).

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(RequestIdFilter(service_name, request_id_getter))

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo especificado."""
    return logging.getLogger(name)


def mask_identifier(value: object) -> str:
    """Mascara identificador de conta ou cobrança para logs.

    Mantém só os últimos caracteres, suficiente para correlacionar
    ocorrências sem expor o valor inteiro.

    Exemplo:
        mask_identifier("Fe3kd93jfAA") -> "***jfAA"
        mask_identifier(12) -> "***"
    """
    if value is None:
        return ""
    text = str(value)
    if len(text) <= _MASK_VISIBLE_SUFFIX:
        return "***"
    return "***" + text[-_MASK_VISIBLE_SUFFIX:]
