"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e agregadas
posteriormente (BigQuery, Cloud Logging metrics, etc.).

Métricas suportadas:
- Latência: tempo de execução por componente/operação
- Webhook: counter de desfechos do reconciliador de pagamentos
- Transição: counter e auditoria de transições de fretes e assinaturas
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fsm import StateTransition

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "payment_reconciler")
        operation: Nome da operação (ex: "reconcile")
        latency_ms: Latência em milissegundos
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
        },
    )


def record_webhook_outcome(
    outcome: str,
    charge_status: str | None = None,
) -> None:
    """Registra desfecho de um evento de pagamento.

    Args:
        outcome: applied, recorded, duplicate, superseded, malformed, unknown_account
        charge_status: Status da cobrança, quando parseável
    """
    logger.info(
        "metric_webhook_outcome",
        extra={
            "metric_type": "webhook_outcome",
            "component": "payment_reconciler",
            "outcome": outcome,
            "charge_status": charge_status or "",
        },
    )


def record_transition(entity: str, transition: StateTransition) -> None:
    """Registra transição de estado aplicada.

    A mesma linha serve de counter e de trilha de auditoria: carrega o
    registro da FSM (estado derivado de origem, destino, gatilho, instante
    do relógio injetado e entity_id). Chamar só depois da escrita.

    Args:
        entity: "freight" ou "subscription"
        transition: Transição devolvida pela FSMStateMachine
    """
    logger.info(
        "metric_transition",
        extra={
            "metric_type": "transition",
            "component": entity,
            **transition.to_log_dict(),
        },
    )
