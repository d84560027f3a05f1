"""Observabilidade — logs estruturados e métricas.

Uso:
    from app.observability import get_request_id, set_request_id
    from app.observability import record_latency, record_webhook_outcome
"""

from app.observability.metrics import (
    record_latency,
    record_transition,
    record_webhook_outcome,
)
from app.observability.request_context import (
    generate_request_id,
    get_request_id,
    reset_request_id,
    set_request_id,
)

__all__ = [
    "generate_request_id",
    "get_request_id",
    "record_latency",
    "record_transition",
    "record_webhook_outcome",
    "reset_request_id",
    "set_request_id",
]
