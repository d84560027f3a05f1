"""Mapeamento de erros de ciclo de vida para respostas HTTP.

Códigos estáveis no corpo: `{"error": <code>, "detail": <texto>}`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status
from fastapi.responses import JSONResponse

from app.domain.results import LifecycleError

if TYPE_CHECKING:
    from app.domain.results import LifecycleResult

LIFECYCLE_ERROR_STATUS: dict[LifecycleError, int] = {
    LifecycleError.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    LifecycleError.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LifecycleError.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    LifecycleError.ALREADY_USED: status.HTTP_409_CONFLICT,
    LifecycleError.ALREADY_ACTIVE: status.HTTP_409_CONFLICT,
}


def error_response(error: LifecycleError, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=LIFECYCLE_ERROR_STATUS[error],
        content={"error": error.value, "detail": detail},
    )


def failure_response(result: LifecycleResult) -> JSONResponse:
    """Resposta HTTP de um LifecycleResult com falha."""
    if result.error is None:
        raise ValueError("failure_response exige resultado com erro")
    return error_response(result.error, result.detail)
