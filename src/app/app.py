"""Entrypoint da aplicação QueroFretes Core.

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request

from api.routes import create_api_router
from app.bootstrap import get_entity_store, initialize_app, validate_runtime_settings
from app.observability import get_request_id, reset_request_id, set_request_id
from config.logging import get_logger
from config.settings import get_base_settings, get_store_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from fastapi import Response

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Cria o Entity Store e confere que responde

    Shutdown:
    - Log de encerramento (clientes são singletons do processo)
    """
    service = get_base_settings().service_name
    logger.info("app_starting", extra={"service_name": service})
    validate_runtime_settings()

    try:
        await get_entity_store().ping()
    except Exception as exc:
        # /ready reporta o detalhe; o processo sobe mesmo assim
        logger.warning(
            "entity_store_not_ready",
            extra={"backend": get_store_settings().backend, "error_type": type(exc).__name__},
        )

    yield

    logger.info("app_shutting_down", extra={"service_name": service})


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Propaga x-request-id para os logs e devolve no response."""
    token = set_request_id(request.headers.get(REQUEST_ID_HEADER))
    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = get_request_id()
        return response
    finally:
        reset_request_id(token)


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI."""
    fastapi_app = FastAPI(
        title="QueroFretes Core",
        description="Ciclo de vida de fretes e assinaturas com reconciliação de pagamentos PIX",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    fastapi_app.middleware("http")(request_id_middleware)
    fastapi_app.include_router(create_api_router())

    logger.info("app_configured")
    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting QueroFretes Core in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
