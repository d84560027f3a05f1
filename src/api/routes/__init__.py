"""Rotas HTTP da API.

Responsabilidades:
- Definir endpoints HTTP (webhook, fretes, contas, health)
- Extrair o ator autenticado dos headers
- Delegar para os serviços de ciclo de vida
- Mapear resultados tipados para respostas HTTP

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
