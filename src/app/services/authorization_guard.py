"""Guard de autorização para mutação de fretes e contas.

Funções puras: recebem o ator já autenticado e o registro carregado.
O ator chega com `Role` normalizado; nenhuma comparação de string aqui.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.account import Account
    from app.domain.actor import Actor
    from app.domain.freight import Freight


def can_mutate_freight(actor: Actor, freight: Freight) -> bool:
    """Verifica se o ator pode alterar o frete.

    Regras (primeira que decide vence):
        1. Admin pode tudo
        2. Motorista nunca altera frete, mesmo sendo dono
        3. Dono da conta (owner_account_id)
        4. Compatibilidade: frete sem conta dona, mas do mesmo cliente
    """
    if actor.is_admin:
        return True
    if actor.is_driver:
        return False
    if freight.owner_account_id is not None:
        return freight.owner_account_id == actor.id
    return (
        freight.owner_client_id is not None
        and actor.client_id is not None
        and freight.owner_client_id == actor.client_id
    )


def can_mutate_account(actor: Actor, account: Account) -> bool:
    """Admin ou o próprio titular da conta."""
    return actor.is_admin or actor.id == account.id
