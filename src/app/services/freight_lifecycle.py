"""Freight Lifecycle Engine — ciclo de vida dos anúncios de frete.

Expiração não é escrita: `derive_status` calcula o status efetivo a
partir dos campos armazenados e do relógio. Toda mutação parte do status
derivado, passa pela FSM de frete e é persistida com compare-and-set.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from app.domain.freight import Freight, FreightDraft
from app.domain.results import LifecycleError, LifecycleResult
from app.domain.time_policy import freight_expiration, has_elapsed
from app.observability import record_transition
from app.services.authorization_guard import can_mutate_freight
from fsm import (
    FREIGHT_EXPIRABLE_STATES,
    FREIGHT_GRAPH,
    FSMStateMachine,
    FreightStatus,
    StateTransition,
    is_freight_terminal,
)
from utils.errors import StaleWriteError

if TYPE_CHECKING:
    from app.domain.actor import Actor
    from app.protocols import ClockProtocol, EntityStoreProtocol
    from config.settings import StoreSettings

logger = logging.getLogger(__name__)

# Resultado da decisão e, quando houve mudança de status, o registro da FSM
FreightDecision = Callable[
    [Freight, datetime], tuple[LifecycleResult[Freight], StateTransition | None]
]

_OPERATION_EVENTS = {
    "reactivate": "freight_reactivated",
    "complete": "freight_completed",
    "cancel": "freight_cancelled",
    "edit": "freight_edited",
}


def derive_status(freight: Freight, now: datetime) -> FreightStatus:
    """Status efetivo do frete no instante `now`.

    Terminais são devolvidos como estão. open/active com prazo vencido
    (`now > expiration_instant`) são lidos como expired, mesmo que nenhuma
    escrita tenha ocorrido.
    """
    if is_freight_terminal(freight.status):
        return freight.status
    if freight.status in FREIGHT_EXPIRABLE_STATES and has_elapsed(
        freight.expiration_instant, now
    ):
        return FreightStatus.EXPIRED
    return freight.status


class FreightView(BaseModel):
    """Leitura de frete exposta às camadas de UI (status sempre derivado)."""

    model_config = ConfigDict(frozen=True)

    id: int
    origin: str
    destination: str
    status: FreightStatus
    expiration_instant: datetime | None
    owner_account_id: int | None
    owner_client_id: int | None
    created_at: datetime
    updated_at: datetime


class FreightLifecycleEngine:
    """Operações de ciclo de vida de fretes."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        clock: ClockProtocol,
        settings: StoreSettings | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._max_retries = settings.cas_max_retries if settings else 3

    async def create(self, draft: FreightDraft, actor: Actor) -> LifecycleResult[Freight]:
        """Publica um frete em nome do ator.

        Sem `no_expiry`, nasce active com janela de 24h; com `no_expiry`,
        nasce open e sem prazo.
        """
        if actor.is_driver:
            return LifecycleResult.failure(
                LifecycleError.FORBIDDEN, "motorista não publica fretes"
            )
        now = self._clock.now()
        if draft.no_expiry:
            status, expiration = FreightStatus.OPEN, None
        else:
            status, expiration = FreightStatus.ACTIVE, freight_expiration(now)

        freight = await self._store.insert_freight(
            Freight(
                origin=draft.origin,
                destination=draft.destination,
                status=status,
                expiration_instant=expiration,
                owner_account_id=actor.id,
                owner_client_id=actor.client_id,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "freight_created",
            extra={
                "freight_id": freight.id,
                "status": status.value,
                "no_expiry": draft.no_expiry,
            },
        )
        return LifecycleResult.success(freight)

    async def reactivate(self, freight_id: int, actor: Actor) -> LifecycleResult[Freight]:
        """Reabre a janela de 24h a partir de agora.

        Reexecutar apenas estende a janela de novo; sem dedupe, pois é
        sempre uma ação explícita do usuário.
        """

        def decide(
            freight: Freight, now: datetime
        ) -> tuple[LifecycleResult[Freight], StateTransition | None]:
            transition = self._transition(freight, now, FreightStatus.ACTIVE, "reactivate")
            if isinstance(transition, LifecycleResult):
                return transition, None
            updated = freight.model_copy(
                update={
                    "status": FreightStatus.ACTIVE,
                    "expiration_instant": freight_expiration(now),
                    "updated_at": now,
                }
            )
            return LifecycleResult.success(updated), transition

        return await self._mutate(freight_id, actor, "reactivate", decide)

    async def complete(self, freight_id: int, actor: Actor) -> LifecycleResult[Freight]:
        return await self._mutate(
            freight_id,
            actor,
            "complete",
            self._terminal_decision(FreightStatus.COMPLETED, "complete"),
        )

    async def cancel(self, freight_id: int, actor: Actor) -> LifecycleResult[Freight]:
        return await self._mutate(
            freight_id,
            actor,
            "cancel",
            self._terminal_decision(FreightStatus.CANCELLED, "cancel"),
        )

    async def edit(
        self,
        freight_id: int,
        actor: Actor,
        *,
        origin: str | None = None,
        destination: str | None = None,
    ) -> LifecycleResult[Freight]:
        """Altera origem/destino. Não mexe em status nem em prazo."""
        changes = {
            key: value
            for key, value in (("origin", origin), ("destination", destination))
            if value is not None
        }

        def decide(
            freight: Freight, now: datetime
        ) -> tuple[LifecycleResult[Freight], StateTransition | None]:
            if not changes:
                return LifecycleResult.success(freight), None
            updated = freight.model_copy(update={**changes, "updated_at": now})
            return LifecycleResult.success(updated), None

        return await self._mutate(freight_id, actor, "edit", decide)

    async def get(self, freight_id: int) -> Freight | None:
        return await self._store.get_freight(freight_id)

    async def list_freights(
        self,
        *,
        owner_account_id: int | None = None,
        status: FreightStatus | None = None,
    ) -> list[FreightView]:
        """Lista fretes com status derivado, filtrando por dono e/ou status.

        O filtro de status compara com o status DERIVADO: `status=active`
        não devolve frete cujo prazo venceu sem escrita.
        """
        freights = await self._store.list_freights(owner_account_id)
        views = [self.view(freight) for freight in freights]
        if status is None:
            return views
        return [view for view in views if view.status is status]

    def view(self, freight: Freight) -> FreightView:
        """Monta a leitura com status derivado no instante atual."""
        if freight.id is None:
            raise ValueError("view exige frete persistido")
        return FreightView(
            id=freight.id,
            origin=freight.origin,
            destination=freight.destination,
            status=derive_status(freight, self._clock.now()),
            expiration_instant=freight.expiration_instant,
            owner_account_id=freight.owner_account_id,
            owner_client_id=freight.owner_client_id,
            created_at=freight.created_at,
            updated_at=freight.updated_at,
        )

    # Internals

    def _terminal_decision(self, target: FreightStatus, trigger: str) -> FreightDecision:
        def decide(
            freight: Freight, now: datetime
        ) -> tuple[LifecycleResult[Freight], StateTransition | None]:
            transition = self._transition(freight, now, target, trigger)
            if isinstance(transition, LifecycleResult):
                return transition, None
            updated = freight.model_copy(update={"status": target, "updated_at": now})
            return LifecycleResult.success(updated), transition

        return decide

    def _transition(
        self,
        freight: Freight,
        now: datetime,
        target: FreightStatus,
        trigger: str,
    ) -> StateTransition | LifecycleResult[Freight]:
        """Valida a transição na FSM partindo do status derivado.

        Returns:
            O registro da transição, ou a falha invalid_transition.
        """
        derived = derive_status(freight, now)
        fsm = FSMStateMachine(FREIGHT_GRAPH, derived, entity_id=f"freight:{freight.id}")
        result = fsm.transition(target, trigger=trigger, timestamp=now)
        if not result.success:
            return LifecycleResult.failure(
                LifecycleError.INVALID_TRANSITION, result.error_reason
            )
        return result.transition

    async def _mutate(
        self,
        freight_id: int,
        actor: Actor,
        operation: str,
        decide: FreightDecision,
    ) -> LifecycleResult[Freight]:
        """Carrega, autoriza, decide e grava com compare-and-set.

        Frete terminal é recusado com invalid_transition antes da checagem
        de dono, para qualquer ator. Escrita perdida (StaleWriteError)
        recarrega e reavalia; esgotadas as tentativas, propaga.
        """
        last_error: StaleWriteError | None = None
        for attempt in range(1, self._max_retries + 1):
            freight = await self._store.get_freight(freight_id)
            if freight is None:
                return LifecycleResult.failure(LifecycleError.NOT_FOUND)
            if is_freight_terminal(freight.status):
                return LifecycleResult.failure(
                    LifecycleError.INVALID_TRANSITION,
                    f"frete em estado terminal: {freight.status.value}",
                )
            if not can_mutate_freight(actor, freight):
                logger.info(
                    "freight_mutation_forbidden",
                    extra={
                        "freight_id": freight_id,
                        "operation": operation,
                        "role": actor.role.value,
                    },
                )
                return LifecycleResult.failure(LifecycleError.FORBIDDEN)

            now = self._clock.now()
            decision, transition = decide(freight, now)
            if not decision.ok or decision.value is freight:
                return decision

            try:
                stored = await self._store.update_freight(decision.value, freight.version)
            except StaleWriteError as exc:
                last_error = exc
                logger.info(
                    "freight_write_stale",
                    extra={"freight_id": freight_id, "attempt": attempt},
                )
                continue

            logger.info(
                _OPERATION_EVENTS[operation],
                extra={
                    "freight_id": freight_id,
                    "status": stored.status.value,
                    "version": stored.version,
                },
            )
            if transition is not None:
                record_transition("freight", transition)
            return LifecycleResult.success(stored)

        raise last_error or StaleWriteError(f"freight:{freight_id}", -1)
