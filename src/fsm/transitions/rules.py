"""
Regras de transição válidas para frete e assinatura.

Cada agregado tem seu próprio grafo. Transições temporais
(active → expired, trial_active → trial_used, paid → paid_expired)
constam do grafo para auditoria, mas acontecem por derivação na leitura.
"""

from enum import StrEnum

from fsm.states.freight import FREIGHT_TERMINAL_STATES, FreightStatus
from fsm.states.subscription import SubscriptionState
from fsm.types.transition import StateGraph

FREIGHT_GRAPH = StateGraph(
    name="freight",
    transitions={
        # OPEN: sem janela, pode ganhar uma ou ser encerrado
        FreightStatus.OPEN: frozenset({
            FreightStatus.ACTIVE,
            FreightStatus.EXPIRED,
            FreightStatus.COMPLETED,
            FreightStatus.CANCELLED,
        }),

        # ACTIVE: reativar de novo apenas estende a janela
        FreightStatus.ACTIVE: frozenset({
            FreightStatus.ACTIVE,
            FreightStatus.EXPIRED,
            FreightStatus.COMPLETED,
            FreightStatus.CANCELLED,
        }),

        # EXPIRED: só volta a ACTIVE por reativação explícita do dono
        FreightStatus.EXPIRED: frozenset({
            FreightStatus.ACTIVE,
            FreightStatus.COMPLETED,
            FreightStatus.CANCELLED,
        }),

        FreightStatus.COMPLETED: frozenset(),
        FreightStatus.CANCELLED: frozenset(),
    },
    terminal_states=FREIGHT_TERMINAL_STATES,
    reflexive_states=frozenset({FreightStatus.ACTIVE}),
)

SUBSCRIPTION_GRAPH = StateGraph(
    name="subscription",
    transitions={
        SubscriptionState.NONE: frozenset({
            SubscriptionState.TRIAL_ACTIVE,
            SubscriptionState.PAID,
            SubscriptionState.PAID_EXPIRED,
        }),
        SubscriptionState.TRIAL_ACTIVE: frozenset({
            SubscriptionState.TRIAL_USED,
            SubscriptionState.PAID,
            SubscriptionState.PAID_EXPIRED,
        }),
        # Trial nunca ressuscita
        SubscriptionState.TRIAL_USED: frozenset({
            SubscriptionState.PAID,
            SubscriptionState.PAID_EXPIRED,
        }),
        # PAID → PAID: renovação
        SubscriptionState.PAID: frozenset({
            SubscriptionState.PAID,
            SubscriptionState.PAID_EXPIRED,
        }),
        # trial_active só é alcançável se trial_used=False (checado no engine)
        SubscriptionState.PAID_EXPIRED: frozenset({
            SubscriptionState.TRIAL_ACTIVE,
            SubscriptionState.PAID,
            SubscriptionState.PAID_EXPIRED,
        }),
    },
    reflexive_states=frozenset({
        SubscriptionState.PAID,
        SubscriptionState.PAID_EXPIRED,
    }),
)


def is_transition_valid(
    graph: StateGraph,
    from_state: StrEnum,
    to_state: StrEnum,
) -> bool:
    """
    Verifica se uma transição é válida segundo o grafo.

    Args:
        graph: Grafo do agregado
        from_state: Estado de origem
        to_state: Estado de destino

    Returns:
        True se a transição é permitida, False caso contrário
    """
    if from_state in graph.terminal_states:
        return False

    return to_state in graph.targets(from_state)


def validate_graph(graph: StateGraph, states: type[StrEnum]) -> list[str]:
    """
    Valida a integridade de um grafo de transições.

    Verifica:
    - Todos os estados do enum estão no mapa
    - Estados terminais têm conjunto vazio
    - Nenhuma transição aponta para estado de outro enum

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for state in states:
        if state not in graph.transitions:
            errors.append(f"[{graph.name}] Estado {state.name} ausente no grafo")

    for state in graph.terminal_states:
        targets = graph.targets(state)
        if targets:
            errors.append(
                f"[{graph.name}] Estado terminal {state.name} "
                f"não deveria ter transições: {sorted(targets)}"
            )

    for from_state, targets in graph.transitions.items():
        for target in targets:
            if not isinstance(target, states):
                errors.append(
                    f"[{graph.name}] Transição {from_state.name} → {target}: destino inválido"
                )

    for state in graph.reflexive_states:
        if state not in graph.targets(state):
            errors.append(
                f"[{graph.name}] Estado reflexivo {state.name} sem auto-transição no grafo"
            )

    return errors
