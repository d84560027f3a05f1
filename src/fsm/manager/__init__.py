"""
Exports públicos do módulo fsm/manager.

Máquina de estados (FSMStateMachine) para frete e assinatura.
"""

from fsm.manager.machine import FSMStateMachine

__all__ = [
    "FSMStateMachine",
]
