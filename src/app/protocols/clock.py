"""Protocolo de relógio injetado nos engines de ciclo de vida."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


class ClockProtocol(ABC):
    """Fonte única de "agora" para o núcleo.

    Nenhum engine chama datetime.now() diretamente; todo instante vem daqui.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Retorna o instante atual com timezone UTC."""
