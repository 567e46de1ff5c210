"""Typed unit requests and the per-cell ring of future round slots."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional


@dataclass(frozen=True)
class SendUnits:
    origin: int
    target: int
    units: int

    def order(self, units: int) -> str:
        return f"MOVE {self.origin} {self.target} {units}"


@dataclass(frozen=True)
class SaveUnits:
    cell_id: int
    units: int


@dataclass(frozen=True)
class SendBomb:
    origin: int
    target: int

    def order(self) -> str:
        return f"BOMB {self.origin} {self.target}"


@dataclass(frozen=True)
class UpgradeCell:
    cell_id: int

    def order(self) -> str:
        return f"INC {self.cell_id}"


@dataclass
class RoundRequests:
    """Everything requested of one cell for one round. Lists keep request order."""

    standard_attack: Optional[SendUnits] = None
    neutral_attacks: List[SendUnits] = field(default_factory=list)
    upgrade: Optional[UpgradeCell] = None
    defend_transfer: Optional[SendUnits] = None
    save_for_defense: Optional[SaveUnits] = None
    special_attack: Optional[SendUnits] = None
    save_for_special: Optional[SaveUnits] = None
    bomb_launches: List[SendBomb] = field(default_factory=list)
    evacuate: bool = False

    def is_empty(self) -> bool:
        return self == RoundRequests()


class RequestRing:
    """
    ``horizon`` request slots for one cell; slot 0 is the current round.

    ``rotate()`` hands out slot 0 and appends a fresh slot at the far end.
    """

    def __init__(self, cell_id: int, horizon: int = 21):
        self.cell_id = cell_id
        self._slots: Deque[RoundRequests] = deque(RoundRequests() for _ in range(horizon))

    def __len__(self):
        return len(self._slots)

    @property
    def current(self) -> RoundRequests:
        return self._slots[0]

    def slot(self, in_rounds: int = 0) -> RoundRequests:
        if not 0 <= in_rounds < len(self._slots):
            raise ValueError(
                f"cell {self.cell_id}: request delay {in_rounds} outside 0..{len(self._slots) - 1}"
            )
        return self._slots[in_rounds]

    def rotate(self) -> RoundRequests:
        drained = self._slots.popleft()
        self._slots.append(RoundRequests())
        return drained
