from __future__ import annotations

from enum import IntEnum

from ghostcell.forecast import ForecastWindow
from ghostcell.requests import RequestRing
from ghostcell.threat import ThreatStatus


class Owner(IntEnum):
    ENEMY = -1
    NEUTRAL = 0
    FRIENDLY = 1


class Cell:
    """
    Arena record for one cell. Other cells are referenced by id only; the
    graph, routing table and bomb predictor live on the game state.
    """

    def __init__(self, cell_id: int, owner: Owner, units: int, production: int, horizon: int = 21):
        self.cell_id = cell_id
        self.owner = Owner(owner)
        self.units = units
        self.production = production
        self.production_disabled = 0

        self.forecast = ForecastWindow(horizon)
        self.requests = RequestRing(cell_id, horizon)
        self.threat = ThreatStatus.SAFE

    @property
    def friendly(self) -> bool:
        return self.owner == Owner.FRIENDLY

    @property
    def enemy(self) -> bool:
        return self.owner == Owner.ENEMY

    @property
    def neutral(self) -> bool:
        return self.owner == Owner.NEUTRAL

    @property
    def is_hit_by_bomb(self) -> bool:
        return self.production_disabled != 0

    def apply_report(self, owner: Owner, units: int, production: int, production_disabled: int) -> None:
        """Take this round's observed values."""
        self.owner = Owner(owner)
        self.units = units
        self.production_disabled = production_disabled
        # the reported production is only trusted while the cell is producing
        if production_disabled == 0:
            self.production = production

    def __repr__(self):
        return (
            f"Cell(id={self.cell_id}, owner={self.owner.name}, units={self.units}, "
            f"production={self.production}, disabled={self.production_disabled}, threat={self.threat.name})"
        )
