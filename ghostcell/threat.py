"""
Per-cell threat posture.

Walks a friendly cell's forecast window round by round and revokes defensive
capabilities as the simulated balances fail. The posture is the first entry
of ``POSTURE_TABLE`` whose capability survived the whole horizon.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from ghostcell.cell import Cell


class ThreatStatus(Enum):
    SAFE = "safe"
    DEFEND_BY_SAVING_UNITS = "defend_by_saving_units"
    DEFEND_BY_INCOMING_UNITS = "defend_by_incoming_units"
    BEING_CONQUERED = "being_conquered"


@dataclass(frozen=True)
class RoundOutlook:
    """One simulated round of a cell's forecast."""

    offset: int
    enemy: int
    friendly: int
    produced: int
    hoard_balance: int  # stationary units + production - enemy arrivals
    help_balance: int  # hoard_balance plus friendly arrivals


# capability -> condition that revokes it for the rest of the horizon
REVOKING_RULES = (
    ("holds_each_round", lambda step: step.enemy > step.produced + step.friendly),
    ("holds_by_saving", lambda step: step.hoard_balance < 0),
    ("holds_with_help", lambda step: step.help_balance < 0),
)

# most to least favourable; the first surviving capability wins
POSTURE_TABLE = (
    ("holds_each_round", ThreatStatus.SAFE),
    ("holds_by_saving", ThreatStatus.DEFEND_BY_SAVING_UNITS),
    ("holds_with_help", ThreatStatus.DEFEND_BY_INCOMING_UNITS),
)

FALLBACK_STATUS = ThreatStatus.BEING_CONQUERED


class ThreatClassifier:

    def outlook(self, cell: "Cell") -> Iterator[RoundOutlook]:
        forecast = cell.forecast
        hoard = cell.units
        helped = cell.units
        for offset in range(1, forecast.horizon):
            # production stays off while the disabled counter has not run out
            produced = 0 if cell.production_disabled - (offset - 1) > 0 else cell.production
            enemy = int(forecast.enemy[offset])
            friendly = int(forecast.friendly[offset])
            hoard += produced - enemy
            helped += produced - enemy + friendly
            yield RoundOutlook(offset, enemy, friendly, produced, hoard, helped)

    def classify(self, cell: "Cell") -> ThreatStatus:
        if cell.forecast.total_enemy <= 0:
            return ThreatStatus.SAFE

        held = {name for name, _ in REVOKING_RULES}
        for step in self.outlook(cell):
            for name, revokes in REVOKING_RULES:
                if name in held and revokes(step):
                    held.discard(name)

        for name, status in POSTURE_TABLE:
            if name in held:
                return status
        return FALLBACK_STATUS

    def units_to_save(self, cell: "Cell") -> int:
        """Units to keep this round so every later enemy arrival is covered."""
        forecast = cell.forecast
        required = 0
        for offset in range(forecast.horizon - 1, 0, -1):
            available = cell.production + int(forecast.friendly[offset]) - int(forecast.enemy[offset])
            required = max(0, required - available)
        return required

    def is_about_to_fall(self, cell: "Cell") -> bool:
        """Whether friendly arrivals already in flight take this cell within the horizon."""
        if cell.friendly:
            return True

        forecast = cell.forecast
        defenders = cell.units
        for offset in range(1, forecast.horizon):
            if cell.neutral or cell.production_disabled > 0:
                produced = 0
            else:
                produced = cell.production
            defenders += int(forecast.enemy[offset]) - int(forecast.friendly[offset]) + produced
            if defenders < 0:
                return True
        return False
