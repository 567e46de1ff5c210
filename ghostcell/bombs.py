"""Bomb launch records and the per-cell prediction of upcoming impacts."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ghostcell.cell import Owner
from ghostcell.errors import AmbiguousImpact
from ghostcell.graph import CellGraph


@dataclass(frozen=True)
class BombRecord:
    """A launched bomb. Enemy bombs have unknown ``target`` and ``impact``."""

    bomb_id: int
    owner: Owner
    origin: int
    target: Optional[int]
    launched: int
    impact: Optional[int]

    @property
    def friendly(self) -> bool:
        return self.owner == Owner.FRIENDLY


@dataclass(frozen=True)
class PredictedBombImpact:
    bomb: BombRecord
    cell_id: int
    predicted_round: int


class BombPredictor:
    """
    Tracks where and when bombs may land.

    Own bombs get a single record at their known target. Enemy bombs get a
    candidate record on every cell, due at launch round plus the distance
    from the launching cell; candidates are dropped when the impact is
    identified or when their round passes.
    """

    def __init__(self, graph: CellGraph, overlap_tolerance: int = 5):
        self.graph = graph
        self.overlap_tolerance = overlap_tolerance
        self.round = 0
        self._impacts: List[List[PredictedBombImpact]] = [[] for _ in range(graph.cell_count)]

    def begin_round(self, round_number: int) -> int:
        """Move to ``round_number`` and drop candidates whose round has passed."""
        self.round = round_number
        pruned = 0
        for cell_id, records in enumerate(self._impacts):
            kept = [r for r in records if r.predicted_round >= round_number]
            pruned += len(records) - len(kept)
            self._impacts[cell_id] = kept
        return pruned

    def register_launch(self, bomb: BombRecord) -> int:
        """Add the impact records for a newly observed bomb. Returns how many were added."""
        if bomb.friendly:
            if bomb.target is None or bomb.impact is None:
                raise ValueError(f"own bomb {bomb.bomb_id} has no known target")
            self._impacts[bomb.target].append(PredictedBombImpact(bomb, bomb.target, bomb.impact))
            return 1

        for cell_id in range(self.graph.cell_count):
            predicted = bomb.launched + self.graph.distance(bomb.origin, cell_id)
            self._impacts[cell_id].append(PredictedBombImpact(bomb, cell_id, predicted))
        return self.graph.cell_count

    def report_disabled(self, cell_id: int) -> Optional[BombRecord]:
        """
        Called when ``cell_id`` shows a freshly maxed production-disabled counter.

        Identifies the bomb that hit and forgets every record of it.

        Returns:
            The bomb that hit, or None when no record matches.

        Raises:
            AmbiguousImpact: If several candidates were due this round; nothing is removed.
        """
        bomb = self._match_impact(cell_id)
        if bomb is not None:
            self.forget(bomb.bomb_id)
        return bomb

    def _match_impact(self, cell_id: int) -> Optional[BombRecord]:
        records = self._impacts[cell_id]
        due = [r for r in records if r.predicted_round == self.round]
        if len(due) > 1:
            raise AmbiguousImpact(cell_id, self.round, [r.bomb.bomb_id for r in due])
        if due:
            return due[0].bomb
        if len(records) == 1:
            return records[0].bomb
        return None

    def forget(self, bomb_id: int) -> None:
        for cell_id, records in enumerate(self._impacts):
            self._impacts[cell_id] = [r for r in records if r.bomb.bomb_id != bomb_id]

    def impacts_at(self, cell_id: int) -> Tuple[PredictedBombImpact, ...]:
        return tuple(self._impacts[cell_id])

    # --- Queries, all relative to the current round ---

    def impact_expected(self, cell_id: int) -> bool:
        return bool(self._impacts[cell_id])

    def impact_in(self, cell_id: int, rounds: int) -> bool:
        due = self.round + rounds
        return any(r.predicted_round == due for r in self._impacts[cell_id])

    def impact_in_less_than(self, cell_id: int, rounds: int) -> bool:
        limit = self.round + rounds
        return any(r.predicted_round < limit for r in self._impacts[cell_id])

    def impact_in_more_than(self, cell_id: int, rounds: int) -> bool:
        limit = self.round + rounds
        return any(r.predicted_round > limit for r in self._impacts[cell_id])

    def arrival_coincides(self, origin: int, target: int) -> bool:
        """Would units sent now from ``origin`` land on ``target`` in an impact round."""
        if not self._impacts[target]:
            return False
        arrival = self.round + self.graph.distance(origin, target) + 1
        return any(r.predicted_round == arrival for r in self._impacts[target])

    def overlaps_existing(self, origin: int, target: int) -> bool:
        """Would a bomb sent now from ``origin`` land on ``target`` close to another impact."""
        if not self._impacts[target]:
            return False
        impact = self.round + self.graph.distance(origin, target) + 1
        tolerance = self.overlap_tolerance
        return any(
            r.predicted_round - tolerance <= impact <= r.predicted_round + tolerance
            for r in self._impacts[target]
        )
