"""
Match state: the arena of cells plus everything derived from the referee's reports.

Every cross-reference is an integer id into ``GameState.cells``. Aggregate
totals are recomputed from the arena each round instead of being maintained
incrementally.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

from ghostcell.bombs import BombPredictor, BombRecord
from ghostcell.cell import Cell, Owner
from ghostcell.config import DEFAULT_CONFIG, EngineConfig
from ghostcell.errors import AmbiguousImpact, ProtocolViolation
from ghostcell.graph import CellGraph, RoutingTable
from ghostcell.helpers.protocol import BombReport, EntityReport, FactoryReport, SetupReport, TroopReport
from ghostcell.threat import ThreatClassifier, ThreatStatus
from ghostcell.utils import log


@dataclass(frozen=True)
class TroopRecord:
    troop_id: int
    owner: Owner
    origin: int
    target: int
    units: int
    launched: int
    arrival: int


@dataclass(frozen=True)
class Tally:
    own_units: int = 0
    enemy_units: int = 0
    neutral_units: int = 0
    own_production: int = 0
    enemy_production: int = 0
    neutral_production: int = 0


class History:
    """Every troop and bomb seen during the match, recorded once per id."""

    def __init__(self):
        self.troop_ids: Set[int] = set()
        self.troops_launched: Dict[int, List[TroopRecord]] = defaultdict(list)
        self.bomb_ids: Set[int] = set()
        self.bombs: List[BombRecord] = []
        # troops already entered into their target's forecast window
        self.forecast_ids: Set[int] = set()

    def record_troop(self, troop: TroopRecord) -> bool:
        if troop.troop_id in self.troop_ids:
            return False
        self.troop_ids.add(troop.troop_id)
        self.troops_launched[troop.launched].append(troop)
        return True

    def record_bomb(self, bomb: BombRecord) -> bool:
        if bomb.bomb_id in self.bomb_ids:
            return False
        self.bomb_ids.add(bomb.bomb_id)
        self.bombs.append(bomb)
        return True

    def troops_heading_to(self, target: int, since_round: int, owner: Optional[Owner] = None) -> List[TroopRecord]:
        found = []
        for launched in sorted(self.troops_launched):
            if launched < since_round:
                continue
            for troop in self.troops_launched[launched]:
                if troop.target == target and (owner is None or troop.owner == owner):
                    found.append(troop)
        return found


class GameState:
    """
    Authoritative view of the match after each round's reports.

    Attributes:
        cells: Cell records indexed by id.
        graph: Static distances and neighbour order.
        routing: Capped all-pairs routing table, built once here.
        bombs: Predicted bomb impacts per cell.
        history: Troop and bomb launch records.
        round: Rounds elapsed since setup.
        tally: Unit and production totals per side for the current round.
    """

    def __init__(self, graph: CellGraph, cells: Sequence[Cell], config: EngineConfig = DEFAULT_CONFIG):
        self.config = config
        self.graph = graph
        self.routing = RoutingTable(graph, cutoff=config.neighbor_cutoff, no_edge=config.no_edge_distance)
        self.bombs = BombPredictor(graph, overlap_tolerance=config.bomb_overlap_tolerance)
        self.classifier = ThreatClassifier()
        self.history = History()
        self.cells: List[Cell] = list(cells)

        self.round = 0
        self.own_bombs_available = config.bomb_stock
        self.enemy_bombs_available = config.bomb_stock
        self.tally = Tally()
        self._in_flight: Dict[Owner, int] = defaultdict(int)

        friendly = self.cells_owned_by(Owner.FRIENDLY)
        enemy = self.cells_owned_by(Owner.ENEMY)
        self.own_start: Optional[Cell] = friendly[0] if friendly else None
        self.enemy_start: Optional[Cell] = enemy[0] if enemy else None

    @classmethod
    def from_setup(
        cls,
        setup: SetupReport,
        entities: Sequence[EntityReport],
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> "GameState":
        """Build the arena from the setup block and the first entity block."""
        graph = CellGraph(setup.cell_count, setup.links, unlinked_distance=config.no_edge_distance)

        cells: List[Optional[Cell]] = [None] * setup.cell_count
        for report in entities:
            if isinstance(report, FactoryReport):
                if not 0 <= report.entity_id < setup.cell_count:
                    raise ProtocolViolation(f"factory id {report.entity_id} outside the graph")
                cell = Cell(report.entity_id, report.owner, report.units, report.production, config.horizon)
                cell.production_disabled = report.production_disabled
                cells[report.entity_id] = cell

        missing = [cell_id for cell_id, cell in enumerate(cells) if cell is None]
        if missing:
            raise ProtocolViolation(f"setup did not report cells {missing}")

        state = cls(graph, cells, config)
        state._ingest([r for r in entities if not isinstance(r, FactoryReport)])
        state._finish_round()
        return state

    # --- Round ingestion ---

    def apply_round(self, entities: Sequence[EntityReport]) -> None:
        self.round += 1
        for cell in self.cells:
            cell.forecast.advance()
        self.bombs.begin_round(self.round)
        self._ingest(entities)
        self._finish_round()

    def _ingest(self, entities: Sequence[EntityReport]) -> None:
        self._in_flight = defaultdict(int)
        for report in entities:
            if isinstance(report, FactoryReport):
                self._observe_factory(report)
            elif isinstance(report, TroopReport):
                self._observe_troop(report)
            elif isinstance(report, BombReport):
                self._observe_bomb(report)

    def _cell(self, cell_id: int) -> Cell:
        if not 0 <= cell_id < len(self.cells):
            raise ProtocolViolation(f"unknown cell id {cell_id}")
        return self.cells[cell_id]

    def _observe_factory(self, report: FactoryReport) -> None:
        cell = self._cell(report.entity_id)
        if report.production_disabled == self.config.bomb_disable_rounds:
            try:
                bomb = self.bombs.report_disabled(cell.cell_id)
            except AmbiguousImpact as exc:
                if self.config.debug:
                    log(f"Bomb impact deferred: {exc}")
            else:
                if bomb is not None and self.config.debug:
                    log(f"Bomb {bomb.bomb_id} identified on {cell.cell_id}")
        cell.apply_report(report.owner, report.units, report.production, report.production_disabled)

    def _observe_troop(self, report: TroopReport) -> None:
        self._cell(report.origin)
        target = self._cell(report.target)
        self.history.record_troop(TroopRecord(
            troop_id=report.entity_id,
            owner=report.owner,
            origin=report.origin,
            target=report.target,
            units=report.units,
            launched=self.round,
            arrival=self.round + report.remaining,
        ))
        if report.entity_id not in self.history.forecast_ids:
            friendly = report.owner == Owner.FRIENDLY
            if target.forecast.add_incoming(friendly, report.units, report.remaining):
                self.history.forecast_ids.add(report.entity_id)
        self._in_flight[report.owner] += report.units

    def _observe_bomb(self, report: BombReport) -> None:
        self._cell(report.origin)
        friendly = report.owner == Owner.FRIENDLY
        if friendly and (report.target is None or report.remaining is None):
            raise ProtocolViolation(f"own bomb {report.entity_id} reported without target")
        if friendly:
            self._cell(report.target)

        bomb = BombRecord(
            bomb_id=report.entity_id,
            owner=report.owner,
            origin=report.origin,
            target=report.target if friendly else None,
            launched=self.round,
            impact=self.round + report.remaining if friendly else None,
        )
        if not self.history.record_bomb(bomb):
            return
        self.bombs.register_launch(bomb)
        if friendly:
            self.own_bombs_available -= 1
        else:
            self.enemy_bombs_available -= 1

    def _finish_round(self) -> None:
        self.tally = self._count()
        for cell in self.cells:
            if cell.friendly:
                cell.threat = self.classifier.classify(cell)
                if cell.threat is not ThreatStatus.SAFE and self.config.debug:
                    log(f"ThreatStatus: {cell.cell_id} {cell.threat.name}")
            else:
                cell.threat = ThreatStatus.SAFE

    def _count(self) -> Tally:
        units = defaultdict(int)
        production = defaultdict(int)
        for cell in self.cells:
            units[cell.owner] += cell.units
            # nominal production, also while disabled
            production[cell.owner] += cell.production
        for owner, amount in self._in_flight.items():
            units[owner] += amount
        return Tally(
            own_units=units[Owner.FRIENDLY],
            enemy_units=units[Owner.ENEMY],
            neutral_units=units[Owner.NEUTRAL],
            own_production=production[Owner.FRIENDLY],
            enemy_production=production[Owner.ENEMY],
            neutral_production=production[Owner.NEUTRAL],
        )

    # --- Queries ---

    def cells_owned_by(self, owner: Owner) -> List[Cell]:
        return [cell for cell in self.cells if cell.owner == owner]

    def closest_cell(self, cell_id: int, owner: Owner) -> Optional[Cell]:
        neighbor = self.graph.closest(cell_id, lambda other: self.cells[other].owner == owner)
        return None if neighbor is None else self.cells[neighbor.cell_id]

    def distance_to_closest(self, cell_id: int, owner: Owner) -> int:
        neighbor = self.graph.closest(cell_id, lambda other: self.cells[other].owner == owner)
        return self.config.horizon if neighbor is None else neighbor.distance
