"""
Targeting heuristics: decide what each owned cell should do and push the
matching requests into the resolver. Nothing here writes orders directly.
"""
from __future__ import annotations

from typing import Optional

from ghostcell.cell import Cell, Owner
from ghostcell.resolver import CommandResolver
from ghostcell.state import GameState
from ghostcell.threat import ThreatStatus
from ghostcell.utils import log


class Strategist:
    # --- Opening ---
    OPENING_PRODUCTION_WEIGHT = 6
    OPENING_SAFE_ENEMY_DISTANCE = 13  # no early bomb threat beyond this
    OPENING_NEUTRAL_MARGIN = 10
    OPENING_MIN_NEUTRALS_FOR_UPGRADE = 10

    # --- Bombing ---
    BOMB_EARLIEST_ROUND = 4
    BOMB_ANY_TOP_PRODUCER_ROUND = 10
    BOMB_RELAX_TARGET_ROUND = 20
    BOMB_RELAX_UNIT_GAP = 20
    FIRST_BOMB_RELAX_ROUND = 30
    FIRST_BOMB_LAST_RESORT_ROUND = 40
    FIRST_BOMB_UNIT_GAP = 50

    # --- Attack scoring ---
    ATTACK_PRODUCTION_WEIGHT = 6

    # --- Expansion / upgrades ---
    EXPANSION_EARLY_ROUND = 10
    EXPANSION_LATE_ROUND = 40
    EXPANSION_MAX_DISTANCE = 8
    LEAD_PRODUCTION_GAP = 2
    LEAD_UNIT_GAP = 50
    UPGRADE_PAYBACK_ROUNDS = 10

    # --- Intercepts ---
    INTERCEPT_LOOKBACK = 20

    def __init__(self, state: GameState, resolver: CommandResolver):
        self.state = state
        self.resolver = resolver
        self.config = state.config

    def plan(self) -> None:
        if self.state.round == 0:
            self._plan_opening()
        else:
            self._plan_round()

    def _debug(self, message: str) -> None:
        if self.config.debug:
            log(message)

    def _distance(self, a: Cell, b: Cell) -> int:
        return self.state.graph.distance(a.cell_id, b.cell_id)

    # --- Round 0 ---

    def _plan_opening(self) -> None:
        state = self.state
        start = state.own_start
        enemy_start = state.enemy_start
        if start is None:
            return

        def opening_score(cell: Cell) -> int:
            return cell.production * self.OPENING_PRODUCTION_WEIGHT - self._distance(start, cell) - cell.units

        neutrals = sorted(state.cells_owned_by(Owner.NEUTRAL), key=opening_score, reverse=True)
        available = start.units
        enemy_distance = self._distance(start, enemy_start) if enemy_start else self.config.horizon
        safe_to_upgrade = enemy_distance > self.OPENING_SAFE_ENEMY_DISTANCE
        cost = self.config.upgrade_cost

        # many neutral defenders: growing production beats conquering them
        upgraded = False
        crowded = available - state.tally.neutral_units // 2 < self.OPENING_NEUTRAL_MARGIN
        if state.tally.neutral_production > 1 and crowded and available >= cost and safe_to_upgrade:
            self.resolver.upgrade(start.cell_id)
            available -= cost
            upgraded = True

        for cell in neutrals:
            if available <= 0:
                break
            if available <= cell.units or cell.production == 0:
                continue
            own_distance = self._distance(cell, start)
            enemy_side = self._distance(cell, enemy_start) if enemy_start else self.config.horizon
            if own_distance == enemy_side:
                # contested centre: trickle in behind the enemy's first wave
                self.resolver.neutral_attack(start.cell_id, cell.cell_id, 1)
                self.resolver.neutral_attack(start.cell_id, cell.cell_id, 1, in_rounds=1)
                available -= 2
            elif own_distance < enemy_side:
                self.resolver.neutral_attack(start.cell_id, cell.cell_id, cell.units + 1)
                available -= cell.units + 1

        if (
            not upgraded
            and len(neutrals) > self.OPENING_MIN_NEUTRALS_FOR_UPGRADE
            and available >= cost
            and safe_to_upgrade
        ):
            self.resolver.upgrade(start.cell_id)

        if enemy_start is not None and enemy_start.production == self.config.max_production:
            self.resolver.launch_bomb(start.cell_id, enemy_start.cell_id)

    # --- Later rounds ---

    def _plan_round(self) -> None:
        self._bomb_top_producer()
        self._reinforce_contested_neutrals()
        self._standard_attack()
        self._defensive_buffers()
        self._defend_threatened_cells()
        self._expand_to_neutrals()
        self._upgrade_safe_cell()
        self._intercept_on_neutrals()
        self._evacuate_bomb_targets()

    def _bomb_top_producer(self) -> None:
        state = self.state
        if state.own_bombs_available != self.config.bomb_stock:
            return

        enemy_start = state.enemy_start
        if enemy_start is not None and enemy_start.enemy and enemy_start.production == self.config.max_production:
            source = state.closest_cell(enemy_start.cell_id, Owner.FRIENDLY)
            if source is not None:
                self.resolver.launch_bomb(source.cell_id, enemy_start.cell_id)
            return

        worthwhile = self.config.max_production
        tally = state.tally
        if state.round > self.FIRST_BOMB_RELAX_ROUND or tally.own_units + self.FIRST_BOMB_UNIT_GAP < tally.enemy_units:
            worthwhile -= 1
        if state.round > self.FIRST_BOMB_LAST_RESORT_ROUND:
            worthwhile = 1

        for cell in state.cells_owned_by(Owner.ENEMY):
            if cell.production == worthwhile:
                source = state.closest_cell(cell.cell_id, Owner.FRIENDLY)
                if source is not None:
                    self.resolver.launch_bomb(source.cell_id, cell.cell_id)
                break

    def _reinforce_contested_neutrals(self) -> None:
        state = self.state
        for cell in state.cells_owned_by(Owner.NEUTRAL):
            forecast = cell.forecast
            if forecast.total_friendly > 0 and forecast.total_enemy > 0 and not state.classifier.is_about_to_fall(cell):
                source = state.closest_cell(cell.cell_id, Owner.FRIENDLY)
                if source is not None:
                    self.resolver.neutral_attack(source.cell_id, cell.cell_id, 1)
                    self._debug(f"Additional neutral attack: {cell.cell_id}")

    def _attack_target(self) -> Optional[Cell]:
        state = self.state
        enemies = state.cells_owned_by(Owner.ENEMY)
        if not enemies:
            return None

        def attack_score(cell: Cell) -> int:
            return cell.production * self.ATTACK_PRODUCTION_WEIGHT - state.distance_to_closest(cell.cell_id, Owner.FRIENDLY)

        return max(enemies, key=attack_score)

    def _standard_attack(self) -> None:
        state = self.state
        target = self._attack_target()
        if target is None:
            return
        self._debug(f"Attack: {target.cell_id}")

        source = state.closest_cell(target.cell_id, Owner.FRIENDLY)
        if source is None:
            return

        self._bomb_alongside_attack(source, target)

        for cell in state.cells_owned_by(Owner.FRIENDLY):
            if cell.units == 0:
                continue
            hop = state.routing.first_hop(cell.cell_id, target.cell_id)
            if state.bombs.arrival_coincides(cell.cell_id, hop):
                self._debug(f"Prevented {cell.cell_id} to {hop}: arrival on bomb impact")
                continue
            self.resolver.standard_attack(cell.cell_id, hop, cell.units)

    def _bomb_alongside_attack(self, source: Cell, target: Cell) -> None:
        state = self.state
        if state.own_bombs_available <= 0:
            return

        tally = state.tally
        worthwhile = self.config.max_production
        if state.round > self.BOMB_RELAX_TARGET_ROUND or tally.own_units + self.BOMB_RELAX_UNIT_GAP < tally.enemy_units:
            worthwhile -= 1

        classifier = state.classifier
        if (
            state.round >= self.BOMB_EARLIEST_ROUND
            and target.production == worthwhile
            and not classifier.is_about_to_fall(target)
            and not state.bombs.overlaps_existing(source.cell_id, target.cell_id)
        ):
            self.resolver.launch_bomb(source.cell_id, target.cell_id)
            return

        if state.round < self.BOMB_ANY_TOP_PRODUCER_ROUND:
            return
        for cell in state.cells_owned_by(Owner.ENEMY):
            if cell.production != self.config.max_production:
                continue
            friendly = state.closest_cell(cell.cell_id, Owner.FRIENDLY)
            if friendly is None or classifier.is_about_to_fall(cell):
                continue
            if state.bombs.overlaps_existing(friendly.cell_id, cell.cell_id):
                continue
            self.resolver.launch_bomb(friendly.cell_id, cell.cell_id)
            # follow the blast with a single unit to take the emptied cell
            self.resolver.special_attack(friendly.cell_id, cell.cell_id, 1, in_rounds=1)
            break

    def _defensive_buffers(self) -> None:
        state = self.state
        for cell in state.cells_owned_by(Owner.FRIENDLY):
            enemy = state.closest_cell(cell.cell_id, Owner.ENEMY)
            if enemy is None:
                continue
            distance = self._distance(cell, enemy)
            produced = 0 if cell.production_disabled > 0 else cell.production
            needed = (
                enemy.units
                + enemy.production
                - distance * produced
                - int(cell.forecast.friendly[1])
                + int(enemy.forecast.enemy[1])
            )
            if needed > 0:
                self.resolver.save_for_defense(cell.cell_id, needed)

    def _defend_threatened_cells(self) -> None:
        state = self.state
        classifier = state.classifier
        tally = state.tally
        for cell in state.cells_owned_by(Owner.FRIENDLY):
            if cell.threat is ThreatStatus.BEING_CONQUERED:
                if cell.production >= 1 and tally.own_production > tally.enemy_production:
                    self._call_reinforcements(cell, classifier.units_to_save(cell))
                self.resolver.save_for_defense(cell.cell_id, cell.units)
            elif cell.threat is ThreatStatus.DEFEND_BY_INCOMING_UNITS:
                self.resolver.save_for_defense(cell.cell_id, cell.units)
            elif cell.threat is ThreatStatus.DEFEND_BY_SAVING_UNITS:
                required = classifier.units_to_save(cell)
                self._debug(f"Save Units: {cell.cell_id} {required}")
                self.resolver.save_for_defense(cell.cell_id, required)

    def _call_reinforcements(self, cell: Cell, required: int) -> None:
        state = self.state
        for neighbor in state.graph.neighbors(cell.cell_id):
            if required <= 0:
                break
            helper = state.cells[neighbor.cell_id]
            if helper.friendly and helper.threat is ThreatStatus.SAFE and helper.units > 0:
                self.resolver.defend_transfer(helper.cell_id, cell.cell_id, required)
                required -= helper.units

    def _expand_to_neutrals(self) -> None:
        state = self.state
        tally = state.tally
        behind_early = state.round < self.EXPANSION_EARLY_ROUND and tally.own_production < tally.enemy_production
        if not (behind_early or self._leading() or state.round > self.EXPANSION_LATE_ROUND):
            return

        def expansion_score(cell: Cell) -> float:
            distance = max(1, state.distance_to_closest(cell.cell_id, Owner.FRIENDLY))
            return cell.production / distance - cell.units

        for cell in sorted(state.cells_owned_by(Owner.NEUTRAL), key=expansion_score, reverse=True):
            distance = state.distance_to_closest(cell.cell_id, Owner.FRIENDLY)
            if cell.production == 0 or distance > self.EXPANSION_MAX_DISTANCE:
                continue
            if state.classifier.is_about_to_fall(cell):
                continue
            if distance > state.distance_to_closest(cell.cell_id, Owner.ENEMY):
                continue
            source = state.closest_cell(cell.cell_id, Owner.FRIENDLY)
            self.resolver.neutral_attack(source.cell_id, cell.cell_id, min(source.production, cell.units + 1))
            break

    def _leading(self) -> bool:
        tally = self.state.tally
        return (
            tally.own_production > tally.enemy_production + self.LEAD_PRODUCTION_GAP
            or tally.own_units > tally.enemy_units + self.LEAD_UNIT_GAP
        )

    def _upgrade_safe_cell(self) -> None:
        state = self.state
        if not self._leading():
            return

        def enemy_distance(cell: Cell) -> int:
            return state.distance_to_closest(cell.cell_id, Owner.ENEMY)

        for cell in sorted(state.cells_owned_by(Owner.FRIENDLY), key=enemy_distance, reverse=True):
            if cell.production >= self.config.max_production:
                continue
            if cell.production == 0 and cell.units < self.config.upgrade_cost:
                continue
            if cell.threat is not ThreatStatus.SAFE or cell.is_hit_by_bomb:
                continue
            payback = self.UPGRADE_PAYBACK_ROUNDS + (
                self.UPGRADE_PAYBACK_ROUNDS // cell.production if cell.production else self.config.horizon
            )
            if state.bombs.impact_in_less_than(cell.cell_id, payback):
                continue
            self.resolver.upgrade(cell.cell_id)
            self._debug(f"Upgrade: {cell.cell_id}")
            break

    def _intercept_on_neutrals(self) -> None:
        """Land just after an enemy troop takes a neutral cell, with enough to retake it."""
        state = self.state
        since = max(0, state.round - self.INTERCEPT_LOOKBACK + 1)
        for cell in state.cells_owned_by(Owner.NEUTRAL):
            forecast = cell.forecast
            if cell.production == 0 or cell.units == 0:
                continue
            if forecast.total_friendly != 0 or forecast.total_enemy == 0:
                continue

            source = state.closest_cell(cell.cell_id, Owner.FRIENDLY)
            if source is None or source.requests.current.special_attack is not None:
                continue

            landing = state.round + self._distance(source, cell) + 1
            for troop in state.history.troops_heading_to(cell.cell_id, since, owner=Owner.ENEMY):
                if troop.arrival != landing:
                    continue
                surplus = troop.units - cell.units
                if 0 < surplus <= source.units:
                    self.resolver.special_attack(source.cell_id, cell.cell_id, surplus)
                    self._debug(f"Intercepting: {cell.cell_id}")
                break

    def _evacuate_bomb_targets(self) -> None:
        state = self.state
        for cell in state.cells_owned_by(Owner.FRIENDLY):
            if cell.units > 0 and state.bombs.impact_in(cell.cell_id, 1):
                self.resolver.evacuate(cell.cell_id)
