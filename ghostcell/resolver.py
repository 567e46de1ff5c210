"""
Turns the requests queued on each owned cell into this round's orders.

Requests are resolved per cell against one unit budget, the cell's stationary
units at the start of the round, in this order:

    bombs (bomb stock only) > special attack > save for special >
    defensive transfer > save for defence > upgrade > neutral attacks >
    standard attack > evacuation of whatever is left

Every category takes the smaller of its request and the remaining budget;
resolution stops once the budget is spent.
"""
from __future__ import annotations

import random
from typing import List, Optional, Tuple

from ghostcell.cell import Cell, Owner
from ghostcell.requests import RoundRequests, SaveUnits, SendBomb, SendUnits, UpgradeCell
from ghostcell.state import GameState
from ghostcell.utils import log


# owner preference for evacuations, and whether the sender must outnumber the defenders
EVACUATION_PREFERENCE = (
    (Owner.FRIENDLY, False),
    (Owner.NEUTRAL, True),
    (Owner.ENEMY, True),
)


class CommandResolver:

    def __init__(self, state: GameState, rng: Optional[random.Random] = None):
        self.state = state
        self.rng = rng or random.Random(state.config.seed)

    def _slot(self, cell_id: int, in_rounds: int) -> RoundRequests:
        return self.state.cells[cell_id].requests.slot(in_rounds)

    # --- Requests ---

    def standard_attack(self, origin: int, target: int, units: int, in_rounds: int = 0) -> None:
        self._slot(origin, in_rounds).standard_attack = SendUnits(origin, target, units)

    def neutral_attack(self, origin: int, target: int, units: int, in_rounds: int = 0) -> None:
        self._slot(origin, in_rounds).neutral_attacks.append(SendUnits(origin, target, units))

    def special_attack(self, origin: int, target: int, units: int, in_rounds: int = 0) -> None:
        self._slot(origin, in_rounds).special_attack = SendUnits(origin, target, units)

    def defend_transfer(self, origin: int, target: int, units: int, in_rounds: int = 0) -> None:
        self._slot(origin, in_rounds).defend_transfer = SendUnits(origin, target, units)

    def save_for_defense(self, cell_id: int, units: int, in_rounds: int = 0) -> None:
        self._slot(cell_id, in_rounds).save_for_defense = SaveUnits(cell_id, units)

    def save_for_special(self, cell_id: int, units: int, in_rounds: int = 0) -> None:
        self._slot(cell_id, in_rounds).save_for_special = SaveUnits(cell_id, units)

    def upgrade(self, cell_id: int, in_rounds: int = 0) -> None:
        self._slot(cell_id, in_rounds).upgrade = UpgradeCell(cell_id)

    def launch_bomb(self, origin: int, target: int, in_rounds: int = 0) -> None:
        self._slot(origin, in_rounds).bomb_launches.append(SendBomb(origin, target))

    def evacuate(self, cell_id: int, in_rounds: int = 0) -> None:
        self._slot(cell_id, in_rounds).evacuate = True

    # --- Resolution ---

    def emit(self) -> List[str]:
        """Resolve slot 0 of every owned cell in id order, then rotate every ring."""
        orders: List[str] = []
        bombs_left = self.state.own_bombs_available
        for cell in self.state.cells:
            if cell.friendly:
                cell_orders, bombs_left = self.resolve(cell, cell.requests.current, bombs_left)
                orders.extend(cell_orders)
        for cell in self.state.cells:
            cell.requests.rotate()
        return orders

    def resolve(self, cell: Cell, requests: RoundRequests, bombs_left: int) -> Tuple[List[str], int]:
        """
        Orders for one cell's requests.

        Returns:
            tuple: The orders, and the bomb stock left after this cell's launches.
        """
        orders: List[str] = []

        for bomb in requests.bomb_launches:
            if bomb.origin == bomb.target:
                continue
            if bombs_left <= 0:
                if self.state.config.debug:
                    log(f"No bomb left for {bomb.origin} -> {bomb.target}")
                continue
            orders.append(bomb.order())
            bombs_left -= 1

        stages = (
            self._special_attack,
            self._save_for_special,
            self._defend_transfer,
            self._save_for_defense,
            self._upgrade,
            self._neutral_attacks,
            self._standard_attack,
        )
        remaining = cell.units
        for stage in stages:
            if remaining <= 0:
                break
            remaining = stage(cell, requests, remaining, orders)

        if requests.evacuate and remaining > 0:
            if requests.standard_attack is not None:
                target = requests.standard_attack.target
            else:
                target = self.evacuation_target(cell)
            if target is not None and target != cell.cell_id:
                orders.append(f"MOVE {cell.cell_id} {target} {remaining}")

        return orders, bombs_left

    @staticmethod
    def _send(request: Optional[SendUnits], remaining: int, orders: List[str]) -> int:
        if request is None or request.origin == request.target:
            return remaining
        units = min(request.units, remaining)
        if units <= 0:
            return remaining
        orders.append(request.order(units))
        return remaining - units

    @staticmethod
    def _save(request: Optional[SaveUnits], remaining: int) -> int:
        if request is None:
            return remaining
        return remaining - min(max(request.units, 0), remaining)

    def _special_attack(self, cell, requests, remaining, orders):
        return self._send(requests.special_attack, remaining, orders)

    def _save_for_special(self, cell, requests, remaining, orders):
        if requests.evacuate:
            return remaining
        return self._save(requests.save_for_special, remaining)

    def _defend_transfer(self, cell, requests, remaining, orders):
        return self._send(requests.defend_transfer, remaining, orders)

    def _save_for_defense(self, cell, requests, remaining, orders):
        if requests.evacuate:
            return remaining
        return self._save(requests.save_for_defense, remaining)

    def _upgrade(self, cell, requests, remaining, orders):
        config = self.state.config
        if requests.upgrade is None or requests.evacuate:
            return remaining
        if remaining < config.upgrade_cost or cell.production >= config.max_production:
            return remaining
        orders.append(requests.upgrade.order())
        return remaining - config.upgrade_cost

    def _neutral_attacks(self, cell, requests, remaining, orders):
        for request in requests.neutral_attacks:
            remaining = self._send(request, remaining, orders)
            if remaining <= 0:
                break
        return remaining

    def _standard_attack(self, cell, requests, remaining, orders):
        return self._send(requests.standard_attack, remaining, orders)

    def evacuation_target(self, cell: Cell) -> Optional[int]:
        """
        Where to send units fleeing ``cell``: the nearest friendly cell, then a
        neutral or enemy cell the units outnumber, none of them due a bomb when
        the units land; otherwise any neighbour at random.
        """
        state = self.state
        neighbors = state.graph.neighbors(cell.cell_id)
        if not neighbors:
            return None

        for owner, must_outnumber in EVACUATION_PREFERENCE:
            for neighbor in neighbors:
                other = state.cells[neighbor.cell_id]
                if other.owner != owner:
                    continue
                if must_outnumber and cell.units <= other.units:
                    continue
                if state.bombs.arrival_coincides(cell.cell_id, other.cell_id):
                    continue
                return other.cell_id

        return self.rng.choice(neighbors).cell_id
