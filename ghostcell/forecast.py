"""Per-cell sliding forecast of incoming friendly and enemy units."""
from __future__ import annotations

import numpy as np


class ForecastWindow:
    """
    Incoming units indexed by rounds from now.

    Slot 0 holds groups with no remaining delay. ``advance()`` must run once
    per round before that round's ``add_incoming`` calls, because observed
    delays are only meaningful after the shift.
    """

    def __init__(self, horizon: int = 21):
        if horizon < 2:
            raise ValueError("forecast horizon must cover at least two rounds")
        self.friendly = np.zeros(horizon, dtype=np.int64)
        self.enemy = np.zeros(horizon, dtype=np.int64)
        self.total_friendly = 0
        self.total_enemy = 0

    @property
    def horizon(self) -> int:
        return len(self.friendly)

    @property
    def net(self) -> np.ndarray:
        """Signed incoming units per slot, friendly positive."""
        return self.friendly - self.enemy

    def advance(self) -> None:
        self.total_friendly -= int(self.friendly[0])
        self.total_enemy -= int(self.enemy[0])
        self.friendly[:-1] = self.friendly[1:]
        self.enemy[:-1] = self.enemy[1:]
        self.friendly[-1] = 0
        self.enemy[-1] = 0

    def add_incoming(self, friendly: bool, amount: int, delay: int) -> bool:
        """
        Record a group arriving in ``delay`` rounds.

        Returns:
            bool: False when the delay lies beyond the horizon; the group is
            not recorded and stays invisible until observed inside the window.
        """
        if delay < 0:
            raise ValueError(f"negative arrival delay {delay}")
        if amount < 0:
            raise ValueError(f"negative unit amount {amount}")
        if delay >= self.horizon:
            return False

        if friendly:
            self.friendly[delay] += amount
            self.total_friendly += amount
        else:
            self.enemy[delay] += amount
            self.total_enemy += amount
        return True

    def is_empty(self) -> bool:
        return (
            self.total_friendly == 0
            and self.total_enemy == 0
            and not self.friendly.any()
            and not self.enemy.any()
        )

    def __repr__(self):
        return f"ForecastWindow(friendly={self.friendly.tolist()}, enemy={self.enemy.tolist()})"
