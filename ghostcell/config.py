"""Engine tunables and the switches read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str) -> bool:
    return bool(os.environ.get(name))


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


@dataclass(frozen=True)
class EngineConfig:
    """
    Game constants and runtime switches shared by every engine component.

    Attributes:
        horizon: Number of future rounds tracked by forecasts and request rings.
        neighbor_cutoff: Longest direct link treated as a real edge by the routing table.
        no_edge_distance: Sentinel distance for pairs without a usable edge.
        upgrade_cost: Units consumed by an INC order.
        max_production: Highest production a cell can reach.
        bomb_stock: Bombs available to each side at match start.
        bomb_disable_rounds: Value of the production-disabled counter right after an impact.
        bomb_overlap_tolerance: Rounds within which two impacts on a cell count as stacked.
        debug: Emit verbose traces on stderr.
        crash_log: Optional file receiving tracebacks of failed rounds.
        seed: Optional seed for the evacuation fallback's random pick.
    """

    horizon: int = 21
    neighbor_cutoff: int = 7
    no_edge_distance: int = 100
    upgrade_cost: int = 10
    max_production: int = 3
    bomb_stock: int = 2
    bomb_disable_rounds: int = 5
    bomb_overlap_tolerance: int = 5
    debug: bool = False
    crash_log: Optional[str] = None
    seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            debug=_env_flag("GHOSTCELL_DEBUG"),
            crash_log=os.environ.get("GHOSTCELL_CRASH_LOG") or None,
            seed=_env_int("GHOSTCELL_SEED"),
        )


DEFAULT_CONFIG = EngineConfig()
