"""Parsing helpers for the referee's setup and per-round entity blocks."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from ghostcell.cell import Owner
from ghostcell.errors import ProtocolViolation


Link = Tuple[int, int, int]

UNKNOWN = -1


@dataclass(frozen=True)
class SetupReport:
    cell_count: int
    links: List[Link]


@dataclass(frozen=True)
class FactoryReport:
    entity_id: int
    owner: Owner
    units: int
    production: int
    production_disabled: int


@dataclass(frozen=True)
class TroopReport:
    entity_id: int
    owner: Owner
    origin: int
    target: int
    units: int
    remaining: int


@dataclass(frozen=True)
class BombReport:
    entity_id: int
    owner: Owner
    origin: int
    target: Optional[int]
    remaining: Optional[int]


EntityReport = Union[FactoryReport, TroopReport, BombReport]


def _int(token: str, what: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise ProtocolViolation(f"expected integer for {what}, got {token!r}") from None


def _owner(token: str) -> Owner:
    value = _int(token, "owner")
    try:
        return Owner(value)
    except ValueError:
        raise ProtocolViolation(f"owner must be -1, 0 or 1, got {value}") from None


def _count(line: str, what: str) -> int:
    parts = line.split()
    if len(parts) != 1:
        raise ProtocolViolation(f"expected a single {what}, got {line!r}")
    value = _int(parts[0], what)
    if value < 0:
        raise ProtocolViolation(f"negative {what}: {value}")
    return value


def parse_setup(lines: Sequence[str]) -> SetupReport:
    if len(lines) < 2:
        raise ProtocolViolation("setup block missing cell or link count")

    cell_count = _count(lines[0], "cell count")
    if cell_count == 0:
        raise ProtocolViolation("match without cells")
    link_count = _count(lines[1], "link count")
    if len(lines) != 2 + link_count:
        raise ProtocolViolation(f"expected {link_count} links, got {len(lines) - 2}")

    links: List[Link] = []
    for raw in lines[2:]:
        parts = raw.split()
        if len(parts) != 3:
            raise ProtocolViolation(f"malformed link {raw!r}")
        a = _int(parts[0], "link cell")
        b = _int(parts[1], "link cell")
        distance = _int(parts[2], "link distance")
        if not (0 <= a < cell_count and 0 <= b < cell_count) or a == b:
            raise ProtocolViolation(f"link {raw!r} references invalid cells")
        if distance <= 0:
            raise ProtocolViolation(f"link {raw!r} has non-positive distance")
        links.append((a, b, distance))

    return SetupReport(cell_count=cell_count, links=links)


def parse_entity(line: str) -> EntityReport:
    parts = line.split()
    if len(parts) != 7:
        raise ProtocolViolation(f"entity record needs 7 fields: {line!r}")

    entity_id = _int(parts[0], "entity id")
    kind = parts[1]
    owner = _owner(parts[2])
    a, b, c, d = (_int(token, f"{kind} argument") for token in parts[3:])

    if kind == "FACTORY":
        return FactoryReport(entity_id, owner, units=a, production=b, production_disabled=c)

    if owner == Owner.NEUTRAL:
        raise ProtocolViolation(f"neutral {kind} in {line!r}")

    if kind == "TROOP":
        if d < 0:
            raise ProtocolViolation(f"troop with negative remaining rounds: {line!r}")
        return TroopReport(entity_id, owner, origin=a, target=b, units=c, remaining=d)
    if kind == "BOMB":
        return BombReport(
            entity_id,
            owner,
            origin=a,
            target=None if b == UNKNOWN else b,
            remaining=None if c == UNKNOWN else c,
        )
    raise ProtocolViolation(f"unknown entity type {kind!r}")


def parse_entities(lines: Sequence[str]) -> List[EntityReport]:
    if not lines:
        raise ProtocolViolation("entity block missing its count")
    count = _count(lines[0], "entity count")
    if len(lines) != 1 + count:
        raise ProtocolViolation(f"expected {count} entities, got {len(lines) - 1}")
    return [parse_entity(line) for line in lines[1:]]


def format_turn(orders: Iterable[str], message: str = "") -> str:
    """One output line: the orders, then a MSG diagnostic."""
    parts = [order for order in orders if order]
    parts.append(f"MSG {message}".rstrip())
    return ";".join(parts)


class ProtocolReader:
    """Collects raw referee lines and hands them to the parsers above."""

    def __init__(self, read_line: Callable[[], str] = input):
        self._read_line = read_line

    def read_setup(self) -> SetupReport:
        lines: List[str] = [self._read_line(), self._read_line()]
        link_count = _count(lines[1], "link count")
        for _ in range(link_count):
            lines.append(self._read_line())
        return parse_setup(lines)

    def read_entities(self) -> List[EntityReport]:
        lines: List[str] = [self._read_line()]
        count = _count(lines[0], "entity count")
        for _ in range(count):
            lines.append(self._read_line())
        return parse_entities(lines)
