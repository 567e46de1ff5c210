"""Tests for referee line parsing and output formatting."""

import pytest

from ghostcell.cell import Owner
from ghostcell.errors import ProtocolViolation
from ghostcell.helpers.protocol import (
    BombReport,
    FactoryReport,
    ProtocolReader,
    TroopReport,
    format_turn,
    parse_entities,
    parse_entity,
    parse_setup,
)


def line_reader(lines):
    it = iter(lines)

    def read_line():
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None
    return read_line


def test_parse_setup():
    setup = parse_setup(["3", "2", "0 1 4", "1 2 6"])
    assert setup.cell_count == 3
    assert setup.links == [(0, 1, 4), (1, 2, 6)]


@pytest.mark.parametrize("lines", [
    ["3"],
    ["0", "0"],
    ["3", "2", "0 1 4"],
    ["3", "1", "0 3 4"],
    ["3", "1", "1 1 4"],
    ["3", "1", "0 1 0"],
    ["3", "1", "0 1"],
    ["x", "0"],
])
def test_parse_setup_violations(lines):
    with pytest.raises(ProtocolViolation):
        parse_setup(lines)


def test_parse_factory():
    assert parse_entity("4 FACTORY -1 12 3 5 0") == FactoryReport(4, Owner.ENEMY, 12, 3, 5)


def test_parse_troop():
    report = parse_entity("17 TROOP 1 0 2 8 3")
    assert report == TroopReport(17, Owner.FRIENDLY, origin=0, target=2, units=8, remaining=3)


def test_parse_bombs():
    own = parse_entity("20 BOMB 1 0 2 4 0")
    enemy = parse_entity("21 BOMB -1 3 -1 -1 0")

    assert own == BombReport(20, Owner.FRIENDLY, origin=0, target=2, remaining=4)
    assert enemy.target is None
    assert enemy.remaining is None


@pytest.mark.parametrize("line", [
    "1 FACTORY 0 1 2 3",
    "1 FACTORY 2 1 2 3 0",
    "1 TROOP 0 0 1 5 2",
    "1 BOMB 0 0 1 5 0",
    "1 TROOP 1 0 1 5 -1",
    "1 SHIP 1 0 1 5 0",
    "1 FACTORY 1 a 2 3 0",
])
def test_parse_entity_violations(line):
    with pytest.raises(ProtocolViolation):
        parse_entity(line)


def test_parse_entities_count_mismatch():
    with pytest.raises(ProtocolViolation):
        parse_entities(["2", "0 FACTORY 1 5 1 0 0"])


def test_format_turn():
    assert format_turn(["MOVE 0 1 5", "", "INC 2"], "12ms") == "MOVE 0 1 5;INC 2;MSG 12ms"
    assert format_turn([]) == "MSG"


def test_reader_consumes_exact_blocks():
    read_line = line_reader([
        "2", "1", "0 1 3",
        "2", "0 FACTORY 1 10 2 0 0", "1 FACTORY -1 10 2 0 0",
        "1", "0 FACTORY 1 12 2 0 0",
    ])
    reader = ProtocolReader(read_line)

    setup = reader.read_setup()
    assert setup.links == [(0, 1, 3)]
    assert len(reader.read_entities()) == 2
    assert len(reader.read_entities()) == 1
    with pytest.raises(EOFError):
        reader.read_entities()
