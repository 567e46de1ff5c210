"""
End-to-end tests: scripted referee input through the bot and its main loop.

Run with: pytest tests/test_bot.py -v -s
"""

import io
import re
import sys
from collections import defaultdict

import pytest

from ghostcell.bot import GhostCellBot, main
from ghostcell.config import EngineConfig
from ghostcell.errors import ProtocolViolation
from ghostcell.strategy import Strategist

SETUP = [
    "5", "10",
    "0 1 12", "0 2 3", "0 3 5", "0 4 6", "1 2 9",
    "1 3 7", "1 4 4", "2 3 4", "2 4 7", "3 4 3",
]

ROUNDS = [
    [
        "5",
        "0 FACTORY 1 30 2 0 0",
        "1 FACTORY -1 30 2 0 0",
        "2 FACTORY 0 2 2 0 0",
        "3 FACTORY 0 4 1 0 0",
        "4 FACTORY 0 1 3 0 0",
    ],
    [
        "8",
        "0 FACTORY 1 12 2 0 0",
        "1 FACTORY -1 25 2 0 0",
        "2 FACTORY 0 2 2 0 0",
        "3 FACTORY 0 4 1 0 0",
        "4 FACTORY 0 1 3 0 0",
        "10 TROOP 1 0 2 3 2",
        "11 TROOP -1 1 4 7 3",
        "12 BOMB -1 1 -1 -1 0",
    ],
    [
        "8",
        "0 FACTORY 1 14 2 0 0",
        "1 FACTORY -1 27 2 0 0",
        "2 FACTORY 0 2 2 0 0",
        "3 FACTORY 0 4 1 0 0",
        "4 FACTORY 0 1 3 0 0",
        "10 TROOP 1 0 2 3 1",
        "11 TROOP -1 1 4 7 2",
        "12 BOMB -1 1 -1 -1 0",
    ],
]

UNITS_BY_ROUND = [{0: 30}, {0: 12}, {0: 14}]

ORDER = re.compile(r"MOVE (\d+) (\d+) (\d+)|BOMB (\d+) (\d+)|INC (\d+)")


def scripted(lines):
    it = iter(lines)

    def read_line():
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None
    return read_line


def all_input():
    lines = list(SETUP)
    for block in ROUNDS:
        lines.extend(block)
    return lines


def check_turn(line, owned_units):
    parts = line.split(";")
    assert parts[-1].startswith("MSG")

    committed = defaultdict(int)
    for part in parts[:-1]:
        match = ORDER.fullmatch(part)
        assert match, f"unexpected order {part!r}"
        if match.group(1) is not None:
            origin, target, units = int(match.group(1)), int(match.group(2)), int(match.group(3))
            assert origin in owned_units
            assert origin != target
            assert units > 0
            committed[origin] += units
        elif match.group(6) is not None:
            committed[int(match.group(6))] += 10
        else:
            assert match.group(4) != match.group(5)

    for origin, units in committed.items():
        assert units <= owned_units[origin]


def test_bot_plays_scripted_rounds():
    bot = GhostCellBot(config=EngineConfig(seed=3), read_line=scripted(all_input()))
    bot.read_init()

    outputs = []
    for _ in ROUNDS:
        bot.read_turn()
        outputs.append(bot.get_action())

    for line, owned in zip(outputs, UNITS_BY_ROUND):
        check_turn(line, owned)
    assert bot.state.round == 2
    assert bot.state.enemy_bombs_available == 1

    with pytest.raises(EOFError):
        bot.read_turn()


def test_status_message_reports_tally():
    bot = GhostCellBot(config=EngineConfig(seed=3), read_line=scripted(all_input()))
    bot.read_init()
    bot.read_turn()

    line = bot.get_action()
    assert re.search(r"MSG \d+ms - 30/30 - 2/2$", line)


def run_main(monkeypatch, lines):
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n".join(lines) + "\n"))
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    main()


def test_main_answers_every_block(monkeypatch, capsys):
    monkeypatch.delenv("GHOSTCELL_DEBUG", raising=False)
    monkeypatch.delenv("GHOSTCELL_CRASH_LOG", raising=False)
    monkeypatch.setenv("GHOSTCELL_SEED", "1")

    run_main(monkeypatch, all_input())

    out = capsys.readouterr().out.splitlines()
    assert len(out) == len(ROUNDS)
    for line, owned in zip(out, UNITS_BY_ROUND):
        check_turn(line, owned)


def test_main_survives_failed_rounds(monkeypatch, capsys, tmp_path):
    crash_log = tmp_path / "crash.log"
    monkeypatch.setenv("GHOSTCELL_CRASH_LOG", str(crash_log))

    def broken_plan(self):
        raise RuntimeError("planner exploded")

    monkeypatch.setattr(Strategist, "plan", broken_plan)
    run_main(monkeypatch, all_input())

    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["MSG round skipped"] * len(ROUNDS)
    assert "ROUND ERROR: RuntimeError: planner exploded" in captured.err
    assert "planner exploded" in crash_log.read_text()


def test_main_stops_on_protocol_violation(monkeypatch):
    lines = list(SETUP) + ["1", "0 FACTORY 7 30 2 0 0"]
    with pytest.raises(ProtocolViolation):
        run_main(monkeypatch, lines)
