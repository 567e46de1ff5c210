"""\
GHOST CELL BOT
==============

Plays one side of a factory-conquest match over the referee's stdin/stdout
protocol.

Each round:
- ingest the entity block into the game state (forecasts, bomb candidates,
  threat postures),
- let the strategist queue requests on the owned cells,
- resolve the queued requests into orders and print them as one line.

Set GHOSTCELL_DEBUG=1 for verbose traces on stderr and GHOSTCELL_CRASH_LOG
to a file path to keep tracebacks of rounds that failed.
"""

from __future__ import annotations

import random
import sys
import traceback
from typing import Callable, Optional

from ghostcell.config import EngineConfig
from ghostcell.errors import ProtocolViolation, install_excepthook
from ghostcell.helpers.protocol import ProtocolReader, SetupReport, format_turn
from ghostcell.resolver import CommandResolver
from ghostcell.state import GameState
from ghostcell.strategy import Strategist
from ghostcell.utils import RoundTimer, log


class GhostCellBot:

    def __init__(self, config: Optional[EngineConfig] = None, read_line: Callable[[], str] = input) -> None:
        self.config = config or EngineConfig.from_env()
        self.reader = ProtocolReader(read_line)
        self.timer = RoundTimer()

        self.setup: Optional[SetupReport] = None
        self.state: Optional[GameState] = None
        self.resolver: Optional[CommandResolver] = None
        self.strategist: Optional[Strategist] = None

    def read_init(self) -> None:
        self.setup = self.reader.read_setup()

    def read_turn(self) -> None:
        entities = self.reader.read_entities()
        if self.state is None:
            if self.setup is None:
                raise ProtocolViolation("entity block received before the setup block")
            self.state = GameState.from_setup(self.setup, entities, self.config)
            self.resolver = CommandResolver(self.state, random.Random(self.config.seed))
            self.strategist = Strategist(self.state, self.resolver)
        else:
            self.state.apply_round(entities)

    def get_action(self) -> str:
        with self.timer:
            self.strategist.plan()
            orders = self.resolver.emit()
        return format_turn(orders, self.status_message())

    def status_message(self) -> str:
        tally = self.state.tally
        return (
            f"{self.timer.elapsed_ms}ms - {tally.own_units}/{tally.enemy_units}"
            f" - {tally.own_production}/{tally.enemy_production}"
        )

    def abandon_round(self) -> None:
        """Drop this round's requests so a failed round does not leak into the next."""
        if self.state is None:
            return
        for cell in self.state.cells:
            cell.requests.rotate()

    def write_crash_log(self) -> None:
        if not self.config.crash_log:
            return
        round_number = self.state.round if self.state is not None else "?"
        with open(self.config.crash_log, "a", encoding="utf-8") as f:
            f.write("\n" + "=" * 80 + "\n")
            f.write(f"round={round_number}\n")
            f.write(traceback.format_exc())


def main() -> None:
    install_excepthook()
    bot = GhostCellBot()
    bot.read_init()
    while True:
        try:
            bot.read_turn()
            print(bot.get_action())
            sys.stdout.flush()
        except EOFError:
            break
        except ProtocolViolation:
            raise
        except Exception as e:
            log(f"ROUND ERROR: {type(e).__name__}: {e}")
            try:
                bot.write_crash_log()
            except OSError as log_error:
                log(f"crash log not written: {log_error}")
            bot.abandon_round()
            print(format_turn([], "round skipped"))
            sys.stdout.flush()


if __name__ == "__main__":
    main()
