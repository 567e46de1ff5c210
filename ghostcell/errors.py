import sys


class EngineError(Exception):
    """Base class for errors raised by the engine."""
    pass


class ProtocolViolation(EngineError):
    """Malformed or unexpected referee input. No valid move can be computed after this."""
    pass


class AmbiguousImpact(EngineError):
    """Several bomb candidates were due on the same cell in the same round."""

    def __init__(self, cell_id: int, round_number: int, bomb_ids):
        self.cell_id = cell_id
        self.round_number = round_number
        self.bomb_ids = tuple(bomb_ids)
        super().__init__(
            f"cell {cell_id}: bombs {list(self.bomb_ids)} all due in round {round_number}"
        )


class UnreachablePath(EngineError):
    """No route exists between two cells under the routing cutoff."""

    def __init__(self, origin: int, target: int):
        self.origin = origin
        self.target = target
        super().__init__(f"no routed path from {origin} to {target}")


def _custom_excepthook(exc_type, exc_value, exc_traceback):
    """Print a clean one-line message for protocol violations."""
    if issubclass(exc_type, ProtocolViolation):
        print(f"Error: {exc_value}", file=sys.stderr)
    else:
        # For other exceptions, use default handler
        sys.__excepthook__(exc_type, exc_value, exc_traceback)


def install_excepthook():
    sys.excepthook = _custom_excepthook
