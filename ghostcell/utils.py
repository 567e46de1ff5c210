import sys
import time


def log(message: str) -> None:
    """Write a diagnostic line to stderr, the referee's debug console."""
    print(message, file=sys.stderr)
    sys.stderr.flush()


class RoundTimer:
    """
    Measures the wall-clock time spent inside a round.

    Example:
        >>> timer = RoundTimer()
        >>> with timer:
        ...     decide()
        >>> timer.elapsed_ms
    """

    def __init__(self):
        self._started = None
        self.elapsed_ms = 0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = int((time.perf_counter() - self._started) * 1000)
