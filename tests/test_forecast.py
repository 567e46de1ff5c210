"""Tests for the per-cell incoming unit window."""

import numpy as np
import pytest

from ghostcell.forecast import ForecastWindow


def test_add_and_advance():
    window = ForecastWindow(21)
    assert window.add_incoming(True, 5, 3)
    assert window.add_incoming(False, 2, 1)

    assert window.friendly[3] == 5
    assert window.enemy[1] == 2
    assert window.total_friendly == 5
    assert window.total_enemy == 2

    window.advance()
    assert window.enemy[0] == 2
    assert window.friendly[2] == 5

    window.advance()
    assert window.total_enemy == 0
    assert window.friendly[1] == 5


def test_totals_match_slots_across_rounds():
    window = ForecastWindow(5)
    window.add_incoming(True, 3, 0)
    window.add_incoming(True, 4, 4)
    window.add_incoming(False, 6, 2)

    for _ in range(6):
        assert window.total_friendly == int(window.friendly.sum())
        assert window.total_enemy == int(window.enemy.sum())
        window.advance()

    assert window.is_empty()


def test_beyond_horizon_is_not_recorded():
    window = ForecastWindow(21)

    assert not window.add_incoming(False, 4, 21)
    assert window.total_enemy == 0
    assert window.is_empty()

    assert window.add_incoming(False, 4, 20)
    assert window.enemy[20] == 4


def test_net_is_friendly_minus_enemy():
    window = ForecastWindow(4)
    window.add_incoming(True, 5, 1)
    window.add_incoming(False, 7, 1)
    window.add_incoming(False, 1, 3)

    assert np.array_equal(window.net, np.array([0, -2, 0, -1]))


def test_invalid_arguments():
    window = ForecastWindow(21)
    with pytest.raises(ValueError):
        window.add_incoming(True, 1, -1)
    with pytest.raises(ValueError):
        window.add_incoming(True, -1, 2)
    with pytest.raises(ValueError):
        ForecastWindow(1)
