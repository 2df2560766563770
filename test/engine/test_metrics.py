import logging

import pytest
import numpy as np

from neural_qsir.engine.metrics import (
    TransitionPoint,
    effective_reproduction_number,
    transition_point,
    loss_trend,
    is_non_increasing,
)


def test_effective_reproduction_number():
    population = 1_000.0
    trajectory = np.array(
        [
            [1_000.0, 0.0, 0.0, 0.0],
            [500.0, 100.0, 50.0, 10.0],
        ]
    )
    quarantine = np.array([0.0, 0.15])
    re = effective_reproduction_number(
        trajectory, quarantine, beta=0.5, gamma=0.1, population=population
    )
    np.testing.assert_allclose(re, [5.0, 0.5 / 0.25 * 0.5])


def test_effective_reproduction_number_shape_mismatch():
    with pytest.raises(ValueError):
        effective_reproduction_number(
            np.ones((3, 4)), np.ones(2), beta=0.5, gamma=0.1, population=1.0
        )


def test_single_crossing():
    t = np.arange(6.0)
    re = np.array([2.0, 1.5, 1.0, 0.9, 0.5, 0.4])
    point = transition_point(t, re)
    assert point == TransitionPoint(index=3, time=3.0, multiple_crossings=False)
    # Monotone-crossing property.
    assert np.all(re[: point.index] >= 1.0)
    assert np.all(re[point.index :] < 1.0)


def test_never_below_one_is_undefined():
    t = np.arange(5.0)
    assert transition_point(t, np.array([3.0, 2.0, 1.5, 1.2, 1.0])) is None


def test_below_one_from_the_start():
    point = transition_point(np.arange(3.0), np.array([0.9, 0.8, 0.7]))
    assert point.index == 0
    assert point.multiple_crossings is False


def test_multiple_crossings_report_sustained_crossing(caplog):
    t = np.arange(8.0)
    re = np.array([1.5, 0.95, 1.05, 0.99, 1.01, 0.9, 0.8, 0.7])
    with caplog.at_level(logging.WARNING):
        point = transition_point(t, re)
    assert point.index == 5
    assert point.time == 5.0
    assert point.multiple_crossings is True
    assert np.all(re[point.index :] < 1.0)
    assert "crosses 1 several times" in caplog.text


def test_dip_that_recovers_is_undefined(caplog):
    with caplog.at_level(logging.WARNING):
        point = transition_point(np.arange(4.0), np.array([1.2, 0.9, 1.1, 1.3]))
    assert point is None
    assert "transition point undefined" in caplog.text


def test_transition_point_shape_mismatch():
    with pytest.raises(ValueError):
        transition_point(np.arange(3.0), np.ones(4))


def test_loss_trend():
    losses = [4.0, 2.0, 3.0, 1.0, 1.0, 0.0, 9.0]
    np.testing.assert_allclose(loss_trend(losses, 2), [3.0, 2.0, 0.5])
    assert loss_trend(losses, 10).size == 0
    with pytest.raises(ValueError):
        loss_trend(losses, 0)


def test_is_non_increasing():
    assert is_non_increasing(np.array([3.0, 2.0, 2.0, 0.5]))
    assert not is_non_increasing(np.array([3.0, 2.0, 2.5]))
    assert is_non_increasing(np.array([3.0, 2.0, 2.1]), rtol=0.1)
    assert is_non_increasing(np.array([]))
