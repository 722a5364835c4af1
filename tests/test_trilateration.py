import math

import pytest

from blesim.models import Point, Range, TrilaterationStatus
from blesim.trilateration import estimate_position, solve_position, initial_guess


def _ranges(beacons, distances):
    return [
        Range(beacon_position=Point(x=x, y=y), estimated_distance=d)
        for (x, y), d in zip(beacons, distances)
    ]


EQUILATERAL = [(0.0, 0.0), (100.0, 0.0), (50.0, 86.6)]


@pytest.mark.parametrize("count", [0, 1, 2])
def test_fewer_than_three_ranges_gives_no_estimate(count):
    ranges = _ranges(EQUILATERAL[:count], [10.0] * count)
    assert estimate_position(ranges) is None
    result = solve_position(ranges)
    assert result.status == TrilaterationStatus.INSUFFICIENT_MEASUREMENTS
    assert not result.has_estimate


def test_equilateral_converges_to_centroid():
    result = solve_position(_ranges(EQUILATERAL, [57.7] * 3))
    assert result.status == TrilaterationStatus.CONVERGED
    assert result.position.x == pytest.approx(50.0, abs=0.1)
    assert result.position.y == pytest.approx(28.9, abs=0.1)


def test_initial_guess_weights_closer_beacons():
    guess = initial_guess(_ranges([(0.0, 0.0), (100.0, 0.0), (50.0, 100.0)], [10.0, 90.0, 90.0]))
    assert guess.x < 50.0
    equal = initial_guess(_ranges(EQUILATERAL, [57.7] * 3))
    assert equal.x == pytest.approx(50.0)
    assert equal.y == pytest.approx(86.6 / 3)


def test_initial_guess_with_zero_distance_stays_finite():
    guess = initial_guess(_ranges(EQUILATERAL, [0.0, 50.0, 50.0]))
    assert math.isfinite(guess.x) and math.isfinite(guess.y)
    assert guess.x == pytest.approx(0.0, abs=1e-3)


def test_overdetermined_exact_ranges():
    beacons = [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0), (50.0, 120.0)]
    true = (30.0, 60.0)
    distances = [math.hypot(true[0] - x, true[1] - y) for x, y in beacons]
    result = solve_position(_ranges(beacons, distances))
    assert result.status == TrilaterationStatus.CONVERGED
    assert result.position.x == pytest.approx(30.0, abs=0.05)
    assert result.position.y == pytest.approx(60.0, abs=0.05)
    assert 0 < result.iterations <= 50


def test_noisy_ranges_give_nearby_estimate():
    beacons = [(50.0, 50.0), (1150.0, 50.0), (1150.0, 850.0), (50.0, 850.0)]
    true = (650.0, 500.0)
    distances = [math.hypot(true[0] - x, true[1] - y) * f for (x, y), f in zip(beacons, [1.05, 0.97, 1.02, 0.99])]
    position = estimate_position(_ranges(beacons, distances))
    assert math.hypot(position.x - true[0], position.y - true[1]) < 80.0


def test_colinear_beacons_stop_as_singular():
    result = solve_position(_ranges([(0.0, 0.0), (10.0, 0.0), (20.0, 0.0)], [5.0, 5.0, 15.0]))
    assert result.status == TrilaterationStatus.SINGULAR
    assert result.position is not None
    assert result.position.y == 0.0
    assert result.iterations == 0


def test_coincident_beacons_are_underdetermined():
    result = solve_position(_ranges([(5.0, 5.0)] * 3, [1.0, 2.0, 3.0]))
    assert result.status == TrilaterationStatus.UNDERDETERMINED
    assert result.position.x == pytest.approx(5.0)
    assert result.position.y == pytest.approx(5.0)


def test_iteration_budget_exhausted():
    ranges = _ranges(EQUILATERAL, [57.7] * 3)
    result = solve_position(ranges, max_iterations=0)
    assert result.status == TrilaterationStatus.MAX_ITERATIONS
    assert result.position == initial_guess(ranges)


def test_guess_on_a_beacon_skips_that_row():
    # Zero range to the center beacon pins the guess onto it
    beacons = [(0.0, 0.0), (100.0, 0.0), (-100.0, 0.0), (0.0, 100.0), (0.0, -100.0)]
    ranges = _ranges(beacons, [0.0, 100.0, 100.0, 100.0, 100.0])
    guess = initial_guess(ranges)
    assert guess.x == pytest.approx(0.0, abs=1e-9)
    assert guess.y == pytest.approx(0.0, abs=1e-9)
    result = solve_position(ranges)
    assert result.status == TrilaterationStatus.CONVERGED
    assert result.iterations == 1
    assert result.position.x == pytest.approx(0.0, abs=1e-6)
    assert result.position.y == pytest.approx(0.0, abs=1e-6)
