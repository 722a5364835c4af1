"""
BLE Trilateration Simulator - Trilateration Solver

Nonlinear least-squares position estimation from beacon ranges using
Gauss-Newton iteration.

The solver accepts any number (>= 3) of noisy ranges. Each step linearizes
the range residuals around the current estimate and solves the 2x2 normal
equations in closed form:

    r_k   = ||pos - b_k|| - d_k
    J_k   = (pos - b_k) / ||pos - b_k||
    delta = -(J^T J)^-1 J^T r

Iteration stops on convergence (||delta|| < threshold), on a near-singular
normal matrix, when fewer than two usable rows remain, or after a fixed
number of steps. The result is tagged with the reason.

Author: BLE Simulator Team
Version: 1.0.0
"""

import numpy as np
from typing import Optional, Sequence
import logging

from .models import Point, Range, TrilaterationResult, TrilaterationStatus

logger = logging.getLogger(__name__)

MIN_RANGES = 3
MAX_ITERATIONS = 50
CONVERGENCE_THRESHOLD = 0.1
MIN_BEACON_DISTANCE = 1e-6
SINGULAR_DET = 1e-9


def initial_guess(ranges: Sequence[Range]) -> Point:
    """
    Inverse-distance weighted centroid of the beacon positions.

    Beacons with a shorter estimated distance pull the guess toward them.
    Distances are floored at a tiny positive value so a zero range cannot
    produce an infinite weight.
    """
    weights = np.array([1.0 / max(r.estimated_distance, MIN_BEACON_DISTANCE) for r in ranges])
    positions = np.array([[r.beacon_position.x, r.beacon_position.y] for r in ranges])
    guess = weights @ positions / weights.sum()
    return Point(x=float(guess[0]), y=float(guess[1]))


def solve_position(
    ranges: Sequence[Range],
    max_iterations: int = MAX_ITERATIONS,
    convergence_threshold: float = CONVERGENCE_THRESHOLD
) -> TrilaterationResult:
    """
    Estimate a 2D position from beacon ranges with Gauss-Newton iteration.

    Args:
        ranges (Sequence[Range]): Beacon positions with estimated distances,
            all in the same length unit
        max_iterations (int): Upper bound on refinement steps (default: 50)
        convergence_threshold (float): Step length below which the estimate
            is considered converged, in the ranges' unit (default: 0.1)

    Returns:
        TrilaterationResult: Tagged estimate. Only
        ``INSUFFICIENT_MEASUREMENTS`` comes without a position.

    Example:
        ```python
        ranges = [
            Range(beacon_position=Point(x=0, y=0), estimated_distance=57.7),
            Range(beacon_position=Point(x=100, y=0), estimated_distance=57.7),
            Range(beacon_position=Point(x=50, y=86.6), estimated_distance=57.7),
        ]
        result = solve_position(ranges)
        # result.position ~ Point(x=50.0, y=28.9)
        ```
    """
    if len(ranges) < MIN_RANGES:
        return TrilaterationResult(status=TrilaterationStatus.INSUFFICIENT_MEASUREMENTS)

    beacons = np.array([[r.beacon_position.x, r.beacon_position.y] for r in ranges])
    distances = np.array([r.estimated_distance for r in ranges])
    start = initial_guess(ranges)
    pos = np.array([start.x, start.y])

    for iteration in range(max_iterations):
        offsets = pos - beacons
        dists = np.hypot(offsets[:, 0], offsets[:, 1])
        usable = dists >= MIN_BEACON_DISTANCE
        if np.count_nonzero(usable) < 2:
            logger.debug(f"Fewer than 2 usable ranges at iteration {iteration}")
            return _result(TrilaterationStatus.UNDERDETERMINED, pos, iteration)

        J = offsets[usable] / dists[usable, None]
        r = dists[usable] - distances[usable]

        a = J[:, 0] @ J[:, 0]
        b = J[:, 0] @ J[:, 1]
        d = J[:, 1] @ J[:, 1]
        det = a * d - b * b
        if abs(det) < SINGULAR_DET:
            logger.debug(f"Near-singular normal equations at iteration {iteration} (det={det:.3e})")
            return _result(TrilaterationStatus.SINGULAR, pos, iteration)

        Jtr = J.T @ r
        JtJ_inv = np.array([[d, -b], [-b, a]]) / det
        delta = -(JtJ_inv @ Jtr)
        pos = pos + delta

        if np.hypot(delta[0], delta[1]) < convergence_threshold:
            logger.debug(f"Converged after {iteration + 1} iterations")
            return _result(TrilaterationStatus.CONVERGED, pos, iteration + 1)

    logger.debug(f"Stopped after {max_iterations} iterations without converging")
    return _result(TrilaterationStatus.MAX_ITERATIONS, pos, max_iterations)


def estimate_position(ranges: Sequence[Range]) -> Optional[Point]:
    """Position estimate, or None when fewer than three ranges are given."""
    return solve_position(ranges).position


def _result(status: TrilaterationStatus, pos: np.ndarray, iterations: int) -> TrilaterationResult:
    return TrilaterationResult(
        status=status,
        position=Point(x=float(pos[0]), y=float(pos[1])),
        iterations=iterations,
    )
