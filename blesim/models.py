"""
BLE Trilateration Simulator - Data Models

This module defines the Pydantic data models shared by the geometry helpers,
the propagation model, the trilateration solver and the HTTP layer.

The models provide type-safe data structures for:
- Points, wall segments, beacons and the mobile device of a floor plan
- Per-beacon measurements derived during one evaluation cycle
- Tagged trilateration results

All scene models are frozen. Core functions treat them as caller-owned
snapshots and never keep references to them between calls.

Author: BLE Simulator Team
Version: 1.0.0
"""

from enum import Enum
from pydantic import BaseModel, model_validator
from typing import List, Optional
from .config import SimulationConfig


class Point(BaseModel):
    """
    Position in the shared 2D coordinate space.

    Coordinates are pixel-scaled; ``SimulationConfig.pixels_per_meter``
    converts them to physical meters.

    Attributes:
        x (float): Horizontal coordinate
        y (float): Vertical coordinate

    Example:
        ```python
        p = Point(x=600.0, y=450.0)
        ```
    """
    x: float
    y: float

    class Config:
        frozen = True


class WallSegment(BaseModel):
    """
    Finite wall segment with a signal-loss coefficient.

    Attributes:
        start (Point): First endpoint
        end (Point): Second endpoint, must differ from ``start``
        attenuation_db (float): Loss in dB for a signal crossing the wall
        id (Optional[str]): Caller-side identifier, unused by the core
        material (Optional[str]): Material name, unused by the core

    Raises:
        ValueError: If both endpoints are the same point. Intersection tests
            are undefined for degenerate segments.
    """
    start: Point
    end: Point
    attenuation_db: float
    id: Optional[str] = None
    material: Optional[str] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_not_degenerate(self):
        if self.start == self.end:
            raise ValueError("wall segment endpoints must differ")
        return self


class Beacon(BaseModel):
    """
    Stationary radio source.

    Attributes:
        id (str): Unique beacon identifier
        position (Point): Beacon location
        label (Optional[str]): Display label such as "R1"
    """
    id: str
    position: Point
    label: Optional[str] = None

    class Config:
        frozen = True


class Device(BaseModel):
    """Mobile target. Its true position is only used to synthesize RSSI."""
    position: Point

    class Config:
        frozen = True


class Intersection(BaseModel):
    """Crossing of a signal path with one wall segment."""
    point: Point
    segment: WallSegment

    class Config:
        frozen = True


class Measurement(BaseModel):
    """
    Snapshot of one beacon reading, recomputed every evaluation cycle.

    Attributes:
        beacon (Beacon): Beacon the reading belongs to
        true_distance (float): Geometric beacon-device distance in meters
        rssi (float): Synthesized signal strength in dBm
        estimated_distance (float): Distance recovered from ``rssi`` in meters

    Note:
        ``estimated_distance`` differs from ``true_distance`` whenever walls or
        noise are active. That gap is what the simulator is meant to show.
    """
    beacon: Beacon
    true_distance: float
    rssi: float
    estimated_distance: float

    @property
    def beacon_id(self) -> str:
        return self.beacon.id


class Range(BaseModel):
    """Solver input: beacon position and estimated distance in the same units."""
    beacon_position: Point
    estimated_distance: float


class TrilaterationStatus(str, Enum):
    """How the Gauss-Newton solver terminated."""
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    SINGULAR = "singular"
    UNDERDETERMINED = "underdetermined"
    INSUFFICIENT_MEASUREMENTS = "insufficient_measurements"


class TrilaterationResult(BaseModel):
    """
    Tagged solver result.

    Attributes:
        status (TrilaterationStatus): Termination reason
        position (Optional[Point]): Estimate, None only when fewer than three
            ranges were supplied
        iterations (int): Number of Gauss-Newton steps applied

    Note:
        ``SINGULAR`` and ``UNDERDETERMINED`` still carry a best-effort
        position, so callers can tell "no estimate" apart from a weak one.
    """
    status: TrilaterationStatus
    position: Optional[Point] = None
    iterations: int = 0

    @property
    def has_estimate(self) -> bool:
        return self.position is not None


class SceneEvaluation(BaseModel):
    """
    Output of one full evaluation cycle.

    Attributes:
        measurements (List[Measurement]): One entry per beacon, in beacon order
        active_measurements (List[Measurement]): Entries above the detection
            threshold, fed to the solver
        estimate (TrilaterationResult): Solver output
        error_m (Optional[float]): Distance between true and estimated device
            position in meters, None without an estimate
    """
    measurements: List[Measurement]
    active_measurements: List[Measurement]
    estimate: TrilaterationResult
    error_m: Optional[float] = None


class RssiRequest(BaseModel):
    """Body of POST /rssi. ``config`` falls back to the active settings."""
    distance_m: float
    transmitter: Point
    receiver: Point
    walls: List[WallSegment] = []
    config: Optional[SimulationConfig] = None


class DistanceRequest(BaseModel):
    """Body of POST /distance."""
    rssi: float
    config: Optional[SimulationConfig] = None


class PositionRequest(BaseModel):
    """Body of POST /position."""
    ranges: List[Range]


class SceneRequest(BaseModel):
    """
    Body of POST /evaluate.

    Example:
        ```json
        {
            "beacons": [{"id": "R1", "position": {"x": 50, "y": 50}}],
            "device": {"position": {"x": 650, "y": 500}},
            "walls": [],
            "config": {"enable_noise": false}
        }
        ```
    """
    beacons: List[Beacon]
    device: Device
    walls: List[WallSegment] = []
    config: Optional[SimulationConfig] = None
