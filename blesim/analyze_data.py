from .models import Beacon, Device, WallSegment, Measurement, Range, SceneEvaluation
from .config import SimulationConfig
from .geometry import distance
from .rssi_models import synthesize_rssi, estimate_distance
from .trilateration import solve_position
from typing import List, Sequence
import logging

logger = logging.getLogger(__name__)


def build_measurements(
    beacons: Sequence[Beacon],
    device: Device,
    walls: Sequence[WallSegment],
    config: SimulationConfig
) -> List[Measurement]:
    """One measurement per beacon: true distance, synthesized RSSI and the distance recovered from it."""
    measurements = []
    for beacon in beacons:
        true_distance_m = distance(beacon.position, device.position) / config.pixels_per_meter
        rssi = synthesize_rssi(true_distance_m, beacon.position, device.position, walls, config)
        measurements.append(Measurement(
            beacon=beacon,
            true_distance=true_distance_m,
            rssi=rssi,
            estimated_distance=estimate_distance(rssi, config),
        ))
    return measurements


def filter_detected(measurements: Sequence[Measurement], min_detection_rssi_dbm: float) -> List[Measurement]:
    return [m for m in measurements if m.rssi > min_detection_rssi_dbm]


def to_ranges(measurements: Sequence[Measurement], pixels_per_meter: float) -> List[Range]:
    # solver works in scene units, estimated distances are in meters
    return [
        Range(beacon_position=m.beacon.position, estimated_distance=m.estimated_distance * pixels_per_meter)
        for m in measurements
    ]


def evaluate_scene(
    beacons: Sequence[Beacon],
    device: Device,
    walls: Sequence[WallSegment],
    config: SimulationConfig
) -> SceneEvaluation:
    """
    Run one full evaluation cycle.

    Synthesizes a reading for every beacon, drops readings at or below the
    detection threshold and trilaterates the device from the rest. The true
    device position is only used for RSSI synthesis and the error readout.

    Args:
        beacons (Sequence[Beacon]): Beacon snapshot
        device (Device): Device snapshot
        walls (Sequence[WallSegment]): Wall snapshot
        config (SimulationConfig): Model parameters

    Returns:
        SceneEvaluation: Measurements, active subset, solver result and
        position error in meters
    """
    measurements = build_measurements(beacons, device, walls, config)
    active = filter_detected(measurements, config.min_detection_rssi_dbm)
    estimate = solve_position(to_ranges(active, config.pixels_per_meter))
    error_m = None
    if estimate.position is not None:
        error_m = distance(device.position, estimate.position) / config.pixels_per_meter
    logger.debug(
        f"Evaluated {len(measurements)} beacons, {len(active)} detected, "
        f"status={estimate.status.value}, error={error_m}"
    )
    return SceneEvaluation(
        measurements=measurements,
        active_measurements=active,
        estimate=estimate,
        error_m=error_m,
    )


def signal_quality(rssi: float) -> str:
    """Bucket a reading as "strong" (> -70 dBm), "fair" (> -90 dBm) or "weak"."""
    if rssi > -70:
        return "strong"
    if rssi > -90:
        return "fair"
    return "weak"
