import math

import pytest
from pydantic import ValidationError

from blesim.analyze_data import build_measurements, filter_detected, to_ranges, evaluate_scene, signal_quality
from blesim.config import SimulationConfig
from blesim.models import Beacon, Device, Measurement, Point, TrilaterationStatus
from blesim.scene import default_beacons, default_walls, make_wall

DEVICE = Device(position=Point(x=650, y=500))


def _measurement(beacon_id, rssi, estimated=2.5):
    beacon = Beacon(id=beacon_id, position=Point(x=0, y=0))
    return Measurement(beacon=beacon, true_distance=2.0, rssi=rssi, estimated_distance=estimated)


def test_free_space_measurements_match_truth():
    config = SimulationConfig(enable_wall_attenuation=False)
    beacons = default_beacons(4)
    measurements = build_measurements(beacons, DEVICE, [], config)
    assert [m.beacon_id for m in measurements] == ["R1", "R2", "R3", "R4"]
    # (50, 50) -> (650, 500) is 750 px
    assert measurements[0].true_distance == pytest.approx(750 / 40)
    for m in measurements:
        assert m.estimated_distance == pytest.approx(m.true_distance)


def test_walls_inflate_estimated_distance():
    config = SimulationConfig()
    measurements = build_measurements(default_beacons(4), DEVICE, default_walls(), config)
    # R1 at (50, 50) is behind the x=300 wall
    assert measurements[0].estimated_distance > measurements[0].true_distance


def test_filter_detected_is_strict():
    measurements = [_measurement("a", -80), _measurement("b", -100), _measurement("c", -101)]
    assert [m.beacon_id for m in filter_detected(measurements, -100)] == ["a"]


def test_to_ranges_scales_to_scene_units():
    ranges = to_ranges([_measurement("a", -70, estimated=2.5)], 40)
    assert ranges[0].estimated_distance == pytest.approx(100.0)
    assert ranges[0].beacon_position == Point(x=0, y=0)


def test_evaluate_scene_free_space():
    config = SimulationConfig(enable_wall_attenuation=False)
    evaluation = evaluate_scene(default_beacons(4), DEVICE, [], config)
    assert len(evaluation.active_measurements) == 4
    assert evaluation.estimate.status == TrilaterationStatus.CONVERGED
    assert evaluation.error_m < 0.05


def test_evaluate_scene_with_walls_still_estimates():
    config = SimulationConfig(min_detection_rssi_dbm=-120)
    evaluation = evaluate_scene(default_beacons(4), DEVICE, default_walls(), config)
    assert len(evaluation.active_measurements) == 4
    assert evaluation.estimate.position is not None
    assert evaluation.error_m is not None and evaluation.error_m > 0


def test_evaluate_scene_without_enough_detections():
    config = SimulationConfig(enable_wall_attenuation=False, min_detection_rssi_dbm=-60)
    evaluation = evaluate_scene(default_beacons(4), DEVICE, [], config)
    assert evaluation.active_measurements == []
    assert len(evaluation.measurements) == 4
    assert evaluation.estimate.status == TrilaterationStatus.INSUFFICIENT_MEASUREMENTS
    assert evaluation.error_m is None


def test_exponent_outside_model_range_is_rejected():
    with pytest.raises(ValidationError):
        SimulationConfig(path_loss_exponent=0.01)


def test_heavily_shadowed_beacons_keep_finite_estimates():
    metal = [make_wall(Point(x=x, y=0), Point(x=x, y=900), "metal") for x in (100, 200, 300, 400)]
    config = SimulationConfig(path_loss_exponent=2.0, tx_power_at_1m=-30, min_detection_rssi_dbm=-121)
    evaluation = evaluate_scene(default_beacons(4), DEVICE, metal, config)
    # R1 and R4 sit behind all four walls and bottom out at the sensor floor
    assert [m.rssi for m in evaluation.measurements if m.beacon_id in ("R1", "R4")] == [-120, -120]
    assert all(math.isfinite(m.estimated_distance) for m in evaluation.measurements)
    assert len(evaluation.active_measurements) == 4
    assert evaluation.estimate.position is not None
    assert math.isfinite(evaluation.error_m)


@pytest.mark.parametrize("rssi, quality", [(-60, "strong"), (-70, "fair"), (-85, "fair"), (-90, "weak"), (-110, "weak")])
def test_signal_quality(rssi, quality):
    assert signal_quality(rssi) == quality
