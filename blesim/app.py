"""
BLE Trilateration Simulator - Main Application Module

This module exposes the simulator core to a host application through a small
FastAPI service. The host owns the scene (beacons, walls, device) and posts a
snapshot of it; the service answers with synthesized readings and the
estimated device position.

The application handles:
- RSSI synthesis for a single beacon-device pair
- RSSI to distance conversion
- Trilateration from explicit ranges
- Full scene evaluation with detection filtering and error readout
- Default scene layouts and wall material lookup

Key Components:
- FastAPI app with REST endpoints
- Settings loaded once at startup from BLESIM_SETTINGS

Author: BLE Simulator Team
Version: 1.0.0
"""

from fastapi import FastAPI, HTTPException, Query
from .models import RssiRequest, DistanceRequest, PositionRequest, SceneRequest
from .config import SimulationConfig, load_settings
from .rssi_models import synthesize_rssi, estimate_distance
from .trilateration import solve_position
from .analyze_data import evaluate_scene, signal_quality
from .scene import default_beacons, default_walls, WALL_MATERIALS, PIXELS_PER_METER
from typing import Optional
import math

import logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

#fastapi app
app = FastAPI(title="BLE Trilateration Simulator")
settings: SimulationConfig = load_settings()


def _config(config: Optional[SimulationConfig]) -> SimulationConfig:
    return config if config is not None else settings


@app.post("/rssi")
async def rssi_endpoint(request: RssiRequest):
    """
    Synthesize the RSSI of one transmitter as seen by one receiver.

    Args:
        request (RssiRequest): Distance in meters, endpoints, walls and
            optional config override

    Returns:
        dict: {"rssi": float} in dBm

    Example:
        POST /rssi
        {
            "distance_m": 5.0,
            "transmitter": {"x": 0, "y": 0},
            "receiver": {"x": 200, "y": 0},
            "walls": []
        }

        Response: {"rssi": -77.87...}
    """
    config = _config(request.config)
    rssi = synthesize_rssi(request.distance_m, request.transmitter, request.receiver, request.walls, config)
    return {"rssi": rssi}


@app.post("/distance")
async def distance_endpoint(request: DistanceRequest):
    """
    Convert an RSSI reading to an estimated distance in meters.

    Raises:
        HTTPException: 400 if the reading is too weak to invert
    """
    distance = estimate_distance(request.rssi, _config(request.config))
    if math.isinf(distance):
        raise HTTPException(status_code=400, detail="Distance out of range for these parameters")
    return {"distance": distance}


@app.post("/position")
async def position_endpoint(request: PositionRequest):
    """
    Trilaterate a position from explicit ranges.

    Returns:
        dict: Solver status, position (null with fewer than three ranges)
        and iteration count

    Example Response:
        {"status": "converged", "position": {"x": 50.0, "y": 28.9}, "iterations": 1}
    """
    result = solve_position(request.ranges)
    return result.model_dump(mode="json")


@app.post("/evaluate")
async def evaluate_endpoint(request: SceneRequest):
    """
    Evaluate a full scene snapshot.

    Synthesizes one reading per beacon, filters weak readings and
    trilaterates the device. The response also carries a signal quality
    bucket per beacon for display.

    Returns:
        dict: SceneEvaluation fields plus "signal_quality" {beacon_id: bucket}
    """
    config = _config(request.config)
    evaluation = evaluate_scene(request.beacons, request.device, request.walls, config)
    body = evaluation.model_dump(mode="json")
    body["signal_quality"] = {m.beacon_id: signal_quality(m.rssi) for m in evaluation.measurements}
    return body


@app.get("/scene/default")
async def default_scene(radios: int = Query(default=4)):
    """
    Default beacon layout and wall set.

    Raises:
        HTTPException: 400 if the beacon count is outside 3..6
    """
    try:
        beacons = default_beacons(radios)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info(f"Default scene requested with {radios} beacons")
    return {
        "beacons": [b.model_dump() for b in beacons],
        "walls": [w.model_dump() for w in default_walls()],
        "pixels_per_meter": PIXELS_PER_METER,
    }


@app.get("/materials")
async def materials():
    """Wall materials and their attenuation in dB."""
    return {"materials": WALL_MATERIALS}


@app.get("/settings")
async def send_settings():
    """Active simulation settings."""
    return settings.model_dump()
