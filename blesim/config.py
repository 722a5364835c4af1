"""
BLE Trilateration Simulator - Configuration

Simulation parameters and settings-file loading. Defaults mirror the values
the simulator starts with: -59 dBm at 1 m, path loss exponent 2.7, walls with
angle and cumulative effects on, noise off.

Settings can be stored in a JSON file and selected with the
``BLESIM_SETTINGS`` environment variable.

Author: BLE Simulator Team
Version: 1.0.0
"""

from pydantic import BaseModel, Field
from pydantic.json_schema import SkipJsonSchema
from typing import Callable, Optional
import json
import os
import logging

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "BLESIM_SETTINGS"

# Uniform sample provider in [0, 1)
RandomSource = Callable[[], float]


class SimulationConfig(BaseModel):
    """
    Propagation and detection parameters for one evaluation.

    Attributes:
        tx_power_at_1m (float): Reference RSSI at 1 meter in dBm, -80 to -30
        path_loss_exponent (float): Log-distance exponent n, 2.0 to 4.0
        enable_wall_attenuation (bool): Subtract loss for crossed walls
        enable_angle_effect (bool): Scale wall loss by incidence angle
        enable_cumulative_effect (bool): Scale the i-th crossed wall by 1.1^i
        enable_noise (bool): Add zero-mean Gaussian noise
        noise_std_dev_db (float): Noise standard deviation in dB
        min_detection_rssi_dbm (float): Readings at or below this value are
            dropped before trilateration
        pixels_per_meter (float): Scale between scene coordinates and meters
        random_source (Optional[RandomSource]): Uniform sample provider used
            by the noise term. A shared numpy generator is used when None.

    Example:
        ```python
        import numpy as np
        rng = np.random.default_rng(7)
        config = SimulationConfig(enable_noise=True, random_source=rng.random)
        ```
    """
    tx_power_at_1m: float = Field(default=-59.0, ge=-80, le=-30)
    path_loss_exponent: float = Field(default=2.7, ge=2.0, le=4.0)
    enable_wall_attenuation: bool = True
    enable_angle_effect: bool = True
    enable_cumulative_effect: bool = True
    enable_noise: bool = False
    noise_std_dev_db: float = Field(default=5.0, ge=0)
    min_detection_rssi_dbm: float = -100.0
    pixels_per_meter: float = Field(default=40.0, gt=0)
    random_source: SkipJsonSchema[Optional[RandomSource]] = Field(default=None, exclude=True)

    class Config:
        frozen = True


def load_settings(path: Optional[str] = None) -> SimulationConfig:
    """
    Load simulation settings from a JSON file.

    Args:
        path (Optional[str]): Settings file. Falls back to the file named by
            ``BLESIM_SETTINGS``, then to built-in defaults.

    Returns:
        SimulationConfig: Parsed settings

    Raises:
        FileNotFoundError: If the selected file does not exist
        pydantic.ValidationError: If the file holds invalid values
    """
    path = path or os.environ.get(SETTINGS_ENV_VAR)
    if not path:
        return SimulationConfig()
    with open(path, "r") as f:
        data = json.load(f)
    logger.info(f"Loaded settings from {path}")
    return SimulationConfig(**data)
