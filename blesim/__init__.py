"""BLE Trilateration Simulator core: RSSI synthesis, distance inversion and trilateration."""

from .rssi_models import synthesize_rssi, estimate_distance
from .trilateration import estimate_position, solve_position
