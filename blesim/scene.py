"""
BLE Trilateration Simulator - Scene Defaults

Wall materials, default beacon layouts and the default wall set of the
simulated floor, plus small helpers a host application uses when the user
draws walls or moves the device.

Author: BLE Simulator Team
Version: 1.0.0
"""

from .models import Point, WallSegment, Beacon
from .geometry import distance
from typing import Dict, List, Optional
import math

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 900
PIXELS_PER_METER = 40

MIN_BEACONS = 3
MAX_BEACONS = 6
# Strokes shorter than this (pixels) are not turned into walls
MIN_WALL_LENGTH = 10.0

# Attenuation in dB per material
WALL_MATERIALS: Dict[str, Dict[str, object]] = {
    "drywall": {"attenuation": 3.0, "name": "Drywall"},
    "concrete": {"attenuation": 10.0, "name": "Concrete"},
    "brick": {"attenuation": 8.0, "name": "Brick"},
    "glass": {"attenuation": 2.0, "name": "Glass"},
    "metal": {"attenuation": 20.0, "name": "Metal"},
    "door_wood": {"attenuation": 4.0, "name": "Wood Door"},
    "door_metal": {"attenuation": 12.0, "name": "Metal Door"},
}


def make_wall(
    start: Point,
    end: Point,
    material: str = "drywall",
    min_length: float = MIN_WALL_LENGTH,
    wall_id: Optional[str] = None
) -> Optional[WallSegment]:
    """
    Build a wall of a known material between two points.

    Args:
        start (Point): First endpoint
        end (Point): Second endpoint
        material (str): Key of WALL_MATERIALS (default: "drywall")
        min_length (float): Minimum stroke length in pixels
        wall_id (Optional[str]): Identifier stored on the wall

    Returns:
        Optional[WallSegment]: The wall, or None if the stroke is too short

    Raises:
        KeyError: If the material is unknown
    """
    props = WALL_MATERIALS[material]
    if distance(start, end) <= min_length:
        return None
    return WallSegment(
        start=start,
        end=end,
        attenuation_db=props["attenuation"],
        id=wall_id,
        material=material,
    )


def default_beacons(
    count: int = 4,
    width: float = CANVAS_WIDTH,
    height: float = CANVAS_HEIGHT,
    margin: float = 50
) -> List[Beacon]:
    """
    Default beacon layout for a floor of the given size.

    Three beacons form a triangle (top center, bottom corners), four sit in
    the corners, other counts are spread evenly on a circle starting at the
    top.

    Raises:
        ValueError: If count is outside 3..6
    """
    if not MIN_BEACONS <= count <= MAX_BEACONS:
        raise ValueError(f"beacon count must be between {MIN_BEACONS} and {MAX_BEACONS}, got {count}")
    if count == 3:
        positions = [
            (width / 2, margin),
            (margin, height - margin),
            (width - margin, height - margin),
        ]
    elif count == 4:
        positions = [
            (margin, margin),
            (width - margin, margin),
            (width - margin, height - margin),
            (margin, height - margin),
        ]
    else:
        center_x, center_y = width / 2, height / 2
        radius = min(width, height) / 2 - margin
        positions = []
        for i in range(count):
            angle = i * 2 * math.pi / count - math.pi / 2
            positions.append((center_x + radius * math.cos(angle), center_y + radius * math.sin(angle)))
    return [
        Beacon(id=f"R{i + 1}", label=f"R{i + 1}", position=Point(x=x, y=y))
        for i, (x, y) in enumerate(positions)
    ]


def default_walls() -> List[WallSegment]:
    """Two vertical concrete walls and a horizontal one between them."""
    segments = [
        ((300, 200), (300, 700)),
        ((900, 200), (900, 700)),
        ((300, 450), (600, 450)),
    ]
    return [
        make_wall(Point(x=sx, y=sy), Point(x=ex, y=ey), "concrete", wall_id=f"W{i + 1}")
        for i, ((sx, sy), (ex, ey)) in enumerate(segments)
    ]


def clamp_device(
    position: Point,
    radius: float = 10,
    width: float = CANVAS_WIDTH,
    height: float = CANVAS_HEIGHT
) -> Point:
    """Keep a device of the given radius inside the floor bounds."""
    x = min(max(position.x, radius), width - radius)
    y = min(max(position.y, radius), height - radius)
    return Point(x=x, y=y)
