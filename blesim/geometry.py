"""
BLE Trilateration Simulator - Geometry Utilities

Distance and segment intersection helpers used by the propagation model.

Author: BLE Simulator Team
Version: 1.0.0
"""

from .models import Point, WallSegment, Intersection
from typing import List, Optional, Sequence
import math


def distance(p1: Point, p2: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def intersect(p1: Point, p2: Point, wall: WallSegment) -> Optional[Intersection]:
    """
    Test whether the signal path p1 -> p2 crosses a wall segment.

    Solves the 2x2 system of the two parametric line equations
    ``p1 + t*(p2 - p1) = p3 + u*(p4 - p3)``. Only crossings strictly inside
    both segments count, so ``t`` and ``u`` must lie in the open interval
    (0, 1). Touching an endpoint is not a crossing.

    Args:
        p1 (Point): Signal start (transmitter)
        p2 (Point): Signal end (receiver)
        wall (WallSegment): Wall to test against

    Returns:
        Optional[Intersection]: Crossing point and wall, or None when the
        segments do not cross or are parallel/colinear

    Example:
        ```python
        wall = WallSegment(start=Point(x=5, y=-5), end=Point(x=5, y=5), attenuation_db=3)
        hit = intersect(Point(x=0, y=0), Point(x=10, y=0), wall)
        # hit.point == Point(x=5.0, y=0.0)
        ```
    """
    p3, p4 = wall.start, wall.end
    den = (p1.x - p2.x) * (p3.y - p4.y) - (p1.y - p2.y) * (p3.x - p4.x)
    # parallel or colinear: overlap is not a crossing
    if den == 0:
        return None
    t = ((p1.x - p3.x) * (p3.y - p4.y) - (p1.y - p3.y) * (p3.x - p4.x)) / den
    u = -((p1.x - p2.x) * (p1.y - p3.y) - (p1.y - p2.y) * (p1.x - p3.x)) / den
    if 0 < t < 1 and 0 < u < 1:
        point = Point(x=p1.x + t * (p2.x - p1.x), y=p1.y + t * (p2.y - p1.y))
        return Intersection(point=point, segment=wall)
    return None


def find_wall_intersections(p1: Point, p2: Point, walls: Sequence[WallSegment]) -> List[Intersection]:
    """
    Collect every wall crossed by the path p1 -> p2.

    Crossings are returned in the order the walls are supplied, not sorted by
    distance along the path. The cumulative wall effect depends on this order.
    """
    intersections = []
    for wall in walls:
        hit = intersect(p1, p2, wall)
        if hit is not None:
            intersections.append(hit)
    return intersections
