"""
Collision geometry for the Squadron tactical simulator.

This module implements the shape tests used during resolution:
- Oriented rectangle hitboxes for ships
- Separating Axis Theorem (SAT) test between convex polygons
- Circular target zones and rectangular escape zones
- Swept segment distance for zone entry between ticks

Ships are modeled as squares of edge `size`, centred half a length behind
the nose point, rather than as their drawn silhouettes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .config import UNIT_COLLISION_RADIUS
from .physics import Vector2D, point_from_distance_and_angle


# =============================================================================
# ZONES
# =============================================================================

@dataclass(frozen=True)
class CircleZone:
    """
    Circular objective zone.

    Attributes:
        x, y: Centre in pixels.
        radius: Zone radius in pixels.
        id: Identifier (used to track visits in multi-zone objectives).
    """
    x: float
    y: float
    radius: float
    id: str = ""


@dataclass(frozen=True)
class RectZone:
    """
    Axis-aligned rectangular zone given by its centre and size.

    Attributes:
        x, y: Centre in pixels.
        width, height: Extent in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x - self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width / 2

    @property
    def top(self) -> float:
        return self.y - self.height / 2

    @property
    def bottom(self) -> float:
        return self.y + self.height / 2


def is_point_in_rectangle(point, rect: RectZone) -> bool:
    """True if a point (anything with .x/.y) lies inside or on a rectangle."""
    return rect.left <= point.x <= rect.right and rect.top <= point.y <= rect.bottom


def aabb_overlaps_zone(
    point,
    zone: RectZone,
    half_extent: float = UNIT_COLLISION_RADIUS
) -> bool:
    """
    Whether a unit's square footprint overlaps a rectangular zone.

    This is the one escape test used by every zone objective. The footprint
    is the square of side 2*half_extent centred on the point; touching edges
    do not count as overlap.
    """
    return (
        point.x + half_extent > zone.left
        and point.x - half_extent < zone.right
        and point.y + half_extent > zone.top
        and point.y - half_extent < zone.bottom
    )


def segment_circle_distance(start: Vector2D, end: Vector2D, centre: Vector2D) -> float:
    """
    Shortest distance from a circle centre to the segment start-end.

    Used to catch zone entry when a fast unit passes through a zone between
    two tick positions.
    """
    segment = end - start
    length_sq = segment.magnitude_squared
    if length_sq == 0:
        return start.distance_to(centre)
    t = max(0.0, min(1.0, (centre - start).dot(segment) / length_sq))
    closest = start + segment * t
    return closest.distance_to(centre)


# =============================================================================
# SHIP HITBOX
# =============================================================================

def ship_hitbox(center: Vector2D, angle: float, size: float) -> list[Vector2D]:
    """
    Oriented square hitbox for a ship.

    The nose midpoint sits size/2 ahead of the centre; the box is traced
    from there round the hull.

    Args:
        center: Ship centre.
        angle: Heading in radians.
        size: Edge length in pixels.

    Returns:
        Corners in order [front_left, front_right, back_right, back_left].
    """
    mid_front = point_from_distance_and_angle(center, size / 2, angle)
    front_right = point_from_distance_and_angle(mid_front, size / 2, angle + math.pi / 2)
    back_right = point_from_distance_and_angle(front_right, size, angle + math.pi)
    back_left = point_from_distance_and_angle(back_right, size, angle + 3 * math.pi / 2)
    front_left = point_from_distance_and_angle(back_left, size, angle)
    return [front_left, front_right, back_right, back_left]


def get_unit_polygon(unit) -> list[Vector2D]:
    """Hitbox for a unit at its current position and heading."""
    return ship_hitbox(Vector2D(unit.x, unit.y), unit.angle, unit.size)


# =============================================================================
# SAT COLLISION
# =============================================================================

@dataclass(frozen=True)
class Projection:
    """Extent of a polygon projected onto an axis."""
    min: float
    max: float

    def overlaps(self, other: Projection) -> bool:
        return self.max >= other.min and other.max >= self.min


class CollisionDetector:
    """
    Separating Axis Theorem tests between convex polygons.

    Two convex shapes collide iff their projections overlap on every edge
    normal of both shapes. Touching counts as a collision.
    """

    @staticmethod
    def polygon_rectangle_collision(
        polygon: Sequence[Vector2D],
        rectangle: Sequence[Vector2D]
    ) -> bool:
        """
        Test an asteroid polygon against a ship rectangle (or any two
        convex polygons). Symmetric in its arguments.
        """
        axes = CollisionDetector.get_axes(polygon) + CollisionDetector.get_axes(rectangle)
        for axis in axes:
            first = CollisionDetector.project_polygon(polygon, axis)
            second = CollisionDetector.project_polygon(rectangle, axis)
            if not first.overlaps(second):
                return False
        return True

    @staticmethod
    def get_axes(polygon: Sequence[Vector2D]) -> list[Vector2D]:
        """Unit normals of every edge; degenerate edges are skipped."""
        axes = []
        count = len(polygon)
        for i in range(count):
            edge = polygon[(i + 1) % count] - polygon[i]
            normal = edge.perpendicular()
            if normal.magnitude > 0:
                axes.append(normal.normalized())
        return axes

    @staticmethod
    def project_polygon(polygon: Sequence[Vector2D], axis: Vector2D) -> Projection:
        dots = [vertex.dot(axis) for vertex in polygon]
        return Projection(min(dots), max(dots))
