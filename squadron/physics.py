"""
Planar kinematics for the Squadron tactical simulator.

Implements the 2D math every other module builds on:
- Vector2D operations (screen coordinates: +x right, +y down)
- Heading vectors and point projection from a distance and angle
- Distance between anything with x and y

Angles are in radians, measured clockwise on screen from +x, which is what
cos/sin give when +y points down.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# =============================================================================
# VECTOR2D CLASS
# =============================================================================

@dataclass(frozen=True)
class Vector2D:
    """
    2D vector for positions, directions and polygon vertices.

    Immutable so that polygon point lists can be shared between state
    snapshots without copying.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2D) -> Vector2D:
        """Vector addition."""
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2D) -> Vector2D:
        """Vector subtraction."""
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2D:
        """Scalar multiplication."""
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vector2D:
        """Right scalar multiplication."""
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector2D:
        """Scalar division."""
        if scalar == 0:
            raise ValueError("Cannot divide vector by zero")
        return Vector2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector2D:
        """Negation."""
        return Vector2D(-self.x, -self.y)

    def __eq__(self, other: object) -> bool:
        """Equality check with tolerance."""
        if not isinstance(other, Vector2D):
            return False
        eps = 1e-10
        return abs(self.x - other.x) < eps and abs(self.y - other.y) < eps

    def __hash__(self) -> int:
        return hash((round(self.x, 9), round(self.y, 9)))

    def dot(self, other: Vector2D) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector2D) -> float:
        """Z component of the 3D cross product (signed parallelogram area)."""
        return self.x * other.y - self.y * other.x

    def perpendicular(self) -> Vector2D:
        """Vector rotated 90 degrees (edge normal for SAT)."""
        return Vector2D(-self.y, self.x)

    @property
    def magnitude(self) -> float:
        """Vector magnitude (length)."""
        return math.hypot(self.x, self.y)

    @property
    def magnitude_squared(self) -> float:
        """Squared magnitude (avoids sqrt for comparisons)."""
        return self.x**2 + self.y**2

    def normalized(self) -> Vector2D:
        """Return unit vector in same direction."""
        mag = self.magnitude
        if mag == 0:
            return Vector2D(0.0, 0.0)
        return self / mag

    def distance_to(self, other: Vector2D) -> float:
        """Distance to another point."""
        return (self - other).magnitude

    def to_tuple(self) -> tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, t: tuple[float, float]) -> Vector2D:
        """Create from tuple."""
        return cls(t[0], t[1])

    @classmethod
    def from_angle(cls, angle_rad: float, length: float = 1.0) -> Vector2D:
        """Heading vector for an angle."""
        return cls(math.cos(angle_rad) * length, math.sin(angle_rad) * length)

    @classmethod
    def zero(cls) -> Vector2D:
        """Zero vector."""
        return cls(0.0, 0.0)

    def __repr__(self) -> str:
        return f"Vector2D({self.x:.6g}, {self.y:.6g})"


# =============================================================================
# POINT HELPERS
# =============================================================================

def point_from_distance_and_angle(
    start: Vector2D,
    distance: float,
    angle_rad: float
) -> Vector2D:
    """
    Project a point from a start point along a heading.

    Args:
        start: Starting point.
        distance: Distance to travel in pixels.
        angle_rad: Heading in radians.

    Returns:
        The projected point.
    """
    return start + Vector2D.from_angle(angle_rad, distance)


def get_distance(a, b) -> float:
    """
    Euclidean distance between two objects exposing .x and .y.

    Works for Vector2D, units, zones and asteroids alike.
    """
    return math.hypot(a.x - b.x, a.y - b.y)
