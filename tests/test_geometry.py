"""
Tests for vectors, zones and collision geometry.

Tests cover:
- Vector2D arithmetic
- Ship hitbox corners
- SAT polygon collision
- Canonical AABB escape test
- Swept segment distance for zone entry
"""

import math

import pytest

from squadron.geometry import (
    CircleZone,
    CollisionDetector,
    RectZone,
    aabb_overlaps_zone,
    is_point_in_rectangle,
    segment_circle_distance,
    ship_hitbox,
)
from squadron.physics import Vector2D, get_distance, point_from_distance_and_angle


def square(cx, cy, half):
    return [
        Vector2D(cx - half, cy - half),
        Vector2D(cx + half, cy - half),
        Vector2D(cx + half, cy + half),
        Vector2D(cx - half, cy + half),
    ]


# =============================================================================
# VECTOR2D
# =============================================================================

class TestVector2D:
    """Tests for the 2D vector type."""

    def test_arithmetic(self):
        a = Vector2D(1, 2)
        b = Vector2D(3, -1)
        assert a + b == Vector2D(4, 1)
        assert b - a == Vector2D(2, -3)
        assert a * 2 == Vector2D(2, 4)
        assert 2 * a == Vector2D(2, 4)
        assert -a == Vector2D(-1, -2)

    def test_dot_and_cross(self):
        a = Vector2D(1, 0)
        b = Vector2D(0, 1)
        assert a.dot(b) == 0
        assert a.cross(b) == 1

    def test_magnitude_and_normalized(self):
        v = Vector2D(3, 4)
        assert v.magnitude == pytest.approx(5)
        assert v.normalized().magnitude == pytest.approx(1)

    def test_from_angle(self):
        v = Vector2D.from_angle(math.pi / 2, 10)
        assert v.x == pytest.approx(0, abs=1e-9)
        assert v.y == pytest.approx(10)

    def test_point_from_distance_and_angle(self):
        p = point_from_distance_and_angle(Vector2D(10, 10), 5, 0)
        assert p.x == pytest.approx(15)
        assert p.y == pytest.approx(10)

    def test_get_distance_is_duck_typed(self):
        zone = CircleZone(x=0, y=0, radius=5)
        assert get_distance(zone, Vector2D(6, 8)) == pytest.approx(10)


# =============================================================================
# HITBOX
# =============================================================================

class TestShipHitbox:
    """Tests for the oriented square ship hitbox."""

    def test_axis_aligned_hitbox(self):
        corners = ship_hitbox(Vector2D(100, 100), 0.0, 20)
        xs = sorted(round(c.x, 6) for c in corners)
        ys = sorted(round(c.y, 6) for c in corners)
        assert xs == [90, 90, 110, 110]
        assert ys == [90, 90, 110, 110]

    def test_corner_order_front_first(self):
        front_left, front_right, back_right, back_left = ship_hitbox(Vector2D(0, 0), 0.0, 20)
        assert front_left.x == pytest.approx(10)
        assert front_right.x == pytest.approx(10)
        assert back_right.x == pytest.approx(-10)
        assert back_left.x == pytest.approx(-10)

    def test_rotated_hitbox_keeps_size(self):
        corners = ship_hitbox(Vector2D(0, 0), math.pi / 4, 20)
        for i in range(4):
            edge = corners[(i + 1) % 4] - corners[i]
            assert edge.magnitude == pytest.approx(20)


# =============================================================================
# SAT COLLISION
# =============================================================================

class TestCollisionDetector:
    """Tests for Separating Axis Theorem collision."""

    def test_overlapping_squares_collide(self):
        assert CollisionDetector.polygon_rectangle_collision(square(0, 0, 10), square(15, 0, 10))

    def test_separated_squares_do_not_collide(self):
        assert not CollisionDetector.polygon_rectangle_collision(square(0, 0, 10), square(25, 0, 10))

    def test_touching_counts_as_collision(self):
        assert CollisionDetector.polygon_rectangle_collision(square(0, 0, 10), square(20, 0, 10))

    def test_symmetric(self):
        a = square(0, 0, 10)
        b = ship_hitbox(Vector2D(18, 5), math.pi / 6, 20)
        assert (
            CollisionDetector.polygon_rectangle_collision(a, b)
            == CollisionDetector.polygon_rectangle_collision(b, a)
        )

    def test_rotated_box_separated_on_diagonal(self):
        diamond = ship_hitbox(Vector2D(0, 0), math.pi / 4, 20)
        # Diamond reaches ~14.1 along the axes; the square starts at 15.
        assert not CollisionDetector.polygon_rectangle_collision(diamond, square(25, 0, 10))

    def test_degenerate_edges_are_skipped(self):
        polygon = [Vector2D(0, 0), Vector2D(0, 0), Vector2D(10, 0), Vector2D(10, 10)]
        axes = CollisionDetector.get_axes(polygon)
        assert len(axes) == 3


# =============================================================================
# ZONES
# =============================================================================

class TestZones:
    """Tests for escape and target zone tests."""

    @pytest.fixture
    def escape_zone(self) -> RectZone:
        return RectZone(x=30, y=300, width=60, height=600)

    def test_rect_edges(self, escape_zone):
        assert escape_zone.left == 0
        assert escape_zone.right == 60
        assert escape_zone.top == 0
        assert escape_zone.bottom == 600

    def test_point_in_rectangle(self, escape_zone):
        assert is_point_in_rectangle(Vector2D(30, 300), escape_zone)
        assert not is_point_in_rectangle(Vector2D(61, 300), escape_zone)

    def test_aabb_overlap_uses_half_extent(self, escape_zone):
        assert aabb_overlaps_zone(Vector2D(79, 300), escape_zone, 20)
        assert not aabb_overlaps_zone(Vector2D(81, 300), escape_zone, 20)

    def test_aabb_touching_edge_is_not_overlap(self, escape_zone):
        assert not aabb_overlaps_zone(Vector2D(80, 300), escape_zone, 20)

    def test_segment_distance_catches_pass_through(self):
        zone_centre = Vector2D(100, 0)
        start, end = Vector2D(0, 0), Vector2D(200, 0)
        assert segment_circle_distance(start, end, zone_centre) == pytest.approx(0)
        assert start.distance_to(zone_centre) == pytest.approx(100)

    def test_segment_distance_clamps_to_endpoints(self):
        assert segment_circle_distance(
            Vector2D(0, 0), Vector2D(10, 0), Vector2D(20, 0)
        ) == pytest.approx(10)

    def test_zero_length_segment(self):
        assert segment_circle_distance(
            Vector2D(3, 4), Vector2D(3, 4), Vector2D(0, 0)
        ) == pytest.approx(5)
