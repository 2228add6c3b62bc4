#!/usr/bin/env python3
"""
Test Suite for Physics Module

Tests cover:
1. Vector2D operations (add, subtract, multiply, divide, dot, cross, magnitude, normalization)
2. Heading vectors and point projection
3. Distance between duck-typed objects
"""

import math

import pytest

from squadron.geometry import CircleZone
from squadron.physics import Vector2D, get_distance, point_from_distance_and_angle


# =============================================================================
# VECTOR2D TESTS
# =============================================================================

class TestVector2D:
    """Tests for Vector2D operations."""

    def test_addition(self):
        assert Vector2D(1, 2) + Vector2D(3, 4) == Vector2D(4, 6)

    def test_subtraction(self):
        assert Vector2D(5, 7) - Vector2D(2, 3) == Vector2D(3, 4)

    @pytest.mark.parametrize("scalar", [0, 1, -2, 0.5])
    def test_scalar_multiplication(self, scalar):
        v = Vector2D(3, -4)
        assert v * scalar == Vector2D(3 * scalar, -4 * scalar)
        assert scalar * v == v * scalar

    def test_division(self):
        assert Vector2D(6, 8) / 2 == Vector2D(3, 4)

    def test_division_by_zero(self):
        with pytest.raises(ValueError):
            Vector2D(1, 1) / 0

    def test_negation(self):
        assert -Vector2D(1, -2) == Vector2D(-1, 2)

    def test_dot_product(self):
        assert Vector2D(1, 0).dot(Vector2D(0, 1)) == 0
        assert Vector2D(2, 3).dot(Vector2D(4, 5)) == 23

    def test_cross_product_sign(self):
        # +y is down on screen, so x cross y is positive (clockwise).
        assert Vector2D(1, 0).cross(Vector2D(0, 1)) == 1
        assert Vector2D(0, 1).cross(Vector2D(1, 0)) == -1

    def test_perpendicular(self):
        v = Vector2D(3, 4)
        assert v.dot(v.perpendicular()) == 0
        assert v.perpendicular().magnitude == pytest.approx(5)

    def test_magnitude(self):
        v = Vector2D(3, 4)
        assert v.magnitude == pytest.approx(5)
        assert v.magnitude_squared == pytest.approx(25)

    def test_normalized(self):
        assert Vector2D(0, 10).normalized() == Vector2D(0, 1)

    def test_zero_normalized_is_zero(self):
        assert Vector2D.zero().normalized() == Vector2D.zero()

    def test_equality_tolerance(self):
        assert Vector2D(1, 1) == Vector2D(1 + 1e-12, 1 - 1e-12)
        assert Vector2D(1, 1) != Vector2D(1.001, 1)
        assert Vector2D(1, 1) != (1, 1)

    def test_tuple_round_trip(self):
        assert Vector2D.from_tuple((2.5, -1)).to_tuple() == (2.5, -1)

    def test_hashable(self):
        assert len({Vector2D(1, 2), Vector2D(1, 2), Vector2D(2, 1)}) == 2


# =============================================================================
# HEADINGS
# =============================================================================

class TestHeadings:
    """Tests for heading vectors and projection."""

    @pytest.mark.parametrize("angle,expected", [
        (0.0, (1, 0)),
        (math.pi / 2, (0, 1)),
        (math.pi, (-1, 0)),
        (-math.pi / 2, (0, -1)),
    ])
    def test_from_angle(self, angle, expected):
        assert Vector2D.from_angle(angle) == Vector2D(*expected)

    def test_from_angle_length(self):
        assert Vector2D.from_angle(math.pi / 4, 10).magnitude == pytest.approx(10)

    def test_point_projection(self):
        start = Vector2D(100, 100)
        end = point_from_distance_and_angle(start, 30, math.pi / 2)
        assert end == Vector2D(100, 130)

    def test_projection_distance(self):
        start = Vector2D(50, 75)
        end = point_from_distance_and_angle(start, 42, 2.1)
        assert start.distance_to(end) == pytest.approx(42)


class TestGetDistance:
    def test_vectors(self):
        assert get_distance(Vector2D(0, 0), Vector2D(3, 4)) == pytest.approx(5)

    def test_mixed_objects(self):
        zone = CircleZone(x=10, y=10, radius=5)
        assert get_distance(zone, Vector2D(13, 14)) == pytest.approx(5)
