"""
Asteroid obstacles for the Squadron tactical simulator.

Asteroids are static convex-ish polygons scattered over the battle area.
Units that touch one take damage once per asteroid per resolution phase;
the collided_units_this_phase set records who has already been hit.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from .config import CANVAS_HEIGHT, CANVAS_WIDTH, SHIP_LENGTH, UNIT_COLLISION_RADIUS
from .physics import Vector2D, get_distance

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_ASTEROID_RADIUS = 20
MAX_ASTEROID_RADIUS = 40
ASTEROID_SPACING = 2 * SHIP_LENGTH
ASTEROID_EDGE_BUFFER = 2 * SHIP_LENGTH
ASTEROID_UNIT_CLEARANCE = 2 * SHIP_LENGTH
COLLISION_RADIUS_TRIM = 5
MAX_PLACEMENT_ATTEMPTS = 100

COLLISION_DAMAGE_PER_SPEED = 10
COLLISION_MORALE_PENALTY = 15


# =============================================================================
# ASTEROID
# =============================================================================

@dataclass(frozen=True)
class Asteroid:
    """
    A static obstacle.

    Attributes:
        id: Identifier ("asteroid-N").
        x, y: Centre in pixels.
        points: Polygon vertices in world coordinates.
        radius: Bounding radius used for spacing checks.
        collided_units_this_phase: Ids of units already damaged this phase.
    """
    id: str
    x: float
    y: float
    points: tuple[Vector2D, ...]
    radius: float
    collided_units_this_phase: frozenset[str] = field(default_factory=frozenset)

    def with_collision(self, unit_id: str) -> Asteroid:
        return replace(
            self, collided_units_this_phase=self.collided_units_this_phase | {unit_id}
        )

    def reset_collisions(self) -> Asteroid:
        return replace(self, collided_units_this_phase=frozenset())


def generate_asteroid_points(
    center_x: float,
    center_y: float,
    min_radius: float,
    max_radius: float,
    rng: random.Random
) -> tuple[Vector2D, ...]:
    """5-8 points spaced round a centre with jittered angle and radius."""
    num_points = rng.randint(5, 8)
    angle_step = 2 * math.pi / num_points
    points = []
    for i in range(num_points):
        angle = i * angle_step + (rng.random() - 0.5) * (angle_step / 2)
        r = min_radius + rng.random() * (max_radius - min_radius)
        points.append(Vector2D(center_x + r * math.cos(angle), center_y + r * math.sin(angle)))
    return tuple(points)


def generate_asteroids(
    num_asteroids: int,
    map_width: float = CANVAS_WIDTH,
    map_height: float = CANVAS_HEIGHT,
    existing_units: Sequence = (),
    rng: Optional[random.Random] = None
) -> list[Asteroid]:
    """
    Scatter asteroids over the map, clear of each other and of units.

    Placement is rejection sampling with a fixed attempt budget, so fewer
    asteroids than requested may be returned on a crowded map.

    Args:
        num_asteroids: Target number of asteroids.
        map_width: World width.
        map_height: World height.
        existing_units: Units whose starting positions must stay clear.
        rng: Random source.

    Returns:
        List of placed asteroids.
    """
    rng = rng or random.Random()
    asteroids: list[Asteroid] = []

    for _ in range(MAX_PLACEMENT_ATTEMPTS):
        if len(asteroids) >= num_asteroids:
            break

        radius = MIN_ASTEROID_RADIUS + rng.random() * (MAX_ASTEROID_RADIUS - MIN_ASTEROID_RADIUS)
        x = ASTEROID_EDGE_BUFFER + rng.random() * (map_width - 2 * ASTEROID_EDGE_BUFFER)
        y = ASTEROID_EDGE_BUFFER + rng.random() * (map_height - 2 * ASTEROID_EDGE_BUFFER)
        points = generate_asteroid_points(x, y, radius * 0.7, radius * 1.3, rng)
        center = Vector2D(x, y)

        if any(
            get_distance(center, other) < ASTEROID_SPACING + radius + other.radius
            for other in asteroids
        ):
            continue
        if any(
            get_distance(center, unit) < radius + UNIT_COLLISION_RADIUS + ASTEROID_UNIT_CLEARANCE
            for unit in existing_units
        ):
            continue

        asteroids.append(Asteroid(
            id=f"asteroid-{len(asteroids) + 1}",
            x=x,
            y=y,
            points=points,
            radius=radius - COLLISION_RADIUS_TRIM,
        ))

    if len(asteroids) < num_asteroids:
        logger.debug("Placed %d of %d asteroids", len(asteroids), num_asteroids)
    return asteroids


def generate_asteroid_field(
    existing_units: Sequence = (),
    map_width: float = CANVAS_WIDTH,
    map_height: float = CANVAS_HEIGHT,
    rng: Optional[random.Random] = None
) -> list[Asteroid]:
    """A battle's asteroid field: 3-6 asteroids."""
    rng = rng or random.Random()
    return generate_asteroids(rng.randint(3, 6), map_width, map_height, existing_units, rng)
