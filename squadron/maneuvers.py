#!/usr/bin/env python3
"""
Maneuver resolution for the Squadron tactical simulator.

A resolution phase starts by locking every unit's plan:

- calculate_effective_speed: Apply the planned speed change, clamped to [1, max]
- get_maneuver_requirements: Agility and difficulty needed for a maneuver
- initialize_maneuver: Validity cascade, pilot strain, and the angle table
- get_available_speed_changes / get_possible_target_speeds: Planning options

The look-ahead helpers (calculate_planned_path, simulate_maneuver_outcome)
replay a plan tick by tick without touching the caller's unit; the enemy
captain uses them to score candidate plans.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from .config import MAX_RESOLUTION_TICKS, SHIP_LENGTH
from .geometry import CollisionDetector, ship_hitbox
from .physics import Vector2D
from .units import (
    ManeuverType,
    SpeedChange,
    Unit,
    get_unit_type_stats,
)

logger = logging.getLogger(__name__)


# =============================================================================
# MANEUVER TABLES
# =============================================================================

ONE_EIGHT_OH_MIN_SPEED = 3
UNKNOWN_MANEUVER_REQUIREMENT = 999


@dataclass(frozen=True)
class ManeuverRequirements:
    """Ship agility and pilot control needed to fly a maneuver."""
    agility: int
    difficulty: int


_BASE_REQUIREMENTS = {
    ManeuverType.STRAIGHT: ManeuverRequirements(0, 0),
    ManeuverType.BANK_LEFT: ManeuverRequirements(1, 1),
    ManeuverType.BANK_RIGHT: ManeuverRequirements(1, 1),
    ManeuverType.TURN_LEFT: ManeuverRequirements(2, 2),
    ManeuverType.TURN_RIGHT: ManeuverRequirements(2, 2),
    ManeuverType.ONE_EIGHT_OH: ManeuverRequirements(5, 7),
    ManeuverType.SKID_LEFT: ManeuverRequirements(3, 4),
    ManeuverType.SKID_RIGHT: ManeuverRequirements(3, 4),
}

# (final orientation change, path curvature) in radians
MANEUVER_ANGLES = {
    ManeuverType.STRAIGHT: (0.0, 0.0),
    ManeuverType.BANK_LEFT: (-math.pi / 4, -math.pi / 4),
    ManeuverType.BANK_RIGHT: (math.pi / 4, math.pi / 4),
    ManeuverType.TURN_LEFT: (-math.pi / 2, -math.pi / 2),
    ManeuverType.TURN_RIGHT: (math.pi / 2, math.pi / 2),
    ManeuverType.ONE_EIGHT_OH: (math.pi, 0.0),
    ManeuverType.SKID_LEFT: (-math.pi / 4 - math.pi / 2, -math.pi / 4),
    ManeuverType.SKID_RIGHT: (math.pi / 4 + math.pi / 2, math.pi / 4),
}


def get_maneuver_requirements(maneuver, speed: int) -> ManeuverRequirements:
    """
    Look up the requirements for a maneuver at a given speed.

    Turns are harder to fly at the speed extremes: the agility requirement
    rises by one at speed 1 or above 3. Unknown maneuvers return an
    unreachable requirement so they always degrade to straight.

    Args:
        maneuver: ManeuverType or its string value.
        speed: Effective speed for the phase.

    Returns:
        ManeuverRequirements for the maneuver.
    """
    maneuver_type = ManeuverType.coerce(maneuver)
    if maneuver_type is None:
        return ManeuverRequirements(UNKNOWN_MANEUVER_REQUIREMENT, UNKNOWN_MANEUVER_REQUIREMENT)

    requirements = _BASE_REQUIREMENTS[maneuver_type]
    if maneuver_type in (ManeuverType.TURN_LEFT, ManeuverType.TURN_RIGHT):
        if speed == 1 or speed > 3:
            requirements = replace(requirements, agility=requirements.agility + 1)
    return requirements


# =============================================================================
# SPEED
# =============================================================================

def calculate_effective_speed(
    current_speed: int,
    speed_change,
    max_speed: int
) -> int:
    """
    Speed for the coming phase after a planned change.

    The result is clamped to [1, max_speed]; maintain leaves the speed as
    it is (only ever raised to the floor of 1).
    """
    change = speed_change if isinstance(speed_change, SpeedChange) else SpeedChange(speed_change)
    return max(1, min(current_speed + change.delta, max_speed))


@dataclass(frozen=True)
class SpeedChangeOption:
    """A speed change choice and whether it is currently disabled."""
    value: SpeedChange
    label: str
    disabled: bool


@dataclass(frozen=True)
class TargetSpeedOption:
    """A reachable speed and the change that gets there."""
    value: int
    label: str
    planned_change: SpeedChange


SPEED_LABELS = {
    0: "0 - Stationary",
    1: "1 - Slow",
    2: "2 - Cruise",
    3: "3 - Fast",
    4: "4 - Very Fast",
    5: "5 - Maximum",
    6: "6 - Afterburner",
}


def get_speed_label(speed: int) -> str:
    return SPEED_LABELS.get(speed, str(speed))


def get_available_speed_changes(unit: Unit) -> list[SpeedChangeOption]:
    """
    All five speed changes, each flagged disabled when the unit cannot use it.

    Double steps depend on the hull's can_accelerate_2/can_decelerate_2.
    """
    stats = get_unit_type_stats(unit.unit_type)
    return [
        SpeedChangeOption(SpeedChange.MAINTAIN, "Maintain Speed", False),
        SpeedChangeOption(
            SpeedChange.ACCELERATE, "Accelerate (+1)",
            not unit.speed < unit.max_speed,
        ),
        SpeedChangeOption(
            SpeedChange.ACCELERATE_2, "Accelerate (+2)",
            not (stats.can_accelerate_2 and unit.speed < stats.max_speed - 1),
        ),
        SpeedChangeOption(
            SpeedChange.DECELERATE, "Decelerate (-1)",
            not unit.speed > 1,
        ),
        SpeedChangeOption(
            SpeedChange.DECELERATE_2, "Decelerate (-2)",
            not (stats.can_decelerate_2 and unit.speed > 2),
        ),
    ]


def get_possible_target_speeds(unit: Unit) -> list[TargetSpeedOption]:
    """
    Distinct speeds reachable next phase, sorted ascending.

    When two changes reach the same speed the more direct one is kept
    (maintain, then single steps, then double steps).
    """
    stats = get_unit_type_stats(unit.unit_type)
    current, max_speed = unit.speed, unit.max_speed
    candidates = [(current, SpeedChange.MAINTAIN, "Maintain")]

    if current < max_speed:
        candidates.append((current + 1, SpeedChange.ACCELERATE, "Accelerate +1"))
    if stats.can_accelerate_2 and current <= max_speed - 1:
        candidates.append((min(current + 2, max_speed), SpeedChange.ACCELERATE_2, "Accelerate +2"))
    if current > 1:
        candidates.append((current - 1, SpeedChange.DECELERATE, "Decelerate -1"))
    if stats.can_decelerate_2 and current > 1:
        candidates.append((max(current - 2, 1), SpeedChange.DECELERATE_2, "Decelerate -2"))

    priority = list(SpeedChange)
    best: dict[int, tuple[SpeedChange, str]] = {}
    for speed, change, text in candidates:
        existing = best.get(speed)
        if existing is None or priority.index(change) < priority.index(existing[0]):
            best[speed] = (change, text)

    return [
        TargetSpeedOption(speed, f"{get_speed_label(speed)} ({text})", change)
        for speed, (change, text) in sorted(best.items())
    ]


# =============================================================================
# MANEUVER INITIALIZATION
# =============================================================================

def is_maneuver_feasible(unit: Unit, maneuver, speed_change=SpeedChange.MAINTAIN) -> bool:
    """
    True when the maneuver would be flown as planned, not degraded.

    Strain is taken into account: a stressed maneuver is feasible only while
    the pilot still has strain headroom.
    """
    maneuver_type = ManeuverType.coerce(maneuver)
    if maneuver_type is None:
        return False
    planned = replace(unit, planned_maneuver=maneuver_type, planned_speed_change=speed_change)
    return initialize_maneuver(planned).planned_maneuver is maneuver_type


def initialize_maneuver(unit: Unit, max_ticks: int = MAX_RESOLUTION_TICKS) -> Unit:
    """
    Lock in a unit's plan at the start of a resolution phase.

    Applies the planned speed change, runs the validity cascade (degrading
    to straight where needed and updating pilot strain), and sets the
    initial angle, final orientation change and path curvature.

    Args:
        unit: Unit with planned_maneuver and planned_speed_change set.
        max_ticks: Ticks in the coming phase (accepted for symmetry with
            the movement helpers; the plan itself does not depend on it).

    Returns:
        New unit ready for the tick loop. The input is not modified.
    """
    speed = calculate_effective_speed(unit.speed, unit.planned_speed_change, unit.max_speed)
    requested = ManeuverType.coerce(unit.planned_maneuver)
    requirements = get_maneuver_requirements(unit.planned_maneuver, speed)

    pilot = unit.pilot
    control = pilot.skills.control if pilot else 0
    strain = pilot.strain if pilot else 0
    max_strain = unit.max_strain

    maneuver = requested
    reason: Optional[str] = None

    if requested is ManeuverType.ONE_EIGHT_OH and speed < ONE_EIGHT_OH_MIN_SPEED:
        reason = f"requires speed {ONE_EIGHT_OH_MIN_SPEED}+, has {speed}"
    elif requirements.agility > unit.agility:
        reason = f"requires agility {requirements.agility}, has {unit.agility}"
    elif requirements.difficulty > control + 1:
        reason = f"difficulty {requirements.difficulty} beyond control {control}"
    elif requirements.difficulty > control:
        if strain >= max_strain:
            reason = f"pilot at max strain {strain}/{max_strain}"
        else:
            strain = min(strain + 1, max_strain)
            logger.debug("%s flies %s under stress, strain now %d", unit.id, requested.value, strain)
    else:
        strain = max(strain - 1, 0)

    if reason is not None:
        logger.debug("%s cannot fly %s (%s), flying straight", unit.id, unit.planned_maneuver, reason)
        maneuver = ManeuverType.STRAIGHT

    final_change, path_change = MANEUVER_ANGLES[maneuver]
    if pilot is not None:
        pilot = replace(pilot, strain=strain)

    return replace(
        unit,
        speed=speed,
        pilot=pilot,
        planned_maneuver=maneuver,
        maneuver_progress=0.0,
        initial_angle=unit.angle,
        final_orientation_change=final_change,
        maneuver_path_angle_change=path_change,
    )


# =============================================================================
# LOOK-AHEAD
# =============================================================================

def travel_angle(unit: Unit, progress: float) -> float:
    """Heading along the curved path at a given phase progress."""
    return unit.initial_angle + unit.maneuver_path_angle_change * progress


def calculate_planned_path(
    unit: Unit,
    max_ticks: int = MAX_RESOLUTION_TICKS,
    ship_length: float = SHIP_LENGTH
) -> list[Vector2D]:
    """
    Points the unit would pass through if its current plan were flown.

    Returns max_ticks + 1 points, starting at the current position.
    """
    planned = initialize_maneuver(unit, max_ticks)
    step = planned.speed * ship_length / max_ticks
    point = planned.position
    path = [point]
    for i in range(max_ticks):
        progress = (i + 1) / max_ticks
        point = point + Vector2D.from_angle(travel_angle(planned, progress), step)
        path.append(point)
    return path


@dataclass
class ManeuverOutcome:
    """Result of replaying a candidate plan."""
    unit: Unit
    collided_with_asteroid: bool = False


def simulate_maneuver_outcome(
    unit: Unit,
    maneuver,
    speed_change,
    max_ticks: int = MAX_RESOLUTION_TICKS,
    asteroids: Sequence = (),
    ship_length: float = SHIP_LENGTH
) -> ManeuverOutcome:
    """
    Replay a candidate plan and report where it ends up.

    The replay stops at the first tick whose hitbox touches an asteroid.
    The returned unit faces its final orientation. No damage is applied.

    Args:
        unit: Unit to simulate (not modified).
        maneuver: Candidate maneuver.
        speed_change: Candidate speed change.
        max_ticks: Ticks in the phase.
        asteroids: Obstacles to test the path against.
        ship_length: Pixels per point of speed per phase.

    Returns:
        ManeuverOutcome with the simulated unit and collision flag.
    """
    simulated = replace(
        unit,
        planned_maneuver=maneuver,
        planned_speed_change=speed_change,
        maneuver_progress=0.0,
        weapon_charge=0,
        firing_line=None,
    )
    simulated = initialize_maneuver(simulated, max_ticks)
    step = simulated.speed * ship_length / max_ticks
    collided = False

    x, y = simulated.x, simulated.y
    progress = 0.0
    for _ in range(max_ticks):
        progress = min(progress + 1 / max_ticks, 1.0)
        heading = travel_angle(simulated, progress)
        x += math.cos(heading) * step
        y += math.sin(heading) * step
        polygon = ship_hitbox(Vector2D(x, y), heading, simulated.size)
        if any(CollisionDetector.polygon_rectangle_collision(a.points, polygon) for a in asteroids):
            collided = True
            break

    simulated = replace(
        simulated,
        x=x,
        y=y,
        maneuver_progress=progress,
        angle=simulated.initial_angle + simulated.final_orientation_change,
    )
    return ManeuverOutcome(unit=simulated, collided_with_asteroid=collided)
