"""
Unit and pilot model for the Squadron tactical simulator.

This module holds the data model that every other component reads and
copies:
- Per-type base stats (pure lookup table)
- Pilot skills, morale, strain and experience
- Unit kinematics, combat stats, plan inputs and maneuver execution state
- Factory and levelling helpers

Units and pilots are plain dataclasses. Transitions never mutate a unit in
place; they build a new one with dataclasses.replace so that a previous
state snapshot stays valid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from .physics import Vector2D

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

BASE_STARTING_MORALE = 40
MORALE_PER_COMPOSURE = 5
MAX_MORALE = 120
MAX_SKILL_LEVEL = 10
XP_PER_LEVEL = 10
XP_PER_SKILL_POINT = 10
DEFAULT_SPEED = 1
FIRING_LINE_TICKS = 3


# =============================================================================
# ENUMS
# =============================================================================

class Team(Enum):
    """Side a unit fights for."""
    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> Team:
        return Team.ENEMY if self is Team.PLAYER else Team.PLAYER


class UnitType(Enum):
    """Hull classes."""
    FIGHTER = "fighter"
    BOMBER = "bomber"
    INTERCEPTOR = "interceptor"
    SCOUT = "scout"
    HEAVY_FIGHTER = "heavy_fighter"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class UnitStatus(Enum):
    """Terminal status of a unit. A unit is exactly one of these."""
    ACTIVE = "active"
    DESTROYED = "destroyed"
    ESCAPED = "escaped"


class ManeuverType(Enum):
    """Maneuvers a unit can plan for a resolution phase."""
    STRAIGHT = "straight"
    BANK_LEFT = "bank-left"
    BANK_RIGHT = "bank-right"
    TURN_LEFT = "turn-left"
    TURN_RIGHT = "turn-right"
    ONE_EIGHT_OH = "one-eight-oh"
    SKID_LEFT = "skid-left"
    SKID_RIGHT = "skid-right"

    @classmethod
    def coerce(cls, value) -> Optional[ManeuverType]:
        """Return the matching maneuver, or None for unknown requests."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class SpeedChange(Enum):
    """Speed adjustment planned for a resolution phase."""
    MAINTAIN = "maintain"
    ACCELERATE = "accelerate"
    ACCELERATE_2 = "accelerate-2"
    DECELERATE = "decelerate"
    DECELERATE_2 = "decelerate-2"

    @property
    def delta(self) -> int:
        return _SPEED_DELTAS[self]


_SPEED_DELTAS = {
    SpeedChange.MAINTAIN: 0,
    SpeedChange.ACCELERATE: 1,
    SpeedChange.ACCELERATE_2: 2,
    SpeedChange.DECELERATE: -1,
    SpeedChange.DECELERATE_2: -2,
}


class TargetMode(Enum):
    """How a unit picks its target when its weapon is charged."""
    FIRE_AT_WILL = "fire-at-will"
    TARGET_SPECIFIC = "target-specific"


# =============================================================================
# UNIT TYPE STATS
# =============================================================================

@dataclass(frozen=True)
class UnitTypeStats:
    """
    Base statistics for a hull class.

    Attributes:
        max_speed: Top speed in ship lengths per phase.
        health: Hull points.
        shield: Shield points, absorbed before hull.
        weapon_range: Weapon reach in pixels.
        agility: Highest maneuver agility requirement the hull can fly.
        max_weapon_charge: Ticks needed to charge one burst.
        damage: Damage per hitting shot.
        burst: Shots per burst.
        size: Hitbox edge length in pixels.
        can_accelerate_2: Whether +2 speed in one phase is available.
        can_decelerate_2: Whether -2 speed in one phase is available.
    """
    max_speed: int
    health: int
    shield: int
    weapon_range: float
    agility: int
    max_weapon_charge: int
    damage: int
    burst: int
    size: float
    can_accelerate_2: bool = False
    can_decelerate_2: bool = False


UNIT_TYPE_STATS: dict[UnitType, UnitTypeStats] = {
    UnitType.FIGHTER: UnitTypeStats(
        max_speed=5, health=80, shield=30, weapon_range=120, agility=4,
        max_weapon_charge=15, damage=25, burst=2, size=20,
        can_accelerate_2=True,
    ),
    UnitType.BOMBER: UnitTypeStats(
        max_speed=3, health=150, shield=80, weapon_range=180, agility=2,
        max_weapon_charge=40, damage=50, burst=1, size=30,
    ),
    UnitType.INTERCEPTOR: UnitTypeStats(
        max_speed=6, health=60, shield=20, weapon_range=100, agility=5,
        max_weapon_charge=8, damage=7, burst=3, size=20,
        can_accelerate_2=True, can_decelerate_2=True,
    ),
    UnitType.SCOUT: UnitTypeStats(
        max_speed=5, health=40, shield=30, weapon_range=100, agility=5,
        max_weapon_charge=30, damage=10, burst=1, size=15,
        can_accelerate_2=True,
    ),
    UnitType.HEAVY_FIGHTER: UnitTypeStats(
        max_speed=4, health=100, shield=40, weapon_range=120, agility=3,
        max_weapon_charge=15, damage=25, burst=3, size=25,
    ),
}


def get_unit_type_stats(unit_type: UnitType) -> UnitTypeStats:
    """Look up the base stats for a hull class."""
    return UNIT_TYPE_STATS[unit_type]


# =============================================================================
# PILOT
# =============================================================================

@dataclass(frozen=True)
class PilotSkills:
    """
    Pilot skill ratings, each 0-10.

    Attributes:
        composure: Starting morale and per-phase morale recovery.
        control: Maneuver difficulty ceiling and evasion.
        gunnery: Accuracy.
        guts: Strain capacity.
    """
    composure: int = 1
    control: int = 1
    gunnery: int = 1
    guts: int = 1

    NAMES = ("composure", "control", "gunnery", "guts")


@dataclass
class Pilot:
    """A pilot. Units hold their pilot by value."""
    id: str
    name: str
    skills: PilotSkills = field(default_factory=PilotSkills)
    morale: int = BASE_STARTING_MORALE
    max_morale: int = MAX_MORALE
    strain: int = 0
    experience: int = 0
    level: int = 1

    @property
    def max_strain(self) -> int:
        """Strain ceiling derived from guts (always at least 1)."""
        return self.skills.guts // 2 + 1

    def with_morale_delta(self, delta: int) -> Pilot:
        """Copy with morale shifted by delta and clamped to [0, max_morale]."""
        morale = max(0, min(self.morale + delta, self.max_morale))
        return replace(self, morale=morale)


def create_pilot(
    pilot_id: str,
    name: str,
    skills: Optional[PilotSkills] = None
) -> Pilot:
    """
    Create a fresh pilot.

    Starting morale is 40 plus 5 per point of composure.
    """
    skills = skills or PilotSkills()
    return Pilot(
        id=pilot_id,
        name=name,
        skills=skills,
        morale=BASE_STARTING_MORALE + skills.composure * MORALE_PER_COMPOSURE,
        max_morale=MAX_MORALE,
    )


def gain_experience(pilot: Pilot, xp_amount: int) -> Pilot:
    """
    Award experience, levelling up as many times as the total allows.

    Levels are reached at level*10 XP. Skill points are spent separately
    with level_up_pilot_skill.
    """
    experience = pilot.experience + xp_amount
    level = pilot.level
    while experience >= level * XP_PER_LEVEL:
        level += 1
    return replace(pilot, experience=experience, level=level)


def level_up_pilot_skill(pilot: Pilot, skill: str) -> Pilot:
    """
    Spend 10 XP to raise one skill by a point.

    Returns the pilot unchanged when the skill is unknown, already at 10, or
    the pilot cannot afford it.
    """
    if skill not in PilotSkills.NAMES:
        logger.warning("Unknown skill %r for pilot %s", skill, pilot.name)
        return pilot

    current = getattr(pilot.skills, skill)
    if pilot.experience < XP_PER_SKILL_POINT or current >= MAX_SKILL_LEVEL:
        logger.info(
            "Cannot raise %s for %s (xp=%d, %s=%d)",
            skill, pilot.name, pilot.experience, skill, current,
        )
        return pilot

    skills = replace(pilot.skills, **{skill: current + 1})
    logger.info("%s raised %s to %d", pilot.name, skill, current + 1)
    return replace(pilot, skills=skills, experience=pilot.experience - XP_PER_SKILL_POINT)


# =============================================================================
# FIRING LINE
# =============================================================================

@dataclass(frozen=True)
class FiringLine:
    """
    Visual record of a burst.

    Attributes:
        from_x, from_y: Shooter position when the burst was fired.
        to_x, to_y: Target position when the burst was fired.
        ticks_remaining: Ticks until the record is cleared.
        has_target: True when any shot hit (drawn solid), else dashed.
    """
    from_x: float
    from_y: float
    to_x: float
    to_y: float
    ticks_remaining: int = FIRING_LINE_TICKS
    has_target: bool = False


# =============================================================================
# UNIT
# =============================================================================

@dataclass
class Unit:
    """
    A combat unit: hull, pilot, plan and execution state.

    Attributes:
        id: Unique identifier.
        unit_type: Hull class.
        team: Side the unit fights for.
        x, y: Position in pixels.
        angle: Heading in radians.
        speed: Ship lengths travelled per phase (0-6).
        pilot: The pilot flying this hull (None while parked in barracks).
        planned_maneuver: Maneuver for the next resolution phase.
        planned_speed_change: Speed change for the next resolution phase.
        target_mode: Fire at will or only at specific_target.
        maneuver_progress: 0-1 progress through the current phase.
        initial_angle: Heading when the current maneuver started.
        final_orientation_change: Net heading change applied at phase end.
        maneuver_path_angle_change: Curvature applied to travel during ticks.
        status: ACTIVE, DESTROYED or ESCAPED.
    """
    id: str
    unit_type: UnitType
    team: Team
    x: float = 0.0
    y: float = 0.0
    angle: float = 0.0

    health: float = 0
    max_health: float = 0
    shield: float = 0
    max_shield: float = 0
    agility: int = 0
    max_speed: int = 1
    speed: int = DEFAULT_SPEED
    weapon_range: float = 0.0
    burst: int = 1
    size: float = 20.0
    weapon_charge: int = 0
    max_weapon_charge: int = 1

    pilot: Optional[Pilot] = None

    planned_maneuver: ManeuverType = ManeuverType.STRAIGHT
    planned_speed_change: SpeedChange = SpeedChange.MAINTAIN
    target_mode: TargetMode = TargetMode.FIRE_AT_WILL
    specific_target: Optional[str] = None

    maneuver_progress: float = 0.0
    initial_angle: float = 0.0
    final_orientation_change: float = 0.0
    maneuver_path_angle_change: float = 0.0

    firing_line: Optional[FiringLine] = None
    status: UnitStatus = UnitStatus.ACTIVE

    @property
    def position(self) -> Vector2D:
        return Vector2D(self.x, self.y)

    @property
    def is_active(self) -> bool:
        return self.status is UnitStatus.ACTIVE

    @property
    def is_destroyed(self) -> bool:
        return self.status is UnitStatus.DESTROYED

    @property
    def is_escaped(self) -> bool:
        return self.status is UnitStatus.ESCAPED

    @property
    def max_strain(self) -> int:
        return self.pilot.max_strain if self.pilot else 1

    @property
    def stats(self) -> UnitTypeStats:
        return UNIT_TYPE_STATS[self.unit_type]

    def with_pilot(self, pilot: Pilot) -> Unit:
        return replace(self, pilot=pilot)

    def with_morale_delta(self, delta: int) -> Unit:
        """Copy with the pilot's morale shifted (no-op without a pilot)."""
        if self.pilot is None:
            return self
        return replace(self, pilot=self.pilot.with_morale_delta(delta))


def create_unit(
    unit_id: str,
    x: float,
    y: float,
    angle: float,
    team: Team,
    unit_type: UnitType,
    skills: Optional[PilotSkills] = None,
    pilot_name: Optional[str] = None,
    pilot_id: Optional[str] = None,
) -> Unit:
    """
    Create a combat-ready unit with a pilot.

    Args:
        unit_id: Unique unit identifier.
        x, y: Starting position in pixels.
        angle: Starting heading in radians.
        team: Owning side.
        unit_type: Hull class; base stats come from the stats table.
        skills: Pilot skills (defaults to 1 in every skill).
        pilot_name: Display name for the pilot.
        pilot_id: Pilot identifier (defaults to "<unit_id>-pilot").

    Returns:
        A new unit at full health and shield, speed 1, flying straight.
    """
    stats = get_unit_type_stats(unit_type)
    name = pilot_name or f"{unit_type.label} Pilot {unit_id.split('-')[-1]}"
    pilot = create_pilot(pilot_id or f"{unit_id}-pilot", name, skills)

    return Unit(
        id=unit_id,
        unit_type=unit_type,
        team=team,
        x=x,
        y=y,
        angle=angle,
        health=stats.health,
        max_health=stats.health,
        shield=stats.shield,
        max_shield=stats.shield,
        agility=stats.agility,
        max_speed=stats.max_speed,
        speed=DEFAULT_SPEED,
        weapon_range=stats.weapon_range,
        burst=stats.burst,
        size=stats.size,
        weapon_charge=0,
        max_weapon_charge=stats.max_weapon_charge,
        pilot=pilot,
        initial_angle=angle,
    )


def reset_for_battle(unit: Unit, x: float, y: float, angle: float) -> Unit:
    """
    Copy of a unit placed for a new battle at full combat stats.

    Health, shield, weapon charge, firing line and status are restored, the
    plan is reset to straight/maintain, and the pilot (if any) starts with
    no strain and full morale.
    """
    pilot = unit.pilot
    if pilot is not None:
        pilot = replace(pilot, strain=0, morale=pilot.max_morale)
    return replace(
        unit,
        x=x,
        y=y,
        angle=angle,
        initial_angle=angle,
        health=unit.max_health,
        shield=unit.max_shield,
        weapon_charge=0,
        firing_line=None,
        status=UnitStatus.ACTIVE,
        planned_maneuver=ManeuverType.STRAIGHT,
        planned_speed_change=SpeedChange.MAINTAIN,
        target_mode=TargetMode.FIRE_AT_WILL,
        specific_target=None,
        maneuver_progress=0.0,
        final_orientation_change=0.0,
        maneuver_path_angle_change=0.0,
        pilot=pilot,
    )


def count_active(units, team: Team) -> int:
    """Number of units of a team still in the fight."""
    return sum(1 for u in units if u.team is team and u.is_active)
