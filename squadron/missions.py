#!/usr/bin/env python3
"""
Mission and scenario definitions for the Squadron tactical simulator.

This module defines:
- The Mission model with crew assignments and scoring table
- Campaign round generation (dogfight, escort, intercept, lone-wolf, recon)
- Skirmish setups for quick battles
- The starting campaign roster
- Binding barracks units and pilots into a battle roster

Scenario layout, positions in pixels on the 800x600 board:
    Player side spawns near x=100, enemy side near x=700, facing each other.
    Escape zones run the full height of the player's edge.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Sequence

from .config import CANVAS_HEIGHT, CANVAS_WIDTH, SHIP_LENGTH, UNIT_COLLISION_RADIUS
from .geometry import CircleZone, RectZone
from .objectives import (
    DestroyUnitsObjective,
    MissionObjective,
    ReachZoneAndReturnObjective,
    VisitMultipleZonesAndReturnObjective,
)
from .physics import get_distance
from .units import (
    Pilot,
    PilotSkills,
    Team,
    Unit,
    UnitType,
    create_pilot,
    create_unit,
    reset_for_battle,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_UNIT_LIMIT = 4
MIN_MISSIONS_PER_ROUND = 2
MAX_MISSIONS_PER_ROUND = 4

PLAYER_SPAWN_X = 100
ENEMY_SPAWN_X = 700
SPAWN_X_JITTER = 50
SPAWN_Y_MIN = 100
SPAWN_Y_SPREAD = 400

RECON_ZONE_COUNT = 3
RECON_ZONE_RADIUS = 30
RECON_ZONE_SPACING = 3 * SHIP_LENGTH
RECON_ZONE_EDGE_BUFFER = 2 * SHIP_LENGTH
MAX_ZONE_ATTEMPTS = 100

ESCORT_TARGET_ZONE_RADIUS = 50
ESCORT_TARGET_ZONE_INSET = 100

ROSTER_PILOT_NAMES = ("Ace", "Viper", "Hammer", "Maverick", "Phoenix")
ROSTER_SKILL_SPLIT = (3, 2, 2, 1)


# =============================================================================
# ENUMS
# =============================================================================

class MissionType(Enum):
    """Campaign mission types."""
    DOGFIGHT = "dogfight"
    ESCORT = "escort"
    INTERCEPT = "intercept"
    LONE_WOLF = "lone-wolf"
    RECON = "recon"


class MissionStatus(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# MISSION MODEL
# =============================================================================

@dataclass(frozen=True)
class VictoryPointsAward:
    """
    Scoring table for a mission.

    Attributes:
        player: VP to the player on a win (default scoring and recon).
        enemy: VP to the enemy on a loss (default scoring and recon).
        per_escaped_target: Player VP per escort target that got out.
        per_destroyed_target: Enemy VP per escort target destroyed.
    """
    player: int = 1
    enemy: int = 1
    per_escaped_target: int = 0
    per_destroyed_target: int = 0


@dataclass(frozen=True)
class CrewAssignment:
    """A unit assigned to a mission and the pilot flying it (None until set)."""
    unit_id: str
    pilot_id: Optional[str] = None


@dataclass(frozen=True)
class Mission:
    """
    A campaign mission.

    Attributes:
        id: Unique mission id.
        type: Mission type.
        name: Display name.
        description: Briefing text.
        enemy_units: Enemy units spawned for the battle.
        allied_units: Player-side units provided by the mission (escort
            bombers, recon scout). They are not drawn from barracks.
        objectives: Ordered objectives; all must complete for a win.
        assignments: Barracks units (and their pilots) committed to it.
        player_unit_limit: Max barracks units that may be assigned.
        player_pilot_limit: Max pilots that may be assigned.
        status: Pending until played, then completed or failed.
        is_played: Whether the mission has been resolved this round.
        escort_target_unit_ids: Protected units; losing all of them ends an escort mission.
        victory_points_award: Scoring table.
    """
    id: str
    type: MissionType
    name: str
    description: str
    enemy_units: tuple[Unit, ...] = ()
    allied_units: tuple[Unit, ...] = ()
    objectives: tuple[MissionObjective, ...] = ()
    assignments: tuple[CrewAssignment, ...] = ()
    player_unit_limit: int = DEFAULT_UNIT_LIMIT
    player_pilot_limit: int = DEFAULT_UNIT_LIMIT
    status: MissionStatus = MissionStatus.PENDING
    is_played: bool = False
    escort_target_unit_ids: tuple[str, ...] = ()
    victory_points_award: VictoryPointsAward = field(default_factory=VictoryPointsAward)

    @property
    def assigned_unit_ids(self) -> tuple[str, ...]:
        return tuple(a.unit_id for a in self.assignments)

    @property
    def assigned_pilot_ids(self) -> tuple[str, ...]:
        return tuple(a.pilot_id for a in self.assignments if a.pilot_id is not None)

    @property
    def is_ready(self) -> bool:
        """At least one unit assigned and every assigned unit has a pilot."""
        return bool(self.assignments) and all(a.pilot_id is not None for a in self.assignments)


# =============================================================================
# ROSTERS
# =============================================================================

@dataclass
class Roster:
    """Barracks contents: hulls without pilots, and pilots."""
    units: list[Unit]
    pilots: list[Pilot]


def generate_initial_campaign_roster(rng: Optional[random.Random] = None) -> Roster:
    """
    Starting barracks for a new campaign.

    Four hulls (two fighters, an interceptor and a heavy fighter) with no
    pilot aboard, and five pilots whose skills are a shuffled 3/2/2/1 split.
    """
    rng = rng or random.Random()

    units = [
        replace(create_unit(unit_id, 0, 0, 0, Team.PLAYER, unit_type), pilot=None)
        for unit_id, unit_type in (
            ("Barracks-Fighter-1", UnitType.FIGHTER),
            ("Barracks-Interceptor-1", UnitType.INTERCEPTOR),
            ("Barracks-Heavy-Fighter-1", UnitType.HEAVY_FIGHTER),
            ("Barracks-Fighter-2", UnitType.FIGHTER),
        )
    ]

    pilots = []
    for name in ROSTER_PILOT_NAMES:
        skill_names = list(PilotSkills.NAMES)
        rng.shuffle(skill_names)
        skills = PilotSkills(**dict(zip(skill_names, ROSTER_SKILL_SPLIT)))
        pilots.append(create_pilot(f"pilot-{name.lower()}", name, skills))

    return Roster(units=units, pilots=pilots)


def generate_units_for_setup(setup_type: str) -> list[Unit]:
    """
    Units for a skirmish setup.

    Known setups: dogfight, escort, intercept, lone-wolf, test-flight.
    Anything else falls back to dogfight.
    """
    P, E = Team.PLAYER, Team.ENEMY
    left, right = 0.0, math.pi

    if setup_type == "dogfight":
        return [
            create_unit("Player-Fighter-1", 100, 250, left, P, UnitType.FIGHTER),
            create_unit("Player-Fighter-2", 100, 350, left, P, UnitType.FIGHTER),
            create_unit("Enemy-Fighter-1", 700, 250, right, E, UnitType.FIGHTER),
            create_unit("Enemy-Fighter-2", 700, 350, right, E, UnitType.FIGHTER),
        ]
    if setup_type == "escort":
        return [
            create_unit("Player-Bomber-1", 100, 200, left, P, UnitType.BOMBER),
            create_unit("Player-Bomber-2", 100, 400, left, P, UnitType.BOMBER),
            create_unit("Player-Fighter-1", 150, 250, left, P, UnitType.FIGHTER),
            create_unit("Player-Fighter-2", 150, 350, left, P, UnitType.FIGHTER),
            create_unit("Enemy-Interceptor-1", 700, 150, right, E, UnitType.INTERCEPTOR),
            create_unit("Enemy-Interceptor-2", 700, 300, right, E, UnitType.INTERCEPTOR),
            create_unit("Enemy-Interceptor-3", 700, 450, right, E, UnitType.INTERCEPTOR),
        ]
    if setup_type == "intercept":
        return [
            create_unit("Player-Interceptor-1", 100, 150, left, P, UnitType.INTERCEPTOR),
            create_unit("Player-Interceptor-2", 100, 300, left, P, UnitType.INTERCEPTOR),
            create_unit("Player-Interceptor-3", 100, 450, left, P, UnitType.INTERCEPTOR),
            create_unit("Enemy-Fighter-1", 700, 250, right, E, UnitType.FIGHTER),
            create_unit("Enemy-Fighter-2", 700, 350, right, E, UnitType.FIGHTER),
            create_unit("Enemy-Bomber-Target", 650, 300, right, E, UnitType.BOMBER),
            create_unit("Enemy-Bomber-2", 650, 400, right, E, UnitType.BOMBER),
        ]
    if setup_type == "lone-wolf":
        ace = PilotSkills(composure=10, control=10, gunnery=10, guts=10)
        return [
            create_unit("Player-Fighter-1", 100, 300, left, P, UnitType.FIGHTER, ace),
            create_unit("Enemy-Bomber-1", 700, 100, right, E, UnitType.BOMBER),
            create_unit("Enemy-Bomber-2", 700, 250, right, E, UnitType.BOMBER),
            create_unit("Enemy-Bomber-3", 700, 400, right, E, UnitType.BOMBER),
            create_unit("Enemy-Bomber-4", 700, 550, right, E, UnitType.BOMBER),
        ]
    if setup_type == "test-flight":
        return [
            create_unit("Player-Bomber-1", 100, 200, left, P, UnitType.BOMBER),
            create_unit("Enemy-Bomber-1", 700, 400, right, E, UnitType.BOMBER),
            create_unit("Player-Fighter-1", 100, 250, left, P, UnitType.FIGHTER),
            create_unit("Enemy-Fighter-1", 700, 350, right, E, UnitType.FIGHTER),
            create_unit("Enemy-Interceptor-1", 700, 150, right, E, UnitType.INTERCEPTOR),
            create_unit("Player-Interceptor-1", 100, 150, left, P, UnitType.INTERCEPTOR),
            create_unit("Enemy-Scout-1", 700, 450, right, E, UnitType.SCOUT),
            create_unit("Player-Scout-1", 100, 450, left, P, UnitType.SCOUT),
            create_unit("Enemy-Heavy-Fighter-1", 700, 550, right, E, UnitType.HEAVY_FIGHTER),
            create_unit("Player-Heavy-Fighter-1", 100, 550, left, P, UnitType.HEAVY_FIGHTER),
        ]

    logger.warning("Unknown setup type %r, defaulting to dogfight", setup_type)
    return generate_units_for_setup("dogfight")


SKIRMISH_SETUPS = ("dogfight", "escort", "intercept", "lone-wolf", "test-flight")


# =============================================================================
# ZONES
# =============================================================================

def generate_random_zone(
    zone_id: str,
    map_width: float,
    map_height: float,
    existing_units: Sequence = (),
    existing_asteroids: Sequence = (),
    min_radius: float = RECON_ZONE_RADIUS,
    max_radius: float = RECON_ZONE_RADIUS,
    min_distance_from_edge: float = RECON_ZONE_EDGE_BUFFER,
    min_distance_from_objects: float = RECON_ZONE_SPACING,
    rng: Optional[random.Random] = None,
    max_attempts: int = MAX_ZONE_ATTEMPTS
) -> Optional[CircleZone]:
    """
    Place a circular zone clear of units and asteroids.

    Returns None when no position is found within max_attempts.
    """
    rng = rng or random.Random()
    for _ in range(max_attempts):
        radius = min_radius + rng.random() * (max_radius - min_radius)
        x = min_distance_from_edge + rng.random() * (map_width - 2 * min_distance_from_edge)
        y = min_distance_from_edge + rng.random() * (map_height - 2 * min_distance_from_edge)
        zone = CircleZone(x=x, y=y, radius=radius, id=zone_id)

        if any(
            get_distance(zone, u) < radius + UNIT_COLLISION_RADIUS + min_distance_from_objects
            for u in existing_units
        ):
            continue
        if any(
            get_distance(zone, a) < radius + a.radius + min_distance_from_objects
            for a in existing_asteroids
        ):
            continue
        return zone
    return None


def player_escape_zone(map_height: float = CANVAS_HEIGHT) -> RectZone:
    """Strip along the player's edge, two ship lengths wide."""
    return RectZone(x=SHIP_LENGTH, y=map_height / 2, width=2 * SHIP_LENGTH, height=map_height)


# =============================================================================
# MISSION GENERATION
# =============================================================================

def _dogfight(mission_id: str, index: int, width: float, height: float, rng: random.Random) -> Mission:
    E = Team.ENEMY
    return Mission(
        id=mission_id,
        type=MissionType.DOGFIGHT,
        name=f"Dogfight over Sector {index}",
        description="Engage enemy fighters in a classic dogfight.",
        enemy_units=(
            create_unit(f"Enemy-Fighter-{mission_id}-1", 700, 250, math.pi, E, UnitType.FIGHTER),
            create_unit(f"Enemy-Fighter-{mission_id}-2", 700, 350, math.pi, E, UnitType.FIGHTER),
        ),
        objectives=(
            DestroyUnitsObjective(
                id=f"{mission_id}-destroy",
                description="Destroy 2 enemy fighters.",
                count=2,
                target_unit_types=(UnitType.FIGHTER,),
            ),
        ),
    )


def _escort(mission_id: str, index: int, width: float, height: float, rng: random.Random) -> Mission:
    crew_skills = PilotSkills(composure=3, control=3, gunnery=3, guts=3)
    bombers = tuple(
        create_unit(
            f"Escort-Bomber-{tag}-{mission_id}", 100, y, 0.0, Team.PLAYER, UnitType.BOMBER,
            crew_skills, f"Escort Pilot {tag}", f"escort-pilot-{tag}-{mission_id}",
        )
        for tag, y in (("A", 200), ("B", 400))
    )
    bomber_ids = tuple(b.id for b in bombers)

    offset = 2 * SHIP_LENGTH + rng.random() * (height / 2 - 4 * SHIP_LENGTH)
    zone_y = offset if rng.random() < 0.5 else height - offset

    E = Team.ENEMY
    return Mission(
        id=mission_id,
        type=MissionType.ESCORT,
        name=f"Escort Convoy {index}",
        description="Protect friendly bombers from enemy interceptors and guide them to safety.",
        enemy_units=tuple(
            create_unit(f"Enemy-Interceptor-{mission_id}-{n}", 700, y, math.pi, E, UnitType.INTERCEPTOR)
            for n, y in ((1, 150), (2, 300), (3, 450))
        ),
        allied_units=bombers,
        objectives=(
            DestroyUnitsObjective(
                id=f"{mission_id}-destroy",
                description="Destroy 3 enemy interceptors.",
                count=3,
                target_unit_types=(UnitType.INTERCEPTOR,),
            ),
            ReachZoneAndReturnObjective(
                id=f"{mission_id}-run",
                description="Guide both bombers to the target zone and back to player's edge.",
                target_unit_ids=bomber_ids,
                target_zone=CircleZone(
                    x=width - ESCORT_TARGET_ZONE_INSET, y=zone_y,
                    radius=ESCORT_TARGET_ZONE_RADIUS, id=f"{mission_id}-target",
                ),
                escape_zone=player_escape_zone(height),
            ),
        ),
        player_unit_limit=2,
        player_pilot_limit=2,
        escort_target_unit_ids=bomber_ids,
        victory_points_award=VictoryPointsAward(per_escaped_target=1, per_destroyed_target=1),
    )


def _recon(mission_id: str, index: int, width: float, height: float, rng: random.Random) -> Mission:
    scout = create_unit(
        f"Recon-Scout-A-{mission_id}", 100, 200, 0.0, Team.PLAYER, UnitType.SCOUT,
        PilotSkills(composure=3, control=5, gunnery=1, guts=2),
        "Recon Pilot A", f"recon-pilot-A-{mission_id}",
    )
    E = Team.ENEMY
    enemies = (
        create_unit(f"Enemy-Interceptor-{mission_id}-1", 700, 150, math.pi, E, UnitType.INTERCEPTOR),
        create_unit(f"Enemy-Interceptor-{mission_id}-2", 700, 300, math.pi, E, UnitType.INTERCEPTOR),
    )

    zones = []
    for n in range(1, RECON_ZONE_COUNT + 1):
        zone = generate_random_zone(
            f"Target-Zone-{mission_id}-{n}", width, height,
            existing_units=enemies + (scout,), rng=rng,
        )
        if zone is None:
            logger.warning("Could not place recon zone %d for %s", n, mission_id)
            break
        zones.append(zone)

    return Mission(
        id=mission_id,
        type=MissionType.RECON,
        name=f"Recon Sector {index}",
        description="Escort a Scout craft as it Recons the sector.",
        enemy_units=enemies,
        allied_units=(scout,),
        objectives=(
            VisitMultipleZonesAndReturnObjective(
                id=f"{mission_id}-recon",
                description="Visit all target zones and return to player's edge.",
                target_unit_ids=(scout.id,),
                target_zones=tuple(zones),
                escape_zone=player_escape_zone(height),
            ),
        ),
        player_unit_limit=3,
        player_pilot_limit=3,
        escort_target_unit_ids=(scout.id,),
    )


def _intercept(mission_id: str, index: int, width: float, height: float, rng: random.Random) -> Mission:
    E = Team.ENEMY
    target_ids = (f"Enemy-Bomber-Target-{mission_id}-1", f"Enemy-Bomber-Target-{mission_id}-2")
    return Mission(
        id=mission_id,
        type=MissionType.INTERCEPT,
        name=f"Intercept Raid {index}",
        description="Stop enemy bombers and their escorts before they reach their target.",
        enemy_units=(
            create_unit(f"Enemy-Fighter-{mission_id}-1", 700, 250, math.pi, E, UnitType.FIGHTER),
            create_unit(f"Enemy-Fighter-{mission_id}-2", 700, 350, math.pi, E, UnitType.FIGHTER),
            create_unit(target_ids[0], 650, 300, math.pi, E, UnitType.BOMBER),
            create_unit(target_ids[1], 650, 400, math.pi, E, UnitType.BOMBER),
        ),
        objectives=(
            DestroyUnitsObjective(
                id=f"{mission_id}-destroy",
                description=f"Destroy both enemy target bombers ({target_ids[0]}, {target_ids[1]}).",
                count=2,
                target_unit_ids=target_ids,
            ),
        ),
    )


def _lone_wolf(mission_id: str, index: int, width: float, height: float, rng: random.Random) -> Mission:
    E = Team.ENEMY
    return Mission(
        id=mission_id,
        type=MissionType.LONE_WOLF,
        name=f"Lone Wolf: Deep Strike {index}",
        description="A single fighter against overwhelming odds. High risk, high reward.",
        enemy_units=tuple(
            create_unit(f"Enemy-Bomber-{mission_id}-{n}", 700, y, math.pi, E, UnitType.BOMBER)
            for n, y in ((1, 100), (2, 250), (3, 400), (4, 550))
        ),
        objectives=(
            DestroyUnitsObjective(
                id=f"{mission_id}-destroy",
                description="Destroy all 4 enemy bombers.",
                count=4,
                target_unit_types=(UnitType.BOMBER,),
            ),
        ),
        player_unit_limit=1,
        player_pilot_limit=1,
    )


MISSION_BUILDERS = {
    MissionType.DOGFIGHT: _dogfight,
    MissionType.ESCORT: _escort,
    MissionType.RECON: _recon,
    MissionType.INTERCEPT: _intercept,
    MissionType.LONE_WOLF: _lone_wolf,
}


def create_mission(
    mission_type: MissionType,
    mission_id: str,
    index: int = 1,
    width: float = CANVAS_WIDTH,
    height: float = CANVAS_HEIGHT,
    rng: Optional[random.Random] = None
) -> Mission:
    """Build a single mission of a given type."""
    return MISSION_BUILDERS[mission_type](mission_id, index, width, height, rng or random.Random())


def generate_missions(
    width: float = CANVAS_WIDTH,
    height: float = CANVAS_HEIGHT,
    rng: Optional[random.Random] = None
) -> list[Mission]:
    """
    Generate a fresh round of 2-4 missions of random types.

    Args:
        width: World width.
        height: World height.
        rng: Random source; mission ids are drawn from it so a seeded
            campaign is reproducible.

    Returns:
        The round's missions, all pending.
    """
    rng = rng or random.Random()
    round_tag = f"{rng.getrandbits(32):08x}"
    count = rng.randint(MIN_MISSIONS_PER_ROUND, MAX_MISSIONS_PER_ROUND)
    types = list(MissionType)

    missions = []
    for i in range(count):
        mission_type = rng.choice(types)
        missions.append(create_mission(mission_type, f"mission-{round_tag}-{i}", i + 1, width, height, rng))

    logger.info("Generated round %s: %s", round_tag, ", ".join(m.type.value for m in missions))
    return missions


# =============================================================================
# BATTLE ROSTER
# =============================================================================

def _spawn(unit: Unit, rng: random.Random, x_base: float, x_sign: int, angle: float) -> Unit:
    x = x_base + x_sign * rng.random() * SPAWN_X_JITTER
    y = SPAWN_Y_MIN + rng.random() * SPAWN_Y_SPREAD
    return reset_for_battle(unit, x, y, angle)


def get_units_for_mission(
    mission: Mission,
    barracks_units: Sequence[Unit],
    barracks_pilots: Sequence[Pilot],
    rng: Optional[random.Random] = None
) -> list[Unit]:
    """
    Build the battle roster for a mission.

    Each assignment binds its barracks hull to its pilot. A missing hull is
    replaced by a dummy fighter and a missing pilot by a default pilot; both
    are logged as errors rather than refused.

    Returns:
        Assigned player units, then allied mission units, then enemies,
        all at full combat stats.
    """
    rng = rng or random.Random()
    units_by_id = {u.id: u for u in barracks_units}
    pilots_by_id = {p.id: p for p in barracks_pilots}

    player_units = []
    for assignment in mission.assignments:
        unit = units_by_id.get(assignment.unit_id)
        if unit is None:
            logger.error("Unit %s not found in barracks for mission %s", assignment.unit_id, mission.id)
            unit = create_unit(
                "Dummy-Unit", 0, 0, 0, Team.PLAYER, UnitType.FIGHTER,
                pilot_name="Dummy Pilot", pilot_id="dummy-pilot",
            )
        else:
            pilot = pilots_by_id.get(assignment.pilot_id) if assignment.pilot_id else None
            if pilot is None:
                logger.error(
                    "Pilot %s not found for unit %s in mission %s",
                    assignment.pilot_id, assignment.unit_id, mission.id,
                )
                pilot = create_pilot("default-pilot", "Default Pilot")
            unit = unit.with_pilot(pilot)
        player_units.append(_spawn(unit, rng, PLAYER_SPAWN_X, 1, 0.0))

    allies = [_spawn(u, rng, PLAYER_SPAWN_X, 1, 0.0) for u in mission.allied_units]
    enemies = [_spawn(u, rng, ENEMY_SPAWN_X, -1, u.angle) for u in mission.enemy_units]
    return player_units + allies + enemies
