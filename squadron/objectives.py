"""
Mission objectives for the Squadron tactical simulator.

Objectives form a closed set of three frozen dataclasses:

- DestroyUnitsObjective: destroy a number of listed units or unit types
- ReachZoneAndReturnObjective: fly through a target circle, then escape
- VisitMultipleZonesAndReturnObjective: visit every listed circle, then escape

check_mission_victory_conditions is a pure function of the mission and the
unit list. It returns new objective values, units flipped to ESCAPED, and
the progress events raised this evaluation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Optional, Sequence, Union

from .config import UNIT_COLLISION_RADIUS
from .geometry import CircleZone, RectZone, aabb_overlaps_zone, segment_circle_distance
from .physics import Vector2D, get_distance
from .units import Team, Unit, UnitStatus, UnitType

logger = logging.getLogger(__name__)


# =============================================================================
# OBJECTIVE TYPES
# =============================================================================

@dataclass(frozen=True)
class DestroyUnitsObjective:
    """
    Destroy `count` units.

    Matching is by explicit id when target_unit_ids is given, otherwise by
    enemy units whose type is in target_unit_types.
    """
    id: str
    description: str
    count: int
    target_unit_ids: tuple[str, ...] = ()
    target_unit_types: tuple[UnitType, ...] = ()
    is_completed: bool = False

    def destroyed_count(self, units: Sequence[Unit]) -> int:
        if self.target_unit_ids:
            return sum(1 for u in units if u.is_destroyed and u.id in self.target_unit_ids)
        return sum(
            1 for u in units
            if u.is_destroyed and u.team is Team.ENEMY and u.unit_type in self.target_unit_types
        )


@dataclass(frozen=True)
class ReachZoneAndReturnObjective:
    """
    Every tracked unit must pass through target_zone and then reach
    escape_zone.
    """
    id: str
    description: str
    target_unit_ids: tuple[str, ...]
    target_zone: CircleZone
    escape_zone: RectZone
    reached_unit_ids: frozenset[str] = frozenset()
    escaped_unit_ids: frozenset[str] = frozenset()
    is_completed: bool = False

    def has_reached_zone(self, unit_id: str) -> bool:
        return unit_id in self.reached_unit_ids

    def has_escaped_zone(self, unit_id: str) -> bool:
        return unit_id in self.escaped_unit_ids


@dataclass(frozen=True)
class VisitMultipleZonesAndReturnObjective:
    """
    The tracked units must visit every zone in target_zones between them;
    escape is honoured only once all zones have been visited.
    """
    id: str
    description: str
    target_unit_ids: tuple[str, ...]
    target_zones: tuple[CircleZone, ...]
    escape_zone: RectZone
    visited_zone_ids: frozenset[str] = frozenset()
    escaped_unit_ids: frozenset[str] = frozenset()
    is_completed: bool = False

    def has_visited_zone(self, zone_id: str) -> bool:
        return zone_id in self.visited_zone_ids

    def has_escaped_zone(self, unit_id: str) -> bool:
        return unit_id in self.escaped_unit_ids

    @property
    def all_zones_visited(self) -> bool:
        return all(zone.id in self.visited_zone_ids for zone in self.target_zones)


MissionObjective = Union[
    DestroyUnitsObjective,
    ReachZoneAndReturnObjective,
    VisitMultipleZonesAndReturnObjective,
]


# =============================================================================
# EVALUATION RESULT
# =============================================================================

class ObjectiveEventType(Enum):
    """Progress raised while evaluating objectives."""
    ZONE_REACHED = auto()
    ZONE_VISITED = auto()
    UNIT_ESCAPED = auto()
    OBJECTIVE_COMPLETED = auto()


@dataclass(frozen=True)
class ObjectiveEvent:
    event_type: ObjectiveEventType
    objective_id: str
    unit_id: Optional[str] = None
    zone_id: Optional[str] = None


@dataclass
class ObjectiveEvaluation:
    """
    Result of one objective evaluation.

    Attributes:
        mission: Mission with updated objectives.
        units: Units, with escapees flipped to ESCAPED.
        is_mission_complete: True when every objective is complete.
        events: Progress raised by this evaluation.
    """
    mission: object
    units: list[Unit]
    is_mission_complete: bool
    events: list[ObjectiveEvent] = field(default_factory=list)


# =============================================================================
# EVALUATOR
# =============================================================================

def _reached_target_zone(
    unit: Unit,
    previous: Optional[Unit],
    zone: CircleZone,
    buffer: float
) -> bool:
    start = previous.position if previous is not None else unit.position
    centre = Vector2D(zone.x, zone.y)
    return segment_circle_distance(start, unit.position, centre) <= zone.radius + buffer


def _mark_escaped(units: list[Unit], unit_id: str) -> None:
    for i, u in enumerate(units):
        if u.id == unit_id:
            units[i] = replace(u, status=UnitStatus.ESCAPED)
            return


def _evaluate_reach_zone(
    objective: ReachZoneAndReturnObjective,
    units: list[Unit],
    previous: dict[str, Unit],
    events: list[ObjectiveEvent],
    buffer: float
) -> ReachZoneAndReturnObjective:
    reached = set(objective.reached_unit_ids)
    escaped = set(objective.escaped_unit_ids)
    by_id = {u.id: u for u in units}

    for unit_id in objective.target_unit_ids:
        unit = by_id.get(unit_id)
        if unit is None or not unit.is_active:
            continue

        if unit_id not in reached and _reached_target_zone(
            unit, previous.get(unit_id), objective.target_zone, buffer
        ):
            reached.add(unit_id)
            events.append(ObjectiveEvent(ObjectiveEventType.ZONE_REACHED, objective.id, unit_id))
            logger.info("%s reached the target zone", unit_id)

        if unit_id in reached and unit_id not in escaped:
            if aabb_overlaps_zone(unit, objective.escape_zone, buffer):
                escaped.add(unit_id)
                _mark_escaped(units, unit_id)
                events.append(ObjectiveEvent(ObjectiveEventType.UNIT_ESCAPED, objective.id, unit_id))
                logger.info("%s escaped", unit_id)

    completed = all(uid in escaped for uid in objective.target_unit_ids)
    return replace(
        objective,
        reached_unit_ids=frozenset(reached),
        escaped_unit_ids=frozenset(escaped),
        is_completed=completed,
    )


def _evaluate_visit_zones(
    objective: VisitMultipleZonesAndReturnObjective,
    units: list[Unit],
    events: list[ObjectiveEvent],
    buffer: float
) -> VisitMultipleZonesAndReturnObjective:
    visited = set(objective.visited_zone_ids)
    escaped = set(objective.escaped_unit_ids)
    by_id = {u.id: u for u in units}

    for unit_id in objective.target_unit_ids:
        unit = by_id.get(unit_id)
        if unit is None or not unit.is_active:
            continue

        for zone in objective.target_zones:
            if zone.id not in visited and get_distance(unit, zone) <= zone.radius + buffer:
                visited.add(zone.id)
                events.append(ObjectiveEvent(
                    ObjectiveEventType.ZONE_VISITED, objective.id, unit_id, zone.id
                ))
                logger.info("%s visited zone %s", unit_id, zone.id)

        all_visited = all(zone.id in visited for zone in objective.target_zones)
        if all_visited and unit_id not in escaped:
            if aabb_overlaps_zone(unit, objective.escape_zone, buffer):
                escaped.add(unit_id)
                _mark_escaped(units, unit_id)
                events.append(ObjectiveEvent(ObjectiveEventType.UNIT_ESCAPED, objective.id, unit_id))
                logger.info("%s escaped", unit_id)

    completed = (
        all(zone.id in visited for zone in objective.target_zones)
        and all(uid in escaped for uid in objective.target_unit_ids)
    )
    return replace(
        objective,
        visited_zone_ids=frozenset(visited),
        escaped_unit_ids=frozenset(escaped),
        is_completed=completed,
    )


def evaluate_objective(
    objective: MissionObjective,
    units: list[Unit],
    previous: dict[str, Unit],
    events: list[ObjectiveEvent],
    buffer: float = UNIT_COLLISION_RADIUS
) -> MissionObjective:
    """
    Re-evaluate one objective. Escapes are written into `units` in place
    and progress is appended to `events`.
    """
    if objective.is_completed:
        return objective

    if isinstance(objective, DestroyUnitsObjective):
        if objective.destroyed_count(units) >= objective.count:
            return replace(objective, is_completed=True)
        return objective
    if isinstance(objective, ReachZoneAndReturnObjective):
        return _evaluate_reach_zone(objective, units, previous, events, buffer)
    if isinstance(objective, VisitMultipleZonesAndReturnObjective):
        return _evaluate_visit_zones(objective, units, events, buffer)

    raise TypeError(f"Unknown objective type: {type(objective).__name__}")


def check_mission_victory_conditions(
    mission,
    units: Sequence[Unit],
    previous_units: Optional[Sequence[Unit]] = None,
    buffer: float = UNIT_COLLISION_RADIUS
) -> ObjectiveEvaluation:
    """
    Evaluate every objective of a mission against the current units.

    Args:
        mission: Mission whose objectives are checked.
        units: Units after this tick's movement and combat.
        previous_units: Units at the start of the tick, used to sweep zone
            entry along each unit's movement segment.
        buffer: Unit half extent added to zone radii and escape footprints.

    Returns:
        ObjectiveEvaluation with the updated mission and units.
    """
    working = list(units)
    previous = {u.id: u for u in previous_units} if previous_units else {}
    events: list[ObjectiveEvent] = []

    objectives = []
    for objective in mission.objectives:
        was_completed = objective.is_completed
        updated = evaluate_objective(objective, working, previous, events, buffer)
        if updated.is_completed and not was_completed:
            events.append(ObjectiveEvent(ObjectiveEventType.OBJECTIVE_COMPLETED, updated.id))
            logger.info("Objective completed: %s", updated.description)
        objectives.append(updated)

    return ObjectiveEvaluation(
        mission=replace(mission, objectives=tuple(objectives)),
        units=working,
        is_mission_complete=bool(objectives) and all(o.is_completed for o in objectives),
        events=events,
    )


def escort_targets_lost(mission, units: Sequence[Unit]) -> bool:
    """
    True when the mission has escort targets and all of them are destroyed.

    An escaped escort target is never lost.
    """
    target_ids = set(mission.escort_target_unit_ids)
    if not target_ids:
        return False
    targets = [u for u in units if u.id in target_ids]
    return bool(targets) and all(u.is_destroyed for u in targets)
