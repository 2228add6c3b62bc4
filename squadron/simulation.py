#!/usr/bin/env python3
"""
Resolution engine for the Squadron tactical simulator.

This module implements the per-tick pipeline of a resolution phase:
- Runs a fixed number of ticks (30 by default) per phase
- Moves every active unit along its curved maneuver path
- Applies asteroid collisions once per asteroid per unit per phase
- Resolves weapon fire and the morale ripple from kills
- Re-evaluates mission objectives and the battle outcome

Every tick reads one snapshot and returns a new one; nothing is mutated in
place. The engine keeps a structured event log for analysis and replay.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Callable, Optional, Sequence

from .asteroids import COLLISION_DAMAGE_PER_SPEED, COLLISION_MORALE_PENALTY, Asteroid
from .combat import CombatResolver, apply_morale_ripple, deal_damage
from .config import DEFAULT_CONFIG, GameConfig
from .geometry import CollisionDetector, get_unit_polygon
from .maneuvers import initialize_maneuver, travel_angle
from .objectives import ObjectiveEventType, check_mission_victory_conditions
from .physics import point_from_distance_and_angle
from .units import ManeuverType, Unit
from .victory import BattleOutcome, VictoryEvaluator

logger = logging.getLogger(__name__)


# =============================================================================
# EVENT TYPES
# =============================================================================

class SimulationEventType(Enum):
    """Types of events that can occur during resolution."""
    # Phase events
    RESOLUTION_STARTED = auto()
    RESOLUTION_ENDED = auto()

    # Combat events
    WEAPON_FIRED = auto()
    UNIT_DESTROYED = auto()
    ASTEROID_COLLISION = auto()

    # Objective events
    ZONE_REACHED = auto()
    ZONE_VISITED = auto()
    UNIT_ESCAPED = auto()
    OBJECTIVE_COMPLETED = auto()

    # Battle flow events
    BATTLE_ENDED = auto()
    MISSION_ENDED = auto()
    ROUND_STARTED = auto()


_OBJECTIVE_EVENT_TYPES = {
    ObjectiveEventType.ZONE_REACHED: SimulationEventType.ZONE_REACHED,
    ObjectiveEventType.ZONE_VISITED: SimulationEventType.ZONE_VISITED,
    ObjectiveEventType.UNIT_ESCAPED: SimulationEventType.UNIT_ESCAPED,
    ObjectiveEventType.OBJECTIVE_COMPLETED: SimulationEventType.OBJECTIVE_COMPLETED,
}


# =============================================================================
# SIMULATION EVENT
# =============================================================================

@dataclass
class SimulationEvent:
    """
    An event that occurs during resolution.

    Attributes:
        event_type: The type of event.
        tick: Resolution tick when the event occurred.
        unit_id: ID of the unit involved (if applicable).
        target_id: ID of the target (if applicable).
        data: Additional event-specific data.
    """
    event_type: SimulationEventType
    tick: int
    unit_id: Optional[str] = None
    target_id: Optional[str] = None
    data: dict = field(default_factory=dict)

    def __str__(self) -> str:
        unit_str = f"[{self.unit_id}]" if self.unit_id else ""
        target_str = f" -> {self.target_id}" if self.target_id else ""
        return f"T{self.tick:02d} {unit_str} {self.event_type.name}{target_str}"


# =============================================================================
# MOTION
# =============================================================================

def update_unit_position(unit: Unit, max_ticks: int, ship_length: float) -> Unit:
    """
    Advance one unit by one tick.

    Moves speed*ship_length/max_ticks along the curved path, points the
    unit along its travel direction, charges the weapon by one and ages the
    firing line.
    """
    progress = min(unit.maneuver_progress + 1 / max_ticks, 1.0)
    heading = travel_angle(unit, progress)
    step = unit.speed * ship_length / max_ticks
    position = point_from_distance_and_angle(unit.position, step, heading)

    firing_line = unit.firing_line
    if firing_line is not None:
        remaining = firing_line.ticks_remaining - 1
        firing_line = replace(firing_line, ticks_remaining=remaining) if remaining > 0 else None

    return replace(
        unit,
        x=position.x,
        y=position.y,
        angle=heading,
        maneuver_progress=progress,
        weapon_charge=min(unit.weapon_charge + 1, unit.max_weapon_charge),
        firing_line=firing_line,
    )


def clamp_to_bounds(unit: Unit, width: float, height: float, margin: float) -> Unit:
    """Keep a unit inside the world, `margin` pixels from each edge."""
    x = max(margin, min(width - margin, unit.x))
    y = max(margin, min(height - margin, unit.y))
    if x == unit.x and y == unit.y:
        return unit
    return replace(unit, x=x, y=y)


def resolve_asteroid_collisions(
    units: Sequence[Unit],
    asteroids: Sequence[Asteroid],
    tick: int = 0
) -> tuple[list[Unit], list[Asteroid], list[SimulationEvent]]:
    """
    Damage units touching asteroids.

    Contact costs 10 damage per point of speed and 15 morale, once per
    asteroid per unit per phase.

    Returns:
        Updated units, updated asteroids and collision events.
    """
    new_units = list(units)
    new_asteroids = list(asteroids)
    events = []

    for i, unit in enumerate(new_units):
        if not unit.is_active:
            continue
        polygon = get_unit_polygon(unit)
        for j, asteroid in enumerate(new_asteroids):
            if unit.id in asteroid.collided_units_this_phase:
                continue
            if not CollisionDetector.polygon_rectangle_collision(asteroid.points, polygon):
                continue

            damage = COLLISION_DAMAGE_PER_SPEED * unit.speed
            hit = deal_damage(new_units[i], damage).with_morale_delta(-COLLISION_MORALE_PENALTY)
            new_units[i] = hit
            new_asteroids[j] = asteroid.with_collision(unit.id)
            events.append(SimulationEvent(
                SimulationEventType.ASTEROID_COLLISION, tick, unit.id, asteroid.id,
                {"damage": damage},
            ))
            logger.debug("%s hit %s at speed %d for %d damage", unit.id, asteroid.id, unit.speed, damage)
            if hit.is_destroyed:
                break

    return new_units, new_asteroids, events


# =============================================================================
# TICK RESULT
# =============================================================================

@dataclass
class TickResult:
    """
    Snapshot after one tick.

    Attributes:
        units: All units.
        asteroids: Asteroids with updated collision sets.
        mission: Mission with updated objectives (None in skirmish).
        tick: Tick counter after this tick.
        outcome: Battle outcome as of this tick.
        events: Events raised during the tick.
    """
    units: list[Unit]
    asteroids: list[Asteroid]
    mission: Optional[object]
    tick: int
    outcome: BattleOutcome = BattleOutcome.ONGOING
    events: list[SimulationEvent] = field(default_factory=list)


# =============================================================================
# RESOLUTION ENGINE
# =============================================================================

class ResolutionEngine:
    """
    Runs resolution phases.

    The engine owns the random source for combat and the event log. It
    holds no battle state of its own: callers pass a snapshot in and get a
    new one back.

    Example:
        >>> engine = ResolutionEngine(rng=random.Random(7))
        >>> units, asteroids = engine.begin_phase(units, asteroids)
        >>> result = engine.resolve_tick(units, asteroids, tick=0, is_skirmish=True)
    """

    def __init__(
        self,
        config: GameConfig = DEFAULT_CONFIG,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: World configuration.
            rng: Random number generator for reproducible results.
        """
        self.config = config
        self.rng = rng or random.Random()
        self.combat = CombatResolver(rng=self.rng)
        self.victory = VictoryEvaluator()
        self.events: list[SimulationEvent] = []
        self._event_callbacks: list[Callable[[SimulationEvent], None]] = []

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_event(self, callback: Callable[[SimulationEvent], None]) -> None:
        """Register a callback invoked for every logged event."""
        self._event_callbacks.append(callback)

    def _log_event(self, event: SimulationEvent) -> None:
        self.events.append(event)
        for callback in self._event_callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Event callback failed for %s", event)

    def log_event(
        self,
        event_type: SimulationEventType,
        tick: int,
        unit_id: Optional[str] = None,
        target_id: Optional[str] = None,
        **data,
    ) -> None:
        self._log_event(SimulationEvent(event_type, tick, unit_id, target_id, data))

    # -------------------------------------------------------------------------
    # Phase boundaries
    # -------------------------------------------------------------------------

    def begin_phase(
        self,
        units: Sequence[Unit],
        asteroids: Sequence[Asteroid],
    ) -> tuple[list[Unit], list[Asteroid]]:
        """
        Lock every unit's plan and clear asteroid collision records.
        """
        max_ticks = self.config.max_resolution_ticks
        locked = [initialize_maneuver(u, max_ticks) if u.is_active else u for u in units]
        fresh = [a.reset_collisions() for a in asteroids]
        self.log_event(SimulationEventType.RESOLUTION_STARTED, 0, units=len(locked))
        return locked, fresh

    def end_phase(self, units: Sequence[Unit], tick: int = 0) -> list[Unit]:
        """
        Settle units at the end of a phase.

        Active pilots recover morale equal to their composure, hulls snap to
        their final orientation, and a one-eight-oh leaves the unit at
        speed 1.
        """
        settled = []
        for unit in units:
            if not unit.is_active:
                settled.append(unit)
                continue
            recovery = unit.pilot.skills.composure if unit.pilot else 0
            unit = unit.with_morale_delta(recovery)
            unit = replace(unit, angle=unit.initial_angle + unit.final_orientation_change)
            if unit.planned_maneuver is ManeuverType.ONE_EIGHT_OH:
                unit = replace(unit, speed=1)
            settled.append(unit)
        self.log_event(SimulationEventType.RESOLUTION_ENDED, tick)
        return settled

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def resolve_tick(
        self,
        units: Sequence[Unit],
        asteroids: Sequence[Asteroid],
        tick: int,
        mission=None,
        is_skirmish: bool = False,
    ) -> TickResult:
        """
        Resolve one tick.

        Pipeline: move, clamp to bounds, asteroid collisions, weapon fire,
        kill morale ripple, objectives, outcome.

        Args:
            units: Snapshot at the start of the tick.
            asteroids: Asteroid field.
            tick: Tick counter before this tick.
            mission: Current campaign mission, or None.
            is_skirmish: Whether annihilation decides the battle.

        Returns:
            TickResult with the new snapshot.
        """
        cfg = self.config
        previous = list(units)
        was_destroyed = {u.id for u in previous if u.is_destroyed}
        events: list[SimulationEvent] = []

        moved = [
            clamp_to_bounds(
                update_unit_position(u, cfg.max_resolution_ticks, cfg.ship_length),
                cfg.canvas_width, cfg.canvas_height, cfg.bounds_margin,
            ) if u.is_active else u
            for u in previous
        ]

        moved, new_asteroids, collision_events = resolve_asteroid_collisions(moved, asteroids, tick)
        events.extend(collision_events)

        fire = self.combat.resolve_fire(moved)
        for burst in fire.bursts:
            events.append(SimulationEvent(
                SimulationEventType.WEAPON_FIRED, tick, burst.attacker_id, burst.target_id,
                {"shots": burst.shots, "hits": burst.hits, "damage": burst.damage},
            ))

        newly_destroyed = [u.id for u in fire.units if u.is_destroyed and u.id not in was_destroyed]
        for unit_id in newly_destroyed:
            events.append(SimulationEvent(SimulationEventType.UNIT_DESTROYED, tick, unit_id))
        current = apply_morale_ripple(fire.units, newly_destroyed)

        objectives_complete = False
        if mission is not None:
            evaluation = check_mission_victory_conditions(
                mission, current, previous, cfg.unit_collision_radius
            )
            mission = evaluation.mission
            current = evaluation.units
            objectives_complete = evaluation.is_mission_complete
            for obj_event in evaluation.events:
                events.append(SimulationEvent(
                    _OBJECTIVE_EVENT_TYPES[obj_event.event_type], tick, obj_event.unit_id,
                    data={"objective_id": obj_event.objective_id, "zone_id": obj_event.zone_id},
                ))

        outcome, reason = self.victory.evaluate(current, mission, objectives_complete, is_skirmish)
        if outcome.is_decided:
            events.append(SimulationEvent(
                SimulationEventType.BATTLE_ENDED, tick, data={"outcome": outcome.value, "reason": reason}
            ))
            logger.info("Tick %d: %s (%s)", tick, outcome.value, reason)

        for event in events:
            self._log_event(event)

        return TickResult(
            units=current,
            asteroids=new_asteroids,
            mission=mission,
            tick=tick + 1,
            outcome=outcome,
            events=events,
        )

    def run_phase(
        self,
        units: Sequence[Unit],
        asteroids: Sequence[Asteroid],
        mission=None,
        is_skirmish: bool = False,
    ) -> TickResult:
        """
        Run a full phase: lock plans, tick until the cap or a decided
        outcome, then settle units.
        """
        units, asteroids = self.begin_phase(units, asteroids)
        result = TickResult(units=list(units), asteroids=list(asteroids), mission=mission, tick=0)

        while result.tick < self.config.max_resolution_ticks and not result.outcome.is_decided:
            result = self.resolve_tick(
                result.units, result.asteroids, result.tick, result.mission, is_skirmish
            )

        result.units = self.end_phase(result.units, result.tick)
        return result
