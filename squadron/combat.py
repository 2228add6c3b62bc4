"""
Combat mechanics module for the Squadron tactical simulator.

This module handles weapon fire between units:
- Attack envelope (range, forward cone and firing corridor)
- Per-shot evasion and hit rolls driven by pilot skills and morale
- Shield-then-hull damage
- Burst resolution with morale feedback and firing-line records
- Team-wide morale ripple when a unit is destroyed

All randomness flows through CombatResolver.rng so a seeded game replays
identically.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Sequence

from .physics import get_distance
from .units import (
    FiringLine,
    TargetMode,
    Unit,
    UnitStatus,
    get_unit_type_stats,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

FIRING_CONE_HALF_ANGLE = math.pi / 6  # 60 degree cone in total
FIRING_CORRIDOR_HALF_WIDTH = 20.0  # pixels either side of the nose line

BASE_ACCURACY = 0.5
ACCURACY_PER_GUNNERY = 0.04
HIGH_MORALE_THRESHOLD = 75
VERY_HIGH_MORALE_THRESHOLD = 100
LOW_MORALE_THRESHOLD = 25
MORALE_ACCURACY_MODIFIER = 0.05

EVASION_PER_CONTROL = 0.02
EVASION_PER_SPEED = 0.02

HIT_MORALE_GAIN = 5
HIT_MORALE_LOSS = 5
KILL_MORALE_SWING = 10


# =============================================================================
# ATTACK ENVELOPE
# =============================================================================

def is_in_attack_range(attacker: Unit, target: Unit) -> bool:
    """
    Check whether a target sits in the attacker's firing envelope.

    The envelope is the intersection of a disc of weapon_range, a 60 degree
    forward cone and a 40px wide corridor along the nose line.

    Args:
        attacker: Firing unit.
        target: Candidate target.

    Returns:
        True if all three tests pass.
    """
    dx = target.x - attacker.x
    dy = target.y - attacker.y
    distance = math.hypot(dx, dy)

    if distance > attacker.weapon_range:
        return False
    if distance == 0:
        return True

    forward_x = math.cos(attacker.angle)
    forward_y = math.sin(attacker.angle)

    dot = forward_x * dx / distance + forward_y * dy / distance
    if dot < math.cos(FIRING_CONE_HALF_ANGLE):
        return False

    cross = abs(forward_x * dy - forward_y * dx)
    return cross <= FIRING_CORRIDOR_HALF_WIDTH


def find_best_target(unit: Unit, enemies: Iterable[Unit]) -> Optional[Unit]:
    """Nearest active enemy inside the attack envelope, or None."""
    valid = [e for e in enemies if e.is_active and is_in_attack_range(unit, e)]
    if not valid:
        return None
    return min(valid, key=lambda e: get_distance(unit, e))


def can_fire_weapon(unit: Unit) -> bool:
    return unit.weapon_charge >= unit.max_weapon_charge


# =============================================================================
# HIT RESOLUTION
# =============================================================================

def calculate_accuracy(gunnery: int, morale: int) -> float:
    """
    Chance for an unevaded shot to hit.

    50% base, +4% per gunnery point, +5% at morale 75 and another +5% at
    100, -5% at morale 25 or below. Clamped to [0, 1].
    """
    accuracy = BASE_ACCURACY + gunnery * ACCURACY_PER_GUNNERY
    if morale >= HIGH_MORALE_THRESHOLD:
        accuracy += MORALE_ACCURACY_MODIFIER
    if morale >= VERY_HIGH_MORALE_THRESHOLD:
        accuracy += MORALE_ACCURACY_MODIFIER
    if morale <= LOW_MORALE_THRESHOLD:
        accuracy -= MORALE_ACCURACY_MODIFIER
    return max(0.0, min(1.0, accuracy))


def calculate_evasion(control: int, speed: int) -> float:
    """Chance for the target to evade a shot: 2% per control and per speed."""
    return control * EVASION_PER_CONTROL + speed * EVASION_PER_SPEED


def roll_attack(
    attacker_gunnery: int,
    attacker_morale: int,
    target_control: int,
    target_speed: int,
    rng: Optional[random.Random] = None
) -> bool:
    """
    Roll a single shot.

    Evasion is rolled first; an evaded shot is a clean miss. Otherwise the
    shot hits with the attacker's accuracy.

    Args:
        attacker_gunnery: Shooter's gunnery skill.
        attacker_morale: Shooter's current morale.
        target_control: Target pilot's control skill.
        target_speed: Target's current speed.
        rng: Random source (module-level random if omitted).

    Returns:
        True on a hit.
    """
    rng = rng or random
    if rng.random() < calculate_evasion(target_control, target_speed):
        return False
    return rng.random() < calculate_accuracy(attacker_gunnery, attacker_morale)


def deal_damage(target: Unit, damage: float) -> Unit:
    """
    Apply damage to shield first, then hull.

    A hull at or below zero is pinned at zero and the unit is destroyed.
    """
    shield = target.shield
    health = target.health
    status = target.status

    absorbed = min(damage, shield) if shield > 0 else 0
    shield -= absorbed
    damage -= absorbed

    if damage > 0:
        health -= damage
        if health <= 0:
            health = 0
            status = UnitStatus.DESTROYED

    return replace(target, shield=shield, health=health, status=status)


def create_firing_line(from_unit: Unit, target: Unit, hit: bool) -> Unit:
    """Attach a firing-line record to the shooter and reset its charge."""
    line = FiringLine(
        from_x=from_unit.x,
        from_y=from_unit.y,
        to_x=target.x,
        to_y=target.y,
        has_target=hit,
    )
    return replace(from_unit, firing_line=line, weapon_charge=0)


# =============================================================================
# BURST RESULT
# =============================================================================

@dataclass
class BurstResult:
    """
    Outcome of one unit's burst.

    Attributes:
        attacker_id: Shooter.
        target_id: Target.
        shots: Shots fired.
        hits: Shots that landed.
        damage: Total damage applied.
        target_destroyed: Whether the burst destroyed the target.
    """
    attacker_id: str
    target_id: str
    shots: int
    hits: int = 0
    damage: float = 0
    target_destroyed: bool = False

    @property
    def any_hit(self) -> bool:
        return self.hits > 0


@dataclass
class FireResolution:
    """All units after a fire step plus what happened."""
    units: list[Unit]
    bursts: list[BurstResult] = field(default_factory=list)
    destroyed_ids: list[str] = field(default_factory=list)


# =============================================================================
# COMBAT RESOLVER
# =============================================================================

class CombatResolver:
    """
    Resolves weapon fire for a tick.

    Units fire in list order. A unit destroyed earlier in the same tick no
    longer fires, and targets are looked up in the working list so damage
    from earlier bursts is already applied.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the combat resolver.

        Args:
            rng: Optional random number generator for reproducible results.
        """
        self.rng = rng or random.Random()

    def roll_attack(self, attacker: Unit, target: Unit) -> bool:
        """Roll one shot from attacker at target."""
        gunnery = attacker.pilot.skills.gunnery if attacker.pilot else 0
        morale = attacker.pilot.morale if attacker.pilot else 0
        control = target.pilot.skills.control if target.pilot else 0
        return roll_attack(gunnery, morale, control, target.speed, self.rng)

    def select_target(self, unit: Unit, units: Sequence[Unit]) -> Optional[Unit]:
        """
        Pick the unit's target for this tick.

        Target-specific mode fires only at the named unit and only if it is
        in range. Fire-at-will picks the nearest enemy in range.
        """
        enemies = [u for u in units if u.team is not unit.team and u.is_active]

        if unit.target_mode is TargetMode.TARGET_SPECIFIC:
            if unit.specific_target is None:
                return None
            for enemy in enemies:
                if enemy.id == unit.specific_target:
                    return enemy if is_in_attack_range(unit, enemy) else None
            return None

        return find_best_target(unit, enemies)

    def resolve_burst(self, attacker: Unit, target: Unit) -> tuple[Unit, Unit, BurstResult]:
        """
        Fire a full burst and apply its consequences.

        Damage from every hitting shot is summed and applied once. Any hit
        swings morale: shooter +5, target -5.

        Returns:
            Updated attacker, updated target and the burst result.
        """
        damage_per_hit = get_unit_type_stats(attacker.unit_type).damage
        result = BurstResult(attacker_id=attacker.id, target_id=target.id, shots=attacker.burst)

        for shot in range(attacker.burst):
            if self.roll_attack(attacker, target):
                result.hits += 1
                result.damage += damage_per_hit
                logger.debug("%s shot %d hit %s for %d", attacker.id, shot + 1, target.id, damage_per_hit)
            else:
                logger.debug("%s shot %d missed %s", attacker.id, shot + 1, target.id)

        if result.any_hit:
            target = deal_damage(target, result.damage).with_morale_delta(-HIT_MORALE_LOSS)
            attacker = attacker.with_morale_delta(HIT_MORALE_GAIN)
            result.target_destroyed = target.is_destroyed

        attacker = create_firing_line(attacker, target, result.any_hit)
        return attacker, target, result

    def resolve_fire(self, units: Sequence[Unit]) -> FireResolution:
        """
        Let every charged, active unit fire once.

        Args:
            units: Units after movement and collisions for this tick.

        Returns:
            FireResolution with the updated units, the bursts fired and the
            ids of units destroyed by fire.
        """
        working = list(units)
        index = {u.id: i for i, u in enumerate(working)}
        resolution = FireResolution(units=working)

        for i in range(len(working)):
            unit = working[i]
            if not unit.is_active or not can_fire_weapon(unit):
                continue

            target = self.select_target(unit, working)
            if target is None:
                continue

            attacker, target, result = self.resolve_burst(unit, target)
            working[i] = attacker
            working[index[target.id]] = target
            resolution.bursts.append(result)
            if result.target_destroyed:
                resolution.destroyed_ids.append(target.id)
                logger.info("%s destroyed %s", attacker.id, target.id)

        return resolution


def apply_morale_ripple(units: Sequence[Unit], destroyed_ids: Iterable[str]) -> list[Unit]:
    """
    Shift morale across both teams for each newly destroyed unit.

    Allies of the destroyed unit lose 10, its enemies gain 10. Units that
    are no longer active are left alone.
    """
    result = list(units)
    teams = {u.id: u.team for u in result}
    for destroyed_id in destroyed_ids:
        lost_team = teams.get(destroyed_id)
        if lost_team is None:
            continue
        result = [
            u if not u.is_active
            else u.with_morale_delta(-KILL_MORALE_SWING if u.team is lost_team else KILL_MORALE_SWING)
            for u in result
        ]
    return result
