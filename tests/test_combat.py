"""
Unit tests for the combat mechanics module.

Run with: python -m pytest tests/test_combat.py -v
"""

import math
import random
from dataclasses import replace

import numpy as np
import pytest

from squadron.combat import (
    CombatResolver,
    apply_morale_ripple,
    calculate_accuracy,
    calculate_evasion,
    can_fire_weapon,
    create_firing_line,
    deal_damage,
    find_best_target,
    is_in_attack_range,
    roll_attack,
)
from squadron.units import (
    PilotSkills,
    TargetMode,
    Team,
    UnitStatus,
    UnitType,
    create_unit,
)


# Fixtures

@pytest.fixture
def attacker():
    """Player fighter at (100, 300) facing east with a charged weapon."""
    unit = create_unit(
        "Player-Fighter-1", 100, 300, 0.0, Team.PLAYER, UnitType.FIGHTER,
        PilotSkills(composure=1, control=1, gunnery=5, guts=1),
    )
    return replace(unit, weapon_charge=unit.max_weapon_charge)


@pytest.fixture
def target():
    """Enemy fighter 80px ahead of the attacker."""
    return create_unit("Enemy-Fighter-1", 180, 300, math.pi, Team.ENEMY, UnitType.FIGHTER)


# =============================================================================
# ATTACK ENVELOPE
# =============================================================================

class TestAttackRange:
    """Tests for the range/cone/corridor firing envelope."""

    def test_target_dead_ahead(self, attacker, target):
        assert is_in_attack_range(attacker, target)

    def test_target_beyond_range(self, attacker, target):
        far = replace(target, x=attacker.x + attacker.weapon_range + 1)
        assert not is_in_attack_range(attacker, far)

    def test_target_behind(self, attacker, target):
        behind = replace(target, x=attacker.x - 50)
        assert not is_in_attack_range(attacker, behind)

    def test_target_outside_corridor(self, attacker, target):
        # Inside the 60 degree cone at 110px but 25px off the nose line.
        offset = replace(target, x=attacker.x + 107, y=attacker.y + 25)
        assert not is_in_attack_range(attacker, offset)

    def test_target_outside_cone(self, attacker, target):
        # Inside the corridor but at a steep angle close in.
        close = replace(target, x=attacker.x + 10, y=attacker.y + 15)
        assert not is_in_attack_range(attacker, close)

    def test_find_best_target_picks_nearest(self, attacker, target):
        nearer = replace(target, id="Enemy-Fighter-2", x=150)
        assert find_best_target(attacker, [target, nearer]).id == "Enemy-Fighter-2"

    def test_find_best_target_skips_inactive(self, attacker, target):
        gone = replace(target, status=UnitStatus.DESTROYED)
        assert find_best_target(attacker, [gone]) is None

    def test_can_fire_weapon(self, attacker):
        assert can_fire_weapon(attacker)
        assert not can_fire_weapon(replace(attacker, weapon_charge=attacker.max_weapon_charge - 1))


# =============================================================================
# HIT ROLLS
# =============================================================================

class TestHitRolls:
    """Tests for accuracy, evasion and shot rolls."""

    @pytest.mark.parametrize("gunnery,morale,expected", [
        (0, 50, 0.50),
        (5, 50, 0.70),
        (5, 80, 0.75),
        (5, 100, 0.80),
        (5, 25, 0.65),
        (10, 120, 1.0),
    ])
    def test_accuracy(self, gunnery, morale, expected):
        assert calculate_accuracy(gunnery, morale) == pytest.approx(expected)

    def test_evasion(self):
        assert calculate_evasion(3, 4) == pytest.approx(0.14)

    def test_hit_rate_converges(self):
        rng = random.Random(1234)
        trials = 20000
        hits = np.array([roll_attack(5, 80, 0, 0, rng) for _ in range(trials)], dtype=float)
        assert hits.mean() == pytest.approx(0.75, abs=0.015)

    def test_evasion_reduces_hit_rate(self):
        rng = random.Random(99)
        trials = 20000
        hits = np.array([roll_attack(5, 80, 5, 5, rng) for _ in range(trials)], dtype=float)
        # 80% not evaded times 75% accuracy
        assert hits.mean() == pytest.approx(0.6, abs=0.015)

    def test_certain_miss_when_fully_evaded(self):
        rng = random.Random(5)
        assert not any(roll_attack(10, 120, 25, 25, rng) for _ in range(100))


# =============================================================================
# DAMAGE
# =============================================================================

class TestDealDamage:
    """Tests for shield-then-hull damage."""

    def test_shield_absorbs_first(self, target):
        hit = deal_damage(target, 50)
        assert hit.shield == 0
        assert hit.health == 60
        assert not hit.is_destroyed

    def test_lethal_damage(self, target):
        hit = deal_damage(target, 200)
        assert hit.health == 0
        assert hit.is_destroyed

    def test_damage_within_shield(self, target):
        hit = deal_damage(target, 10)
        assert hit.shield == 20
        assert hit.health == 80

    def test_exact_lethal_damage(self, target):
        hit = deal_damage(target, 110)
        assert hit.health == 0
        assert hit.status is UnitStatus.DESTROYED

    def test_original_not_modified(self, target):
        deal_damage(target, 200)
        assert target.health == 80


# =============================================================================
# RESOLVER
# =============================================================================

class TestCombatResolver:
    """Tests for burst resolution and per-tick fire."""

    def test_firing_line_resets_charge(self, attacker, target):
        shooter = create_firing_line(attacker, target, hit=True)
        assert shooter.weapon_charge == 0
        assert shooter.firing_line.has_target
        assert shooter.firing_line.ticks_remaining == 3
        assert (shooter.firing_line.to_x, shooter.firing_line.to_y) == (180, 300)

    def test_specific_target_must_be_in_range(self, attacker, target):
        resolver = CombatResolver(random.Random(0))
        other = replace(target, id="Enemy-Fighter-2", x=150)
        aiming = replace(attacker, target_mode=TargetMode.TARGET_SPECIFIC, specific_target=target.id)
        assert resolver.select_target(aiming, [aiming, target, other]).id == target.id

        out_of_range = replace(target, x=400)
        assert resolver.select_target(aiming, [aiming, out_of_range, other]) is None

    def test_specific_mode_without_target_holds_fire(self, attacker, target):
        resolver = CombatResolver(random.Random(0))
        holding = replace(attacker, target_mode=TargetMode.TARGET_SPECIFIC, specific_target=None)
        assert resolver.select_target(holding, [holding, target]) is None

    def test_burst_applies_damage_and_morale(self, attacker, target):
        resolver = CombatResolver(random.Random(3))
        shooter, hit_target, result = resolver.resolve_burst(attacker, target)

        assert result.shots == 2
        assert result.damage == result.hits * 25
        assert shooter.weapon_charge == 0
        assert shooter.firing_line.has_target == result.any_hit
        if result.any_hit:
            assert shooter.pilot.morale == attacker.pilot.morale + 5
            assert hit_target.pilot.morale == target.pilot.morale - 5
        else:
            assert hit_target.health == target.health

    def test_uncharged_units_do_not_fire(self, attacker, target):
        resolver = CombatResolver(random.Random(0))
        idle = replace(attacker, weapon_charge=0)
        resolution = resolver.resolve_fire([idle, target])
        assert resolution.bursts == []

    def test_unit_destroyed_earlier_in_tick_does_not_fire(self, attacker, target):
        ace = replace(attacker, pilot=replace(attacker.pilot, skills=PilotSkills(gunnery=10), morale=120))
        fragile = replace(target, health=1, shield=0, speed=0,
                          weapon_charge=target.max_weapon_charge,
                          pilot=replace(target.pilot, skills=PilotSkills(control=0)))
        resolver = CombatResolver(random.Random(0))

        resolution = resolver.resolve_fire([ace, fragile])

        assert [b.attacker_id for b in resolution.bursts] == [ace.id]
        assert resolution.destroyed_ids == [fragile.id]
        assert resolution.units[1].is_destroyed


class TestMoraleRipple:
    """Tests for the morale swing when a unit is destroyed."""

    def test_allies_lose_enemies_gain(self, attacker, target):
        wingman = replace(attacker, id="Player-Fighter-2")
        lost = replace(attacker, id="Player-Fighter-3", status=UnitStatus.DESTROYED)

        units = apply_morale_ripple([wingman, target, lost], [lost.id])

        assert units[0].pilot.morale == wingman.pilot.morale - 10
        assert units[1].pilot.morale == target.pilot.morale + 10
        assert units[2].pilot.morale == lost.pilot.morale

    def test_unknown_id_is_ignored(self, attacker):
        assert apply_morale_ripple([attacker], ["nobody"])[0] == attacker
