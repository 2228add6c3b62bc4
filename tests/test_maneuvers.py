"""
Tests for maneuver planning and initialization.

Tests cover:
- Effective speed clamping
- Maneuver requirements (agility, difficulty, speed-dependent turns)
- The validity cascade and pilot strain
- Speed change options offered during planning
- Path look-ahead used by the computer captain
"""

import math
from dataclasses import replace

import pytest

from squadron.asteroids import Asteroid
from squadron.maneuvers import (
    calculate_effective_speed,
    calculate_planned_path,
    get_available_speed_changes,
    get_maneuver_requirements,
    get_possible_target_speeds,
    initialize_maneuver,
    is_maneuver_feasible,
    simulate_maneuver_outcome,
)
from squadron.physics import Vector2D
from squadron.units import (
    ManeuverType,
    PilotSkills,
    SpeedChange,
    Team,
    UnitType,
    create_unit,
)


# =============================================================================
# HELPERS
# =============================================================================

def make_unit(unit_type=UnitType.FIGHTER, speed=2, control=1, guts=1, strain=0, **plan):
    unit = create_unit(
        "Test-1", 100, 100, 0.0, Team.PLAYER, unit_type,
        PilotSkills(composure=1, control=control, gunnery=1, guts=guts),
    )
    unit = replace(unit, speed=speed, pilot=replace(unit.pilot, strain=strain))
    return replace(unit, **plan)


def square_asteroid(cx, cy, half=5):
    points = (
        Vector2D(cx - half, cy - half),
        Vector2D(cx + half, cy - half),
        Vector2D(cx + half, cy + half),
        Vector2D(cx - half, cy + half),
    )
    return Asteroid(id="asteroid-1", x=cx, y=cy, points=points, radius=half)


# =============================================================================
# SPEED
# =============================================================================

class TestEffectiveSpeed:
    """Tests for applying planned speed changes."""

    @pytest.mark.parametrize("current,change,max_speed,expected", [
        (2, SpeedChange.MAINTAIN, 5, 2),
        (2, SpeedChange.ACCELERATE, 5, 3),
        (4, SpeedChange.ACCELERATE_2, 5, 5),
        (1, SpeedChange.DECELERATE, 5, 1),
        (2, SpeedChange.DECELERATE_2, 6, 1),
        (0, SpeedChange.MAINTAIN, 5, 1),
        (6, SpeedChange.MAINTAIN, 5, 5),
    ])
    def test_clamped_to_range(self, current, change, max_speed, expected):
        assert calculate_effective_speed(current, change, max_speed) == expected

    def test_accepts_string_values(self):
        assert calculate_effective_speed(2, "accelerate", 5) == 3


class TestSpeedOptions:
    """Tests for the speed choices offered during planning."""

    def test_fighter_at_minimum_speed(self):
        options = {o.value: o.disabled for o in get_available_speed_changes(make_unit(speed=1))}
        assert options[SpeedChange.MAINTAIN] is False
        assert options[SpeedChange.ACCELERATE] is False
        assert options[SpeedChange.ACCELERATE_2] is False
        assert options[SpeedChange.DECELERATE] is True
        assert options[SpeedChange.DECELERATE_2] is True

    def test_bomber_cannot_double_accelerate(self):
        options = {o.value: o.disabled for o in get_available_speed_changes(make_unit(UnitType.BOMBER, speed=1))}
        assert options[SpeedChange.ACCELERATE_2] is True

    def test_interceptor_double_decelerate(self):
        options = {o.value: o.disabled for o in get_available_speed_changes(make_unit(UnitType.INTERCEPTOR, speed=4))}
        assert options[SpeedChange.DECELERATE_2] is False

    def test_target_speeds_from_minimum(self):
        speeds = [o.value for o in get_possible_target_speeds(make_unit(speed=1))]
        assert speeds == [1, 2, 3]

    def test_target_speeds_at_maximum(self):
        speeds = [o.value for o in get_possible_target_speeds(make_unit(speed=5))]
        assert speeds == [4, 5]

    def test_duplicate_speeds_keep_direct_change(self):
        options = get_possible_target_speeds(make_unit(UnitType.INTERCEPTOR, speed=2))
        by_speed = {o.value: o.planned_change for o in options}
        assert sorted(by_speed) == [1, 2, 3, 4]
        assert by_speed[1] is SpeedChange.DECELERATE


# =============================================================================
# REQUIREMENTS
# =============================================================================

class TestManeuverRequirements:
    """Tests for the agility/difficulty table."""

    def test_straight_is_free(self):
        req = get_maneuver_requirements(ManeuverType.STRAIGHT, 3)
        assert (req.agility, req.difficulty) == (0, 0)

    @pytest.mark.parametrize("speed,agility", [(1, 3), (2, 2), (3, 2), (4, 3), (6, 3)])
    def test_turns_harder_at_speed_extremes(self, speed, agility):
        assert get_maneuver_requirements(ManeuverType.TURN_LEFT, speed).agility == agility

    def test_banks_not_speed_dependent(self):
        assert get_maneuver_requirements("bank-right", 1).agility == 1

    def test_unknown_maneuver_is_unreachable(self):
        req = get_maneuver_requirements("barrel-roll", 3)
        assert req.agility == 999
        assert req.difficulty == 999


# =============================================================================
# INITIALIZATION
# =============================================================================

class TestInitializeManeuver:
    """Tests for the validity cascade run at the start of a phase."""

    def test_straight_sets_angles(self):
        unit = initialize_maneuver(make_unit())
        assert unit.planned_maneuver is ManeuverType.STRAIGHT
        assert unit.final_orientation_change == 0
        assert unit.maneuver_path_angle_change == 0
        assert unit.maneuver_progress == 0
        assert unit.initial_angle == 0

    def test_input_not_modified(self):
        unit = make_unit(planned_speed_change=SpeedChange.ACCELERATE)
        initialize_maneuver(unit)
        assert unit.speed == 2

    def test_applies_speed_change(self):
        unit = initialize_maneuver(make_unit(planned_speed_change=SpeedChange.ACCELERATE))
        assert unit.speed == 3

    def test_bank_angles(self):
        unit = initialize_maneuver(make_unit(planned_maneuver=ManeuverType.BANK_RIGHT))
        assert unit.final_orientation_change == pytest.approx(math.pi / 4)
        assert unit.maneuver_path_angle_change == pytest.approx(math.pi / 4)

    def test_skid_angles(self):
        unit = initialize_maneuver(make_unit(control=4, planned_maneuver=ManeuverType.SKID_LEFT))
        assert unit.planned_maneuver is ManeuverType.SKID_LEFT
        assert unit.final_orientation_change == pytest.approx(-3 * math.pi / 4)
        assert unit.maneuver_path_angle_change == pytest.approx(-math.pi / 4)

    def test_insufficient_agility_degrades(self):
        bomber = make_unit(UnitType.BOMBER, control=5, planned_maneuver=ManeuverType.SKID_RIGHT)
        assert initialize_maneuver(bomber).planned_maneuver is ManeuverType.STRAIGHT

    def test_turn_agility_uses_effective_speed(self):
        # Bomber (agility 2) at speed 2 can turn; slowing to 1 raises the requirement to 3.
        bomber = make_unit(UnitType.BOMBER, control=5, planned_maneuver=ManeuverType.TURN_LEFT)
        assert initialize_maneuver(bomber).planned_maneuver is ManeuverType.TURN_LEFT
        slowing = replace(bomber, planned_speed_change=SpeedChange.DECELERATE)
        assert initialize_maneuver(slowing).planned_maneuver is ManeuverType.STRAIGHT

    def test_one_eight_oh_needs_speed_three(self):
        interceptor = make_unit(UnitType.INTERCEPTOR, speed=2, control=7,
                                planned_maneuver=ManeuverType.ONE_EIGHT_OH)
        assert initialize_maneuver(interceptor).planned_maneuver is ManeuverType.STRAIGHT

        faster = replace(interceptor, planned_speed_change=SpeedChange.ACCELERATE)
        flown = initialize_maneuver(faster)
        assert flown.planned_maneuver is ManeuverType.ONE_EIGHT_OH
        assert flown.final_orientation_change == pytest.approx(math.pi)
        assert flown.maneuver_path_angle_change == 0

    def test_difficulty_beyond_control_degrades(self):
        unit = make_unit(control=1, planned_maneuver=ManeuverType.SKID_LEFT)
        assert initialize_maneuver(unit).planned_maneuver is ManeuverType.STRAIGHT

    def test_stressed_maneuver_adds_strain(self):
        unit = make_unit(control=1, guts=1, planned_maneuver=ManeuverType.TURN_LEFT)
        flown = initialize_maneuver(unit)
        assert flown.planned_maneuver is ManeuverType.TURN_LEFT
        assert flown.pilot.strain == 1

    def test_stressed_maneuver_refused_at_max_strain(self):
        unit = make_unit(control=1, guts=1, strain=1, planned_maneuver=ManeuverType.TURN_LEFT)
        flown = initialize_maneuver(unit)
        assert flown.planned_maneuver is ManeuverType.STRAIGHT
        assert flown.pilot.strain == 1

    def test_comfortable_maneuver_relieves_strain(self):
        unit = make_unit(control=3, guts=4, strain=2, planned_maneuver=ManeuverType.BANK_LEFT)
        assert initialize_maneuver(unit).pilot.strain == 1

    def test_unknown_maneuver_flies_straight(self):
        unit = make_unit(planned_maneuver="barrel-roll")
        assert initialize_maneuver(unit).planned_maneuver is ManeuverType.STRAIGHT

    def test_is_maneuver_feasible(self):
        unit = make_unit(control=1)
        assert is_maneuver_feasible(unit, ManeuverType.BANK_LEFT)
        assert not is_maneuver_feasible(unit, ManeuverType.SKID_LEFT)
        assert not is_maneuver_feasible(unit, "barrel-roll")


# =============================================================================
# LOOK-AHEAD
# =============================================================================

class TestLookAhead:
    """Tests for replaying a plan without touching the unit."""

    def test_planned_path_points(self):
        path = calculate_planned_path(make_unit(speed=1), max_ticks=30, ship_length=30)
        assert len(path) == 31
        assert path[0] == Vector2D(100, 100)
        assert path[-1].x == pytest.approx(130)
        assert path[-1].y == pytest.approx(100)

    def test_simulated_straight_flight(self):
        outcome = simulate_maneuver_outcome(make_unit(speed=2), ManeuverType.STRAIGHT, SpeedChange.MAINTAIN)
        assert outcome.unit.x == pytest.approx(160)
        assert outcome.unit.y == pytest.approx(100)
        assert not outcome.collided_with_asteroid

    def test_simulated_turn_faces_final_orientation(self):
        outcome = simulate_maneuver_outcome(
            make_unit(speed=2, control=2), ManeuverType.TURN_RIGHT, SpeedChange.MAINTAIN
        )
        assert outcome.unit.angle == pytest.approx(math.pi / 2)
        assert outcome.unit.y > 100

    def test_simulation_stops_at_asteroid(self):
        outcome = simulate_maneuver_outcome(
            make_unit(speed=2), ManeuverType.STRAIGHT, SpeedChange.MAINTAIN,
            asteroids=[square_asteroid(140, 100)],
        )
        assert outcome.collided_with_asteroid
        assert outcome.unit.x < 160
