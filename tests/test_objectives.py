"""
Tests for mission objective evaluation.

Tests cover:
- Destroy-units objectives by type and by id
- Reach-zone-and-return with swept zone entry and AABB escape
- Visit-multiple-zones-and-return with escape gated on all visits
- Escort target loss
"""

from dataclasses import dataclass, replace
from typing import Tuple

import pytest

from squadron.geometry import CircleZone, RectZone
from squadron.objectives import (
    DestroyUnitsObjective,
    ObjectiveEventType,
    ReachZoneAndReturnObjective,
    VisitMultipleZonesAndReturnObjective,
    check_mission_victory_conditions,
    escort_targets_lost,
    evaluate_objective,
)
from squadron.units import Team, UnitStatus, UnitType, create_unit


@dataclass(frozen=True)
class StubMission:
    """Minimal mission carrying objectives and escort targets."""
    objectives: Tuple = ()
    escort_target_unit_ids: Tuple[str, ...] = ()


ESCAPE = RectZone(x=30, y=300, width=60, height=600)


def enemy(unit_id, unit_type=UnitType.FIGHTER, destroyed=False):
    unit = create_unit(unit_id, 600, 300, 0.0, Team.ENEMY, unit_type)
    return replace(unit, status=UnitStatus.DESTROYED) if destroyed else unit


def bomber(unit_id, x, y):
    return create_unit(unit_id, x, y, 0.0, Team.PLAYER, UnitType.BOMBER)


# =============================================================================
# DESTROY UNITS
# =============================================================================

class TestDestroyUnits:
    """Tests for destroy-units objectives."""

    @pytest.fixture
    def objective(self):
        return DestroyUnitsObjective(
            id="destroy", description="Destroy 2 fighters", count=2,
            target_unit_types=(UnitType.FIGHTER,),
        )

    def test_incomplete_after_one_kill(self, objective):
        units = [enemy("E1", destroyed=True), enemy("E2")]
        result = check_mission_victory_conditions(StubMission((objective,)), units)
        assert not result.mission.objectives[0].is_completed
        assert not result.is_mission_complete

    def test_complete_after_two_kills(self, objective):
        units = [enemy("E1", destroyed=True), enemy("E2", destroyed=True)]
        result = check_mission_victory_conditions(StubMission((objective,)), units)
        assert result.mission.objectives[0].is_completed
        assert result.is_mission_complete
        assert [e.event_type for e in result.events] == [ObjectiveEventType.OBJECTIVE_COMPLETED]

    def test_other_types_do_not_count(self, objective):
        units = [enemy("E1", UnitType.BOMBER, True), enemy("E2", UnitType.BOMBER, True)]
        result = check_mission_victory_conditions(StubMission((objective,)), units)
        assert not result.is_mission_complete

    def test_player_losses_do_not_count(self, objective):
        own = replace(
            create_unit("P1", 100, 300, 0.0, Team.PLAYER, UnitType.FIGHTER),
            status=UnitStatus.DESTROYED,
        )
        units = [own, enemy("E1", destroyed=True)]
        assert not check_mission_victory_conditions(StubMission((objective,)), units).is_mission_complete

    def test_by_id(self):
        objective = DestroyUnitsObjective(
            id="d", description="", count=1, target_unit_ids=("Target-1",)
        )
        units = [enemy("Other", destroyed=True), enemy("Target-1")]
        assert not evaluate_objective(objective, units, {}, []).is_completed
        units[1] = replace(units[1], status=UnitStatus.DESTROYED)
        assert evaluate_objective(objective, units, {}, []).is_completed

    def test_completed_objective_stays_completed(self, objective):
        done = replace(objective, is_completed=True)
        assert evaluate_objective(done, [], {}, []) is done

    def test_empty_mission_is_not_complete(self):
        assert not check_mission_victory_conditions(StubMission(()), []).is_mission_complete


# =============================================================================
# REACH ZONE AND RETURN
# =============================================================================

class TestReachZoneAndReturn:
    """Tests for the escort run objective."""

    @pytest.fixture
    def objective(self):
        return ReachZoneAndReturnObjective(
            id="run", description="Run", target_unit_ids=("B1",),
            target_zone=CircleZone(x=700, y=100, radius=50, id="target"),
            escape_zone=ESCAPE,
        )

    def test_reaching_zone(self, objective):
        units = [bomber("B1", 680, 120)]
        result = check_mission_victory_conditions(StubMission((objective,)), units)
        obj = result.mission.objectives[0]
        assert obj.has_reached_zone("B1")
        assert not obj.is_completed
        assert result.events[0].event_type is ObjectiveEventType.ZONE_REACHED

    def test_zone_buffer_counts_unit_extent(self, objective):
        # 65px from centre: outside the radius but within radius + 20.
        units = [bomber("B1", 765, 100)]
        result = check_mission_victory_conditions(StubMission((objective,)), units)
        assert result.mission.objectives[0].has_reached_zone("B1")

    def test_swept_entry_between_ticks(self, objective):
        before = [bomber("B1", 600, 100)]
        moved = [bomber("B1", 780, 100)]
        # Endpoints are 100px and 80px away; the segment passes through the centre.
        result = check_mission_victory_conditions(StubMission((objective,)), moved, before)
        assert result.mission.objectives[0].has_reached_zone("B1")

    def test_escape_before_reaching_zone_ignored(self, objective):
        units = [bomber("B1", 40, 300)]
        result = check_mission_victory_conditions(StubMission((objective,)), units)
        assert not result.mission.objectives[0].has_escaped_zone("B1")
        assert result.units[0].is_active

    def test_escape_after_reaching_zone(self, objective):
        reached = replace(objective, reached_unit_ids=frozenset({"B1"}))
        units = [bomber("B1", 70, 300)]
        result = check_mission_victory_conditions(StubMission((reached,)), units)

        obj = result.mission.objectives[0]
        assert obj.has_escaped_zone("B1")
        assert obj.is_completed
        assert result.units[0].status is UnitStatus.ESCAPED
        assert result.is_mission_complete

    def test_every_target_must_escape(self):
        objective = ReachZoneAndReturnObjective(
            id="run", description="Run", target_unit_ids=("B1", "B2"),
            target_zone=CircleZone(x=700, y=100, radius=50),
            escape_zone=ESCAPE,
            reached_unit_ids=frozenset({"B1", "B2"}),
        )
        units = [bomber("B1", 50, 300), bomber("B2", 400, 300)]
        result = check_mission_victory_conditions(StubMission((objective,)), units)
        assert not result.mission.objectives[0].is_completed

    def test_inputs_not_modified(self, objective):
        reached = replace(objective, reached_unit_ids=frozenset({"B1"}))
        units = [bomber("B1", 50, 300)]
        check_mission_victory_conditions(StubMission((reached,)), units)
        assert units[0].is_active
        assert not reached.has_escaped_zone("B1")


# =============================================================================
# VISIT MULTIPLE ZONES
# =============================================================================

class TestVisitMultipleZones:
    """Tests for the recon objective."""

    @pytest.fixture
    def objective(self):
        return VisitMultipleZonesAndReturnObjective(
            id="recon", description="Recon", target_unit_ids=("S1",),
            target_zones=(
                CircleZone(x=300, y=200, radius=30, id="Z1"),
                CircleZone(x=500, y=400, radius=30, id="Z2"),
            ),
            escape_zone=ESCAPE,
        )

    def scout(self, x, y):
        return create_unit("S1", x, y, 0.0, Team.PLAYER, UnitType.SCOUT)

    def test_visit_one_zone(self, objective):
        result = check_mission_victory_conditions(StubMission((objective,)), [self.scout(310, 210)])
        obj = result.mission.objectives[0]
        assert obj.has_visited_zone("Z1")
        assert not obj.has_visited_zone("Z2")
        assert not obj.all_zones_visited
        assert result.events[0].zone_id == "Z1"

    def test_escape_requires_all_zones(self, objective):
        partial = replace(objective, visited_zone_ids=frozenset({"Z1"}))
        result = check_mission_victory_conditions(StubMission((partial,)), [self.scout(40, 300)])
        assert not result.mission.objectives[0].has_escaped_zone("S1")
        assert result.units[0].is_active

    def test_escape_after_all_zones(self, objective):
        visited = replace(objective, visited_zone_ids=frozenset({"Z1", "Z2"}))
        result = check_mission_victory_conditions(StubMission((visited,)), [self.scout(75, 300)])
        obj = result.mission.objectives[0]
        assert obj.is_completed
        assert result.units[0].is_escaped

    def test_escape_uses_same_aabb_test(self, objective):
        visited = replace(objective, visited_zone_ids=frozenset({"Z1", "Z2"}))
        result = check_mission_victory_conditions(StubMission((visited,)), [self.scout(81, 300)])
        assert not result.mission.objectives[0].is_completed


# =============================================================================
# ESCORT LOSS
# =============================================================================

class TestEscortTargetsLost:
    """Tests for the escort hard-failure check."""

    def test_no_targets(self):
        assert not escort_targets_lost(StubMission(), [bomber("B1", 0, 0)])

    def test_all_destroyed(self):
        units = [
            replace(bomber("B1", 0, 0), status=UnitStatus.DESTROYED),
            replace(bomber("B2", 0, 0), status=UnitStatus.DESTROYED),
        ]
        assert escort_targets_lost(StubMission(escort_target_unit_ids=("B1", "B2")), units)

    def test_one_escaped(self):
        units = [
            replace(bomber("B1", 0, 0), status=UnitStatus.DESTROYED),
            replace(bomber("B2", 0, 0), status=UnitStatus.ESCAPED),
        ]
        assert not escort_targets_lost(StubMission(escort_target_unit_ids=("B1", "B2")), units)
