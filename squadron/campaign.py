"""
Campaign state for the Squadron tactical simulator.

CampaignState is an immutable snapshot. Every change goes through a pure
reducer that returns a new snapshot:

    state = apply_action(state, AssignUnit(mission_id, unit_id))

Ownership rule: a unit or pilot can be assigned to a mission only while it
sits in barracks and is not already assigned to any mission of the round.
Requests that break the rule, or that exceed a mission's limits, leave the
state unchanged.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence, Union

from .config import DEFAULT_CONFIG, GameConfig
from .missions import (
    CrewAssignment,
    Mission,
    generate_initial_campaign_roster,
    generate_missions,
)
from .units import (
    DEFAULT_SPEED,
    Pilot,
    Team,
    Unit,
    gain_experience,
    level_up_pilot_skill,
    reset_for_battle,
)
from .victory import BattleOutcome, MissionScore, VictoryEvaluator

logger = logging.getLogger(__name__)


XP_MISSION_WIN = 20
XP_MISSION_LOSS = 5


# =============================================================================
# STATE
# =============================================================================

@dataclass(frozen=True)
class VictoryPoints:
    player: int = 0
    enemy: int = 0

    def add(self, player: int = 0, enemy: int = 0) -> VictoryPoints:
        return VictoryPoints(self.player + player, self.enemy + enemy)


@dataclass(frozen=True)
class CampaignState:
    """
    Everything a campaign carries between battles.

    Attributes:
        barracks_units: Player hulls available for missions (no pilots).
        barracks_pilots: Player pilots.
        round_missions: Missions of the current round.
        current_mission_id: Mission being flown, if any.
        victory_points: Running VP totals.
        round_number: Rounds generated so far.
    """
    barracks_units: tuple[Unit, ...] = ()
    barracks_pilots: tuple[Pilot, ...] = ()
    round_missions: tuple[Mission, ...] = ()
    current_mission_id: Optional[str] = None
    victory_points: VictoryPoints = field(default_factory=VictoryPoints)
    round_number: int = 1

    @property
    def available_missions(self) -> tuple[Mission, ...]:
        """The round's missions. Same object as round_missions."""
        return self.round_missions

    @property
    def current_mission(self) -> Optional[Mission]:
        return self.get_mission(self.current_mission_id) if self.current_mission_id else None

    def get_mission(self, mission_id: str) -> Optional[Mission]:
        return next((m for m in self.round_missions if m.id == mission_id), None)

    def get_pilot(self, pilot_id: str) -> Optional[Pilot]:
        return next((p for p in self.barracks_pilots if p.id == pilot_id), None)

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return next((u for u in self.barracks_units if u.id == unit_id), None)

    def assigned_unit_ids(self) -> set[str]:
        return {uid for m in self.round_missions for uid in m.assigned_unit_ids}

    def assigned_pilot_ids(self) -> set[str]:
        return {pid for m in self.round_missions for pid in m.assigned_pilot_ids}

    def is_unit_assignable(self, unit_id: str) -> bool:
        return self.get_unit(unit_id) is not None and unit_id not in self.assigned_unit_ids()

    def is_pilot_assignable(self, pilot_id: str) -> bool:
        return self.get_pilot(pilot_id) is not None and pilot_id not in self.assigned_pilot_ids()

    def with_mission(self, mission: Mission) -> CampaignState:
        """Copy with one mission replaced (matched by id)."""
        missions = tuple(mission if m.id == mission.id else m for m in self.round_missions)
        return replace(self, round_missions=missions)


def create_campaign(
    rng: Optional[random.Random] = None,
    config: GameConfig = DEFAULT_CONFIG,
) -> CampaignState:
    """A new campaign: starting roster and a first round of missions."""
    rng = rng or random.Random()
    roster = generate_initial_campaign_roster(rng)
    missions = generate_missions(config.canvas_width, config.canvas_height, rng)
    return CampaignState(
        barracks_units=tuple(roster.units),
        barracks_pilots=tuple(roster.pilots),
        round_missions=tuple(missions),
    )


# =============================================================================
# ACTIONS
# =============================================================================

@dataclass(frozen=True)
class AssignUnit:
    mission_id: str
    unit_id: str


@dataclass(frozen=True)
class AssignPilot:
    mission_id: str
    pilot_id: str


@dataclass(frozen=True)
class UnassignUnit:
    mission_id: str
    unit_id: str


@dataclass(frozen=True)
class UnassignPilot:
    mission_id: str
    pilot_id: str


@dataclass(frozen=True)
class LevelUpSkill:
    pilot_id: str
    skill: str


CampaignAction = Union[AssignUnit, AssignPilot, UnassignUnit, UnassignPilot, LevelUpSkill]


# =============================================================================
# REDUCERS
# =============================================================================

def _open_mission(state: CampaignState, mission_id: str) -> Optional[Mission]:
    mission = state.get_mission(mission_id)
    if mission is None:
        logger.debug("No mission %s in this round", mission_id)
        return None
    if mission.is_played:
        logger.debug("Mission %s already played", mission_id)
        return None
    return mission


def assign_unit(state: CampaignState, mission_id: str, unit_id: str) -> CampaignState:
    """Add a barracks unit to a mission with an empty pilot seat."""
    mission = _open_mission(state, mission_id)
    if mission is None:
        return state
    if len(mission.assignments) >= mission.player_unit_limit:
        logger.debug("Mission %s unit limit reached", mission_id)
        return state
    if not state.is_unit_assignable(unit_id):
        logger.debug("Unit %s is not available", unit_id)
        return state

    assignments = mission.assignments + (CrewAssignment(unit_id),)
    return state.with_mission(replace(mission, assignments=assignments))


def assign_pilot(state: CampaignState, mission_id: str, pilot_id: str) -> CampaignState:
    """Seat a barracks pilot in the first assigned unit without one."""
    mission = _open_mission(state, mission_id)
    if mission is None:
        return state
    if len(mission.assigned_pilot_ids) >= mission.player_pilot_limit:
        logger.debug("Mission %s pilot limit reached", mission_id)
        return state
    if not state.is_pilot_assignable(pilot_id):
        logger.debug("Pilot %s is not available", pilot_id)
        return state

    for i, assignment in enumerate(mission.assignments):
        if assignment.pilot_id is None:
            assignments = list(mission.assignments)
            assignments[i] = replace(assignment, pilot_id=pilot_id)
            return state.with_mission(replace(mission, assignments=tuple(assignments)))

    logger.debug("Mission %s has no empty seat for %s", mission_id, pilot_id)
    return state


def unassign_unit(state: CampaignState, mission_id: str, unit_id: str) -> CampaignState:
    """Remove a unit (and whoever was seated in it) from a mission."""
    mission = _open_mission(state, mission_id)
    if mission is None or unit_id not in mission.assigned_unit_ids:
        return state
    assignments = tuple(a for a in mission.assignments if a.unit_id != unit_id)
    return state.with_mission(replace(mission, assignments=assignments))


def unassign_pilot(state: CampaignState, mission_id: str, pilot_id: str) -> CampaignState:
    """Empty the seat a pilot occupies; the unit stays assigned."""
    mission = _open_mission(state, mission_id)
    if mission is None or pilot_id not in mission.assigned_pilot_ids:
        return state
    assignments = tuple(
        replace(a, pilot_id=None) if a.pilot_id == pilot_id else a
        for a in mission.assignments
    )
    return state.with_mission(replace(mission, assignments=assignments))


def level_up_skill(state: CampaignState, pilot_id: str, skill: str) -> CampaignState:
    """Spend a barracks pilot's XP on a skill point."""
    pilots = tuple(
        level_up_pilot_skill(p, skill) if p.id == pilot_id else p
        for p in state.barracks_pilots
    )
    return replace(state, barracks_pilots=pilots)


def apply_action(state: CampaignState, action: CampaignAction) -> CampaignState:
    """Dispatch an action to its reducer."""
    if isinstance(action, AssignUnit):
        return assign_unit(state, action.mission_id, action.unit_id)
    if isinstance(action, AssignPilot):
        return assign_pilot(state, action.mission_id, action.pilot_id)
    if isinstance(action, UnassignUnit):
        return unassign_unit(state, action.mission_id, action.unit_id)
    if isinstance(action, UnassignPilot):
        return unassign_pilot(state, action.mission_id, action.pilot_id)
    if isinstance(action, LevelUpSkill):
        return level_up_skill(state, action.pilot_id, action.skill)
    raise TypeError(f"Unknown campaign action: {type(action).__name__}")


# =============================================================================
# MISSION END
# =============================================================================

@dataclass
class MissionEndResult:
    """
    Campaign after a mission is resolved.

    Attributes:
        state: New campaign state.
        score: VP and status awarded for the mission.
        winner: Campaign winner if the VP threshold was reached.
        new_round: Whether a fresh round of missions was generated.
    """
    state: CampaignState
    score: Optional[MissionScore] = None
    winner: Optional[Team] = None
    new_round: bool = False


def _return_to_barracks(unit: Unit) -> Unit:
    return replace(reset_for_battle(unit, 0.0, 0.0, 0.0), pilot=None, speed=DEFAULT_SPEED)


def process_mission_end(
    state: CampaignState,
    outcome: BattleOutcome,
    mission: Mission,
    units_in_battle: Sequence[Unit],
    rng: Optional[random.Random] = None,
    config: GameConfig = DEFAULT_CONFIG,
    evaluator: Optional[VictoryEvaluator] = None,
) -> MissionEndResult:
    """
    Score a finished (or passed) mission and fold the battle back into the
    campaign.

    Args:
        state: Campaign before the mission is recorded.
        outcome: Player or enemy victory.
        mission: The mission as it stood at the end of the battle (with
            its latest objective progress).
        units_in_battle: Units at the end of the battle; empty for a pass.
        rng: Random source for the next round of missions.
        config: World configuration.
        evaluator: Scoring rules.

    Returns:
        MissionEndResult with the new state.
    """
    if state.get_mission(mission.id) is None:
        logger.error("Mission %s is not part of this round", mission.id)
        return MissionEndResult(state=state)

    rng = rng or random.Random()
    evaluator = evaluator or VictoryEvaluator()

    score = evaluator.score_mission(mission, units_in_battle, outcome)
    points = state.victory_points.add(score.player_points, score.enemy_points)
    mission = replace(mission, status=score.status, is_played=True)
    logger.info(
        "Mission %s %s: +%d player VP, +%d enemy VP (now %d-%d)",
        mission.id, score.status.value, score.player_points, score.enemy_points,
        points.player, points.enemy,
    )

    xp = XP_MISSION_WIN if outcome is BattleOutcome.PLAYER_VICTORY else XP_MISSION_LOSS
    flown = {u.pilot.id: u.pilot for u in units_in_battle if u.pilot is not None}
    pilots = tuple(
        gain_experience(replace(flown[p.id], strain=0, morale=flown[p.id].max_morale), xp)
        if p.id in flown else p
        for p in state.barracks_pilots
    )

    battle_units = {u.id: u for u in units_in_battle}
    barracks = []
    for unit in state.barracks_units:
        returned = battle_units.get(unit.id)
        if returned is None:
            barracks.append(unit)
        elif not returned.is_destroyed:
            barracks.append(_return_to_barracks(returned))
        else:
            logger.info("%s lost in mission %s", unit.id, mission.id)

    state = replace(
        state.with_mission(mission),
        barracks_units=tuple(barracks),
        barracks_pilots=pilots,
        current_mission_id=None,
        victory_points=points,
    )

    new_round = all(m.is_played for m in state.round_missions)
    if new_round:
        missions = generate_missions(config.canvas_width, config.canvas_height, rng)
        state = replace(state, round_missions=tuple(missions), round_number=state.round_number + 1)
        logger.info("Round complete, starting round %d", state.round_number)

    winner = None
    if points.player >= config.victory_points_to_win:
        winner = Team.PLAYER
    elif points.enemy >= config.victory_points_to_win:
        winner = Team.ENEMY
    if winner is not None:
        logger.info("Campaign over: %s wins %d-%d", winner.value, points.player, points.enemy)

    return MissionEndResult(state=state, score=score, winner=winner, new_round=new_round)
