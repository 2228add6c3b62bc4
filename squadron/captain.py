#!/usr/bin/env python3
"""
Computer captain for the Squadron tactical simulator.

Plans maneuvers for AI-controlled units at the start of each resolution
phase by replaying every feasible (maneuver, speed change) pair and keeping
the best-scoring one.

Goals, in order:
1. Attack: an opponent already inside the firing envelope and within twice
   weapon range. Keep it in the envelope and close the distance.
2. Approach: otherwise close on the nearest opponent.

A plan whose path touches an asteroid is penalised heavily rather than
discarded, so a boxed-in unit still moves.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence

from .combat import is_in_attack_range
from .config import MAX_RESOLUTION_TICKS, SHIP_LENGTH
from .maneuvers import get_available_speed_changes, is_maneuver_feasible, simulate_maneuver_outcome
from .physics import get_distance
from .units import ManeuverType, SpeedChange, TargetMode, Team, Unit

logger = logging.getLogger(__name__)


ATTACK_RANGE_MULTIPLIER = 2
ASTEROID_PENALTY = 10000.0


class CaptainGoal(Enum):
    """What a plan was chosen to achieve."""
    ATTACK = "attack"
    APPROACH = "approach"
    HOLD = "hold"


@dataclass(frozen=True)
class PlanDecision:
    """
    A chosen plan for one unit.

    Attributes:
        maneuver: Maneuver to fly.
        speed_change: Speed change to apply.
        target_mode: Fire-at-will, or target-specific when attacking.
        specific_target: Target id when attacking.
        score: Winning score (distance to goal plus penalties).
        goal: Which goal produced the plan.
    """
    maneuver: ManeuverType
    speed_change: SpeedChange
    target_mode: TargetMode = TargetMode.FIRE_AT_WILL
    specific_target: Optional[str] = None
    score: float = math.inf
    goal: CaptainGoal = CaptainGoal.HOLD


class AICaptain:
    """
    Plans for one side of the battle.

    Args:
        team: Side whose units this captain flies.
        max_ticks: Ticks per phase used in look-ahead.
        ship_length: Pixels per point of speed per phase.
    """

    def __init__(
        self,
        team: Team = Team.ENEMY,
        max_ticks: int = MAX_RESOLUTION_TICKS,
        ship_length: float = SHIP_LENGTH,
    ):
        self.team = team
        self.max_ticks = max_ticks
        self.ship_length = ship_length

    def _candidates(self, unit: Unit):
        speed_changes = [opt.value for opt in get_available_speed_changes(unit) if not opt.disabled]
        for maneuver in ManeuverType:
            for change in speed_changes:
                if is_maneuver_feasible(unit, maneuver, change):
                    yield maneuver, change

    def _score_plans(
        self,
        unit: Unit,
        goal_unit: Unit,
        asteroids: Sequence,
        keep_in_range: bool,
    ) -> Optional[tuple[ManeuverType, SpeedChange, float]]:
        best = None
        for maneuver, change in self._candidates(unit):
            outcome = simulate_maneuver_outcome(
                unit, maneuver, change, self.max_ticks, asteroids, self.ship_length
            )
            if keep_in_range and not is_in_attack_range(outcome.unit, goal_unit):
                continue
            score = get_distance(outcome.unit, goal_unit)
            if outcome.collided_with_asteroid:
                score += ASTEROID_PENALTY
            if best is None or score < best[2]:
                best = (maneuver, change, score)
        return best

    def find_attack_target(self, unit: Unit, opponents: Sequence[Unit]) -> Optional[Unit]:
        """Nearest opponent inside the envelope and within twice weapon range."""
        reach = unit.weapon_range * ATTACK_RANGE_MULTIPLIER
        candidates = [
            o for o in opponents
            if get_distance(unit, o) <= reach and is_in_attack_range(unit, o)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda o: get_distance(unit, o))

    def plan(
        self,
        unit: Unit,
        opponents: Sequence[Unit],
        asteroids: Sequence = (),
    ) -> PlanDecision:
        """
        Choose a plan for a single unit.

        Args:
            unit: Unit to plan for.
            opponents: Active opposing units.
            asteroids: Obstacles for path look-ahead.

        Returns:
            PlanDecision for the coming phase.
        """
        if not opponents:
            return PlanDecision(ManeuverType.STRAIGHT, SpeedChange.MAINTAIN, score=0.0)

        target = self.find_attack_target(unit, opponents)
        if target is not None:
            best = self._score_plans(unit, target, asteroids, keep_in_range=True)
            if best is not None:
                maneuver, change, score = best
                logger.debug("%s attacks %s with %s/%s", unit.id, target.id, maneuver.value, change.value)
                return PlanDecision(
                    maneuver, change, TargetMode.TARGET_SPECIFIC, target.id, score, CaptainGoal.ATTACK
                )
            logger.debug("%s cannot hold %s in range, approaching instead", unit.id, target.id)

        nearest = min(opponents, key=lambda o: get_distance(unit, o))
        best = self._score_plans(unit, nearest, asteroids, keep_in_range=False)
        if best is None:
            return PlanDecision(ManeuverType.STRAIGHT, SpeedChange.MAINTAIN, score=0.0)

        maneuver, change, score = best
        logger.debug("%s approaches %s with %s/%s", unit.id, nearest.id, maneuver.value, change.value)
        return PlanDecision(maneuver, change, score=score, goal=CaptainGoal.APPROACH)

    @staticmethod
    def apply(unit: Unit, decision: PlanDecision) -> Unit:
        """Write a decision into a unit's plan fields."""
        return replace(
            unit,
            planned_maneuver=decision.maneuver,
            planned_speed_change=decision.speed_change,
            target_mode=decision.target_mode,
            specific_target=decision.specific_target,
        )

    def plan_units(self, units: Sequence[Unit], asteroids: Sequence = ()) -> list[Unit]:
        """
        Plan every active unit of this captain's team.

        Other units are returned unchanged.
        """
        opponents = [u for u in units if u.team is not self.team and u.is_active]
        return [
            self.apply(u, self.plan(u, opponents, asteroids))
            if u.team is self.team and u.is_active else u
            for u in units
        ]
