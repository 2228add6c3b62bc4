"""
Victory condition evaluation for Squadron battles.

Determines the battle outcome after each tick and the campaign victory
points a finished mission is worth.

Outcome priority, first match wins:
1. Escort mission only: escort targets all destroyed (enemy victory)
2. Every mission objective complete (player victory)
3. No player unit still active (enemy victory)
4. Skirmish only: no enemy unit still active (player victory)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .missions import Mission, MissionStatus, MissionType
from .objectives import (
    ReachZoneAndReturnObjective,
    VisitMultipleZonesAndReturnObjective,
    escort_targets_lost,
)
from .units import Team, Unit, count_active

logger = logging.getLogger(__name__)


class BattleOutcome(Enum):
    """Possible battle outcomes."""
    PLAYER_VICTORY = "player-victory"
    ENEMY_VICTORY = "enemy-victory"
    ONGOING = "ongoing"

    @property
    def winner(self) -> Optional[Team]:
        if self is BattleOutcome.PLAYER_VICTORY:
            return Team.PLAYER
        if self is BattleOutcome.ENEMY_VICTORY:
            return Team.ENEMY
        return None

    @property
    def is_decided(self) -> bool:
        return self is not BattleOutcome.ONGOING


@dataclass(frozen=True)
class MissionScore:
    """Victory points earned by each side and the resulting mission status."""
    player_points: int
    enemy_points: int
    status: MissionStatus


class VictoryEvaluator:
    """
    Evaluates battle outcomes and mission scoring.

    Stateless; one instance can serve a whole campaign.
    """

    def evaluate(
        self,
        units: Sequence[Unit],
        mission: Optional[Mission] = None,
        objectives_complete: bool = False,
        is_skirmish: bool = False,
    ) -> Tuple[BattleOutcome, str]:
        """
        Decide the battle outcome for the current units.

        Args:
            units: Units after the tick.
            mission: Current campaign mission (None in skirmish).
            objectives_complete: Whether every mission objective is done.
            is_skirmish: Whether annihilating the enemy wins the battle.

        Returns:
            Tuple of (outcome, reason).
        """
        if mission is not None:
            if mission.type is MissionType.ESCORT and escort_targets_lost(mission, units):
                return BattleOutcome.ENEMY_VICTORY, "All escort targets destroyed"
            if objectives_complete:
                return BattleOutcome.PLAYER_VICTORY, "All objectives complete"

        if count_active(units, Team.PLAYER) == 0:
            return BattleOutcome.ENEMY_VICTORY, "No player units left in action"

        if is_skirmish and count_active(units, Team.ENEMY) == 0:
            return BattleOutcome.PLAYER_VICTORY, "No enemy units left in action"

        return BattleOutcome.ONGOING, "Battle continues"

    def score_mission(
        self,
        mission: Mission,
        units: Sequence[Unit],
        outcome: BattleOutcome,
    ) -> MissionScore:
        """
        Victory points for a finished mission.

        Escort missions pay per target (escaped after reaching the target
        zone, or destroyed). Recon pays its flat award to the player only if
        the scout got out with the objective complete, else to the enemy.
        Everything else, including a passed mission (no units flown), pays
        the winner its flat award.
        """
        award = mission.victory_points_award

        if units and mission.type is MissionType.ESCORT:
            return self._score_escort(mission, units)
        if units and mission.type is MissionType.RECON:
            return self._score_recon(mission, units)

        if outcome is BattleOutcome.PLAYER_VICTORY:
            return MissionScore(award.player or 1, 0, MissionStatus.COMPLETED)
        return MissionScore(0, award.enemy or 1, MissionStatus.FAILED)

    def _score_escort(self, mission: Mission, units: Sequence[Unit]) -> MissionScore:
        award = mission.victory_points_award
        run = next(
            (o for o in mission.objectives if isinstance(o, ReachZoneAndReturnObjective)), None
        )
        by_id = {u.id: u for u in units}
        player = enemy = 0

        for target_id in mission.escort_target_unit_ids:
            unit = by_id.get(target_id)
            if unit is None:
                continue
            if unit.is_escaped and run is not None and run.has_reached_zone(target_id):
                player += award.per_escaped_target
            elif unit.is_destroyed:
                enemy += award.per_destroyed_target

        completed = run is not None and run.is_completed
        return MissionScore(player, enemy, MissionStatus.COMPLETED if completed else MissionStatus.FAILED)

    def _score_recon(self, mission: Mission, units: Sequence[Unit]) -> MissionScore:
        award = mission.victory_points_award
        recon = next(
            (o for o in mission.objectives if isinstance(o, VisitMultipleZonesAndReturnObjective)), None
        )
        by_id = {u.id: u for u in units}
        scout = by_id.get(recon.target_unit_ids[0]) if recon and recon.target_unit_ids else None

        if scout is not None and scout.is_escaped and recon.is_completed:
            return MissionScore(award.player, 0, MissionStatus.COMPLETED)
        return MissionScore(0, award.enemy, MissionStatus.FAILED)
