#!/usr/bin/env python3
"""
Game orchestrator for the Squadron tactical simulator.

SquadronGame owns the current GameState and drives it through the phase
machine:

    main-menu -> skirmish-setup -> planning <-> resolution -> game-over
    main-menu -> campaign-menu -> mission-planning -> planning <-> resolution
              -> campaign-menu (next mission) | game-over (VP threshold)

Each resolution phase runs up to max_resolution_ticks ticks, either all at
once (run_resolution) or paced in real time (run_resolution_async).

Usage:
    game = SquadronGame(rng=random.Random(7))
    game.start_skirmish("dogfight")
    while game.state.phase is not GamePhase.GAME_OVER:
        game.run_resolution()
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Union

from .asteroids import Asteroid, generate_asteroid_field
from .campaign import CampaignAction, CampaignState, MissionEndResult, apply_action, create_campaign, process_mission_end
from .captain import AICaptain
from .config import DEFAULT_CONFIG, GameConfig
from .missions import Mission, generate_units_for_setup, get_units_for_mission
from .simulation import ResolutionEngine, SimulationEvent, SimulationEventType, TickResult
from .units import ManeuverType, SpeedChange, TargetMode, Team, Unit, gain_experience
from .victory import BattleOutcome

logger = logging.getLogger(__name__)


XP_SKIRMISH_WIN = 10
XP_SKIRMISH_LOSS = 2


class GamePhase(Enum):
    """Screens and phases of a game."""
    MAIN_MENU = "main-menu"
    SKIRMISH_SETUP = "skirmish-setup"
    CAMPAIGN_MENU = "campaign-menu"
    BARRACKS = "barracks"
    MISSION_PLANNING = "mission-planning"
    PLANNING = "planning"
    RESOLUTION = "resolution"
    GAME_OVER = "game-over"


@dataclass(frozen=True)
class GameState:
    """
    Snapshot of a game.

    Attributes:
        phase: Current phase.
        current_turn: Planning/resolution cycles started in this battle.
        units: Units in the current battle.
        asteroids: Asteroid field of the current battle.
        resolution_tick: Tick counter within the resolution phase.
        max_resolution_ticks: Tick cap per resolution phase.
        winner: Side that won the skirmish or campaign.
        campaign: Campaign state (None in skirmish).
        mission: Mission being flown, with live objective progress.
        is_skirmish: Whether annihilation decides the battle.
        outcome: Battle outcome as of the latest tick.
    """
    phase: GamePhase = GamePhase.MAIN_MENU
    current_turn: int = 1
    units: tuple[Unit, ...] = ()
    asteroids: tuple[Asteroid, ...] = ()
    resolution_tick: int = 0
    max_resolution_ticks: int = DEFAULT_CONFIG.max_resolution_ticks
    winner: Optional[Team] = None
    campaign: Optional[CampaignState] = None
    mission: Optional[Mission] = None
    is_skirmish: bool = False
    outcome: BattleOutcome = BattleOutcome.ONGOING

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return next((u for u in self.units if u.id == unit_id), None)


class SquadronGame:
    """
    Runs skirmishes and campaigns.

    Args:
        config: World configuration.
        rng: Random source shared by combat, asteroid placement, mission
            generation and spawning. Defaults to one seeded from config.seed.
        captain: Planner for enemy units.
    """

    def __init__(
        self,
        config: GameConfig = DEFAULT_CONFIG,
        rng: Optional[random.Random] = None,
        captain: Optional[AICaptain] = None,
    ):
        self.config = config
        self.rng = rng or random.Random(config.seed)
        self.engine = ResolutionEngine(config, self.rng)
        self.captain = captain or AICaptain(Team.ENEMY, config.max_resolution_ticks, config.ship_length)
        self.state = GameState(
            max_resolution_ticks=config.max_resolution_ticks,
        )

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_event(self, callback: Callable[[SimulationEvent], None]) -> None:
        """Register a callback for every simulation event."""
        self.engine.on_event(callback)

    @property
    def events(self) -> list[SimulationEvent]:
        return self.engine.events

    def _set_phase(self, phase: GamePhase, **changes) -> None:
        if phase is not self.state.phase:
            logger.info("Phase %s -> %s", self.state.phase.value, phase.value)
        self.state = replace(self.state, phase=phase, **changes)

    def _refuse(self, action: str, reason: str) -> bool:
        logger.warning("Cannot %s: %s", action, reason)
        return False

    # -------------------------------------------------------------------------
    # Menus
    # -------------------------------------------------------------------------

    def return_to_main_menu(self) -> None:
        self.state = GameState(
            max_resolution_ticks=self.config.max_resolution_ticks,
        )

    def open_skirmish_setup(self) -> None:
        self._set_phase(GamePhase.SKIRMISH_SETUP)

    def open_barracks(self) -> bool:
        if self.state.campaign is None:
            return self._refuse("open barracks", "no campaign in progress")
        self._set_phase(GamePhase.BARRACKS)
        return True

    def open_campaign_menu(self) -> bool:
        if self.state.campaign is None:
            return self._refuse("open campaign menu", "no campaign in progress")
        self._set_phase(GamePhase.CAMPAIGN_MENU)
        return True

    # -------------------------------------------------------------------------
    # Skirmish
    # -------------------------------------------------------------------------

    def start_skirmish(self, setup_type: str = "dogfight") -> None:
        """Set up a skirmish battle and enter planning."""
        units = generate_units_for_setup(setup_type)
        asteroids = generate_asteroid_field(
            units, self.config.canvas_width, self.config.canvas_height, self.rng
        )
        logger.info("Skirmish %s: %d units, %d asteroids", setup_type, len(units), len(asteroids))
        self.state = GameState(
            phase=GamePhase.PLANNING,
            units=tuple(units),
            asteroids=tuple(asteroids),
            max_resolution_ticks=self.config.max_resolution_ticks,
            is_skirmish=True,
        )

    # -------------------------------------------------------------------------
    # Campaign
    # -------------------------------------------------------------------------

    def new_campaign(self) -> CampaignState:
        """Start a campaign with a fresh roster and first round of missions."""
        campaign = create_campaign(self.rng, self.config)
        logger.info(
            "New campaign: %d units, %d pilots, %d missions",
            len(campaign.barracks_units), len(campaign.barracks_pilots), len(campaign.round_missions),
        )
        self.state = GameState(
            phase=GamePhase.CAMPAIGN_MENU,
            max_resolution_ticks=self.config.max_resolution_ticks,
            campaign=campaign,
        )
        return campaign

    def dispatch(self, action: CampaignAction) -> CampaignState:
        """Apply a campaign action (assignments, level-ups)."""
        if self.state.campaign is None:
            raise RuntimeError("No campaign in progress")
        campaign = apply_action(self.state.campaign, action)
        self.state = replace(self.state, campaign=campaign)
        return campaign

    def select_mission(self, mission_id: str) -> bool:
        """Open mission planning for one of the round's missions."""
        campaign = self.state.campaign
        if campaign is None:
            return self._refuse("select mission", "no campaign in progress")
        mission = campaign.get_mission(mission_id)
        if mission is None or mission.is_played:
            return self._refuse("select mission", f"{mission_id} is not available")
        self._set_phase(
            GamePhase.MISSION_PLANNING,
            campaign=replace(campaign, current_mission_id=mission_id),
        )
        return True

    def start_mission(self, mission_id: Optional[str] = None) -> bool:
        """
        Launch a campaign mission.

        Refused (WARNING, no state change) unless the mission exists, has
        not been played, and has at least one assignment with every
        assigned unit crewed.

        Args:
            mission_id: Mission to fly; defaults to the selected mission.

        Returns:
            True if the battle started.
        """
        campaign = self.state.campaign
        if campaign is None:
            return self._refuse("start mission", "no campaign in progress")
        mission_id = mission_id or campaign.current_mission_id
        mission = campaign.get_mission(mission_id) if mission_id else None
        if mission is None:
            return self._refuse("start mission", f"unknown mission {mission_id}")
        if mission.is_played:
            return self._refuse("start mission", f"{mission.id} already played")
        if not mission.is_ready:
            return self._refuse("start mission", f"{mission.id} needs crewed units assigned")

        units = get_units_for_mission(
            mission, campaign.barracks_units, campaign.barracks_pilots, self.rng
        )
        asteroids = generate_asteroid_field(
            units, self.config.canvas_width, self.config.canvas_height, self.rng
        )
        logger.info("Mission %s (%s) started with %d units", mission.id, mission.name, len(units))
        self.state = GameState(
            phase=GamePhase.PLANNING,
            units=tuple(units),
            asteroids=tuple(asteroids),
            max_resolution_ticks=self.config.max_resolution_ticks,
            campaign=replace(campaign, current_mission_id=mission.id),
            mission=mission,
        )
        return True

    def pass_mission(self, mission_id: str) -> Optional[MissionEndResult]:
        """Skip a mission; it is scored as an enemy victory."""
        campaign = self.state.campaign
        if campaign is None:
            self._refuse("pass mission", "no campaign in progress")
            return None
        mission = campaign.get_mission(mission_id)
        if mission is None or mission.is_played:
            self._refuse("pass mission", f"{mission_id} is not available")
            return None
        logger.info("Mission %s passed", mission_id)
        return self._finish_mission(campaign, mission, BattleOutcome.ENEMY_VICTORY, ())

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def set_unit_plan(
        self,
        unit_id: str,
        maneuver: Union[ManeuverType, str, None] = None,
        speed_change: Optional[SpeedChange] = None,
        target_mode: Optional[TargetMode] = None,
        specific_target: Optional[str] = None,
    ) -> bool:
        """
        Set plan fields on an active player unit during planning.

        Unknown maneuver names are stored as straight. Fields left as None
        keep their current value.
        """
        if self.state.phase is not GamePhase.PLANNING:
            return self._refuse("set plan", f"phase is {self.state.phase.value}")
        unit = self.state.get_unit(unit_id)
        if unit is None or unit.team is not Team.PLAYER or not unit.is_active:
            return self._refuse("set plan", f"{unit_id} is not an active player unit")

        changes = {}
        if maneuver is not None:
            coerced = ManeuverType.coerce(maneuver)
            if coerced is None:
                logger.warning("Unknown maneuver %r for %s, flying straight", maneuver, unit_id)
                coerced = ManeuverType.STRAIGHT
            changes["planned_maneuver"] = coerced
        if speed_change is not None:
            changes["planned_speed_change"] = speed_change
        if target_mode is not None:
            changes["target_mode"] = target_mode
        if specific_target is not None or target_mode is TargetMode.FIRE_AT_WILL:
            changes["specific_target"] = specific_target

        updated = replace(unit, **changes)
        units = tuple(updated if u.id == unit_id else u for u in self.state.units)
        self.state = replace(self.state, units=units)
        return True

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    @property
    def is_resolution_over(self) -> bool:
        return (
            self.state.resolution_tick >= self.state.max_resolution_ticks
            or self.state.outcome.is_decided
        )

    def start_resolution(self) -> bool:
        """Let the computer plan its units, lock every plan and enter resolution."""
        if self.state.phase is not GamePhase.PLANNING:
            return self._refuse("start resolution", f"phase is {self.state.phase.value}")
        units = self.captain.plan_units(self.state.units, self.state.asteroids)
        units, asteroids = self.engine.begin_phase(units, self.state.asteroids)
        self._set_phase(
            GamePhase.RESOLUTION,
            units=tuple(units),
            asteroids=tuple(asteroids),
            resolution_tick=0,
        )
        return True

    def tick(self) -> Optional[TickResult]:
        """Advance one tick. Returns None once the phase is over."""
        if self.state.phase is not GamePhase.RESOLUTION or self.is_resolution_over:
            return None
        result = self.engine.resolve_tick(
            self.state.units,
            self.state.asteroids,
            self.state.resolution_tick,
            self.state.mission,
            self.state.is_skirmish,
        )
        self.state = replace(
            self.state,
            units=tuple(result.units),
            asteroids=tuple(result.asteroids),
            mission=result.mission,
            resolution_tick=result.tick,
            outcome=result.outcome,
        )
        if result.mission is not None and self.state.campaign is not None:
            self.state = replace(self.state, campaign=self.state.campaign.with_mission(result.mission))
        return result

    def end_resolution(self) -> None:
        """Settle the phase, then either return to planning or finish the battle."""
        if self.state.phase is not GamePhase.RESOLUTION:
            self._refuse("end resolution", f"phase is {self.state.phase.value}")
            return
        units = self.engine.end_phase(self.state.units, self.state.resolution_tick)
        self.state = replace(self.state, units=tuple(units))

        if self.state.outcome.is_decided:
            self._finish_battle(self.state.outcome)
        else:
            self._set_phase(
                GamePhase.PLANNING,
                current_turn=self.state.current_turn + 1,
                resolution_tick=0,
            )

    def end_resolution_early(self) -> None:
        """Stop ticking and settle at the current snapshot."""
        logger.info("Resolution ended early at tick %d", self.state.resolution_tick)
        self.end_resolution()

    def run_resolution(self) -> GameState:
        """Run a whole resolution phase synchronously."""
        if self.state.phase is GamePhase.PLANNING:
            self.start_resolution()
        while self.tick() is not None:
            pass
        self.end_resolution()
        return self.state

    async def run_resolution_async(self) -> GameState:
        """
        Run a resolution phase paced in real time.

        One tick every tick_interval_s; after the last tick waits
        post_terminal_delay_s before settling. A phase already settled by
        end_resolution_early while waiting is not settled again.
        """
        if self.state.phase is GamePhase.PLANNING:
            self.start_resolution()
        while self.tick() is not None:
            await asyncio.sleep(self.config.tick_interval_s)
        if self.state.phase is not GamePhase.RESOLUTION:
            return self.state
        await asyncio.sleep(self.config.post_terminal_delay_s)
        if self.state.phase is GamePhase.RESOLUTION:
            self.end_resolution()
        return self.state

    # -------------------------------------------------------------------------
    # Battle end
    # -------------------------------------------------------------------------

    def _finish_battle(self, outcome: BattleOutcome) -> None:
        if self.state.is_skirmish:
            xp = XP_SKIRMISH_WIN if outcome is BattleOutcome.PLAYER_VICTORY else XP_SKIRMISH_LOSS
            units = tuple(
                replace(u, pilot=gain_experience(u.pilot, xp))
                if u.team is Team.PLAYER and u.pilot is not None and u.is_active else u
                for u in self.state.units
            )
            logger.info("Skirmish over: %s", outcome.value)
            self._set_phase(GamePhase.GAME_OVER, units=units, winner=outcome.winner)
            return

        campaign = self.state.campaign
        mission = self.state.mission
        if campaign is None or mission is None:
            logger.error("Battle ended without a campaign mission")
            self._set_phase(GamePhase.GAME_OVER, winner=outcome.winner)
            return
        self._finish_mission(campaign, mission, outcome, self.state.units)

    def _finish_mission(
        self,
        campaign: CampaignState,
        mission: Mission,
        outcome: BattleOutcome,
        units,
    ) -> MissionEndResult:
        result = process_mission_end(
            campaign, outcome, mission, units, self.rng, self.config, self.engine.victory
        )
        tick = self.state.resolution_tick
        self.engine.log_event(
            SimulationEventType.MISSION_ENDED, tick,
            mission_id=mission.id,
            outcome=outcome.value,
            player_points=result.score.player_points if result.score else 0,
            enemy_points=result.score.enemy_points if result.score else 0,
        )
        if result.new_round:
            self.engine.log_event(
                SimulationEventType.ROUND_STARTED, tick, round_number=result.state.round_number
            )

        self.state = GameState(
            phase=GamePhase.GAME_OVER if result.winner else GamePhase.CAMPAIGN_MENU,
            max_resolution_ticks=self.config.max_resolution_ticks,
            campaign=result.state,
            winner=result.winner,
            outcome=outcome,
        )
        logger.info("Phase -> %s", self.state.phase.value)
        return result
