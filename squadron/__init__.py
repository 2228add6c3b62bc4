"""Squadron turn-based tactical space combat simulator package."""

from .config import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_CONFIG,
    MAX_RESOLUTION_TICKS,
    SHIP_LENGTH,
    UNIT_COLLISION_RADIUS,
    VICTORY_POINTS_TO_WIN,
    GameConfig,
)

from .physics import Vector2D, get_distance

from .units import (
    # Enums
    Team,
    UnitType,
    UnitStatus,
    ManeuverType,
    SpeedChange,
    TargetMode,
    # Data
    Pilot,
    PilotSkills,
    FiringLine,
    Unit,
    UnitTypeStats,
    # Factories
    create_pilot,
    create_unit,
    gain_experience,
    level_up_pilot_skill,
    reset_for_battle,
)

from .maneuvers import (
    calculate_effective_speed,
    calculate_planned_path,
    get_available_speed_changes,
    get_maneuver_requirements,
    get_possible_target_speeds,
    initialize_maneuver,
    is_maneuver_feasible,
    simulate_maneuver_outcome,
)

from .geometry import CircleZone, CollisionDetector, RectZone, aabb_overlaps_zone

from .asteroids import Asteroid, generate_asteroid_field, generate_asteroids

from .combat import CombatResolver, deal_damage, is_in_attack_range, roll_attack

from .objectives import (
    DestroyUnitsObjective,
    ReachZoneAndReturnObjective,
    VisitMultipleZonesAndReturnObjective,
    check_mission_victory_conditions,
)

from .missions import (
    CrewAssignment,
    Mission,
    MissionStatus,
    MissionType,
    generate_initial_campaign_roster,
    generate_missions,
    generate_units_for_setup,
    get_units_for_mission,
)

from .victory import BattleOutcome, VictoryEvaluator

from .simulation import ResolutionEngine, SimulationEvent, SimulationEventType

from .captain import AICaptain, PlanDecision

from .campaign import (
    AssignPilot,
    AssignUnit,
    CampaignState,
    LevelUpSkill,
    UnassignPilot,
    UnassignUnit,
    apply_action,
    create_campaign,
    process_mission_end,
)

from .game import GamePhase, GameState, SquadronGame

__all__ = [
    # Config
    "CANVAS_HEIGHT",
    "CANVAS_WIDTH",
    "DEFAULT_CONFIG",
    "MAX_RESOLUTION_TICKS",
    "SHIP_LENGTH",
    "UNIT_COLLISION_RADIUS",
    "VICTORY_POINTS_TO_WIN",
    "GameConfig",
    # Physics
    "Vector2D",
    "get_distance",
    # Units
    "Team",
    "UnitType",
    "UnitStatus",
    "ManeuverType",
    "SpeedChange",
    "TargetMode",
    "Pilot",
    "PilotSkills",
    "FiringLine",
    "Unit",
    "UnitTypeStats",
    "create_pilot",
    "create_unit",
    "gain_experience",
    "level_up_pilot_skill",
    "reset_for_battle",
    # Maneuvers
    "calculate_effective_speed",
    "calculate_planned_path",
    "get_available_speed_changes",
    "get_maneuver_requirements",
    "get_possible_target_speeds",
    "initialize_maneuver",
    "is_maneuver_feasible",
    "simulate_maneuver_outcome",
    # Geometry
    "CircleZone",
    "CollisionDetector",
    "RectZone",
    "aabb_overlaps_zone",
    # Asteroids
    "Asteroid",
    "generate_asteroid_field",
    "generate_asteroids",
    # Combat
    "CombatResolver",
    "deal_damage",
    "is_in_attack_range",
    "roll_attack",
    # Objectives
    "DestroyUnitsObjective",
    "ReachZoneAndReturnObjective",
    "VisitMultipleZonesAndReturnObjective",
    "check_mission_victory_conditions",
    # Missions
    "CrewAssignment",
    "Mission",
    "MissionStatus",
    "MissionType",
    "generate_initial_campaign_roster",
    "generate_missions",
    "generate_units_for_setup",
    "get_units_for_mission",
    # Victory
    "BattleOutcome",
    "VictoryEvaluator",
    # Simulation
    "ResolutionEngine",
    "SimulationEvent",
    "SimulationEventType",
    # Captain
    "AICaptain",
    "PlanDecision",
    # Campaign
    "AssignPilot",
    "AssignUnit",
    "CampaignState",
    "LevelUpSkill",
    "UnassignPilot",
    "UnassignUnit",
    "apply_action",
    "create_campaign",
    "process_mission_end",
    # Game
    "GamePhase",
    "GameState",
    "SquadronGame",
]
