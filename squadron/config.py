"""
Game configuration for the Squadron tactical simulator.

World constants are importable as plain module constants; GameConfig bundles
them so a game (or a test) can run with different values.

Configuration sources, in order of precedence:
- Explicit GameConfig(...) keyword arguments
- JSON file via GameConfig.from_json()
- SQUADRON_* environment variables (a .env file is honoured) via from_env()
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv


# =============================================================================
# WORLD CONSTANTS
# =============================================================================

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
MAX_RESOLUTION_TICKS = 30
VICTORY_POINTS_TO_WIN = 10

SHIP_LENGTH = 30  # pixels - one unit of "speed" covers this per phase
UNIT_COLLISION_RADIUS = 20  # half extent of a unit for zone tests
BOUNDS_MARGIN = 20  # units are clamped this far inside the world edges

TICK_INTERVAL_S = 0.05
POST_TERMINAL_DELAY_S = 1.0

ENV_PREFIX = "SQUADRON_"


# =============================================================================
# GAME CONFIG
# =============================================================================

@dataclass(frozen=True)
class GameConfig:
    """
    Fixed configuration for a game session.

    Attributes:
        canvas_width: World width in pixels.
        canvas_height: World height in pixels.
        max_resolution_ticks: Ticks in one resolution phase.
        victory_points_to_win: Campaign VP threshold for game over.
        ship_length: Pixels travelled per point of speed per phase.
        unit_collision_radius: Half extent used for zone entry/escape tests.
        bounds_margin: Clamp distance from the world edges.
        tick_interval_s: Wall-clock interval between ticks (presentation only).
        post_terminal_delay_s: Pause before end-of-resolution runs.
        seed: Random seed; None means nondeterministic.
    """
    canvas_width: int = CANVAS_WIDTH
    canvas_height: int = CANVAS_HEIGHT
    max_resolution_ticks: int = MAX_RESOLUTION_TICKS
    victory_points_to_win: int = VICTORY_POINTS_TO_WIN
    ship_length: float = SHIP_LENGTH
    unit_collision_radius: float = UNIT_COLLISION_RADIUS
    bounds_margin: float = BOUNDS_MARGIN
    tick_interval_s: float = TICK_INTERVAL_S
    post_terminal_delay_s: float = POST_TERMINAL_DELAY_S
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ValueError("Canvas dimensions must be positive")
        if self.max_resolution_ticks <= 0:
            raise ValueError("max_resolution_ticks must be positive")
        if self.victory_points_to_win <= 0:
            raise ValueError("victory_points_to_win must be positive")
        if self.ship_length <= 0:
            raise ValueError("ship_length must be positive")
        if self.tick_interval_s < 0 or self.post_terminal_delay_s < 0:
            raise ValueError("Scheduler delays cannot be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GameConfig:
        """Create configuration from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, path: str | Path) -> GameConfig:
        """Load configuration from a JSON file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Game config not found: {path}")

        with open(config_path) as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_env(cls, base: Optional[GameConfig] = None) -> GameConfig:
        """
        Overlay SQUADRON_* environment variables on a base configuration.

        SQUADRON_SEED=7 sets seed, SQUADRON_MAX_RESOLUTION_TICKS=20 sets
        max_resolution_ticks, and so on. A .env file in the working
        directory is loaded first.

        Args:
            base: Configuration to start from (defaults to GameConfig()).

        Returns:
            New configuration with the environment overrides applied.
        """
        load_dotenv()
        config = base or cls()
        overrides: Dict[str, Any] = {}

        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            if f.type in ("int", "Optional[int]"):
                overrides[f.name] = int(raw)
            else:
                overrides[f.name] = float(raw)

        return replace(config, **overrides) if overrides else config

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_CONFIG = GameConfig()
