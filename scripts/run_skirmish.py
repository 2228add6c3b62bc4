#!/usr/bin/env python3
"""
Run a headless skirmish with a computer captain flying each side.

Usage:
    python scripts/run_skirmish.py --setup dogfight --seed 7
    python scripts/run_skirmish.py --setup escort --max-turns 30 --verbose
    python scripts/run_skirmish.py --config game.json --realtime
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from squadron.captain import AICaptain
from squadron.config import GameConfig
from squadron.game import GamePhase, SquadronGame
from squadron.missions import SKIRMISH_SETUPS
from squadron.simulation import SimulationEventType
from squadron.units import Team

QUIET_EVENTS = {SimulationEventType.RESOLUTION_STARTED, SimulationEventType.RESOLUTION_ENDED}


def print_status(game: SquadronGame) -> None:
    state = game.state
    print(f"\n--- Turn {state.current_turn} ---")
    for unit in state.units:
        morale = unit.pilot.morale if unit.pilot else 0
        print(
            f"  {unit.id:<24} {unit.status.value:<9} "
            f"pos=({unit.x:6.1f}, {unit.y:6.1f}) speed={unit.speed} "
            f"hull={unit.health:5.1f} shield={unit.shield:5.1f} morale={morale}"
        )


def main():
    parser = argparse.ArgumentParser(
        description="Run a computer-vs-computer Squadron skirmish",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--setup",
        choices=SKIRMISH_SETUPS,
        default="dogfight",
        help="Skirmish setup (default: dogfight)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON game config; SQUADRON_* environment variables override it",
    )
    parser.add_argument(
        "--max-turns",
        type=int,
        default=50,
        help="Stop after this many planning/resolution cycles (default: 50)",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace ticks in wall-clock time",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only show the result")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = GameConfig.from_json(args.config) if args.config else GameConfig()
        config = GameConfig.from_env(config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.seed is not None:
        config = replace(config, seed=args.seed)

    game = SquadronGame(config)
    player_captain = AICaptain(Team.PLAYER, config.max_resolution_ticks, config.ship_length)

    if not args.quiet:
        def show(event):
            if event.event_type not in QUIET_EVENTS:
                print(f"  {event}")
        game.on_event(show)

    game.start_skirmish(args.setup)

    for _ in range(args.max_turns):
        if not args.quiet:
            print_status(game)
        units = player_captain.plan_units(game.state.units, game.state.asteroids)
        game.state = replace(game.state, units=tuple(units))

        if args.realtime:
            asyncio.run(game.run_resolution_async())
        else:
            game.run_resolution()

        if game.state.phase is GamePhase.GAME_OVER:
            break

    state = game.state
    if state.phase is GamePhase.GAME_OVER:
        print(f"\nWinner: {state.winner.value}")
    else:
        print(f"\nNo result after {args.max_turns} turns")
    print(f"Turns: {state.current_turn}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
