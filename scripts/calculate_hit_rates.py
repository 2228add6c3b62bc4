#!/usr/bin/env python3
"""
Tabulate per-shot and per-burst hit probabilities.

Prints the analytic chance that a single shot lands for every gunnery level
against a range of evasion values (target control plus speed), and checks a
few cells against a Monte Carlo run of the actual attack roll.

Usage:
    python scripts/calculate_hit_rates.py
    python scripts/calculate_hit_rates.py --morale 100 --burst 3 --trials 50000
"""

import argparse
import random
import sys
from pathlib import Path

import numpy as np

# Add project root to path for proper imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from squadron.combat import calculate_accuracy, calculate_evasion, roll_attack


def hit_probability_table(morale: int, evasion_sums: np.ndarray) -> np.ndarray:
    """
    Single-shot hit probability, rows gunnery 0-10, columns control+speed.

    A shot must first not be evaded, then pass the accuracy roll.
    """
    accuracy = np.array([calculate_accuracy(g, morale) for g in range(11)])
    not_evaded = np.array([1.0 - calculate_evasion(int(s), 0) for s in evasion_sums])
    return np.outer(accuracy, not_evaded)


def burst_probability(single: np.ndarray, burst: int) -> np.ndarray:
    """Chance that at least one shot of a burst lands."""
    return 1.0 - (1.0 - single) ** burst


def monte_carlo(gunnery: int, morale: int, control: int, speed: int, trials: int, seed: int) -> float:
    rng = random.Random(seed)
    hits = np.fromiter(
        (roll_attack(gunnery, morale, control, speed, rng) for _ in range(trials)),
        dtype=float,
        count=trials,
    )
    return float(hits.mean())


def print_table(title: str, table: np.ndarray, evasion_sums: np.ndarray) -> None:
    print(f"\n{title}")
    header = "gunnery " + "".join(f"{int(s):>7}" for s in evasion_sums)
    print(header)
    print("-" * len(header))
    for gunnery, row in enumerate(table):
        print(f"{gunnery:>7} " + "".join(f"{p:>7.2f}" for p in row))


def main():
    parser = argparse.ArgumentParser(description="Tabulate Squadron hit probabilities")
    parser.add_argument("--morale", type=int, default=60, help="Shooter morale (default: 60)")
    parser.add_argument("--burst", type=int, default=2, help="Shots per burst (default: 2)")
    parser.add_argument("--trials", type=int, default=20000, help="Monte Carlo trials per check")
    parser.add_argument("--seed", type=int, default=1, help="Monte Carlo seed")
    args = parser.parse_args()

    evasion_sums = np.arange(0, 17, 2)
    single = hit_probability_table(args.morale, evasion_sums)

    print(f"Morale {args.morale}; columns are target control + speed")
    print_table("Single shot", single, evasion_sums)
    print_table(f"At least one hit in a {args.burst}-shot burst",
                burst_probability(single, args.burst), evasion_sums)

    print("\nMonte Carlo check")
    for gunnery, control, speed in ((1, 1, 1), (5, 3, 5), (10, 6, 6)):
        expected = single[gunnery, list(evasion_sums).index(control + speed)]
        observed = monte_carlo(gunnery, args.morale, control, speed, args.trials, args.seed)
        print(f"  gunnery={gunnery:<2} control={control} speed={speed}: "
              f"expected {expected:.3f}, observed {observed:.3f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
