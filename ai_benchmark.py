#!/usr/bin/env python3
"""
Generala AI Benchmark — Play N self-play games and print score distributions.

The Monte Carlo computer player takes the computer seat; the human seat is
played by a baseline strategy.

Usage: python ai_benchmark.py [--games N] [--baseline NAME]
       python ai_benchmark.py --verbose --games 50
       python ai_benchmark.py --csv --games 200 --category-trials 200
"""
import argparse
import logging
import random
import statistics
import time
from dataclasses import dataclass, field

from ai import (
    GeneralaStrategy,
    GreedyStrategy,
    MonteCarloStrategy,
    RandomStrategy,
    play_game,
)
from game_coordinator import positive_int
from game_engine import Player

logger = logging.getLogger(__name__)


@dataclass
class MatchupResult:
    """Outcome of a batch of games between two strategies."""
    human_scores: list = field(default_factory=list)
    computer_scores: list = field(default_factory=list)
    human_wins: int = 0
    computer_wins: int = 0
    ties: int = 0
    instant_wins: int = 0
    elapsed: float = 0.0


def benchmark_matchup(human_strategy: GeneralaStrategy, computer_strategy: GeneralaStrategy,
                      num_games: int, start_seed: int = 0) -> MatchupResult:
    """Play num_games, seeding each game, and collect totals and results."""
    result = MatchupResult()
    t0 = time.perf_counter()
    for seed in range(start_seed, start_seed + num_games):
        random.seed(seed)
        state = play_game(human_strategy, computer_strategy)
        result.human_scores.append(state.scorecard_for(Player.HUMAN).total())
        result.computer_scores.append(state.scorecard_for(Player.COMPUTER).total())
        if state.instant_win:
            result.instant_wins += 1
        if state.winner == Player.HUMAN:
            result.human_wins += 1
        elif state.winner == Player.COMPUTER:
            result.computer_wins += 1
        else:
            result.ties += 1
        logger.debug("Game %d: %s-%s", seed, result.human_scores[-1], result.computer_scores[-1])
    result.elapsed = time.perf_counter() - t0
    return result


def _percentiles(scores):
    sorted_scores = sorted(scores)
    n = len(sorted_scores)
    return sorted_scores[n // 4], sorted_scores[(3 * n) // 4]


def print_results(name, scores, elapsed, verbose=False):
    """Print formatted benchmark results for one seat."""
    avg = sum(scores) / len(scores)
    lo = min(scores)
    hi = max(scores)
    per_game = elapsed / len(scores) * 1000  # ms per game
    print(f"  {name:25s}  avg={avg:6.1f}  min={lo:4d}  max={hi:4d}  "
          f"({len(scores)} games in {elapsed:.2f}s, {per_game:.1f}ms/game)")

    if verbose:
        stdev = statistics.stdev(scores) if len(scores) >= 2 else 0.0
        median = statistics.median(scores)
        p25, p75 = _percentiles(scores)
        print(f"  {'':25s}  stdev={stdev:5.1f}  median={median:5.0f}  "
              f"p25={p25:4d}  p75={p75:4d}")


def print_csv_header():
    """Print CSV header row."""
    print("seat,strategy,games,avg,stdev,median,min,max,p25,p75,wins,elapsed_s")


def print_csv_row(seat, name, scores, wins, elapsed):
    """Print one CSV data row."""
    avg = sum(scores) / len(scores)
    stdev = statistics.stdev(scores) if len(scores) >= 2 else 0.0
    median = statistics.median(scores)
    p25, p75 = _percentiles(scores)
    print(f"{seat},{name},{len(scores)},{avg:.1f},{stdev:.1f},{median:.0f},"
          f"{min(scores)},{max(scores)},{p25},{p75},{wins},{elapsed:.2f}")


def parse_args(argv=None):
    """Parse benchmark options. argv=None uses sys.argv."""
    parser = argparse.ArgumentParser(description="Generala AI Benchmark")
    parser.add_argument("--games", type=positive_int, default=20,
                        help="Number of games to play (default: 20)")
    parser.add_argument("--baseline", choices=["greedy", "random"], default="greedy",
                        help="Strategy for the human seat (default: greedy)")
    parser.add_argument("--hold-trials", type=positive_int, default=500,
                        help="Reroll samples per hold mask (default: 500)")
    parser.add_argument("--category-trials", type=positive_int, default=2000,
                        help="Forward simulations per open category (default: 2000)")
    parser.add_argument("--verbose", action="store_true",
                        help="Show extra statistics (stdev, median, percentiles)")
    parser.add_argument("--csv", action="store_true",
                        help="Output results as CSV")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    baselines = {"greedy": ("Greedy", GreedyStrategy()),
                 "random": ("Random", RandomStrategy())}
    human_name, human_strategy = baselines[args.baseline]
    computer_name = f"MonteCarlo({args.hold_trials}/{args.category_trials})"
    computer_strategy = MonteCarloStrategy(hold_trials=args.hold_trials,
                                           category_trials=args.category_trials)

    result = benchmark_matchup(human_strategy, computer_strategy, args.games)

    if args.csv:
        print_csv_header()
        print_csv_row("human", human_name, result.human_scores, result.human_wins, result.elapsed)
        print_csv_row("computer", computer_name, result.computer_scores,
                      result.computer_wins, result.elapsed)
        return

    print(f"Generala AI Benchmark — {args.games} games, {human_name} vs {computer_name}")
    print("=" * 80)
    print_results(human_name, result.human_scores, result.elapsed, verbose=args.verbose)
    print_results(computer_name, result.computer_scores, result.elapsed, verbose=args.verbose)
    print("-" * 80)
    print(f"  wins: {human_name}={result.human_wins}  {computer_name}={result.computer_wins}  "
          f"ties={result.ties}  instant wins={result.instant_wins}")
    print("=" * 80)


if __name__ == "__main__":
    main()
