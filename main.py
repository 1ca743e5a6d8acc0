"""Market simulator entrypoint -- runs a session and prints a market report.

Usage:
    python main.py
    python main.py --days 10 --seed 7
    python main.py --config /path/to/config.yaml --mode minute --days 2
"""

from __future__ import annotations

import argparse
import logging

from core.config import load_config
from core.noise import RandomSource
from simulator.metrics import summarize_market, top_movers
from simulator.session import MarketSimulation


def setup_logging(level: str) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synthetic stock market simulator")
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to config.yaml (default: ~/.marketsim/config.yaml)",
    )
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help="Path to .env file (default: ~/.marketsim/.env)",
    )
    parser.add_argument("--days", "-d", type=int, default=5, help="Simulated days to run")
    parser.add_argument("--seed", "-s", type=int, default=None, help="Random seed (overrides config)")
    parser.add_argument(
        "--mode",
        choices=("skip", "minute"),
        default="skip",
        help="'skip' jumps whole days, 'minute' ticks every simulated minute",
    )
    parser.add_argument("--top", type=int, default=5, help="Number of top movers to show")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level")
    return parser.parse_args(argv)


def _print_report(sim: MarketSimulation, days: int, top: int) -> None:
    instruments = sim.store.get_stocks() + sim.store.get_index_funds()
    window = days + 1
    summary = summarize_market(instruments, window=window)

    print()
    print(f"  {sim.clock.label}  ({sim.days_elapsed} day(s) simulated)")
    print(f"  Instruments: {summary['instruments']}  "
          f"up {summary['advancers']} / down {summary['decliners']} / flat {summary['unchanged']}")
    print(f"  Average return: {summary['average_return']:+.2%}  "
          f"average daily volatility: {summary['average_volatility']:.2%}")
    print(f"  Best: {summary['best']} ({summary['best_return']:+.2%})  "
          f"Worst: {summary['worst']} ({summary['worst_return']:+.2%})")

    print()
    print("  Top movers")
    for stats in top_movers(instruments, count=top, window=window):
        print(f"    {stats.name:<20} {stats.field:<20} {stats.start_price:>10.2f} -> "
              f"{stats.end_price:>10.2f}  {stats.total_return:+.2%}")

    print()
    print("  Active events")
    events = sim.event_engine.get_active_events()
    if not events:
        print("    (none)")
    for event in events:
        remaining = "persistent" if event.duration_days is None else f"{event.duration_days}d left"
        print(f"    [{event.event_type}] {event.title} ({remaining}) -> {', '.join(event.affected_stocks)}")

    print()
    print("  Latest news")
    for announcement in sim.feed.recent(10):
        print(f"    {announcement.title}: {announcement.description}")
    print()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    config = load_config(config_path=args.config, env_path=args.env)
    setup_logging(args.log_level or config.logging.level)
    logger = logging.getLogger("marketsim")

    if args.days < 1:
        logger.error("--days must be at least 1")
        raise SystemExit(2)

    seed = args.seed if args.seed is not None else config.seed
    sim = MarketSimulation.create(config, RandomSource(seed))

    logger.info("Running %d day(s) in %s mode", args.days, args.mode)
    if args.mode == "skip":
        sim.skip_days(args.days)
    else:
        sim.run_days(args.days)

    _print_report(sim, sim.days_elapsed, args.top)


if __name__ == "__main__":
    main()
