#!/usr/bin/env python3
"""Demo driver for the referral network.

Builds a network (the built-in example, or edges from a CSV file of
`referrer,candidate` rows), shows the constraint checks at work, and prints
influence rankings and network statistics.

Usage:
    python scripts/demo.py
    python scripts/demo.py --edges referrals.csv --top 10
    python scripts/demo.py --allow-cycles --max-referrals-per-user 3
"""

import argparse
import csv
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog
from dotenv import load_dotenv
load_dotenv()  # Must run before any referral_network.* imports

from referral_network.analysis import InfluenceAnalyzer, StatsComputer
from referral_network.config import TOP_K_DEFAULT, ReferralNetworkConfig
from referral_network.graph import ReferralGraph

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ]
)
logger = structlog.get_logger()

EXAMPLE_REFERRALS = [
    ("Alice", "Bob"),
    ("Alice", "Charlie"),
    ("Bob", "David"),
    ("Bob", "Eve"),
    ("Charlie", "Frank"),
    ("Eve", "Grace"),
]

# Each of these breaks one invariant of the example network
REJECTED_REFERRALS = [
    ("Alice", "Alice"),  # self-referral
    ("Frank", "Bob"),  # Bob already referred by Alice
    ("David", "Alice"),  # closes Alice -> Bob -> David -> Alice
]


def load_edges(path: Path) -> list[tuple[str, str]]:
    """Read referrer,candidate pairs; blank lines and '#' comments are skipped."""
    edges = []
    with path.open(newline="") as f:
        for row in csv.reader(f):
            if not row or row[0].strip().startswith("#"):
                continue
            if len(row) < 2:
                raise ValueError(f"{path}: expected 'referrer,candidate', got {row!r}")
            edges.append((row[0].strip(), row[1].strip()))
    return edges


def build_network(graph: ReferralGraph, edges: list[tuple[str, str]]) -> int:
    """Add edges in order, returning how many were accepted."""
    accepted = 0
    for referrer, candidate in edges:
        result = graph.add_referral(referrer, candidate)
        if result.success:
            accepted += 1
        else:
            print(f"  rejected {referrer} -> {candidate}: {result.error_type.value}")
    return accepted


def print_rankings(graph: ReferralGraph, top: int) -> None:
    analyzer = InfluenceAnalyzer(graph)

    print("\n" + "=" * 60)
    print(f"TOP {top} BY REACH")
    print("=" * 60)
    for i, entry in enumerate(analyzer.rank_by_reach(top), 1):
        print(f"  {i}. {entry.user_id:<20} reach={entry.score}")

    print("\n" + "=" * 60)
    print(f"TOP {top} BY FLOW CENTRALITY")
    print("=" * 60)
    for i, entry in enumerate(analyzer.rank_by_flow_centrality(top), 1):
        print(f"  {i}. {entry.user_id:<20} flow={entry.score}")


def print_stats(graph: ReferralGraph) -> None:
    summary = StatsComputer(graph.store).summary()

    print("\n" + "-" * 60)
    print("NETWORK STATS:")
    print("-" * 60)
    for key, value in summary.to_dict().items():
        if isinstance(value, float):
            value = f"{value:.2f}"
        print(f"  {key:<28} {value}")


def main():
    parser = argparse.ArgumentParser(description="Referral network demo")
    parser.add_argument("--edges", type=Path, help="CSV file of referrer,candidate rows")
    parser.add_argument("--top", type=int, default=TOP_K_DEFAULT, help="How many users to rank")
    parser.add_argument("--allow-self-referrals", action="store_true")
    parser.add_argument("--allow-multiple-referrers", action="store_true")
    parser.add_argument("--allow-cycles", action="store_true")
    parser.add_argument("--max-network-size", type=int)
    parser.add_argument("--max-referrals-per-user", type=int)
    args = parser.parse_args()

    for option in ("top", "max_network_size", "max_referrals_per_user"):
        value = getattr(args, option)
        if value is not None and value <= 0:
            parser.error(f"--{option.replace('_', '-')} must be a positive integer, got {value}")

    overrides = {
        "allow_self_referrals": args.allow_self_referrals or None,
        "allow_multiple_referrers": args.allow_multiple_referrers or None,
        "allow_cycles": args.allow_cycles or None,
        "max_network_size": args.max_network_size,
        "max_referrals_per_user": args.max_referrals_per_user,
    }
    config = ReferralNetworkConfig.from_env().replace(
        **{key: value for key, value in overrides.items() if value is not None}
    )
    graph = ReferralGraph(config=config)
    logger.info("starting_demo", **config.to_dict())

    if args.edges:
        edges = load_edges(args.edges)
        print(f"Loading {len(edges)} referrals from {args.edges}")
        accepted = build_network(graph, edges)
        print(f"Accepted {accepted}/{len(edges)} referrals")
    else:
        print("Building example network")
        build_network(graph, EXAMPLE_REFERRALS)

        print("\nConstraint checks:")
        build_network(graph, REJECTED_REFERRALS)

        print(f"\nAlice's direct referrals: {graph.direct_referrals('Alice').data}")
        print(f"Alice's total referrals:  {graph.all_referrals('Alice').data}")

    print_rankings(graph, args.top)
    print_stats(graph)


if __name__ == "__main__":
    main()
