#!/usr/bin/env python3
"""
Digital-Twin Simulation CLI

Failure injection, cascade propagation and blast-radius analysis for a
service architecture described as a JSON dependency graph.

Usage Examples:
    # Fail the database for 30 simulated seconds and run 60 ticks
    python simulate_twin.py run --graph arch.json --fail db:30 --ticks 60

    # Degrade the cache to 40% health permanently
    python simulate_twin.py run --graph arch.json --degrade cache:40

    # Replay a scripted scenario in wall-clock time
    python simulate_twin.py run --graph arch.json --scenario outage.yaml --realtime

    # Blast radius of a database failure, as JSON
    python simulate_twin.py blast --graph arch.json --epicenter db --json
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import argparse
import json
import logging
import random
import time
from typing import Optional, Tuple

from twinsim.adapters.outbound import ConsoleReporter
from twinsim.config import SimulationConfig, load_config
from twinsim.core import GraphData
from twinsim.simulation import DependencyGraph, SimulationEngine, load_scenario

logger = logging.getLogger(__name__)


# =============================================================================
# Argument Parsing
# =============================================================================

def parse_fail(value: str) -> Tuple[str, Optional[float]]:
    """``ID`` or ``ID:DURATION``."""
    node_id, sep, duration = value.rpartition(":")
    if not sep:
        return value, None
    try:
        return node_id, float(duration)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid duration in '{value}'") from None


def parse_degrade(value: str) -> Tuple[str, float, Optional[float]]:
    """``ID:LEVEL`` or ``ID:LEVEL:DURATION``."""
    parts = value.split(":")
    if len(parts) < 2:
        raise argparse.ArgumentTypeError(f"expected ID:LEVEL[:DURATION], got '{value}'")
    try:
        numbers = [float(p) for p in parts[-2:]]
        if len(parts) >= 3:
            return ":".join(parts[:-2]), numbers[0], numbers[1]
    except ValueError:
        pass
    try:
        return ":".join(parts[:-1]), float(parts[-1]), None
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid level in '{value}'") from None


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with subcommands."""
    common_parser = argparse.ArgumentParser(add_help=False)

    input_group = common_parser.add_argument_group("Input")
    input_group.add_argument("--graph", "-g", required=True, metavar="FILE", help="Graph JSON file")
    input_group.add_argument("--config", "-c", metavar="FILE", help="Simulation config YAML")
    input_group.add_argument("--seed", type=int, help="Random seed for reproducible runs")

    output_group = common_parser.add_argument_group("Output")
    output_group.add_argument("--output", "-o", metavar="FILE", help="Export results to JSON")
    output_group.add_argument("--json", action="store_true", help="Print JSON to stdout")
    output_group.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    output_group.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    output_group.add_argument("--no-color", action="store_true", help="Disable ANSI colors")

    parser = argparse.ArgumentParser(
        prog="simulate_twin.py",
        description="Digital-twin failure simulation for service architectures.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subs = parser.add_subparsers(dest="command", help="Simulation command")

    # run
    rn = subs.add_parser("run", help="Run a simulation with injected failures", parents=[common_parser])
    rn.add_argument("--ticks", "-t", type=int, default=30, help="Number of ticks to run")
    rn.add_argument(
        "--fail", "-f", action="append", default=[], type=parse_fail,
        metavar="ID[:DURATION]", help="Fail a node (repeatable)",
    )
    rn.add_argument(
        "--degrade", "-d", action="append", default=[], type=parse_degrade,
        metavar="ID:LEVEL[:DURATION]", help="Degrade a node to LEVEL%% health (repeatable)",
    )
    rn.add_argument("--scenario", "-s", metavar="FILE", help="Scenario YAML to replay")
    rn.add_argument("--realtime", action="store_true", help="Sleep tick_interval/speed between ticks")
    rn.add_argument("--events", type=int, default=15, help="Recent events to show")

    # blast
    bl = subs.add_parser("blast", help="Blast radius of a failure epicenter", parents=[common_parser])
    bl.add_argument("--epicenter", "-e", required=True, metavar="ID", help="Failure epicenter node")

    return parser


# =============================================================================
# Command Handlers
# =============================================================================

def build_engine(args) -> SimulationEngine:
    graph = DependencyGraph(GraphData.from_json(args.graph))
    config = load_config(args.config) if args.config else SimulationConfig()
    if args.seed is not None:
        config.seed = args.seed
    return SimulationEngine(graph, config, rng=random.Random(config.seed))


def handle_run(args, engine: SimulationEngine, display: ConsoleReporter) -> dict:
    """Handle the 'run' subcommand."""
    engine.start()
    for node_id, duration in args.fail:
        if engine.fail_node(node_id, duration) is None and not engine.has_node(node_id):
            logger.warning(f"Unknown node '{node_id}' in --fail")
    for node_id, level, duration in args.degrade:
        if engine.degrade_node(node_id, level, duration) is None:
            logger.warning(f"Unknown node '{node_id}' in --degrade")
    if args.scenario:
        engine.load_scenario(load_scenario(args.scenario))

    if args.realtime:
        delay = engine.config.tick_interval / engine.config.speed
        for _ in range(args.ticks):
            if not engine.tick():
                break
            time.sleep(delay)
    else:
        engine.advance(args.ticks)

    summary = engine.summary()
    health = engine.get_all_health_states()
    recent = engine.get_recent_events(args.events)

    if not args.quiet and not args.json:
        display.display_summary(summary)
        display.display_health(health.values())
        display.display_events(recent)

    return {
        "summary": summary,
        "health": {node_id: record.to_dict() for node_id, record in health.items()},
        "events": [e.to_dict() for e in engine.get_events()],
    }


def handle_blast(args, engine: SimulationEngine, display: ConsoleReporter) -> dict:
    """Handle the 'blast' subcommand."""
    result = engine.calculate_blast_radius(args.epicenter)
    if not args.quiet and not args.json:
        display.display_blast_radius(result)
    return result.to_dict()


# =============================================================================
# Main Entry Point
# =============================================================================

def main(argv=None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    log_level = (
        logging.WARNING if args.quiet or args.json
        else logging.DEBUG if args.verbose
        else logging.INFO
    )
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    display = ConsoleReporter(use_color=not args.no_color and sys.stdout.isatty())

    try:
        engine = build_engine(args)

        handlers = {
            "run": handle_run,
            "blast": handle_blast,
        }
        result_data = handlers[args.command](args, engine, display)

        if args.json:
            print(json.dumps(result_data, indent=2))

        if args.output:
            with open(args.output, "w") as f:
                json.dump(result_data, f, indent=2)
            if not args.quiet:
                print(f"\n{display.colored(f'Results saved to: {args.output}', display.Colors.GREEN)}")

        return 0

    except KeyboardInterrupt:
        print("\nSimulation interrupted.")
        return 130
    except Exception as e:
        print(display.error(str(e)), file=sys.stderr)
        if args.verbose:
            logging.exception("Simulation failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
