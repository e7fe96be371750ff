"""
Example: Failure Simulation and Cascading Failure Analysis

Demonstrates:
1. Blast radius of a database failure
2. Manual failure injection with timed recovery
3. Scenario replay
4. Reading telemetry and SLA state
"""

import sys
import random
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / '..'))

from twinsim.adapters.outbound import ConsoleReporter
from twinsim.config import load_config
from twinsim.core import GraphData
from twinsim.simulation import DependencyGraph, SimulationEngine, load_scenario

HERE = Path(__file__).parent


def build_engine(seed: int = 42) -> SimulationEngine:
    graph = DependencyGraph(GraphData.from_json(HERE / "data" / "architecture.json"))
    config = load_config(HERE.parent / "config" / "simulation.yaml")
    return SimulationEngine(graph, config, rng=random.Random(seed))


def example_blast_radius(display: ConsoleReporter):
    engine = build_engine()
    for epicenter in ("orders-db", "users-db", "redis"):
        display.display_blast_radius(engine.calculate_blast_radius(epicenter))


def example_manual_failure(display: ConsoleReporter):
    engine = build_engine()
    engine.start()
    engine.fail_node("orders-db", duration=20)
    engine.advance(10)
    display.display_summary(engine.summary(), "After 10s of orders-db outage")
    display.display_health(engine.get_all_health_states().values())

    engine.advance(15)
    display.display_summary(engine.summary(), "After orders-db recovered")
    display.display_events(engine.get_recent_events(10))


def example_scenario(display: ConsoleReporter):
    engine = build_engine()
    engine.start()
    engine.load_scenario(load_scenario(HERE / "data" / "db_outage.yaml"))
    engine.advance(120)
    display.display_summary(engine.summary(), "Scenario: orders-db-outage")

    samples = engine.get_telemetry("gateway", limit=5)
    display.print_subheader("Gateway telemetry (last 5 ticks)")
    for s in samples:
        print(f"  t={s.timestamp:<6g} rps={s.rps:<4} p99={s.latency.p99:<4}ms errors={s.error_rate}%")


def main():
    display = ConsoleReporter(use_color=sys.stdout.isatty())
    example_blast_radius(display)
    example_manual_failure(display)
    example_scenario(display)


if __name__ == "__main__":
    main()
