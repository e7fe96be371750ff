"""
Tests for telemetry synthesis and SLA monitoring.
"""

import random

import pytest

from twinsim.config import SLATargets
from twinsim.simulation import (
    EventLog,
    EventType,
    HealthRecord,
    NodeStatus,
    SLAMonitor,
    TelemetryHistory,
    TelemetrySynthesizer,
)


@pytest.fixture
def synth():
    return TelemetrySynthesizer(random.Random(7))


class TestTelemetrySynthesizer:

    def test_healthy_bands(self, synth):
        for _ in range(200):
            s = synth.synthesize("n", 100, NodeStatus.HEALTHY)
            assert 100 <= s.rps <= 200
            assert 50 <= s.latency.p50 <= 100
            assert 0.1 <= s.error_rate <= 0.5
            assert 30 <= s.cpu <= 60
            assert 512 <= s.memory <= 1024

    @pytest.mark.parametrize("health", [100, 75, 40, 10, 0])
    def test_percentiles_ordered(self, synth, health):
        status = NodeStatus.from_health(health)
        for _ in range(100):
            lat = synth.synthesize("n", health, status).latency
            assert lat.p50 <= lat.p95 <= lat.p99

    def test_down_node(self, synth):
        s = synth.synthesize("n", 0, NodeStatus.DOWN)
        assert s.rps == 0
        assert s.latency.p50 == s.latency.p99 == 0
        assert s.error_rate == 100.0
        assert s.cpu == 0
        assert s.connections["active"] == 0
        assert s.traffic["inbound"] == 0

    def test_degraded_shaping(self, synth):
        for _ in range(100):
            s = synth.synthesize("n", 40, NodeStatus.DEGRADED)
            assert 40 <= s.rps <= 80
            assert 80 <= s.latency.p50 <= 160
            assert 45 <= s.cpu <= 90

    def test_derived_fields(self, synth):
        s = synth.synthesize("n", 100, NodeStatus.HEALTHY, timestamp=3.0)
        assert s.timestamp == 3.0
        assert s.latency.p99 in (2 * s.latency.p50 - 1, 2 * s.latency.p50, 2 * s.latency.p50 + 1)
        assert set(s.connections) == {"active", "idle", "failed"}
        assert set(s.traffic) == {"inbound", "outbound"}
        assert s.to_dict()["latency"]["p95"] == s.latency.p95

    def test_seeded_is_reproducible(self):
        a = TelemetrySynthesizer(random.Random(1)).synthesize("n", 100, NodeStatus.HEALTHY)
        b = TelemetrySynthesizer(random.Random(1)).synthesize("n", 100, NodeStatus.HEALTHY)
        assert a == b


class TestTelemetryHistory:

    def test_ring_buffer(self, synth):
        history = TelemetryHistory(size=3)
        for t in range(5):
            history.record(synth.synthesize("n", 100, NodeStatus.HEALTHY, timestamp=t))
        assert [s.timestamp for s in history.get("n")] == [2, 3, 4]
        assert [s.timestamp for s in history.get("n", limit=2)] == [3, 4]
        assert history.latest("n").timestamp == 4
        assert history.get("other") == []
        assert history.latest("other") is None

    def test_summary(self, synth):
        history = TelemetryHistory()
        assert history.summary("n") == {"samples": 0}
        for t in range(10):
            history.record(synth.synthesize("n", 100, NodeStatus.HEALTHY, timestamp=t))
        summary = history.summary("n")
        assert summary["samples"] == 10
        assert 100 <= summary["rps_mean"] <= 200
        assert summary["p99_max"] <= 200

    def test_engine_history_bounded(self, make_engine, chain_graph_data):
        engine = make_engine(chain_graph_data, telemetry_history_size=5)
        engine.start()
        engine.advance(8)
        samples = engine.get_telemetry("api")
        assert [s.timestamp for s in samples] == [4.0, 5.0, 6.0, 7.0, 8.0]
        assert len(engine.get_telemetry("api", limit=2)) == 2
        assert engine.get_telemetry("ghost") == []

    def test_engine_telemetry_disabled(self, make_engine, chain_graph_data):
        engine = make_engine(chain_graph_data, telemetry_enabled=False)
        engine.start()
        engine.advance(3)
        assert engine.get_telemetry("api") == []


class TestSLAMonitor:

    def test_healthy_nodes_stay_compliant(self, engine):
        engine.start()
        engine.advance(20)
        assert engine.event_log.of_type(EventType.SLA_VIOLATED) == []
        assert all(r.sla.compliant for r in engine.get_all_health_states().values())

    def test_violation_is_edge_triggered(self, make_engine):
        engine = make_engine({"nodes": [{"id": "X"}], "edges": []})
        engine.degrade_node("X", 40)
        engine.start()
        engine.advance(5)
        assert len(engine.event_log.of_type(EventType.SLA_VIOLATED, "X")) == 1
        sla = engine.get_health_state("X").sla
        assert sla.compliant is False
        assert sla.availability_actual == 40

    def test_violation_again_after_restore(self, make_engine):
        engine = make_engine({"nodes": [{"id": "X"}], "edges": []})
        engine.start()
        engine.fail_node("X")
        engine.advance(2)
        engine.recover_node("X")
        engine.advance(2)
        assert engine.get_health_state("X").sla.compliant is True
        engine.fail_node("X")
        engine.advance(2)
        assert len(engine.event_log.of_type(EventType.SLA_VIOLATED, "X")) == 2

    def test_no_telemetry_no_check(self, make_engine):
        engine = make_engine({"nodes": [{"id": "X"}], "edges": []}, telemetry_enabled=False)
        engine.degrade_node("X", 10)
        engine.start()
        engine.advance(3)
        assert engine.event_log.of_type(EventType.SLA_VIOLATED) == []

    def test_monitor_updates_actuals(self, synth):
        log = EventLog(lambda: 0.0)
        record = HealthRecord(node_id="n")
        sample = synth.synthesize("n", 100, NodeStatus.HEALTHY)
        assert SLAMonitor(log).check("n", SLATargets(), sample, record) is True
        assert record.sla.latency_actual == sample.latency.p99
        assert record.sla.error_rate_actual == sample.error_rate

        strict = SLATargets(latency=10.0)
        assert SLAMonitor(log).check("n", strict, sample, record) is False
        assert len(log) == 1

    def test_define_sla(self, make_engine):
        engine = make_engine({"nodes": [{"id": "X"}], "edges": []})
        assert engine.define_sla("X", {"latency": 1}) is True
        assert engine.define_sla("ghost", {"latency": 1}) is False
        targets = engine.get_health_state("X").sla.targets
        assert targets.latency == 1
        assert targets.availability == 99.9
        engine.start()
        engine.advance(1)
        assert len(engine.event_log.of_type(EventType.SLA_VIOLATED, "X")) == 1

    def test_config_override(self, make_engine):
        engine = make_engine(
            {"nodes": [{"id": "X"}, {"id": "Y"}], "edges": []},
            sla_overrides={"X": {"availability": 10, "latency": 1000}},
        )
        engine.degrade_node("X", 40)
        engine.degrade_node("Y", 40)
        engine.start()
        engine.advance(1)
        violators = engine.summary()["sla_violations"]
        assert violators == ["Y"]
