"""
Tests for the simulation HTTP API.
"""

import time

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from twinsim.config import Settings

BASE = "/api/v1/simulations"


@pytest.fixture
def client():
    return TestClient(create_app(Settings(autotick=False, seed=1)))


@pytest.fixture
def sid(client, chain_graph_data):
    response = client.post(BASE, json={"graph": chain_graph_data})
    assert response.status_code == 201
    return response.json()["simulation_id"]


class TestHealthEndpoints:

    def test_liveness(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["simulations"] == 0

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


class TestSimulationLifecycle:

    def test_create_with_config(self, client, chain_graph_data):
        response = client.post(BASE, json={
            "graph": chain_graph_data,
            "config": {"minutes_per_hop": 9},
        })
        assert response.status_code == 201
        assert response.json()["nodes"] == 4
        assert response.json()["config"]["minutes_per_hop"] == 9
        assert response.json()["config"]["seed"] == 1

    @pytest.mark.parametrize("body", [
        {"graph": {"nodes": [{"id": "a"}, {"id": "b"}],
                   "edges": [{"source": "a", "target": "b", "criticality": "severe"}]}},
        {"graph": {"nodes": [{"type": "x"}]}},
        {"graph": {"nodes": []}, "config": {"bogus": True}},
    ])
    def test_create_invalid_is_400(self, client, body):
        assert client.post(BASE, json=body).status_code == 400

    def test_unknown_simulation_is_404(self, client):
        assert client.post(f"{BASE}/nope/start").status_code == 404
        assert client.get(f"{BASE}/nope/health").status_code == 404
        assert client.delete(f"{BASE}/nope").status_code == 404

    def test_start_tick_pause_stop(self, client, sid):
        response = client.post(f"{BASE}/{sid}/start")
        assert response.json()["state"] == "running"
        assert response.json()["autotick"] is False

        response = client.post(f"{BASE}/{sid}/tick", params={"count": 3})
        assert response.json()["ticks"] == 3
        assert response.json()["time"] == 3.0

        assert client.post(f"{BASE}/{sid}/pause").json()["state"] == "paused"
        assert client.post(f"{BASE}/{sid}/tick").json()["ticks"] == 0

        assert client.post(f"{BASE}/{sid}/stop").json()["state"] == "stopped"
        events = client.get(f"{BASE}/{sid}/events").json()["events"]
        assert [e["type"] for e in events] == ["simulation-stopped"]

    def test_delete(self, client, sid):
        assert client.delete(f"{BASE}/{sid}").status_code == 200
        assert client.get(f"{BASE}/{sid}/summary").status_code == 404


class TestNodeOperations:

    def test_fail_and_read_health(self, client, sid):
        response = client.post(f"{BASE}/{sid}/nodes/db/fail", json={"duration": 10})
        assert response.status_code == 200
        assert response.json()["incident"]["severity"] == "critical"

        health = client.get(f"{BASE}/{sid}/health/api").json()["health"]
        assert health["health"] == 0
        assert health["status"] == "down"

        all_health = client.get(f"{BASE}/{sid}/health").json()["health"]
        assert all_health["cache"]["health"] == 80

    def test_fail_without_body(self, client, sid):
        response = client.post(f"{BASE}/{sid}/nodes/web/fail")
        assert response.status_code == 200
        assert response.json()["incident"] is not None

    def test_degrade_and_recover(self, client, sid):
        response = client.post(f"{BASE}/{sid}/nodes/web/degrade", json={"level": 25})
        assert response.json()["incident"]["severity"] == "high"
        assert client.post(f"{BASE}/{sid}/nodes/web/recover").json()["recovered"] is True
        assert client.post(f"{BASE}/{sid}/nodes/web/recover").json()["recovered"] is False

    def test_control_on_unknown_node_is_noop(self, client, sid):
        response = client.post(f"{BASE}/{sid}/nodes/ghost/fail")
        assert response.status_code == 200
        assert response.json()["incident"] is None

    def test_reads_on_unknown_node_are_404(self, client, sid):
        assert client.get(f"{BASE}/{sid}/health/ghost").status_code == 404
        assert client.get(f"{BASE}/{sid}/telemetry/ghost").status_code == 404
        assert client.get(f"{BASE}/{sid}/blast-radius/ghost").status_code == 404

    def test_sla(self, client, sid):
        response = client.put(f"{BASE}/{sid}/nodes/api/sla", json={"latency": 1})
        assert response.json()["sla"]["latency_target"] == 1
        client.post(f"{BASE}/{sid}/start")
        client.post(f"{BASE}/{sid}/tick")
        summary = client.get(f"{BASE}/{sid}/summary").json()["summary"]
        assert summary["sla_violations"] == ["api"]


class TestObservers:

    def test_telemetry(self, client, sid):
        client.post(f"{BASE}/{sid}/start")
        client.post(f"{BASE}/{sid}/tick", params={"count": 5})
        body = client.get(f"{BASE}/{sid}/telemetry/api", params={"limit": 2}).json()
        assert len(body["samples"]) == 2
        assert body["summary"]["samples"] == 5
        latency = body["samples"][-1]["latency"]
        assert latency["p50"] <= latency["p95"] <= latency["p99"]

    def test_recent_events(self, client, sid):
        client.post(f"{BASE}/{sid}/start")
        client.post(f"{BASE}/{sid}/nodes/db/fail")
        body = client.get(f"{BASE}/{sid}/events", params={"recent": 2}).json()
        assert body["count"] == 2
        assert [e["type"] for e in body["events"]] == ["cascade-started", "cascade-started"]

    def test_blast_radius(self, client, sid):
        result = client.get(f"{BASE}/{sid}/blast-radius/db").json()["result"]
        assert result["radius"] == 2
        assert result["critical_path"] == ["db", "api", "web"]
        assert result["estimated_downtime"] == 10

    def test_scenario(self, client, sid):
        response = client.post(f"{BASE}/{sid}/scenario", json={
            "name": "outage",
            "actions": [{"time": 2, "type": "fail", "target": "web"}],
        })
        assert response.json()["queued"] == 1
        client.post(f"{BASE}/{sid}/start")
        client.post(f"{BASE}/{sid}/tick", params={"count": 2})
        assert client.get(f"{BASE}/{sid}/health/web").json()["health"]["status"] == "down"

    def test_invalid_scenario_is_400(self, client, sid):
        response = client.post(f"{BASE}/{sid}/scenario", json={
            "actions": [{"time": 1, "type": "degrade", "target": "web"}],
        })
        assert response.status_code == 400


def _wait_for(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


class TestAutotick:

    @pytest.fixture
    def live_client(self):
        with TestClient(create_app(Settings(autotick=True, seed=1))) as client:
            yield client

    @pytest.fixture
    def live_sid(self, live_client, chain_graph_data):
        response = live_client.post(BASE, json={
            "graph": chain_graph_data,
            "config": {"tick_interval": 0.01, "speed": 10},
        })
        assert response.status_code == 201
        return response.json()["simulation_id"]

    def _tick(self, client, sid):
        return client.get(f"{BASE}/{sid}/summary").json()["summary"]["tick"]

    def test_ticks_advance_after_start(self, live_client, live_sid):
        response = live_client.post(f"{BASE}/{live_sid}/start")
        assert response.json()["autotick"] is True
        assert _wait_for(lambda: self._tick(live_client, live_sid) >= 3)
        assert live_client.get(f"{BASE}/{live_sid}/summary").json()["autotick"] is True

    def test_second_start_does_not_spawn_another_ticker(self, live_client, live_sid):
        assert live_client.post(f"{BASE}/{live_sid}/start").json()["autotick"] is True
        response = live_client.post(f"{BASE}/{live_sid}/start")
        assert response.json()["changed"] is False
        assert response.json()["autotick"] is False

    def test_pause_ends_ticker(self, live_client, live_sid):
        registry = live_client.app.state.registry
        live_client.post(f"{BASE}/{live_sid}/start")
        assert _wait_for(lambda: self._tick(live_client, live_sid) >= 1)

        paused_at = live_client.post(f"{BASE}/{live_sid}/pause").json()["tick"]
        assert _wait_for(lambda: not registry.is_autoticking(live_sid))
        time.sleep(0.05)
        assert self._tick(live_client, live_sid) == paused_at

        assert live_client.post(f"{BASE}/{live_sid}/start").json()["autotick"] is True
        assert _wait_for(lambda: self._tick(live_client, live_sid) > paused_at)

    def test_stop_cancels_ticker(self, live_client, live_sid):
        registry = live_client.app.state.registry
        live_client.post(f"{BASE}/{live_sid}/start")
        task = registry.autotick_task(live_sid)
        assert task is not None

        assert live_client.post(f"{BASE}/{live_sid}/stop").json()["state"] == "stopped"
        assert registry.autotick_task(live_sid) is None
        assert _wait_for(task.done)
        assert task.cancelled()
        time.sleep(0.05)
        assert self._tick(live_client, live_sid) == 0

    def test_shutdown_collects_tickers(self, chain_graph_data):
        app = create_app(Settings(autotick=True, seed=1))
        registry = app.state.registry
        with TestClient(app) as client:
            sid = client.post(BASE, json={
                "graph": chain_graph_data,
                "config": {"tick_interval": 0.01, "speed": 10},
            }).json()["simulation_id"]
            client.post(f"{BASE}/{sid}/start")
            task = registry.autotick_task(sid)
            assert _wait_for(lambda: registry.get(sid).clock.tick_count >= 1)

        assert task.done()
        assert registry.autotick_task(sid) is None
        assert not registry.is_autoticking(sid)
