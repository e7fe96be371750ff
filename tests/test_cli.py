"""
CLI smoke tests for bin/simulate_twin.py.
"""

import argparse
import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).parent.parent / "bin"))

import simulate_twin


class TestArgumentParsing:

    @pytest.mark.parametrize("value,expected", [
        ("db", ("db", None)),
        ("db:30", ("db", 30.0)),
        ("svc:a:5", ("svc:a", 5.0)),
    ])
    def test_parse_fail(self, value, expected):
        assert simulate_twin.parse_fail(value) == expected

    def test_parse_fail_bad_duration(self):
        with pytest.raises(argparse.ArgumentTypeError):
            simulate_twin.parse_fail("db:soon")

    @pytest.mark.parametrize("value,expected", [
        ("cache:40", ("cache", 40.0, None)),
        ("cache:40:20", ("cache", 40.0, 20.0)),
    ])
    def test_parse_degrade(self, value, expected):
        assert simulate_twin.parse_degrade(value) == expected

    @pytest.mark.parametrize("value", ["cache", "cache:high"])
    def test_parse_degrade_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            simulate_twin.parse_degrade(value)

    def test_no_command_prints_help(self, capsys):
        assert simulate_twin.main([]) == 1


class TestRunCommand:

    def test_run_json(self, graph_file, capsys):
        ret = simulate_twin.main([
            "run", "--graph", str(graph_file), "--ticks", "5",
            "--fail", "db", "--seed", "3", "--json",
        ])
        assert ret == 0
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["tick"] == 5
        assert data["health"]["api"]["status"] == "down"
        assert data["events"][0]["type"] == "simulation-started"

    def test_run_degrade_and_scenario(self, graph_file, tmp_path, capsys):
        scenario = tmp_path / "scenario.yaml"
        scenario.write_text("name: s\nactions:\n  - {time: 2, type: fail, target: web}\n")
        ret = simulate_twin.main([
            "run", "--graph", str(graph_file), "--ticks", "3",
            "--degrade", "cache:40", "--scenario", str(scenario), "--json",
        ])
        assert ret == 0
        data = json.loads(capsys.readouterr().out)
        assert data["health"]["cache"]["health"] == 40
        assert data["health"]["web"]["health"] == 0

    @pytest.mark.parametrize("level,expected", [("inf", 100), ("-inf", 0), ("nan", 0)])
    def test_run_degrade_non_finite_level(self, graph_file, capsys, level, expected):
        ret = simulate_twin.main([
            "run", "--graph", str(graph_file), "--ticks", "1",
            "--degrade", f"cache:{level}", "--json",
        ])
        assert ret == 0
        data = json.loads(capsys.readouterr().out)
        assert data["health"]["cache"]["health"] == expected

    def test_run_table_output(self, graph_file, capsys):
        ret = simulate_twin.main(["run", "--graph", str(graph_file), "--ticks", "2", "--fail", "db:1"])
        assert ret == 0
        out = capsys.readouterr().out
        assert "Simulation Summary" in out
        assert "Node Health" in out

    def test_output_file(self, graph_file, tmp_path):
        out_file = tmp_path / "result.json"
        ret = simulate_twin.main([
            "run", "--graph", str(graph_file), "--ticks", "1", "--quiet", "--output", str(out_file),
        ])
        assert ret == 0
        assert json.loads(out_file.read_text())["summary"]["nodes"] == 4

    def test_missing_graph_is_error(self, tmp_path, capsys):
        ret = simulate_twin.main(["run", "--graph", str(tmp_path / "missing.json")])
        assert ret == 1
        assert "Error" in capsys.readouterr().err


class TestBlastCommand:

    def test_blast_json(self, graph_file, capsys):
        ret = simulate_twin.main(["blast", "--graph", str(graph_file), "--epicenter", "db", "--json"])
        assert ret == 0
        data = json.loads(capsys.readouterr().out)
        assert data["radius"] == 2
        assert data["affected_nodes"] == ["db", "api", "web"]

    def test_blast_table(self, graph_file, capsys):
        ret = simulate_twin.main(["blast", "--graph", str(graph_file), "--epicenter", "db"])
        assert ret == 0
        assert "Critical Path" in capsys.readouterr().out
