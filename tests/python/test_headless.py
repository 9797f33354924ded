import csv
import json

import pytest

from universe25.app.headless import _DETAILED_HEADER, run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic")
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == [
        "tick",
        "population",
        "births",
        "deaths",
        "starvation",
        "old_age",
        "stress_deaths",
        "avg_hunger",
        "avg_energy",
        "avg_stress",
        "total_resources",
        "tick_ms",
    ]
    assert rows[1][0] == "1"
    assert rows[2][-1] == "0.000"


def test_headless_detailed_log_header_and_ratios(tmp_path):
    log_path = tmp_path / "detailed.csv"
    run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed")
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    assert header == _DETAILED_HEADER
    for name in ["state_exploring", "state_eating", "state_mating", "state_resting", "newborns"]:
        assert name in header

    first = dict(zip(header, rows[1]))
    population = int(first["population"])
    assert population > 0
    assert float(first["births_per_agent"]) == pytest.approx(int(first["births"]) / population, abs=1e-4)
    state_total = sum(int(first[f"state_{name}"]) for name in ["exploring", "eating", "mating", "resting"])
    assert state_total == population


def test_headless_deterministic_logs_match(tmp_path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"
    run_headless(steps=40, seed=7, log_path=first, deterministic_log=True)
    run_headless(steps=40, seed=7, log_path=second, deterministic_log=True)
    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    final = run_headless(
        steps=5,
        seed=3,
        log_path=None,
        deterministic_log=True,
        summary_path=summary_path,
        summary_window=2,
    )
    summary = json.loads(summary_path.read_text())
    assert summary["steps"] == 5
    assert summary["ticks_run"] == 5
    assert summary["seed"] == 3
    assert summary["tail_window"]["window"] == 2
    assert summary["final"]["population"] == final.population
    assert summary["tick_ms"]["max"] == 0.0
    assert summary["peaks"]["population"]["value"] >= 10
    for key in ["min", "max", "avg", "p50", "p90", "p95", "p99"]:
        assert key in summary["population"]


def test_headless_reads_yaml_config(repo_root):
    final = run_headless(steps=1, seed=None, log_path=None, config_path=repo_root / "config" / "utopia.yaml")
    assert final.births >= 15
    assert final.tick == 1


def test_headless_seed_overrides_config(tmp_path, repo_root):
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=1,
        seed=11,
        log_path=None,
        summary_path=summary_path,
        config_path=repo_root / "config" / "utopia.yaml",
    )
    assert json.loads(summary_path.read_text())["seed"] == 11


def test_headless_environmental_factor_folds_seed(tmp_path):
    summary_path = tmp_path / "summary.json"
    run_headless(steps=1, seed=42, log_path=None, summary_path=summary_path, environmental_factor=21.5)
    assert json.loads(summary_path.read_text())["seed"] == (42 * 2150) & 0xFFFFFFFF


def test_headless_stops_after_extinction(tmp_path):
    config_path = tmp_path / "doomed.yaml"
    config_path.write_text("initial_population: 2\nphysiology:\n  max_age: 3\n")
    summary_path = tmp_path / "summary.json"
    final = run_headless(steps=500, seed=1, log_path=None, summary_path=summary_path, config_path=config_path)
    summary = json.loads(summary_path.read_text())
    assert final.population == 0
    assert final.tick < 500
    assert summary["extinct_since"] is not None
    assert final.tick == summary["extinct_since"] + 60


def test_headless_rejects_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=tmp_path / "x.csv", log_format="verbose")
