import csv
import json

import pytest

from foodchain.app.headless import run_headless


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
        "tier_0",
        "tier_1",
        "tier_2",
        "births",
        "deaths",
        "eaten_food",
        "eaten_prey",
        "food",
        "avg_health",
        "tick_ms",
    ]
    assert rows[1][-1] == "0.000"
    assert int(rows[1][1]) == sum(int(value) for value in rows[1][2:5])


def test_headless_detailed_log_has_tier_columns(tmp_path):
    log_path = tmp_path / "detailed.csv"
    run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed")
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    idx = {name: i for i, name in enumerate(header)}
    for name in ["tier_0", "tier_1", "tier_2", "avg_speed", "max_generation", "avg_prey_perception"]:
        assert name in idx

    first_row = rows[1]
    assert len(first_row) == len(header)
    population = int(first_row[idx["population"]])
    tiers = sum(int(first_row[idx[f"tier_{i}"]]) for i in range(3))
    assert population == tiers


def test_headless_is_deterministic(tmp_path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"
    run_headless(steps=5, seed=11, log_path=first, deterministic_log=True)
    run_headless(steps=5, seed=11, log_path=second, deterministic_log=True)
    assert first.read_text() == second.read_text()


def test_headless_reads_yaml_config(tmp_path):
    config_path = tmp_path / "tiny.yaml"
    config_path.write_text("fish:\n  quantity: 2\n  total_food_chain_links: 2\nfood:\n  quantity: 3\n")
    ecosystem = run_headless(steps=1, seed=None, log_path=None, config_path=config_path)
    assert len(ecosystem.tiers) == 2


def test_headless_summary(tmp_path):
    summary_path = tmp_path / "summary.json"
    run_headless(steps=4, seed=3, log_path=None, deterministic_log=True, summary_path=summary_path)
    summary = json.loads(summary_path.read_text())
    assert summary["steps"] == 4
    assert summary["seed"] == 3
    assert summary["tick_ms"]["max"] == 0.0
    assert summary["population"]["max"] > 0


def test_headless_rejects_unknown_log_format(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=tmp_path / "x.csv", log_format="fancy")
