from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..config import SimulationConfig
from ..logging_config import configure_logging
from ..sim.core.ecosystem import Ecosystem
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_LEADING_COLUMNS = ["tick", "population"]

_COUNT_COLUMNS = [
    "births",
    "deaths",
    "eaten_food",
    "eaten_prey",
    "food",
    "avg_health",
    "tick_ms",
]

_DETAILED_EXTRA = [
    "avg_speed",
    "avg_generation",
    "max_generation",
    "avg_prey_attraction",
    "avg_predator_repulsion",
    "avg_prey_perception",
    "avg_predator_perception",
]


def _basic_header(tier_count: int) -> list[str]:
    return _LEADING_COLUMNS + [f"tier_{index}" for index in range(tier_count)] + _COUNT_COLUMNS


def _detailed_header(tier_count: int) -> list[str]:
    return _basic_header(tier_count) + _DETAILED_EXTRA


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        *metrics.tier_populations,
        metrics.births,
        metrics.deaths,
        metrics.eaten_food,
        metrics.eaten_prey,
        metrics.food,
        f"{metrics.average_health:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(ecosystem: Ecosystem, metrics: TickMetrics, tick_ms: float) -> list[object]:
    agents = [agent for agent in ecosystem.agents if agent.alive]
    population = len(agents)
    if population <= 0:
        avg_speed = 0.0
        avg_generation = 0.0
        max_generation = 0
        gene_means = [0.0, 0.0, 0.0, 0.0]
    else:
        speed_sum = 0.0
        generation_sum = 0
        max_generation = 0
        gene_sums = [0.0, 0.0, 0.0, 0.0]
        for agent in agents:
            speed_sum += math.hypot(agent.velocity.x, agent.velocity.y)
            generation_sum += agent.generation
            if agent.generation > max_generation:
                max_generation = agent.generation
            for i, gene in enumerate(agent.dna):
                gene_sums[i] += gene
        avg_speed = speed_sum / population
        avg_generation = generation_sum / population
        gene_means = [total / population for total in gene_sums]

    return (
        _format_basic_row(metrics, tick_ms)
        + [f"{avg_speed:.4f}", f"{avg_generation:.4f}", max_generation]
        + [f"{mean:.4f}" for mean in gene_means]
    )


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> Ecosystem:
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    ecosystem = Ecosystem(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        header = _detailed_header if log_mode == "detailed" else _basic_header
        writer.writerow(header(config.tier_count))

    tick_ms_series: list[float] = []
    population_series: list[float] = []
    births = 0
    deaths = 0
    extinct_at: Optional[int] = None

    try:
        for tick in range(steps):
            metrics = ecosystem.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            population_series.append(float(metrics.population))
            births += metrics.births
            deaths += metrics.deaths
            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(ecosystem, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
            if metrics.population == 0:
                extinct_at = tick
                logger.info("Every tier died out at tick %d", tick)
                break
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        summary = {
            "steps": len(tick_ms_series),
            "seed": config.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "births": births,
            "deaths": deaths,
            "extinct_at": extinct_at,
            "tick_ms": _summary_stats(tick_ms_series),
            "population": _summary_stats(population_series),
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return ecosystem


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless food-chain simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: FOODCHAIN_LOG_LEVEL or INFO)")
    args = parser.parse_args()
    configure_logging(level=args.log_level)
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        config_path=args.config,
    )


if __name__ == "__main__":
    main()
