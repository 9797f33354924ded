from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from time import perf_counter
from typing import Optional

from ..sim.core.agent import AgentState
from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import SimulationStats

logger = logging.getLogger(__name__)

EXTINCTION_GRACE_TICKS = 60

_BASIC_HEADER = [
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

_DETAILED_HEADER = _BASIC_HEADER + [
    *(f"state_{state.value}" for state in AgentState),
    "births_per_agent",
    "deaths_per_agent",
    "max_stress",
    "max_hunger",
    "avg_age",
    "newborns",
    "avg_social_connections",
]


def _format_basic_row(stats: SimulationStats, tick_ms: float) -> list[object]:
    return [
        stats.tick,
        stats.population,
        stats.births,
        stats.deaths.total,
        stats.deaths.starvation,
        stats.deaths.old_age,
        stats.deaths.stress,
        f"{stats.avg_hunger:.4f}",
        f"{stats.avg_energy:.4f}",
        f"{stats.avg_stress:.4f}",
        f"{stats.total_resources:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, stats: SimulationStats, tick_ms: float) -> list[object]:
    population = stats.population
    state_counts = [stats.by_state.get(state.value, 0) for state in AgentState]
    if population <= 0:
        births_per_agent = 0.0
        deaths_per_agent = 0.0
        max_stress = 0.0
        max_hunger = 0.0
        avg_age = 0.0
        newborns = 0
        avg_social = 0.0
    else:
        births_per_agent = stats.births / population
        deaths_per_agent = stats.deaths.total / population
        grace = world.config.behavior.newborn_ticks
        max_stress = 0.0
        max_hunger = 0.0
        age_sum = 0.0
        newborns = 0
        social_sum = 0
        for agent in world.agents:
            max_stress = max(max_stress, agent.stress)
            max_hunger = max(max_hunger, agent.hunger)
            age_sum += agent.age
            social_sum += len(agent.social_connections)
            if agent.is_newborn(world.tick, grace):
                newborns += 1
        avg_age = age_sum / population
        avg_social = social_sum / population

    return _format_basic_row(stats, tick_ms) + state_counts + [
        f"{births_per_agent:.4f}",
        f"{deaths_per_agent:.4f}",
        f"{max_stress:.4f}",
        f"{max_hunger:.4f}",
        f"{avg_age:.4f}",
        newborns,
        f"{avg_social:.4f}",
    ]


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
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def _build_config(
    config_path: Optional[Path], seed: Optional[int], environmental_factor: Optional[float]
) -> SimulationConfig:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if environmental_factor is not None:
        config.environmental_factor = environmental_factor
    return config


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    config_path: Optional[Path] = None,
    environmental_factor: Optional[float] = None,
) -> SimulationStats:
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    config = _build_config(config_path, seed, environmental_factor)
    world = World(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    population_series: list[int] = []
    max_population = (world.population, 0)
    extinct_since: Optional[int] = None
    empty_ticks = 0

    try:
        for _ in range(steps):
            start = perf_counter()
            world.update()
            tick_ms = 0.0 if deterministic_log else (perf_counter() - start) * 1000.0
            stats = world.stats()

            tick_ms_series.append(tick_ms)
            population_series.append(stats.population)
            if stats.population > max_population[0]:
                max_population = (stats.population, stats.tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, stats, tick_ms))
                else:
                    writer.writerow(_format_basic_row(stats, tick_ms))

            if stats.population == 0:
                if extinct_since is None:
                    extinct_since = stats.tick
                empty_ticks += 1
                if empty_ticks > EXTINCTION_GRACE_TICKS:
                    logger.info("Population extinct since tick %d; stopping early", extinct_since)
                    break
            else:
                extinct_since = None
                empty_ticks = 0
    finally:
        if csv_file:
            csv_file.close()

    final = world.stats()
    logger.info(
        "Headless run finished: ticks=%d population=%d births=%d deaths=%d",
        final.tick,
        final.population,
        final.births,
        final.deaths.total,
    )

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "ticks_run": final.tick,
            "seed": world.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "population": _summary_stats([float(v) for v in population_series]),
            "peaks": {
                "population": {"value": max_population[0], "tick": max_population[1]},
            },
            "extinct_since": extinct_since,
            "final": final.as_dict(),
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "population": _summary_stats([float(v) for v in population_series[tail_slice]]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return final


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless behavioral-sink simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation parameters")
    parser.add_argument(
        "--temperature",
        type=float,
        default=None,
        help="Optional outside reading folded into the random seed.",
    )
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
        "--summary-window",
        type=int,
        default=5000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
        environmental_factor=args.temperature,
    )


if __name__ == "__main__":
    main()
