from __future__ import annotations

import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_METRICS_HEADER = [
    "tick",
    "population",
    "paired",
    "mean_notch",
    "mean_vegfr",
    "mean_migration_rate",
    "mean_speed",
    "collisions",
    "tick_ms",
]

_PLOT_HEADER = ["time", "average_notch", "average_vegfr"]


def _format_metrics_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.paired,
        f"{metrics.mean_notch:.6f}",
        f"{metrics.mean_vegfr:.6f}",
        f"{metrics.mean_migration_rate:.6f}",
        f"{metrics.mean_speed:.6f}",
        metrics.collisions,
        f"{tick_ms:.3f}",
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
    seed: Optional[int] = None,
    log_path: Optional[Path] = None,
    plot_log_path: Optional[Path] = None,
    config: Optional[SimulationConfig] = None,
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
) -> World:
    """Run ``steps`` ticks without a display and write the requested logs.

    Returns the world so callers can inspect the final state.
    """
    config = config if config is not None else SimulationConfig()
    if seed is not None:
        config.seed = seed
    world = World(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_METRICS_HEADER)

    tick_ms_series: list[float] = []
    migration_series: list[float] = []
    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            migration_series.append(metrics.mean_migration_rate)
            if writer:
                writer.writerow(_format_metrics_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()
        world.close()

    if plot_log_path:
        with Path(plot_log_path).open("w", newline="") as handle:
            plot_writer = csv.writer(handle)
            plot_writer.writerow(_PLOT_HEADER)
            for notch, vegfr in zip(world.sampler.notch, world.sampler.vegfr):
                plot_writer.writerow([f"{notch.time:.3f}", f"{notch.value:.6f}", f"{vegfr.value:.6f}"])

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "variant": world.variant,
            "population": len(world.agents),
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "migration_rate": _summary_stats(migration_series),
            "plot_samples": len(world.sampler.notch),
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    logger.info("headless run finished after %d ticks", steps)
    return world
