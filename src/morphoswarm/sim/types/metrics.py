from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    paired: int
    mean_notch: float
    mean_vegfr: float
    mean_migration_rate: float
    mean_speed: float
    collisions: int
    tick_duration_ms: float = 0.0


@dataclass(slots=True)
class PlotPoint:
    time: float
    value: float
