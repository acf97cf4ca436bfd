from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Sequence

from ..types.metrics import PlotPoint, TickMetrics

if TYPE_CHECKING:
    from ..core.agent import Bird
    from .signaling import SignalReadout

logger = logging.getLogger(__name__)


def mean_latest_notch(birds: Sequence["Bird"]) -> float:
    values = [bird.notch_queue.latest() for bird in birds if bird.notch_queue is not None]
    return sum(values) / len(values) if values else 0.0


def mean_latest_vegfr(birds: Sequence["Bird"]) -> float:
    values = [bird.vegfr_queue.latest() for bird in birds if bird.vegfr_queue is not None]
    return sum(values) / len(values) if values else 0.0


class SignalSampler:
    """Population averages of the newest notch and vegfr levels, sampled every few ticks."""

    def __init__(self, interval: int, time_step: float) -> None:
        self._interval = max(1, int(interval))
        self._time_step = time_step
        self.notch: List[PlotPoint] = []
        self.vegfr: List[PlotPoint] = []

    @property
    def interval(self) -> int:
        return self._interval

    def clear(self) -> None:
        self.notch.clear()
        self.vegfr.clear()

    def maybe_sample(self, tick: int, birds: Sequence["Bird"]) -> bool:
        if tick % self._interval != 0:
            return False
        time = tick * self._time_step
        notch = mean_latest_notch(birds)
        vegfr = mean_latest_vegfr(birds)
        self.notch.append(PlotPoint(time=time, value=notch))
        self.vegfr.append(PlotPoint(time=time, value=vegfr))
        logger.debug("tick %d: average notch %.4f, average vegfr %.4f", tick, notch, vegfr)
        return True

    def series(self) -> Dict[str, List[Dict[str, float]]]:
        return {
            "Average notch": [{"time": p.time, "value": p.value} for p in self.notch],
            "Average vegfr": [{"time": p.time, "value": p.value} for p in self.vegfr],
        }


def create_metrics(
    tick: int,
    birds: Sequence["Bird"],
    readouts: Sequence["SignalReadout"],
    paired: int,
    collisions: int,
    duration_ms: float,
) -> TickMetrics:
    population = len(birds)
    speed_sum = sum(bird.velocity.length() for bird in birds)
    migration_sum = sum(readout.migration_rate for readout in readouts)
    return TickMetrics(
        tick=tick,
        population=population,
        paired=paired,
        mean_notch=mean_latest_notch(birds),
        mean_vegfr=mean_latest_vegfr(birds),
        mean_migration_rate=migration_sum / len(readouts) if readouts else 0.0,
        mean_speed=speed_sum / population if population else 0.0,
        collisions=collisions,
        tick_duration_ms=duration_ms,
    )
