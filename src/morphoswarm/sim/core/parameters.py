from __future__ import annotations

import threading
from dataclasses import dataclass, replace

from .config import SliderConfig
from .errors import ControlSurfaceClosed


@dataclass(frozen=True)
class SliderWeights:
    centering: float
    avoidance: float
    straying: float


class LiveWeights:
    """Slider weights shared between the control surface and the tick loop.

    Writers build a new immutable ``SliderWeights`` and swap the reference
    under a lock; the tick reads ``current()`` once and uses that object for
    every bird, so a tick never sees a half-applied update.
    """

    def __init__(self, slider: SliderConfig) -> None:
        self._lock = threading.Lock()
        self._min = slider.weight_min
        self._max = slider.weight_max
        self._initial = SliderWeights(
            centering=self._clamp(slider.centering_weight),
            avoidance=self._clamp(slider.avoidance_weight),
            straying=self._clamp(slider.straying_weight),
        )
        self._current = self._initial
        self._closed = False
        self._version = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def version(self) -> int:
        return self._version

    def current(self) -> SliderWeights:
        return self._current

    def update(
        self,
        centering: float | None = None,
        avoidance: float | None = None,
        straying: float | None = None,
    ) -> SliderWeights:
        with self._lock:
            if self._closed:
                raise ControlSurfaceClosed("control surface has been released")
            changes = {}
            if centering is not None:
                changes["centering"] = self._clamp(centering)
            if avoidance is not None:
                changes["avoidance"] = self._clamp(avoidance)
            if straying is not None:
                changes["straying"] = self._clamp(straying)
            if changes:
                self._current = replace(self._current, **changes)
                self._version += 1
            return self._current

    def set_centering(self, value: float) -> SliderWeights:
        return self.update(centering=value)

    def set_avoidance(self, value: float) -> SliderWeights:
        return self.update(avoidance=value)

    def set_straying(self, value: float) -> SliderWeights:
        return self.update(straying=value)

    def reset(self) -> None:
        with self._lock:
            self._current = self._initial
            self._version += 1

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def _clamp(self, value: float) -> float:
        return max(self._min, min(self._max, float(value)))
