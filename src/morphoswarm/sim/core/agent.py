from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector3

from .signal_queue import SignalQueue


@dataclass(slots=True)
class Bird:
    id: int
    position: Vector3
    velocity: Vector3 = field(default_factory=Vector3)
    acceleration: Vector3 = field(default_factory=Vector3)
    # Only birds of the signaling variant carry queues.
    notch_queue: SignalQueue | None = None
    vegfr_queue: SignalQueue | None = None
