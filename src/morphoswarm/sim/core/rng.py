from __future__ import annotations

import random

from pygame.math import Vector3

_MASK = 0xFFFFFFFFFFFFFFFF
_GOLDEN = 0x9E3779B97F4A7C15


def derive_stream_seed(seed: int, *salts: int) -> int:
    """Mix a base seed with salts into an independent 64-bit stream seed."""
    value = int(seed) & _MASK
    for salt in salts:
        value = (value ^ ((int(salt) + _GOLDEN + (value << 6) + (value >> 2)) & _MASK)) & _MASK
    return value


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_jitter(self, scale: float) -> float:
        # random() is in [0, 1), so this lies in (0, scale].
        return scale * (1.0 - self._random.random())

    def next_centered_vector(self) -> Vector3:
        """Uniform sample of the cube [-0.5, 0.5]^3."""
        return Vector3(
            self._random.random() - 0.5,
            self._random.random() - 0.5,
            self._random.random() - 0.5,
        )

    def next_color(self) -> tuple[float, float, float, float]:
        return (self._random.random(), self._random.random(), self._random.random(), 1.0)
