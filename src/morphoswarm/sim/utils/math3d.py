from __future__ import annotations

from typing import Iterable

from pygame.math import Vector3


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _centroid(positions: Iterable[Vector3]) -> Vector3:
    total_x = 0.0
    total_y = 0.0
    total_z = 0.0
    count = 0
    for pos in positions:
        total_x += pos.x
        total_y += pos.y
        total_z += pos.z
        count += 1
    if count == 0:
        return Vector3()
    return Vector3(total_x / count, total_y / count, total_z / count)


def _is_zero(vector: Vector3) -> bool:
    return vector.x == 0.0 and vector.y == 0.0 and vector.z == 0.0
