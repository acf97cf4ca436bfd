from __future__ import annotations

from pygame.math import Vector3


def clamp_magnitude(vector: Vector3, max_length: float) -> Vector3:
    """Rescale ``vector`` to ``max_length`` when it is longer, keeping its direction."""
    length = vector.length()
    if length <= max_length:
        return Vector3(vector)
    scale = max_length / length
    return Vector3(vector.x * scale, vector.y * scale, vector.z * scale)


def integrate(
    position: Vector3,
    velocity: Vector3,
    acceleration: Vector3,
    dt: float,
    max_velocity: float,
) -> tuple[Vector3, Vector3]:
    new_velocity = clamp_magnitude(velocity + acceleration * dt, max_velocity)
    return position + new_velocity * dt, new_velocity
