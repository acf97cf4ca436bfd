from __future__ import annotations

from pygame.math import Vector3


def fixed_boundary(position: Vector3, boundary: float, agent_radius: float) -> Vector3:
    """Clip each axis to the cube shrunk by the bird radius."""
    limit = boundary - agent_radius
    return Vector3(
        _clip(position.x, limit),
        _clip(position.y, limit),
        _clip(position.z, limit),
    )


def periodic_boundary(position: Vector3, boundary: float) -> Vector3:
    """Wrap each axis that left ``[-boundary, boundary]`` back inside it."""
    return Vector3(
        _wrap(position.x, boundary),
        _wrap(position.y, boundary),
        _wrap(position.z, boundary),
    )


def outside(position: Vector3, boundary: float) -> bool:
    return abs(position.x) > boundary or abs(position.y) > boundary or abs(position.z) > boundary


def apply_boundary(position: Vector3, policy: str, boundary: float, agent_radius: float) -> Vector3:
    if policy == "periodic":
        return periodic_boundary(position, boundary)
    return fixed_boundary(position, boundary, agent_radius)


def _clip(value: float, limit: float) -> float:
    if value > limit:
        return limit
    if value < -limit:
        return -limit
    return value


def _wrap(value: float, boundary: float) -> float:
    if value > boundary:
        return (value % boundary) - boundary
    if value < -boundary:
        return (-value) % boundary
    return value
