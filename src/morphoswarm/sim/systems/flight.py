"""Per-bird update rules, one per swarm variant.

Both rules are pure: they read the bird and the neighbors from the previous
tick and return a new ``Bird``; nothing passed in is modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from pygame.math import Vector3

from ..core.agent import Bird
from ..utils.math3d import _centroid
from .boundary import apply_boundary, outside, periodic_boundary
from .forces import compute_acceleration
from .kinematics import clamp_magnitude
from .signaling import SignalReadout, signal_color, update_signaling

if TYPE_CHECKING:
    from ..core.config import SimulationConfig
    from ..core.parameters import SliderWeights
    from ..core.rng import DeterministicRng

Color = tuple[float, float, float, float]


@dataclass(slots=True)
class FlightResult:
    bird: Bird
    readout: Optional[SignalReadout] = None
    color: Optional[Color] = None
    has_neighbor: bool = False


def fly(
    bird: Bird,
    closest: Optional[Bird],
    config: "SimulationConfig",
    rng: "DeterministicRng",
) -> FlightResult:
    """Signaling-driven flight of the morphoregulation swarm."""
    corrected = apply_boundary(bird.position, config.boundary_policy, config.boundary, config.agent_radius)
    notch_queue, vegfr_queue, readout = update_signaling(
        bird,
        closest,
        config.signaling,
        config.boundary,
        Vector3(config.swarm_center),
        rng,
    )
    acceleration = compute_acceleration(bird, closest, readout.migration_rate, config, rng)
    updated = Bird(
        id=bird.id,
        position=corrected,
        velocity=clamp_magnitude(bird.velocity, config.max_velocity),
        acceleration=clamp_magnitude(acceleration, config.max_acceleration),
        notch_queue=notch_queue,
        vegfr_queue=vegfr_queue,
    )
    return FlightResult(
        bird=updated,
        readout=readout,
        color=signal_color(readout, config.signaling),
        has_neighbor=closest is not None,
    )


def fly_slider(
    bird: Bird,
    neighbors: Sequence[Bird],
    closest: Optional[Bird],
    config: "SimulationConfig",
    weights: "SliderWeights",
    rng: "DeterministicRng",
) -> FlightResult:
    """Straying, centering and avoidance flight of the slider swarm."""
    position = bird.position
    neighbor_center = _centroid(other.position for other in neighbors)
    acceleration = rng.next_centered_vector() * weights.straying
    acceleration += (position - neighbor_center) * weights.centering
    if closest is not None:
        acceleration += (position - closest.position) * weights.avoidance
    if outside(position, config.boundary):
        position = periodic_boundary(position, config.boundary)
    updated = Bird(
        id=bird.id,
        position=Vector3(position),
        velocity=clamp_magnitude(bird.velocity, config.max_velocity),
        acceleration=clamp_magnitude(acceleration, config.max_acceleration),
    )
    return FlightResult(bird=updated, has_neighbor=closest is not None)
