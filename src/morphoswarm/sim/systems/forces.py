from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple, Optional

from pygame.math import Vector3

from ..utils.math3d import _is_zero

if TYPE_CHECKING:
    from ..core.agent import Bird
    from ..core.config import PotentialConfig, SimulationConfig
    from ..core.rng import DeterministicRng

# Below this separation two birds overlap and exert no force on each other.
_DEGENERATE_DISTANCE = 1e-9


class ForceTerms(NamedTuple):
    centering: Vector3
    randomizing: Vector3
    alignment: Vector3
    interaction: Vector3

    def total(self) -> Vector3:
        return self.centering + self.randomizing + self.alignment + self.interaction


def lennard_jones_potential(distance: float, a: float, b: float) -> float:
    return a / distance ** 12 - b / distance ** 6


def lennard_jones_radial_force(distance: float, a: float, b: float) -> float:
    """Negative derivative of the potential; positive means repulsive."""
    return 12.0 * a / distance ** 13 - 6.0 * b / distance ** 7


def interaction_force(offset: Vector3, config: "PotentialConfig") -> Vector3:
    """Pairwise force on a bird displaced by ``offset`` from its neighbor."""
    length = offset.length()
    if length <= _DEGENERATE_DISTANCE:
        return Vector3()
    model = config.interaction_model
    if model == "threshold":
        if length <= config.avoidance_distance:
            return offset * config.far_weight
        return offset * -config.close_weight
    if model == "lennard_jones_gradient":
        magnitude = lennard_jones_radial_force(length, config.lj_a, config.lj_b)
    else:
        magnitude = lennard_jones_potential(length, config.lj_a, config.lj_b)
    return offset * (magnitude / length)


def force_terms(
    bird: "Bird",
    neighbor: Optional["Bird"],
    config: "SimulationConfig",
    rng: "DeterministicRng",
) -> ForceTerms:
    flocking = config.flocking
    center = Vector3(config.swarm_center)
    centering = (center - bird.position) * flocking.centering_weight
    randomizing = rng.next_centered_vector() * flocking.random_weight
    if neighbor is None:
        return ForceTerms(centering, randomizing, Vector3(), Vector3())
    alignment = (neighbor.velocity - bird.velocity) * flocking.alignment_weight
    interaction = interaction_force(bird.position - neighbor.position, config.potential)
    return ForceTerms(centering, randomizing, alignment, interaction)


def apply_acceleration_policy(total: Vector3, migration_rate: float, policy: str) -> Vector3:
    if policy == "scaled":
        return total * migration_rate
    # The force terms only choose the direction; signaling fixes the magnitude.
    if _is_zero(total):
        return Vector3()
    return total * (migration_rate / total.length())


def compute_acceleration(
    bird: "Bird",
    neighbor: Optional["Bird"],
    migration_rate: float,
    config: "SimulationConfig",
    rng: "DeterministicRng",
) -> Vector3:
    terms = force_terms(bird, neighbor, config, rng)
    return apply_acceleration_policy(terms.total(), migration_rate, config.flocking.acceleration_policy)
