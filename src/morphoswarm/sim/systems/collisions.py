from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

if TYPE_CHECKING:
    from ..core.agent import Bird
    from ..core.rng import DeterministicRng
    from ..core.spatial_grid import SpatialGrid

Color = Tuple[float, float, float, float]


def colliding_pairs(grid: "SpatialGrid", birds: Sequence["Bird"], contact_distance: float) -> List[Tuple["Bird", "Bird"]]:
    """Every pair of birds closer than ``contact_distance``, each pair once."""
    pairs: List[Tuple["Bird", "Bird"]] = []
    for bird in birds:
        for other in grid.within(bird, contact_distance):
            if other.id > bird.id:
                pairs.append((bird, other))
    pairs.sort(key=lambda pair: (pair[0].id, pair[1].id))
    return pairs


def bump(first: Color, second: Color, rng: "DeterministicRng") -> Tuple[Color, Color]:
    """Cosmetic collision response: both birds get a random colour."""
    return rng.next_color(), rng.next_color()
