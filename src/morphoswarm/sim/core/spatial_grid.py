from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Tuple

from pygame.math import Vector3

if TYPE_CHECKING:
    from .agent import Bird

CellKey = Tuple[int, int, int]


class NeighborIndex(Protocol):
    """Neighbor queries consumed by the update rules."""

    def closest(self, bird: "Bird", radius: float) -> Optional["Bird"]:
        ...

    def within(self, bird: "Bird", radius: float) -> List["Bird"]:
        ...


class SpatialGrid:
    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        self._cell_size = cell_size
        self._cells: Dict[CellKey, List["Bird"]] = {}
        self._active_keys: List[CellKey] = []
        self._offsets_cache: Dict[float, List[CellKey]] = {}

    def __len__(self) -> int:
        return sum(len(self._cells[key]) for key in self._active_keys)

    def build_neighbor_cell_offsets(self, radius: float) -> List[CellKey]:
        cached = self._offsets_cache.get(radius)
        if cached is not None:
            return cached
        cell_range = int(math.ceil(radius / self._cell_size))
        span = range(-cell_range, cell_range + 1)
        offsets = [(dx, dy, dz) for dx in span for dy in span for dz in span]
        self._offsets_cache[radius] = offsets
        return offsets

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()

    def insert(self, bird: "Bird") -> None:
        key = self._cell_key(bird.position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket exists but was cleared at the start of this tick; mark it active again.
            self._active_keys.append(key)
        bucket.append(bird)

    def rebuild(self, birds: List["Bird"]) -> None:
        self.clear()
        for bird in birds:
            self.insert(bird)

    def closest(self, bird: "Bird", radius: float) -> Optional["Bird"]:
        """Nearest other bird within ``radius``; ties go to the lower id."""
        best: Optional["Bird"] = None
        best_dist_sq = radius * radius
        for other, dist_sq in self._scan(bird.position, radius, bird.id):
            if best is None or dist_sq < best_dist_sq or (dist_sq == best_dist_sq and other.id < best.id):
                best = other
                best_dist_sq = dist_sq
        return best

    def within(self, bird: "Bird", radius: float) -> List["Bird"]:
        return [other for other, _ in self._scan(bird.position, radius, bird.id)]

    def _scan(self, position: Vector3, radius: float, exclude_id: int | None):
        base_key = self._cell_key(position)
        radius_sq = radius * radius
        pos_x = position.x
        pos_y = position.y
        pos_z = position.z
        cells = self._cells
        for dx, dy, dz in self.build_neighbor_cell_offsets(radius):
            bucket = cells.get((base_key[0] + dx, base_key[1] + dy, base_key[2] + dz))
            if not bucket:
                continue
            for other in bucket:
                if exclude_id is not None and other.id == exclude_id:
                    continue
                pos = other.position
                offset_x = pos.x - pos_x
                offset_y = pos.y - pos_y
                offset_z = pos.z - pos_z
                dist_sq = offset_x * offset_x + offset_y * offset_y + offset_z * offset_z
                if dist_sq <= radius_sq:
                    yield other, dist_sq

    def _cell_key(self, position: Vector3) -> CellKey:
        size = self._cell_size
        return (int(position.x // size), int(position.y // size), int(position.z // size))
