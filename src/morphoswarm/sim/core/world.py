from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from time import perf_counter
from typing import Any, Dict, List, Optional

from pygame.math import Vector3

from .agent import Bird
from .config import SimulationConfig
from .errors import TickCommitError
from .parameters import LiveWeights, SliderWeights
from .rng import DeterministicRng, derive_stream_seed
from .signal_queue import SignalQueue
from .spatial_grid import SpatialGrid
from ..systems import collisions, flight, kinematics, metrics as metrics_system
from ..systems.collisions import Color
from ..systems.flight import FlightResult
from ..systems.signaling import SignalReadout
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld

logger = logging.getLogger(__name__)

_PLACEMENT_RNG_SALT = 0x5EEDB1AD0F1A5C0D
_APPEARANCE_RNG_SALT = 0xA51E0EA7E9CA2311
_FLIGHT_RNG_SALT = 0xF11647C0FFEE0042

_MORPHOREGULATION_COLOR = (1.0, 0.0, 0.0, 0.5)
_SLIDER_COLOR = (1.0, 0.0, 0.0, 1.0)


class World:
    """Population store and tick driver.

    Birds live in two buffers. A tick reads every bird from the front buffer,
    writes the updated birds into the back buffer and swaps the two only once
    every update succeeded, so no bird ever sees another bird's state from the
    same tick.
    """

    def __init__(self, config: SimulationConfig, weights: LiveWeights | None = None):
        config.validate()
        self._config = config
        self._weights = weights if weights is not None else LiveWeights(config.slider)
        self._placement_rng = DeterministicRng(derive_stream_seed(config.seed, _PLACEMENT_RNG_SALT))
        self._appearance_rng = DeterministicRng(derive_stream_seed(config.seed, _APPEARANCE_RNG_SALT))
        self._grid = SpatialGrid(config.neighborhood_radius)
        self._front: List[Bird] = []
        self._back: List[Bird] = []
        self._colors: Dict[int, Color] = {}
        self._readouts: Dict[int, SignalReadout] = {}
        self._sampler = metrics_system.SignalSampler(config.plot_interval, config.time_step)
        self._metrics: TickMetrics | None = None
        self._executor: ThreadPoolExecutor | None = None
        if config.workers > 1:
            self._executor = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="swarm")
        self._bootstrap_population()
        logger.info(
            "world ready: %d birds, variant=%s, boundary=%s, workers=%d",
            len(self._front),
            self.variant,
            config.boundary,
            config.workers,
        )

    @property
    def agents(self) -> List[Bird]:
        return self._front

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def weights(self) -> LiveWeights:
        return self._weights

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def sampler(self) -> metrics_system.SignalSampler:
        return self._sampler

    @property
    def variant(self) -> str:
        return "morphoregulation" if self._config.signaling_enabled else "slider"

    def color_of(self, bird_id: int) -> Color:
        return self._colors.get(bird_id, self._default_color())

    def readout_of(self, bird_id: int) -> SignalReadout | None:
        return self._readouts.get(bird_id)

    def reset(self) -> None:
        self._front.clear()
        self._back.clear()
        self._grid.clear()
        self._colors = {}
        self._readouts = {}
        self._sampler.clear()
        self._placement_rng.reset()
        self._appearance_rng.reset()
        self._metrics = None
        self._bootstrap_population()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        config = self._config
        current = self._front
        self._grid.rebuild(current)
        self._grid.build_neighbor_cell_offsets(config.neighborhood_radius)
        weights = self._weights.current()

        if self._executor is not None and len(current) > 1:
            results = list(self._executor.map(lambda bird: self._advance(tick, bird, weights), current))
        else:
            results = [self._advance(tick, bird, weights) for bird in current]

        readouts: List[SignalReadout] = []
        readout_table: Dict[int, SignalReadout] = {}
        colors = dict(self._colors)
        for result in results:
            if result.readout is not None:
                readout_table[result.bird.id] = result.readout
                readouts.append(result.readout)
            if result.color is not None:
                colors[result.bird.id] = result.color

        back = self._back
        back.clear()
        back.extend(result.bird for result in results)

        collision_count = 0
        if not config.signaling_enabled:
            collision_count = self._resolve_collisions(back, colors)

        # Readers see none of this tick until every update and the collision pass succeeded.
        self._readouts = readout_table
        self._colors = colors
        self._front, self._back = back, current

        self._sampler.maybe_sample(tick, self._front)
        paired = sum(1 for result in results if result.has_neighbor)
        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(tick, self._front, readouts, paired, collision_count, elapsed_ms)
        self._metrics = metrics
        return metrics

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(tick, self._front, [], 0, 0, 0.0)
        config = self._config
        metadata = SnapshotMetadata(
            variant=self.variant,
            sim_dt=config.time_step,
            tick_rate=1.0 / config.time_step,
            seed=config.seed,
            config_version=config.config_version,
        )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=[self._agent_snapshot(bird) for bird in self._front],
            world=SnapshotWorld(boundary=config.boundary, agent_radius=config.agent_radius),
            metadata=metadata,
        )

    def _advance(self, tick: int, bird: Bird, weights: SliderWeights) -> FlightResult:
        try:
            return self._update_bird(tick, bird, weights)
        except Exception as exc:
            logger.error("bird %d failed to update at tick %d: %s", bird.id, tick, exc)
            raise TickCommitError(tick, bird.id) from exc

    def _update_bird(self, tick: int, bird: Bird, weights: SliderWeights) -> FlightResult:
        config = self._config
        rng = DeterministicRng(derive_stream_seed(config.seed, _FLIGHT_RNG_SALT, tick, bird.id))
        closest = self._grid.closest(bird, config.neighborhood_radius)
        if config.signaling_enabled:
            result = flight.fly(bird, closest, config, rng)
        else:
            neighbors = self._grid.within(bird, config.neighborhood_radius)
            result = flight.fly_slider(bird, neighbors, closest, config, weights, rng)
        if config.integrate_kinematics:
            moved = result.bird
            moved.position, moved.velocity = kinematics.integrate(
                moved.position, moved.velocity, moved.acceleration, config.time_step, config.max_velocity
            )
        return result

    def _resolve_collisions(self, birds: List[Bird], colors: Dict[int, Color]) -> int:
        contact = 2.0 * self._config.agent_radius
        if contact <= 0.0:
            return 0
        self._grid.rebuild(birds)
        pairs = collisions.colliding_pairs(self._grid, birds, contact)
        default = self._default_color()
        for first, second in pairs:
            colors[first.id], colors[second.id] = collisions.bump(
                colors.get(first.id, default), colors.get(second.id, default), self._appearance_rng
            )
        return len(pairs)

    def _bootstrap_population(self) -> None:
        config = self._config
        signaling = config.signaling
        for bird_id in range(config.population):
            position = self._random_position()
            if config.signaling_enabled:
                bird = Bird(
                    id=bird_id,
                    position=position,
                    notch_queue=SignalQueue.zeros(signaling.notch_queue_length),
                    vegfr_queue=SignalQueue.zeros(signaling.vegfr_queue_length),
                )
            else:
                bird = Bird(id=bird_id, position=position)
            self._front.append(bird)
            self._colors[bird_id] = self._default_color()

    def _random_position(self) -> Vector3:
        size = self._config.boundary
        half = size / 2.0
        rng = self._placement_rng
        return Vector3(
            rng.next_float() * size - half,
            rng.next_float() * size - half,
            rng.next_float() * size - half,
        )

    def _default_color(self) -> Color:
        return _MORPHOREGULATION_COLOR if self._config.signaling_enabled else _SLIDER_COLOR

    def _agent_snapshot(self, bird: Bird) -> Dict[str, Any]:
        readout: Optional[SignalReadout] = self._readouts.get(bird.id)
        return {
            "id": bird.id,
            "x": bird.position.x,
            "y": bird.position.y,
            "z": bird.position.z,
            "vx": bird.velocity.x,
            "vy": bird.velocity.y,
            "vz": bird.velocity.z,
            "speed": bird.velocity.length(),
            "color": list(self.color_of(bird.id)),
            "notch": bird.notch_queue.latest() if bird.notch_queue is not None else None,
            "vegfr": bird.vegfr_queue.latest() if bird.vegfr_queue is not None else None,
            "migration_rate": readout.migration_rate if readout is not None else None,
        }
