from __future__ import annotations

import pytest
from pygame.math import Vector3
from pytest import approx

from morphoswarm.sim.core.config import SignalingConfig, SimulationConfig
from morphoswarm.sim.core.errors import TickCommitError
from morphoswarm.sim.core.world import World
from morphoswarm.sim.systems import flight


def small_config(**overrides) -> SimulationConfig:
    values = dict(population=20, boundary=100.0, agent_radius=5.0, seed=3)
    values.update(overrides)
    return SimulationConfig(**values)


def run_positions(config: SimulationConfig, steps: int):
    world = World(config)
    try:
        for tick in range(steps):
            world.step(tick)
        return [
            (bird.id, tuple(bird.position), tuple(bird.velocity), bird.notch_queue, bird.vegfr_queue)
            for bird in world.agents
        ]
    finally:
        world.close()


def test_bootstrap_places_birds_inside_cube():
    world = World(small_config(population=50))
    assert [bird.id for bird in world.agents] == list(range(50))
    for bird in world.agents:
        assert all(-50.0 <= c <= 50.0 for c in bird.position)
        assert bird.velocity == Vector3()
        assert len(bird.notch_queue) == 28
        assert len(bird.vegfr_queue) == 28
        assert world.color_of(bird.id) == (1.0, 0.0, 0.0, 0.5)


def test_queue_lengths_never_change():
    config = small_config(signaling=SignalingConfig(notch_queue_length=7, vegfr_queue_length=9, average_window=5))
    world = World(config)
    for tick in range(12):
        world.step(tick)
    for bird in world.agents:
        assert len(bird.notch_queue) == 7
        assert len(bird.vegfr_queue) == 9


def test_deterministic_steps():
    result_a = run_positions(small_config(), 15)
    result_b = run_positions(small_config(), 15)
    assert result_a == result_b


def test_parallel_workers_match_serial_run():
    serial = run_positions(small_config(population=40), 10)
    parallel = run_positions(small_config(population=40, workers=3), 10)
    assert serial == parallel


def test_different_seeds_diverge():
    assert run_positions(small_config(seed=1), 3) != run_positions(small_config(seed=2), 3)


def test_single_bird_flies_at_full_migration_rate():
    world = World(small_config(population=1))
    metrics = world.step(0)
    bird = world.agents[0]

    assert metrics.population == 1
    assert metrics.paired == 0
    assert metrics.mean_migration_rate == approx(1.0)
    assert bird.acceleration.length() == approx(1.0)
    assert bird.velocity.length() == approx(1.0)
    assert bird.notch_queue.latest() == 1.0
    readout = world.readout_of(0)
    assert readout is not None
    assert readout.dll4_tot == 0.0


def test_step_never_mutates_previous_generation():
    world = World(small_config())
    previous = list(world.agents)
    before = [(tuple(bird.position), tuple(bird.velocity), bird.notch_queue.recent(28)) for bird in previous]

    world.step(0)

    assert [(tuple(bird.position), tuple(bird.velocity), bird.notch_queue.recent(28)) for bird in previous] == before
    assert all(new is not old for new, old in zip(world.agents, previous))


def test_speed_and_acceleration_are_capped():
    config = small_config(max_velocity=0.5, max_acceleration=0.2)
    world = World(config)
    for tick in range(5):
        world.step(tick)
    for bird in world.agents:
        assert bird.velocity.length() <= 0.5 + 1e-9
        assert bird.acceleration.length() <= 0.2 + 1e-9


def test_failed_update_does_not_commit_tick(monkeypatch):
    world = World(small_config())
    world.step(0)
    committed = list(world.agents)
    positions = [tuple(bird.position) for bird in committed]
    original_fly = flight.fly

    def failing_fly(bird, closest, config, rng):
        if bird.id == 3:
            raise RuntimeError("boom")
        return original_fly(bird, closest, config, rng)

    monkeypatch.setattr(flight, "fly", failing_fly)
    with pytest.raises(TickCommitError) as excinfo:
        world.step(1)

    assert excinfo.value.tick == 1
    assert excinfo.value.agent_id == 3
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert world.agents == committed
    assert [tuple(bird.position) for bird in world.agents] == positions
    assert world.metrics.tick == 0


def test_failed_update_in_worker_pool_does_not_commit(monkeypatch):
    world = World(small_config(workers=2))
    committed = list(world.agents)
    original_fly = flight.fly

    def failing_fly(bird, closest, config, rng):
        if bird.id == 7:
            raise ValueError("bad bird")
        return original_fly(bird, closest, config, rng)

    monkeypatch.setattr(flight, "fly", failing_fly)
    try:
        with pytest.raises(TickCommitError) as excinfo:
            world.step(0)
    finally:
        world.close()

    assert excinfo.value.agent_id == 7
    assert world.agents == committed


def test_snapshot_taken_mid_step_shows_last_committed_tick(monkeypatch):
    world = World(small_config())
    world.step(0)
    committed = world.snapshot(1)
    last_id = world.agents[-1].id
    original_fly = flight.fly
    seen = []

    def observing_fly(bird, closest, config, rng):
        if bird.id == last_id:
            seen.append(world.snapshot(1))
        return original_fly(bird, closest, config, rng)

    monkeypatch.setattr(flight, "fly", observing_fly)
    world.step(1)

    mid_step = seen[0]
    assert [agent["migration_rate"] for agent in mid_step.agents] == [
        agent["migration_rate"] for agent in committed.agents
    ]
    assert all(agent["migration_rate"] is not None for agent in mid_step.agents)
    assert [agent["color"] for agent in mid_step.agents] == [agent["color"] for agent in committed.agents]
    assert [agent["x"] for agent in mid_step.agents] == [agent["x"] for agent in committed.agents]


def test_sampler_records_every_interval():
    world = World(small_config(plot_interval=5, time_step=0.5))
    for tick in range(11):
        world.step(tick)

    times = [point.time for point in world.sampler.notch]
    assert times == approx([0.0, 2.5, 5.0])
    assert len(world.sampler.vegfr) == 3
    series = world.sampler.series()
    assert set(series) == {"Average notch", "Average vegfr"}
    assert len(series["Average notch"]) == 3


def test_snapshot_contains_metadata_and_agent_signals():
    config = small_config(seed=7, time_step=0.5)
    world = World(config)
    world.step(0)
    snapshot = world.snapshot(1)

    assert snapshot.world.boundary == approx(100.0)
    assert snapshot.world.agent_radius == approx(5.0)
    assert snapshot.metadata.variant == "morphoregulation"
    assert snapshot.metadata.sim_dt == approx(0.5)
    assert snapshot.metadata.tick_rate == approx(2.0)
    assert snapshot.metadata.seed == 7
    assert snapshot.metrics.population == len(world.agents)

    payload = snapshot.agents[0]
    for key in ["id", "x", "y", "z", "vx", "vy", "vz", "color", "notch", "vegfr", "migration_rate"]:
        assert key in payload
    assert payload["speed"] == approx(Vector3(payload["vx"], payload["vy"], payload["vz"]).length())
    assert payload["color"][3] == 0.5


def test_reset_restores_initial_population():
    world = World(small_config())
    initial = [tuple(bird.position) for bird in world.agents]
    for tick in range(4):
        world.step(tick)
    world.reset()

    assert [tuple(bird.position) for bird in world.agents] == initial
    assert world.metrics is None
    assert world.sampler.notch == []


def slider_config(**overrides) -> SimulationConfig:
    values = dict(population=30, boundary=60.0, agent_radius=10.0, seed=5)
    values.update(overrides)
    return SimulationConfig.slider_swarm(**values)


def test_slider_variant_has_no_signaling_state():
    world = World(slider_config())
    assert world.variant == "slider"
    metrics = world.step(0)
    assert metrics.mean_migration_rate == 0.0
    for bird in world.agents:
        assert bird.notch_queue is None
        assert world.readout_of(bird.id) is None


def test_slider_collisions_are_counted_once_per_pair():
    world = World(slider_config())
    metrics = world.step(0)
    contact_sq = (2.0 * world.config.agent_radius) ** 2
    birds = world.agents
    expected = 0
    for i, first in enumerate(birds):
        for second in birds[i + 1:]:
            dx = second.position.x - first.position.x
            dy = second.position.y - first.position.y
            dz = second.position.z - first.position.z
            if dx * dx + dy * dy + dz * dz <= contact_sq:
                expected += 1
    assert metrics.collisions == expected


def test_slider_collisions_never_change_motion():
    bumped = run_positions(slider_config(agent_radius=10.0), 8)
    untouched = run_positions(slider_config(agent_radius=0.0), 8)
    assert bumped == untouched


def test_slider_weights_are_read_each_tick():
    still = World(slider_config())
    moved = World(slider_config())
    still.weights.update(centering=0.0, avoidance=0.0, straying=0.0)

    still.step(0)
    moved.step(0)

    assert all(bird.velocity == Vector3() for bird in still.agents)
    assert any(bird.velocity != Vector3() for bird in moved.agents)


def test_close_is_idempotent():
    world = World(small_config(workers=2))
    world.step(0)
    world.close()
    world.close()
