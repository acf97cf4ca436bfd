from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ConfigError

MUTANT_STATES = (None, "perm_inhib", "perm_active")
VEGF_PROFILES = ("vertical", "radial", "uniform")
INTERACTION_MODELS = ("lennard_jones", "lennard_jones_gradient", "threshold")
ACCELERATION_POLICIES = ("fixed_magnitude", "scaled")
BOUNDARY_POLICIES = ("fixed", "periodic")


@dataclass
class SignalingConfig:
    vegf_max: float = 1.0
    # DAPT treatment: notch activation is suppressed entirely.
    suppress_notch: bool = False
    mutant_state: str | None = None
    notch_norm: float = 1.0
    dll4_max: float = 1.0
    vegfr_max: float = 1.0
    vegfr_min: float = 0.0
    # Active VEGFR converted to DLL4 on the neighbor ("delta").
    k_actvegfr_dll4: float = 0.75
    notch_queue_length: int = 28
    vegfr_queue_length: int = 28
    average_window: int = 5
    jitter_scale: float = 1e-4
    vegf_profile: str = "vertical"


@dataclass
class PotentialConfig:
    # Lennard-Jones parameters, CH4 values.
    lj_epsilon: float = 18.7
    lj_sigma: float = 3.68
    interaction_model: str = "lennard_jones"
    avoidance_distance: float = 25.0
    far_weight: float = 0.001
    close_weight: float = 10.0

    @property
    def lj_a(self) -> float:
        return 4.0 * self.lj_epsilon * self.lj_sigma ** 12

    @property
    def lj_b(self) -> float:
        return 4.0 * self.lj_epsilon * self.lj_sigma ** 6


@dataclass
class FlockingConfig:
    centering_weight: float = 0.0005
    random_weight: float = 0.001
    alignment_weight: float = 0.0
    acceleration_policy: str = "fixed_magnitude"


@dataclass
class SliderConfig:
    centering_weight: float = 10.0
    avoidance_weight: float = 10.0
    straying_weight: float = 1.0
    weight_min: float = -500.0
    weight_max: float = 500.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0
    population: int = 2000
    boundary: float = 300.0
    agent_radius: float = 25.0
    neighborhood_radius: float = 50.0
    max_velocity: float = 5.0
    max_acceleration: float = 10.0
    swarm_center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    boundary_policy: str = "fixed"
    signaling_enabled: bool = True
    integrate_kinematics: bool = True
    plot_interval: int = 50
    workers: int = 1
    seed: int = 42
    config_version: str = "v1"
    signaling: SignalingConfig = field(default_factory=SignalingConfig)
    potential: PotentialConfig = field(default_factory=PotentialConfig)
    flocking: FlockingConfig = field(default_factory=FlockingConfig)
    slider: SliderConfig = field(default_factory=SliderConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    @staticmethod
    def slider_swarm(**overrides) -> "SimulationConfig":
        """Defaults of the interactively tuned variant without signaling."""
        values = dict(population=500, boundary_policy="periodic", signaling_enabled=False)
        values.update(overrides)
        return SimulationConfig(**values)

    def validate(self) -> None:
        signaling = self.signaling
        potential = self.potential
        if signaling.notch_queue_length <= 0:
            raise ConfigError("signaling.notch_queue_length", "must be positive")
        if signaling.vegfr_queue_length <= 0:
            raise ConfigError("signaling.vegfr_queue_length", "must be positive")
        if signaling.average_window <= 0:
            raise ConfigError("signaling.average_window", "must be positive")
        shortest = min(signaling.notch_queue_length, signaling.vegfr_queue_length)
        if signaling.average_window > shortest:
            raise ConfigError("signaling.average_window", f"must not exceed the queue length ({shortest})")
        if signaling.dll4_max <= 0:
            raise ConfigError("signaling.dll4_max", "must be positive")
        if signaling.jitter_scale <= 0:
            raise ConfigError("signaling.jitter_scale", "must be positive")
        if signaling.vegfr_min < 0:
            raise ConfigError("signaling.vegfr_min", "must not be negative")
        if signaling.vegfr_min > signaling.vegfr_max:
            raise ConfigError("signaling.vegfr_min", "must not exceed vegfr_max")
        if signaling.vegf_max < 0:
            raise ConfigError("signaling.vegf_max", "must not be negative")
        if signaling.mutant_state not in MUTANT_STATES:
            raise ConfigError("signaling.mutant_state", f"expected one of {MUTANT_STATES}")
        if signaling.vegf_profile not in VEGF_PROFILES:
            raise ConfigError("signaling.vegf_profile", f"expected one of {VEGF_PROFILES}")
        if potential.lj_epsilon <= 0:
            raise ConfigError("potential.lj_epsilon", "must be positive")
        if potential.lj_sigma <= 0:
            raise ConfigError("potential.lj_sigma", "must be positive")
        if potential.interaction_model not in INTERACTION_MODELS:
            raise ConfigError("potential.interaction_model", f"expected one of {INTERACTION_MODELS}")
        if self.flocking.acceleration_policy not in ACCELERATION_POLICIES:
            raise ConfigError("flocking.acceleration_policy", f"expected one of {ACCELERATION_POLICIES}")
        if self.boundary_policy not in BOUNDARY_POLICIES:
            raise ConfigError("boundary_policy", f"expected one of {BOUNDARY_POLICIES}")
        if self.slider.weight_min > self.slider.weight_max:
            raise ConfigError("slider.weight_min", "must not exceed weight_max")
        if self.boundary <= 0:
            raise ConfigError("boundary", "must be positive")
        if not 0 <= self.agent_radius < self.boundary:
            raise ConfigError("agent_radius", "must lie in [0, boundary)")
        if signaling.k_actvegfr_dll4 < 0:
            raise ConfigError("signaling.k_actvegfr_dll4", "must not be negative")
        if self.time_step <= 0:
            raise ConfigError("time_step", "must be positive")
        if self.population < 0:
            raise ConfigError("population", "must not be negative")
        if self.max_velocity < 0 or self.max_acceleration < 0:
            raise ConfigError("max_velocity/max_acceleration", "caps must not be negative")
        if self.neighborhood_radius <= 0:
            raise ConfigError("neighborhood_radius", "must be positive")
        if self.workers < 1:
            raise ConfigError("workers", "at least one worker is required")
        if self.plot_interval < 1:
            raise ConfigError("plot_interval", "must be at least one tick")
        if len(self.swarm_center) != 3:
            raise ConfigError("swarm_center", "expected three components")


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2
    tick_interval_seconds: float = 1.0 / 30.0


def load_config(raw: dict) -> SimulationConfig:
    def _section(name: str) -> dict:
        value = raw.get(name) or {}
        if not isinstance(value, dict):
            raise ConfigError(name, "expected a mapping")
        return value

    try:
        signaling = SignalingConfig(**_section("signaling"))
        potential = PotentialConfig(**_section("potential"))
        flocking = FlockingConfig(**_section("flocking"))
        slider = SliderConfig(**_section("slider"))
        sim_values = {
            k: v for k, v in raw.items() if k not in {"signaling", "potential", "flocking", "slider"}
        }
        if "swarm_center" in sim_values:
            sim_values["swarm_center"] = tuple(float(v) for v in sim_values["swarm_center"])
        config = SimulationConfig(
            signaling=signaling, potential=potential, flocking=flocking, slider=slider, **sim_values
        )
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc
    return config

