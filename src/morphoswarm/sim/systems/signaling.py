"""Notch / VEGFR / DLL4 feedback between a bird and its closest neighbor.

Each bird keeps two rolling queues of its recent activation levels. Every
tick it reads the average of its own recent notch activity (which caps how
much VEGFR it can express) and the average of its neighbor's recent VEGFR
activity (which becomes DLL4 presented to it). DLL4 in turn inhibits notch
and sets how fast the bird accelerates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from pygame.math import Vector3

from ..core.signal_queue import SignalQueue
from ..utils.math3d import _clamp_value

if TYPE_CHECKING:
    from ..core.agent import Bird
    from ..core.config import SignalingConfig
    from ..core.rng import DeterministicRng


@dataclass(frozen=True, slots=True)
class SignalReadout:
    env_vegf: float
    vegfr_tot: float
    dll4_tot: float
    act_notch: float
    act_vegfr: float
    migration_rate: float


def environmental_vegf(
    position: Vector3, config: "SignalingConfig", boundary: float, center: Vector3
) -> float:
    profile = config.vegf_profile
    if profile == "uniform":
        level = 1.0
    elif profile == "radial":
        level = 1.0 - (center - position).length() / boundary
    else:
        level = (position.y / boundary + 1.0) / 2.0
    return _clamp_value(level, 0.0, 1.0) * config.vegf_max


def notch_activation(dll4_tot: float, config: "SignalingConfig") -> float:
    if config.suppress_notch:
        return 0.0
    if config.mutant_state == "perm_inhib":
        return config.notch_norm
    if config.mutant_state == "perm_active":
        return 0.0
    return 1.0 - dll4_tot


def update_signaling(
    bird: "Bird",
    neighbor: Optional["Bird"],
    config: "SignalingConfig",
    boundary: float,
    center: Vector3,
    rng: "DeterministicRng",
) -> Tuple[SignalQueue, SignalQueue, SignalReadout]:
    """Advance ``bird``'s queues by one tick.

    Returns fresh queues; the bird and the neighbor are only read.
    """
    window = config.average_window
    env_vegf = environmental_vegf(bird.position, config, boundary, center)

    notch_average = bird.notch_queue.mean_recent(window)
    # Floor first, then cap.
    vegfr_tot = min(
        max(notch_average + rng.next_jitter(config.jitter_scale), config.vegfr_min),
        config.vegfr_max,
    )

    if neighbor is not None:
        neighbor_vegfr = neighbor.vegfr_queue.mean_recent(window)
        dll4_tot = min(
            config.k_actvegfr_dll4 * neighbor_vegfr + rng.next_jitter(config.jitter_scale),
            config.dll4_max,
        )
    else:
        dll4_tot = 0.0

    act_notch = notch_activation(dll4_tot, config)
    act_vegfr = min(vegfr_tot, env_vegf)

    migration_rate = dll4_tot / config.dll4_max if neighbor is not None else 1.0

    readout = SignalReadout(
        env_vegf=env_vegf,
        vegfr_tot=vegfr_tot,
        dll4_tot=dll4_tot,
        act_notch=act_notch,
        act_vegfr=act_vegfr,
        migration_rate=migration_rate,
    )
    return bird.notch_queue.pushed(act_notch), bird.vegfr_queue.pushed(act_vegfr), readout


def signal_color(readout: SignalReadout, config: "SignalingConfig") -> tuple[float, float, float, float]:
    return (readout.act_notch / config.dll4_max, readout.act_vegfr, 1.0, 0.5)
