# Copyright (C) 2026 Jeff Kline
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Composite channel assembly and a small tap-delay channel generator.

Shapes
------
    direct    (N,)     AP-user response per subband
    cascaded  (L, N)   AP-IRS-user response per reflecting element and subband
    phases    (L,)     unit-modulus reflection coefficients

The composite channel is h = direct + phases @ cascaded, i.e. the diagonal
reflection matrix applied to the incident path and summed over elements.

The generator (`generate_channels`) only exists so the entry point has
something to optimize; any source producing the shapes above will do.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import numpy.random as nr

from .config import ChannelConfig, db2pow
from .errors import DimensionMismatch


def composite_channel(direct: np.ndarray, cascaded: np.ndarray, phases: np.ndarray) -> np.ndarray:
    """Direct path plus the reflected path weighted by the IRS phases."""
    direct = np.asarray(direct)
    cascaded = np.asarray(cascaded)
    phases = np.asarray(phases)
    if direct.ndim != 1 or cascaded.ndim != 2 or phases.ndim != 1:
        raise DimensionMismatch(
            f"expected direct (N,), cascaded (L, N), phases (L,); "
            f"got {direct.shape}, {cascaded.shape}, {phases.shape}"
        )
    if cascaded.shape != (phases.size, direct.size):
        raise DimensionMismatch(
            f"cascaded channel {cascaded.shape} does not match "
            f"{phases.size} reflectors x {direct.size} subbands"
        )
    return direct + phases @ cascaded


def cascaded_channel(incident: np.ndarray, reflective: np.ndarray) -> np.ndarray:
    """AP-IRS response times IRS-user response, per element and subband."""
    incident = np.asarray(incident)
    reflective = np.asarray(reflective)
    if incident.shape != reflective.shape or incident.ndim != 2:
        raise DimensionMismatch(
            f"incident {incident.shape} and reflective {reflective.shape} must both be (L, N)"
        )
    return incident * reflective


def random_phases(n: int, rng: nr.Generator) -> np.ndarray:
    """Unit-modulus vector with i.i.d. uniform phases."""
    return np.exp(1j * 2 * np.pi * rng.random(n))


def path_loss(distance: float, reference_loss: float = -30.0, exponent: float = 2.2) -> float:
    """Large-scale power attenuation at `distance` metres."""
    return db2pow(reference_loss) * distance ** (-exponent)


def tap_rayleigh(n_taps: int, delay_spread: float, rng: nr.Generator, n_links: int = 1) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rayleigh taps on an exponential power-delay profile.

    Returns tap gains of shape (n_taps, n_links) with unit total average power
    per link, and the shared tap delays (n_taps,).
    """
    delays = delay_spread * np.arange(n_taps)
    profile = np.exp(-np.arange(n_taps, dtype=float))
    profile /= profile.sum()
    gains = np.sqrt(profile / 2)[:, None] * (
        rng.standard_normal((n_taps, n_links)) + 1j * rng.standard_normal((n_taps, n_links))
    )
    return gains, delays


def channel_response(
    tap_gain: np.ndarray,
    tap_delay: np.ndarray,
    distance: float,
    gain: float,
    frequencies: np.ndarray,
    fading_mode: str = "selective",
    reference_loss: float = -30.0,
    exponent: float = 2.2,
) -> np.ndarray:
    """
    Per-subband frequency response of a tap-delay line.

    `tap_gain` is (n_taps, M); the result is (M, N). In flat mode every subband
    sees the response at the centre frequency.
    """
    frequencies = np.asarray(frequencies, dtype=float)
    if fading_mode == "flat":
        frequencies = np.full_like(frequencies, frequencies.mean())
    # (n_taps, N) phase rotation of each tap at each subband
    rotation = np.exp(-1j * 2 * np.pi * np.outer(tap_delay, frequencies))
    scale = np.sqrt(gain * path_loss(distance, reference_loss, exponent))
    return scale * (np.asarray(tap_gain).T @ rotation)


def generate_channels(cfg: ChannelConfig, rng: nr.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """Draw one (direct, cascaded) realization for the geometry in `cfg`."""
    frequencies = cfg.subband_frequencies()
    common = dict(
        frequencies=frequencies,
        fading_mode=cfg.fading_mode,
        reference_loss=cfg.reference_loss,
        exponent=cfg.path_loss_exponent,
    )

    direct_gain, direct_delay = tap_rayleigh(cfg.n_taps, cfg.delay_spread, rng)
    incident_gain, incident_delay = tap_rayleigh(cfg.n_taps, cfg.delay_spread, rng, cfg.n_reflectors)
    reflective_gain, reflective_delay = tap_rayleigh(cfg.n_taps, cfg.delay_spread, rng, cfg.n_reflectors)

    direct = channel_response(direct_gain, direct_delay, cfg.direct_distance, cfg.rx_gain, **common)[0]
    incident = channel_response(incident_gain, incident_delay, cfg.incident_distance, cfg.irs_gain, **common)
    reflective = channel_response(reflective_gain, reflective_delay, cfg.reflective_distance, cfg.rx_gain, **common)
    return direct, cascaded_channel(incident, reflective)
