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
Scenario configuration.

Everything a run depends on is carried in frozen dataclasses and passed in
explicitly; nothing is read from module state.

Transceiver
-----------
The rectenna output current is modelled by a truncated Taylor expansion of the
diode characteristic,
    z = beta2 * E[y^2] + beta4 * E[y^4],
with beta2 = k2 * R_ant and beta4 = k4 * R_ant^2.

Defaults
--------
    k2 = 0.0034, k4 = 0.3829, R_ant = 50 ohm
    P = 1 W, sigma_n^2 = -50 dB
    tolerance = 1e-6, Q = 1e4 randomization candidates, 20 R-E samples
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import numpy.random as nr


def db2pow(x: float) -> float:
    """Convert a dB value to linear power scale."""
    return 10 ** (0.1 * x)


_PRECISIONS = ("high", "default", "low")


@dataclass(frozen=True)
class SolverSettings:
    """Which CVXPY backend to call and how hard to push it."""

    solver: str = "CLARABEL"
    fallback: str = "SCS"
    precision: str = "high"
    time_limit: Optional[float] = None  # seconds per solve
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.precision not in _PRECISIONS:
            raise ValueError(f"precision must be one of {_PRECISIONS}, got {self.precision!r}")
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError("time_limit must be positive")


@dataclass(frozen=True)
class ScenarioConfig:
    """Physical and algorithmic parameters of one optimization scenario."""

    # diode k-parameters and antenna resistance
    k2: float = 0.0034
    k4: float = 0.3829
    resistance: float = 50.0
    tx_power: float = 1.0
    noise_power: float = db2pow(-50)

    # minimum gain ratio per iteration
    tolerance: float = 1e-6
    # number of random phase vectors drawn per randomization pass
    n_candidates: int = 10_000
    # number of points on an R-E curve
    n_samples: int = 20
    max_iterations: int = 50
    max_sca_iterations: int = 100
    # relative slack on the rate test of rounded candidates
    feasibility_tolerance: float = 1e-6
    # grid size of the information/power split searched by the low-complexity waveform
    n_power_splits: int = 21
    seed: Optional[int] = None
    solver: SolverSettings = field(default_factory=SolverSettings)

    def __post_init__(self) -> None:
        if self.tx_power < 0 or self.noise_power <= 0:
            raise ValueError("tx_power must be non-negative and noise_power positive")
        if self.tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if self.n_candidates < 1 or self.n_samples < 1:
            raise ValueError("n_candidates and n_samples must be at least 1")
        if self.max_iterations < 1 or self.max_sca_iterations < 1:
            raise ValueError("iteration caps must be at least 1")
        if self.feasibility_tolerance < 0:
            raise ValueError("feasibility_tolerance must be non-negative")
        if self.n_power_splits < 2:
            raise ValueError("n_power_splits must be at least 2")

    @property
    def beta2(self) -> float:
        return self.k2 * self.resistance

    @property
    def beta4(self) -> float:
        return self.k4 * self.resistance ** 2

    def rng(self) -> nr.Generator:
        """A fresh generator seeded from `seed`."""
        return nr.default_rng(self.seed)


@dataclass(frozen=True)
class ChannelConfig:
    """Geometry and band plan used by the demo channel generator."""

    # AP-user and AP-IRS distances (m); the IRS sits on the AP-user line
    direct_distance: float = 10.0
    incident_distance: float = 1.0
    center_frequency: float = 5.18e9
    bandwidth: float = 1e6
    n_subbands: int = 4
    n_reflectors: int = 10
    irs_gain: float = 1.0
    rx_gain: float = 1.0
    fading_mode: str = "selective"
    n_taps: int = 8
    # rms delay spread of the exponential power-delay profile (s)
    delay_spread: float = 15e-9
    # path loss at 1 m (dB) and exponent
    reference_loss: float = -30.0
    path_loss_exponent: float = 2.2

    def __post_init__(self) -> None:
        if self.fading_mode not in ("flat", "selective"):
            raise ValueError(f"fading_mode must be 'flat' or 'selective', got {self.fading_mode!r}")
        if not 0 < self.incident_distance < self.direct_distance:
            raise ValueError("the IRS must sit strictly between AP and user")
        if self.n_subbands < 1 or self.n_reflectors < 1 or self.n_taps < 1:
            raise ValueError("n_subbands, n_reflectors and n_taps must be at least 1")

    @property
    def reflective_distance(self) -> float:
        return self.direct_distance - self.incident_distance

    def subband_frequencies(self) -> np.ndarray:
        """Centre frequencies of the subbands, evenly spread over the bandwidth."""
        spacing = self.bandwidth / self.n_subbands
        offsets = (np.arange(self.n_subbands) - (self.n_subbands - 1) / 2) * spacing
        return self.center_frequency + offsets
