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
IRS reflection design for a fixed waveform.

With phi = [theta; 1] and a_n = [cascaded[:, n]; direct[n]], the subband gain
is |h_n|^2 = phi^H R_n phi, R_n = conj(a_n) a_n^T. Relaxing Phi = phi phi^H
gives the SDP

    maximize    sum_n power_ratio (|w_In|^2 + |w_Pn|^2) tr(R_n Phi)
    subject to  sum_n log(1 + info_ratio |w_In|^2 tr(R_n Phi) / sigma^2) >= R ln 2
                diag(Phi) = 1,  Phi >= 0

i.e. the linear-harvester surrogate of the current. Randomized candidates are
projected back to unit modulus (theta_l = exp(j arg(phi_l / phi_{L+1}))) and
ranked by the true nonlinear current; the incumbent reflection is always one
of the candidates, so this step never lowers the current.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import cvxpy as cp
import numpy as np
import numpy.random as nr

from .config import ScenarioConfig
from .current import auxiliary_from_vectors, output_current, user_rate
from .errors import DimensionMismatch
from .randomization import RelaxAndRound, eigen_ratio, gaussian_candidates
from .solver import require_optimal, solve
from .waveform import WaveformState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseSolution:
    phases: np.ndarray
    # principal-eigenvalue share of the relaxed Phi
    eig_ratio: float
    current: float


class IrsSDR(RelaxAndRound):
    """Relax-and-round over the IRS reflection vector."""

    def __init__(
        self,
        direct: np.ndarray,
        cascaded: np.ndarray,
        phases: np.ndarray,
        state: WaveformState,
        cfg: ScenarioConfig,
        rate_constraint: float,
        rng: nr.Generator,
    ) -> None:
        super().__init__(cfg.n_candidates, rng)
        self.direct = np.asarray(direct)
        self.cascaded = np.asarray(cascaded)
        self.phases = np.asarray(phases)
        n_reflectors, n_subbands = self.cascaded.shape
        if self.direct.shape != (n_subbands,) or self.phases.shape != (n_reflectors,):
            raise DimensionMismatch(
                f"direct {self.direct.shape} / phases {self.phases.shape} do not fit cascaded {self.cascaded.shape}"
            )
        if state.n_subbands != n_subbands:
            raise DimensionMismatch(f"waveform has {state.n_subbands} subbands, channel has {n_subbands}")
        self.state = state
        self.cfg = cfg
        self.rate_constraint = rate_constraint
        self.eig_ratio = 1.0

    def gain_matrices(self) -> np.ndarray:
        """R_n for every subband, shape (N, L+1, L+1)."""
        stacked = np.vstack([self.cascaded, self.direct[None, :]])
        return np.einsum("in,jn->nij", stacked.conj(), stacked)

    def relax(self) -> List[np.ndarray]:
        n_reflectors, n_subbands = self.cascaded.shape
        info_power = np.abs(self.state.info_waveform) ** 2
        power_power = np.abs(self.state.power_waveform) ** 2

        phi = cp.Variable((n_reflectors + 1, n_reflectors + 1), hermitian=True)
        received = cp.hstack([cp.real(cp.trace(r @ phi)) for r in self.gain_matrices()])
        weights = self.state.power_ratio * (info_power + power_power)

        constr = [phi >> 0, cp.real(cp.diag(phi)) == 1]
        if self.rate_constraint > 0:
            snr = self.state.info_ratio * info_power / self.cfg.noise_power
            constr.append(cp.sum(cp.log(1 + cp.multiply(snr, received))) >= self.rate_constraint * np.log(2))

        prob = cp.Problem(cp.Maximize(weights @ received), constr)
        require_optimal(solve(prob, self.cfg.solver), self.rate_constraint)

        self.eig_ratio = eigen_ratio(phi.value)
        return [phi.value]

    def sample(self, matrices: Sequence[np.ndarray]) -> List[np.ndarray]:
        v = gaussian_candidates(matrices[0], self.rng, self.n_candidates)
        theta = np.exp(1j * (np.angle(v[:, :-1]) - np.angle(v[:, -1:])))
        return [np.vstack([theta, self.phases[None, :]])]

    def evaluate(self, candidates: Sequence[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        h = self.direct + candidates[0] @ self.cascaded
        current = output_current(
            self.cfg.beta2,
            self.cfg.beta4,
            self.state.power_ratio,
            auxiliary_from_vectors(h, self.state.info_waveform),
            auxiliary_from_vectors(h, self.state.power_waveform),
        )
        if self.rate_constraint <= 0:
            return current, np.ones(current.shape, dtype=bool)
        rate = user_rate(self.state.info_ratio, np.abs(self.state.info_waveform) ** 2, h, self.cfg.noise_power)
        return current, rate >= self.rate_constraint * (1 - self.cfg.feasibility_tolerance)


def optimize_phases(
    direct: np.ndarray,
    cascaded: np.ndarray,
    phases: np.ndarray,
    state: WaveformState,
    cfg: ScenarioConfig,
    rate_constraint: float,
    rng: nr.Generator,
) -> PhaseSolution:
    """Reflection coefficients for a fixed waveform; `phases` is the incumbent."""
    sdr = IrsSDR(direct, cascaded, phases, state, cfg, rate_constraint, rng)
    rounded = sdr.run()
    logger.debug("IRS: current %.6e, eigen ratio %.4f", rounded.score, sdr.eig_ratio)
    return PhaseSolution(phases=rounded.vectors[0], eig_ratio=sdr.eig_ratio, current=rounded.score)
