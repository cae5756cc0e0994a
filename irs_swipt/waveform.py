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
Superposed information/power waveform design for a fixed composite channel.

Model (high level)
------------------
The transmitter sends w_I (information) + w_P (power) over N subbands. The
receiver splits the signal: a fraction info_ratio to the decoder, power_ratio
to the rectenna. With W_I = w_I w_I^H and W_P = w_P w_P^H the program is

    maximize    z(W_I, W_P, power_ratio)
    subject to  1/2 (tr W_I + tr W_P) <= P
                sum_n log2(1 + info_ratio [W_I]_nn |h_n|^2 / sigma^2) >= R
                info_ratio + power_ratio <= 1

Semidefinite relaxation drops rank(W) = 1. Writing the current as
z = 1/2 beta2 rho s + 3/8 beta4 rho^2 q + 3/2 beta4 rho^2 p (see `current`),
each product of non-negative terms is bounded below with

    x y >= 1/2 m (c x + y / c) - 1/4 (c x - y / c)^2 - 1/4 m^2,   m = c x0 + y0 / c,

which holds for any c > 0 and is tight at (x0, y0). rho^2 is replaced by
a <= 2 rho0 rho - rho0^2, q by b_q <= its tangent plane through (A_I, A_P),
and t_I0 t_P0 by b_p <= the same product bound. Every piece is tight at the
incumbent, so the surrogate touches the relaxed current there and each SCA
iteration can only raise it. The loop stops when the relative gain drops
below the tolerance, keeps the best iterate seen, and Gaussian randomization
then recovers rank-one waveforms; the incumbent waveform is always one of the
candidates.

Also here: the adaptive single-sine (ASS) design that is optimal for the
linear harvester model, the MRT precoder, water-filling (the largest rate the
link supports), and the low-complexity design pairing a water-filling
information waveform with a scaled matched filter (SMF) power waveform.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import cvxpy as cp
import numpy as np
import numpy.random as nr
import scipy.optimize as so

from .config import ScenarioConfig
from .convergence import ConvergenceStatus, has_converged, iteration_limit
from .current import (
    auxiliary_from_vectors,
    auxiliary_moments,
    channel_coef_matrices,
    output_current,
    quartic_moment,
    sca_coef_matrices,
    user_rate,
)
from .errors import DimensionMismatch, Infeasible
from .randomization import RelaxAndRound, eigen_ratio
from .solver import require_optimal, solve

logger = logging.getLogger(__name__)

# rounding slack allowed on solver-returned ratios
_RATIO_SLACK = 1e-6


@dataclass(frozen=True)
class WaveformState:
    """Waveform vectors and splitting ratios."""

    info_waveform: np.ndarray
    power_waveform: np.ndarray
    info_ratio: float
    power_ratio: float

    def __post_init__(self) -> None:
        info = np.asarray(self.info_waveform, dtype=complex)
        power = np.asarray(self.power_waveform, dtype=complex)
        if info.ndim != 1 or info.shape != power.shape:
            raise DimensionMismatch(f"waveforms must be equal-length vectors, got {info.shape} and {power.shape}")
        if min(self.info_ratio, self.power_ratio) < -_RATIO_SLACK:
            raise ValueError("splitting ratios must be non-negative")
        if self.info_ratio + self.power_ratio > 1 + _RATIO_SLACK:
            raise ValueError(f"splitting ratios sum to {self.info_ratio + self.power_ratio:.6g} > 1")
        object.__setattr__(self, "info_waveform", info)
        object.__setattr__(self, "power_waveform", power)
        object.__setattr__(self, "info_ratio", float(max(self.info_ratio, 0.0)))
        object.__setattr__(self, "power_ratio", float(max(self.power_ratio, 0.0)))

    @property
    def n_subbands(self) -> int:
        return self.info_waveform.size

    def matrices(self) -> Tuple[np.ndarray, np.ndarray]:
        """Outer products (W_I, W_P)."""
        return (
            np.outer(self.info_waveform, self.info_waveform.conj()),
            np.outer(self.power_waveform, self.power_waveform.conj()),
        )

    def transmit_power(self) -> float:
        return 0.5 * float(np.sum(np.abs(self.info_waveform) ** 2) + np.sum(np.abs(self.power_waveform) ** 2))

    def to_dict(self) -> Dict[str, object]:
        return {
            "info_waveform": [[float(x.real), float(x.imag)] for x in self.info_waveform],
            "power_waveform": [[float(x.real), float(x.imag)] for x in self.power_waveform],
            "info_ratio": self.info_ratio,
            "power_ratio": self.power_ratio,
        }


def evaluate_state(h: np.ndarray, state: WaveformState, cfg: ScenarioConfig) -> Tuple[float, float]:
    """True output current and rate of a rank-one waveform state on channel `h`."""
    t_info = auxiliary_from_vectors(h, state.info_waveform)
    t_power = auxiliary_from_vectors(h, state.power_waveform)
    current = float(output_current(cfg.beta2, cfg.beta4, state.power_ratio, t_info, t_power))
    rate = float(user_rate(state.info_ratio, np.abs(state.info_waveform) ** 2, h, cfg.noise_power))
    return current, rate


def precoder_mrt(h: np.ndarray, info_amplitude: np.ndarray, power_amplitude: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Co-phase both waveforms with the channel (maximum-ratio transmission)."""
    magnitude = np.abs(h)
    phase = np.ones_like(h, dtype=complex)
    nonzero = magnitude > 0
    phase[nonzero] = np.conj(h[nonzero]) / magnitude[nonzero]
    return info_amplitude * phase, power_amplitude * phase


def waveform_ass(beta2: float, beta4: float, h: np.ndarray, tx_power: float) -> Tuple[float, np.ndarray, np.ndarray, float, float]:
    """
    Adaptive single sine: all power on the strongest subband, everything to the rectenna.

    Returns (current, info_amplitude, power_amplitude, info_ratio, power_ratio).
    """
    h = np.asarray(h)
    info_amplitude = np.zeros(h.size)
    power_amplitude = np.zeros(h.size)
    power_amplitude[int(np.argmax(np.abs(h)))] = np.sqrt(2 * tx_power)
    info_ratio, power_ratio = 0.0, 1.0

    info_waveform, power_waveform = precoder_mrt(h, info_amplitude, power_amplitude)
    current = float(output_current(
        beta2,
        beta4,
        power_ratio,
        auxiliary_from_vectors(h, info_waveform),
        auxiliary_from_vectors(h, power_waveform),
    ))
    return current, info_amplitude, power_amplitude, info_ratio, power_ratio


def water_filling(h: np.ndarray, tx_power: float, noise_power: float) -> Tuple[np.ndarray, float]:
    """Rate-maximizing |w_n|^2 with sum_n |w_n|^2 = 2P, and the resulting rate."""
    gains = np.abs(np.asarray(h)) ** 2 / noise_power
    budget = 2 * tx_power
    order = np.argsort(gains)[::-1]
    power = np.zeros(gains.size)
    for k in range(gains.size, 0, -1):
        active = order[:k]
        weakest = gains[active[-1]]
        if weakest <= 0:
            continue
        level = (budget + np.sum(1 / gains[active])) / k
        if level >= 1 / weakest:
            power[active] = level - 1 / gains[active]
            break
    rate = float(np.sum(np.log2(1 + power * gains)))
    return power, rate


def initial_waveform(h: np.ndarray, cfg: ScenarioConfig, rate_constraint: float = 0.0) -> WaveformState:
    """
    Starting point for the SCA: a blend of a water-filling information waveform
    and a single-sine power waveform, using full power.

    The blend moves toward the pure information corner until the true rate
    meets `rate_constraint`; the corner itself is returned if nothing else does.
    """
    h = np.asarray(h)
    wf_power, _ = water_filling(h, cfg.tx_power, cfg.noise_power)
    _, _, ass_amplitude, _, _ = waveform_ass(cfg.beta2, cfg.beta4, h, cfg.tx_power)
    info_full, power_full = precoder_mrt(h, np.sqrt(wf_power), ass_amplitude)

    for blend in (0.5, 0.25, 0.1, 0.01, 0.0):
        state = WaveformState(np.sqrt(1 - blend) * info_full, np.sqrt(blend) * power_full, 1 - blend, blend)
        if rate_constraint <= 0 or evaluate_state(h, state, cfg)[1] >= rate_constraint:
            break
    return state


def waveform_smf(h: np.ndarray, alpha: float, tx_power: float) -> np.ndarray:
    """Scaled matched filter amplitudes s_n proportional to |h_n|^alpha, with sum_n s_n^2 = 2P."""
    if alpha < 0:
        raise ValueError(f"alpha must be non-negative, got {alpha}")
    shape = np.abs(np.asarray(h)) ** alpha
    norm = np.linalg.norm(shape)
    if norm == 0:
        shape, norm = np.ones(shape.size), np.sqrt(shape.size)
    return np.sqrt(2 * tx_power) * shape / norm


def _min_info_ratio(snr: np.ndarray, rate_constraint: float) -> float:
    """Smallest info_ratio with sum_n log2(1 + info_ratio snr_n) >= rate_constraint."""
    if rate_constraint <= 0:
        return 0.0

    def gap(ratio: float) -> float:
        return float(np.sum(np.log2(1 + ratio * snr))) - rate_constraint

    if gap(1.0) <= 0:
        return 1.0
    # land on the feasible side of the root
    return min(1.0, so.brentq(gap, 0.0, 1.0, xtol=1e-12) + 2e-12)


def waveform_low_complexity(
    h: np.ndarray,
    alpha: float,
    cfg: ScenarioConfig,
    rate_constraint: float = 0.0,
) -> Tuple[WaveformState, float, float]:
    """
    Water-filling information waveform plus SMF power waveform, both MRT-precoded.

    The share of the power budget given to the SMF waveform is searched on a
    grid of `cfg.n_power_splits` points. For each share the information ratio
    is the smallest one meeting `rate_constraint` and the rest of the received
    signal goes to the rectenna. Returns (state, current, rate) of the best
    share; raises `Infeasible` when no share reaches the rate.
    """
    h = np.asarray(h)
    shape = waveform_smf(h, alpha, 1.0)
    snr_per_power = np.abs(h) ** 2 / cfg.noise_power
    best: Optional[Tuple[WaveformState, float, float]] = None
    for share in np.linspace(0.0, 1.0, cfg.n_power_splits):
        info_power, max_rate = water_filling(h, (1 - share) * cfg.tx_power, cfg.noise_power)
        if max_rate < rate_constraint:
            continue
        info_ratio = _min_info_ratio(info_power * snr_per_power, rate_constraint)
        info_waveform, power_waveform = precoder_mrt(h, np.sqrt(info_power), np.sqrt(share * cfg.tx_power) * shape)
        state = WaveformState(info_waveform, power_waveform, info_ratio, 1 - info_ratio)
        current, rate = evaluate_state(h, state, cfg)
        if best is None or current > best[1]:
            best = (state, current, rate)
    if best is None:
        raise Infeasible("rate_unreachable", rate_constraint)
    return best


class ScaProgram(NamedTuple):
    problem: cp.Problem
    info_matrix: cp.Variable
    power_matrix: cp.Variable
    info_ratio: cp.Variable
    power_ratio: cp.Variable
    # lower bounds on rho^2, q and t_I0 t_P0
    ratio_bound: cp.Variable
    quartic_bound: cp.Variable
    cross_bound: cp.Variable
    params: Dict[str, cp.Parameter]


def _trace_real(coef_re: cp.Parameter, coef_im: cp.Parameter, matrix: cp.Variable) -> cp.Expression:
    # Re tr(A W) for Hermitian W
    return cp.sum(cp.multiply(coef_re, cp.real(matrix)) + cp.multiply(coef_im, cp.imag(matrix)))


def _bound_params(name: str, shape: Tuple[int, ...] = ()) -> Dict[str, cp.Parameter]:
    return {
        f"{name}_x_slope": cp.Parameter(shape, nonneg=True),
        f"{name}_y_slope": cp.Parameter(shape, nonneg=True),
        f"{name}_scale": cp.Parameter(shape, nonneg=True),
        f"{name}_inv_scale": cp.Parameter(shape, nonneg=True),
        f"{name}_mid_sq": cp.Parameter(shape, nonneg=True),
    }


def _product_bound(params: Dict[str, cp.Parameter], name: str, x, y) -> cp.Expression:
    """Concave under-estimator of x y, tight at the expansion point held in `params`."""
    gap = cp.multiply(params[f"{name}_scale"], x) - cp.multiply(params[f"{name}_inv_scale"], y)
    return (
        cp.multiply(params[f"{name}_x_slope"], x)
        + cp.multiply(params[f"{name}_y_slope"], y)
        - 0.25 * cp.square(gap)
        - 0.25 * params[f"{name}_mid_sq"]
    )


def _set_product_bound(params: Dict[str, cp.Parameter], name: str, x0, y0, x_ref: float, y_ref: float) -> None:
    """Expand the bound of x y at (x0, y0) with the balanced scale c = sqrt(y0 / x0)."""
    x0 = np.maximum(x0, 0.0)
    y0 = np.maximum(y0, 0.0)
    # floored so c stays finite when the incumbent sits at zero
    scale = np.sqrt(np.maximum(y0, 1e-3 * y_ref) / np.maximum(x0, 1e-3 * x_ref))
    mid = scale * x0 + y0 / scale
    params[f"{name}_x_slope"].value = 0.5 * mid * scale
    params[f"{name}_y_slope"].value = 0.5 * mid / scale
    params[f"{name}_scale"].value = scale
    params[f"{name}_inv_scale"].value = 1 / scale
    params[f"{name}_mid_sq"].value = mid ** 2


def sca_program(h: np.ndarray, cfg: ScenarioConfig, rate_constraint: float) -> ScaProgram:
    """
    Build the convexified waveform program once; the SCA loop only updates parameters.

    The rate constraint is left out entirely when `rate_constraint <= 0`.
    """
    n = h.size
    gain = np.abs(h) ** 2

    # Expansion point of the current iteration
    params: Dict[str, cp.Parameter] = {
        "rho": cp.Parameter(nonneg=True),
        "rho_sq": cp.Parameter(nonneg=True),
        "info_grad_re": cp.Parameter((n, n)),
        "info_grad_im": cp.Parameter((n, n)),
        "power_grad_re": cp.Parameter((n, n)),
        "power_grad_im": cp.Parameter((n, n)),
        "quartic_offset": cp.Parameter(nonneg=True),
    }
    for name in ("linear", "quartic", "cross", "moment"):
        params.update(_bound_params(name))

    info_matrix = cp.Variable((n, n), hermitian=True)
    power_matrix = cp.Variable((n, n), hermitian=True)
    info_ratio = cp.Variable(nonneg=True)
    power_ratio = cp.Variable(nonneg=True)
    ratio_bound = cp.Variable(nonneg=True)
    quartic_bound = cp.Variable(nonneg=True)
    cross_bound = cp.Variable(nonneg=True)

    info_diag = cp.real(cp.diag(info_matrix))
    power_diag = cp.real(cp.diag(power_matrix))
    t_info0 = gain @ info_diag
    t_power0 = gain @ power_diag
    quartic_tangent = (
        _trace_real(params["info_grad_re"], params["info_grad_im"], info_matrix)
        + _trace_real(params["power_grad_re"], params["power_grad_im"], power_matrix)
        - params["quartic_offset"]
    )

    # Concave lower bound on the output current
    objective = cp.Maximize(
        0.5 * cfg.beta2 * _product_bound(params, "linear", power_ratio, t_info0 + t_power0)
        + 3 / 8 * cfg.beta4 * _product_bound(params, "quartic", ratio_bound, quartic_bound)
        + 3 / 2 * cfg.beta4 * _product_bound(params, "cross", ratio_bound, cross_bound)
    )

    constr = [
        info_matrix >> 0,
        power_matrix >> 0,
        0.5 * (cp.sum(info_diag) + cp.sum(power_diag)) <= cfg.tx_power,
        info_ratio + power_ratio <= 1,
        2 * params["rho"] * power_ratio - params["rho_sq"] >= ratio_bound,
        quartic_tangent >= quartic_bound,
        _product_bound(params, "moment", t_info0, t_power0) >= cross_bound,
    ]

    if rate_constraint > 0:
        params.update(_bound_params("signal", (n,)))
        signal_power = _product_bound(params, "signal", info_ratio, info_diag)
        sinr = cp.multiply(gain / cfg.noise_power, signal_power)
        constr.append(cp.geo_mean(1 + sinr) >= 2 ** (rate_constraint / n))

    prob = cp.Problem(objective, constr)
    return ScaProgram(
        prob, info_matrix, power_matrix, info_ratio, power_ratio, ratio_bound, quartic_bound, cross_bound, params
    )


@dataclass(frozen=True)
class WaveformSolution:
    state: WaveformState
    current: float
    rate: float
    status: ConvergenceStatus
    iterations: int
    currents: Tuple[float, ...]
    # principal-eigenvalue share of the relaxed (W_I, W_P)
    eig_ratios: Tuple[float, float]


class WaveformSDR(RelaxAndRound):
    """SDR + SCA waveform design with Gaussian-randomization recovery."""

    def __init__(
        self,
        h: np.ndarray,
        state: WaveformState,
        cfg: ScenarioConfig,
        rate_constraint: float,
        rng: nr.Generator,
    ) -> None:
        super().__init__(cfg.n_candidates, rng)
        self.h = np.asarray(h)
        if self.h.ndim != 1 or self.h.size != state.n_subbands:
            raise DimensionMismatch(f"channel {self.h.shape} does not match {state.n_subbands} subbands")
        self.cfg = cfg
        self.rate_constraint = rate_constraint
        self.coef = channel_coef_matrices(self.h)
        self.program = sca_program(self.h, cfg, rate_constraint)
        # largest attainable t_I0 + t_P0, and largest per-subband info power
        self.moment_ref = max(2 * cfg.tx_power * float(np.max(np.abs(self.h) ** 2)), 1e-12)
        self.signal_ref = max(2 * cfg.tx_power, 1e-12)
        self.incumbent = state

        self.info_matrix, self.power_matrix = state.matrices()
        self.info_ratio = state.info_ratio
        self.power_ratio = state.power_ratio
        self.t_info = auxiliary_moments(self.coef, self.info_matrix)
        self.t_power = auxiliary_moments(self.coef, self.power_matrix)

        self.currents: List[float] = []
        self.status: Optional[ConvergenceStatus] = None

    @property
    def center(self) -> int:
        return self.h.size - 1

    def _relaxed_current(self) -> float:
        return float(output_current(self.cfg.beta2, self.cfg.beta4, self.power_ratio, self.t_info, self.t_power))

    def _snapshot(self) -> tuple:
        return self.info_matrix, self.power_matrix, self.info_ratio, self.power_ratio, self.t_info, self.t_power

    def _restore(self, snapshot: tuple) -> None:
        self.info_matrix, self.power_matrix, self.info_ratio, self.power_ratio, self.t_info, self.t_power = snapshot

    def _update_parameters(self) -> None:
        p = self.program.params
        ref = self.moment_ref
        rho = self.power_ratio
        t_info0 = float(np.real(self.t_info[self.center]))
        t_power0 = float(np.real(self.t_power[self.center]))
        quartic = float(quartic_moment(self.t_info, self.t_power))

        info_grad, power_grad = sca_coef_matrices(self.coef, self.t_info, self.t_power)
        p["rho"].value = rho
        p["rho_sq"].value = rho ** 2
        p["info_grad_re"].value = info_grad.real
        p["info_grad_im"].value = info_grad.imag
        p["power_grad_re"].value = power_grad.real
        p["power_grad_im"].value = power_grad.imag
        p["quartic_offset"].value = quartic
        _set_product_bound(p, "linear", rho, t_info0 + t_power0, 1.0, ref)
        _set_product_bound(p, "quartic", rho ** 2, quartic, 1.0, 3 * ref ** 2)
        _set_product_bound(p, "cross", rho ** 2, t_info0 * t_power0, 1.0, ref ** 2 / 4)
        _set_product_bound(p, "moment", t_info0, t_power0, ref, ref)
        if "signal_scale" in p:
            signal = np.real(np.diag(self.info_matrix))
            _set_product_bound(p, "signal", np.full(signal.size, self.info_ratio), signal, 1.0, self.signal_ref)

    def relax(self) -> List[np.ndarray]:
        prog = self.program
        current = previous = self._relaxed_current()
        best_current, best = current, self._snapshot()

        for it in range(1, self.cfg.max_sca_iterations + 1):
            self._update_parameters()
            require_optimal(solve(prog.problem, self.cfg.solver), self.rate_constraint)

            self.info_matrix = prog.info_matrix.value
            self.power_matrix = prog.power_matrix.value
            self.info_ratio = float(np.clip(prog.info_ratio.value, 0.0, 1.0))
            self.power_ratio = float(np.clip(prog.power_ratio.value, 0.0, 1.0))
            total = self.info_ratio + self.power_ratio
            if total > 1:
                self.info_ratio, self.power_ratio = self.info_ratio / total, self.power_ratio / total
            self.t_info = auxiliary_moments(self.coef, self.info_matrix)
            self.t_power = auxiliary_moments(self.coef, self.power_matrix)

            current = self._relaxed_current()
            self.currents.append(current)
            logger.debug(
                "SCA iteration %d: current %.6e, rate %.4f",
                it,
                current,
                user_rate(self.info_ratio, np.diag(self.info_matrix), self.h, self.cfg.noise_power),
            )
            if current > best_current:
                best_current, best = current, self._snapshot()
            if has_converged(current, previous, self.cfg.tolerance):
                self.status = ConvergenceStatus.CONVERGED
                break
            previous = current
        else:
            self.status = iteration_limit("SCA", self.cfg.max_sca_iterations, best_current)

        self._restore(best)
        return [self.info_matrix, self.power_matrix]

    def sample(self, matrices: Sequence[np.ndarray]) -> List[np.ndarray]:
        info, power = super().sample(matrices)
        n = info.shape[0]
        # the incumbent waveform, with its own ratios, is the last candidate
        return [
            np.vstack([info, self.incumbent.info_waveform[None, :]]),
            np.vstack([power, self.incumbent.power_waveform[None, :]]),
            np.append(np.full(n, self.info_ratio), self.incumbent.info_ratio),
            np.append(np.full(n, self.power_ratio), self.incumbent.power_ratio),
        ]

    def evaluate(self, candidates: Sequence[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        info, power, info_ratio, power_ratio = candidates
        current = output_current(
            self.cfg.beta2,
            self.cfg.beta4,
            power_ratio,
            auxiliary_from_vectors(self.h, info),
            auxiliary_from_vectors(self.h, power),
        )
        if self.rate_constraint <= 0:
            return current, np.ones(current.shape, dtype=bool)
        rate = user_rate(info_ratio[:, None], np.abs(info) ** 2, self.h, self.cfg.noise_power)
        return current, rate >= self.rate_constraint * (1 - self.cfg.feasibility_tolerance)


def optimize_waveform(
    h: np.ndarray,
    state: WaveformState,
    cfg: ScenarioConfig,
    rate_constraint: float,
    rng: nr.Generator,
) -> WaveformSolution:
    """
    Waveform and splitting ratios maximizing the current for a fixed channel.

    `state` is the incumbent: it seeds the SCA and stays a rounding candidate,
    so the returned current is never below the incumbent's on this channel
    unless the incumbent itself misses the rate constraint.

    Raises `Infeasible` when the relaxed program has no feasible point,
    `SolverFailure` when the solver gives up, and `InvalidCandidate` when no
    randomized rank-one waveform meets the rate constraint.
    """
    sdr = WaveformSDR(h, state, cfg, rate_constraint, rng)
    matrices = sdr.relax()
    rounded = sdr.round(matrices)

    best = WaveformState(*rounded.vectors)
    current, rate = evaluate_state(sdr.h, best, cfg)
    logger.info(
        "waveform: current %.6e, rate %.4f after %d SCA iterations (%d/%d feasible candidates)",
        current,
        rate,
        len(sdr.currents),
        rounded.n_feasible,
        cfg.n_candidates + 1,
    )
    return WaveformSolution(
        state=best,
        current=current,
        rate=rate,
        status=sdr.status,
        iterations=len(sdr.currents),
        currents=tuple(sdr.currents),
        eig_ratios=(eigen_ratio(matrices[0]), eigen_ratio(matrices[1])),
    )
