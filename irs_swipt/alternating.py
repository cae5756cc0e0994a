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
Alternating optimization of IRS reflection and transmit waveform.

Each pass runs
    1) IRS reflection for the incumbent waveform       (irs.optimize_phases)
    2) composite channel for the new reflection        (channel.composite_channel)
    3) waveform + splitting ratios for that channel    (waveform step)
and compares the resulting current with the incumbent's. The run stops when
the gain falls below the tolerance or at `max_iterations` passes, which is
reported as ITERATION_LIMIT together with a `NonConvergence` warning.

A pass that lowers the current is discarded, so the recorded current trace
never decreases. If the drop is within the tolerance the run is CONVERGED,
otherwise it ends as STALLED.

A pass whose randomization finds no feasible rank-one point keeps the
previous reflection or waveform for that step and is counted as degraded.
`Infeasible` and `SolverFailure` propagate to the caller.

Waveform steps:
    run                 SDR + SCA waveform (waveform.optimize_waveform)
    run_wpt             adaptive single sine with MRT, no rate constraint,
                        absolute tolerance on the current gain
    run_low_complexity  water-filling information + SMF power waveform
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

import numpy as np
import numpy.random as nr

from .channel import composite_channel, random_phases
from .config import ScenarioConfig
from .convergence import ConvergenceStatus, has_converged, iteration_limit
from .errors import InvalidCandidate
from .irs import optimize_phases
from .waveform import (
    WaveformState,
    evaluate_state,
    initial_waveform,
    optimize_waveform,
    precoder_mrt,
    waveform_ass,
    waveform_low_complexity,
)

logger = logging.getLogger(__name__)

# (channel, incumbent) -> (state, current, rate)
WaveformStep = Callable[[np.ndarray, WaveformState], Tuple[WaveformState, float, float]]


class Sample(NamedTuple):
    """One operating point on the R-E curve."""

    rate: float
    current: float


def _complex_list(x: np.ndarray) -> List[List[float]]:
    return [[float(v.real), float(v.imag)] for v in np.asarray(x)]


@dataclass(frozen=True)
class Solution:
    """Outcome of one AO run."""

    phases: np.ndarray
    composite_channel: np.ndarray
    waveform: WaveformState
    eig_ratios: Tuple[float, ...]
    currents: Tuple[float, ...]
    current: float
    rate: float
    status: ConvergenceStatus
    degraded_passes: int = 0

    @property
    def converged(self) -> bool:
        return self.status is ConvergenceStatus.CONVERGED

    @property
    def sample(self) -> Sample:
        return Sample(self.rate, self.current)

    def to_dict(self) -> Dict[str, object]:
        return {
            "phases": _complex_list(self.phases),
            "composite_channel": _complex_list(self.composite_channel),
            "waveform": self.waveform.to_dict(),
            "eig_ratios": list(self.eig_ratios),
            "currents": list(self.currents),
            "current": self.current,
            "rate": self.rate,
            "status": self.status.value,
            "degraded_passes": self.degraded_passes,
        }


class AlternatingOptimizer:
    """Outer AO loop over reflection and waveform for one scenario."""

    def __init__(self, cfg: ScenarioConfig) -> None:
        self.cfg = cfg

    def _alternate(
        self,
        label: str,
        direct: np.ndarray,
        cascaded: np.ndarray,
        phases: np.ndarray,
        state: WaveformState,
        waveform_step: WaveformStep,
        rate_constraint: float,
        rng: nr.Generator,
        relative: bool = True,
    ) -> Solution:
        cfg = self.cfg
        h = composite_channel(direct, cascaded, phases)
        current, rate = evaluate_state(h, state, cfg)

        currents = [current]
        eig_ratios: List[float] = []
        degraded = 0
        for it in range(1, cfg.max_iterations + 1):
            try:
                phase_sol = optimize_phases(direct, cascaded, phases, state, cfg, rate_constraint, rng)
                new_phases = phase_sol.phases
                eig_ratios.append(phase_sol.eig_ratio)
            except InvalidCandidate as e:
                logger.warning("%s pass %d: keeping previous reflection (%s)", label, it, e)
                new_phases = phases
                degraded += 1
            new_h = composite_channel(direct, cascaded, new_phases)

            try:
                new_state, new_current, new_rate = waveform_step(new_h, state)
            except InvalidCandidate as e:
                logger.warning("%s pass %d: keeping previous waveform (%s)", label, it, e)
                new_state = state
                new_current, new_rate = evaluate_state(new_h, state, cfg)
                degraded += 1

            if new_current < current:
                if has_converged(new_current, current, cfg.tolerance, relative):
                    status = ConvergenceStatus.CONVERGED
                else:
                    logger.warning(
                        "%s pass %d lowered the current (%.6e < %.6e); keeping incumbent",
                        label, it, new_current, current,
                    )
                    status = ConvergenceStatus.STALLED
                break

            done = has_converged(new_current, current, cfg.tolerance, relative)
            phases, h, state, current, rate = new_phases, new_h, new_state, new_current, new_rate
            currents.append(current)
            logger.debug("%s pass %d: current %.6e, rate %.4f", label, it, current, rate)
            if done:
                status = ConvergenceStatus.CONVERGED
                break
        else:
            status = iteration_limit(label, cfg.max_iterations, current)

        logger.info(
            "%s finished (%s) after %d passes: current %.6e, rate %.4f",
            label, status.value, len(currents) - 1, current, rate,
        )
        return Solution(
            phases=phases,
            composite_channel=h,
            waveform=state,
            eig_ratios=tuple(eig_ratios),
            currents=tuple(currents),
            current=current,
            rate=rate,
            status=status,
            degraded_passes=degraded,
        )

    def run(
        self,
        direct: np.ndarray,
        cascaded: np.ndarray,
        rate_constraint: float = 0.0,
        rng: Optional[nr.Generator] = None,
        phases: Optional[np.ndarray] = None,
    ) -> Solution:
        """
        Maximize the current subject to `rate_constraint` (bits/s/Hz over all subbands).

        The reflection starts from `phases` if given, otherwise from uniformly
        random unit-modulus coefficients drawn from `rng`.
        """
        cfg = self.cfg
        rng = cfg.rng() if rng is None else rng
        if phases is None:
            phases = random_phases(np.shape(cascaded)[0], rng)
        state = initial_waveform(composite_channel(direct, cascaded, phases), cfg, rate_constraint)

        def step(h: np.ndarray, incumbent: WaveformState) -> Tuple[WaveformState, float, float]:
            wf = optimize_waveform(h, incumbent, cfg, rate_constraint, rng)
            return wf.state, wf.current, wf.rate

        return self._alternate("AO", direct, cascaded, phases, state, step, rate_constraint, rng)

    def run_wpt(
        self,
        direct: np.ndarray,
        cascaded: np.ndarray,
        rng: Optional[nr.Generator] = None,
    ) -> Solution:
        """Power-transfer-only AO: reflection vs. adaptive single sine, absolute tolerance."""
        cfg = self.cfg
        rng = cfg.rng() if rng is None else rng
        phases = random_phases(np.shape(cascaded)[0], rng)

        def step(h: np.ndarray, incumbent: Optional[WaveformState]) -> Tuple[WaveformState, float, float]:
            z, info_amplitude, power_amplitude, info_ratio, power_ratio = waveform_ass(
                cfg.beta2, cfg.beta4, h, cfg.tx_power
            )
            info_waveform, power_waveform = precoder_mrt(h, info_amplitude, power_amplitude)
            return WaveformState(info_waveform, power_waveform, info_ratio, power_ratio), z, 0.0

        state, _, _ = step(composite_channel(direct, cascaded, phases), None)
        return self._alternate("WPT AO", direct, cascaded, phases, state, step, 0.0, rng, relative=False)

    def run_low_complexity(
        self,
        direct: np.ndarray,
        cascaded: np.ndarray,
        alpha: float,
        rate_constraint: float = 0.0,
        rng: Optional[nr.Generator] = None,
        phases: Optional[np.ndarray] = None,
    ) -> Solution:
        """
        AO with the water-filling + SMF waveform of exponent `alpha` in place of SDR.

        The incumbent waveform is kept when the redesigned one is worse on the
        new channel. Raises `Infeasible` when the starting channel cannot carry
        `rate_constraint`.
        """
        cfg = self.cfg
        rng = cfg.rng() if rng is None else rng
        if phases is None:
            phases = random_phases(np.shape(cascaded)[0], rng)

        def step(h: np.ndarray, incumbent: Optional[WaveformState]) -> Tuple[WaveformState, float, float]:
            state, current, rate = waveform_low_complexity(h, alpha, cfg, rate_constraint)
            if incumbent is not None:
                kept_current, kept_rate = evaluate_state(h, incumbent, cfg)
                if kept_current > current and kept_rate >= rate_constraint * (1 - cfg.feasibility_tolerance):
                    return incumbent, kept_current, kept_rate
            return state, current, rate

        state, _, _ = step(composite_channel(direct, cascaded, phases), None)
        return self._alternate(
            f"low-complexity AO (alpha={alpha:g})", direct, cascaded, phases, state, step, rate_constraint, rng
        )
