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
Rate-energy region sweeps and averaging over channel realizations.

An R-E curve is traced by running the AO optimizer once per rate constraint
on a descending grid from (just below) the water-filling rate of the link
down to zero. Constraints the solver proves infeasible are recorded as such
and leave a NaN in the curve array; they never produce a sample.

Batch results are keyed by (scenario, sweep parameter) and averaged with a
NaN-aware mean over independent realizations, each drawn from its own
spawned seed. Two batches are provided: the IRS size sweep of the SDR design
and the SMF exponent sweep of the low-complexity design, the latter averaged
on the same channels as an SDR reference curve.
"""

from __future__ import annotations

import collections
import dataclasses
import json
import logging
import sys
import time
import warnings
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import numpy.random as nr

from .alternating import AlternatingOptimizer, Sample, Solution
from .channel import composite_channel, generate_channels
from .config import ChannelConfig, ScenarioConfig
from .errors import Infeasible
from .irs import optimize_phases
from .waveform import WaveformState, water_filling

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionCurve:
    """One R-E curve; `points[i]` is None where `rate_constraints[i]` was infeasible."""

    rate_constraints: np.ndarray
    points: Tuple[Optional[Sample], ...]
    solutions: Tuple[Solution, ...]

    @property
    def samples(self) -> List[Sample]:
        return [p for p in self.points if p is not None]

    @property
    def infeasible(self) -> List[float]:
        return [float(r) for r, p in zip(self.rate_constraints, self.points) if p is None]

    def status_counts(self) -> Dict[str, int]:
        return dict(collections.Counter(sol.status.value for sol in self.solutions))

    def as_array(self) -> np.ndarray:
        """(2, n_samples) array of [rate; current], NaN at infeasible constraints."""
        out = np.full((2, len(self.points)), np.nan)
        for i, p in enumerate(self.points):
            if p is not None:
                out[:, i] = p
        return out

    def to_dict(self) -> Dict[str, object]:
        return {
            "rate_constraints": [float(r) for r in self.rate_constraints],
            "points": [None if p is None else {"rate": p.rate, "current": p.current} for p in self.points],
            "infeasible": self.infeasible,
            "status_counts": self.status_counts(),
            "solutions": [sol.to_dict() for sol in self.solutions],
        }


def aligned_phases(direct: np.ndarray, cascaded: np.ndarray, cfg: ScenarioConfig, rng: nr.Generator) -> np.ndarray:
    """Reflection maximizing the received power of a flat full-power waveform."""
    n_reflectors, n_subbands = np.shape(cascaded)
    flat = WaveformState(np.full(n_subbands, np.sqrt(2 * cfg.tx_power / n_subbands)), np.zeros(n_subbands), 0.0, 1.0)
    start = np.ones(n_reflectors, dtype=complex)
    return optimize_phases(direct, cascaded, start, flat, cfg, 0.0, rng).phases


def _sweep(
    cfg: ScenarioConfig,
    direct: np.ndarray,
    cascaded: np.ndarray,
    rng: nr.Generator,
    margin: float,
    run_one: Callable[[float, np.ndarray], Solution],
) -> RegionCurve:
    phases = aligned_phases(direct, cascaded, cfg, rng)
    _, max_rate = water_filling(composite_channel(direct, cascaded, phases), cfg.tx_power, cfg.noise_power)
    rate_constraints = np.linspace(max_rate * (1 - margin), 0, cfg.n_samples)

    points: List[Optional[Sample]] = []
    solutions: List[Solution] = []
    for rate_constraint in rate_constraints:
        try:
            sol = run_one(float(rate_constraint), phases)
        except Infeasible as e:
            logger.info("rate constraint %.4f infeasible: %s", rate_constraint, e)
            points.append(None)
            continue
        points.append(sol.sample)
        solutions.append(sol)
    return RegionCurve(rate_constraints, tuple(points), tuple(solutions))


def re_sample_swipt(
    cfg: ScenarioConfig,
    direct: np.ndarray,
    cascaded: np.ndarray,
    rng: Optional[nr.Generator] = None,
    margin: float = 1e-3,
) -> RegionCurve:
    """
    Trace the R-E curve of one channel realization.

    Every AO run on the grid starts from the same reflection, `aligned_phases`
    of this channel, not from random phases; the grid top is
    `R_max (1 - margin)` with R_max the water-filling rate at that reflection.
    """
    rng = cfg.rng() if rng is None else rng
    optimizer = AlternatingOptimizer(cfg)

    def run_one(rate_constraint: float, phases: np.ndarray) -> Solution:
        return optimizer.run(direct, cascaded, rate_constraint, rng, phases=phases)

    return _sweep(cfg, direct, cascaded, rng, margin, run_one)


def re_sample_swipt_low_complexity(
    cfg: ScenarioConfig,
    direct: np.ndarray,
    cascaded: np.ndarray,
    alpha: float,
    rng: Optional[nr.Generator] = None,
    margin: float = 1e-3,
) -> RegionCurve:
    """R-E curve of the water-filling + SMF design; same grid and start as `re_sample_swipt`."""
    rng = cfg.rng() if rng is None else rng
    optimizer = AlternatingOptimizer(cfg)

    def run_one(rate_constraint: float, phases: np.ndarray) -> Solution:
        return optimizer.run_low_complexity(direct, cascaded, alpha, rate_constraint, rng, phases=phases)

    return _sweep(cfg, direct, cascaded, rng, margin, run_one)


def re_sample_wpt(
    cfg: ScenarioConfig,
    direct: np.ndarray,
    cascaded: np.ndarray,
    rng: Optional[nr.Generator] = None,
) -> Tuple[Sample, Solution]:
    """The single zero-rate point of a power-transfer-only design."""
    sol = AlternatingOptimizer(cfg).run_wpt(direct, cascaded, rng)
    return Sample(float(np.finfo(float).eps), sol.current), sol


class ResultKey(NamedTuple):
    scenario: str
    parameter: float


@dataclass(frozen=True)
class ResultRecord:
    curve: np.ndarray
    n_realizations: int
    n_infeasible: int
    # per-realization curves with their AO solutions
    curves: Tuple[RegionCurve, ...] = ()

    def status_counts(self) -> Dict[str, int]:
        counts: collections.Counter = collections.Counter()
        for c in self.curves:
            counts.update(c.status_counts())
        return dict(counts)

    def to_dict(self) -> Dict[str, object]:
        return {
            "rate": [None if np.isnan(x) else float(x) for x in self.curve[0]],
            "current": [None if np.isnan(x) else float(x) for x in self.curve[1]],
            "n_realizations": self.n_realizations,
            "n_infeasible": self.n_infeasible,
            "status_counts": self.status_counts(),
            "realizations": [c.to_dict() for c in self.curves],
        }


def average_curves(curves: Sequence[np.ndarray]) -> np.ndarray:
    """Elementwise mean over realizations, ignoring infeasible (NaN) points."""
    with warnings.catch_warnings():
        # all-NaN columns stay NaN
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return np.nanmean(np.stack(curves), axis=0)


def _record(curves: Sequence[RegionCurve]) -> ResultRecord:
    return ResultRecord(
        average_curves([c.as_array() for c in curves]),
        len(curves),
        sum(len(c.infeasible) for c in curves),
        tuple(curves),
    )


def run_reflector_sweep(
    cfg: ScenarioConfig,
    channel_cfg: ChannelConfig,
    n_reflectors: Sequence[int],
    n_realizations: int,
    scenario: str = "swipt",
) -> Dict[ResultKey, ResultRecord]:
    """Average R-E curves over independent channel realizations for each IRS size."""
    seeds = nr.SeedSequence(cfg.seed).spawn(len(n_reflectors) * n_realizations)
    results: Dict[ResultKey, ResultRecord] = {}
    for i, n in enumerate(n_reflectors):
        ccfg = dataclasses.replace(channel_cfg, n_reflectors=n)
        curves = []
        for j in range(n_realizations):
            rng = nr.default_rng(seeds[i * n_realizations + j])
            direct, cascaded = generate_channels(ccfg, rng)
            curve = re_sample_swipt(cfg, direct, cascaded, rng)
            curves.append(curve)
            logger.info("L = %d, realization %d: %d samples", n, j, len(curve.samples))
        results[ResultKey(scenario, n)] = _record(curves)
    return results


def run_alpha_sweep(
    cfg: ScenarioConfig,
    channel_cfg: ChannelConfig,
    alphas: Sequence[float],
    n_realizations: int,
    reference: bool = True,
) -> Dict[ResultKey, ResultRecord]:
    """
    Average low-complexity R-E curves over realizations for each SMF exponent.

    Each realization's channel is drawn once and shared by every alpha and,
    when `reference` is set, by the SDR curve stored under
    ResultKey("swipt", n_reflectors).
    """
    seeds = nr.SeedSequence(cfg.seed).spawn(n_realizations)
    by_alpha: Dict[float, List[RegionCurve]] = {a: [] for a in alphas}
    reference_curves: List[RegionCurve] = []
    for j, seed in enumerate(seeds):
        channel_seed, reference_seed, *alpha_seeds = seed.spawn(len(alphas) + 2)
        direct, cascaded = generate_channels(channel_cfg, nr.default_rng(channel_seed))
        for alpha, alpha_seed in zip(alphas, alpha_seeds):
            curve = re_sample_swipt_low_complexity(cfg, direct, cascaded, alpha, nr.default_rng(alpha_seed))
            by_alpha[alpha].append(curve)
            logger.info("alpha = %g, realization %d: %d samples", alpha, j, len(curve.samples))
        if reference:
            reference_curves.append(re_sample_swipt(cfg, direct, cascaded, nr.default_rng(reference_seed)))

    results = {ResultKey("low_complexity", a): _record(curves) for a, curves in by_alpha.items()}
    if reference:
        results[ResultKey("swipt", channel_cfg.n_reflectors)] = _record(reference_curves)
    return results


def _print_results(results: Dict[ResultKey, ResultRecord]) -> None:
    for key, record in results.items():
        rate, current = record.curve
        print(
            f"{key.scenario:<15s} {key.parameter:<4g} "
            f"max rate {np.nanmax(rate):6.2f}  max current {np.nanmax(current):.3e}  "
            f"infeasible {record.n_infeasible}  {record.status_counts()}"
        )


def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    # optional path for a JSON dump of the averaged curves
    output = argv[0] if argv else None

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    cfg = ScenarioConfig(n_candidates=1000, n_samples=10, seed=1)
    channel_cfg = ChannelConfig(n_subbands=4)
    n_reflectors = (1, 5, 10)
    alphas = (0.0, 1.0, 2.0, 3.0)
    n_realizations = 2

    t0 = time.time()
    reflector_results = run_reflector_sweep(cfg, channel_cfg, n_reflectors, n_realizations)
    t1 = time.time()
    alpha_results = run_alpha_sweep(cfg, channel_cfg, alphas, n_realizations)
    t2 = time.time()

    print("=== R-E Region Summary ===")
    print(f"realizations: {n_realizations}")
    print(f"subbands: {channel_cfg.n_subbands}")
    print(f"reflector sweep time (s): {t1 - t0:.1f}")
    _print_results(reflector_results)
    print(f"alpha sweep time (s): {t2 - t1:.1f}")
    _print_results(alpha_results)

    if output:
        payload = {
            f"{name}/{k.scenario}/{k.parameter:g}": r.to_dict()
            for name, results in (("reflectors", reflector_results), ("alpha", alpha_results))
            for k, r in results.items()
        }
        with open(output, "w") as f:
            json.dump(payload, f, indent=2)
        print(f"wrote {output}")


if __name__ == "__main__":
    main()
