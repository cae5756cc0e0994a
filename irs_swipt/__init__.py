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
Rate-energy region of IRS-aided SWIPT.

Joint design of intelligent-reflecting-surface phases and a multi-subband
superposed waveform that maximizes the rectenna's DC output current under a
rate constraint, via alternating optimization, semidefinite relaxation,
successive convex approximation and Gaussian randomization.
"""

from .alternating import AlternatingOptimizer, Sample, Solution
from .channel import cascaded_channel, composite_channel, generate_channels, random_phases
from .config import ChannelConfig, ScenarioConfig, SolverSettings, db2pow
from .convergence import ConvergenceStatus
from .errors import (
    DimensionMismatch,
    Infeasible,
    InvalidCandidate,
    NonConvergence,
    OptimizationError,
    SolverFailure,
)
from .irs import PhaseSolution, optimize_phases
from .region import (
    RegionCurve,
    ResultKey,
    ResultRecord,
    re_sample_swipt,
    re_sample_swipt_low_complexity,
    re_sample_wpt,
    run_alpha_sweep,
    run_reflector_sweep,
)
from .waveform import (
    WaveformSolution,
    WaveformState,
    optimize_waveform,
    water_filling,
    waveform_low_complexity,
    waveform_smf,
)

__all__ = [
    "AlternatingOptimizer",
    "ChannelConfig",
    "ConvergenceStatus",
    "DimensionMismatch",
    "Infeasible",
    "InvalidCandidate",
    "NonConvergence",
    "OptimizationError",
    "PhaseSolution",
    "RegionCurve",
    "ResultKey",
    "ResultRecord",
    "Sample",
    "ScenarioConfig",
    "Solution",
    "SolverFailure",
    "SolverSettings",
    "WaveformSolution",
    "WaveformState",
    "cascaded_channel",
    "composite_channel",
    "db2pow",
    "generate_channels",
    "optimize_phases",
    "optimize_waveform",
    "random_phases",
    "re_sample_swipt",
    "re_sample_swipt_low_complexity",
    "re_sample_wpt",
    "run_alpha_sweep",
    "run_reflector_sweep",
    "water_filling",
    "waveform_low_complexity",
    "waveform_smf",
]
