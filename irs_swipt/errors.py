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

"""Failure taxonomy shared by the channel, waveform, IRS and AO layers."""

from __future__ import annotations

from typing import Optional


class OptimizationError(Exception):
    """Base class for every failure raised by the optimizer."""


class DimensionMismatch(OptimizationError, ValueError):
    """Channel, phase or waveform shapes disagree."""


class Infeasible(OptimizationError):
    """The convex solver found no feasible point for the current constraints."""

    def __init__(self, status: str, rate_constraint: Optional[float] = None) -> None:
        self.status = status
        self.rate_constraint = rate_constraint
        msg = f"problem reported {status}"
        if rate_constraint is not None:
            msg += f" at rate constraint {rate_constraint:.6g}"
        super().__init__(msg)


class SolverFailure(OptimizationError):
    """The solver errored, timed out or lost precision, even after a relaxed retry."""


class InvalidCandidate(OptimizationError):
    """Gaussian randomization produced no candidate satisfying the constraints."""


class NonConvergence(RuntimeWarning):
    """An iteration cap was reached before the tolerance was met."""
