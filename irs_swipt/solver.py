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
Boundary to the external convex solver.

The optimizer only formulates CVXPY problems; this module runs them. A solve
is attempted with the preferred backend at the requested precision and, if
the backend errors out or stops short (iteration/time limit, numerical
trouble), retried once on the fallback backend at relaxed precision.
Infeasible and unbounded outcomes are results, not errors, and are never
retried.

Requirements
------------
    cvxpy
    clarabel   (preferred SDP/SOC/exp-cone solver; SCS is the fallback)
"""

from __future__ import annotations

import enum
import logging
from typing import Dict, Optional

import cvxpy as cp

from .config import SolverSettings
from .errors import Infeasible, SolverFailure

logger = logging.getLogger(__name__)


class SolveStatus(enum.Enum):
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    SOLVER_ERROR = "solver_error"


_STATUS_MAP = {
    cp.OPTIMAL: SolveStatus.OPTIMAL,
    cp.OPTIMAL_INACCURATE: SolveStatus.OPTIMAL,
    cp.INFEASIBLE: SolveStatus.INFEASIBLE,
    cp.INFEASIBLE_INACCURATE: SolveStatus.INFEASIBLE,
    cp.UNBOUNDED: SolveStatus.UNBOUNDED,
    cp.UNBOUNDED_INACCURATE: SolveStatus.UNBOUNDED,
}

# solver-specific keyword arguments per precision level
_PRECISION_OPTIONS: Dict[str, Dict[str, Dict[str, float]]] = {
    "CLARABEL": {
        "high": {"tol_gap_abs": 1e-9, "tol_gap_rel": 1e-9, "tol_feas": 1e-9},
        "default": {},
        "low": {"tol_gap_abs": 1e-6, "tol_gap_rel": 1e-6, "tol_feas": 1e-6},
    },
    "SCS": {
        "high": {"eps_abs": 1e-9, "eps_rel": 1e-9, "max_iters": 200_000},
        "default": {"max_iters": 100_000},
        "low": {"eps_abs": 1e-5, "eps_rel": 1e-5, "max_iters": 100_000},
    },
}

_TIME_LIMIT_OPTION = {"CLARABEL": "time_limit", "SCS": "time_limit_secs"}


def solver_options(solver: str, precision: str, time_limit: Optional[float] = None) -> Dict[str, float]:
    """Keyword arguments passed through `Problem.solve` for a backend."""
    opts = dict(_PRECISION_OPTIONS.get(solver.upper(), {}).get(precision, {}))
    if time_limit is not None and solver.upper() in _TIME_LIMIT_OPTION:
        opts[_TIME_LIMIT_OPTION[solver.upper()]] = time_limit
    return opts


def _attempt(prob: cp.Problem, solver: str, precision: str, settings: SolverSettings) -> SolveStatus:
    opts = solver_options(solver, precision, settings.time_limit)
    try:
        prob.solve(solver=solver, verbose=settings.verbose, **opts)
    except cp.SolverError as e:
        logger.warning("%s failed at %s precision: %s", solver, precision, e)
        return SolveStatus.SOLVER_ERROR
    if prob.status == cp.OPTIMAL_INACCURATE:
        logger.info("%s returned an inaccurate optimum at %s precision", solver, precision)
    status = _STATUS_MAP.get(prob.status, SolveStatus.SOLVER_ERROR)
    if status is SolveStatus.SOLVER_ERROR:
        logger.warning("%s stopped with status %r at %s precision", solver, prob.status, precision)
    return status


def solve(prob: cp.Problem, settings: SolverSettings) -> SolveStatus:
    """Solve with the preferred backend, then retry once relaxed on the fallback."""
    status = _attempt(prob, settings.solver, settings.precision, settings)
    if status is not SolveStatus.SOLVER_ERROR:
        return status

    retry = settings.fallback or settings.solver
    logger.info("retrying with %s at low precision", retry)
    status = _attempt(prob, retry, "low", settings)
    if status is SolveStatus.SOLVER_ERROR:
        raise SolverFailure(f"{settings.solver} and {retry} both failed (last status {prob.status!r})")
    return status


def require_optimal(status: SolveStatus, rate_constraint: Optional[float] = None) -> None:
    """Raise `Infeasible` unless the solve reached an optimum."""
    if status is not SolveStatus.OPTIMAL:
        raise Infeasible(status.value, rate_constraint)
