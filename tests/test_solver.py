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

import cvxpy as cp
import pytest

from irs_swipt.config import SolverSettings
from irs_swipt.errors import Infeasible, SolverFailure
from irs_swipt.solver import SolveStatus, require_optimal, solve, solver_options


def test_optimal_problem():
    x = cp.Variable()
    prob = cp.Problem(cp.Maximize(x), [x <= 2])
    assert solve(prob, SolverSettings()) is SolveStatus.OPTIMAL
    assert abs(x.value - 2) < 1e-6


def test_infeasible_problem_is_a_result():
    x = cp.Variable()
    prob = cp.Problem(cp.Maximize(x), [x <= 1, x >= 2])
    status = solve(prob, SolverSettings())
    assert status is SolveStatus.INFEASIBLE
    with pytest.raises(Infeasible) as info:
        require_optimal(status, 3.0)
    assert info.value.rate_constraint == 3.0


def test_failure_after_retry(monkeypatch):
    def broken(self, *args, **kwargs):
        raise cp.SolverError("boom")

    monkeypatch.setattr(cp.Problem, "solve", broken)
    x = cp.Variable()
    with pytest.raises(SolverFailure):
        solve(cp.Problem(cp.Maximize(x), [x <= 1]), SolverSettings())


def test_retry_uses_fallback_at_low_precision(monkeypatch):
    calls = []

    def flaky(self, solver=None, verbose=False, **kwargs):
        calls.append((solver, kwargs))
        if len(calls) == 1:
            raise cp.SolverError("first attempt fails")
        self._status = cp.OPTIMAL
        return 0.0

    monkeypatch.setattr(cp.Problem, "solve", flaky)
    monkeypatch.setattr(cp.Problem, "status", property(lambda self: self._status))
    x = cp.Variable()
    status = solve(cp.Problem(cp.Maximize(x), [x <= 1]), SolverSettings(solver="CLARABEL", fallback="SCS"))
    assert status is SolveStatus.OPTIMAL
    assert [c[0] for c in calls] == ["CLARABEL", "SCS"]
    assert calls[1][1] == solver_options("SCS", "low")


def test_solver_options():
    assert solver_options("CLARABEL", "default") == {}
    assert solver_options("clarabel", "high")["tol_feas"] == 1e-9
    assert solver_options("SCS", "low", time_limit=5.0)["time_limit_secs"] == 5.0
    assert solver_options("ECOS", "high") == {}


def test_invalid_precision():
    with pytest.raises(ValueError):
        SolverSettings(precision="extreme")
