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

import numpy as np
import numpy.random as nr
import pytest

from irs_swipt.errors import InvalidCandidate
from irs_swipt.randomization import RelaxAndRound, eigen_ratio, gaussian_candidates


def _psd(rng, n, rank):
    a = rng.standard_normal((n, rank)) + 1j * rng.standard_normal((n, rank))
    return a @ a.conj().T


def test_candidates_never_exceed_relaxed_power():
    rng = nr.default_rng(0)
    matrix = _psd(rng, 4, 3)
    candidates = gaussian_candidates(matrix, rng, 1000)
    power = np.sum(np.abs(candidates) ** 2, axis=1)
    assert candidates.shape == (1000, 4)
    assert np.all(power <= np.trace(matrix).real * (1 + 1e-9))
    np.testing.assert_allclose(power, np.trace(matrix).real, rtol=1e-9)


def test_rank_one_matrix_gives_scaled_principal_vector():
    rng = nr.default_rng(1)
    v = rng.standard_normal(3) + 1j * rng.standard_normal(3)
    candidates = gaussian_candidates(np.outer(v, v.conj()), rng, 10)
    for c in candidates:
        np.testing.assert_allclose(np.abs(c), np.abs(v), atol=1e-6)


def test_candidates_are_reproducible():
    matrix = _psd(nr.default_rng(2), 3, 2)
    a = gaussian_candidates(matrix, nr.default_rng(5), 50)
    b = gaussian_candidates(matrix, nr.default_rng(5), 50)
    np.testing.assert_array_equal(a, b)


def test_eigen_ratio():
    v = np.array([1.0, 1j, 2.0])
    assert np.isclose(eigen_ratio(np.outer(v, v.conj())), 1.0)
    assert np.isclose(eigen_ratio(np.eye(4)), 0.25)


class _FirstEntry(RelaxAndRound):
    """Maximize Re x_0 subject to Im x_0 >= threshold."""

    def __init__(self, threshold, rng):
        super().__init__(200, rng)
        self.threshold = threshold

    def relax(self):
        return [np.diag([1.0, 0.5])]

    def evaluate(self, candidates):
        x = candidates[0]
        return x[:, 0].real, x[:, 0].imag >= self.threshold


def test_round_keeps_best_feasible_candidate():
    problem = _FirstEntry(0.0, nr.default_rng(3))
    matrices = problem.relax()
    candidates = gaussian_candidates(matrices[0], nr.default_rng(3), 200)
    rounded = problem.run()
    feasible = candidates[:, 0].imag >= 0
    assert rounded.n_feasible == np.count_nonzero(feasible)
    assert np.isclose(rounded.score, candidates[feasible, 0].real.max())
    assert rounded.vectors[0][0].imag >= 0


def test_no_feasible_candidate_raises():
    with pytest.raises(InvalidCandidate):
        _FirstEntry(2.0, nr.default_rng(4)).run()
