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
Relax-and-round: semidefinite relaxation followed by Gaussian randomization.

A rank-one quadratic program in x is relaxed by replacing x x^H with a PSD
matrix X. The relaxed optimum is generally not rank one, so candidates
    x_q = U Sigma^{1/2} e^{j theta_q},   theta_q ~ U[0, 2pi)^n,
are drawn from the eigendecomposition X = U Sigma U^H, scored on the true
(non-relaxed) objective, and the best feasible one is kept.

Since |e^{j theta}| = 1 entrywise, ||x_q||^2 = tr(X) for every draw (after
clipping negative eigenvalues), so candidates inherit the relaxed matrix's
power exactly.

Subclasses supply the problem-specific parts:
    relax()      build objective and constraints, solve, return the matrices
    evaluate()   true score and feasibility of each candidate
    sample()     optional; defaults to one Gaussian draw per relaxed matrix
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
import numpy.random as nr
import scipy.linalg as sl

from .errors import InvalidCandidate

logger = logging.getLogger(__name__)


def random_phase_vectors(rng: nr.Generator, n_candidates: int, size: int) -> np.ndarray:
    """(n_candidates, size) array of i.i.d. uniform unit phasors."""
    return np.exp(1j * 2 * np.pi * rng.random((n_candidates, size)))


def gaussian_candidates(matrix: np.ndarray, rng: nr.Generator, n_candidates: int) -> np.ndarray:
    """Rows U Sigma^{1/2} e^{j theta_q} drawn from one relaxed PSD matrix."""
    matrix = np.asarray(matrix)
    eigvals, eigvecs = sl.eigh((matrix + matrix.conj().T) / 2)
    eigvals = np.clip(eigvals, 0.0, None)
    factor = eigvecs * np.sqrt(eigvals)
    return random_phase_vectors(rng, n_candidates, matrix.shape[0]) @ factor.T


def eigen_ratio(matrix: np.ndarray) -> float:
    """Share of the trace carried by the principal eigenvalue (1 for rank one)."""
    eigvals = np.clip(sl.eigvalsh((matrix + matrix.conj().T) / 2), 0.0, None)
    total = eigvals.sum()
    return float(eigvals[-1] / total) if total > 0 else 1.0


@dataclass(frozen=True)
class Rounded:
    """Best feasible candidate of one randomization pass."""

    index: int
    vectors: Tuple[np.ndarray, ...]
    score: float
    n_feasible: int


class RelaxAndRound(abc.ABC):
    """Relax a rank-one program, then recover a rank-one point by randomization."""

    def __init__(self, n_candidates: int, rng: nr.Generator) -> None:
        self.n_candidates = n_candidates
        self.rng = rng

    @abc.abstractmethod
    def relax(self) -> List[np.ndarray]:
        """Solve the relaxed program and return its PSD matrix variables."""

    @abc.abstractmethod
    def evaluate(self, candidates: Sequence[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        """Scores (Q,) and feasibility mask (Q,) for a batch of candidates."""

    def sample(self, matrices: Sequence[np.ndarray]) -> List[np.ndarray]:
        return [gaussian_candidates(m, self.rng, self.n_candidates) for m in matrices]

    def round(self, matrices: Sequence[np.ndarray]) -> Rounded:
        candidates = self.sample(matrices)
        scores, feasible = self.evaluate(candidates)
        n_feasible = int(np.count_nonzero(feasible))
        if n_feasible == 0:
            raise InvalidCandidate(f"none of {len(scores)} randomized candidates is feasible")
        best = int(np.argmax(np.where(feasible, scores, -np.inf)))
        logger.debug("randomization kept candidate %d of %d feasible", best, n_feasible)
        return Rounded(best, tuple(c[best] for c in candidates), float(scores[best]), n_feasible)

    def run(self) -> Rounded:
        return self.round(self.relax())
