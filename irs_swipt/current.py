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
Rectenna output-current model in quadratic (moment) form.

For a composite channel h and waveform outer product W = w w^H, the banded
channel matrices
    H_k = diag(diag(h h^H, k), k),   k = -N+1 .. N-1
give the auxiliary moments
    t_k = tr(conj(H_k) W) = sum_i conj(h_i w_i) h_{i+k} w_{i+k},
and with power-splitting ratio rho the output DC current is
    z = 1/2 beta2 rho (t_I0 + t_P0)
      + 3/8 beta4 rho^2 (2 t_I0^2 + sum_k |t_Pk|^2)
      + 3/2 beta4 rho^2 t_I0 t_P0.

Moment arrays are indexed by k + N - 1, so offset 0 sits in the middle.

Grouping terms, z = 1/2 beta2 rho s + 3/8 beta4 rho^2 q + 3/2 beta4 rho^2 p with
    s = t_I0 + t_P0,   q = 2 t_I0^2 + sum_k |t_Pk|^2,   p = t_I0 t_P0,
where q is convex in the waveform matrices; the SCA surrogate is built on this split.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def channel_coef_matrices(h: np.ndarray) -> np.ndarray:
    """Stack of banded matrices H_k, shape (2N-1, N, N)."""
    h = np.asarray(h)
    n = h.size
    outer = np.outer(h, h.conj())
    return np.stack([np.diag(np.diag(outer, k), k) for k in range(-n + 1, n)])


def auxiliary_moments(coef: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """t_k = tr(conj(H_k) W) for a (possibly high-rank) waveform matrix."""
    return np.einsum("kij,ji->k", coef.conj(), matrix)


def auxiliary_from_vectors(h: np.ndarray, w: np.ndarray) -> np.ndarray:
    """
    Moments of the rank-one matrices w w^H, for one waveform (N,) or a batch (Q, N).

    Equivalent to `auxiliary_moments(channel_coef_matrices(h), outer(w, w*))`
    without forming any N x N matrix.
    """
    s = np.asarray(h) * np.asarray(w)
    n = s.shape[-1]
    positive = [np.sum(s[..., : n - k].conj() * s[..., k:], axis=-1) for k in range(n)]
    negative = [positive[k].conj() for k in range(n - 1, 0, -1)]
    return np.stack(negative + positive, axis=-1)


def output_current(beta2: float, beta4: float, power_ratio, t_info: np.ndarray, t_power: np.ndarray):
    """Output DC current; the imaginary residue of the cross terms is dropped."""
    t_info = np.asarray(t_info)
    t_power = np.asarray(t_power)
    c = (t_info.shape[-1] - 1) // 2
    t_info0 = t_info[..., c]
    t_power0 = t_power[..., c]
    z = (
        0.5 * beta2 * power_ratio * (t_info0 + t_power0)
        + 3 / 8 * beta4 * power_ratio ** 2 * (2 * t_info0 ** 2 + np.sum(np.abs(t_power) ** 2, axis=-1))
        + 3 / 2 * beta4 * power_ratio ** 2 * t_info0 * t_power0
    )
    return np.real(z)


def user_rate(info_ratio, info_power: np.ndarray, h: np.ndarray, noise_power: float):
    """
    Achievable rate sum_n log2(1 + info_ratio |w_n|^2 |h_n|^2 / noise).

    `info_power` holds |w_n|^2 (the diagonal of W), per waveform or batched.
    """
    snr = info_ratio * np.real(info_power) * np.abs(h) ** 2 / noise_power
    return np.sum(np.log2(1 + snr), axis=-1)


def quartic_moment(t_info: np.ndarray, t_power: np.ndarray):
    """q = 2 t_I0^2 + sum_k |t_Pk|^2, the fourth-order moment multiplying 3/8 beta4 rho^2."""
    t_info = np.asarray(t_info)
    t_power = np.asarray(t_power)
    c = (t_info.shape[-1] - 1) // 2
    return np.real(2 * t_info[..., c] ** 2 + np.sum(np.abs(t_power) ** 2, axis=-1))


def sca_coef_matrices(coef: np.ndarray, t_info: np.ndarray, t_power: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gradient matrices (A_I, A_P) of the quartic moment at an incumbent point.

    q is convex in (W_I, W_P), so its tangent plane is a global under-estimator:
        q(W) >= Re tr(A_I W_I) + Re tr(A_P W_P) - q(W0),
    with equality at W0. Both matrices are Hermitian.
    """
    c = (coef.shape[0] - 1) // 2
    info_coef = 4 * np.real(t_info[c]) * coef[c].conj()
    power_coef = 2 * np.einsum("k,kij->ij", np.conj(t_power), coef.conj())
    return info_coef, power_coef
