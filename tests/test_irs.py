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

from irs_swipt.channel import composite_channel, random_phases
from irs_swipt.errors import DimensionMismatch
from irs_swipt.irs import IrsSDR, optimize_phases
from irs_swipt.waveform import evaluate_state, initial_waveform


@pytest.fixture
def surface():
    rng = nr.default_rng(11)
    direct = np.array([0.6 + 0.2j, -0.3 + 0.5j, 0.4 - 0.4j])
    cascaded = 0.3 * (rng.standard_normal((4, 3)) + 1j * rng.standard_normal((4, 3)))
    return direct, cascaded


def test_phases_are_unit_modulus_and_never_worse(surface, cfg):
    direct, cascaded = surface
    rng = cfg.rng()
    phases = random_phases(4, rng)
    h = composite_channel(direct, cascaded, phases)
    state = initial_waveform(h, cfg, 0.0)
    before, _ = evaluate_state(h, state, cfg)

    sol = optimize_phases(direct, cascaded, phases, state, cfg, 0.0, rng)
    np.testing.assert_allclose(np.abs(sol.phases), 1.0, atol=1e-12)
    after, _ = evaluate_state(composite_channel(direct, cascaded, sol.phases), state, cfg)
    assert np.isclose(after, sol.current)
    assert after >= before * (1 - 1e-12)
    assert 0 < sol.eig_ratio <= 1 + 1e-9


def test_rate_constraint_is_respected(surface, cfg):
    direct, cascaded = surface
    rng = cfg.rng()
    phases = random_phases(4, rng)
    h = composite_channel(direct, cascaded, phases)
    state = initial_waveform(h, cfg, 0.0)
    _, rate = evaluate_state(h, state, cfg)
    target = 0.9 * rate

    sol = optimize_phases(direct, cascaded, phases, state, cfg, target, rng)
    _, new_rate = evaluate_state(composite_channel(direct, cascaded, sol.phases), state, cfg)
    assert new_rate >= target * (1 - cfg.feasibility_tolerance)


def test_gain_matrices_reproduce_channel_power(surface, cfg):
    direct, cascaded = surface
    phases = random_phases(4, nr.default_rng(0))
    h = composite_channel(direct, cascaded, phases)
    state = initial_waveform(h, cfg, 0.0)
    sdr = IrsSDR(direct, cascaded, phases, state, cfg, 0.0, nr.default_rng(0))
    phi = np.append(phases, 1.0)
    gains = np.einsum("i,nij,j->n", phi.conj(), sdr.gain_matrices(), phi).real
    np.testing.assert_allclose(gains, np.abs(h) ** 2, rtol=1e-12)


def test_shape_mismatch(surface, cfg):
    direct, cascaded = surface
    state = initial_waveform(direct, cfg, 0.0)
    with pytest.raises(DimensionMismatch):
        optimize_phases(direct, cascaded, np.ones(3), state, cfg, 0.0, cfg.rng())
