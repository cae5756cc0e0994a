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
import pytest

from irs_swipt.config import ScenarioConfig, SolverSettings


@pytest.fixture
def cfg() -> ScenarioConfig:
    # small and loose enough for a quick solve on two subbands
    return ScenarioConfig(
        noise_power=1e-5,
        tolerance=1e-4,
        n_candidates=500,
        max_iterations=8,
        max_sca_iterations=30,
        seed=7,
        solver=SolverSettings(precision="default"),
    )


@pytest.fixture
def channels():
    direct = np.array([0.8 + 0.3j, 0.5 - 0.6j])
    cascaded = np.array([[0.4 - 0.2j, 0.3 + 0.5j]])
    return direct, cascaded
