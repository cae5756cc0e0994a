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

"""Termination tests for the SCA and AO fixed-point loops."""

from __future__ import annotations

import enum
import logging
import warnings

from .errors import NonConvergence

logger = logging.getLogger(__name__)

# currents below this are treated as zero when forming a relative gain
_TINY = 1e-15


class ConvergenceStatus(enum.Enum):
    CONVERGED = "converged"
    ITERATION_LIMIT = "iteration_limit"
    # a pass lowered the current by more than the tolerance
    STALLED = "stalled"


def has_converged(current: float, previous: float, tolerance: float, relative: bool = True) -> bool:
    """|z - z'| / z <= tolerance (relative) or |z - z'| <= tolerance (absolute)."""
    delta = abs(current - previous)
    if not relative:
        return delta <= tolerance
    if abs(current) <= _TINY:
        return delta <= _TINY
    return delta / abs(current) <= tolerance


def iteration_limit(loop: str, max_iterations: int, current: float) -> ConvergenceStatus:
    """Warn that `loop` hit its cap and return the matching status."""
    msg = f"{loop} stopped after {max_iterations} iterations without meeting the tolerance (current {current:.6g})"
    logger.warning(msg)
    warnings.warn(msg, NonConvergence, stacklevel=3)
    return ConvergenceStatus.ITERATION_LIMIT
