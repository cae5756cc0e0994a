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

import json

import numpy as np

from irs_swipt import region
from irs_swipt.alternating import AlternatingOptimizer, Sample, Solution
from irs_swipt.config import ChannelConfig, ScenarioConfig
from irs_swipt.convergence import ConvergenceStatus
from irs_swipt.errors import Infeasible
from irs_swipt.region import (
    RegionCurve,
    ResultKey,
    ResultRecord,
    average_curves,
    re_sample_swipt,
    re_sample_swipt_low_complexity,
    re_sample_wpt,
    run_alpha_sweep,
    run_reflector_sweep,
)
from irs_swipt.waveform import WaveformState


def test_curve_array_marks_infeasible_points():
    curve = RegionCurve(np.array([3.0, 2.0, 1.0]), (None, Sample(2.0, 5.0), Sample(1.0, 7.0)), ())
    arr = curve.as_array()
    assert arr.shape == (2, 3)
    assert np.isnan(arr[:, 0]).all()
    np.testing.assert_array_equal(arr[:, 1:], [[2.0, 1.0], [5.0, 7.0]])
    assert curve.infeasible == [3.0]
    assert curve.samples == [Sample(2.0, 5.0), Sample(1.0, 7.0)]


def test_average_curves_ignores_nan():
    a = np.array([[1.0, np.nan, np.nan], [2.0, np.nan, 4.0]])
    b = np.array([[3.0, np.nan, 1.0], [4.0, np.nan, 6.0]])
    avg = average_curves([a, b])
    np.testing.assert_allclose(avg[:, 0], [2.0, 3.0])
    assert np.isnan(avg[:, 1]).all()
    np.testing.assert_allclose(avg[:, 2], [1.0, 5.0])


def test_sweep_records_infeasible_constraints(monkeypatch, channels, cfg):
    direct, cascaded = channels
    small = ScenarioConfig(noise_power=cfg.noise_power, n_samples=4, n_candidates=100, seed=1, solver=cfg.solver)

    def fake_run(self, direct, cascaded, rate_constraint=0.0, rng=None, phases=None):
        if rate_constraint > 10:
            raise Infeasible("infeasible", rate_constraint)
        return type("Fake", (), {"sample": Sample(rate_constraint, 1.0 / (1 + rate_constraint))})()

    monkeypatch.setattr(AlternatingOptimizer, "run", fake_run)
    curve = re_sample_swipt(small, direct, cascaded)
    assert len(curve.points) == 4
    assert curve.rate_constraints[0] > curve.rate_constraints[-1] == 0
    assert curve.infeasible and all(r > 10 for r in curve.infeasible)
    assert all(s.rate <= 10 for s in curve.samples)
    missing = [p is None for p in curve.points]
    assert np.isnan(curve.as_array()[:, missing]).all()


def test_short_swipt_sweep(channels, cfg):
    direct, cascaded = channels
    small = ScenarioConfig(
        noise_power=cfg.noise_power,
        tolerance=1e-3,
        n_samples=2,
        n_candidates=200,
        max_iterations=3,
        max_sca_iterations=15,
        seed=5,
        solver=cfg.solver,
    )
    curve = re_sample_swipt(small, direct, cascaded)
    assert len(curve.points) == 2
    for sample, rate_constraint in zip(curve.points, curve.rate_constraints):
        if sample is not None:
            assert sample.rate >= rate_constraint * (1 - small.feasibility_tolerance) - 1e-9
            assert sample.current >= 0


def test_wpt_sample(channels, cfg):
    direct, cascaded = channels
    sample, sol = re_sample_wpt(cfg, direct, cascaded)
    assert sample.rate == np.finfo(float).eps
    assert sample.current == sol.current > 0


def test_reflector_sweep_keys(monkeypatch):
    def fake_curve(cfg, direct, cascaded, rng=None):
        n = cascaded.shape[0]
        return RegionCurve(np.array([1.0, 0.0]), (Sample(1.0, float(n)), Sample(0.0, 2.0 * n)), ())

    monkeypatch.setattr(region, "re_sample_swipt", fake_curve)
    cfg = ScenarioConfig(seed=0)
    results = run_reflector_sweep(cfg, ChannelConfig(n_subbands=2), (1, 3), n_realizations=2)
    assert set(results) == {ResultKey("swipt", 1), ResultKey("swipt", 3)}
    record = results[ResultKey("swipt", 3)]
    assert record.n_realizations == 2
    np.testing.assert_allclose(record.curve, [[1.0, 0.0], [3.0, 6.0]])
    assert record.to_dict()["current"] == [3.0, 6.0]


def test_main_writes_summary(monkeypatch, tmp_path, capsys):
    def fake_sweep(cfg, channel_cfg, n_reflectors, n_realizations):
        return {ResultKey("swipt", n): region.ResultRecord(np.array([[1.0, np.nan], [2.0, np.nan]]), n_realizations, 1) for n in n_reflectors}

    monkeypatch.setattr(region, "run_reflector_sweep", fake_sweep)
    monkeypatch.setattr(
        region,
        "run_alpha_sweep",
        lambda cfg, channel_cfg, alphas, n_realizations: {
            ResultKey("low_complexity", a): ResultRecord(np.array([[1.0], [0.5]]), n_realizations, 0) for a in alphas
        },
    )
    out = tmp_path / "re.json"
    region.main([str(out)])
    printed = capsys.readouterr().out
    assert "=== R-E Region Summary ===" in printed
    assert "low_complexity" in printed
    payload = json.loads(out.read_text())
    assert "alpha/low_complexity/2" in payload
    assert "reflectors/swipt/5" in payload


def test_low_complexity_sweep_starts_aligned(monkeypatch, channels, cfg):
    direct, cascaded = channels
    small = ScenarioConfig(noise_power=cfg.noise_power, n_samples=3, n_candidates=100, seed=1, solver=cfg.solver)
    starts = []

    def fake_run(self, direct, cascaded, alpha, rate_constraint=0.0, rng=None, phases=None):
        starts.append(phases)
        return type("Fake", (), {"sample": Sample(rate_constraint, alpha)})()

    monkeypatch.setattr(AlternatingOptimizer, "run_low_complexity", fake_run)
    curve = re_sample_swipt_low_complexity(small, direct, cascaded, 2.0)
    assert [s.current for s in curve.samples] == [2.0, 2.0, 2.0]
    assert curve.rate_constraints[-1] == 0
    # every point starts from the same reflection
    assert all(p is starts[0] for p in starts)
    np.testing.assert_allclose(np.abs(starts[0]), 1.0)


def test_alpha_sweep_shares_channels(monkeypatch):
    seen = []

    def fake_low_complexity(cfg, direct, cascaded, alpha, rng=None):
        seen.append(direct.tobytes())
        return RegionCurve(np.array([1.0, 0.0]), (Sample(1.0, alpha), Sample(0.0, 2 * alpha)), ())

    def fake_reference(cfg, direct, cascaded, rng=None):
        seen.append(direct.tobytes())
        return RegionCurve(np.array([1.0, 0.0]), (None, Sample(0.0, 10.0)), ())

    monkeypatch.setattr(region, "re_sample_swipt_low_complexity", fake_low_complexity)
    monkeypatch.setattr(region, "re_sample_swipt", fake_reference)
    results = run_alpha_sweep(ScenarioConfig(seed=0), ChannelConfig(n_subbands=2, n_reflectors=4), (0.0, 2.0), 2)

    assert set(results) == {ResultKey("low_complexity", 0.0), ResultKey("low_complexity", 2.0), ResultKey("swipt", 4)}
    np.testing.assert_allclose(results[ResultKey("low_complexity", 2.0)].curve, [[1.0, 0.0], [2.0, 4.0]])
    reference = results[ResultKey("swipt", 4)]
    assert reference.n_infeasible == 2
    assert reference.curve[1, 1] == 10.0
    # three curves per realization, two distinct channels
    assert len(seen) == 6
    assert len(set(seen)) == 2
    assert seen[0] == seen[1] == seen[2]


def test_alpha_sweep_without_reference(monkeypatch):
    monkeypatch.setattr(
        region,
        "re_sample_swipt_low_complexity",
        lambda cfg, direct, cascaded, alpha, rng=None: RegionCurve(np.array([0.0]), (Sample(0.0, 1.0),), ()),
    )
    results = run_alpha_sweep(ScenarioConfig(seed=0), ChannelConfig(n_subbands=2), (1.0,), 1, reference=False)
    assert set(results) == {ResultKey("low_complexity", 1.0)}


def test_result_record_carries_diagnostics():
    sol = Solution(
        phases=np.ones(1, dtype=complex),
        composite_channel=np.array([1.0 + 0.5j, 0.2j]),
        waveform=WaveformState(np.ones(2), np.zeros(2), 0.5, 0.5),
        eig_ratios=(0.99,),
        currents=(1.0, 2.0),
        current=2.0,
        rate=1.0,
        status=ConvergenceStatus.STALLED,
    )
    curve = RegionCurve(np.array([3.0, 1.0]), (None, sol.sample), (sol,))
    record = ResultRecord(curve.as_array(), 1, 1, (curve,))

    payload = json.loads(json.dumps(record.to_dict()))
    assert payload["status_counts"] == {"stalled": 1}
    realization = payload["realizations"][0]
    assert realization["points"] == [None, {"rate": 1.0, "current": 2.0}]
    assert realization["infeasible"] == [3.0]
    solution = realization["solutions"][0]
    assert solution["currents"] == [1.0, 2.0]
    assert solution["status"] == "stalled"
    assert solution["composite_channel"] == [[1.0, 0.5], [0.0, 0.2]]
    assert solution["waveform"]["info_ratio"] == 0.5
