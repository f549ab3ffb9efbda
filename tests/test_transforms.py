"""Tests for the spectral transform plans."""

import dataclasses

import numpy as np
import pytest

from abltop.regime import Regime
from abltop.transforms import TransformKind, TransformPlan, build_transform_plans


class TestPlanSets:
    def test_periodic_periodic_builds_only_2d_plans(self):
        plans = build_transform_plans(Regime.PERIODIC_PERIODIC, 8, 6)
        assert plans.names() == ["fourier2d_f", "fourier2d_b"]
        assert plans.fourier2d_f.n == 8 and plans.fourier2d_f.m == 6

    def test_inflow_periodic_plans(self):
        plans = build_transform_plans(Regime.INFLOW_PERIODIC, 9, 8)
        assert set(plans.names()) == {
            "fourier_y_f", "fourier_y_b", "cos_x_f", "cos_x_b", "sin_x_f", "sin_x_b"}
        assert plans.cos_x_f.n == 9
        assert plans.sin_x_f.n == 7
        assert plans.fourier_y_f.n == 8 and plans.fourier_y_f.axis == 1

    def test_inflow_inflow_plans(self):
        plans = build_transform_plans(Regime.INFLOW_INFLOW, 9, 7)
        assert set(plans.names()) == {
            "cos_x_f", "cos_x_b", "sin_x_f", "sin_x_b",
            "cos_y_f", "cos_y_b", "sin_y_f", "sin_y_b"}
        assert plans.sin_y_b.n == 5 and plans.sin_y_b.axis == 1


class TestPlanExecution:
    @pytest.mark.parametrize("regime", list(Regime))
    def test_forward_backward_pairs_invert(self, regime):
        imax, jmax = 9, 8
        plans = build_transform_plans(regime, imax, jmax)
        rng = np.random.default_rng(3)

        for name in plans.names():
            if not name.endswith("_f"):
                continue
            fwd = getattr(plans, name)
            bwd = getattr(plans, name[:-2] + "_b")
            shape = [imax, jmax]
            if fwd.kind is TransformKind.SINE:
                shape[fwd.axis] = fwd.n
            data = rng.standard_normal(shape)
            assert np.allclose(bwd(fwd(data)).real, data, atol=1e-12), name

    def test_cosine_plan_matches_series_coefficients(self):
        """DCT-I of cos(pi*m*i/(n-1)) is (n-1) at m and zero elsewhere."""
        n, m = 9, 3
        plan = TransformPlan(TransformKind.COSINE, n)
        data = np.cos(np.pi * m * np.arange(n) / (n - 1))
        coef = plan(data)
        expected = np.zeros(n)
        expected[m] = n - 1
        assert np.allclose(coef, expected, atol=1e-12)

    def test_wrong_extent_rejected(self):
        plan = TransformPlan(TransformKind.SINE, 5, axis=1)
        with pytest.raises(ValueError):
            plan(np.zeros((4, 6)))

    def test_wrong_2d_shape_rejected(self):
        plans = build_transform_plans(Regime.PERIODIC_PERIODIC, 8, 6)
        with pytest.raises(ValueError):
            plans.fourier2d_f(np.zeros((6, 8)))

    def test_plans_are_immutable(self):
        plans = build_transform_plans(Regime.INFLOW_PERIODIC, 9, 8)
        with pytest.raises(dataclasses.FrozenInstanceError):
            plans.cos_x_f.n = 10
        with pytest.raises(dataclasses.FrozenInstanceError):
            plans.cos_x_f = None
