#!/usr/bin/env python3
"""
Closed-form proximal operators checked against hand-computed cases and
against straightforward per-coordinate reference loops.
"""

import dataclasses
import math
import warnings

import numpy as np
import pytest

from gist_prox.core.errors import (
    InvalidDimensionError, InvalidParameterError, NumericDegeneracyWarning
)
from gist_prox.core.penalties import (
    CappedL1Penalty, LogSumPenalty, SCADPenalty, MCPPenalty, IndexedSoftThreshold
)
from gist_prox.core.penalties.selection import argmin_index


def reference_lsp(d, lam, theta):
    """Per-coordinate LSP prox with explicit float32 narrowing of |d_i|."""
    x = np.zeros_like(d)
    for i, di in enumerate(d):
        u = abs(float(np.float32(di)))
        z = u - theta
        v = z * z - 4.0 * (lam - u * theta)
        if v < 0:
            continue
        cand = [0.0, max(0.0, 0.5 * (z + math.sqrt(v))), max(0.0, 0.5 * (z - math.sqrt(v)))]
        obj = [0.5 * u * u] + [0.5 * (c - u) ** 2 + lam * math.log(1.0 + c / theta) for c in cand[1:]]
        best = cand[argmin_index(obj)]
        x[i] = best if di >= 0 else -best
    return x


def reference_scad(d, lam, theta):
    """Per-coordinate SCAD prox with unit step, three-region candidate scoring."""
    x = np.zeros_like(d)
    z, w = theta * lam, lam * lam
    for i, di in enumerate(d):
        u = abs(di)
        c0 = min(lam, max(0.0, u - lam))
        c1 = min(z, max(lam, (u * (theta - 1.0) - z) / (theta - 2.0)))
        c2 = max(z, u)
        y = [0.5 * (c0 - u) ** 2 + lam * c0,
             0.5 * (c1 - u) ** 2 + 0.5 * (c1 * (-c1 + 2 * z) - w) / (theta - 1.0),
             0.5 * (c2 - u) ** 2 + 0.5 * (theta + 1.0) * w]
        best = [c0, c1, c2][argmin_index(y)]
        x[i] = best if di >= 0 else -best
    return x


class TestCappedL1:

    def test_large_input_keeps_capped_branch(self):
        # x1 = max(5, 3) = 5, x2 = 3, cost gap = -2
        x = CappedL1Penalty(lam=1.0, theta=3.0).prox(np.array([5.0]))
        np.testing.assert_array_equal(x, [5.0])

    def test_zero_input(self):
        x = CappedL1Penalty(lam=1.0, theta=2.0).prox(np.array([0.0]))
        np.testing.assert_array_equal(x, [0.0])

    def test_soft_threshold_branch(self):
        # f(3) = 3.125 > f(1.5) = 2.0
        x = CappedL1Penalty(lam=1.0, theta=3.0).prox(np.array([2.5, -2.5, 0.5, -5.0]))
        np.testing.assert_allclose(x, [1.5, -1.5, 0.0, -5.0])

    def test_step_scales_lambda(self):
        x_step = CappedL1Penalty(lam=0.5, theta=3.0).prox(np.array([2.5]), t=2.0)
        x_lam = CappedL1Penalty(lam=1.0, theta=3.0).prox(np.array([2.5]))
        np.testing.assert_array_equal(x_step, x_lam)

    def test_value(self):
        assert CappedL1Penalty(lam=2.0, theta=1.0).value([0.5, -3.0]) == pytest.approx(3.0)

    @pytest.mark.parametrize("theta", [0.0, -1.0, float("nan")])
    def test_invalid_theta(self, theta):
        with pytest.raises(InvalidParameterError):
            CappedL1Penalty(lam=1.0, theta=theta)

    def test_negative_lambda(self):
        with pytest.raises(InvalidParameterError):
            CappedL1Penalty(lam=-0.1, theta=1.0)


class TestLogSum:

    def test_infeasible_discriminant_gives_zero(self):
        # u = 0, v = theta^2 - 4*lambda < 0 when lambda > theta^2/4
        x = LogSumPenalty(lam=1.0, theta=1.0).prox(np.array([0.0]))
        np.testing.assert_array_equal(x, [0.0])

    def test_interior_root(self):
        # u = 3, theta = 1, lambda = 1: z = 2, v = 12, x = 1 + sqrt(3)
        x = LogSumPenalty(lam=1.0, theta=1.0).prox(np.array([3.0, -3.0]))
        np.testing.assert_allclose(x, [1 + math.sqrt(3), -(1 + math.sqrt(3))], rtol=1e-12)

    def test_matches_reference_loop(self, signed_vector):
        penalty = LogSumPenalty(lam=0.8, theta=0.5)
        np.testing.assert_allclose(penalty.prox(signed_vector),
                                   reference_lsp(signed_vector, 0.8, 0.5), rtol=0, atol=1e-12)

    def test_reduced_precision_magnitude(self, float32_tolerance):
        d = np.array([1.0 / 3.0, -2.0 / 7.0, 123.456789])
        x = LogSumPenalty(lam=0.0, theta=1.0).prox(d)
        np.testing.assert_allclose(x, d.astype(np.float32).astype(np.float64), rtol=1e-12)
        assert np.all(np.abs(x - d) <= float32_tolerance * np.abs(d))

    def test_sign_taken_from_full_precision_input(self):
        # -1e-50 narrows to -0.0 in single precision; the result stays non-positive.
        d = np.array([-1e-50, 1e-50])
        x = LogSumPenalty(lam=0.0, theta=1.0).prox(d)
        assert np.all(x == 0.0)
        assert np.signbit(x[0]) and not np.signbit(x[1])

    def test_degenerate_discriminant_is_clamped(self):
        # v = 16 - 4*lambda = -0.04: treated as zero under a generous tolerance
        penalty = LogSumPenalty(lam=4.01, theta=1.0, degeneracy_rtol=1e20)
        with pytest.warns(NumericDegeneracyWarning):
            x = penalty.prox(np.array([3.0]))
        assert np.all(np.isfinite(x))
        np.testing.assert_array_equal(x, [0.0])

    def test_default_tolerance_does_not_clamp_real_negatives(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", NumericDegeneracyWarning)
            x = LogSumPenalty(lam=4.01, theta=1.0).prox(np.array([3.0]))
        np.testing.assert_array_equal(x, [0.0])

    def test_rejects_values_beyond_single_precision(self):
        with pytest.raises(InvalidParameterError):
            LogSumPenalty(lam=1.0, theta=1.0).prox(np.array([1e39]))

    def test_value(self):
        assert LogSumPenalty(lam=2.0, theta=1.0).value([math.e - 1, 0.0]) == pytest.approx(2.0)


class TestSCAD:

    @pytest.mark.parametrize("d, expected", [
        (10.0, 10.0),       # flat region: identity
        (0.5, 0.0),         # soft-threshold region
        (3.0, 44.0 / 17.0), # middle region: (3*2.7 - 3.7)/1.7
        (-3.0, -44.0 / 17.0),
    ])
    def test_regions(self, d, expected):
        x = SCADPenalty(lam=1.0, theta=3.7).prox(np.array([d]))
        assert x[0] == pytest.approx(expected, rel=1e-12, abs=1e-12)

    def test_matches_reference_loop(self, signed_vector):
        penalty = SCADPenalty(lam=1.2, theta=3.7)
        np.testing.assert_allclose(penalty.prox(signed_vector),
                                   reference_scad(signed_vector, 1.2, 3.7), rtol=0, atol=1e-12)

    @pytest.mark.parametrize("theta", [2.0, 1.5, 0.3])
    def test_requires_theta_above_two(self, theta):
        with pytest.raises(InvalidParameterError):
            SCADPenalty(lam=1.0, theta=theta)

    def test_step_requires_convex_middle_region(self):
        with pytest.raises(InvalidParameterError):
            SCADPenalty(lam=1.0, theta=2.5).prox(np.array([1.0]), t=2.0)

    def test_value_regions(self):
        scad = SCADPenalty(lam=1.0, theta=3.7)
        assert scad.value([0.5]) == pytest.approx(0.5)
        assert scad.value([2.0]) == pytest.approx((-4.0 + 2 * 3.7 * 2.0 - 1.0) / (2 * 2.7))
        assert scad.value([10.0]) == pytest.approx(0.5 * 4.7)


class TestMCP:

    def test_large_input_flat_region(self):
        # z = 2, x1 = 2, x2 = 10, cost gap = 32 > 0
        x = MCPPenalty(lam=1.0, theta=2.0).prox(np.array([10.0]))
        np.testing.assert_array_equal(x, [10.0])

    def test_convex_case(self):
        # theta > 1: firm thresholding, f(1) = 0.875 < f(2) = 1.125
        x = MCPPenalty(lam=1.0, theta=2.0).prox(np.array([1.5, -1.5, 0.5]))
        np.testing.assert_allclose(x, [1.0, -1.0, 0.0])

    def test_concave_case(self):
        # theta < 1: hard thresholding between 0 and max(z, u)
        x = MCPPenalty(lam=1.0, theta=0.5).prox(np.array([2.0, 0.3, -2.0]))
        np.testing.assert_allclose(x, [2.0, 0.0, -2.0])

    def test_linear_case(self):
        x = MCPPenalty(lam=1.0, theta=1.0).prox(np.array([0.5, 3.0, -3.0]))
        np.testing.assert_allclose(x, [0.0, 3.0, -3.0])

    def test_large_theta_approaches_soft_threshold(self):
        d = np.array([-3.0, -0.5, 0.0, 0.7, 2.5])
        x = MCPPenalty(lam=1.0, theta=1e6).prox(d)
        np.testing.assert_allclose(x, np.sign(d) * np.maximum(np.abs(d) - 1.0, 0.0), atol=1e-5)

    def test_step_rescales_to_mcp(self):
        d = np.linspace(-5, 5, 41)
        x_step = MCPPenalty(lam=0.5, theta=4.0).prox(d, t=2.0)
        x_equiv = MCPPenalty(lam=1.0, theta=2.0).prox(d)
        np.testing.assert_allclose(x_step, x_equiv)

    def test_value(self):
        mcp = MCPPenalty(lam=1.0, theta=2.0)
        assert mcp.value([1.0]) == pytest.approx(0.75)
        assert mcp.value([-5.0]) == pytest.approx(1.0)


class TestIndexedSoftThreshold:

    def test_thresholds_from_cutoff_on(self):
        d = np.array([5.0, -3.0, 0.5, -0.2, 2.0])
        x = IndexedSoftThreshold(lam=1.0, theta=3.0).prox(d)
        np.testing.assert_allclose(x, [5.0, -3.0, 0.0, 0.0, 1.0])

    def test_theta_one_thresholds_everything(self):
        d = np.array([5.0, -3.0, 0.5, -0.2, 2.0])
        x = IndexedSoftThreshold(lam=1.0, theta=1.0).prox(d)
        np.testing.assert_allclose(x, [4.0, -2.0, 0.0, 0.0, 1.0])

    def test_fractional_theta_truncates(self):
        d = np.array([5.0, -3.0, 2.0])
        x = IndexedSoftThreshold(lam=1.0, theta=2.9).prox(d)
        np.testing.assert_allclose(x, [5.0, -2.0, 1.0])

    def test_cutoff_at_length_is_identity(self):
        d = np.array([5.0, -3.0, 2.0])
        np.testing.assert_array_equal(IndexedSoftThreshold(lam=1.0, theta=4.0).prox(d), d)

    def test_zero_seed_reproduces_fresh_buffer_output(self):
        d = np.array([5.0, -3.0, 2.0])
        x = IndexedSoftThreshold(lam=1.0, theta=1.0).prox(d, seed=np.zeros(3))
        np.testing.assert_array_equal(x, np.zeros(3))

    def test_operates_on_seed_not_input(self):
        d = np.array([5.0, -3.0, 2.0])
        seed = np.array([-4.0, 0.5, 3.0])
        x = IndexedSoftThreshold(lam=1.0, theta=2.0).prox(d, seed=seed)
        np.testing.assert_allclose(x, [-4.0, 0.0, 2.0])

    def test_does_not_mutate_seed(self):
        seed = np.array([2.0, 2.0])
        IndexedSoftThreshold(lam=1.0, theta=1.0).prox(np.zeros(2), seed=seed)
        np.testing.assert_array_equal(seed, [2.0, 2.0])

    @pytest.mark.parametrize("theta", [0.5, -2.0, float("inf")])
    def test_rejects_negative_offset(self, theta):
        with pytest.raises(InvalidParameterError):
            IndexedSoftThreshold(lam=1.0, theta=theta)

    def test_rejects_offset_beyond_length(self):
        with pytest.raises(InvalidParameterError):
            IndexedSoftThreshold(lam=1.0, theta=5.0).prox(np.ones(3))

    def test_rejects_seed_shape_mismatch(self):
        with pytest.raises(InvalidDimensionError):
            IndexedSoftThreshold(lam=1.0, theta=1.0).prox(np.ones(3), seed=np.ones(4))

    def test_chunk_offsets(self):
        d = np.arange(1.0, 11.0)
        penalty = IndexedSoftThreshold(lam=0.5, theta=5.0)
        full = penalty.prox(d)
        parts = [penalty.prox(d[lo:hi], start=lo, n_total=10) for lo, hi in [(0, 3), (3, 6), (6, 10)]]
        np.testing.assert_array_equal(np.concatenate(parts), full)

    def test_value(self):
        assert IndexedSoftThreshold(lam=2.0, theta=2.0).value([10.0, -1.0, 0.5]) == pytest.approx(3.0)


@pytest.mark.parametrize("penalty", [
    CappedL1Penalty(lam=1.0, theta=2.0),
    LogSumPenalty(lam=1.0, theta=2.0),
    SCADPenalty(lam=1.0, theta=3.7),
    MCPPenalty(lam=1.0, theta=2.0),
    IndexedSoftThreshold(lam=1.0, theta=2.0),
])
def test_prox_returns_fresh_array_and_leaves_input_untouched(penalty):
    d = np.array([3.0, -1.0, 0.25, 0.0])
    original = d.copy()
    x = penalty.prox(d)
    assert x is not d
    assert not np.shares_memory(x, d)
    np.testing.assert_array_equal(d, original)
    assert x.shape == d.shape and x.dtype == np.float64


@pytest.mark.parametrize("penalty", [CappedL1Penalty(), MCPPenalty(), SCADPenalty()])
def test_invalid_step(penalty):
    with pytest.raises(InvalidParameterError):
        penalty.prox(np.ones(2), t=0.0)


@pytest.mark.parametrize("d", [np.ones((2, 2)), np.array([]), np.array([1.0, np.nan])])
def test_rejects_malformed_vectors(d):
    with pytest.raises((InvalidDimensionError, InvalidParameterError)):
        MCPPenalty(lam=1.0, theta=2.0).prox(d)


class TestExtremeMagnitudes:

    @pytest.mark.parametrize("penalty", [
        CappedL1Penalty(lam=5e-251, theta=1e-200),
        LogSumPenalty(lam=1e-300, theta=1e-300),
        SCADPenalty(lam=5e-251, theta=3.7),
        MCPPenalty(lam=5e-251, theta=0.25),
        MCPPenalty(lam=5e-251, theta=1.0),
        MCPPenalty(lam=5e-251, theta=2.0),
    ])
    def test_zero_input_maps_to_positive_zero(self, penalty):
        x = penalty.prox(np.array([0.0, -0.0]))
        np.testing.assert_array_equal(x, [0.0, 0.0])
        assert not np.any(np.signbit(x))

    def test_scad_zero_lambda_keeps_tiny_inputs(self):
        d = np.array([1.5e-275, -1e-160, 5e-324])
        np.testing.assert_array_equal(SCADPenalty(lam=0.0, theta=3.0).prox(d), d)

    def test_mcp_zero_lambda_keeps_tiny_inputs(self):
        d = np.array([1.5e-275, -1e-160, 5e-324])
        for theta in (0.25, 1.0, 2.0):
            np.testing.assert_array_equal(MCPPenalty(lam=0.0, theta=theta).prox(d), d)

    @pytest.mark.parametrize("scale", [2.0 ** -900, 2.0 ** 900])
    def test_scad_is_scale_invariant_at_extreme_magnitudes(self, scale):
        d = np.array([0.5, -3.0, 10.0, 1.7])
        np.testing.assert_array_equal(SCADPenalty(lam=scale, theta=3.7).prox(scale * d),
                                      scale * SCADPenalty(lam=1.0, theta=3.7).prox(d))

    @pytest.mark.parametrize("theta", [0.5, 1.0, 2.0])
    @pytest.mark.parametrize("scale", [2.0 ** -900, 2.0 ** 900])
    def test_mcp_is_scale_invariant_at_extreme_magnitudes(self, theta, scale):
        d = np.array([1.5, -0.5, 3.0, -0.9])
        np.testing.assert_array_equal(MCPPenalty(lam=scale, theta=theta).prox(scale * d),
                                      scale * MCPPenalty(lam=1.0, theta=theta).prox(d))


@pytest.mark.parametrize("penalty", [
    CappedL1Penalty(), LogSumPenalty(), SCADPenalty(), MCPPenalty(), IndexedSoftThreshold()
])
def test_penalties_are_frozen(penalty):
    with pytest.raises(dataclasses.FrozenInstanceError):
        penalty.theta = 0.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        penalty.lam = -1.0
