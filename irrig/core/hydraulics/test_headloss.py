from __future__ import annotations

import math

import numpy as np
import pytest

from irrig.core.hydraulics.headloss import (
    adjusted_c,
    hazen_williams_loss,
    hazen_williams_vec,
    optimal_diameter_mm,
    velocity_m_s,
)


def _loss(flow=100.0, d=25.0, length=50.0, material="PVC", role="branch", age=0.0):
    return hazen_williams_loss(
        flow_lpm=flow, diameter_mm=d, length_m=length, material=material, role=role, age_years=age,
    )


def test_single_segment_pvc():
    hl = _loss()
    area = math.pi * 0.0125 ** 2
    assert hl.velocity == pytest.approx((100.0 / 60000.0) / area)
    assert hl.c == pytest.approx(150.0)
    assert 0.0 < hl.major < math.inf
    assert hl.velocity > 0.0

    q = 100.0 / 60000.0
    expected = 10.67 * 50.0 * q ** 1.852 / (150.0 ** 1.852 * 0.025 ** 4.87)
    assert hl.major == pytest.approx(expected)


@pytest.mark.parametrize("role, ratio", [("branch", 0.20), ("secondary", 0.15), ("main", 0.10)])
def test_minor_loss_ratio_by_role(role, ratio):
    hl = _loss(role=role)
    assert hl.minor == pytest.approx(hl.major * ratio)
    assert hl.total == pytest.approx(hl.major + hl.minor)


def test_monotone_in_flow_and_diameter():
    flows = [_loss(flow=q).total for q in (20.0, 50.0, 100.0, 200.0)]
    assert all(a < b for a, b in zip(flows, flows[1:]))

    sizes = [_loss(d=d).total for d in (16.0, 20.0, 25.0, 32.0, 50.0)]
    assert all(a > b for a, b in zip(sizes, sizes[1:]))


@pytest.mark.parametrize("flow, d", [(0.0, 25.0), (-5.0, 25.0), (100.0, 0.0)])
def test_degenerate_segment_is_zero(flow, d):
    hl = _loss(flow=flow, d=d)
    assert hl.total == 0.0
    assert hl.velocity == 0.0


def test_age_reduces_c_with_floor():
    assert adjusted_c("PVC", 0) == pytest.approx(150.0)
    assert adjusted_c("PVC", 10) == pytest.approx(125.0)
    assert adjusted_c("PVC", 40) == pytest.approx(100.0)
    assert adjusted_c("PVC", 100) == pytest.approx(100.0)
    assert adjusted_c("unobtainium", 0) == pytest.approx(135.0)
    assert _loss(age=10).total > _loss(age=0).total


def test_vectorized_matches_scalar():
    d = np.array([16.0, 25.0, 32.0, 0.0])
    c = np.array([150.0, 145.0, 135.0, 150.0])
    total, vel = hazen_williams_vec(flow_lpm=80.0, diameter_mm=d, length_m=30.0, c=c, role="secondary")

    for i, (mat, size) in enumerate([("pvc", 16.0), ("hdpe", 25.0), ("ldpe", 32.0)]):
        hl = _loss(flow=80.0, d=size, length=30.0, material=mat, role="secondary")
        assert total[i] == pytest.approx(hl.total)
        assert vel[i] == pytest.approx(hl.velocity)
    assert total[3] == 0.0 and vel[3] == 0.0


def test_optimal_diameter_hits_target_velocity():
    d = optimal_diameter_mm(100.0, 1.5)
    assert d == pytest.approx(37.61, abs=0.01)
    assert velocity_m_s(100.0, d) == pytest.approx(1.5)
    assert optimal_diameter_mm(0.0) == 0.0
