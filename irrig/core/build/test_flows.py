from __future__ import annotations

import pytest

from irrig.core.build.flows import resolve_flows, water_need_flow_lph
from irrig.core.models.catalog import SprinklerItem
from irrig.core.models.inputs import IrrigationInput, SegmentLengths


def _inp(**kw) -> IrrigationInput:
    base = dict(
        farm_size_rai=2.0,
        total_trees=50,
        water_per_tree_liters=60.0,
        number_of_zones=1,
        simultaneous_zones=1,
        irrigation_time_minutes=60.0,
        static_head_m=10.0,
        pressure_head_m=15.0,
        branch=SegmentLengths(30.0, 200.0),
    )
    base.update(kw)
    return IrrigationInput(**base)


def _sprinkler(flow=(100.0, 200.0)) -> SprinklerItem:
    return SprinklerItem(id=1, product_code="SPK-1", price=5.0, flow_range_lph=flow)


def test_sprinkler_based_total_flow():
    flows = resolve_flows(_inp(), _sprinkler())
    assert flows.sprinkler_based
    assert flows.total_sprinklers == 50
    assert flows.flow_per_sprinkler_lph == pytest.approx(150.0)
    assert flows.total_flow_lph == pytest.approx(7500.0)
    assert flows.total_flow_lpm == pytest.approx(125.0)
    assert flows.branch_flow_lpm == pytest.approx(2.5 * 4)
    assert flows.diagnostics == ()


def test_raw_sprinkler_record_is_normalized():
    rec = {"id": 1, "product_code": "SPK-1", "price": 5, "waterVolumeLitersPerHour": "100-200"}
    assert resolve_flows(_inp(), rec).total_flow_lph == pytest.approx(7500.0)


def test_emitters_per_tree_rounds_up():
    flows = resolve_flows(_inp(total_trees=5, sprinklers_per_tree=1.5), _sprinkler())
    assert flows.total_sprinklers == 8


def test_water_need_flow_without_sprinkler():
    inp = _inp()
    flows = resolve_flows(inp)
    assert not flows.sprinkler_based
    assert water_need_flow_lph(inp) == pytest.approx(3000.0)
    assert flows.total_flow_lph == pytest.approx(3000.0)
    assert flows.flow_per_sprinkler_lph == pytest.approx(60.0)


def test_invalid_sprinkler_flow_falls_back_with_diagnostic():
    flows = resolve_flows(_inp(), _sprinkler(flow=None))
    assert not flows.sprinkler_based
    assert flows.total_flow_lph == pytest.approx(3000.0)
    assert [d.code for d in flows.diagnostics] == ["flow.fallback"]


def test_implausible_sprinkler_is_reported_but_used():
    flows = resolve_flows(_inp(), _sprinkler(flow=(1000.0, 2000.0)))
    assert flows.sprinkler_based
    assert flows.total_flow_lph == pytest.approx(1500.0 * 50)
    assert [d.code for d in flows.diagnostics] == ["flow.implausible_sprinkler"]


def test_secondary_absent_has_no_flow():
    flows = resolve_flows(_inp(), _sprinkler())
    assert flows.secondary_flow_lpm is None
    assert flows.main_flow_lpm == pytest.approx(125.0)


def test_main_flow_covers_every_segment():
    inp = _inp(
        number_of_zones=10,
        secondary=SegmentLengths(50.0, 100.0),
        branches_per_secondary=3,
    )
    flows = resolve_flows(inp, _sprinkler())
    assert flows.secondary_flow_lpm == pytest.approx(30.0)
    assert flows.multi_zone_flow_lpm == pytest.approx(12.5)
    assert flows.main_flow_lpm == pytest.approx(30.0)
    assert flows.main_flow_lpm >= flows.secondary_flow_lpm >= flows.branch_flow_lpm


def test_simultaneous_zones_scale_main_flow():
    flows = resolve_flows(_inp(number_of_zones=4, simultaneous_zones=2), _sprinkler())
    assert flows.multi_zone_flow_lpm == pytest.approx(62.5)
    assert flows.main_flow_lpm == pytest.approx(62.5)
