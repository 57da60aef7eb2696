from __future__ import annotations

import pytest

from irrig.core.models.catalog import Catalog, PipeItem, PumpItem, SprinklerItem
from irrig.core.models.inputs import IrrigationInput, SegmentLengths
from irrig.core.models.results import ScoredCandidate


def test_pump_record_aliases_and_fallbacks():
    issues = []
    pump = PumpItem.from_record(
        {"id": 7, "productCode": "PMP-7", "price": "1200", "flow_rate_lpm": "50-200", "head_m": "10-40", "powerHP": 1.5},
        issues,
    )
    assert pump.product_code == "PMP-7"
    assert pump.price == pytest.approx(1200.0)
    assert pump.flow_range_lpm == (50.0, 200.0)
    assert pump.max_flow_lpm == pytest.approx(200.0)
    assert pump.max_head_m == pytest.approx(40.0)
    assert pump.power_kw == pytest.approx(1.5 * 0.7457)
    assert issues == []


def test_pump_explicit_max_wins_over_range():
    pump = PumpItem.from_record({"id": 1, "flow_rate_lpm": "50-200", "max_flow_rate_lpm": 180, "powerKW": 2})
    assert pump.max_flow_lpm == pytest.approx(180.0)
    assert pump.power_hp == pytest.approx(2 * 1.341)


def test_sprinkler_nested_attributes():
    spr = SprinklerItem.from_record({
        "id": 3,
        "product_code": "SPK-3",
        "price": 4.5,
        "attributes": {"waterVolumeL_H": "100-200", "radiusMeters": "3-5", "pressureBar": [1, 3]},
    })
    assert spr.flow_range_lph == (100.0, 200.0)
    assert spr.radius_range_m == (3.0, 5.0)
    assert spr.pressure_range_bar == (1.0, 3.0)


def test_formatted_attributes_list():
    spr = SprinklerItem.from_record({
        "id": 4,
        "price": 1,
        "formatted_attributes": [{"attribute_name": "waterVolumeLitersPerHour", "value": "40-60"}],
    })
    assert spr.flow_range_lph == (40.0, 60.0)
    assert spr.product_code == "4"


def test_malformed_range_degrades_with_issue():
    issues = []
    spr = SprinklerItem.from_record({"id": 5, "product_code": "BAD", "waterVolumeLitersPerHour": "lots"}, issues)
    assert spr.flow_range_lph is None
    assert [i.code for i in issues] == ["catalog.range"]
    assert issues[0].context["field"] == "waterVolumeLitersPerHour"


def test_pipe_record():
    pipe = PipeItem.from_record({"id": 2, "pipeType": "PVC", "sizeMM": "32", "lengthM": 100, "pn": 8.5, "price": 40})
    assert pipe.pipe_type == "PVC"
    assert pipe.size_mm == pytest.approx(32.0)
    assert pipe.length_m == pytest.approx(100.0)
    assert pipe.pn == pytest.approx(8.5)


def test_catalog_drops_inactive_and_reports_readiness():
    cat = Catalog.from_records(
        pipes=[{"id": 1, "sizeMM": 25, "is_active": True}, {"id": 2, "sizeMM": 32, "is_active": "false"}],
        pumps=[{"id": 1, "max_flow_rate_lpm": 100, "max_head_m": 30}],
        sprinklers=[],
    )
    assert [p.id for p in cat.pipes] == [1]
    assert not cat.is_ready
    assert not Catalog().is_ready


def test_scored_candidate_flag_ordering_enforced():
    with pytest.raises(ValueError):
        ScoredCandidate(item=None, score=70.0, is_recommended=True, is_good_choice=False, is_usable=True)
    with pytest.raises(ValueError):
        ScoredCandidate(item=None, score=101.0, is_recommended=False, is_good_choice=False, is_usable=False)


def test_input_from_dict_maps_zero_lengths_to_absent():
    inp = IrrigationInput.from_dict({
        "farmSizeRai": 5,
        "totalTrees": 300,
        "waterPerTreeLiters": 40,
        "numberOfZones": 2,
        "simultaneousZones": 1,
        "irrigationTimeMinutes": 45,
        "staticHeadM": 8,
        "pressureHeadM": 15,
        "longestBranchPipeM": 30,
        "totalBranchPipeM": 400,
        "longestSecondaryPipeM": 0,
        "totalSecondaryPipeM": 0,
        "longest_main_pipe_m": 120,
        "total_main_pipe_m": 150,
    })
    assert inp.secondary is None
    assert inp.main is not None and inp.main.longest_m == pytest.approx(120.0)
    assert inp.total_pipe_length_m == pytest.approx(550.0)
    assert inp.number_of_zones == 2


@pytest.mark.parametrize("longest, total, expected", [
    (0, 0, None),
    (None, "", None),
    (-30, 100, SegmentLengths(-30.0, 100.0)),
    (0, 80, SegmentLengths(0.0, 80.0)),
    ("25", "90", SegmentLengths(25.0, 90.0)),
])
def test_optional_segment_only_absent_when_both_lengths_are_zero(longest, total, expected):
    assert SegmentLengths.optional(longest, total) == expected
