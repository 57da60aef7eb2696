from __future__ import annotations

import math

import pytest

from irrig.core.build.config import SAFETY_FACTORS
from irrig.core.build.validate import InputValidationError
from irrig.core.models.catalog import Catalog
from irrig.core.models.inputs import IrrigationInput, SegmentLengths, ZoneCalculationData
from irrig.core.solver.orchestrator import check_head_loss_ratio, compute


PIPE_SIZES = (16, 20, 25, 32, 40, 50, 63, 75, 90, 110)


def _catalog(**overrides) -> Catalog:
    records = dict(
        pipes=[
            {"id": f"PVC-{d}", "product_code": f"PVC-{d}", "pipeType": "PVC", "sizeMM": d,
             "lengthM": 100, "pn": 8.5, "price": 10 + 2 * d}
            for d in PIPE_SIZES
        ],
        pumps=[
            {"id": "P1", "product_code": "P1", "max_flow_rate_lpm": 130, "max_head_m": 40, "powerHP": 1.5, "price": 1000},
            {"id": "P2", "product_code": "P2", "max_flow_rate_lpm": 140, "max_head_m": 45, "powerHP": 2, "price": 1200},
            {"id": "P3", "product_code": "P3", "max_flow_rate_lpm": 80, "max_head_m": 50, "powerHP": 1, "price": 600},
            {"id": "P4", "product_code": "P4", "max_flow_rate_lpm": 400, "max_head_m": 100, "powerHP": 10, "price": 3000},
        ],
        sprinklers=[
            {"id": "S1", "product_code": "S1", "price": 2, "waterVolumeLitersPerHour": "40-80",
             "radiusMeters": "2-4", "pressureBar": "1-3"},
            {"id": "S2", "product_code": "S2", "price": 2, "waterVolumeLitersPerHour": "200-300"},
        ],
    )
    records.update(overrides)
    return Catalog.from_records(**records)


def _inp(**kw) -> IrrigationInput:
    base = dict(
        farm_size_rai=2.0,
        total_trees=100,
        water_per_tree_liters=60.0,
        number_of_zones=1,
        simultaneous_zones=1,
        irrigation_time_minutes=60.0,
        static_head_m=10.0,
        pressure_head_m=15.0,
        branch=SegmentLengths(50.0, 200.0),
    )
    base.update(kw)
    return IrrigationInput(**base)


def test_not_ready_catalog_returns_none():
    assert compute(_inp(), Catalog()) is None
    assert compute(_inp(), _catalog(sprinklers=[])) is None


def test_invalid_input_is_rejected():
    with pytest.raises(InputValidationError):
        compute(_inp(number_of_zones=3, simultaneous_zones=5), _catalog())


def test_single_zone_result():
    res = compute(_inp(), _catalog())
    assert res is not None

    assert res.flows.total_flow_lpm == pytest.approx(100.0)
    assert res.pump_flow_required_lpm == pytest.approx(res.flows.main_flow_lpm)

    assert res.head_loss["secondary"] is None and res.head_loss["main"] is None
    assert res.selected_pipes["secondary"] is None
    assert res.analyzed_pipes["main"] == ()
    assert len(res.analyzed_pipes["branch"]) == len(PIPE_SIZES)
    assert res.selected_pipes["branch"] is not None

    branch = res.head_loss["branch"]
    assert res.connection_loss_m == pytest.approx(0.03 * branch.total)
    assert res.total_head_loss_m == pytest.approx(branch.total * 1.03)
    assert res.total_head_loss_m == pytest.approx(res.total_major_loss_m + res.total_minor_loss_m)

    assert res.pressure_from_sprinkler_m == pytest.approx(15.0)
    assert res.pump_head_raw_m == pytest.approx(10.0 + res.total_head_loss_m + 15.0)
    assert res.complexity == "simple"
    assert res.safety_factor in SAFETY_FACTORS.values()
    assert res.pump_head_required_m == pytest.approx(res.pump_head_raw_m * res.safety_factor)
    assert res.pump_resolution.operation_mode == "single"

    assert res.pipe_rolls == {"branch": 2, "secondary": 0, "main": 0}
    assert res.selected_pump.item.id == "P1"
    assert res.selected_sprinkler.item.id == "S1"
    assert len(res.analyzed_pumps) == 4 and len(res.analyzed_sprinklers) == 2


def test_selected_sprinkler_drives_flow_and_pressure():
    spr = _catalog().sprinklers[0]
    res = compute(_inp(), _catalog(), selected_sprinkler=spr)
    assert res.flows.sprinkler_based
    assert res.flows.total_flow_lph == pytest.approx(60.0 * 100)
    assert res.pressure_from_sprinkler_m == pytest.approx(2.0 * 0.7 * 10.2)
    assert res.selected_sprinkler.item == spr


def test_current_pump_kept_only_while_recommended():
    cat = _catalog()
    p2 = next(p for p in cat.pumps if p.id == "P2")
    p3 = next(p for p in cat.pumps if p.id == "P3")
    assert compute(_inp(), cat, current={"pump": p2}).selected_pump.item.id == "P2"
    assert compute(_inp(), cat, current={"pump": p3}).selected_pump.item.id == "P1"


def test_multi_zone_uses_critical_zone_head():
    zone_a = ZoneCalculationData("A", _inp(static_head_m=30.0))
    zone_b = ZoneCalculationData("B", _inp(static_head_m=5.0))
    res = compute(
        _inp(number_of_zones=2, simultaneous_zones=1),
        _catalog(),
        all_zone_data=[zone_b, zone_a],
    )
    assert len(res.zones) == 2
    heads = {z.zone_id: z.total_head for z in res.zones}
    assert heads["A"] > heads["B"]
    assert res.pump_head_raw_m == pytest.approx(heads["A"])
    assert res.pump_resolution.critical_zone == "A"
    assert res.pump_resolution.operation_mode == "sequential"
    assert res.pump_head_required_m == pytest.approx(heads["A"] * res.safety_factor)


def test_non_ideal_selection_is_reported():
    res = compute(_inp(), _catalog(pumps=[
        {"id": "P3", "product_code": "P3", "max_flow_rate_lpm": 80, "max_head_m": 50, "powerHP": 1, "price": 600},
    ]))
    assert res.selected_pump.item.id == "P3"
    diag = next(d for d in res.diagnostics if d.code == "selection.no_adequate" and d.context["kind"] == "pump")
    assert diag.context["deficit"] == pytest.approx(res.pump_flow_required_lpm - 80.0)


def test_pipe_limits_reported_for_low_pressure_rating():
    pipes = [
        {"id": f"LD-{d}", "product_code": f"LD-{d}", "pipeType": "LDPE", "sizeMM": d, "lengthM": 50, "pn": 4, "price": 5 + d}
        for d in PIPE_SIZES
    ]
    res = compute(_inp(), _catalog(pipes=pipes))
    assert res.pipe_rolls["branch"] == 4
    assert any(d.code == "selection.pipe_limits" for d in res.diagnostics)


@pytest.mark.parametrize("loss, head, severity, valid", [
    (5.0, 50.0, "ok", True),
    (20.0, 50.0, "warning", True),
    (30.0, 50.0, "critical", False),
    (3.0, 0.0, "ok", True),
])
def test_head_loss_ratio_check(loss, head, severity, valid):
    chk = check_head_loss_ratio(loss, head)
    assert chk.severity == severity
    assert chk.is_valid is valid


def test_result_is_deterministic():
    a = compute(_inp(), _catalog())
    b = compute(_inp(), _catalog())
    assert a.pump_head_required_m == b.pump_head_required_m
    assert [c.item.id for c in a.analyzed_pumps] == [c.item.id for c in b.analyzed_pumps]
    assert not math.isnan(a.total_head_loss_m)


def test_negative_secondary_length_from_dict_is_rejected():
    inp = IrrigationInput.from_dict({
        "farm_size_rai": 2, "total_trees": 100, "water_per_tree_liters": 60,
        "number_of_zones": 1, "simultaneous_zones": 1, "irrigation_time_minutes": 60,
        "static_head_m": 10, "pressure_head_m": 15,
        "longest_branch_pipe_m": 50, "total_branch_pipe_m": 200,
        "longest_secondary_pipe_m": -30, "total_secondary_pipe_m": 100,
    })
    assert inp.secondary is not None and inp.secondary.longest_m == pytest.approx(-30.0)
    with pytest.raises(InputValidationError, match="Secondary"):
        compute(inp, _catalog())


def test_zero_length_branch_is_not_sized():
    pipes = [{"id": "PVC-16", "product_code": "PVC-16", "pipeType": "PVC", "sizeMM": 16,
              "lengthM": 100, "pn": 8.5, "price": 42}]
    res = compute(_inp(branch=SegmentLengths(0.0, 0.0)), _catalog(pipes=pipes))
    assert res is not None

    assert res.head_loss["branch"] is None
    assert res.selected_pipes["branch"] is None
    assert res.analyzed_pipes["branch"] == ()
    assert res.pipe_rolls["branch"] == 0
    assert res.total_head_loss_m == pytest.approx(0.0)
    assert res.velocity_checks == ()
    assert not any(d.code.startswith("velocity.") for d in res.diagnostics)
    assert not any(d.context.get("kind") == "branch pipe" for d in res.diagnostics)
    assert not any(d.code == "selection.pipe_limits" for d in res.diagnostics)


def test_branch_without_longest_run_is_not_sized():
    res = compute(_inp(branch=SegmentLengths(0.0, 200.0)), _catalog())
    assert res.head_loss["branch"] is None
    assert res.pipe_rolls["branch"] == 0
    assert res.velocity_checks == ()


def test_recommended_candidates_by_role():
    res = compute(_inp(), _catalog())
    assert {c.item.id for c in res.recommended("pump")} == {"P1", "P2"}
    assert all(c.is_recommended for c in res.recommended("branch"))
    assert res.recommended("main") == ()
    assert "S2" not in {c.item.id for c in res.recommended("sprinkler")}
