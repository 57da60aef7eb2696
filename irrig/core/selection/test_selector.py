from __future__ import annotations

from types import SimpleNamespace

import pytest

from irrig.core.models.catalog import PumpItem
from irrig.core.models.results import ScoredCandidate
from irrig.core.selection.selector import auto_select, find_candidate, pump_deficit, select_pipe


def _item(iid, price=10.0):
    return SimpleNamespace(id=iid, product_code=f"C-{iid}", price=price)


def _cand(iid, score, tier, price=10.0, velocity=None):
    rec, good, usable = {
        "recommended": (True, True, True),
        "good": (False, True, True),
        "usable": (False, False, True),
        "unsuitable": (False, False, False),
    }[tier]
    metrics = {"velocity": velocity} if velocity is not None else {}
    return ScoredCandidate(_item(iid, price), score, rec, good, usable, metrics)


def test_empty_pool_selects_nothing():
    assert auto_select([]) is None


def test_best_recommended_wins():
    pool = [_cand(1, 95.0, "good"), _cand(2, 70.0, "recommended"), _cand(3, 80.0, "recommended")]
    assert auto_select(pool).item.id == 3


def test_current_selection_kept_while_recommended():
    pool = [_cand(1, 90.0, "recommended"), _cand(2, 65.0, "recommended")]
    assert auto_select(pool, current=_item(2)).item.id == 2


def test_current_selection_replaced_when_not_recommended():
    pool = [_cand(1, 90.0, "recommended"), _cand(2, 50.0, "good")]
    assert auto_select(pool, current=_item(2)).item.id == 1


def test_unknown_current_is_ignored():
    pool = [_cand(1, 90.0, "recommended")]
    assert auto_select(pool, current=_item(99)).item.id == 1


def test_falls_back_to_usable_then_best_overall():
    usable = [_cand(1, 30.0, "usable"), _cand(2, 45.0, "good"), _cand(3, 55.0, "unsuitable")]
    assert auto_select(usable).item.id == 2

    nothing_usable = [_cand(1, 10.0, "unsuitable"), _cand(2, 15.0, "unsuitable")]
    picked = auto_select(nothing_usable)
    assert picked is not None and picked.item.id == 2


def test_ties_break_on_price():
    pool = [_cand(1, 80.0, "recommended", price=20.0), _cand(2, 80.0, "recommended", price=12.0)]
    assert auto_select(pool).item.id == 2


def test_pipe_ties_break_on_ideal_velocity():
    pool = [
        _cand(1, 80.0, "recommended", velocity=2.0),
        _cand(2, 80.0, "recommended", velocity=1.3),
        _cand(3, 80.0, "recommended", velocity=0.9),
    ]
    assert select_pipe(pool).item.id == 2
    assert select_pipe(pool, ideal_velocity_m_s=0.8).item.id == 3


def test_find_candidate_by_identity_fields():
    pool = [_cand(1, 80.0, "recommended"), _cand(2, 60.0, "good")]
    assert find_candidate(pool, _item(2)) is pool[1]
    assert find_candidate(pool, pool[0]) is pool[0]
    assert find_candidate(pool, None) is None


def test_pump_deficit():
    pump = PumpItem(id=1, product_code="P", max_flow_lpm=80.0, max_head_m=25.0, power_hp=1.0, price=100.0)
    cand = ScoredCandidate(pump, 10.0, False, False, False)
    assert pump_deficit(cand, 100.0, 30.0) == pytest.approx(20.0 + 2 * 5.0)
    assert pump_deficit(cand, 50.0, 20.0) == 0.0
