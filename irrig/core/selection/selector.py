# irrig/core/selection/selector.py
from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from irrig.core.models.results import ScoredCandidate


Closeness = Callable[[ScoredCandidate], float]


def _same_item(a: Any, b: Any) -> bool:
    if a is b:
        return True
    a_id, b_id = getattr(a, "id", None), getattr(b, "id", None)
    if a_id is not None and b_id is not None:
        return a_id == b_id and getattr(a, "product_code", None) == getattr(b, "product_code", None)
    return a == b


def find_candidate(cands: Sequence[ScoredCandidate], item: Any) -> Optional[ScoredCandidate]:
    if item is None:
        return None
    if isinstance(item, ScoredCandidate):
        item = item.item
    for c in cands:
        if _same_item(c.item, item):
            return c
    return None


def _best(pool: Sequence[ScoredCandidate], closeness: Optional[Closeness]) -> ScoredCandidate:
    return min(pool, key=lambda c: (-c.score, c.price, closeness(c) if closeness else 0.0))


def auto_select(
    cands: Sequence[ScoredCandidate],
    *,
    current: Any = None,
    closeness: Optional[Closeness] = None,
) -> Optional[ScoredCandidate]:
    """
    Política de selección por clase de equipo:

    1. la selección actual, si sigue siendo is_recommended;
    2. el mejor puntaje entre is_recommended;
    3. el mejor puntaje entre is_usable;
    4. el mejor puntaje global (siempre hay resultado si el catálogo no está vacío).

    Empates: menor precio, luego cercanía al punto ideal (closeness, menor es mejor).
    """
    if not cands:
        return None

    keep = find_candidate(cands, current)
    if keep is not None and keep.is_recommended:
        return keep

    for tier in (
        [c for c in cands if c.is_recommended],
        [c for c in cands if c.is_usable],
    ):
        if tier:
            return _best(tier, closeness)

    return _best(cands, closeness)


def select_pipe(
    cands: Sequence[ScoredCandidate],
    *,
    current: Any = None,
    ideal_velocity_m_s: float = 1.4,
) -> Optional[ScoredCandidate]:
    return auto_select(
        cands,
        current=current,
        closeness=lambda c: abs(c.metrics.get("velocity", 0.0) - ideal_velocity_m_s),
    )


def select_pump(cands: Sequence[ScoredCandidate], *, current: Any = None) -> Optional[ScoredCandidate]:
    return auto_select(cands, current=current)


def select_sprinkler(cands: Sequence[ScoredCandidate], *, current: Any = None) -> Optional[ScoredCandidate]:
    return auto_select(cands, current=current)


def pump_deficit(cand: ScoredCandidate, flow_lpm: float, head_m: float) -> float:
    """max(0, Qreq-Qmax) + 2*max(0, Hreq-Hmax)"""
    pump = cand.item
    return max(0.0, flow_lpm - pump.max_flow_lpm) + 2.0 * max(0.0, head_m - pump.max_head_m)
