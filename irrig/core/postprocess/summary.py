from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from irrig.core.models.results import CalculationResult, ScoredCandidate
from irrig.core.solver.segments import ROLES


CANDIDATE_COLUMNS = [
    "kind", "id", "product_code", "name", "price", "score", "tier",
    "is_recommended", "is_good_choice", "is_usable", "is_selected",
]


def _candidate_row(kind: str, c: ScoredCandidate, selected: Any) -> Dict[str, Any]:
    item = c.item
    row: Dict[str, Any] = {
        "kind": kind,
        "id": getattr(item, "id", None),
        "product_code": getattr(item, "product_code", ""),
        "name": getattr(item, "name", ""),
        "price": c.price,
        "score": c.score,
        "tier": c.tier,
        "is_recommended": c.is_recommended,
        "is_good_choice": c.is_good_choice,
        "is_usable": c.is_usable,
        "is_selected": selected is not None and selected.item is item,
    }
    row.update(c.metrics)
    return row


def candidates_table(result: CalculationResult) -> pd.DataFrame:
    """
    Una fila por candidato puntuado (tuberías por tramo, bombas, aspersores).
    Las métricas propias de cada clase quedan como columnas adicionales (NaN donde no aplica).
    """
    rows: List[Dict[str, Any]] = []
    for role in ROLES:
        sel = result.selected_pipes.get(role)
        rows += [_candidate_row(f"pipe_{role}", c, sel) for c in result.analyzed_pipes.get(role, ())]
    rows += [_candidate_row("pump", c, result.selected_pump) for c in result.analyzed_pumps]
    rows += [_candidate_row("sprinkler", c, result.selected_sprinkler) for c in result.analyzed_sprinklers]

    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=CANDIDATE_COLUMNS)
    extra = [c for c in df.columns if c not in CANDIDATE_COLUMNS]
    return df[CANDIDATE_COLUMNS + extra]


def segments_table(result: CalculationResult) -> pd.DataFrame:
    """Tramos presentes: tubería elegida, pérdidas, velocidad y rollos."""
    rows = []
    for role in ROLES:
        hl = result.head_loss.get(role)
        if hl is None:
            continue
        sel = result.selected_pipes.get(role)
        pipe = sel.item if sel is not None else None
        rows.append({
            "segment": role,
            "product_code": getattr(pipe, "product_code", None),
            "pipe_type": getattr(pipe, "pipe_type", None),
            "size_mm": getattr(pipe, "size_mm", None),
            "major_loss_m": hl.major,
            "minor_loss_m": hl.minor,
            "total_loss_m": hl.total,
            "velocity_m_s": hl.velocity,
            "c": hl.c,
            "rolls": result.pipe_rolls.get(role, 0),
        })
    return pd.DataFrame(rows, columns=[
        "segment", "product_code", "pipe_type", "size_mm", "major_loss_m",
        "minor_loss_m", "total_loss_m", "velocity_m_s", "c", "rolls",
    ])


def zones_table(result: CalculationResult) -> pd.DataFrame:
    selected = set(result.pump_resolution.selected_zones)
    rows = [{
        "zone_id": z.zone_id,
        "flow_lpm": z.flow_lpm,
        "static_head_m": z.static_head,
        "pressure_head_m": z.pressure_head,
        "head_loss_m": z.total_head_loss,
        "total_head_m": z.total_head,
        "sprinklers": z.sprinkler_count,
        "is_critical": z.zone_id == result.pump_resolution.critical_zone,
        "in_operation_set": z.zone_id in selected,
    } for z in result.zones]
    return pd.DataFrame(rows, columns=[
        "zone_id", "flow_lpm", "static_head_m", "pressure_head_m", "head_loss_m",
        "total_head_m", "sprinklers", "is_critical", "in_operation_set",
    ])


def diagnostics_table(result: CalculationResult) -> pd.DataFrame:
    return pd.DataFrame(
        [{"code": d.code, "severity": d.severity, "message": d.message} for d in result.diagnostics],
        columns=["code", "severity", "message"],
    )


def result_summary(result: CalculationResult) -> Dict[str, Any]:
    """Resumen escalar (clave -> valor) del cálculo."""
    def _code(c: Any) -> Any:
        return getattr(c.item, "product_code", None) if c is not None else None

    out: Dict[str, Any] = {
        "total_flow_lpm": result.flows.total_flow_lpm,
        "main_flow_lpm": result.flows.main_flow_lpm,
        "total_head_loss_m": result.total_head_loss_m,
        "connection_loss_m": result.connection_loss_m,
        "pressure_from_sprinkler_m": result.pressure_from_sprinkler_m,
        "pump_head_raw_m": result.pump_head_raw_m,
        "complexity": result.complexity,
        "safety_factor": result.safety_factor,
        "pump_head_required_m": result.pump_head_required_m,
        "pump_flow_required_lpm": result.pump_flow_required_lpm,
        "operation_mode": result.pump_resolution.operation_mode,
        "head_loss_ratio": result.head_loss_check.ratio,
        "selected_pump": _code(result.selected_pump),
        "selected_sprinkler": _code(result.selected_sprinkler),
        "recommended_pumps": len(result.recommended("pump")),
        "recommended_sprinklers": len(result.recommended("sprinkler")),
    }
    for role in ROLES:
        out[f"selected_{role}_pipe"] = _code(result.selected_pipes.get(role))
        out[f"recommended_{role}_pipes"] = len(result.recommended(role))
    return out

