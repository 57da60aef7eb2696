# irrig/core/solver/orchestrator.py
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

from irrig.core.build.config import DEFAULT_CONFIG, EngineConfig
from irrig.core.build.flows import as_sprinkler, resolve_flows
from irrig.core.build.validate import raise_on_errors, sanitize_input, validate_input
from irrig.core.hydraulics.headloss import HeadLossResult
from irrig.core.hydraulics.velocity import velocity_warnings
from irrig.core.models.catalog import Catalog
from irrig.core.models.diagnostics import Diagnostic
from irrig.core.models.inputs import IrrigationInput, ZoneCalculationData, ZoneOperationGroup
from irrig.core.models.results import (
    CalculationResult,
    HeadLossCheck,
    PumpHeadResolution,
    ScoredCandidate,
    ZoneOperatingPoint,
)
from irrig.core.selection.scoring import PumpRequirement, SprinklerRequirement, score_pumps, score_sprinklers
from irrig.core.selection.selector import pump_deficit, select_pump, select_sprinkler
from irrig.core.solver.safety import classify_complexity, safety_factor
from irrig.core.solver.segments import ROLES, SegmentSizing, size_segments
from irrig.core.solver.zones import compute_zone_point, resolve_pump_head, sprinkler_pressure_head

logger = logging.getLogger(__name__)


HEADLOSS_RATIO_OK = 0.3
HEADLOSS_RATIO_WARNING = 0.5


def check_head_loss_ratio(total_head_loss_m: float, pump_head_m: float) -> HeadLossCheck:
    """Proporción pérdidas / carga de bomba: <=0.3 ok, <=0.5 warning, resto critical."""
    ratio = total_head_loss_m / pump_head_m if pump_head_m > 0 else 0.0
    if ratio <= HEADLOSS_RATIO_OK:
        return HeadLossCheck(ratio, "ok", True, "Head loss is within the acceptable range.")
    if ratio <= HEADLOSS_RATIO_WARNING:
        return HeadLossCheck(
            ratio, "warning", True,
            "Head loss is high; consider larger pipe sizes or shorter runs.",
        )
    return HeadLossCheck(
        ratio, "critical", False,
        "Head loss dominates the pump head; resize the pipe network.",
    )


def pipe_rolls(sizing: Mapping[str, Optional[SegmentSizing]]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for role in ROLES:
        s = sizing.get(role)
        pipe = s.pipe if s is not None else None
        if pipe is None or pipe.length_m <= 0:
            out[role] = 0
        else:
            out[role] = math.ceil(s.lengths.total_m / pipe.length_m)
    return out


def _item_label(item: Any) -> str:
    return str(getattr(item, "product_code", "") or getattr(item, "name", "") or getattr(item, "id", ""))


def _selection_diagnostics(
    kind: str,
    selected: Optional[ScoredCandidate],
    extra: Optional[Dict[str, Any]] = None,
) -> List[Diagnostic]:
    if selected is None or selected.is_recommended:
        return []
    ctx: Dict[str, Any] = {"kind": kind, "item": _item_label(selected.item), "score": selected.score}
    ctx.update(extra or {})
    if not selected.is_usable:
        return [Diagnostic(
            code="selection.no_adequate",
            severity="critical",
            message=f"No adequate {kind} in catalog; best available {ctx['item']} (score {selected.score:.1f}).",
            context=ctx,
        )]
    return [Diagnostic(
        code="selection.non_ideal",
        severity="warning",
        message=f"No recommended {kind}; selected {ctx['item']} ({selected.tier}, score {selected.score:.1f}).",
        context=ctx,
    )]


def _pipe_limit_diagnostics(sizing: Mapping[str, Optional[SegmentSizing]], cfg: EngineConfig) -> List[Diagnostic]:
    out: List[Diagnostic] = []
    for role in ROLES:
        s = sizing.get(role)
        if s is None or s.selected is None:
            continue
        pipe = s.selected.item
        per_100m = s.selected.metrics.get("head_loss_per_100m", 0.0)
        problems = []
        if pipe.pn < cfg.selection.min_pipe_pn:
            problems.append(f"PN {pipe.pn:g} < {cfg.selection.min_pipe_pn:g}")
        if per_100m > cfg.selection.max_headloss_per_100m:
            problems.append(f"head loss {per_100m:.1f} m/100m > {cfg.selection.max_headloss_per_100m:g}")
        if problems:
            out.append(Diagnostic(
                code="selection.pipe_limits",
                severity="warning",
                message=f"{role} pipe {_item_label(pipe)}: " + "; ".join(problems),
                context={"role": role, "pn": pipe.pn, "head_loss_per_100m": per_100m},
            ))
    return out


def _zone_points(
    all_zone_data: Sequence[ZoneCalculationData],
    catalog: Catalog,
    cfg: EngineConfig,
    diags: List[Diagnostic],
) -> List[ZoneOperatingPoint]:
    points = []
    for zone in all_zone_data:
        point, zdiags = compute_zone_point(zone, catalog.pipes, cfg)
        points.append(point)
        diags.extend(zdiags)
        logger.debug("Zone %s: head=%.3f m flow=%.3f L/min", point.zone_id, point.total_head, point.flow_lpm)
    return points


def compute(
    inp: IrrigationInput,
    catalog: Catalog,
    selected_sprinkler: Any = None,
    all_zone_data: Optional[Sequence[ZoneCalculationData]] = None,
    zone_groups: Optional[Sequence[ZoneOperationGroup]] = None,
    current: Optional[Mapping[str, Any]] = None,
    cfg: EngineConfig = DEFAULT_CONFIG,
) -> Optional[CalculationResult]:
    """
    Punto de entrada único del motor.

    Retorna None si el catálogo no está listo (alguna lista vacía).
    Lanza InputValidationError si la entrada viola sus invariantes.

    current: selección vigente opcional por clave
    ("branch", "secondary", "main", "pump", "sprinkler"); se conserva mientras
    siga siendo recomendada.
    """
    if not catalog.is_ready:
        logger.debug("Catalog not ready (pipes=%d pumps=%d sprinklers=%d)",
                     len(catalog.pipes), len(catalog.pumps), len(catalog.sprinklers))
        return None

    raise_on_errors(validate_input(inp))
    inp, diags = sanitize_input(inp)
    current = dict(current or {})
    sprinkler = as_sprinkler(selected_sprinkler)

    # --- Flows ---
    flows = resolve_flows(inp, sprinkler)
    diags.extend(flows.diagnostics)
    logger.debug(
        "Flows: total=%.3f L/min branch=%.3f secondary=%s main=%.3f",
        flows.total_flow_lpm, flows.branch_flow_lpm, flows.secondary_flow_lpm, flows.main_flow_lpm,
    )

    # --- Pipes: score, select, head loss ---
    sizing = size_segments(inp, flows, catalog.pipes, cfg, current)
    head_loss: Dict[str, Optional[HeadLossResult]] = {
        role: (s.head_loss if s is not None else None) for role, s in sizing.items()
    }
    major = sum(h.major for h in head_loss.values() if h is not None)
    minor = sum(h.minor for h in head_loss.values() if h is not None)
    connection = (major + minor) * cfg.hydraulics.connection_loss_ratio
    minor += connection
    total_loss = major + minor

    pressure, pdiag = sprinkler_pressure_head(sprinkler, inp.pressure_head_m, cfg)
    if pdiag is not None:
        diags.append(pdiag)

    # --- Pump head ---
    zones: List[ZoneOperatingPoint] = []
    if all_zone_data and len(all_zone_data) > 1:
        zones = _zone_points(all_zone_data, catalog, cfg, diags)
        resolution = resolve_pump_head(zones, inp.simultaneous_zones, zone_groups)
    else:
        resolution = PumpHeadResolution(
            head_m=inp.static_head_m + total_loss + pressure,
            flow_lpm=flows.main_flow_lpm,
            operation_mode="single",
            total_project_flow_lpm=flows.total_flow_lpm,
        )
    raw_head = resolution.head_m

    complexity, points = classify_complexity(inp, cfg.safety)
    factor = safety_factor(complexity, cfg.safety)
    required_head = raw_head * factor
    required_flow = flows.main_flow_lpm
    logger.debug(
        "Pump head: raw=%.3f m complexity=%s (%d pts) factor=%.2f required=%.3f m",
        raw_head, complexity, points, factor, required_head,
    )

    hl_check = check_head_loss_ratio(total_loss, raw_head)
    if not hl_check.is_valid or hl_check.severity == "warning":
        diags.append(Diagnostic(
            code="headloss.ratio",
            severity="critical" if hl_check.severity == "critical" else "warning",
            message=f"Head loss is {hl_check.ratio:.0%} of pump head. {hl_check.recommendation}",
            context={"ratio": hl_check.ratio},
        ))

    # --- Pumps ---
    analyzed_pumps = tuple(score_pumps(catalog.pumps, PumpRequirement(flow_lpm=required_flow, head_m=required_head)))
    pump = select_pump(analyzed_pumps, current=current.get("pump"))

    # --- Sprinklers (target: water-need flow per emitter) ---
    target_lph = resolve_flows(inp).flow_per_sprinkler_lph
    analyzed_sprinklers = tuple(score_sprinklers(catalog.sprinklers, SprinklerRequirement(target_flow_lph=target_lph)))
    chosen_sprinkler = select_sprinkler(
        analyzed_sprinklers,
        current=current.get("sprinkler", sprinkler),
    )

    # --- Diagnostics ---
    checks = velocity_warnings(
        (role, h.velocity if h is not None else None) for role, h in head_loss.items()
    )
    for chk in checks:
        diags.append(Diagnostic(
            code=f"velocity.{chk.severity}",
            severity="critical" if chk.severity == "critical_high" else "warning",
            message=chk.message,
            context={"segment": chk.segment, "velocity": chk.velocity},
        ))
    for role in ROLES:
        s = sizing[role]
        if s is not None:
            diags.extend(_selection_diagnostics(f"{role} pipe", s.selected))
    if pump is not None:
        diags.extend(_selection_diagnostics(
            "pump", pump, {"deficit": pump_deficit(pump, required_flow, required_head)},
        ))
    diags.extend(_selection_diagnostics("sprinkler", chosen_sprinkler))
    diags.extend(_pipe_limit_diagnostics(sizing, cfg))
    diags.extend(catalog.issues)

    for d in diags:
        if d.severity != "info":
            logger.debug("Diagnostic %s: %s", d.code, d.message)

    return CalculationResult(
        flows=flows,
        head_loss=head_loss,
        connection_loss_m=connection,
        total_major_loss_m=major,
        total_minor_loss_m=minor,
        total_head_loss_m=total_loss,
        pressure_from_sprinkler_m=pressure,
        pump_head_raw_m=raw_head,
        complexity=complexity,
        safety_factor=factor,
        pump_head_required_m=required_head,
        pump_flow_required_lpm=required_flow,
        pump_resolution=resolution,
        head_loss_check=hl_check,
        analyzed_pipes={role: (s.analyzed if s is not None else ()) for role, s in sizing.items()},
        analyzed_pumps=analyzed_pumps,
        analyzed_sprinklers=analyzed_sprinklers,
        selected_pipes={role: (s.selected if s is not None else None) for role, s in sizing.items()},
        selected_pump=pump,
        selected_sprinkler=chosen_sprinkler,
        pipe_rolls=pipe_rolls(sizing),
        velocity_checks=tuple(checks),
        zones=tuple(zones),
        diagnostics=tuple(diags),
        meta={"complexity_points": points, "config_version": cfg.version},
    )
