# irrig/core/solver/zones.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from irrig.core.build.config import EngineConfig
from irrig.core.build.flows import as_sprinkler, resolve_flows
from irrig.core.build.validate import raise_on_errors, sanitize_input, validate_input
from irrig.core.hydraulics.units import bar_to_meters, range_mid
from irrig.core.models.catalog import PipeItem
from irrig.core.models.diagnostics import Diagnostic
from irrig.core.models.inputs import ZoneCalculationData, ZoneOperationGroup
from irrig.core.models.results import OperationMode, PumpHeadResolution, ZoneOperatingPoint
from irrig.core.solver.segments import size_segments

logger = logging.getLogger(__name__)


def sprinkler_pressure_head(
    sprinkler: Any,
    default_head_m: float,
    cfg: EngineConfig,
) -> Tuple[float, Optional[Diagnostic]]:
    """
    Carga de presión en el emisor: punto medio del rango nominal (bar) * 0.7, en m.
    Sin aspersor o sin rango de presión válido -> carga por defecto.
    """
    item = as_sprinkler(sprinkler)
    if item is None:
        return default_head_m, None
    band = item.pressure_range_bar
    if band is None or range_mid(band) <= 0:
        logger.warning("Sprinkler %s has no usable pressure range; using default pressure head", item.product_code)
        return default_head_m, Diagnostic(
            code="pressure.fallback",
            severity="warning",
            message=(
                f"Sprinkler {item.product_code or item.id}: pressure range missing or invalid; "
                f"default pressure head {default_head_m:.2f} m used."
            ),
            context={"product_code": item.product_code, "pressure_range_bar": band},
        )
    working_bar = range_mid(band) * cfg.hydraulics.sprinkler_working_ratio
    return bar_to_meters(working_bar), None


def compute_zone_point(
    zone: ZoneCalculationData,
    pipes: Sequence[PipeItem],
    cfg: EngineConfig,
) -> Tuple[ZoneOperatingPoint, List[Diagnostic]]:
    """
    Carga total de una zona = carga estática + pérdidas por tramo (caudal propio de
    la zona, tuberías auto-seleccionadas) + carga de presión del aspersor de la zona.
    """
    raise_on_errors(validate_input(zone.input))
    inp, diags = sanitize_input(zone.input)
    flows = resolve_flows(inp, zone.sprinkler)
    diags.extend(flows.diagnostics)

    sizing = size_segments(inp, flows, pipes, cfg)
    losses = {role: (s.head_loss.total if s is not None else 0.0) for role, s in sizing.items()}
    pressure, pdiag = sprinkler_pressure_head(zone.sprinkler, inp.pressure_head_m, cfg)
    if pdiag is not None:
        diags.append(pdiag)

    total = inp.static_head_m + sum(losses.values()) + pressure
    point = ZoneOperatingPoint(
        zone_id=zone.zone_id,
        flow_lpm=flows.total_flow_lpm,
        static_head=inp.static_head_m,
        pressure_head=pressure,
        segment_head_losses=losses,
        total_head=total,
        selected_pipes={role: (s.pipe if s is not None else None) for role, s in sizing.items()},
        sprinkler_count=flows.total_sprinklers,
    )
    return point, [
        Diagnostic(d.code, d.severity, f"[zone {zone.zone_id}] {d.message}", {**d.context, "zone_id": zone.zone_id})
        for d in diags
    ]


def _resolve_by_groups(
    points: Sequence[ZoneOperatingPoint],
    groups: Sequence[ZoneOperationGroup],
) -> Optional[PumpHeadResolution]:
    by_id = {p.zone_id: p for p in points}
    reqs = []
    for g in sorted(groups, key=lambda g: g.order):
        members = [by_id[z] for z in g.zones if z in by_id]
        if not members:
            continue
        reqs.append((g, max(m.total_head for m in members), sum(m.flow_lpm for m in members), members))
    if not reqs:
        return None

    group, head, flow, members = max(reqs, key=lambda r: r[1])
    critical = max(members, key=lambda m: m.total_head)

    mode: OperationMode = "sequential"
    if len(groups) == 1 and len(groups[0].zones) == len(points):
        mode = "simultaneous"
    elif len(groups) > 1:
        mode = "custom"

    return PumpHeadResolution(
        head_m=head,
        flow_lpm=flow,
        operation_mode=mode,
        critical_zone=critical.zone_id,
        selected_zones=tuple(m.zone_id for m in members),
        critical_group=group,
        total_project_flow_lpm=sum(p.flow_lpm for p in points),
    )


def resolve_pump_head(
    points: Sequence[ZoneOperatingPoint],
    simultaneous_zones: int,
    groups: Optional[Sequence[ZoneOperationGroup]] = None,
) -> PumpHeadResolution:
    """
    Carga requerida por la bomba en un proyecto multizona.

    Se ordenan las zonas por carga total descendente, se toman las primeras
    `simultaneous_zones` y la carga requerida es la MÁXIMA de ese subconjunto
    (zonas en paralelo: cada una debe superar su propia carga a la salida común).
    """
    if not points:
        raise ValueError("resolve_pump_head requiere al menos una zona.")

    if groups:
        res = _resolve_by_groups(points, groups)
        if res is not None:
            return res

    total_flow = sum(p.flow_lpm for p in points)
    if len(points) == 1:
        p = points[0]
        return PumpHeadResolution(
            head_m=p.total_head,
            flow_lpm=p.flow_lpm,
            operation_mode="single",
            critical_zone=p.zone_id,
            selected_zones=(p.zone_id,),
            total_project_flow_lpm=total_flow,
        )

    k = max(1, min(int(simultaneous_zones), len(points)))
    ranked = sorted(points, key=lambda p: p.total_head, reverse=True)
    subset = ranked[:k]

    if k == 1:
        mode: OperationMode = "sequential"
    elif k == len(points):
        mode = "simultaneous"
    else:
        mode = "custom"

    return PumpHeadResolution(
        head_m=max(p.total_head for p in subset),
        flow_lpm=sum(p.flow_lpm for p in subset),
        operation_mode=mode,
        critical_zone=subset[0].zone_id,
        selected_zones=tuple(p.zone_id for p in subset),
        total_project_flow_lpm=total_flow,
    )
