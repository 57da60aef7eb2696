# irrig/core/build/flows.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from irrig.core.hydraulics.units import lph_to_lpm, range_mid
from irrig.core.models.catalog import SprinklerItem
from irrig.core.models.diagnostics import Diagnostic
from irrig.core.models.inputs import IrrigationInput

logger = logging.getLogger(__name__)

PLAUSIBLE_FLOW_FACTOR = 3.0


@dataclass(frozen=True)
class FlowRequirements:
    total_flow_lph: float
    total_flow_lpm: float
    total_sprinklers: int
    sprinklers_per_zone: float
    flow_per_sprinkler_lph: float
    flow_per_sprinkler_lpm: float
    branch_flow_lpm: float
    secondary_flow_lpm: Optional[float]     # None: no secondary pipe
    main_flow_lpm: float                    # main / pump flow
    multi_zone_flow_lpm: float
    sprinkler_based: bool
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)


def as_sprinkler(sprinkler: Any) -> Optional[SprinklerItem]:
    """Accepts a SprinklerItem or a raw catalog record."""
    if sprinkler is None or isinstance(sprinkler, SprinklerItem):
        return sprinkler
    if isinstance(sprinkler, Mapping):
        return SprinklerItem.from_record(sprinkler)
    raise TypeError(f"Unsupported sprinkler type: {type(sprinkler).__name__}")


def water_need_flow_lph(inp: IrrigationInput) -> float:
    """(árboles * litros por árbol) / horas de riego."""
    hours = inp.irrigation_time_minutes / 60.0
    if hours <= 0:
        return 0.0
    return (inp.total_trees * inp.water_per_tree_liters) / hours


def resolve_flows(inp: IrrigationInput, sprinkler: Any = None) -> FlowRequirements:
    """
    Caudales de diseño.

    - Con aspersor: caudal por emisor = punto medio del rango nominal (L/h),
      total = caudal por emisor * ceil(árboles * emisores por árbol).
    - Sin aspersor o con datos de caudal inválidos: total = necesidad de agua / tiempo.

    Los caudales por tramo se derivan de arriba hacia abajo:
    branch = q_emisor * emisores por ramal; secondary = branch * ramales por secundaria;
    main = max(caudal proporcional multizona, secondary, branch).
    """
    diags: List[Diagnostic] = []
    total_sprinklers = max(0, math.ceil(inp.total_trees * inp.sprinklers_per_tree))
    need_lph = water_need_flow_lph(inp)
    expected_per_emitter = need_lph / total_sprinklers if total_sprinklers > 0 else 0.0

    item = as_sprinkler(sprinkler)
    rated_lph: Optional[float] = None
    if item is not None:
        if item.flow_range_lph is not None and range_mid(item.flow_range_lph) > 0:
            rated_lph = range_mid(item.flow_range_lph)
        else:
            logger.warning(
                "Sprinkler %s has no usable rated flow (%r); falling back to water-need flow",
                item.product_code, item.flow_range_lph,
            )
            diags.append(Diagnostic(
                code="flow.fallback",
                severity="warning",
                message=(
                    f"Sprinkler {item.product_code or item.id}: rated flow missing or invalid; "
                    "flow derived from water need instead."
                ),
                context={"product_code": item.product_code, "flow_range_lph": item.flow_range_lph},
            ))

    if rated_lph is not None:
        per_emitter_lph = rated_lph
        total_lph = per_emitter_lph * total_sprinklers
        if expected_per_emitter > 0 and not (
            expected_per_emitter / PLAUSIBLE_FLOW_FACTOR <= rated_lph <= expected_per_emitter * PLAUSIBLE_FLOW_FACTOR
        ):
            diags.append(Diagnostic(
                code="flow.implausible_sprinkler",
                severity="warning",
                message=(
                    f"Sprinkler rated flow {rated_lph:.1f} L/h is more than {PLAUSIBLE_FLOW_FACTOR:g}x "
                    f"away from the water-need flow per emitter ({expected_per_emitter:.1f} L/h)."
                ),
                context={"rated_lph": rated_lph, "expected_lph": expected_per_emitter},
            ))
    else:
        total_lph = need_lph
        per_emitter_lph = expected_per_emitter

    total_lpm = lph_to_lpm(total_lph)
    per_emitter_lpm = lph_to_lpm(per_emitter_lph)

    branch_lpm = per_emitter_lpm * inp.sprinklers_per_branch
    secondary_lpm: Optional[float] = None
    if inp.has_secondary:
        secondary_lpm = branch_lpm * inp.branches_per_secondary

    zones = max(1, inp.number_of_zones)
    multi_zone_lpm = total_lpm * inp.simultaneous_zones / zones
    main_lpm = max(multi_zone_lpm, secondary_lpm or 0.0, branch_lpm)

    return FlowRequirements(
        total_flow_lph=total_lph,
        total_flow_lpm=total_lpm,
        total_sprinklers=total_sprinklers,
        sprinklers_per_zone=total_sprinklers / zones,
        flow_per_sprinkler_lph=per_emitter_lph,
        flow_per_sprinkler_lpm=per_emitter_lpm,
        branch_flow_lpm=branch_lpm,
        secondary_flow_lpm=secondary_lpm,
        main_flow_lpm=main_lpm,
        multi_zone_flow_lpm=multi_zone_lpm,
        sprinkler_based=rated_lph is not None,
        diagnostics=tuple(diags),
    )
