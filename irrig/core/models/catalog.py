# irrig/core/models/catalog.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from irrig.core.hydraulics.units import InvalidRangeFormat, Range, kw_to_hp, hp_to_kw, parse_range
from irrig.core.models.diagnostics import Diagnostic

logger = logging.getLogger(__name__)


# Storage field aliases -> core field
SPRINKLER_FLOW_KEYS = ("waterVolumeLitersPerHour", "waterVolumeL_H", "water_volume_l_h", "flow_range_lph")
SPRINKLER_RADIUS_KEYS = ("radiusMeters", "radius_m", "radius_range_m")
SPRINKLER_PRESSURE_KEYS = ("pressureBar", "pressure_bar", "pressure_range_bar")

PUMP_FLOW_RANGE_KEYS = ("flow_rate_lpm", "flowRateLPM", "flow_range_lpm")
PUMP_HEAD_RANGE_KEYS = ("head_m", "headM", "head_range_m")
PUMP_MAX_FLOW_KEYS = ("max_flow_rate_lpm", "maxFlowLPM", "max_flow_lpm")
PUMP_MAX_HEAD_KEYS = ("max_head_m", "maxHeadM")
PUMP_HP_KEYS = ("powerHP", "power_hp")
PUMP_KW_KEYS = ("powerKW", "power_kw")

PIPE_TYPE_KEYS = ("pipeType", "pipe_type", "material")
PIPE_SIZE_KEYS = ("sizeMM", "size_mm", "diameter_mm")
PIPE_LENGTH_KEYS = ("lengthM", "length_m", "roll_length_m")
PIPE_PN_KEYS = ("pn", "PN", "pressure_rating")


@dataclass(frozen=True, slots=True)
class PipeItem:
    id: Any
    product_code: str
    pipe_type: Optional[str]
    size_mm: float
    length_m: float           # roll / unit length
    pn: float                 # pressure rating [bar]
    price: float
    name: str = ""
    is_active: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_record(rec: Mapping[str, Any], issues: Optional[List[Diagnostic]] = None) -> "PipeItem":
        attrs = _flatten(rec)
        return PipeItem(
            id=attrs.get("id"),
            product_code=_code(attrs),
            pipe_type=_first_str(attrs, PIPE_TYPE_KEYS),
            size_mm=_first_num(attrs, PIPE_SIZE_KEYS),
            length_m=_first_num(attrs, PIPE_LENGTH_KEYS),
            pn=_first_num(attrs, PIPE_PN_KEYS),
            price=_coerce_num(attrs.get("price")),
            name=str(attrs.get("name") or ""),
            is_active=_active(attrs),
        )


@dataclass(frozen=True, slots=True)
class PumpItem:
    id: Any
    product_code: str
    max_flow_lpm: float
    max_head_m: float
    power_hp: float
    price: float
    flow_range_lpm: Optional[Range] = None
    head_range_m: Optional[Range] = None
    power_kw: float = 0.0
    phase: int = 1
    name: str = ""
    is_active: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_record(rec: Mapping[str, Any], issues: Optional[List[Diagnostic]] = None) -> "PumpItem":
        attrs = _flatten(rec)
        code = _code(attrs)
        flow_range = _first_range(attrs, PUMP_FLOW_RANGE_KEYS, code, issues)
        head_range = _first_range(attrs, PUMP_HEAD_RANGE_KEYS, code, issues)

        max_flow = _first_num(attrs, PUMP_MAX_FLOW_KEYS)
        if max_flow <= 0 and flow_range is not None:
            max_flow = flow_range[1]
        max_head = _first_num(attrs, PUMP_MAX_HEAD_KEYS)
        if max_head <= 0 and head_range is not None:
            max_head = head_range[1]

        hp = _first_num(attrs, PUMP_HP_KEYS)
        kw = _first_num(attrs, PUMP_KW_KEYS)
        if hp <= 0 and kw > 0:
            hp = kw_to_hp(kw)
        if kw <= 0 and hp > 0:
            kw = hp_to_kw(hp)

        return PumpItem(
            id=attrs.get("id"),
            product_code=code,
            max_flow_lpm=max_flow,
            max_head_m=max_head,
            power_hp=hp,
            price=_coerce_num(attrs.get("price")),
            flow_range_lpm=flow_range,
            head_range_m=head_range,
            power_kw=kw,
            phase=int(_coerce_num(attrs.get("phase"), 1.0)),
            name=str(attrs.get("name") or ""),
            is_active=_active(attrs),
        )


@dataclass(frozen=True, slots=True)
class SprinklerItem:
    id: Any
    product_code: str
    price: float
    flow_range_lph: Optional[Range] = None
    radius_range_m: Optional[Range] = None
    pressure_range_bar: Optional[Range] = None
    name: str = ""
    is_active: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_record(rec: Mapping[str, Any], issues: Optional[List[Diagnostic]] = None) -> "SprinklerItem":
        attrs = _flatten(rec)
        code = _code(attrs)
        return SprinklerItem(
            id=attrs.get("id"),
            product_code=code,
            price=_coerce_num(attrs.get("price")),
            flow_range_lph=_first_range(attrs, SPRINKLER_FLOW_KEYS, code, issues),
            radius_range_m=_first_range(attrs, SPRINKLER_RADIUS_KEYS, code, issues),
            pressure_range_bar=_first_range(attrs, SPRINKLER_PRESSURE_KEYS, code, issues),
            name=str(attrs.get("name") or ""),
            is_active=_active(attrs),
        )


@dataclass(frozen=True, slots=True)
class Catalog:
    """
    Instantánea de catálogo (solo lectura para el motor).
    """
    pipes: Tuple[PipeItem, ...] = ()
    pumps: Tuple[PumpItem, ...] = ()
    sprinklers: Tuple[SprinklerItem, ...] = ()
    issues: Tuple[Diagnostic, ...] = ()

    @property
    def is_ready(self) -> bool:
        return bool(self.pipes) and bool(self.pumps) and bool(self.sprinklers)

    @staticmethod
    def from_records(
        *,
        pipes: Iterable[Mapping[str, Any]] = (),
        pumps: Iterable[Mapping[str, Any]] = (),
        sprinklers: Iterable[Mapping[str, Any]] = (),
    ) -> "Catalog":
        """
        Normaliza registros crudos (API / Excel) y descarta los inactivos.
        """
        issues: List[Diagnostic] = []
        p = [PipeItem.from_record(r, issues) for r in pipes]
        q = [PumpItem.from_record(r, issues) for r in pumps]
        s = [SprinklerItem.from_record(r, issues) for r in sprinklers]
        return Catalog(
            pipes=tuple(x for x in p if x.is_active),
            pumps=tuple(x for x in q if x.is_active),
            sprinklers=tuple(x for x in s if x.is_active),
            issues=tuple(issues),
        )


# -----------------------------
# normalization helpers
# -----------------------------

_RESERVED = {"attributes", "attributes_raw", "formatted_attributes", "category"}


def _flatten(rec: Mapping[str, Any]) -> Dict[str, Any]:
    """Top-level fields + 'attributes' / 'attributes_raw' dicts + 'formatted_attributes' list."""
    out: Dict[str, Any] = {k: v for k, v in rec.items() if k not in _RESERVED}
    for key in ("attributes", "attributes_raw"):
        extra = rec.get(key)
        if isinstance(extra, Mapping):
            out.update(extra)
    formatted = rec.get("formatted_attributes")
    if isinstance(formatted, list):
        for attr in formatted:
            if isinstance(attr, Mapping) and attr.get("attribute_name") and "value" in attr:
                out[attr["attribute_name"]] = attr["value"]
    return out


def _code(attrs: Mapping[str, Any]) -> str:
    return str(attrs.get("product_code") or attrs.get("productCode") or attrs.get("id") or "")


def _active(attrs: Mapping[str, Any]) -> bool:
    v = attrs.get("is_active", True)
    if isinstance(v, str):
        return v.strip().lower() not in ("0", "false", "no", "n", "")
    return v is None or bool(v)


def _coerce_num(x: Any, default: float = 0.0) -> float:
    try:
        if x is None or (isinstance(x, str) and x.strip() == ""):
            return default
        v = float(x)
    except (TypeError, ValueError):
        return default
    return default if v != v else v


def _first_num(attrs: Mapping[str, Any], keys: Tuple[str, ...]) -> float:
    for k in keys:
        if attrs.get(k) is not None:
            return _coerce_num(attrs[k])
    return 0.0


def _first_str(attrs: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    for k in keys:
        v = attrs.get(k)
        if v is not None and str(v).strip():
            return str(v).strip()
    return None


def _first_range(
    attrs: Mapping[str, Any],
    keys: Tuple[str, ...],
    code: str,
    issues: Optional[List[Diagnostic]],
) -> Optional[Range]:
    for k in keys:
        if k not in attrs or attrs[k] is None:
            continue
        raw = attrs[k]
        try:
            return parse_range(raw)
        except InvalidRangeFormat as e:
            logger.warning("Catalog item %s: malformed range field %s=%r (%s)", code, k, raw, e)
            if issues is not None:
                issues.append(Diagnostic(
                    code="catalog.range",
                    severity="warning",
                    message=f"Item {code}: field '{k}' is not a valid range ({raw!r}); ignored.",
                    context={"product_code": code, "field": k, "value": raw},
                ))
            return None
    return None
