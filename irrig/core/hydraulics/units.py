# irrig/core/hydraulics/units.py
from __future__ import annotations

from typing import Any, Sequence, Tuple
import math


BAR_TO_M = 10.2       # m of water column per bar (approx.)
HP_TO_KW = 0.7457
KW_TO_HP = 1.341

Range = Tuple[float, float]


class InvalidRangeFormat(ValueError):
    """Raised when a catalog range field cannot be read as (min, max)."""


def _to_float(x: Any) -> float:
    if isinstance(x, bool):
        raise ValueError(f"boolean is not a number: {x!r}")
    v = float(x)
    if math.isnan(v) or math.isinf(v):
        raise ValueError(f"not a finite number: {x!r}")
    return v


def _ordered(a: float, b: float) -> Range:
    return (a, b) if a <= b else (b, a)


def parse_range(value: Any) -> Range:
    """
    Normaliza un campo de rango de catálogo a (min, max) con min <= max.

    Acepta:
      - escalar: 5 -> (5, 5)
      - par ordenado: [3, 7] / (3, 7)
      - texto: "3-7", "2.5 - 4.5", "5"
    """
    if value is None:
        raise InvalidRangeFormat("range value is None")

    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise InvalidRangeFormat("empty range string")
        # leading '-' would be a sign, not the separator
        head, sep, tail = s[1:].partition("-")
        if sep:
            left, right = s[0] + head, tail
            try:
                return _ordered(_to_float(left.strip()), _to_float(right.strip()))
            except ValueError as e:
                raise InvalidRangeFormat(f"cannot parse range string {value!r}") from e
        try:
            v = _to_float(s)
        except ValueError as e:
            raise InvalidRangeFormat(f"cannot parse range string {value!r}") from e
        return (v, v)

    if isinstance(value, (list, tuple)):
        seq: Sequence[Any] = value
        if len(seq) == 1:
            return parse_range(seq[0])
        if len(seq) != 2:
            raise InvalidRangeFormat(f"range must have 2 elements, got {len(seq)}: {value!r}")
        try:
            return _ordered(_to_float(seq[0]), _to_float(seq[1]))
        except (TypeError, ValueError) as e:
            raise InvalidRangeFormat(f"non-numeric range pair {value!r}") from e

    try:
        v = _to_float(value)
    except (TypeError, ValueError) as e:
        raise InvalidRangeFormat(f"unsupported range value {value!r}") from e
    return (v, v)


def range_mid(r: Range) -> float:
    return (r[0] + r[1]) / 2.0


def bar_to_meters(bar: float) -> float:
    return bar * BAR_TO_M


def meters_to_bar(m: float) -> float:
    return m / BAR_TO_M


def hp_to_kw(hp: float) -> float:
    return hp * HP_TO_KW


def kw_to_hp(kw: float) -> float:
    return kw * KW_TO_HP


def lph_to_lpm(q_lph: float) -> float:
    return q_lph / 60.0


def lpm_to_m3s(q_lpm: float) -> float:
    return q_lpm / 60000.0
