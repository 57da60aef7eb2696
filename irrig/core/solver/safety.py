# irrig/core/solver/safety.py
from __future__ import annotations

from typing import Dict, Tuple

from irrig.core.build.config import Complexity, SafetyConfig
from irrig.core.models.inputs import IrrigationInput


def _zone_points(zones: int) -> int:
    if zones > 6:
        return 4
    if zones > 3:
        return 3
    if zones > 1:
        return 2
    return 0


def _network_points(inp: IrrigationInput) -> int:
    if inp.has_secondary and inp.has_main:
        return 4
    if inp.has_secondary:
        return 3
    if inp.has_main:
        return 2
    return 0


def _size_points(rai: float, trees: float) -> int:
    if rai > 30 or trees > 3000:
        return 3
    if rai > 15 or trees > 1500:
        return 2
    if rai > 5 or trees > 500:
        return 1
    return 0


def _length_points(total_m: float) -> int:
    if total_m > 5000:
        return 3
    if total_m > 2000:
        return 2
    if total_m > 800:
        return 1
    return 0


def complexity_points(inp: IrrigationInput) -> Dict[str, int]:
    """Desglose de puntos por criterio (zonas, red, tamaño, longitud, operación)."""
    zones = inp.number_of_zones
    return {
        "zones": _zone_points(zones),
        "network": _network_points(inp),
        "size": _size_points(inp.farm_size_rai, inp.total_trees),
        "length": _length_points(inp.total_pipe_length_m),
        "operation": 2 if (inp.simultaneous_zones == zones and zones > 3) else 0,
    }


def classify_complexity(inp: IrrigationInput, cfg: SafetyConfig | None = None) -> Tuple[Complexity, int]:
    """
    Clasifica el sistema en simple / medium / complex por suma de puntos.
    Retorna (complejidad, puntos).
    """
    cfg = cfg or SafetyConfig()
    points = sum(complexity_points(inp).values())
    if points >= cfg.complex_points:
        return "complex", points
    if points >= cfg.medium_points:
        return "medium", points
    return "simple", points


def safety_factor(complexity: Complexity, cfg: SafetyConfig | None = None) -> float:
    return (cfg or SafetyConfig()).factor(complexity)
