# irrig/core/models/inputs.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class SegmentLengths:
    """
    Longitudes de un nivel de tubería (branch / secondary / main).

    - longest_m: tramo más largo (gobierna la pérdida de carga)
    - total_m: longitud total instalada (gobierna la cantidad de rollos)
    """
    longest_m: float
    total_m: float

    @staticmethod
    def optional(longest_m: Any, total_m: Any) -> Optional["SegmentLengths"]:
        """
        Ambas longitudes 0 (o vacías) = tramo no usado. Cualquier otro valor,
        negativo incluido, se conserva para que lo rechace la validación.
        """
        lo = _num(longest_m)
        to = _num(total_m)
        if lo == 0 and to == 0:
            return None
        return SegmentLengths(longest_m=lo, total_m=to)


@dataclass(frozen=True, slots=True)
class IrrigationInput:
    """
    Parámetros de la finca para un cálculo (inmutable).

    secondary/main = None significa que ese nivel de tubería no existe.
    """
    farm_size_rai: float
    total_trees: float
    water_per_tree_liters: float
    number_of_zones: int
    simultaneous_zones: int
    irrigation_time_minutes: float
    static_head_m: float
    pressure_head_m: float
    branch: SegmentLengths

    secondary: Optional[SegmentLengths] = None
    main: Optional[SegmentLengths] = None

    sprinklers_per_tree: float = 1.0
    pipe_age_years: float = 0.0
    sprinklers_per_branch: float = 4.0
    branches_per_secondary: float = 1.0
    secondaries_per_main: float = 1.0

    @property
    def has_secondary(self) -> bool:
        return self.secondary is not None

    @property
    def has_main(self) -> bool:
        return self.main is not None

    @property
    def total_pipe_length_m(self) -> float:
        total = self.branch.total_m
        for seg in (self.secondary, self.main):
            if seg is not None:
                total += seg.total_m
        return total

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "IrrigationInput":
        """
        Construye la entrada desde un dict plano. Acepta nombres camelCase
        (longestBranchPipeM, ...) y snake_case (longest_branch_pipe_m, ...).
        """
        g = _getter(d)
        return IrrigationInput(
            farm_size_rai=_num(g("farm_size_rai", "farmSizeRai")),
            total_trees=_num(g("total_trees", "totalTrees")),
            water_per_tree_liters=_num(g("water_per_tree_liters", "waterPerTreeLiters")),
            number_of_zones=int(_num(g("number_of_zones", "numberOfZones"), 1)),
            simultaneous_zones=int(_num(g("simultaneous_zones", "simultaneousZones"), 1)),
            irrigation_time_minutes=_num(g("irrigation_time_minutes", "irrigationTimeMinutes")),
            static_head_m=_num(g("static_head_m", "staticHeadM")),
            pressure_head_m=_num(g("pressure_head_m", "pressureHeadM")),
            branch=SegmentLengths(
                longest_m=_num(g("longest_branch_pipe_m", "longestBranchPipeM")),
                total_m=_num(g("total_branch_pipe_m", "totalBranchPipeM")),
            ),
            secondary=SegmentLengths.optional(
                g("longest_secondary_pipe_m", "longestSecondaryPipeM"),
                g("total_secondary_pipe_m", "totalSecondaryPipeM"),
            ),
            main=SegmentLengths.optional(
                g("longest_main_pipe_m", "longestMainPipeM"),
                g("total_main_pipe_m", "totalMainPipeM"),
            ),
            sprinklers_per_tree=_num(g("sprinklers_per_tree", "sprinklersPerTree"), 1.0),
            pipe_age_years=_num(g("pipe_age_years", "pipeAgeYears")),
            sprinklers_per_branch=_num(
                g("sprinklers_per_branch", "sprinklersPerBranch",
                  "sprinklers_per_longest_branch", "sprinklersPerLongestBranch"), 4.0
            ),
            branches_per_secondary=_num(
                g("branches_per_secondary", "branchesPerSecondary",
                  "branches_per_longest_secondary", "branchesPerLongestSecondary"), 1.0
            ),
            secondaries_per_main=_num(
                g("secondaries_per_main", "secondariesPerMain",
                  "secondaries_per_longest_main", "secondariesPerLongestMain"), 1.0
            ),
        )


@dataclass(frozen=True, slots=True)
class ZoneCalculationData:
    zone_id: str
    input: IrrigationInput
    sprinkler: Optional[Any] = None   # SprinklerItem


@dataclass(frozen=True, slots=True)
class ZoneOperationGroup:
    """Zonas que se riegan juntas; los grupos se operan en secuencia."""
    id: str
    zones: Tuple[str, ...]
    order: int = 0
    label: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


# -----------------------------
# helpers
# -----------------------------

def _getter(d: Dict[str, Any]):
    def g(*keys: str) -> Any:
        for k in keys:
            if k in d and d[k] is not None:
                return d[k]
        return None
    return g


def _num(x: Any, default: float = 0.0) -> float:
    if x is None:
        return default
    if isinstance(x, str):
        x = x.strip()
        if not x:
            return default
    try:
        v = float(x)
    except (TypeError, ValueError):
        raise ValueError(f"Valor numérico inválido: {x!r}")
    if v != v:  # NaN
        return default
    return v
