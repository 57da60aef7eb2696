# irrig/core/models/results.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Literal, Optional, Tuple

from irrig.core.hydraulics.headloss import HeadLossResult
from irrig.core.hydraulics.velocity import VelocityCheck
from irrig.core.models.catalog import PipeItem
from irrig.core.models.diagnostics import Diagnostic
from irrig.core.models.inputs import ZoneOperationGroup

if TYPE_CHECKING:
    from irrig.core.build.flows import FlowRequirements


OperationMode = Literal["single", "sequential", "simultaneous", "custom"]


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    """
    Ítem de catálogo + puntaje [0, 100] y banderas de adecuación.

    Invariante: is_recommended => is_good_choice => is_usable.
    """
    item: Any
    score: float
    is_recommended: bool
    is_good_choice: bool
    is_usable: bool
    metrics: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not (0.0 <= self.score <= 100.0):
            raise ValueError(f"score fuera de [0, 100]: {self.score}")
        if self.is_recommended and not self.is_good_choice:
            raise ValueError("is_recommended sin is_good_choice")
        if self.is_good_choice and not self.is_usable:
            raise ValueError("is_good_choice sin is_usable")

    @property
    def price(self) -> float:
        return float(getattr(self.item, "price", 0.0) or 0.0)

    @property
    def tier(self) -> str:
        if self.is_recommended:
            return "recommended"
        if self.is_good_choice:
            return "good"
        if self.is_usable:
            return "usable"
        return "unsuitable"


@dataclass(frozen=True, slots=True)
class ZoneOperatingPoint:
    zone_id: str
    flow_lpm: float
    static_head: float
    pressure_head: float
    segment_head_losses: Dict[str, float]      # branch / secondary / main [m]
    total_head: float
    selected_pipes: Dict[str, Optional[PipeItem]] = field(default_factory=dict)
    sprinkler_count: int = 0

    @property
    def total_head_loss(self) -> float:
        return float(sum(self.segment_head_losses.values()))


@dataclass(frozen=True, slots=True)
class PumpHeadResolution:
    """
    Carga (y caudal) que debe cubrir la bomba, antes del factor de seguridad.
    """
    head_m: float
    flow_lpm: float
    operation_mode: OperationMode
    critical_zone: Optional[str] = None
    selected_zones: Tuple[str, ...] = ()
    critical_group: Optional[ZoneOperationGroup] = None
    total_project_flow_lpm: float = 0.0


@dataclass(frozen=True, slots=True)
class HeadLossCheck:
    ratio: float
    severity: Literal["ok", "warning", "critical"]
    is_valid: bool
    recommendation: str


@dataclass(frozen=True)
class CalculationResult:
    flows: "FlowRequirements"

    head_loss: Dict[str, Optional[HeadLossResult]]     # branch / secondary / main
    connection_loss_m: float
    total_major_loss_m: float
    total_minor_loss_m: float
    total_head_loss_m: float

    pressure_from_sprinkler_m: float
    pump_head_raw_m: float
    complexity: str
    safety_factor: float
    pump_head_required_m: float
    pump_flow_required_lpm: float
    pump_resolution: PumpHeadResolution
    head_loss_check: HeadLossCheck

    analyzed_pipes: Dict[str, Tuple[ScoredCandidate, ...]]
    analyzed_pumps: Tuple[ScoredCandidate, ...]
    analyzed_sprinklers: Tuple[ScoredCandidate, ...]

    selected_pipes: Dict[str, Optional[ScoredCandidate]]
    selected_pump: Optional[ScoredCandidate]
    selected_sprinkler: Optional[ScoredCandidate]

    pipe_rolls: Dict[str, int]
    velocity_checks: Tuple[VelocityCheck, ...]
    zones: Tuple[ZoneOperatingPoint, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    meta: Dict[str, object] = field(default_factory=dict)

    def recommended(self, role: str) -> Tuple[ScoredCandidate, ...]:
        if role == "pump":
            pool = self.analyzed_pumps
        elif role == "sprinkler":
            pool = self.analyzed_sprinklers
        else:
            pool = self.analyzed_pipes.get(role, ())
        return tuple(c for c in pool if c.is_recommended)
