# irrig/core/solver/segments.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from irrig.core.build.config import EngineConfig, SegmentRole
from irrig.core.build.flows import FlowRequirements
from irrig.core.hydraulics.headloss import HeadLossResult, hazen_williams_loss
from irrig.core.models.catalog import PipeItem
from irrig.core.models.inputs import IrrigationInput, SegmentLengths
from irrig.core.models.results import ScoredCandidate
from irrig.core.selection.scoring import PipeRequirement, score_pipes
from irrig.core.selection.selector import select_pipe


ROLES: Tuple[SegmentRole, ...] = ("branch", "secondary", "main")


@dataclass(frozen=True)
class SegmentSizing:
    """Scored catalog, selected pipe and head loss for one pipe tier."""
    role: SegmentRole
    lengths: SegmentLengths
    flow_lpm: float
    analyzed: Tuple[ScoredCandidate, ...]
    selected: Optional[ScoredCandidate]
    head_loss: HeadLossResult

    @property
    def pipe(self) -> Optional[PipeItem]:
        return self.selected.item if self.selected is not None else None


def segment_flow(role: SegmentRole, flows: FlowRequirements) -> Optional[float]:
    if role == "branch":
        return flows.branch_flow_lpm
    if role == "secondary":
        return flows.secondary_flow_lpm
    return flows.main_flow_lpm


def segment_lengths(role: SegmentRole, inp: IrrigationInput) -> Optional[SegmentLengths]:
    return {"branch": inp.branch, "secondary": inp.secondary, "main": inp.main}[role]


def size_segments(
    inp: IrrigationInput,
    flows: FlowRequirements,
    pipes: Sequence[PipeItem],
    cfg: EngineConfig,
    current: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Optional[SegmentSizing]]:
    """
    Para cada tramo presente: puntúa el catálogo, auto-selecciona y calcula
    la pérdida de carga con la tubería elegida. Tramos ausentes -> None.
    """
    current = current or {}
    out: Dict[str, Optional[SegmentSizing]] = {}

    for role in ROLES:
        lengths = segment_lengths(role, inp)
        flow = segment_flow(role, flows)
        if lengths is None or flow is None:
            out[role] = None
            continue
        if lengths.longest_m <= 0 or flow <= 0:
            # sin longitud o sin caudal: tramo degenerado, no se usa
            out[role] = None
            continue

        req = PipeRequirement(
            flow_lpm=flow,
            length_m=lengths.longest_m,
            role=role,
            age_years=inp.pipe_age_years,
            allowed_types=cfg.selection.allowed_for(role),
        )
        analyzed = tuple(score_pipes(pipes, req, cfg.hydraulics))
        selected = select_pipe(
            analyzed,
            current=current.get(role),
            ideal_velocity_m_s=cfg.selection.ideal_pipe_velocity_m_s,
        )

        if selected is not None:
            pipe: PipeItem = selected.item
            hl = hazen_williams_loss(
                flow_lpm=flow,
                diameter_mm=pipe.size_mm,
                length_m=lengths.longest_m,
                material=pipe.pipe_type,
                role=role,
                age_years=inp.pipe_age_years,
                cfg=cfg.hydraulics,
            )
        else:
            hl = HeadLossResult.zero()

        out[role] = SegmentSizing(
            role=role,
            lengths=lengths,
            flow_lpm=flow,
            analyzed=analyzed,
            selected=selected,
            head_loss=hl,
        )

    return out
