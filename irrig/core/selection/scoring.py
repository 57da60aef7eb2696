# irrig/core/selection/scoring.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from irrig.core.build.config import HydraulicsConfig, SegmentRole
from irrig.core.build.materials import canonical_material
from irrig.core.hydraulics.headloss import adjusted_c, hazen_williams_loss, hazen_williams_vec, optimal_diameter_mm
from irrig.core.hydraulics.units import range_mid
from irrig.core.models.catalog import PipeItem, PumpItem, SprinklerItem
from irrig.core.models.results import ScoredCandidate

# Score thresholds shared by all equipment classes
USABLE_SCORE = 20.0
GOOD_SCORE = 40.0
RECOMMENDED_SCORE = 60.0

# Acceptable pipe diameter band per segment role [mm]
PIPE_SIZE_BAND_MM: Dict[str, Tuple[float, float]] = {
    "branch": (16.0, 50.0),
    "secondary": (25.0, 110.0),
    "main": (40.0, 200.0),
}

PIPE_VELOCITY_MIN = 0.3
PIPE_VELOCITY_MAX = 3.0

# Pump ratio ceilings (flow and head) per tier
PUMP_USABLE_RATIO = 3.0
PUMP_GOOD_RATIO = 2.5
PUMP_RECOMMENDED_RATIO = 2.0
HP_PER_LPM_M = 0.00027

# Sprinkler band tolerance per tier (relative distance outside the rated band)
SPRINKLER_USABLE_DEV = 0.5
SPRINKLER_GOOD_DEV = 0.3
SPRINKLER_RECOMMENDED_DEV = 0.1


# ============================================================
# Requirements
# ============================================================

@dataclass(frozen=True)
class PipeRequirement:
    flow_lpm: float
    length_m: float
    role: SegmentRole
    age_years: float = 0.0
    allowed_types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PumpRequirement:
    flow_lpm: float
    head_m: float


@dataclass(frozen=True)
class SprinklerRequirement:
    target_flow_lph: float


def _clip(score: float) -> float:
    return float(min(100.0, max(0.0, score)))


def sort_candidates(cands: Iterable[ScoredCandidate]) -> List[ScoredCandidate]:
    """Score descending, then price ascending."""
    return sorted(cands, key=lambda c: (-c.score, c.price))


# ============================================================
# Pipe (velocity 40, size 30, cost 20, head loss 10)
# ============================================================

def pipe_velocity_score(v: float) -> float:
    if 0.8 <= v <= 2.0:
        return 40.0
    if 0.5 <= v <= 2.5:
        return 30.0
    if 0.3 <= v <= 3.0:
        return 20.0
    return 0.0


def pipe_size_score(size_mm: float, role: SegmentRole) -> float:
    lo, hi = PIPE_SIZE_BAND_MM.get(role, (16.0, 200.0))
    if lo <= size_mm <= hi:
        return 30.0
    if lo * 0.8 <= size_mm <= hi * 1.2:
        return 20.0
    return 5.0


def pipe_cost_score(pipe: PipeItem) -> float:
    """lengthPerUnit*1000 / (price*diameter): meters bought per money unit and mm."""
    if pipe.price <= 0 or pipe.size_mm <= 0:
        return 5.0
    eff = pipe.length_m * 1000.0 / (pipe.price * pipe.size_mm)
    if eff > 50:
        return 20.0
    if eff > 30:
        return 15.0
    if eff > 20:
        return 10.0
    return 5.0


def pipe_headloss_score(total_loss_m: float) -> float:
    if total_loss_m < 1:
        return 10.0
    if total_loss_m < 2:
        return 8.0
    if total_loss_m < 5:
        return 5.0
    return 2.0


def _is_type_allowed(pipe: PipeItem, allowed: Sequence[str]) -> bool:
    if not allowed:
        return True
    allowed_canon = {canonical_material(a) or a.strip().lower() for a in allowed}
    key = canonical_material(pipe.pipe_type) or (pipe.pipe_type or "").strip().lower()
    return key in allowed_canon


def _pipe_candidate(pipe: PipeItem, req: PipeRequirement, loss_m: float, velocity: float, c: float,
                    optimal_mm: float) -> ScoredCandidate:
    score = _clip(
        pipe_velocity_score(velocity)
        + pipe_size_score(pipe.size_mm, req.role)
        + pipe_cost_score(pipe)
        + pipe_headloss_score(loss_m)
    )
    velocity_ok = PIPE_VELOCITY_MIN <= velocity <= PIPE_VELOCITY_MAX
    type_ok = _is_type_allowed(pipe, req.allowed_types)

    is_usable = velocity_ok and score >= USABLE_SCORE
    is_good = velocity_ok and score >= GOOD_SCORE
    is_rec = velocity_ok and type_ok and score >= RECOMMENDED_SCORE

    per_100m = (loss_m / req.length_m * 100.0) if req.length_m > 0 else 0.0
    return ScoredCandidate(
        item=pipe,
        score=score,
        is_recommended=is_rec,
        is_good_choice=is_good,
        is_usable=is_usable,
        metrics={
            "velocity": velocity,
            "head_loss": loss_m,
            "head_loss_per_100m": per_100m,
            "c": c,
            "optimal_size_mm": optimal_mm,
            "type_allowed": float(type_ok),
        },
    )


def score_pipe(pipe: PipeItem, req: PipeRequirement, cfg: HydraulicsConfig | None = None) -> ScoredCandidate:
    cfg = cfg or HydraulicsConfig()
    hl = hazen_williams_loss(
        flow_lpm=req.flow_lpm,
        diameter_mm=pipe.size_mm,
        length_m=req.length_m,
        material=pipe.pipe_type,
        role=req.role,
        age_years=req.age_years,
        cfg=cfg,
    )
    optimal = optimal_diameter_mm(req.flow_lpm, cfg.optimal_velocity_m_s)
    return _pipe_candidate(pipe, req, hl.total, hl.velocity, hl.c, optimal)


def score_pipes(pipes: Sequence[PipeItem], req: PipeRequirement,
                cfg: HydraulicsConfig | None = None) -> List[ScoredCandidate]:
    """
    Puntúa todo el catálogo de tuberías para un tramo (pérdidas vectorizadas)
    y devuelve la lista ordenada por puntaje.
    """
    cfg = cfg or HydraulicsConfig()
    if not pipes:
        return []
    c = np.array([adjusted_c(p.pipe_type, req.age_years, cfg) for p in pipes], dtype=float)
    d = np.array([p.size_mm for p in pipes], dtype=float)
    loss, vel = hazen_williams_vec(
        flow_lpm=req.flow_lpm, diameter_mm=d, length_m=req.length_m, c=c, role=req.role,
    )
    optimal = optimal_diameter_mm(req.flow_lpm, cfg.optimal_velocity_m_s)
    return sort_candidates(
        _pipe_candidate(p, req, float(loss[i]), float(vel[i]), float(c[i]), optimal)
        for i, p in enumerate(pipes)
    )


# ============================================================
# Pump (flow 40, head 35, cost 15, power 10)
# ============================================================

def pump_flow_score(ratio: float) -> float:
    if ratio < 1.0:
        return 0.0
    if ratio < 1.05:
        return 32.0
    if ratio <= 1.5:
        return 40.0
    if ratio <= 2.0:
        return 30.0
    if ratio <= 3.0:
        return 18.0
    return 5.0


def pump_head_score(ratio: float) -> float:
    if ratio < 1.0:
        return 0.0
    if ratio < 1.05:
        return 28.0
    if ratio <= 1.5:
        return 35.0
    if ratio <= 2.0:
        return 26.0
    if ratio <= 2.5:
        return 16.0
    if ratio <= 3.0:
        return 10.0
    return 4.0


def pump_cost_score(flow_per_price: float) -> float:
    if flow_per_price >= 0.05:
        return 15.0
    if flow_per_price >= 0.02:
        return 12.0
    if flow_per_price >= 0.01:
        return 8.0
    if flow_per_price > 0:
        return 4.0
    return 0.0


def estimated_hp(flow_lpm: float, head_m: float) -> float:
    return max(0.0, flow_lpm) * max(0.0, head_m) * HP_PER_LPM_M


def pump_power_score(rated_hp: float, est_hp: float) -> float:
    if rated_hp <= 0 or est_hp <= 0:
        return 0.0
    r = rated_hp / est_hp
    if 1.0 <= r <= 2.5:
        return 10.0
    if 0.8 <= r < 1.0 or 2.5 < r <= 4.0:
        return 5.0
    return 0.0


def _ratio(capacity: float, required: float) -> float:
    if required <= 0:
        return 0.0
    return max(0.0, capacity) / required


def score_pump(pump: PumpItem, req: PumpRequirement) -> ScoredCandidate:
    flow_ratio = _ratio(pump.max_flow_lpm, req.flow_lpm)
    head_ratio = _ratio(pump.max_head_m, req.head_m)
    flow_per_price = (pump.max_flow_lpm / pump.price) if pump.price > 0 else 0.0
    est = estimated_hp(req.flow_lpm, req.head_m)

    score = _clip(
        pump_flow_score(flow_ratio)
        + pump_head_score(head_ratio)
        + pump_cost_score(flow_per_price)
        + pump_power_score(pump.power_hp, est)
    )

    flow_ok = flow_ratio >= 1.0
    head_ok = head_ratio >= 1.0
    adequate = flow_ok and head_ok
    worst = max(flow_ratio, head_ratio)

    is_usable = adequate and score >= USABLE_SCORE and worst <= PUMP_USABLE_RATIO
    is_good = adequate and score >= GOOD_SCORE and worst <= PUMP_GOOD_RATIO
    is_rec = adequate and score >= RECOMMENDED_SCORE and worst <= PUMP_RECOMMENDED_RATIO

    return ScoredCandidate(
        item=pump,
        score=score,
        is_recommended=is_rec,
        is_good_choice=is_good,
        is_usable=is_usable,
        metrics={
            "flow_ratio": flow_ratio,
            "head_ratio": head_ratio,
            "flow_per_price": flow_per_price,
            "estimated_hp": est,
            "flow_adequate": float(flow_ok),
            "head_adequate": float(head_ok),
        },
    )


def score_pumps(pumps: Sequence[PumpItem], req: PumpRequirement) -> List[ScoredCandidate]:
    return sort_candidates(score_pump(p, req) for p in pumps)


# ============================================================
# Sprinkler (flow fit 50, cost 25, radius 15, pressure breadth 10)
# ============================================================

def band_deviation(target: float, band: Optional[Tuple[float, float]]) -> float:
    """Relative distance of target outside [min, max]; 0 inside, inf without a band."""
    if band is None:
        return float("inf")
    lo, hi = band
    if lo <= target <= hi:
        return 0.0
    if target < lo:
        return (lo - target) / lo if lo > 0 else float("inf")
    return (target - hi) / hi if hi > 0 else float("inf")


def sprinkler_flow_score(target: float, band: Optional[Tuple[float, float]]) -> float:
    if band is None or target <= 0:
        return 0.0
    dev = band_deviation(target, band)
    if dev == 0.0:
        half = (band[1] - band[0]) / 2.0
        if half <= 0:
            return 50.0
        off_center = min(1.0, abs(target - range_mid(band)) / half)
        return 40.0 + 10.0 * (1.0 - off_center)
    if dev <= 0.1:
        return 30.0
    if dev <= 0.3:
        return 20.0
    if dev <= 0.5:
        return 10.0
    return 0.0


def sprinkler_cost_score(price_per_flow: Optional[float]) -> float:
    if price_per_flow is None:
        return 5.0
    if price_per_flow <= 0.05:
        return 25.0
    if price_per_flow <= 0.1:
        return 20.0
    if price_per_flow <= 0.25:
        return 15.0
    if price_per_flow <= 0.5:
        return 10.0
    return 5.0


def sprinkler_radius_score(avg_radius: Optional[float]) -> float:
    if avg_radius is None:
        return 0.0
    if avg_radius >= 10:
        return 15.0
    if avg_radius >= 6:
        return 12.0
    if avg_radius >= 3:
        return 9.0
    if avg_radius >= 1:
        return 6.0
    return 3.0


def sprinkler_pressure_score(band: Optional[Tuple[float, float]]) -> float:
    if band is None:
        return 0.0
    width = band[1] - band[0]
    if width >= 2.0:
        return 10.0
    if width >= 1.0:
        return 7.0
    if width >= 0.5:
        return 5.0
    if width > 0:
        return 3.0
    return 1.0


def score_sprinkler(sprinkler: SprinklerItem, req: SprinklerRequirement) -> ScoredCandidate:
    band = sprinkler.flow_range_lph
    target = req.target_flow_lph
    dev = band_deviation(target, band) if target > 0 else float("inf")

    mid_flow = range_mid(band) if band is not None else 0.0
    price_per_flow = (sprinkler.price / mid_flow) if (mid_flow > 0 and sprinkler.price > 0) else None
    avg_radius = range_mid(sprinkler.radius_range_m) if sprinkler.radius_range_m is not None else None

    score = _clip(
        sprinkler_flow_score(target, band)
        + sprinkler_cost_score(price_per_flow)
        + sprinkler_radius_score(avg_radius)
        + sprinkler_pressure_score(sprinkler.pressure_range_bar)
    )

    is_usable = score >= USABLE_SCORE and dev <= SPRINKLER_USABLE_DEV
    is_good = score >= GOOD_SCORE and dev <= SPRINKLER_GOOD_DEV
    is_rec = score >= RECOMMENDED_SCORE and dev <= SPRINKLER_RECOMMENDED_DEV

    metrics = {
        "target_flow": target,
        "min_flow": band[0] if band is not None else 0.0,
        "max_flow": band[1] if band is not None else 0.0,
        "avg_radius": avg_radius or 0.0,
        "price_per_flow": price_per_flow or 0.0,
        "flow_match": float(dev == 0.0),
        "flow_close_match": float(dev <= SPRINKLER_RECOMMENDED_DEV),
    }
    if dev != float("inf"):
        metrics["band_deviation"] = dev

    return ScoredCandidate(
        item=sprinkler,
        score=score,
        is_recommended=is_rec,
        is_good_choice=is_good,
        is_usable=is_usable,
        metrics=metrics,
    )


def score_sprinklers(sprinklers: Sequence[SprinklerItem], req: SprinklerRequirement) -> List[ScoredCandidate]:
    return sort_candidates(score_sprinkler(s, req) for s in sprinklers)
