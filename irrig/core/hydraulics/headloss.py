# irrig/core/hydraulics/headloss.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence
import math

import numpy as np

from irrig.core.build.config import HydraulicsConfig, SegmentRole
from irrig.core.build.materials import base_c
from irrig.core.hydraulics.units import lpm_to_m3s


HW_K = 10.67
HW_Q_EXP = 1.852
HW_D_EXP = 4.87

MINOR_LOSS_RATIO = {
    "branch": 0.20,
    "secondary": 0.15,
    "main": 0.10,
}


@dataclass(frozen=True, slots=True)
class HeadLossResult:
    major: float      # [m]
    minor: float      # [m]
    total: float      # [m]
    velocity: float   # [m/s]
    c: float          # Hazen-Williams C [-]

    @staticmethod
    def zero(c: float = 0.0) -> "HeadLossResult":
        return HeadLossResult(major=0.0, minor=0.0, total=0.0, velocity=0.0, c=c)


def adjusted_c(material: Optional[str], age_years: float, cfg: HydraulicsConfig | None = None) -> float:
    """C = C_base(material) - 2.5*edad, con piso en 100."""
    cfg = cfg or HydraulicsConfig()
    age = max(0.0, float(age_years or 0.0))
    return max(cfg.min_c, base_c(material) - cfg.c_age_decay * age)


def minor_loss_ratio(role: SegmentRole) -> float:
    return MINOR_LOSS_RATIO.get(role, 0.15)


def velocity_m_s(flow_lpm: float, diameter_mm: float) -> float:
    if diameter_mm <= 0 or flow_lpm <= 0:
        return 0.0
    D = diameter_mm / 1000.0
    return lpm_to_m3s(flow_lpm) / (math.pi * (D / 2.0) ** 2)


def optimal_diameter_mm(flow_lpm: float, target_velocity_m_s: float = 1.5) -> float:
    """D = 2*sqrt(Q/(pi*V)), en mm."""
    if flow_lpm <= 0 or target_velocity_m_s <= 0:
        return 0.0
    Q = lpm_to_m3s(flow_lpm)
    return 2.0 * math.sqrt(Q / (math.pi * target_velocity_m_s)) * 1000.0


def hazen_williams_loss(
    *,
    flow_lpm: float,
    diameter_mm: float,
    length_m: float,
    material: Optional[str],
    role: SegmentRole,
    age_years: float = 0.0,
    cfg: HydraulicsConfig | None = None,
) -> HeadLossResult:
    """
    Pérdida de carga de un tramo (Hazen-Williams, SI):

        hf = 10.67 * L * Q^1.852 / (C^1.852 * D^4.87)

    Q en m3/s, D y L en m. La pérdida menor es una fracción fija de hf según el
    rol del tramo. Caudal, diámetro o longitud no positivos devuelven pérdida cero.
    """
    C = adjusted_c(material, age_years, cfg)
    if flow_lpm <= 0 or diameter_mm <= 0:
        return HeadLossResult.zero(C)

    Q = lpm_to_m3s(flow_lpm)
    D = diameter_mm / 1000.0
    L = max(0.0, float(length_m))

    major = HW_K * L * (Q ** HW_Q_EXP) / ((C ** HW_Q_EXP) * (D ** HW_D_EXP))
    minor = major * minor_loss_ratio(role)
    V = Q / (math.pi * (D / 2.0) ** 2)

    return HeadLossResult(major=major, minor=minor, total=major + minor, velocity=V, c=C)


def hazen_williams_vec(
    *,
    flow_lpm: float,
    diameter_mm: Sequence[float] | np.ndarray,
    length_m: float,
    c: Sequence[float] | np.ndarray,
    role: SegmentRole,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Vectorizado sobre un catálogo: arrays (n,) de diámetro y C -> (total_loss, velocity).
    Diámetros no positivos dan pérdida y velocidad cero.
    """
    D = np.asarray(diameter_mm, dtype=float) / 1000.0
    C = np.asarray(c, dtype=float)
    total = np.zeros_like(D)
    V = np.zeros_like(D)
    if flow_lpm <= 0 or D.size == 0:
        return total, V

    Q = lpm_to_m3s(flow_lpm)
    L = max(0.0, float(length_m))
    ok = (D > 0) & (C > 0)

    major = np.zeros_like(D)
    major[ok] = HW_K * L * (Q ** HW_Q_EXP) / ((C[ok] ** HW_Q_EXP) * (D[ok] ** HW_D_EXP))
    total = major * (1.0 + minor_loss_ratio(role))
    V[ok] = Q / (np.pi * (D[ok] / 2.0) ** 2)
    return total, V
