# irrig/core/hydraulics/velocity.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional, Tuple


Severity = Literal["nominal", "warning_low", "warning_high", "critical_high"]

CRITICAL_HIGH_M_S = 3.0
WARNING_HIGH_M_S = 2.0
WARNING_LOW_M_S = 0.3


@dataclass(frozen=True, slots=True)
class VelocityCheck:
    segment: str
    velocity: float
    severity: Severity
    message: str

    @property
    def is_nominal(self) -> bool:
        return self.severity == "nominal"


def classify_velocity(velocity: float, segment: str = "") -> VelocityCheck:
    label = segment or "segment"
    v = float(velocity)
    if v > CRITICAL_HIGH_M_S:
        sev: Severity = "critical_high"
        msg = f"{label}: velocity very high ({v:.3f} m/s), water hammer risk"
    elif v >= WARNING_HIGH_M_S:
        sev = "warning_high"
        msg = f"{label}: velocity high ({v:.3f} m/s), consider a larger pipe"
    elif v < WARNING_LOW_M_S:
        sev = "warning_low"
        msg = f"{label}: velocity very low ({v:.3f} m/s), sedimentation risk"
    else:
        sev = "nominal"
        msg = f"{label}: velocity ok ({v:.3f} m/s)"
    return VelocityCheck(segment=label, velocity=v, severity=sev, message=msg)


def velocity_warnings(segments: Iterable[Tuple[str, Optional[float]]]) -> List[VelocityCheck]:
    """
    Non-nominal checks for (segment, velocity) pairs. Absent segments (None) and
    zero velocity (degenerate) are skipped.
    """
    out: List[VelocityCheck] = []
    for name, v in segments:
        if v is None or v <= 0:
            continue
        chk = classify_velocity(v, name)
        if not chk.is_nominal:
            out.append(chk)
    return out
