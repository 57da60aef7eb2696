# irrig/core/build/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

from irrig.core.build.materials import canonical_material


SegmentRole = Literal["branch", "secondary", "main"]
Complexity = Literal["simple", "medium", "complex"]

SAFETY_FACTORS: Dict[str, float] = {
    "simple": 1.05,
    "medium": 1.08,
    "complex": 1.12,
}


def _split_list(x: Any) -> Tuple[str, ...]:
    if x is None:
        return ()
    if isinstance(x, str):
        parts = [p.strip() for p in x.replace(",", ";").split(";")]
        return tuple(p for p in parts if p)
    return tuple(str(p).strip() for p in x if str(p).strip())


# ============================================================
# HydraulicsConfig
# ============================================================

@dataclass(frozen=True)
class HydraulicsConfig:
    """
    Constantes hidráulicas del motor.
    """
    connection_loss_ratio: float = 0.03
    sprinkler_working_ratio: float = 0.7
    optimal_velocity_m_s: float = 1.5
    min_c: float = 100.0
    c_age_decay: float = 2.5

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "HydraulicsConfig":
        out = HydraulicsConfig(
            connection_loss_ratio=float(cfg.get("connection_loss_ratio", cfg.get("connection_loss", 0.03))),
            sprinkler_working_ratio=float(cfg.get("sprinkler_working_ratio", cfg.get("working_pressure_ratio", 0.7))),
            optimal_velocity_m_s=float(cfg.get("optimal_velocity_m_s", cfg.get("optimal_velocity", 1.5))),
            min_c=float(cfg.get("min_c", cfg.get("c_min", 100.0))),
            c_age_decay=float(cfg.get("c_age_decay", cfg.get("c_decay_per_year", 2.5))),
        )
        out.validate()
        return out

    def validate(self) -> None:
        if not (0.0 <= self.connection_loss_ratio < 1.0):
            raise ValueError(f"HydraulicsConfig.connection_loss_ratio fuera de rango: {self.connection_loss_ratio}")
        if not (0.0 < self.sprinkler_working_ratio <= 1.0):
            raise ValueError(f"HydraulicsConfig.sprinkler_working_ratio fuera de rango: {self.sprinkler_working_ratio}")
        if self.optimal_velocity_m_s <= 0:
            raise ValueError(f"HydraulicsConfig.optimal_velocity_m_s debe ser > 0 (recibido {self.optimal_velocity_m_s})")
        if self.min_c <= 0:
            raise ValueError(f"HydraulicsConfig.min_c debe ser > 0 (recibido {self.min_c})")
        if self.c_age_decay < 0:
            raise ValueError(f"HydraulicsConfig.c_age_decay debe ser >= 0 (recibido {self.c_age_decay})")


# ============================================================
# SelectionConfig
# ============================================================

@dataclass(frozen=True)
class SelectionConfig:
    """
    Reglas de auto-selección de equipos.
    """
    ideal_pipe_velocity_m_s: float = 1.4
    min_pipe_pn: float = 6.0
    max_headloss_per_100m: float = 20.0
    allowed_pipe_types: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "SelectionConfig":
        allowed: Dict[str, Tuple[str, ...]] = {}
        nested = cfg.get("allowed_pipe_types")
        for role in ("branch", "secondary", "main"):
            raw: Optional[Any] = None
            if isinstance(nested, dict):
                raw = nested.get(role)
            raw = cfg.get(f"allowed_{role}_pipe_types", raw)
            types = _split_list(raw)
            if types:
                allowed[role] = types

        out = SelectionConfig(
            ideal_pipe_velocity_m_s=float(cfg.get("ideal_pipe_velocity_m_s", cfg.get("ideal_velocity", 1.4))),
            min_pipe_pn=float(cfg.get("min_pipe_pn", cfg.get("min_pn", 6.0))),
            max_headloss_per_100m=float(cfg.get("max_headloss_per_100m", cfg.get("max_hf_per_100m", 20.0))),
            allowed_pipe_types=allowed,
        )
        out.validate()
        return out

    def allowed_for(self, role: SegmentRole) -> Tuple[str, ...]:
        return self.allowed_pipe_types.get(role, ())

    def validate(self) -> None:
        if self.ideal_pipe_velocity_m_s <= 0:
            raise ValueError(f"SelectionConfig.ideal_pipe_velocity_m_s debe ser > 0 (recibido {self.ideal_pipe_velocity_m_s})")
        if self.min_pipe_pn < 0:
            raise ValueError(f"SelectionConfig.min_pipe_pn debe ser >= 0 (recibido {self.min_pipe_pn})")
        if self.max_headloss_per_100m <= 0:
            raise ValueError(f"SelectionConfig.max_headloss_per_100m debe ser > 0 (recibido {self.max_headloss_per_100m})")
        for role, types in self.allowed_pipe_types.items():
            if role not in ("branch", "secondary", "main"):
                raise ValueError(f"SelectionConfig.allowed_pipe_types: rol inválido {role!r}")
            unknown = [t for t in types if canonical_material(t) is None]
            if unknown:
                raise ValueError(f"SelectionConfig.allowed_pipe_types[{role}]: materiales desconocidos {unknown}")


# ============================================================
# SafetyConfig
# ============================================================

@dataclass(frozen=True)
class SafetyConfig:
    """
    Factor de seguridad por complejidad del sistema.
    """
    simple: float = 1.05
    medium: float = 1.08
    complex: float = 1.12
    medium_points: int = 4
    complex_points: int = 8

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "SafetyConfig":
        out = SafetyConfig(
            medium_points=int(cfg.get("medium_points", cfg.get("complexity_medium_points", 4))),
            complex_points=int(cfg.get("complex_points", cfg.get("complexity_complex_points", 8))),
        )
        out.validate()
        return out

    def factor(self, complexity: Complexity) -> float:
        return {"simple": self.simple, "medium": self.medium, "complex": self.complex}[complexity]

    def validate(self) -> None:
        for name, expected in SAFETY_FACTORS.items():
            if getattr(self, name) != expected:
                raise ValueError(f"SafetyConfig.{name} debe ser {expected} (recibido {getattr(self, name)})")
        if not (0 < self.medium_points < self.complex_points):
            raise ValueError(
                f"SafetyConfig: se requiere 0 < medium_points < complex_points "
                f"(recibido {self.medium_points}, {self.complex_points})"
            )


# ============================================================
# EngineConfig (agregador)
# ============================================================

@dataclass(frozen=True)
class EngineConfig:
    hydraulics: HydraulicsConfig = field(default_factory=HydraulicsConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)
    version: int = 1

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "EngineConfig":
        out = EngineConfig(
            hydraulics=HydraulicsConfig.from_dict(cfg),
            selection=SelectionConfig.from_dict(cfg),
            safety=SafetyConfig.from_dict(cfg),
            version=int(cfg.get("config_version", cfg.get("version", 1))),
        )
        out.validate()
        return out

    def validate(self) -> None:
        if self.version <= 0:
            raise ValueError(f"EngineConfig.version debe ser > 0 (recibido {self.version})")

        self.hydraulics.validate()
        self.selection.validate()
        self.safety.validate()


DEFAULT_CONFIG = EngineConfig()
