# irrig/core/models/diagnostics.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal


DiagnosticSeverity = Literal["info", "warning", "critical"]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    Aviso estructurado que acompaña a un resultado (degradación, selección no ideal, ...).

    code: identificador estable, p.ej. "flow.fallback", "catalog.range", "velocity.warning_high"
    """
    code: str
    severity: DiagnosticSeverity
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
