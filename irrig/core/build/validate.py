# irrig/core/build/validate.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from irrig.core.models.diagnostics import Diagnostic
from irrig.core.models.inputs import IrrigationInput, SegmentLengths


@dataclass(frozen=True)
class ValidationIssue:
    level: str              # "error" | "warning"
    message: str
    hint: Optional[str] = None


class InputValidationError(ValueError):
    """Raised when validation finds one or more errors."""
    def __init__(self, issues: List[ValidationIssue]):
        self.issues = issues
        lines = ["Irrigation input validation failed with errors:"]
        for it in issues:
            if it.level == "error":
                lines.append(f"- {it.message}" + (f" | hint: {it.hint}" if it.hint else ""))
        super().__init__("\n".join(lines))


def _check_segment(name: str, seg: Optional[SegmentLengths], issues: List[ValidationIssue]) -> None:
    if seg is None:
        return
    if seg.longest_m < 0 or seg.total_m < 0:
        issues.append(ValidationIssue(
            "error",
            f"{name} pipe lengths must be >= 0 (longest={seg.longest_m}, total={seg.total_m}).",
        ))
    if seg.longest_m > 0 and seg.total_m > 0 and seg.longest_m > seg.total_m:
        issues.append(ValidationIssue(
            "error",
            f"{name} pipe: longest run ({seg.longest_m} m) exceeds total length ({seg.total_m} m).",
            "The longest run is one of the runs counted in the total.",
        ))
    if seg.longest_m == 0 and seg.total_m > 0:
        issues.append(ValidationIssue(
            "warning",
            f"{name} pipe has total length {seg.total_m} m but longest run 0 m; no head loss will be computed.",
        ))


def validate_input(inp: IrrigationInput) -> List[ValidationIssue]:
    """
    Validate an IrrigationInput for basic consistency.
    Returns a list of issues (errors and warnings). If errors exist, caller may raise.
    """
    issues: List[ValidationIssue] = []

    # --- Zones ---
    if inp.number_of_zones < 1:
        issues.append(ValidationIssue("error", f"number_of_zones must be >= 1 (got {inp.number_of_zones})."))
    if inp.simultaneous_zones < 1:
        issues.append(ValidationIssue("error", f"simultaneous_zones must be >= 1 (got {inp.simultaneous_zones})."))
    if inp.simultaneous_zones > inp.number_of_zones:
        issues.append(ValidationIssue(
            "error",
            f"simultaneous_zones ({inp.simultaneous_zones}) exceeds number_of_zones ({inp.number_of_zones}).",
            "Zones running at the same time cannot outnumber the zones in the project.",
        ))

    # --- Lengths ---
    _check_segment("Branch", inp.branch, issues)
    _check_segment("Secondary", inp.secondary, issues)
    _check_segment("Main", inp.main, issues)

    # --- Scalars ---
    for name in ("farm_size_rai", "total_trees", "water_per_tree_liters", "irrigation_time_minutes",
                 "pressure_head_m", "pipe_age_years", "sprinklers_per_tree"):
        v = getattr(inp, name)
        if v < 0:
            issues.append(ValidationIssue("error", f"{name} must be >= 0 (got {v})."))

    if inp.static_head_m < 0:
        issues.append(ValidationIssue(
            "warning",
            f"static_head_m is negative ({inp.static_head_m}); the source is above the field.",
        ))

    return issues


def raise_on_errors(issues: List[ValidationIssue]) -> None:
    errors = [i for i in issues if i.level == "error"]
    if errors:
        raise InputValidationError(errors)


# Lower bounds applied before computing (field, minimum)
SANITIZE_MINIMUMS: Tuple[Tuple[str, float], ...] = (
    ("total_trees", 1.0),
    ("water_per_tree_liters", 0.1),
    ("irrigation_time_minutes", 5.0),
    ("sprinklers_per_branch", 1.0),
    ("branches_per_secondary", 1.0),
    ("secondaries_per_main", 1.0),
)


def sanitize_input(inp: IrrigationInput) -> Tuple[IrrigationInput, List[Diagnostic]]:
    """
    Clamp values that would make the flow formulas degenerate. Every change is reported.
    Retorna un nuevo IrrigationInput (no muta el original).
    """
    changes = {}
    diags: List[Diagnostic] = []
    for name, minimum in SANITIZE_MINIMUMS:
        v = getattr(inp, name)
        if v < minimum:
            changes[name] = minimum
            diags.append(Diagnostic(
                code="input.clamped",
                severity="info",
                message=f"{name} raised from {v} to {minimum}.",
                context={"field": name, "original": v, "value": minimum},
            ))
    if inp.sprinklers_per_tree <= 0:
        changes["sprinklers_per_tree"] = 1.0
        diags.append(Diagnostic(
            code="input.clamped",
            severity="info",
            message=f"sprinklers_per_tree raised from {inp.sprinklers_per_tree} to 1.0.",
            context={"field": "sprinklers_per_tree", "original": inp.sprinklers_per_tree, "value": 1.0},
        ))
    if not changes:
        return inp, diags
    return replace(inp, **changes), diags
