from __future__ import annotations

import os

import pandas as pd

from irrig.core.models.results import CalculationResult
from irrig.core.postprocess.summary import (
    candidates_table,
    diagnostics_table,
    result_summary,
    segments_table,
    zones_table,
)


def export_candidates_csv(result: CalculationResult, path_csv: str) -> None:
    """
    Export all scored candidates (pipes per segment, pumps, sprinklers) to CSV.
    """
    candidates_table(result).to_csv(path_csv, index=False)


def export_zones_csv(result: CalculationResult, path_csv: str) -> None:
    zones_table(result).to_csv(path_csv, index=False)


def export_result_excel(result: CalculationResult, path_xlsx: str) -> None:
    """
    Export the full calculation to Excel, one sheet per table:
      resumen, tramos, candidatos, zonas, avisos
    """
    os.makedirs(os.path.dirname(path_xlsx) or ".", exist_ok=True)
    summary = pd.DataFrame(
        [{"key": k, "value": v} for k, v in result_summary(result).items()],
        columns=["key", "value"],
    )
    with pd.ExcelWriter(path_xlsx, engine="openpyxl") as writer:
        summary.to_excel(writer, sheet_name="resumen", index=False)
        segments_table(result).to_excel(writer, sheet_name="tramos", index=False)
        candidates_table(result).to_excel(writer, sheet_name="candidatos", index=False)
        zones_table(result).to_excel(writer, sheet_name="zonas", index=False)
        diagnostics_table(result).to_excel(writer, sheet_name="avisos", index=False)
