from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from irrig.core.models.catalog import Catalog
from irrig.core.models.inputs import IrrigationInput


# -----------------------------
# Excel contract
# -----------------------------
SHEET_PIPES = "pipes"
SHEET_PUMPS = "pumps"
SHEET_SPRINKLERS = "sprinklers"
SHEET_CONFIG = "config"
SHEET_INPUT = "input"

# Required columns (snake_case); any other column is passed through as a catalog attribute
REQ_PIPES = {"id", "product_code", "pipe_type", "size_mm", "length_m", "price"}
REQ_PUMPS = {"id", "product_code", "price"}
REQ_SPRINKLERS = {"id", "product_code", "price", "flow_range_lph"}
REQ_KEY_VALUE = {"key", "value"}

# Numeric columns that must parse when present in a row
NUM_PIPES = ("size_mm", "length_m", "price")
NUM_PUMPS = ("price",)
NUM_SPRINKLERS = ("price",)

REQ_INPUT_KEYS = {
    "farm_size_rai", "total_trees", "water_per_tree_liters", "number_of_zones",
    "simultaneous_zones", "irrigation_time_minutes", "static_head_m", "pressure_head_m",
    "longest_branch_pipe_m", "total_branch_pipe_m",
}
INPUT_KEYS = REQ_INPUT_KEYS | {
    "longest_secondary_pipe_m", "total_secondary_pipe_m", "longest_main_pipe_m", "total_main_pipe_m",
    "sprinklers_per_tree", "pipe_age_years",
    "sprinklers_per_branch", "sprinklers_per_longest_branch",
    "branches_per_secondary", "branches_per_longest_secondary",
    "secondaries_per_main", "secondaries_per_longest_main",
}


def _is_blank(x: Any) -> bool:
    return x is None or (isinstance(x, float) and pd.isna(x)) or (isinstance(x, str) and x.strip() == "")


def _norm_str(x: Any) -> str:
    if _is_blank(x):
        return ""
    return str(x).strip()


def _norm_lower(x: Any) -> str:
    return _norm_str(x).lower()


def _snake_key(x: Any) -> str:
    # totalTrees -> total_trees; Total_Trees -> total_trees
    s = _norm_str(x)
    s = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", s)
    return s.replace(" ", "_").lower()


def _require_columns(df: pd.DataFrame, required: set[str], sheet: str) -> None:
    missing = sorted(list(required - set(df.columns)))
    if missing:
        raise ValueError(f"Sheet '{sheet}' is missing required columns: {missing}")


def _as_float(x: Any, field: str, sheet: str, row_hint: str) -> float:
    try:
        if _is_blank(x):
            raise ValueError("empty")
        return float(x)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid numeric value for '{field}' in sheet '{sheet}' ({row_hint}): {x!r}") from e


def _read_sheet(source: Any, sheet: str) -> pd.DataFrame:
    df = pd.read_excel(source, sheet_name=sheet, engine="openpyxl")
    df.columns = [_norm_lower(c) for c in df.columns]
    return df


def _records(df: pd.DataFrame, sheet: str, numeric: Tuple[str, ...]) -> List[Dict[str, Any]]:
    """
    Filas -> registros de catálogo. Celdas vacías se omiten (el normalizador
    aplica sus valores por defecto); ids duplicados son error.
    """
    ids = [_norm_str(x) for x in df["id"].tolist() if _norm_str(x)]
    dup = sorted({x for x in ids if ids.count(x) > 1})
    if dup:
        raise ValueError(f"Duplicate id in sheet '{sheet}': {dup}")

    out: List[Dict[str, Any]] = []
    for _, r in df.iterrows():
        item_id = _norm_str(r["id"])
        if not item_id:
            continue  # allow blank rows
        rec: Dict[str, Any] = {k: (v.strip() if isinstance(v, str) else v) for k, v in r.items() if not _is_blank(v)}
        rec["id"] = item_id
        for col in numeric:
            rec[col] = _as_float(r[col], col, sheet, f"id={item_id}")
        out.append(rec)
    return out


def _key_values(df: pd.DataFrame, norm_key=_norm_lower) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for _, r in df.iterrows():
        key = norm_key(r["key"])
        if not key:
            continue
        val = r["value"]
        if _is_blank(val):
            continue

        # Try to coerce to float if looks numeric
        if isinstance(val, str):
            v = val.strip()
            try:
                out[key] = float(v)
            except ValueError:
                out[key] = v
            continue

        out[key] = val
    return out


def load_catalog_from_excel(path: str) -> Tuple[Catalog, Dict[str, Any]]:
    """
    Reads 'pipes', 'pumps', 'sprinklers' and the optional 'config' sheet and returns:
      - Catalog (normalized items; inactive rows dropped)
      - config dict from 'config' sheet (keys normalized), suitable for EngineConfig.from_dict
    """
    config: Dict[str, Any] = {}
    with pd.ExcelFile(path, engine="openpyxl") as xls:
        df_pipes = _read_sheet(xls, SHEET_PIPES)
        df_pumps = _read_sheet(xls, SHEET_PUMPS)
        df_spr = _read_sheet(xls, SHEET_SPRINKLERS)
        df_config = _read_sheet(xls, SHEET_CONFIG) if SHEET_CONFIG in xls.sheet_names else None

    _require_columns(df_pipes, REQ_PIPES, SHEET_PIPES)
    _require_columns(df_pumps, REQ_PUMPS, SHEET_PUMPS)
    _require_columns(df_spr, REQ_SPRINKLERS, SHEET_SPRINKLERS)

    if df_config is not None:
        _require_columns(df_config, REQ_KEY_VALUE, SHEET_CONFIG)
        config = _key_values(df_config)

    catalog = Catalog.from_records(
        pipes=_records(df_pipes, SHEET_PIPES, NUM_PIPES),
        pumps=_records(df_pumps, SHEET_PUMPS, NUM_PUMPS),
        sprinklers=_records(df_spr, SHEET_SPRINKLERS, NUM_SPRINKLERS),
    )
    return catalog, config


def load_input_from_excel(path: str, sheet: Optional[str] = None) -> IrrigationInput:
    """
    Reads a key/value sheet (default 'input') and builds an IrrigationInput.
    Keys may be snake_case (total_trees) or camelCase (totalTrees); both are
    normalized to snake_case and any key outside INPUT_KEYS is rejected.
    Secondary/main lengths left blank or 0 mean the segment is not used.
    """
    sheet = sheet or SHEET_INPUT
    df = _read_sheet(path, sheet)
    _require_columns(df, REQ_KEY_VALUE, sheet)
    values = _key_values(df, norm_key=_snake_key)

    unknown = sorted(set(values) - INPUT_KEYS)
    if unknown:
        raise ValueError(f"Sheet '{sheet}' has unknown keys: {unknown}")

    missing = sorted(REQ_INPUT_KEYS - set(values))
    if missing:
        raise ValueError(f"Sheet '{sheet}' is missing required keys: {missing}")
    for key in REQ_INPUT_KEYS:
        values[key] = _as_float(values[key], key, sheet, f"key={key}")

    return IrrigationInput.from_dict(values)
