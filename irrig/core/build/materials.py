# irrig/core/build/materials.py
from __future__ import annotations

from typing import Dict, Optional
import unicodedata

# ============================================================
# Canonicalización de materiales de tubería
# ============================================================
# Entrada (catálogo / Excel)  ->  Canonical (core)
#
# Regla:
#  - keys en lowercase
#  - sin tildes
#  - sin espacios extremos
#  - valores canónicos estables
# ============================================================

MATERIAL_CANONICAL_MAP = {

    # ----------------
    # HDPE PE 100
    # ----------------
    "hdpe pe 100": "hdpe_pe100",
    "hdpe pe100": "hdpe_pe100",
    "pe 100": "hdpe_pe100",
    "pe100": "hdpe_pe100",
    "hdpe": "hdpe_pe100",

    # ----------------
    # HDPE PE 80
    # ----------------
    "hdpe pe 80": "hdpe_pe80",
    "hdpe pe80": "hdpe_pe80",
    "pe 80": "hdpe_pe80",
    "pe80": "hdpe_pe80",

    # ----------------
    # LDPE
    # ----------------
    "ldpe": "ldpe",
    "pe": "ldpe",
    "polyethylene": "ldpe",

    # ----------------
    # PVC
    # ----------------
    "pvc": "pvc",
    "upvc": "pvc",
    "pvc-u": "pvc",

    # ----------------
    # PE-RT
    # ----------------
    "pe-rt": "pe_rt",
    "pert": "pe_rt",
    "pe rt": "pe_rt",

    # ----------------
    # Flexible PE (lay-flat / soft hose)
    # ----------------
    "flexible pe": "flexible_pe",
    "flex pe": "flexible_pe",
    "soft pe": "flexible_pe",
}

# Hazen-Williams C for new pipe
BASE_C_BY_MATERIAL: Dict[str, float] = {
    "pvc": 150.0,
    "hdpe_pe100": 145.0,
    "pe_rt": 145.0,
    "hdpe_pe80": 140.0,
    "ldpe": 135.0,
    "flexible_pe": 130.0,
}

DEFAULT_BASE_C = 135.0


def _strip_accents(s: str) -> str:
    return "".join(ch for ch in unicodedata.normalize("NFKD", s) if not unicodedata.combining(ch))


def canonical_material(name: Optional[str]) -> Optional[str]:
    """
    Devuelve el material canónico, o None si no se reconoce.
    """
    if not name:
        return None
    key = _strip_accents(str(name)).strip().lower()
    key = " ".join(key.split())
    if key in BASE_C_BY_MATERIAL:
        return key
    return MATERIAL_CANONICAL_MAP.get(key)


def base_c(material: Optional[str]) -> float:
    mat = canonical_material(material)
    if mat is None:
        return DEFAULT_BASE_C
    return BASE_C_BY_MATERIAL[mat]
