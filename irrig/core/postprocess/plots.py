from __future__ import annotations

import os

import matplotlib.pyplot as plt

from irrig.core.models.results import CalculationResult


def plot_zone_heads(
    result: CalculationResult,
    *,
    out_png: str,
    title: str = "Carga total por zona",
) -> None:
    """
    Barras de carga total por zona (zona crítica resaltada) con la carga
    requerida de la bomba (cruda y con factor de seguridad) como líneas horizontales.
    Sin zonas: una sola barra con la carga cruda del sistema.
    """
    os.makedirs(os.path.dirname(out_png) or ".", exist_ok=True)

    if result.zones:
        labels = [z.zone_id for z in result.zones]
        heads = [z.total_head for z in result.zones]
        critical = result.pump_resolution.critical_zone
        colors = ["tab:red" if z.zone_id == critical else "tab:blue" for z in result.zones]
    else:
        labels = ["sistema"]
        heads = [result.pump_head_raw_m]
        colors = ["tab:blue"]

    plt.figure()
    plt.bar(labels, heads, color=colors)
    plt.axhline(result.pump_head_raw_m, color="k", linestyle="--", label="H bomba (sin FS)")
    plt.axhline(result.pump_head_required_m, color="tab:orange", linestyle="-",
                label=f"H bomba (FS {result.safety_factor:.2f})")
    plt.xlabel("zona")
    plt.ylabel("H [m]")
    plt.title(title)
    plt.legend()
    plt.grid(True, axis="y")
    plt.tight_layout()
    plt.savefig(out_png, dpi=150)
    plt.close()
