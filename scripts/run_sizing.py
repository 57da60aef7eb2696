import logging
import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from irrig.adapters.excel.read_excel import load_catalog_from_excel, load_input_from_excel
from irrig.core.build.config import EngineConfig
from irrig.core.solver.orchestrator import compute
from irrig.core.postprocess.summary import result_summary, segments_table
from irrig.core.postprocess.export import export_result_excel
from irrig.core.postprocess.plots import plot_zone_heads


# Uso: python scripts/run_sizing.py catalogo.xlsx entrada.xlsx [salida_dir]
if len(sys.argv) < 3:
    print("uso: run_sizing.py <catalogo.xlsx> <entrada.xlsx> [salida_dir]")
    sys.exit(2)

CATALOG_XLSX = sys.argv[1]
INPUT_XLSX = sys.argv[2]
OUT_DIR = Path(sys.argv[3] if len(sys.argv) > 3 else "salida")

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

# 1) Cargar Excel
catalog, config = load_catalog_from_excel(CATALOG_XLSX)
inp = load_input_from_excel(INPUT_XLSX)
cfg = EngineConfig.from_dict(config)

print("Catálogo:", len(catalog.pipes), "tuberías,", len(catalog.pumps), "bombas,",
      len(catalog.sprinklers), "aspersores")

# 2) Cálculo
res = compute(inp, catalog, cfg=cfg)
if res is None:
    print("Catálogo incompleto: no se puede calcular.")
    sys.exit(1)

# 3) Resumen
print("\n--- Resumen ---")
for k, v in result_summary(res).items():
    print(f"{k}: {v}")

print("\n--- Tramos ---")
print(segments_table(res).to_string(index=False))

if res.diagnostics:
    print("\n--- Avisos ---")
    for d in res.diagnostics:
        print(f"[{d.severity}] {d.code}: {d.message}")

# 4) Exportar
export_result_excel(res, str(OUT_DIR / "dimensionamiento.xlsx"))
plot_zone_heads(res, out_png=str(OUT_DIR / "cargas_zonas.png"))
print("\nResultados en", OUT_DIR)
