import csv
import io
import json

import pandas as pd

from saltsim.catalog import default_inputs
from saltsim.constants import SOLUTES
from saltsim.params import SimulationInputs
from saltsim.results import (
    build_concentration_table,
    build_excel_bytes,
    build_flux_table,
    export_csv,
    export_metadata_json,
)
from saltsim.solver import simulate


def _baseline_inputs() -> SimulationInputs:
    return default_inputs({"ENaC": "apical", "NaKATPase": "basolateral", "AQP": "both"}, max_steps=40)


def test_export_integrity_csv_and_metadata_json(tmp_path) -> None:
    inputs = _baseline_inputs()
    outputs = simulate(inputs)

    csv_path = tmp_path / "run.csv"
    json_path = tmp_path / "run_metadata.json"
    export_csv(outputs, csv_path)
    export_metadata_json(inputs, outputs, json_path)

    with csv_path.open("r", newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["time", *SOLUTES]
    assert len(rows) == len(outputs.time) + 1

    with json_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    assert "inputs" in payload
    assert "outputs_summary" in payload
    assert "metadata" in payload
    assert payload["inputs"]["dt"] == inputs.dt
    assert payload["outputs_summary"]["n_steps"] == outputs.n_steps
    assert payload["outputs_summary"]["status"] == outputs.status
    assert payload["metadata"]["placed_transporters"] == ["AQP", "ENaC", "NaKATPase"]


def test_flux_and_concentration_tables_cover_every_solute() -> None:
    outputs = simulate(_baseline_inputs())

    fluxes = build_flux_table(outputs)
    assert list(fluxes.columns) == ["solute", "apical", "basolateral", "paracellular", "net", "transepithelial"]
    assert fluxes["solute"].tolist() == list(SOLUTES)
    na_row = fluxes.set_index("solute").loc["Na+"]
    assert na_row["transepithelial"] == outputs.transepithelial_flux["Na+"]

    concentrations = build_concentration_table(outputs)
    assert list(concentrations.columns) == ["solute", "apical_external", "intracellular", "basolateral_external"]
    assert len(concentrations) == len(SOLUTES)


def test_excel_export_has_all_sheets() -> None:
    outputs = simulate(_baseline_inputs())
    workbook = pd.read_excel(io.BytesIO(build_excel_bytes(outputs)), sheet_name=None)

    assert set(workbook) == {"fluxes", "concentrations", "trajectory"}
    assert len(workbook["trajectory"]) == outputs.n_steps + 1
    assert workbook["trajectory"].columns[0] == "time"
