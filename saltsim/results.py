"""Simulation result data structures and exports."""

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import asdict
import csv
import io
import json
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from .params import SimulationInputs


@dataclass(frozen=True, slots=True)
class SimulationOutputs:
    solutes: tuple[str, ...]
    apical_external: Mapping[str, float]
    intracellular: Mapping[str, float]
    basolateral_external: Mapping[str, float]
    apical_flux: Mapping[str, float]
    basolateral_flux: Mapping[str, float]
    net_flux: Mapping[str, float]
    paracellular_flux: Mapping[str, float]
    transepithelial: tuple[tuple[str, float], ...]
    tep: float
    tep_label: str
    converged: bool
    status: str
    n_steps: int
    time: np.ndarray
    intracellular_history: np.ndarray
    metadata: Mapping[str, Any]

    @property
    def transepithelial_flux(self) -> dict[str, float]:
        return dict(self.transepithelial)


def build_flux_table(outputs: SimulationOutputs) -> pd.DataFrame:
    """Per-solute transmembrane, paracellular and transepithelial fluxes."""

    te = outputs.transepithelial_flux
    return pd.DataFrame(
        {
            "solute": list(outputs.solutes),
            "apical": [float(outputs.apical_flux[s]) for s in outputs.solutes],
            "basolateral": [float(outputs.basolateral_flux[s]) for s in outputs.solutes],
            "paracellular": [float(outputs.paracellular_flux[s]) for s in outputs.solutes],
            "net": [float(outputs.net_flux[s]) for s in outputs.solutes],
            "transepithelial": [float(te.get(s, 0.0)) for s in outputs.solutes],
        }
    )


def build_concentration_table(outputs: SimulationOutputs) -> pd.DataFrame:
    """Final concentrations in apical, intracellular, basolateral order."""

    return pd.DataFrame(
        {
            "solute": list(outputs.solutes),
            "apical_external": [float(outputs.apical_external[s]) for s in outputs.solutes],
            "intracellular": [float(outputs.intracellular[s]) for s in outputs.solutes],
            "basolateral_external": [float(outputs.basolateral_external[s]) for s in outputs.solutes],
        }
    )


def build_trajectory_table(outputs: SimulationOutputs) -> pd.DataFrame:
    df = pd.DataFrame(outputs.intracellular_history, columns=list(outputs.solutes))
    df.insert(0, "time", outputs.time)
    return df


def build_excel_bytes(outputs: SimulationOutputs) -> bytes:
    """Build XLSX export bytes with flux, concentration and trajectory sheets."""

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        build_flux_table(outputs).to_excel(writer, sheet_name="fluxes", index=False)
        build_concentration_table(outputs).to_excel(writer, sheet_name="concentrations", index=False)
        build_trajectory_table(outputs).to_excel(writer, sheet_name="trajectory", index=False)
    return output.getvalue()


def export_csv(outputs: SimulationOutputs, path: str | Path) -> None:
    """Export the intracellular trajectory to CSV with deterministic column order."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["time", *outputs.solutes])
        for idx in range(len(outputs.time)):
            row = [f"{outputs.time[idx]:.12g}"]
            row.extend(f"{value:.12g}" for value in outputs.intracellular_history[idx])
            writer.writerow(row)


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def export_metadata_json(
    inputs: SimulationInputs,
    outputs: SimulationOutputs,
    path: str | Path,
) -> None:
    """Export simulation inputs/results metadata to JSON."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload: dict[str, Any] = {
        "inputs": asdict(inputs),
        "outputs_summary": {
            "n_steps": outputs.n_steps,
            "converged": outputs.converged,
            "status": outputs.status,
            "final_intracellular": dict(outputs.intracellular),
            "transepithelial": dict(outputs.transepithelial),
            "tep": outputs.tep,
            "tep_label": outputs.tep_label,
        },
        "metadata": dict(outputs.metadata),
    }

    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True, default=_json_default)
