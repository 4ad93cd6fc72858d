"""Build simulation inputs from JSON configuration files.

A configuration names catalog transporters and overrides only what differs
from the defaults::

    {
      "transporters": {"ENaC": {"placement": "apical"},
                       "NaKATPase": {"placement": "basolateral", "vmax": 1.5},
                       "SGLT": {"placement": "apical", "isoform": "SGLT2"}},
      "apical_external": {"Na+": 140},
      "paracellular": {"mode": "cation", "cation_permeability": 0.5},
      "solver": {"max_steps": 2000, "dt": 0.05},
      "policies": {"external_pools": "finite"}
    }
"""

from collections.abc import Mapping
from dataclasses import replace
import json
import logging
from pathlib import Path
from typing import Any

from .catalog import DEFAULT_EXTERNAL, DEFAULT_INTRACELLULAR, default_transporters
from .params import ParacellularSettings, SimulationInputs, Transporter, with_isoform, validate_inputs

logger = logging.getLogger(__name__)

TOP_LEVEL_KEYS = {
    "transporters",
    "apical_external",
    "basolateral_external",
    "baseline_intracellular",
    "paracellular",
    "solutes",
    "solver",
    "policies",
}
TRANSPORTER_KEYS = {"placement", "vmax", "km", "density", "isoform"}
PARACELLULAR_KEYS = {"mode", "cation_permeability", "anion_permeability"}
SOLVER_KEYS = {"max_steps", "flux_threshold", "dt"}
POLICY_KEYS = {
    "external_pools",
    "pool_size_inverse",
    "intracellular_policy",
    "transepithelial_policy",
    "water_policy",
}


def _check_keys(section: str, payload: Mapping[str, Any], allowed: set[str], errors: list[str]) -> None:
    for key in sorted(set(payload) - allowed):
        errors.append(f"{section} has unknown key {key!r}")


def _check_isoform(transporter: Transporter, overrides: Mapping[str, Any], errors: list[str]) -> None:
    isoform = overrides.get("isoform")
    if isoform is not None and isoform not in transporter.isoforms:
        errors.append(f"transporters[{transporter.transporter_id}] has unknown isoform {isoform!r}")


def _apply_overrides(
    transporter: Transporter,
    overrides: Mapping[str, Any],
) -> Transporter:
    if overrides.get("isoform") is not None:
        transporter = with_isoform(transporter, overrides["isoform"])
    changes = {key: overrides[key] for key in ("placement", "vmax", "km", "density") if key in overrides}
    return replace(transporter, **changes) if changes else transporter


def inputs_from_dict(payload: Mapping[str, Any]) -> SimulationInputs:
    """Build and validate ``SimulationInputs`` from a JSON-shaped mapping."""

    errors: list[str] = []
    _check_keys("configuration", payload, TOP_LEVEL_KEYS, errors)

    overrides = payload.get("transporters", {})
    catalog = default_transporters()
    by_id = {t.transporter_id: t for t in catalog}
    for transporter_id, fields in overrides.items():
        if transporter_id not in by_id:
            errors.append(f"transporters has unknown id {transporter_id!r}")
        else:
            _check_keys(f"transporters[{transporter_id}]", fields, TRANSPORTER_KEYS, errors)
            _check_isoform(by_id[transporter_id], fields, errors)

    paracellular = payload.get("paracellular", {})
    solver = payload.get("solver", {})
    policies = payload.get("policies", {})
    _check_keys("paracellular", paracellular, PARACELLULAR_KEYS, errors)
    _check_keys("solver", solver, SOLVER_KEYS, errors)
    _check_keys("policies", policies, POLICY_KEYS, errors)

    if errors:
        raise ValueError("; ".join(errors))

    transporters = tuple(
        _apply_overrides(t, overrides[t.transporter_id]) if t.transporter_id in overrides else t
        for t in catalog
    )

    inputs = SimulationInputs(
        transporters=transporters,
        apical_external={**DEFAULT_EXTERNAL, **payload.get("apical_external", {})},
        basolateral_external={**DEFAULT_EXTERNAL, **payload.get("basolateral_external", {})},
        baseline_intracellular={**DEFAULT_INTRACELLULAR, **payload.get("baseline_intracellular", {})},
        paracellular=ParacellularSettings(**paracellular),
        **solver,
        **policies,
    )
    if "solutes" in payload:
        inputs = replace(inputs, solutes=tuple(payload["solutes"]))

    validate_inputs(inputs)
    return inputs


def load_inputs(path: str | Path) -> SimulationInputs:
    """Read a JSON configuration file into validated inputs."""

    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    inputs = inputs_from_dict(payload)
    logger.info("Loaded configuration from %s", config_path)
    return inputs
