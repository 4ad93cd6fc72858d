"""Epithelial solute and water transport simulation package."""

from .activation import DEFAULT_ACTIVATION_RULES, ActivationRule, evaluate_activation, is_active
from .aggregate import (
    PAIRED_PATHWAYS,
    PairedPathway,
    TransepithelialSummary,
    aggregate_transepithelial,
    classify_tep,
    compute_tep,
    compute_transepithelial_flux,
    compute_water_flux,
    has_transcellular_water_path,
)
from .catalog import default_inputs, default_transporters, place, with_ph_modulation
from .config import inputs_from_dict, load_inputs
from .constants import SOLUTES
from .kinetics import (
    GradientDrivenChannel,
    MultiSiteLimitingMM,
    MultiTermPump,
    PhModulation,
    SingleSiteMM,
    Substrate,
    compute_transporter_rate,
    distribute_rate,
)
from .paracellular import compute_paracellular_flux
from .params import (
    ParacellularSettings,
    SimulationInputs,
    Transporter,
    coerce_concentrations,
    validate_inputs,
    with_isoform,
)
from .results import (
    SimulationOutputs,
    build_concentration_table,
    build_excel_bytes,
    build_flux_table,
    export_csv,
    export_metadata_json,
)
from .solver import compute_fluxes, simulate, solve_steady_state

__all__ = [
    "SOLUTES",
    "ActivationRule",
    "DEFAULT_ACTIVATION_RULES",
    "evaluate_activation",
    "is_active",
    "PAIRED_PATHWAYS",
    "PairedPathway",
    "TransepithelialSummary",
    "aggregate_transepithelial",
    "classify_tep",
    "compute_tep",
    "compute_transepithelial_flux",
    "compute_water_flux",
    "has_transcellular_water_path",
    "default_inputs",
    "default_transporters",
    "place",
    "with_ph_modulation",
    "inputs_from_dict",
    "load_inputs",
    "GradientDrivenChannel",
    "MultiSiteLimitingMM",
    "MultiTermPump",
    "PhModulation",
    "SingleSiteMM",
    "Substrate",
    "compute_transporter_rate",
    "distribute_rate",
    "compute_paracellular_flux",
    "ParacellularSettings",
    "SimulationInputs",
    "Transporter",
    "coerce_concentrations",
    "validate_inputs",
    "with_isoform",
    "SimulationOutputs",
    "build_concentration_table",
    "build_excel_bytes",
    "build_flux_table",
    "export_csv",
    "export_metadata_json",
    "compute_fluxes",
    "simulate",
    "solve_steady_state",
]
