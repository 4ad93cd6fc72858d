from dataclasses import replace
import logging

import numpy as np
import pytest

from saltsim.catalog import DEFAULT_INTRACELLULAR, default_inputs, place
from saltsim.constants import H_FLOOR, SOLUTES
from saltsim.params import ParacellularSettings, SimulationInputs
from saltsim.solver import compute_fluxes, simulate, solve_steady_state


def _baseline_inputs() -> SimulationInputs:
    return default_inputs()


def _sodium_absorbing_inputs(**overrides) -> SimulationInputs:
    return default_inputs({"ENaC": "apical", "NaKATPase": "basolateral"}, **overrides)


def test_fixed_point_without_transporters_or_leak() -> None:
    outputs = simulate(_baseline_inputs())

    assert outputs.converged is True
    assert outputs.status == "converged"
    assert outputs.n_steps == 1
    assert all(outputs.net_flux[s] == 0.0 for s in SOLUTES)
    assert dict(outputs.intracellular) == DEFAULT_INTRACELLULAR
    assert all(flux == 0.0 for _, flux in outputs.transepithelial)
    assert outputs.tep_label == "neutral"


def test_transepithelial_list_covers_every_solute_with_water_last() -> None:
    outputs = simulate(_baseline_inputs())
    names = [solute for solute, _ in outputs.transepithelial]
    assert names == list(SOLUTES[:-1]) + ["H2O"]


def test_sodium_absorption_end_to_end() -> None:
    outputs = simulate(_sodium_absorbing_inputs())

    assert outputs.transepithelial_flux["Na+"] > 0.0
    assert 0.0 < outputs.intracellular["Na+"] < 145.0
    assert outputs.apical_flux["Na+"] > 0.0
    assert outputs.basolateral_flux["Na+"] < 0.0


def test_pump_accumulates_potassium_so_solve_exhausts() -> None:
    outputs = simulate(_sodium_absorbing_inputs(max_steps=200))

    assert outputs.converged is False
    assert outputs.status == "exhausted"
    assert outputs.n_steps == 200
    assert outputs.intracellular["K+"] > DEFAULT_INTRACELLULAR["K+"]


def test_sodium_channel_is_gated_off_without_pump() -> None:
    outputs = simulate(default_inputs({"ENaC": "apical"}))

    assert outputs.converged is True
    assert outputs.transepithelial_flux["Na+"] == 0.0
    assert outputs.intracellular["Na+"] == DEFAULT_INTRACELLULAR["Na+"]


def test_empty_rule_table_lets_channel_run_alone() -> None:
    outputs = simulate(default_inputs({"ENaC": "apical"}, activation_rules=()))
    assert outputs.intracellular["Na+"] > DEFAULT_INTRACELLULAR["Na+"]


def test_concentrations_stay_non_negative_with_many_transporters() -> None:
    placements = {
        "AQP": "both",
        "SGLT": "apical",
        "NKCC": "basolateral",
        "NHE": "apical",
        "ClHCO3Ex": "apical",
        "KChannel": "basolateral",
        "CFTR": "apical",
        "NaKATPase": "basolateral",
        "GLUT2": "basolateral",
        "NBC": "basolateral",
        "HATPase": "apical",
        "TRPV6": "apical",
        "PMCA": "basolateral",
        "NAAT": "apical",
    }
    inputs = default_inputs(
        placements,
        paracellular=ParacellularSettings(mode="anion", anion_permeability=0.5),
        external_pools="finite",
        max_steps=300,
    )
    outputs = simulate(inputs)

    for compartment in (outputs.apical_external, outputs.intracellular, outputs.basolateral_external):
        assert all(value >= 0.0 for value in compartment.values())
    assert float(outputs.intracellular_history.min()) >= 0.0
    assert outputs.intracellular["H+"] >= H_FLOOR


def test_proton_floor_holds_under_strong_extrusion() -> None:
    transporters = place(default_inputs().transporters, {"HATPase": "apical"})
    transporters = tuple(
        replace(t, vmax=50.0) if t.transporter_id == "HATPase" else t for t in transporters
    )
    outputs = simulate(replace(_baseline_inputs(), transporters=transporters))

    h_column = SOLUTES.index("H+")
    assert outputs.intracellular["H+"] >= H_FLOOR
    assert float(outputs.intracellular_history[:, h_column].min()) >= H_FLOOR


def test_simulation_is_deterministic() -> None:
    inputs = _sodium_absorbing_inputs(max_steps=150)
    a = simulate(inputs)
    b = simulate(inputs)

    assert dict(a.intracellular) == dict(b.intracellular)
    assert dict(a.apical_flux) == dict(b.apical_flux)
    assert dict(a.basolateral_flux) == dict(b.basolateral_flux)
    assert dict(a.net_flux) == dict(b.net_flux)
    assert a.transepithelial == b.transepithelial
    assert a.tep == b.tep
    assert np.array_equal(a.intracellular_history, b.intracellular_history)


def test_trajectory_shape_follows_step_count() -> None:
    outputs = simulate(_sodium_absorbing_inputs(max_steps=1))

    assert outputs.n_steps == 1
    assert outputs.time.tolist() == pytest.approx([0.0, 0.1])
    assert outputs.intracellular_history.shape == (2, len(SOLUTES))
    assert outputs.intracellular_history[0, SOLUTES.index("Na+")] == DEFAULT_INTRACELLULAR["Na+"]


def test_result_bundle_is_read_only() -> None:
    outputs = simulate(_baseline_inputs())
    with pytest.raises(TypeError):
        outputs.intracellular["Na+"] = 0.0
    with pytest.raises(ValueError):
        outputs.intracellular_history[0, 0] = 1.0
    with pytest.raises(TypeError):
        outputs.metadata["status"] = "converged"
    assert isinstance(outputs.metadata["placed_transporters"], tuple)


def test_reset_policy_ignores_previous_state() -> None:
    previous = dict(DEFAULT_INTRACELLULAR, **{"Na+": 50.0})
    outputs = simulate(_sodium_absorbing_inputs(max_steps=5), previous_intracellular=previous)
    assert outputs.intracellular_history[0, SOLUTES.index("Na+")] == DEFAULT_INTRACELLULAR["Na+"]


def test_carry_policy_starts_from_previous_state() -> None:
    first = simulate(_sodium_absorbing_inputs(max_steps=50))
    second = simulate(
        _sodium_absorbing_inputs(max_steps=5, intracellular_policy="carry"),
        previous_intracellular=first.intracellular,
    )
    assert second.intracellular_history[0].tolist() == [first.intracellular[s] for s in SOLUTES]


def test_previous_state_with_untracked_solute_is_rejected() -> None:
    with pytest.raises(ValueError) as exc:
        simulate(_baseline_inputs(), previous_intracellular={"Urea": 1.0})
    assert "untracked solutes" in str(exc.value)


def test_infinite_pools_keep_external_fluid_fixed() -> None:
    outputs = simulate(_sodium_absorbing_inputs(max_steps=100))
    assert outputs.apical_external["Na+"] == 145.0
    assert outputs.basolateral_external["Na+"] == 145.0


def test_finite_pools_deplete_apical_and_enrich_basolateral() -> None:
    outputs = simulate(_sodium_absorbing_inputs(max_steps=100, external_pools="finite"))
    assert outputs.apical_external["Na+"] < 145.0
    assert outputs.basolateral_external["Na+"] > 145.0


def test_paracellular_leak_drives_transepithelial_flux_and_water() -> None:
    inputs = _baseline_inputs()
    inputs = replace(
        inputs,
        apical_external=dict(inputs.apical_external, **{"Na+": 150.0}),
        basolateral_external=dict(inputs.basolateral_external, **{"Na+": 140.0}),
        paracellular=ParacellularSettings(mode="cation", cation_permeability=1.0),
        max_steps=10,
    )
    outputs = simulate(inputs)

    assert outputs.paracellular_flux["Na+"] == pytest.approx(10.0)
    assert outputs.apical_flux["Na+"] == 0.0
    assert outputs.transepithelial_flux["Na+"] == pytest.approx(10.0)
    assert outputs.transepithelial_flux["H2O"] == pytest.approx(2.5)
    assert outputs.apical_flux["H2O"] == pytest.approx(2.5)
    assert outputs.basolateral_flux["H2O"] == pytest.approx(-2.5)
    assert outputs.tep_label == "apical negative, large"


def test_negative_boundary_concentrations_are_coerced_to_zero() -> None:
    inputs = _baseline_inputs()
    inputs = replace(inputs, apical_external=dict(inputs.apical_external, Glucose=-5.0))
    outputs = simulate(inputs)
    assert outputs.apical_external["Glucose"] == 0.0


def test_tracked_subset_limits_every_map() -> None:
    subset = ("Na+", "K+", "H+", "H2O")
    outputs = simulate(_sodium_absorbing_inputs(solutes=subset, max_steps=20))

    assert tuple(outputs.intracellular) == subset
    assert tuple(outputs.net_flux) == subset
    assert [s for s, _ in outputs.transepithelial] == ["Na+", "K+", "H+", "H2O"]
    assert outputs.intracellular_history.shape == (21, len(subset))


def test_compute_fluxes_reports_membrane_sides_separately() -> None:
    inputs = _sodium_absorbing_inputs()
    active = {"ENaC": True, "NaKATPase": True}
    fluxes = compute_fluxes(
        inputs,
        inputs.baseline_intracellular,
        inputs.apical_external,
        inputs.basolateral_external,
        active,
    )
    assert fluxes.apical["Na+"] == pytest.approx(133.0 / 134.0)
    assert fluxes.basolateral["Na+"] == pytest.approx(-3.0 * 1.2 * 0.8)
    assert fluxes.basolateral["K+"] == pytest.approx(2.0 * 1.2 * 0.8)
    assert fluxes.net["Na+"] == pytest.approx(fluxes.apical["Na+"] + fluxes.basolateral["Na+"])


def test_solve_steady_state_logs_terminal_status(caplog) -> None:
    caplog.set_level(logging.INFO, logger="saltsim.solver")
    inputs = _baseline_inputs()
    state = solve_steady_state(inputs, inputs.baseline_intracellular)
    assert state.converged
    assert "Steady state reached after 1 steps" in caplog.text
