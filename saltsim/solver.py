"""Explicit-Euler steady-state integration of the intracellular compartment."""

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from types import MappingProxyType

import numpy as np

from .activation import evaluate_activation
from .aggregate import aggregate_transepithelial
from .constants import H_FLOOR, PROTON, WATER
from .kinetics import compute_transporter_rate, distribute_rate
from .paracellular import compute_paracellular_flux
from .params import SimulationInputs, coerce_concentrations, validate_inputs
from .results import SimulationOutputs

logger = logging.getLogger(__name__)

CONVERGED = "converged"
EXHAUSTED = "exhausted"


@dataclass(frozen=True, slots=True)
class FluxState:
    apical: dict[str, float]
    basolateral: dict[str, float]
    paracellular: dict[str, float]
    net: dict[str, float]


@dataclass(frozen=True, slots=True)
class SteadyState:
    intracellular: dict[str, float]
    apical_external: dict[str, float]
    basolateral_external: dict[str, float]
    fluxes: FluxState
    status: str
    n_steps: int
    time: np.ndarray
    intracellular_history: np.ndarray

    @property
    def converged(self) -> bool:
        return self.status == CONVERGED


def compute_fluxes(
    inputs: SimulationInputs,
    intracellular: Mapping[str, float],
    apical_external: Mapping[str, float],
    basolateral_external: Mapping[str, float],
    active: Mapping[str, bool],
) -> FluxState:
    """Evaluate one tick's membrane, paracellular and net fluxes.

    Every rate reads the same read-only snapshot of the compartments.
    """

    solutes = inputs.solutes
    snapshot = MappingProxyType(dict(intracellular))
    apical_ecf = MappingProxyType(dict(apical_external))
    basolateral_ecf = MappingProxyType(dict(basolateral_external))

    apical = {solute: 0.0 for solute in solutes}
    basolateral = {solute: 0.0 for solute in solutes}
    for transporter in inputs.transporters:
        if transporter.placement not in ("apical", "basolateral"):
            continue
        if transporter.is_water_channel or not active.get(transporter.transporter_id, False):
            continue
        external = apical_ecf if transporter.placement == "apical" else basolateral_ecf
        accumulator = apical if transporter.placement == "apical" else basolateral
        rate = compute_transporter_rate(transporter, external, snapshot)
        for solute, delta in distribute_rate(transporter, rate, solutes).items():
            accumulator[solute] += delta

    para = inputs.paracellular
    paracellular = compute_paracellular_flux(
        para.mode,
        apical_ecf,
        basolateral_ecf,
        para.cation_permeability,
        para.anion_permeability,
        solutes,
    )
    net = {solute: apical[solute] + basolateral[solute] + paracellular[solute] for solute in solutes}
    return FluxState(apical=apical, basolateral=basolateral, paracellular=paracellular, net=net)


def _clamp(concentrations: dict[str, float]) -> None:
    if PROTON in concentrations:
        concentrations[PROTON] = max(concentrations[PROTON], H_FLOOR)
    for solute, value in concentrations.items():
        concentrations[solute] = max(0.0, value)


def _deplete_external_pools(
    inputs: SimulationInputs,
    fluxes: FluxState,
    apical_external: dict[str, float],
    basolateral_external: dict[str, float],
) -> None:
    """Move solute between the cell and finite external pools."""

    scale = inputs.dt * inputs.pool_size_inverse
    for solute in inputs.solutes:
        if solute == WATER:
            continue
        leak = fluxes.paracellular[solute]
        apical_external[solute] -= (fluxes.apical[solute] + leak) * scale
        basolateral_external[solute] -= (fluxes.basolateral[solute] - leak) * scale
    _clamp(apical_external)
    _clamp(basolateral_external)


def solve_steady_state(
    inputs: SimulationInputs,
    initial_intracellular: Mapping[str, float],
) -> SteadyState:
    """Step intracellular concentrations until the per-step change drops below threshold.

    Running out of ``max_steps`` is a best-effort terminal state, reported
    as ``"exhausted"`` rather than raised.
    """

    solutes = inputs.solutes
    intracellular = coerce_concentrations(initial_intracellular, solutes)
    apical_external = coerce_concentrations(inputs.apical_external, solutes)
    basolateral_external = coerce_concentrations(inputs.basolateral_external, solutes)
    finite_pools = inputs.external_pools == "finite"

    history = [[intracellular[s] for s in solutes]]
    final_fluxes: FluxState | None = None
    status = EXHAUSTED
    step = 0

    while step < inputs.max_steps:
        active = evaluate_activation(inputs.transporters, inputs.activation_rules)
        fluxes = compute_fluxes(inputs, intracellular, apical_external, basolateral_external, active)

        max_change = 0.0
        updated = dict(intracellular)
        for solute in solutes:
            change = fluxes.net[solute] * inputs.dt
            updated[solute] += change
            max_change = max(max_change, abs(change))
        _clamp(updated)

        if finite_pools:
            _deplete_external_pools(inputs, fluxes, apical_external, basolateral_external)

        intracellular = updated
        history.append([intracellular[s] for s in solutes])
        step += 1

        if max_change < inputs.flux_threshold:
            status = CONVERGED
            final_fluxes = fluxes
            break

    if final_fluxes is None:
        # Report fluxes consistent with the state actually returned.
        active = evaluate_activation(inputs.transporters, inputs.activation_rules)
        final_fluxes = compute_fluxes(inputs, intracellular, apical_external, basolateral_external, active)
        logger.info("Step budget of %d exhausted before steady state", inputs.max_steps)
    else:
        logger.info("Steady state reached after %d steps", step)

    return SteadyState(
        intracellular=intracellular,
        apical_external=apical_external,
        basolateral_external=basolateral_external,
        fluxes=final_fluxes,
        status=status,
        n_steps=step,
        time=np.arange(step + 1, dtype=float) * inputs.dt,
        intracellular_history=np.array(history, dtype=float).reshape(step + 1, len(solutes)),
    )


def _initial_intracellular(
    inputs: SimulationInputs,
    previous_intracellular: Mapping[str, float] | None,
) -> Mapping[str, float]:
    if inputs.intracellular_policy == "carry" and previous_intracellular is not None:
        return previous_intracellular
    if previous_intracellular is not None:
        logger.debug("intracellular_policy='reset'; ignoring previous intracellular state")
    return inputs.baseline_intracellular


def _frozen(values: dict[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(values))


def _readonly(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


def simulate(
    inputs: SimulationInputs,
    previous_intracellular: Mapping[str, float] | None = None,
) -> SimulationOutputs:
    """Solve one epithelium configuration to steady state and derive barrier fluxes.

    ``previous_intracellular`` is the caller-held state from an earlier solve;
    it is used only when ``inputs.intracellular_policy`` is ``"carry"``.
    """

    validate_inputs(inputs)
    if previous_intracellular is not None:
        unknown = set(previous_intracellular) - set(inputs.solutes)
        if unknown:
            raise ValueError(f"previous_intracellular has untracked solutes: {', '.join(sorted(unknown))}")

    state = solve_steady_state(inputs, _initial_intracellular(inputs, previous_intracellular))
    summary = aggregate_transepithelial(
        apical_flux=state.fluxes.apical,
        basolateral_flux=state.fluxes.basolateral,
        paracellular_flux=state.fluxes.paracellular,
        transporters=inputs.transporters,
        paracellular_mode=inputs.paracellular.mode,
        solutes=inputs.solutes,
        transepithelial_policy=inputs.transepithelial_policy,
        water_policy=inputs.water_policy,
    )

    apical_flux = dict(state.fluxes.apical)
    basolateral_flux = dict(state.fluxes.basolateral)
    if WATER in inputs.solutes:
        apical_flux[WATER] = summary.membrane_water
        basolateral_flux[WATER] = -summary.membrane_water

    metadata = {
        "model": "three_compartment_epithelium",
        "solver": "explicit_euler",
        "status": state.status,
        "n_steps": state.n_steps,
        "max_steps": inputs.max_steps,
        "dt": inputs.dt,
        "flux_threshold": inputs.flux_threshold,
        "external_pools": inputs.external_pools,
        "intracellular_policy": inputs.intracellular_policy,
        "transepithelial_policy": inputs.transepithelial_policy,
        "water_policy": inputs.water_policy,
        "paracellular_mode": inputs.paracellular.mode,
        "placed_transporters": tuple(t.transporter_id for t in inputs.transporters if t.is_placed),
    }

    return SimulationOutputs(
        solutes=tuple(inputs.solutes),
        apical_external=_frozen(state.apical_external),
        intracellular=_frozen(state.intracellular),
        basolateral_external=_frozen(state.basolateral_external),
        apical_flux=_frozen(apical_flux),
        basolateral_flux=_frozen(basolateral_flux),
        net_flux=_frozen(state.fluxes.net),
        paracellular_flux=_frozen(state.fluxes.paracellular),
        transepithelial=summary.fluxes,
        tep=summary.tep,
        tep_label=summary.tep_label,
        converged=state.converged,
        status=state.status,
        n_steps=state.n_steps,
        time=_readonly(state.time),
        intracellular_history=_readonly(state.intracellular_history),
        metadata=MappingProxyType(metadata),
    )
