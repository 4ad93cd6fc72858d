"""Passive leak between the two external compartments."""

from collections.abc import Mapping

from .constants import PARACELLULAR_SOLUTES, SOLUTES


def compute_paracellular_flux(
    mode: str,
    apical_external: Mapping[str, float],
    basolateral_external: Mapping[str, float],
    cation_permeability: float,
    anion_permeability: float,
    solutes: tuple[str, ...] = SOLUTES,
) -> dict[str, float]:
    """Compute apical-to-basolateral leak fluxes for the selected junction mode.

    Positive values run from the apical to the basolateral fluid. Solutes the
    mode does not carry, and solutes outside ``solutes``, stay at zero.
    """

    if mode not in PARACELLULAR_SOLUTES:
        raise ValueError(f"Unsupported paracellular mode: {mode}")

    permeability = cation_permeability if mode == "cation" else anion_permeability
    flux = {solute: 0.0 for solute in solutes}
    for solute in PARACELLULAR_SOLUTES[mode]:
        if solute not in flux:
            continue
        gradient = apical_external.get(solute, 0.0) - basolateral_external.get(solute, 0.0)
        flux[solute] = permeability * gradient
    return flux
