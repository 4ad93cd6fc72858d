"""Cross-barrier fluxes, water coupling and the net-charge indicator.

Everything here post-processes the integrator's final flux maps. Positive
transepithelial flux is absorption (apical to basolateral), negative is
secretion.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from .constants import (
    NA_K_PUMP_ID,
    TEP_APICAL_NEGATIVE,
    TEP_APICAL_NEGATIVE_LARGE,
    TEP_APICAL_POSITIVE,
    TEP_APICAL_POSITIVE_LARGE,
    TEP_LARGE_THRESHOLD,
    TEP_NEUTRAL,
    TEP_SMALL_THRESHOLD,
    VALENCES,
    WATER,
    WATER_FLUX_CAP,
    WATER_FLUX_GAIN,
)


@dataclass(frozen=True, slots=True)
class PairedPathway:
    """Entry and exit transporters that must sit on opposite membranes."""

    entry_ids: tuple[str, ...]
    exit_ids: tuple[str, ...]
    requires_pump: bool = False


PAIRED_PATHWAYS: dict[str, PairedPathway] = {
    "K+": PairedPathway(entry_ids=("NaKATPase", "NKCC"), exit_ids=("KChannel",), requires_pump=True),
    "H+": PairedPathway(entry_ids=("NHE", "HATPase"), exit_ids=("NHE", "HATPase"), requires_pump=True),
    "HCO3-": PairedPathway(entry_ids=("NBC", "ClHCO3Ex"), exit_ids=("NBC", "ClHCO3Ex")),
}


@dataclass(frozen=True, slots=True)
class TransepithelialSummary:
    fluxes: tuple[tuple[str, float], ...]
    # Water reported on the apical (and, negated, basolateral) flux maps.
    membrane_water: float
    tep: float
    tep_label: str

    def as_dict(self) -> dict[str, float]:
        return dict(self.fluxes)


def compute_transepithelial_flux(apical: float, basolateral: float) -> float:
    """Transcellular flux carried through the cell by opposite-signed membrane fluxes."""

    if apical > 0.0 and basolateral < 0.0:
        return min(apical, abs(basolateral))
    if apical < 0.0 and basolateral > 0.0:
        return -min(abs(apical), basolateral)
    return 0.0


def _placed_membranes(ids: Sequence[str], transporters: Sequence[Any]) -> set[str]:
    return {t.placement for t in transporters if t.transporter_id in ids and t.placement != "none"}


def compute_paired_transepithelial_flux(
    pathway: PairedPathway,
    apical: float,
    basolateral: float,
    transporters: Sequence[Any],
) -> float:
    """Transcellular flux counted only across entry/exit pairs on opposite membranes."""

    if pathway.requires_pump and not _placed_membranes((NA_K_PUMP_ID,), transporters):
        return 0.0

    entry_sides = _placed_membranes(pathway.entry_ids, transporters)
    exit_sides = _placed_membranes(pathway.exit_ids, transporters)
    spans_barrier = ("apical" in entry_sides and "basolateral" in exit_sides) or (
        "basolateral" in entry_sides and "apical" in exit_sides
    )
    if not spans_barrier:
        return 0.0
    # Sign follows the membranes, not which side holds the entry step.
    return compute_transepithelial_flux(apical, basolateral)


def has_transcellular_water_path(transporters: Sequence[Any]) -> bool:
    """True when water channels are placed on both the apical and basolateral membrane."""

    membranes: set[str] = set()
    for t in transporters:
        if not t.is_water_channel or t.placement == "none":
            continue
        if t.placement == "both":
            membranes.update(("apical", "basolateral"))
        else:
            membranes.add(t.placement)
    return {"apical", "basolateral"} <= membranes


def compute_water_flux(net_solute_flux: float) -> float:
    """Water follows the net solute flux, halved and capped.

    A teaching heuristic standing in for osmosis; it does not balance
    osmolarity or volume.
    """

    return WATER_FLUX_GAIN * float(np.sign(net_solute_flux)) * min(abs(net_solute_flux), WATER_FLUX_CAP)


def compute_tep(fluxes: Mapping[str, float]) -> float:
    """Return the negated charge carried across the barrier."""

    charge = sum(flux * VALENCES[solute] for solute, flux in fluxes.items() if solute in VALENCES)
    return -charge


def classify_tep(tep: float) -> str:
    if tep > TEP_LARGE_THRESHOLD:
        return TEP_APICAL_POSITIVE_LARGE
    if tep > TEP_SMALL_THRESHOLD:
        return TEP_APICAL_POSITIVE
    if tep < -TEP_LARGE_THRESHOLD:
        return TEP_APICAL_NEGATIVE_LARGE
    if tep < -TEP_SMALL_THRESHOLD:
        return TEP_APICAL_NEGATIVE
    return TEP_NEUTRAL


def aggregate_transepithelial(
    apical_flux: Mapping[str, float],
    basolateral_flux: Mapping[str, float],
    paracellular_flux: Mapping[str, float],
    transporters: Sequence[Any],
    paracellular_mode: str,
    solutes: Sequence[str],
    transepithelial_policy: str = "balanced",
    water_policy: str = "follow_solute",
    pathways: Mapping[str, PairedPathway] = PAIRED_PATHWAYS,
) -> TransepithelialSummary:
    """Derive per-solute transepithelial fluxes, water flux and the TEP class."""

    fluxes: list[tuple[str, float]] = []
    for solute in solutes:
        if solute == WATER:
            continue
        apical = apical_flux.get(solute, 0.0)
        basolateral = basolateral_flux.get(solute, 0.0)
        if transepithelial_policy == "paired" and solute in pathways:
            transcellular = compute_paired_transepithelial_flux(
                pathways[solute], apical, basolateral, transporters
            )
        else:
            transcellular = compute_transepithelial_flux(apical, basolateral)
        fluxes.append((solute, transcellular + paracellular_flux.get(solute, 0.0)))

    net_solute_flux = sum(flux for _, flux in fluxes)
    transcellular_path = has_transcellular_water_path(transporters)
    paracellular_path = paracellular_mode == "cation"

    if water_policy == "leak":
        membrane_water = compute_water_flux(net_solute_flux) if transcellular_path else 0.0
        water = membrane_water + paracellular_flux.get(WATER, 0.0)
    else:
        membrane_water = (
            compute_water_flux(net_solute_flux) if transcellular_path or paracellular_path else 0.0
        )
        water = membrane_water

    if WATER in solutes:
        fluxes.append((WATER, water))

    tep = compute_tep(dict(fluxes))
    return TransepithelialSummary(
        fluxes=tuple(fluxes),
        membrane_water=membrane_water,
        tep=tep,
        tep_label=classify_tep(tep),
    )
