"""Default transporter set and resting concentrations (mmol/L).

Channel direction conventions:

- ``ENaC`` and ``TRPV6`` use ``inward`` gradients (external minus
  intracellular) with a +1 coefficient, so they carry Na+ or Ca2+ down their
  concentration gradient into the cell.
- ``KChannel`` and ``GLUT2`` use ``outward`` gradients with a -1 coefficient,
  so K+ or glucose leaves the cell when it is more concentrated inside.
- ``CFTR`` uses an ``outward`` gradient with a +1 coefficient. With the usual
  low intracellular Cl- it therefore runs as a secretory Cl- exit. This stands
  in for the membrane voltage that the model does not include.
"""

from dataclasses import replace

from .constants import SOLUTES
from .kinetics import (
    GradientDrivenChannel,
    MultiSiteLimitingMM,
    MultiTermPump,
    PhModulation,
    SingleSiteMM,
    Substrate,
)
from .params import ParacellularSettings, SimulationInputs, Transporter, with_isoform

SGLT_ISOFORMS: dict[str, dict[str, int]] = {
    "SGLT1": {"Na+": 2, "Glucose": 1},
    "SGLT2": {"Na+": 1, "Glucose": 1},
}

DEFAULT_EXTERNAL: dict[str, float] = {
    "Na+": 145.0,
    "K+": 4.0,
    "Cl-": 105.0,
    "HCO3-": 24.0,
    "Ca2+": 1.2,
    "H+": 0.00004,
    "Glucose": 5.0,
    "AminoAcid": 2.0,
    "H2O": 100.0,
}

DEFAULT_INTRACELLULAR: dict[str, float] = {
    "Na+": 12.0,
    "K+": 140.0,
    "Cl-": 10.0,
    "HCO3-": 10.0,
    "Ca2+": 0.0001,
    "H+": 0.00002,
    "Glucose": 1.0,
    "AminoAcid": 8.0,
    "H2O": 100.0,
}


def _external(*solutes: str) -> tuple[Substrate, ...]:
    return tuple(Substrate(solute, side="external") for solute in solutes)


def default_transporters() -> tuple[Transporter, ...]:
    """Return every known transporter, all unplaced."""

    return (
        Transporter(
            "AQP", "channel", {"H2O": 1}, vmax=1.0, km=1.0,
            label="Aquaporin (water channel)",
        ),
        Transporter(
            "SGLT", "symporter", dict(SGLT_ISOFORMS["SGLT1"]), vmax=0.8, km=1.0,
            law=MultiSiteLimitingMM(_external("Na+", "Glucose")),
            label="SGLT (Na+-glucose cotransporter)",
            isoforms={name: dict(stoich) for name, stoich in SGLT_ISOFORMS.items()},
            isoform="SGLT1",
        ),
        Transporter(
            "NKCC", "symporter", {"Na+": 1, "K+": 1, "Cl-": 2}, vmax=1.0, km=1.0,
            law=MultiSiteLimitingMM(_external("Na+", "K+", "Cl-")),
            label="NKCC (Na+-K+-2Cl- cotransporter)",
        ),
        Transporter(
            "NHE", "antiporter", {"Na+": 1, "H+": -1}, vmax=1.0, km=1.0,
            law=MultiSiteLimitingMM((Substrate("Na+"), Substrate("H+", side="intracellular"))),
            label="NHE (Na+/H+ exchanger)",
        ),
        Transporter(
            "ClHCO3Ex", "exchanger", {"Cl-": 1, "HCO3-": -1}, vmax=0.8, km=1.0,
            law=MultiSiteLimitingMM((Substrate("Cl-"), Substrate("HCO3-", side="intracellular"))),
            label="Cl-/HCO3- exchanger",
        ),
        Transporter(
            "KChannel", "channel", {"K+": -1}, vmax=0.8, km=1.0,
            law=GradientDrivenChannel("K+", direction="outward"),
            label="K+ channel",
        ),
        Transporter(
            "ENaC", "channel", {"Na+": 1}, vmax=1.0, km=1.0,
            law=GradientDrivenChannel("Na+", direction="inward"),
            label="ENaC (epithelial Na+ channel)",
        ),
        Transporter(
            "CFTR", "channel", {"Cl-": 1}, vmax=1.0, km=1.0,
            law=GradientDrivenChannel("Cl-", direction="outward"),
            label="CFTR (Cl- channel)",
        ),
        Transporter(
            "NaKATPase", "pump", {"Na+": -3, "K+": 2}, vmax=1.2, km=1.0,
            law=MultiTermPump(
                (
                    Substrate("Na+", side="intracellular"),
                    Substrate("K+", side="external"),
                    Substrate("K+", side="intracellular"),
                )
            ),
            label="Na+/K+-ATPase",
        ),
        Transporter(
            "GLUT2", "channel", {"Glucose": -1}, vmax=1.0, km=1.0,
            law=GradientDrivenChannel("Glucose", direction="outward"),
            label="GLUT2 (glucose uniporter)",
        ),
        Transporter(
            "NBC", "symporter", {"Na+": 1, "HCO3-": 3}, vmax=0.7, km=2.0,
            law=MultiSiteLimitingMM(_external("Na+", "HCO3-")),
            label="NBC (Na+/HCO3- cotransporter)",
        ),
        Transporter(
            "HATPase", "pump", {"H+": -1}, vmax=0.9, km=1.0,
            law=SingleSiteMM(Substrate("H+", side="intracellular")),
            label="H+-ATPase (proton pump)",
        ),
        Transporter(
            "TRPV6", "channel", {"Ca2+": 1}, vmax=0.2, km=0.05,
            law=GradientDrivenChannel("Ca2+", direction="inward"),
            label="TRPV6 (Ca2+ channel)",
        ),
        Transporter(
            "PMCA", "pump", {"Ca2+": -1}, vmax=0.3, km=0.5,
            law=SingleSiteMM(Substrate("Ca2+", side="intracellular")),
            label="PMCA (Ca2+-ATPase)",
        ),
        Transporter(
            "NAAT", "symporter", {"Na+": 1, "AminoAcid": 1}, vmax=0.6, km=0.5,
            law=MultiSiteLimitingMM(_external("Na+", "AminoAcid")),
            label="Na+-amino acid cotransporter",
        ),
    )


def with_ph_modulation(transporter: Transporter, ph50: float, sigma: float) -> Transporter:
    """Make a transporter acid-activated.

    ``ph50`` is on the scale of ``-log10`` of the H+ concentration as the
    model stores it.
    """

    if transporter.law is None:
        raise ValueError(f"{transporter.transporter_id} has no kinetic law to modulate")
    return replace(transporter, law=replace(transporter.law, ph=PhModulation(ph50, sigma)))


def place(
    transporters: tuple[Transporter, ...],
    placements: dict[str, str],
    isoforms: dict[str, str] | None = None,
) -> tuple[Transporter, ...]:
    """Return a copy of ``transporters`` with the given placements and isoforms applied."""

    isoforms = isoforms or {}
    unknown = (set(placements) | set(isoforms)) - {t.transporter_id for t in transporters}
    if unknown:
        raise ValueError(f"Unknown transporter ids: {', '.join(sorted(unknown))}")

    placed = []
    for transporter in transporters:
        if transporter.transporter_id in isoforms:
            transporter = with_isoform(transporter, isoforms[transporter.transporter_id])
        if transporter.transporter_id in placements:
            transporter = replace(transporter, placement=placements[transporter.transporter_id])
        placed.append(transporter)
    return tuple(placed)


def default_inputs(placements: dict[str, str] | None = None, **overrides) -> SimulationInputs:
    """Build resting-state inputs with every transporter unplaced unless ``placements`` says otherwise."""

    inputs = SimulationInputs(
        transporters=place(default_transporters(), placements or {}),
        apical_external=dict(DEFAULT_EXTERNAL),
        basolateral_external=dict(DEFAULT_EXTERNAL),
        baseline_intracellular=dict(DEFAULT_INTRACELLULAR),
        paracellular=ParacellularSettings(),
        solutes=SOLUTES,
    )
    return replace(inputs, **overrides) if overrides else inputs
