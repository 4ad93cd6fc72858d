"""Transporter rate laws.

Each transporter carries one kinetic law variant, chosen when the
configuration is built. A law turns the two compartments facing the
transporter into a scalar rate; ``distribute_rate`` then spreads that rate
over the transported solutes according to the stoichiometry.
"""

from collections.abc import Mapping
from dataclasses import dataclass
import math
from typing import Any, Protocol

import numpy as np

from .constants import H_FLOOR, PROTON, SOLUTES, WATER

Concentrations = Mapping[str, float]

SIDES = {"external", "intracellular"}
DIRECTIONS = {"inward", "outward"}


class KineticLaw(Protocol):
    ph: "PhModulation | None"

    def rate(self, transporter: Any, external: Concentrations, intracellular: Concentrations) -> float:
        ...


def compute_michaelis_menten(vmax: float, km: float, substrate: float) -> float:
    """Saturating rate ``vmax * S / (km + S)``."""

    return vmax * substrate / (km + substrate)


def compute_limiting_availability(amounts: list[float], needs: list[float]) -> float:
    """Return the scarcest co-substrate, scaled by how many of it one turnover needs."""

    return min(max(0.0, amount) / need for amount, need in zip(amounts, needs))


def compute_ph(h_concentration: float) -> float:
    return -math.log10(max(h_concentration, H_FLOOR))


def compute_ph_factor(ph: float, ph50: float, sigma: float) -> float:
    """Acid-activation sigmoid ``1 / (1 + exp((pH - pH50) / sigma))``."""

    exponent = (ph - ph50) / sigma
    if exponent > 700.0:
        return 0.0
    return 1.0 / (1.0 + math.exp(exponent))


@dataclass(frozen=True, slots=True)
class PhModulation:
    ph50: float
    sigma: float

    def factor(self, intracellular: Concentrations) -> float:
        ph = compute_ph(intracellular.get(PROTON, 0.0))
        return compute_ph_factor(ph, self.ph50, self.sigma)


@dataclass(frozen=True, slots=True)
class Substrate:
    """One substrate pool read by a rate law.

    ``need`` overrides the stoichiometric requirement used by the limiting
    law and ``km`` overrides the transporter Km for one pump term.
    """

    solute: str
    side: str = "external"
    need: float | None = None
    km: float | None = None

    def amount(self, external: Concentrations, intracellular: Concentrations) -> float:
        compartment = intracellular if self.side == "intracellular" else external
        return max(0.0, compartment.get(self.solute, 0.0))

    def required(self, stoichiometry: Mapping[str, int]) -> float:
        if self.need is not None:
            return float(self.need)
        coeff = abs(stoichiometry.get(self.solute, 0))
        return float(coeff) if coeff else 1.0


def _modulate(law: KineticLaw, rate: float, intracellular: Concentrations) -> float:
    if law.ph is None:
        return rate
    return rate * law.ph.factor(intracellular)


@dataclass(frozen=True, slots=True)
class SingleSiteMM:
    substrate: Substrate
    ph: PhModulation | None = None

    def rate(self, transporter: Any, external: Concentrations, intracellular: Concentrations) -> float:
        s = self.substrate.amount(external, intracellular)
        rate = compute_michaelis_menten(transporter.vmax, transporter.km, s) * transporter.density
        return _modulate(self, rate, intracellular)


@dataclass(frozen=True, slots=True)
class MultiSiteLimitingMM:
    substrates: tuple[Substrate, ...]
    ph: PhModulation | None = None

    def rate(self, transporter: Any, external: Concentrations, intracellular: Concentrations) -> float:
        limiting = compute_limiting_availability(
            [sub.amount(external, intracellular) for sub in self.substrates],
            [sub.required(transporter.stoichiometry) for sub in self.substrates],
        )
        rate = compute_michaelis_menten(transporter.vmax, transporter.km, limiting) * transporter.density
        return _modulate(self, rate, intracellular)


@dataclass(frozen=True, slots=True)
class GradientDrivenChannel:
    """Passive, bidirectional channel.

    ``outward`` takes the gradient as intracellular minus external, ``inward``
    as external minus intracellular. A positive rate times a positive
    stoichiometric coefficient is influx.
    """

    solute: str
    direction: str = "outward"
    ph: PhModulation | None = None

    def gradient(self, external: Concentrations, intracellular: Concentrations) -> float:
        inside = intracellular.get(self.solute, 0.0)
        outside = external.get(self.solute, 0.0)
        if self.direction == "inward":
            return outside - inside
        return inside - outside

    def rate(self, transporter: Any, external: Concentrations, intracellular: Concentrations) -> float:
        gradient = self.gradient(external, intracellular)
        magnitude = compute_michaelis_menten(transporter.vmax, transporter.km, abs(gradient))
        rate = magnitude * float(np.sign(gradient)) * transporter.density
        return _modulate(self, rate, intracellular)


@dataclass(frozen=True, slots=True)
class MultiTermPump:
    """Pump limited independently by several pools, each with its own MM term."""

    terms: tuple[Substrate, ...]
    ph: PhModulation | None = None

    def rate(self, transporter: Any, external: Concentrations, intracellular: Concentrations) -> float:
        saturations = []
        for term in self.terms:
            s = term.amount(external, intracellular)
            km = transporter.km if term.km is None else term.km
            saturations.append(compute_michaelis_menten(1.0, km, s))
        rate = transporter.vmax * min(saturations) * transporter.density
        return _modulate(self, rate, intracellular)


def fallback_law(transporter: Any) -> SingleSiteMM:
    """Single-site MM on the first stoichiometry solute, read from the external side."""

    main_solute = next(iter(transporter.stoichiometry))
    return SingleSiteMM(Substrate(main_solute, side="external"))


def compute_transporter_rate(
    transporter: Any,
    external: Concentrations,
    intracellular: Concentrations,
) -> float:
    """Evaluate one transporter's scalar rate against the facing compartments."""

    law = transporter.law if transporter.law is not None else fallback_law(transporter)
    return law.rate(transporter, external, intracellular)


def distribute_rate(
    transporter: Any,
    rate: float,
    solutes: tuple[str, ...] = SOLUTES,
) -> dict[str, float]:
    """Split a rate into per-solute fluxes; water is left to the aggregator."""

    tracked = set(solutes)
    deltas: dict[str, float] = {}
    for solute, coeff in transporter.stoichiometry.items():
        if solute == WATER or solute not in tracked:
            continue
        deltas[solute] = deltas.get(solute, 0.0) + rate * coeff
    return deltas
