"""Input schema and validation for SaltSim."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
import math
import numbers

from .activation import DEFAULT_ACTIVATION_RULES, ActivationRule
from .constants import (
    DEFAULT_DT,
    DEFAULT_FLUX_THRESHOLD,
    DEFAULT_MAX_STEPS,
    EXTERNAL_POOL_POLICIES,
    INTRACELLULAR_POLICIES,
    PARACELLULAR_MODES,
    PLACEMENTS,
    SOLUTES,
    TRANSEPITHELIAL_POLICIES,
    TRANSPORTER_CLASSES,
    WATER,
    WATER_POLICIES,
)
from .kinetics import (
    DIRECTIONS,
    SIDES,
    GradientDrivenChannel,
    KineticLaw,
    MultiSiteLimitingMM,
    MultiTermPump,
    SingleSiteMM,
)


@dataclass(frozen=True, slots=True)
class Transporter:
    transporter_id: str
    transporter_class: str
    stoichiometry: dict[str, int]
    vmax: float
    km: float
    placement: str = "none"
    density: float = 1.0
    law: KineticLaw | None = None
    label: str = ""
    isoforms: dict[str, dict[str, int]] = field(default_factory=dict)
    isoform: str | None = None

    @property
    def is_water_channel(self) -> bool:
        return set(self.stoichiometry) == {WATER}

    @property
    def is_placed(self) -> bool:
        return self.placement != "none"


def with_isoform(transporter: Transporter, isoform: str) -> Transporter:
    """Switch to a named isoform, swapping the whole stoichiometry map at once."""

    if isoform not in transporter.isoforms:
        raise ValueError(f"Unknown isoform {isoform!r} for {transporter.transporter_id}")
    return replace(
        transporter,
        isoform=isoform,
        stoichiometry=dict(transporter.isoforms[isoform]),
    )


@dataclass(frozen=True, slots=True)
class ParacellularSettings:
    mode: str = "none"
    cation_permeability: float = 1.0
    anion_permeability: float = 1.0


@dataclass(frozen=True, slots=True)
class SimulationInputs:
    transporters: tuple[Transporter, ...]
    apical_external: dict[str, float]
    basolateral_external: dict[str, float]
    baseline_intracellular: dict[str, float]
    paracellular: ParacellularSettings = field(default_factory=ParacellularSettings)
    solutes: tuple[str, ...] = SOLUTES
    max_steps: int = DEFAULT_MAX_STEPS
    flux_threshold: float = DEFAULT_FLUX_THRESHOLD
    dt: float = DEFAULT_DT
    external_pools: str = "infinite"
    pool_size_inverse: float = 0.01
    intracellular_policy: str = "reset"
    transepithelial_policy: str = "balanced"
    water_policy: str = "follow_solute"
    activation_rules: tuple[ActivationRule, ...] = DEFAULT_ACTIVATION_RULES

    def transporter(self, transporter_id: str) -> Transporter:
        for candidate in self.transporters:
            if candidate.transporter_id == transporter_id:
                return candidate
        raise KeyError(transporter_id)


def coerce_concentrations(
    values: Mapping[str, float],
    solutes: tuple[str, ...] = SOLUTES,
) -> dict[str, float]:
    """Return a full concentration map over ``solutes`` with negatives clamped to zero."""

    return {solute: max(0.0, float(values.get(solute, 0.0))) for solute in solutes}


def _is_finite(value: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def _validate_concentrations(name: str, values: Mapping[str, float], errors: list[str]) -> None:
    for solute, value in values.items():
        if solute not in SOLUTES:
            errors.append(f"{name} has unknown solute {solute!r}")
        elif not _is_finite(value):
            errors.append(f"{name}[{solute}] must be a finite number")


def _validate_law(transporter: Transporter, errors: list[str]) -> None:
    law = transporter.law
    prefix = f"transporter {transporter.transporter_id}"
    if law is None:
        return

    substrates = ()
    if isinstance(law, SingleSiteMM):
        substrates = (law.substrate,)
    elif isinstance(law, MultiSiteLimitingMM):
        substrates = law.substrates
        if not substrates:
            errors.append(f"{prefix} limiting law needs at least one substrate")
    elif isinstance(law, MultiTermPump):
        substrates = law.terms
        if not substrates:
            errors.append(f"{prefix} pump law needs at least one term")
    elif isinstance(law, GradientDrivenChannel):
        if law.solute not in SOLUTES:
            errors.append(f"{prefix} channel solute {law.solute!r} is unknown")
        if law.direction not in DIRECTIONS:
            errors.append(f"{prefix} channel direction must be 'inward' or 'outward'")

    for sub in substrates:
        if sub.solute not in SOLUTES:
            errors.append(f"{prefix} substrate {sub.solute!r} is unknown")
        if sub.side not in SIDES:
            errors.append(f"{prefix} substrate side must be 'external' or 'intracellular'")
        if sub.need is not None and sub.need <= 0.0:
            errors.append(f"{prefix} substrate need must be > 0")
        if sub.km is not None and sub.km <= 0.0:
            errors.append(f"{prefix} substrate km must be > 0")

    if law.ph is not None and law.ph.sigma <= 0.0:
        errors.append(f"{prefix} pH modulation sigma must be > 0")


def _validate_transporter(transporter: Transporter, errors: list[str]) -> None:
    prefix = f"transporter {transporter.transporter_id}"

    if transporter.transporter_class not in TRANSPORTER_CLASSES:
        errors.append(f"{prefix} has unknown class {transporter.transporter_class!r}")
    if transporter.placement not in PLACEMENTS:
        errors.append(f"{prefix} has unknown placement {transporter.placement!r}")
    elif transporter.placement == "both" and not transporter.is_water_channel:
        errors.append(f"{prefix} placement 'both' is only allowed for water channels")

    if not transporter.stoichiometry:
        errors.append(f"{prefix} stoichiometry must not be empty")
    for solute in transporter.stoichiometry:
        if solute not in SOLUTES:
            errors.append(f"{prefix} stoichiometry has unknown solute {solute!r}")

    for name in ("vmax", "km", "density"):
        if not _is_finite(getattr(transporter, name)):
            errors.append(f"{prefix} {name} must be a finite number")
    if _is_finite(transporter.vmax) and transporter.vmax < 0.0:
        errors.append(f"{prefix} vmax must be >= 0")
    if _is_finite(transporter.km) and transporter.km <= 0.0:
        errors.append(f"{prefix} km must be > 0")
    if _is_finite(transporter.density) and transporter.density < 0.0:
        errors.append(f"{prefix} density must be >= 0")

    if transporter.isoform is not None and transporter.isoform not in transporter.isoforms:
        errors.append(f"{prefix} isoform {transporter.isoform!r} is not defined")

    _validate_law(transporter, errors)


def validate_inputs(inputs: SimulationInputs) -> None:
    """Validate simulation inputs and raise ValueError on failures."""

    errors: list[str] = []

    for solute in inputs.solutes:
        if solute not in SOLUTES:
            errors.append(f"solutes has unknown solute {solute!r}")
    if len(set(inputs.solutes)) != len(inputs.solutes):
        errors.append("solutes must not repeat")

    _validate_concentrations("apical_external", inputs.apical_external, errors)
    _validate_concentrations("basolateral_external", inputs.basolateral_external, errors)
    _validate_concentrations("baseline_intracellular", inputs.baseline_intracellular, errors)

    seen: set[str] = set()
    for transporter in inputs.transporters:
        if transporter.transporter_id in seen:
            errors.append(f"transporter id {transporter.transporter_id!r} is duplicated")
        seen.add(transporter.transporter_id)
        _validate_transporter(transporter, errors)

    para = inputs.paracellular
    if para.mode not in PARACELLULAR_MODES:
        errors.append("paracellular mode must be one of 'none', 'cation', 'anion'")
    if not _is_finite(para.cation_permeability) or para.cation_permeability < 0.0:
        errors.append("cation_permeability must be >= 0")
    if not _is_finite(para.anion_permeability) or para.anion_permeability < 0.0:
        errors.append("anion_permeability must be >= 0")

    if isinstance(inputs.max_steps, bool) or not isinstance(inputs.max_steps, numbers.Integral):
        errors.append("max_steps must be an integer")
    elif inputs.max_steps < 1:
        errors.append("max_steps must be >= 1")
    if not _is_finite(inputs.dt) or inputs.dt <= 0.0:
        errors.append("dt must be > 0")
    if not _is_finite(inputs.flux_threshold) or inputs.flux_threshold <= 0.0:
        errors.append("flux_threshold must be > 0")
    if not _is_finite(inputs.pool_size_inverse) or inputs.pool_size_inverse < 0.0:
        errors.append("pool_size_inverse must be >= 0")

    if inputs.external_pools not in EXTERNAL_POOL_POLICIES:
        errors.append("external_pools must be either 'infinite' or 'finite'")
    if inputs.intracellular_policy not in INTRACELLULAR_POLICIES:
        errors.append("intracellular_policy must be either 'reset' or 'carry'")
    if inputs.transepithelial_policy not in TRANSEPITHELIAL_POLICIES:
        errors.append("transepithelial_policy must be either 'balanced' or 'paired'")
    if inputs.water_policy not in WATER_POLICIES:
        errors.append("water_policy must be either 'follow_solute' or 'leak'")

    if errors:
        raise ValueError("; ".join(errors))
