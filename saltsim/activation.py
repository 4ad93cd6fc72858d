"""Configuration-level gating of transporters.

Rules are plain data. Each names which transporters it governs and which
companion must be placed for them to run. Evaluation looks only at the
transporter configuration, never at concentrations.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging
from typing import Any

from .constants import NA_K_PUMP_ID, SODIUM

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActivationRule:
    name: str
    subject_solute: str | None = None
    subject_ids: frozenset[str] = frozenset()
    exempt_ids: frozenset[str] = frozenset()
    companion_ids: frozenset[str] = frozenset()
    same_placement: bool = False

    def applies_to(self, transporter: Any) -> bool:
        if transporter.transporter_id in self.exempt_ids:
            return False
        if transporter.transporter_id in self.subject_ids:
            return True
        return self.subject_solute is not None and self.subject_solute in transporter.stoichiometry

    def is_satisfied(self, transporter: Any, transporters: Sequence[Any]) -> bool:
        for other in transporters:
            if other is transporter or other.placement == "none":
                continue
            if other.transporter_id not in self.companion_ids:
                continue
            if self.same_placement and not _shares_membrane(transporter.placement, other.placement):
                continue
            return True
        return False


def _shares_membrane(placement: str, other: str) -> bool:
    if placement == other:
        return True
    return "both" in (placement, other)


DEFAULT_ACTIVATION_RULES: tuple[ActivationRule, ...] = (
    ActivationRule(
        name="sodium_coupling_requires_na_k_pump",
        subject_solute=SODIUM,
        exempt_ids=frozenset({NA_K_PUMP_ID}),
        companion_ids=frozenset({NA_K_PUMP_ID}),
    ),
    ActivationRule(
        name="potassium_recycling_requires_k_channel",
        subject_ids=frozenset({"NKCC"}),
        companion_ids=frozenset({"KChannel"}),
        same_placement=True,
    ),
)


def is_active(
    transporter: Any,
    transporters: Sequence[Any],
    rules: Iterable[ActivationRule] = DEFAULT_ACTIVATION_RULES,
) -> bool:
    """Return whether a placed transporter passes every rule that governs it."""

    if transporter.placement == "none":
        return False
    for rule in rules:
        if rule.applies_to(transporter) and not rule.is_satisfied(transporter, transporters):
            logger.debug("%s gated off by %s", transporter.transporter_id, rule.name)
            return False
    return True


def evaluate_activation(
    transporters: Iterable[Any],
    rules: Iterable[ActivationRule] = DEFAULT_ACTIVATION_RULES,
) -> dict[str, bool]:
    """Evaluate all rules against one frozen snapshot of the configuration."""

    snapshot = tuple(transporters)
    rule_table = tuple(rules)
    return {t.transporter_id: is_active(t, snapshot, rule_table) for t in snapshot}
