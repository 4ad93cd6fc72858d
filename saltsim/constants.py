"""Fixed solute set and model constants for SaltSim."""

SOLUTES: tuple[str, ...] = (
    "Na+",
    "K+",
    "Cl-",
    "HCO3-",
    "Ca2+",
    "H+",
    "Glucose",
    "AminoAcid",
    "H2O",
)

WATER = "H2O"
PROTON = "H+"
SODIUM = "Na+"

# Keeps intracellular pH finite.
H_FLOOR = 1e-8

VALENCES: dict[str, int] = {
    "Na+": 1,
    "K+": 1,
    "Ca2+": 2,
    "Cl-": -1,
    "HCO3-": -1,
    "H+": 1,
}

PLACEMENTS = {"none", "apical", "basolateral", "both"}
TRANSPORTER_CLASSES = {"channel", "symporter", "antiporter", "exchanger", "pump"}

PARACELLULAR_MODES = {"none", "cation", "anion"}
PARACELLULAR_SOLUTES: dict[str, tuple[str, ...]] = {
    "none": (),
    "cation": ("Na+", "K+", "H2O"),
    "anion": ("Cl-", "HCO3-"),
}

EXTERNAL_POOL_POLICIES = {"infinite", "finite"}
INTRACELLULAR_POLICIES = {"reset", "carry"}
TRANSEPITHELIAL_POLICIES = {"balanced", "paired"}
WATER_POLICIES = {"follow_solute", "leak"}

DEFAULT_MAX_STEPS = 1000
DEFAULT_FLUX_THRESHOLD = 1e-6
DEFAULT_DT = 0.1

# Water-follows-solute heuristic, not an osmotic calculation.
WATER_FLUX_GAIN = 0.5
WATER_FLUX_CAP = 5.0

TEP_SMALL_THRESHOLD = 0.1
TEP_LARGE_THRESHOLD = 2.0
TEP_APICAL_POSITIVE_LARGE = "apical positive, large"
TEP_APICAL_POSITIVE = "apical positive"
TEP_APICAL_NEGATIVE_LARGE = "apical negative, large"
TEP_APICAL_NEGATIVE = "apical negative"
TEP_NEUTRAL = "neutral"

NA_K_PUMP_ID = "NaKATPase"
