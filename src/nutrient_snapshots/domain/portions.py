"""Portion inference domain models."""

from dataclasses import dataclass
from enum import Enum

from nutrient_snapshots.domain.nutrients import NutrientSnapshot


class PortionSource(Enum):
    """Which inference rule produced the portion."""

    PORTION_GRAMS = "portionGrams"
    SERVING_SIZE_GRAMS = "servingSizeGrams"
    MACRO_RATIO = "macroRatio"
    DEFAULT_100G = "default100g"
    NONE = "none"


class PortionConfidence(Enum):
    """How much the caller should trust an inferred portion."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


@dataclass(frozen=True)
class ReferenceMacros:
    """Catalog macro values normalized to 100 grams."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None


@dataclass(frozen=True)
class PortionInferenceInput:
    """Evidence available when displaying or rescaling a logged food."""

    nutrient_snapshot: NutrientSnapshot | None = None
    serving_size_grams: float | None = None
    quantity_value: float | None = None
    nutrients_per_100g: ReferenceMacros | None = None
    stored_calories: float | None = None


@dataclass(frozen=True)
class PortionInferenceResult:
    """Inferred portion weight with the rule that produced it."""

    inferred_grams: float | None
    source: PortionSource
    confidence: PortionConfidence
