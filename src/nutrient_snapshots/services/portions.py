"""Portion inference and snapshot rescaling."""

import logging
import math
from datetime import UTC, datetime

from nutrient_snapshots.domain.nutrients import (
    NutrientSnapshot,
    NutrientValue,
    sorted_definitions,
)
from nutrient_snapshots.domain.portions import (
    PortionConfidence,
    PortionInferenceInput,
    PortionInferenceResult,
    PortionSource,
)
from nutrient_snapshots.services.nutrients import round_nutrient

DEFAULT_PORTION_GRAMS = 100.0
MAX_PLAUSIBLE_GRAMS = 10000.0

_NO_INFERENCE = PortionInferenceResult(
    inferred_grams=None,
    source=PortionSource.NONE,
    confidence=PortionConfidence.NONE,
)

_logger = logging.getLogger(__name__)


def infer_portion_grams(data: PortionInferenceInput) -> PortionInferenceResult:
    """Estimate how many grams a logged food entry represents.

    Rules are checked in a fixed order and the first one that applies wins:

    1. a recorded ``portion_grams`` on the snapshot,
    2. a snapshot that was never rescaled is taken to be the 100 g basis,
    3. the catalog serving size times the logged quantity,
    4. stored calories divided by the per-100 g calorie reference.

    Missing or unusable evidence falls through to the next rule; when none
    applies the result has no grams and ``none`` confidence.
    """
    snapshot = data.nutrient_snapshot

    if snapshot is not None and _is_positive(snapshot.portion_grams):
        return PortionInferenceResult(
            inferred_grams=snapshot.portion_grams,
            source=PortionSource.PORTION_GRAMS,
            confidence=PortionConfidence.HIGH,
        )

    if snapshot is None or not snapshot.scaled_at:
        return PortionInferenceResult(
            inferred_grams=DEFAULT_PORTION_GRAMS,
            source=PortionSource.DEFAULT_100G,
            confidence=PortionConfidence.HIGH,
        )

    if _is_positive(data.serving_size_grams):
        quantity = data.quantity_value if _is_positive(data.quantity_value) else 1.0
        return PortionInferenceResult(
            inferred_grams=data.serving_size_grams * quantity,
            source=PortionSource.SERVING_SIZE_GRAMS,
            confidence=PortionConfidence.MEDIUM,
        )

    reference = data.nutrients_per_100g
    if (
        reference is not None
        and _is_positive(data.stored_calories)
        and _is_positive(reference.calories)
    ):
        grams = data.stored_calories / reference.calories * 100
        if math.isfinite(grams) and 0 < grams < MAX_PLAUSIBLE_GRAMS:
            return PortionInferenceResult(
                inferred_grams=grams,
                source=PortionSource.MACRO_RATIO,
                confidence=PortionConfidence.MEDIUM,
            )

    _logger.debug("Portion inference found no usable evidence")
    return _NO_INFERENCE


def rescale_snapshot(  # noqa: PLR0913
    snapshot: NutrientSnapshot,
    inference: PortionInferenceResult,
    *,
    grams_per_serving: float,
    servings: float,
    serving_label: str,
    scaled_at: datetime | None = None,
) -> NutrientSnapshot:
    """Scale snapshot values from the inferred baseline to a new portion."""
    total_grams = grams_per_serving * servings
    portion_label = format_portion_label(serving_label, servings)
    baseline = inference.inferred_grams

    if baseline is None:
        return NutrientSnapshot(
            nutrients=list(snapshot.nutrients),
            fetched_at=snapshot.fetched_at,
            portion_grams=total_grams,
            portion_label=portion_label,
            scaled_at=snapshot.scaled_at,
            fdc_id=snapshot.fdc_id,
            source=snapshot.source,
            extra=dict(snapshot.extra),
        )

    multiplier = total_grams / baseline
    by_id = {nutrient.id: nutrient for nutrient in snapshot.nutrients}
    scaled: list[NutrientValue] = []
    for definition in sorted_definitions():
        current = by_id.get(definition.fdc_nutrient_id)
        value = None
        if current is not None and current.value is not None:
            value = round_nutrient(current.value * multiplier)
        scaled.append(
            NutrientValue(
                id=definition.fdc_nutrient_id,
                name=current.name if current else definition.name,
                unit=current.unit if current else definition.unit,
                value=value,
            )
        )

    timestamp = scaled_at or datetime.now(tz=UTC)
    _logger.debug(
        "Rescaled snapshot: baseline=%s source=%s total=%s",
        baseline,
        inference.source.value,
        total_grams,
    )
    return NutrientSnapshot(
        nutrients=scaled,
        fetched_at=snapshot.fetched_at,
        portion_grams=total_grams,
        portion_label=portion_label,
        scaled_at=timestamp.isoformat(),
        fdc_id=snapshot.fdc_id,
        source=snapshot.source,
        extra=dict(snapshot.extra),
    )


def format_portion_label(serving_label: str, servings: float) -> str:
    """Return ``"2x 1 cup"`` style labels for multi-serving portions."""
    if servings > 1:
        count = int(servings) if float(servings).is_integer() else servings
        return f"{count}x {serving_label}"
    return serving_label


def _is_positive(value: float | None) -> bool:
    return value is not None and value > 0
