"""Tests for portion inference and snapshot rescaling."""

from datetime import UTC, datetime

import pytest

from nutrient_snapshots.domain.nutrients import NutrientSnapshot, NutrientValue
from nutrient_snapshots.domain.portions import (
    PortionConfidence,
    PortionInferenceInput,
    PortionInferenceResult,
    PortionSource,
    ReferenceMacros,
)
from nutrient_snapshots.services.portions import (
    format_portion_label,
    infer_portion_grams,
    rescale_snapshot,
)
from tests.conftest import SCALED_AT, make_snapshot


def _scaled(portion_grams: float | None = None) -> NutrientSnapshot:
    return NutrientSnapshot(portion_grams=portion_grams, scaled_at=SCALED_AT)


def test_recorded_portion_wins_over_everything() -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(portion_grams=175.5),
            serving_size_grams=50,
            quantity_value=2,
            nutrients_per_100g=ReferenceMacros(calories=200),
            stored_calories=100,
        )
    )

    assert result == PortionInferenceResult(
        175.5, PortionSource.PORTION_GRAMS, PortionConfidence.HIGH
    )


def test_recorded_portion_on_unscaled_snapshot() -> None:
    snapshot = NutrientSnapshot(portion_grams=30)

    result = infer_portion_grams(PortionInferenceInput(nutrient_snapshot=snapshot))

    assert result.inferred_grams == 30
    assert result.source is PortionSource.PORTION_GRAMS


@pytest.mark.parametrize("scaled_at", [None, ""])
def test_unscaled_snapshot_defaults_to_100g(scaled_at: str | None) -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=NutrientSnapshot(scaled_at=scaled_at),
            serving_size_grams=50,
            quantity_value=2,
            nutrients_per_100g=ReferenceMacros(calories=200),
            stored_calories=100,
        )
    )

    assert result == PortionInferenceResult(
        100, PortionSource.DEFAULT_100G, PortionConfidence.HIGH
    )


def test_missing_snapshot_defaults_to_100g() -> None:
    result = infer_portion_grams(PortionInferenceInput(serving_size_grams=50))

    assert result.source is PortionSource.DEFAULT_100G
    assert result.confidence is PortionConfidence.HIGH


@pytest.mark.parametrize("portion_grams", [0, -5])
def test_non_positive_portion_is_ignored(portion_grams: float) -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(portion_grams=portion_grams),
            serving_size_grams=40,
        )
    )

    assert result.source is PortionSource.SERVING_SIZE_GRAMS
    assert result.inferred_grams == 40


def test_serving_size_times_quantity() -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            serving_size_grams=50,
            quantity_value=2,
        )
    )

    assert result == PortionInferenceResult(
        100, PortionSource.SERVING_SIZE_GRAMS, PortionConfidence.MEDIUM
    )


@pytest.mark.parametrize("quantity", [None, 0, -3])
def test_non_positive_quantity_counts_as_one(quantity: float | None) -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            serving_size_grams=45,
            quantity_value=quantity,
        )
    )

    assert result.inferred_grams == 45
    assert result.confidence is PortionConfidence.MEDIUM


def test_serving_size_precedes_macro_ratio() -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            serving_size_grams=30,
            nutrients_per_100g=ReferenceMacros(calories=200),
            stored_calories=100,
        )
    )

    assert result.source is PortionSource.SERVING_SIZE_GRAMS


def test_macro_ratio_back_calculation() -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            serving_size_grams=0,
            nutrients_per_100g=ReferenceMacros(calories=200),
            stored_calories=100,
        )
    )

    assert result == PortionInferenceResult(
        50, PortionSource.MACRO_RATIO, PortionConfidence.MEDIUM
    )


@pytest.mark.parametrize("calories_per_100g", [0, -20, None])
def test_unusable_reference_calories_give_no_inference(
    calories_per_100g: float | None,
) -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            nutrients_per_100g=ReferenceMacros(calories=calories_per_100g),
            stored_calories=100,
        )
    )

    assert result == PortionInferenceResult(
        None, PortionSource.NONE, PortionConfidence.NONE
    )


@pytest.mark.parametrize("stored", [None, 0, -10])
def test_unusable_stored_calories_give_no_inference(stored: float | None) -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            nutrients_per_100g=ReferenceMacros(calories=200),
            stored_calories=stored,
        )
    )

    assert result.source is PortionSource.NONE
    assert result.inferred_grams is None


@pytest.mark.parametrize(
    ("per_100g", "stored"),
    [(0.001, 100000), (1, 100), (100, 10000)],
)
def test_implausible_macro_ratio_falls_through(per_100g: float, stored: float) -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            nutrients_per_100g=ReferenceMacros(calories=per_100g),
            stored_calories=stored,
        )
    )

    assert result.source is PortionSource.NONE
    assert result.confidence is PortionConfidence.NONE


def test_macro_ratio_just_under_bound_is_accepted() -> None:
    result = infer_portion_grams(
        PortionInferenceInput(
            nutrient_snapshot=_scaled(),
            nutrients_per_100g=ReferenceMacros(calories=100),
            stored_calories=9999,
        )
    )

    assert result.source is PortionSource.MACRO_RATIO
    assert result.inferred_grams == pytest.approx(9999)


def test_inference_is_repeatable() -> None:
    data = PortionInferenceInput(
        nutrient_snapshot=_scaled(),
        nutrients_per_100g=ReferenceMacros(calories=240),
        stored_calories=90,
    )

    assert infer_portion_grams(data) == infer_portion_grams(data)


def test_rescale_scales_from_inferred_baseline() -> None:
    snapshot = make_snapshot(portion_grams=50)
    inference = infer_portion_grams(PortionInferenceInput(nutrient_snapshot=snapshot))
    now = datetime(2026, 2, 1, 8, 30, tzinfo=UTC)

    rescaled = rescale_snapshot(
        snapshot,
        inference,
        grams_per_serving=75,
        servings=2,
        serving_label="1 cup",
        scaled_at=now,
    )

    values = {nutrient.id: nutrient.value for nutrient in rescaled.nutrients}
    assert values[1008] == 600
    assert values[1003] == 30
    assert values[1093] == 450
    assert values[2000] is None
    assert len(rescaled.nutrients) == 31
    assert rescaled.portion_grams == 150
    assert rescaled.portion_label == "2x 1 cup"
    assert rescaled.scaled_at == now.isoformat()
    assert rescaled.fdc_id == snapshot.fdc_id


def test_rescale_rounds_to_two_decimals() -> None:
    snapshot = NutrientSnapshot(
        nutrients=[NutrientValue(1003, "Protein", "g", 10)],
        portion_grams=30,
    )
    inference = infer_portion_grams(PortionInferenceInput(nutrient_snapshot=snapshot))

    rescaled = rescale_snapshot(
        snapshot, inference, grams_per_serving=10, servings=1, serving_label="10g"
    )

    protein = next(item for item in rescaled.nutrients if item.id == 1003)
    assert protein.value == 3.33
    assert rescaled.portion_label == "10g"
    assert rescaled.scaled_at is not None


def test_rescale_without_baseline_keeps_values() -> None:
    snapshot = make_snapshot()
    inference = PortionInferenceResult(None, PortionSource.NONE, PortionConfidence.NONE)

    rescaled = rescale_snapshot(
        snapshot, inference, grams_per_serving=40, servings=1.5, serving_label="slice"
    )

    assert rescaled.nutrients == snapshot.nutrients
    assert rescaled.scaled_at == snapshot.scaled_at
    assert rescaled.portion_grams == 60
    assert rescaled.portion_label == "1.5x slice"


def test_format_portion_label() -> None:
    assert format_portion_label("1 cup", 1) == "1 cup"
    assert format_portion_label("1 cup", 0.5) == "1 cup"
    assert format_portion_label("1 cup", 3.0) == "3x 1 cup"


def test_rescale_rounds_halves_up() -> None:
    snapshot = NutrientSnapshot(
        nutrients=[NutrientValue(1079, "Fiber", "g", 0.25)],
        portion_grams=100,
    )
    inference = infer_portion_grams(PortionInferenceInput(nutrient_snapshot=snapshot))

    rescaled = rescale_snapshot(
        snapshot, inference, grams_per_serving=50, servings=1, serving_label="50g"
    )

    fiber = next(item for item in rescaled.nutrients if item.id == 1079)
    assert fiber.value == 0.13
