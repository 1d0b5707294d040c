"""Portion edits for logged foods."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from nutrient_snapshots.domain.food_logs import (
    FoodItemReference,
    FoodLogRecord,
    FoodLogUpdate,
)
from nutrient_snapshots.domain.portions import (
    PortionConfidence,
    PortionInferenceInput,
    PortionInferenceResult,
)
from nutrient_snapshots.services.nutrients import (
    SectionedNutrients,
    extract_macros_from_snapshot,
    group_nutrients_by_section,
)
from nutrient_snapshots.services.portions import infer_portion_grams, rescale_snapshot

_logger = logging.getLogger(__name__)


class PortionUpdateError(ValueError):
    """Raised when a requested portion change cannot be applied."""


class FoodLogRepository(Protocol):
    """Persistence interface for logged foods."""

    def get_food_log(self, food_log_id: UUID) -> FoodLogRecord | None:
        """Return a food log row by id."""

    def get_food_item(self, food_item_id: UUID) -> FoodItemReference | None:
        """Return serving size and per-100 g macros for a catalog food."""

    def update_food_log(
        self, food_log_id: UUID, update: FoodLogUpdate
    ) -> FoodLogRecord | None:
        """Persist portion changes and return the updated row."""


@dataclass
class FoodLogService:
    """Infers and edits the portion recorded on logged foods."""

    repository: FoodLogRepository

    def infer_portion(self, food_log_id: UUID) -> PortionInferenceResult | None:
        """Return the inferred portion for a food log, or None if it is missing."""
        record = self.repository.get_food_log(food_log_id)
        if record is None:
            return None
        return infer_portion_grams(self._inference_input(record))

    def update_portion(  # noqa: PLR0913
        self,
        food_log_id: UUID,
        *,
        grams_per_serving: float,
        servings: float,
        serving_label: str,
        now: datetime | None = None,
    ) -> FoodLogRecord | None:
        """Rescale a logged food to a new portion and persist it."""
        if grams_per_serving <= 0:
            raise PortionUpdateError("grams_per_serving must be positive")
        if servings <= 0:
            raise PortionUpdateError("servings must be positive")

        record = self.repository.get_food_log(food_log_id)
        if record is None:
            return None
        snapshot = record.nutrient_snapshot
        if snapshot is None:
            raise PortionUpdateError("Food log has no nutrient snapshot to rescale")

        inference = infer_portion_grams(self._inference_input(record))
        if inference.confidence is PortionConfidence.NONE:
            raise PortionUpdateError(
                "Cannot infer the current portion of this food log to rescale from"
            )
        rescaled = rescale_snapshot(
            snapshot,
            inference,
            grams_per_serving=grams_per_serving,
            servings=servings,
            serving_label=serving_label,
            scaled_at=now,
        )
        macros = extract_macros_from_snapshot(rescaled.nutrients)
        update = FoodLogUpdate(
            quantity_value=servings,
            quantity_unit=serving_label,
            calories=_prefer(macros.calories, record.calories),
            protein_g=_prefer(macros.protein, record.protein_g),
            carbs_g=_prefer(macros.carbs, record.carbs_g),
            fat_g=_prefer(macros.fat, record.fat_g),
            fiber_g=_prefer(macros.fiber, record.fiber_g),
            sugar_g=_prefer(macros.sugar, record.sugar_g),
            nutrient_snapshot=rescaled,
        )
        _logger.info(
            "Food log %s portion updated: baseline=%s (%s) new=%sg",
            food_log_id,
            inference.inferred_grams,
            inference.source.value,
            rescaled.portion_grams,
        )
        return self.repository.update_food_log(food_log_id, update)

    def nutrient_sections(self, food_log_id: UUID) -> SectionedNutrients | None:
        """Return the food log's snapshot grouped into panel sections."""
        record = self.repository.get_food_log(food_log_id)
        if record is None:
            return None
        return group_nutrients_by_section(record.nutrient_snapshot)

    def _inference_input(self, record: FoodLogRecord) -> PortionInferenceInput:
        food_item = None
        if record.food_item_id is not None:
            food_item = self.repository.get_food_item(record.food_item_id)
        return PortionInferenceInput(
            nutrient_snapshot=record.nutrient_snapshot,
            serving_size_grams=food_item.serving_size_grams if food_item else None,
            quantity_value=record.quantity_value,
            nutrients_per_100g=food_item.nutrients_per_100g if food_item else None,
            stored_calories=record.calories,
        )


def _prefer(value: float | None, fallback: float | None) -> float | None:
    return value if value is not None else fallback
