"""Supabase repository for logged foods."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrient_snapshots.domain.food_logs import (
    FoodItemReference,
    FoodLogRecord,
    FoodLogUpdate,
)
from nutrient_snapshots.domain.nutrients import (
    NUTRIENT_IDS,
    NutrientSnapshot,
    optional_float,
)
from nutrient_snapshots.domain.portions import ReferenceMacros
from nutrient_snapshots.services.food_logs import FoodLogRepository

_FOOD_LOG_COLUMNS = (
    "id, user_id, food_name, quantity_value, quantity_unit, servings, "
    "serving_description, calories, protein, carbs, fat, fiber, sugar, "
    "food_item_id, nutrient_snapshot"
)


@dataclass
class SupabaseFoodLogRepository(FoodLogRepository):
    """Supabase implementation for food logs."""

    client: Client

    def get_food_log(self, food_log_id: UUID) -> FoodLogRecord | None:
        """Return a food log row by id."""
        response = (
            self.client.table("food_logs")
            .select(_FOOD_LOG_COLUMNS)
            .eq("id", str(food_log_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_food_log(response.data[0])

    def get_food_item(self, food_item_id: UUID) -> FoodItemReference | None:
        """Return serving size and per-100 g macros for a catalog food."""
        response = (
            self.client.table("food_items")
            .select("id, serving_size_grams")
            .eq("id", str(food_item_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        nutrients_response = (
            self.client.table("food_item_nutrients")
            .select("amount_per_100g, nutrient_definitions(fdc_nutrient_id)")
            .eq("food_item_id", str(food_item_id))
            .execute()
        )
        per_100g: dict[int, float | None] = {}
        for nutrient_row in nutrients_response.data or []:
            definition = nutrient_row.get("nutrient_definitions") or {}
            fdc_nutrient_id = definition.get("fdc_nutrient_id")
            if isinstance(fdc_nutrient_id, int):
                per_100g[fdc_nutrient_id] = optional_float(
                    nutrient_row.get("amount_per_100g")
                )
        return FoodItemReference(
            id=UUID(row["id"]),
            serving_size_grams=optional_float(row.get("serving_size_grams")),
            nutrients_per_100g=ReferenceMacros(
                calories=per_100g.get(NUTRIENT_IDS["calories"]),
                protein=per_100g.get(NUTRIENT_IDS["protein"]),
                carbs=per_100g.get(NUTRIENT_IDS["carbs"]),
                fat=per_100g.get(NUTRIENT_IDS["fat"]),
            ),
        )

    def update_food_log(
        self, food_log_id: UUID, update: FoodLogUpdate
    ) -> FoodLogRecord | None:
        """Write the new portion, macros and snapshot."""
        response = (
            self.client.table("food_logs")
            .update(
                {
                    "quantity_value": update.quantity_value,
                    "servings": update.quantity_value,
                    "quantity_unit": update.quantity_unit,
                    "serving_description": update.quantity_unit,
                    "calories": update.calories,
                    "protein": update.protein_g,
                    "carbs": update.carbs_g,
                    "fat": update.fat_g,
                    "fiber": update.fiber_g,
                    "sugar": update.sugar_g,
                    "nutrient_snapshot": update.nutrient_snapshot.to_payload(),
                }
            )
            .eq("id", str(food_log_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update food log")
        return _parse_food_log(response.data[0])


def _parse_food_log(row: dict[str, object]) -> FoodLogRecord:
    quantity = optional_float(row.get("quantity_value"))
    if quantity is None:
        quantity = optional_float(row.get("servings"))
    unit = row.get("quantity_unit") or row.get("serving_description") or "serving"
    return FoodLogRecord(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        food_name=str(row.get("food_name", "")),
        quantity_value=quantity if quantity is not None else 1.0,
        quantity_unit=str(unit),
        calories=optional_float(row.get("calories")) or 0.0,
        protein_g=optional_float(row.get("protein")),
        carbs_g=optional_float(row.get("carbs")),
        fat_g=optional_float(row.get("fat")),
        fiber_g=optional_float(row.get("fiber")),
        sugar_g=optional_float(row.get("sugar")),
        food_item_id=UUID(row["food_item_id"]) if row.get("food_item_id") else None,
        nutrient_snapshot=NutrientSnapshot.from_payload(row.get("nutrient_snapshot")),
    )

