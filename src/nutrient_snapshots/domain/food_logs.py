"""Domain models for logged foods."""

from dataclasses import dataclass
from uuid import UUID

from nutrient_snapshots.domain.nutrients import NutrientSnapshot
from nutrient_snapshots.domain.portions import ReferenceMacros


@dataclass(frozen=True)
class FoodLogRecord:
    """A logged food row with its nutrient snapshot."""

    id: UUID
    user_id: UUID
    food_name: str
    quantity_value: float
    quantity_unit: str
    calories: float
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    fiber_g: float | None = None
    sugar_g: float | None = None
    food_item_id: UUID | None = None
    nutrient_snapshot: NutrientSnapshot | None = None


@dataclass(frozen=True)
class FoodItemReference:
    """Catalog facts about the food a log row points at."""

    id: UUID
    serving_size_grams: float | None
    nutrients_per_100g: ReferenceMacros


@dataclass(frozen=True)
class FoodLogUpdate:
    """Columns written when a logged portion changes."""

    quantity_value: float
    quantity_unit: str
    calories: float
    protein_g: float | None
    carbs_g: float | None
    fat_g: float | None
    fiber_g: float | None
    sugar_g: float | None
    nutrient_snapshot: NutrientSnapshot
