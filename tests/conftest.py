"""Shared test fixtures."""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from uuid import UUID, uuid4

import pytest

from nutrient_snapshots.adapters.fdc_client import FdcClient
from nutrient_snapshots.config import Settings
from nutrient_snapshots.containers import AppContainer
from nutrient_snapshots.domain.food_logs import (
    FoodItemReference,
    FoodLogRecord,
    FoodLogUpdate,
)
from nutrient_snapshots.domain.nutrients import NutrientSnapshot, NutrientValue
from nutrient_snapshots.domain.portions import ReferenceMacros
from nutrient_snapshots.services.cache import InMemoryCache
from nutrient_snapshots.services.fdc import FdcService
from nutrient_snapshots.services.food_logs import FoodLogRepository, FoodLogService

SCALED_AT = "2026-01-05T12:00:00+00:00"


@dataclass
class InMemoryFoodLogRepository(FoodLogRepository):
    """In-memory food log repository for tests."""

    logs: dict[UUID, FoodLogRecord] = field(default_factory=dict)
    food_items: dict[UUID, FoodItemReference] = field(default_factory=dict)
    updates: list[tuple[UUID, FoodLogUpdate]] = field(default_factory=list)

    def get_food_log(self, food_log_id: UUID) -> FoodLogRecord | None:
        return self.logs.get(food_log_id)

    def get_food_item(self, food_item_id: UUID) -> FoodItemReference | None:
        return self.food_items.get(food_item_id)

    def update_food_log(
        self, food_log_id: UUID, update: FoodLogUpdate
    ) -> FoodLogRecord | None:
        record = self.logs.get(food_log_id)
        if record is None:
            return None
        self.updates.append((food_log_id, update))
        updated = replace(
            record,
            quantity_value=update.quantity_value,
            quantity_unit=update.quantity_unit,
            calories=update.calories,
            protein_g=update.protein_g,
            carbs_g=update.carbs_g,
            fat_g=update.fat_g,
            fiber_g=update.fiber_g,
            sugar_g=update.sugar_g,
            nutrient_snapshot=update.nutrient_snapshot,
        )
        self.logs[food_log_id] = updated
        return updated

    def add(self, record: FoodLogRecord) -> FoodLogRecord:
        self.logs[record.id] = record
        return record


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with in-memory responses."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "fdcId": 171077,
                    "description": "Chicken, broilers or fryers, breast, raw",
                    "dataType": "SR Legacy",
                },
                {
                    "fdcId": 171077,
                    "description": "Chicken, broilers or fryers, breast, raw",
                    "dataType": "SR Legacy",
                },
            ]
        }
    )
    food_payload: dict[str, object] = field(
        default_factory=lambda: {
            "fdcId": 171077,
            "description": "Chicken, broilers or fryers, breast, raw",
            "dataType": "SR Legacy",
            "servingSize": 150,
            "servingSizeUnit": "g",
            "foodPortions": [
                {
                    "id": 81,
                    "amount": 1,
                    "gramWeight": 172,
                    "modifier": "breast, bone and skin removed",
                    "measureUnit": {"name": "undetermined"},
                }
            ],
            "foodNutrients": [
                {"nutrient": {"id": 1008}, "amount": 120},
                {"nutrient": {"id": 1003}, "amount": 22.5},
                {"nutrient": {"id": 1004}, "amount": 2.62},
                {"nutrient": {"id": 1005}, "amount": 0},
                {"nutrient": {"id": 1093}, "amount": 45},
                {"nutrient": {"id": 9999}, "amount": 1},
            ],
        }
    )
    search_calls: int = 0
    food_calls: int = 0

    async def search_foods(
        self,
        query: str,
        page_size: int = 10,
        data_types: Sequence[str] | None = None,
    ) -> dict[str, object]:
        self.search_calls += 1
        return self.search_payload

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.food_calls += 1
        return self.food_payload


def make_snapshot(
    *,
    calories: float | None = 200,
    protein: float | None = 10,
    carbs: float | None = 20,
    fat: float | None = 8,
    fiber: float | None = 3,
    sodium: float | None = 150,
    portion_grams: float | None = None,
    scaled_at: str | None = SCALED_AT,
) -> NutrientSnapshot:
    return NutrientSnapshot(
        nutrients=[
            NutrientValue(1008, "Energy", "kcal", calories),
            NutrientValue(1003, "Protein", "g", protein),
            NutrientValue(1005, "Carbohydrate", "g", carbs),
            NutrientValue(1004, "Total Fat", "g", fat),
            NutrientValue(1079, "Fiber", "g", fiber),
            NutrientValue(1093, "Sodium", "mg", sodium),
        ],
        fetched_at="2026-01-05T11:59:00+00:00",
        portion_grams=portion_grams,
        scaled_at=scaled_at,
        fdc_id=171077,
        source="fda",
    )


def make_food_log(
    snapshot: NutrientSnapshot | None,
    *,
    calories: float = 200,
    quantity_value: float = 1,
    food_item_id: UUID | None = None,
) -> FoodLogRecord:
    return FoodLogRecord(
        id=uuid4(),
        user_id=uuid4(),
        food_name="Oats",
        quantity_value=quantity_value,
        quantity_unit="serving",
        calories=calories,
        protein_g=10,
        carbs_g=20,
        fat_g=8,
        fiber_g=3,
        sugar_g=1,
        food_item_id=food_item_id,
        nutrient_snapshot=snapshot,
    )


def make_food_item(
    serving_size_grams: float | None = None, calories_per_100g: float | None = None
) -> FoodItemReference:
    return FoodItemReference(
        id=uuid4(),
        serving_size_grams=serving_size_grams,
        nutrients_per_100g=ReferenceMacros(calories=calories_per_100g),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        api_token="api-token",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def food_log_repository() -> InMemoryFoodLogRepository:
    return InMemoryFoodLogRepository()


@pytest.fixture
def fdc_client() -> FakeFdcClient:
    return FakeFdcClient()


@pytest.fixture
def container(
    settings: Settings,
    food_log_repository: InMemoryFoodLogRepository,
    fdc_client: FakeFdcClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        fdc_service=FdcService(fdc_client=fdc_client, cache=InMemoryCache()),
        food_log_service=FoodLogService(food_log_repository),
        close_resources=close_resources,
    )
