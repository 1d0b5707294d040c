"""FoodData Central lookups and snapshot building."""

import asyncio
import logging
import math
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from nutrient_snapshots.adapters.fdc_client import FdcClient
from nutrient_snapshots.domain.fdc import (
    FoodPortion,
    FoodReference,
    FoodSummary,
    PortionOption,
    ReferenceNutrient,
)
from nutrient_snapshots.domain.nutrients import (
    NUTRIENT_IDS,
    NutrientSnapshot,
    NutrientValue,
    get_nutrient_definition,
    sorted_definitions,
)
from nutrient_snapshots.domain.portions import ReferenceMacros
from nutrient_snapshots.services.cache import Cache
from nutrient_snapshots.services.nutrients import round_nutrient

_logger = logging.getLogger(__name__)

_GRAM_UNIT = re.compile(r"^(g|gram|grams)$", re.IGNORECASE)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class FdcService:
    """FDC lookups with caching and a short retry."""

    fdc_client: FdcClient
    cache: Cache
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    debug: bool = False
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int = 5) -> list[FoodSummary]:
        """Search FDC foods, deduplicated by FDC id."""
        cache_key = f"fdc:search:{query.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self._call_with_retry(
            lambda: self.fdc_client.search_foods(query, page_size=limit),
            action="search",
        )
        foods: list[FoodSummary] = []
        seen: set[int] = set()
        for food in payload.get("foods", []):
            fdc_id = food.get("fdcId")
            if not isinstance(fdc_id, int) or fdc_id in seen:
                continue
            seen.add(fdc_id)
            foods.append(
                FoodSummary(
                    fdc_id=fdc_id,
                    description=food.get("description", ""),
                    brand_name=food.get("brandName") or food.get("brandOwner"),
                    data_type=food.get("dataType"),
                )
            )
        self.cache.set(cache_key, foods, ttl_seconds=self.search_ttl_seconds)
        if self.debug:
            _logger.info("FDC search: query=%s results=%s", query, len(foods))
        return foods

    async def get_food(self, fdc_id: int) -> FoodReference:
        """Return an FDC food normalized to tracked nutrients."""
        cache_key = f"fdc:food:{fdc_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodReference):
            return cached

        payload = await self._call_with_retry(
            lambda: self.fdc_client.get_food(fdc_id),
            action=f"get_food:{fdc_id}",
        )
        food = normalize_food(payload)
        self.cache.set(cache_key, food, ttl_seconds=self.food_ttl_seconds)
        if self.debug:
            _logger.info(
                "FDC food: fdc_id=%s nutrients=%s", fdc_id, len(food.nutrients)
            )
        return food

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                if self.debug:
                    _logger.warning(
                        "FDC %s failed (attempt %s/%s, status=%s): %s",
                        action,
                        attempt,
                        self.retry_attempts + 1,
                        _status_code_from_exception(exc),
                        exc,
                    )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def normalize_food(payload: dict[str, object]) -> FoodReference:
    """Convert a raw FDC food payload to a ``FoodReference``."""
    serving_size = _positive_float(payload.get("servingSize"))
    nutrients: list[ReferenceNutrient] = []
    seen: set[int] = set()
    for raw in payload.get("foodNutrients") or []:
        nutrient_info = raw.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or raw.get("nutrientId")
        if not isinstance(nutrient_id, int) or nutrient_id in seen:
            continue
        definition = get_nutrient_definition(nutrient_id)
        if definition is None:
            continue
        seen.add(nutrient_id)
        amount = raw.get("amount", raw.get("value"))
        per_100g = float(amount) if isinstance(amount, int | float) else None
        per_serving = None
        if serving_size is not None:
            per_serving = (per_100g or 0.0) * serving_size / 100
        nutrients.append(
            ReferenceNutrient(
                fdc_nutrient_id=nutrient_id,
                name=definition.name,
                unit=definition.unit,
                amount_per_100g=per_100g,
                amount_per_serving=per_serving,
            )
        )
    return FoodReference(
        fdc_id=int(payload["fdcId"]),
        description=str(payload.get("description", "")),
        brand_name=payload.get("brandName") or payload.get("brandOwner"),
        data_type=payload.get("dataType"),
        serving_size=serving_size,
        nutrients=nutrients,
        serving_size_unit=payload.get("servingSizeUnit") or None,
        household_serving_text=payload.get("householdServingFullText") or None,
        portions=[_normalize_portion(raw) for raw in payload.get("foodPortions") or []],
    )


def _normalize_portion(raw: dict[str, object]) -> FoodPortion:
    measure_unit = raw.get("measureUnit")
    unit_name = measure_unit.get("name") if isinstance(measure_unit, dict) else None
    description = raw.get("portionDescription") or None
    portion_id = raw.get("id")
    return FoodPortion(
        id=portion_id if isinstance(portion_id, int) else None,
        amount=_positive_float(raw.get("amount")) or 1.0,
        gram_weight=_positive_float(raw.get("gramWeight")),
        label=str(description or raw.get("modifier") or unit_name or "serving"),
        measure_unit=unit_name or None,
        portion_description=description,
    )


def get_serving_grams(food: FoodReference) -> float | None:
    """Return the gram weight of one serving, if it is known.

    A serving size counts only when its unit is grams; otherwise the first
    portion's gram weight is used.
    """
    unit = food.serving_size_unit
    if unit and _GRAM_UNIT.match(unit) and food.serving_size:
        return food.serving_size
    if food.portions and food.portions[0].gram_weight:
        return food.portions[0].gram_weight
    return None


def has_per_100g_data(food: FoodReference) -> bool:
    """Return True when any nutrient has a per-100 g amount."""
    return any(item.amount_per_100g is not None for item in food.nutrients)


def can_scale_portions(food: FoodReference) -> bool:
    """Return True when nutrients can be scaled to an arbitrary gram weight."""
    if has_per_100g_data(food):
        return True
    serving_grams = get_serving_grams(food)
    return serving_grams is not None and serving_grams > 0


def build_portion_options(food: FoodReference) -> list[PortionOption]:
    """List the portions a snapshot can be built for, most standard first."""
    if not can_scale_portions(food):
        return [PortionOption("label-serving", "1 serving (per label)", 0)]

    options = [PortionOption("100g", "100g", 100)]
    if food.portions:
        for portion in food.portions:
            options.append(
                PortionOption(
                    id=str(portion.id) if portion.id is not None else portion.label,
                    label=_portion_option_label(portion),
                    grams=portion.gram_weight or 0,
                )
            )
    elif food.household_serving_text and food.serving_size:
        options.append(
            PortionOption(
                id="household",
                label=(
                    f"{food.household_serving_text} "
                    f"({_format_grams(food.serving_size)})"
                ),
                grams=food.serving_size,
            )
        )
    options.append(PortionOption("custom", "Custom amount...", 0))
    return options


def reference_macros(food: FoodReference) -> ReferenceMacros:
    """Return per-100 g macros for a reference food."""

    def per_100g(key: str) -> float | None:
        nutrient = food.nutrient(NUTRIENT_IDS[key])
        return nutrient.amount_per_100g if nutrient else None

    return ReferenceMacros(
        calories=per_100g("calories"),
        protein=per_100g("protein"),
        carbs=per_100g("carbs"),
        fat=per_100g("fat"),
    )


def build_snapshot_from_food(
    food: FoodReference,
    grams: float | None,
    portion_label: str,
    now: datetime | None = None,
) -> NutrientSnapshot:
    """Build a snapshot of every catalog nutrient for a portion of a food.

    With ``grams`` the per-100 g amount is scaled to the portion, falling back
    to the per-serving amount converted through the serving gram weight.
    Without ``grams`` the per-serving amount is used as-is, or the per-100 g
    amount when the food has no serving size.
    """
    timestamp = (now or datetime.now(tz=UTC)).isoformat()
    serving_grams = get_serving_grams(food)
    values: list[NutrientValue] = []
    for definition in sorted_definitions():
        nutrient = food.nutrient(definition.fdc_nutrient_id)
        value = None
        if nutrient is not None:
            value = _portion_amount(nutrient, grams, serving_grams)
        values.append(
            NutrientValue(
                id=definition.fdc_nutrient_id,
                name=nutrient.name if nutrient else definition.name,
                unit=nutrient.unit if nutrient else definition.unit,
                value=round_nutrient(value) if value is not None else None,
            )
        )
    return NutrientSnapshot(
        nutrients=values,
        fetched_at=timestamp,
        portion_grams=grams,
        portion_label=portion_label,
        scaled_at=timestamp,
        fdc_id=food.fdc_id,
        source="fda",
        extra={"dataType": food.data_type} if food.data_type else {},
    )


def _portion_amount(
    nutrient: ReferenceNutrient, grams: float | None, serving_grams: float | None
) -> float | None:
    if grams is None:
        if nutrient.amount_per_serving is not None:
            return nutrient.amount_per_serving
        return nutrient.amount_per_100g
    if nutrient.amount_per_100g is not None:
        return nutrient.amount_per_100g * grams / 100
    if nutrient.amount_per_serving is not None and serving_grams:
        return nutrient.amount_per_serving * grams / serving_grams
    return nutrient.amount_per_serving


def _portion_option_label(portion: FoodPortion) -> str:
    if portion.gram_weight is None:
        return portion.label
    return f"{portion.label} ({_format_grams(portion.gram_weight)})"


def _format_grams(grams: float) -> str:
    return f"{math.floor(grams + 0.5)}g"


def _positive_float(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value) if value > 0 else None


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
