"""Token-protected nutrient and portion endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrient_snapshots.api.models import (
    FdcSnapshotRequest,
    FdcSnapshotResponse,
    FoodLogModel,
    FoodSummaryModel,
    FormattedNutrientModel,
    NutrientDefinitionModel,
    NutrientSectionModel,
    NutrientSectionsResponse,
    NutrientSnapshotModel,
    PortionChangeModel,
    PortionEvidenceModel,
    PortionInferenceModel,
    PortionOptionModel,
    ReferenceMacrosModel,
    RescaleRequest,
    RescaleResponse,
    SectionsRequest,
)
from nutrient_snapshots.domain.nutrients import sorted_definitions
from nutrient_snapshots.services.fdc import (
    build_portion_options,
    build_snapshot_from_food,
    can_scale_portions,
    get_serving_grams,
    reference_macros,
)
from nutrient_snapshots.services.nutrients import (
    SectionedNutrients,
    count_nutrients_with_data,
    format_nutrient_value,
    group_nutrients_by_section,
    has_any_micronutrient_data,
    has_nutrients_with_values,
    section_display_name,
)
from nutrient_snapshots.services.portions import infer_portion_grams, rescale_snapshot

if TYPE_CHECKING:
    from nutrient_snapshots.containers import AppContainer
    from nutrient_snapshots.domain.food_logs import FoodLogRecord
    from nutrient_snapshots.domain.nutrients import NutrientSnapshot


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(dependencies=[Depends(require_token)])


@router.get("/nutrients/definitions")
async def nutrient_definitions() -> list[NutrientDefinitionModel]:
    """Return the tracked nutrient catalog in display order."""
    return [
        NutrientDefinitionModel(
            fdc_nutrient_id=definition.fdc_nutrient_id,
            name=definition.name,
            unit=definition.unit,
            nutrient_group=definition.group.value,
            display_order=definition.display_order,
            is_core_macro=definition.is_core_macro,
        )
        for definition in sorted_definitions()
    ]


@router.post("/portions/infer")
async def infer_portion(evidence: PortionEvidenceModel) -> PortionInferenceModel:
    """Infer the portion grams for posted evidence."""
    return PortionInferenceModel.from_domain(infer_portion_grams(evidence.to_domain()))


@router.post("/snapshots/rescale")
async def rescale(payload: RescaleRequest) -> RescaleResponse:
    """Rescale a snapshot from its inferred baseline to a new portion."""
    inference = infer_portion_grams(payload.to_domain())
    rescaled = rescale_snapshot(
        payload.nutrient_snapshot.to_domain(),
        inference,
        grams_per_serving=payload.grams_per_serving,
        servings=payload.servings,
        serving_label=payload.serving_label,
    )
    return RescaleResponse(
        nutrient_snapshot=NutrientSnapshotModel.from_domain(rescaled),
        inference=PortionInferenceModel.from_domain(inference),
    )


@router.post("/snapshots/sections")
async def snapshot_sections(
    payload: SectionsRequest, request: Request
) -> NutrientSectionsResponse:
    """Group and format a snapshot for the nutrient panel."""
    container: AppContainer = request.app.state.container
    snapshot = (
        payload.nutrient_snapshot.to_domain() if payload.nutrient_snapshot else None
    )
    null_display = payload.null_display or container.settings.nutrient_null_display
    return _sections_response(
        snapshot, group_nutrients_by_section(snapshot), null_display
    )


@router.get("/fdc/foods/search")
async def search_foods(
    query: str, request: Request, limit: int = 5
) -> list[FoodSummaryModel]:
    """Search FoodData Central."""
    container: AppContainer = request.app.state.container
    foods = await container.fdc_service.search(query, limit=limit)
    return [
        FoodSummaryModel(
            fdc_id=food.fdc_id,
            description=food.description,
            brand_name=food.brand_name,
            data_type=food.data_type,
        )
        for food in foods
    ]


@router.post("/fdc/foods/{fdc_id}/snapshot")
async def fdc_snapshot(
    fdc_id: int, payload: FdcSnapshotRequest, request: Request
) -> FdcSnapshotResponse:
    """Build a snapshot for a portion of an FDC food."""
    container: AppContainer = request.app.state.container
    food = await container.fdc_service.get_food(fdc_id)
    scalable = can_scale_portions(food)
    grams = payload.grams if scalable else None
    snapshot = build_snapshot_from_food(food, grams, payload.portion_label)
    macros = reference_macros(food)
    return FdcSnapshotResponse(
        nutrient_snapshot=NutrientSnapshotModel.from_domain(snapshot),
        serving_size_grams=get_serving_grams(food),
        can_scale_portions=scalable,
        portion_options=[
            PortionOptionModel(id=option.id, label=option.label, grams=option.grams)
            for option in build_portion_options(food)
        ],
        nutrients_per_100g=ReferenceMacrosModel(
            calories=macros.calories,
            protein=macros.protein,
            carbs=macros.carbs,
            fat=macros.fat,
        ),
    )


@router.get("/food-logs/{food_log_id}/portion")
async def food_log_portion(
    food_log_id: UUID, request: Request
) -> PortionInferenceModel:
    """Infer the portion of a logged food."""
    container: AppContainer = request.app.state.container
    result = container.food_log_service.infer_portion(food_log_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return PortionInferenceModel.from_domain(result)


@router.patch("/food-logs/{food_log_id}/portion")
async def update_food_log_portion(
    food_log_id: UUID, payload: PortionChangeModel, request: Request
) -> FoodLogModel:
    """Rescale a logged food to a new portion."""
    container: AppContainer = request.app.state.container
    record = container.food_log_service.update_portion(
        food_log_id,
        grams_per_serving=payload.grams_per_serving,
        servings=payload.servings,
        serving_label=payload.serving_label,
    )
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return _food_log_model(record)


@router.get("/food-logs/{food_log_id}/nutrients")
async def food_log_nutrients(
    food_log_id: UUID, request: Request
) -> NutrientSectionsResponse:
    """Return a logged food's nutrients grouped for the nutrient panel."""
    container: AppContainer = request.app.state.container
    sections = container.food_log_service.nutrient_sections(food_log_id)
    if sections is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    snapshot_values = [value for _, values in sections.sections() for value in values]
    total, with_data = count_nutrients_with_data(snapshot_values)
    return NutrientSectionsResponse(
        sections=_section_models(
            sections, container.settings.nutrient_null_display
        ),
        total_nutrients=total,
        nutrients_with_data=with_data,
        has_micronutrient_data=has_any_micronutrient_data(snapshot_values),
    )


def _sections_response(
    snapshot: NutrientSnapshot | None,
    sections: SectionedNutrients,
    null_display: str,
) -> NutrientSectionsResponse:
    nutrients = snapshot.nutrients if snapshot else []
    total, with_data = count_nutrients_with_data(nutrients)
    return NutrientSectionsResponse(
        sections=_section_models(sections, null_display),
        total_nutrients=total,
        nutrients_with_data=with_data,
        has_micronutrient_data=has_any_micronutrient_data(nutrients),
    )


def _section_models(
    sections: SectionedNutrients, null_display: str
) -> list[NutrientSectionModel]:
    return [
        NutrientSectionModel(
            key=key,
            title=section_display_name(key),
            has_values=has_nutrients_with_values(values),
            nutrients=[
                FormattedNutrientModel(
                    id=value.id,
                    name=value.name,
                    unit=value.unit,
                    value=value.value,
                    display=format_nutrient_value(
                        value.value, value.unit, null_display=null_display
                    ),
                )
                for value in values
            ],
        )
        for key, values in sections.sections()
    ]


def _food_log_model(record: FoodLogRecord) -> FoodLogModel:
    return FoodLogModel(
        id=str(record.id),
        user_id=str(record.user_id),
        food_name=record.food_name,
        quantity_value=record.quantity_value,
        quantity_unit=record.quantity_unit,
        calories=record.calories,
        protein_g=record.protein_g,
        carbs_g=record.carbs_g,
        fat_g=record.fat_g,
        fiber_g=record.fiber_g,
        sugar_g=record.sugar_g,
        food_item_id=str(record.food_item_id) if record.food_item_id else None,
        nutrient_snapshot=(
            NutrientSnapshotModel.from_domain(record.nutrient_snapshot)
            if record.nutrient_snapshot
            else None
        ),
    )
