"""Pydantic request and response models for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nutrient_snapshots.domain.nutrients import NutrientSnapshot
from nutrient_snapshots.domain.portions import (
    PortionInferenceInput,
    PortionInferenceResult,
    ReferenceMacros,
)


class CamelModel(BaseModel):
    """Base model using the camelCase wire names of the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NutrientValueModel(CamelModel):
    """A single nutrient amount."""

    id: int
    name: str | None = None
    unit: str | None = None
    value: float | None = None


class NutrientSnapshotModel(CamelModel):
    """Stored nutrient snapshot; unknown keys are passed through."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    nutrients: list[NutrientValueModel] = Field(default_factory=list)
    fetched_at: str | None = None
    portion_grams: float | None = None
    portion_label: str | None = None
    scaled_at: str | None = None
    fdc_id: int | None = None
    source: str | None = None

    def to_domain(self) -> NutrientSnapshot:
        snapshot = NutrientSnapshot.from_payload(
            self.model_dump(by_alias=True, exclude_none=True)
        )
        return snapshot if snapshot is not None else NutrientSnapshot()

    @classmethod
    def from_domain(cls, snapshot: NutrientSnapshot) -> "NutrientSnapshotModel":
        return cls.model_validate(snapshot.to_payload())


class ReferenceMacrosModel(CamelModel):
    """Macro values per 100 g."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None

    def to_domain(self) -> ReferenceMacros:
        return ReferenceMacros(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )


class PortionEvidenceModel(CamelModel):
    """Evidence used to infer the portion of a logged food."""

    nutrient_snapshot: NutrientSnapshotModel | None = None
    serving_size_grams: float | None = None
    quantity_value: float | None = None
    nutrients_per_100g: ReferenceMacrosModel | None = Field(
        default=None, alias="nutrientsPer100g"
    )
    stored_calories: float | None = None

    def to_domain(self) -> PortionInferenceInput:
        return PortionInferenceInput(
            nutrient_snapshot=(
                self.nutrient_snapshot.to_domain() if self.nutrient_snapshot else None
            ),
            serving_size_grams=self.serving_size_grams,
            quantity_value=self.quantity_value,
            nutrients_per_100g=(
                self.nutrients_per_100g.to_domain()
                if self.nutrients_per_100g
                else None
            ),
            stored_calories=self.stored_calories,
        )


class PortionInferenceModel(CamelModel):
    """Inferred portion with the rule that produced it."""

    inferred_grams: float | None
    source: str
    confidence: str

    @classmethod
    def from_domain(cls, result: PortionInferenceResult) -> "PortionInferenceModel":
        return cls(
            inferred_grams=result.inferred_grams,
            source=result.source.value,
            confidence=result.confidence.value,
        )


class PortionChangeModel(CamelModel):
    """New portion for a logged food."""

    grams_per_serving: float = Field(gt=0)
    servings: float = Field(default=1, gt=0)
    serving_label: str = Field(min_length=1)


class RescaleRequest(PortionEvidenceModel, PortionChangeModel):
    """Snapshot rescale request; the snapshot is required."""

    nutrient_snapshot: NutrientSnapshotModel


class RescaleResponse(CamelModel):
    """Rescaled snapshot and the baseline it was scaled from."""

    nutrient_snapshot: NutrientSnapshotModel
    inference: PortionInferenceModel


class SectionsRequest(CamelModel):
    """Snapshot to group into panel sections."""

    nutrient_snapshot: NutrientSnapshotModel | None = None
    null_display: str | None = None


class FormattedNutrientModel(NutrientValueModel):
    """Nutrient value with its display string."""

    display: str


class NutrientSectionModel(CamelModel):
    """One panel section."""

    key: str
    title: str
    has_values: bool
    nutrients: list[FormattedNutrientModel]


class NutrientSectionsResponse(CamelModel):
    """All panel sections plus data coverage."""

    sections: list[NutrientSectionModel]
    total_nutrients: int
    nutrients_with_data: int
    has_micronutrient_data: bool


class NutrientDefinitionModel(CamelModel):
    """Catalog entry."""

    fdc_nutrient_id: int
    name: str
    unit: str
    nutrient_group: str
    display_order: int
    is_core_macro: bool


class FoodSummaryModel(CamelModel):
    """FDC search hit."""

    fdc_id: int
    description: str
    brand_name: str | None = None
    data_type: str | None = None


class FdcSnapshotRequest(CamelModel):
    """Portion to build an FDC snapshot for."""

    grams: float | None = Field(default=None, gt=0)
    portion_label: str = "100g"


class PortionOptionModel(CamelModel):
    """Selectable portion of an FDC food."""

    id: str
    label: str
    grams: float


class FdcSnapshotResponse(CamelModel):
    """Snapshot built from an FDC food together with its catalog facts."""

    nutrient_snapshot: NutrientSnapshotModel
    serving_size_grams: float | None
    can_scale_portions: bool
    portion_options: list[PortionOptionModel]
    nutrients_per_100g: ReferenceMacrosModel = Field(alias="nutrientsPer100g")


class FoodLogModel(CamelModel):
    """Logged food row."""

    id: str
    user_id: str
    food_name: str
    quantity_value: float
    quantity_unit: str
    calories: float
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    fiber_g: float | None = None
    sugar_g: float | None = None
    food_item_id: str | None = None
    nutrient_snapshot: NutrientSnapshotModel | None = None
