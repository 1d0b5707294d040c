"""FoodData Central reference food models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ReferenceNutrient:
    """A tracked nutrient amount for a reference food."""

    fdc_nutrient_id: int
    name: str
    unit: str
    amount_per_100g: float | None
    amount_per_serving: float | None


@dataclass(frozen=True)
class FoodPortion:
    """A household measure of a food with its gram weight.

    ``label`` is the first of portion description, modifier and measure unit
    name, or ``"serving"`` when FDC gives none of them.
    """

    id: int | None
    amount: float
    gram_weight: float | None
    label: str
    measure_unit: str | None = None
    portion_description: str | None = None


@dataclass(frozen=True)
class PortionOption:
    """A selectable portion for building a snapshot; ``grams`` 0 means none."""

    id: str
    label: str
    grams: float


@dataclass(frozen=True)
class FoodSummary:
    """Search hit from FDC."""

    fdc_id: int
    description: str
    brand_name: str | None
    data_type: str | None


@dataclass(frozen=True)
class FoodReference:
    """FDC food normalized to tracked nutrients.

    ``serving_size`` is in ``serving_size_unit``, which may be grams or a
    volume such as ml.
    """

    fdc_id: int
    description: str
    brand_name: str | None
    data_type: str | None
    serving_size: float | None
    nutrients: list[ReferenceNutrient] = field(default_factory=list)
    serving_size_unit: str | None = None
    household_serving_text: str | None = None
    portions: list[FoodPortion] = field(default_factory=list)

    def nutrient(self, fdc_nutrient_id: int) -> ReferenceNutrient | None:
        """Return the nutrient entry for an id, if present."""
        for item in self.nutrients:
            if item.fdc_nutrient_id == fdc_nutrient_id:
                return item
        return None
