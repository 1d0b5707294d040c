"""Nutrient catalog and snapshot models."""

import math
from dataclasses import dataclass, field
from enum import Enum


class NutrientGroup(Enum):
    """Catalog grouping used for display."""

    MACRO = "macro"
    LIPID = "lipid"
    MINERAL = "mineral"
    VITAMIN = "vitamin"


@dataclass(frozen=True)
class NutrientDefinition:
    """A tracked FoodData Central nutrient."""

    fdc_nutrient_id: int
    name: str
    unit: str
    group: NutrientGroup
    display_order: int
    is_core_macro: bool = False


@dataclass(frozen=True)
class NutrientValue:
    """A single nutrient amount inside a snapshot."""

    id: int
    name: str
    unit: str
    value: float | None


@dataclass(frozen=True)
class ExtractedMacros:
    """Headline macros pulled out of a snapshot."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    sugar: float | None = None


_MACRO = NutrientGroup.MACRO
_LIPID = NutrientGroup.LIPID
_MINERAL = NutrientGroup.MINERAL
_VITAMIN = NutrientGroup.VITAMIN

NUTRIENT_DEFINITIONS: tuple[NutrientDefinition, ...] = (
    NutrientDefinition(1008, "Energy", "kcal", _MACRO, 1, is_core_macro=True),
    NutrientDefinition(1003, "Protein", "g", _MACRO, 2, is_core_macro=True),
    NutrientDefinition(1005, "Carbohydrate", "g", _MACRO, 3, is_core_macro=True),
    NutrientDefinition(1004, "Total Fat", "g", _MACRO, 4, is_core_macro=True),
    NutrientDefinition(1079, "Fiber", "g", _MACRO, 5),
    NutrientDefinition(2000, "Total Sugars", "g", _MACRO, 6),
    NutrientDefinition(1258, "Saturated Fat", "g", _LIPID, 10),
    NutrientDefinition(1257, "Trans Fat", "g", _LIPID, 11),
    NutrientDefinition(1253, "Cholesterol", "mg", _LIPID, 12),
    NutrientDefinition(1087, "Calcium", "mg", _MINERAL, 20),
    NutrientDefinition(1089, "Iron", "mg", _MINERAL, 21),
    NutrientDefinition(1090, "Magnesium", "mg", _MINERAL, 22),
    NutrientDefinition(1091, "Phosphorus", "mg", _MINERAL, 23),
    NutrientDefinition(1092, "Potassium", "mg", _MINERAL, 24),
    NutrientDefinition(1093, "Sodium", "mg", _MINERAL, 25),
    NutrientDefinition(1095, "Zinc", "mg", _MINERAL, 26),
    NutrientDefinition(1098, "Copper", "mg", _MINERAL, 27),
    NutrientDefinition(1101, "Manganese", "mg", _MINERAL, 28),
    NutrientDefinition(1103, "Selenium", "µg", _MINERAL, 29),
    NutrientDefinition(1106, "Vitamin A", "µg", _VITAMIN, 30),
    NutrientDefinition(1162, "Vitamin C", "mg", _VITAMIN, 31),
    NutrientDefinition(1114, "Vitamin D", "µg", _VITAMIN, 32),
    NutrientDefinition(1109, "Vitamin E", "mg", _VITAMIN, 33),
    NutrientDefinition(1185, "Vitamin K", "µg", _VITAMIN, 34),
    NutrientDefinition(1165, "Thiamin (B1)", "mg", _VITAMIN, 35),
    NutrientDefinition(1166, "Riboflavin (B2)", "mg", _VITAMIN, 36),
    NutrientDefinition(1167, "Niacin (B3)", "mg", _VITAMIN, 37),
    NutrientDefinition(1170, "Pantothenic Acid (B5)", "mg", _VITAMIN, 38),
    NutrientDefinition(1175, "Vitamin B6", "mg", _VITAMIN, 39),
    NutrientDefinition(1177, "Folate (B9)", "µg", _VITAMIN, 40),
    NutrientDefinition(1178, "Vitamin B12", "µg", _VITAMIN, 41),
)

NUTRIENT_IDS = {
    "calories": 1008,
    "protein": 1003,
    "carbs": 1005,
    "fat": 1004,
    "fiber": 1079,
    "sugar": 2000,
    "saturated_fat": 1258,
    "trans_fat": 1257,
    "cholesterol": 1253,
}

TRACKED_NUTRIENT_IDS: frozenset[int] = frozenset(
    definition.fdc_nutrient_id for definition in NUTRIENT_DEFINITIONS
)
CORE_MACRO_IDS: tuple[int, ...] = tuple(
    definition.fdc_nutrient_id
    for definition in NUTRIENT_DEFINITIONS
    if definition.is_core_macro
)
FIBER_SUGAR_IDS: tuple[int, ...] = (NUTRIENT_IDS["fiber"], NUTRIENT_IDS["sugar"])
DETAILED_FAT_IDS: tuple[int, ...] = (
    NUTRIENT_IDS["saturated_fat"],
    NUTRIENT_IDS["trans_fat"],
    NUTRIENT_IDS["cholesterol"],
)

_DEFINITIONS_BY_ID = {
    definition.fdc_nutrient_id: definition for definition in NUTRIENT_DEFINITIONS
}


def get_nutrient_definition(fdc_nutrient_id: int) -> NutrientDefinition | None:
    """Return the catalog entry for a nutrient id."""
    return _DEFINITIONS_BY_ID.get(fdc_nutrient_id)


def is_tracked_nutrient(fdc_nutrient_id: int) -> bool:
    """Return True when the nutrient id is in the catalog."""
    return fdc_nutrient_id in TRACKED_NUTRIENT_IDS


def is_core_macro(fdc_nutrient_id: int) -> bool:
    """Return True for energy, protein, carbohydrate and total fat."""
    return fdc_nutrient_id in CORE_MACRO_IDS


def definitions_by_group(group: NutrientGroup) -> list[NutrientDefinition]:
    """Return catalog entries for a group in display order."""
    return [
        definition
        for definition in sorted_definitions()
        if definition.group is group
    ]


def sorted_definitions() -> list[NutrientDefinition]:
    """Return the catalog sorted by display order."""
    return sorted(NUTRIENT_DEFINITIONS, key=lambda item: item.display_order)


@dataclass(frozen=True)
class NutrientSnapshot:
    """Nutrient values recorded for a logged food at a point in time.

    The JSON form uses the camelCase keys stored in the ``nutrient_snapshot``
    column. Keys this model does not know about are kept in ``extra`` so a
    load/save cycle does not drop them.
    """

    nutrients: list[NutrientValue] = field(default_factory=list)
    fetched_at: str | None = None
    portion_grams: float | None = None
    portion_label: str | None = None
    scaled_at: str | None = None
    fdc_id: int | None = None
    source: str | None = None
    extra: dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: object) -> "NutrientSnapshot | None":
        """Parse a stored snapshot, tolerating partial or malformed data."""
        if not isinstance(payload, dict):
            return None
        raw_nutrients = payload.get("nutrients")
        nutrients: list[NutrientValue] = []
        if isinstance(raw_nutrients, list):
            for raw in raw_nutrients:
                parsed = _parse_nutrient(raw)
                if parsed is not None:
                    nutrients.append(parsed)
        fdc_id = payload.get("fdcId")
        extra = {
            key: value for key, value in payload.items() if key not in _KNOWN_KEYS
        }
        return cls(
            nutrients=nutrients,
            fetched_at=_optional_str(payload.get("fetchedAt")),
            portion_grams=optional_float(payload.get("portionGrams")),
            portion_label=_optional_str(payload.get("portionLabel")),
            scaled_at=_optional_str(payload.get("scaledAt")),
            fdc_id=fdc_id if isinstance(fdc_id, int) else None,
            source=_optional_str(payload.get("source")),
            extra=extra,
        )

    def to_payload(self) -> dict[str, object]:
        """Serialize to the stored camelCase JSON shape."""
        payload: dict[str, object] = dict(self.extra)
        payload["nutrients"] = [
            {
                "id": nutrient.id,
                "name": nutrient.name,
                "unit": nutrient.unit,
                "value": nutrient.value,
            }
            for nutrient in self.nutrients
        ]
        optional = {
            "fetchedAt": self.fetched_at,
            "portionGrams": self.portion_grams,
            "portionLabel": self.portion_label,
            "scaledAt": self.scaled_at,
            "fdcId": self.fdc_id,
            "source": self.source,
        }
        for key, value in optional.items():
            if value is not None:
                payload[key] = value
        return payload


_KNOWN_KEYS = frozenset(
    {
        "nutrients",
        "fetchedAt",
        "portionGrams",
        "portionLabel",
        "scaledAt",
        "fdcId",
        "source",
    }
)


def _parse_nutrient(raw: object) -> NutrientValue | None:
    if not isinstance(raw, dict):
        return None
    nutrient_id = raw.get("id")
    if isinstance(nutrient_id, bool) or not isinstance(nutrient_id, int):
        return None
    definition = get_nutrient_definition(nutrient_id)
    name = raw.get("name")
    unit = raw.get("unit")
    return NutrientValue(
        id=nutrient_id,
        name=str(name) if name is not None else (definition.name if definition else ""),
        unit=str(unit) if unit is not None else (definition.unit if definition else ""),
        value=optional_float(raw.get("value")),
    )


def optional_float(value: object) -> float | None:
    """Parse a JSON or NUMERIC value, rejecting booleans and non-finite numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        parsed = float(value)
    elif isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
    else:
        return None
    return parsed if math.isfinite(parsed) else None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
