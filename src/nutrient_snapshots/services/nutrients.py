"""Nutrient grouping and display formatting."""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from nutrient_snapshots.domain.nutrients import (
    CORE_MACRO_IDS,
    DETAILED_FAT_IDS,
    FIBER_SUGAR_IDS,
    NUTRIENT_DEFINITIONS,
    NUTRIENT_IDS,
    ExtractedMacros,
    NutrientGroup,
    NutrientSnapshot,
    NutrientValue,
    get_nutrient_definition,
    sorted_definitions,
)

NULL_DISPLAY = "—"

_GROUP_NAMES = {
    NutrientGroup.MACRO: "Macronutrients",
    NutrientGroup.LIPID: "Fats & Cholesterol",
    NutrientGroup.MINERAL: "Minerals",
    NutrientGroup.VITAMIN: "Vitamins",
}

_SECTION_NAMES = {
    "core_macros": "Macros",
    "fiber_sugar": "Fiber & Sugar",
    "vitamins": "Vitamins",
    "minerals": "Minerals",
    "detailed_fats": "Fats & Cholesterol",
}


@dataclass
class GroupedNutrients:
    """Catalog nutrients bucketed by nutrient group."""

    macro: list[NutrientValue] = field(default_factory=list)
    lipid: list[NutrientValue] = field(default_factory=list)
    mineral: list[NutrientValue] = field(default_factory=list)
    vitamin: list[NutrientValue] = field(default_factory=list)


@dataclass
class SectionedNutrients:
    """Catalog nutrients bucketed into the nutrient panel sections."""

    core_macros: list[NutrientValue] = field(default_factory=list)
    fiber_sugar: list[NutrientValue] = field(default_factory=list)
    vitamins: list[NutrientValue] = field(default_factory=list)
    minerals: list[NutrientValue] = field(default_factory=list)
    detailed_fats: list[NutrientValue] = field(default_factory=list)

    def sections(self) -> list[tuple[str, list[NutrientValue]]]:
        """Return ``(section, nutrients)`` pairs in panel order."""
        return [
            ("core_macros", self.core_macros),
            ("fiber_sugar", self.fiber_sugar),
            ("vitamins", self.vitamins),
            ("minerals", self.minerals),
            ("detailed_fats", self.detailed_fats),
        ]


def format_nutrient_value(
    value: float | None,
    unit: str,
    *,
    precision: int = 1,
    show_unit: bool = True,
    null_display: str = NULL_DISPLAY,
) -> str:
    """Format a nutrient amount with magnitude-dependent precision.

    Energy and anything at or above 100 is shown as an integer, values from 1
    up use ``precision`` decimals, and small non-zero values get one extra
    decimal (capped at two).
    """
    if value is None:
        return null_display

    magnitude = abs(value)
    if unit == "kcal" or magnitude >= 100:
        formatted = str(math.floor(value + 0.5))
    elif magnitude >= 1:
        formatted = _to_fixed(value, precision)
    elif value == 0:
        formatted = "0"
    else:
        formatted = _to_fixed(value, min(2, precision + 1))

    if show_unit and unit:
        return f"{formatted}{unit}"
    return formatted


def round_nutrient(value: float) -> float:
    """Round a nutrient amount to two decimals, halves going up."""
    return math.floor(value * 100 + 0.5) / 100


def group_nutrients(nutrients: Sequence[NutrientValue]) -> GroupedNutrients:
    """Bucket nutrients by catalog group, filling gaps with empty values."""
    grouped = GroupedNutrients()
    buckets = {
        NutrientGroup.MACRO: grouped.macro,
        NutrientGroup.LIPID: grouped.lipid,
        NutrientGroup.MINERAL: grouped.mineral,
        NutrientGroup.VITAMIN: grouped.vitamin,
    }
    for value in _catalog_values(nutrients):
        definition_group = _group_of(value.id)
        buckets[definition_group].append(value)
    return grouped


def group_nutrients_by_section(
    snapshot: NutrientSnapshot | None,
) -> SectionedNutrients:
    """Bucket snapshot nutrients into the nutrient panel sections."""
    result = SectionedNutrients()
    if snapshot is None or not snapshot.nutrients:
        return result

    for value in _catalog_values(snapshot.nutrients):
        group = _group_of(value.id)
        if value.id in CORE_MACRO_IDS:
            result.core_macros.append(value)
        elif value.id in FIBER_SUGAR_IDS:
            result.fiber_sugar.append(value)
        elif value.id in DETAILED_FAT_IDS:
            result.detailed_fats.append(value)
        elif group is NutrientGroup.VITAMIN:
            result.vitamins.append(value)
        elif group is NutrientGroup.MINERAL:
            result.minerals.append(value)
    return result


def group_display_name(group: NutrientGroup) -> str:
    return _GROUP_NAMES[group]


def section_display_name(section: str) -> str:
    return _SECTION_NAMES[section]


def extract_macros_from_snapshot(
    nutrients: Sequence[NutrientValue] | None,
) -> ExtractedMacros:
    """Pull headline macros out of snapshot nutrients."""
    if not nutrients:
        return ExtractedMacros()
    return ExtractedMacros(
        calories=get_nutrient_by_id(nutrients, NUTRIENT_IDS["calories"]),
        protein=get_nutrient_by_id(nutrients, NUTRIENT_IDS["protein"]),
        carbs=get_nutrient_by_id(nutrients, NUTRIENT_IDS["carbs"]),
        fat=get_nutrient_by_id(nutrients, NUTRIENT_IDS["fat"]),
        fiber=get_nutrient_by_id(nutrients, NUTRIENT_IDS["fiber"]),
        sugar=get_nutrient_by_id(nutrients, NUTRIENT_IDS["sugar"]),
    )


def get_nutrient_by_id(
    nutrients: Sequence[NutrientValue], nutrient_id: int
) -> float | None:
    """Return the first value recorded for a nutrient id."""
    for nutrient in nutrients:
        if nutrient.id == nutrient_id:
            return nutrient.value
    return None


def has_any_micronutrient_data(nutrients: Sequence[NutrientValue]) -> bool:
    """Return True when any non-core nutrient carries a value."""
    return any(
        nutrient.id not in CORE_MACRO_IDS and nutrient.value is not None
        for nutrient in nutrients
    )


def count_nutrients_with_data(
    nutrients: Sequence[NutrientValue],
) -> tuple[int, int]:
    """Return ``(catalog size, nutrients with a value)``."""
    with_data = sum(1 for nutrient in nutrients if nutrient.value is not None)
    return len(NUTRIENT_DEFINITIONS), with_data


def has_nutrients_with_values(nutrients: Sequence[NutrientValue]) -> bool:
    return any(nutrient.value is not None for nutrient in nutrients)


def create_empty_snapshot(fetched_at: datetime | None = None) -> NutrientSnapshot:
    """Return a snapshot listing every catalog nutrient without values."""
    timestamp = fetched_at or datetime.now(tz=UTC)
    return NutrientSnapshot(
        nutrients=[
            NutrientValue(
                id=definition.fdc_nutrient_id,
                name=definition.name,
                unit=definition.unit,
                value=None,
            )
            for definition in sorted_definitions()
        ],
        fetched_at=timestamp.isoformat(),
    )


def _to_fixed(value: float, digits: int) -> str:
    # Exact binary value, ties away from zero.
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _catalog_values(nutrients: Sequence[NutrientValue]) -> list[NutrientValue]:
    by_id: dict[int, NutrientValue] = {}
    for nutrient in nutrients:
        by_id.setdefault(nutrient.id, nutrient)
    values: list[NutrientValue] = []
    for definition in sorted_definitions():
        current = by_id.get(definition.fdc_nutrient_id)
        values.append(
            NutrientValue(
                id=definition.fdc_nutrient_id,
                name=current.name if current else definition.name,
                unit=current.unit if current else definition.unit,
                value=current.value if current else None,
            )
        )
    return values


def _group_of(nutrient_id: int) -> NutrientGroup:
    definition = get_nutrient_definition(nutrient_id)
    if definition is None:
        raise KeyError(nutrient_id)
    return definition.group
