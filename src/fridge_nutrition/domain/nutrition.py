"""Nutrition reference data and analysis models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class NutritionStandard:
    """Recommended daily intake for one age band and gender."""

    age_group: str
    gender: str
    values: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FoodComposition:
    """Nutrient amounts per 100g of a food, as raw table text."""

    name: str
    values: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class IntakeEntry:
    """A single eaten food and its amount in grams."""

    food_name: str
    amount_grams: float


@dataclass(frozen=True)
class NutrientStatus:
    """Intake of one nutrient compared against its standard."""

    intake: float
    standard: float
    percentage: float


@dataclass(frozen=True)
class NutritionReport:
    """Result of a full nutrition analysis request."""

    standard: NutritionStandard
    analysis: dict[str, NutrientStatus]
    recommendations: dict[str, list[tuple[str, float]]]
