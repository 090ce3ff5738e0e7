"""Daily intake aggregation, RDA analysis and food recommendations."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from fridge_nutrition.domain.nutrition import (
    FoodComposition,
    IntakeEntry,
    NutrientStatus,
    NutritionReport,
    NutritionStandard,
)
from fridge_nutrition.services.standards import lookup_standard

DEFICIENCY_THRESHOLD_PERCENT = 90
RECOMMENDATIONS_PER_NUTRIENT = 3
FOOD_SEARCH_LIMIT = 10

_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_logger = logging.getLogger(__name__)


class ReferenceRepository(Protocol):
    """Source of the standards and food composition tables."""

    def list_standards(self) -> list[NutritionStandard]:
        """Return all standard rows."""

    def list_foods(self) -> list[FoodComposition]:
        """Return all food composition rows in table order."""


def parse_amount(raw: object) -> float | None:
    """Parse the leading number of a table cell; None if there is none."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        return float(raw)
    if not isinstance(raw, str):
        return None
    match = _LEADING_NUMBER.match(raw)
    if match is None:
        return None
    return float(match.group(0))


def aggregate_intake(
    entries: Iterable[IntakeEntry], foods: list[FoodComposition]
) -> dict[str, float]:
    """Sum nutrient amounts for the eaten foods, scaled from per-100g."""
    daily_intake: dict[str, float] = {}
    for entry in entries:
        food = next((row for row in foods if row.name == entry.food_name), None)
        if food is None:
            continue
        for nutrient, raw in food.values.items():
            if not raw:
                continue
            amount = parse_amount(raw)
            if amount is None:
                continue
            contribution = amount * (entry.amount_grams / 100)
            daily_intake[nutrient] = daily_intake.get(nutrient, 0.0) + contribution
    return daily_intake


def analyze(
    daily_intake: dict[str, float], standard: NutritionStandard
) -> dict[str, NutrientStatus]:
    """Compare intake with the standard; zero standards are left out."""
    analysis: dict[str, NutrientStatus] = {}
    for nutrient, raw in standard.values.items():
        standard_amount = parse_amount(raw)
        if not standard_amount:
            continue
        intake = daily_intake.get(nutrient, 0.0)
        analysis[nutrient] = NutrientStatus(
            intake=intake,
            standard=standard_amount,
            percentage=intake / standard_amount * 100,
        )
    return analysis


def deficient_nutrients(
    analysis: dict[str, NutrientStatus],
    threshold: float = DEFICIENCY_THRESHOLD_PERCENT,
) -> list[str]:
    """Return nutrients whose percentage is below the threshold."""
    return [
        nutrient
        for nutrient, status in analysis.items()
        if status.percentage < threshold
    ]


def recommend(
    deficient: Iterable[str], foods: list[FoodComposition]
) -> dict[str, list[tuple[str, float]]]:
    """Return the richest foods for each deficient nutrient."""
    recommendations: dict[str, list[tuple[str, float]]] = {}
    for nutrient in deficient:
        candidates = []
        for food in foods:
            amount = parse_amount(food.values.get(nutrient))
            if amount is not None and amount > 0:
                candidates.append((food.name, amount))
        candidates.sort(key=lambda candidate: candidate[1], reverse=True)
        recommendations[nutrient] = candidates[:RECOMMENDATIONS_PER_NUTRIENT]
    return recommendations


@dataclass
class NutritionAnalysisService:
    """Runs nutrition analyses against the reference tables."""

    repository: ReferenceRepository

    def get_standard(self, age: int, gender: str) -> NutritionStandard:
        """Return the standard row for an age and gender."""
        return lookup_standard(age, gender, self.repository.list_standards())

    def analyze_nutrition(
        self, age: int, gender: str, entries: list[IntakeEntry]
    ) -> NutritionReport:
        """Analyze a day's intake and recommend foods for shortfalls."""
        standard = self.get_standard(age, gender)
        foods = self.repository.list_foods()
        daily_intake = aggregate_intake(entries, foods)
        analysis = analyze(daily_intake, standard)
        deficient = deficient_nutrients(analysis)
        _logger.info(
            "Nutrition analysis: band=%s gender=%s entries=%s deficient=%s",
            standard.age_group,
            standard.gender,
            len(entries),
            len(deficient),
        )
        return NutritionReport(
            standard=standard,
            analysis=analysis,
            recommendations=recommend(deficient, foods),
        )

    def search_foods(
        self, query: str, limit: int = FOOD_SEARCH_LIMIT
    ) -> list[dict[str, object]]:
        """Return composition rows whose name contains the query."""
        needle = query.lower()
        results: list[dict[str, object]] = []
        for food in self.repository.list_foods():
            if needle not in food.name.lower():
                continue
            row: dict[str, object] = {"식품명": food.name}
            for nutrient, raw in food.values.items():
                row[nutrient] = parse_amount(raw) or 0
            results.append(row)
            if len(results) >= limit:
                break
        return results
