"""CSV-backed reference tables for nutrition standards and food composition."""

from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from fridge_nutrition.domain.nutrition import FoodComposition, NutritionStandard
from fridge_nutrition.services.analysis import ReferenceRepository

AGE_COLUMN = "연령"
GENDER_COLUMN = "성별"
FOOD_NAME_COLUMN = "식품명"


@dataclass
class CsvReferenceRepository(ReferenceRepository):
    """Reads both tables on first use and keeps them for the process."""

    standards_path: Path
    foods_path: Path
    _standards: list[NutritionStandard] | None = field(default=None, repr=False)
    _foods: list[FoodComposition] | None = field(default=None, repr=False)

    @classmethod
    def create(cls, standards_path: str, foods_path: str) -> "CsvReferenceRepository":
        """Create a repository for the given CSV paths."""
        return cls(standards_path=Path(standards_path), foods_path=Path(foods_path))

    def list_standards(self) -> list[NutritionStandard]:
        """Return standard rows keyed by age band and gender."""
        if self._standards is None:
            self._standards = [
                NutritionStandard(
                    age_group=row.get(AGE_COLUMN, ""),
                    gender=row.get(GENDER_COLUMN, ""),
                    values=_without(row, AGE_COLUMN, GENDER_COLUMN),
                )
                for row in _read_rows(self.standards_path)
            ]
        return self._standards

    def list_foods(self) -> list[FoodComposition]:
        """Return food composition rows in file order."""
        if self._foods is None:
            self._foods = [
                FoodComposition(
                    name=row.get(FOOD_NAME_COLUMN, ""),
                    values=_without(row, FOOD_NAME_COLUMN),
                )
                for row in _read_rows(self.foods_path)
            ]
        return self._foods


def _read_rows(path: Path) -> list[dict[str, str]]:
    # Cells stay raw text; numeric parsing happens per operation.
    frame = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    frame.columns = [str(column).strip() for column in frame.columns]
    frame = frame.loc[:, ~frame.columns.str.startswith("Unnamed:")]
    return [
        {key: value.strip() for key, value in row.items()}
        for row in frame.to_dict("records")
    ]


def _without(row: dict[str, str], *columns: str) -> dict[str, str]:
    return {key: value for key, value in row.items() if key not in columns}
