"""Lookup of recommended daily intake standards by age and gender."""

from collections.abc import Iterable

from fridge_nutrition.domain.nutrition import NutritionStandard

MINIMUM_AGE = 15
MALE = "남성"
FEMALE = "여성"
MALE_TOKENS = frozenset({"남성", "남자", "male", "m"})

# (lowest age, highest age or None, band label)
AGE_BANDS: tuple[tuple[int, int | None, str], ...] = (
    (15, 18, "15-18세"),
    (19, 29, "19-29세"),
    (30, 49, "30-49세"),
    (50, 64, "50-64세"),
    (65, 74, "65-74세"),
    (75, None, "75세 이상"),
)


class InvalidAgeError(ValueError):
    """Raised when an age falls below the youngest band."""

    def __init__(self, age: int) -> None:
        super().__init__(f"No nutrition standard for age {age}")
        self.age = age


class StandardNotFoundError(LookupError):
    """Raised when the reference table lacks a band/gender row."""

    def __init__(self, age_group: str, gender: str) -> None:
        super().__init__(f"No nutrition standard row for {age_group} {gender}")
        self.age_group = age_group
        self.gender = gender


def age_group_for(age: int) -> str:
    """Return the band label for an age."""
    for low, high, label in AGE_BANDS:
        if age >= low and (high is None or age <= high):
            return label
    raise InvalidAgeError(age)


def normalize_gender(gender: str) -> str:
    """Map a gender token to a table label.

    Only the male tokens are recognised; any other token, including typos and
    unknown values, resolves to the female row.
    """
    return MALE if gender.lower() in MALE_TOKENS else FEMALE


def lookup_standard(
    age: int, gender: str, standards: Iterable[NutritionStandard]
) -> NutritionStandard:
    """Return the standard row for an age and gender."""
    age_group = age_group_for(age)
    normalized = normalize_gender(gender)
    for standard in standards:
        if standard.age_group == age_group and standard.gender == normalized:
            return standard
    raise StandardNotFoundError(age_group, normalized)
