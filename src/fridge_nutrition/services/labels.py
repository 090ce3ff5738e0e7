"""Parser for free-text nutrition labels from the certification API.

Label text arrives in several dialects, for example::

    총 내용량 100g 250kcal, 나트륨 620mg 31%, 탄수화물 35g 12%, ...

Values are matched per nutrient within a single comma-delimited clause, so a
number belonging to one nutrient never leaks into the next one.
"""

import logging
import re
from dataclasses import dataclass

from fridge_nutrition.domain.labels import LabelNutrient, ParsedLabel

_logger = logging.getLogger(__name__)

UNKNOWN_LABEL_MARKERS = frozenset({"알수없음", "알 수 없음", "정보 없음", "."})

# Order is display order before sorting by percentage.
NUTRIENT_UNITS: dict[str, str] = {
    "열량": "kcal",
    "나트륨": "mg",
    "탄수화물": "g",
    "당류": "g",
    "지방": "g",
    "트랜스지방": "g",
    "포화지방": "g",
    "콜레스테롤": "mg",
    "단백질": "g",
    "칼슘": "mg",
}

# No %DV is printed for these.
NO_PERCENTAGE_NUTRIENTS = frozenset({"열량", "트랜스지방"})


@dataclass(frozen=True)
class ServingPattern:
    """A serving-size dialect and the pattern recognising it."""

    name: str
    pattern: re.Pattern[str]

    def extract(self, text: str) -> str | None:
        match = self.pattern.search(text)
        if match is None:
            return None
        return match.group(0)


def _serving(name: str, pattern: str) -> ServingPattern:
    return ServingPattern(name=name, pattern=re.compile(pattern, re.IGNORECASE))


# Earlier patterns win on ambiguous text.
SERVING_PATTERNS: tuple[ServingPattern, ...] = (
    _serving("total_content_kcal", r"(총\s*내용량.*?kcal)"),
    _serving("bracket_total_per_serving", r"\[총제공량/1회제공량\]\s*:\s*(\d+)"),
    _serving("bracket_serving_kcal", r"\[1회제공량\s*칼로리\(Kcal\)\]\s*:\s*(\d+)"),
    _serving("total_bags", r"총\s*제공량\s*\d+g\(\d+g[Xx]\d+봉지\)"),
    _serving("per_bag_kcal", r"\d+봉지\(\d+g\)당\s*\d+kcal"),
    _serving(
        "fraction_bag_total",
        r"1회\s*제공량\s*\d+/\d+봉지\(\d+g\)\s*총\d+회\s*제공량\(\d+g\)",
    ),
    _serving(
        "serving_paren_total",
        r"1회\s*제공량\s*\(\d+g\)\s*총\s*\d+회\s*제공량\(\d+g\)",
    ),
    _serving("serving_per_serving", r"1회\s*제공량\(\d+g\)/1회\s*제공량당"),
    _serving(
        "serving_slash_total",
        r"1회\s*제공량\(\d+g\)/\s*총\s*\d+회\s*제공량\(\d+g\)",
    ),
    _serving("serving_content_colon", r"(1회\s*제공량.*?함량.*?:)"),
    _serving("serving_total_loose", r"(1회\s*제공량.*?총.*?제공량.*?\))"),
    _serving("per_grams_total_content", r"\d+g당/총\s*내용량\s*\d+g"),
    _serving("per_grams_loose", r"(\d+g당.*?내용량.*?g)"),
)

# Longer names first so 포화지방 is not read as 지방.
_NUTRIENT_NAME_PATTERN = re.compile(
    "|".join(
        re.escape(name) for name in sorted(NUTRIENT_UNITS, key=len, reverse=True)
    )
)


def _value_pattern(name: str) -> re.Pattern[str]:
    return re.compile(
        rf"{re.escape(name)}[^,]*?([0-9,.]+)\s*(?:mg|g|kcal)", re.IGNORECASE
    )


def _percentage_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(name)}[^,]*?([0-9,.]+)\s*%", re.IGNORECASE)


_VALUE_PATTERNS = {name: _value_pattern(name) for name in NUTRIENT_UNITS}
_PERCENTAGE_PATTERNS = {
    name: _percentage_pattern(name)
    for name in NUTRIENT_UNITS
    if name not in NO_PERCENTAGE_NUTRIENTS
}


def is_unknown_label(raw_text: str | None) -> bool:
    """Return true when the label text carries no information."""
    if raw_text is None:
        return True
    stripped = raw_text.strip()
    return not stripped or stripped in UNKNOWN_LABEL_MARKERS


def normalize_whitespace(raw_text: str) -> str:
    """Collapse newlines and repeated whitespace into single spaces."""
    return re.sub(r"\s+", " ", raw_text.replace("\n", " ")).strip()


def extract_serving_info(text: str) -> str | None:
    """Return the serving text of the first matching dialect."""
    for serving_pattern in SERVING_PATTERNS:
        serving_info = serving_pattern.extract(text)
        if serving_info is not None:
            return serving_info
    return None


def extract_value(text: str, name: str, default: str = "0") -> str:
    """Return the amount printed after a nutrient name, without unit."""
    match = _VALUE_PATTERNS[name].search(text)
    if match is None:
        return default
    return match.group(1).replace(",", ".", 1)


def extract_percentage(text: str, name: str) -> int:
    """Return the integer %DV printed after a nutrient name, or 0."""
    pattern = _PERCENTAGE_PATTERNS.get(name)
    if pattern is None:
        return 0
    match = pattern.search(text)
    if match is None:
        return 0
    digits = re.match(r"\d+", match.group(1))
    return int(digits.group(0)) if digits else 0


def find_ambiguous_clauses(text: str) -> tuple[str, ...]:
    """Return clauses naming more than one nutrient."""
    ambiguous = []
    for clause in text.split(","):
        names = set(_NUTRIENT_NAME_PATTERN.findall(clause))
        if len(names) > 1:
            ambiguous.append(clause.strip())
    return tuple(ambiguous)


def parse_label(raw_text: str | None) -> ParsedLabel:
    """Parse label text into serving info and nutrients sorted by %DV."""
    if is_unknown_label(raw_text):
        return ParsedLabel(serving_info=None)

    text = normalize_whitespace(raw_text)
    nutrients = [
        LabelNutrient(
            name=name,
            value=f"{extract_value(text, name)}{unit}",
            percentage=extract_percentage(text, name),
        )
        for name, unit in NUTRIENT_UNITS.items()
    ]
    nutrients.sort(key=lambda nutrient: nutrient.percentage, reverse=True)

    ambiguous = find_ambiguous_clauses(text)
    if ambiguous:
        _logger.warning(
            "Label clauses mention several nutrients: %s", "; ".join(ambiguous)
        )

    return ParsedLabel(
        serving_info=extract_serving_info(text),
        nutrients=tuple(nutrients),
        ambiguous_clauses=ambiguous,
    )
