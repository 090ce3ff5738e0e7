"""Models for parsed nutrition labels."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LabelNutrient:
    """One nutrient line of a label, e.g. 나트륨 620mg (31%)."""

    name: str
    value: str
    percentage: int


@dataclass(frozen=True)
class ParsedLabel:
    """Serving text and nutrients extracted from label text."""

    serving_info: str | None
    nutrients: tuple[LabelNutrient, ...] = ()
    ambiguous_clauses: tuple[str, ...] = ()
