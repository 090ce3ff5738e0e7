"""Recipe models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Recipe:
    """Recipe suggested for a set of ingredients."""

    name: str
    ingredients: str
    steps: list[str] = field(default_factory=list)
