"""Recipe recommendation from refrigerator ingredients using an LLM."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from fridge_nutrition.domain.recipes import Recipe

SYSTEM_PROMPT = (
    "당신은 요리 전문가입니다. 요리 이름을 먼저 알려주고, 그 다음 재료 목록"
    "(하이픈 없이 쉼표로 구분)과 조리 순서를 명확하게 설명해주세요."
)

_PROMPT_TEMPLATE = """다음 재료들로 만들 수 있는 요리를 추천해주세요.
먼저 요리 이름을 한 줄로 작성하고, 그 다음 재료 목록과 조리 순서를 알려주세요.

다음과 같은 형식으로 작성해주세요:
[요리 이름]

재료:
파스타 200g, 올리브오일 2큰술, 마늘 2쪽 (이런 형식으로 재료와 분량을 쉼표로 구분해서 작성, 하이픈(-) 사용하지 않기)

조리순서:
1. [첫 번째 단계]
2. [두 번째 단계]
...

재료: {ingredients}"""

_NAME_PREFIX = "요리명:"
_INGREDIENTS_SECTION = re.compile(r"재료:(.*?)(?=조리순서:)", re.DOTALL)
_STEPS_SECTION = re.compile(r"조리순서:(.*)$", re.DOTALL)
_NUMBERED_STEP = re.compile(r"^\d+\.")

_logger = logging.getLogger(__name__)


class RecipeClient(Protocol):
    """Interface for the chat model generating recipes."""

    async def complete(
        self, *, model: str, system_prompt: str, prompt: str, max_tokens: int
    ) -> str:
        """Return the model's text answer."""


@dataclass
class RecipeService:
    """Builds recipe prompts and parses the model's answer."""

    client: RecipeClient
    model: str
    max_tokens: int = 1000

    async def recommend(self, ingredients: list[str]) -> Recipe:
        """Suggest a recipe that uses the given ingredients."""
        if not ingredients:
            raise ValueError("At least one ingredient is required")
        text = await self.client.complete(
            model=self.model,
            system_prompt=SYSTEM_PROMPT,
            prompt=build_prompt(ingredients),
            max_tokens=self.max_tokens,
        )
        recipe = parse_recipe_text(text.strip())
        _logger.info(
            "Recipe generated: name=%s steps=%s", recipe.name, len(recipe.steps)
        )
        return recipe


def build_prompt(ingredients: list[str]) -> str:
    """Return the user prompt listing the ingredients."""
    return _PROMPT_TEMPLATE.format(ingredients=", ".join(ingredients))


def parse_recipe_text(text: str) -> Recipe:
    """Parse a free-text recipe with 재료: and 조리순서: sections."""
    first_line = text.split("\n", 1)[0].strip()
    name = (
        first_line.removeprefix(_NAME_PREFIX).strip()
        if first_line.startswith(_NAME_PREFIX)
        else first_line
    )

    ingredients = ""
    ingredients_match = _INGREDIENTS_SECTION.search(text)
    if ingredients_match:
        items = (
            re.sub(r"^[-\s]+", "", item.strip())
            for item in re.split(r"[\n,]", ingredients_match.group(1).strip())
        )
        ingredients = ", ".join(item for item in items if item)

    steps: list[str] = []
    steps_match = _STEPS_SECTION.search(text)
    if steps_match:
        steps = [
            line.strip()
            for line in steps_match.group(1).strip().split("\n")
            if line.strip() and _NUMBERED_STEP.match(line.strip())
        ]

    return Recipe(name=name, ingredients=ingredients, steps=steps)
