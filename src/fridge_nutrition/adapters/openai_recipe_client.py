"""OpenAI chat completions client for recipe generation."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from fridge_nutrition.services.recipes import RecipeClient


@dataclass
class OpenAIRecipeClient(RecipeClient):
    """Recipe client backed by the OpenAI chat completions API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIRecipeClient":
        """Create an OpenAI recipe client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def complete(
        self, *, model: str, system_prompt: str, prompt: str, max_tokens: int
    ) -> str:
        """Send the prompt and return the first choice's text."""
        completion = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
        )
        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise RuntimeError("OpenAI returned an empty response")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
