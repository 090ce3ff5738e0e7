"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from fridge_nutrition.adapters.csv_reference_repository import CsvReferenceRepository
from fridge_nutrition.adapters.food_cert_client import HttpxFoodCertClient
from fridge_nutrition.adapters.openai_recipe_client import OpenAIRecipeClient
from fridge_nutrition.adapters.supabase_inventory_repository import (
    SupabaseInventoryRepository,
)
from fridge_nutrition.config import Settings
from fridge_nutrition.services.analysis import NutritionAnalysisService
from fridge_nutrition.services.cache import InMemoryCache
from fridge_nutrition.services.food_info import FoodInfoService
from fridge_nutrition.services.inventory import InventoryService
from fridge_nutrition.services.recipes import RecipeService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    analysis_service: NutritionAnalysisService
    food_info_service: FoodInfoService
    recipe_service: RecipeService
    inventory_service: InventoryService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    reference_repository = CsvReferenceRepository.create(
        standards_path=resolved_settings.standards_csv_path,
        foods_path=resolved_settings.food_csv_path,
    )
    food_cert_client = HttpxFoodCertClient.create(
        base_url=resolved_settings.food_cert_base_url,
        service_key=resolved_settings.food_cert_service_key,
    )
    recipe_client = OpenAIRecipeClient.create(resolved_settings.openai_api_key)

    async def close_resources() -> None:
        await food_cert_client.close()
        await recipe_client.close()

    return AppContainer(
        settings=resolved_settings,
        analysis_service=NutritionAnalysisService(reference_repository),
        food_info_service=FoodInfoService(
            client=food_cert_client,
            cache=InMemoryCache(),
            ttl_seconds=resolved_settings.food_info_ttl_seconds,
        ),
        recipe_service=RecipeService(
            client=recipe_client,
            model=resolved_settings.openai_model,
            max_tokens=resolved_settings.openai_max_tokens,
        ),
        inventory_service=InventoryService(
            SupabaseInventoryRepository(supabase_client)
        ),
        close_resources=close_resources,
    )
