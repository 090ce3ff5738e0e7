"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from fridge_nutrition.api.models import (
    AnalyzeNutritionRequest,
    ParseLabelRequest,
    RecommendRecipeRequest,
    RegisterProductRequest,
    UpdateQuantityRequest,
)
from fridge_nutrition.app_logging import configure_logging
from fridge_nutrition.containers import AppContainer
from fridge_nutrition.domain.inventory import (
    ConsumptionAnalysis,
    ConsumptionRecord,
    ProductRecord,
)
from fridge_nutrition.domain.labels import ParsedLabel
from fridge_nutrition.domain.nutrition import (
    IntakeEntry,
    NutritionReport,
    NutritionStandard,
)
from fridge_nutrition.domain.products import ProductDescription
from fridge_nutrition.domain.recipes import Recipe
from fridge_nutrition.services.inventory import (
    ConcurrentQuantityUpdateError,
    NegativeQuantityError,
    ProductNotFoundError,
)
from fridge_nutrition.services.labels import parse_label
from fridge_nutrition.services.standards import (
    InvalidAgeError,
    StandardNotFoundError,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/analyze-nutrition")
    async def analyze_nutrition(
        body: AnalyzeNutritionRequest, request: Request
    ) -> dict[str, object]:
        """Analyze a day's intake against the age and gender standard."""
        state_container: AppContainer = request.app.state.container
        entries = [
            IntakeEntry(food_name=item.name, amount_grams=item.amount)
            for item in body.food_intake
        ]
        try:
            report = state_container.analysis_service.analyze_nutrition(
                body.age, body.gender, entries
            )
        except (InvalidAgeError, StandardNotFoundError) as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except Exception as exc:
            logger.exception("Nutrition analysis failed")
            raise _internal_error("Nutrition analysis failed") from exc
        return _report_payload(report)

    @app.get("/nutritional-info")
    async def nutritional_info(
        age: int, gender: str, request: Request
    ) -> dict[str, object]:
        """Return the intake standard for an age and gender."""
        state_container: AppContainer = request.app.state.container
        try:
            standard = state_container.analysis_service.get_standard(age, gender)
        except InvalidAgeError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except StandardNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
            ) from exc
        except Exception as exc:
            logger.exception("Nutrition standard lookup failed")
            raise _internal_error("Nutrition standard lookup failed") from exc
        return _standard_payload(standard)

    @app.get("/search-food")
    async def search_food(name: str, request: Request) -> list[dict[str, object]]:
        """Search the food composition table by name."""
        state_container: AppContainer = request.app.state.container
        try:
            return state_container.analysis_service.search_foods(name)
        except Exception as exc:
            logger.exception("Food search failed")
            raise _internal_error("Food search failed") from exc

    @app.post("/parse-label")
    async def parse_label_text(body: ParseLabelRequest) -> dict[str, object]:
        """Parse free-text nutrition label."""
        return _label_payload(parse_label(body.text))

    @app.get("/food-info/{product_name}")
    async def food_info(product_name: str, request: Request) -> list[dict[str, object]]:
        """Return certified products with parsed nutrition labels."""
        state_container: AppContainer = request.app.state.container
        try:
            descriptions = await state_container.food_info_service.describe(
                product_name
            )
        except Exception as exc:
            logger.exception(
                "Food certification lookup failed",
                extra={"product_name": product_name},
            )
            raise _internal_error("Food information lookup failed") from exc
        return [_description_payload(description) for description in descriptions]

    @app.get("/api/products")
    async def certified_products(
        productName: str,  # noqa: N803
        request: Request,
    ) -> dict[str, object]:
        """Return certified products keyed by barcode."""
        state_container: AppContainer = request.app.state.container
        try:
            products = await state_container.food_info_service.lookup(productName)
        except Exception as exc:
            logger.exception(
                "Food certification lookup failed",
                extra={"product_name": productName},
            )
            raise _internal_error("Food information lookup failed") from exc
        return {
            "products": [
                {
                    "id": product.barcode,
                    "name": product.product_name,
                    "allergyInfo": product.allergy_info,
                    "ingredients": product.ingredients,
                    "nutrients": product.nutrients,
                }
                for product in products
            ]
        }

    @app.post("/recommend-recipe")
    async def recommend_recipe(
        body: RecommendRecipeRequest, request: Request
    ) -> dict[str, object]:
        """Suggest a recipe for the given ingredients."""
        state_container: AppContainer = request.app.state.container
        if not body.ingredients:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ingredients are required",
            )
        try:
            recipe = await state_container.recipe_service.recommend(body.ingredients)
        except Exception as exc:
            logger.exception("Recipe generation failed")
            raise _internal_error("Recipe generation failed") from exc
        return _recipe_payload(recipe)

    @app.get("/search")
    async def search_products(
        request: Request, q: str = ""
    ) -> list[dict[str, object]]:
        """Search refrigerator products by name."""
        state_container: AppContainer = request.app.state.container
        try:
            products = state_container.inventory_service.search_products(q)
        except Exception as exc:
            logger.exception("Product search failed")
            raise _internal_error("Product search failed") from exc
        return [_product_payload(product) for product in products]

    @app.post("/api/product")
    async def register_product(
        body: RegisterProductRequest, request: Request
    ) -> dict[str, str]:
        """Register a product or add to the quantity of a matching one."""
        state_container: AppContainer = request.app.state.container
        try:
            created = state_container.inventory_service.register_product(
                body.model_dump()
            )
        except ConcurrentQuantityUpdateError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except Exception as exc:
            logger.exception("Product registration failed")
            raise _internal_error("Product registration failed") from exc
        if created:
            return {"message": "Product registered."}
        return {"message": "Product quantity updated."}

    @app.put("/update-quantity")
    async def update_quantity(
        body: UpdateQuantityRequest, request: Request
    ) -> dict[str, object]:
        """Change a product's quantity, logging consumption on decreases."""
        state_container: AppContainer = request.app.state.container
        try:
            product = state_container.inventory_service.update_quantity(
                body.id, body.change
            )
        except ProductNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
            ) from exc
        except NegativeQuantityError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quantity cannot be negative",
            ) from exc
        except ConcurrentQuantityUpdateError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except Exception as exc:
            logger.exception(
                "Quantity update failed", extra={"product_id": body.id}
            )
            raise _internal_error("Quantity update failed") from exc
        return _product_payload(product)

    @app.get("/expiring-products")
    async def expiring_products(request: Request) -> list[dict[str, str]]:
        """Return products expiring within four weeks."""
        state_container: AppContainer = request.app.state.container
        try:
            expiring = state_container.inventory_service.list_expiring()
        except Exception as exc:
            logger.exception("Expiring product listing failed")
            raise _internal_error("Expiring product listing failed") from exc
        return [
            {
                "product_name": product.product_name,
                "expiration_date": product.expiration_date.isoformat(),
            }
            for product in expiring
        ]

    @app.get("/consumption-analysis")
    async def consumption_analysis(request: Request) -> dict[str, object]:
        """Return last month's consumption with a top-products summary."""
        state_container: AppContainer = request.app.state.container
        try:
            analysis = state_container.inventory_service.consumption_analysis()
        except Exception as exc:
            logger.exception("Consumption analysis failed")
            raise _internal_error("Consumption analysis failed") from exc
        return _consumption_payload(analysis)

    return app


def _internal_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
    )


def _report_payload(report: NutritionReport) -> dict[str, object]:
    return {
        "analysis": {
            nutrient: {
                "intake": result.intake,
                "standard": result.standard,
                "percentage": result.percentage,
            }
            for nutrient, result in report.analysis.items()
        },
        "recommendations": {
            nutrient: [[name, amount] for name, amount in foods]
            for nutrient, foods in report.recommendations.items()
        },
    }


def _standard_payload(standard: NutritionStandard) -> dict[str, object]:
    return {"연령": standard.age_group, "성별": standard.gender, **standard.values}


def _label_payload(label: ParsedLabel) -> dict[str, object]:
    return {
        "servingInfo": label.serving_info,
        "nutrients": [
            {
                "name": nutrient.name,
                "value": nutrient.value,
                "percentage": nutrient.percentage,
            }
            for nutrient in label.nutrients
        ],
        "ambiguousClauses": list(label.ambiguous_clauses),
    }


def _description_payload(description: ProductDescription) -> dict[str, object]:
    product = description.product
    return {
        "productName": product.product_name,
        "barcode": product.barcode,
        "allergyInfo": description.allergy_info,
        "allergyStatus": description.allergy_status,
        "ingredients": product.ingredients,
        "nutrients": product.nutrients,
        "nutritionLabel": _label_payload(description.label),
    }


def _recipe_payload(recipe: Recipe) -> dict[str, object]:
    return {
        "name": recipe.name,
        "ingredients": recipe.ingredients,
        "recipe": recipe.steps,
    }


def _product_payload(product: ProductRecord) -> dict[str, object]:
    return {
        "id": product.id,
        "gtin": product.gtin,
        "product_name": product.product_name,
        "country": product.country,
        "company": product.company,
        "quantity": product.quantity,
        "expiration_date": (
            product.expiration_date.isoformat() if product.expiration_date else None
        ),
        "cls_nm_1": product.cls_nm_1,
        "cls_nm_2": product.cls_nm_2,
        "cls_nm_3": product.cls_nm_3,
    }


def _consumption_row(record: ConsumptionRecord) -> dict[str, object]:
    return {
        "usage_date": record.usage_date.isoformat(),
        "product_name": record.product_name,
        "cls_nm_1": record.cls_nm_1,
        "cls_nm_2": record.cls_nm_2,
        "cls_nm_3": record.cls_nm_3,
        "quantity_used": record.quantity_used,
    }


def _consumption_payload(analysis: ConsumptionAnalysis) -> dict[str, object]:
    return {
        "rawData": [_consumption_row(record) for record in analysis.records],
        "analysis": {
            "totalItems": analysis.total_items,
            "totalQuantity": analysis.total_quantity,
            "productConsumption": analysis.product_consumption,
            "consumptionPercentages": analysis.consumption_percentages,
        },
    }
