"""Pydantic models for API request bodies."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class FoodIntakeItem(BaseModel):
    """One eaten food in an analysis request."""

    name: str
    amount: float = Field(ge=0)


class AnalyzeNutritionRequest(BaseModel):
    """Body of an intake analysis request."""

    model_config = ConfigDict(populate_by_name=True)

    age: int
    gender: str
    food_intake: list[FoodIntakeItem] = Field(default_factory=list, alias="foodIntake")


class ParseLabelRequest(BaseModel):
    """Raw nutrition label text."""

    text: str | None = None


class RecommendRecipeRequest(BaseModel):
    """Ingredients available for a recipe."""

    ingredients: list[str] = Field(default_factory=list)


class RegisterProductRequest(BaseModel):
    """Product scanned into the refrigerator."""

    model_config = ConfigDict(populate_by_name=True)

    gtin: str
    product_name: str = Field(alias="productName")
    country: str | None = None
    company: str | None = None
    quantity: int = Field(default=1, ge=0)
    expiration_date: date = Field(alias="expirationDate")
    cls_nm_1: str | None = None
    cls_nm_2: str | None = None
    cls_nm_3: str | None = None


class UpdateQuantityRequest(BaseModel):
    """Quantity change for a stored product."""

    id: int
    change: int
