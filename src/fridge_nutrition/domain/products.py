"""Models for certified product lookups."""

from dataclasses import dataclass

from fridge_nutrition.domain.labels import ParsedLabel

UNKNOWN_TEXT = "정보 없음"


@dataclass(frozen=True)
class CertifiedProduct:
    """Product record returned by the food certification API."""

    product_name: str
    barcode: str
    allergy_info: str = UNKNOWN_TEXT
    ingredients: str = UNKNOWN_TEXT
    nutrients: str = UNKNOWN_TEXT


@dataclass(frozen=True)
class ProductDescription:
    """Certified product with its parsed label and allergy status."""

    product: CertifiedProduct
    label: ParsedLabel
    allergy_status: str
    allergy_info: str
