"""Domain models for refrigerator inventory."""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class ProductRecord:
    """A stored product with its quantity and expiration date."""

    id: int
    gtin: str
    product_name: str
    quantity: int
    expiration_date: date | None
    country: str | None = None
    company: str | None = None
    cls_nm_1: str | None = None
    cls_nm_2: str | None = None
    cls_nm_3: str | None = None


@dataclass(frozen=True)
class ExpiringProduct:
    """Product name and the date it expires."""

    product_name: str
    expiration_date: date


@dataclass(frozen=True)
class ConsumptionLog:
    """Latest consumption counter for a product."""

    id: int
    product_id: int
    quantity_used: int


@dataclass(frozen=True)
class ConsumptionRecord:
    """Consumption of one product joined with its name and categories."""

    usage_date: datetime
    product_name: str
    quantity_used: int
    cls_nm_1: str | None = None
    cls_nm_2: str | None = None
    cls_nm_3: str | None = None


@dataclass(frozen=True)
class ConsumptionAnalysis:
    """Summary of recent consumption."""

    total_items: int
    total_quantity: int
    product_consumption: dict[str, int] = field(default_factory=dict)
    consumption_percentages: dict[str, float] = field(default_factory=dict)
    records: list[ConsumptionRecord] = field(default_factory=list)
