"""Refrigerator inventory and consumption tracking."""

import logging
from calendar import monthrange
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Protocol

from fridge_nutrition.domain.inventory import (
    ConsumptionAnalysis,
    ConsumptionLog,
    ConsumptionRecord,
    ExpiringProduct,
    ProductRecord,
)

EXPIRING_WITHIN_DAYS = 28
TOP_PRODUCTS = 5
QUANTITY_UPDATE_ATTEMPTS = 3
JANUARY = 1

_logger = logging.getLogger(__name__)


class ProductNotFoundError(LookupError):
    """Raised when a product id does not exist."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class NegativeQuantityError(ValueError):
    """Raised when a quantity change would drop below zero."""

    def __init__(self, product_id: int, quantity: int) -> None:
        super().__init__(f"Quantity of product {product_id} cannot be {quantity}")
        self.product_id = product_id
        self.quantity = quantity


class ConcurrentQuantityUpdateError(RuntimeError):
    """Raised when a quantity keeps changing underneath an update."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Quantity of product {product_id} changed concurrently")
        self.product_id = product_id


class InventoryRepository(Protocol):
    """Persistence interface for products and consumption logs."""

    def search_products(self, query: str) -> list[ProductRecord]:
        """Return products whose name contains the query."""

    def get_product(self, product_id: int) -> ProductRecord | None:
        """Return a product by id, if present."""

    def find_product(self, gtin: str, expiration_date: date) -> ProductRecord | None:
        """Return the product with this barcode and expiration date."""

    def create_product(self, payload: dict[str, object]) -> ProductRecord:
        """Insert a product and return it."""

    def compare_and_set_quantity(
        self, product_id: int, expected: int, quantity: int
    ) -> bool:
        """Store quantity only if the stored value still equals expected."""

    def get_latest_consumption_log(self, product_id: int) -> ConsumptionLog | None:
        """Return the newest consumption log of a product."""

    def update_consumption_log(
        self, log_id: int, quantity_used: int, usage_date: datetime
    ) -> None:
        """Store a new total and usage date on a consumption log."""

    def create_consumption_log(
        self, product_id: int, quantity_used: int, usage_date: datetime
    ) -> None:
        """Insert a consumption log."""

    def list_consumption(self, since: date) -> list[ConsumptionRecord]:
        """Return consumption since a date, newest first."""

    def list_expiring(self, start: date, end: date) -> list[ExpiringProduct]:
        """Return products expiring in [start, end], soonest first."""


@dataclass
class InventoryService:
    """Application service for the refrigerator inventory."""

    repository: InventoryRepository

    def search_products(self, query: str) -> list[ProductRecord]:
        """Search stored products by name."""
        return self.repository.search_products(query)

    def register_product(self, payload: dict[str, object]) -> bool:
        """Add stock for a product; return true when a new row was created.

        Products are identified by barcode plus expiration date, so the same
        barcode bought on different days is tracked separately.
        """
        gtin = str(payload["gtin"])
        expiration_date = _as_date(payload["expiration_date"])
        quantity = int(payload.get("quantity", 0))
        for _ in range(QUANTITY_UPDATE_ATTEMPTS):
            existing = self.repository.find_product(gtin, expiration_date)
            if existing is None:
                self.repository.create_product(
                    {**payload, "gtin": gtin, "expiration_date": expiration_date}
                )
                return True
            if self.repository.compare_and_set_quantity(
                existing.id, existing.quantity, existing.quantity + quantity
            ):
                return False
        raise ConcurrentQuantityUpdateError(existing.id)

    def update_quantity(self, product_id: int, change: int) -> ProductRecord:
        """Apply a quantity change and record consumption for decreases.

        If the consumption log cannot be written, the change is undone before
        the error propagates.
        """
        self._apply_change(product_id, change)
        if change < 0:
            try:
                self._record_consumption(product_id, abs(change))
            except Exception:
                _logger.warning(
                    "Consumption log failed, restoring quantity of product %s",
                    product_id,
                )
                self._apply_change(product_id, -change)
                raise

        updated = self.repository.get_product(product_id)
        if updated is None:
            raise ProductNotFoundError(product_id)
        return updated

    def _apply_change(self, product_id: int, change: int) -> None:
        for _ in range(QUANTITY_UPDATE_ATTEMPTS):
            product = self.repository.get_product(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            new_quantity = product.quantity + change
            if new_quantity < 0:
                raise NegativeQuantityError(product_id, new_quantity)
            if self.repository.compare_and_set_quantity(
                product_id, product.quantity, new_quantity
            ):
                return
        raise ConcurrentQuantityUpdateError(product_id)

    def _record_consumption(self, product_id: int, quantity_used: int) -> None:
        now = datetime.now(tz=UTC)
        latest = self.repository.get_latest_consumption_log(product_id)
        if latest is not None:
            self.repository.update_consumption_log(
                latest.id, latest.quantity_used + quantity_used, now
            )
        else:
            self.repository.create_consumption_log(product_id, quantity_used, now)

    def list_expiring(self, days: int = EXPIRING_WITHIN_DAYS) -> list[ExpiringProduct]:
        """Return products expiring within the next days."""
        today = datetime.now(tz=UTC).date()
        return self.repository.list_expiring(today, today + timedelta(days=days))

    def consumption_analysis(self) -> ConsumptionAnalysis:
        """Summarise consumption over the last month."""
        since = one_month_before(datetime.now(tz=UTC).date())
        records = self.repository.list_consumption(since)
        analysis = summarize_consumption(records)
        _logger.info(
            "Consumption analysis: since=%s items=%s quantity=%s",
            since,
            analysis.total_items,
            analysis.total_quantity,
        )
        return analysis


def summarize_consumption(records: list[ConsumptionRecord]) -> ConsumptionAnalysis:
    """Compute totals, top products and their share of the top total."""
    per_product: dict[str, int] = {}
    for record in records:
        per_product[record.product_name] = (
            per_product.get(record.product_name, 0) + record.quantity_used
        )

    top = dict(
        sorted(per_product.items(), key=lambda item: item[1], reverse=True)[
            :TOP_PRODUCTS
        ]
    )
    top_total = sum(top.values())
    percentages = {
        product: round(quantity / top_total * 100, 2) if top_total else 0.0
        for product, quantity in top.items()
    }
    return ConsumptionAnalysis(
        total_items=len(records),
        total_quantity=sum(record.quantity_used for record in records),
        product_consumption=top,
        consumption_percentages=dict(
            sorted(percentages.items(), key=lambda item: item[1], reverse=True)
        ),
        records=records,
    )


def one_month_before(day: date) -> date:
    """Return the same day one month earlier, clamped to month end."""
    if day.month == JANUARY:
        year, month = day.year - 1, 12
    else:
        year, month = day.year, day.month - 1
    return day.replace(
        year=year, month=month, day=min(day.day, monthrange(year, month)[1])
    )


def _as_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
