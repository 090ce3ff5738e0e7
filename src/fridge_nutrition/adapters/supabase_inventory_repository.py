"""Supabase repository for products and consumption logs."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from fridge_nutrition.domain.inventory import (
    ConsumptionLog,
    ConsumptionRecord,
    ExpiringProduct,
    ProductRecord,
)
from fridge_nutrition.services.inventory import InventoryRepository

_PRODUCT_COLUMNS = (
    "id, gtin, product_name, country, company, quantity, expiration_date, "
    "cls_nm_1, cls_nm_2, cls_nm_3"
)
_PRODUCT_FIELDS = (
    "gtin",
    "product_name",
    "country",
    "company",
    "quantity",
    "cls_nm_1",
    "cls_nm_2",
    "cls_nm_3",
)


@dataclass
class SupabaseInventoryRepository(InventoryRepository):
    """Supabase implementation for inventory tables."""

    client: Client

    def search_products(self, query: str) -> list[ProductRecord]:
        """Return products whose name contains the query."""
        response = (
            self.client.table("products")
            .select(_PRODUCT_COLUMNS)
            .ilike("product_name", f"%{query}%")
            .execute()
        )
        return [_parse_product(row) for row in response.data or []]

    def get_product(self, product_id: int) -> ProductRecord | None:
        """Return a product by id."""
        response = (
            self.client.table("products")
            .select(_PRODUCT_COLUMNS)
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def find_product(self, gtin: str, expiration_date: date) -> ProductRecord | None:
        """Return the product with this barcode and expiration date."""
        response = (
            self.client.table("products")
            .select(_PRODUCT_COLUMNS)
            .eq("gtin", gtin)
            .eq("expiration_date", expiration_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def create_product(self, payload: dict[str, object]) -> ProductRecord:
        """Insert a product row."""
        row: dict[str, object] = {
            key: payload.get(key) for key in _PRODUCT_FIELDS if key in payload
        }
        expiration_date = payload.get("expiration_date")
        if isinstance(expiration_date, date):
            row["expiration_date"] = expiration_date.isoformat()
        response = self.client.table("products").insert(row).execute()
        if not response.data:
            raise RuntimeError("Failed to create product")
        return _parse_product(response.data[0])

    def compare_and_set_quantity(
        self, product_id: int, expected: int, quantity: int
    ) -> bool:
        """Update the quantity in one conditional statement."""
        response = (
            self.client.table("products")
            .update({"quantity": quantity})
            .eq("id", product_id)
            .eq("quantity", expected)
            .execute()
        )
        return bool(response.data)

    def get_latest_consumption_log(self, product_id: int) -> ConsumptionLog | None:
        """Return the newest consumption log for a product."""
        response = (
            self.client.table("consumption_logs")
            .select("id, product_id, quantity_used")
            .eq("product_id", product_id)
            .order("id", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return ConsumptionLog(
            id=int(row["id"]),
            product_id=int(row.get("product_id", product_id)),
            quantity_used=int(row.get("quantity_used") or 0),
        )

    def update_consumption_log(
        self, log_id: int, quantity_used: int, usage_date: datetime
    ) -> None:
        """Update a consumption log total and usage date."""
        self.client.table("consumption_logs").update(
            {"quantity_used": quantity_used, "usage_date": usage_date.isoformat()}
        ).eq("id", log_id).execute()

    def create_consumption_log(
        self, product_id: int, quantity_used: int, usage_date: datetime
    ) -> None:
        """Insert a consumption log."""
        response = (
            self.client.table("consumption_logs")
            .insert(
                {
                    "product_id": product_id,
                    "quantity_used": quantity_used,
                    "usage_date": usage_date.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create consumption log")

    def list_consumption(self, since: date) -> list[ConsumptionRecord]:
        """Return consumption joined with product names, newest first."""
        response = (
            self.client.table("consumption_logs")
            .select(
                "usage_date, quantity_used, "
                "products(product_name, cls_nm_1, cls_nm_2, cls_nm_3)"
            )
            .gte("usage_date", since.isoformat())
            .order("usage_date", desc=True)
            .execute()
        )
        return [_parse_consumption(row) for row in response.data or []]

    def list_expiring(self, start: date, end: date) -> list[ExpiringProduct]:
        """Return products expiring between start and end inclusive."""
        response = (
            self.client.table("products")
            .select("product_name, expiration_date")
            .gte("expiration_date", start.isoformat())
            .lte("expiration_date", end.isoformat())
            .order("expiration_date", desc=False)
            .execute()
        )
        return [
            ExpiringProduct(
                product_name=str(row.get("product_name", "")),
                expiration_date=date.fromisoformat(str(row["expiration_date"])[:10]),
            )
            for row in response.data or []
            if row.get("expiration_date")
        ]


def _parse_product(row: dict[str, object]) -> ProductRecord:
    expiration_raw = row.get("expiration_date")
    return ProductRecord(
        id=int(row["id"]),
        gtin=str(row.get("gtin", "")),
        product_name=str(row.get("product_name", "")),
        quantity=int(row.get("quantity") or 0),
        expiration_date=(
            date.fromisoformat(expiration_raw[:10])
            if isinstance(expiration_raw, str) and expiration_raw
            else None
        ),
        country=row.get("country"),
        company=row.get("company"),
        cls_nm_1=row.get("cls_nm_1"),
        cls_nm_2=row.get("cls_nm_2"),
        cls_nm_3=row.get("cls_nm_3"),
    )


def _parse_consumption(row: dict[str, object]) -> ConsumptionRecord:
    product = row.get("products") or {}
    usage_raw = row.get("usage_date")
    return ConsumptionRecord(
        usage_date=(
            datetime.fromisoformat(usage_raw)
            if isinstance(usage_raw, str) and usage_raw
            else datetime.min
        ),
        product_name=str(product.get("product_name", "")),
        quantity_used=int(row.get("quantity_used") or 0),
        cls_nm_1=product.get("cls_nm_1"),
        cls_nm_2=product.get("cls_nm_2"),
        cls_nm_3=product.get("cls_nm_3"),
    )
