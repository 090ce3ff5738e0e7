"""Certified product lookups with label parsing and allergy status."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol
from xml.etree import ElementTree

from fridge_nutrition.domain.products import (
    UNKNOWN_TEXT,
    CertifiedProduct,
    ProductDescription,
)
from fridge_nutrition.services.cache import Cache
from fridge_nutrition.services.labels import parse_label

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

ALLERGY_UNKNOWN = "unknown"
ALLERGY_SAFE = "safe"
ALLERGY_WARNING = "warning"

_UNKNOWN_ALLERGY_MARKERS = frozenset({"알수없음", ".", " .", UNKNOWN_TEXT})
_NO_ALLERGY = "없음"
_RESPONSE_TAG = "response"
_SUCCESS_CODE = "00"
_CONTAINS_SUFFIX = "함유"

_logger = logging.getLogger(__name__)


class CertificationResponseError(RuntimeError):
    """Raised when the certification API answers with an error document."""


class FoodCertClient(Protocol):
    """Interface for the certification API."""

    async def fetch_products(self, product_name: str) -> str:
        """Return the raw XML response for a product name search."""


@dataclass
class FoodInfoService:
    """Looks up certified products and describes their labels."""

    client: FoodCertClient
    cache: Cache
    ttl_seconds: int = 3600
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def lookup(self, product_name: str) -> list[CertifiedProduct]:
        """Return certified products for a name, one per barcode."""
        cache_key = f"foodcert:{product_name.strip().lower()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self._call_with_retry(
            lambda: self.client.fetch_products(product_name),
            action=f"lookup:{product_name}",
        )
        products = parse_products(payload)
        self.cache.set(cache_key, products, ttl_seconds=self.ttl_seconds)
        return products

    async def describe(self, product_name: str) -> list[ProductDescription]:
        """Return certified products with parsed labels."""
        return [describe_product(product) for product in await self.lookup(product_name)]

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[str]]", *, action: str
    ) -> str:
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Food certification %s failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def parse_products(payload: str) -> list[CertifiedProduct]:
    """Decode the certification XML, keeping the first item per barcode."""
    root = ElementTree.fromstring(payload)
    if root.tag != _RESPONSE_TAG or root.find("body") is None:
        raise CertificationResponseError(
            f"Unexpected certification response <{root.tag}>"
        )
    result_code = (root.findtext("header/resultCode") or _SUCCESS_CODE).strip()
    if result_code != _SUCCESS_CODE:
        message = root.findtext("header/resultMsg") or ""
        raise CertificationResponseError(
            f"Certification API error {result_code}: {message.strip()}"
        )
    products: dict[str, CertifiedProduct] = {}
    for item in root.iterfind("./body/items/item"):
        barcode = _text(item, "barcode") or ""
        if barcode in products:
            continue
        products[barcode] = CertifiedProduct(
            product_name=_text(item, "prdlstNm") or "",
            barcode=barcode,
            allergy_info=_text(item, "allergy") or UNKNOWN_TEXT,
            ingredients=_text(item, "rawmtrl") or UNKNOWN_TEXT,
            nutrients=_text(item, "nutrient") or UNKNOWN_TEXT,
        )
    return list(products.values())


def _text(item: ElementTree.Element, tag: str) -> str | None:
    value = item.findtext(tag)
    return value.strip() if value else None


def allergy_status(allergy_info: str | None) -> str:
    """Classify allergy text as unknown, safe or warning."""
    if not allergy_info or allergy_info in _UNKNOWN_ALLERGY_MARKERS:
        return ALLERGY_UNKNOWN
    if allergy_info == _NO_ALLERGY:
        return ALLERGY_SAFE
    return ALLERGY_WARNING


def clean_allergy_info(allergy_info: str | None) -> str | None:
    """Strip the trailing 함유 from allergy text, e.g. "우유, 대두 함유"."""
    if not allergy_info or allergy_info in {"알수없음", _NO_ALLERGY}:
        return allergy_info
    stripped = allergy_info.rstrip()
    if stripped.endswith(_CONTAINS_SUFFIX):
        stripped = stripped[: -len(_CONTAINS_SUFFIX)]
    return stripped.rstrip()


def describe_product(product: CertifiedProduct) -> ProductDescription:
    """Attach the parsed label and allergy status to a product."""
    return ProductDescription(
        product=product,
        label=parse_label(product.nutrients),
        allergy_status=allergy_status(product.allergy_info),
        allergy_info=clean_allergy_info(product.allergy_info) or UNKNOWN_TEXT,
    )
