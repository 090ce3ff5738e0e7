"""Tests for certified product lookups."""

import asyncio

import pytest

from fridge_nutrition.domain.labels import ParsedLabel
from fridge_nutrition.domain.products import UNKNOWN_TEXT, CertifiedProduct
from fridge_nutrition.services.cache import InMemoryCache
from fridge_nutrition.services.food_info import (
    ALLERGY_SAFE,
    ALLERGY_UNKNOWN,
    ALLERGY_WARNING,
    CertificationResponseError,
    FoodInfoService,
    allergy_status,
    clean_allergy_info,
    describe_product,
    parse_products,
)
from tests.conftest import CERT_XML, SERVICE_KEY_ERROR_XML, FakeFoodCertClient

RESULT_CODE_ERROR_XML = """<response>
  <header><resultCode>22</resultCode><resultMsg>LIMITED NUMBER OF SERVICE REQUESTS EXCEEDS ERROR.</resultMsg></header>
  <body />
</response>
"""


def _service(client: FakeFoodCertClient) -> FoodInfoService:
    return FoodInfoService(client=client, cache=InMemoryCache(), retry_delay_seconds=0)


def test_parse_products_keeps_first_item_per_barcode() -> None:
    products = parse_products(CERT_XML)

    assert [product.barcode for product in products] == [
        "8801043014809",
        "8801043015318",
    ]
    assert products[0].product_name == "새우깡"
    assert products[0].allergy_info == "밀, 대두, 새우 함유"
    assert products[0].ingredients == "소맥분, 새우"


def test_parse_products_fills_missing_fields() -> None:
    products = parse_products(CERT_XML)

    assert products[1] == CertifiedProduct(
        product_name="새우깡 매운맛", barcode="8801043015318"
    )
    assert products[1].allergy_info == UNKNOWN_TEXT
    assert products[1].nutrients == UNKNOWN_TEXT


def test_parse_products_without_items_is_empty() -> None:
    payload = (
        "<response><header><resultCode>00</resultCode></header><body /></response>"
    )

    assert parse_products(payload) == []


@pytest.mark.parametrize(
    ("allergy_info", "expected"),
    [
        (None, ALLERGY_UNKNOWN),
        ("", ALLERGY_UNKNOWN),
        ("알수없음", ALLERGY_UNKNOWN),
        (".", ALLERGY_UNKNOWN),
        (UNKNOWN_TEXT, ALLERGY_UNKNOWN),
        ("없음", ALLERGY_SAFE),
        ("우유, 대두 함유", ALLERGY_WARNING),
    ],
)
def test_allergy_status(allergy_info, expected: str) -> None:
    assert allergy_status(allergy_info) == expected


def test_clean_allergy_info() -> None:
    assert clean_allergy_info("우유, 대두 함유") == "우유, 대두"
    assert clean_allergy_info("우유 함유 ") == "우유"
    assert clean_allergy_info("없음") == "없음"
    assert clean_allergy_info(None) is None


def test_describe_product_parses_label() -> None:
    description = describe_product(parse_products(CERT_XML)[0])

    assert description.allergy_status == ALLERGY_WARNING
    assert description.allergy_info == "밀, 대두, 새우"
    assert description.label.serving_info == "총 내용량 90g 470kcal"
    assert description.label.nutrients[0].name == "나트륨"
    assert description.label.nutrients[0].percentage == 31


def test_describe_product_with_unknown_label() -> None:
    description = describe_product(parse_products(CERT_XML)[1])

    assert description.allergy_status == ALLERGY_UNKNOWN
    assert description.allergy_info == UNKNOWN_TEXT
    assert description.label == ParsedLabel(serving_info=None, nutrients=())


def test_lookup_is_cached_by_normalized_name() -> None:
    client = FakeFoodCertClient()
    service = _service(client)

    first = asyncio.run(service.lookup("새우깡"))
    second = asyncio.run(service.lookup(" 새우깡 "))

    assert first == second
    assert client.calls == ["새우깡"]


def test_lookup_retries_once() -> None:
    client = FakeFoodCertClient(failures=1)

    products = asyncio.run(_service(client).lookup("새우깡"))

    assert len(products) == 2
    assert client.calls == ["새우깡", "새우깡"]


def test_lookup_raises_after_retries_and_caches_nothing() -> None:
    client = FakeFoodCertClient(failures=2)
    cache = InMemoryCache()
    service = FoodInfoService(client=client, cache=cache, retry_delay_seconds=0)

    with pytest.raises(RuntimeError):
        asyncio.run(service.lookup("새우깡"))

    assert len(client.calls) == 2
    assert len(cache) == 0


def test_describe_returns_one_entry_per_product() -> None:
    descriptions = asyncio.run(_service(FakeFoodCertClient()).describe("새우깡"))

    assert [d.product.barcode for d in descriptions] == [
        "8801043014809",
        "8801043015318",
    ]


@pytest.mark.parametrize("payload", [SERVICE_KEY_ERROR_XML, RESULT_CODE_ERROR_XML])
def test_parse_products_rejects_error_documents(payload: str) -> None:
    with pytest.raises(CertificationResponseError):
        parse_products(payload)


def test_error_document_is_not_cached() -> None:
    client = FakeFoodCertClient(payload=SERVICE_KEY_ERROR_XML)
    cache = InMemoryCache()
    service = FoodInfoService(client=client, cache=cache, retry_delay_seconds=0)

    with pytest.raises(CertificationResponseError):
        asyncio.run(service.lookup("새우깡"))

    assert len(cache) == 0

    client.payload = CERT_XML
    assert len(asyncio.run(service.lookup("새우깡"))) == 2
