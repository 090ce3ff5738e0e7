"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date, datetime

import pytest

from fridge_nutrition.config import Settings
from fridge_nutrition.containers import AppContainer
from fridge_nutrition.domain.inventory import (
    ConsumptionLog,
    ConsumptionRecord,
    ExpiringProduct,
    ProductRecord,
)
from fridge_nutrition.domain.nutrition import FoodComposition, NutritionStandard
from fridge_nutrition.services.analysis import (
    NutritionAnalysisService,
    ReferenceRepository,
)
from fridge_nutrition.services.cache import InMemoryCache
from fridge_nutrition.services.food_info import FoodCertClient, FoodInfoService
from fridge_nutrition.services.inventory import InventoryRepository, InventoryService
from fridge_nutrition.services.recipes import RecipeClient, RecipeService

AGE_GROUPS = ("15-18세", "19-29세", "30-49세", "50-64세", "65-74세", "75세 이상")

CERT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
  <header><resultCode>00</resultCode><resultMsg>NORMAL SERVICE.</resultMsg></header>
  <body>
    <items>
      <item>
        <prdlstNm>새우깡</prdlstNm>
        <barcode>8801043014809</barcode>
        <allergy>밀, 대두, 새우 함유</allergy>
        <rawmtrl>소맥분, 새우</rawmtrl>
        <nutrient>총 내용량 90g 470kcal, 나트륨 620mg 31%, 탄수화물 60g 18%</nutrient>
      </item>
      <item>
        <prdlstNm>새우깡 (중복)</prdlstNm>
        <barcode>8801043014809</barcode>
        <allergy>없음</allergy>
      </item>
      <item>
        <prdlstNm>새우깡 매운맛</prdlstNm>
        <barcode>8801043015318</barcode>
        <allergy></allergy>
      </item>
    </items>
  </body>
</response>
"""

SERVICE_KEY_ERROR_XML = """<OpenAPI_ServiceResponse>
  <cmmMsgHeader>
    <errMsg>SERVICE ERROR</errMsg>
    <returnAuthMsg>SERVICE_KEY_IS_NOT_REGISTERED_ERROR</returnAuthMsg>
    <returnReasonCode>30</returnReasonCode>
  </cmmMsgHeader>
</OpenAPI_ServiceResponse>
"""

RECIPE_TEXT = """요리명: 김치볶음밥

재료:
- 김치 200g, 밥 1공기
- 대파 1대

조리순서:
1. 김치를 잘게 썬다.
2. 팬에 김치와 밥을 볶는다.
맛있게 드세요!
"""


def make_standards() -> list[NutritionStandard]:
    standards = []
    for index, age_group in enumerate(AGE_GROUPS):
        standards.append(
            NutritionStandard(
                age_group=age_group,
                gender="남성",
                values={
                    "에너지": str(2600 - index * 100),
                    "단백질": "65",
                    "칼슘": "800",
                    "비타민C": "100",
                },
            )
        )
        standards.append(
            NutritionStandard(
                age_group=age_group,
                gender="여성",
                values={
                    "에너지": str(2000 - index * 100),
                    "단백질": "55",
                    "칼슘": "700",
                    "비타민C": "100",
                },
            )
        )
    return standards


def make_foods() -> list[FoodComposition]:
    return [
        FoodComposition(
            name="김치",
            values={"에너지": "18", "단백질": "2.0", "칼슘": "47", "비타민C": "14"},
        ),
        FoodComposition(
            name="쌀밥",
            values={"에너지": "143", "단백질": "2.5", "칼슘": "3", "비타민C": ""},
        ),
        FoodComposition(
            name="우유",
            values={"에너지": "65", "단백질": "3.1", "칼슘": "113", "비타민C": "1"},
        ),
        FoodComposition(
            name="멸치볶음",
            values={"에너지": "300", "단백질": "30", "칼슘": "650", "비타민C": "-"},
        ),
        FoodComposition(
            name="두부",
            values={"에너지": "84", "단백질": "9.3", "칼슘": "126", "비타민C": "0"},
        ),
        FoodComposition(
            name="시금치",
            values={"에너지": "30", "단백질": "3.1", "칼슘": "113", "비타민C": "50"},
        ),
        FoodComposition(
            name="김치",
            values={"에너지": "999", "단백질": "99", "칼슘": "999", "비타민C": "99"},
        ),
    ]


@dataclass
class InMemoryReferenceRepository(ReferenceRepository):
    """In-memory reference tables for tests."""

    standards: list[NutritionStandard] = field(default_factory=make_standards)
    foods: list[FoodComposition] = field(default_factory=make_foods)

    def list_standards(self) -> list[NutritionStandard]:
        return self.standards

    def list_foods(self) -> list[FoodComposition]:
        return self.foods


@dataclass
class FakeFoodCertClient(FoodCertClient):
    """Fake certification client returning fixed XML."""

    payload: str = CERT_XML
    calls: list[str] = field(default_factory=list)
    failures: int = 0

    async def fetch_products(self, product_name: str) -> str:
        self.calls.append(product_name)
        if self.failures:
            self.failures -= 1
            raise RuntimeError("certification API unavailable")
        return self.payload


@dataclass
class FakeRecipeClient(RecipeClient):
    """Fake chat client returning a fixed recipe."""

    text: str = RECIPE_TEXT
    prompts: list[str] = field(default_factory=list)

    async def complete(
        self, *, model: str, system_prompt: str, prompt: str, max_tokens: int
    ) -> str:
        self.prompts.append(prompt)
        return self.text


@dataclass
class InMemoryInventoryRepository(InventoryRepository):
    """In-memory products and consumption logs for tests."""

    products: dict[int, ProductRecord] = field(default_factory=dict)
    logs: dict[int, dict[str, object]] = field(default_factory=dict)
    consumption: list[ConsumptionRecord] = field(default_factory=list)

    def add_product(
        self, name: str, quantity: int, expiration_date: date, gtin: str = "880"
    ) -> ProductRecord:
        product = ProductRecord(
            id=len(self.products) + 1,
            gtin=gtin,
            product_name=name,
            quantity=quantity,
            expiration_date=expiration_date,
        )
        self.products[product.id] = product
        return product

    def search_products(self, query: str) -> list[ProductRecord]:
        return [p for p in self.products.values() if query in p.product_name]

    def get_product(self, product_id: int) -> ProductRecord | None:
        return self.products.get(product_id)

    def find_product(self, gtin: str, expiration_date: date) -> ProductRecord | None:
        for product in self.products.values():
            if product.gtin == gtin and product.expiration_date == expiration_date:
                return product
        return None

    def create_product(self, payload: dict[str, object]) -> ProductRecord:
        return self.add_product(
            name=str(payload["product_name"]),
            quantity=int(payload.get("quantity", 0)),
            expiration_date=payload["expiration_date"],
            gtin=str(payload["gtin"]),
        )

    def compare_and_set_quantity(
        self, product_id: int, expected: int, quantity: int
    ) -> bool:
        current = self.products.get(product_id)
        if current is None or current.quantity != expected:
            return False
        self.products[product_id] = ProductRecord(
            id=current.id,
            gtin=current.gtin,
            product_name=current.product_name,
            quantity=quantity,
            expiration_date=current.expiration_date,
        )
        return True

    def get_latest_consumption_log(self, product_id: int) -> ConsumptionLog | None:
        matching = [
            log_id for log_id, log in self.logs.items() if log["product_id"] == product_id
        ]
        if not matching:
            return None
        latest = max(matching)
        return ConsumptionLog(
            id=latest,
            product_id=product_id,
            quantity_used=int(self.logs[latest]["quantity_used"]),
        )

    def update_consumption_log(
        self, log_id: int, quantity_used: int, usage_date: datetime
    ) -> None:
        self.logs[log_id].update(
            {"quantity_used": quantity_used, "usage_date": usage_date}
        )

    def create_consumption_log(
        self, product_id: int, quantity_used: int, usage_date: datetime
    ) -> None:
        self.logs[len(self.logs) + 1] = {
            "product_id": product_id,
            "quantity_used": quantity_used,
            "usage_date": usage_date,
        }

    def list_consumption(self, since: date) -> list[ConsumptionRecord]:
        return [r for r in self.consumption if r.usage_date.date() >= since]

    def list_expiring(self, start: date, end: date) -> list[ExpiringProduct]:
        expiring = [
            ExpiringProduct(p.product_name, p.expiration_date)
            for p in self.products.values()
            if p.expiration_date and start <= p.expiration_date <= end
        ]
        return sorted(expiring, key=lambda product: product.expiration_date)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
        food_cert_base_url="https://cert.example.com/getCertImgListService",
        food_cert_service_key="cert-key",
    )


@pytest.fixture
def reference_repository() -> InMemoryReferenceRepository:
    return InMemoryReferenceRepository()


@pytest.fixture
def inventory_repository() -> InMemoryInventoryRepository:
    return InMemoryInventoryRepository()


@pytest.fixture
def food_cert_client() -> FakeFoodCertClient:
    return FakeFoodCertClient()


@pytest.fixture
def container(
    settings: Settings,
    reference_repository: InMemoryReferenceRepository,
    inventory_repository: InMemoryInventoryRepository,
    food_cert_client: FakeFoodCertClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        analysis_service=NutritionAnalysisService(reference_repository),
        food_info_service=FoodInfoService(
            client=food_cert_client, cache=InMemoryCache(), retry_delay_seconds=0
        ),
        recipe_service=RecipeService(
            client=FakeRecipeClient(), model=settings.openai_model
        ),
        inventory_service=InventoryService(inventory_repository),
        close_resources=close_resources,
    )
