"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from food_logger.config import Settings
from food_logger.containers import AppContainer
from food_logger.domain.aliases import Alias
from food_logger.domain.log import Entry, Item, MacroSet, Targets, Totals
from food_logger.domain.products import Product, Serving
from food_logger.errors import ParserUnavailableError, ProviderUnavailableError
from food_logger.services.aliases import AliasRepository, AliasService
from food_logger.services.cache import InMemoryCache
from food_logger.services.clock import LocalClock
from food_logger.services.day import DayService, FoodLogRepository, TargetsRepository
from food_logger.services.food_log import FoodLogService
from food_logger.services.parser import ParserService, TextParserClient
from food_logger.services.products import ProductRepository, ProductService
from food_logger.services.resolver import ResolverService
from food_logger.services.scoring import CandidateScorer
from food_logger.services.search import MultiSourceSearch

TODAY = "2024-03-05"


@dataclass
class FixedClock(LocalClock):
    """Clock pinned to noon UTC on a fixed day."""

    moment: datetime = datetime(2024, 3, 5, 12, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self.moment


@dataclass
class InMemoryFoodLogRepository(FoodLogRepository):
    """In-memory food log for tests."""

    entries: dict[object, Entry] = field(default_factory=dict)
    items: list[Item] = field(default_factory=list)
    totals: dict[str, Totals] = field(default_factory=dict)

    def create_entry(self, entry: Entry) -> None:
        self.entries[entry.id] = entry

    def create_item(self, item: Item) -> None:
        self.items.append(item)

    def list_day_items(self, date_local: str) -> list[Item]:
        return [item for item in self.items if item.date_local == date_local]

    def get_totals(self, date_local: str) -> Totals | None:
        return self.totals.get(date_local)

    def add_to_totals(self, date_local: str, macros: MacroSet) -> Totals:
        current = self.totals.get(date_local) or Totals(date_local=date_local)
        updated = current.plus(macros)
        self.totals[date_local] = updated
        return updated

    def put_totals(self, totals: Totals) -> None:
        self.totals[totals.date_local] = totals


@dataclass
class InMemoryProductRepository(ProductRepository):
    """In-memory product catalog for tests."""

    products: dict[str, Product] = field(default_factory=dict)
    servings: dict[tuple[str, str], Serving] = field(default_factory=dict)

    def put_product(self, product: Product) -> None:
        self.products[product.id] = product

    def get_product(self, product_id: str) -> Product | None:
        return self.products.get(product_id)

    def get_product_by_barcode(self, barcode: str) -> Product | None:
        for product in self.products.values():
            if product.barcode == barcode:
                return product
        return None

    def put_serving(self, serving: Serving) -> None:
        self.servings[(serving.product_id, serving.label)] = serving

    def list_servings(self, product_id: str) -> list[Serving]:
        return [s for (pid, _), s in self.servings.items() if pid == product_id]


@dataclass
class InMemoryAliasRepository(AliasRepository):
    """In-memory alias store for tests."""

    aliases: dict[str, Alias] = field(default_factory=dict)

    def get_alias(self, user_phrase: str) -> Alias | None:
        return self.aliases.get(user_phrase)

    def upsert_alias(self, alias: Alias) -> None:
        self.aliases[alias.user_phrase] = alias

    def delete_alias(self, user_phrase: str) -> None:
        self.aliases.pop(user_phrase, None)

    def list_aliases(self) -> list[Alias]:
        return list(self.aliases.values())


@dataclass
class InMemoryTargetsRepository(TargetsRepository):
    """In-memory targets store for tests."""

    targets: Targets | None = None

    def get_targets(self) -> Targets | None:
        return self.targets

    def set_targets(self, targets: Targets) -> None:
        self.targets = targets


@dataclass
class FakeProvider:
    """Search provider returning canned products and recording queries."""

    source: str
    products: list[Product] = field(default_factory=list)
    fail: bool = False
    queries: list[str] = field(default_factory=list)

    async def search(self, query: str) -> list[Product]:
        self.queries.append(query)
        if self.fail:
            raise ProviderUnavailableError(self.source, "offline")
        return list(self.products)


@dataclass
class FakeBarcodeLookup:
    """Barcode lookup backed by a dict."""

    products: dict[str, Product] = field(default_factory=dict)
    lookups: list[str] = field(default_factory=list)

    async def lookup(self, barcode: str) -> Product | None:
        self.lookups.append(barcode)
        return self.products.get(barcode)


@dataclass
class FakeParserClient(TextParserClient):
    """Parser client returning a fixed payload, or failing."""

    payload: dict[str, object] = field(default_factory=lambda: {"items": []})
    fail: bool = False
    calls: list[str] = field(default_factory=list)

    async def parse(
        self,
        *,
        model: str,
        system_prompt: str,
        text: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        self.calls.append(text)
        if self.fail:
            raise ParserUnavailableError("parser offline")
        return self.payload


def make_product(  # noqa: PLR0913
    source_id: str,
    name: str,
    *,
    source: str = "off",
    brand: str | None = None,
    barcode: str | None = None,
    default_serving_g: float | None = None,
    nutrients: dict[str, float] | None = None,
) -> Product:
    return Product(
        id=f"{source}:{source_id}",
        source=source,
        source_id=source_id,
        name=name,
        brand=brand,
        barcode=barcode,
        default_serving_g=default_serving_g,
        nutrients=(
            nutrients
            if nutrients is not None
            else {
                "energy-kcal_100g": 100.0,
                "proteins_100g": 10.0,
                "carbohydrates_100g": 5.0,
                "fat_100g": 2.0,
            }
        ),
    )


@dataclass
class LoggerHarness:
    """Food log service with every collaborator exposed for assertions."""

    service: FoodLogService
    log_repository: InMemoryFoodLogRepository
    product_repository: InMemoryProductRepository
    alias_repository: InMemoryAliasRepository
    parser_client: FakeParserClient
    provider: FakeProvider
    barcode_lookup: FakeBarcodeLookup
    day_service: DayService
    alias_service: AliasService
    product_service: ProductService
    parser_service: ParserService


def build_harness(
    provider: FakeProvider | None = None,
    parser_client: FakeParserClient | None = None,
) -> LoggerHarness:
    log_repository = InMemoryFoodLogRepository()
    product_repository = InMemoryProductRepository()
    alias_repository = InMemoryAliasRepository()
    resolved_provider = provider or FakeProvider(source="off")
    resolved_parser = parser_client or FakeParserClient()
    barcode_lookup = FakeBarcodeLookup()
    product_service = ProductService(product_repository, barcode_lookup)
    alias_service = AliasService(alias_repository, product_service)
    day_service = DayService(
        repository=log_repository,
        targets_repository=InMemoryTargetsRepository(),
        clock=FixedClock(),
    )
    parser_service = ParserService(client=resolved_parser, model="test-model")
    resolver_service = ResolverService(
        search=MultiSourceSearch(
            providers=[resolved_provider], scorer=CandidateScorer()
        )
    )
    service = FoodLogService(
        repository=log_repository,
        day_service=day_service,
        alias_service=alias_service,
        parser_service=parser_service,
        resolver_service=resolver_service,
        product_service=product_service,
        pending=InMemoryCache(),
    )
    return LoggerHarness(
        service=service,
        log_repository=log_repository,
        product_repository=product_repository,
        alias_repository=alias_repository,
        parser_client=resolved_parser,
        provider=resolved_provider,
        barcode_lookup=barcode_lookup,
        day_service=day_service,
        alias_service=alias_service,
        product_service=product_service,
        parser_service=parser_service,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
        fdc_api_key="fdc-key",
        nutritionix_app_id="nix-app",
        nutritionix_api_key="nix-key",
    )


@pytest.fixture
def harness() -> LoggerHarness:
    return build_harness()


@pytest.fixture
def container(settings: Settings, harness: LoggerHarness) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        day_service=harness.day_service,
        alias_service=harness.alias_service,
        parser_service=harness.parser_service,
        product_service=harness.product_service,
        food_log_service=harness.service,
        close_resources=close_resources,
    )
