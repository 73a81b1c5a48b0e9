"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_logger.adapters.fdc_client import HttpxFdcClient
from food_logger.adapters.nutritionix_client import HttpxNutritionixClient
from food_logger.adapters.off_client import HttpxOpenFoodFactsClient
from food_logger.adapters.openai_parser_client import OpenAITextParserClient
from food_logger.adapters.supabase_alias_repository import SupabaseAliasRepository
from food_logger.adapters.supabase_food_log_repository import (
    SupabaseFoodLogRepository,
)
from food_logger.adapters.supabase_product_repository import (
    SupabaseProductRepository,
)
from food_logger.adapters.supabase_targets_repository import (
    SupabaseTargetsRepository,
)
from food_logger.config import Settings
from food_logger.services.aliases import AliasService
from food_logger.services.cache import InMemoryCache
from food_logger.services.clock import LocalClock
from food_logger.services.day import DayService
from food_logger.services.food_log import FoodLogService
from food_logger.services.parser import ParserService
from food_logger.services.products import ProductService
from food_logger.services.providers import (
    FdcProvider,
    NutritionixProvider,
    OpenFoodFactsProvider,
)
from food_logger.services.resolver import ResolverService
from food_logger.services.scoring import CandidateScorer
from food_logger.services.search import MultiSourceSearch, ProductSearchProvider


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    day_service: DayService
    alias_service: AliasService
    parser_service: ParserService
    product_service: ProductService
    food_log_service: FoodLogService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    food_log_repository = SupabaseFoodLogRepository(supabase_client)
    product_repository = SupabaseProductRepository(supabase_client)
    alias_repository = SupabaseAliasRepository(supabase_client)
    targets_repository = SupabaseTargetsRepository(supabase_client)

    off_client = HttpxOpenFoodFactsClient.create(resolved_settings.off_base_url)
    off_provider = OpenFoodFactsProvider(off_client)
    providers: list[ProductSearchProvider] = [off_provider]
    closers: list[Callable[[], Awaitable[None]]] = [off_client.close]
    if resolved_settings.has_nutritionix:
        nutritionix_client = HttpxNutritionixClient.create(
            app_id=resolved_settings.nutritionix_app_id or "",
            api_key=resolved_settings.nutritionix_api_key or "",
            base_url=resolved_settings.nutritionix_base_url,
        )
        providers.append(NutritionixProvider(nutritionix_client))
        closers.append(nutritionix_client.close)
    if resolved_settings.has_fdc:
        fdc_client = HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key or "",
            base_url=resolved_settings.fdc_base_url,
        )
        providers.append(FdcProvider(fdc_client))
        closers.append(fdc_client.close)

    parser_client = (
        OpenAITextParserClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )
    parser_service = ParserService(
        client=parser_client,
        model=resolved_settings.parser_model,
        mock=resolved_settings.mock_parser,
    )
    resolver_service = ResolverService(
        search=MultiSourceSearch(
            providers=providers,
            scorer=CandidateScorer(source_bias=dict(resolved_settings.source_bias)),
            cache=InMemoryCache(),
            search_ttl_seconds=resolved_settings.search_ttl_seconds,
            timeout_seconds=resolved_settings.provider_timeout_seconds,
        ),
        auto_accept_threshold=resolved_settings.auto_accept_threshold,
        choices_threshold=resolved_settings.choices_threshold,
    )
    product_service = ProductService(product_repository, barcode_lookup=off_provider)
    alias_service = AliasService(alias_repository, product_service)
    day_service = DayService(
        repository=food_log_repository,
        targets_repository=targets_repository,
        clock=LocalClock(resolved_settings.timezone),
    )
    food_log_service = FoodLogService(
        repository=food_log_repository,
        day_service=day_service,
        alias_service=alias_service,
        parser_service=parser_service,
        resolver_service=resolver_service,
        product_service=product_service,
        pending=InMemoryCache(),
        pending_ttl_seconds=resolved_settings.pending_ttl_seconds,
    )

    async def close_resources() -> None:
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        day_service=day_service,
        alias_service=alias_service,
        parser_service=parser_service,
        product_service=product_service,
        food_log_service=food_log_service,
        close_resources=close_resources,
    )
