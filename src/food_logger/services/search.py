"""Fan-out product search across providers with candidate ranking."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from food_logger.domain.parsing import ParsedItem
from food_logger.domain.products import Candidate, Product
from food_logger.errors import ProviderUnavailableError
from food_logger.services.cache import Cache
from food_logger.services.nutrients import has_energy
from food_logger.services.scoring import CandidateScorer

_logger = logging.getLogger(__name__)


class ProductSearchProvider(Protocol):
    """Free-text search against one nutrition data source."""

    source: str

    async def search(self, query: str) -> list[Product]:
        """Return normalized products for a query.

        Raises ProviderUnavailableError when the source cannot be reached.
        """


@dataclass
class MultiSourceSearch:
    """Queries every provider and ranks the pooled candidates."""

    providers: list[ProductSearchProvider]
    scorer: CandidateScorer
    cache: Cache | None = None
    search_ttl_seconds: int = 3600
    timeout_seconds: float = 15.0

    async def search(self, descriptor: ParsedItem) -> list[Candidate]:
        """Return candidates ranked by descending confidence.

        When any candidate has energy data, candidates without it are dropped.
        Equal confidences keep provider order, then result order.
        """
        query = descriptor.query
        results = await asyncio.gather(
            *(self._query(provider, query) for provider in self.providers)
        )
        pool = [
            self.scorer.score(descriptor, product)
            for products in results
            for product in products
        ]
        with_energy = [
            candidate for candidate in pool if has_energy(candidate.product.nutrients)
        ]
        if with_energy:
            pool = with_energy
        return sorted(pool, key=lambda candidate: -candidate.confidence)

    async def _query(
        self, provider: ProductSearchProvider, query: str
    ) -> list[Product]:
        cache_key = f"search:{provider.source}:{query.lower()}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if isinstance(cached, list):
                return cached
        try:
            products = await asyncio.wait_for(
                provider.search(query), timeout=self.timeout_seconds
            )
        except (ProviderUnavailableError, TimeoutError) as exc:
            _logger.warning("Search %s failed for %r: %s", provider.source, query, exc)
            return []
        if self.cache is not None:
            self.cache.set(cache_key, products, ttl_seconds=self.search_ttl_seconds)
        return products
