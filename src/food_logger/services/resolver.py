"""Threshold arbitration over ranked candidates."""

from dataclasses import dataclass

from food_logger.domain.parsing import ParsedItem
from food_logger.domain.products import Candidate
from food_logger.domain.resolution import ResolveResult, ResolveStatus
from food_logger.services.search import MultiSourceSearch

AUTO_ACCEPT_THRESHOLD = 0.80
CHOICES_THRESHOLD = 0.60
MAX_CHOICES = 3


def arbitrate(
    ranked: list[Candidate],
    auto_accept: float = AUTO_ACCEPT_THRESHOLD,
    choices_from: float = CHOICES_THRESHOLD,
) -> ResolveResult:
    """Map the best candidate's confidence onto ok/choices/ask."""
    if not ranked:
        return ResolveResult(status=ResolveStatus.ASK)
    best = ranked[0]
    if best.confidence >= auto_accept:
        return ResolveResult(status=ResolveStatus.OK, best=best)
    top = ranked[:MAX_CHOICES]
    if best.confidence >= choices_from:
        return ResolveResult(status=ResolveStatus.CHOICES, best=best, choices=top)
    return ResolveResult(status=ResolveStatus.ASK, best=best, choices=top)


@dataclass
class ResolverService:
    """Resolves a parsed descriptor to a product through search and arbitration."""

    search: MultiSourceSearch
    auto_accept_threshold: float = AUTO_ACCEPT_THRESHOLD
    choices_threshold: float = CHOICES_THRESHOLD

    async def resolve(self, descriptor: ParsedItem) -> ResolveResult:
        """Search all providers and arbitrate the ranked pool."""
        ranked = await self.search.search(descriptor)
        return arbitrate(
            ranked,
            auto_accept=self.auto_accept_threshold,
            choices_from=self.choices_threshold,
        )
