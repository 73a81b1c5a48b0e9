"""Deterministic match confidence between a descriptor and a product."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from food_logger.domain.parsing import ParsedItem
from food_logger.domain.products import Candidate, Product
from food_logger.services.nutrients import COMPLETENESS_KEYS, has_nutrient

NAME_WEIGHT = 0.55
BRAND_WEIGHT = 0.15
COMPLETENESS_WEIGHT = 0.30

DEFAULT_SOURCE_BIAS: dict[str, float] = {
    "off": 0.0,
    "nutrix": -0.05,
    "fdc": 0.05,
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def tokens(text: str | None) -> set[str]:
    """Lowercase alphanumeric tokens of a string."""
    return set(_NON_ALNUM.sub(" ", (text or "").lower()).split())


def jaccard(left: str | None, right: str | None) -> float:
    """Token-set Jaccard similarity; 0 when either side has no tokens."""
    left_tokens = tokens(left)
    right_tokens = tokens(right)
    if not left_tokens or not right_tokens:
        return 0.0
    return len(left_tokens & right_tokens) / len(left_tokens | right_tokens)


def completeness(nutrients: Mapping[str, object]) -> float:
    """Fraction of energy, protein, carbs and fat present on a product."""
    present = sum(1 for key in COMPLETENESS_KEYS if has_nutrient(nutrients, key))
    return present / len(COMPLETENESS_KEYS)


@dataclass
class CandidateScorer:
    """Scores candidates with fixed weights plus a per-source bias table."""

    source_bias: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_SOURCE_BIAS)
    )

    def score(self, descriptor: ParsedItem, product: Product) -> Candidate:
        """Return the product with its clamped confidence."""
        name_score = jaccard(
            descriptor.query,
            " ".join(part for part in (product.brand, product.name) if part),
        )
        brand_score = (
            jaccard(descriptor.brand, product.brand or "") if descriptor.brand else 0.0
        )
        confidence = (
            NAME_WEIGHT * name_score
            + BRAND_WEIGHT * brand_score
            + COMPLETENESS_WEIGHT * completeness(product.nutrients)
            + self.source_bias.get(product.source, 0.0)
        )
        return Candidate(product=product, confidence=min(1.0, max(0.0, confidence)))
