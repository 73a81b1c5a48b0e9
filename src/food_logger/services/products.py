"""Local product catalog with barcode lookup."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from food_logger.domain.products import Product, Serving
from food_logger.errors import InvalidBarcodeError, ProductNotFoundError

_BARCODE = re.compile(r"^\d{8,14}$")
DEFAULT_SERVING_LABEL = "serving"

_logger = logging.getLogger(__name__)


class ProductRepository(Protocol):
    """Persistence interface for products and servings."""

    def put_product(self, product: Product) -> None:
        """Insert or replace a product by id."""

    def get_product(self, product_id: str) -> Product | None:
        """Return a product by id, if present."""

    def get_product_by_barcode(self, barcode: str) -> Product | None:
        """Return a product by barcode, if present."""

    def put_serving(self, serving: Serving) -> None:
        """Insert or replace a serving by product id and label."""

    def list_servings(self, product_id: str) -> list[Serving]:
        """Return servings for a product."""


class BarcodeLookup(Protocol):
    """Remote product lookup by barcode."""

    async def lookup(self, barcode: str) -> Product | None:
        """Return the product for a barcode, or None when unknown."""


@dataclass
class ProductService:
    """Keeps products locally and fetches unknown barcodes remotely."""

    repository: ProductRepository
    barcode_lookup: BarcodeLookup

    def save(self, product: Product) -> None:
        """Store a product and its default serving."""
        self.repository.put_product(product)
        if product.default_serving_g:
            self.repository.put_serving(
                Serving(
                    product_id=product.id,
                    label=DEFAULT_SERVING_LABEL,
                    grams=product.default_serving_g,
                )
            )

    def get(self, product_id: str) -> Product | None:
        return self.repository.get_product(product_id)

    def servings(self, product_id: str) -> list[Serving]:
        return self.repository.list_servings(product_id)

    async def find_by_barcode(self, barcode: str) -> Product:
        """Return a product for a barcode, fetching and storing it if new."""
        code = barcode.strip()
        if not _BARCODE.match(code):
            raise InvalidBarcodeError(f"Barcode must be 8-14 digits: {barcode!r}")
        product = self.repository.get_product_by_barcode(code)
        if product is not None:
            return product
        product = await self.barcode_lookup.lookup(code)
        if product is None:
            raise ProductNotFoundError(f"No product found for barcode {code}")
        _logger.info("Stored product %s for barcode %s", product.id, code)
        self.save(product)
        return product
