"""Supabase repository for products and servings."""

from dataclasses import dataclass

from supabase import Client

from food_logger.domain.products import Product, Serving
from food_logger.services.products import ProductRepository


@dataclass
class SupabaseProductRepository(ProductRepository):
    """Supabase-backed product catalog."""

    client: Client

    def put_product(self, product: Product) -> None:
        """Upsert a product row by id."""
        self.client.table("products").upsert(
            {
                "id": product.id,
                "source": product.source,
                "source_id": product.source_id,
                "brand": product.brand,
                "name": product.name,
                "barcode": product.barcode,
                "default_serving_g": product.default_serving_g,
                "attribution": product.attribution,
                "nutrients": product.nutrients,
            },
            on_conflict="id",
        ).execute()

    def get_product(self, product_id: str) -> Product | None:
        """Return a product by id."""
        response = (
            self.client.table("products")
            .select("*")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def get_product_by_barcode(self, barcode: str) -> Product | None:
        """Return a product by barcode."""
        response = (
            self.client.table("products")
            .select("*")
            .eq("barcode", barcode)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def put_serving(self, serving: Serving) -> None:
        """Upsert a serving by product id and label."""
        self.client.table("servings").upsert(
            {
                "product_id": serving.product_id,
                "label": serving.label,
                "grams": serving.grams,
            },
            on_conflict="product_id,label",
        ).execute()

    def list_servings(self, product_id: str) -> list[Serving]:
        """Return servings for a product."""
        response = (
            self.client.table("servings")
            .select("product_id, label, grams")
            .eq("product_id", product_id)
            .execute()
        )
        return [
            Serving(
                product_id=str(row["product_id"]),
                label=str(row["label"]),
                grams=float(row["grams"]),
            )
            for row in response.data or []
        ]


def _parse_product(row: dict[str, object]) -> Product:
    serving = row.get("default_serving_g")
    return Product(
        id=str(row["id"]),
        source=str(row.get("source", "")),
        source_id=str(row.get("source_id", "")),
        name=str(row.get("name", "")),
        brand=row.get("brand"),
        barcode=row.get("barcode"),
        default_serving_g=float(serving) if serving is not None else None,
        attribution=row.get("attribution"),
        nutrients={
            str(key): float(value)
            for key, value in (row.get("nutrients") or {}).items()
        },
    )
