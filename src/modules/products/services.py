"""Product service layer.

Catalog use cases for the back office: create products with their
variants, edit prices/metadata, soft-delete, add variants and restock.
Category look-ups serve the public navigation and validate product writes.

Stock rules:
- Order placement is the only path that decrements stock
  (``OrderService.place_order``).
- Restocking sets an absolute, non-negative value under a row lock so it
  serialises with in-flight placements on the same variant.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.products.exceptions import (
    CategoryNotFound,
    ProductNotFound,
    VariantAlreadyExists,
    VariantNotFound,
)
from modules.products.models import Category, Product, ProductStatus, Variant

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateProductDTO,
        SetStockDTO,
        UpdateProductDTO,
        VariantInputDTO,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = (
    "name",
    "description",
    "images",
    "price_ngn",
    "price_usd",
    "price_eur",
    "price_gbp",
    "size_mods",
    "status",
)


class ProductService:
    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        product = Product(
            name=dto.name,
            category=self.get_category(dto.category_slug),
            description=dto.description,
            images=list(dto.images),
            price_ngn=dto.price_ngn,
            price_usd=dto.price_usd,
            price_eur=dto.price_eur,
            price_gbp=dto.price_gbp,
            size_mods=dto.size_mods,
        )
        product = self._repo.save(product)
        for variant_dto in dto.variants:
            self._repo.add_variant(product, variant_dto.model_dump())

        logger.info(
            "product.created",
            product_id=str(product.id),
            variant_count=len(dto.variants),
        )
        return self.get_product(str(product.id))

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        product = self.get_product(id)

        if dto.status is not None and dto.status not in ProductStatus.values:
            raise ValueError(f"Unknown product status '{dto.status}'.")

        if dto.category_slug is not None:
            product.category = self.get_category(dto.category_slug)
        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        self._repo.save(product)
        logger.info("product.updated", product_id=str(id))
        return self.get_product(id)

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")

    @transaction.atomic
    def add_variant(self, product_id: str, dto: VariantInputDTO) -> Variant:
        """Raises ``VariantAlreadyExists`` for a duplicate color/size."""
        product = self.get_product(product_id)
        if product.variants.filter(color=dto.color, size=dto.size).exists():
            raise VariantAlreadyExists(
                f"Variant {dto.color}/{dto.size} already exists on {product.name}."
            )
        return self._repo.add_variant(product, dto.model_dump())

    @transaction.atomic
    def set_stock(self, product_id: str, variant_id: str, dto: SetStockDTO) -> Variant:
        variant = self._repo.get_variant(product_id, variant_id, for_update=True)
        if not variant:
            raise VariantNotFound(
                f"Variant {variant_id} not found on product {product_id}."
            )

        previous = variant.stock
        variant.stock = dto.stock
        variant.save(update_fields=["stock"])

        logger.info(
            "product.restocked",
            product_id=str(product_id),
            variant_id=str(variant_id),
            previous_stock=previous,
            stock=dto.stock,
        )
        return variant

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def list_categories(self, active_only: bool = True) -> QuerySet:
        return self._repo.list_categories(active_only=active_only)

    def get_category(self, slug: str) -> Category:
        category = self._repo.get_category(slug)
        if not category:
            raise CategoryNotFound(f"Category '{slug}' not found.")
        return category
