"""Django ORM implementation of the Product repository.

Missing or malformed ids yield ``None``; the service decides which domain
exception that becomes.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from modules.products.constants import NOT_APPLICABLE
from modules.products.models import Category, Product, Variant
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    def _live(self) -> models.QuerySet:
        return (
            Product.objects.alive()
            .select_related("category")
            .prefetch_related("variants")
        )

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return self._live().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = self._live()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_category(self, slug: str) -> Optional[Category]:
        return Category.objects.filter(slug=slug).first()

    def list_categories(self, active_only: bool = True) -> models.QuerySet:
        queryset = Category.objects.order_by("sort_order", "name")
        if active_only:
            queryset = queryset.filter(is_active=True)
        return queryset

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def add_variant(self, product: Product, data: Dict[str, Any]) -> Variant:
        variant = Variant.objects.create(product=product, **data)
        logger.info(
            "product.variant_added",
            product_id=str(product.id),
            variant_id=str(variant.id),
            color=variant.color,
            size=variant.size,
        )
        return variant

    def get_variant(
        self, product_id: str, variant_id: str, for_update: bool = False
    ) -> Optional[Variant]:
        queryset = Variant.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.filter(
                id=variant_id,
                product_id=product_id,
                product__deleted_at__isnull=True,
            ).first()
        except (ValueError, ValidationError):
            return None

    def find_variant(self, product_id: Any, color: str, size: str) -> Optional[Variant]:
        lookup: Dict[str, Any] = {
            "product_id": product_id,
            "product__deleted_at__isnull": True,
        }
        if color and color != NOT_APPLICABLE:
            lookup["color"] = color
        if size and size != NOT_APPLICABLE:
            lookup["size"] = size

        try:
            return (
                Variant.objects.filter(**lookup).order_by("color", "size").first()
            )
        except (ValueError, ValidationError):
            return None

    def lock_variants(self, variant_ids: Iterable[Any]) -> Dict[Any, Variant]:
        # lock only the variant rows; the product rows are read-only here
        queryset = (
            Variant.objects.select_related("product")
            .select_for_update(of=("self",))
            .filter(id__in=sorted(set(variant_ids)), product__deleted_at__isnull=True)
            .order_by("id")
        )
        return {variant.id: variant for variant in queryset}

    def decrement_stock(self, variant_id: Any, quantity: int) -> bool:
        updated = Variant.objects.filter(id=variant_id, stock__gte=quantity).update(
            stock=F("stock") - quantity, updated_at=timezone.now()
        )
        return updated == 1
