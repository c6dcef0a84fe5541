"""Category, Product and Variant models.

Business rules:
- Every product belongs to a category, referenced by slug. Only active
  categories are listed publicly, ordered by ``sort_order`` then name.
- A product carries up to four list prices (NGN, USD, EUR, GBP); each is
  optional.
- Stock lives on ``Variant`` (one per product/color/size) and can never
  go below zero (database check constraint).
- ``(product, color, size)`` is unique; ``"N/A"`` stands for "does not
  vary" on that axis.
- Products are soft-deleted so historical order lines stay readable.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel
from modules.products.constants import NOT_APPLICABLE, Currency

logger = structlog.get_logger(__name__)

PRICE_FIELDS: dict[str, str] = {
    Currency.NGN: "price_ngn",
    Currency.USD: "price_usd",
    Currency.EUR: "price_eur",
    Currency.GBP: "price_gbp",
}


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


def _price_field(verbose_name: str) -> models.DecimalField:
    return models.DecimalField(
        verbose_name,
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )


class Category(BaseModel):
    slug = models.SlugField(max_length=100, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    banner_image = models.URLField(max_length=500, blank=True, default="")
    is_active = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0)

    class Meta:
        db_table = "categories"
        ordering = ["sort_order", "name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:
        return self.name


class Product(SoftDeleteModel):
    name = models.CharField(max_length=255)
    category = models.ForeignKey(
        "products.Category",
        to_field="slug",
        db_column="category_slug",
        on_delete=models.PROTECT,
        related_name="products",
    )
    description = models.TextField(blank=True, default="")
    images = models.JSONField(default=list, blank=True)
    price_ngn = _price_field("price (NGN)")
    price_usd = _price_field("price (USD)")
    price_eur = _price_field("price (EUR)")
    price_gbp = _price_field("price (GBP)")
    size_mods = models.BooleanField(
        default=False,
        help_text="Whether buyers may request a custom (non-catalog) size.",
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]

    def clean(self) -> None:
        super().clean()
        errors = {}
        for field in PRICE_FIELDS.values():
            value = getattr(self, field)
            if value is not None and value < 0:
                errors[field] = "Price cannot be negative."
        if not isinstance(self.images, list):
            errors["images"] = "Images must be a list of URLs."
        if errors:
            raise ValidationError(errors)

    def price_in(self, currency: str) -> Optional[Decimal]:
        """List price in ``currency`` or ``None`` when it is not set."""
        return getattr(self, PRICE_FIELDS[currency])

    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    def __str__(self) -> str:
        return self.name


class Variant(BaseModel):
    """A purchasable color/size combination with its own stock counter.

    ``stock`` must only be changed through ``ProductDjangoRepository``
    (order placement decrements, staff restock sets).
    """

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="variants",
    )
    color = models.CharField(max_length=50, default=NOT_APPLICABLE)
    size = models.CharField(max_length=50, default=NOT_APPLICABLE)
    stock = models.PositiveIntegerField(default=0)
    weight = models.DecimalField(
        max_digits=8,
        decimal_places=3,
        null=True,
        blank=True,
        help_text="Unit weight in kilograms.",
    )

    class Meta:
        db_table = "product_variants"
        ordering = ["color", "size"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "color", "size"],
                name="variants_product_color_size_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="variants_stock_non_negative",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        self.color = (self.color or "").strip() or NOT_APPLICABLE
        self.size = (self.size or "").strip() or NOT_APPLICABLE
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} {self.color}/{self.size} (stock={self.stock})"
