"""Product repository interface.

Adds the variant operations that order placement and restocking need on
top of ``IRepository[Product]``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.products.models import Category, Product, Variant


class IProductRepository(IRepository["Product"]):
    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Product]":
        """Live products with their variants prefetched."""

    @abstractmethod
    def add_variant(self, product: Product, data: Dict[str, Any]) -> Variant:
        """Create a variant on ``product``."""

    @abstractmethod
    def get_variant(
        self, product_id: str, variant_id: str, for_update: bool = False
    ) -> Optional[Variant]:
        """Variant ``variant_id`` of product ``product_id``, optionally row-locked."""

    @abstractmethod
    def find_variant(self, product_id: Any, color: str, size: str) -> Optional[Variant]:
        """Resolve a cart line to a variant without locking it.

        ``color`` / ``size`` equal to ``"N/A"`` do not constrain the match.
        """

    @abstractmethod
    def lock_variants(self, variant_ids: Iterable[Any]) -> Dict[Any, Variant]:
        """Row-lock the given variants in id order, keyed by id.

        Ids that no longer resolve to a live product are absent.
        """

    @abstractmethod
    def decrement_stock(self, variant_id: Any, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if enough stock remains.

        Returns ``False`` (and changes nothing) when stock is short.
        """

    @abstractmethod
    def get_category(self, slug: str) -> Optional[Category]:
        """Category by slug, active or not."""

    @abstractmethod
    def list_categories(self, active_only: bool = True) -> "models.QuerySet[Category]":
        """Categories ordered by ``sort_order`` then name."""
