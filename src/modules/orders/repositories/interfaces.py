"""Order repository interfaces.

``IOrderRepository`` extends ``IRepository[Order]`` with what the Order
aggregate needs: atomic creation with items, status history, look-ups by
order number and payment reference, the in-person sale record.
``IDeliveryOptionRepository`` is the read side of delivery options.

The Service Layer depends exclusively on these contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import (
        DeliveryOption,
        OfflineSale,
        Order,
        OrderStatusHistory,
    )


class IOrderRepository(IRepository["Order"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` holds the ``Order`` field values plus ``items``: a list of
        ``OrderItem`` field dicts in cart order.
        """

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and history."""

    @abstractmethod
    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        """Retrieve the order already placed for a payment reference."""

    @abstractmethod
    def get_for_update(self, order_number: str) -> Optional[Order]:
        """Retrieve an order holding a row lock."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def record_offline_sale(
        self, order: Order, staff_id: int, timestamp: datetime
    ) -> OfflineSale:
        """Record which staff member logged an in-person sale."""

    @abstractmethod
    def customer_summary(self, customer_id: Any) -> Dict[str, Any]:
        """Order count, NGN spend and per-category line counts for a customer."""


class IDeliveryOptionRepository(ABC):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[DeliveryOption]: ...

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet: ...
