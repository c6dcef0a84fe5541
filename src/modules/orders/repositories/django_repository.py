"""Django ORM implementation of the Order repositories.

``create`` writes the Order aggregate (order + items) atomically; status
changes lock the order row with ``select_for_update()``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.orders.models import (
    DeliveryOption,
    OfflineSale,
    Order,
    OrderItem,
    OrderStatusHistory,
)
from modules.orders.repositories.interfaces import (
    IDeliveryOptionRepository,
    IOrderRepository,
)

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    def _with_relations(self) -> models.QuerySet:
        return (
            Order.objects.alive()
            .select_related("customer", "delivery_option", "staff")
            .prefetch_related("items", "status_history")
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        data = dict(data)
        items = data.pop("items", [])
        order = Order(**data)
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(order=order, position=position, **item)
                for position, item in enumerate(items)
            ]
        )

        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        try:
            return self._with_relations().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        return self._with_relations().filter(order_number=order_number).first()

    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        return self._with_relations().filter(payment_reference=reference).first()

    def get_for_update(self, order_number: str) -> Optional[Order]:
        return (
            Order.objects.alive()
            .select_for_update()
            .filter(order_number=order_number)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = (
            Order.objects.alive()
            .select_related("customer", "delivery_option")
            .prefetch_related("items")
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Order-specific writes
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: Any,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user_id=user_id,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    def record_offline_sale(
        self, order: Order, staff_id: int, timestamp: datetime
    ) -> OfflineSale:
        return OfflineSale.objects.create(
            order=order, staff_id=staff_id, timestamp=timestamp
        )

    def customer_summary(self, customer_id: Any) -> Dict[str, Any]:
        orders = Order.objects.alive().filter(customer_id=customer_id)
        totals = orders.aggregate(
            total_orders=models.Count("id"),
            total_spent_ngn=models.Sum("total_ngn"),
            last_order_at=models.Max("placed_at"),
        )
        breakdown = (
            OrderItem.objects.filter(order__in=orders)
            .values("category")
            .annotate(lines=models.Count("id"))
            .order_by("category")
        )
        return {
            "total_orders": totals["total_orders"],
            "total_spent_ngn": totals["total_spent_ngn"] or 0,
            "last_order_at": totals["last_order_at"],
            "categories": {row["category"]: row["lines"] for row in breakdown},
        }


class DeliveryOptionDjangoRepository(IDeliveryOptionRepository):
    def get_by_id(self, id: str) -> Optional[DeliveryOption]:
        try:
            return DeliveryOption.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = DeliveryOption.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset
