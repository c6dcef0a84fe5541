"""Event handlers for Orders domain events.

Both handlers only enqueue Celery work; email delivery never runs inside
the request that placed or updated the order.
"""

from __future__ import annotations

import structlog

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderPlaced, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)

# Transitions the buyer is told about by email.
NOTIFIED_STATUSES = {
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        from modules.notifications.tasks import send_order_receipt

        send_order_receipt.delay(str(event.aggregate_id))
        logger.info(
            "order.receipt_enqueued",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        if event.new_status not in NOTIFIED_STATUSES:
            return
        from modules.notifications.tasks import send_status_update

        send_status_update.delay(str(event.aggregate_id), event.new_status)
        logger.info(
            "order.status_email_enqueued",
            order_id=str(event.aggregate_id),
            new_status=event.new_status,
        )


order_placed_handler = OrderPlacedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
