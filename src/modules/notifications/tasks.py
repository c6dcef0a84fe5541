"""Celery tasks for customer notifications."""

import structlog
from celery import shared_task

from modules.notifications.models import compute_backoff_seconds
from modules.notifications.services import ReceiptNotifier

logger = structlog.get_logger(__name__)

RECEIPT_MAX_RETRIES = 5


@shared_task(
    bind=True,
    name="notifications.send_order_receipt",
    max_retries=RECEIPT_MAX_RETRIES,
)
def send_order_receipt(self, order_id: str):
    try:
        sent = ReceiptNotifier().send(order_id)
    except Exception as exc:
        countdown = compute_backoff_seconds(self.request.retries + 1)
        logger.warning(
            "receipt_task.retrying",
            order_id=order_id,
            retries=self.request.retries,
            countdown=countdown,
        )
        raise self.retry(exc=exc, countdown=countdown)
    return {"order_id": order_id, "sent": sent}


@shared_task(name="notifications.retry_pending_receipts")
def retry_pending_receipts():
    """Periodic sweep (Celery beat) of receipts whose retry is due."""
    return ReceiptNotifier().retry_pending()


@shared_task(name="notifications.send_status_update")
def send_status_update(order_id: str, status: str):
    sent = ReceiptNotifier().send_status_update(order_id)
    return {"order_id": order_id, "status": status, "sent": sent}
