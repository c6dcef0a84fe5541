"""Receipt and status-update delivery.

``ReceiptNotifier.send`` is safe to call repeatedly and concurrently: the
receipt row is locked and a receipt already marked sent is skipped.
Failures are recorded on ``ReceiptEmailStatus`` with an exponential backoff
and re-raised so the Celery task can retry; ``retry_pending`` sweeps
whatever is due.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.db import models, transaction
from django.utils import timezone

from modules.notifications.models import ReceiptEmailStatus
from modules.notifications.receipts import (
    EmailMessageParts,
    build_receipt,
    build_status_update,
)
from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class ReceiptNotifier:
    def track(self, order: Order, delivery_fee: Decimal) -> ReceiptEmailStatus:
        """Create the pending receipt row for a freshly placed order."""
        return ReceiptEmailStatus.objects.create(
            order=order, delivery_fee=delivery_fee or Decimal("0.00")
        )

    def _load_order(self, order_id: Any) -> Optional[Order]:
        return (
            Order.objects.select_related("customer")
            .prefetch_related("items")
            .filter(id=order_id)
            .first()
        )

    def _deliver(self, message: EmailMessageParts) -> None:
        email = EmailMultiAlternatives(
            subject=message.subject,
            body=message.text,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[message.to],
        )
        if message.html:
            email.attach_alternative(message.html, "text/html")
        email.send(fail_silently=False)

    def send(self, order_id: Any) -> bool:
        """Send the receipt for ``order_id``.

        Returns ``True`` when an email went out, ``False`` when there was
        nothing to do (unknown order, already sent, no recipient address).
        The status row stays locked until the outcome is saved, so the
        queued task and the sweep never both deliver.
        """
        log = logger.bind(order_id=str(order_id))
        order = self._load_order(order_id)
        if order is None:
            log.warning("receipt.order_missing")
            return False

        failure: Optional[Exception] = None
        with transaction.atomic():
            status, _ = ReceiptEmailStatus.objects.select_for_update().get_or_create(
                order=order, defaults={"delivery_fee": order.delivery_fee}
            )
            if status.sent:
                log.info("receipt.already_sent")
                return False

            recipient = order.contact
            if not recipient.get("email"):
                status.mark_failed("Order has no contact email.")
                status.save()
                log.warning("receipt.no_recipient", order_number=order.order_number)
                return False

            try:
                self._deliver(build_receipt(order, recipient, status.delivery_fee))
            except Exception as exc:
                status.mark_failed(str(exc) or type(exc).__name__)
                failure = exc
            else:
                status.mark_sent()
            status.save()

        if failure is not None:
            log.warning(
                "receipt.send_failed",
                order_number=order.order_number,
                attempts=status.attempts,
                next_retry_at=status.next_retry_at.isoformat(),
                error=str(failure),
            )
            raise failure

        log.info("receipt.sent", order_number=order.order_number)
        return True

    def pending(self, now: Optional[datetime] = None) -> models.QuerySet:
        now = now or timezone.now()
        return ReceiptEmailStatus.objects.filter(sent=False).filter(
            models.Q(next_retry_at__isnull=True) | models.Q(next_retry_at__lte=now)
        )

    def retry_pending(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Retry every due receipt; a failure never stops the sweep."""
        processed = sent = 0
        for order_id in list(self.pending(now).values_list("order_id", flat=True)):
            processed += 1
            try:
                if self.send(order_id):
                    sent += 1
            except Exception:
                # already recorded on the status row by send()
                continue
        logger.info(
            "receipt.sweep_completed",
            processed=processed,
            sent=sent,
            failed=processed - sent,
        )
        return {"processed": processed, "sent": sent}

    def send_status_update(self, order_id: Any) -> bool:
        """Best-effort notice that an order changed status."""
        log = logger.bind(order_id=str(order_id))
        order = self._load_order(order_id)
        if order is None or not order.contact_email:
            log.info("status_email.skipped")
            return False
        try:
            self._deliver(build_status_update(order, order.contact))
        except Exception:
            log.exception("status_email.failed", status=order.status)
            return False
        log.info("status_email.sent", status=order.status)
        return True
