"""Receipt delivery tracking.

One row per order. The checkout never waits for email: the row records
whether the receipt went out, how many attempts failed and when the next
retry is due.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel

LAST_ERROR_MAX_LENGTH = 1000
BACKOFF_BASE_SECONDS = 60
BACKOFF_CAP_SECONDS = 3600


def compute_backoff_seconds(attempts: int) -> int:
    """``min(60 * 2^(attempts-1), 3600)``; first failure waits one minute."""
    exponent = max(attempts - 1, 0)
    return min(BACKOFF_BASE_SECONDS * (2**exponent), BACKOFF_CAP_SECONDS)


class ReceiptEmailStatus(BaseModel):
    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="receipt_status",
    )
    sent = models.BooleanField(default=False)
    sent_at = models.DateTimeField(null=True, blank=True)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    next_retry_at = models.DateTimeField(null=True, blank=True)
    delivery_fee = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        db_table = "receipt_email_status"
        indexes = [
            models.Index(fields=["sent", "next_retry_at"], name="receipt_pending_idx"),
        ]

    def mark_sent(self, now: Optional[datetime] = None) -> None:
        self.sent = True
        self.sent_at = now or timezone.now()
        self.last_error = ""
        self.next_retry_at = None

    def mark_failed(self, error: str, now: Optional[datetime] = None) -> None:
        now = now or timezone.now()
        self.attempts += 1
        self.last_error = error[:LAST_ERROR_MAX_LENGTH]
        self.next_retry_at = now + timedelta(
            seconds=compute_backoff_seconds(self.attempts)
        )

    def __str__(self) -> str:
        state = "sent" if self.sent else f"pending ({self.attempts} attempts)"
        return f"receipt {self.order_id}: {state}"
