"""Customer model.

Business rules:
- Email is unique across customers (case-insensitive, normalised on save).
- A customer may be linked to a login (``user``); checkout prefers that
  link over any id sent in the payload.
- Guests are never stored here; their contact snapshot lives on the order.
- Soft delete via ``deleted_at``; orders keep a PROTECT reference.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import structlog
from django.conf import settings
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)

# Contact fields a checkout is allowed to refresh on a registered customer.
SYNCABLE_CONTACT_FIELDS = (
    "phone",
    "delivery_address",
    "billing_address",
    "country",
    "state",
)


class Customer(SoftDeleteModel):
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=254, unique=True)
    phone = models.CharField(max_length=30, blank=True, default="")
    delivery_address = models.TextField(blank=True, default="")
    billing_address = models.TextField(blank=True, default="")
    country = models.CharField(max_length=100, blank=True, default="")
    state = models.CharField(max_length=100, blank=True, default="")
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="customer",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
            models.Index(fields=["last_name", "first_name"], name="customers_name_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def contact_snapshot(self) -> Dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "delivery_address": self.delivery_address,
            "billing_address": self.billing_address,
            "country": self.country,
            "state": self.state,
        }

    def apply_contact(
        self, values: Dict[str, Any], fields: Iterable[str] = SYNCABLE_CONTACT_FIELDS
    ) -> List[str]:
        """Copy non-empty ``values`` onto the instance; return changed fields."""
        changed = []
        for field in fields:
            value = values.get(field)
            if value and value != getattr(self, field):
                setattr(self, field, value)
                changed.append(field)
        return changed

    def save(self, *args, **kwargs) -> None:
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}>"
