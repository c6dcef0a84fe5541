"""Order, OrderItem, OrderStatusHistory, OfflineSale and DeliveryOption.

Business rules implemented:
- An order belongs to a registered customer (``customer``) or a guest
  (``guest_info`` snapshot), never both.
- ``order_number`` is human readable and unique; it is allocated on first
  save with a bounded collision retry.
- ``payment_reference`` is unique when present and makes checkout
  idempotent.
- OrderItem rows are snapshots: name, image, category and prices never
  follow later catalog edits.
- Each status change appends an ``OrderStatusHistory`` row.
- Customer FK uses PROTECT to preserve financial history.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    DeliveryType,
    OrderChannel,
    OrderStatus,
)
from modules.orders.identifiers import allocate_order_number
from modules.products.constants import Currency
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def _money(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(max_digits=12, decimal_places=2, **kwargs)


class DeliveryOption(BaseModel):
    """A courier or pickup option offered at checkout.

    ``metadata["countries"]``, when present, restricts the option to those
    countries; options without it serve everywhere.
    """

    name = models.CharField(max_length=150)
    provider = models.CharField(max_length=100, blank=True, default="")
    type = models.CharField(
        max_length=10, choices=DeliveryType.choices, default=DeliveryType.COURIER
    )
    base_fee = _money(null=True, blank=True)
    active = models.BooleanField(default=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "delivery_options"
        ordering = ["-created_at"]

    def serves_country(self, country: str) -> bool:
        countries = (self.metadata or {}).get("countries")
        if not isinstance(countries, list) or not countries:
            return True
        wanted = country.strip().lower()
        return any(str(c).strip().lower() == wanted for c in countries)

    def __str__(self) -> str:
        return f"{self.name} ({self.type})"


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``order_number`` (``M-ORD`` + 7 characters) is what buyers and staff see;
    the UUIDv7 ``id`` is used for internal references.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PROCESSING,
    )
    channel = models.CharField(
        max_length=10, choices=OrderChannel.choices, default=OrderChannel.ONLINE
    )
    currency = models.CharField(max_length=3, choices=Currency.choices)
    total_amount = _money(default=Decimal("0.00"))
    total_ngn = models.BigIntegerField(default=0)
    delivery_fee = _money(default=Decimal("0.00"))
    payment_method = models.CharField(max_length=50)
    payment_reference = models.CharField(
        max_length=255, unique=True, null=True, blank=True
    )
    placed_at = models.DateTimeField(default=timezone.now)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    guest_info = models.JSONField(null=True, blank=True)
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="logged_orders",
    )
    delivery_option = models.ForeignKey(
        "orders.DeliveryOption",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    delivery_details = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["channel"], name="orders_channel_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(customer__isnull=True)
                | models.Q(guest_info__isnull=True),
                name="orders_customer_xor_guest",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    # ------------------------------------------------------------------
    # Buyer
    # ------------------------------------------------------------------

    @property
    def is_guest(self) -> bool:
        return self.customer_id is None

    @property
    def contact(self) -> Dict[str, Any]:
        if self.customer is not None:
            return self.customer.contact_snapshot()
        return dict(self.guest_info or {})

    @property
    def contact_email(self) -> str:
        return self.contact.get("email") or ""

    @property
    def buyer_name(self) -> str:
        contact = self.contact
        return f"{contact.get('first_name', '')} {contact.get('last_name', '')}".strip()

    @property
    def items_subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items.all()), Decimal("0.00"))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            self.order_number = allocate_order_number(
                lambda candidate: Order.objects.filter(
                    order_number=candidate
                ).exists()
            )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line snapshot of what was sold, at the price it was sold for."""

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    variant = models.ForeignKey(
        "products.Variant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    name = models.CharField(max_length=255)
    image = models.URLField(max_length=500, blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")
    color = models.CharField(max_length=50)
    size = models.CharField(max_length=50)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    currency = models.CharField(max_length=3, choices=Currency.choices)
    unit_price = _money()
    line_total = _money()
    has_size_mod = models.BooleanField(default=False)
    size_mod_fee = _money(default=Decimal("0.00"))
    custom_size = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} {self.color}/{self.size} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is ``None`` when the change was made by the system.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"


class OfflineSale(BaseModel):
    """Who logged an in-person sale, and when it happened."""

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="offline_sale",
    )
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="offline_sales",
    )
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "offline_sales"
        ordering = ["-timestamp"]

    @property
    def staff_name(self) -> Optional[str]:
        if self.staff is None:
            return None
        return self.staff.get_full_name() or self.staff.get_username()

    def __str__(self) -> str:
        return f"{self.order_id} by {self.staff_id}"
