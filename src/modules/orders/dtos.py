"""Order DTOs for the Service Layer.

Pydantic v2, immutable. These are the contracts between the API layer
(DRF serializers) and ``OrderService``.

- ``CartItemDTO``: one cart line.
- ``PlaceOrderDTO``: a checkout or an in-person sale.
- ``StatusUpdateDTO``: back-office status transition.
- ``PlacementResult``: placed (or replayed) order plus a ``created`` flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.customers.dtos import ContactDTO
from modules.orders.constants import OrderChannel, OrderStatus
from modules.products.constants import NOT_APPLICABLE, Currency

if TYPE_CHECKING:
    from modules.orders.models import Order


class CartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    color: str = NOT_APPLICABLE
    size: str = NOT_APPLICABLE
    quantity: int
    has_size_mod: bool = False
    size_mod_fee: Optional[Decimal] = Field(default=None, ge=0)
    custom_size: Optional[Dict[str, Any]] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("color", "size", mode="before")
    @classmethod
    def blank_means_not_applicable(cls, v: Any) -> Any:
        if v is None:
            return NOT_APPLICABLE
        if isinstance(v, str):
            return v.strip() or NOT_APPLICABLE
        return v


class PlaceOrderDTO(BaseModel):
    """Validates:

    - the cart holds at least one line;
    - the currency is one of NGN, USD, EUR, GBP (any case);
    - a payment method is named;
    - online orders carry a contact email;
    - in-person sales name the staff member, and a guest buyer has first
      name, last name, email and phone.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CartItemDTO]
    channel: OrderChannel = OrderChannel.ONLINE
    currency: str
    payment_method: str
    customer_id: Optional[UUID] = None
    contact: Optional[ContactDTO] = None
    delivery_fee: Optional[Decimal] = Field(default=None, ge=0)
    delivery_option_id: Optional[UUID] = None
    delivery_details: Dict[str, Any] = Field(default_factory=dict)
    payment_reference: Optional[str] = None
    placed_at: Optional[datetime] = None
    staff_id: Optional[int] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[CartItemDTO]) -> List[CartItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("currency", mode="before")
    @classmethod
    def currency_must_be_supported(cls, v: Any) -> Any:
        code = str(v or "").strip().upper()
        if code not in Currency.values:
            raise ValueError(
                f"Unsupported currency {v!r}; expected one of "
                f"{', '.join(Currency.values)}."
            )
        return code

    @field_validator("payment_method")
    @classmethod
    def payment_method_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Payment method is required.")
        return v

    @field_validator("payment_reference", mode="before")
    @classmethod
    def blank_reference_is_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    @model_validator(mode="after")
    def channel_requirements(self):
        contact = self.contact
        if self.channel == OrderChannel.ONLINE:
            if contact is None or not contact.email:
                raise ValueError("Contact email is required for checkout.")
        else:
            if self.staff_id is None:
                raise ValueError("In-person sales must be logged by a staff member.")
            if self.customer_id is None and (contact is None or not contact.is_complete):
                raise ValueError(
                    "Guest sales require first name, last name, email and phone."
                )
        return self

    @property
    def is_online(self) -> bool:
        return self.channel == OrderChannel.ONLINE


class StatusUpdateDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def match_status_case(cls, v: Any) -> Any:
        if isinstance(v, str):
            for choice in OrderStatus.values:
                if choice.lower() == v.strip().lower():
                    return choice
        return v


@dataclass(frozen=True)
class PlacementResult:
    order: Order
    created: bool = True
