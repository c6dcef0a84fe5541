"""Order domain exceptions.

Raised by ``OrderService``; the views translate them to HTTP:

- ``CustomerNotFound``, ``VariantNotFound``, ``OrderNotFound``: 404
- ``InsufficientStock``, ``MissingPrice``, ``InvalidDeliveryOption``,
  ``InvalidOrderStatus``: 400
- ``PaymentReferenceConflict``: 409
- ``OrderNumberExhausted``: left to the API exception handler (500)
"""

from __future__ import annotations

from modules.customers.exceptions import CustomerNotFound

__all__ = [
    "CustomerNotFound",
    "InsufficientStock",
    "InvalidDeliveryOption",
    "InvalidOrderStatus",
    "MissingPrice",
    "OrderNotFound",
    "OrderNumberExhausted",
    "PaymentReferenceConflict",
    "VariantNotFound",
]


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InvalidOrderStatus(Exception):
    """The requested status transition is not allowed."""


class VariantNotFound(Exception):
    """A cart line does not resolve to any variant of the product."""


class InsufficientStock(Exception):
    """A variant has fewer units than the cart line requests."""


class MissingPrice(Exception):
    """The product has no list price in the order currency."""


class InvalidDeliveryOption(Exception):
    """The delivery option does not exist or is inactive."""


class OrderNumberExhausted(Exception):
    """Every generated order number collided with an existing one."""


class PaymentReferenceConflict(Exception):
    """The payment reference already settled another buyer's order."""
