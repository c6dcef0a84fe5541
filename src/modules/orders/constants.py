"""Order domain constants.

Status machine used by the back office:

    Processing -> Shipped | Cancelled
    Shipped    -> Delivered | Cancelled
    Delivered, Cancelled: terminal
"""

import string
from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    PROCESSING = "Processing", "Processing"
    SHIPPED = "Shipped", "Shipped"
    DELIVERED = "Delivered", "Delivered"
    CANCELLED = "Cancelled", "Cancelled"


class OrderChannel(models.TextChoices):
    ONLINE = "ONLINE", "Online checkout"
    OFFLINE = "OFFLINE", "In-person sale"


class DeliveryType(models.TextChoices):
    COURIER = "COURIER", "Courier"
    PICKUP = "PICKUP", "Pickup"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Order numbers: prefix + 7 characters from A-Z0-9
ORDER_NUMBER_PREFIX = "M-ORD"
ORDER_NUMBER_LENGTH = 7
ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_MAX_RETRIES = 5

# In-person sales charge 5% of the unit price for a custom size when the
# caller does not quote a fee.
OFFLINE_SIZE_MOD_RATE = Decimal("0.05")
