"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    DeliveryOptionDjangoRepository,
    OrderDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IDeliveryOptionRepository,
    IOrderRepository,
)

__all__ = [
    "DeliveryOptionDjangoRepository",
    "IDeliveryOptionRepository",
    "IOrderRepository",
    "OrderDjangoRepository",
]
