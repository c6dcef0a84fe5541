"""Human-readable order numbers.

``generate_order_number`` is pure: prefix plus ``length`` characters drawn
uniformly from ``A-Z0-9``. Uniqueness belongs to the database (unique
``Order.order_number``); ``allocate_order_number`` adds a bounded
check-and-retry on top so a collision never reaches the insert.
"""

from __future__ import annotations

import re
import secrets
from typing import Callable

import structlog

from modules.orders.constants import (
    ORDER_NUMBER_ALPHABET,
    ORDER_NUMBER_LENGTH,
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_NUMBER_PREFIX,
)
from modules.orders.exceptions import OrderNumberExhausted

logger = structlog.get_logger(__name__)

ORDER_NUMBER_RE = re.compile(
    rf"^{re.escape(ORDER_NUMBER_PREFIX)}[A-Z0-9]{{{ORDER_NUMBER_LENGTH}}}$"
)


def generate_order_number(
    prefix: str = ORDER_NUMBER_PREFIX, length: int = ORDER_NUMBER_LENGTH
) -> str:
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(length))
    return f"{prefix}{suffix}"


def allocate_order_number(
    is_taken: Callable[[str], bool],
    generate: Callable[[], str] = generate_order_number,
    max_retries: int = ORDER_NUMBER_MAX_RETRIES,
) -> str:
    """Return the first generated number for which ``is_taken`` is false.

    Raises:
        OrderNumberExhausted: all ``max_retries`` candidates were taken.
    """
    for attempt in range(1, max_retries + 1):
        candidate = generate()
        if not is_taken(candidate):
            return candidate
        logger.warning("order.number_collision", attempt=attempt)
    raise OrderNumberExhausted(
        f"Failed to generate a unique order number after {max_retries} attempts."
    )
