"""Per-line money math for order placement.

All amounts are ``Decimal`` quantised to two places with ROUND_HALF_UP.
The NGN reference total is computed from ``price_ngn`` regardless of the
sale currency and stored rounded to a whole number.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Optional

import structlog
from django.conf import settings

from modules.orders.constants import OFFLINE_SIZE_MOD_RATE, OrderChannel
from modules.orders.exceptions import MissingPrice
from modules.products.constants import REFERENCE_CURRENCY

if TYPE_CHECKING:
    from modules.products.models import Product

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def unit_price_for(
    product: Product, currency: str, allow_missing: Optional[bool] = None
) -> Decimal:
    """List price of ``product`` in ``currency``.

    A missing price is treated as zero unless ``ORDERS_ALLOW_MISSING_PRICE``
    (or ``allow_missing``) is false, in which case ``MissingPrice`` is raised.
    """
    price = product.price_in(currency)
    if price is not None:
        return quantize(price)

    if allow_missing is None:
        allow_missing = getattr(settings, "ORDERS_ALLOW_MISSING_PRICE", True)
    if not allow_missing:
        raise MissingPrice(f"{product.name} has no {currency} price.")
    logger.warning(
        "order.price_missing", product_id=str(product.id), currency=currency
    )
    return ZERO


def size_mod_fee_for(
    product: Product,
    unit_price: Decimal,
    requested: bool,
    quoted_fee: Optional[Decimal],
    channel: str,
) -> tuple[bool, Decimal]:
    """Return ``(applied, per_unit_fee)`` for a custom-size request."""
    if not requested:
        return False, ZERO
    if quoted_fee is not None:
        return True, quantize(quoted_fee)
    if not product.size_mods:
        return False, ZERO
    if channel == OrderChannel.OFFLINE:
        return True, quantize(unit_price * OFFLINE_SIZE_MOD_RATE)
    return True, ZERO


@dataclass(frozen=True)
class LinePrice:
    unit_price: Decimal
    quantity: int
    has_size_mod: bool
    size_mod_fee: Decimal
    line_total: Decimal
    reference_total: Decimal


def price_line(
    product: Product,
    currency: str,
    quantity: int,
    channel: str,
    has_size_mod: bool = False,
    size_mod_fee: Optional[Decimal] = None,
    allow_missing: Optional[bool] = None,
) -> LinePrice:
    unit_price = unit_price_for(product, currency, allow_missing=allow_missing)
    applied, fee = size_mod_fee_for(
        product, unit_price, has_size_mod, size_mod_fee, channel
    )
    line_total = unit_price * quantity
    if applied:
        line_total += fee * quantity

    reference_price = product.price_in(REFERENCE_CURRENCY) or ZERO
    return LinePrice(
        unit_price=unit_price,
        quantity=quantity,
        has_size_mod=applied,
        size_mod_fee=fee,
        line_total=quantize(line_total),
        reference_total=quantize(reference_price * quantity),
    )


def round_reference_total(amount: Decimal) -> int:
    return int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def order_total(subtotal: Decimal, delivery_fee: Decimal, channel: str) -> Decimal:
    """Online totals include delivery; in-person totals keep it separate."""
    if channel == OrderChannel.ONLINE:
        return quantize(subtotal + delivery_fee)
    return quantize(subtotal)
