"""Receipt and status-update email rendering.

The receipt shows the item subtotal, VAT on that subtotal, the delivery
fee and the grand total (``subtotal + vat + delivery``) in the order
currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.conf import settings
from django.template.loader import render_to_string

from modules.products.constants import CURRENCY_SYMBOLS

if TYPE_CHECKING:
    from modules.orders.models import Order

CENT = Decimal("0.01")


@dataclass(frozen=True)
class EmailMessageParts:
    subject: str
    to: str
    text: str
    html: Optional[str] = None


def format_money(amount: Decimal, currency: str) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    return f"{symbol}{Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"


def vat_rate() -> Decimal:
    return Decimal(str(getattr(settings, "ORDERS_VAT_RATE", "0.075")))


def _percent(rate: Decimal) -> str:
    text = f"{rate * 100:f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def receipt_totals(order: Order, delivery_fee: Decimal) -> Dict[str, Decimal]:
    subtotal = order.items_subtotal
    vat = (subtotal * vat_rate()).quantize(CENT, rounding=ROUND_HALF_UP)
    delivery_fee = Decimal(delivery_fee or 0).quantize(CENT)
    return {
        "subtotal": subtotal,
        "vat": vat,
        "delivery_fee": delivery_fee,
        "grand_total": subtotal + vat + delivery_fee,
    }


def _lines(order: Order) -> List[Dict[str, Any]]:
    lines = []
    for item in order.items.all():
        lines.append(
            {
                "name": item.name,
                "color": item.color,
                "size": item.size,
                "quantity": item.quantity,
                "unit_price": format_money(item.unit_price, order.currency),
                "line_total": format_money(item.line_total, order.currency),
                "size_mod_fee": (
                    format_money(item.size_mod_fee, order.currency)
                    if item.has_size_mod and item.size_mod_fee
                    else None
                ),
                "custom_size": item.custom_size,
                "image": item.image,
            }
        )
    return lines


def build_receipt(
    order: Order, recipient: Dict[str, Any], delivery_fee: Decimal
) -> EmailMessageParts:
    totals = receipt_totals(order, delivery_fee)
    context = {
        "store_name": settings.STORE_NAME,
        "storefront_url": settings.STOREFRONT_URL,
        "order": order,
        "customer_name": (
            f"{recipient.get('first_name', '')} {recipient.get('last_name', '')}"
        ).strip(),
        "delivery_address": recipient.get("delivery_address") or "",
        "lines": _lines(order),
        "vat_percent": _percent(vat_rate()),
        **{key: format_money(value, order.currency) for key, value in totals.items()},
    }
    return EmailMessageParts(
        subject=f"{settings.STORE_NAME} receipt for order {order.order_number}",
        to=recipient.get("email") or "",
        text=render_to_string("notifications/receipt.txt", context),
        html=render_to_string("notifications/receipt.html", context),
    )


def build_status_update(order: Order, recipient: Dict[str, Any]) -> EmailMessageParts:
    context = {
        "store_name": settings.STORE_NAME,
        "storefront_url": settings.STOREFRONT_URL,
        "order": order,
        "customer_name": recipient.get("first_name") or "",
    }
    return EmailMessageParts(
        subject=f"Order {order.order_number} is now {order.status}",
        to=recipient.get("email") or "",
        text=render_to_string("notifications/status_update.txt", context),
    )
