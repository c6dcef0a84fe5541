"""Catalog constants shared with order placement."""

from django.db import models


class Currency(models.TextChoices):
    NGN = "NGN", "Nigerian Naira"
    USD = "USD", "US Dollar"
    EUR = "EUR", "Euro"
    GBP = "GBP", "British Pound"


# Reporting currency: every order also carries a total priced in it.
REFERENCE_CURRENCY = Currency.NGN

CURRENCY_SYMBOLS: dict[str, str] = {
    Currency.NGN: "₦",
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
}

# Sentinel for a product that does not vary on color and/or size.
NOT_APPLICABLE = "N/A"
