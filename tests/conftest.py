from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.orders.models import DeliveryOption
from modules.products.models import Category, Product, ProductStatus, Variant

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test clean."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="shopfloor", password="testpass123", is_staff=True
    )


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def shopper_user():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def make_product():
    """Factory: a product with one variant per ``(color, size, stock)``."""

    def _make(
        name="P1",
        price_ngn=Decimal("1000.00"),
        variants=(("N/A", "N/A", 5),),
        **fields,
    ):
        slug = fields.pop("category_slug", "dresses")
        category, _ = Category.objects.get_or_create(
            slug=slug, defaults={"name": slug.title()}
        )
        product = Product.objects.create(
            name=name,
            category=category,
            price_ngn=price_ngn,
            status=fields.pop("status", ProductStatus.ACTIVE),
            images=fields.pop("images", [f"https://cdn.example.com/{name}.jpg"]),
            **fields,
        )
        for color, size, stock in variants:
            Variant.objects.create(product=product, color=color, size=size, stock=stock)
        return product

    return _make


@pytest.fixture()
def customer():
    return Customer.objects.create(
        first_name="Adaeze",
        last_name="Okafor",
        email="adaeze@example.com",
        phone="+2348030000001",
        delivery_address="1 Old Road, Lagos",
        country="NG",
        state="Lagos",
    )


@pytest.fixture()
def courier_option():
    return DeliveryOption.objects.create(
        name="Lagos Same Day",
        provider="GIG",
        type="COURIER",
        base_fee=Decimal("3500.00"),
        metadata={"countries": ["NG"]},
    )


@pytest.fixture()
def guest_contact():
    return {
        "first_name": "Kofi",
        "last_name": "Mensah",
        "email": "kofi@example.com",
        "phone": "+233200000004",
        "delivery_address": "5 Ring Road, Accra",
        "country": "GH",
        "state": "Accra",
    }
