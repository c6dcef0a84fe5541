"""Integration tests for OrderService.place_order.

Covers:
- Stock decrement and totals for a simple cart.
- Insufficient stock and missing variants leave no partial effects.
- Online/offline totals and delivery fees.
- Guest vs registered buyers, contact sync.
- Item snapshots surviving catalog edits.
- Post-commit publication of ``OrderPlaced``.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.notifications.models import ReceiptEmailStatus
from modules.orders.constants import OrderChannel, OrderStatus
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.events import OrderPlaced
from modules.orders.exceptions import (
    CustomerNotFound,
    InsufficientStock,
    InvalidDeliveryOption,
    MissingPrice,
    VariantNotFound,
)
from modules.orders.models import OfflineSale, Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.django_repository import (
    DeliveryOptionDjangoRepository,
    OrderDjangoRepository,
)
from modules.orders.services import OrderService
from modules.products.models import Variant
from modules.products.repositories.django_repository import ProductDjangoRepository
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.integration


class RecordingHandler:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


@pytest.fixture()
def bus():
    return InMemoryEventBus()


@pytest.fixture()
def service(bus):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        delivery_option_repository=DeliveryOptionDjangoRepository(),
        event_bus=bus,
    )


def _online(items, **extra):
    data = {
        "items": items,
        "currency": "NGN",
        "payment_method": "Paystack",
        "contact": {"email": "buyer@example.com", "first_name": "Ngozi"},
    }
    data.update(extra)
    return PlaceOrderDTO.model_validate(data)


def _offline(items, staff_id, **extra):
    data = {
        "items": items,
        "channel": OrderChannel.OFFLINE,
        "currency": "NGN",
        "payment_method": "Cash",
        "staff_id": staff_id,
    }
    data.update(extra)
    return PlaceOrderDTO.model_validate(data)


def _stock(product, color="N/A", size="N/A"):
    return Variant.objects.get(product=product, color=color, size=size).stock


# ---------------------------------------------------------------------------
# Core scenarios
# ---------------------------------------------------------------------------


class TestCoreScenarios:
    def test_two_units_decrement_stock_and_total(self, service, make_product):
        p1 = make_product(name="P1", price_ngn=Decimal("1000"), variants=[("N/A", "N/A", 5)])

        result = service.place_order(_online([{"product_id": p1.id, "quantity": 2}]))

        order = result.order
        assert result.created is True
        assert _stock(p1) == 3
        assert order.total_amount == Decimal("2000.00")
        assert order.total_ngn == 2000
        assert order.status == OrderStatus.PROCESSING
        assert order.order_number.startswith("M-ORD")
        assert order.items.count() == 1

    def test_insufficient_stock_names_product(self, service, make_product):
        p1 = make_product(name="P1", variants=[("N/A", "N/A", 1)])

        with pytest.raises(InsufficientStock, match="P1"):
            service.place_order(_online([{"product_id": p1.id, "quantity": 2}]))

        assert _stock(p1) == 1
        assert Order.objects.count() == 0

    def test_second_line_failure_rolls_back_first(self, service, make_product):
        p1 = make_product(name="P1", variants=[("N/A", "N/A", 5)])
        p2 = make_product(name="P2", variants=[("N/A", "N/A", 1)])

        with pytest.raises(InsufficientStock, match="P2"):
            service.place_order(
                _online(
                    [
                        {"product_id": p1.id, "quantity": 2},
                        {"product_id": p2.id, "quantity": 3},
                    ]
                )
            )

        assert _stock(p1) == 5
        assert _stock(p2) == 1
        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0
        assert ReceiptEmailStatus.objects.count() == 0

    def test_missing_variant(self, service, make_product):
        p1 = make_product(variants=[("Red", "M", 5)])

        with pytest.raises(VariantNotFound, match="Green"):
            service.place_order(
                _online([{"product_id": p1.id, "color": "Green", "size": "M", "quantity": 1}])
            )
        assert _stock(p1, "Red", "M") == 5

    def test_unknown_product(self, service):
        with pytest.raises(VariantNotFound):
            service.place_order(_online([{"product_id": uuid4(), "quantity": 1}]))

    def test_same_variant_on_two_lines_cannot_oversell(self, service, make_product):
        p1 = make_product(variants=[("N/A", "N/A", 3)])

        with pytest.raises(InsufficientStock):
            service.place_order(
                _online(
                    [
                        {"product_id": p1.id, "quantity": 2},
                        {"product_id": p1.id, "quantity": 2},
                    ]
                )
            )
        assert _stock(p1) == 3

    def test_wildcard_and_explicit_lines_share_the_variant(self, service, make_product):
        p1 = make_product(variants=[("Red", "M", 3)])

        order = service.place_order(
            _online(
                [
                    {"product_id": p1.id, "quantity": 1},
                    {"product_id": p1.id, "color": "Red", "size": "M", "quantity": 2},
                ]
            )
        ).order

        assert _stock(p1, "Red", "M") == 0
        assert order.items.count() == 2

    def test_stock_taken_after_locked_read_is_refused(self, service, make_product):
        p1 = make_product(name="P1", variants=[("N/A", "N/A", 5)])
        p2 = make_product(name="P2", variants=[("N/A", "N/A", 5)])
        real_lock = ProductDjangoRepository.lock_variants

        def lock_then_drain(repo, variant_ids):
            locked = real_lock(repo, variant_ids)
            Variant.objects.filter(product=p2).update(stock=0)
            return locked

        with patch.object(ProductDjangoRepository, "lock_variants", lock_then_drain):
            with pytest.raises(InsufficientStock, match="P2"):
                service.place_order(
                    _online(
                        [
                            {"product_id": p1.id, "quantity": 2},
                            {"product_id": p2.id, "quantity": 1},
                        ]
                    )
                )

        # the drain ran inside the rolled-back transaction too
        assert _stock(p1) == 5
        assert _stock(p2) == 5
        assert Order.objects.count() == 0


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


class TestTotals:
    def test_total_sums_lines_with_size_mods(self, service, make_product):
        kaftan = make_product(
            name="Kaftan",
            price_ngn=Decimal("45000"),
            size_mods=True,
            variants=[("Indigo", "M", 5)],
        )
        cap = make_product(name="Cap", price_ngn=Decimal("12000"), variants=[("Gold", "N/A", 5)])

        order = service.place_order(
            _online(
                [
                    {
                        "product_id": kaftan.id,
                        "color": "Indigo",
                        "size": "M",
                        "quantity": 2,
                        "has_size_mod": True,
                        "size_mod_fee": "1500",
                        "custom_size": {"chest": 44},
                    },
                    {"product_id": cap.id, "color": "Gold", "quantity": 1},
                ]
            )
        ).order

        # 2 * 45000 + 2 * 1500 + 12000
        assert order.total_amount == Decimal("105000.00")
        assert order.total_ngn == 102000
        first = order.items.all()[0]
        assert first.has_size_mod is True
        assert first.size_mod_fee == Decimal("1500.00")
        assert first.custom_size == {"chest": 44}

    def test_foreign_currency_keeps_ngn_reference(self, service, make_product):
        p1 = make_product(price_ngn=Decimal("45000"), price_usd=Decimal("55.25"))

        order = service.place_order(
            _online([{"product_id": p1.id, "quantity": 2}], currency="usd")
        ).order

        assert order.currency == "USD"
        assert order.total_amount == Decimal("110.50")
        assert order.total_ngn == 90000
        assert order.items.get().currency == "USD"

    def test_missing_price_is_zero(self, service, make_product):
        p1 = make_product(price_ngn=Decimal("1000"))

        order = service.place_order(
            _online([{"product_id": p1.id, "quantity": 1}], currency="EUR")
        ).order

        assert order.total_amount == Decimal("0.00")
        assert order.total_ngn == 1000

    def test_missing_price_strict(self, service, make_product, settings):
        settings.ORDERS_ALLOW_MISSING_PRICE = False
        p1 = make_product(price_ngn=Decimal("1000"))

        with pytest.raises(MissingPrice):
            service.place_order(
                _online([{"product_id": p1.id, "quantity": 1}], currency="GBP")
            )
        assert _stock(p1) == 5

    def test_online_total_includes_delivery_fee(self, service, make_product):
        p1 = make_product(price_ngn=Decimal("1000"))

        order = service.place_order(
            _online([{"product_id": p1.id, "quantity": 1}], delivery_fee="2500")
        ).order

        assert order.total_amount == Decimal("3500.00")
        assert order.delivery_fee == Decimal("2500.00")

    def test_delivery_option_base_fee(self, service, make_product, courier_option):
        p1 = make_product(price_ngn=Decimal("1000"))

        order = service.place_order(
            _online(
                [{"product_id": p1.id, "quantity": 1}],
                delivery_option_id=courier_option.id,
            )
        ).order

        assert order.delivery_fee == Decimal("3500.00")
        assert order.total_amount == Decimal("4500.00")
        assert order.delivery_option == courier_option
        assert order.delivery_details["delivery_option_id"] == str(courier_option.id)

    def test_request_fee_beats_option_fee(self, service, make_product, courier_option):
        p1 = make_product(price_ngn=Decimal("1000"))

        order = service.place_order(
            _online(
                [{"product_id": p1.id, "quantity": 1}],
                delivery_option_id=courier_option.id,
                delivery_fee="0",
            )
        ).order

        assert order.delivery_fee == Decimal("0.00")

    def test_inactive_delivery_option(self, service, make_product, courier_option):
        courier_option.active = False
        courier_option.save()
        p1 = make_product()

        with pytest.raises(InvalidDeliveryOption):
            service.place_order(
                _online(
                    [{"product_id": p1.id, "quantity": 1}],
                    delivery_option_id=courier_option.id,
                )
            )
        assert _stock(p1) == 5


# ---------------------------------------------------------------------------
# Buyer identity
# ---------------------------------------------------------------------------


class TestIdentity:
    def test_guest_order_embeds_contact(self, service, make_product, customer):
        p1 = make_product()
        before = list(Customer.objects.values())

        order = service.place_order(_online([{"product_id": p1.id, "quantity": 1}])).order

        assert order.customer is None
        assert order.guest_info["email"] == "buyer@example.com"
        assert order.contact_email == "buyer@example.com"
        # no customer created or touched
        assert list(Customer.objects.values()) == before

    def test_registered_order_references_customer(self, service, make_product, customer):
        p1 = make_product()

        order = service.place_order(
            _online([{"product_id": p1.id, "quantity": 1}], customer_id=customer.id)
        ).order

        assert order.customer == customer
        assert order.guest_info is None

    def test_session_customer_used_online(self, service, make_product, customer, shopper_user):
        customer.user = shopper_user
        customer.save()
        p1 = make_product()

        order = service.place_order(
            _online([{"product_id": p1.id, "quantity": 1}]), user=shopper_user
        ).order

        assert order.customer == customer
        assert order.status_history.get().user == shopper_user

    def test_unknown_customer_online_becomes_guest(self, service, make_product):
        p1 = make_product()

        order = service.place_order(
            _online([{"product_id": p1.id, "quantity": 1}], customer_id=uuid4())
        ).order

        assert order.is_guest

    def test_registered_contact_is_synced(self, service, make_product, customer):
        p1 = make_product()

        service.place_order(
            _online(
                [{"product_id": p1.id, "quantity": 1}],
                customer_id=customer.id,
                contact={
                    "email": customer.email,
                    "delivery_address": "22 New Street, Ikeja",
                    "phone": "",
                },
            )
        )

        customer.refresh_from_db()
        assert customer.delivery_address == "22 New Street, Ikeja"
        assert customer.phone == "+2348030000001"


# ---------------------------------------------------------------------------
# In-person sales
# ---------------------------------------------------------------------------


class TestOfflineSale:
    def test_records_sale_and_keeps_fee_separate(self, service, make_product, customer, staff_user):
        p1 = make_product(price_ngn=Decimal("1000"))

        order = service.place_order(
            _offline(
                [{"product_id": p1.id, "quantity": 2}],
                staff_user.pk,
                customer_id=customer.id,
                delivery_fee="1500",
            )
        ).order

        assert order.channel == OrderChannel.OFFLINE
        assert order.total_amount == Decimal("2000.00")
        assert order.delivery_fee == Decimal("1500.00")
        assert order.staff == staff_user
        sale = OfflineSale.objects.get(order=order)
        assert sale.staff == staff_user
        assert order.receipt_status.delivery_fee == Decimal("1500.00")

    def test_unknown_customer_is_an_error(self, service, make_product, staff_user):
        p1 = make_product()

        with pytest.raises(CustomerNotFound):
            service.place_order(
                _offline(
                    [{"product_id": p1.id, "quantity": 1}],
                    staff_user.pk,
                    customer_id=uuid4(),
                )
            )
        assert _stock(p1) == 5

    def test_guest_sale_with_default_size_mod_fee(
        self, service, make_product, staff_user, guest_contact
    ):
        p1 = make_product(price_ngn=Decimal("20000"), size_mods=True)

        order = service.place_order(
            _offline(
                [{"product_id": p1.id, "quantity": 2, "has_size_mod": True}],
                staff_user.pk,
                contact=guest_contact,
            )
        ).order

        item = order.items.get()
        assert item.size_mod_fee == Decimal("1000.00")
        assert order.total_amount == Decimal("42000.00")
        assert order.guest_info["phone"] == guest_contact["phone"]


# ---------------------------------------------------------------------------
# Persistence details
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_items_are_snapshots(self, service, make_product):
        p1 = make_product(name="Ankara Wrap", price_ngn=Decimal("38000"))

        order = service.place_order(_online([{"product_id": p1.id, "quantity": 1}])).order
        p1.name = "Renamed"
        p1.price_ngn = Decimal("1")
        p1.save()

        item = OrderItem.objects.get(order=order)
        assert item.name == "Ankara Wrap"
        assert item.unit_price == Decimal("38000.00")
        assert item.image == "https://cdn.example.com/Ankara Wrap.jpg"
        assert item.category == "dresses"

    def test_items_keep_cart_order(self, service, make_product):
        zebra = make_product(name="Zebra")
        alpha = make_product(name="Alpha")

        order = service.place_order(
            _online(
                [
                    {"product_id": zebra.id, "quantity": 1},
                    {"product_id": alpha.id, "quantity": 1},
                ]
            )
        ).order

        assert [item.name for item in order.items.all()] == ["Zebra", "Alpha"]

    def test_initial_history_and_receipt_row(self, service, make_product):
        p1 = make_product()

        order = service.place_order(_online([{"product_id": p1.id, "quantity": 1}])).order

        history = OrderStatusHistory.objects.get(order=order)
        assert history.new_status == OrderStatus.PROCESSING
        assert history.old_status is None
        receipt = ReceiptEmailStatus.objects.get(order=order)
        assert receipt.sent is False
        assert receipt.attempts == 0

    def test_order_placed_published_after_commit(
        self, service, bus, make_product, django_capture_on_commit_callbacks
    ):
        handler = RecordingHandler()
        bus.subscribe(OrderPlaced, handler)
        p1 = make_product()

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            order = service.place_order(
                _online([{"product_id": p1.id, "quantity": 1}])
            ).order
            assert handler.events == []

        assert len(callbacks) == 1
        assert handler.events[0].order_number == order.order_number

    def test_failed_placement_publishes_nothing(
        self, service, bus, make_product, django_capture_on_commit_callbacks
    ):
        handler = RecordingHandler()
        bus.subscribe(OrderPlaced, handler)
        p1 = make_product(variants=[("N/A", "N/A", 0)])

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(InsufficientStock):
                service.place_order(_online([{"product_id": p1.id, "quantity": 1}]))

        assert callbacks == []
        assert handler.events == []
