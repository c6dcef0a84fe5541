"""Integration tests for the staff order inventory (/api/v1/orders/)."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core import mail

from modules.notifications.models import ReceiptEmailStatus
from modules.orders.constants import OrderChannel, OrderStatus
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.models import OrderStatusHistory
from modules.orders.views import build_order_service

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def place(make_product, staff_user):
    """Place an order through the service and return it."""
    product = make_product(name="Stock Item", variants=[("N/A", "N/A", 100)])

    def _place(channel=OrderChannel.ONLINE, currency="NGN", email="ngozi@example.com", **extra):
        data = {
            "items": [{"product_id": product.id, "quantity": 1}],
            "channel": channel,
            "currency": currency,
            "payment_method": "Paystack",
            "contact": {
                "first_name": "Ngozi",
                "last_name": "Obi",
                "email": email,
                "phone": "+2348030000009",
            },
        }
        if channel == OrderChannel.OFFLINE:
            data["staff_id"] = staff_user.pk
        data.update(extra)
        return build_order_service().place_order(PlaceOrderDTO.model_validate(data)).order

    return _place


class TestPermissions:
    def test_anonymous_rejected(self, api_client):
        assert api_client.get(URL).status_code in (401, 403)

    def test_non_staff_rejected(self, api_client, shopper_user):
        api_client.force_authenticate(user=shopper_user)
        assert api_client.get(URL).status_code == 403


class TestListing:
    def test_paginated_list(self, staff_client, place):
        place()
        place()

        response = staff_client.get(URL)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert {"order_number", "status", "email", "buyer_name"} <= set(body["results"][0])

    def test_filter_by_channel_and_status(self, staff_client, place):
        place()
        offline = place(channel=OrderChannel.OFFLINE)

        response = staff_client.get(URL, {"channel": "OFFLINE"})

        numbers = [row["order_number"] for row in response.json()["results"]]
        assert numbers == [offline.order_number]

        response = staff_client.get(URL, {"status": "Shipped"})
        assert response.json()["count"] == 0

    def test_filter_by_email(self, staff_client, place, customer):
        place(email="someone@example.com")
        mine = place(customer_id=customer.id, email=customer.email)

        response = staff_client.get(URL, {"email": "ADAEZE@example.com"})

        numbers = [row["order_number"] for row in response.json()["results"]]
        assert numbers == [mine.order_number]

    def test_invalid_status_filter_is_400(self, staff_client):
        assert staff_client.get(URL, {"status": "Lost"}).status_code == 400

    def test_search_by_order_number(self, staff_client, place):
        target = place()
        place()

        response = staff_client.get(URL, {"search": target.order_number})

        assert response.json()["count"] == 1


class TestRetrieve:
    def test_detail_includes_items_and_history(self, staff_client, place):
        order = place()

        response = staff_client.get(f"{URL}{order.order_number}/")

        assert response.status_code == 200
        body = response.json()
        assert body["order_number"] == order.order_number
        assert body["is_guest"] is True
        assert body["contact"]["email"] == "ngozi@example.com"
        assert len(body["items"]) == 1
        assert body["items"][0]["name"] == "Stock Item"
        assert body["status_history"][0]["new_status"] == OrderStatus.PROCESSING

    def test_unknown_order_is_404(self, staff_client):
        response = staff_client.get(f"{URL}M-ORDZZZZZZZ/")
        assert response.status_code == 404


class TestStatusUpdate:
    def test_processing_to_shipped(self, staff_client, staff_user, place):
        order = place()

        response = staff_client.patch(
            f"{URL}{order.order_number}/",
            {"status": "shipped", "notes": "GIG waybill 123"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.SHIPPED
        entry = OrderStatusHistory.objects.filter(order=order).order_by("-created_at").first()
        assert entry.old_status == OrderStatus.PROCESSING
        assert entry.new_status == OrderStatus.SHIPPED
        assert entry.notes == "GIG waybill 123"
        assert entry.user == staff_user

    def test_terminal_state_rejected(self, staff_client, place):
        order = place()
        staff_client.patch(f"{URL}{order.order_number}/", {"status": "Cancelled"}, format="json")

        response = staff_client.patch(
            f"{URL}{order.order_number}/", {"status": "Shipped"}, format="json"
        )

        assert response.status_code == 400
        assert "Cancelled" in response.json()["detail"]

    def test_skipping_shipped_rejected(self, staff_client, place):
        order = place()

        response = staff_client.patch(
            f"{URL}{order.order_number}/", {"status": "Delivered"}, format="json"
        )

        assert response.status_code == 400

    def test_unknown_status_is_400(self, staff_client, place):
        order = place()

        response = staff_client.patch(
            f"{URL}{order.order_number}/", {"status": "Lost"}, format="json"
        )

        assert response.status_code == 400

    def test_unknown_order_is_404(self, staff_client):
        response = staff_client.patch(
            f"{URL}M-ORDZZZZZZZ/", {"status": "Shipped"}, format="json"
        )
        assert response.status_code == 404

    def test_shipping_emails_buyer_after_commit(
        self, staff_client, place, django_capture_on_commit_callbacks
    ):
        order = place()
        mail.outbox.clear()

        with django_capture_on_commit_callbacks(execute=True):
            staff_client.patch(
                f"{URL}{order.order_number}/", {"status": "Shipped"}, format="json"
            )

        assert len(mail.outbox) == 1
        assert mail.outbox[0].subject == f"Order {order.order_number} is now Shipped"


class TestRetryReceipts:
    def test_sweep_sends_due_receipts(self, staff_client, place):
        place()
        place()

        response = staff_client.post(f"{URL}retry-receipts/")

        assert response.status_code == 200
        assert response.json() == {"processed": 2, "sent": 2}
        assert ReceiptEmailStatus.objects.filter(sent=True).count() == 2
        assert len(mail.outbox) == 2

    def test_sweep_records_failures(self, staff_client, place):
        order = place()

        with patch(
            "modules.notifications.services.ReceiptNotifier._deliver",
            side_effect=ConnectionError("smtp down"),
        ):
            response = staff_client.post(f"{URL}retry-receipts/")

        assert response.json() == {"processed": 1, "sent": 0}
        status = ReceiptEmailStatus.objects.get(order=order)
        assert status.sent is False
        assert status.attempts == 1
        assert status.last_error == "smtp down"

    def test_non_staff_rejected(self, api_client, shopper_user):
        api_client.force_authenticate(user=shopper_user)
        assert api_client.post(f"{URL}retry-receipts/").status_code == 403
