"""Integration tests for error responses."""

from unittest.mock import patch

import pytest

from modules.orders.exceptions import OrderNumberExhausted

pytestmark = pytest.mark.integration

PLACE_ORDER = "modules.orders.services.OrderService.place_order"


def _checkout(client, product):
    return client.post(
        "/api/v1/checkout/",
        {
            "items": [{"product_id": str(product.id), "quantity": 1}],
            "currency": "NGN",
            "payment_method": "Paystack",
            "contact": {"email": "a@example.com"},
        },
        format="json",
    )


class TestErrorFormat:
    def test_auth_error_has_detail(self, api_client):
        response = api_client.get("/api/v1/customers/")
        assert response.status_code in (401, 403)
        assert "detail" in response.json()

    def test_malformed_json_is_400(self, staff_client):
        response = staff_client.post(
            "/api/v1/customers/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        assert "detail" in response.json()

    def test_unexpected_error_is_opaque_500(self, api_client, make_product):
        product = make_product()
        with patch(PLACE_ORDER, side_effect=RuntimeError("boom")):
            response = _checkout(api_client, product)

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error."}

    def test_order_number_exhaustion_is_500(self, api_client, make_product):
        product = make_product()
        with patch(PLACE_ORDER, side_effect=OrderNumberExhausted("no free number")):
            response = _checkout(api_client, product)

        assert response.status_code == 500
        assert "no free number" not in response.content.decode()
