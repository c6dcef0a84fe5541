"""Order DRF serializers for API input/output.

Input serializers only check request shape; business validation lives in
the Pydantic DTOs and the service layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import (
    DeliveryOption,
    Order,
    OrderItem,
    OrderStatusHistory,
)
from modules.products.constants import NOT_APPLICABLE

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    color = serializers.CharField(required=False, default=NOT_APPLICABLE, allow_blank=True)
    size = serializers.CharField(required=False, default=NOT_APPLICABLE, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1)
    has_size_mod = serializers.BooleanField(required=False, default=False)
    size_mod_fee = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    custom_size = serializers.DictField(required=False, allow_null=True)


class ContactSerializer(serializers.Serializer):
    first_name = serializers.CharField(required=False, allow_blank=True)
    last_name = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True)
    delivery_address = serializers.CharField(required=False, allow_blank=True)
    billing_address = serializers.CharField(required=False, allow_blank=True)
    country = serializers.CharField(required=False, allow_blank=True)
    state = serializers.CharField(required=False, allow_blank=True)


class PlaceOrderSerializer(serializers.Serializer):
    """Shared by checkout and in-person sales."""

    items = CartItemSerializer(many=True, allow_empty=False)
    currency = serializers.CharField()
    payment_method = serializers.CharField()
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    contact = ContactSerializer(required=False, allow_null=True)
    delivery_fee = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    delivery_option_id = serializers.UUIDField(required=False, allow_null=True)
    delivery_details = serializers.DictField(required=False, default=dict)
    payment_reference = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    placed_at = serializers.DateTimeField(required=False, allow_null=True)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class PlacementSerializer(serializers.ModelSerializer):
    """Checkout/offline sale acknowledgement."""

    order_id = serializers.CharField(source="order_number", read_only=True)
    email = serializers.CharField(source="contact_email", read_only=True)

    class Meta:
        model = Order
        fields = ["order_id", "email", "total_amount", "currency"]
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "variant_id",
            "name",
            "image",
            "category",
            "color",
            "size",
            "quantity",
            "currency",
            "unit_price",
            "line_total",
            "has_size_mod",
            "size_mod_fee",
            "custom_size",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["id", "old_status", "new_status", "notes", "user_id", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    contact = serializers.DictField(read_only=True)
    is_guest = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "channel",
            "currency",
            "total_amount",
            "total_ngn",
            "delivery_fee",
            "payment_method",
            "payment_reference",
            "placed_at",
            "customer_id",
            "is_guest",
            "contact",
            "staff_id",
            "delivery_option_id",
            "delivery_details",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the order inventory (no nested relations)."""

    email = serializers.CharField(source="contact_email", read_only=True)
    buyer_name = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "channel",
            "currency",
            "total_amount",
            "total_ngn",
            "email",
            "buyer_name",
            "placed_at",
            "created_at",
        ]
        read_only_fields = fields


class DeliveryOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryOption
        fields = ["id", "name", "provider", "type", "base_fee", "active", "metadata"]
        read_only_fields = fields
