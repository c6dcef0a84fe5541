"""Customer serializers (read side); writes go through ``dtos.py``."""

from __future__ import annotations

from rest_framework import serializers

from modules.customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "phone",
            "delivery_address",
            "billing_address",
            "country",
            "state",
            "user_id",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
