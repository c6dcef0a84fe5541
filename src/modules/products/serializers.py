"""Product serializers (read side).

Writes go through the Pydantic DTOs in ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Category, Product, Variant


class VariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Variant
        fields = ["id", "color", "size", "stock", "weight"]
        read_only_fields = fields


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = [
            "slug",
            "name",
            "description",
            "banner_image",
            "is_active",
            "sort_order",
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    category_slug = serializers.CharField(source="category_id", read_only=True)
    variants = VariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "category_slug",
            "description",
            "images",
            "price_ngn",
            "price_usd",
            "price_eur",
            "price_gbp",
            "size_mods",
            "status",
            "variants",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
