"""Unit tests for ProductDjangoRepository variant access."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.products.models import Variant
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return ProductDjangoRepository()


class TestFindVariant:
    def test_exact_match(self, repo, make_product):
        product = make_product(variants=[("Red", "M", 3), ("Blue", "M", 4)])
        variant = repo.find_variant(product.id, "Blue", "M")
        assert variant.color == "Blue"
        assert variant.stock == 4

    def test_not_applicable_does_not_filter(self, repo, make_product):
        product = make_product(variants=[("Red", "L", 3), ("Red", "M", 4)])
        variant = repo.find_variant(product.id, "Red", "N/A")
        # first by (color, size)
        assert variant.size == "L"

    def test_missing_combination(self, repo, make_product):
        product = make_product(variants=[("Red", "M", 3)])
        assert repo.find_variant(product.id, "Green", "M") is None

    def test_unknown_product(self, repo):
        assert repo.find_variant(uuid4(), "N/A", "N/A") is None

    def test_soft_deleted_product_is_excluded(self, repo, make_product):
        product = make_product()
        product.delete()
        assert repo.find_variant(product.id, "N/A", "N/A") is None


class TestLockVariants:
    def test_locks_in_id_order(self, repo, make_product):
        product = make_product(variants=[("Red", "M", 3), ("Blue", "M", 4)])
        ids = list(product.variants.values_list("id", flat=True))

        locked = repo.lock_variants(list(reversed(ids)) + ids)

        assert list(locked) == sorted(ids)
        assert {v.stock for v in locked.values()} == {3, 4}

    def test_wildcard_and_explicit_lines_share_one_row(self, repo, make_product):
        product = make_product(variants=[("Red", "M", 3)])
        wildcard = repo.find_variant(product.id, "N/A", "N/A")
        explicit = repo.find_variant(product.id, "Red", "M")

        locked = repo.lock_variants([explicit.id, wildcard.id])

        assert wildcard.id == explicit.id
        assert list(locked) == [explicit.id]

    def test_soft_deleted_product_is_absent(self, repo, make_product):
        product = make_product()
        variant_id = product.variants.get().id
        product.delete()

        assert repo.lock_variants([variant_id]) == {}


class TestDecrementStock:
    def test_decrements_when_enough(self, repo, make_product):
        variant = make_product(variants=[("N/A", "N/A", 5)]).variants.get()
        assert repo.decrement_stock(variant.id, 2) is True
        assert Variant.objects.get(id=variant.id).stock == 3

    def test_exact_stock_reaches_zero(self, repo, make_product):
        variant = make_product(variants=[("N/A", "N/A", 2)]).variants.get()
        assert repo.decrement_stock(variant.id, 2) is True
        assert Variant.objects.get(id=variant.id).stock == 0

    def test_refuses_to_go_negative(self, repo, make_product):
        variant = make_product(variants=[("N/A", "N/A", 1)]).variants.get()
        assert repo.decrement_stock(variant.id, 2) is False
        assert Variant.objects.get(id=variant.id).stock == 1
