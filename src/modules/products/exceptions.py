"""Catalog exceptions raised by ``ProductService``; views map them to HTTP."""

from __future__ import annotations


class ProductNotFound(Exception):
    """The product does not exist or has been soft-deleted."""


class VariantNotFound(Exception):
    """The variant does not exist on the given product."""


class VariantAlreadyExists(Exception):
    """The product already has a variant with this color/size."""


class CategoryNotFound(Exception):
    """No category exists with the given slug."""
