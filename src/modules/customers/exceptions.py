"""Customer domain exceptions; views translate them to HTTP responses."""

from __future__ import annotations


class CustomerAlreadyExists(Exception):
    """Another customer already uses this email address."""


class CustomerNotFound(Exception):
    """The customer does not exist or has been soft-deleted."""
