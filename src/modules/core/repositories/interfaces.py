"""Base repository contract.

Services receive repositories through their constructors and talk to
``IRepository`` subclasses only; the Django ORM implementations live in
each app's ``repositories/django_repository.py``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """CRUD contract shared by every aggregate repository."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Return the entity or ``None`` (also for malformed ids)."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """Return entities matching ORM-style ``filters``."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Insert or update ``entity``."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Remove by id; ``False`` when nothing matched."""
