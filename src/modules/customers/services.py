"""Customer service layer.

Back-office customer administration. Business rules:
- Email must be unique.
- A login can be linked to at most one customer.
- Delete is a soft delete; orders keep their reference.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.customers.exceptions import CustomerAlreadyExists, CustomerNotFound
from modules.customers.models import Customer

if TYPE_CHECKING:
    from modules.customers.dtos import CreateCustomerDTO, UpdateCustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "delivery_address",
    "billing_address",
    "country",
    "state",
    "is_active",
)


class CustomerService:
    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_customer(self, dto: CreateCustomerDTO) -> Customer:
        """Raises ``CustomerAlreadyExists`` when the email or login is taken."""
        if self._repo.get_by_email(dto.email):
            logger.warning("customer.duplicate_email")
            raise CustomerAlreadyExists("Email already registered.")
        if dto.user_id is not None and self._repo.get_by_user(dto.user_id):
            raise CustomerAlreadyExists("User is already linked to a customer.")

        customer = Customer(**dto.model_dump())
        customer = self._repo.save(customer)
        logger.info("customer.created", customer_id=str(customer.id))
        return customer

    @transaction.atomic
    def update_customer(self, id: str, dto: UpdateCustomerDTO) -> Customer:
        customer = self.get_customer(id)
        log = logger.bind(customer_id=str(id))

        if dto.email is not None and dto.email != customer.email:
            if self._repo.get_by_email(dto.email):
                log.warning("customer.duplicate_email")
                raise CustomerAlreadyExists("Email already registered.")

        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(customer, field, value)

        customer = self._repo.save(customer)
        log.info("customer.updated")
        return customer

    @transaction.atomic
    def delete_customer(self, id: str) -> None:
        if not self._repo.delete(id):
            raise CustomerNotFound(f"Customer {id} not found.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_customers(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._repo.list(filters)

    def get_customer(self, id: str) -> Customer:
        customer = self._repo.get_by_id(id)
        if not customer:
            raise CustomerNotFound(f"Customer {id} not found.")
        return customer
