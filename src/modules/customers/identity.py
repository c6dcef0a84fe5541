"""Buyer identity resolution for order placement.

An order belongs either to a registered ``Customer`` or to a guest whose
contact details are embedded on the order. Resolution order:

1. the customer linked to the authenticated login (online checkout only);
2. an explicit ``customer_id`` from the payload;
3. the guest contact bundle.

Guest contacts are never persisted as ``Customer`` rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog

from modules.customers.exceptions import CustomerNotFound

if TYPE_CHECKING:
    from modules.customers.dtos import ContactDTO
    from modules.customers.models import Customer
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """Either ``customer`` is set or ``guest`` holds the contact snapshot."""

    customer: Optional[Customer] = None
    guest: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_guest(self) -> bool:
        return self.customer is None

    @property
    def contact(self) -> Dict[str, Any]:
        if self.customer is not None:
            return self.customer.contact_snapshot()
        return dict(self.guest)

    @property
    def email(self) -> str:
        return self.contact.get("email") or ""


class IdentityResolver:
    def __init__(self, customer_repository: ICustomerRepository) -> None:
        self._customer_repo = customer_repository

    def resolve(
        self,
        *,
        user: Any = None,
        customer_id: Any = None,
        contact: Optional[ContactDTO] = None,
        allow_guest_fallback: bool = True,
    ) -> Identity:
        """Return the buyer identity.

        Raises:
            CustomerNotFound: ``customer_id`` is unknown and
                ``allow_guest_fallback`` is false (staff-logged sales).
        """
        if user is not None and getattr(user, "is_authenticated", False):
            linked = self._customer_repo.get_by_user(user.pk)
            if linked:
                logger.info("identity.resolved_from_session", customer_id=str(linked.id))
                return Identity(customer=linked)

        if customer_id:
            found = self._customer_repo.get_by_id(str(customer_id))
            if found:
                logger.info("identity.resolved_from_id", customer_id=str(found.id))
                return Identity(customer=found)
            if not allow_guest_fallback:
                raise CustomerNotFound(f"Customer {customer_id} not found.")
            logger.warning(
                "identity.unknown_customer_fell_back_to_guest",
                customer_id=str(customer_id),
            )

        snapshot = contact.snapshot() if contact is not None else {}
        return Identity(guest=snapshot)
