"""Unit tests for CustomerService."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.customers.dtos import CreateCustomerDTO, UpdateCustomerDTO
from modules.customers.exceptions import CustomerAlreadyExists, CustomerNotFound
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import CustomerService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return CustomerService(repository=CustomerDjangoRepository())


def test_create_normalises_email(service):
    customer = service.create_customer(
        CreateCustomerDTO(first_name="Tunde", last_name="Bakare", email="Tunde@Example.COM")
    )
    assert customer.email == "tunde@example.com"
    assert customer.full_name == "Tunde Bakare"


def test_duplicate_email_rejected(service, customer):
    with pytest.raises(CustomerAlreadyExists):
        service.create_customer(
            CreateCustomerDTO(
                first_name="Other", last_name="Person", email="ADAEZE@example.com"
            )
        )


def test_update_partial(service, customer):
    updated = service.update_customer(
        str(customer.id), UpdateCustomerDTO(phone="+2348099999999")
    )
    assert updated.phone == "+2348099999999"
    assert updated.first_name == "Adaeze"


def test_update_to_taken_email(service, customer):
    other = Customer.objects.create(
        first_name="Tunde", last_name="Bakare", email="tunde@example.com"
    )
    with pytest.raises(CustomerAlreadyExists):
        service.update_customer(str(other.id), UpdateCustomerDTO(email=customer.email))


def test_delete_is_soft(service, customer):
    service.delete_customer(str(customer.id))
    assert Customer.objects.get(id=customer.id).is_deleted
    with pytest.raises(CustomerNotFound):
        service.get_customer(str(customer.id))


def test_apply_contact_reports_changed_fields(customer):
    changed = customer.apply_contact(
        {"phone": customer.phone, "delivery_address": "9 New Road", "state": ""}
    )
    assert changed == ["delivery_address"]
    assert customer.delivery_address == "9 New Road"
