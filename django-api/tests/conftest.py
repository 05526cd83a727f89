"""Pytest configuration and shared fixtures."""

import uuid
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from tests.fakes import Harness


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def harness() -> Harness:
    return Harness()


@pytest.fixture
def event_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def form_config(db, event_id):
    from registrations.models import CustomField, FormConfig

    form = FormConfig.objects.create(
        event_id=event_id,
        title="Conference registration",
        allow_group_registration=True,
        max_group_size=4,
    )
    CustomField.objects.create(
        form_config=form,
        name="company",
        label="Company",
        field_type="text",
        required=True,
        max_length=50,
        order=1,
    )
    CustomField.objects.create(
        form_config=form,
        name="dietary",
        label="Dietary requirements",
        field_type="select",
        options=["none", "vegetarian", "vegan"],
        order=2,
    )
    return form


@pytest.fixture
def ticket_type(db, event_id):
    from registrations.models import TicketType

    return TicketType.objects.create(
        event_id=event_id,
        name="General",
        price=Decimal("25.00"),
        max_quantity=2,
        available_quantity=2,
    )


@pytest.fixture
def free_ticket_type(db, event_id):
    from registrations.models import TicketType

    return TicketType.objects.create(
        event_id=event_id,
        name="Community",
        price=Decimal("0.00"),
        max_quantity=5,
        available_quantity=5,
    )
