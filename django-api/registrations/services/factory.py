"""Wiring of the registration service to the Django ORM stores."""

from registrations.services.inventory_service import InventoryReservationService
from registrations.services.registration_service import RegistrationOrchestrator
from registrations.stores.django_store import (
    DjangoFormConfigProvider,
    DjangoRegistrationStore,
    DjangoTicketInventoryStore,
)


def build_registration_service() -> RegistrationOrchestrator:
    return RegistrationOrchestrator(
        form_configs=DjangoFormConfigProvider(),
        inventory=InventoryReservationService(DjangoTicketInventoryStore()),
        store=DjangoRegistrationStore(),
    )
