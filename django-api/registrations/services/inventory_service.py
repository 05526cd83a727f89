"""Ticket inventory reservation.

The only shared mutable state in the subsystem is each ticket type's
available quantity. It is changed exclusively through the store's
atomic conditional decrement/increment, so concurrent reservations for
the same ticket type can never oversell it.
"""

import logging
from dataclasses import dataclass

from registrations.domain import TicketTypeId
from registrations.domain.errors import InsufficientInventoryError, NotFoundError
from registrations.stores.interfaces import TicketInventoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reservation:
    """A granted decrement that can be undone with release()."""

    ticket_type_id: TicketTypeId
    quantity: int


class InventoryReservationService:
    """Reserves and releases ticket-type capacity."""

    def __init__(self, store: TicketInventoryStore) -> None:
        self._store = store

    def reserve(self, ticket_type_id: TicketTypeId, quantity: int) -> Reservation:
        """Take quantity units of a ticket type.

        Raises:
            ValueError: If quantity is not positive.
            InsufficientInventoryError: If fewer than quantity units remain.
            NotFoundError: If the ticket type does not exist.
        """
        if quantity < 1:
            raise ValueError("Reservation quantity must be at least 1")

        if self._store.decrement_available(ticket_type_id, quantity):
            logger.debug(
                "Reserved tickets",
                extra={"ticket_type_id": str(ticket_type_id), "quantity": quantity},
            )
            return Reservation(ticket_type_id=ticket_type_id, quantity=quantity)

        # The decrement did not apply: tell a missing row from a short one.
        if self._store.get_ticket_type(ticket_type_id) is None:
            raise NotFoundError("TicketType", str(ticket_type_id))
        logger.info(
            "Insufficient inventory",
            extra={"ticket_type_id": str(ticket_type_id), "quantity": quantity},
        )
        raise InsufficientInventoryError(str(ticket_type_id))

    def release(self, ticket_type_id: TicketTypeId, quantity: int) -> None:
        """Give quantity units back, clamped at the ticket type's max quantity.

        Raises:
            ValueError: If quantity is not positive.
            NotFoundError: If the ticket type does not exist.
        """
        if quantity < 1:
            raise ValueError("Release quantity must be at least 1")
        if not self._store.increment_available(ticket_type_id, quantity):
            raise NotFoundError("TicketType", str(ticket_type_id))
        logger.debug(
            "Released tickets",
            extra={"ticket_type_id": str(ticket_type_id), "quantity": quantity},
        )

    def release_all(self, reservations: list[Reservation]) -> None:
        """Undo reservations in reverse order of acquisition.

        Every reservation is attempted; failures are logged with their
        ticket type so they can be repaired, and the first one is
        re-raised once all others have been tried.
        """
        first_failure: Exception | None = None
        for reservation in reversed(reservations):
            try:
                self.release(reservation.ticket_type_id, reservation.quantity)
            except Exception as exc:
                logger.exception(
                    "Failed to release reservation",
                    extra={
                        "ticket_type_id": str(reservation.ticket_type_id),
                        "quantity": reservation.quantity,
                    },
                )
                if first_failure is None:
                    first_failure = exc
        if first_failure is not None:
            raise first_failure
