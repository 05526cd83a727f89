"""Allowed lifecycle transitions for registration and payment status."""

from registrations.domain.models import PaymentStatus, RegistrationStatus

STATUS_TRANSITIONS: dict[RegistrationStatus, frozenset[RegistrationStatus]] = {
    RegistrationStatus.PENDING: frozenset(
        {
            RegistrationStatus.CONFIRMED,
            RegistrationStatus.CANCELLED,
            RegistrationStatus.WAITLISTED,
        }
    ),
    RegistrationStatus.WAITLISTED: frozenset(
        {RegistrationStatus.CONFIRMED, RegistrationStatus.CANCELLED}
    ),
    RegistrationStatus.CONFIRMED: frozenset({RegistrationStatus.CANCELLED}),
    RegistrationStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_transition_status(current: RegistrationStatus, target: RegistrationStatus) -> bool:
    """Re-applying the current status is always allowed (no-op)."""
    return target is current or target in STATUS_TRANSITIONS[current]


def can_transition_payment(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target is current or target in PAYMENT_TRANSITIONS[current]
