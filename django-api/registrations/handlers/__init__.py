from registrations.handlers.views import (
    EventRegistrationsView,
    RegistrationByCodeView,
    RegistrationDetailView,
    RegistrationStatusView,
    RegistrationSummaryView,
)

__all__ = [
    "EventRegistrationsView",
    "RegistrationByCodeView",
    "RegistrationDetailView",
    "RegistrationStatusView",
    "RegistrationSummaryView",
]
