from django.urls import path

from registrations.handlers import (
    EventRegistrationsView,
    RegistrationByCodeView,
    RegistrationDetailView,
    RegistrationStatusView,
    RegistrationSummaryView,
)

urlpatterns = [
    path(
        "events/<str:event_id>/registrations",
        EventRegistrationsView.as_view(),
        name="event-registrations",
    ),
    path(
        "events/<str:event_id>/registrations/summary",
        RegistrationSummaryView.as_view(),
        name="registration-summary",
    ),
    path(
        "registrations/by-code/<str:confirmation_code>",
        RegistrationByCodeView.as_view(),
        name="registration-by-code",
    ),
    path(
        "registrations/<str:registration_id>",
        RegistrationDetailView.as_view(),
        name="registration-detail",
    ),
    path(
        "registrations/<str:registration_id>/status",
        RegistrationStatusView.as_view(),
        name="registration-status",
    ),
]
