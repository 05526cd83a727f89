"""Tests for the Django admin registration.

Run with: pytest tests/test_admin.py -v
"""

from unittest import mock

import pytest
from django.contrib import admin, messages

from registrations import models
from registrations.admin import cancel_registrations, confirm_registrations
from tests.fakes import submission_payload, submit


@pytest.fixture
def admin_request(rf, admin_user):
    request = rf.get("/admin/registrations/registration/")
    request.user = admin_user
    return request


@pytest.fixture
def registration_admin():
    return admin.site._registry[models.Registration]


@pytest.fixture
def pending_registration(api_client, form_config, ticket_type, event_id) -> models.Registration:
    form_config.requires_approval = True
    form_config.save()
    response = submit(api_client, event_id, submission_payload((ticket_type.id, 1)))
    return models.Registration.objects.get(pk=response.json()["registration_id"])


@pytest.mark.django_db
class TestRegistrationAdmin:
    """Tests for the read-only registration admin."""

    def test_change_form_has_no_editable_fields(
        self, registration_admin, admin_request, pending_registration
    ):
        """Lifecycle and submission fields cannot be edited in the change form."""
        form = registration_admin.get_form(admin_request, pending_registration)
        assert set(form.base_fields) == set()

    def test_registrations_cannot_be_added(self, registration_admin, admin_request):
        """Registrations only come from submissions."""
        assert registration_admin.has_add_permission(admin_request) is False

    def test_confirm_action_stamps_approval(
        self, registration_admin, admin_request, pending_registration
    ):
        """The confirm action goes through the status lifecycle."""
        modeladmin = mock.Mock()
        queryset = models.Registration.objects.filter(pk=pending_registration.pk)

        confirm_registrations(modeladmin, admin_request, queryset)

        pending_registration.refresh_from_db()
        assert pending_registration.status == "confirmed"
        assert pending_registration.approved_at is not None
        assert pending_registration.approved_by == admin_request.user.get_username()
        assert modeladmin.message_user.call_args.args[2] == messages.SUCCESS

    def test_cancelled_registration_cannot_be_confirmed(
        self, registration_admin, admin_request, pending_registration
    ):
        """A cancelled registration stays cancelled and the admin is told why."""
        modeladmin = mock.Mock()
        queryset = models.Registration.objects.filter(pk=pending_registration.pk)

        cancel_registrations(modeladmin, admin_request, queryset)
        confirm_registrations(modeladmin, admin_request, queryset)

        pending_registration.refresh_from_db()
        assert pending_registration.status == "cancelled"
        assert pending_registration.approved_at is None
        assert modeladmin.message_user.call_args.args[2] == messages.ERROR
