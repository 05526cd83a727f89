"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

from unittest import mock

import pytest
from django.core.cache import cache

from registrations import models
from registrations.cache_keys import event_list_key, event_summary_key, registration_key
from tests.fakes import submission_payload, submit


@pytest.mark.django_db
class TestCachedReads:
    """Tests for responses served from the cache."""

    def test_list_is_cached(self, api_client, form_config, ticket_type, event_id):
        """A second list request does not hit the service."""
        api_client.get(f"/api/events/{event_id}/registrations")
        assert cache.get(event_list_key(event_id)) == []

        with mock.patch("registrations.handlers.views.build_registration_service") as build:
            response = api_client.get(f"/api/events/{event_id}/registrations")

        build.assert_not_called()
        assert response.json() == []

    def test_keys_normalize_uuid_case(self, event_id):
        """Upper- and lower-case ids share a cache key."""
        assert event_summary_key(str(event_id).upper()) == event_summary_key(event_id)

    def test_errors_are_not_cached(self, api_client, db):
        """A 404 leaves nothing behind in the cache."""
        missing = "00000000-0000-0000-0000-000000000000"
        api_client.get(f"/api/registrations/{missing}")
        assert cache.get(registration_key(missing)) is None


@pytest.mark.django_db
class TestCacheInvalidation:
    """Tests for cache invalidation on model changes."""

    def test_submission_invalidates_event_caches(
        self, api_client, form_config, ticket_type, event_id, django_capture_on_commit_callbacks
    ):
        """Creating a registration clears the list and summary keys on commit."""
        api_client.get(f"/api/events/{event_id}/registrations")
        api_client.get(f"/api/events/{event_id}/registrations/summary")
        assert cache.get(event_list_key(event_id)) is not None

        with django_capture_on_commit_callbacks(execute=True):
            submit(api_client, event_id, submission_payload((ticket_type.id, 1)))

        assert cache.get(event_list_key(event_id)) is None
        assert cache.get(event_summary_key(event_id)) is None
        assert len(api_client.get(f"/api/events/{event_id}/registrations").json()) == 1

    def test_status_update_invalidates_detail_cache(
        self, api_client, form_config, ticket_type, event_id, django_capture_on_commit_callbacks
    ):
        """Changing status clears the cached registration."""
        registration_id = submit(
            api_client, event_id, submission_payload((ticket_type.id, 1))
        ).json()["registration_id"]
        api_client.get(f"/api/registrations/{registration_id}")
        assert cache.get(registration_key(registration_id)) is not None

        with django_capture_on_commit_callbacks(execute=True):
            api_client.patch(
                f"/api/registrations/{registration_id}/status",
                {"status": "cancelled"},
                format="json",
            )

        assert cache.get(registration_key(registration_id)) is None
        detail = api_client.get(f"/api/registrations/{registration_id}").json()
        assert detail["status"] == "cancelled"

    def test_invalidation_waits_for_commit(self, api_client, form_config, ticket_type, event_id):
        """Nothing is evicted while the write is uncommitted."""
        api_client.get(f"/api/events/{event_id}/registrations")

        submit(api_client, event_id, submission_payload((ticket_type.id, 1)))

        # The test transaction never commits, so the stale list stays.
        assert cache.get(event_list_key(event_id)) == []

    def test_participant_change_invalidates(
        self, api_client, form_config, ticket_type, event_id, django_capture_on_commit_callbacks
    ):
        """Editing a participant row clears the registration's caches."""
        registration_id = submit(
            api_client, event_id, submission_payload((ticket_type.id, 1))
        ).json()["registration_id"]
        api_client.get(f"/api/registrations/{registration_id}")

        with django_capture_on_commit_callbacks(execute=True):
            participant = models.Participant.objects.get(registration_id=registration_id)
            participant.phone = "+15550100"
            participant.save()

        assert cache.get(registration_key(registration_id)) is None
