"""Django signals for cache invalidation.

Deletion is deferred to transaction commit so a concurrent reader
cannot re-cache data from before the write became visible.
"""

from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from registrations.cache_keys import event_list_key, event_summary_key, registration_key
from registrations.models import Participant, Registration, RegistrationTicket


def _invalidate(event_id, registration_id) -> None:
    keys = [
        event_list_key(event_id),
        event_summary_key(event_id),
        registration_key(registration_id),
    ]
    transaction.on_commit(lambda: cache.delete_many(keys))


@receiver([post_save, post_delete], sender=Registration)
def invalidate_registration_cache(sender, instance, **kwargs):
    """Invalidate caches when a registration is saved or deleted."""
    _invalidate(instance.event_id, instance.pk)


@receiver([post_save, post_delete], sender=Participant)
@receiver([post_save, post_delete], sender=RegistrationTicket)
def invalidate_registration_children_cache(sender, instance, **kwargs):
    """Invalidate caches when a participant or ticket line changes."""
    # The parent row may already be gone during a cascade delete.
    event_id = (
        Registration.objects.filter(pk=instance.registration_id)
        .values_list("event_id", flat=True)
        .first()
    )
    if event_id is not None:
        _invalidate(event_id, instance.registration_id)
