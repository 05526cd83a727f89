"""Cache key builders shared by handlers and signal receivers."""

from uuid import UUID


def _normalize(value) -> str:
    try:
        return str(UUID(str(value)))
    except ValueError:
        return str(value)


def event_list_key(event_id) -> str:
    return f"registrations:{_normalize(event_id)}:list"


def event_summary_key(event_id) -> str:
    return f"registrations:{_normalize(event_id)}:summary"


def registration_key(registration_id) -> str:
    return f"registrations:{_normalize(registration_id)}"
