"""App settings read from ``settings.REGISTRATIONS`` with defaults."""

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "CONFIRMATION_CODE_ATTEMPTS": 5,
    "STATUS_UPDATE_ATTEMPTS": 3,
    "CACHE_TIMEOUT": 60,
}


def get_setting(name: str) -> Any:
    overrides = getattr(settings, "REGISTRATIONS", {})
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
