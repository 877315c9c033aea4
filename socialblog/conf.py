from django.conf import settings

DEFAULTS = {
    "FEED_PAGE_SIZE": 20,
    "MAX_PAGE_SIZE": 100,
    "SEARCH_MIN_LENGTH": 1,
    "LOCK_ON_TOGGLE": True,
}


def get_setting(name):
    """Return ``settings.SOCIALBLOG[name]``, falling back to the app default."""
    overrides = getattr(settings, "SOCIALBLOG", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
