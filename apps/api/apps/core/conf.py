"""
Access to the ``CLINIC_SCHEDULING`` settings block with defaults.
"""
from django.conf import settings

DEFAULTS = {
    'DEFAULT_SLOT_DURATION_MINUTES': 30,
    'DEFAULT_BUFFER_MINUTES': 5,
    'DEFAULT_APPOINTMENT_DURATION_MINUTES': 30,
    'NEXT_SLOT_SEARCH_DAYS': 30,
    'RELEASE_CANCELLED_SLOTS': True,
    'APPLY_BREAK_OVERRIDES': True,
    'DUPLICATE_VITALS_WINDOW_MINUTES': 5,
}


def get_scheduling_setting(name):
    """Return a scheduling setting, falling back to the built-in default."""
    if name not in DEFAULTS:
        raise KeyError(f'Unknown scheduling setting: {name}')
    configured = getattr(settings, 'CLINIC_SCHEDULING', {}) or {}
    return configured.get(name, DEFAULTS[name])
