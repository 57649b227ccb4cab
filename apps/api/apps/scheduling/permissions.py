"""
Scheduling permissions.

Every staff role may read schedules, overrides and slots; only admin and
reception maintain schedules and overrides.
"""
from apps.authz.models import RoleChoices
from apps.authz.permissions import STAFF_ROLES, RoleBasedPermission

SCHEDULE_WRITE_ROLES = frozenset({RoleChoices.ADMIN, RoleChoices.RECEPTION})


class SchedulingPermission(RoleBasedPermission):
    read_roles = STAFF_ROLES
    write_roles = SCHEDULE_WRITE_ROLES


class AvailabilityPermission(RoleBasedPermission):
    """Slot queries are read-only."""
    read_roles = STAFF_ROLES
    write_roles = frozenset()
