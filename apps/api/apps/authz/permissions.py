"""
Role helpers shared by the clinical and scheduling permission classes.
"""
from rest_framework import permissions
from apps.authz.models import RoleChoices

STAFF_ROLES = frozenset({
    RoleChoices.ADMIN,
    RoleChoices.PRACTITIONER,
    RoleChoices.NURSE,
    RoleChoices.RECEPTION,
})


def get_user_roles(user):
    """Return the set of role names held by ``user`` (empty for anonymous)."""
    if not user or not user.is_authenticated:
        return set()
    return set(user.user_roles.values_list('role__name', flat=True))


class RoleBasedPermission(permissions.BasePermission):
    """
    Grants safe methods to ``read_roles`` and everything else to ``write_roles``.

    Subclasses narrow the role sets; ``action_roles`` maps viewset action
    names to the roles allowed to call them and takes precedence.
    """
    read_roles = STAFF_ROLES
    write_roles = frozenset({RoleChoices.ADMIN})
    action_roles = {}

    def has_permission(self, request, view):
        user_roles = get_user_roles(request.user)
        if not user_roles:
            return False

        action = getattr(view, 'action', None)
        if action in self.action_roles:
            allowed = self.action_roles[action]
            if isinstance(allowed, dict):
                allowed = allowed.get(request.method, frozenset())
            return bool(user_roles & allowed)

        if request.method in permissions.SAFE_METHODS:
            return bool(user_roles & self.read_roles)

        return bool(user_roles & self.write_roles)

    def has_object_permission(self, request, view, obj):
        return self.has_permission(request, view)
