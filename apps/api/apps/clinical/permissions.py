"""
Clinical permissions for appointment endpoints.

BUSINESS RULE: Reception books and moves appointments but never records
clinical data (vitals, examinations).
"""
from apps.authz.models import RoleChoices
from apps.authz.permissions import STAFF_ROLES, RoleBasedPermission

BOOKING_ROLES = frozenset({RoleChoices.ADMIN, RoleChoices.PRACTITIONER, RoleChoices.RECEPTION})
VITALS_ROLES = frozenset({RoleChoices.ADMIN, RoleChoices.PRACTITIONER, RoleChoices.NURSE})
EXAMINATION_ROLES = frozenset({RoleChoices.ADMIN, RoleChoices.PRACTITIONER})


class AppointmentPermission(RoleBasedPermission):
    """
    Permission for Appointment endpoints based on role.

    - Admin: Full access
    - Practitioner: Read, book, transition, cancel, reschedule, vitals, examination
    - Nurse: Read, status transitions (patient flow), vitals
    - Reception: Read, book, transition, cancel, reschedule (no clinical records)
    """
    read_roles = STAFF_ROLES
    write_roles = BOOKING_ROLES
    action_roles = {
        'transition_status': STAFF_ROLES,
        'vitals': {
            'GET': VITALS_ROLES | EXAMINATION_ROLES,
            'POST': VITALS_ROLES,
        },
        'examination': {
            'GET': EXAMINATION_ROLES | {RoleChoices.NURSE},
            'POST': EXAMINATION_ROLES,
        },
    }
