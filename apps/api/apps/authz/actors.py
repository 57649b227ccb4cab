"""
The acting user, passed explicitly into lifecycle and audit calls.
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

SYSTEM_ACTOR_NAME = 'system'


@dataclass(frozen=True)
class Actor:
    """Who performed an operation: a user id (None for system jobs) and a display name."""
    user_id: Optional[UUID]
    display_name: str

    @classmethod
    def from_user(cls, user):
        if user is None or not user.is_authenticated:
            return cls.system()
        return cls(user_id=user.id, display_name=resolve_display_name(user))

    @classmethod
    def system(cls):
        return cls(user_id=None, display_name=SYSTEM_ACTOR_NAME)


def resolve_display_name(user):
    """Practitioner display name, else full name, else email."""
    practitioner = getattr(user, 'practitioner', None)
    if practitioner is not None and practitioner.display_name:
        return practitioner.display_name
    return user.full_name or user.email
