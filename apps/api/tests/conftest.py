"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Authenticated API clients by role
- Model instances (Practitioner, Patient, DoctorSchedule, Appointment)
- An Actor for calling services directly
"""
from datetime import date, time

import pytest
from rest_framework.test import APIClient

from apps.authz.actors import Actor
from apps.authz.models import Practitioner, Role, RoleChoices, User, UserRole
from apps.clinical import services as clinical_services
from apps.clinical.models import Patient


def create_user_with_role(email, role_name, **extra):
    """Create an active user holding ``role_name``."""
    user = User.objects.create_user(
        email=email,
        password='testpass123',
        is_active=True,
        **extra
    )
    role, _ = Role.objects.get_or_create(name=role_name)
    UserRole.objects.create(user=user, role=role)
    return user


def authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ============================================================================
# API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    return create_user_with_role(
        'admin@test.com', RoleChoices.ADMIN, is_staff=True, is_superuser=True
    )


@pytest.fixture
def admin_client(admin_user):
    """Admin has full access to all resources."""
    return authenticated_client(admin_user)


@pytest.fixture
def practitioner_user(db):
    user = create_user_with_role(
        'practitioner@test.com', RoleChoices.PRACTITIONER,
        first_name='Grace', last_name='Hopper'
    )
    Practitioner.objects.create(
        user=user,
        display_name='Dr. Grace Hopper',
        specialty='General Medicine',
    )
    return user


@pytest.fixture
def practitioner_client(practitioner_user):
    """Practitioner books, moves and documents appointments."""
    return authenticated_client(practitioner_user)


@pytest.fixture
def nurse_client(db):
    """Nurse records vitals and moves patients through the waiting room."""
    return authenticated_client(create_user_with_role('nurse@test.com', RoleChoices.NURSE))


@pytest.fixture
def reception_client(db):
    """Reception books appointments and maintains schedules."""
    return authenticated_client(create_user_with_role('reception@test.com', RoleChoices.RECEPTION))


@pytest.fixture
def no_role_client(db):
    """Authenticated user without any role."""
    user = User.objects.create_user(email='norole@test.com', password='testpass123')
    return authenticated_client(user)


# ============================================================================
# Model instances
# ============================================================================

@pytest.fixture
def doctor(practitioner_user):
    """The practitioner profile behind practitioner_client."""
    return practitioner_user.practitioner


@pytest.fixture
def other_doctor(db):
    user = create_user_with_role('other.doctor@test.com', RoleChoices.PRACTITIONER)
    return Practitioner.objects.create(user=user, display_name='Dr. Alan Turing')


@pytest.fixture
def patient(db):
    return Patient.objects.create(
        first_name='Ada',
        last_name='Lovelace',
        email='ada@example.com',
        birth_date=date(1985, 12, 10),
    )


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(first_name='Charles', last_name='Babbage')


@pytest.fixture
def actor(admin_user):
    """Actor for direct service calls."""
    return Actor.from_user(admin_user)


@pytest.fixture
def appointment(patient, doctor, actor):
    """A CONFIRMED appointment on Monday 2024-06-03 at 09:00."""
    return clinical_services.create_appointment(
        patient_id=patient.id,
        physician_id=doctor.id,
        appointment_date=date(2024, 6, 3),
        appointment_time=time(9, 0),
        actor=actor,
    )
