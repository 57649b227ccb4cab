"""
Schedule and override stores.

Plain functions over DoctorSchedule and ScheduleOverride. Field-level
problems surface as DomainValidationError, missing rows as NotFoundError and
a second override for the same doctor and date as ConflictError.
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.authz.models import Practitioner
from apps.core.exceptions import ConflictError, DomainValidationError, NotFoundError
from apps.core.observability import log_domain_event, metrics

from .models import DoctorSchedule, ScheduleOverride

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = (
    'day_of_week',
    'start_time',
    'end_time',
    'slot_duration_minutes',
    'buffer_time_minutes',
    'max_appointments_per_slot',
    'is_available',
    'effective_from',
    'effective_to',
    'location',
    'room_number',
)

OVERRIDE_FIELDS = (
    'override_date',
    'override_type',
    'start_time',
    'end_time',
    'reason',
    'notes',
)


def _get_practitioner(doctor_id):
    try:
        return Practitioner.objects.get(pk=doctor_id)
    except Practitioner.DoesNotExist:
        raise NotFoundError(f'Doctor not found: {doctor_id}')


def _check_fields(data: Dict, allowed) -> None:
    unknown = set(data) - set(allowed)
    if unknown:
        raise DomainValidationError({field: ['Unknown field'] for field in sorted(unknown)})


def _validate(instance) -> None:
    """Run model validation, leaving uniqueness to the caller and the database."""
    try:
        instance.full_clean(validate_unique=False, validate_constraints=False)
    except DjangoValidationError as exc:
        raise DomainValidationError(exc.message_dict)


# ============================================================================
# Doctor schedules
# ============================================================================

def create_schedule(data: Dict) -> DoctorSchedule:
    """
    Create a weekly schedule window.

    ``data`` holds ``doctor_id`` plus any of SCHEDULE_FIELDS.
    """
    data = dict(data)
    doctor = _get_practitioner(data.pop('doctor_id', None))
    _check_fields(data, SCHEDULE_FIELDS)

    schedule = DoctorSchedule(doctor=doctor, **data)
    _validate(schedule)
    schedule.save()

    log_domain_event(
        'doctor_schedule_created',
        entity_type='DoctorSchedule',
        entity_id=str(schedule.id),
        entity_ids={'doctor_id': str(doctor.id)},
        day_of_week=schedule.day_of_week,
    )
    return schedule


def update_schedule(schedule_id, data: Dict) -> DoctorSchedule:
    data = dict(data)
    schedule = get_schedule(schedule_id)

    if 'doctor_id' in data:
        schedule.doctor = _get_practitioner(data.pop('doctor_id'))
    _check_fields(data, SCHEDULE_FIELDS)

    for field, value in data.items():
        setattr(schedule, field, value)
    _validate(schedule)
    schedule.save()

    log_domain_event(
        'doctor_schedule_updated',
        entity_type='DoctorSchedule',
        entity_id=str(schedule.id),
        changed_fields=sorted(data),
    )
    return schedule


def get_schedule(schedule_id) -> DoctorSchedule:
    try:
        return DoctorSchedule.objects.select_related('doctor').get(pk=schedule_id)
    except (DoctorSchedule.DoesNotExist, DjangoValidationError):
        raise NotFoundError(f'Schedule not found: {schedule_id}')


def list_doctor_schedules(doctor_id) -> List[DoctorSchedule]:
    """Available weekly windows for a doctor, Monday first."""
    return list(
        DoctorSchedule.objects
        .filter(doctor_id=doctor_id, is_available=True)
        .order_by('day_of_week', 'start_time')
    )


def get_active_schedules_for_date(doctor_id, day: date) -> List[DoctorSchedule]:
    """
    Schedules active on ``day``: matching ISO weekday, available, and with
    ``day`` inside [effective_from, effective_to] (open-ended when
    effective_to is empty).
    """
    return list(
        DoctorSchedule.objects
        .filter(
            doctor_id=doctor_id,
            day_of_week=day.isoweekday(),
            is_available=True,
            effective_from__lte=day,
        )
        .filter(Q(effective_to__isnull=True) | Q(effective_to__gte=day))
        .order_by('start_time', 'created_at', 'id')
    )


def delete_schedule(schedule_id) -> None:
    schedule = get_schedule(schedule_id)
    schedule.delete()
    log_domain_event(
        'doctor_schedule_deleted',
        entity_type='DoctorSchedule',
        entity_id=str(schedule_id),
    )


# ============================================================================
# Schedule overrides
# ============================================================================

def _override_conflict(doctor_id, override_date):
    metrics.schedule_override_conflicts_total.inc()
    log_domain_event(
        'schedule_override_conflict',
        entity_type='ScheduleOverride',
        entity_ids={'doctor_id': str(doctor_id)},
        result='conflict',
        override_date=override_date.isoformat(),
    )
    return ConflictError(
        f'Schedule override already exists for doctor {doctor_id} on {override_date.isoformat()}'
    )


def _save_override(override: ScheduleOverride) -> None:
    try:
        with transaction.atomic():
            override.save()
    except IntegrityError:
        # Lost a race against a concurrent insert for the same key
        raise _override_conflict(override.doctor_id, override.override_date)


def create_override(data: Dict, actor) -> ScheduleOverride:
    """
    Create a single-date exception for a doctor.

    Raises:
        NotFoundError: unknown doctor
        ConflictError: an override already exists for (doctor, override_date)
        DomainValidationError: bad type or time range
    """
    data = dict(data)
    doctor = _get_practitioner(data.pop('doctor_id', None))
    _check_fields(data, OVERRIDE_FIELDS)

    override = ScheduleOverride(doctor=doctor, created_by_id=actor.user_id, **data)
    _validate(override)

    if ScheduleOverride.objects.filter(doctor=doctor, override_date=override.override_date).exists():
        raise _override_conflict(doctor.id, override.override_date)

    _save_override(override)

    log_domain_event(
        'schedule_override_created',
        entity_type='ScheduleOverride',
        entity_id=str(override.id),
        entity_ids={'doctor_id': str(doctor.id)},
        override_type=override.override_type,
        override_date=override.override_date.isoformat(),
    )
    return override


def update_override(override_id, data: Dict) -> ScheduleOverride:
    data = dict(data)
    override = get_override(override_id)

    if 'doctor_id' in data:
        override.doctor = _get_practitioner(data.pop('doctor_id'))
    _check_fields(data, OVERRIDE_FIELDS)

    for field, value in data.items():
        setattr(override, field, value)
    _validate(override)

    occupied = (
        ScheduleOverride.objects
        .filter(doctor_id=override.doctor_id, override_date=override.override_date)
        .exclude(pk=override.pk)
        .exists()
    )
    if occupied:
        raise _override_conflict(override.doctor_id, override.override_date)

    _save_override(override)

    log_domain_event(
        'schedule_override_updated',
        entity_type='ScheduleOverride',
        entity_id=str(override.id),
        changed_fields=sorted(data),
    )
    return override


def get_override(override_id) -> ScheduleOverride:
    try:
        return ScheduleOverride.objects.select_related('doctor').get(pk=override_id)
    except (ScheduleOverride.DoesNotExist, DjangoValidationError):
        raise NotFoundError(f'Schedule override not found: {override_id}')


def get_override_for_date(doctor_id, day: date) -> Optional[ScheduleOverride]:
    return ScheduleOverride.objects.filter(doctor_id=doctor_id, override_date=day).first()


def list_overrides_in_range(doctor_id, start_date: date, end_date: date) -> List[ScheduleOverride]:
    """Overrides with start_date <= override_date <= end_date."""
    return list(
        ScheduleOverride.objects
        .filter(doctor_id=doctor_id, override_date__gte=start_date, override_date__lte=end_date)
        .order_by('override_date')
    )


def list_upcoming_overrides(doctor_id) -> List[ScheduleOverride]:
    return list(
        ScheduleOverride.objects
        .filter(doctor_id=doctor_id, override_date__gte=timezone.localdate())
        .order_by('override_date')
    )


def delete_override(override_id) -> None:
    override = get_override(override_id)
    override.delete()
    log_domain_event(
        'schedule_override_deleted',
        entity_type='ScheduleOverride',
        entity_id=str(override_id),
    )
