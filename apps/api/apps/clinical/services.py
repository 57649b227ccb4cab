"""
Appointment lifecycle services.

Owns creation (conflict check, numbering), status transitions, cancellation,
rescheduling and the clinical sub-flows (vitals, examination). Every
mutating operation runs in one transaction together with its audit rows.
The acting user is always passed in explicitly as an ``Actor``.
"""
import logging
from datetime import timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.authz.models import Practitioner
from apps.core.conf import get_scheduling_setting
from apps.core.exceptions import (
    ConflictError,
    DomainValidationError,
    InvalidTransitionError,
    NotFoundError,
)
from apps.core.observability import log_domain_event, metrics
from apps.core.observability.events import log_appointment_transition, log_critical_vitals

from . import audit
from .models import (
    Appointment,
    AppointmentExamination,
    AppointmentNumberSequence,
    AppointmentStatusChoices,
    NON_BLOCKING_STATUSES,
    Patient,
    Vitals,
)
from .signals import critical_vitals_recorded
from .vitals import (
    MEASUREMENT_FIELDS,
    detect_critical_values,
    generate_vitals_warnings,
    validate_vitals,
)

logger = logging.getLogger(__name__)

# Fields a caller may set on create and change through update_appointment
APPOINTMENT_DETAIL_FIELDS = (
    'appointment_type',
    'duration_minutes',
    'department_name',
    'specialty',
    'consultation_room',
    'urgency_level',
    'chief_complaint',
    'notes',
)

UPDATABLE_FIELDS = ('appointment_date', 'appointment_time', 'physician_id') + APPOINTMENT_DETAIL_FIELDS

# Copied from the original row when rescheduling
RESCHEDULE_COPY_FIELDS = (
    'patient_id',
    'physician_id',
    'physician_name',
    'appointment_type',
    'duration_minutes',
    'department_name',
    'specialty',
    'consultation_room',
    'urgency_level',
    'chief_complaint',
)

EXAMINATION_FIELDS = (
    'chief_complaint',
    'history_present_illness',
    'symptoms',
    'general_appearance',
    'cardiovascular_system',
    'respiratory_system',
    'gastrointestinal_system',
    'central_nervous_system',
    'musculoskeletal_system',
    'examination_findings',
    'vitals_reviewed',
    'primary_diagnosis',
    'primary_diagnosis_icd10',
    'differential_diagnosis',
    'treatment_plan',
    'advice',
    'follow_up_date',
    'follow_up_instructions',
    'medical_history_reviewed',
    'medical_history_updated',
    'medical_history_update_notes',
)


# ============================================================================
# Lookups
# ============================================================================

def get_appointment(appointment_id):
    """Load an appointment or raise NotFoundError."""
    try:
        return Appointment.objects.select_related('patient', 'physician').get(pk=appointment_id)
    except (Appointment.DoesNotExist, DjangoValidationError):
        raise NotFoundError(f'Appointment not found: {appointment_id}')


def _lock_appointment(appointment_id):
    try:
        return Appointment.objects.select_for_update().get(pk=appointment_id)
    except (Appointment.DoesNotExist, DjangoValidationError):
        raise NotFoundError(f'Appointment not found: {appointment_id}')


def _lock_patient(patient_id):
    """Lock the patient row so the per-day conflict check and insert are atomic."""
    try:
        return Patient.objects.select_for_update().get(pk=patient_id, is_deleted=False)
    except Patient.DoesNotExist:
        raise NotFoundError(f'Patient not found: {patient_id}')


def _get_physician(physician_id):
    try:
        return Practitioner.objects.get(pk=physician_id)
    except Practitioner.DoesNotExist:
        raise NotFoundError(f'Physician not found: {physician_id}')


def _check_patient_day_conflict(patient, appointment_date, exclude_id=None):
    """A patient may hold at most one active (non-terminal, non-draft) appointment per day."""
    qs = Appointment.objects.filter(
        patient=patient,
        appointment_date=appointment_date,
    ).exclude(status__in=NON_BLOCKING_STATUSES)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)

    if qs.exists():
        raise ConflictError(
            f'Patient already has an active appointment on {appointment_date.isoformat()}'
        )


# ============================================================================
# Numbering
# ============================================================================

def next_appointment_number(appointment_date):
    """
    Draw the next APT-YYYYMMDD-NNNNN number for a date.

    Must run inside transaction.atomic(): the per-date sequence row stays
    locked until the caller commits. A missing row is seeded with the number
    of appointments already on that date.
    """
    sequence = (
        AppointmentNumberSequence.objects
        .select_for_update()
        .filter(sequence_date=appointment_date)
        .first()
    )
    if sequence is None:
        seed = Appointment.objects.filter(appointment_date=appointment_date).count()
        try:
            with transaction.atomic():
                sequence = AppointmentNumberSequence.objects.create(
                    sequence_date=appointment_date,
                    last_value=seed,
                )
        except IntegrityError:
            # Another transaction created the row first
            sequence = AppointmentNumberSequence.objects.select_for_update().get(
                sequence_date=appointment_date
            )

    sequence.last_value += 1
    sequence.save(update_fields=['last_value'])
    return f'APT-{appointment_date:%Y%m%d}-{sequence.last_value:05d}'


# ============================================================================
# Creation and updates
# ============================================================================

def _check_detail_fields(details):
    unknown = set(details) - set(APPOINTMENT_DETAIL_FIELDS)
    if unknown:
        raise DomainValidationError(
            {field: ['Unknown appointment field'] for field in sorted(unknown)}
        )


def create_appointment(*, patient_id, physician_id, appointment_date, appointment_time, actor, **details):
    """
    Book a new appointment.

    Args:
        patient_id: Patient UUID
        physician_id: Practitioner UUID
        appointment_date: date
        appointment_time: time
        actor: Actor performing the booking
        **details: optional APPOINTMENT_DETAIL_FIELDS values

    Returns:
        The saved Appointment, status CONFIRMED

    Raises:
        NotFoundError: unknown patient or physician
        ConflictError: patient already has an active appointment that day
    """
    _check_detail_fields(details)

    with transaction.atomic():
        try:
            patient = _lock_patient(patient_id)
            physician = _get_physician(physician_id)
            _check_patient_day_conflict(patient, appointment_date)
        except NotFoundError:
            metrics.appointments_created_total.labels(result='not_found').inc()
            raise
        except ConflictError:
            metrics.appointments_created_total.labels(result='conflict').inc()
            log_domain_event(
                'appointment_create_conflict',
                entity_type='Patient',
                entity_id=str(patient_id),
                result='conflict',
                appointment_date=appointment_date.isoformat(),
            )
            raise

        appointment = Appointment(
            patient=patient,
            physician=physician,
            physician_name=physician.display_name,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            appointment_number=next_appointment_number(appointment_date),
            status=AppointmentStatusChoices.CONFIRMED,
            created_by=actor.display_name,
            updated_by=actor.display_name,
            **details
        )
        appointment.full_clean(validate_unique=False)
        appointment.save()

        audit.log_appointment_created(appointment, actor)

    metrics.appointments_created_total.labels(result='success').inc()
    log_domain_event(
        'appointment_created',
        entity_type='Appointment',
        entity_id=str(appointment.id),
        entity_ids={'patient_id': str(patient.id), 'physician_id': str(physician.id)},
        appointment_number=appointment.appointment_number,
    )
    return appointment


def update_appointment(appointment_id, changes, actor):
    """
    Partially update an appointment's scheduling and descriptive fields.

    Changing the physician re-snapshots the display name. Status is not
    updatable here; use update_appointment_status().
    """
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise DomainValidationError(
            {field: ['Field cannot be updated'] for field in sorted(unknown)}
        )

    with transaction.atomic():
        appointment = _lock_appointment(appointment_id)
        changed_fields = []

        for field, value in changes.items():
            if field == 'physician_id':
                if value == appointment.physician_id:
                    continue
                physician = _get_physician(value)
                appointment.physician = physician
                appointment.physician_name = physician.display_name
                changed_fields.append(field)
            elif getattr(appointment, field) != value:
                setattr(appointment, field, value)
                changed_fields.append(field)

        if not changed_fields:
            return appointment

        if 'appointment_date' in changed_fields and appointment.status not in NON_BLOCKING_STATUSES:
            _check_patient_day_conflict(
                appointment.patient, appointment.appointment_date, exclude_id=appointment.pk
            )

        appointment.updated_by = actor.display_name
        appointment.full_clean(validate_unique=False)
        appointment.save()

        audit.log_appointment_updated(appointment, actor, changed_fields)

    logger.info(
        "Appointment updated",
        extra={
            'event': 'appointment_updated',
            'appointment_id': str(appointment.id),
            'changed_fields': changed_fields,
        }
    )
    return appointment


# ============================================================================
# Status transitions
# ============================================================================

def update_appointment_status(appointment_id, new_status, actor, notes=''):
    """
    Move an appointment along the status state machine.

    The identity transition is a no-op and writes nothing. A move into
    COMPLETED is audited as COMPLETED, every other move as STATUS_CHANGED.

    Raises:
        DomainValidationError: missing or unknown status
        NotFoundError: unknown appointment
        InvalidTransitionError: edge not in ALLOWED_TRANSITIONS
    """
    if not new_status:
        raise DomainValidationError(
            {'status': ['New status must be provided']},
            'New status must be provided'
        )
    if new_status not in AppointmentStatusChoices.values:
        raise DomainValidationError(
            {'status': [f'Unknown status: {new_status}']},
            f'Unknown status: {new_status}'
        )

    with transaction.atomic():
        appointment = _lock_appointment(appointment_id)
        old_status = appointment.status or AppointmentStatusChoices.DRAFT

        if new_status == old_status:
            return appointment

        if not appointment.can_transition_to(new_status):
            log_appointment_transition(appointment, old_status, new_status, result='blocked')
            raise InvalidTransitionError(old_status, new_status)

        appointment.status = new_status
        appointment.updated_by = actor.display_name
        if new_status == AppointmentStatusChoices.CANCELLED:
            appointment.cancelled_at = timezone.now()
            appointment.cancelled_by_id = actor.user_id
        appointment.save()

        if new_status == AppointmentStatusChoices.COMPLETED:
            audit.log_completion(appointment, old_status, actor, notes=notes)
        else:
            audit.log_status_change(appointment, old_status, new_status, actor, notes=notes)

    log_appointment_transition(appointment, old_status, new_status)
    return appointment


def cancel_appointment(appointment_id, actor, reason=''):
    """
    Cancel an appointment with an optional reason.

    Bypasses the transition table: any status can be cancelled. Cancelling
    an already cancelled appointment changes nothing.
    Writes a CANCELLED and a STATUS_CHANGED audit row.
    """
    reason = reason or ''

    with transaction.atomic():
        appointment = _lock_appointment(appointment_id)
        old_status = appointment.status or AppointmentStatusChoices.DRAFT

        if old_status == AppointmentStatusChoices.CANCELLED:
            return appointment

        if appointment.is_terminal:
            logger.warning(
                "Cancelling appointment from terminal status",
                extra={
                    'event': 'appointment_cancel_from_terminal',
                    'appointment_id': str(appointment.id),
                    'from_status': old_status,
                }
            )

        appointment.status = AppointmentStatusChoices.CANCELLED
        appointment.cancellation_reason = reason
        appointment.cancelled_at = timezone.now()
        appointment.cancelled_by_id = actor.user_id
        appointment.updated_by = actor.display_name
        appointment.save()

        audit.log_cancellation(appointment, actor, reason=reason)
        audit.log_status_change(
            appointment, old_status, AppointmentStatusChoices.CANCELLED, actor, reason=reason
        )

    log_appointment_transition(appointment, old_status, AppointmentStatusChoices.CANCELLED)
    return appointment


def reschedule_appointment(appointment_id, new_date, new_time, actor, reason=''):
    """
    Reschedule by cancelling the original and booking a linked copy.

    The original row keeps its date/time; it becomes CANCELLED with
    rescheduled_to pointing at the new CONFIRMED row, which points back
    through rescheduled_from.

    Returns:
        The new Appointment

    Raises:
        NotFoundError: unknown appointment
        InvalidTransitionError: original is COMPLETED or NO_SHOW or already CANCELLED
        ConflictError: patient already has another active appointment on new_date
    """
    reason = reason or ''

    with transaction.atomic():
        original = _lock_appointment(appointment_id)
        old_status = original.status or AppointmentStatusChoices.DRAFT

        if original.is_terminal:
            raise InvalidTransitionError(old_status, AppointmentStatusChoices.CANCELLED)

        patient = _lock_patient(original.patient_id)
        _check_patient_day_conflict(patient, new_date, exclude_id=original.pk)

        notes = original.notes
        if reason:
            notes = f'{notes}\nRescheduled: {reason}' if notes else f'Rescheduled: {reason}'

        replacement = Appointment(
            appointment_number=next_appointment_number(new_date),
            appointment_date=new_date,
            appointment_time=new_time,
            status=AppointmentStatusChoices.CONFIRMED,
            notes=notes,
            rescheduled_from=original,
            created_by=actor.display_name,
            updated_by=actor.display_name,
            **{field: getattr(original, field) for field in RESCHEDULE_COPY_FIELDS}
        )
        replacement.save()

        original.status = AppointmentStatusChoices.CANCELLED
        original.rescheduled_to = replacement
        original.cancellation_reason = f'Rescheduled to {new_date.isoformat()} {new_time:%H:%M}'
        original.cancelled_at = timezone.now()
        original.cancelled_by_id = actor.user_id
        original.updated_by = actor.display_name
        original.save()

        audit.log_rescheduling(
            original,
            old_status,
            original.appointment_date,
            original.appointment_time,
            new_date,
            new_time,
            actor,
            reason=reason,
        )
        audit.log_appointment_created(replacement, actor)

    log_domain_event(
        'appointment_rescheduled',
        entity_type='Appointment',
        entity_id=str(original.id),
        entity_ids={'new_appointment_id': str(replacement.id)},
        new_date=new_date.isoformat(),
        new_appointment_number=replacement.appointment_number,
    )
    return replacement


# ============================================================================
# Clinical sub-flows
# ============================================================================

def _ensure_open_for_clinical_records(appointment, record_type):
    if appointment.is_terminal:
        message = f'Cannot record {record_type} for an appointment in status {appointment.status}'
        raise DomainValidationError({'status': [message]}, message)


def record_vitals(appointment_id, data, actor):
    """
    Record a set of vital signs for an appointment.

    Validation errors reject the write. Warnings, a recent duplicate and
    critical readings are reported but never block it. Critical readings
    flag the row and send ``critical_vitals_recorded`` after commit.

    Args:
        appointment_id: Appointment UUID
        data: dict of measurement fields, temperature_unit and notes
        actor: Actor recording the vitals

    Returns:
        The saved Vitals
    """
    values = {field: data.get(field) for field in MEASUREMENT_FIELDS}
    values['temperature_unit'] = data.get('temperature_unit') or 'F'

    with transaction.atomic():
        appointment = _lock_appointment(appointment_id)
        _ensure_open_for_clinical_records(appointment, 'vitals')

        errors = validate_vitals(values)
        if errors:
            raise DomainValidationError(errors, 'Invalid vitals')

        warnings = generate_vitals_warnings(values)
        if warnings:
            logger.warning(
                "Abnormal vitals recorded",
                extra={
                    'event': 'vitals_warnings',
                    'appointment_id': str(appointment.id),
                    'warnings': warnings,
                }
            )

        window = timedelta(minutes=get_scheduling_setting('DUPLICATE_VITALS_WINDOW_MINUTES'))
        if Vitals.objects.filter(appointment=appointment, recorded_at__gte=timezone.now() - window).exists():
            logger.warning(
                "Vitals recorded again within the duplicate window",
                extra={
                    'event': 'vitals_possible_duplicate',
                    'appointment_id': str(appointment.id),
                }
            )

        findings = detect_critical_values(values)

        vitals = Vitals(
            appointment=appointment,
            notes=data.get('notes') or '',
            is_critical=bool(findings),
            recorded_by_id=actor.user_id,
            recorded_by_name=actor.display_name,
            **values
        )
        vitals.save()

        if findings:
            log_critical_vitals(vitals, findings)
            transaction.on_commit(
                lambda: critical_vitals_recorded.send(
                    sender=Vitals,
                    vitals_id=str(vitals.id),
                    appointment_id=str(appointment.id),
                    findings=findings,
                )
            )

    metrics.vitals_recorded_total.labels(critical=str(bool(findings)).lower()).inc()
    return vitals


def list_vitals(appointment_id):
    """Vitals for an appointment, newest first."""
    get_appointment(appointment_id)
    return Vitals.objects.filter(appointment_id=appointment_id).order_by('-recorded_at')


def record_examination(appointment_id, data, actor):
    """
    Create or update the single examination attached to an appointment.

    Returns:
        tuple: (AppointmentExamination, created: bool)
    """
    with transaction.atomic():
        appointment = _lock_appointment(appointment_id)
        _ensure_open_for_clinical_records(appointment, 'an examination')

        examination = AppointmentExamination.objects.filter(appointment=appointment).first()
        created = examination is None
        if created:
            examination = AppointmentExamination(appointment=appointment)

        for field in EXAMINATION_FIELDS:
            if field in data:
                setattr(examination, field, data[field])

        examination.examined_by_id = actor.user_id
        examination.examined_by_name = actor.display_name
        examination.examined_at = timezone.now()
        examination.save()

    logger.info(
        "Examination recorded",
        extra={
            'event': 'examination_recorded',
            'appointment_id': str(appointment.id),
            'examination_id': str(examination.id),
            'examination_created': created,
        }
    )
    return examination, created


def get_examination(appointment_id):
    get_appointment(appointment_id)
    try:
        return AppointmentExamination.objects.get(appointment_id=appointment_id)
    except AppointmentExamination.DoesNotExist:
        raise NotFoundError(f'Examination not found for appointment: {appointment_id}')
