"""
Appointment audit recorder.

Append-only writer for appointment lifecycle events. Callers invoke these
inside their own ``transaction.atomic()`` block so the audit row commits or
rolls back together with the state change it describes.
"""
import logging

from apps.core.observability import metrics

from .models import AppointmentAudit, AuditActionChoices

logger = logging.getLogger(__name__)


def _record(appointment, action, actor, **fields):
    audit = AppointmentAudit.objects.create(
        appointment=appointment,
        action=action,
        changed_by_id=actor.user_id,
        changed_by_name=actor.display_name,
        **fields
    )
    metrics.appointment_audit_events_total.labels(action=action).inc()
    logger.debug(
        "Appointment audit recorded",
        extra={
            'event': 'appointment_audit_recorded',
            'appointment_id': str(appointment.id),
            'audit_action': action,
        }
    )
    return audit


def log_appointment_created(appointment, actor):
    return _record(
        appointment,
        AuditActionChoices.CREATED,
        actor,
        new_status=appointment.status,
        new_date=appointment.appointment_date,
        new_time=appointment.appointment_time,
    )


def log_appointment_updated(appointment, actor, changed_fields):
    """Field edits: one row listing every changed field name."""
    return _record(
        appointment,
        AuditActionChoices.UPDATED,
        actor,
        old_status=appointment.status,
        new_status=appointment.status,
        notes='Updated fields: ' + ', '.join(sorted(changed_fields)),
    )


def log_status_change(appointment, old_status, new_status, actor, reason='', notes=''):
    return _record(
        appointment,
        AuditActionChoices.STATUS_CHANGED,
        actor,
        old_status=old_status,
        new_status=new_status,
        reason=reason or '',
        notes=notes or '',
    )


def log_completion(appointment, old_status, actor, notes=''):
    return _record(
        appointment,
        AuditActionChoices.COMPLETED,
        actor,
        old_status=old_status,
        new_status=appointment.status,
        notes=notes or '',
    )


def log_rescheduling(appointment, old_status, old_date, old_time, new_date, new_time, actor, reason=''):
    """Recorded against the original appointment, after it has been cancelled."""
    return _record(
        appointment,
        AuditActionChoices.RESCHEDULED,
        actor,
        old_status=old_status,
        new_status=appointment.status,
        old_date=old_date,
        old_time=old_time,
        new_date=new_date,
        new_time=new_time,
        reason=reason or '',
    )


def log_cancellation(appointment, actor, reason=''):
    return _record(
        appointment,
        AuditActionChoices.CANCELLED,
        actor,
        new_status=appointment.status,
        reason=reason or '',
    )


def get_appointment_audit_history(appointment_id):
    """All audit rows for an appointment, newest first."""
    return AppointmentAudit.objects.filter(appointment_id=appointment_id).order_by('-changed_at', '-id')


def get_user_audit_history(user_id):
    """All audit rows written by a user, newest first."""
    return AppointmentAudit.objects.filter(changed_by_id=user_id).order_by('-changed_at', '-id')
