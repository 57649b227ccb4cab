"""
Domain events logging helpers.

Provides structured event logging for scheduling and appointment operations.
"""
from typing import Dict, Optional
from .logging import get_sanitized_logger, sanitize_dict
from .metrics import metrics

logger = get_sanitized_logger(__name__)


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'appointment_created')
        entity_type: Type of entity (e.g., 'Appointment', 'ScheduleOverride')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, failure, warning, ...)
        **extra_fields: Additional fields to log (will be sanitized)

    Example:
        log_domain_event(
            'appointment_rescheduled',
            entity_type='Appointment',
            entity_id=str(old.id),
            entity_ids={'new_appointment_id': str(new.id)},
            new_date=str(new.appointment_date),
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id:
        event_data['entity_id'] = entity_id

    if entity_ids:
        event_data.update(entity_ids)

    event_data.update(sanitize_dict(extra_fields))

    # Log at appropriate level based on result
    if result in ['failure', 'error']:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in ['warning', 'blocked', 'conflict']:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_appointment_transition(appointment, from_status, to_status, result='success', **extra):
    """Log appointment status transition event."""
    log_domain_event(
        'appointment_transition',
        entity_type='Appointment',
        entity_id=str(appointment.id),
        result=result,
        from_status=from_status,
        to_status=to_status,
        appointment_number=appointment.appointment_number,
        **extra
    )
    metrics.appointment_transitions_total.labels(
        from_status=from_status,
        to_status=to_status,
        result=result
    ).inc()


def log_critical_vitals(vitals, findings):
    """Log a critical vitals alert. Only field names and values, never patient identity."""
    log_domain_event(
        'critical_vitals_detected',
        entity_type='Vitals',
        entity_id=str(vitals.id),
        entity_ids={'appointment_id': str(vitals.appointment_id)},
        result='warning',
        findings=findings,
    )
