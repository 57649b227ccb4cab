"""
Availability engine.

Turns a doctor's weekly schedules, the override for a date and the existing
bookings into an ordered list of concrete slots. "No availability" is always
an empty list, never an error.

Precedence for a single date:
    1. UNAVAILABLE override -> no slots
    2. CUSTOM_HOURS override with both times -> slots over the override range
       using the default duration and buffer
    3. otherwise every active weekly schedule, each with its own duration and
       buffer; a BREAK override then blocks the slots it overlaps
    4. slots overlapping an existing booking are marked "Already booked"
"""
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from apps.clinical.models import Appointment, AppointmentStatusChoices
from apps.core.conf import get_scheduling_setting
from apps.core.observability import metrics

from . import services
from .models import OverrideTypeChoices

logger = logging.getLogger(__name__)

REASON_BOOKED = 'Already booked'
REASON_BREAK = 'Doctor on break'

RELEASED_STATUSES = (
    AppointmentStatusChoices.CANCELLED,
    AppointmentStatusChoices.NO_SHOW,
)


@dataclass(frozen=True)
class Slot:
    """A candidate interval [start_time, end_time) on one date."""
    date: date
    start_time: time
    end_time: time
    is_available: bool = True
    reason: str = ''

    @property
    def available_slots(self) -> int:
        return 1 if self.is_available else 0

    def overlaps(self, start: time, end: time) -> bool:
        """Half-open overlap: touching boundaries do not conflict."""
        return self.start_time < end and start < self.end_time


def _at(day: date, moment: time) -> datetime:
    return datetime.combine(day, moment)


def generate_slots(day: date, start: time, end: time, duration_minutes: int, buffer_minutes: int) -> List[Slot]:
    """
    Emit [cursor, cursor + duration) while it fits before ``end``, advancing
    by duration + buffer each step.
    """
    if duration_minutes <= 0:
        raise ValueError('duration_minutes must be positive')

    duration = timedelta(minutes=duration_minutes)
    step = duration + timedelta(minutes=max(buffer_minutes, 0))
    cursor = _at(day, start)
    limit = _at(day, end)

    slots = []
    while cursor + duration <= limit:
        slots.append(Slot(date=day, start_time=cursor.time(), end_time=(cursor + duration).time()))
        cursor += step
    return slots


def _booked_intervals(doctor_id, day: date):
    bookings = Appointment.objects.filter(physician_id=doctor_id, appointment_date=day)
    if get_scheduling_setting('RELEASE_CANCELLED_SLOTS'):
        bookings = bookings.exclude(status__in=RELEASED_STATUSES)

    default_duration = get_scheduling_setting('DEFAULT_APPOINTMENT_DURATION_MINUTES')
    intervals = []
    for appointment_time, duration_minutes in bookings.values_list('appointment_time', 'duration_minutes'):
        start = _at(day, appointment_time)
        end = start + timedelta(minutes=duration_minutes or default_duration)
        # A booking that runs past midnight blocks until the end of the day
        intervals.append((start.time(), end.time() if end.date() == day else time.max))
    return intervals


def _block(slots: List[Slot], start: time, end: time, reason: str) -> List[Slot]:
    return [
        replace(slot, is_available=False, reason=reason)
        if slot.is_available and slot.overlaps(start, end) else slot
        for slot in slots
    ]


@metrics.track_duration(metrics.availability_duration_seconds)
def get_available_slots(doctor_id, day: date) -> List[Slot]:
    """Ordered slots (available and not) for a doctor on a date."""
    override = services.get_override_for_date(doctor_id, day)

    if override is not None and override.override_type == OverrideTypeChoices.UNAVAILABLE:
        metrics.availability_queries_total.labels(source='override_unavailable').inc()
        logger.debug(
            "Doctor unavailable by override",
            extra={'doctor_id': str(doctor_id), 'date': day.isoformat()}
        )
        return []

    if (override is not None
            and override.override_type == OverrideTypeChoices.CUSTOM_HOURS
            and override.has_time_range):
        source = 'custom_hours'
        slots = generate_slots(
            day,
            override.start_time,
            override.end_time,
            get_scheduling_setting('DEFAULT_SLOT_DURATION_MINUTES'),
            get_scheduling_setting('DEFAULT_BUFFER_MINUTES'),
        )
    else:
        schedules = services.get_active_schedules_for_date(doctor_id, day)
        if not schedules:
            metrics.availability_queries_total.labels(source='none').inc()
            return []

        source = 'schedule'
        slots = []
        for schedule in schedules:
            slots.extend(generate_slots(
                day,
                schedule.start_time,
                schedule.end_time,
                schedule.slot_duration_minutes or get_scheduling_setting('DEFAULT_SLOT_DURATION_MINUTES'),
                schedule.buffer_time_minutes
                if schedule.buffer_time_minutes is not None
                else get_scheduling_setting('DEFAULT_BUFFER_MINUTES'),
            ))

        if (override is not None
                and override.override_type == OverrideTypeChoices.BREAK
                and override.has_time_range
                and get_scheduling_setting('APPLY_BREAK_OVERRIDES')):
            slots = _block(slots, override.start_time, override.end_time, REASON_BREAK)

    for start, end in _booked_intervals(doctor_id, day):
        slots = _block(slots, start, end, REASON_BOOKED)

    metrics.availability_queries_total.labels(source=source).inc()
    return slots


def is_slot_available(doctor_id, day: date, start_time: time, duration_minutes: Optional[int] = None) -> bool:
    """
    True when a generated slot starts at ``start_time`` and is free.
    With ``duration_minutes`` the slot must also be at least that long.
    """
    for slot in get_available_slots(doctor_id, day):
        if slot.start_time != start_time or not slot.is_available:
            continue
        if duration_minutes is None:
            return True
        length = _at(day, slot.end_time) - _at(day, slot.start_time)
        if length >= timedelta(minutes=duration_minutes):
            return True
    return False


def get_available_slots_for_date_range(doctor_id, start_date: date, end_date: date) -> List[Slot]:
    """Slots for every day in [start_date, end_date], in date order."""
    slots = []
    day = start_date
    while day <= end_date:
        slots.extend(get_available_slots(doctor_id, day))
        day += timedelta(days=1)
    return slots


def get_next_available_slot(doctor_id, from_date: date) -> Optional[Slot]:
    """First free slot on or after ``from_date`` within the search horizon."""
    horizon = get_scheduling_setting('NEXT_SLOT_SEARCH_DAYS')
    for offset in range(horizon + 1):
        for slot in get_available_slots(doctor_id, from_date + timedelta(days=offset)):
            if slot.is_available:
                return slot
    return None
