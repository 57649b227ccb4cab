"""
Scheduling models: doctor_schedule, schedule_override
"""
import uuid
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


# ============================================================================
# Enums
# ============================================================================

class DayOfWeekChoices(models.IntegerChoices):
    """ISO weekday numbers, matching date.isoweekday()."""
    MONDAY = 1, 'Monday'
    TUESDAY = 2, 'Tuesday'
    WEDNESDAY = 3, 'Wednesday'
    THURSDAY = 4, 'Thursday'
    FRIDAY = 5, 'Friday'
    SATURDAY = 6, 'Saturday'
    SUNDAY = 7, 'Sunday'


class OverrideTypeChoices(models.TextChoices):
    """
    - UNAVAILABLE: no slots at all that day
    - CUSTOM_HOURS: replaces the weekly schedule with start/end for that day
    - BREAK: weekly schedule applies, minus the start/end interval
    """
    UNAVAILABLE = 'UNAVAILABLE', 'Unavailable'
    CUSTOM_HOURS = 'CUSTOM_HOURS', 'Custom Hours'
    BREAK = 'BREAK', 'Break'


# ============================================================================
# Weekly schedule
# ============================================================================

class DoctorSchedule(models.Model):
    """
    Recurring weekly availability window for a doctor.

    Active for a date D when day_of_week matches D, is_available is set,
    effective_from <= D and effective_to is empty or >= D. Several windows
    may exist for the same doctor and day; each produces its own slots.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    doctor = models.ForeignKey(
        'authz.Practitioner',
        on_delete=models.CASCADE,
        related_name='schedules'
    )
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeekChoices.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    slot_duration_minutes = models.PositiveIntegerField(default=30)
    buffer_time_minutes = models.PositiveIntegerField(default=5)
    max_appointments_per_slot = models.PositiveIntegerField(default=1)
    is_available = models.BooleanField(default=True)
    effective_from = models.DateField()
    effective_to = models.DateField(blank=True, null=True)

    # Location
    location = models.CharField(max_length=255, blank=True, default='')
    room_number = models.CharField(max_length=50, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctor_schedule'
        verbose_name = 'Doctor Schedule'
        verbose_name_plural = 'Doctor Schedules'
        ordering = ['day_of_week', 'start_time']
        indexes = [
            models.Index(fields=['doctor', 'day_of_week'], name='idx_schedule_doctor_day'),
            models.Index(fields=['is_available'], name='idx_schedule_available'),
        ]

    def __str__(self):
        return f"{self.doctor_id} {self.day_name} {self.start_time}-{self.end_time}"

    @property
    def day_name(self):
        return DayOfWeekChoices(self.day_of_week).label

    def is_active_on(self, day):
        return (
            self.is_available
            and self.day_of_week == day.isoweekday()
            and self.effective_from <= day
            and (self.effective_to is None or self.effective_to >= day)
        )

    def clean(self):
        errors = {}

        if self.start_time and self.end_time and self.start_time >= self.end_time:
            errors['end_time'] = 'End time must be after start time'

        if self.slot_duration_minutes is not None and self.slot_duration_minutes <= 0:
            errors['slot_duration_minutes'] = 'Slot duration must be greater than zero'

        if self.max_appointments_per_slot is not None and self.max_appointments_per_slot < 1:
            errors['max_appointments_per_slot'] = 'At least one appointment per slot is required'

        if self.effective_from and self.effective_to and self.effective_to < self.effective_from:
            errors['effective_to'] = 'Effective-to date cannot be before effective-from date'

        if errors:
            raise ValidationError(errors)


# ============================================================================
# Date overrides
# ============================================================================

class ScheduleOverride(models.Model):
    """
    A single-date exception to a doctor's weekly schedule.
    At most one per (doctor, override_date).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    doctor = models.ForeignKey(
        'authz.Practitioner',
        on_delete=models.CASCADE,
        related_name='schedule_overrides'
    )
    override_date = models.DateField()
    override_type = models.CharField(max_length=20, choices=OverrideTypeChoices.choices)
    start_time = models.TimeField(blank=True, null=True)
    end_time = models.TimeField(blank=True, null=True)
    reason = models.CharField(max_length=255, blank=True, default='')
    notes = models.TextField(blank=True, default='')

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='created_schedule_overrides'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'schedule_override'
        verbose_name = 'Schedule Override'
        verbose_name_plural = 'Schedule Overrides'
        ordering = ['override_date']
        constraints = [
            models.UniqueConstraint(
                fields=['doctor', 'override_date'],
                name='uniq_override_doctor_date'
            ),
        ]

    def __str__(self):
        return f"{self.override_type} {self.override_date} ({self.doctor_id})"

    @property
    def has_time_range(self):
        return self.start_time is not None and self.end_time is not None

    def clean(self):
        errors = {}

        if self.has_time_range and self.start_time >= self.end_time:
            errors['end_time'] = 'End time must be after start time'

        if errors:
            raise ValidationError(errors)
