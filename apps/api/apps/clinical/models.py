"""
Clinical models: patient, appointment, appointment_audit, vitals,
appointment_examination, appointment_number_sequence
"""
import uuid
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


# ============================================================================
# Enums
# ============================================================================

class SexChoices(models.TextChoices):
    FEMALE = 'female', 'Female'
    MALE = 'male', 'Male'
    OTHER = 'other', 'Other'
    UNKNOWN = 'unknown', 'Unknown'


class AppointmentStatusChoices(models.TextChoices):
    """
    Appointment lifecycle.

    DRAFT -> CONFIRMED | CANCELLED
    CONFIRMED -> WAITING | CANCELLED | NO_SHOW
    WAITING -> IN_CONSULTATION | CANCELLED | NO_SHOW
    IN_CONSULTATION -> TO_INVOICE | COMPLETED | CANCELLED
    TO_INVOICE -> COMPLETED | CANCELLED
    COMPLETED, CANCELLED, NO_SHOW are terminal.
    """
    DRAFT = 'DRAFT', 'Draft'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    WAITING = 'WAITING', 'Waiting'
    IN_CONSULTATION = 'IN_CONSULTATION', 'In Consultation'
    TO_INVOICE = 'TO_INVOICE', 'To Invoice'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'
    NO_SHOW = 'NO_SHOW', 'No Show'


class AppointmentTypeChoices(models.TextChoices):
    OPD = 'OPD', 'Outpatient'
    FOLLOW_UP = 'FOLLOW_UP', 'Follow-up'
    EMERGENCY = 'EMERGENCY', 'Emergency'
    TELECONSULTATION = 'TELECONSULTATION', 'Teleconsultation'


class UrgencyLevelChoices(models.TextChoices):
    NORMAL = 'NORMAL', 'Normal'
    URGENT = 'URGENT', 'Urgent'
    EMERGENCY = 'EMERGENCY', 'Emergency'


class AuditActionChoices(models.TextChoices):
    CREATED = 'CREATED', 'Created'
    UPDATED = 'UPDATED', 'Updated'
    STATUS_CHANGED = 'STATUS_CHANGED', 'Status Changed'
    RESCHEDULED = 'RESCHEDULED', 'Rescheduled'
    CANCELLED = 'CANCELLED', 'Cancelled'
    COMPLETED = 'COMPLETED', 'Completed'


class TemperatureUnitChoices(models.TextChoices):
    FAHRENHEIT = 'F', 'Fahrenheit'
    CELSIUS = 'C', 'Celsius'


class BmiStatusChoices(models.TextChoices):
    UNDERWEIGHT = 'UNDERWEIGHT', 'Underweight'
    NORMAL = 'NORMAL', 'Normal'
    OVERWEIGHT = 'OVERWEIGHT', 'Overweight'
    OBESE = 'OBESE', 'Obese'


_S = AppointmentStatusChoices

# BUSINESS RULE: allowed status transitions (self-transition is a no-op, handled by callers)
ALLOWED_TRANSITIONS = {
    _S.DRAFT: frozenset({_S.CONFIRMED, _S.CANCELLED}),
    _S.CONFIRMED: frozenset({_S.WAITING, _S.CANCELLED, _S.NO_SHOW}),
    _S.WAITING: frozenset({_S.IN_CONSULTATION, _S.CANCELLED, _S.NO_SHOW}),
    _S.IN_CONSULTATION: frozenset({_S.TO_INVOICE, _S.COMPLETED, _S.CANCELLED}),
    _S.TO_INVOICE: frozenset({_S.COMPLETED, _S.CANCELLED}),
    _S.COMPLETED: frozenset(),
    _S.CANCELLED: frozenset(),
    _S.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset({_S.COMPLETED, _S.CANCELLED, _S.NO_SHOW})

# Appointments in these statuses do not count toward the one-per-patient-per-day rule
NON_BLOCKING_STATUSES = TERMINAL_STATUSES | {_S.DRAFT}


# ============================================================================
# Patient
# ============================================================================

class Patient(models.Model):
    """
    Patient record. Registration lives outside this service;
    appointments only need to resolve the patient by id.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    birth_date = models.DateField(blank=True, null=True)
    sex = models.CharField(
        max_length=20,
        choices=SexChoices.choices,
        blank=True,
        null=True
    )
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)

    # Soft delete
    is_deleted = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
            models.Index(fields=['is_deleted'], name='idx_patient_deleted'),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# ============================================================================
# Appointment
# ============================================================================

class Appointment(models.Model):
    """
    A scheduled patient/physician encounter.

    Never hard-deleted: cancellation and rescheduling are status and
    linkage changes. A reschedule creates a new row and links both ways
    through rescheduled_from / rescheduled_to.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment_number = models.CharField(max_length=50, unique=True, editable=False)

    patient = models.ForeignKey(
        'Patient',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    physician = models.ForeignKey(
        'authz.Practitioner',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    # Snapshot of the practitioner's display name at booking time
    physician_name = models.CharField(max_length=255, blank=True, default='')

    appointment_type = models.CharField(
        max_length=30,
        choices=AppointmentTypeChoices.choices,
        default=AppointmentTypeChoices.OPD
    )
    appointment_date = models.DateField()
    appointment_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=30)

    department_name = models.CharField(max_length=100, blank=True, default='')
    specialty = models.CharField(max_length=100, blank=True, default='')
    consultation_room = models.CharField(max_length=50, blank=True, default='')
    urgency_level = models.CharField(
        max_length=20,
        choices=UrgencyLevelChoices.choices,
        default=UrgencyLevelChoices.NORMAL
    )

    status = models.CharField(
        max_length=20,
        choices=AppointmentStatusChoices.choices,
        default=AppointmentStatusChoices.DRAFT
    )
    chief_complaint = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')

    # Cancellation
    cancellation_reason = models.TextField(blank=True, default='')
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='cancelled_appointments'
    )

    # Reschedule linkage
    rescheduled_from = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='+'
    )
    rescheduled_to = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='+'
    )

    # Audit
    created_by = models.CharField(max_length=255, blank=True, default='')
    updated_by = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointment'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['appointment_date', 'appointment_time']
        indexes = [
            models.Index(fields=['physician', 'appointment_date'], name='idx_appointment_physician_day'),
            models.Index(fields=['patient', 'appointment_date'], name='idx_appointment_patient_day'),
            models.Index(fields=['appointment_date'], name='idx_appointment_date'),
            models.Index(fields=['status'], name='idx_appointment_status'),
        ]

    def __str__(self):
        return f"{self.appointment_number} ({self.appointment_date} {self.appointment_time})"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, new_status):
        """True for the identity no-op and for any edge in ALLOWED_TRANSITIONS."""
        current = self.status or AppointmentStatusChoices.DRAFT
        if new_status == current:
            return True
        return new_status in ALLOWED_TRANSITIONS.get(current, frozenset())

    def clean(self):
        errors = {}

        if self.duration_minutes is not None and self.duration_minutes <= 0:
            errors['duration_minutes'] = 'Duration must be greater than zero'

        if self.rescheduled_to_id and self.rescheduled_to_id == self.pk:
            errors['rescheduled_to'] = 'An appointment cannot be rescheduled to itself'

        if errors:
            raise ValidationError(errors)


class AppointmentNumberSequence(models.Model):
    """
    Per-date counter behind APT-YYYYMMDD-NNNNN numbers.

    The row for a date is locked with select_for_update while a number is
    drawn, so concurrent creations on the same date never share a value.
    """
    sequence_date = models.DateField(primary_key=True)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'appointment_number_sequence'
        verbose_name = 'Appointment Number Sequence'
        verbose_name_plural = 'Appointment Number Sequences'

    def __str__(self):
        return f"{self.sequence_date}: {self.last_value}"


# ============================================================================
# Audit
# ============================================================================

class AppointmentAudit(models.Model):
    """
    Immutable appointment lifecycle event. One row per event, not per field.
    """
    appointment = models.ForeignKey(
        'Appointment',
        on_delete=models.PROTECT,
        related_name='audit_events'
    )
    action = models.CharField(max_length=20, choices=AuditActionChoices.choices)

    old_status = models.CharField(max_length=20, blank=True, default='')
    new_status = models.CharField(max_length=20, blank=True, default='')
    old_date = models.DateField(blank=True, null=True)
    new_date = models.DateField(blank=True, null=True)
    old_time = models.TimeField(blank=True, null=True)
    new_time = models.TimeField(blank=True, null=True)
    reason = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')

    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='appointment_audit_events'
    )
    changed_by_name = models.CharField(max_length=255, blank=True, default='')
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'appointment_audit'
        verbose_name = 'Appointment Audit'
        verbose_name_plural = 'Appointment Audits'
        ordering = ['-changed_at', '-id']
        indexes = [
            models.Index(fields=['appointment', 'changed_at'], name='idx_appt_audit_appt_time'),
            models.Index(fields=['changed_by'], name='idx_appt_audit_actor'),
            models.Index(fields=['action'], name='idx_appt_audit_action'),
        ]

    def __str__(self):
        return f"{self.action} on {self.appointment_id} by {self.changed_by_name or 'system'}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Appointment audit records are append-only')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError('Appointment audit records cannot be deleted')


# ============================================================================
# Clinical sub-records
# ============================================================================

class Vitals(models.Model):
    """
    One set of vital signs captured during an appointment.
    BMI and BMI status are derived from weight and height on save.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment = models.ForeignKey(
        'Appointment',
        on_delete=models.PROTECT,
        related_name='vitals'
    )

    # Anthropometrics
    weight_kg = models.FloatField(blank=True, null=True)
    height_cm = models.FloatField(blank=True, null=True)
    head_circumference_cm = models.FloatField(blank=True, null=True)
    bmi = models.FloatField(blank=True, null=True)
    bmi_status = models.CharField(
        max_length=20,
        choices=BmiStatusChoices.choices,
        blank=True,
        default=''
    )

    # Signs
    temperature = models.FloatField(blank=True, null=True)
    temperature_unit = models.CharField(
        max_length=1,
        choices=TemperatureUnitChoices.choices,
        default=TemperatureUnitChoices.FAHRENHEIT
    )
    heart_rate = models.IntegerField(blank=True, null=True)
    respiratory_rate = models.IntegerField(blank=True, null=True)
    systolic_bp = models.IntegerField(blank=True, null=True)
    diastolic_bp = models.IntegerField(blank=True, null=True)
    spo2 = models.IntegerField(blank=True, null=True)
    blood_sugar = models.FloatField(blank=True, null=True)
    pain_score = models.IntegerField(blank=True, null=True)

    is_critical = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default='')

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='recorded_vitals'
    )
    recorded_by_name = models.CharField(max_length=255, blank=True, default='')
    recorded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'vitals'
        verbose_name = 'Vitals'
        verbose_name_plural = 'Vitals'
        ordering = ['-recorded_at']
        indexes = [
            models.Index(fields=['appointment', 'recorded_at'], name='idx_vitals_appt_time'),
        ]

    def __str__(self):
        return f"Vitals {self.recorded_at:%Y-%m-%d %H:%M} for {self.appointment_id}"

    def compute_bmi(self):
        """Set bmi/bmi_status from weight and height when both are present."""
        if not self.weight_kg or not self.height_cm:
            return
        height_m = self.height_cm / 100
        self.bmi = round(self.weight_kg / (height_m * height_m), 2)
        if self.bmi < 18.5:
            self.bmi_status = BmiStatusChoices.UNDERWEIGHT
        elif self.bmi < 25:
            self.bmi_status = BmiStatusChoices.NORMAL
        elif self.bmi < 30:
            self.bmi_status = BmiStatusChoices.OVERWEIGHT
        else:
            self.bmi_status = BmiStatusChoices.OBESE

    def save(self, *args, **kwargs):
        self.compute_bmi()
        super().save(*args, **kwargs)


class AppointmentExamination(models.Model):
    """
    The physician's examination for an appointment (at most one).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment = models.OneToOneField(
        'Appointment',
        on_delete=models.PROTECT,
        related_name='examination'
    )

    # History
    chief_complaint = models.TextField(blank=True, default='')
    history_present_illness = models.TextField(blank=True, default='')
    symptoms = models.TextField(blank=True, default='')

    # Examination
    general_appearance = models.TextField(blank=True, default='')
    cardiovascular_system = models.TextField(blank=True, default='')
    respiratory_system = models.TextField(blank=True, default='')
    gastrointestinal_system = models.TextField(blank=True, default='')
    central_nervous_system = models.TextField(blank=True, default='')
    musculoskeletal_system = models.TextField(blank=True, default='')
    examination_findings = models.TextField(blank=True, default='')
    vitals_reviewed = models.BooleanField(default=True)

    # Assessment and plan
    primary_diagnosis = models.TextField(blank=True, default='')
    primary_diagnosis_icd10 = models.CharField(max_length=20, blank=True, default='')
    differential_diagnosis = models.TextField(blank=True, default='')
    treatment_plan = models.TextField(blank=True, default='')
    advice = models.TextField(blank=True, default='')
    follow_up_date = models.DateField(blank=True, null=True)
    follow_up_instructions = models.TextField(blank=True, default='')

    # Medical history review
    medical_history_reviewed = models.BooleanField(default=True)
    medical_history_updated = models.BooleanField(default=False)
    medical_history_update_notes = models.TextField(blank=True, default='')

    examined_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='examinations'
    )
    examined_by_name = models.CharField(max_length=255, blank=True, default='')
    examined_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointment_examination'
        verbose_name = 'Appointment Examination'
        verbose_name_plural = 'Appointment Examinations'

    def __str__(self):
        return f"Examination for {self.appointment_id}"
