"""
Serializers for appointments and their clinical sub-records.

Read serializers are ModelSerializers; write paths use plain Serializers
whose validated data is handed to the lifecycle services.
"""
from rest_framework import serializers

from .models import (
    Appointment,
    AppointmentAudit,
    AppointmentExamination,
    AppointmentTypeChoices,
    TemperatureUnitChoices,
    UrgencyLevelChoices,
    Vitals,
)
from .services import EXAMINATION_FIELDS


class AppointmentListSerializer(serializers.ModelSerializer):
    """Serializer for Appointment list view (lightweight)"""
    patient_name = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id',
            'appointment_number',
            'patient_id',
            'patient_name',
            'physician_id',
            'physician_name',
            'appointment_date',
            'appointment_time',
            'duration_minutes',
            'status',
            'urgency_level',
        ]
        read_only_fields = fields

    def get_patient_name(self, obj):
        return obj.patient.full_name


class AppointmentDetailSerializer(serializers.ModelSerializer):
    """
    Serializer for Appointment detail view (read-only).

    Includes:
    - All appointment fields
    - Patient summary
    - Vitals, newest first
    - Examination, or null when none has been recorded
    """
    patient_name = serializers.SerializerMethodField()
    patient = serializers.SerializerMethodField()
    vitals = serializers.SerializerMethodField()
    examination = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id',
            'appointment_number',
            'patient_id',
            'patient_name',
            'patient',
            'physician_id',
            'physician_name',
            'appointment_type',
            'appointment_date',
            'appointment_time',
            'duration_minutes',
            'department_name',
            'specialty',
            'consultation_room',
            'urgency_level',
            'status',
            'chief_complaint',
            'notes',
            'cancellation_reason',
            'cancelled_at',
            'cancelled_by_id',
            'rescheduled_from_id',
            'rescheduled_to_id',
            'vitals',
            'examination',
            'created_by',
            'updated_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_patient_name(self, obj):
        return obj.patient.full_name

    def get_patient(self, obj):
        """Return patient basic info."""
        return {
            'id': obj.patient.id,
            'name': obj.patient.full_name,
            'birth_date': obj.patient.birth_date,
            'sex': obj.patient.sex,
            'phone': obj.patient.phone,
        }

    def get_vitals(self, obj):
        records = obj.vitals.order_by('-recorded_at')
        return VitalsSerializer(records, many=True).data

    def get_examination(self, obj):
        examination = AppointmentExamination.objects.filter(appointment=obj).first()
        if examination is None:
            return None
        return ExaminationSerializer(examination).data


class _AppointmentDetailsInput(serializers.Serializer):
    appointment_type = serializers.ChoiceField(choices=AppointmentTypeChoices.choices, required=False)
    duration_minutes = serializers.IntegerField(min_value=1, required=False)
    department_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    specialty = serializers.CharField(max_length=100, required=False, allow_blank=True)
    consultation_room = serializers.CharField(max_length=50, required=False, allow_blank=True)
    urgency_level = serializers.ChoiceField(choices=UrgencyLevelChoices.choices, required=False)
    chief_complaint = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentCreateSerializer(_AppointmentDetailsInput):
    """
    Booking input. Status, number and physician name are assigned by the
    lifecycle service, never by the client.
    """
    patient_id = serializers.UUIDField()
    physician_id = serializers.UUIDField()
    appointment_date = serializers.DateField()
    appointment_time = serializers.TimeField()


class AppointmentUpdateSerializer(_AppointmentDetailsInput):
    """Partial update input. Status changes go through the status action."""
    physician_id = serializers.UUIDField(required=False)
    appointment_date = serializers.DateField(required=False)
    appointment_time = serializers.TimeField(required=False)


class StatusTransitionSerializer(serializers.Serializer):
    # Validated against the state machine by the service, so any string passes here
    status = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CancelAppointmentSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class RescheduleAppointmentSerializer(serializers.Serializer):
    new_date = serializers.DateField()
    new_time = serializers.TimeField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class AppointmentAuditSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentAudit
        fields = [
            'id',
            'appointment_id',
            'action',
            'old_status',
            'new_status',
            'old_date',
            'new_date',
            'old_time',
            'new_time',
            'reason',
            'notes',
            'changed_by_id',
            'changed_by_name',
            'changed_at',
        ]
        read_only_fields = fields


class VitalsSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vitals
        fields = [
            'id',
            'appointment_id',
            'weight_kg',
            'height_cm',
            'head_circumference_cm',
            'bmi',
            'bmi_status',
            'temperature',
            'temperature_unit',
            'heart_rate',
            'respiratory_rate',
            'systolic_bp',
            'diastolic_bp',
            'spo2',
            'blood_sugar',
            'pain_score',
            'is_critical',
            'notes',
            'recorded_by_id',
            'recorded_by_name',
            'recorded_at',
        ]
        read_only_fields = fields


class VitalsWriteSerializer(serializers.Serializer):
    """Shape only; medical bounds are checked by the vitals validator."""
    weight_kg = serializers.FloatField(required=False, allow_null=True)
    height_cm = serializers.FloatField(required=False, allow_null=True)
    head_circumference_cm = serializers.FloatField(required=False, allow_null=True)
    temperature = serializers.FloatField(required=False, allow_null=True)
    temperature_unit = serializers.ChoiceField(
        choices=TemperatureUnitChoices.choices,
        required=False,
        default=TemperatureUnitChoices.FAHRENHEIT
    )
    heart_rate = serializers.IntegerField(required=False, allow_null=True)
    respiratory_rate = serializers.IntegerField(required=False, allow_null=True)
    systolic_bp = serializers.IntegerField(required=False, allow_null=True)
    diastolic_bp = serializers.IntegerField(required=False, allow_null=True)
    spo2 = serializers.IntegerField(required=False, allow_null=True)
    blood_sugar = serializers.FloatField(required=False, allow_null=True)
    pain_score = serializers.IntegerField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class ExaminationSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentExamination
        fields = ['id', 'appointment_id'] + list(EXAMINATION_FIELDS) + [
            'examined_by_id',
            'examined_by_name',
            'examined_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id',
            'appointment_id',
            'examined_by_id',
            'examined_by_name',
            'examined_at',
            'created_at',
            'updated_at',
        ]
