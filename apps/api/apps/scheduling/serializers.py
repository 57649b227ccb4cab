"""
Serializers for doctor schedules, schedule overrides and availability slots.
"""
from rest_framework import serializers

from .models import DoctorSchedule, ScheduleOverride


class DoctorScheduleSerializer(serializers.ModelSerializer):
    """Read/write shape of a weekly schedule window."""
    doctor_id = serializers.UUIDField()
    doctor_name = serializers.CharField(source='doctor.display_name', read_only=True)
    day_name = serializers.CharField(read_only=True)

    class Meta:
        model = DoctorSchedule
        fields = [
            'id',
            'doctor_id',
            'doctor_name',
            'day_of_week',
            'day_name',
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
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'doctor_name', 'day_name', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_time', getattr(self.instance, 'start_time', None))
        end = attrs.get('end_time', getattr(self.instance, 'end_time', None))
        if start and end and start >= end:
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})
        return attrs


class ScheduleOverrideSerializer(serializers.ModelSerializer):
    doctor_id = serializers.UUIDField()
    doctor_name = serializers.CharField(source='doctor.display_name', read_only=True)
    created_by_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ScheduleOverride
        fields = [
            'id',
            'doctor_id',
            'doctor_name',
            'override_date',
            'override_type',
            'start_time',
            'end_time',
            'reason',
            'notes',
            'created_by_id',
            'created_at',
        ]
        read_only_fields = ['id', 'doctor_name', 'created_by_id', 'created_at']
        # Uniqueness is reported by the override store as a 409
        validators = []

    def validate(self, attrs):
        start = attrs.get('start_time', getattr(self.instance, 'start_time', None))
        end = attrs.get('end_time', getattr(self.instance, 'end_time', None))

        if start and end and start >= end:
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})
        return attrs


class SlotSerializer(serializers.Serializer):
    """Serializer for an availability Slot (read-only)"""
    date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    is_available = serializers.BooleanField()
    reason = serializers.CharField(allow_blank=True)
    available_slots = serializers.IntegerField()


class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()


class SlotCheckQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.TimeField()
    duration = serializers.IntegerField(required=False, min_value=1)


class DoctorDateQuerySerializer(serializers.Serializer):
    doctor = serializers.UUIDField()
    date = serializers.DateField()


class DoctorRangeQuerySerializer(DateRangeQuerySerializer):
    doctor = serializers.UUIDField()

    def validate(self, attrs):
        if attrs['end_date'] < attrs['start_date']:
            raise serializers.ValidationError({'end_date': 'End date cannot be before start date'})
        return attrs


class DateQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class FromDateQuerySerializer(serializers.Serializer):
    from_date = serializers.DateField(required=False)
