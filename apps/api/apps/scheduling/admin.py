from django.contrib import admin

from .models import DoctorSchedule, ScheduleOverride


@admin.register(DoctorSchedule)
class DoctorScheduleAdmin(admin.ModelAdmin):
    list_display = [
        'doctor',
        'day_of_week',
        'start_time',
        'end_time',
        'slot_duration_minutes',
        'buffer_time_minutes',
        'is_available',
        'effective_from',
        'effective_to',
    ]
    list_filter = ['day_of_week', 'is_available']
    search_fields = ['doctor__display_name', 'location', 'room_number']
    autocomplete_fields = ['doctor']
    readonly_fields = ['id', 'created_at', 'updated_at']

    fieldsets = (
        ('Doctor', {
            'fields': ('id', 'doctor', 'day_of_week', 'is_available')
        }),
        ('Hours', {
            'fields': ('start_time', 'end_time', 'slot_duration_minutes',
                       'buffer_time_minutes', 'max_appointments_per_slot')
        }),
        ('Validity', {
            'fields': ('effective_from', 'effective_to')
        }),
        ('Location', {
            'fields': ('location', 'room_number')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(ScheduleOverride)
class ScheduleOverrideAdmin(admin.ModelAdmin):
    list_display = ['doctor', 'override_date', 'override_type', 'start_time', 'end_time', 'reason']
    list_filter = ['override_type', 'override_date']
    search_fields = ['doctor__display_name', 'reason']
    date_hierarchy = 'override_date'
    autocomplete_fields = ['doctor']
    readonly_fields = ['id', 'created_by', 'created_at']

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)
