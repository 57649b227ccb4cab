from django.contrib import admin
from .models import Patient, Appointment, AppointmentAudit, Vitals, AppointmentExamination


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'birth_date', 'phone', 'is_deleted', 'created_at']
    list_filter = ['sex', 'is_deleted']
    search_fields = ['first_name', 'last_name', 'email', 'phone']
    readonly_fields = ['id', 'created_at', 'updated_at']


class AppointmentAuditInline(admin.TabularInline):
    model = AppointmentAudit
    extra = 0
    can_delete = False
    fields = ['changed_at', 'action', 'old_status', 'new_status', 'changed_by_name', 'reason']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['appointment_number', 'appointment_date', 'appointment_time', 'physician_name', 'patient', 'status']
    list_filter = ['status', 'appointment_type', 'urgency_level', 'appointment_date']
    search_fields = ['appointment_number', 'physician_name', 'patient__first_name', 'patient__last_name']
    readonly_fields = [
        'id', 'appointment_number', 'status', 'physician_name',
        'rescheduled_from', 'rescheduled_to', 'cancelled_at', 'cancelled_by',
        'created_by', 'updated_by', 'created_at', 'updated_at',
    ]
    autocomplete_fields = ['patient', 'physician']
    inlines = [AppointmentAuditInline]

    fieldsets = (
        ('Booking', {
            'fields': ('id', 'appointment_number', 'patient', 'physician', 'physician_name', 'status')
        }),
        ('Schedule', {
            'fields': ('appointment_date', 'appointment_time', 'duration_minutes', 'appointment_type', 'urgency_level')
        }),
        ('Location', {
            'fields': ('department_name', 'specialty', 'consultation_room')
        }),
        ('Clinical', {
            'fields': ('chief_complaint', 'notes')
        }),
        ('Cancellation', {
            'fields': ('cancellation_reason', 'cancelled_at', 'cancelled_by', 'rescheduled_from', 'rescheduled_to')
        }),
        ('Audit', {
            'fields': ('created_by', 'updated_by', 'created_at', 'updated_at')
        }),
    )

    def has_delete_permission(self, request, obj=None):
        # Appointments are cancelled, never deleted
        return False


@admin.register(AppointmentAudit)
class AppointmentAuditAdmin(admin.ModelAdmin):
    list_display = ['changed_at', 'action', 'appointment', 'old_status', 'new_status', 'changed_by_name']
    list_filter = ['action', 'changed_at']
    search_fields = ['appointment__appointment_number', 'changed_by_name']
    readonly_fields = [
        'appointment', 'action', 'old_status', 'new_status', 'old_date', 'new_date',
        'old_time', 'new_time', 'reason', 'notes', 'changed_by', 'changed_by_name', 'changed_at',
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Vitals)
class VitalsAdmin(admin.ModelAdmin):
    list_display = ['appointment', 'recorded_at', 'recorded_by_name', 'is_critical']
    list_filter = ['is_critical', 'recorded_at']
    search_fields = ['appointment__appointment_number']
    readonly_fields = ['id', 'bmi', 'bmi_status', 'recorded_at']


@admin.register(AppointmentExamination)
class AppointmentExaminationAdmin(admin.ModelAdmin):
    list_display = ['appointment', 'primary_diagnosis_icd10', 'examined_by_name', 'examined_at']
    search_fields = ['appointment__appointment_number', 'primary_diagnosis_icd10']
    readonly_fields = ['id', 'examined_at', 'created_at', 'updated_at']
