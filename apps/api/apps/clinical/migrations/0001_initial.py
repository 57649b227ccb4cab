# Initial schema for patients, appointments, audit and clinical sub-records

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('authz', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('birth_date', models.DateField(blank=True, null=True)),
                ('sex', models.CharField(blank=True, choices=[('female', 'Female'), ('male', 'Male'), ('other', 'Other'), ('unknown', 'Unknown')], max_length=20, null=True)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('phone', models.CharField(blank=True, max_length=50, null=True)),
                ('is_deleted', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Patient',
                'verbose_name_plural': 'Patients',
                'db_table': 'patient',
                'indexes': [
                    models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
                    models.Index(fields=['is_deleted'], name='idx_patient_deleted'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentNumberSequence',
            fields=[
                ('sequence_date', models.DateField(primary_key=True, serialize=False)),
                ('last_value', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'Appointment Number Sequence',
                'verbose_name_plural': 'Appointment Number Sequences',
                'db_table': 'appointment_number_sequence',
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('appointment_number', models.CharField(editable=False, max_length=50, unique=True)),
                ('physician_name', models.CharField(blank=True, default='', max_length=255)),
                ('appointment_type', models.CharField(choices=[('OPD', 'Outpatient'), ('FOLLOW_UP', 'Follow-up'), ('EMERGENCY', 'Emergency'), ('TELECONSULTATION', 'Teleconsultation')], default='OPD', max_length=30)),
                ('appointment_date', models.DateField()),
                ('appointment_time', models.TimeField()),
                ('duration_minutes', models.PositiveIntegerField(default=30)),
                ('department_name', models.CharField(blank=True, default='', max_length=100)),
                ('specialty', models.CharField(blank=True, default='', max_length=100)),
                ('consultation_room', models.CharField(blank=True, default='', max_length=50)),
                ('urgency_level', models.CharField(choices=[('NORMAL', 'Normal'), ('URGENT', 'Urgent'), ('EMERGENCY', 'Emergency')], default='NORMAL', max_length=20)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('CONFIRMED', 'Confirmed'), ('WAITING', 'Waiting'), ('IN_CONSULTATION', 'In Consultation'), ('TO_INVOICE', 'To Invoice'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled'), ('NO_SHOW', 'No Show')], default='DRAFT', max_length=20)),
                ('chief_complaint', models.TextField(blank=True, default='')),
                ('notes', models.TextField(blank=True, default='')),
                ('cancellation_reason', models.TextField(blank=True, default='')),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.CharField(blank=True, default='', max_length=255)),
                ('updated_by', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='cancelled_appointments', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='clinical.patient')),
                ('physician', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='authz.practitioner')),
                ('rescheduled_from', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='clinical.appointment')),
                ('rescheduled_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='clinical.appointment')),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'db_table': 'appointment',
                'ordering': ['appointment_date', 'appointment_time'],
                'indexes': [
                    models.Index(fields=['physician', 'appointment_date'], name='idx_appointment_physician_day'),
                    models.Index(fields=['patient', 'appointment_date'], name='idx_appointment_patient_day'),
                    models.Index(fields=['appointment_date'], name='idx_appointment_date'),
                    models.Index(fields=['status'], name='idx_appointment_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentAudit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('CREATED', 'Created'), ('UPDATED', 'Updated'), ('STATUS_CHANGED', 'Status Changed'), ('RESCHEDULED', 'Rescheduled'), ('CANCELLED', 'Cancelled'), ('COMPLETED', 'Completed')], max_length=20)),
                ('old_status', models.CharField(blank=True, default='', max_length=20)),
                ('new_status', models.CharField(blank=True, default='', max_length=20)),
                ('old_date', models.DateField(blank=True, null=True)),
                ('new_date', models.DateField(blank=True, null=True)),
                ('old_time', models.TimeField(blank=True, null=True)),
                ('new_time', models.TimeField(blank=True, null=True)),
                ('reason', models.TextField(blank=True, default='')),
                ('notes', models.TextField(blank=True, default='')),
                ('changed_by_name', models.CharField(blank=True, default='', max_length=255)),
                ('changed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('appointment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='audit_events', to='clinical.appointment')),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointment_audit_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Appointment Audit',
                'verbose_name_plural': 'Appointment Audits',
                'db_table': 'appointment_audit',
                'ordering': ['-changed_at', '-id'],
                'indexes': [
                    models.Index(fields=['appointment', 'changed_at'], name='idx_appt_audit_appt_time'),
                    models.Index(fields=['changed_by'], name='idx_appt_audit_actor'),
                    models.Index(fields=['action'], name='idx_appt_audit_action'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Vitals',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('weight_kg', models.FloatField(blank=True, null=True)),
                ('height_cm', models.FloatField(blank=True, null=True)),
                ('head_circumference_cm', models.FloatField(blank=True, null=True)),
                ('bmi', models.FloatField(blank=True, null=True)),
                ('bmi_status', models.CharField(blank=True, choices=[('UNDERWEIGHT', 'Underweight'), ('NORMAL', 'Normal'), ('OVERWEIGHT', 'Overweight'), ('OBESE', 'Obese')], default='', max_length=20)),
                ('temperature', models.FloatField(blank=True, null=True)),
                ('temperature_unit', models.CharField(choices=[('F', 'Fahrenheit'), ('C', 'Celsius')], default='F', max_length=1)),
                ('heart_rate', models.IntegerField(blank=True, null=True)),
                ('respiratory_rate', models.IntegerField(blank=True, null=True)),
                ('systolic_bp', models.IntegerField(blank=True, null=True)),
                ('diastolic_bp', models.IntegerField(blank=True, null=True)),
                ('spo2', models.IntegerField(blank=True, null=True)),
                ('blood_sugar', models.FloatField(blank=True, null=True)),
                ('pain_score', models.IntegerField(blank=True, null=True)),
                ('is_critical', models.BooleanField(default=False)),
                ('notes', models.TextField(blank=True, default='')),
                ('recorded_by_name', models.CharField(blank=True, default='', max_length=255)),
                ('recorded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('appointment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vitals', to='clinical.appointment')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='recorded_vitals', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Vitals',
                'verbose_name_plural': 'Vitals',
                'db_table': 'vitals',
                'ordering': ['-recorded_at'],
                'indexes': [
                    models.Index(fields=['appointment', 'recorded_at'], name='idx_vitals_appt_time'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentExamination',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('chief_complaint', models.TextField(blank=True, default='')),
                ('history_present_illness', models.TextField(blank=True, default='')),
                ('symptoms', models.TextField(blank=True, default='')),
                ('general_appearance', models.TextField(blank=True, default='')),
                ('cardiovascular_system', models.TextField(blank=True, default='')),
                ('respiratory_system', models.TextField(blank=True, default='')),
                ('gastrointestinal_system', models.TextField(blank=True, default='')),
                ('central_nervous_system', models.TextField(blank=True, default='')),
                ('musculoskeletal_system', models.TextField(blank=True, default='')),
                ('examination_findings', models.TextField(blank=True, default='')),
                ('vitals_reviewed', models.BooleanField(default=True)),
                ('primary_diagnosis', models.TextField(blank=True, default='')),
                ('primary_diagnosis_icd10', models.CharField(blank=True, default='', max_length=20)),
                ('differential_diagnosis', models.TextField(blank=True, default='')),
                ('treatment_plan', models.TextField(blank=True, default='')),
                ('advice', models.TextField(blank=True, default='')),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('follow_up_instructions', models.TextField(blank=True, default='')),
                ('medical_history_reviewed', models.BooleanField(default=True)),
                ('medical_history_updated', models.BooleanField(default=False)),
                ('medical_history_update_notes', models.TextField(blank=True, default='')),
                ('examined_by_name', models.CharField(blank=True, default='', max_length=255)),
                ('examined_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='examination', to='clinical.appointment')),
                ('examined_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='examinations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Appointment Examination',
                'verbose_name_plural': 'Appointment Examinations',
                'db_table': 'appointment_examination',
            },
        ),
    ]
