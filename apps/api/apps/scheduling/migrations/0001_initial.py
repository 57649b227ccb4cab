# Initial schema for doctor schedules and schedule overrides

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('authz', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DoctorSchedule',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('day_of_week', models.PositiveSmallIntegerField(choices=[(1, 'Monday'), (2, 'Tuesday'), (3, 'Wednesday'), (4, 'Thursday'), (5, 'Friday'), (6, 'Saturday'), (7, 'Sunday')])),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('slot_duration_minutes', models.PositiveIntegerField(default=30)),
                ('buffer_time_minutes', models.PositiveIntegerField(default=5)),
                ('max_appointments_per_slot', models.PositiveIntegerField(default=1)),
                ('is_available', models.BooleanField(default=True)),
                ('effective_from', models.DateField()),
                ('effective_to', models.DateField(blank=True, null=True)),
                ('location', models.CharField(blank=True, default='', max_length=255)),
                ('room_number', models.CharField(blank=True, default='', max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to='authz.practitioner')),
            ],
            options={
                'verbose_name': 'Doctor Schedule',
                'verbose_name_plural': 'Doctor Schedules',
                'db_table': 'doctor_schedule',
                'ordering': ['day_of_week', 'start_time'],
                'indexes': [
                    models.Index(fields=['doctor', 'day_of_week'], name='idx_schedule_doctor_day'),
                    models.Index(fields=['is_available'], name='idx_schedule_available'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ScheduleOverride',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('override_date', models.DateField()),
                ('override_type', models.CharField(choices=[('UNAVAILABLE', 'Unavailable'), ('CUSTOM_HOURS', 'Custom Hours'), ('BREAK', 'Break')], max_length=20)),
                ('start_time', models.TimeField(blank=True, null=True)),
                ('end_time', models.TimeField(blank=True, null=True)),
                ('reason', models.CharField(blank=True, default='', max_length=255)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_schedule_overrides', to=settings.AUTH_USER_MODEL)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedule_overrides', to='authz.practitioner')),
            ],
            options={
                'verbose_name': 'Schedule Override',
                'verbose_name_plural': 'Schedule Overrides',
                'db_table': 'schedule_override',
                'ordering': ['override_date'],
                'constraints': [
                    models.UniqueConstraint(fields=('doctor', 'override_date'), name='uniq_override_doctor_date'),
                ],
            },
        ),
    ]
