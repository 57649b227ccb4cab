"""
Tests for cancellation and rescheduling.

Rescheduling cancels the original and books a linked CONFIRMED copy; the
two rows point at each other through rescheduled_to / rescheduled_from.
"""
from datetime import date, time
import uuid

import pytest

from apps.clinical import services
from apps.clinical.models import (
    Appointment,
    AppointmentAudit,
    AppointmentStatusChoices as S,
    AuditActionChoices,
)
from apps.core.exceptions import ConflictError, InvalidTransitionError, NotFoundError

NEW_DATE = date(2024, 6, 5)
NEW_TIME = time(14, 30)


def force_status(appointment, status):
    Appointment.objects.filter(pk=appointment.pk).update(status=status)


def actions_for(appointment):
    return sorted(
        AppointmentAudit.objects.filter(appointment=appointment).values_list('action', flat=True)
    )


@pytest.mark.django_db
class TestCancelAppointment:

    def test_cancel_with_reason(self, appointment, actor):
        cancelled = services.cancel_appointment(appointment.id, actor, reason='Patient travelling')

        assert cancelled.status == S.CANCELLED
        assert cancelled.cancellation_reason == 'Patient travelling'
        assert cancelled.cancelled_at is not None
        assert cancelled.cancelled_by_id == actor.user_id

    def test_reason_is_optional(self, appointment, actor):
        cancelled = services.cancel_appointment(appointment.id, actor)

        assert cancelled.status == S.CANCELLED
        assert cancelled.cancellation_reason == ''

    def test_cancel_writes_cancelled_and_status_rows(self, appointment, actor):
        services.cancel_appointment(appointment.id, actor, reason='Sick')

        assert actions_for(appointment) == [
            AuditActionChoices.CANCELLED,
            AuditActionChoices.CREATED,
            AuditActionChoices.STATUS_CHANGED,
        ]
        status_row = AppointmentAudit.objects.get(
            appointment=appointment, action=AuditActionChoices.STATUS_CHANGED
        )
        assert (status_row.old_status, status_row.new_status) == (S.CONFIRMED, S.CANCELLED)
        assert status_row.reason == 'Sick'

    def test_cancelling_twice_changes_nothing(self, appointment, actor):
        services.cancel_appointment(appointment.id, actor, reason='First')
        before = AppointmentAudit.objects.count()

        again = services.cancel_appointment(appointment.id, actor, reason='Second')

        assert again.cancellation_reason == 'First'
        assert AppointmentAudit.objects.count() == before

    def test_cancel_bypasses_transition_table(self, appointment, actor):
        force_status(appointment, S.COMPLETED)

        cancelled = services.cancel_appointment(appointment.id, actor)

        assert cancelled.status == S.CANCELLED

    def test_unknown_appointment(self, actor):
        with pytest.raises(NotFoundError):
            services.cancel_appointment(uuid.uuid4(), actor)


@pytest.mark.django_db
class TestRescheduleAppointment:

    def test_reschedule_links_both_rows(self, appointment, actor):
        replacement = services.reschedule_appointment(
            appointment.id, NEW_DATE, NEW_TIME, actor, reason='Doctor in surgery'
        )
        appointment.refresh_from_db()

        assert appointment.status == S.CANCELLED
        assert appointment.rescheduled_to_id == replacement.id
        assert replacement.status == S.CONFIRMED
        assert replacement.rescheduled_from_id == appointment.id
        assert (replacement.appointment_date, replacement.appointment_time) == (NEW_DATE, NEW_TIME)

    def test_original_keeps_its_slot_and_gets_reason(self, appointment, actor):
        services.reschedule_appointment(appointment.id, NEW_DATE, NEW_TIME, actor)
        appointment.refresh_from_db()

        assert appointment.appointment_date == date(2024, 6, 3)
        assert appointment.appointment_time == time(9, 0)
        assert appointment.cancellation_reason == 'Rescheduled to 2024-06-05 14:30'

    def test_replacement_copies_details(self, patient, doctor, actor):
        original = services.create_appointment(
            patient_id=patient.id,
            physician_id=doctor.id,
            appointment_date=date(2024, 6, 3),
            appointment_time=time(9, 0),
            actor=actor,
            duration_minutes=45,
            department_name='Cardiology',
            consultation_room='C1',
            chief_complaint='Chest pain',
            notes='Bring ECG',
        )

        replacement = services.reschedule_appointment(
            original.id, NEW_DATE, NEW_TIME, actor, reason='Clash'
        )

        assert replacement.patient_id == patient.id
        assert replacement.physician_id == doctor.id
        assert replacement.duration_minutes == 45
        assert replacement.department_name == 'Cardiology'
        assert replacement.consultation_room == 'C1'
        assert replacement.chief_complaint == 'Chest pain'
        assert replacement.notes == 'Bring ECG\nRescheduled: Clash'
        assert replacement.appointment_number == 'APT-20240605-00001'

    def test_reason_note_without_previous_notes(self, appointment, actor):
        replacement = services.reschedule_appointment(
            appointment.id, NEW_DATE, NEW_TIME, actor, reason='Clash'
        )

        assert replacement.notes == 'Rescheduled: Clash'

    def test_reschedule_audit_rows(self, appointment, actor):
        replacement = services.reschedule_appointment(
            appointment.id, NEW_DATE, NEW_TIME, actor, reason='Clash'
        )

        event = AppointmentAudit.objects.get(appointment=appointment, action=AuditActionChoices.RESCHEDULED)
        assert (event.old_status, event.new_status) == (S.CONFIRMED, S.CANCELLED)
        assert (event.old_date, event.old_time) == (date(2024, 6, 3), time(9, 0))
        assert (event.new_date, event.new_time) == (NEW_DATE, NEW_TIME)
        assert event.reason == 'Clash'
        assert actions_for(replacement) == [AuditActionChoices.CREATED]

    def test_same_day_reschedule_is_not_a_conflict(self, appointment, actor):
        replacement = services.reschedule_appointment(appointment.id, date(2024, 6, 3), time(15, 0), actor)

        assert replacement.appointment_date == date(2024, 6, 3)

    def test_target_day_conflict(self, appointment, patient, doctor, actor):
        services.create_appointment(
            patient_id=patient.id,
            physician_id=doctor.id,
            appointment_date=NEW_DATE,
            appointment_time=time(8, 0),
            actor=actor,
        )

        with pytest.raises(ConflictError):
            services.reschedule_appointment(appointment.id, NEW_DATE, NEW_TIME, actor)

        appointment.refresh_from_db()
        assert appointment.status == S.CONFIRMED
        assert appointment.rescheduled_to_id is None

    @pytest.mark.parametrize('terminal', [S.COMPLETED, S.CANCELLED, S.NO_SHOW])
    def test_terminal_appointment_cannot_be_rescheduled(self, appointment, actor, terminal):
        force_status(appointment, terminal)

        with pytest.raises(InvalidTransitionError):
            services.reschedule_appointment(appointment.id, NEW_DATE, NEW_TIME, actor)

        assert Appointment.objects.count() == 1

    def test_unknown_appointment(self, actor):
        with pytest.raises(NotFoundError):
            services.reschedule_appointment(uuid.uuid4(), NEW_DATE, NEW_TIME, actor)
