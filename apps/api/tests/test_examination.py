"""
Tests for the single examination record per appointment.
"""
import logging
import uuid

import pytest

from apps.clinical import services
from apps.clinical.models import Appointment, AppointmentExamination, AppointmentStatusChoices as S
from apps.core.exceptions import DomainValidationError, NotFoundError


@pytest.mark.django_db
class TestRecordExamination:

    def test_first_call_creates(self, appointment, actor):
        examination, created = services.record_examination(
            appointment.id,
            {'primary_diagnosis': 'Migraine', 'primary_diagnosis_icd10': 'G43.9'},
            actor,
        )

        assert created is True
        assert examination.primary_diagnosis_icd10 == 'G43.9'
        assert examination.examined_by_name == actor.display_name
        assert examination.examined_at is not None

    def test_second_call_updates_in_place(self, appointment, actor):
        services.record_examination(appointment.id, {'primary_diagnosis': 'Migraine'}, actor)

        examination, created = services.record_examination(
            appointment.id, {'treatment_plan': 'Rest and fluids'}, actor
        )

        assert created is False
        assert examination.primary_diagnosis == 'Migraine'
        assert examination.treatment_plan == 'Rest and fluids'
        assert AppointmentExamination.objects.filter(appointment=appointment).count() == 1

    @pytest.mark.parametrize('terminal', [S.COMPLETED, S.CANCELLED, S.NO_SHOW])
    def test_terminal_appointment_rejects_examination(self, appointment, actor, terminal):
        Appointment.objects.filter(pk=appointment.pk).update(status=terminal)

        with pytest.raises(DomainValidationError):
            services.record_examination(appointment.id, {'advice': 'Hydrate'}, actor)

    def test_get_examination(self, appointment, actor):
        with pytest.raises(NotFoundError):
            services.get_examination(appointment.id)

        recorded, _ = services.record_examination(appointment.id, {'advice': 'Hydrate'}, actor)

        assert services.get_examination(appointment.id) == recorded

    def test_unknown_appointment(self, actor):
        with pytest.raises(NotFoundError):
            services.record_examination(uuid.uuid4(), {'advice': 'Hydrate'}, actor)

    def test_recording_logs_event(self, appointment, actor, caplog):
        with caplog.at_level(logging.INFO, logger='apps.clinical.services'):
            first, _ = services.record_examination(appointment.id, {'advice': 'Hydrate'}, actor)
            services.record_examination(appointment.id, {'advice': 'Sleep'}, actor)

        events = [r for r in caplog.records if getattr(r, 'event', None) == 'examination_recorded']
        assert [r.examination_created for r in events] == [True, False]
        assert events[0].examination_id == str(first.id)

    def test_malformed_appointment_id_is_not_found(self, actor):
        with pytest.raises(NotFoundError):
            services.record_examination('not-a-uuid', {'advice': 'Hydrate'}, actor)
