"""
Tests for the appointment HTTP endpoints: status codes, error bodies and
role permissions.
"""
import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.clinical import services
from apps.clinical.models import Appointment, AppointmentStatusChoices as S, Vitals

BASE_URL = '/api/v1/clinical/appointments/'


def booking_payload(patient, doctor, **overrides):
    payload = {
        'patient_id': str(patient.id),
        'physician_id': str(doctor.id),
        'appointment_date': '2024-06-01',
        'appointment_time': '09:00',
        'chief_complaint': 'Cough',
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestAppointmentCreateAPI:

    def test_reception_books_appointment(self, reception_client, patient, doctor):
        response = reception_client.post(BASE_URL, booking_payload(patient, doctor), format='json')

        assert response.status_code == 201
        body = response.json()
        assert body['appointment_number'] == 'APT-20240601-00001'
        assert body['status'] == S.CONFIRMED
        assert body['physician_name'] == 'Dr. Grace Hopper'
        assert body['patient_name'] == 'Ada Lovelace'

    def test_same_day_booking_conflicts(self, reception_client, patient, doctor):
        reception_client.post(BASE_URL, booking_payload(patient, doctor), format='json')

        response = reception_client.post(
            BASE_URL, booking_payload(patient, doctor, appointment_time='15:00'), format='json'
        )

        assert response.status_code == 409
        assert 'error' in response.json()

    def test_unknown_patient_is_404(self, reception_client, patient, doctor):
        payload = booking_payload(patient, doctor, patient_id=str(uuid.uuid4()))

        response = reception_client.post(BASE_URL, payload, format='json')

        assert response.status_code == 404

    def test_missing_fields_are_400(self, reception_client):
        response = reception_client.post(BASE_URL, {}, format='json')

        assert response.status_code == 400
        assert 'patient_id' in response.json()

    def test_nurse_cannot_book(self, nurse_client, patient, doctor):
        response = nurse_client.post(BASE_URL, booking_payload(patient, doctor), format='json')

        assert response.status_code == 403

    def test_role_less_user_is_forbidden(self, no_role_client):
        assert no_role_client.get(BASE_URL).status_code == 403

    def test_anonymous_is_unauthorized(self, api_client):
        assert api_client.get(BASE_URL).status_code == 401


@pytest.mark.django_db
class TestAppointmentReadAPI:

    def test_list_and_filters(self, nurse_client, appointment, other_patient, doctor, actor):
        services.create_appointment(
            patient_id=other_patient.id,
            physician_id=doctor.id,
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.appointment_time.replace(hour=10),
            actor=actor,
        )

        everything = nurse_client.get(BASE_URL).json()
        for_patient = nurse_client.get(BASE_URL, {'patient_id': str(other_patient.id)}).json()
        cancelled = nurse_client.get(BASE_URL, {'status': S.CANCELLED}).json()

        assert everything['count'] == 2
        assert for_patient['count'] == 1
        assert cancelled['count'] == 0

    def test_retrieve(self, nurse_client, appointment):
        response = nurse_client.get(f'{BASE_URL}{appointment.id}/')

        assert response.status_code == 200
        assert response.json()['id'] == str(appointment.id)

    def test_retrieve_unknown_is_404(self, nurse_client):
        response = nurse_client.get(f'{BASE_URL}{uuid.uuid4()}/')

        assert response.status_code == 404
        assert 'error' in response.json()

    def test_malformed_id_is_404(self, nurse_client):
        assert nurse_client.get(f'{BASE_URL}not-a-uuid/').status_code == 404
        assert nurse_client.get(f'{BASE_URL}not-a-uuid/audit/').status_code == 404
        assert nurse_client.post(
            f'{BASE_URL}not-a-uuid/status/', {'status': S.WAITING}, format='json'
        ).status_code == 404

    def test_partial_update(self, reception_client, appointment):
        response = reception_client.patch(
            f'{BASE_URL}{appointment.id}/', {'consultation_room': 'B7'}, format='json'
        )

        assert response.status_code == 200
        assert response.json()['consultation_room'] == 'B7'

    def test_search_by_patient_name_phone_or_number(self, nurse_client, appointment, other_patient, doctor, actor):
        other_patient.phone = '+1 555 0101'
        other_patient.save()
        services.create_appointment(
            patient_id=other_patient.id,
            physician_id=doctor.id,
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.appointment_time.replace(hour=10),
            actor=actor,
        )

        by_name = nurse_client.get(BASE_URL, {'search': 'lovelace'}).json()
        by_phone = nurse_client.get(BASE_URL, {'search': '555 0101'}).json()
        by_number = nurse_client.get(BASE_URL, {'search': appointment.appointment_number}).json()
        no_match = nurse_client.get(BASE_URL, {'search': 'Turing'}).json()

        assert [a['id'] for a in by_name['results']] == [str(appointment.id)]
        assert [a['patient_name'] for a in by_phone['results']] == ['Charles Babbage']
        assert [a['id'] for a in by_number['results']] == [str(appointment.id)]
        assert no_match['count'] == 0

    def test_detail_includes_patient_vitals_and_examination(self, nurse_client, appointment, actor):
        older = services.record_vitals(appointment.id, {'heart_rate': 70}, actor)
        newer = services.record_vitals(appointment.id, {'heart_rate': 80}, actor)
        Vitals.objects.filter(pk=older.pk).update(recorded_at=timezone.now() - timedelta(hours=1))
        services.record_examination(appointment.id, {'primary_diagnosis': 'Bronchitis'}, actor)

        body = nurse_client.get(f'{BASE_URL}{appointment.id}/').json()

        assert body['patient']['id'] == str(appointment.patient_id)
        assert body['patient']['name'] == 'Ada Lovelace'
        assert body['patient']['birth_date'] == '1985-12-10'
        assert [v['id'] for v in body['vitals']] == [str(newer.id), str(older.id)]
        assert body['examination']['primary_diagnosis'] == 'Bronchitis'

    def test_detail_without_clinical_records(self, nurse_client, appointment):
        body = nurse_client.get(f'{BASE_URL}{appointment.id}/').json()

        assert body['vitals'] == []
        assert body['examination'] is None


@pytest.mark.django_db
class TestAppointmentLifecycleAPI:

    def test_status_transition(self, nurse_client, appointment):
        response = nurse_client.post(
            f'{BASE_URL}{appointment.id}/status/', {'status': S.WAITING}, format='json'
        )

        assert response.status_code == 200
        assert response.json()['status'] == S.WAITING

    def test_invalid_transition_is_400_naming_both_states(self, nurse_client, appointment):
        response = nurse_client.post(
            f'{BASE_URL}{appointment.id}/status/', {'status': S.COMPLETED}, format='json'
        )

        assert response.status_code == 400
        assert response.json()['error'] == 'Invalid status transition: CONFIRMED -> COMPLETED'

    def test_missing_status_is_400(self, nurse_client, appointment):
        response = nurse_client.post(f'{BASE_URL}{appointment.id}/status/', {}, format='json')

        assert response.status_code == 400
        assert 'status' in response.json()['errors']

    def test_cancel_action(self, reception_client, appointment):
        response = reception_client.post(
            f'{BASE_URL}{appointment.id}/cancel/', {'reason': 'Weather'}, format='json'
        )

        assert response.status_code == 200
        assert response.json()['status'] == S.CANCELLED
        assert response.json()['cancellation_reason'] == 'Weather'

    def test_delete_cancels_instead_of_removing(self, reception_client, appointment):
        response = reception_client.delete(f'{BASE_URL}{appointment.id}/')

        assert response.status_code == 204
        appointment.refresh_from_db()
        assert appointment.status == S.CANCELLED

    def test_reschedule_returns_new_appointment(self, reception_client, appointment):
        response = reception_client.post(
            f'{BASE_URL}{appointment.id}/reschedule/',
            {'new_date': '2024-06-05', 'new_time': '11:30', 'reason': 'Clash'},
            format='json',
        )

        assert response.status_code == 201
        body = response.json()
        assert body['rescheduled_from_id'] == str(appointment.id)
        assert body['appointment_date'] == '2024-06-05'
        assert body['appointment_time'] == '11:30:00'
        assert Appointment.objects.get(pk=appointment.pk).status == S.CANCELLED

    def test_reschedule_terminal_is_400(self, reception_client, appointment):
        Appointment.objects.filter(pk=appointment.pk).update(status=S.COMPLETED)

        response = reception_client.post(
            f'{BASE_URL}{appointment.id}/reschedule/',
            {'new_date': '2024-06-05', 'new_time': '11:30'},
            format='json',
        )

        assert response.status_code == 400

    def test_audit_trail(self, nurse_client, appointment):
        nurse_client.post(f'{BASE_URL}{appointment.id}/status/', {'status': S.WAITING}, format='json')

        response = nurse_client.get(f'{BASE_URL}{appointment.id}/audit/')

        assert response.status_code == 200
        assert [e['action'] for e in response.json()] == ['STATUS_CHANGED', 'CREATED']

    def test_audit_of_unknown_appointment_is_404(self, nurse_client):
        assert nurse_client.get(f'{BASE_URL}{uuid.uuid4()}/audit/').status_code == 404


@pytest.mark.django_db
class TestClinicalRecordsAPI:

    def test_nurse_records_vitals(self, nurse_client, appointment):
        response = nurse_client.post(
            f'{BASE_URL}{appointment.id}/vitals/',
            {'heart_rate': 72, 'weight_kg': 70, 'height_cm': 175},
            format='json',
        )

        assert response.status_code == 201
        assert response.json()['bmi'] == 22.86

        listing = nurse_client.get(f'{BASE_URL}{appointment.id}/vitals/')
        assert len(listing.json()) == 1

    def test_out_of_range_vitals_are_400_with_field_map(self, nurse_client, appointment):
        response = nurse_client.post(
            f'{BASE_URL}{appointment.id}/vitals/', {'heart_rate': 900}, format='json'
        )

        assert response.status_code == 400
        assert 'heart_rate' in response.json()['errors']

    def test_reception_cannot_record_vitals(self, reception_client, appointment):
        response = reception_client.post(
            f'{BASE_URL}{appointment.id}/vitals/', {'heart_rate': 72}, format='json'
        )

        assert response.status_code == 403

    def test_examination_upsert(self, practitioner_client, appointment):
        url = f'{BASE_URL}{appointment.id}/examination/'

        first = practitioner_client.post(url, {'primary_diagnosis': 'Bronchitis'}, format='json')
        second = practitioner_client.post(url, {'advice': 'Rest'}, format='json')
        fetched = practitioner_client.get(url)

        assert first.status_code == 201
        assert second.status_code == 200
        assert fetched.json()['primary_diagnosis'] == 'Bronchitis'
        assert fetched.json()['advice'] == 'Rest'

    def test_missing_examination_is_404(self, practitioner_client, appointment):
        assert practitioner_client.get(f'{BASE_URL}{appointment.id}/examination/').status_code == 404

    def test_nurse_cannot_write_examination(self, nurse_client, appointment):
        response = nurse_client.post(
            f'{BASE_URL}{appointment.id}/examination/', {'advice': 'Rest'}, format='json'
        )

        assert response.status_code == 403
