"""
Tests for the availability engine.

Coverage:
1. Slot generation arithmetic (duration, buffer, inclusive end boundary)
2. Active-schedule rule (weekday, availability flag, effective range)
3. Override precedence: UNAVAILABLE, CUSTOM_HOURS, BREAK
4. Booking filter (half-open overlap, released statuses)
5. Slot check, date range and next-slot search
"""
from datetime import date, time

import pytest
from django.test import override_settings

from apps.clinical import services as clinical_services
from apps.clinical.models import AppointmentStatusChoices
from apps.scheduling import availability
from apps.scheduling.availability import REASON_BOOKED, REASON_BREAK, Slot, generate_slots
from apps.scheduling.models import DoctorSchedule, OverrideTypeChoices, ScheduleOverride

MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)


def make_schedule(doctor, **overrides):
    fields = {
        'doctor': doctor,
        'day_of_week': 1,
        'start_time': time(9, 0),
        'end_time': time(10, 0),
        'slot_duration_minutes': 30,
        'buffer_time_minutes': 0,
        'effective_from': date(2024, 1, 1),
    }
    fields.update(overrides)
    return DoctorSchedule.objects.create(**fields)


def starts(slots):
    return [slot.start_time for slot in slots]


class TestGenerateSlots:
    """Pure slot arithmetic, no database."""

    def test_buffer_is_added_between_slots(self):
        slots = generate_slots(MONDAY, time(9, 0), time(12, 0), 30, 5)

        assert starts(slots) == [time(9, 0), time(9, 35), time(10, 10), time(10, 45), time(11, 20)]
        assert all(slot.end_time <= time(12, 0) for slot in slots)

    def test_no_buffer_tiles_the_window(self):
        slots = generate_slots(MONDAY, time(9, 0), time(11, 0), 30, 0)

        assert starts(slots) == [time(9, 0), time(9, 30), time(10, 0), time(10, 30)]
        assert slots[-1].end_time == time(11, 0)

    def test_slot_ending_exactly_at_end_is_included(self):
        slots = generate_slots(MONDAY, time(9, 0), time(10, 0), 60, 10)

        assert len(slots) == 1
        assert slots[0].end_time == time(10, 0)

    def test_window_shorter_than_duration_yields_nothing(self):
        assert generate_slots(MONDAY, time(9, 0), time(9, 20), 30, 5) == []

    def test_slots_carry_date_and_start_available(self):
        slot = generate_slots(MONDAY, time(9, 0), time(9, 30), 30, 0)[0]

        assert slot == Slot(date=MONDAY, start_time=time(9, 0), end_time=time(9, 30))
        assert slot.is_available is True
        assert slot.reason == ''
        assert slot.available_slots == 1

    def test_non_positive_duration_is_rejected(self):
        with pytest.raises(ValueError):
            generate_slots(MONDAY, time(9, 0), time(10, 0), 0, 5)

    def test_overlap_is_half_open(self):
        slot = Slot(date=MONDAY, start_time=time(9, 0), end_time=time(9, 30))

        assert slot.overlaps(time(9, 15), time(9, 45))
        assert slot.overlaps(time(8, 45), time(9, 1))
        assert not slot.overlaps(time(9, 30), time(10, 0))
        assert not slot.overlaps(time(8, 30), time(9, 0))


@pytest.mark.django_db
class TestScheduleSlots:

    def test_monday_schedule_gives_two_free_slots(self, doctor):
        make_schedule(doctor)

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert [(s.start_time, s.end_time) for s in slots] == [
            (time(9, 0), time(9, 30)),
            (time(9, 30), time(10, 0)),
        ]
        assert all(s.is_available for s in slots)

    def test_other_weekday_has_no_slots(self, doctor):
        make_schedule(doctor)

        assert availability.get_available_slots(doctor.id, TUESDAY) == []

    def test_no_schedule_has_no_slots(self, doctor):
        assert availability.get_available_slots(doctor.id, MONDAY) == []

    def test_unavailable_schedule_is_ignored(self, doctor):
        make_schedule(doctor, is_available=False)

        assert availability.get_available_slots(doctor.id, MONDAY) == []

    def test_effective_range_is_inclusive(self, doctor):
        make_schedule(doctor, effective_from=MONDAY, effective_to=MONDAY)

        assert len(availability.get_available_slots(doctor.id, MONDAY)) == 2
        assert availability.get_available_slots(doctor.id, date(2024, 6, 10)) == []

    def test_schedule_not_yet_effective(self, doctor):
        make_schedule(doctor, effective_from=date(2024, 6, 4))

        assert availability.get_available_slots(doctor.id, MONDAY) == []

    def test_multiple_schedules_are_concatenated(self, doctor):
        make_schedule(doctor, start_time=time(14, 0), end_time=time(15, 0), slot_duration_minutes=60)
        make_schedule(doctor)

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert starts(slots) == [time(9, 0), time(9, 30), time(14, 0)]

    def test_overlapping_schedules_produce_duplicate_slots(self, doctor):
        make_schedule(doctor)
        make_schedule(doctor)

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert starts(slots) == [time(9, 0), time(9, 30), time(9, 0), time(9, 30)]

    def test_schedules_of_other_doctors_are_ignored(self, doctor, other_doctor):
        make_schedule(other_doctor)

        assert availability.get_available_slots(doctor.id, MONDAY) == []

    def test_repeated_queries_are_identical(self, doctor):
        make_schedule(doctor, end_time=time(12, 0), buffer_time_minutes=5)

        first = availability.get_available_slots(doctor.id, MONDAY)
        second = availability.get_available_slots(doctor.id, MONDAY)

        assert first == second


@pytest.mark.django_db
class TestOverridePrecedence:

    def test_unavailable_override_clears_the_day(self, doctor):
        make_schedule(doctor, end_time=time(17, 0))
        ScheduleOverride.objects.create(
            doctor=doctor, override_date=MONDAY, override_type=OverrideTypeChoices.UNAVAILABLE
        )

        assert availability.get_available_slots(doctor.id, MONDAY) == []

    def test_custom_hours_use_default_duration_and_buffer(self, doctor):
        make_schedule(doctor, slot_duration_minutes=15)
        ScheduleOverride.objects.create(
            doctor=doctor,
            override_date=MONDAY,
            override_type=OverrideTypeChoices.CUSTOM_HOURS,
            start_time=time(10, 0),
            end_time=time(12, 0),
        )

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert starts(slots) == [time(10, 0), time(10, 35), time(11, 10)]
        assert all(s.start_time >= time(10, 0) and s.end_time <= time(12, 0) for s in slots)

    def test_custom_hours_apply_without_a_weekly_schedule(self, doctor):
        ScheduleOverride.objects.create(
            doctor=doctor,
            override_date=TUESDAY,
            override_type=OverrideTypeChoices.CUSTOM_HOURS,
            start_time=time(10, 0),
            end_time=time(11, 0),
        )

        assert starts(availability.get_available_slots(doctor.id, TUESDAY)) == [time(10, 0)]

    def test_custom_hours_without_times_fall_back_to_schedule(self, doctor):
        make_schedule(doctor)
        ScheduleOverride.objects.create(
            doctor=doctor, override_date=MONDAY, override_type=OverrideTypeChoices.CUSTOM_HOURS
        )

        assert starts(availability.get_available_slots(doctor.id, MONDAY)) == [time(9, 0), time(9, 30)]

    def test_break_blocks_overlapping_slots(self, doctor):
        make_schedule(doctor, end_time=time(11, 0))
        ScheduleOverride.objects.create(
            doctor=doctor,
            override_date=MONDAY,
            override_type=OverrideTypeChoices.BREAK,
            start_time=time(9, 30),
            end_time=time(10, 0),
        )

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert [(s.start_time, s.is_available, s.reason) for s in slots] == [
            (time(9, 0), True, ''),
            (time(9, 30), False, REASON_BREAK),
            (time(10, 0), True, ''),
            (time(10, 30), True, ''),
        ]

    @override_settings(CLINIC_SCHEDULING={'APPLY_BREAK_OVERRIDES': False})
    def test_break_can_be_disabled(self, doctor):
        make_schedule(doctor)
        ScheduleOverride.objects.create(
            doctor=doctor,
            override_date=MONDAY,
            override_type=OverrideTypeChoices.BREAK,
            start_time=time(9, 0),
            end_time=time(10, 0),
        )

        assert all(s.is_available for s in availability.get_available_slots(doctor.id, MONDAY))

    def test_override_on_another_date_has_no_effect(self, doctor):
        make_schedule(doctor)
        ScheduleOverride.objects.create(
            doctor=doctor, override_date=date(2024, 6, 10), override_type=OverrideTypeChoices.UNAVAILABLE
        )

        assert len(availability.get_available_slots(doctor.id, MONDAY)) == 2


@pytest.mark.django_db
class TestBookingFilter:

    def book(self, patient, doctor, actor, at, **details):
        return clinical_services.create_appointment(
            patient_id=patient.id,
            physician_id=doctor.id,
            appointment_date=MONDAY,
            appointment_time=at,
            actor=actor,
            **details
        )

    def test_booked_slot_is_marked(self, doctor, patient, actor):
        make_schedule(doctor)
        self.book(patient, doctor, actor, time(9, 0))

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert [(s.is_available, s.reason) for s in slots] == [(False, REASON_BOOKED), (True, '')]
        assert slots[0].available_slots == 0

    def test_touching_booking_does_not_conflict(self, doctor, patient, actor):
        make_schedule(doctor)
        self.book(patient, doctor, actor, time(10, 0))

        assert all(s.is_available for s in availability.get_available_slots(doctor.id, MONDAY))

    def test_long_booking_blocks_every_overlapped_slot(self, doctor, patient, actor):
        make_schedule(doctor)
        self.book(patient, doctor, actor, time(9, 15), duration_minutes=20)

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert [s.is_available for s in slots] == [False, False]

    def test_cancelled_booking_releases_slot(self, doctor, patient, actor):
        make_schedule(doctor)
        appointment = self.book(patient, doctor, actor, time(9, 0))
        clinical_services.cancel_appointment(appointment.id, actor)

        assert all(s.is_available for s in availability.get_available_slots(doctor.id, MONDAY))

    def test_no_show_booking_releases_slot(self, doctor, patient, actor):
        make_schedule(doctor)
        appointment = self.book(patient, doctor, actor, time(9, 0))
        clinical_services.update_appointment_status(
            appointment.id, AppointmentStatusChoices.NO_SHOW, actor
        )

        assert all(s.is_available for s in availability.get_available_slots(doctor.id, MONDAY))

    @override_settings(CLINIC_SCHEDULING={'RELEASE_CANCELLED_SLOTS': False})
    def test_cancelled_booking_can_keep_slot_blocked(self, doctor, patient, actor):
        make_schedule(doctor)
        appointment = self.book(patient, doctor, actor, time(9, 0))
        clinical_services.cancel_appointment(appointment.id, actor)

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert slots[0].is_available is False

    def test_other_doctors_bookings_are_ignored(self, doctor, other_doctor, patient, actor):
        make_schedule(doctor)
        self.book(patient, other_doctor, actor, time(9, 0))

        assert all(s.is_available for s in availability.get_available_slots(doctor.id, MONDAY))

    def test_bookings_are_marked_inside_custom_hours(self, doctor, patient, actor):
        ScheduleOverride.objects.create(
            doctor=doctor,
            override_date=MONDAY,
            override_type=OverrideTypeChoices.CUSTOM_HOURS,
            start_time=time(10, 0),
            end_time=time(12, 0),
        )
        self.book(patient, doctor, actor, time(10, 35))

        slots = availability.get_available_slots(doctor.id, MONDAY)

        assert [(s.start_time, s.is_available, s.reason) for s in slots] == [
            (time(10, 0), True, ''),
            (time(10, 35), False, REASON_BOOKED),
            (time(11, 10), True, ''),
        ]


@pytest.mark.django_db
class TestAvailabilityQueries:

    def test_is_slot_available(self, doctor, patient, actor):
        make_schedule(doctor)
        clinical_services.create_appointment(
            patient_id=patient.id,
            physician_id=doctor.id,
            appointment_date=MONDAY,
            appointment_time=time(9, 30),
            actor=actor,
        )

        assert availability.is_slot_available(doctor.id, MONDAY, time(9, 0)) is True
        assert availability.is_slot_available(doctor.id, MONDAY, time(9, 30)) is False
        assert availability.is_slot_available(doctor.id, MONDAY, time(9, 10)) is False

    def test_is_slot_available_checks_duration(self, doctor):
        make_schedule(doctor)

        assert availability.is_slot_available(doctor.id, MONDAY, time(9, 0), 30) is True
        assert availability.is_slot_available(doctor.id, MONDAY, time(9, 0), 45) is False

    def test_date_range_concatenates_days(self, doctor):
        make_schedule(doctor)
        make_schedule(doctor, day_of_week=2, end_time=time(9, 30))

        slots = availability.get_available_slots_for_date_range(doctor.id, MONDAY, date(2024, 6, 5))

        assert [(s.date, s.start_time) for s in slots] == [
            (MONDAY, time(9, 0)),
            (MONDAY, time(9, 30)),
            (TUESDAY, time(9, 0)),
        ]

    def test_reversed_range_is_empty(self, doctor):
        make_schedule(doctor)

        assert availability.get_available_slots_for_date_range(doctor.id, TUESDAY, MONDAY) == []

    def test_next_available_slot_skips_full_days(self, doctor):
        make_schedule(doctor)
        ScheduleOverride.objects.create(
            doctor=doctor, override_date=MONDAY, override_type=OverrideTypeChoices.UNAVAILABLE
        )

        slot = availability.get_next_available_slot(doctor.id, MONDAY)

        assert slot.date == date(2024, 6, 10)
        assert slot.start_time == time(9, 0)

    def test_next_available_slot_none_within_horizon(self, doctor):
        assert availability.get_next_available_slot(doctor.id, MONDAY) is None

    @override_settings(CLINIC_SCHEDULING={'NEXT_SLOT_SEARCH_DAYS': 3})
    def test_next_available_slot_respects_horizon(self, doctor):
        make_schedule(doctor)

        assert availability.get_next_available_slot(doctor.id, TUESDAY) is None
