"""
Scheduling API views: weekly schedules, date overrides and slot availability.
"""
import logging

from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.actors import Actor
from apps.authz.models import Practitioner
from apps.core.exceptions import NotFoundError

from . import availability, services
from .models import DoctorSchedule, ScheduleOverride
from .permissions import AvailabilityPermission, SchedulingPermission
from .serializers import (
    DateQuerySerializer,
    DateRangeQuerySerializer,
    DoctorDateQuerySerializer,
    DoctorRangeQuerySerializer,
    DoctorScheduleSerializer,
    FromDateQuerySerializer,
    ScheduleOverrideSerializer,
    SlotCheckQuerySerializer,
    SlotSerializer,
)

logger = logging.getLogger(__name__)


def _query(serializer_class, request):
    serializer = serializer_class(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class DoctorScheduleViewSet(viewsets.ModelViewSet):
    """
    ViewSet for DoctorSchedule.

    Endpoints:
    - GET    /api/v1/scheduling/doctor-schedules/?doctor={uuid}
    - POST   /api/v1/scheduling/doctor-schedules/
    - GET    /api/v1/scheduling/doctor-schedules/{id}/
    - PATCH  /api/v1/scheduling/doctor-schedules/{id}/
    - PUT    /api/v1/scheduling/doctor-schedules/{id}/
    - DELETE /api/v1/scheduling/doctor-schedules/{id}/
    - GET    /api/v1/scheduling/doctor-schedules/active/?doctor={uuid}&date=YYYY-MM-DD
    """
    serializer_class = DoctorScheduleSerializer
    permission_classes = [SchedulingPermission]

    def get_queryset(self):
        queryset = DoctorSchedule.objects.select_related('doctor')
        doctor_id = self.request.query_params.get('doctor')
        if doctor_id:
            queryset = queryset.filter(doctor_id=doctor_id)
        return queryset.order_by('day_of_week', 'start_time')

    def get_object(self):
        return services.get_schedule(self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        schedule = services.create_schedule(serializer.validated_data)
        return Response(self.get_serializer(schedule).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        schedule = services.update_schedule(kwargs['pk'], serializer.validated_data)
        return Response(self.get_serializer(schedule).data)

    def destroy(self, request, *args, **kwargs):
        services.delete_schedule(kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def active(self, request):
        params = _query(DoctorDateQuerySerializer, request)
        schedules = services.get_active_schedules_for_date(params['doctor'], params['date'])
        return Response(self.get_serializer(schedules, many=True).data)


class ScheduleOverrideViewSet(viewsets.ModelViewSet):
    """
    ViewSet for ScheduleOverride.

    Endpoints:
    - GET    /api/v1/scheduling/schedule-overrides/?doctor={uuid}
    - POST   /api/v1/scheduling/schedule-overrides/            (409 if one exists for doctor/date)
    - GET    /api/v1/scheduling/schedule-overrides/{id}/
    - PATCH  /api/v1/scheduling/schedule-overrides/{id}/
    - DELETE /api/v1/scheduling/schedule-overrides/{id}/
    - GET    /api/v1/scheduling/schedule-overrides/by-date/?doctor=&date=
    - GET    /api/v1/scheduling/schedule-overrides/range/?doctor=&start_date=&end_date=
    - GET    /api/v1/scheduling/schedule-overrides/upcoming/?doctor=
    """
    serializer_class = ScheduleOverrideSerializer
    permission_classes = [SchedulingPermission]

    def get_queryset(self):
        queryset = ScheduleOverride.objects.select_related('doctor')
        doctor_id = self.request.query_params.get('doctor')
        if doctor_id:
            queryset = queryset.filter(doctor_id=doctor_id)
        return queryset.order_by('override_date')

    def get_object(self):
        return services.get_override(self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        override = services.create_override(serializer.validated_data, Actor.from_user(request.user))
        return Response(self.get_serializer(override).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        override = services.update_override(kwargs['pk'], serializer.validated_data)
        return Response(self.get_serializer(override).data)

    def destroy(self, request, *args, **kwargs):
        services.delete_override(kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='by-date')
    def by_date(self, request):
        params = _query(DoctorDateQuerySerializer, request)
        override = services.get_override_for_date(params['doctor'], params['date'])
        if override is None:
            raise NotFoundError(
                f"No schedule override for doctor {params['doctor']} on {params['date'].isoformat()}"
            )
        return Response(self.get_serializer(override).data)

    @action(detail=False, methods=['get'], url_path='range')
    def in_range(self, request):
        params = _query(DoctorRangeQuerySerializer, request)
        overrides = services.list_overrides_in_range(
            params['doctor'], params['start_date'], params['end_date']
        )
        return Response(self.get_serializer(overrides, many=True).data)

    @action(detail=False, methods=['get'])
    def upcoming(self, request):
        doctor_id = request.query_params.get('doctor')
        if not doctor_id:
            return Response({'doctor': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
        overrides = services.list_upcoming_overrides(doctor_id)
        return Response(self.get_serializer(overrides, many=True).data)


# ============================================================================
# Availability
# ============================================================================

class _AvailabilityView(APIView):
    permission_classes = [AvailabilityPermission]

    def get_practitioner(self, doctor_id):
        try:
            return Practitioner.objects.get(pk=doctor_id)
        except Practitioner.DoesNotExist:
            raise NotFoundError(f'Doctor not found: {doctor_id}')


class AvailableSlotsView(_AvailabilityView):
    """
    GET /api/v1/scheduling/practitioners/{id}/slots/?date=YYYY-MM-DD
    GET /api/v1/scheduling/practitioners/{id}/slots/?start_date=...&end_date=...

    Returns every generated slot; callers filter on ``is_available``.
    """

    def get(self, request, practitioner_id):
        doctor = self.get_practitioner(practitioner_id)

        if 'date' in request.query_params:
            params = _query(DateQuerySerializer, request)
            slots = availability.get_available_slots(doctor.id, params['date'])
        else:
            params = _query(DateRangeQuerySerializer, request)
            if params['end_date'] < params['start_date']:
                slots = []
            else:
                slots = availability.get_available_slots_for_date_range(
                    doctor.id, params['start_date'], params['end_date']
                )

        return Response(SlotSerializer(slots, many=True).data)


class NextAvailableSlotView(_AvailabilityView):
    """
    GET /api/v1/scheduling/practitioners/{id}/slots/next/?from_date=YYYY-MM-DD

    ``from_date`` defaults to today. ``slot`` is null when nothing is free
    within the search horizon.
    """

    def get(self, request, practitioner_id):
        doctor = self.get_practitioner(practitioner_id)

        from_date = timezone.localdate()
        if request.query_params.get('from_date'):
            from_date = _query(FromDateQuerySerializer, request)['from_date']

        slot = availability.get_next_available_slot(doctor.id, from_date)
        return Response({'slot': SlotSerializer(slot).data if slot else None})


class SlotCheckView(_AvailabilityView):
    """
    GET /api/v1/scheduling/practitioners/{id}/slots/check/?date=&time=&duration=
    """

    def get(self, request, practitioner_id):
        doctor = self.get_practitioner(practitioner_id)
        params = _query(SlotCheckQuerySerializer, request)

        available = availability.is_slot_available(
            doctor.id, params['date'], params['time'], params.get('duration')
        )
        return Response({
            'date': params['date'],
            'time': params['time'],
            'available': available,
        })
