"""
Clinical API views: appointment lifecycle, audit trail, vitals, examination.

Domain errors raised by the services are translated to HTTP responses by
apps.core.exceptions.domain_exception_handler.
"""
import logging

from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.authz.actors import Actor

from . import audit as audit_recorder, services
from .models import Appointment
from .permissions import AppointmentPermission
from .serializers import (
    AppointmentAuditSerializer,
    AppointmentCreateSerializer,
    AppointmentDetailSerializer,
    AppointmentListSerializer,
    AppointmentUpdateSerializer,
    CancelAppointmentSerializer,
    ExaminationSerializer,
    RescheduleAppointmentSerializer,
    StatusTransitionSerializer,
    VitalsSerializer,
    VitalsWriteSerializer,
)

logger = logging.getLogger(__name__)


class AppointmentViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Appointment endpoints.

    Endpoints:
    - POST   /api/v1/clinical/appointments/
    - GET    /api/v1/clinical/appointments/
    - GET    /api/v1/clinical/appointments/{id}/
    - PATCH  /api/v1/clinical/appointments/{id}/
    - DELETE /api/v1/clinical/appointments/{id}/  (cancels, never deletes)
    - POST   /api/v1/clinical/appointments/{id}/status/
    - POST   /api/v1/clinical/appointments/{id}/cancel/
    - POST   /api/v1/clinical/appointments/{id}/reschedule/
    - GET    /api/v1/clinical/appointments/{id}/audit/
    - GET/POST /api/v1/clinical/appointments/{id}/vitals/
    - GET/POST /api/v1/clinical/appointments/{id}/examination/
    """
    permission_classes = [AppointmentPermission]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        """
        Filters:
        - physician_id, patient_id: UUIDs
        - date: exact appointment date
        - date_from / date_to: inclusive date range
        - status: appointment status
        - search: patient first/last name, patient phone or appointment number
        """
        queryset = Appointment.objects.select_related('patient', 'physician')
        params = self.request.query_params

        if params.get('physician_id'):
            queryset = queryset.filter(physician_id=params['physician_id'])
        if params.get('patient_id'):
            queryset = queryset.filter(patient_id=params['patient_id'])
        if params.get('date'):
            queryset = queryset.filter(appointment_date=params['date'])
        if params.get('date_from'):
            queryset = queryset.filter(appointment_date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(appointment_date__lte=params['date_to'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])

        search = params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(patient__first_name__icontains=search) |
                Q(patient__last_name__icontains=search) |
                Q(patient__phone__icontains=search) |
                Q(appointment_number__icontains=search)
            )

        return queryset.order_by('appointment_date', 'appointment_time')

    def get_serializer_class(self):
        if self.action == 'list':
            return AppointmentListSerializer
        if self.action == 'create':
            return AppointmentCreateSerializer
        if self.action == 'partial_update':
            return AppointmentUpdateSerializer
        return AppointmentDetailSerializer

    def get_object(self):
        return services.get_appointment(self.kwargs['pk'])

    def _actor(self):
        return Actor.from_user(self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = services.create_appointment(actor=self._actor(), **serializer.validated_data)

        return Response(
            AppointmentDetailSerializer(appointment).data,
            status=status.HTTP_201_CREATED
        )

    def partial_update(self, request, *args, **kwargs):
        serializer = AppointmentUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        appointment = services.update_appointment(
            kwargs['pk'], dict(serializer.validated_data), self._actor()
        )
        return Response(AppointmentDetailSerializer(appointment).data)

    def destroy(self, request, *args, **kwargs):
        """
        DELETE /api/v1/clinical/appointments/{id}/
        Appointments are never removed: this cancels.
        """
        services.cancel_appointment(kwargs['pk'], self._actor(), reason=request.data.get('reason', ''))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='status')
    def transition_status(self, request, pk=None):
        """
        POST /api/v1/clinical/appointments/{id}/status/
        Body: {"status": "WAITING", "notes": "..."}
        """
        serializer = StatusTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = services.update_appointment_status(
            pk,
            serializer.validated_data.get('status'),
            self._actor(),
            notes=serializer.validated_data.get('notes', ''),
        )
        return Response(AppointmentDetailSerializer(appointment).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = CancelAppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = services.cancel_appointment(
            pk, self._actor(), reason=serializer.validated_data['reason']
        )
        return Response(AppointmentDetailSerializer(appointment).data)

    @action(detail=True, methods=['post'])
    def reschedule(self, request, pk=None):
        """
        POST /api/v1/clinical/appointments/{id}/reschedule/
        Body: {"new_date": "2024-06-05", "new_time": "10:30", "reason": "..."}
        Returns the newly created appointment.
        """
        serializer = RescheduleAppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        replacement = services.reschedule_appointment(
            pk, data['new_date'], data['new_time'], self._actor(), reason=data['reason']
        )
        return Response(
            AppointmentDetailSerializer(replacement).data,
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['get'])
    def audit(self, request, pk=None):
        services.get_appointment(pk)
        events = audit_recorder.get_appointment_audit_history(pk)
        return Response(AppointmentAuditSerializer(events, many=True).data)

    @action(detail=True, methods=['get', 'post'])
    def vitals(self, request, pk=None):
        if request.method == 'GET':
            records = services.list_vitals(pk)
            return Response(VitalsSerializer(records, many=True).data)

        serializer = VitalsWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        record = services.record_vitals(pk, serializer.validated_data, self._actor())
        return Response(VitalsSerializer(record).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'post'])
    def examination(self, request, pk=None):
        if request.method == 'GET':
            return Response(ExaminationSerializer(services.get_examination(pk)).data)

        serializer = ExaminationSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        examination, created = services.record_examination(
            pk, serializer.validated_data, self._actor()
        )
        return Response(
            ExaminationSerializer(examination).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )
