"""
Scheduling URLs.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AvailableSlotsView,
    DoctorScheduleViewSet,
    NextAvailableSlotView,
    ScheduleOverrideViewSet,
    SlotCheckView,
)

router = DefaultRouter()
router.register(r'doctor-schedules', DoctorScheduleViewSet, basename='doctor-schedule')
router.register(r'schedule-overrides', ScheduleOverrideViewSet, basename='schedule-override')

urlpatterns = [
    path(
        'practitioners/<uuid:practitioner_id>/slots/',
        AvailableSlotsView.as_view(),
        name='practitioner-slots'
    ),
    path(
        'practitioners/<uuid:practitioner_id>/slots/next/',
        NextAvailableSlotView.as_view(),
        name='practitioner-next-slot'
    ),
    path(
        'practitioners/<uuid:practitioner_id>/slots/check/',
        SlotCheckView.as_view(),
        name='practitioner-slot-check'
    ),
    path('', include(router.urls)),
]
