"""Scheduling app configuration."""
from django.apps import AppConfig


class SchedulingConfig(AppConfig):
    """Doctor schedules, date overrides and slot availability."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.scheduling'
    verbose_name = 'Scheduling'
