"""Core app configuration."""
from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Observability and shared error handling."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'
