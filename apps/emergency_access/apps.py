from django.apps import AppConfig


class EmergencyAccessConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.emergency_access'
    label = 'emergency_access'
