from django.apps import AppConfig


class RealtimeConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.realtime'

    def ready(self):
        import apps.realtime.signals  # noqa: F401
