from django.apps import AppConfig


class EventsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'events'

    def ready(self):
        # Wire blob purging to attachment/blob deletion.
        from . import signals  # noqa: F401
