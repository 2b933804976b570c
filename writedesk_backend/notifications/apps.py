import os

from django.apps import AppConfig
from django.conf import settings


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"

    connection_manager = None
    notification_service = None
    scheduler = None

    def ready(self):
        from .relay import ConnectionManager
        from .services import NotificationService

        # One relay registry per process, shared by the consumer and the service.
        self.connection_manager = ConnectionManager()
        self.notification_service = NotificationService(connection_manager=self.connection_manager)

        if not getattr(settings, "ENABLE_SCHEDULER", False):
            return

        # The autoreloader parent process must not schedule jobs.
        if settings.DEBUG and os.environ.get("RUN_MAIN") != "true":
            return

        from .scheduler import start_scheduler

        self.scheduler = start_scheduler()
