import logging

from apscheduler.schedulers.background import BackgroundScheduler
from django.conf import settings
from django.core.management import call_command
from django.utils import timezone

logger = logging.getLogger(__name__)


def start_scheduler() -> BackgroundScheduler:
    """
    Start the in-process deadline checker.

    Called once from ``NotificationsConfig.ready()`` when ENABLE_SCHEDULER
    is set. Deployments running several processes should leave it off and
    run ``manage.py send_deadline_reminders`` from cron instead.
    """
    interval_minutes = getattr(settings, "DEADLINE_CHECK_INTERVAL_MINUTES", 60)

    scheduler = BackgroundScheduler(timezone=settings.TIME_ZONE)
    scheduler.add_job(
        run_deadline_reminders,
        trigger="interval",
        minutes=interval_minutes,
        next_run_time=timezone.now(),
        id="send_deadline_reminders",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()

    logger.info("APScheduler started: deadline reminders every %s minutes", interval_minutes)
    return scheduler


def run_deadline_reminders():
    """Job wrapper; the business logic lives in the management command."""
    logger.info("Running scheduled deadline reminders at %s", f"{timezone.now():%Y-%m-%d %H:%M:%S}")
    call_command("send_deadline_reminders")
