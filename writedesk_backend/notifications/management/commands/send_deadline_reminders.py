"""
notifications/management/commands/send_deadline_reminders.py

Run hourly (cron, or the in-process scheduler when ENABLE_SCHEDULER is on).
Reminders are de-duplicated per task and milestone, so repeated runs are safe.
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from notifications.reminders import send_deadline_reminders


class Command(BaseCommand):
    help = "Send deadline reminders for tasks due in 2 days or 1 day"

    def handle(self, *args, **options):
        now = timezone.now()

        self.stdout.write(
            self.style.NOTICE(f"[{now:%Y-%m-%d %H:%M:%S}] Checking task deadlines")
        )

        count = send_deadline_reminders(now=now)

        self.stdout.write(
            self.style.SUCCESS(f"[{now:%Y-%m-%d %H:%M:%S}] Completed: {count} task reminder(s) sent")
        )
