"""
Django management command that marks stale emergency access requests as expired.
Run this command periodically via cron (e.g., every hour). It only updates the
reported status: access checks compare expires_at with the clock on every read.

Usage:
    python manage.py expire_emergency_requests
"""
from django.core.management.base import BaseCommand

from apps.emergency_access.workflow import expire_stale_requests


class Command(BaseCommand):
    help = 'Mark pending and approved emergency access requests past expires_at as expired'

    def handle(self, *args, **options):
        count = expire_stale_requests()
        if count == 0:
            self.stdout.write(self.style.SUCCESS('No stale emergency requests found'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Marked {count} emergency requests as expired'))
