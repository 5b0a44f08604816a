"""
Management command to expire lapsed food subscriptions.
Run with: python manage.py expire_subscriptions
"""
from django.core.management.base import BaseCommand

from subscriptions.tasks import expire_lapsed_subscriptions


class Command(BaseCommand):
    help = 'Mark food subscriptions past their end date with auto-renewal off as expired'

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING('Expiring lapsed food subscriptions...'))
        expired_count = expire_lapsed_subscriptions()
        self.stdout.write(self.style.SUCCESS(f'Expired {expired_count} subscription(s)'))
