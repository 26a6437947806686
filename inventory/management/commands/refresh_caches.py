from django.conf import settings
from django.core.cache import cache
from django.core.management.base import BaseCommand
from django.utils import timezone

from inventory.services.realtime import DASHBOARD_CACHE_KEY, broadcast
from inventory.services.reports import build_dashboard


class Command(BaseCommand):
    help = "Warm the dashboard cache and broadcast a WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        cache.set(DASHBOARD_CACHE_KEY, build_dashboard(), settings.DASHBOARD_CACHE_SECONDS)
        broadcast('dashboard')
        self.stdout.write(self.style.SUCCESS(f"Refreshed {DASHBOARD_CACHE_KEY} at {now}"))
