from django.core.management.base import BaseCommand

from inventory.services.stock import refresh_all_statuses


class Command(BaseCommand):
    help = "Recompute every item's stock status so batches that expired overnight show as Expired."

    def handle(self, *args, **options):
        changed = refresh_all_statuses()
        self.stdout.write(self.style.SUCCESS(f"{changed} item statuses updated"))
