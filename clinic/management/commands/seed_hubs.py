from django.core.management.base import BaseCommand

from clinic.services.hubs import seed_default_hubs


class Command(BaseCommand):
    help = "Create the default hubs (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--if-empty', action='store_true', help='Only seed when no hubs exist yet.')

    def handle(self, *args, **opts):
        created = seed_default_hubs(only_if_empty=opts['if_empty'])
        self.stdout.write(self.style.SUCCESS(f"Hubs seeded: {created} created."))
