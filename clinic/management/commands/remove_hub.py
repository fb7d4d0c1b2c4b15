from django.core.management.base import BaseCommand, CommandError

from clinic.exceptions import ConflictError, NotFoundError
from clinic.services.hubs import delete_hub, get_hub


class Command(BaseCommand):
    help = "Delete a hub; refuses while users or patients reference it unless --force."

    def add_arguments(self, parser):
        parser.add_argument('hub_id')
        parser.add_argument('--force', action='store_true', help='Delete even if the hub is in use.')

    def handle(self, *args, **opts):
        try:
            hub = get_hub(opts['hub_id'])
            delete_hub(hub, force=opts['force'])
        except NotFoundError as e:
            raise CommandError(e.message)
        except ConflictError as e:
            raise CommandError(f"{e.message}. Re-run with --force to delete anyway.")
        self.stdout.write(self.style.SUCCESS(f"Hub '{opts['hub_id']}' removed."))
