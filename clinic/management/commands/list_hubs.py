from django.core.management.base import BaseCommand
from django.db.models import Count

from clinic.models import Hub


class Command(BaseCommand):
    help = "List hubs with their user and patient counts."

    def handle(self, *args, **opts):
        hubs = Hub.objects.annotate(
            n_users=Count('users', distinct=True), n_patients=Count('patients', distinct=True),
        ).order_by('name')
        if not hubs:
            self.stdout.write(self.style.WARNING('No hubs found. Run "manage.py seed_hubs".'))
            return
        for hub in hubs:
            state = 'active' if hub.is_active else 'inactive'
            self.stdout.write(
                f"{hub.id:<20} {hub.name:<28} {state:<9} users={hub.n_users} patients={hub.n_patients}"
            )
        self.stdout.write(self.style.SUCCESS(f"{len(hubs)} hub(s)."))
