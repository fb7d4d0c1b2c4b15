from django.core.management.base import BaseCommand
from django.db.models import Count

from clinic.models import Patient
from clinic.services.patients import risk_level


class Command(BaseCommand):
    help = "Summarise patient records: totals, risk bands and records without a hub."

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=10, help='How many recent patients to print.')

    def handle(self, *args, **opts):
        total = Patient.objects.count()
        active = Patient.objects.filter(is_active=True)
        self.stdout.write(f"Patients: {total} total, {active.count()} active, {total - active.count()} archived")

        bands = {'low': 0, 'medium': 0, 'high': 0}
        for score in active.values_list('risk_score', flat=True):
            bands[risk_level(score)] += 1
        self.stdout.write('Risk: ' + ', '.join(f"{k}={v}" for k, v in bands.items()))

        no_hub = active.filter(hub__isnull=True).count()
        if no_hub:
            self.stdout.write(self.style.WARNING(f"{no_hub} active patient(s) without a hub"))

        recent = active.annotate(n_appts=Count('appointments')).order_by('-created_at')[:opts['limit']]
        for p in recent:
            self.stdout.write(f"  #{p.id} {p.name} ({p.condition or 'no condition'}) risk={p.risk_score} "
                              f"appointments={p.n_appts}")
        self.stdout.write(self.style.SUCCESS('Check complete.'))
