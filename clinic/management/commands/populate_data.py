"""
Management command to populate the database with demo data.
"""
from django.core.management.base import BaseCommand, CommandError

from clinic.models import Patient
from clinic.services.demo import populate_demo_data


class Command(BaseCommand):
    help = 'Populate database with demo hubs, users, patients and clinical records'

    def add_arguments(self, parser):
        parser.add_argument('--patients', type=int, default=20)
        parser.add_argument('--seed', type=int, default=2035, help='Random seed for reproducible data.')
        parser.add_argument('--force', action='store_true', help='Add data even if patients already exist.')

    def handle(self, *args, **options):
        if options['patients'] < 1:
            raise CommandError('--patients must be at least 1')
        if Patient.objects.exists() and not options['force']:
            self.stdout.write(self.style.WARNING('Patients already exist; use --force to add more.'))
            return

        self.stdout.write('Creating demo data...')
        counts = populate_demo_data(patients=options['patients'], seed=options['seed'])
        for key, value in counts.items():
            self.stdout.write(f"  {key}: {value}")
        self.stdout.write(self.style.SUCCESS('Demo data created.'))
