from django.core.management.base import BaseCommand

from clinic.services.demo import DEMO_USERS, ensure_demo_users


class Command(BaseCommand):
    help = "Ensure the demo accounts exist with their documented passwords (idempotent)."

    def handle(self, *args, **opts):
        passwords = {u['email']: u['password'] for u in DEMO_USERS}
        for user, created in ensure_demo_users():
            verb = 'created' if created else 'reset'
            self.stdout.write(self.style.SUCCESS(
                f"{verb}: {user.email} ({user.role}) / {passwords[user.email]}"
            ))
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
