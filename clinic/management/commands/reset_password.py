from django.core.management.base import BaseCommand, CommandError

from clinic.exceptions import NotFoundError, ValidationError
from clinic.services.users import reset_password, similar_emails

DEFAULT_PASSWORD = 'Password123!'
MIN_LENGTH = 8


class Command(BaseCommand):
    help = "Reset a user's password by email (case-insensitive)."

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('password', nargs='?', default=DEFAULT_PASSWORD)

    def handle(self, *args, **opts):
        email, password = opts['email'], opts['password']
        if len(password) < MIN_LENGTH:
            raise CommandError(f'Password must be at least {MIN_LENGTH} characters')
        try:
            user = reset_password(email, password)
        except NotFoundError:
            similar = similar_emails(email)
            if similar:
                self.stderr.write('Similar emails:')
                for candidate in similar:
                    self.stderr.write(f'  {candidate}')
            raise CommandError(f'User not found: {email}')
        except ValidationError as e:
            problems = '; '.join(m for msgs in (e.errors or {}).values() for m in msgs)
            raise CommandError(f'{e.message}: {problems}' if problems else e.message)
        self.stdout.write(self.style.SUCCESS(f'Password reset for {user.email} ({user.role})'))
