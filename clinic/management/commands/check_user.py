from django.core.management.base import BaseCommand, CommandError

from clinic.services.users import find_user_by_email, similar_emails


class Command(BaseCommand):
    help = "Show an account's role and status, or similar emails when it does not exist."

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('--password', help='Also check whether this password matches.')

    def handle(self, *args, **opts):
        user = find_user_by_email(opts['email'])
        if user is None:
            similar = similar_emails(opts['email'])
            if similar:
                self.stdout.write('Similar emails: ' + ', '.join(similar))
            raise CommandError(f"User not found: {opts['email']}")

        self.stdout.write(f"id:         {user.id}")
        self.stdout.write(f"username:   {user.username}")
        self.stdout.write(f"email:      {user.email}")
        self.stdout.write(f"name:       {user.display_name}")
        self.stdout.write(f"role:       {user.role}")
        self.stdout.write(f"hub:        {user.hub_id or '-'}")
        self.stdout.write(f"active:     {user.is_active}")
        self.stdout.write(f"last login: {user.last_login.isoformat() if user.last_login else 'never'}")
        if opts.get('password'):
            if user.check_password(opts['password']):
                self.stdout.write(self.style.SUCCESS('Password matches.'))
            else:
                self.stdout.write(self.style.ERROR('Password does NOT match.'))
