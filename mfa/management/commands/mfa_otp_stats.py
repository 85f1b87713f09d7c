"""
Management command to report one-time passcode statistics.

Codes are never deleted; expired and used rows stay for the audit trail.
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from mfa.services import OtpService

User = get_user_model()


class Command(BaseCommand):
    help = 'Show OTP generation and usage statistics'

    def add_arguments(self, parser):
        parser.add_argument(
            '--user',
            dest='email',
            help='Only count codes issued to this email address',
        )

    def handle(self, *args, **options):
        email = options.get('email')
        user = None
        if email:
            try:
                user = User.objects.get(email__iexact=email)
            except User.DoesNotExist:
                raise CommandError(f"No user with email '{email}'")

        stats = OtpService().stats(user)

        scope = email or "all users"
        self.stdout.write(f"OTP statistics for {scope}")
        self.stdout.write(f"  Generated:  {stats['total_generated']}")
        self.stdout.write(f"  Used:       {stats['total_used']}")
        self.stdout.write(f"  Superseded: {stats['total_superseded']}")
        self.stdout.write(f"  Expired:    {stats['total_expired']}")
        self.stdout.write(f"  Active:     {stats['active_codes']}")

        for purpose, count in sorted(stats['by_purpose'].items()):
            self.stdout.write(f"    {purpose}: {count}")

        self.stdout.write(self.style.SUCCESS("Done"))
