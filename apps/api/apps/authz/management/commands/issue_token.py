"""
Django management command to mint a development access token.

Usage:
    python manage.py issue_token --user-id psy-1 --name "Dr. Ana" --role psychologist

Prints a signed JWT carrying the ``user_id``, ``name`` and ``role`` claims
read by ``ClinicJWTAuthentication``.

FOR DEVELOPMENT ONLY - tokens are issued by the identity provider in production.
"""
from django.core.management.base import BaseCommand, CommandError
from rest_framework_simplejwt.tokens import AccessToken

from apps.authz.models import RoleChoices


class Command(BaseCommand):
    help = 'Issue a development access token for a clinic user'

    def add_arguments(self, parser):
        parser.add_argument('--user-id', required=True)
        parser.add_argument('--name', default='')
        parser.add_argument('--role', required=True, choices=RoleChoices.values)

    def handle(self, *args, **options):
        if not options['user_id'].strip():
            raise CommandError('--user-id must not be blank')

        token = AccessToken()
        token['user_id'] = options['user_id']
        token['name'] = options['name']
        token['role'] = options['role']

        self.stdout.write(str(token))
        self.stderr.write(
            self.style.SUCCESS(f'Issued {options["role"]} token for "{options["user_id"]}"')
        )
