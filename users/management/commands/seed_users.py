"""
Users — Management Command: seed_users

Creates the default warehouse accounts for local and staging
environments, each with an API key issued.

Usage::

    python manage.py seed_users
    python manage.py seed_users --password 'S3cret-2026'

Idempotent: an account whose username or email already exists is skipped.

@file users/management/commands/seed_users.py
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Q

from users.models import User
from users.services import UserService


DEFAULT_USERS = [
    # Staff: reference data and registrations
    {'username': 'admin', 'email': 'admin@wms.local', 'is_staff': True},
    {'username': 'manager', 'email': 'manager@wms.local', 'is_staff': True},
    # Floor accounts
    {'username': 'operator', 'email': 'operator@wms.local', 'is_staff': False},
    {'username': 'viewer', 'email': 'viewer@wms.local', 'is_staff': False},
    {'username': 'alice', 'email': 'alice@example.com', 'is_staff': False},
    {'username': 'bob', 'email': 'bob@example.com', 'is_staff': False},
]


class Command(BaseCommand):
    help = 'Seed default warehouse user accounts.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password', default='password123',
            help='Password given to every created account.',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        created_count = 0
        for user_data in DEFAULT_USERS:
            taken = User.objects.filter(
                Q(username=user_data['username']) | Q(email__iexact=user_data['email']),
            ).exists()
            if taken:
                self.stdout.write(f'  Exists: {user_data["username"]}')
                continue

            user = UserService.register(password=options['password'], **user_data)
            created_count += 1
            self.stdout.write(f'  Created user: {user.username} (API key {user.api_key})')

        self.stdout.write(self.style.SUCCESS(
            f'Done. {created_count} new users created, {len(DEFAULT_USERS) - created_count} already existed.'
        ))
