"""
Users — Service Layer

Account registration. No HTTP context: services receive plain Python
arguments and raise typed exceptions.

@file users/services.py
"""

import logging

from django.db import transaction

from core.constants import AUDIT_ACTION_CREATE
from core.exceptions import DuplicateResourceError
from core.services import AuditService

from .models import User, generate_api_key

logger = logging.getLogger('wms')


class UserService:

    @staticmethod
    @transaction.atomic
    def register(
        *,
        username: str,
        email: str,
        password: str,
        is_staff: bool = False,
        actor=None,
    ) -> User:
        """
        Create an account with its API key already issued. Username and
        email must both be unused; email comparison ignores case.
        """
        username = username.strip()
        email = User.objects.normalize_email(email.strip())

        if User.objects.filter(username=username).exists():
            raise DuplicateResourceError(detail=f'Username {username} already registered.')
        if User.objects.filter(email__iexact=email).exists():
            raise DuplicateResourceError(detail=f'Email {email} already registered.')

        user = User.objects.create_user(
            username,
            password,
            email=email,
            is_staff=is_staff,
            api_key=generate_api_key(),
            created_by=actor,
        )

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='User',
            object_id=str(user.pk),
            new_values={'username': user.username, 'email': user.email, 'is_staff': user.is_staff},
        )
        logger.info('User %s registered.', user.username)
        return user
