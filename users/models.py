"""
Users — Models

Custom User model with UUID PK, username-based auth and a per-user API
key for machine clients (scanners, integrations). The user is the actor
recorded on every stock movement.

@file users/models.py
"""

import secrets

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel
from users.managers import UserManager

API_KEY_BYTES = 32


def generate_api_key() -> str:
    return secrets.token_hex(API_KEY_BYTES)


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """Warehouse operator or integration account."""

    username = models.CharField(_('username'), max_length=50, unique=True)
    email = models.EmailField(_('email'), unique=True, null=True, blank=True)
    api_key = models.CharField(
        _('API key'), max_length=64, unique=True, null=True, blank=True,
        help_text=_('Sent as the X-API-Key header by machine clients.'),
    )

    is_staff = models.BooleanField(_('staff status'), default=False)
    is_active = models.BooleanField(_('active'), default=True)
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'username'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['email']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']

    def __str__(self):
        return self.username

    def rotate_api_key(self) -> str:
        self.api_key = generate_api_key()
        self.save(update_fields=['api_key', 'updated_at'])
        return self.api_key
