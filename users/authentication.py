"""
Users — API Key Authentication

DRF authentication class for machine clients sending ``X-API-Key``.
Bearer JWTs and sessions are handled by the stock DRF/SimpleJWT classes
configured in settings.

@file users/authentication.py
"""

import logging

from rest_framework.authentication import BaseAuthentication

from core.exceptions import AuthenticationFailedError

from .models import User

logger = logging.getLogger('wms')

API_KEY_HEADER = 'HTTP_X_API_KEY'


class ApiKeyAuthentication(BaseAuthentication):
    """Authenticate a request from its X-API-Key header."""

    def authenticate(self, request):
        api_key = request.META.get(API_KEY_HEADER)
        if not api_key:
            return None
        try:
            user = User.objects.get_by_api_key(api_key)
        except User.DoesNotExist:
            logger.info('Rejected request with unknown or inactive API key.')
            raise AuthenticationFailedError(detail='Invalid API key.')
        return user, None

    def authenticate_header(self, request):
        return 'X-API-Key'
