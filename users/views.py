"""
Users — Views

Auth endpoints: login, refresh, me, API key rotation and staff-only
registration. The caller identity they establish is what stock
movements record as their actor.

@file users/views.py
"""

import logging

from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenRefreshView

from core.constants import AUDIT_ACTION_LOGIN, AUDIT_ACTION_LOGIN_FAILED
from core.services import AuditService

from .serializers import (
    ApiKeySerializer,
    LoginSerializer,
    RegisteredUserSerializer,
    RegisterSerializer,
    UserReadSerializer,
)
from .services import UserService

logger = logging.getLogger('wms')


class LoginView(APIView):
    """POST /api/v1/auth/login/: Authenticate and obtain JWT pair."""
    permission_classes = [AllowAny]
    throttle_scope = 'anon'

    def post(self, request):
        serializer = LoginSerializer(data=request.data, context={'request': request})
        try:
            serializer.is_valid(raise_exception=True)
        except AuthenticationFailed:
            AuditService.log(
                actor=None,
                action=AUDIT_ACTION_LOGIN_FAILED,
                model_name='User',
                object_id=str(request.data.get('username', ''))[:40],
                ip_address=AuditService.get_client_ip(request),
                user_agent=request.META.get('HTTP_USER_AGENT', ''),
            )
            raise

        user = serializer.user
        AuditService.log(
            actor=user,
            action=AUDIT_ACTION_LOGIN,
            model_name='User',
            object_id=str(user.pk),
            ip_address=AuditService.get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )
        logger.info('User %s logged in.', user.username)

        return Response({
            'success': True,
            'data': serializer.validated_data,
        })


class TokenRefreshAPIView(TokenRefreshView):
    """POST /api/v1/auth/refresh/: Rotate refresh token."""
    pass


class MeView(APIView):
    """GET /api/v1/auth/me/: Return the current authenticated user."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({
            'success': True,
            'data': UserReadSerializer(request.user).data,
        })


class ApiKeyRotateView(APIView):
    """POST /api/v1/auth/api-key/: Issue a fresh API key for the current user."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        api_key = request.user.rotate_api_key()
        logger.info('API key rotated for %s.', request.user.username)
        return Response({
            'success': True,
            'data': ApiKeySerializer({'api_key': api_key}).data,
        })


class RegisterView(APIView):
    """POST /api/v1/auth/register/: Create an account (staff only)."""
    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.register(**serializer.validated_data, actor=request.user)
        return Response(
            {'success': True, 'data': RegisteredUserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )
