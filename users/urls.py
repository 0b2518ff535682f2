"""
Users — Auth URL Configuration

Endpoints: login, refresh, me, api-key, register.

@file users/urls.py
"""

from django.urls import path

from .views import ApiKeyRotateView, LoginView, MeView, RegisterView, TokenRefreshAPIView

app_name = 'auth'

urlpatterns = [
    path('login/', LoginView.as_view(), name='login'),
    path('refresh/', TokenRefreshAPIView.as_view(), name='token-refresh'),
    path('me/', MeView.as_view(), name='me'),
    path('api-key/', ApiKeyRotateView.as_view(), name='api-key'),
    path('register/', RegisterView.as_view(), name='register'),
]
