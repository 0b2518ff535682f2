"""
Users — API Integration Tests

End-to-end tests for the auth endpoints and API key authentication.

@file users/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from core.models import AuditLog
from tests.factories import UserFactory


@pytest.mark.django_db
class TestLoginEndpoint:
    def test_login_success(self, api_client):
        UserFactory(username='receiver', password='Login2026!!')
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'username': 'receiver', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data['success'] is True
        assert 'access' in data['data']
        assert 'refresh' in data['data']
        assert AuditLog.objects.filter(action=AuditLog.ActionChoices.LOGIN).count() == 1

    def test_login_wrong_password(self, api_client):
        UserFactory(username='receiver', password='Login2026!!')
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'username': 'receiver', 'password': 'WrongPassword!'},
            format='json',
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()['success'] is False
        assert AuditLog.objects.filter(action=AuditLog.ActionChoices.LOGIN_FAILED).count() == 1

    def test_login_inactive_user(self, api_client):
        UserFactory(username='gone', password='Login2026!!', is_active=False)
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'username': 'gone', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert 'WWW-Authenticate' in response

    def test_login_unknown_user_is_unauthorized(self, api_client):
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'username': 'nobody', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response['WWW-Authenticate'].startswith('Bearer')

    def test_access_token_authenticates_me(self, api_client):
        UserFactory(username='receiver', password='Login2026!!')
        login = api_client.post(
            reverse('api-v1:auth:login'),
            {'username': 'receiver', 'password': 'Login2026!!'},
            format='json',
        )
        access = login.json()['data']['access']
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
        response = api_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['username'] == 'receiver'


@pytest.mark.django_db
class TestMeEndpoint:
    def test_me_requires_auth(self, api_client):
        response = api_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me_returns_current_user(self, authenticated_client, user):
        response = authenticated_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['id'] == str(user.pk)


@pytest.mark.django_db
class TestApiKeyAuthentication:
    def test_rotate_and_use_api_key(self, authenticated_client, api_client, user):
        response = authenticated_client.post(reverse('api-v1:auth:api-key'))
        assert response.status_code == status.HTTP_200_OK
        key = response.json()['data']['api_key']

        api_client.force_authenticate(user=None)
        api_client.credentials(HTTP_X_API_KEY=key)
        me = api_client.get(reverse('api-v1:auth:me'))
        assert me.status_code == status.HTTP_200_OK
        assert me.json()['data']['username'] == user.username

    def test_unknown_api_key_is_rejected(self, api_client):
        api_client.credentials(HTTP_X_API_KEY='not-a-real-key')
        response = api_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()['code'] == 'AUTHENTICATION_FAILED'


@pytest.mark.django_db
class TestRegisterEndpoint:
    payload = {'username': 'picker', 'email': 'picker@wms.local', 'password': 'Picker-Shift-2026'}

    def test_staff_registers_account_with_api_key(self, admin_client, api_client):
        response = admin_client.post(reverse('api-v1:auth:register'), self.payload, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()['data']
        assert data['username'] == 'picker'
        assert 'password' not in data

        api_client.force_authenticate(user=None)
        api_client.credentials(HTTP_X_API_KEY=data['api_key'])
        me = api_client.get(reverse('api-v1:auth:me'))
        assert me.json()['data']['username'] == 'picker'

    def test_duplicate_email_conflicts(self, admin_client):
        UserFactory(email='picker@wms.local')
        response = admin_client.post(reverse('api-v1:auth:register'), self.payload, format='json')
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['code'] == 'DUPLICATE_RESOURCE'

    def test_weak_password_rejected(self, admin_client):
        payload = {**self.payload, 'password': 'short'}
        response = admin_client.post(reverse('api-v1:auth:register'), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_non_staff_forbidden(self, authenticated_client):
        response = authenticated_client.post(reverse('api-v1:auth:register'), self.payload, format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN
