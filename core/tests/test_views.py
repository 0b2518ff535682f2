"""
Core — HTTP Plumbing Tests

Health check, request ID propagation and the error envelope.

@file core/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from core.models import AuditLog
from tests.factories import ProductFactory


@pytest.mark.django_db
class TestHealth:
    def test_health_is_public(self, api_client):
        response = api_client.get(reverse('health'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'success': True, 'data': {'status': 'ok'}}


@pytest.mark.django_db
class TestRequestID:
    def test_incoming_id_is_echoed(self, api_client):
        response = api_client.get(reverse('health'), HTTP_X_REQUEST_ID='trace-001')
        assert response['X-Request-ID'] == 'trace-001'

    def test_invalid_incoming_id_is_replaced(self, api_client):
        response = api_client.get(reverse('health'), HTTP_X_REQUEST_ID='bad id with spaces')
        assert response['X-Request-ID'] != 'bad id with spaces'
        assert len(response['X-Request-ID']) == 32

    def test_request_id_reaches_audit_log(self, admin_client):
        product = ProductFactory()
        admin_client.patch(
            reverse('api-v1:products:product-detail', args=[product.pk]),
            {'name': 'Renamed'},
            format='json',
            HTTP_X_REQUEST_ID='trace-002',
        )
        log = AuditLog.objects.get(model_name='Product', object_id=str(product.pk))
        assert log.request_id == 'trace-002'


@pytest.mark.django_db
class TestErrorEnvelope:
    def test_not_found_envelope(self, authenticated_client):
        response = authenticated_client.get(
            reverse('api-v1:products:product-detail', args=['00000000-0000-0000-0000-000000000000']),
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body['success'] is False
        assert body['code'] == 'RESOURCE_NOT_FOUND'
