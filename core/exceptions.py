"""
Core — Exception Handling

Custom exceptions and DRF exception handler for consistent API
error envelopes.

Three families are kept apart:
  * movement rejections (expected business outcomes, MovementRejected),
  * not-found on point lookups (ResourceNotFoundError),
  * infrastructure failures (InfrastructureError), which wrap the
    underlying database error with the operation that failed.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response

logger = logging.getLogger('wms')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class BusinessRuleViolation(APIException):
    """Raised when a business rule is violated at the service layer."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'BUSINESS_RULE_VIOLATION'


class DuplicateResourceError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'DUPLICATE_RESOURCE'


class ResourceNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'


class AuthenticationFailedError(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication failed.'
    default_code = 'AUTHENTICATION_FAILED'


# ---------------------------------------------------------------------------
# Movement rejections
# ---------------------------------------------------------------------------

class MovementRejected(BusinessRuleViolation):
    """A proposed stock movement was refused; nothing was written."""
    default_detail = 'Stock movement rejected.'
    default_code = 'MOVEMENT_REJECTED'

    @property
    def reason(self) -> str:
        return self.default_code


class InvalidMovementError(MovementRejected):
    default_detail = 'Stock movement request is malformed.'
    default_code = 'INVALID_MOVEMENT'


class ReferenceUnavailableError(MovementRejected):
    """Product or location is missing or inactive."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Product or location is unavailable.'
    default_code = 'REFERENCE_UNAVAILABLE'


class InsufficientStockError(MovementRejected):
    """Raised when an outbound stock movement exceeds the on-hand quantity."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock for this operation.'
    default_code = 'INSUFFICIENT_STOCK'


class ExceedsCapacityError(MovementRejected):
    """Raised when an inbound movement would overfill its location."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Stock movement exceeds location capacity.'
    default_code = 'EXCEEDS_CAPACITY'


# ---------------------------------------------------------------------------
# Infrastructure failures
# ---------------------------------------------------------------------------

class InfrastructureError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage is temporarily unavailable.'
    default_code = 'INFRASTRUCTURE_ERROR'


class PersistenceError(InfrastructureError):
    default_detail = 'Failed to persist changes.'
    default_code = 'PERSISTENCE_ERROR'


class WriteConflictError(InfrastructureError):
    """A conditional write found the row changed since it was read."""
    default_detail = 'Concurrent update detected; please retry.'
    default_code = 'WRITE_CONFLICT'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def standard_exception_handler(exc, context):
    """
    Wraps every error response in the standard envelope:
      { "success": false, "errors": {...}, "code": "ERROR_CODE" }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = APIException(detail='Permission denied.', code='PERMISSION_DENIED')
        exc.status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationError):
        data = {
            'success': False,
            'errors': exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages},
            'code': 'VALIDATION_ERROR',
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, InfrastructureError):
        logger.error('Infrastructure failure in view: %s', exc.detail)

    # rest_framework.views loads the authentication classes, which import this module.
    from rest_framework.views import exception_handler

    response = exception_handler(exc, context)

    if response is not None:
        errors = {}
        code = getattr(exc, 'default_code', 'ERROR')

        if isinstance(response.data, dict):
            errors = response.data
            code = response.data.pop('code', code) if 'code' in response.data else code
        elif isinstance(response.data, list):
            errors = {'detail': response.data}
        else:
            errors = {'detail': [str(response.data)]}

        response.data = {
            'success': False,
            'errors': errors,
            'code': code,
        }

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {'success': False, 'errors': {'detail': ['Internal server error.']}, 'code': 'INTERNAL_ERROR'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
