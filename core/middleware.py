"""
Core — Middleware

Request ID propagation: reuse the caller's X-Request-ID header or mint
a new one, expose it on the response and bind it for logging.

@file core/middleware.py
"""

import re
import uuid

from core.constants import REQUEST_ID_HEADER, REQUEST_ID_RESPONSE_HEADER
from core.log_context import reset_request_id, set_request_id

_VALID_REQUEST_ID = re.compile(r'^[A-Za-z0-9._-]{1,64}$')


class RequestIDMiddleware:

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = request.META.get(REQUEST_ID_HEADER, '')
        request_id = incoming if _VALID_REQUEST_ID.match(incoming) else uuid.uuid4().hex
        request.request_id = request_id

        token = set_request_id(request_id)
        try:
            response = self.get_response(request)
        finally:
            reset_request_id(token)

        response[REQUEST_ID_RESPONSE_HEADER] = request_id
        return response
