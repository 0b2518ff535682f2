"""
Core — Constants

Shared constants for audit actions, pagination and stock movements.

@file core/constants.py
"""

# ---------------------------------------------------------------------------
# Audit actions (mirror AuditLog.ActionChoices)
# ---------------------------------------------------------------------------

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_DEACTIVATE = 'DEACTIVATE'
AUDIT_ACTION_LOGIN = 'LOGIN'
AUDIT_ACTION_LOGIN_FAILED = 'LOGIN_FAILED'

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# ---------------------------------------------------------------------------
# Stock movements
# ---------------------------------------------------------------------------

MOVEMENT_IN = 'IN'
MOVEMENT_OUT = 'OUT'
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT)

REFERENCE_MAX_LENGTH = 100

REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
REQUEST_ID_RESPONSE_HEADER = 'X-Request-ID'
