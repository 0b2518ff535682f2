"""
Stock — Movement Filters

Query criteria for the movement ledger, plus parsing from request
query parameters.

@file stock/filters.py
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from uuid import UUID

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from core.constants import MOVEMENT_TYPES
from core.exceptions import BusinessRuleViolation


@dataclass(frozen=True)
class StockMovementFilter:
    """
    AND-combined ledger criteria. ``date_from``/``date_to`` are inclusive;
    a bare date covers the whole day.
    """

    product_id: UUID | None = None
    location_id: UUID | None = None
    user_id: UUID | None = None
    movement_type: str | None = None
    date_from: date | datetime | None = None
    date_to: date | datetime | None = None
    limit: int = 20
    offset: int = 0

    def __post_init__(self):
        if self.limit < 0:
            raise BusinessRuleViolation(detail='limit must not be negative.')
        if self.offset < 0:
            raise BusinessRuleViolation(detail='offset must not be negative.')
        if self.movement_type is not None and self.movement_type not in MOVEMENT_TYPES:
            raise BusinessRuleViolation(detail=f'Unknown movement type: {self.movement_type}.')

    @property
    def created_after(self) -> datetime | None:
        """Inclusive lower bound."""
        return _as_datetime(self.date_from, end=False)

    @property
    def created_before(self) -> datetime | None:
        """Exclusive upper bound."""
        if self.date_to is None:
            return None
        if isinstance(self.date_to, datetime):
            return _as_datetime(self.date_to, end=False) + timedelta(microseconds=1)
        return _as_datetime(self.date_to, end=True)

    @classmethod
    def from_query_params(cls, params) -> 'StockMovementFilter':
        default_limit = getattr(settings, 'STOCK_DEFAULT_PAGE_SIZE', 20)
        max_limit = getattr(settings, 'STOCK_MAX_PAGE_SIZE', 100)

        limit = min(_parse_int(params, 'limit', default_limit), max_limit)
        movement_type = params.get('type') or params.get('movement_type')
        return cls(
            product_id=_parse_uuid(params, 'product_id'),
            location_id=_parse_uuid(params, 'location_id'),
            user_id=_parse_uuid(params, 'user_id'),
            movement_type=movement_type.upper() if movement_type else None,
            date_from=_parse_when(params, 'date_from'),
            date_to=_parse_when(params, 'date_to'),
            limit=limit,
            offset=_parse_int(params, 'offset', 0),
        )


def _as_datetime(value, *, end: bool) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value + timedelta(days=1) if end else value, time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def _parse_int(params, name: str, default: int) -> int:
    raw = params.get(name)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise BusinessRuleViolation(detail=f'{name} must be an integer.')


def _parse_uuid(params, name: str) -> UUID | None:
    raw = params.get(name)
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        raise BusinessRuleViolation(detail=f'{name} must be a valid UUID.')


def _parse_when(params, name: str):
    raw = params.get(name)
    if not raw:
        return None
    try:
        value = parse_date(raw) if len(raw) == 10 else parse_datetime(raw)
    except ValueError:
        value = None
    if value is None:
        raise BusinessRuleViolation(detail=f'{name} must be YYYY-MM-DD or an ISO 8601 datetime.')
    return value
