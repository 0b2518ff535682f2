"""
Locations — Models

Physical storage slots addressed hierarchically as
ZONE-AISLE-RACK-SHELF (e.g. ``A-01-02-03``). Occupancy is not stored;
it is derived from the stock movement ledger on demand.

@file locations/models.py
"""

import re

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import ReferenceModel

LOCATION_SEGMENT_REGEX = re.compile(r'^[A-Z0-9]{1,10}$')


def build_location_code(zone: str, aisle: str, rack: str, shelf: str) -> str:
    return '-'.join(part.strip().upper() for part in (zone, aisle, rack, shelf))


class Location(ReferenceModel):
    """A storage location with a finite capacity (in units)."""

    code = models.CharField(
        _('code'), max_length=20, unique=True,
        help_text=_('ZONE-AISLE-RACK-SHELF; immutable once created.'),
    )
    name = models.CharField(_('name'), max_length=255)
    zone = models.CharField(_('zone'), max_length=10, db_index=True)
    aisle = models.CharField(_('aisle'), max_length=10)
    rack = models.CharField(_('rack'), max_length=10)
    shelf = models.CharField(_('shelf'), max_length=10)
    capacity = models.PositiveIntegerField(
        _('capacity'),
        help_text=_('Maximum aggregate quantity the location may hold.'),
    )
    temperature = models.DecimalField(
        _('temperature requirement (°C)'), max_digits=5, decimal_places=2,
        null=True, blank=True,
    )

    class Meta:
        verbose_name = _('location')
        verbose_name_plural = _('locations')
        ordering = ['code']
        indexes = [
            models.Index(fields=['zone', 'is_active']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(capacity__gt=0),
                name='location_positive_capacity',
            ),
        ]

    def __str__(self):
        return f'{self.code} ({self.name})'

    def clean(self):
        super().clean()
        errors = {}
        for field in ('zone', 'aisle', 'rack', 'shelf'):
            value = getattr(self, field) or ''
            if not LOCATION_SEGMENT_REGEX.match(value.upper()):
                errors[field] = _('Use 1-10 letters or digits.')
        if not errors and self.code != build_location_code(self.zone, self.aisle, self.rack, self.shelf):
            errors['code'] = _('Code must be ZONE-AISLE-RACK-SHELF matching the location fields.')
        if errors:
            raise ValidationError(errors)
