"""
Locations — Service Layer

Reference-store operations for storage locations. Codes are the
business key and never change after creation.

@file locations/services.py
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DEACTIVATE, AUDIT_ACTION_UPDATE
from core.exceptions import BusinessRuleViolation, DuplicateResourceError, ResourceNotFoundError
from core.services import AuditService

from .models import Location, build_location_code

logger = logging.getLogger('wms')

IMMUTABLE_FIELDS = {'code', 'zone', 'aisle', 'rack', 'shelf'}


class LocationService:

    @staticmethod
    def get_location(location_id, *, for_update: bool = False) -> Location:
        qs = Location.objects.select_for_update() if for_update else Location.objects.all()
        try:
            return qs.get(pk=location_id)
        except (Location.DoesNotExist, ValueError, ValidationError):
            raise ResourceNotFoundError(detail=f'Location {location_id} not found.')

    @staticmethod
    def get_location_by_code(code: str) -> Location:
        try:
            return Location.objects.get(code=code.strip().upper())
        except Location.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Location with code {code} not found.')

    @staticmethod
    @transaction.atomic
    def create_location(*, actor=None, **fields) -> Location:
        for part in ('zone', 'aisle', 'rack', 'shelf'):
            fields[part] = (fields.get(part) or '').strip().upper()
        code = build_location_code(fields['zone'], fields['aisle'], fields['rack'], fields['shelf'])
        given = (fields.pop('code', '') or '').strip().upper()
        if given and given != code:
            raise BusinessRuleViolation(
                detail=f'Location code {given} does not match zone/aisle/rack/shelf ({code}).',
            )
        if Location.objects.filter(code=code).exists():
            raise DuplicateResourceError(detail=f'Location {code} already exists.')

        location = Location(code=code, **fields)
        location.full_clean()
        location.created_by = actor
        location.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='Location',
            object_id=str(location.pk),
            new_values=AuditService.snapshot(location),
        )
        logger.info('Location %s created by %s.', location.code, actor)
        return location

    @staticmethod
    @transaction.atomic
    def update_location(*, location_id, actor=None, **fields) -> Location:
        """
        Update mutable attributes. Lowering capacity is allowed only down to
        the occupancy currently derived from the ledger; the row lock keeps
        concurrent receipts out while that check runs.
        """
        from stock.services import CapacityService

        location = LocationService.get_location(location_id, for_update=True)

        for field in IMMUTABLE_FIELDS:
            if field in fields and str(fields[field]).strip().upper() != getattr(location, field):
                raise BusinessRuleViolation(detail=f'Cannot modify immutable location field: {field}.')

        new_capacity = fields.get('capacity')
        if new_capacity is not None and new_capacity < location.capacity:
            occupancy = CapacityService.current_occupancy(location.pk)
            if new_capacity < occupancy:
                raise BusinessRuleViolation(
                    detail=f'Capacity {new_capacity} is below current occupancy {occupancy}.',
                )

        old_snapshot = AuditService.snapshot(location)
        for field, value in fields.items():
            if field not in IMMUTABLE_FIELDS and hasattr(location, field) and field not in ('id', 'pk'):
                setattr(location, field, value)

        location.updated_by = actor
        location.full_clean()
        location.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='Location',
            object_id=str(location.pk),
            old_values=old_snapshot,
            new_values=AuditService.snapshot(location),
        )
        return location

    @staticmethod
    @transaction.atomic
    def deactivate_location(*, location_id, actor=None) -> Location:
        location = LocationService.get_location(location_id, for_update=True)
        if not location.is_active:
            raise BusinessRuleViolation(detail='Location is already inactive.')

        location.deactivate(user=actor)
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_DEACTIVATE,
            model_name='Location',
            object_id=str(location.pk),
            old_values={'is_active': True},
            new_values={'is_active': False},
        )
        logger.info('Location %s deactivated by %s.', location.code, actor)
        return location

    @staticmethod
    def list_by_zone(zone: str, *, active_only: bool = True):
        qs = Location.objects.filter(zone=zone.strip().upper())
        if active_only:
            qs = qs.filter(is_active=True)
        return qs.order_by('code')
