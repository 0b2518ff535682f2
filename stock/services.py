"""
Stock — Service Layer

Ledger access, capacity accounting, the movement processor and
ledger/quantity reconciliation.

Every admitted movement appends one StockMovement and overwrites the
product's cached quantity inside a single transaction. Rows are locked
location first, then product. INSERT ONLY: never update or delete
StockMovement.

@file stock/services.py
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Case, F, IntegerField, Sum, Value, When
from django.db.models.functions import Coalesce

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_UPDATE, MOVEMENT_IN, MOVEMENT_OUT
from core.exceptions import (
    ExceedsCapacityError,
    InsufficientStockError,
    InvalidMovementError,
    PersistenceError,
    ReferenceUnavailableError,
    ResourceNotFoundError,
    WriteConflictError,
)
from core.services import AuditService
from locations.services import LocationService
from products.models import Product
from products.services import ProductService

from . import rules
from .filters import StockMovementFilter
from .models import StockMovement

logger = logging.getLogger('wms')

REJECTIONS = {
    rules.INVALID_MOVEMENT: InvalidMovementError,
    rules.REFERENCE_UNAVAILABLE: ReferenceUnavailableError,
    rules.INSUFFICIENT_STOCK: InsufficientStockError,
    rules.EXCEEDS_CAPACITY: ExceedsCapacityError,
}


def _signed_quantity_sum(prefix: str = ''):
    """SUM(+quantity for IN, -quantity for OUT) over the ledger rows in scope."""
    return Sum(
        Case(
            When(**{f'{prefix}movement_type': MOVEMENT_IN}, then=F(f'{prefix}quantity')),
            When(**{f'{prefix}movement_type': MOVEMENT_OUT}, then=-F(f'{prefix}quantity')),
            default=Value(0),
            output_field=IntegerField(),
        ),
    )


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

class StockLedger:
    """Append-only store of admitted movements."""

    @staticmethod
    def append(
        *,
        product,
        location,
        user,
        movement_type: str,
        quantity: int,
        reference: str = '',
        notes: str = '',
    ) -> StockMovement:
        """Store a movement; id and created_at are assigned at insert."""
        try:
            with transaction.atomic():
                movement = StockMovement.objects.create(
                    product=product,
                    location=location,
                    user=user,
                    movement_type=movement_type,
                    quantity=quantity,
                    reference=reference or '',
                    notes=notes or '',
                )
        except DatabaseError as exc:
            logger.error('Ledger append failed for product %s: %s', product.pk, exc)
            raise PersistenceError(detail='Could not record stock movement.') from exc
        return movement

    @staticmethod
    def get(movement_id) -> StockMovement:
        try:
            return (
                StockMovement.objects
                .select_related('product', 'location', 'user')
                .get(pk=movement_id)
            )
        except (StockMovement.DoesNotExist, ValueError):
            raise ResourceNotFoundError(detail=f'Stock movement {movement_id} not found.')

    @staticmethod
    def list(criteria: StockMovementFilter) -> tuple[list[StockMovement], int]:
        """Newest first (created_at, then id, descending). Returns (page, total)."""
        qs = StockMovement.objects.select_related('product', 'location', 'user')
        if criteria.product_id:
            qs = qs.for_product(criteria.product_id)
        if criteria.location_id:
            qs = qs.for_location(criteria.location_id)
        if criteria.user_id:
            qs = qs.filter(user_id=criteria.user_id)
        if criteria.movement_type:
            qs = qs.filter(movement_type=criteria.movement_type)
        if criteria.created_after:
            qs = qs.filter(created_at__gte=criteria.created_after)
        if criteria.created_before:
            qs = qs.filter(created_at__lt=criteria.created_before)

        qs = qs.order_by('-created_at', '-id')
        total = qs.count()
        if criteria.limit == 0:
            return [], total
        page = list(qs[criteria.offset:criteria.offset + criteria.limit])
        return page, total

    @staticmethod
    def by_product(product_id, *, limit: int = 20, offset: int = 0):
        return StockLedger.list(StockMovementFilter(product_id=product_id, limit=limit, offset=offset))

    @staticmethod
    def by_location(location_id, *, limit: int = 20, offset: int = 0):
        return StockLedger.list(StockMovementFilter(location_id=location_id, limit=limit, offset=offset))


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------

class CapacityService:

    @staticmethod
    def current_occupancy(location_id) -> int:
        """
        Net units at a location, derived from every ledger row for it.
        May be negative: shipments are not bounded by what was received
        at the same location.
        """
        try:
            result = StockMovement.objects.for_location(location_id).aggregate(
                occupancy=_signed_quantity_sum(),
            )
        except DatabaseError as exc:
            logger.error('Occupancy read failed for location %s: %s', location_id, exc)
            raise PersistenceError(detail='Could not compute location occupancy.') from exc
        return result['occupancy'] or 0


# ---------------------------------------------------------------------------
# Movement processor
# ---------------------------------------------------------------------------

class MovementService:
    """The single write entry point for stock movements."""

    @staticmethod
    def process_movement(request: rules.MovementRequest, user) -> StockMovement:
        """
        Validate and apply one movement atomically. Rejections raise a
        MovementRejected subclass and leave nothing written. A lost
        compare-and-swap on the product quantity re-runs the whole unit.
        """
        retries = getattr(settings, 'STOCK_WRITE_CONFLICT_RETRIES', 3)
        attempt = 0
        while True:
            attempt += 1
            try:
                return MovementService._apply(request, user)
            except WriteConflictError:
                if attempt > retries:
                    logger.error(
                        'Write conflict on product %s persisted after %d attempts.',
                        request.product_id, attempt,
                    )
                    raise
                logger.warning(
                    'Write conflict on product %s (attempt %d); retrying.',
                    request.product_id, attempt,
                )

    @staticmethod
    @transaction.atomic
    def _apply(request: rules.MovementRequest, user) -> StockMovement:
        is_inbound = request.movement_type == MOVEMENT_IN
        try:
            location = LocationService.get_location(request.location_id, for_update=is_inbound)
            product = ProductService.get_product(request.product_id, for_update=True)
        except ResourceNotFoundError as exc:
            logger.info('Movement rejected: %s', exc.detail)
            raise ReferenceUnavailableError(detail=exc.detail) from exc
        except DatabaseError as exc:
            logger.error('Reference lookup failed: %s', exc)
            raise PersistenceError(detail='Could not load product or location.') from exc

        occupancy = CapacityService.current_occupancy(location.pk) if is_inbound else None
        decision = rules.validate_movement(request, product, location, occupancy)
        if not decision.admitted:
            logger.info(
                'Movement rejected (%s): %s %s product=%s location=%s. %s',
                decision.reason, request.movement_type, request.quantity,
                product.sku, location.code, decision.detail,
            )
            raise REJECTIONS[decision.reason](detail=decision.detail)

        movement = StockLedger.append(
            product=product,
            location=location,
            user=user,
            movement_type=request.movement_type,
            quantity=request.quantity,
            reference=request.reference,
            notes=request.notes,
        )
        ProductService.set_product_quantity(
            product.pk, decision.new_product_quantity, expected=product.quantity,
        )
        old_quantity = product.quantity
        product.quantity = decision.new_product_quantity

        AuditService.log(
            actor=user,
            action=AUDIT_ACTION_CREATE,
            model_name='StockMovement',
            object_id=str(movement.pk),
            old_values={'product_quantity': old_quantity},
            new_values={
                'product': str(product.pk),
                'location': str(location.pk),
                'movement_type': movement.movement_type,
                'quantity': movement.quantity,
                'reference': movement.reference,
                'product_quantity': product.quantity,
            },
        )
        logger.info(
            'StockMovement %s %s qty=%s product=%s location=%s on_hand=%s',
            movement.pk, movement.movement_type, movement.quantity,
            product.sku, location.code, product.quantity,
        )
        return movement

    @staticmethod
    def get_movement(movement_id) -> StockMovement:
        return StockLedger.get(movement_id)

    @staticmethod
    def list_movements(criteria: StockMovementFilter) -> tuple[list[StockMovement], int]:
        return StockLedger.list(criteria)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QuantityDrift:
    product_id: UUID
    sku: str
    recorded: int
    expected: int

    @property
    def difference(self) -> int:
        return self.recorded - self.expected


class StockReconciliationService:
    """Checks that each product's cached quantity matches its ledger."""

    @staticmethod
    def ledger_quantity(product) -> int:
        result = StockMovement.objects.for_product(product.pk).aggregate(
            delta=_signed_quantity_sum(),
        )
        return product.opening_quantity + (result['delta'] or 0)

    @staticmethod
    def find_quantity_drift() -> list[QuantityDrift]:
        products = Product.objects.annotate(
            ledger_delta=Coalesce(_signed_quantity_sum('stock_movements__'), Value(0)),
        ).values_list('pk', 'sku', 'quantity', 'opening_quantity', 'ledger_delta')

        drift = []
        for pk, sku, quantity, opening, delta in products:
            expected = opening + delta
            if quantity != expected:
                drift.append(QuantityDrift(product_id=pk, sku=sku, recorded=quantity, expected=expected))
        for item in drift:
            logger.warning(
                'Quantity drift on %s: recorded=%d ledger=%d.', item.sku, item.recorded, item.expected,
            )
        return drift

    @staticmethod
    @transaction.atomic
    def repair(drift: QuantityDrift, *, actor=None) -> None:
        """Re-project the cached quantity from the ledger (CAS on the drifted value)."""
        if drift.expected < 0:
            logger.error('Ledger for %s projects negative stock (%d); not repairing.', drift.sku, drift.expected)
            raise PersistenceError(detail=f'Ledger for {drift.sku} projects negative stock.')

        ProductService.set_product_quantity(drift.product_id, drift.expected, expected=drift.recorded)
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='Product',
            object_id=str(drift.product_id),
            old_values={'quantity': drift.recorded},
            new_values={'quantity': drift.expected, 'source': 'ledger_reconciliation'},
        )
        logger.info('Quantity of %s re-projected %d -> %d.', drift.sku, drift.recorded, drift.expected)
