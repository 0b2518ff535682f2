"""
Stock — Movement Rules

Pure admission rules for a proposed movement. No database access and no
side effects: callers pass in the product and location they resolved
(and, for receipts, the location's current occupancy) and get back a
decision.

@file stock/rules.py
"""

from dataclasses import dataclass
from uuid import UUID

from core.constants import MOVEMENT_OUT, MOVEMENT_TYPES

INVALID_MOVEMENT = 'INVALID_MOVEMENT'
REFERENCE_UNAVAILABLE = 'REFERENCE_UNAVAILABLE'
INSUFFICIENT_STOCK = 'INSUFFICIENT_STOCK'
EXCEEDS_CAPACITY = 'EXCEEDS_CAPACITY'


@dataclass(frozen=True)
class MovementRequest:
    product_id: UUID
    location_id: UUID
    movement_type: str
    quantity: int
    reference: str = ''
    notes: str = ''


@dataclass(frozen=True)
class MovementDecision:
    admitted: bool
    new_product_quantity: int | None = None
    reason: str | None = None
    detail: str = ''

    @classmethod
    def admit(cls, new_product_quantity: int) -> 'MovementDecision':
        return cls(admitted=True, new_product_quantity=new_product_quantity)

    @classmethod
    def reject(cls, reason: str, detail: str) -> 'MovementDecision':
        return cls(admitted=False, reason=reason, detail=detail)


def validate_movement(request, product, location, current_occupancy: int | None = None) -> MovementDecision:
    """
    Decide whether ``request`` may be applied.

    OUT needs ``product.quantity >= quantity``; the result may be zero.
    IN needs ``current_occupancy + quantity <= location.capacity``.
    OUT is not checked against capacity.
    """
    quantity = request.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return MovementDecision.reject(INVALID_MOVEMENT, 'Quantity must be a positive integer.')
    if request.movement_type not in MOVEMENT_TYPES:
        return MovementDecision.reject(
            INVALID_MOVEMENT, f'Unknown movement type: {request.movement_type!r}.',
        )

    if not product.is_active:
        return MovementDecision.reject(REFERENCE_UNAVAILABLE, f'Product {product.pk} is inactive.')
    if not location.is_active:
        return MovementDecision.reject(REFERENCE_UNAVAILABLE, f'Location {location.pk} is inactive.')

    if request.movement_type == MOVEMENT_OUT:
        if product.quantity < quantity:
            return MovementDecision.reject(
                INSUFFICIENT_STOCK,
                f'Insufficient stock: on hand={product.quantity}, requested={quantity}.',
            )
        return MovementDecision.admit(product.quantity - quantity)

    if current_occupancy is None:
        raise ValueError('current_occupancy is required for IN movements.')
    projected = current_occupancy + quantity
    if projected > location.capacity:
        return MovementDecision.reject(
            EXCEEDS_CAPACITY,
            f'Location {location.code} capacity {location.capacity} exceeded: '
            f'occupancy={current_occupancy}, requested={quantity}.',
        )
    return MovementDecision.admit(product.quantity + quantity)

