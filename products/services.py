"""
Products — Service Layer

Reference-store operations for products. Point lookups raise
ResourceNotFoundError; the quantity projection is written only through
set_product_quantity, which is a compare-and-swap on the value the
caller previously read.

@file products/services.py
"""

import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DEACTIVATE, AUDIT_ACTION_UPDATE
from core.exceptions import (
    BusinessRuleViolation,
    DuplicateResourceError,
    PersistenceError,
    ResourceNotFoundError,
    WriteConflictError,
)
from core.services import AuditService

from .models import Product

logger = logging.getLogger('wms')

IMMUTABLE_FIELDS = {'sku', 'quantity', 'opening_quantity'}


class ProductService:
    """Product catalogue and the on-hand quantity projection."""

    @staticmethod
    def get_product(product_id, *, for_update: bool = False) -> Product:
        qs = Product.objects.select_for_update() if for_update else Product.objects.all()
        try:
            return qs.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, ValidationError):
            raise ResourceNotFoundError(detail=f'Product {product_id} not found.')

    @staticmethod
    def get_product_by_sku(sku: str) -> Product:
        try:
            return Product.objects.get(sku=sku)
        except Product.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Product with SKU {sku} not found.')

    @staticmethod
    def set_product_quantity(product_id, quantity: int, *, expected: int | None = None) -> None:
        """
        Overwrite the cached quantity. When ``expected`` is given the write
        only lands if the row still holds that value; otherwise a
        WriteConflictError is raised and the caller decides whether to retry.
        """
        if quantity < 0:
            raise BusinessRuleViolation(detail='Product quantity cannot be negative.')

        qs = Product.objects.filter(pk=product_id)
        if expected is not None:
            qs = qs.filter(quantity=expected)
        try:
            updated = qs.update(quantity=quantity, updated_at=timezone.now())
        except DatabaseError as exc:
            logger.error('Quantity write failed for product %s: %s', product_id, exc)
            raise PersistenceError(detail=f'Could not update quantity of product {product_id}.') from exc

        if updated:
            return
        if not Product.objects.filter(pk=product_id).exists():
            raise ResourceNotFoundError(detail=f'Product {product_id} not found.')
        raise WriteConflictError(
            detail=f'Quantity of product {product_id} changed concurrently (expected {expected}).',
        )

    @staticmethod
    @transaction.atomic
    def create_product(*, actor=None, **fields) -> Product:
        sku = (fields.get('sku') or '').strip().upper()
        if Product.objects.filter(sku=sku).exists():
            raise DuplicateResourceError(detail=f'Product with SKU {sku} already exists.')

        opening = fields.pop('quantity', 0) or 0
        product = Product(**{**fields, 'sku': sku})
        product.quantity = opening
        product.opening_quantity = opening
        product.full_clean()
        product.created_by = actor
        product.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='Product',
            object_id=str(product.pk),
            new_values=AuditService.snapshot(product),
        )
        logger.info('Product %s (%s) created by %s.', product.pk, product.sku, actor)
        return product

    @staticmethod
    @transaction.atomic
    def update_product(*, product_id, actor=None, **fields) -> Product:
        product = ProductService.get_product(product_id, for_update=True)

        for field in IMMUTABLE_FIELDS:
            if field in fields and fields[field] != getattr(product, field):
                raise BusinessRuleViolation(detail=f'Cannot modify immutable product field: {field}.')

        old_snapshot = AuditService.snapshot(product)
        for field, value in fields.items():
            if field not in IMMUTABLE_FIELDS and hasattr(product, field) and field not in ('id', 'pk'):
                setattr(product, field, value)

        product.updated_by = actor
        product.full_clean()
        product.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='Product',
            object_id=str(product.pk),
            old_values=old_snapshot,
            new_values=AuditService.snapshot(product),
        )
        return product

    @staticmethod
    @transaction.atomic
    def deactivate_product(*, product_id, actor=None) -> Product:
        product = ProductService.get_product(product_id, for_update=True)
        if not product.is_active:
            raise BusinessRuleViolation(detail='Product is already inactive.')

        product.deactivate(user=actor)
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_DEACTIVATE,
            model_name='Product',
            object_id=str(product.pk),
            old_values={'is_active': True},
            new_values={'is_active': False},
        )
        logger.info('Product %s deactivated by %s.', product.pk, actor)
        return product

    @staticmethod
    def search(term: str, *, active_only: bool = True):
        qs = Product.objects.filter(
            Q(sku__icontains=term) | Q(name__icontains=term) | Q(category__icontains=term),
        )
        if active_only:
            qs = qs.filter(is_active=True)
        return qs.order_by('name')
