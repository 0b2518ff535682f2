"""
Stock — Models

The movement ledger. Each row is one admitted receipt (IN) or shipment
(OUT) of a product at a location. Product quantities and location
occupancy are projections of this table. Records are INSERT ONLY:
never update or delete.

@file stock/models.py
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.constants import MOVEMENT_IN, MOVEMENT_OUT, REFERENCE_MAX_LENGTH


class StockMovementQuerySet(models.QuerySet):
    """Bulk writes would bypass the insert-only guard on the model."""

    def update(self, **kwargs):
        raise NotImplementedError('StockMovement is insert-only; bulk updates are not allowed.')

    def delete(self):
        raise NotImplementedError('StockMovement records cannot be deleted.')

    def for_product(self, product_id):
        return self.filter(product_id=product_id)

    def for_location(self, location_id):
        return self.filter(location_id=location_id)


class StockMovement(models.Model):
    """
    A single immutable stock movement.

    ``id`` is assigned by the database at insert and is monotonic, so it
    breaks ties between rows sharing a ``created_at``.
    """

    class MovementType(models.TextChoices):
        IN = MOVEMENT_IN, _('In')
        OUT = MOVEMENT_OUT, _('Out')

    id = models.BigAutoField(primary_key=True)
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='stock_movements',
        verbose_name=_('product'),
    )
    location = models.ForeignKey(
        'locations.Location',
        on_delete=models.PROTECT,
        related_name='stock_movements',
        verbose_name=_('location'),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='stock_movements',
        verbose_name=_('user'),
    )
    movement_type = models.CharField(
        _('movement type'), max_length=3,
        choices=MovementType.choices, db_index=True,
    )
    quantity = models.PositiveIntegerField(_('quantity'))
    reference = models.CharField(
        _('reference'), max_length=REFERENCE_MAX_LENGTH, blank=True,
        help_text=_('External document number: PO, delivery note, order…'),
    )
    notes = models.TextField(_('notes'), blank=True)
    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )
    # No updated_at: immutable record.

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('stock movement')
        verbose_name_plural = _('stock movements')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['product', 'created_at'], name='stock_product_created_idx'),
            models.Index(fields=['location', 'movement_type'], name='stock_location_type_idx'),
            models.Index(fields=['user', 'created_at'], name='stock_user_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='stock_movement_positive_quantity',
            ),
            models.CheckConstraint(
                condition=models.Q(movement_type__in=[MOVEMENT_IN, MOVEMENT_OUT]),
                name='stock_movement_valid_type',
            ),
        ]

    def __str__(self):
        return f'#{self.pk} {self.movement_type} {self.quantity} product={self.product_id} location={self.location_id}'

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.movement_type == MOVEMENT_IN else -self.quantity

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError('StockMovement is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('StockMovement records cannot be deleted.')
