"""
Products — Models

Product catalogue. ``quantity`` is the cached on-hand count: it is a
projection of the stock movement ledger and is written only by the
movement processor (or a reconciliation repair). ``opening_quantity``
records what the product was registered with so the projection can be
re-derived: quantity == opening_quantity + SUM(IN) - SUM(OUT).

@file products/models.py
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import ReferenceModel


class Product(ReferenceModel):
    """A stock-keeping unit held somewhere in the warehouse."""

    sku = models.CharField(
        _('SKU'), max_length=50, unique=True,
        help_text=_('Business key; immutable once created.'),
    )
    name = models.CharField(_('name'), max_length=255)
    description = models.TextField(_('description'), blank=True)
    price = models.DecimalField(
        _('price'), max_digits=12, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
    )
    weight = models.DecimalField(
        _('weight (kg)'), max_digits=10, decimal_places=3, default=Decimal('0.000'),
        validators=[MinValueValidator(Decimal('0'))],
    )
    dimensions = models.CharField(
        _('dimensions'), max_length=50, blank=True,
        help_text=_('LxWxH in cm'),
    )
    category = models.CharField(_('category'), max_length=100, db_index=True)
    quantity = models.IntegerField(
        _('quantity on hand'), default=0,
        help_text=_('Projection of the movement ledger; never edited directly.'),
    )
    opening_quantity = models.IntegerField(
        _('opening quantity'), default=0, editable=False,
    )

    class Meta:
        verbose_name = _('product')
        verbose_name_plural = _('products')
        ordering = ['name']
        indexes = [
            models.Index(fields=['category', 'is_active']),
            models.Index(fields=['name']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name='product_quantity_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(opening_quantity__gte=0),
                name='product_opening_quantity_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.sku} {self.name}'
