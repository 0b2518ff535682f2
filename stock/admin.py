"""
Stock — Django Admin Configuration

Read-only list of StockMovement. No add, no edit, no delete: movements
enter the ledger only through the movement processor.

@file stock/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'created_at', 'type_badge', 'quantity',
        'product', 'location', 'user', 'reference',
    )
    list_filter = ('movement_type', 'created_at', 'location__zone')
    search_fields = ('reference', 'product__sku', 'location__code', 'user__username')
    readonly_fields = (
        'id', 'product', 'location', 'user', 'movement_type',
        'quantity', 'reference', 'notes', 'created_at',
    )
    list_select_related = ('product', 'location', 'user')
    show_full_result_count = False
    list_per_page = 50
    date_hierarchy = 'created_at'
    ordering = ('-created_at', '-id')

    fieldsets = (
        (_('Movement'), {
            'fields': ('id', 'movement_type', 'quantity', 'product', 'location'),
        }),
        (_('Reference'), {
            'fields': ('reference', 'notes'),
        }),
        (_('Audit'), {
            'fields': ('user', 'created_at'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Type'))
    def type_badge(self, obj):
        color = '#22c55e' if obj.movement_type == StockMovement.MovementType.IN else '#f97316'
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            color, obj.get_movement_type_display(),
        )
