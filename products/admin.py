"""
Products — Django Admin Configuration

Quantity is shown but never editable here; it changes only through
stock movements.

@file products/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        'sku', 'name', 'category', 'price', 'quantity', 'is_active', 'created_at',
    )
    list_filter = ('is_active', 'category')
    search_fields = ('sku', 'name', 'category')
    readonly_fields = (
        'id', 'quantity', 'opening_quantity',
        'created_at', 'updated_at', 'created_by', 'updated_by',
    )
    list_per_page = 30
    ordering = ('name',)

    fieldsets = (
        (_('Identity'), {
            'fields': ('id', 'sku', 'name', 'description', 'category', 'is_active'),
        }),
        (_('Physical'), {
            'fields': ('price', 'weight', 'dimensions'),
        }),
        (_('Stock'), {
            'fields': ('quantity', 'opening_quantity'),
        }),
        (_('Audit'), {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',),
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return self.readonly_fields + ('sku',)
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        return False
