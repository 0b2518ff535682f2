"""
Locations — Django Admin Configuration

@file locations/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from stock.services import CapacityService

from .models import Location


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'zone', 'capacity', 'is_active', 'created_at')
    list_filter = ('is_active', 'zone')
    search_fields = ('code', 'name')
    readonly_fields = (
        'id', 'occupancy', 'created_at', 'updated_at', 'created_by', 'updated_by',
    )
    list_per_page = 30
    ordering = ('code',)

    fieldsets = (
        (_('Address'), {
            'fields': ('id', 'code', 'name', 'zone', 'aisle', 'rack', 'shelf', 'is_active'),
        }),
        (_('Storage'), {
            'fields': ('capacity', 'occupancy', 'temperature'),
        }),
        (_('Audit'), {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',),
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return self.readonly_fields + ('code', 'zone', 'aisle', 'rack', 'shelf')
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Occupancy'))
    def occupancy(self, obj):
        if not obj.pk:
            return '—'
        return CapacityService.current_occupancy(obj.pk)
