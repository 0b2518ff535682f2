"""
Locations — Views

DRF ViewSet for storage locations, with occupancy derived from the
movement ledger.

@file locations/views.py
"""

from dataclasses import replace

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.pagination import page_meta
from stock.filters import StockMovementFilter
from stock.serializers import StockMovementReadSerializer
from stock.services import CapacityService, StockLedger
from users.permissions import IsStaffOrReadOnly

from .models import Location
from .serializers import LocationReadSerializer, LocationWriteSerializer, OccupancySerializer
from .services import LocationService


class LocationViewSet(viewsets.ModelViewSet):
    permission_classes = [IsStaffOrReadOnly]
    filterset_fields = ['zone', 'aisle', 'is_active']
    search_fields = ['code', 'name']
    ordering_fields = ['code', 'capacity', 'created_at']
    ordering = ['code']

    def get_queryset(self):
        return Location.objects.all()

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve', 'by_code'):
            return LocationReadSerializer
        return LocationWriteSerializer

    def perform_create(self, serializer):
        location = LocationService.create_location(
            actor=self.request.user, **serializer.validated_data,
        )
        serializer.instance = location

    def perform_update(self, serializer):
        location = LocationService.update_location(
            location_id=self.get_object().pk,
            actor=self.request.user,
            **serializer.validated_data,
        )
        serializer.instance = location

    def perform_destroy(self, instance):
        LocationService.deactivate_location(location_id=instance.pk, actor=self.request.user)

    @action(detail=False, methods=['get'], url_path=r'by-code/(?P<code>[^/]+)')
    def by_code(self, request, code=None):
        location = LocationService.get_location_by_code(code)
        return Response({'success': True, 'data': LocationReadSerializer(location).data})

    @action(detail=True, methods=['get'], url_path='occupancy')
    def occupancy(self, request, pk=None):
        location = self.get_object()
        occupancy = CapacityService.current_occupancy(location.pk)
        ser = OccupancySerializer({
            'location': location,
            'capacity': location.capacity,
            'occupancy': occupancy,
            'available': location.capacity - occupancy,
        })
        return Response({'success': True, 'data': ser.data})

    @action(detail=True, methods=['get'], url_path='movements')
    def movements(self, request, pk=None):
        location = self.get_object()
        criteria = replace(StockMovementFilter.from_query_params(request.query_params), location_id=location.pk)
        page, total = StockLedger.list(criteria)
        return Response({
            'success': True,
            'data': StockMovementReadSerializer(page, many=True).data,
            'meta': page_meta(total=total, limit=criteria.limit, offset=criteria.offset),
        })
