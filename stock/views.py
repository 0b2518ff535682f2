"""
Stock — Views

HTTP surface of the movement processor: record a movement, list the
ledger with filters, fetch one movement.

@file stock/views.py
"""

from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.pagination import page_meta

from .filters import StockMovementFilter
from .serializers import StockMovementCreateSerializer, StockMovementReadSerializer
from .services import MovementService


class StockMovementViewSet(viewsets.ViewSet):
    """
    POST   /stock-movements/        record an IN or OUT movement
    GET    /stock-movements/        ledger, newest first
    GET    /stock-movements/<id>/   one movement
    """

    permission_classes = [IsAuthenticated]

    def create(self, request):
        ser = StockMovementCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        movement = MovementService.process_movement(ser.to_movement_request(), request.user)
        return Response(
            {'success': True, 'data': StockMovementReadSerializer(movement).data},
            status=status.HTTP_201_CREATED,
        )

    def list(self, request):
        criteria = StockMovementFilter.from_query_params(request.query_params)
        page, total = MovementService.list_movements(criteria)
        return Response({
            'success': True,
            'data': StockMovementReadSerializer(page, many=True).data,
            'meta': page_meta(total=total, limit=criteria.limit, offset=criteria.offset),
        })

    def retrieve(self, request, pk=None):
        movement = MovementService.get_movement(pk)
        return Response({'success': True, 'data': StockMovementReadSerializer(movement).data})
