"""
Products — Views

DRF ViewSet for the product catalogue. Deleting a product deactivates
it; products referenced by the ledger are never removed.

@file products/views.py
"""

from dataclasses import replace

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.pagination import page_meta
from stock.filters import StockMovementFilter
from stock.serializers import StockMovementReadSerializer
from stock.services import StockLedger
from users.permissions import IsStaffOrReadOnly

from .models import Product
from .serializers import ProductReadSerializer, ProductWriteSerializer
from .services import ProductService


class ProductViewSet(viewsets.ModelViewSet):
    """
    List/retrieve open to any authenticated user.
    Create/update/deactivate restricted to staff.
    """

    permission_classes = [IsStaffOrReadOnly]
    filterset_fields = ['category', 'is_active']
    search_fields = ['sku', 'name', 'category']
    ordering_fields = ['name', 'sku', 'quantity', 'created_at']
    ordering = ['name']

    def get_queryset(self):
        return Product.objects.all()

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve', 'by_sku'):
            return ProductReadSerializer
        return ProductWriteSerializer

    def perform_create(self, serializer):
        product = ProductService.create_product(
            actor=self.request.user, **serializer.validated_data,
        )
        serializer.instance = product

    def perform_update(self, serializer):
        product = ProductService.update_product(
            product_id=self.get_object().pk,
            actor=self.request.user,
            **serializer.validated_data,
        )
        serializer.instance = product

    def perform_destroy(self, instance):
        ProductService.deactivate_product(product_id=instance.pk, actor=self.request.user)

    @action(detail=False, methods=['get'], url_path=r'by-sku/(?P<sku>[^/]+)')
    def by_sku(self, request, sku=None):
        product = ProductService.get_product_by_sku(sku.upper())
        return Response({'success': True, 'data': ProductReadSerializer(product).data})

    @action(detail=True, methods=['get'], url_path='movements')
    def movements(self, request, pk=None):
        product = self.get_object()
        criteria = replace(StockMovementFilter.from_query_params(request.query_params), product_id=product.pk)
        page, total = StockLedger.list(criteria)
        return Response({
            'success': True,
            'data': StockMovementReadSerializer(page, many=True).data,
            'meta': page_meta(total=total, limit=criteria.limit, offset=criteria.offset),
        })
