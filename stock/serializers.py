"""
Stock — Serializers

@file stock/serializers.py
"""

from rest_framework import serializers

from core.constants import REFERENCE_MAX_LENGTH
from locations.serializers import LocationSummarySerializer
from products.serializers import ProductSummarySerializer
from users.serializers import UserSummarySerializer

from .models import StockMovement
from .rules import MovementRequest


class StockMovementReadSerializer(serializers.ModelSerializer):
    product = ProductSummarySerializer(read_only=True)
    location = LocationSummarySerializer(read_only=True)
    user = UserSummarySerializer(read_only=True)
    movement_type_display = serializers.CharField(
        source='get_movement_type_display', read_only=True,
    )

    class Meta:
        model = StockMovement
        fields = [
            'id', 'product', 'location', 'user',
            'movement_type', 'movement_type_display', 'quantity',
            'reference', 'notes', 'created_at',
        ]
        read_only_fields = fields


class StockMovementCreateSerializer(serializers.Serializer):
    """
    Shape checks only. Whether the movement is admissible is decided by
    the movement processor.
    """

    product_id = serializers.UUIDField()
    location_id = serializers.UUIDField()
    movement_type = serializers.ChoiceField(choices=StockMovement.MovementType.choices)
    quantity = serializers.IntegerField(min_value=1)
    reference = serializers.CharField(
        max_length=REFERENCE_MAX_LENGTH, required=False, allow_blank=True, default='',
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def to_movement_request(self) -> MovementRequest:
        return MovementRequest(**self.validated_data)
