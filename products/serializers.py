"""
Products — Serializers

@file products/serializers.py
"""

from rest_framework import serializers

from .models import Product


class ProductReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'description',
            'price', 'weight', 'dimensions', 'category',
            'quantity', 'opening_quantity', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProductSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'sku', 'name', 'quantity']
        read_only_fields = fields


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    ``quantity`` is accepted on create only, as the opening quantity.
    Afterwards it changes exclusively through stock movements.
    """

    quantity = serializers.IntegerField(min_value=0, required=False, default=0)

    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'description',
            'price', 'weight', 'dimensions', 'category', 'quantity',
        ]
        read_only_fields = ['id']
        extra_kwargs = {'sku': {'validators': []}}

    def validate_sku(self, value):
        value = value.strip().upper()
        if self.instance is not None and value != self.instance.sku:
            raise serializers.ValidationError('SKU cannot be changed.')
        return value

    def validate_dimensions(self, value):
        if value and len(value.lower().split('x')) != 3:
            raise serializers.ValidationError('Expected LxWxH, e.g. 30x20x10.')
        return value

    def validate(self, attrs):
        if self.instance is None:
            return attrs
        quantity = attrs.pop('quantity', None)
        if 'quantity' in self.initial_data and quantity != self.instance.quantity:
            raise serializers.ValidationError({
                'quantity': 'Quantity changes only through stock movements.',
            })
        return attrs
