"""
Locations — Serializers

@file locations/serializers.py
"""

from rest_framework import serializers

from .models import LOCATION_SEGMENT_REGEX, Location


class LocationReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = [
            'id', 'code', 'name',
            'zone', 'aisle', 'rack', 'shelf',
            'capacity', 'temperature', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class LocationSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ['id', 'code', 'name', 'capacity']
        read_only_fields = fields


class LocationWriteSerializer(serializers.ModelSerializer):
    code = serializers.CharField(required=False, max_length=20)

    class Meta:
        model = Location
        fields = [
            'id', 'code', 'name', 'zone', 'aisle', 'rack', 'shelf',
            'capacity', 'temperature',
        ]
        read_only_fields = ['id']

    def _validate_segment(self, value):
        value = value.strip().upper()
        if not LOCATION_SEGMENT_REGEX.match(value):
            raise serializers.ValidationError('Use 1-10 letters or digits.')
        return value

    validate_zone = _validate_segment
    validate_aisle = _validate_segment
    validate_rack = _validate_segment
    validate_shelf = _validate_segment

    def validate_capacity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Capacity must be positive.')
        return value


class OccupancySerializer(serializers.Serializer):
    location = LocationSummarySerializer()
    capacity = serializers.IntegerField()
    occupancy = serializers.IntegerField()
    available = serializers.IntegerField()
