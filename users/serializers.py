"""
Users — Serializers

Read serializers for users, the JWT login serializer and registration.

@file users/serializers.py
"""

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import User


class UserReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'is_active', 'is_staff',
            'date_joined', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact actor representation embedded in stock movements."""

    class Meta:
        model = User
        fields = ['id', 'username', 'email']
        read_only_fields = fields


class LoginSerializer(TokenObtainPairSerializer):
    """Username + password → JWT pair, with the username embedded as a claim."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserReadSerializer(self.user).data
        return data


class ApiKeySerializer(serializers.Serializer):
    api_key = serializers.CharField(read_only=True)


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    is_staff = serializers.BooleanField(required=False, default=False)


class RegisteredUserSerializer(UserReadSerializer):
    """Returned once, at registration: the only response carrying the API key."""

    class Meta(UserReadSerializer.Meta):
        fields = UserReadSerializer.Meta.fields + ['api_key']
        read_only_fields = fields
