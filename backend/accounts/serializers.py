# accounts/serializers.py
"""
Serializers for the auth API.

Login is by email. The access token carries the user's role as a claim so
clients can shape their UI without an extra round trip; the server never
trusts the claim and re-resolves permissions on every request.
"""

from django.contrib.auth import authenticate
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    username_field = User.EMAIL_FIELD

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        token["name"] = user.name
        return token

    def validate(self, attrs):
        user = authenticate(
            request=self.context.get("request"),
            email=attrs.get("email"),
            password=attrs.get("password"),
        )
        if user is None:
            raise AuthenticationFailed("Invalid credentials")

        self.user = user
        refresh = self.get_token(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()

    def validate_refresh(self, value):
        try:
            return RefreshToken(value)
        except TokenError:
            raise serializers.ValidationError("Invalid token")

    def save(self, **kwargs):
        self.validated_data["refresh"].blacklist()


class UserSerializer(serializers.ModelSerializer):
    role_display = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "name", "role", "role_display", "is_admin"]
        read_only_fields = fields


class ProfileSerializer(serializers.Serializer):
    """The current user plus the permission codes their role grants."""

    user = UserSerializer(source="*")
    permissions = serializers.SerializerMethodField()

    def get_permissions(self, user):
        return sorted(user.permission_codes)
