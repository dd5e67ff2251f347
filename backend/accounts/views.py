# accounts/views.py
"""
Auth endpoints: JWT login, logout (refresh token blacklist), current profile.
"""
import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    EmailTokenObtainPairSerializer,
    LogoutSerializer,
    ProfileSerializer,
)

logger = logging.getLogger(__name__)


class LoginView(APIView):
    """POST email + password, receive an access/refresh pair."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = EmailTokenObtainPairSerializer(
            data=request.data, context={"request": request},
        )
        serializer.is_valid(raise_exception=True)
        logger.info("User logged in", extra={"user_id": serializer.user.pk, "role": serializer.user.role})
        return Response(serializer.validated_data)


class LogoutView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        if not serializer.is_valid():
            errors = serializer.errors.get("refresh", ["Refresh token required"])
            return Response({"detail": str(errors[0])}, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(ProfileSerializer(request.user).data)
