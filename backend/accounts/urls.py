# accounts/urls.py
"""
URL configuration for the auth API.

Endpoints:
- /auth/token/ - Obtain JWT pair (email + password)
- /auth/token/refresh/ - Refresh access token
- /auth/logout/ - Blacklist refresh token
- /auth/me/ - Current user and effective permissions
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import LoginView, LogoutView, ProfileView

app_name = "accounts"

urlpatterns = [
    path("auth/token/", LoginView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/me/", ProfileView.as_view(), name="me"),
]
