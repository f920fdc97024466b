# accounts/urls.py
"""
URL configuration for accounts/auth API.

Endpoints:
- /auth/ - Authentication (login, refresh, me)
- /users/ - User management (ADMIN)
- /memberships/ - Role changes and deactivation (ADMIN)
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    LoginView,
    MeView,
    UserListCreateView,
    MembershipRoleView,
    MembershipDetailView,
)

app_name = "accounts"

urlpatterns = [
    # Authentication
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/me/", MeView.as_view(), name="me"),

    # Users & memberships
    path("users/", UserListCreateView.as_view(), name="user-list"),
    path("memberships/<int:pk>/", MembershipDetailView.as_view(), name="membership-detail"),
    path("memberships/<int:pk>/role/", MembershipRoleView.as_view(), name="membership-role"),
]
