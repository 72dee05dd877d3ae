"""
Root URL configuration for the bookkeeping backend.

Mounts the admin site, JWT token endpoints, the users API (actor lookup and
role assignment) and the bookkeeping API (transactions and their validation
workflow).
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/users/", include("users.urls")),
    path("api/bookkeeping/", include("bookkeeping.urls")),
]
