"""
URL configuration for identity endpoints.
"""

from django.urls import path

from .views import CurrentActorView, RoleAssignmentView

app_name = "users"

urlpatterns = [
    # Authenticated actor with resolved role
    path("me/", CurrentActorView.as_view(), name="current-actor"),
    # Role assignment (most recent assignment wins)
    path("<int:pk>/role/", RoleAssignmentView.as_view(), name="user-role"),
]
