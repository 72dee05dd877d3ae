"""
Django admin configuration for CustomUser and role assignments.

This module registers the CustomUser model with the Django admin interface
and shows the user's application role inline.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser, UserRole


class UserRoleInline(admin.StackedInline):
    model = UserRole
    fk_name = "user"
    can_delete = True
    readonly_fields = ("assigned_at", "created_at")
    fields = ("role", "assigned_by", "assigned_at", "created_at")


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    """
    Custom admin configuration for CustomUser model.

    Extends the default UserAdmin with profile fields and the role inline.
    """

    inlines = [UserRoleInline]
    list_display = ("username", "email", "first_name", "last_name", "is_active")

    # Extend the fieldsets to include custom fields in edit view
    fieldsets = UserAdmin.fieldsets + (
        ("Profile", {"fields": ("phone", "title")}),
    )

    # Extend the add_fieldsets to include custom fields in create view
    add_fieldsets = UserAdmin.add_fieldsets + (
        ("Profile", {"fields": ("email", "phone", "title")}),
    )


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "assigned_by", "assigned_at")
    list_filter = ("role",)
    search_fields = ("user__username", "user__email")
    readonly_fields = ("assigned_at", "created_at")
