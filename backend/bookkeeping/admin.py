from django.contrib import admin

from .models import (
    Account,
    Associate,
    Department,
    Project,
    Stakeholder,
    Transaction,
    Validation,
)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "department", "budget", "is_active")
    list_filter = ("is_active", "department")
    search_fields = ("code", "name")


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("account_number", "account_name", "account_type", "is_active")
    list_filter = ("account_type", "is_active")
    search_fields = ("account_number", "account_name")


@admin.register(Stakeholder)
class StakeholderAdmin(admin.ModelAdmin):
    list_display = ("name", "operational_status", "department", "is_active")
    list_filter = ("operational_status", "is_active")
    search_fields = ("name", "email")


@admin.register(Associate)
class AssociateAdmin(admin.ModelAdmin):
    list_display = ("full_name", "participation_rate", "entry_date", "is_active")
    search_fields = ("full_name", "email")


class ValidationInline(admin.TabularInline):
    model = Validation
    extra = 0
    can_delete = False
    fields = ("created_at", "action", "from_status", "to_status", "validated_by", "actor_role", "comment")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "transaction_type", "amount", "currency", "validation_status", "created_by")
    list_filter = ("validation_status", "transaction_type", "department")
    search_fields = ("reference", "nature", "description")
    date_hierarchy = "date"
    # Status moves only through the workflow API
    readonly_fields = ("validation_status", "created_by", "created_at", "updated_at")
    inlines = [ValidationInline]

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and not obj.is_draft:
            return False
        return super().has_delete_permission(request, obj)


@admin.register(Validation)
class ValidationAdmin(admin.ModelAdmin):
    """Read-only view of the validation history."""

    list_display = ("transaction", "action", "from_status", "to_status", "validated_by", "actor_role", "created_at")
    list_filter = ("action", "to_status", "actor_role")

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
