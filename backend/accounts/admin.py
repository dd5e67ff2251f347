from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """Roles are assigned here; permissions follow from the role."""

    fieldsets = (
        (None, {"fields": ("email", "password", "name")}),
        ("Role", {"fields": ("role", "effective_permissions")}),
        ("Status", {"fields": ("is_active", "is_staff", "is_superuser", "last_login", "date_joined")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "name", "role", "password1", "password2")}),
    )
    readonly_fields = ("effective_permissions", "last_login", "date_joined")
    list_display = ("email", "name", "role", "is_active")
    list_filter = ("role", "is_active", "is_superuser")
    search_fields = ("email", "name")
    ordering = ("email",)

    @admin.display(description="Permissions")
    def effective_permissions(self, obj):
        return ", ".join(sorted(obj.permission_codes)) if obj.pk else "-"
