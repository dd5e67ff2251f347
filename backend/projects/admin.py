# projects/admin.py
from django.contrib import admin

from accounting.admin import ReadOnlyModelAdmin
from .models import Project


@admin.register(Project)
class ProjectAdmin(ReadOnlyModelAdmin):
    """Read-only: completion must go through projects.commands to post revenue."""
    list_display = ["code", "name", "customer", "status", "budget", "actual_cost", "start_date", "end_date"]
    list_filter = ["status"]
    search_fields = ["code", "name", "location"]
    list_select_related = ["customer"]
