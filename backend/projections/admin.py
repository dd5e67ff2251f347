# projections/admin.py
from django.contrib import admin

from accounting.admin import ReadOnlyModelAdmin
from .models import CashFlow


@admin.register(CashFlow)
class CashFlowAdmin(ReadOnlyModelAdmin):
    list_display = ["date", "flow_type", "category", "amount", "description", "payment", "project"]
    list_filter = ["flow_type", "category"]
    date_hierarchy = "date"
    list_select_related = ["payment", "project"]
