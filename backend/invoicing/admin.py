# invoicing/admin.py
"""
Django admin for invoicing models.

Counterparties are editable here. Invoices and payments are read-only:
their journal postings are created by invoicing/commands.py.
"""

from django.contrib import admin

from accounting.admin import ReadOnlyModelAdmin
from .models import Customer, Vendor, Invoice, InvoiceItem, Payment


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "email", "payment_terms", "credit_limit", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["code", "name", "email", "tax_id"]
    readonly_fields = ["code"]


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "email", "payment_terms", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["code", "name", "email", "tax_id"]
    readonly_fields = ["code"]


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ["line_no", "description", "quantity", "unit_price", "amount"]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Invoice)
class InvoiceAdmin(ReadOnlyModelAdmin):
    list_display = [
        "invoice_number", "invoice_type", "customer", "vendor", "project",
        "issue_date", "due_date", "total", "status",
    ]
    list_filter = ["invoice_type", "status"]
    search_fields = ["invoice_number", "customer__name", "vendor__name"]
    date_hierarchy = "issue_date"
    list_select_related = ["customer", "vendor", "project"]
    inlines = [InvoiceItemInline]


@admin.register(Payment)
class PaymentAdmin(ReadOnlyModelAdmin):
    list_display = ["payment_number", "invoice", "amount", "payment_date", "method", "reference"]
    list_filter = ["method"]
    search_fields = ["payment_number", "reference", "invoice__invoice_number"]
    list_select_related = ["invoice"]
