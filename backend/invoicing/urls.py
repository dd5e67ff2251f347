# invoicing/urls.py
"""
URL configuration for invoicing API.

Endpoints:
- /customers/, /vendors/ - Counterparties, deletable while unreferenced
- /invoices/ - Invoices and bills, with cancel action
- /payments/ - Payments against invoices
"""

from django.urls import path

from .views import (
    CustomerListCreateView,
    CustomerDetailView,
    VendorListCreateView,
    VendorDetailView,
    InvoiceListCreateView,
    InvoiceDetailView,
    InvoiceCancelView,
    PaymentListCreateView,
    PaymentDetailView,
)

app_name = "invoicing"

urlpatterns = [
    path("customers/", CustomerListCreateView.as_view(), name="customer-list-create"),
    path("customers/<int:pk>/", CustomerDetailView.as_view(), name="customer-detail"),
    path("vendors/", VendorListCreateView.as_view(), name="vendor-list-create"),
    path("vendors/<int:pk>/", VendorDetailView.as_view(), name="vendor-detail"),

    path("invoices/", InvoiceListCreateView.as_view(), name="invoice-list-create"),
    path("invoices/<int:pk>/", InvoiceDetailView.as_view(), name="invoice-detail"),
    path("invoices/<int:pk>/cancel/", InvoiceCancelView.as_view(), name="invoice-cancel"),

    path("payments/", PaymentListCreateView.as_view(), name="payment-list-create"),
    path("payments/<int:pk>/", PaymentDetailView.as_view(), name="payment-detail"),
]
