# invoicing/views.py
"""
Invoicing API views.

Endpoints:
    GET/POST    /api/invoicing/customers/
    GET/PATCH/DELETE /api/invoicing/customers/<pk>/
    GET/POST    /api/invoicing/vendors/
    GET/PATCH/DELETE /api/invoicing/vendors/<pk>/
    GET/POST    /api/invoicing/invoices/
    GET/PATCH   /api/invoicing/invoices/<pk>/
    POST        /api/invoicing/invoices/<pk>/cancel/
    GET/POST    /api/invoicing/payments/
    GET         /api/invoicing/payments/<pk>/

All writes go through invoicing/commands.py.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from django.shortcuts import get_object_or_404

from accounts.authz import resolve_actor, require
from accounting.views import failure_response
from .models import Customer, Vendor, Invoice, Payment
from .serializers import (
    CustomerSerializer,
    CustomerInputSerializer,
    VendorSerializer,
    CounterpartyInputSerializer,
    InvoiceSerializer,
    InvoiceCreateSerializer,
    InvoiceUpdateSerializer,
    InvoiceCancelSerializer,
    PaymentSerializer,
    PaymentCreateSerializer,
)
from .commands import (
    create_customer,
    update_customer,
    delete_customer,
    create_vendor,
    update_vendor,
    delete_vendor,
    create_invoice,
    update_invoice,
    cancel_invoice,
    record_payment,
)


# =============================================================================
# Customers & Vendors
# =============================================================================

class _CounterpartyListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    model = None
    output_serializer = None
    input_serializer = None
    create_command = None

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        queryset = self.model.objects.all()
        search = request.query_params.get("search")
        if search:
            queryset = queryset.filter(name__icontains=search)

        return Response(self.output_serializer(queryset, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = self.input_serializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = type(self).create_command(actor, **input_serializer.validated_data)

        if not result.success:
            return failure_response(result)

        return Response(self.output_serializer(result.data).data, status=status.HTTP_201_CREATED)


class _CounterpartyDetailView(APIView):
    permission_classes = [IsAuthenticated]

    model = None
    output_serializer = None
    input_serializer = None
    update_command = None
    delete_command = None

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        obj = get_object_or_404(self.model, pk=pk)
        return Response(self.output_serializer(obj).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = self.input_serializer(data=request.data, partial=True)
        input_serializer.is_valid(raise_exception=True)
        updates = dict(input_serializer.validated_data)
        updates.pop("code", None)

        result = type(self).update_command(actor, pk, **updates)

        if not result.success:
            return failure_response(result)

        return Response(self.output_serializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)

        result = type(self).delete_command(actor, pk)

        if not result.success:
            return failure_response(result)

        return Response(status=status.HTTP_204_NO_CONTENT)


class CustomerListCreateView(_CounterpartyListCreateView):
    model = Customer
    output_serializer = CustomerSerializer
    input_serializer = CustomerInputSerializer
    create_command = staticmethod(create_customer)


class CustomerDetailView(_CounterpartyDetailView):
    model = Customer
    output_serializer = CustomerSerializer
    input_serializer = CustomerInputSerializer
    update_command = staticmethod(update_customer)
    delete_command = staticmethod(delete_customer)


class VendorListCreateView(_CounterpartyListCreateView):
    model = Vendor
    output_serializer = VendorSerializer
    input_serializer = CounterpartyInputSerializer
    create_command = staticmethod(create_vendor)


class VendorDetailView(_CounterpartyDetailView):
    model = Vendor
    output_serializer = VendorSerializer
    input_serializer = CounterpartyInputSerializer
    update_command = staticmethod(update_vendor)
    delete_command = staticmethod(delete_vendor)


# =============================================================================
# Invoices
# =============================================================================

def _invoice_queryset():
    return Invoice.objects.select_related(
        "customer", "vendor", "journal_entry",
    ).prefetch_related("items")


class InvoiceListCreateView(APIView):
    """
    GET /api/invoicing/invoices/ -> list (filters: type, status, project)
    POST /api/invoicing/invoices/ -> issue an invoice or bill
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        invoices = _invoice_queryset()
        invoice_type = request.query_params.get("type")
        if invoice_type:
            invoices = invoices.filter(invoice_type=invoice_type.upper())
        invoice_status = request.query_params.get("status")
        if invoice_status:
            invoices = invoices.filter(status=invoice_status.upper())
        project_id = request.query_params.get("project")
        if project_id:
            invoices = invoices.filter(project_id=project_id)

        return Response(InvoiceSerializer(invoices, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = InvoiceCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = dict(input_serializer.validated_data)
        data["items"] = [dict(item) for item in data["items"]]

        result = create_invoice(actor, **data)

        if not result.success:
            return failure_response(result)

        return Response(InvoiceSerializer(result.data).data, status=status.HTTP_201_CREATED)


class InvoiceDetailView(APIView):
    """
    GET /api/invoicing/invoices/<pk>/ -> retrieve
    PATCH /api/invoicing/invoices/<pk>/ -> due date, notes, SENT/OVERDUE status
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        invoice = get_object_or_404(_invoice_queryset(), pk=pk)
        return Response(InvoiceSerializer(invoice).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = InvoiceUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = update_invoice(actor, pk, **input_serializer.validated_data)

        if not result.success:
            return failure_response(result)

        return Response(InvoiceSerializer(result.data).data)


class InvoiceCancelView(APIView):
    """POST /api/invoicing/invoices/<pk>/cancel/ -> cancel and reverse posting"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = InvoiceCancelSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = cancel_invoice(actor, pk, date=input_serializer.validated_data.get("date"))

        if not result.success:
            return failure_response(result)

        return Response(InvoiceSerializer(result.data).data)


# =============================================================================
# Payments
# =============================================================================

class PaymentListCreateView(APIView):
    """
    GET /api/invoicing/payments/ -> list (filter: invoice)
    POST /api/invoicing/payments/ -> record a payment
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        payments = Payment.objects.select_related("invoice", "journal_entry")
        invoice_id = request.query_params.get("invoice")
        if invoice_id:
            payments = payments.filter(invoice_id=invoice_id)

        return Response(PaymentSerializer(payments, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = PaymentCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = record_payment(actor, **input_serializer.validated_data)

        if not result.success:
            return failure_response(result)

        return Response(PaymentSerializer(result.data).data, status=status.HTTP_201_CREATED)


class PaymentDetailView(APIView):
    """GET /api/invoicing/payments/<pk>/ -> retrieve"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        payment = get_object_or_404(Payment.objects.select_related("invoice", "journal_entry"), pk=pk)
        return Response(PaymentSerializer(payment).data)
