# invoicing/serializers.py
"""
Serializers for the invoicing API.

Output serializers are read-only; input serializers validate request
shape before the data is handed to invoicing/commands.py.
"""

from rest_framework import serializers

from .models import Customer, Vendor, Invoice, InvoiceItem, Payment


# =============================================================================
# Counterparties
# =============================================================================

COUNTERPARTY_FIELDS = [
    "id", "code", "name", "email", "phone", "address", "tax_id",
    "payment_terms", "is_active", "created_at", "updated_at",
]


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = COUNTERPARTY_FIELDS + ["credit_limit"]
        read_only_fields = fields


class VendorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vendor
        fields = COUNTERPARTY_FIELDS
        read_only_fields = fields


class CounterpartyInputSerializer(serializers.Serializer):
    """Input for creating or updating a vendor (and the base for customers)."""
    code = serializers.CharField(max_length=20, required=False)
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    tax_id = serializers.CharField(max_length=50, required=False, allow_blank=True)
    payment_terms = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)


class CustomerInputSerializer(CounterpartyInputSerializer):
    credit_limit = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)


# =============================================================================
# Invoices
# =============================================================================

class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = ["id", "line_no", "description", "quantity", "unit_price", "amount"]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    """
    Invoice with items and payment position.
    amount_paid and balance_due are computed from recorded payments.
    """
    items = InvoiceItemSerializer(many=True, read_only=True)
    counterparty_name = serializers.SerializerMethodField()
    amount_paid = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)
    balance_due = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)
    entry_number = serializers.CharField(source="journal_entry.entry_number", read_only=True, default=None)

    class Meta:
        model = Invoice
        fields = [
            "id", "invoice_number", "invoice_type", "customer", "vendor",
            "counterparty_name", "project", "issue_date", "due_date",
            "subtotal", "tax", "total", "currency", "status", "notes",
            "amount_paid", "balance_due", "entry_number", "items",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_counterparty_name(self, obj):
        counterparty = obj.counterparty
        return counterparty.name if counterparty else None


class InvoiceItemInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4, required=False, default=1)
    unit_price = serializers.DecimalField(max_digits=18, decimal_places=2)


class InvoiceCreateSerializer(serializers.Serializer):
    invoice_type = serializers.ChoiceField(choices=Invoice.InvoiceType.choices)
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    vendor_id = serializers.IntegerField(required=False, allow_null=True)
    project_id = serializers.IntegerField(required=False, allow_null=True)
    issue_date = serializers.DateField()
    due_date = serializers.DateField()
    items = InvoiceItemInputSerializer(many=True)
    tax = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, default=0)
    currency = serializers.CharField(max_length=3, min_length=3, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class InvoiceUpdateSerializer(serializers.Serializer):
    due_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Invoice.Status.choices, required=False)


class InvoiceCancelSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


# =============================================================================
# Payments
# =============================================================================

class PaymentSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True)
    entry_number = serializers.CharField(source="journal_entry.entry_number", read_only=True, default=None)

    class Meta:
        model = Payment
        fields = [
            "id", "payment_number", "invoice", "invoice_number", "amount",
            "payment_date", "method", "reference", "currency", "notes",
            "entry_number", "created_at",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=18, decimal_places=2)
    payment_date = serializers.DateField()
    method = serializers.ChoiceField(choices=Payment.Method.choices, required=False, default=Payment.Method.BANK_TRANSFER)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
