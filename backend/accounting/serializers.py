# accounting/serializers.py
"""
Input validation and output shapes for the chart and the journal.

Writes never go through ModelSerializer.save(): input serializers only
validate, and the validated data is handed to accounting.commands.
"""

from rest_framework import serializers

from .models import Account, JournalEntry, JournalLine


def money(**kwargs):
    return serializers.DecimalField(max_digits=18, decimal_places=2, **kwargs)


# =============================================================================
# Chart of accounts
# =============================================================================

class AccountSerializer(serializers.ModelSerializer):
    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)
    has_transactions = serializers.SerializerMethodField()

    class Meta:
        model = Account
        fields = [
            "id", "code", "name", "account_type", "normal_balance",
            "parent", "parent_code", "balance", "currency", "is_active",
            "description", "has_transactions", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_has_transactions(self, account):
        # The list and detail views annotate this; fall back to a query.
        annotated = getattr(account, "_has_transactions", None)
        if annotated is not None:
            return annotated
        return account.journal_lines.exists()


class AccountWriteSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    account_type = serializers.ChoiceField(choices=Account.AccountType.choices)
    parent_id = serializers.IntegerField(required=False, allow_null=True)
    currency = serializers.RegexField(r"^[A-Z]{3}$", required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class AccountCreateSerializer(AccountWriteSerializer):
    currency = serializers.RegexField(r"^[A-Z]{3}$", required=False, default="USD")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    is_active = serializers.BooleanField(required=False, default=True)


class AccountUpdateSerializer(AccountWriteSerializer):
    """Used with partial=True: only the fields sent are changed."""


# =============================================================================
# Journal
# =============================================================================

class JournalLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalLine
        fields = ["id", "line_no", "account", "account_code", "account_name", "description", "debit", "credit"]
        read_only_fields = fields


class JournalLineInputSerializer(serializers.Serializer):
    """A line names its account by id or by code, not both."""

    account_id = serializers.IntegerField(required=False)
    account_code = serializers.CharField(max_length=20, required=False)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    debit = money(required=False, default=0)
    credit = money(required=False, default=0)

    def validate(self, attrs):
        if ("account_id" in attrs) == ("account_code" in attrs):
            raise serializers.ValidationError("Give exactly one of account_id or account_code.")
        return attrs


class JournalEntrySerializer(serializers.ModelSerializer):
    lines = JournalLineSerializer(many=True, read_only=True)
    total_debit = money(read_only=True)
    total_credit = money(read_only=True)
    is_balanced = serializers.BooleanField(read_only=True)

    class Meta:
        model = JournalEntry
        fields = [
            "id", "entry_number", "date", "description", "status",
            "source_module", "source_document",
            "submitted_at", "approved_at", "approved_by",
            "rejected_at", "rejected_by", "rejection_reason",
            "created_at", "created_by", "updated_at",
            "lines", "total_debit", "total_credit", "is_balanced",
        ]
        read_only_fields = fields


class JournalEntryCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    lines = JournalLineInputSerializer(many=True, allow_empty=False)
    auto_approve = serializers.BooleanField(required=False, default=False)


class JournalEntryRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
