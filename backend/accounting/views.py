# accounting/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic, validation, audit events.

CRITICAL: All mutations (create, update, delete, workflow transitions)
MUST go through commands. Views never call .save() on models.

Endpoints:
    GET/POST    /api/accounting/accounts/
    GET/PATCH/DELETE /api/accounting/accounts/<pk>/
    GET/POST    /api/accounting/journal-entries/
    GET         /api/accounting/journal-entries/<pk>/
    POST        /api/accounting/journal-entries/<pk>/submit/
    POST        /api/accounting/journal-entries/<pk>/approve/
    POST        /api/accounting/journal-entries/<pk>/reject/
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from django.db.models import Exists, OuterRef
from django.shortcuts import get_object_or_404

from accounts.authz import resolve_actor, require
from .models import Account, JournalEntry, JournalLine
from .serializers import (
    AccountSerializer,
    AccountCreateSerializer,
    AccountUpdateSerializer,
    JournalEntrySerializer,
    JournalEntryCreateSerializer,
    JournalEntryRejectSerializer,
)
from .commands import (
    list_accounts,
    # Account commands
    create_account,
    update_account,
    delete_account,
    # Journal entry commands
    create_journal_entry,
    submit_journal_entry,
    approve_journal_entry,
    reject_journal_entry,
)


def failure_response(result) -> Response:
    """Render a failed CommandResult with its mapped HTTP status."""
    return Response(
        {
            "detail": result.error,
            "code": result.error_code,
            "retryable": result.retryable,
        },
        status=result.status_code or status.HTTP_400_BAD_REQUEST,
    )


def _parse_bool(value):
    if value is None or value == "":
        return None
    return str(value).lower() in ("1", "true", "yes")


def _with_has_transactions(qs):
    return qs.annotate(
        _has_transactions=Exists(
            JournalLine.objects.filter(account=OuterRef("pk"))
        ),
    )


# =============================================================================
# Account Views
# =============================================================================

class AccountListCreateView(APIView):
    """
    GET /api/accounting/accounts/ -> list accounts (filters: type, is_active)
    POST /api/accounting/accounts/ -> create account

    POST goes through the command layer to emit events.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounts.view")

        accounts = _with_has_transactions(list_accounts(
            account_type=request.query_params.get("type"),
            is_active=_parse_bool(request.query_params.get("is_active")),
        ))
        serializer = AccountSerializer(accounts, many=True)
        return Response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)
        # Permission check happens in command

        input_serializer = AccountCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_account(actor, **input_serializer.validated_data)

        if not result.success:
            return failure_response(result)

        output_serializer = AccountSerializer(result.data)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class AccountDetailView(APIView):
    """
    GET /api/accounting/accounts/<pk>/ -> retrieve account
    PATCH /api/accounting/accounts/<pk>/ -> update account
    DELETE /api/accounting/accounts/<pk>/ -> delete account

    PATCH and DELETE go through the command layer to emit events.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "accounts.view")

        account = get_object_or_404(
            _with_has_transactions(Account.objects.select_related("parent")),
            pk=pk,
        )
        serializer = AccountSerializer(account)
        return Response(serializer.data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = AccountUpdateSerializer(data=request.data, partial=True)
        input_serializer.is_valid(raise_exception=True)

        result = update_account(actor, pk, **input_serializer.validated_data)

        if not result.success:
            return failure_response(result)

        output_serializer = AccountSerializer(result.data)
        return Response(output_serializer.data)

    def delete(self, request, pk):
        actor = resolve_actor(request)

        result = delete_account(actor, pk)

        if not result.success:
            return failure_response(result)

        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Journal Entry Views
# =============================================================================

class JournalEntryListCreateView(APIView):
    """
    GET /api/accounting/journal-entries/ -> list journal entries (filter: status)
    POST /api/accounting/journal-entries/ -> create journal entry

    POST goes through the command layer to emit events.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        entries = JournalEntry.objects.order_by("-date", "-id").prefetch_related(
            "lines", "lines__account",
        )
        entry_status = request.query_params.get("status")
        if entry_status:
            entries = entries.filter(status=entry_status.upper())

        serializer = JournalEntrySerializer(entries, many=True)
        return Response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = JournalEntryCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = create_journal_entry(
            actor,
            date=data["date"],
            description=data.get("description", ""),
            lines=[dict(line) for line in data["lines"]],
            auto_approve=data.get("auto_approve", False),
        )

        if not result.success:
            return failure_response(result)

        output_serializer = JournalEntrySerializer(result.data)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class JournalEntryDetailView(APIView):
    """GET /api/accounting/journal-entries/<pk>/ -> retrieve"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        entry = get_object_or_404(
            JournalEntry.objects.prefetch_related("lines", "lines__account"),
            pk=pk,
        )
        serializer = JournalEntrySerializer(entry)
        return Response(serializer.data)


class JournalSubmitView(APIView):
    """POST /api/accounting/journal-entries/<pk>/submit/ -> DRAFT to PENDING"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        result = submit_journal_entry(actor, pk)

        if not result.success:
            return failure_response(result)

        return Response(JournalEntrySerializer(result.data).data)


class JournalApproveView(APIView):
    """
    POST /api/accounting/journal-entries/<pk>/approve/ -> approve entry

    Approval applies the entry to account balances.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        result = approve_journal_entry(actor, pk)

        if not result.success:
            return failure_response(result)

        return Response(JournalEntrySerializer(result.data).data)


class JournalRejectView(APIView):
    """POST /api/accounting/journal-entries/<pk>/reject/ -> reject entry"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = JournalEntryRejectSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = reject_journal_entry(actor, pk, reason=input_serializer.validated_data["reason"])

        if not result.success:
            return failure_response(result)

        return Response(JournalEntrySerializer(result.data).data)
