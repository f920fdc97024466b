# accounting/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: authorization, lifecycle, validation, versions, events.

CRITICAL: All mutations MUST go through commands so the workflow rules
and the audit trail are enforced. Views never call .save() on models.
"""

from django.conf import settings
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor
from accounting.errors import ErrorCode, NotFound
from accounting.lifecycle import Operation
from accounting.queries import (
    entry_history,
    get_journal_entry,
    list_accounts,
    list_journal_entries,
    rejection_history,
)
from accounting.serializers import (
    AccountSerializer,
    JournalEntryCreateSerializer,
    JournalEntryListSerializer,
    JournalEntryRejectSerializer,
    JournalEntrySerializer,
    JournalEntryTransitionSerializer,
    JournalEntryUpdateSerializer,
)
from accounting.commands import (
    TRANSITION_COMMANDS,
    create_journal_entry,
    delete_journal_entry,
    reject_journal_entry,
    update_journal_entry,
)
from events.serializers import BusinessEventSerializer


ERROR_STATUS = {
    ErrorCode.MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INCOMPLETE_LINE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_LINE_SET: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNBALANCED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ILLEGAL_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
}


def error_response(error) -> Response:
    """Translate a JournalError into {"code", "detail", ...context}."""
    return Response(error.to_dict(), status=ERROR_STATUS[error.code])


def _line_payload(lines) -> list:
    return [
        {
            "account_id": line.get("account_id"),
            "description": line.get("description", ""),
            "debit": line.get("debit"),
            "credit": line.get("credit"),
        }
        for line in lines
    ]


class JournalEntryPagination(PageNumberPagination):
    page_size_query_param = "page_size"
    max_page_size = 500

    def get_page_size(self, request):
        self.page_size = getattr(settings, "JOURNAL_PAGE_SIZE", 50)
        return super().get_page_size(request)


# =============================================================================
# Account Views
# =============================================================================

class AccountListView(APIView):
    """
    GET /api/accounting/accounts/ -> active accounts of the active company
    (?include_inactive=1 for all)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        include_inactive = request.query_params.get("include_inactive") in ("1", "true", "True")
        accounts = list_accounts(actor, include_inactive=include_inactive)
        return Response(AccountSerializer(accounts, many=True).data)


# =============================================================================
# Journal Entry Views
# =============================================================================

class JournalEntryListCreateView(APIView):
    """
    GET /api/accounting/journal-entries/ -> list journal entries
        filters: status, date_from, date_to, q; paginated
    POST /api/accounting/journal-entries/ -> create a DRAFT entry
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        params = request.query_params
        try:
            entries = list_journal_entries(
                actor,
                status=params.get("status"),
                date_from=params.get("date_from"),
                date_to=params.get("date_to"),
                q=params.get("q"),
            )
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        paginator = JournalEntryPagination()
        page = paginator.paginate_queryset(entries, request, view=self)
        serializer = JournalEntryListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = JournalEntryCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = create_journal_entry(
            actor,
            date=data.get("date"),
            memo=data.get("memo", ""),
            lines=_line_payload(data.get("lines", [])),
        )
        if not result.success:
            return error_response(result.error)

        output = JournalEntrySerializer(result.data, context={"actor": actor})
        return Response(output.data, status=status.HTTP_201_CREATED)


class JournalEntryDetailView(APIView):
    """
    GET /api/accounting/journal-entries/<pk>/ -> retrieve
    PATCH /api/accounting/journal-entries/<pk>/ -> edit a DRAFT (body carries version)
    DELETE /api/accounting/journal-entries/<pk>/?version=N -> delete a DRAFT
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        entry = get_journal_entry(actor, pk)
        if entry is None:
            return error_response(NotFound(entity="JournalEntry", identifier=str(pk)))
        return Response(JournalEntrySerializer(entry, context={"actor": actor}).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = JournalEntryUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = update_journal_entry(
            actor,
            pk,
            expected_version=data["version"],
            date=data.get("date"),
            memo=data.get("memo"),
            lines=_line_payload(data["lines"]) if "lines" in data else None,
        )
        if not result.success:
            return error_response(result.error)

        return Response(JournalEntrySerializer(result.data, context={"actor": actor}).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = JournalEntryTransitionSerializer(data=request.query_params)
        input_serializer.is_valid(raise_exception=True)

        result = delete_journal_entry(actor, pk, expected_version=input_serializer.validated_data["version"])
        if not result.success:
            return error_response(result.error)
        return Response(status=status.HTTP_204_NO_CONTENT)


class JournalTransitionView(APIView):
    """
    POST /api/accounting/journal-entries/<pk>/submit/
    POST /api/accounting/journal-entries/<pk>/approve/
    POST /api/accounting/journal-entries/<pk>/confirm/

    Body: {"version": N}
    """
    permission_classes = [IsAuthenticated]
    operation = None

    def post(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = JournalEntryTransitionSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        command = TRANSITION_COMMANDS[self.operation]
        result = command(actor, pk, expected_version=input_serializer.validated_data["version"])
        if not result.success:
            return error_response(result.error)
        return Response(JournalEntrySerializer(result.data, context={"actor": actor}).data)


class JournalSubmitView(JournalTransitionView):
    operation = Operation.SUBMIT


class JournalApproveView(JournalTransitionView):
    operation = Operation.APPROVE


class JournalConfirmView(JournalTransitionView):
    operation = Operation.CONFIRM


class JournalRejectView(APIView):
    """
    POST /api/accounting/journal-entries/<pk>/reject/

    Body: {"version": N, "reason": "..."}; a blank reason is a MISSING_FIELD error.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = JournalEntryRejectSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = reject_journal_entry(actor, pk, expected_version=data["version"], reason=data.get("reason", ""))
        if not result.success:
            return error_response(result.error)
        return Response(JournalEntrySerializer(result.data, context={"actor": actor}).data)


class JournalHistoryView(APIView):
    """
    GET /api/accounting/journal-entries/<pk>/history/

    Audit events of the entry plus every rejection it went through.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        entry = get_journal_entry(actor, pk)
        if entry is None:
            return error_response(NotFound(entity="JournalEntry", identifier=str(pk)))

        return Response({
            "entry_id": entry.id,
            "public_id": str(entry.public_id),
            "events": BusinessEventSerializer(entry_history(actor, entry), many=True).data,
            "rejections": rejection_history(actor, entry),
        })
