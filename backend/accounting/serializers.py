# accounting/serializers.py
"""
Serializers for accounting API.

Note: These serializers are used for:
1. Input shape validation (types, required keys)
2. Output formatting

Workflow rules (required header fields, line completeness, balance,
roles, legal transitions, versions) are NOT checked here. Views pass the
parsed input to accounting.commands, which return typed errors.
"""

from rest_framework import serializers

from accounting.balance import compute_totals, is_balanced as totals_are_balanced
from accounting.lifecycle import available_operations
from accounting.models import Account, JournalEntry, JournalLine, AMOUNT_DIGITS, AMOUNT_PLACES
from accounting.policies import allowed_operations

_AMOUNT = serializers.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES)


# =============================================================================
# Account Serializers
# =============================================================================

class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = ["id", "public_id", "code", "name", "account_type", "is_active"]
        read_only_fields = fields


# =============================================================================
# Journal Entry Output
# =============================================================================

class JournalLineSerializer(serializers.ModelSerializer):
    """Serializer for individual journal lines."""
    account_id = serializers.IntegerField(read_only=True, allow_null=True)
    account_code = serializers.CharField(source="account.code", read_only=True, default=None)
    account_name = serializers.CharField(source="account.name", read_only=True, default=None)

    class Meta:
        model = JournalLine
        fields = [
            "line_no", "account_id", "account_code", "account_name",
            "description", "debit", "credit",
        ]
        read_only_fields = fields


class JournalEntryListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the list endpoint."""

    class Meta:
        model = JournalEntry
        fields = [
            "id", "public_id", "date", "memo", "status", "version",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    """
    Full journal entry serializer with nested lines.

    `available_operations` are the operations legal from the current
    status that the requesting actor's role may also perform; pass the
    actor in the serializer context as "actor".
    """
    lines = JournalLineSerializer(many=True, read_only=True)
    total_debit = serializers.SerializerMethodField()
    total_credit = serializers.SerializerMethodField()
    is_balanced = serializers.SerializerMethodField()
    available_operations = serializers.SerializerMethodField()
    created_by_email = serializers.CharField(source="created_by.email", read_only=True, default=None)
    submitted_by_email = serializers.CharField(source="submitted_by.email", read_only=True, default=None)
    approved_by_email = serializers.CharField(source="approved_by.email", read_only=True, default=None)
    rejected_by_email = serializers.CharField(source="rejected_by.email", read_only=True, default=None)
    confirmed_by_email = serializers.CharField(source="confirmed_by.email", read_only=True, default=None)

    class Meta:
        model = JournalEntry
        fields = [
            "id", "public_id", "date", "memo", "status", "version",
            "submitted_at", "submitted_by_email",
            "approved_at", "approved_by_email",
            "rejected_at", "rejected_by_email", "rejection_reason",
            "confirmed_at", "confirmed_by_email",
            "created_at", "created_by_email", "updated_at",
            "lines", "total_debit", "total_credit", "is_balanced",
            "available_operations",
        ]
        read_only_fields = fields

    def _totals(self, obj):
        # lines.all() reuses the prefetch done by accounting.queries
        return compute_totals(obj.lines.all())

    def get_total_debit(self, obj):
        return _AMOUNT.to_representation(self._totals(obj).total_debit)

    def get_total_credit(self, obj):
        return _AMOUNT.to_representation(self._totals(obj).total_credit)

    def get_is_balanced(self, obj):
        return totals_are_balanced(self._totals(obj))

    def get_available_operations(self, obj):
        operations = available_operations(obj.status)
        actor = self.context.get("actor")
        if actor is None:
            return operations
        permitted = set(allowed_operations(actor.role))
        return [op for op in operations if op in permitted]


# =============================================================================
# Journal Entry Input
# =============================================================================

class JournalLineInputSerializer(serializers.Serializer):
    """
    Serializer for journal line input.

    Every field is optional: a draft may hold half-filled lines.
    """
    account_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    debit = serializers.DecimalField(
        max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES, required=False, allow_null=True, default=None,
    )
    credit = serializers.DecimalField(
        max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES, required=False, allow_null=True, default=None,
    )


class JournalEntryCreateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False, allow_null=True, default=None)
    memo = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    lines = JournalLineInputSerializer(many=True, required=False, default=list)


class JournalEntryUpdateSerializer(serializers.Serializer):
    """PATCH body. Omitted fields keep their stored value."""
    version = serializers.IntegerField(min_value=1)
    date = serializers.DateField(required=False)
    memo = serializers.CharField(max_length=255, required=False, allow_blank=True)
    lines = JournalLineInputSerializer(many=True, required=False)


class JournalEntryTransitionSerializer(serializers.Serializer):
    version = serializers.IntegerField(min_value=1)


class JournalEntryRejectSerializer(JournalEntryTransitionSerializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
