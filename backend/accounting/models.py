# accounting/models.py
"""
Accounting models for JournalFlow.

All mutations of JournalEntry and JournalLine MUST go through the command
layer (accounting/commands.py). The command layer is where authorization,
the lifecycle state machine and optimistic concurrency (`version`) are
enforced; saving a model directly bypasses all three.

Models:
- Account: Chart of accounts (lines reference it)
- JournalEntry: Journal entry header with workflow status and version
- JournalLine: Debit or credit line of an entry
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum

from accounts.models import Company
from accounting.balance import BALANCE_TOLERANCE, ZERO
from accounting.lifecycle import EntryStatus


AMOUNT_DIGITS = 18
AMOUNT_PLACES = 4


class Account(models.Model):
    """
    Chart of Accounts entry.

    Only active accounts of the entry's company can be posted to
    (see accounting.policies.can_post_to_account).
    """

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        EXPENSE = "EXPENSE", "Expense"

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="accounts",
    )
    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )
    code = models.CharField(max_length=20)
    name = models.CharField(max_length=255)
    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
        default=AccountType.ASSET,
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_account_code_per_company",
            )
        ]
        ordering = ["code"]
        indexes = [
            models.Index(fields=["company", "is_active"], name="acct_company_active_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"


class JournalEntry(models.Model):
    """
    Journal Entry header.

    Workflow: DRAFT -> PENDING -> APPROVED -> CONFIRMED
    - DRAFT: Editable and deletable, may be unbalanced
    - PENDING: Submitted, waiting for a manager
    - APPROVED: Approved by a manager, waiting for confirmation
    - CONFIRMED: Final, never changes again

    A rejection sends a PENDING entry back to DRAFT and records who
    rejected it and why. `version` increases by one on every accepted
    write; callers must send the version they read.
    """

    Status = EntryStatus

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="journal_entries",
    )

    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )

    date = models.DateField()
    memo = models.CharField(max_length=255)

    status = models.CharField(
        max_length=12,
        choices=Status.choices,
        default=Status.DRAFT,
    )

    version = models.PositiveIntegerField(default=1)

    # Workflow side records
    submitted_at = models.DateTimeField(null=True, blank=True)
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="submitted_journal_entries",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="approved_journal_entries",
    )
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="rejected_journal_entries",
    )
    rejection_reason = models.TextField(blank=True, default="")
    confirmed_at = models.DateTimeField(null=True, blank=True)
    confirmed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="confirmed_journal_entries",
    )

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_journal_entries",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["company", "date", "id"], name="je_company_date_idx"),
            models.Index(fields=["company", "status"], name="je_company_status_idx"),
        ]
        ordering = ["-date", "-id"]

    def __str__(self):
        return f"JE #{self.id} ({self.date}) {self.status} v{self.version}"

    @property
    def total_debit(self) -> Decimal:
        return self.lines.aggregate(total=Sum("debit"))["total"] or ZERO

    @property
    def total_credit(self) -> Decimal:
        return self.lines.aggregate(total=Sum("credit"))["total"] or ZERO

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debit - self.total_credit) < BALANCE_TOLERANCE

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.DRAFT


class JournalLine(models.Model):
    """
    Individual line within a journal entry.
    Each line affects one account with either a debit or credit amount.

    Lines of a DRAFT entry may be incomplete, so the database only forbids
    negative amounts. The "exactly one positive side" rule is checked by
    accounting.validation before an entry can leave DRAFT.
    """

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="journal_lines",
    )

    line_no = models.PositiveIntegerField()

    # Empty while a draft line is still being filled in
    account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    debit = models.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES, default=0)
    credit = models.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES, default=0)

    class Meta:
        ordering = ["entry", "line_no"]
        constraints = [
            models.UniqueConstraint(
                fields=["entry", "line_no"],
                name="uniq_line_no_per_entry",
            ),
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_line_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "entry"], name="jl_company_entry_idx"),
        ]

    def __str__(self):
        return f"JE#{self.entry_id} L{self.line_no}"

    def save(self, *args, **kwargs):
        if self.entry_id and self.company_id and self.entry.company_id != self.company_id:
            raise ValidationError("JournalLine company must match entry company.")
        if self.account_id and self.company_id and self.account.company_id != self.company_id:
            raise ValidationError("JournalLine company must match account company.")
        super().save(*args, **kwargs)

