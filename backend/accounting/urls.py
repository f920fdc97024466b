from django.urls import path

from .views import (
    AccountListView,
    JournalEntryListCreateView,
    JournalEntryDetailView,
    JournalSubmitView,
    JournalApproveView,
    JournalRejectView,
    JournalConfirmView,
    JournalHistoryView,
)

app_name = "accounting"

urlpatterns = [
    # Chart of accounts
    path("accounts/", AccountListView.as_view(), name="account-list"),

    # Journal entries
    path("journal-entries/", JournalEntryListCreateView.as_view(), name="journal-entry-list"),
    path("journal-entries/<int:pk>/", JournalEntryDetailView.as_view(), name="journal-entry-detail"),

    # Workflow transitions
    path("journal-entries/<int:pk>/submit/", JournalSubmitView.as_view(), name="journal-entry-submit"),
    path("journal-entries/<int:pk>/approve/", JournalApproveView.as_view(), name="journal-entry-approve"),
    path("journal-entries/<int:pk>/reject/", JournalRejectView.as_view(), name="journal-entry-reject"),
    path("journal-entries/<int:pk>/confirm/", JournalConfirmView.as_view(), name="journal-entry-confirm"),

    # Audit trail
    path("journal-entries/<int:pk>/history/", JournalHistoryView.as_view(), name="journal-entry-history"),
]
