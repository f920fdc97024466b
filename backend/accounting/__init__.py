# accounting/__init__.py
"""
Accounting app - Journal entry lifecycle for JournalFlow.

Pure core (no database access):
- balance: Line parsing, totals and normalization
- validation: Entry validator
- lifecycle: EntryStatus, Operation and the transition table
- policies: Role-based authorization gate
- workflow: evaluate() composing the three

Django layer:
- models: Account, JournalEntry (with version), JournalLine
- commands: One function per workflow operation, emits audit events
- views: REST API under /api/accounting/
"""

default_app_config = "accounting.apps.AccountingConfig"
