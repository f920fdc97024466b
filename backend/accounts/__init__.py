# accounts/__init__.py
"""
Accounts app - Authentication, companies and roles for JournalFlow.

This app provides:
- Company: Tenant/organization model
- User: Custom user model with active_company
- CompanyMembership: User-Company relationship carrying the Role
- Role: VIEWER < USER < MANAGER < ADMIN
- ActorContext: Authorization context utilities

Every request resolves an ActorContext; its role is the only input to the
journal authorization gate.
"""
