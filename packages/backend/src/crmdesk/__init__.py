"""crmdesk — a small customer-relationship-management backend.

Contacts, their addresses and follow-up tasks, plus a simulated email log,
all scoped to the user who owns them and guarded by short-lived JWTs.
"""

__version__ = "0.1.0"
