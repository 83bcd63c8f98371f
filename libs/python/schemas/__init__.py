"""Shared schema exports."""

from .account import Account
from .audit import AuditEvent, Severity

__all__ = [
    "Account",
    "AuditEvent",
    "Severity",
]
