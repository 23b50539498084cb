"""
Data Models Package

This package contains all Pydantic models used by the ledger.
Everything stored or returned by the service conforms to these schemas.
"""

from carihesap.models.ledger import (
    Account,
    AccountDraft,
    AccountSummary,
    BalanceRule,
    Transaction,
    TransactionDraft,
    TransactionFilter,
    TransactionType,
    TransactionView,
    ValidationIssue,
    ValidationResult,
    normalize_email,
    validate_email_address,
)
from carihesap.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditSeverity,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountDraft",
    "AccountSummary",
    "BalanceRule",
    "Transaction",
    "TransactionDraft",
    "TransactionFilter",
    "TransactionType",
    "TransactionView",
    "ValidationIssue",
    "ValidationResult",
    "normalize_email",
    "validate_email_address",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditSeverity",
    "LedgerEventType",
]
