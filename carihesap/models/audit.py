"""
Audit Models for the Cari Hesap ledger

Every mutation of the ledger and every silent recovery is recorded as an
audit event. This provides:
1. Traceability of balance changes
2. Visibility into data that was dropped while loading
3. Debugging information when a save fails

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_DELETED = "account_deleted"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"

    # Persistence
    ACCOUNTS_LOADED = "accounts_loaded"
    SNAPSHOT_CORRUPT = "snapshot_corrupt"
    SNAPSHOT_BACKED_UP = "snapshot_backed_up"
    LEGACY_SNAPSHOT_MERGED = "legacy_snapshot_merged"
    SAVE_FAILED = "save_failed"

    # Integrity
    BALANCE_MISMATCH = "balance_mismatch"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: LedgerEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction', 'snapshot')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_created(account_id, name, email, balance)
        event = AuditEventBuilder.snapshot_corrupt(key, error)
    """

    @staticmethod
    def account_created(
        account_id: UUID,
        name: str,
        email: str,
        opening_balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account created: {name}",
            details={
                "email": email,
                "opening_balance": opening_balance,
            },
        )

    @staticmethod
    def account_deleted(
        account_id: UUID,
        email: str,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account deleted: {email}",
            details={
                "email": email,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def transaction_added(
        account_id: UUID,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        current_balance: str,
        future_balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {transaction_type} {amount}",
            details={
                "account_id": str(account_id),
                "type": transaction_type,
                "amount": amount,
                "current_balance": current_balance,
                "future_balance": future_balance,
            },
        )

    @staticmethod
    def transaction_removed(
        account_id: UUID,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        current_balance: str,
        future_balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.TRANSACTION_REMOVED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction removed: {transaction_type} {amount}",
            details={
                "account_id": str(account_id),
                "type": transaction_type,
                "amount": amount,
                "current_balance": current_balance,
                "future_balance": future_balance,
            },
        )

    @staticmethod
    def accounts_loaded(key: str, account_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.ACCOUNTS_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            description=f"Loaded {account_count} accounts from {key}",
            details={
                "key": key,
                "account_count": account_count,
            },
        )

    @staticmethod
    def snapshot_corrupt(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.SNAPSHOT_CORRUPT,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            description=f"Data under {key} could not be decoded and was skipped",
            details={"key": key},
            error_message=error_message,
        )

    @staticmethod
    def snapshot_backed_up(key: str, backup_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.SNAPSHOT_BACKED_UP,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            description=f"Raw data under {key} copied to {backup_key} before it is overwritten",
            details={"key": key, "backup_key": backup_key},
        )

    @staticmethod
    def legacy_snapshot_merged(account_id: UUID, key: str) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.LEGACY_SNAPSHOT_MERGED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account data taken from legacy key {key}",
            details={"key": key},
        )

    @staticmethod
    def save_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            description=f"Failed to save snapshot under {key}",
            details={"key": key},
            error_message=error_message,
        )

    @staticmethod
    def balance_mismatch(
        account_id: UUID,
        stored: tuple[str, str],
        expected: tuple[str, str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.BALANCE_MISMATCH,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            description="Stored balances do not match the transaction history",
            details={
                "stored_current": stored[0],
                "stored_future": stored[1],
                "expected_current": expected[0],
                "expected_future": expected[1],
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=LedgerEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
