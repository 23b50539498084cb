"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every silent recovery is logged.
This provides:
1. Traceability of balance changes
2. A record of snapshots that were dropped as corrupt
3. Debugging capability when a save fails

The audit logger never raises: a logging problem must not break a ledger
operation that already succeeded.
"""

from collections import deque
from typing import Optional
from uuid import UUID

import structlog

from carihesap.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and keeps the most recent ones
    in memory so callers can show or inspect the history.
    """

    def __init__(self, history_size: int = 200):
        """
        Initialize audit logger.

        Args:
            history_size: How many events to keep for recent_events().
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("carihesap.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Rendering problems must not surface to ledger callers
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(self._history)
        events.reverse()
        return events[:limit]

    def log_account_created(
        self,
        account_id: UUID,
        name: str,
        email: str,
        opening_balance: str,
    ) -> None:
        self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            name=name,
            email=email,
            opening_balance=opening_balance,
        ))

    def log_account_deleted(
        self,
        account_id: UUID,
        email: str,
        transaction_count: int,
    ) -> None:
        self.log(AuditEventBuilder.account_deleted(
            account_id=account_id,
            email=email,
            transaction_count=transaction_count,
        ))

    def log_transaction_added(
        self,
        account_id: UUID,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        current_balance: str,
        future_balance: str,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            account_id=account_id,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            current_balance=current_balance,
            future_balance=future_balance,
        ))

    def log_transaction_removed(
        self,
        account_id: UUID,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        current_balance: str,
        future_balance: str,
    ) -> None:
        self.log(AuditEventBuilder.transaction_removed(
            account_id=account_id,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            current_balance=current_balance,
            future_balance=future_balance,
        ))

    def log_accounts_loaded(self, key: str, account_count: int) -> None:
        self.log(AuditEventBuilder.accounts_loaded(key=key, account_count=account_count))

    def log_snapshot_corrupt(self, key: str, error_message: str) -> None:
        """Log a snapshot that was dropped while loading."""
        self.log(AuditEventBuilder.snapshot_corrupt(key=key, error_message=error_message))

    def log_snapshot_backed_up(self, key: str, backup_key: str) -> None:
        self.log(AuditEventBuilder.snapshot_backed_up(key=key, backup_key=backup_key))

    def log_legacy_snapshot_merged(self, account_id: UUID, key: str) -> None:
        self.log(AuditEventBuilder.legacy_snapshot_merged(account_id=account_id, key=key))

    def log_save_failed(self, key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(key=key, error_message=error_message))

    def log_balance_mismatch(
        self,
        account_id: UUID,
        stored: tuple[str, str],
        expected: tuple[str, str],
    ) -> None:
        self.log(AuditEventBuilder.balance_mismatch(
            account_id=account_id,
            stored=stored,
            expected=expected,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
