"""
Account Repository

DESIGN DECISION: One authoritative blob holds every account (with its
transactions) under a single key. Per-account lookups are derived from that
list instead of being kept in a second, synchronized copy, so the two can
never disagree.

The phone application also wrote each account under "account_<email>" from
its detail screen, and that copy held the newer transaction list. When such
a legacy blob exists for an indexed account it wins on load, and the legacy
key is removed after the next successful save.
"""

from datetime import datetime
from typing import Optional

from carihesap.audit import AuditLogger
from carihesap.models.ledger import Account, normalize_email
from carihesap.services.storage.codec import (
    decode_account,
    decode_account_entries,
    encode_accounts,
    from_phone_order,
)
from carihesap.services.storage.interface import (
    KeyValueStore,
    SnapshotDecodeError,
    StorageError,
)


class AccountRepository:
    """
    Loads and saves the full account collection through a KeyValueStore.

    A missing blob loads as an empty collection. Entries that do not decode
    are skipped and logged, never raised, and the raw blob is copied to a
    backup key first.
    """

    def __init__(
        self,
        store: KeyValueStore,
        accounts_key: str = "savedAccounts",
        legacy_account_prefix: str = "account_",
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._accounts_key = accounts_key
        self._legacy_prefix = legacy_account_prefix
        self._audit_logger = audit_logger or AuditLogger()
        # Emails whose legacy key is known to be gone
        self._settled_emails: set[str] = set()

    @property
    def accounts_key(self) -> str:
        return self._accounts_key

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def legacy_key(self, email: str) -> str:
        return f"{self._legacy_prefix}{email}"

    def load_all(self) -> list[Account]:
        """
        Load every account.

        Raises:
            StorageError: If the backend itself cannot be read
        """
        blob = self._store.load(self._accounts_key)
        accounts: list[Account] = []
        if blob is not None:
            try:
                accounts, errors = decode_account_entries(blob)
            except SnapshotDecodeError as e:
                errors = [str(e)]
            for error in errors:
                self._audit_logger.log_snapshot_corrupt(self._accounts_key, error)
            if errors:
                self._backup(blob)

        accounts = [self._merge_legacy(account) for account in accounts]
        self._audit_logger.log_accounts_loaded(self._accounts_key, len(accounts))
        return accounts

    def _backup(self, blob: bytes) -> None:
        """Copy a blob that did not fully load to its own key before the next save overwrites it."""
        key = f"{self._accounts_key}.corrupt-{datetime.now().strftime('%Y%m%d%H%M%S')}"
        try:
            self._store.save(key, blob)
        except StorageError as e:
            self._audit_logger.log_error(
                error_type="snapshot_backup_failed",
                error_message=str(e),
                details={"key": key},
            )
            return
        self._audit_logger.log_snapshot_backed_up(self._accounts_key, key)

    def _merge_legacy(self, account: Account) -> Account:
        key = self.legacy_key(account.email)
        blob = self._store.load(key)
        if blob is None:
            self._settled_emails.add(account.email)
            return account

        try:
            legacy = decode_account(blob)
        except SnapshotDecodeError as e:
            self._audit_logger.log_snapshot_corrupt(key, str(e))
            return account

        if legacy.email != account.email:
            self._audit_logger.log_snapshot_corrupt(
                key, f"Legacy snapshot belongs to {legacy.email}"
            )
            return account

        self._audit_logger.log_legacy_snapshot_merged(account.id, key)
        return from_phone_order(legacy).model_copy(
            update={
                "id": account.id,
                "opening_balance": account.opening_balance,
                "created_at": account.created_at,
            }
        )

    def save_all(self, accounts: list[Account]) -> None:
        """
        Persist the full collection, then drop legacy per-account keys.

        Raises:
            StorageError: If the collection could not be written
        """
        self._store.save(self._accounts_key, encode_accounts(accounts))

        for account in accounts:
            if account.email in self._settled_emails:
                continue
            key = self.legacy_key(account.email)
            try:
                self._store.delete(key)
            except StorageError as e:
                # The authoritative blob is already written; retry on next save
                self._audit_logger.log_error(
                    error_type="legacy_cleanup_failed",
                    error_message=str(e),
                    details={"key": key},
                )
                continue
            self._settled_emails.add(account.email)

    def find_by_email(self, email: str) -> Optional[Account]:
        """Derive a single account from the stored collection."""
        email = normalize_email(email)
        for account in self.load_all():
            if account.email == email:
                return account
        return None
