"""
Main Orchestrator for the Cari Hesap ledger

This module ties together all the components and defines the operations
the presentation layer calls:
1. Accounts (create, list, look up, delete)
2. Transactions (add, remove, list with filters)
3. Summaries and balance checks

DESIGN DECISION: Each mutation is applied to a copy of the collection,
persisted, and only then swapped into memory. A balance change is never
visible without its matching transaction list being saved, and a failed
save leaves the ledger exactly as it was.
"""

from typing import Optional
from uuid import UUID

from carihesap.audit import AuditLogger
from carihesap.balance import apply_transaction, recompute_balances
from carihesap.config import Settings, get_settings
from carihesap.models.ledger import (
    Account,
    AccountDraft,
    AccountSummary,
    BalanceRule,
    Transaction,
    TransactionDraft,
    TransactionFilter,
    TransactionView,
    normalize_email,
)
from carihesap.queries import filter_transactions, totals_by_type
from carihesap.services.storage import (
    AccountRepository,
    FileKeyValueStore,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    StorageError,
)


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class AccountNotFoundError(LedgerError):
    """No account with the given ID."""
    pass


class DuplicateAccountError(LedgerError):
    """An account with the same email already exists."""
    pass


class TransactionNotFoundError(LedgerError):
    """The account has no transaction with the given ID."""
    pass


class LedgerService:
    """
    Owns the in-memory account collection and keeps it in sync with storage.

    Single-threaded: every call runs to completion before the next one.
    """

    def __init__(
        self,
        repository: AccountRepository,
        balance_rule: BalanceRule = BalanceRule.DUAL,
        audit_logger: Optional[AuditLogger] = None,
        currency_suffix: str = "TL",
        autoload: bool = True,
    ):
        self._repository = repository
        self._balance_rule = balance_rule
        self._audit_logger = audit_logger or AuditLogger()
        self._currency_suffix = currency_suffix
        self._accounts: list[Account] = []
        if autoload:
            self.load()

    @property
    def balance_rule(self) -> BalanceRule:
        return self._balance_rule

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    # ---------------- Loading / saving ----------------

    def load(self) -> list[Account]:
        """Reload every account from storage. Corrupt data loads as empty."""
        self._accounts = self._repository.load_all()
        return list(self._accounts)

    def _commit(self, accounts: list[Account]) -> None:
        """Persist a new collection, then make it the current one."""
        try:
            self._repository.save_all(accounts)
        except StorageError as e:
            self._audit_logger.log_save_failed(self._repository.accounts_key, str(e))
            raise
        self._accounts = accounts

    def _index_of(self, account_id: UUID) -> int:
        for idx, account in enumerate(self._accounts):
            if account.id == account_id:
                return idx
        raise AccountNotFoundError(f"Account not found: {account_id}")

    # ---------------- Accounts ----------------

    def list_accounts(self) -> list[Account]:
        """All accounts, in creation order."""
        return list(self._accounts)

    def get_account(self, account_id: UUID) -> Optional[Account]:
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def find_by_email(self, email: str) -> Optional[Account]:
        email = normalize_email(email)
        for account in self._accounts:
            if account.email == email:
                return account
        return None

    def create_account(self, draft: AccountDraft) -> Account:
        """
        Open a new account. Both balances start at the opening balance.

        Raises:
            DuplicateAccountError: If the email is already used
            StorageError: If the account could not be saved
        """
        if self.find_by_email(draft.email) is not None:
            raise DuplicateAccountError(f"An account with email {draft.email} already exists")

        account = Account(
            name=draft.name,
            email=draft.email,
            opening_balance=draft.opening_balance,
            current_balance=draft.opening_balance,
            future_balance=draft.opening_balance,
        )
        self._commit(self._accounts + [account])

        self._audit_logger.log_account_created(
            account_id=account.id,
            name=account.name,
            email=account.email,
            opening_balance=str(account.opening_balance),
        )
        return account

    def delete_account(self, account_id: UUID) -> bool:
        """
        Delete an account and its transactions.

        Returns:
            True if deleted, False if no such account
        """
        account = self.get_account(account_id)
        if account is None:
            return False

        self._commit([a for a in self._accounts if a.id != account_id])

        self._audit_logger.log_account_deleted(
            account_id=account.id,
            email=account.email,
            transaction_count=len(account.transactions),
        )
        return True

    # ---------------- Transactions ----------------

    def add_transaction(self, account_id: UUID, draft: TransactionDraft) -> Account:
        """
        Record a transaction at the head of the account's list.

        Returns:
            The updated account

        Raises:
            AccountNotFoundError: If the account does not exist
            StorageError: If the change could not be saved
        """
        idx = self._index_of(account_id)
        transaction = draft.to_transaction()

        account = self._accounts[idx]
        updated = apply_transaction(account, transaction, sign=1, rule=self._balance_rule)
        updated = updated.model_copy(
            update={"transactions": [transaction] + list(account.transactions)}
        )

        accounts = list(self._accounts)
        accounts[idx] = updated
        self._commit(accounts)

        self._audit_logger.log_transaction_added(
            account_id=account_id,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=str(transaction.amount),
            current_balance=str(updated.current_balance),
            future_balance=str(updated.future_balance),
        )
        return updated

    def remove_transaction(self, account_id: UUID, transaction_id: UUID) -> Account:
        """
        Remove a transaction and undo its effect on the balances.

        Returns:
            The updated account

        Raises:
            AccountNotFoundError: If the account does not exist
            TransactionNotFoundError: If the account has no such transaction
            StorageError: If the change could not be saved
        """
        idx = self._index_of(account_id)
        account = self._accounts[idx]

        transaction = account.find_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(
                f"Transaction {transaction_id} not found in account {account_id}"
            )

        updated = apply_transaction(account, transaction, sign=-1, rule=self._balance_rule)
        updated = updated.model_copy(
            update={
                "transactions": [t for t in account.transactions if t.id != transaction_id]
            }
        )

        accounts = list(self._accounts)
        accounts[idx] = updated
        self._commit(accounts)

        self._audit_logger.log_transaction_removed(
            account_id=account_id,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=str(transaction.amount),
            current_balance=str(updated.current_balance),
            future_balance=str(updated.future_balance),
        )
        return updated

    def list_transactions(
        self,
        account_id: UUID,
        predicates: Optional[TransactionFilter] = None,
    ) -> TransactionView:
        """
        List an account's transactions, optionally filtered.

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        account = self._accounts[self._index_of(account_id)]
        return TransactionView(
            account_id=account.id,
            filter_active=predicates is not None and predicates.is_active,
            transactions=filter_transactions(account.transactions, predicates),
        )

    def get_transaction(self, account_id: UUID, transaction_id: UUID) -> Optional[Transaction]:
        account = self._accounts[self._index_of(account_id)]
        return account.find_transaction(transaction_id)

    # ---------------- Summaries ----------------

    def summarize(self, account_id: UUID) -> AccountSummary:
        """Balances and per-type totals for one account."""
        account = self._accounts[self._index_of(account_id)]
        return AccountSummary(
            account_id=account.id,
            name=account.name,
            email=account.email,
            current_balance=account.current_balance,
            future_balance=account.future_balance,
            transaction_count=len(account.transactions),
            totals_by_type=totals_by_type(account.transactions),
            currency_suffix=self._currency_suffix,
        )

    def verify_balances(self, account_id: UUID) -> bool:
        """
        Check the stored balances against a replay of the transaction list.

        A mismatch is logged, not corrected.
        """
        account = self._accounts[self._index_of(account_id)]
        expected = recompute_balances(account, self._balance_rule)
        stored = (account.current_balance, account.future_balance)
        if stored == expected:
            return True

        self._audit_logger.log_balance_mismatch(
            account_id=account.id,
            stored=(str(stored[0]), str(stored[1])),
            expected=(str(expected[0]), str(expected[1])),
        )
        return False


def create_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Build the configured key-value store backend."""
    settings = settings or get_settings()
    storage_settings = settings.storage

    if storage_settings.backend == "memory":
        return InMemoryKeyValueStore()
    if storage_settings.backend == "google_sheets":
        return GoogleSheetsKeyValueStore(GoogleSheetsClient(settings.google_sheets))
    return FileKeyValueStore(storage_settings.data_path)


def create_ledger_service(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
) -> LedgerService:
    """
    Factory function to create the ledger service from configuration.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        store: Store to use instead of the configured backend

    Returns:
        A LedgerService with its accounts already loaded
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    audit_logger = AuditLogger(history_size=app_settings.audit_history_size)
    repository = AccountRepository(
        store=store or create_store(settings),
        accounts_key=storage_settings.accounts_key,
        legacy_account_prefix=storage_settings.legacy_account_prefix,
        audit_logger=audit_logger,
    )
    return LedgerService(
        repository=repository,
        balance_rule=app_settings.balance_rule,
        audit_logger=audit_logger,
        currency_suffix=app_settings.currency_suffix,
    )
