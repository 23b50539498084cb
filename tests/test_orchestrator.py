"""
Integration tests for the ledger service.

Runs the full stack (service, rules, repository, codec) against the
in-memory and file backends.
"""

import json
import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from carihesap.audit import AuditLogger
from carihesap.config import (
    GoogleSheetsSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from carihesap.models.audit import LedgerEventType
from carihesap.models.ledger import (
    Account,
    AccountDraft,
    BalanceRule,
    Transaction,
    TransactionDraft,
    TransactionFilter,
    TransactionType,
)
from carihesap.orchestrator import (
    AccountNotFoundError,
    DuplicateAccountError,
    LedgerService,
    TransactionNotFoundError,
    create_ledger_service,
    create_store,
)
from carihesap.services.storage import (
    AccountRepository,
    FileKeyValueStore,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    StorageError,
    encode_accounts,
)


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be switched off."""

    def __init__(self):
        super().__init__()
        self.fail_saves = False

    def save(self, key, value):
        if self.fail_saves:
            raise StorageError("disk full")
        super().save(key, value)


def make_service(store=None, rule=BalanceRule.DUAL) -> LedgerService:
    store = store if store is not None else InMemoryKeyValueStore()
    return LedgerService(AccountRepository(store), balance_rule=rule)


def open_account(service: LedgerService, email="a@x.com", balance="100") -> Account:
    return service.create_account(
        AccountDraft(name="A", email=email, opening_balance=Decimal(balance))
    )


def draft(transaction_type: TransactionType, amount: str, when=None) -> TransactionDraft:
    return TransactionDraft(
        description="t",
        amount=Decimal(amount),
        type=transaction_type,
        date=when,
    )


def balances(account: Account) -> tuple[Decimal, Decimal]:
    return account.current_balance, account.future_balance


class TestAccounts:
    """Tests for account management."""

    def test_create_account_sets_both_balances(self):
        """Test that a new account starts with current == future == opening."""
        service = make_service()
        account = open_account(service, balance="100")
        assert balances(account) == (Decimal("100"), Decimal("100"))
        assert account.opening_balance == Decimal("100")
        assert service.list_accounts() == [account]

    def test_duplicate_email_rejected(self):
        """Test that emails are unique regardless of case."""
        service = make_service()
        open_account(service, email="a@x.com")
        with pytest.raises(DuplicateAccountError):
            open_account(service, email="A@X.com")
        assert len(service.list_accounts()) == 1

    def test_accounts_keep_creation_order(self):
        """Test that accounts are listed in the order they were opened."""
        service = make_service()
        emails = ["c@x.com", "a@x.com", "b@x.com"]
        for email in emails:
            open_account(service, email=email)
        assert [a.email for a in service.list_accounts()] == emails

    def test_lookups(self):
        """Test lookup by ID and by email."""
        service = make_service()
        account = open_account(service)
        assert service.get_account(account.id) == account
        assert service.get_account(uuid4()) is None
        assert service.find_by_email(" A@x.com ") == account
        assert service.find_by_email("not an email") is None

    def test_delete_account(self):
        """Test deleting an account and deleting a missing one."""
        service = make_service()
        account = open_account(service)
        assert service.delete_account(account.id) is True
        assert service.delete_account(account.id) is False
        assert service.list_accounts() == []

    def test_email_reusable_after_delete(self):
        """Test that a deleted account's email can be used again."""
        service = make_service()
        service.delete_account(open_account(service).id)
        assert open_account(service).email == "a@x.com"


class TestTransactions:
    """Tests for adding, removing and listing transactions."""

    def test_worked_example(self):
        """Test received 50, payable 30, then removing the received one."""
        service = make_service()
        account = open_account(service, balance="100")

        account = service.add_transaction(account.id, draft(TransactionType.RECEIVED, "50"))
        received_id = account.transactions[0].id
        assert balances(account) == (Decimal("150"), Decimal("150"))

        account = service.add_transaction(account.id, draft(TransactionType.PAYABLE, "30"))
        assert balances(account) == (Decimal("150"), Decimal("120"))

        account = service.remove_transaction(account.id, received_id)
        assert balances(account) == (Decimal("100"), Decimal("70"))
        assert [t.type for t in account.transactions] == [TransactionType.PAYABLE]

    def test_new_transaction_goes_first(self):
        """Test that the list is most-recent-first."""
        service = make_service()
        account = open_account(service)
        service.add_transaction(account.id, draft(TransactionType.PAID, "1"))
        account = service.add_transaction(account.id, draft(TransactionType.RECEIVED, "2"))
        assert [t.amount for t in account.transactions] == [Decimal("2"), Decimal("1")]

    def test_add_to_missing_account(self):
        """Test that an unknown account ID raises."""
        service = make_service()
        with pytest.raises(AccountNotFoundError):
            service.add_transaction(uuid4(), draft(TransactionType.PAID, "1"))

    def test_remove_missing_transaction(self):
        """Test that an unknown transaction ID raises and changes nothing."""
        service = make_service()
        account = open_account(service)
        with pytest.raises(TransactionNotFoundError):
            service.remove_transaction(account.id, uuid4())
        assert balances(service.get_account(account.id)) == (Decimal("100"), Decimal("100"))

    def test_current_only_rule(self):
        """Test that the configured rule is used for every mutation."""
        service = make_service(rule=BalanceRule.CURRENT_ONLY)
        account = open_account(service)
        account = service.add_transaction(account.id, draft(TransactionType.PAID, "20"))
        assert balances(account) == (Decimal("80"), Decimal("100"))

    def test_list_transactions_without_filter(self):
        """Test that no filter returns every transaction and says so."""
        service = make_service()
        account = open_account(service)
        service.add_transaction(account.id, draft(TransactionType.PAID, "1"))
        view = service.list_transactions(account.id)
        assert view.filter_active is False
        assert view.count == 1

    def test_list_transactions_with_filter(self):
        """Test type and date filtering through the service."""
        service = make_service()
        account = open_account(service)
        service.add_transaction(account.id, draft(TransactionType.PAID, "1", datetime(2025, 5, 1, 0, 0)))
        service.add_transaction(account.id, draft(TransactionType.PAID, "2", datetime(2025, 6, 1, 0, 0)))
        service.add_transaction(account.id, draft(TransactionType.RECEIVED, "3", datetime(2025, 5, 15)))

        view = service.list_transactions(
            account.id,
            TransactionFilter(
                type=TransactionType.PAID,
                start_date=date(2025, 5, 1),
                end_date=date(2025, 5, 31),
            ),
        )
        assert view.filter_active is True
        assert [t.amount for t in view.transactions] == [Decimal("1")]

    def test_filter_with_no_match(self):
        """Test that an active filter with no matches is distinguishable."""
        service = make_service()
        account = open_account(service)
        service.add_transaction(account.id, draft(TransactionType.PAID, "1"))
        view = service.list_transactions(account.id, TransactionFilter(type=TransactionType.PAYABLE))
        assert view.filter_active is True
        assert view.is_empty

    def test_get_transaction(self):
        """Test looking up one transaction."""
        service = make_service()
        account = open_account(service)
        account = service.add_transaction(account.id, draft(TransactionType.PAID, "1"))
        transaction = account.transactions[0]
        assert service.get_transaction(account.id, transaction.id) == transaction
        assert service.get_transaction(account.id, uuid4()) is None


class TestPersistence:
    """Tests for the link between memory and storage."""

    def test_reload_sees_same_data(self, tmp_path):
        """Test that a new service on the same directory sees every change."""
        service = make_service(FileKeyValueStore(tmp_path))
        account = open_account(service)
        service.add_transaction(account.id, draft(TransactionType.RECEIVABLE, "12.5"))
        open_account(service, email="b@x.com", balance="0")

        reloaded = make_service(FileKeyValueStore(tmp_path))
        assert reloaded.list_accounts() == service.list_accounts()

    def test_failed_save_leaves_memory_unchanged(self):
        """Test that a balance never changes without its transaction being saved."""
        store = FlakyStore()
        service = make_service(store)
        account = open_account(service)

        store.fail_saves = True
        with pytest.raises(StorageError):
            service.add_transaction(account.id, draft(TransactionType.PAID, "40"))

        unchanged = service.get_account(account.id)
        assert balances(unchanged) == (Decimal("100"), Decimal("100"))
        assert unchanged.transactions == []
        assert service.audit_logger.recent_events(1)[0].event_type == LedgerEventType.SAVE_FAILED

    def test_failed_create_adds_nothing(self):
        """Test that an account whose save failed is not listed."""
        store = FlakyStore()
        store.fail_saves = True
        service = make_service(store)
        with pytest.raises(StorageError):
            open_account(service)
        assert service.list_accounts() == []

    def test_corrupt_store_starts_empty(self):
        """Test that a corrupt snapshot gives an empty, usable ledger."""
        store = InMemoryKeyValueStore({"savedAccounts": b"\x00garbage"})
        service = make_service(store)
        assert service.list_accounts() == []
        open_account(service)
        assert len(make_service(store).list_accounts()) == 1

    def test_phone_data_with_free_text_email_survives(self):
        """Test that one account with an odd email neither hides nor erases the others."""
        store = InMemoryKeyValueStore({"savedAccounts": json.dumps([
            {"name": "Ali", "email": "ali@x.com", "currentBalance": 10.0, "futureBalance": 10.0},
            {"name": "Veli", "email": "veli", "currentBalance": 5.0, "futureBalance": 5.0},
        ]).encode("utf-8")})
        service = make_service(store)
        assert len(service.list_accounts()) == 2

        open_account(service, email="new@x.com")

        emails = [a.email for a in make_service(store).list_accounts()]
        assert emails == ["ali@x.com", "veli", "new@x.com"]

    def test_phone_order_then_add(self):
        """Test that a migrated list stays most-recent-first after a new transaction."""
        store = InMemoryKeyValueStore({"savedAccounts": json.dumps([{
            "name": "A",
            "email": "a@x.com",
            "transactions": [
                {"description": "first", "amount": 1.0, "type": "Receivable"},
                {"description": "second", "amount": 2.0, "type": "Receivable"},
            ],
        }]).encode("utf-8")})
        service = make_service(store)
        account = service.list_accounts()[0]

        account = service.add_transaction(
            account.id,
            TransactionDraft(description="third", amount=Decimal("3"), type=TransactionType.PAID),
        )
        assert [t.description for t in account.transactions] == ["third", "second", "first"]

    def test_autoload_off(self):
        """Test that loading can be deferred."""
        store = InMemoryKeyValueStore()
        make_service(store).create_account(AccountDraft(name="A", email="a@x.com"))
        service = LedgerService(AccountRepository(store), autoload=False)
        assert service.list_accounts() == []
        assert len(service.load()) == 1


class TestSummaries:
    """Tests for summaries and balance checks."""

    def test_summarize(self):
        """Test balances, counts and per-type totals."""
        service = make_service()
        account = open_account(service)
        service.add_transaction(account.id, draft(TransactionType.PAID, "10"))
        service.add_transaction(account.id, draft(TransactionType.PAID, "5"))
        service.add_transaction(account.id, draft(TransactionType.RECEIVABLE, "7"))

        summary = service.summarize(account.id)
        assert summary.transaction_count == 3
        assert summary.current_balance == Decimal("85")
        assert summary.future_balance == Decimal("92")
        assert summary.totals_by_type[TransactionType.PAID] == Decimal("15")
        assert summary.totals_by_type[TransactionType.PAYABLE] == Decimal("0")
        assert summary.format_amount(summary.current_balance) == "85.00 TL"

    def test_verify_balances_after_mutations(self):
        """Test that incremental balances match a full replay."""
        service = make_service()
        account = open_account(service)
        account = service.add_transaction(account.id, draft(TransactionType.RECEIVED, "50"))
        first = account.transactions[0].id
        service.add_transaction(account.id, draft(TransactionType.PAYABLE, "30"))
        service.remove_transaction(account.id, first)
        assert service.verify_balances(account.id) is True

    def test_verify_balances_detects_mismatch(self):
        """Test that tampered balances are reported and logged."""
        account = Account(
            name="A",
            email="a@x.com",
            opening_balance=Decimal("100"),
            current_balance=Decimal("999"),
            future_balance=Decimal("100"),
            transactions=[Transaction(amount=Decimal("1"), type=TransactionType.PAID)],
        )
        store = InMemoryKeyValueStore({"savedAccounts": encode_accounts([account])})
        service = make_service(store)

        assert service.verify_balances(account.id) is False
        assert service.audit_logger.recent_events(1)[0].event_type == LedgerEventType.BALANCE_MISMATCH

    def test_summarize_missing_account(self):
        """Test that summaries need an existing account."""
        with pytest.raises(AccountNotFoundError):
            make_service().summarize(uuid4())


class TestAuditTrail:
    """Tests for the audit events the service emits."""

    def test_mutations_are_logged(self):
        """Test that each mutation leaves an event, newest first."""
        audit_logger = AuditLogger()
        service = LedgerService(
            AccountRepository(InMemoryKeyValueStore(), audit_logger=audit_logger),
            audit_logger=audit_logger,
        )
        account = open_account(service)
        account = service.add_transaction(account.id, draft(TransactionType.PAID, "1"))
        service.remove_transaction(account.id, account.transactions[0].id)
        service.delete_account(account.id)

        recent = [event.event_type for event in audit_logger.recent_events(4)]
        assert recent == [
            LedgerEventType.ACCOUNT_DELETED,
            LedgerEventType.TRANSACTION_REMOVED,
            LedgerEventType.TRANSACTION_ADDED,
            LedgerEventType.ACCOUNT_CREATED,
        ]

    def test_history_is_bounded(self):
        """Test that old events fall out of the history."""
        audit_logger = AuditLogger(history_size=2)
        for _ in range(5):
            audit_logger.log_accounts_loaded("savedAccounts", 0)
        assert len(audit_logger.recent_events()) == 2


class TestFactory:
    """Tests for building the service from configuration."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in [
            "LEDGER_STORAGE_BACKEND",
            "LEDGER_STORAGE_DATA_DIR",
            "LEDGER_BALANCE_RULE",
            "LEDGER_CURRENCY_SUFFIX",
        ]:
            monkeypatch.delenv(name, raising=False)
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_memory_backend(self, monkeypatch):
        """Test that the memory backend is selectable."""
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "memory")
        assert isinstance(create_store(Settings()), InMemoryKeyValueStore)

    def test_file_backend(self, monkeypatch, tmp_path):
        """Test that the file backend uses the configured directory."""
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "file")
        monkeypatch.setenv("LEDGER_STORAGE_DATA_DIR", str(tmp_path))
        store = create_store(Settings())
        assert isinstance(store, FileKeyValueStore)
        assert store.root == tmp_path

    def test_service_uses_app_settings(self, monkeypatch):
        """Test that the balance rule and currency come from settings."""
        monkeypatch.setenv("LEDGER_BALANCE_RULE", "current_only")
        monkeypatch.setenv("LEDGER_CURRENCY_SUFFIX", "USD")
        service = create_ledger_service(Settings(), store=InMemoryKeyValueStore())

        assert service.balance_rule is BalanceRule.CURRENT_ONLY
        account = open_account(service)
        assert service.summarize(account.id).format_amount(Decimal("1")) == "1.00 USD"

    def test_google_sheets_backend_uses_given_settings(self, tmp_path):
        """Test that the Sheets client is built from the settings passed in."""
        credentials = tmp_path / "service-account.json"
        credentials.write_text("{}")
        sheets_settings = GoogleSheetsSettings(
            credentials_path=str(credentials),
            spreadsheet_id="sheet-123",
        )

        class SheetsSettings(Settings):
            @property
            def storage(self):
                return StorageSettings(backend="google_sheets")

            @property
            def google_sheets(self):
                return sheets_settings

        store = create_store(SheetsSettings())
        assert isinstance(store, GoogleSheetsKeyValueStore)
        assert store.client.settings is sheets_settings

    def test_invalid_backend_rejected(self, monkeypatch):
        """Test that an unknown backend name fails validation."""
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "postgres")
        results = validate_all_settings()
        assert results["storage"] is False
        assert "storage_error" in results

    def test_default_settings_valid(self, monkeypatch, tmp_path):
        """Test that the defaults pass the startup check."""
        monkeypatch.setenv("LEDGER_STORAGE_DATA_DIR", str(tmp_path))
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["app"] is True
        assert "google_sheets" not in results
