"""
Core Data Models for the Cari Hesap ledger

These models define the schemas for everything the ledger stores:
1. Accounts with their current and future balances
2. Transactions owned by exactly one account
3. Drafts handed over by the presentation layer
4. Filter and view models for browsing transactions

DESIGN DECISION: Models serialize with camelCase aliases so stored snapshots
keep the same shape the phone application wrote (currentBalance,
futureBalance, ...). Both spellings are accepted when reading.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    The four kinds of ledger movement.

    Settled movements (paid, received) and pending ones (payable,
    receivable). The amount is always stored positive; the type carries
    the sign.
    """
    PAID = "paid"
    RECEIVED = "received"
    PAYABLE = "payable"
    RECEIVABLE = "receivable"

    @classmethod
    def _missing_(cls, value: object) -> Optional["TransactionType"]:
        # Older snapshots stored "Paid", "Received", ...
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def is_settled(self) -> bool:
        return self in (TransactionType.PAID, TransactionType.RECEIVED)


class BalanceRule(str, Enum):
    """
    How settled transactions move the future balance.

    DUAL: paid/received move both balances (canonical).
    CURRENT_ONLY: paid/received move only the current balance.
    """
    DUAL = "dual"
    CURRENT_ONLY = "current_only"


def normalize_email(value: str) -> str:
    """Lower-case and strip an email so lookups are case-insensitive."""
    return value.strip().lower()


def validate_email_address(value: str) -> str:
    """
    Normalize an email and require the name@domain.tld shape.

    Only new input is held to this. Stored accounts keep whatever text the
    phone application accepted.
    """
    value = normalize_email(value)
    if not EMAIL_PATTERN.match(value):
        raise ValueError(f"Invalid email address: {value!r}")
    return value


# =============================================================================
# CORE LEDGER MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger movement.

    CRITICAL: Transactions are frozen. Removing one must exactly undo its
    original effect, which only works if type and amount never change.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Free text entered by the user"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount, always non-negative"
    )
    type: TransactionType = Field(
        ...,
        description="Kind of movement; decides the sign of the effect"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the movement happened (defaults to creation time)"
    )

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> Any:
        """Accept the capitalized raw values older snapshots used."""
        if isinstance(v, str):
            return TransactionType(v)
        return v


class Account(BaseModel):
    """
    A named account with two running balances.

    current_balance and future_balance always equal opening_balance plus the
    effects of every transaction in the list. Transactions are kept
    most-recent-first.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    email: str = Field(
        ...,
        description="Lookup key; unique among stored accounts"
    )
    opening_balance: Decimal = Field(
        default=Decimal("0"),
        description="Balance entered when the account was created"
    )
    current_balance: Decimal = Field(
        default=Decimal("0"),
        description="Settled balance"
    )
    future_balance: Decimal = Field(
        default=Decimal("0"),
        description="Expected balance once pending items settle"
    )
    transactions: list[Transaction] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    def find_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None


# =============================================================================
# DRAFTS - validated input from the presentation layer
# =============================================================================

class AccountDraft(BaseModel):
    """Values needed to open a new account."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    email: str
    opening_balance: Decimal = Field(default=Decimal("0"))

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return validate_email_address(v)


class TransactionDraft(BaseModel):
    """Values needed to record a new transaction."""
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(default="", max_length=500)
    amount: Decimal = Field(..., gt=0)
    type: TransactionType
    date: Optional[datetime] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return TransactionType(v)
        return v

    def to_transaction(self) -> Transaction:
        """Create the frozen transaction, stamping the current time if no date was given."""
        data: dict[str, Any] = {
            "description": self.description,
            "amount": self.amount,
            "type": self.type,
        }
        if self.date is not None:
            data["date"] = self.date
        return Transaction(**data)


# =============================================================================
# QUERY MODELS
# =============================================================================

class TransactionFilter(BaseModel):
    """
    Optional predicates over an account's transactions.

    All set predicates must match (logical AND). Date bounds are compared at
    day granularity and are inclusive; either bound may be left open.
    """

    type: Optional[TransactionType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return TransactionType(v)
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def strip_time(cls, v: Any) -> Any:
        """Drop the time of day so a whole boundary day is included."""
        if isinstance(v, datetime):
            return v.date()
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "TransactionFilter":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    @property
    def is_active(self) -> bool:
        """True when at least one predicate is set."""
        return (
            self.type is not None
            or self.start_date is not None
            or self.end_date is not None
        )


class TransactionView(BaseModel):
    """
    Transactions of one account as shown to the user.

    filter_active separates "no filter" from "filter matched nothing".
    """

    account_id: UUID
    filter_active: bool
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.transactions)

    @property
    def is_empty(self) -> bool:
        return not self.transactions


class AccountSummary(BaseModel):
    """Balances and per-type totals for one account."""

    account_id: UUID
    name: str
    email: str
    current_balance: Decimal
    future_balance: Decimal
    transaction_count: int = Field(ge=0)
    totals_by_type: dict[TransactionType, Decimal] = Field(default_factory=dict)
    currency_suffix: str = "TL"

    def format_amount(self, amount: Decimal) -> str:
        return f"{amount:,.2f} {self.currency_suffix}"


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one form of user input."""

    is_valid: bool = Field(
        ...,
        description="True when no error-level issue was found"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
