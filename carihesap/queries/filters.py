"""
Transaction Filtering

DESIGN DECISION: Filtering is a plain linear pass over the account's list.
Order is never changed, and an inactive filter hands back the whole list so
the caller can tell "no filter" apart from "nothing matched".
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from carihesap.models.ledger import (
    Transaction,
    TransactionFilter,
    TransactionType,
)


def _day(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def matches(transaction: Transaction, predicates: TransactionFilter) -> bool:
    """Check one transaction against every predicate that is set."""
    if predicates.type is not None and transaction.type != predicates.type:
        return False

    day = _day(transaction.date)
    if predicates.start_date is not None and day < predicates.start_date:
        return False
    if predicates.end_date is not None and day > predicates.end_date:
        return False

    return True


def filter_transactions(
    transactions: Sequence[Transaction],
    predicates: Optional[TransactionFilter] = None,
) -> list[Transaction]:
    """
    Return the transactions matching all predicates, in original order.

    Args:
        transactions: An account's transactions (most-recent-first)
        predicates: Filter to apply; None or an empty filter means "all"

    Returns:
        A new list. With no active predicate it holds every transaction.
    """
    if predicates is None or not predicates.is_active:
        return list(transactions)
    return [t for t in transactions if matches(t, predicates)]


def totals_by_type(transactions: Iterable[Transaction]) -> dict[TransactionType, Decimal]:
    """Sum amounts per transaction type; every type is present."""
    totals = {transaction_type: Decimal("0") for transaction_type in TransactionType}
    for transaction in transactions:
        totals[transaction.type] += transaction.amount
    return totals
