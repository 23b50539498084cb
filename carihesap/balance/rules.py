"""
Balance Mutation Rules

Adding a transaction moves an account's current and/or future balance by
its amount. Removing it applies the same movement with the opposite sign.

DESIGN DECISION: Everything here is a pure function of (account,
transaction, sign, rule). Nothing reads storage or any other account, so
an add followed by a remove always restores the original balances exactly.
"""

from decimal import Decimal

from carihesap.models.ledger import (
    Account,
    BalanceRule,
    Transaction,
    TransactionType,
)


# (current sign, future sign) per type, for an add
EFFECT_TABLES: dict[BalanceRule, dict[TransactionType, tuple[int, int]]] = {
    BalanceRule.DUAL: {
        TransactionType.PAID: (-1, -1),
        TransactionType.RECEIVED: (1, 1),
        TransactionType.PAYABLE: (0, -1),
        TransactionType.RECEIVABLE: (0, 1),
    },
    BalanceRule.CURRENT_ONLY: {
        TransactionType.PAID: (-1, 0),
        TransactionType.RECEIVED: (1, 0),
        TransactionType.PAYABLE: (0, -1),
        TransactionType.RECEIVABLE: (0, 1),
    },
}


def balance_effect(
    transaction: Transaction,
    rule: BalanceRule = BalanceRule.DUAL,
) -> tuple[Decimal, Decimal]:
    """
    Return (current delta, future delta) for adding a transaction.

    Args:
        transaction: The transaction being added
        rule: Which effect table to use

    Returns:
        The amounts to add to current_balance and future_balance
    """
    current_sign, future_sign = EFFECT_TABLES[rule][transaction.type]
    return transaction.amount * current_sign, transaction.amount * future_sign


def apply_transaction(
    account: Account,
    transaction: Transaction,
    sign: int = 1,
    rule: BalanceRule = BalanceRule.DUAL,
) -> Account:
    """
    Apply a transaction's effect to an account's balances.

    Returns a new Account; the one passed in is left untouched. Only the
    balances change, the transaction list is the caller's business.

    Args:
        account: Account whose balances are moved
        transaction: Transaction being added (sign=1) or removed (sign=-1)
        sign: +1 for add, -1 for remove
        rule: Which effect table to use

    Raises:
        ValueError: If sign is not +1 or -1
    """
    if sign not in (1, -1):
        raise ValueError(f"sign must be +1 or -1, got {sign!r}")

    current_delta, future_delta = balance_effect(transaction, rule)
    return account.model_copy(
        update={
            "current_balance": account.current_balance + current_delta * sign,
            "future_balance": account.future_balance + future_delta * sign,
        }
    )


def recompute_balances(
    account: Account,
    rule: BalanceRule = BalanceRule.DUAL,
) -> tuple[Decimal, Decimal]:
    """Replay the opening balance and every transaction from scratch."""
    current = account.opening_balance
    future = account.opening_balance
    for transaction in account.transactions:
        current_delta, future_delta = balance_effect(transaction, rule)
        current += current_delta
        future += future_delta
    return current, future
