"""Balance mutation package."""

from carihesap.balance.rules import (
    EFFECT_TABLES,
    apply_transaction,
    balance_effect,
    recompute_balances,
)

__all__ = [
    "EFFECT_TABLES",
    "apply_transaction",
    "balance_effect",
    "recompute_balances",
]
