"""Transaction query package."""

from carihesap.queries.filters import filter_transactions, matches, totals_by_type

__all__ = ["filter_transactions", "matches", "totals_by_type"]
