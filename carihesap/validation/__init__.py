"""Input validation package."""

from carihesap.validation.validator import LedgerInputValidator, parse_amount

__all__ = ["LedgerInputValidator", "parse_amount"]
