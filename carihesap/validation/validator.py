"""
Input Validation

DESIGN DECISION: Raw text typed by the user is checked here, before it
reaches the ledger. The validator:
1. Parses amounts typed with either decimal separator ("12,50" or "12.50")
2. Reports every problem at once, with a suggested fix
3. Only hands out a draft when there are no error-level issues

The ledger itself assumes validated drafts. Validation NEVER silently fixes
a value; warnings are reported for the user to confirm.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from carihesap.models.ledger import (
    EMAIL_PATTERN,
    AccountDraft,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a user-typed number.

    A lone comma is taken as the decimal separator. When both separators
    appear, the last one is the decimal separator and the other groups
    thousands ("1.234,50" and "1,234.50" are both 1234.50).

    Returns:
        The value, or None if the text is empty or not a finite number
    """
    if text is None:
        return None
    cleaned = text.strip().replace(" ", "").replace("\u00a0", "")
    if not cleaned:
        return None

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        # Comma-only input is always decimal: "1,234" is 1.234, never 1234.
        # Thousands written with a comma need a decimal part ("1,234.00").
        cleaned = cleaned.replace(",", ".")

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


class LedgerInputValidator:
    """Validates the new-account and new-transaction forms."""

    def _finish(self, issues: list[ValidationIssue]) -> ValidationResult:
        is_valid = not any(issue.severity == "error" for issue in issues)
        return ValidationResult(is_valid=is_valid, issues=issues)

    def validate_account_input(
        self,
        name: Optional[str],
        email: Optional[str],
        balance_text: Optional[str],
        existing_emails: Iterable[str] = (),
    ) -> tuple[ValidationResult, Optional[AccountDraft]]:
        """
        Validate the new-account form.

        Args:
            name: Account display name
            email: Account email (lookup key)
            balance_text: Opening balance as typed
            existing_emails: Emails already in use

        Returns:
            (validation_result, draft or None when there are errors)
        """
        issues = []
        name = (name or "").strip()
        email = (email or "").strip().lower()

        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Account name is required",
                severity="error",
                suggested_fix="Enter a name for the account",
            ))
        elif len(name) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Account name is longer than {MAX_NAME_LENGTH} characters",
                severity="error",
            ))

        if not email:
            issues.append(ValidationIssue(
                field="email",
                issue_type="missing",
                message="Email is required",
                severity="error",
                suggested_fix="Enter the email address of the account holder",
            ))
        elif not EMAIL_PATTERN.match(email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message=f"'{email}' is not a valid email address",
                severity="error",
                suggested_fix="Use the form name@example.com",
            ))
        elif email in {e.strip().lower() for e in existing_emails}:
            issues.append(ValidationIssue(
                field="email",
                issue_type="duplicate",
                message=f"An account with email {email} already exists",
                severity="error",
                suggested_fix="Use a different email or open the existing account",
            ))

        balance = parse_amount(balance_text)
        if balance is None:
            issues.append(ValidationIssue(
                field="opening_balance",
                issue_type="invalid_format",
                message="Opening balance must be a number",
                severity="error",
                suggested_fix="Enter a number such as 100 or 100,50",
            ))
        elif balance < 0:
            issues.append(ValidationIssue(
                field="opening_balance",
                issue_type="negative",
                message="Opening balance is negative",
                severity="warning",
            ))

        result = self._finish(issues)
        if not result.is_valid:
            return result, None
        return result, AccountDraft(name=name, email=email, opening_balance=balance)

    def validate_transaction_input(
        self,
        description: Optional[str],
        amount_text: Optional[str],
        transaction_type: Union[TransactionType, str, None],
        date: Optional[datetime] = None,
    ) -> tuple[ValidationResult, Optional[TransactionDraft]]:
        """
        Validate the new-transaction form.

        Returns:
            (validation_result, draft or None when there are errors)
        """
        issues = []
        description = (description or "").strip()

        if not description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Transaction has no description",
                severity="warning",
                suggested_fix="A short note makes the transaction easier to find later",
            ))
        elif len(description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
            ))

        amount = parse_amount(amount_text)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a number",
                severity="error",
                suggested_fix="Enter a number such as 50 or 49,90",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Pick the transaction type to say which way the money moves",
            ))

        parsed_type: Optional[TransactionType] = None
        if isinstance(transaction_type, TransactionType):
            parsed_type = transaction_type
        elif transaction_type:
            try:
                parsed_type = TransactionType(transaction_type)
            except ValueError:
                parsed_type = None
        if parsed_type is None:
            allowed = ", ".join(t.value for t in TransactionType)
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message="Transaction type is missing or unknown",
                severity="error",
                suggested_fix=f"Choose one of: {allowed}",
            ))

        if (
            date is not None
            and parsed_type is not None
            and parsed_type.is_settled
            and date.date() > datetime.now().date()
        ):
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"A {parsed_type.value} transaction is dated in the future",
                severity="warning",
                suggested_fix="Use payable or receivable for amounts that are still expected",
            ))

        result = self._finish(issues)
        if not result.is_valid:
            return result, None
        return result, TransactionDraft(
            description=description,
            amount=amount,
            type=parsed_type,
            date=date,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Render a validation result as short text for the user."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"  - {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"    ({issue.suggested_fix})")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please check:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines)
