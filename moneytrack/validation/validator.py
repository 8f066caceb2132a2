"""
Two-Stage Validation Pipeline

Everything that enters the ledger is checked by its creator. The
calculators downstream assume valid data and never raise for it.

STAGE 1 - SCHEMA VALIDATION:
- Required fields and types
- Non-negative, finite amounts
- Transfer polarity (destination present and different from source,
  no category) and category presence for income/expense

STAGE 2 - SEMANTIC VALIDATION (needs the ledger):
- Referenced accounts exist
- Referenced category exists and matches the transaction type
- Far-future dates

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues. It reports them.
"""

from datetime import date, timedelta
from typing import Optional, Union

from pydantic import ValidationError

from moneytrack.config import get_settings
from moneytrack.models.finance import (
    RecurringTransactionCreate,
    TransactionCreate,
    TransactionType,
)
from moneytrack.models.validation import ValidationIssue, ValidationResult
from moneytrack.services.storage import LedgerStorageInterface


class TransactionRejectedError(ValueError):
    """A transaction or recurring rule failed validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        errors = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(errors) or f"Invalid {result.subject}")


def _schema_issues(error: ValidationError) -> list[ValidationIssue]:
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "record"
        issues.append(ValidationIssue(
            field=field,
            issue_type="missing" if err["type"] == "missing" else "invalid_value",
            message=err["msg"].removeprefix("Value error, "),
            severity="error",
        ))
    return issues


class LedgerValidator:
    """
    Validates new transactions and recurring rules.

    Stage 1: Schema validation (runs without storage)
    Stage 2: Semantic validation (skipped when no storage is given)
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
        future_date_tolerance_days: Optional[int] = None,
    ):
        self._storage = storage
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().engine.future_date_tolerance_days
        self._future_tolerance = timedelta(days=future_date_tolerance_days)

    def _check_references(
        self,
        type: TransactionType,
        account_id: str,
        to_account_id: Optional[str],
        category_id: Optional[str],
    ) -> list[ValidationIssue]:
        issues = []

        if self._storage.get_account(account_id) is None:
            issues.append(ValidationIssue(
                field="account_id",
                issue_type="unknown_reference",
                message=f"Account {account_id} does not exist",
                severity="error",
                suggested_fix="Pick an existing account",
            ))

        if to_account_id and self._storage.get_account(to_account_id) is None:
            issues.append(ValidationIssue(
                field="to_account_id",
                issue_type="unknown_reference",
                message=f"Destination account {to_account_id} does not exist",
                severity="error",
                suggested_fix="Pick an existing destination account",
            ))

        if category_id:
            category = self._storage.get_category(category_id)
            if category is None:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="unknown_reference",
                    message=f"Category {category_id} does not exist",
                    severity="error",
                    suggested_fix="Pick an existing category",
                ))
            elif category.type.value != type.value:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="type_mismatch",
                    message=(
                        f"Category '{category.name}' is an {category.type.value} "
                        f"category but the transaction is an {type.value}"
                    ),
                    severity="error",
                    suggested_fix=f"Pick an {type.value} category",
                ))

        return issues

    def _future_date_issue(self, field: str, value: date, today: date) -> list[ValidationIssue]:
        if value > today + self._future_tolerance:
            return [ValidationIssue(
                field=field,
                issue_type="future_date",
                message=f"Date ({value.isoformat()}) is far in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            )]
        return []

    def _result(
        self,
        subject: str,
        schema_valid: bool,
        issues: list[ValidationIssue],
    ) -> ValidationResult:
        semantic_valid = schema_valid and not any(i.severity == "error" for i in issues)
        return ValidationResult(
            subject=subject,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )

    def validate_transaction(
        self,
        data: Union[TransactionCreate, dict],
        today: Optional[date] = None,
    ) -> tuple[Optional[TransactionCreate], ValidationResult]:
        """
        Run both stages for a new transaction.

        Returns:
            (parsed transaction or None when the schema failed, result)
        """
        # Stage 1
        if isinstance(data, TransactionCreate):
            parsed = data
        else:
            try:
                parsed = TransactionCreate.model_validate(data)
            except ValidationError as e:
                return None, self._result("transaction", False, _schema_issues(e))

        # Stage 2
        issues = []
        if parsed.amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
                suggested_fix="Please verify the amount",
            ))

        if self._storage is not None:
            issues.extend(self._check_references(
                parsed.type, parsed.account_id, parsed.to_account_id, parsed.category_id
            ))

        if parsed.date is not None:
            issues.extend(self._future_date_issue(
                "date", parsed.date.date(), today or date.today()
            ))

        return parsed, self._result("transaction", True, issues)

    def validate_recurring_rule(
        self,
        data: Union[RecurringTransactionCreate, dict],
        today: Optional[date] = None,
    ) -> tuple[Optional[RecurringTransactionCreate], ValidationResult]:
        """Run both stages for a new recurring rule."""
        if isinstance(data, RecurringTransactionCreate):
            parsed = data
        else:
            try:
                parsed = RecurringTransactionCreate.model_validate(data)
            except ValidationError as e:
                return None, self._result("recurring_rule", False, _schema_issues(e))

        today = today or date.today()
        issues = []

        if self._storage is not None:
            issues.extend(self._check_references(
                parsed.type, parsed.account_id, parsed.to_account_id, parsed.category_id
            ))

        issues.extend(self._future_date_issue("start_date", parsed.start_date, today))

        if parsed.end_date and parsed.end_date < today:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="past_end_date",
                message="End date has already passed; only the backlog up to it will be generated",
                severity="info",
            ))

        return parsed, self._result("recurring_rule", True, issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append(f"❌ This {result.subject.replace('_', ' ')} can't be saved:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
