"""
Two-Stage Journal Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - STRUCTURE VALIDATION:
- Journal present
- Each line is one-sided (debit XOR credit)
- Vendor and amount present
- This catches malformed AI output

STAGE 2 - SEMANTIC VALIDATION:
- Debits equal credits
- Accounts exist in the chart of accounts
- Date not too far in the future
- Income/expense type agrees with the journal
- Possible duplicates already in the books

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from clario.config import get_settings
from clario.ledger.chart import ChartOfAccounts
from clario.models.ledger import (
    ZERO,
    AccountType,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


class JournalValidator:
    """
    Validates a proposed transaction through a two-stage pipeline.

    Stage 2 only runs when stage 1 passes; there's no point checking
    the balance of a journal that isn't there.
    """

    def __init__(
        self,
        chart: Optional[ChartOfAccounts] = None,
        future_date_tolerance_days: Optional[int] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        """
        Initialize validator.

        Args:
            chart: Chart of accounts for the account-name check.
            future_date_tolerance_days: Overrides the configured tolerance.
            clock: Returns "today". Defaults to the configured date.
        """
        settings = get_settings().app
        self._chart = chart or ChartOfAccounts()
        self._tolerance = (
            future_date_tolerance_days
            if future_date_tolerance_days is not None
            else settings.future_date_tolerance_days
        )
        self._clock = clock or settings.today

    def _validate_structure(
        self,
        txn: Transaction,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Structure validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not txn.vendor.strip():
            issues.append(ValidationIssue(
                field="vendor",
                issue_type="missing",
                message="Vendor is required",
                severity="error",
                suggested_fix="Enter who the money was paid to or received from",
            ))

        if txn.amount <= ZERO:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if not txn.journal:
            issues.append(ValidationIssue(
                field="journal",
                issue_type="missing",
                message="Transaction has no journal lines",
                severity="error",
                suggested_fix="Add at least one debit and one credit",
            ))

        for i, line in enumerate(txn.journal, start=1):
            has_debit = line.debit_amount > ZERO
            has_credit = line.credit_amount > ZERO
            if has_debit and has_credit:
                issues.append(ValidationIssue(
                    field=f"journal[{i}]",
                    issue_type="two_sided",
                    message=f"Line {i} ({line.account}) has both a debit and a credit",
                    severity="error",
                    suggested_fix="Split it into separate debit and credit lines",
                ))
            elif not has_debit and not has_credit:
                issues.append(ValidationIssue(
                    field=f"journal[{i}]",
                    issue_type="empty_line",
                    message=f"Line {i} ({line.account}) has neither a debit nor a credit",
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        txn: Transaction,
        existing: Iterable[Transaction] = (),
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not txn.is_balanced:
            issues.append(ValidationIssue(
                field="journal",
                issue_type="unbalanced",
                message=(
                    f"Debits ({txn.total_debits}) do not equal "
                    f"credits ({txn.total_credits})"
                ),
                severity="error",
                suggested_fix="Adjust the journal so both sides match",
            ))

        unknown = sorted({
            line.account for line in txn.journal
            if line.account not in self._chart
        })
        for account in unknown:
            issues.append(ValidationIssue(
                field="journal",
                issue_type="unknown_account",
                message=f"Account '{account}' is not in the chart of accounts",
                severity="warning",
                suggested_fix="Add the account or pick an existing one",
            ))

        max_future_date = self._clock() + timedelta(days=self._tolerance)
        if txn.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Transaction date ({txn.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        # Income should touch revenue or a receivable settlement; expense the reverse
        types = {
            self._chart.type_of(line.account)
            for line in txn.journal
            if self._chart.type_of(line.account)
        }
        if (
            txn.transaction_type == TransactionType.INCOME
            and AccountType.EXPENSE in types
            and AccountType.REVENUE not in types
        ):
            issues.append(ValidationIssue(
                field="transaction_type",
                issue_type="inconsistent",
                message="Marked as income but the journal only touches expense accounts",
                severity="warning",
            ))
        if (
            txn.transaction_type == TransactionType.EXPENSE
            and AccountType.REVENUE in types
            and AccountType.EXPENSE not in types
        ):
            issues.append(ValidationIssue(
                field="transaction_type",
                issue_type="inconsistent",
                message="Marked as expense but the journal only touches revenue accounts",
                severity="warning",
            ))

        for other in existing:
            if (
                other.id != txn.id
                and other.date == txn.date
                and other.total_amount == txn.total_amount
                and other.vendor.lower() == txn.vendor.lower()
            ):
                issues.append(ValidationIssue(
                    field="duplicate",
                    issue_type="potential_duplicate",
                    message=(
                        f"A {txn.total_amount} transaction with {txn.vendor} "
                        f"on {txn.date} already exists"
                    ),
                    severity="warning",
                    suggested_fix="Please verify this isn't a duplicate entry",
                ))
                break

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        txn: Transaction,
        existing: Iterable[Transaction] = (),
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            txn: The proposed transaction
            existing: Transactions already in the books, for duplicate checks

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        structure_valid, structure_issues = self._validate_structure(txn)
        all_issues.extend(structure_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if structure_valid:
            semantic_valid, semantic_issues = self._validate_semantic(txn, existing)
            all_issues.extend(semantic_issues)

        warnings = [i.message for i in all_issues if i.severity == "warning"]

        return ValidationResult(
            transaction_id=txn.id,
            structure_valid=structure_valid,
            semantic_valid=semantic_valid,
            is_valid=structure_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show next to a rejected or flagged transaction.
        """
        if result.is_valid and not result.warnings:
            return "✅ Journal checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ This transaction can't be recorded:")
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
