"""
Tests for two-stage journal validation.

Test strategy:
1. Structure problems stop validation before stage 2
2. Balance is the only blocking semantic check
3. Everything else is surfaced as a warning
"""

from datetime import date

import pytest

from clario.ledger import Books
from clario.models import AccountType, TransactionType
from clario.models.ledger import JournalLine
from clario.validation import JournalValidator


@pytest.fixture
def validator(today):
    return JournalValidator(future_date_tolerance_days=1, clock=lambda: today)


def _issue_types(result):
    return [issue.issue_type for issue in result.issues]


class TestStructureValidation:
    """Tests for stage 1."""

    def test_valid_transaction(self, validator, make_txn):
        """Test a clean transaction passes."""
        result = validator.validate(make_txn())
        assert result.is_valid is True
        assert result.issues == []
        assert validator.get_user_friendly_summary(result) == "✅ Journal checks passed."

    def test_zero_amount(self, validator, make_txn):
        """Test amounts must be positive."""
        result = validator.validate(make_txn(amount="0"))
        assert result.structure_valid is False
        assert result.semantic_valid is False
        assert "invalid_value" in _issue_types(result)

    def test_missing_journal(self, validator, make_txn):
        """Test a journal is required."""
        result = validator.validate(make_txn(journal=[]))
        assert result.structure_valid is False
        assert _issue_types(result) == ["missing"]

    def test_two_sided_and_empty_lines(self, validator, make_txn):
        """Test each line carries exactly one side."""
        result = validator.validate(make_txn(journal=[
            JournalLine(account="Office Supplies", debit="10", credit="10"),
            JournalLine(account="Bank"),
        ]))
        assert _issue_types(result) == ["two_sided", "empty_line"]
        assert result.error_count == 2


class TestSemanticValidation:
    """Tests for stage 2."""

    def test_unbalanced_is_error(self, validator, make_txn):
        """Test debits must equal credits."""
        result = validator.validate(make_txn(journal=[
            JournalLine(account="Office Supplies", debit="45.10"),
            JournalLine(account="Bank", credit="40.00"),
        ]))
        assert result.structure_valid is True
        assert result.is_valid is False
        assert "unbalanced" in _issue_types(result)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌")

    def test_unknown_account_is_warning(self, validator, make_txn):
        """Test accounts outside the chart are flagged but allowed."""
        result = validator.validate(make_txn(account="Crypto Losses"))
        assert result.is_valid is True
        assert _issue_types(result) == ["unknown_account"]
        assert "Crypto Losses" in result.warnings[0]

    def test_future_date_is_warning(self, validator, make_txn):
        """Test dates past the tolerance are flagged."""
        assert validator.validate(make_txn(on=date(2025, 5, 16))).issues == []
        result = validator.validate(make_txn(on=date(2025, 6, 30)))
        assert result.is_valid is True
        assert _issue_types(result) == ["future_date"]

    def test_inconsistent_type(self, validator, make_txn):
        """Test income that only touches expense accounts."""
        result = validator.validate(make_txn(transaction_type=TransactionType.INCOME))
        assert "inconsistent" in _issue_types(result)
        assert result.is_valid is True

    def test_potential_duplicate(self, validator, make_txn):
        """Test same vendor, date and amount as an existing transaction."""
        existing = make_txn(vendor="STAPLES")
        result = validator.validate(make_txn(), existing=[existing])
        assert _issue_types(result) == ["potential_duplicate"]
        assert "⚠️" in validator.get_user_friendly_summary(result)

    def test_same_transaction_not_duplicate(self, validator, make_txn):
        """Test a transaction is not a duplicate of itself."""
        txn = make_txn()
        assert validator.validate(txn, existing=[txn]).issues == []

    def test_custom_chart(self, make_txn, today):
        """Test the validator uses the books' chart."""
        books = Books(clock=lambda: today)
        books.add_account("Crypto Losses", AccountType.EXPENSE)
        validator = JournalValidator(chart=books.chart, clock=books.today)
        assert validator.validate(make_txn(account="Crypto Losses")).issues == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
