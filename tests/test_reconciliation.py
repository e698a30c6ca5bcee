"""
Tests for bank statement parsing and reconciliation.

Test strategy:
1. Parsing accepts the supported date formats and reports bad lines
2. Matching is exact on signed amount, first come first served
3. Every transaction and entry lands in exactly one bucket
"""

from datetime import date
from decimal import Decimal

import pytest

from clario.models import TransactionType
from clario.reconciliation import parse_bank_statement, reconcile, reconcile_statement
from clario.reconciliation.matcher import parse_statement_date


class TestParseStatement:
    """Tests for statement parsing."""

    @pytest.mark.parametrize("text", ["2025-03-04", "03/04/2025", "04-03-2025", "2025/03/04"])
    def test_date_formats(self, text):
        """Test each supported date format."""
        assert parse_statement_date(text) == date(2025, 3, 4)

    def test_parses_lines(self):
        """Test date, description and signed amount."""
        entries, skipped = parse_bank_statement(
            "2025-03-04,Staples, Inc.,-45.10\n"
            "\n"
            "03/10/2025,Client payment,$1200\n"
        )
        assert skipped == []
        assert len(entries) == 2
        assert entries[0].description == "Staples, Inc."
        assert entries[0].amount == Decimal("-45.10")
        assert entries[1].line_number == 3
        assert entries[1].amount == Decimal("1200.00")

    def test_reports_unparseable_lines(self):
        """Test header rows and bad values are skipped with a reason."""
        _, skipped = parse_bank_statement(
            "Date,Description,Amount\n"
            "2025-03-04\n"
            "2025-03-04,Coffee,abc\n"
        )
        assert [s.line_number for s in skipped] == [1, 2, 3]
        assert skipped[0].reason == "Unrecognized date 'Date'"
        assert skipped[1].reason == "Expected at least a date and an amount"
        assert skipped[2].reason == "Unrecognized amount 'abc'"

    def test_quoted_fields(self):
        """Test quoted descriptions and amounts keep their commas."""
        entries, skipped = parse_bank_statement(
            '2025-03-04,"Staples, Inc.","-1,234.56"\n'
            '2025-03-05,Landlord,"$2,000"\n'
        )
        assert skipped == []
        assert entries[0].description == "Staples, Inc."
        assert entries[0].amount == Decimal("-1234.56")
        assert entries[1].amount == Decimal("2000.00")

    @pytest.mark.parametrize("line", [
        "2025-03-04,Rent,-1,234.56",
        "2025-03-04,Rent,1,234",
        "2025-03-04,Payroll,$12,500.00",
    ])
    def test_unquoted_thousands_separator_is_skipped(self, line):
        """Test an amount split at its comma is reported, not misread."""
        entries, skipped = parse_bank_statement(line + "\n")
        assert entries == []
        assert len(skipped) == 1
        assert skipped[0].line_number == 1
        assert "thousands separator" in skipped[0].reason


class TestReconcile:
    """Tests for matching ledger transactions to bank entries."""

    def test_exact_signed_match(self, make_txn):
        """Test expenses match negative lines, income positive ones."""
        expense = make_txn(amount="45.10")
        income = make_txn(
            amount="1200.00",
            transaction_type=TransactionType.INCOME,
            account="Service Income",
        )
        entries, _ = parse_bank_statement(
            "2025-03-04,Staples,-45.10\n"
            "2025-03-10,Client,1200.00\n"
            "2025-03-11,Unknown,-9.99\n"
        )
        result = reconcile([expense, income], entries)

        assert result.matched_transaction_ids == [expense.id, income.id]
        assert result.unmatched_transactions == []
        assert [e.amount for e in result.unmatched_bank_entries] == [Decimal("-9.99")]

    def test_wrong_sign_does_not_match(self, make_txn):
        """Test an expense never matches a deposit of the same size."""
        expense = make_txn(amount="45.10")
        entries, _ = parse_bank_statement("2025-03-04,Refund,45.10")
        result = reconcile([expense], entries)
        assert result.matches == []
        assert result.unmatched_transactions == [expense]

    def test_each_entry_used_once(self, make_txn):
        """Test two equal transactions against one bank line."""
        first = make_txn(vendor="First")
        second = make_txn(vendor="Second")
        entries, _ = parse_bank_statement("2025-03-04,Staples,-45.10")
        result = reconcile([first, second], entries)
        assert result.matched_transaction_ids == [first.id]
        assert result.unmatched_transactions == [second]
        assert result.unmatched_bank_entries == []

    def test_vat_inclusive_amount(self, make_txn):
        """Test the bank sees the total including VAT."""
        txn = make_txn(amount="100.00", vat_amount="13.00")
        result = reconcile_statement([txn], "2025-03-04,Supplier,-113.00")
        assert len(result.matches) == 1

    def test_skipped_lines_carried(self, make_txn):
        """Test parse problems reach the result."""
        result = reconcile_statement([make_txn()], "garbage line")
        assert len(result.skipped_lines) == 1
        assert len(result.unmatched_transactions) == 1

    def test_apply_marks_reconciled(self, books, make_txn):
        """Test applying a result flags matched transactions once."""
        txn = books.add_transaction(make_txn())
        result = reconcile_statement(books.transactions, "2025-03-04,Staples,-45.10")
        assert books.apply_reconciliation(result) == 1
        assert books.get_transaction(txn.id).reconciled is True
        assert books.apply_reconciliation(result) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
