"""
Tests for the Books state container.

Test strategy:
1. Balance rule on every recording path
2. Invoice and bill pairing with their transactions
3. Forward-only invoice lifecycle
4. Snapshots rebuild identical books
"""

from datetime import date
from decimal import Decimal

import pytest

from clario.ledger import Books
from clario.ledger.chart import ChartOfAccounts, DEFAULT_ACCOUNTS
from clario.ledger.exceptions import (
    BooksError,
    DuplicateAccountError,
    InvalidStatusTransitionError,
    NotFoundError,
    UnbalancedJournalError,
)
from clario.models import (
    AccountType,
    BillStatus,
    Classification,
    InvoiceStatus,
    TaxSettings,
    TransactionType,
)
from clario.models.ledger import JournalLine


class TestChartOfAccounts:
    """Tests for the chart of accounts."""

    def test_default_chart(self):
        """Test the default chart contents."""
        chart = ChartOfAccounts()
        assert len(chart) == len(DEFAULT_ACCOUNTS) == 31
        assert chart.type_of("Bank") == AccountType.ASSET
        assert "Sales Revenue" in chart.revenue_accounts
        assert "Office Supplies" in chart.expense_accounts

    def test_lookup_is_case_insensitive(self):
        """Test names match regardless of case."""
        chart = ChartOfAccounts()
        assert "bank" in chart
        assert chart.get("  OFFICE SUPPLIES ").name == "Office Supplies"

    def test_names_sorted(self):
        """Test accounts are listed by name."""
        names = ChartOfAccounts().names()
        assert names == sorted(names, key=str.lower)


class TestTransactions:
    """Tests for recording transactions."""

    def test_add_keeps_newest_first(self, books, make_txn):
        """Test transaction ordering by date."""
        old = books.add_transaction(make_txn(on=date(2025, 1, 5)))
        new = books.add_transaction(make_txn(on=date(2025, 4, 5)))
        mid = books.add_transaction(make_txn(on=date(2025, 2, 5)))
        assert [t.id for t in books.transactions] == [new.id, mid.id, old.id]

    def test_unbalanced_refused(self, books, make_txn):
        """Test that an unbalanced journal is never recorded."""
        txn = make_txn(journal=[
            JournalLine(account="Office Supplies", debit="10"),
            JournalLine(account="Bank", credit="8"),
        ])
        with pytest.raises(UnbalancedJournalError) as exc:
            books.add_transaction(txn)
        assert exc.value.debits == "10.00"
        assert books.transactions == []

    def test_empty_journal_refused(self, books, make_txn):
        """Test that a transaction without lines is refused."""
        with pytest.raises(UnbalancedJournalError):
            books.add_transaction(make_txn(journal=[]))

    def test_add_many_is_all_or_nothing(self, books, make_txn):
        """Test a batch with one bad journal records nothing."""
        bad = make_txn(journal=[JournalLine(account="Bank", debit="1")])
        with pytest.raises(UnbalancedJournalError):
            books.add_transactions([make_txn(), bad])
        assert books.transactions == []

    def test_update_and_delete(self, books, make_txn):
        """Test replacing and removing by id."""
        txn = books.add_transaction(make_txn())
        changed = txn.model_copy(update={"vendor": "Office Depot"})
        books.update_transaction(changed)
        assert books.get_transaction(txn.id).vendor == "Office Depot"

        books.delete_transaction(txn.id)
        with pytest.raises(NotFoundError):
            books.get_transaction(txn.id)

    def test_toggle_classification(self, books, make_txn):
        """Test business ↔ personal."""
        txn = books.add_transaction(make_txn())
        assert books.toggle_classification(txn.id).classification == Classification.PERSONAL
        assert books.toggle_classification(txn.id).classification == Classification.BUSINESS

    def test_filter(self, books, make_txn):
        """Test the transaction log filter."""
        books.add_transaction(make_txn(on=date(2025, 1, 10)))
        books.add_transaction(make_txn(
            vendor="Client",
            on=date(2025, 2, 10),
            transaction_type=TransactionType.INCOME,
            account="Service Income",
        ))
        books.add_transaction(make_txn(
            vendor="Groceries",
            on=date(2025, 3, 10),
            classification=Classification.PERSONAL,
        ))

        assert len(books.filter_transactions()) == 2
        assert len(books.filter_transactions(classification=None)) == 3
        assert [t.vendor for t in books.filter_transactions(
            transaction_type=TransactionType.INCOME
        )] == ["Client"]
        assert [t.vendor for t in books.filter_transactions(
            account="Office Supplies", start_date=date(2025, 1, 1), end_date=date(2025, 1, 31)
        )] == ["Staples"]


class TestInvoices:
    """Tests for invoices and their receivable transactions."""

    def test_create_pairs_transaction(self, books, today):
        """Test AR debit / Sales credit and default dates."""
        invoice, txn = books.create_invoice("Acme", "500")
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.related_transaction_id == txn.id
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.invoice_date == today
        assert (invoice.due_date - invoice.invoice_date).days == 30
        assert txn.debits_account("Accounts Receivable")
        assert txn.credits_account("Sales Revenue")
        assert txn.is_balanced

    def test_vat_only_when_enabled(self):
        """Test VAT lines appear only when VAT is switched on."""
        plain = Books(clock=lambda: date(2025, 5, 15))
        invoice, txn = plain.create_invoice("Acme", "100", taxable=True)
        assert invoice.amount == Decimal("100.00")
        assert txn.vat_amount is None

        vat_books = Books(
            tax_settings=TaxSettings(vat_enabled=True),
            clock=lambda: date(2025, 5, 15),
        )
        invoice, txn = vat_books.create_invoice("Acme", "100", taxable=True)
        assert invoice.amount == Decimal("113.00")
        assert txn.vat_amount == Decimal("13.00")
        assert txn.credits_account("VAT Payable")
        assert txn.total_debits == Decimal("113.00")
        assert txn.is_balanced

    def test_vat_uses_book_rate(self):
        """Test VAT is the book's rate applied to the pre-VAT amount."""
        books = Books(
            tax_settings=TaxSettings(vat_enabled=True, vat_rate=Decimal("20")),
            clock=lambda: date(2025, 5, 15),
        )
        invoice, txn = books.create_invoice("Acme", "49.99", taxable=True)
        assert txn.vat_amount == Decimal("10.00")
        assert txn.amount == Decimal("49.99")
        assert invoice.amount == Decimal("59.99")

    def test_non_taxable_invoice_has_no_vat(self):
        """Test VAT is skipped for invoices not marked taxable."""
        books = Books(
            tax_settings=TaxSettings(vat_enabled=True),
            clock=lambda: date(2025, 5, 15),
        )
        invoice, txn = books.create_invoice("Acme", "100")
        assert invoice.amount == Decimal("100.00")
        assert txn.vat_amount is None
        assert not txn.credits_account("VAT Payable")

    def test_mark_paid_records_payment(self, books, today):
        """Test Bank debit / AR credit on payment."""
        invoice, _ = books.create_invoice("Acme", "250")
        _, payment = books.update_invoice_status(invoice.id, InvoiceStatus.PAID)
        assert payment is not None
        assert payment.date == today
        assert payment.debits_account("Bank")
        assert payment.credits_account("Accounts Receivable")
        assert len(books.transactions) == 2

    def test_same_status_is_noop(self, books):
        """Test setting the current status again."""
        invoice, _ = books.create_invoice("Acme", "250")
        _, payment = books.update_invoice_status(invoice.id, InvoiceStatus.DRAFT)
        assert payment is None

    def test_paid_is_terminal(self, books):
        """Test status never moves backwards."""
        invoice, _ = books.create_invoice("Acme", "250")
        books.update_invoice_status(invoice.id, InvoiceStatus.SENT)
        with pytest.raises(InvalidStatusTransitionError):
            books.update_invoice_status(invoice.id, InvoiceStatus.DRAFT)
        books.update_invoice_status(invoice.id, InvoiceStatus.PAID)
        with pytest.raises(InvalidStatusTransitionError):
            books.update_invoice_status(invoice.id, InvoiceStatus.SENT)

    def test_delete_removes_transaction(self, books):
        """Test deleting an invoice deletes its receivable transaction."""
        invoice, _ = books.create_invoice("Acme", "250")
        books.delete_invoice(invoice.id)
        assert books.invoices == []
        assert books.transactions == []


class TestBills:
    """Tests for bills and their payable transactions."""

    def test_create_pairs_transaction(self, books):
        """Test expense debit / AP credit."""
        bill, txn = books.create_bill("Supplier", "80", expense_account="Utilities")
        assert bill.status == BillStatus.OPEN
        assert bill.bill_number.startswith("B-")
        assert txn.debits_account("Utilities")
        assert txn.credits_account("Accounts Payable")

    def test_pay_is_idempotent(self, books):
        """Test paying twice records one payment."""
        bill, _ = books.create_bill("Supplier", "80")
        _, first = books.mark_bill_paid(bill.id)
        _, second = books.mark_bill_paid(bill.id)
        assert first.debits_account("Accounts Payable")
        assert first.credits_account("Bank")
        assert second is None
        assert len(books.transactions) == 2

    def test_delete_removes_transaction(self, books):
        """Test deleting a bill deletes its payable transaction."""
        bill, _ = books.create_bill("Supplier", "80")
        books.delete_bill(bill.id)
        assert books.bills == []
        assert books.transactions == []


class TestProjectsAndAccounts:
    """Tests for projects, accounts and tax settings."""

    def test_blank_project_ignored(self, books):
        """Test blank names are ignored."""
        assert books.add_project("   ") is None
        assert books.projects == []

    def test_add_and_delete_project(self, books):
        """Test project lifecycle."""
        project = books.add_project(" Kitchen remodel ")
        assert project.name == "Kitchen remodel"
        books.delete_project(project.id)
        with pytest.raises(NotFoundError):
            books.delete_project(project.id)

    def test_duplicate_account(self, books):
        """Test account names are unique ignoring case."""
        books.add_account("Fuel", AccountType.EXPENSE)
        assert "Fuel" in books.chart.expense_accounts
        with pytest.raises(DuplicateAccountError):
            books.add_account("fuel", AccountType.EXPENSE)

    def test_quarterly_payment(self, books):
        """Test recording estimated tax payments."""
        books.set_quarterly_payment(2, "300")
        assert books.tax_settings.quarterly_payments[1] == Decimal("300.00")
        with pytest.raises(BooksError):
            books.set_quarterly_payment(5, "1")
        with pytest.raises(BooksError):
            books.set_quarterly_payment(1, "-1")


class TestSnapshots:
    """Tests for snapshot round trips."""

    def test_snapshot_rebuilds_books(self, books, make_txn, today):
        """Test from_snapshot restores every collection."""
        books.add_transaction(make_txn())
        books.create_invoice("Acme", "100")
        books.create_bill("Supplier", "40")
        books.add_project("Website")
        books.add_account("Fuel", AccountType.EXPENSE)
        books.set_quarterly_payment(1, "50")

        restored = Books.from_snapshot(books.to_snapshot(), clock=lambda: today)

        assert [t.id for t in restored.transactions] == [t.id for t in books.transactions]
        assert len(restored.invoices) == 1
        assert len(restored.bills) == 1
        assert restored.projects[0].name == "Website"
        assert "Fuel" in restored.chart
        assert restored.tax_settings.quarterly_payments[0] == Decimal("50.00")

    def test_empty_accounts_fall_back_to_default(self, books):
        """Test a snapshot without accounts keeps the default chart."""
        snapshot = books.to_snapshot().model_copy(update={"accounts": []})
        books.load_snapshot(snapshot)
        assert len(books.chart) == 31


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
