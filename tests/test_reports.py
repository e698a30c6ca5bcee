"""
Tests for read-only reports.

Test strategy:
1. P&L is derived from journal lines, business only, fiscal year only
2. Tax estimate follows the quarterly payment model
3. Aging, cash flow and project figures use the documented buckets
4. Search and CSV export produce what the UI shows
"""

from datetime import date
from decimal import Decimal

import pytest

from clario.ledger import Books
from clario.models import Classification, Invoice, InvoiceStatus, TaxSettings, TransactionType
from clario.reports import (
    compute_aging,
    compute_cash_flow,
    compute_financials,
    compute_project_profitability,
    compute_tax_estimate,
    compute_vat_summary,
    journal_rows,
    profit_and_loss_csv,
    search,
)
from clario.reports.financials import quarter_index


@pytest.fixture
def trading_books(books, make_txn):
    """Books with one quarter of income and expenses, plus noise that must be ignored."""
    books.add_transaction(make_txn(
        vendor="Client",
        amount="1000.00",
        on=date(2025, 2, 10),
        transaction_type=TransactionType.INCOME,
        account="Service Income",
    ))
    books.add_transaction(make_txn(
        amount="200.00",
        deductible=True,
        miles=Decimal("10"),
    ))
    books.add_transaction(make_txn(
        vendor="Landlord",
        amount="300.00",
        on=date(2025, 4, 10),
        account="Rent Expense",
    ))
    books.add_transaction(make_txn(vendor="Last year", amount="999.00", on=date(2024, 12, 31)))
    books.add_transaction(make_txn(
        vendor="Groceries",
        amount="75.00",
        classification=Classification.PERSONAL,
    ))
    return books


class TestFinancials:
    """Tests for compute_financials."""

    def test_quarter_index(self):
        """Test month to quarter mapping."""
        assert quarter_index(date(2025, 1, 1)) == 0
        assert quarter_index(date(2025, 6, 30)) == 1
        assert quarter_index(date(2025, 12, 31)) == 3

    def test_quarters_and_ytd(self, trading_books):
        """Test per-quarter and year-to-date figures."""
        summary = compute_financials(trading_books)
        q1, q2 = summary.quarters[0], summary.quarters[1]

        assert summary.fiscal_year == 2025
        assert q1.income == Decimal("1000.00")
        assert q1.expenses == Decimal("200.00")
        assert q1.deductible_expenses == Decimal("200.00")
        assert q1.mileage_deduction == Decimal("6.70")
        assert q1.net_profit_for_tax == Decimal("793.30")
        assert q2.expenses == Decimal("300.00")
        assert q2.account_totals == {"Rent Expense": Decimal("300.00")}

        ytd = summary.period("ytd")
        assert ytd.income == Decimal("1000.00")
        assert ytd.expenses == Decimal("500.00")
        assert ytd.net == Decimal("500.00")
        assert ytd.top_expense_accounts() == [
            ("Rent Expense", Decimal("300.00")),
            ("Office Supplies", Decimal("200.00")),
        ]

    def test_settlements_not_double_counted(self, books):
        """Test paying an invoice adds no income."""
        invoice, _ = books.create_invoice("Acme", "500")
        books.update_invoice_status(invoice.id, InvoiceStatus.PAID)
        assert compute_financials(books).ytd.income == Decimal("500.00")

    def test_unknown_period(self, books):
        """Test period lookup by label."""
        with pytest.raises(KeyError):
            compute_financials(books).period("Q5")


class TestTaxEstimate:
    """Tests for compute_tax_estimate."""

    def test_quarterly_model(self, trading_books):
        """Test tax to date less earlier quarters' payments."""
        trading_books.set_quarterly_payment(1, "50")
        trading_books.set_quarterly_payment(2, "999")
        estimate = compute_tax_estimate(compute_financials(trading_books), trading_books)

        assert estimate.current_quarter == 2
        assert estimate.profit_to_date == Decimal("493.30")
        assert estimate.tax_to_date == Decimal("69.70")
        assert estimate.payments_made == Decimal("50.00")
        assert estimate.current_quarter_due == Decimal("19.70")
        assert estimate.ytd_tax == Decimal("69.70")

    def test_loss_owes_nothing(self, books, make_txn):
        """Test tax never goes negative."""
        books.add_transaction(make_txn(amount="400.00"))
        estimate = compute_tax_estimate(compute_financials(books), books)
        assert estimate.tax_to_date == Decimal("0")
        assert estimate.ytd_tax == Decimal("0")

    def test_sales_tax_on_taxable_invoices(self, books):
        """Test sales tax only while VAT is off."""
        books.create_invoice("Acme", "200", taxable=True)
        books.create_invoice("Other", "100")
        summary = compute_financials(books)
        assert summary.ytd.taxable_sales == Decimal("200.00")
        assert compute_tax_estimate(summary, books).estimated_sales_tax == Decimal("14.00")


class TestVatSummary:
    """Tests for compute_vat_summary."""

    def test_output_less_input(self, today):
        """Test net VAT payable."""
        books = Books(tax_settings=TaxSettings(vat_enabled=True), clock=lambda: today)
        books.create_invoice("Acme", "100", taxable=True)
        books.create_bill("Supplier", "50", vat_amount="6.50")
        vat = compute_vat_summary(books)
        assert vat.output_vat == Decimal("13.00")
        assert vat.input_vat == Decimal("6.50")
        assert vat.net_payable == Decimal("6.50")


class TestAging:
    """Tests for compute_aging."""

    def test_buckets(self, today):
        """Test each bucket boundary and that paid items are skipped."""
        def invoice(due: date, amount: str, status=InvoiceStatus.SENT) -> Invoice:
            return Invoice(
                customer="Acme",
                invoice_number=f"INV-{amount}",
                invoice_date=date(2025, 1, 1),
                due_date=due,
                amount=amount,
                status=status,
            )

        report = compute_aging([
            invoice(date(2025, 5, 20), "100"),
            invoice(date(2025, 5, 15), "1"),
            invoice(date(2025, 5, 1), "200"),
            invoice(date(2025, 3, 31), "300"),
            invoice(date(2025, 2, 28), "400"),
            invoice(date(2025, 1, 1), "500"),
            invoice(date(2025, 1, 1), "999", status=InvoiceStatus.PAID),
        ], today)

        assert report.current == Decimal("101.00")
        assert report.days_1_30 == Decimal("200.00")
        assert report.days_31_60 == Decimal("300.00")
        assert report.days_61_90 == Decimal("400.00")
        assert report.days_over_90 == Decimal("500.00")
        assert report.total == Decimal("1501.00")
        assert [label for label, _ in report.buckets()][0] == "Current"


class TestCashFlow:
    """Tests for compute_cash_flow."""

    def test_projection(self, books, make_txn):
        """Test cash plus receivables minus payables."""
        books.add_transaction(make_txn(
            amount="1000.00",
            transaction_type=TransactionType.INCOME,
            account="Service Income",
        ))
        books.add_transaction(make_txn(amount="200.00"))
        books.create_invoice("Acme", "500")
        books.create_bill("Supplier", "100")

        flow = compute_cash_flow(books)
        assert flow.current_cash == Decimal("800.00")
        assert flow.outstanding_receivables == Decimal("500.00")
        assert flow.outstanding_payables == Decimal("100.00")
        assert flow.projected_cash == Decimal("1200.00")


class TestProjectProfitability:
    """Tests for compute_project_profitability."""

    def test_settlements_skipped(self, books, make_txn):
        """Test invoice and bill payments do not count twice."""
        project = books.add_project("Website")
        invoice, _ = books.create_invoice("Acme", "500", project_id=project.id)
        books.update_invoice_status(invoice.id, InvoiceStatus.PAID)
        bill, _ = books.create_bill("Designer", "80", project_id=project.id)
        books.mark_bill_paid(bill.id)
        books.add_transaction(make_txn(amount="120.00", project_id=project.id))
        books.add_transaction(make_txn(amount="999.00"))

        [row] = compute_project_profitability(books)
        assert row.name == "Website"
        assert row.income == Decimal("500.00")
        assert row.expenses == Decimal("200.00")
        assert row.profit == Decimal("300.00")


class TestJournalAndSearch:
    """Tests for journal listing, search and CSV export."""

    def test_journal_rows(self, make_txn):
        """Test every line is listed, newest transaction first."""
        old = make_txn(on=date(2025, 1, 1))
        new = make_txn(vendor="Newer", on=date(2025, 2, 1))
        rows = journal_rows([old, new])
        assert len(rows) == 4
        assert rows[0].vendor == "Newer"
        assert rows[0].debit == Decimal("45.10")
        assert rows[1].credit == Decimal("45.10")

    def test_search(self, books, make_txn):
        """Test substring search across collections."""
        books.add_transaction(make_txn())
        invoice, _ = books.create_invoice("Stanley Corp", "100")
        books.add_project("Storefront")

        results = search(books, "STA")
        assert [t.vendor for t in results.transactions] == ["Stanley Corp", "Staples"]
        assert results.invoices == [invoice]
        assert results.projects == []

        assert search(books, invoice.invoice_number.lower()).invoices == [invoice]
        assert search(books, "s") is None
        assert search(books, "nothing here") is None

    def test_profit_and_loss_csv(self, trading_books):
        """Test the CSV layout."""
        text = profit_and_loss_csv(compute_financials(trading_books).ytd, company="Acme Co")
        lines = text.splitlines()
        assert lines[0] == "Acme Co Profit & Loss Statement"
        assert lines[1] == "Period: YTD"
        assert lines[3] == "Category,Amount"
        assert lines[5] == "Total Income,1000.00"
        assert lines[8] == "Rent Expense,300.00"
        assert lines[9] == "Office Supplies,200.00"
        assert lines[10] == "Total Expenses,500.00"
        assert lines[-1] == "Net Profit,500.00"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
