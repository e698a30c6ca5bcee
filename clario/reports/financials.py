"""
Profit & Loss, Tax and VAT

DESIGN DECISION: Figures are derived from journal lines, not from
the transaction's headline amount. Income is what was credited to
Revenue accounts and expenses are what was debited to Expense
accounts, so settlements (AR → Bank, AP → Bank) never double count.

Only business transactions of the fiscal year are included.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from clario.ledger.books import Books
from clario.models.ledger import CENT, ZERO, Transaction, TransactionType, VatType
from clario.models.reports import (
    FinancialSummary,
    PeriodFinancials,
    TaxEstimate,
    VatSummary,
)


# Share of net earnings subject to self-employment tax
SE_TAXABLE_SHARE = Decimal("0.9235")
HUNDRED = Decimal("100")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def quarter_index(on: date) -> int:
    """0-based quarter for a date (Jan-Mar → 0)."""
    return (on.month - 1) // 3


def _fiscal_transactions(books: Books, fiscal_year: int) -> list[Transaction]:
    revenue = books.chart.revenue_accounts
    expense = books.chart.expense_accounts
    return [
        t for t in books.transactions
        if t.is_business
        and t.date.year == fiscal_year
        and any(line.account in revenue or line.account in expense for line in t.journal)
    ]


def _finish(period: PeriodFinancials, mileage_rate: Decimal) -> PeriodFinancials:
    period.net = period.income - period.expenses
    period.mileage_deduction = _cents(period.miles * mileage_rate)
    period.net_profit_for_tax = period.net - period.mileage_deduction
    return period


def compute_financials(books: Books, fiscal_year: Optional[int] = None) -> FinancialSummary:
    """
    Quarterly and year-to-date P&L.

    Taxable sales come from the receivable transactions of invoices
    marked taxable, and are only tracked while VAT is off.
    """
    fiscal_year = fiscal_year or books.today().year
    tax = books.tax_settings
    revenue = books.chart.revenue_accounts
    expense = books.chart.expense_accounts

    taxable_txn_ids = set()
    if not tax.vat_enabled:
        taxable_txn_ids = {
            inv.related_transaction_id
            for inv in books.invoices
            if inv.taxable and inv.related_transaction_id
        }

    quarters = [PeriodFinancials(label=f"Q{i + 1}") for i in range(4)]

    for txn in _fiscal_transactions(books, fiscal_year):
        q = quarters[quarter_index(txn.date)]

        for line in txn.journal:
            if line.account in revenue:
                q.income += line.credit_amount
            if line.account in expense and line.debit_amount > 0:
                q.expenses += line.debit_amount
                q.account_totals[line.account] = (
                    q.account_totals.get(line.account, ZERO) + line.debit_amount
                )

        if txn.transaction_type == TransactionType.EXPENSE:
            if txn.deductible:
                q.deductible_expenses += txn.amount
            if txn.miles:
                q.miles += txn.miles

        if txn.id in taxable_txn_ids:
            q.taxable_sales += txn.amount

    ytd = PeriodFinancials(label="YTD")
    for q in quarters:
        _finish(q, tax.mileage_rate)
        ytd.income += q.income
        ytd.expenses += q.expenses
        ytd.deductible_expenses += q.deductible_expenses
        ytd.miles += q.miles
        ytd.taxable_sales += q.taxable_sales
        for account, total in q.account_totals.items():
            ytd.account_totals[account] = ytd.account_totals.get(account, ZERO) + total
    _finish(ytd, tax.mileage_rate)

    return FinancialSummary(fiscal_year=fiscal_year, quarters=quarters, ytd=ytd)


def _se_tax(profit: Decimal, rate: Decimal) -> Decimal:
    return max(ZERO, _cents(profit * SE_TAXABLE_SHARE * rate / HUNDRED))


def compute_tax_estimate(
    summary: FinancialSummary,
    books: Books,
    today: Optional[date] = None,
) -> TaxEstimate:
    """
    Estimated self-employment tax for the quarterly payment model.

    tax to date = max(0, profit to date × 0.9235 × SE rate)
    due now     = tax to date − payments made for earlier quarters
    """
    today = today or books.today()
    tax = books.tax_settings
    current = quarter_index(today)

    profit_to_date = sum(
        (q.net_profit_for_tax for q in summary.quarters[:current + 1]),
        ZERO,
    )
    tax_to_date = _se_tax(profit_to_date, tax.self_employment_tax_rate)
    payments_made = sum(tax.quarterly_payments[:current], ZERO)

    return TaxEstimate(
        current_quarter=current + 1,
        profit_to_date=profit_to_date,
        tax_to_date=tax_to_date,
        payments_made=payments_made,
        current_quarter_due=tax_to_date - payments_made,
        ytd_tax=_se_tax(summary.ytd.net_profit_for_tax, tax.self_employment_tax_rate),
        estimated_sales_tax=_cents(summary.ytd.taxable_sales * tax.sales_tax_rate / HUNDRED),
    )


def compute_vat_summary(books: Books, fiscal_year: Optional[int] = None) -> VatSummary:
    """Output VAT charged less input VAT paid, for the fiscal year's business transactions."""
    fiscal_year = fiscal_year or books.today().year
    output_vat = ZERO
    input_vat = ZERO

    for txn in books.transactions:
        if not txn.is_business or txn.date.year != fiscal_year or not txn.vat_amount:
            continue
        if txn.vat_type == VatType.OUTPUT:
            output_vat += txn.vat_amount
        elif txn.vat_type == VatType.INPUT:
            input_vat += txn.vat_amount

    return VatSummary(
        output_vat=output_vat,
        input_vat=input_vat,
        net_payable=output_vat - input_vat,
    )
