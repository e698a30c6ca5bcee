"""
Report Models for Clario

Read-only views computed from the books. Nothing here is persisted;
every report is recomputed from transactions, invoices and bills on
demand so it can never drift from the ledger.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from clario.models.ledger import ZERO, Bill, Invoice, Project, Transaction


class PeriodFinancials(BaseModel):
    """P&L figures for one quarter or for the year to date."""

    label: str = Field(..., description="Q1..Q4 or YTD")
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    account_totals: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Expense total per expense account"
    )
    deductible_expenses: Decimal = ZERO
    miles: Decimal = ZERO
    taxable_sales: Decimal = ZERO
    net: Decimal = ZERO
    mileage_deduction: Decimal = ZERO
    net_profit_for_tax: Decimal = ZERO

    def top_expense_accounts(self, limit: int = 5) -> list[tuple[str, Decimal]]:
        """Largest expense accounts first."""
        return sorted(
            self.account_totals.items(),
            key=lambda item: item[1],
            reverse=True,
        )[:limit]


class FinancialSummary(BaseModel):
    fiscal_year: int
    quarters: list[PeriodFinancials] = Field(..., min_length=4, max_length=4)
    ytd: PeriodFinancials

    def period(self, label: str) -> PeriodFinancials:
        """Look up Q1..Q4 or YTD by label."""
        label = label.upper()
        if label == "YTD":
            return self.ytd
        for quarter in self.quarters:
            if quarter.label == label:
                return quarter
        raise KeyError(f"Unknown period: {label}")


class TaxEstimate(BaseModel):
    """
    Estimated self-employment and sales tax.

    Figures follow the quarterly estimated-payment model: tax owed to
    date less the payments already made for earlier quarters.
    """

    current_quarter: int = Field(..., ge=1, le=4)
    profit_to_date: Decimal = ZERO
    tax_to_date: Decimal = ZERO
    payments_made: Decimal = ZERO
    current_quarter_due: Decimal = ZERO
    ytd_tax: Decimal = ZERO
    estimated_sales_tax: Decimal = ZERO


class VatSummary(BaseModel):
    output_vat: Decimal = ZERO
    input_vat: Decimal = ZERO
    net_payable: Decimal = ZERO


class AgingReport(BaseModel):
    """Unpaid receivables or payables bucketed by days overdue."""

    current: Decimal = ZERO
    days_1_30: Decimal = ZERO
    days_31_60: Decimal = ZERO
    days_61_90: Decimal = ZERO
    days_over_90: Decimal = ZERO
    total: Decimal = ZERO

    def buckets(self) -> list[tuple[str, Decimal]]:
        return [
            ("Current", self.current),
            ("1-30 Days", self.days_1_30),
            ("31-60 Days", self.days_31_60),
            ("61-90 Days", self.days_61_90),
            ("90+ Days", self.days_over_90),
        ]


class CashFlowSummary(BaseModel):
    current_cash: Decimal = ZERO
    outstanding_receivables: Decimal = ZERO
    outstanding_payables: Decimal = ZERO
    projected_cash: Decimal = ZERO


class ProjectProfitability(BaseModel):
    project_id: UUID
    name: str
    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.income - self.expenses


class PieSlice(BaseModel):
    """One slice of the expense donut chart."""

    label: str
    value: Decimal
    percent: float = Field(..., ge=0.0, le=1.0)
    color: str
    arc_length: float = Field(..., description="Stroke length along the circumference")
    rotation: float = Field(..., description="Degrees to rotate the slice start")


class PieChart(BaseModel):
    radius: float
    stroke_width: float
    circumference: float
    total: Decimal = ZERO
    slices: list[PieSlice] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.slices


class JournalEntryRow(BaseModel):
    """One journal line flattened with its transaction's date and vendor."""

    transaction_id: UUID
    date: date
    vendor: str
    account: str
    debit: Optional[Decimal] = None
    credit: Optional[Decimal] = None


class SearchResults(BaseModel):
    transactions: list[Transaction] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    bills: list[Bill] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)

    @property
    def total_hits(self) -> int:
        return (
            len(self.transactions)
            + len(self.invoices)
            + len(self.bills)
            + len(self.projects)
        )
