"""
Core Ledger Models for Clario

These models define the strict schemas for all bookkeeping data:
transactions and their journals, invoices, bills, projects, the chart
of accounts, recurring schedules and bank statement entries.

DESIGN DECISION: Money is always a Decimal quantized to cents.
Floats coming from the AI are converted through their string form so
0.1 + 0.2 style drift never reaches the books.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Coerce a number or numeric string to a cent-quantized Decimal."""
    if isinstance(value, bool):
        raise ValueError("Boolean is not a valid amount")
    if isinstance(value, float):
        value = str(value)
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
        if not value:
            raise ValueError("Amount is empty")
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


# Signed money (bank lines may be negative)
Money = Annotated[Decimal, BeforeValidator(to_money)]

# Journal amounts, invoice totals, etc.
NonNegativeMoney = Annotated[Decimal, BeforeValidator(to_money), Field(ge=0)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction from the business' point of view."""
    INCOME = "income"
    EXPENSE = "expense"


class Classification(str, Enum):
    """
    Business or personal.

    DESIGN DECISION: Only business transactions feed the P&L and tax
    estimates. Personal ones stay in the log so nothing is lost.
    """
    BUSINESS = "business"
    PERSONAL = "personal"


class VatType(str, Enum):
    """Output VAT is charged on sales, input VAT is paid on purchases."""
    INPUT = "input"
    OUTPUT = "output"


class AccountType(str, Enum):
    """The five account families of double-entry bookkeeping."""
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"


class InvoiceStatus(str, Enum):
    """
    Invoice lifecycle.

    Draft → Sent → Paid, or Draft → Paid directly.
    CRITICAL: Paid is terminal. Status never moves backwards.
    """
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"


class BillStatus(str, Enum):
    """Bill lifecycle: Open until paid."""
    OPEN = "Open"
    PAID = "Paid"


class RecurringType(str, Enum):
    PAYMENT = "payment"
    DEPRECIATION = "depreciation"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class JournalLine(BaseModel):
    """
    One debit or credit against an account.

    A well-formed line carries exactly one of debit/credit. The model
    accepts both so the validator can report the problem instead of
    the parser throwing it away.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    account: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Account name from the chart of accounts"
    )
    debit: Optional[NonNegativeMoney] = None
    credit: Optional[NonNegativeMoney] = None

    @property
    def debit_amount(self) -> Decimal:
        return self.debit or ZERO

    @property
    def credit_amount(self) -> Decimal:
        return self.credit or ZERO


class TransactionTemplate(BaseModel):
    """
    The reusable part of a transaction: everything except identity and date.

    Recurring schedules keep one of these and stamp out a Transaction
    every time a posting falls due.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    vendor: str = Field(..., min_length=1, max_length=200)
    amount: NonNegativeMoney
    currency: str = Field(default="USD", min_length=3, max_length=3)
    category: str = Field(..., min_length=1, max_length=100)
    transaction_type: TransactionType
    journal: list[JournalLine] = Field(default_factory=list)
    project_id: Optional[UUID] = None
    deductible: bool = False
    classification: Classification = Classification.BUSINESS

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class Transaction(TransactionTemplate):
    """
    A dated, double-entry transaction.

    CRITICAL: sum(debits) must equal sum(credits). The model itself
    does not enforce it so that the validator can report unbalanced
    AI output; Books refuses to record an unbalanced journal.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    date: date
    reconciled: bool = False
    miles: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Business miles driven, for the mileage deduction"
    )
    vat_amount: Optional[NonNegativeMoney] = None
    vat_type: Optional[VatType] = None

    @property
    def total_amount(self) -> Decimal:
        """Amount including VAT."""
        return self.amount + (self.vat_amount or ZERO)

    @property
    def signed_amount(self) -> Decimal:
        """Positive for income, negative for expense (as seen on a bank statement)."""
        if self.transaction_type == TransactionType.INCOME:
            return self.total_amount
        return -self.total_amount

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit_amount for line in self.journal), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit_amount for line in self.journal), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    @property
    def is_business(self) -> bool:
        return self.classification == Classification.BUSINESS

    def debits_account(self, account: str) -> bool:
        """Does any journal line debit this account?"""
        return any(
            line.account == account and line.debit_amount > 0
            for line in self.journal
        )

    def credits_account(self, account: str) -> bool:
        """Does any journal line credit this account?"""
        return any(
            line.account == account and line.credit_amount > 0
            for line in self.journal
        )

    @classmethod
    def from_template(
        cls,
        template: TransactionTemplate,
        on: date,
    ) -> 'Transaction':
        """Stamp out a fresh transaction from a template."""
        fields = template.model_dump(include=set(TransactionTemplate.model_fields))
        return cls(date=on, **fields)


# =============================================================================
# CHART OF ACCOUNTS / PROJECTS
# =============================================================================

class Account(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType


class Project(BaseModel):
    """A job or client engagement that transactions can be tagged with."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=200)


# =============================================================================
# RECEIVABLES / PAYABLES
# =============================================================================

class Invoice(BaseModel):
    """
    Money owed TO the business (accounts receivable).

    Every invoice is paired with the receivable transaction that
    created it. Deleting the invoice deletes that transaction too.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    customer: str = Field(..., min_length=1, max_length=200)
    invoice_number: str = Field(..., min_length=1, max_length=50)
    invoice_date: date
    due_date: date
    amount: NonNegativeMoney = Field(
        ...,
        description="Total owed, including VAT"
    )
    status: InvoiceStatus = InvoiceStatus.DRAFT
    related_transaction_id: Optional[UUID] = None
    taxable: bool = False

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @model_validator(mode='after')
    def validate_dates(self) -> 'Invoice':
        if self.due_date < self.invoice_date:
            raise ValueError("Due date cannot be before invoice date")
        return self


class Bill(BaseModel):
    """Money owed BY the business (accounts payable)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    vendor: str = Field(..., min_length=1, max_length=200)
    bill_number: str = Field(..., min_length=1, max_length=50)
    bill_date: date
    due_date: date
    amount: NonNegativeMoney
    status: BillStatus = BillStatus.OPEN
    related_transaction_id: Optional[UUID] = None

    @property
    def is_paid(self) -> bool:
        return self.status == BillStatus.PAID

    @model_validator(mode='after')
    def validate_dates(self) -> 'Bill':
        if self.due_date < self.bill_date:
            raise ValueError("Due date cannot be before bill date")
        return self


# =============================================================================
# RECURRING SCHEDULES
# =============================================================================

class RecurringSchedule(BaseModel):
    """
    A transaction that repeats on a fixed frequency.

    Depreciation schedules compute their own template (straight-line,
    monthly) and stop once the asset's useful life has elapsed.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    schedule_type: RecurringType = RecurringType.PAYMENT
    description: str = Field(..., min_length=1, max_length=200)
    frequency: Frequency
    start_date: date
    next_due_date: Optional[date] = None
    template: TransactionTemplate

    # Depreciation only
    asset_cost: Optional[NonNegativeMoney] = None
    depreciation_years: Optional[int] = Field(default=None, ge=1, le=100)

    @property
    def end_date(self) -> Optional[date]:
        """First date on which the schedule no longer posts."""
        if self.schedule_type != RecurringType.DEPRECIATION or not self.depreciation_years:
            return None
        try:
            return self.start_date.replace(
                year=self.start_date.year + self.depreciation_years
            )
        except ValueError:
            # Feb 29 start
            return self.start_date.replace(
                year=self.start_date.year + self.depreciation_years, day=28
            )

    @model_validator(mode='after')
    def validate_schedule(self) -> 'RecurringSchedule':
        if self.next_due_date is None:
            self.next_due_date = self.start_date
        if self.schedule_type == RecurringType.DEPRECIATION:
            if not self.asset_cost or self.asset_cost <= 0:
                raise ValueError("Depreciation requires a positive asset cost")
            if not self.depreciation_years:
                raise ValueError("Depreciation requires a useful life in years")
        return self


# =============================================================================
# TAX SETTINGS
# =============================================================================

class TaxSettings(BaseModel):
    """Per-books tax configuration. Rates are percentages."""

    self_employment_tax_rate: Decimal = Field(default=Decimal("15.3"), ge=0, le=100)
    sales_tax_rate: Decimal = Field(default=Decimal("7.0"), ge=0, le=100)
    mileage_rate: Decimal = Field(default=Decimal("0.67"), ge=0)
    vat_enabled: bool = False
    vat_rate: Decimal = Field(default=Decimal("13.0"), ge=0, le=100)
    quarterly_payments: list[NonNegativeMoney] = Field(
        default_factory=lambda: [ZERO, ZERO, ZERO, ZERO],
        min_length=4,
        max_length=4,
        description="Estimated tax already paid for Q1..Q4"
    )

    @classmethod
    def from_app_settings(cls, app: Any) -> 'TaxSettings':
        """Seed from AppSettings defaults."""
        return cls(
            self_employment_tax_rate=Decimal(str(app.self_employment_tax_rate)),
            sales_tax_rate=Decimal(str(app.sales_tax_rate)),
            mileage_rate=Decimal(str(app.mileage_rate)),
            vat_enabled=app.vat_enabled,
            vat_rate=Decimal(str(app.vat_rate)),
        )


# =============================================================================
# RECONCILIATION MODELS
# =============================================================================

class BankStatementEntry(BaseModel):
    """One parsed line of a bank statement. Amount is signed."""
    model_config = ConfigDict(str_strip_whitespace=True)

    line_number: int = Field(..., ge=1)
    date: date
    description: str = ""
    amount: Money


class SkippedLine(BaseModel):
    """A statement line that could not be parsed. Reported, never guessed."""

    line_number: int
    text: str
    reason: str


class ReconciliationMatch(BaseModel):
    transaction: Transaction
    bank_entry: BankStatementEntry


class ReconciliationResult(BaseModel):
    """
    Outcome of one reconciliation run.

    Every ledger transaction appears exactly once, either in a match or
    in unmatched_transactions. Every parsed bank entry appears exactly
    once, either in a match or in unmatched_bank_entries.
    """

    matches: list[ReconciliationMatch] = Field(default_factory=list)
    unmatched_transactions: list[Transaction] = Field(default_factory=list)
    unmatched_bank_entries: list[BankStatementEntry] = Field(default_factory=list)
    skipped_lines: list[SkippedLine] = Field(default_factory=list)

    @property
    def matched_transaction_ids(self) -> list[UUID]:
        return [m.transaction.id for m in self.matches]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'unbalanced', 'unknown_account')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage journal validation.

    Stage 1: Structure (required fields, one-sided lines)
    Stage 2: Semantics (balance, accounts, dates)
    """

    transaction_id: UUID
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    structure_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# AI EXTRACTION RESULT
# =============================================================================

class ExtractionResult(BaseModel):
    """
    What came back from one AI extraction call.

    Items are parsed one at a time. A malformed item lands in
    `rejected` with a reason and does not block the others.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    raw_item_count: int = 0


class EntryResult(BaseModel):
    """
    Outcome of one free-text submission.

    `ignored` is set when the submission was dropped (blank text, or a
    request already in flight). `error` carries the user-facing message
    when the AI call itself failed.
    """

    recorded: list[Transaction] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    bills: list[Bill] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    ignored: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.ignored


# =============================================================================
# SNAPSHOT (storage boundary)
# =============================================================================

class BooksSnapshot(BaseModel):
    """Everything needed to rebuild a set of books."""

    transactions: list[Transaction] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    bills: list[Bill] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    accounts: list[Account] = Field(default_factory=list)
    recurring: list[RecurringSchedule] = Field(default_factory=list)
    tax_settings: TaxSettings = Field(default_factory=TaxSettings)
    saved_at: datetime = Field(default_factory=datetime.utcnow)
