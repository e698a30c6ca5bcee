"""
Data Models Package

This package contains all Pydantic models used in Clario.
All data flowing through the system must conform to these schemas.
"""

from clario.models.ledger import (
    Account,
    AccountType,
    BankStatementEntry,
    Bill,
    BillStatus,
    BooksSnapshot,
    Classification,
    EntryResult,
    ExtractionResult,
    Frequency,
    Invoice,
    InvoiceStatus,
    JournalLine,
    Project,
    ReconciliationMatch,
    ReconciliationResult,
    RecurringSchedule,
    RecurringType,
    SkippedLine,
    TaxSettings,
    Transaction,
    TransactionTemplate,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    VatType,
    to_money,
)
from clario.models.reports import (
    AgingReport,
    CashFlowSummary,
    FinancialSummary,
    JournalEntryRow,
    PeriodFinancials,
    PieChart,
    PieSlice,
    ProjectProfitability,
    SearchResults,
    TaxEstimate,
    VatSummary,
)
from clario.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "BankStatementEntry",
    "Bill",
    "BillStatus",
    "BooksSnapshot",
    "Classification",
    "EntryResult",
    "ExtractionResult",
    "Frequency",
    "Invoice",
    "InvoiceStatus",
    "JournalLine",
    "Project",
    "ReconciliationMatch",
    "ReconciliationResult",
    "RecurringSchedule",
    "RecurringType",
    "SkippedLine",
    "TaxSettings",
    "Transaction",
    "TransactionTemplate",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "VatType",
    "to_money",
    # Report models
    "AgingReport",
    "CashFlowSummary",
    "FinancialSummary",
    "JournalEntryRow",
    "PeriodFinancials",
    "PieChart",
    "PieSlice",
    "ProjectProfitability",
    "SearchResults",
    "TaxEstimate",
    "VatSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
