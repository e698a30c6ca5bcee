"""
Tests for Clario data models.

Test strategy:
1. Money coercion (strings, floats, currency symbols)
2. Transaction derived properties
3. Document and schedule validators
4. Audit event helpers
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from clario.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Bill,
    EntryResult,
    Frequency,
    Invoice,
    InvoiceStatus,
    RecurringSchedule,
    RecurringType,
    TaxSettings,
    Transaction,
    TransactionTemplate,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from clario.models.ledger import JournalLine, to_money


class TestMoney:
    """Tests for cent-quantized money coercion."""

    def test_float_goes_through_string(self):
        """Test that floats do not carry binary drift."""
        assert to_money(0.1 + 0.2) == Decimal("0.30")
        assert to_money(19.99) == Decimal("19.99")

    def test_strips_symbols(self):
        """Test dollar signs and thousands separators."""
        assert to_money("$1,234.5") == Decimal("1234.50")

    def test_rounds_half_up(self):
        """Test rounding to cents."""
        assert to_money("2.345") == Decimal("2.35")
        assert to_money(7) == Decimal("7.00")

    def test_rejects_garbage(self):
        """Test invalid values."""
        with pytest.raises(ValueError):
            to_money("twelve")
        with pytest.raises(ValueError):
            to_money("  ")
        with pytest.raises(ValueError):
            to_money(True)

    def test_negative_journal_amount_rejected(self):
        """Test that journal lines refuse negative amounts."""
        with pytest.raises(ValidationError):
            JournalLine(account="Bank", debit="-5")


class TestTransaction:
    """Tests for Transaction model."""

    def test_totals_and_balance(self, make_txn):
        """Test debit/credit totals."""
        txn = make_txn(amount="120.00")
        assert txn.total_debits == Decimal("120.00")
        assert txn.total_credits == Decimal("120.00")
        assert txn.is_balanced is True
        assert txn.debits_account("Office Supplies")
        assert txn.credits_account("Bank")
        assert not txn.debits_account("Bank")

    def test_signed_amount_includes_vat(self, make_txn):
        """Test signed amount as it would appear on a statement."""
        expense = make_txn(amount="100.00", vat_amount="13.00")
        income = make_txn(
            amount="50.00",
            transaction_type=TransactionType.INCOME,
            account="Service Income",
        )
        assert expense.total_amount == Decimal("113.00")
        assert expense.signed_amount == Decimal("-113.00")
        assert income.signed_amount == Decimal("50.00")

    def test_unbalanced_is_representable(self, make_txn):
        """Test that the model keeps unbalanced journals for the validator."""
        txn = make_txn(journal=[
            JournalLine(account="Office Supplies", debit="10"),
            JournalLine(account="Bank", credit="9"),
        ])
        assert txn.is_balanced is False

    def test_currency_normalized(self, make_txn):
        """Test currency is upper-cased."""
        assert make_txn(currency="usd").currency == "USD"

    def test_blank_vendor_rejected(self, make_txn):
        """Test vendor is required after stripping."""
        with pytest.raises(ValidationError):
            make_txn(vendor="   ")

    def test_from_template(self):
        """Test stamping a transaction out of a template."""
        template = TransactionTemplate(
            vendor="Landlord",
            amount="1500",
            category="Rent Expense",
            transaction_type=TransactionType.EXPENSE,
            journal=[
                JournalLine(account="Rent Expense", debit="1500"),
                JournalLine(account="Bank", credit="1500"),
            ],
        )
        first = Transaction.from_template(template, date(2025, 1, 1))
        second = Transaction.from_template(template, date(2025, 2, 1))
        assert first.date == date(2025, 1, 1)
        assert first.vendor == "Landlord"
        assert first.id != second.id
        assert first.is_balanced


class TestDocuments:
    """Tests for invoice and bill validators."""

    def test_invoice_due_before_issue(self):
        """Test invoice date ordering."""
        with pytest.raises(ValidationError):
            Invoice(
                customer="Acme",
                invoice_number="INV-1",
                invoice_date=date(2025, 3, 1),
                due_date=date(2025, 2, 1),
                amount="100",
            )

    def test_invoice_defaults(self):
        """Test new invoices start as drafts."""
        invoice = Invoice(
            customer="Acme",
            invoice_number="INV-1",
            invoice_date=date(2025, 3, 1),
            due_date=date(2025, 3, 31),
            amount="100",
        )
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.is_paid is False

    def test_bill_due_before_issue(self):
        """Test bill date ordering."""
        with pytest.raises(ValidationError):
            Bill(
                vendor="Supplier",
                bill_number="B-1",
                bill_date=date(2025, 3, 1),
                due_date=date(2025, 2, 28),
                amount="10",
            )


class TestRecurringSchedule:
    """Tests for RecurringSchedule model."""

    @staticmethod
    def _template() -> TransactionTemplate:
        return TransactionTemplate(
            vendor="Laptop",
            amount="0",
            category="Depreciation Expense",
            transaction_type=TransactionType.EXPENSE,
        )

    def test_next_due_defaults_to_start(self):
        """Test first posting date."""
        schedule = RecurringSchedule(
            description="Rent",
            frequency=Frequency.MONTHLY,
            start_date=date(2025, 1, 31),
            template=self._template(),
        )
        assert schedule.next_due_date == date(2025, 1, 31)
        assert schedule.end_date is None

    def test_depreciation_requires_cost_and_life(self):
        """Test depreciation inputs."""
        with pytest.raises(ValidationError):
            RecurringSchedule(
                schedule_type=RecurringType.DEPRECIATION,
                description="Laptop",
                frequency=Frequency.MONTHLY,
                start_date=date(2025, 1, 1),
                template=self._template(),
                depreciation_years=3,
            )
        with pytest.raises(ValidationError):
            RecurringSchedule(
                schedule_type=RecurringType.DEPRECIATION,
                description="Laptop",
                frequency=Frequency.MONTHLY,
                start_date=date(2025, 1, 1),
                template=self._template(),
                asset_cost="3600",
            )

    def test_depreciation_end_date_leap_day(self):
        """Test end date for an asset bought on Feb 29."""
        schedule = RecurringSchedule(
            schedule_type=RecurringType.DEPRECIATION,
            description="Van",
            frequency=Frequency.MONTHLY,
            start_date=date(2024, 2, 29),
            template=self._template(),
            asset_cost="12000",
            depreciation_years=5,
        )
        assert schedule.end_date == date(2029, 2, 28)


class TestTaxSettings:
    """Tests for TaxSettings model."""

    def test_defaults(self):
        """Test default rates and four empty quarters."""
        settings = TaxSettings()
        assert settings.self_employment_tax_rate == Decimal("15.3")
        assert settings.quarterly_payments == [Decimal("0.00")] * 4
        assert settings.vat_enabled is False

    def test_quarter_count_enforced(self):
        """Test exactly four quarterly payments."""
        with pytest.raises(ValidationError):
            TaxSettings(quarterly_payments=["100", "100"])


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXTRACTION_REQUESTED,
            description="Text submitted",
        )
        assert event.event_type == AuditEventType.EXTRACTION_REQUESTED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BOOKS_SAVED,
            description="Books saved",
            details={"transactions": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "books_saved"
        assert log_dict["details"]["transactions"] == 3

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            description="Transaction deleted",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "transaction_deleted"
        assert row[10] == "True"

    def test_builder_transaction_recorded(self):
        """Test AuditEventBuilder.transaction_recorded."""
        txn_id = uuid4()
        correlation_id = uuid4()
        event = AuditEventBuilder.transaction_recorded(
            transaction_id=txn_id,
            vendor="Staples",
            amount="45.10",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.TRANSACTION_RECORDED
        assert event.entity_id == txn_id
        assert event.correlation_id == correlation_id
        assert "Staples" in event.description

    def test_builder_validation_failed_stage(self):
        """Test the stage picks the event type."""
        structure = AuditEventBuilder.validation_failed(uuid4(), "structure", [], uuid4())
        semantic = AuditEventBuilder.validation_failed(uuid4(), "semantic", [{}], uuid4())
        assert structure.event_type == AuditEventType.STRUCTURE_VALIDATION_FAILED
        assert semantic.event_type == AuditEventType.SEMANTIC_VALIDATION_FAILED
        assert semantic.severity == AuditSeverity.WARNING

    def test_builder_document_created(self):
        """Test invoice vs bill event type."""
        invoice = AuditEventBuilder.document_created("invoice", uuid4(), "INV-1", "10.00", None)
        bill = AuditEventBuilder.document_created("bill", uuid4(), "B-1", "10.00", None)
        assert invoice.event_type == AuditEventType.INVOICE_CREATED
        assert bill.event_type == AuditEventType.BILL_CREATED


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            transaction_id=uuid4(),
            structure_valid=True,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="journal",
                    issue_type="unbalanced",
                    message="Debits do not equal credits",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            transaction_id=uuid4(),
            structure_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_severity_pattern(self):
        """Test unknown severities are refused."""
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestEntryResult:
    """Tests for EntryResult model."""

    def test_succeeded(self):
        """Test success flag."""
        assert EntryResult().succeeded is True
        assert EntryResult(ignored=True).succeeded is False
        assert EntryResult(error="boom").succeeded is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
