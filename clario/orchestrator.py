"""
Main Orchestrator for Clario

This module ties together all the components and defines the
end-to-end flows for:
1. Transaction entry (free text → AI → validate → record → A/R and A/P docs)
2. Bookkeeping (invoices, bills, projects, recurring, reconciliation, save)
3. Advisor (question → computed summaries → AI answer)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The AI only proposes; every proposal is validated before it is recorded
- An unbalanced journal is never recorded
- The advisor only ever sees computed summaries, never raw books
- Every change is audited

Flows share one Books instance per session. They hold no other state
except the re-entry guard on transaction entry.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from clario.agents import (
    AdvisorAgent,
    ExtractionError,
    TransactionExtractionAgent,
    build_knowledge_base_context,
    build_tax_context,
    to_user_message,
)
from clario.agents.ai_agents import ADVISOR_FALLBACK_ANSWER
from clario.audit import AuditLogger, create_correlation_id
from clario.config import get_settings
from clario.ledger import Books, generate_document_number
from clario.ledger.chart import ACCOUNTS_PAYABLE, ACCOUNTS_RECEIVABLE
from clario.models.audit import AuditEvent, AuditEventType
from clario.models.ledger import (
    Account,
    AccountType,
    Bill,
    EntryResult,
    Invoice,
    InvoiceStatus,
    Project,
    ReconciliationResult,
    RecurringSchedule,
    TaxSettings,
    Transaction,
)
from clario.reconciliation import reconcile_statement
from clario.reports import (
    compute_financials,
    compute_project_profitability,
    compute_tax_estimate,
    compute_vat_summary,
)
from clario.services.storage import (
    BooksStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsBooksStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    InMemoryBooksStorage,
    StorageError,
)
from clario.validation import JournalValidator


logger = structlog.get_logger(__name__)


class TransactionEntryFlow:
    """
    Orchestrates free-text transaction entry.

    Flow:
    1. Submit → ignored if blank or a request is already in flight
    2. Extract → AI proposes transactions (malformed items rejected)
    3. Validate → Two-stage journal validation per transaction
    4. Record → Valid transactions go into the books
    5. Documents → A/P credit creates a Bill, A/R debit creates an Invoice

    The AI call is the only failure boundary: any error there becomes
    a user-facing message and nothing is recorded.
    """

    def __init__(
        self,
        books: Books,
        agent: Optional[TransactionExtractionAgent] = None,
        validator: Optional[JournalValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._books = books
        self._agent = agent
        self._validator = validator
        self._audit_logger = audit_logger
        self.is_processing = False

    def _get_agent(self) -> TransactionExtractionAgent:
        # Created on first use so the app runs without Gemini configured
        if self._agent is None:
            self._agent = TransactionExtractionAgent()
        return self._agent

    def _get_validator(self) -> JournalValidator:
        # Built per call: loading a snapshot replaces the books' chart
        return self._validator or JournalValidator(
            chart=self._books.chart,
            clock=self._books.today,
        )

    async def submit_text(
        self,
        text: str,
        project_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> EntryResult:
        """
        Turn free text into recorded transactions.

        Returns:
            EntryResult describing what was recorded, rejected or created
        """
        if self.is_processing or not (text or "").strip():
            return EntryResult(ignored=True)

        correlation_id = correlation_id or create_correlation_id()
        max_chars = get_settings().app.max_input_chars
        if len(text) > max_chars:
            return EntryResult(
                error=f"Input is too long ({len(text)} characters, limit {max_chars})."
            )

        self.is_processing = True
        try:
            return await self._process(text, project_id, correlation_id)
        finally:
            self.is_processing = False

    async def _process(
        self,
        text: str,
        project_id: Optional[UUID],
        correlation_id: UUID,
    ) -> EntryResult:
        books = self._books
        project = books.get_project(project_id) if project_id else None

        if self._audit_logger:
            await self._audit_logger.log_extraction_requested(
                input_chars=len(text),
                project_id=project_id,
                correlation_id=correlation_id,
            )

        try:
            agent = self._get_agent()
        except Exception as e:
            # Gemini not configured (missing key, bad settings)
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="agent_setup",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return EntryResult(error=to_user_message(e))

        try:
            extraction = await agent.extract(
                text=text,
                today=books.today(),
                account_names=books.chart.names(),
                project_id=project.id if project else None,
                project_name=project.name if project else None,
                vat_enabled=books.tax_settings.vat_enabled,
                vat_rate=books.tax_settings.vat_rate,
            )
        except ExtractionError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return EntryResult(error=str(e))

        result = EntryResult(rejected=list(extraction.rejected))
        if self._audit_logger:
            for reason in extraction.rejected:
                await self._audit_logger.log_item_rejected(reason, correlation_id)

        validator = self._get_validator()
        for txn in extraction.transactions:
            validation = validator.validate(txn, books.transactions)
            if not validation.is_valid:
                result.rejected.append(
                    f"{txn.vendor}: {validator.get_user_friendly_summary(validation)}"
                )
                if self._audit_logger:
                    await self._audit_logger.log_validation_failed(
                        transaction_id=txn.id,
                        stage="structure" if not validation.structure_valid else "semantic",
                        issues=[
                            {"field": i.field, "type": i.issue_type, "message": i.message}
                            for i in validation.issues
                        ],
                        correlation_id=correlation_id,
                    )
                continue

            result.warnings.extend(f"{txn.vendor}: {w}" for w in validation.warnings)
            books.add_transaction(txn)
            result.recorded.append(txn)
            if self._audit_logger:
                await self._audit_logger.log_transaction_recorded(
                    transaction_id=txn.id,
                    vendor=txn.vendor,
                    amount=str(txn.total_amount),
                    correlation_id=correlation_id,
                )

            await self._create_documents(txn, result, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_extraction_completed(
                accepted=len(result.recorded),
                rejected=len(result.rejected),
                correlation_id=correlation_id,
            )

        logger.info(
            "text_submission_processed",
            recorded=len(result.recorded),
            rejected=len(result.rejected),
            invoices=len(result.invoices),
            bills=len(result.bills),
        )
        return result

    async def _create_documents(
        self,
        txn: Transaction,
        result: EntryResult,
        correlation_id: UUID,
    ) -> None:
        """
        Create the payable/receivable documents a recorded journal implies.

        Amount is the total including VAT; due after the payment terms.
        """
        due_date = txn.date + timedelta(days=self._books.payment_terms_days)

        if txn.credits_account(ACCOUNTS_PAYABLE):
            bill = self._books.add_bill(Bill(
                vendor=txn.vendor,
                bill_number=generate_document_number("B"),
                bill_date=txn.date,
                due_date=due_date,
                amount=txn.total_amount,
                related_transaction_id=txn.id,
            ))
            result.bills.append(bill)
            if self._audit_logger:
                await self._audit_logger.log_document_created(
                    entity_type="bill",
                    entity_id=bill.id,
                    number=bill.bill_number,
                    amount=str(bill.amount),
                    correlation_id=correlation_id,
                )

        if txn.debits_account(ACCOUNTS_RECEIVABLE):
            invoice = self._books.add_invoice(Invoice(
                customer=txn.vendor,
                invoice_number=generate_document_number("INV"),
                invoice_date=txn.date,
                due_date=due_date,
                amount=txn.total_amount,
                status=InvoiceStatus.SENT,
                related_transaction_id=txn.id,
                taxable=bool(txn.vat_amount),
            ))
            result.invoices.append(invoice)
            if self._audit_logger:
                await self._audit_logger.log_document_created(
                    entity_type="invoice",
                    entity_id=invoice.id,
                    number=invoice.invoice_number,
                    amount=str(invoice.amount),
                    correlation_id=correlation_id,
                )


class BookkeepingFlow:
    """
    Orchestrates the manual bookkeeping actions from the UI.

    Each method delegates to Books (which enforces the rules and raises
    BooksError subclasses) and then records an audit event.
    """

    def __init__(
        self,
        books: Books,
        books_storage: Optional[BooksStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._books = books
        self._books_storage = books_storage
        self._audit_logger = audit_logger

    @property
    def books(self) -> Books:
        return self._books

    @property
    def has_storage(self) -> bool:
        return self._books_storage is not None

    async def _audit(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Optional[UUID],
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_books_changed(
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                description=description[:500],
                details=details,
            )

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def update_transaction(self, txn: Transaction) -> Transaction:
        self._books.update_transaction(txn)
        await self._audit(
            AuditEventType.TRANSACTION_UPDATED, "transaction", txn.id,
            f"Transaction updated: {txn.vendor}",
        )
        return txn

    async def delete_transaction(self, transaction_id: UUID) -> Transaction:
        txn = self._books.delete_transaction(transaction_id)
        await self._audit(
            AuditEventType.TRANSACTION_DELETED, "transaction", txn.id,
            f"Transaction deleted: {txn.vendor}",
        )
        return txn

    async def toggle_classification(self, transaction_id: UUID) -> Transaction:
        txn = self._books.toggle_classification(transaction_id)
        await self._audit(
            AuditEventType.TRANSACTION_UPDATED, "transaction", txn.id,
            f"Transaction reclassified as {txn.classification.value}",
            {"classification": txn.classification.value},
        )
        return txn

    # -------------------------------------------------------------------------
    # Invoices / bills
    # -------------------------------------------------------------------------

    async def create_invoice(self, customer: str, amount: Decimal, **kwargs) -> Invoice:
        invoice, _ = self._books.create_invoice(customer, amount, **kwargs)
        if self._audit_logger:
            await self._audit_logger.log_document_created(
                entity_type="invoice",
                entity_id=invoice.id,
                number=invoice.invoice_number,
                amount=str(invoice.amount),
            )
        return invoice

    async def update_invoice_status(
        self,
        invoice_id: UUID,
        new_status: InvoiceStatus,
    ) -> tuple[Invoice, Optional[Transaction]]:
        old_status = self._books.get_invoice(invoice_id).status
        invoice, payment = self._books.update_invoice_status(invoice_id, new_status)
        if old_status != new_status:
            await self._audit(
                AuditEventType.INVOICE_STATUS_CHANGED, "invoice", invoice.id,
                f"Invoice {invoice.invoice_number}: {old_status.value} → {new_status.value}",
                {"payment_transaction_id": str(payment.id) if payment else None},
            )
        return invoice, payment

    async def delete_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self._books.delete_invoice(invoice_id)
        await self._audit(
            AuditEventType.INVOICE_DELETED, "invoice", invoice.id,
            f"Invoice {invoice.invoice_number} deleted",
        )
        return invoice

    async def create_bill(self, vendor: str, amount: Decimal, **kwargs) -> Bill:
        bill, _ = self._books.create_bill(vendor, amount, **kwargs)
        if self._audit_logger:
            await self._audit_logger.log_document_created(
                entity_type="bill",
                entity_id=bill.id,
                number=bill.bill_number,
                amount=str(bill.amount),
            )
        return bill

    async def pay_bill(self, bill_id: UUID) -> tuple[Bill, Optional[Transaction]]:
        bill, payment = self._books.mark_bill_paid(bill_id)
        if payment is not None:
            await self._audit(
                AuditEventType.BILL_PAID, "bill", bill.id,
                f"Bill {bill.bill_number} paid",
                {"payment_transaction_id": str(payment.id)},
            )
        return bill, payment

    async def delete_bill(self, bill_id: UUID) -> Bill:
        bill = self._books.delete_bill(bill_id)
        await self._audit(
            AuditEventType.BILL_DELETED, "bill", bill.id,
            f"Bill {bill.bill_number} deleted",
        )
        return bill

    # -------------------------------------------------------------------------
    # Projects / accounts / recurring
    # -------------------------------------------------------------------------

    def add_project(self, name: str) -> Optional[Project]:
        return self._books.add_project(name)

    def delete_project(self, project_id: UUID) -> Project:
        return self._books.delete_project(project_id)

    def add_account(self, name: str, account_type: AccountType) -> Account:
        return self._books.add_account(name, account_type)

    def add_recurring(self, schedule: RecurringSchedule) -> RecurringSchedule:
        return self._books.add_recurring(schedule)

    def delete_recurring(self, schedule_id: UUID) -> RecurringSchedule:
        return self._books.delete_recurring(schedule_id)

    async def post_due_recurring(self) -> list[Transaction]:
        posted = self._books.post_due_recurring()
        if posted:
            await self._audit(
                AuditEventType.RECURRING_POSTED, "recurring", None,
                f"Posted {len(posted)} recurring transaction(s)",
                {"transaction_ids": [str(t.id) for t in posted]},
            )
        return posted

    def set_quarterly_payment(self, quarter: int, amount: Decimal) -> None:
        self._books.set_quarterly_payment(quarter, amount)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def reconcile(self, statement_text: str) -> ReconciliationResult:
        """
        Match unreconciled ledger transactions against pasted bank
        statement text. Read-only.

        Transactions reconciled by an earlier statement are left out so
        they can't claim lines of a new one.
        """
        open_transactions = [t for t in self._books.transactions if not t.reconciled]
        return reconcile_statement(open_transactions, statement_text)

    async def apply_reconciliation(self, result: ReconciliationResult) -> int:
        changed = self._books.apply_reconciliation(result)
        await self._audit(
            AuditEventType.RECONCILIATION_APPLIED, "reconciliation", None,
            f"Marked {changed} transaction(s) reconciled",
            {
                "matched": len(result.matches),
                "unmatched_transactions": len(result.unmatched_transactions),
                "unmatched_bank_entries": len(result.unmatched_bank_entries),
            },
        )
        return changed

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def load_books(self) -> bool:
        """
        Replace the session's books with the last saved snapshot.

        Returns:
            True if a snapshot was found and loaded
        """
        if not self._books_storage:
            return False
        snapshot = await self._books_storage.load_books()
        if snapshot is None:
            return False
        self._books.load_snapshot(snapshot)
        return True

    async def save_books(self) -> bool:
        """
        Snapshot the books to storage.

        Raises:
            StorageError: If no storage is configured or the save fails
        """
        if not self._books_storage:
            raise StorageError("Storage is not configured")

        snapshot = self._books.to_snapshot()
        try:
            await self._books_storage.save_books(snapshot)
        except StorageError as e:
            await self._audit(
                AuditEventType.SAVE_FAILED, "books", None, "Saving books failed",
                {"error": str(e)},
            )
            raise

        await self._audit(
            AuditEventType.BOOKS_SAVED, "books", None,
            f"Books saved ({len(snapshot.transactions)} transactions)",
        )
        return True

    # -------------------------------------------------------------------------
    # Activity log
    # -------------------------------------------------------------------------

    async def recent_activity(self, limit: int = 50) -> list[AuditEvent]:
        """Newest audit events first. Empty without an audit logger."""
        if not self._audit_logger:
            return []
        return await self._audit_logger.recent_events(limit=limit)

    async def activity_for(self, correlation_id: UUID) -> list[AuditEvent]:
        """Every audit event of one user action, oldest first."""
        if not self._audit_logger:
            return []
        return await self._audit_logger.related_events(correlation_id)


class AdvisorFlow:
    """
    Orchestrates the tax assistant and knowledge-base Q&A.

    CRITICAL BOUNDARY: the AI sees computed summaries only. The numbers
    come from the reports package, never from the model.
    """

    def __init__(
        self,
        books: Books,
        advisor: Optional[AdvisorAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._books = books
        self._advisor = advisor
        self._audit_logger = audit_logger

    def _get_advisor(self) -> AdvisorAgent:
        if self._advisor is None:
            self._advisor = AdvisorAgent()
        return self._advisor

    def tax_context(self) -> str:
        summary = compute_financials(self._books)
        estimate = compute_tax_estimate(summary, self._books)
        vat = compute_vat_summary(self._books)
        return build_tax_context(summary, estimate, vat)

    def knowledge_base_context(self) -> str:
        summary = compute_financials(self._books)
        projects = compute_project_profitability(self._books)
        return build_knowledge_base_context(summary, projects)

    async def _answer(self, assistant: str, question: str, context: str) -> Optional[str]:
        if not (question or "").strip():
            return None

        try:
            advisor = self._get_advisor()
        except Exception as e:
            # Gemini not configured
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="advisor_setup",
                    error_message=str(e),
                )
            return ADVISOR_FALLBACK_ANSWER

        if assistant == "tax":
            answer = await advisor.ask_tax_assistant(question, context)
        else:
            answer = await advisor.ask_knowledge_base(question, context)

        if self._audit_logger:
            await self._audit_logger.log_advisor_query(
                assistant=assistant,
                question_chars=len(question),
                correlation_id=create_correlation_id(),
            )
        return answer

    async def ask_tax_assistant(self, question: str) -> Optional[str]:
        """Answer a tax question. Blank questions return None."""
        return await self._answer("tax", question, self.tax_context())

    async def ask_knowledge_base(self, question: str) -> Optional[str]:
        """Answer a question about the business. Blank questions return None."""
        return await self._answer("knowledge_base", question, self.knowledge_base_context())


def create_app_components(
    books: Optional[Books] = None,
    use_storage: bool = True,
) -> tuple[TransactionEntryFlow, BookkeepingFlow, AdvisorFlow]:
    """
    Factory function to create all application components.

    Args:
        books: The session's books. A fresh set is created if None.
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to keep everything in memory.

    Returns:
        (entry_flow, bookkeeping_flow, advisor_flow)
    """
    app_settings = get_settings().app
    if books is None:
        books = Books(
            tax_settings=TaxSettings.from_app_settings(app_settings),
            payment_terms_days=app_settings.payment_terms_days,
            clock=app_settings.today,
        )

    books_storage: Optional[BooksStorageInterface] = None
    audit_logger = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            books_storage = GoogleSheetsBooksStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            books_storage = InMemoryBooksStorage()
            audit_logger = AuditLogger(InMemoryAuditStorage())
    else:
        audit_logger = AuditLogger(InMemoryAuditStorage())

    entry_flow = TransactionEntryFlow(books, audit_logger=audit_logger)
    bookkeeping_flow = BookkeepingFlow(
        books,
        books_storage=books_storage,
        audit_logger=audit_logger,
    )
    advisor_flow = AdvisorFlow(books, audit_logger=audit_logger)

    return entry_flow, bookkeeping_flow, advisor_flow
