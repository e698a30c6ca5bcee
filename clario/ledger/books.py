"""
Books - the in-memory state container

Holds every transaction, invoice, bill, project, recurring schedule
and the chart of accounts for one session, and owns every mutation.

DESIGN DECISION: All mutations go through Books so the pairing rules
(invoice ↔ receivable transaction, bill ↔ payable transaction) and
the balance rule live in exactly one place. Reports only read.

CRITICAL: An unbalanced journal is never recorded.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional
from uuid import UUID, uuid4

from clario.ledger.chart import (
    ACCOUNTS_PAYABLE,
    ACCOUNTS_RECEIVABLE,
    BANK,
    MISCELLANEOUS_EXPENSE,
    SALES_REVENUE,
    VAT_PAYABLE,
    ChartOfAccounts,
)
from clario.ledger.exceptions import (
    BooksError,
    InvalidStatusTransitionError,
    NotFoundError,
    UnbalancedJournalError,
)
from clario.ledger.recurring import due_postings
from clario.models.ledger import (
    ZERO,
    Account,
    AccountType,
    Bill,
    BillStatus,
    BooksSnapshot,
    Classification,
    Invoice,
    InvoiceStatus,
    JournalLine,
    Project,
    ReconciliationResult,
    RecurringSchedule,
    TaxSettings,
    Transaction,
    TransactionType,
    VatType,
    to_money,
)


# Forward-only invoice lifecycle
INVOICE_TRANSITIONS: dict[InvoiceStatus, set[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: {InvoiceStatus.SENT, InvoiceStatus.PAID},
    InvoiceStatus.SENT: {InvoiceStatus.PAID},
    InvoiceStatus.PAID: set(),
}


def generate_document_number(prefix: str) -> str:
    """e.g. INV-3F9A1C2B"""
    return f"{prefix}-{uuid4().hex[:8].upper()}"


class Books:
    """
    One set of books.

    Transactions are kept sorted by date, newest first. Projects and
    accounts keep insertion order and name order respectively.
    """

    def __init__(
        self,
        chart: Optional[ChartOfAccounts] = None,
        tax_settings: Optional[TaxSettings] = None,
        payment_terms_days: int = 30,
        clock: Callable[[], date] = date.today,
    ):
        """
        Args:
            chart: Chart of accounts. Defaults to the standard chart.
            tax_settings: Tax configuration. Defaults to TaxSettings().
            payment_terms_days: Due date offset for auto-created documents.
            clock: Returns "today". Injected so reports are reproducible.
        """
        self.chart = chart or ChartOfAccounts()
        self.tax_settings = tax_settings or TaxSettings()
        self.payment_terms_days = payment_terms_days
        self._clock = clock

        self._transactions: list[Transaction] = []
        self._invoices: list[Invoice] = []
        self._bills: list[Bill] = []
        self._projects: list[Project] = []
        self._recurring: list[RecurringSchedule] = []

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    def today(self) -> date:
        return self._clock()

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def invoices(self) -> list[Invoice]:
        return list(self._invoices)

    @property
    def bills(self) -> list[Bill]:
        return list(self._bills)

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def recurring(self) -> list[RecurringSchedule]:
        return list(self._recurring)

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        for txn in self._transactions:
            if txn.id == transaction_id:
                return txn
        raise NotFoundError(f"Transaction {transaction_id} not found")

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        for invoice in self._invoices:
            if invoice.id == invoice_id:
                return invoice
        raise NotFoundError(f"Invoice {invoice_id} not found")

    def get_bill(self, bill_id: UUID) -> Bill:
        for bill in self._bills:
            if bill.id == bill_id:
                return bill
        raise NotFoundError(f"Bill {bill_id} not found")

    def get_project(self, project_id: UUID) -> Optional[Project]:
        return next((p for p in self._projects if p.id == project_id), None)

    def filter_transactions(
        self,
        classification: Optional[Classification] = Classification.BUSINESS,
        transaction_type: Optional[TransactionType] = None,
        account: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Transaction log filter. Pass classification=None for both kinds.

        Date bounds are inclusive.
        """
        results = []
        for txn in self._transactions:
            if classification is not None and txn.classification != classification:
                continue
            if transaction_type is not None and txn.transaction_type != transaction_type:
                continue
            if account and not any(line.account == account for line in txn.journal):
                continue
            if start_date and txn.date < start_date:
                continue
            if end_date and txn.date > end_date:
                continue
            results.append(txn)
        return results

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def _ensure_balanced(self, txn: Transaction) -> None:
        if not txn.journal:
            raise UnbalancedJournalError(
                f"Transaction '{txn.vendor}' has no journal lines"
            )
        if not txn.is_balanced:
            raise UnbalancedJournalError(
                f"Journal for '{txn.vendor}' is unbalanced: "
                f"debits {txn.total_debits} ≠ credits {txn.total_credits}",
                debits=str(txn.total_debits),
                credits=str(txn.total_credits),
            )

    def _sort_transactions(self) -> None:
        # Stable sort keeps the newest-inserted first among equal dates
        self._transactions.sort(key=lambda t: t.date, reverse=True)

    def add_transaction(self, txn: Transaction) -> Transaction:
        """
        Record a transaction.

        Raises:
            UnbalancedJournalError: journal empty or debits ≠ credits
        """
        self._ensure_balanced(txn)
        self._transactions.insert(0, txn)
        self._sort_transactions()
        return txn

    def add_transactions(self, txns: Iterable[Transaction]) -> list[Transaction]:
        """Record several transactions; all are checked before any is added."""
        txns = list(txns)
        for txn in txns:
            self._ensure_balanced(txn)
        self._transactions[:0] = txns
        self._sort_transactions()
        return txns

    def update_transaction(self, txn: Transaction) -> Transaction:
        """Replace the transaction with the same id."""
        self._ensure_balanced(txn)
        for i, existing in enumerate(self._transactions):
            if existing.id == txn.id:
                self._transactions[i] = txn
                self._sort_transactions()
                return txn
        raise NotFoundError(f"Transaction {txn.id} not found")

    def delete_transaction(self, transaction_id: UUID) -> Transaction:
        txn = self.get_transaction(transaction_id)
        self._transactions.remove(txn)
        return txn

    def toggle_classification(self, transaction_id: UUID) -> Transaction:
        """Flip business ↔ personal."""
        txn = self.get_transaction(transaction_id)
        txn.classification = (
            Classification.PERSONAL
            if txn.classification == Classification.BUSINESS
            else Classification.BUSINESS
        )
        return txn

    # =========================================================================
    # INVOICES (accounts receivable)
    # =========================================================================

    def create_invoice(
        self,
        customer: str,
        amount: Decimal,
        invoice_date: Optional[date] = None,
        due_date: Optional[date] = None,
        taxable: bool = False,
        invoice_number: Optional[str] = None,
        project_id: Optional[UUID] = None,
    ) -> tuple[Invoice, Transaction]:
        """
        Create a Draft invoice and its receivable transaction.

        Without VAT: Accounts Receivable debit / Sales Revenue credit.
        With VAT:    Accounts Receivable debit (total) / Sales Revenue
                     credit (net) / VAT Payable credit (VAT).

        VAT applies only to taxable invoices while VAT is enabled, at the
        book's VAT rate. The invoice amount is the total including VAT.
        """
        amount = to_money(amount)
        vat = ZERO
        if self.tax_settings.vat_enabled and taxable:
            vat = to_money(amount * self.tax_settings.vat_rate / 100)
        use_vat = vat > 0
        total = amount + vat
        invoice_date = invoice_date or self.today()
        due_date = due_date or invoice_date + timedelta(days=self.payment_terms_days)

        journal = [JournalLine(account=ACCOUNTS_RECEIVABLE, debit=total)]
        journal.append(JournalLine(account=SALES_REVENUE, credit=amount))
        if use_vat:
            journal.append(JournalLine(account=VAT_PAYABLE, credit=vat))

        txn = Transaction(
            vendor=customer,
            amount=amount,
            date=invoice_date,
            category="Sales",
            transaction_type=TransactionType.INCOME,
            classification=Classification.BUSINESS,
            journal=journal,
            project_id=project_id,
            vat_amount=vat if use_vat else None,
            vat_type=VatType.OUTPUT if use_vat else None,
        )
        invoice = Invoice(
            customer=customer,
            invoice_number=invoice_number or generate_document_number("INV"),
            invoice_date=invoice_date,
            due_date=due_date,
            amount=total,
            status=InvoiceStatus.DRAFT,
            related_transaction_id=txn.id,
            taxable=taxable,
        )

        self.add_transaction(txn)
        self._invoices.insert(0, invoice)
        return invoice, txn

    def add_invoice(self, invoice: Invoice) -> Invoice:
        """Record an invoice whose receivable transaction already exists."""
        self._invoices.insert(0, invoice)
        return invoice

    def update_invoice_status(
        self,
        invoice_id: UUID,
        new_status: InvoiceStatus,
    ) -> tuple[Invoice, Optional[Transaction]]:
        """
        Move an invoice forward in its lifecycle.

        Marking Paid records the payment: Bank debit / Accounts
        Receivable credit, dated today. Setting the current status again
        is a no-op.

        Raises:
            InvalidStatusTransitionError: backwards move or leaving Paid
        """
        invoice = self.get_invoice(invoice_id)
        if invoice.status == new_status:
            return invoice, None
        if new_status not in INVOICE_TRANSITIONS[invoice.status]:
            raise InvalidStatusTransitionError(
                f"Invoice {invoice.invoice_number} cannot move from "
                f"{invoice.status.value} to {new_status.value}"
            )

        payment = None
        if new_status == InvoiceStatus.PAID:
            payment = Transaction(
                vendor=invoice.customer,
                amount=invoice.amount,
                date=self.today(),
                category="Payment",
                transaction_type=TransactionType.INCOME,
                classification=Classification.BUSINESS,
                journal=[
                    JournalLine(account=BANK, debit=invoice.amount),
                    JournalLine(account=ACCOUNTS_RECEIVABLE, credit=invoice.amount),
                ],
            )
            self.add_transaction(payment)

        invoice.status = new_status
        return invoice, payment

    def delete_invoice(self, invoice_id: UUID) -> Invoice:
        """Delete an invoice and the receivable transaction it created."""
        invoice = self.get_invoice(invoice_id)
        self._invoices.remove(invoice)
        if invoice.related_transaction_id:
            self._transactions = [
                t for t in self._transactions
                if t.id != invoice.related_transaction_id
            ]
        return invoice

    # =========================================================================
    # BILLS (accounts payable)
    # =========================================================================

    def create_bill(
        self,
        vendor: str,
        amount: Decimal,
        bill_date: Optional[date] = None,
        due_date: Optional[date] = None,
        vat_amount: Optional[Decimal] = None,
        bill_number: Optional[str] = None,
        expense_account: str = MISCELLANEOUS_EXPENSE,
        project_id: Optional[UUID] = None,
    ) -> tuple[Bill, Transaction]:
        """
        Create an Open bill and its payable transaction.

        <expense account> debit (net) [+ VAT Payable debit (VAT)] /
        Accounts Payable credit (total).
        """
        amount = to_money(amount)
        vat = to_money(vat_amount) if vat_amount else ZERO
        use_vat = self.tax_settings.vat_enabled and vat > 0
        total = amount + vat if use_vat else amount
        bill_date = bill_date or self.today()
        due_date = due_date or bill_date + timedelta(days=self.payment_terms_days)

        journal = [JournalLine(account=expense_account, debit=amount)]
        if use_vat:
            journal.append(JournalLine(account=VAT_PAYABLE, debit=vat))
        journal.append(JournalLine(account=ACCOUNTS_PAYABLE, credit=total))

        txn = Transaction(
            vendor=vendor,
            amount=amount,
            date=bill_date,
            category="Bill",
            transaction_type=TransactionType.EXPENSE,
            classification=Classification.BUSINESS,
            journal=journal,
            project_id=project_id,
            vat_amount=vat if use_vat else None,
            vat_type=VatType.INPUT if use_vat else None,
        )
        bill = Bill(
            vendor=vendor,
            bill_number=bill_number or generate_document_number("B"),
            bill_date=bill_date,
            due_date=due_date,
            amount=total,
            status=BillStatus.OPEN,
            related_transaction_id=txn.id,
        )

        self.add_transaction(txn)
        self._bills.insert(0, bill)
        return bill, txn

    def add_bill(self, bill: Bill) -> Bill:
        """Record a bill whose payable transaction already exists."""
        self._bills.insert(0, bill)
        return bill

    def mark_bill_paid(self, bill_id: UUID) -> tuple[Bill, Optional[Transaction]]:
        """
        Pay a bill: Accounts Payable debit / Bank credit, dated today.

        Paying an already-paid bill is a no-op and returns no transaction.
        """
        bill = self.get_bill(bill_id)
        if bill.is_paid:
            return bill, None

        payment = Transaction(
            vendor=bill.vendor,
            amount=bill.amount,
            date=self.today(),
            category="Payment",
            transaction_type=TransactionType.EXPENSE,
            classification=Classification.BUSINESS,
            journal=[
                JournalLine(account=ACCOUNTS_PAYABLE, debit=bill.amount),
                JournalLine(account=BANK, credit=bill.amount),
            ],
        )
        self.add_transaction(payment)
        bill.status = BillStatus.PAID
        return bill, payment

    def delete_bill(self, bill_id: UUID) -> Bill:
        """Delete a bill and the payable transaction it created."""
        bill = self.get_bill(bill_id)
        self._bills.remove(bill)
        if bill.related_transaction_id:
            self._transactions = [
                t for t in self._transactions
                if t.id != bill.related_transaction_id
            ]
        return bill

    # =========================================================================
    # PROJECTS / ACCOUNTS
    # =========================================================================

    def add_project(self, name: str) -> Optional[Project]:
        """Add a project. Blank names are ignored and return None."""
        name = (name or "").strip()
        if not name:
            return None
        project = Project(name=name)
        self._projects.append(project)
        return project

    def delete_project(self, project_id: UUID) -> Project:
        """
        Delete a project.

        Transactions keep their project link; reports simply stop
        listing the project.
        """
        project = self.get_project(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        self._projects.remove(project)
        return project

    def add_account(self, name: str, account_type: AccountType) -> Account:
        """
        Raises:
            DuplicateAccountError: name exists (case-insensitive)
        """
        return self.chart.add(Account(name=name, type=account_type))

    # =========================================================================
    # RECURRING
    # =========================================================================

    def add_recurring(self, schedule: RecurringSchedule) -> RecurringSchedule:
        self._recurring.append(schedule)
        return schedule

    def delete_recurring(self, schedule_id: UUID) -> RecurringSchedule:
        for schedule in self._recurring:
            if schedule.id == schedule_id:
                self._recurring.remove(schedule)
                return schedule
        raise NotFoundError(f"Recurring schedule {schedule_id} not found")

    def post_due_recurring(self, today: Optional[date] = None) -> list[Transaction]:
        """
        Post every recurring transaction due on or before today.

        Each schedule's next due date is advanced past what was posted,
        so calling this twice on the same day posts nothing new.
        """
        today = today or self.today()
        posted: list[Transaction] = []
        for schedule in self._recurring:
            postings, next_due = due_postings(schedule, today)
            if postings:
                self.add_transactions(postings)
                posted.extend(postings)
            schedule.next_due_date = next_due
        return posted

    # =========================================================================
    # TAX / RECONCILIATION
    # =========================================================================

    def set_quarterly_payment(self, quarter: int, amount: Decimal) -> None:
        """Record estimated tax paid for quarter 1..4."""
        if quarter not in (1, 2, 3, 4):
            raise BooksError(f"Quarter must be 1-4, got {quarter}")
        amount = to_money(amount)
        if amount < 0:
            raise BooksError("Quarterly payment cannot be negative")
        self.tax_settings.quarterly_payments[quarter - 1] = amount

    def apply_reconciliation(self, result: ReconciliationResult) -> int:
        """Mark every matched transaction reconciled. Returns how many changed."""
        changed = 0
        matched = set(result.matched_transaction_ids)
        for txn in self._transactions:
            if txn.id in matched and not txn.reconciled:
                txn.reconciled = True
                changed += 1
        return changed

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def to_snapshot(self) -> BooksSnapshot:
        return BooksSnapshot(
            transactions=self.transactions,
            invoices=self.invoices,
            bills=self.bills,
            projects=self.projects,
            accounts=self.chart.accounts,
            recurring=self.recurring,
            tax_settings=self.tax_settings,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: BooksSnapshot,
        payment_terms_days: int = 30,
        clock: Callable[[], date] = date.today,
    ) -> 'Books':
        books = cls(payment_terms_days=payment_terms_days, clock=clock)
        books.load_snapshot(snapshot)
        return books

    def load_snapshot(self, snapshot: BooksSnapshot) -> None:
        """Replace everything in these books with the snapshot's contents."""
        self.chart = ChartOfAccounts(snapshot.accounts) if snapshot.accounts else ChartOfAccounts()
        self.tax_settings = snapshot.tax_settings
        self._transactions = list(snapshot.transactions)
        self._sort_transactions()
        self._invoices = list(snapshot.invoices)
        self._bills = list(snapshot.bills)
        self._projects = list(snapshot.projects)
        self._recurring = list(snapshot.recurring)
