"""
Streamlit Frontend for Clario

This is the interface a sole proprietor uses day to day: paste what
happened, review what was recorded, chase invoices, pay bills and see
where the money went.

DESIGN PRINCIPLES:
1. One text box to record anything
2. Every AI-recorded entry is listed back with its journal
3. Clear error messages in simple language
4. Reports are computed from the books on every rerun, never cached
5. Saving to Google Sheets is an explicit action

Each browser session holds its own Books instance in session state.
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from clario.config import get_settings, validate_all_settings
from clario.ledger import BooksError
from clario.ledger.chart import MISCELLANEOUS_EXPENSE
from clario.ledger.recurring import build_depreciation_template, build_payment_template
from clario.models import (
    AccountType,
    Classification,
    Frequency,
    InvoiceStatus,
    RecurringSchedule,
    RecurringType,
    TransactionType,
)
from clario.orchestrator import (
    AdvisorFlow,
    BookkeepingFlow,
    TransactionEntryFlow,
    create_app_components,
)
from clario.reports import (
    build_pie_chart,
    compute_aging,
    compute_cash_flow,
    compute_financials,
    compute_project_profitability,
    compute_tax_estimate,
    compute_vat_summary,
    journal_rows,
    profit_and_loss_csv,
    render_pie_legend,
    render_pie_svg,
    search,
)
from clario.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Clario.ai",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


PAGES = [
    "🏠 Home",
    "📜 Transactions",
    "📥 Receivables",
    "📤 Payables",
    "🔁 Recurring",
    "📓 Journal",
    "🗂️ Chart of Accounts",
    "📁 Projects",
    "💡 Knowledge Base",
    "🧾 Tax",
    "⚙️ Settings",
]


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def money(value: Decimal) -> str:
    return f"${value:,.2f}"


def box(kind: str, title: str, body: str = "") -> None:
    """Render one of the coloured message boxes."""
    st.markdown(f"""
    <div class="{kind}-box">
        <h4>{title}</h4>
        {f"<p>{body}</p>" if body else ""}
    </div>
    """, unsafe_allow_html=True)


def get_components() -> tuple[TransactionEntryFlow, BookkeepingFlow, AdvisorFlow]:
    """Get or create this session's components (books are per session)."""
    if "components" not in st.session_state:
        try:
            components = create_app_components(use_storage=True)
        except Exception as e:
            st.error(f"Failed to initialize: {e}")
            components = create_app_components(use_storage=False)

        _, bookkeeping, _ = components
        try:
            if run_async(bookkeeping.load_books()):
                st.toast("Loaded your saved books.")
        except StorageError as e:
            st.warning(f"Couldn't load saved books: {e}")
        run_async(bookkeeping.post_due_recurring())

        st.session_state.components = components
    return st.session_state.components


def main():
    """Main application entry point."""
    entry_flow, bookkeeping, advisor = get_components()

    # Sidebar navigation
    st.sidebar.title("📒 Clario.ai")
    st.sidebar.markdown("---")

    page = st.sidebar.radio("Navigate to:", PAGES, index=0)

    st.sidebar.markdown("---")
    query = st.sidebar.text_input("🔎 Search", placeholder="Vendor, customer, invoice #…")
    if query:
        render_search_results(bookkeeping, query)

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Record anything in plain words:**
        - "Paid $45 for printer ink at Staples"
        - "Invoiced Acme $2,000 for the website, due next month"
        - "Drove 32 miles to the client site"
        """
    )

    # Route to appropriate page
    if page == "🏠 Home":
        render_home_page(entry_flow, bookkeeping)
    elif page == "📜 Transactions":
        render_transactions_page(bookkeeping)
    elif page == "📥 Receivables":
        render_receivables_page(bookkeeping)
    elif page == "📤 Payables":
        render_payables_page(bookkeeping)
    elif page == "🔁 Recurring":
        render_recurring_page(bookkeeping)
    elif page == "📓 Journal":
        render_journal_page(bookkeeping)
    elif page == "🗂️ Chart of Accounts":
        render_accounts_page(bookkeeping)
    elif page == "📁 Projects":
        render_projects_page(bookkeeping)
    elif page == "💡 Knowledge Base":
        render_knowledge_base_page(advisor)
    elif page == "🧾 Tax":
        render_tax_page(bookkeeping, advisor)
    elif page == "⚙️ Settings":
        render_settings_page(bookkeeping)


def render_search_results(bookkeeping: BookkeepingFlow, query: str):
    results = search(bookkeeping.books, query)
    if results is None:
        st.sidebar.caption("No matches." if len(query.strip()) >= 2 else "Type at least 2 characters.")
        return

    for txn in results.transactions:
        st.sidebar.markdown(f"📜 {txn.date} **{txn.vendor}** {money(txn.total_amount)}")
    for invoice in results.invoices:
        st.sidebar.markdown(f"📥 {invoice.invoice_number} **{invoice.customer}** ({invoice.status.value})")
    for bill in results.bills:
        st.sidebar.markdown(f"📤 {bill.bill_number} **{bill.vendor}** ({bill.status.value})")
    for project in results.projects:
        st.sidebar.markdown(f"📁 **{project.name}**")


# =============================================================================
# HOME
# =============================================================================

def render_home_page(entry_flow: TransactionEntryFlow, bookkeeping: BookkeepingFlow):
    """Dashboard plus the free-text entry box."""
    books = bookkeeping.books
    st.title("🏠 Dashboard")

    project_options = [None] + books.projects
    project = st.selectbox(
        "Project (optional)",
        options=project_options,
        format_func=lambda p: "No project" if p is None else p.name,
    )
    text = st.text_area(
        "What happened?",
        placeholder="e.g., Bought a $1,200 laptop from Best Buy on credit, pay in 30 days",
        height=120,
    )

    if st.button("✨ Record with AI", type="primary", disabled=entry_flow.is_processing):
        with st.spinner("Reading your transactions..."):
            result = run_async(entry_flow.submit_text(
                text,
                project_id=project.id if project else None,
            ))

        if result.error:
            box("error", "❌ Nothing was recorded", result.error)
        elif not result.ignored:
            if result.recorded:
                box(
                    "success",
                    f"✅ Recorded {len(result.recorded)} transaction(s)",
                    "".join(
                        f"{t.vendor}: {money(t.total_amount)} ({t.category})<br>"
                        for t in result.recorded
                    ),
                )
            for invoice in result.invoices:
                st.info(f"📥 Invoice {invoice.invoice_number} created for {invoice.customer}, due {invoice.due_date}.")
            for bill in result.bills:
                st.info(f"📤 Bill {bill.bill_number} created for {bill.vendor}, due {bill.due_date}.")
            if result.warnings:
                box("warning", "⚠️ Please verify", "<br>".join(result.warnings))
            if result.rejected:
                box("error", "❌ Some items were not recorded", "<br>".join(result.rejected))

    st.markdown("---")

    summary = compute_financials(books)
    ytd = summary.ytd
    cash = compute_cash_flow(books)

    col1, col2, col3, col4 = st.columns(4)
    for col, label, value in (
        (col1, "Income (YTD)", ytd.income),
        (col2, "Expenses (YTD)", ytd.expenses),
        (col3, "Net Profit (YTD)", ytd.net),
        (col4, "Cash in Bank", cash.current_cash),
    ):
        with col:
            st.markdown(f"**{label}**")
            st.markdown(f'<div class="big-number">{money(value)}</div>', unsafe_allow_html=True)

    st.markdown("---")
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Where the money went")
        chart = build_pie_chart(ytd.account_totals)
        if chart.is_empty:
            st.info("No business expenses recorded this year.")
        else:
            st.markdown(render_pie_svg(chart), unsafe_allow_html=True)
            st.markdown(render_pie_legend(chart), unsafe_allow_html=True)

    with col2:
        st.subheader("Cash flow outlook")
        st.markdown(f"Current cash: **{money(cash.current_cash)}**")
        st.markdown(f"Outstanding receivables: **{money(cash.outstanding_receivables)}**")
        st.markdown(f"Outstanding payables: **{money(cash.outstanding_payables)}**")
        st.markdown(f"Projected cash: **{money(cash.projected_cash)}**")

        st.subheader("Recent activity")
        for txn in books.transactions[:5]:
            sign = "+" if txn.transaction_type == TransactionType.INCOME else "−"
            st.markdown(f"{txn.date} · {txn.vendor} · {sign}{money(txn.total_amount)}")


# =============================================================================
# TRANSACTIONS
# =============================================================================

def render_transactions_page(bookkeeping: BookkeepingFlow):
    books = bookkeeping.books
    st.title("📜 Transactions")

    col1, col2, col3 = st.columns(3)
    with col1:
        classification = st.selectbox(
            "Show",
            options=[Classification.BUSINESS, Classification.PERSONAL, None],
            format_func=lambda c: "All" if c is None else c.value.title(),
        )
        transaction_type = st.selectbox(
            "Type",
            options=[None, TransactionType.INCOME, TransactionType.EXPENSE],
            format_func=lambda t: "All" if t is None else t.value.title(),
        )
    with col2:
        account = st.selectbox("Account", options=[None] + books.chart.names(),
                               format_func=lambda a: "All accounts" if a is None else a)
    with col3:
        start_date = st.date_input("From", value=None)
        end_date = st.date_input("To", value=None)

    txns = books.filter_transactions(
        classification=classification,
        transaction_type=transaction_type,
        account=account,
        start_date=start_date,
        end_date=end_date,
    )

    st.markdown(f"**{len(txns)} transaction(s)**")
    for txn in txns:
        flag = "✅ " if txn.reconciled else ""
        with st.expander(f"{flag}{txn.date} · {txn.vendor} · {money(txn.total_amount)} · {txn.category}"):
            st.table([
                {"Account": line.account, "Debit": line.debit or "", "Credit": line.credit or ""}
                for line in txn.journal
            ])
            project = books.get_project(txn.project_id) if txn.project_id else None
            if project:
                st.caption(f"Project: {project.name}")
            if txn.miles:
                st.caption(f"Miles: {txn.miles}")

            col1, col2 = st.columns(2)
            with col1:
                other = "personal" if txn.classification == Classification.BUSINESS else "business"
                if st.button(f"Mark as {other}", key=f"toggle-{txn.id}"):
                    run_async(bookkeeping.toggle_classification(txn.id))
                    st.rerun()
            with col2:
                if st.button("🗑️ Delete", key=f"delete-{txn.id}"):
                    run_async(bookkeeping.delete_transaction(txn.id))
                    st.rerun()


# =============================================================================
# RECEIVABLES / PAYABLES
# =============================================================================

def render_aging(title: str, items, today: date):
    report = compute_aging(items, today)
    st.subheader(title)
    cols = st.columns(6)
    for col, (label, amount) in zip(cols, report.buckets() + [("Total", report.total)]):
        col.metric(label, money(amount))


def render_receivables_page(bookkeeping: BookkeepingFlow):
    books = bookkeeping.books
    st.title("📥 Receivables")
    render_aging("A/R Aging", books.invoices, books.today())

    with st.expander("➕ New invoice"):
        with st.form("new-invoice"):
            customer = st.text_input("Customer *")
            amount = st.number_input("Amount (pre-VAT) *", min_value=0.0, step=0.01, format="%.2f")
            invoice_date = st.date_input("Invoice date", value=books.today())
            due_date = st.date_input("Due date (optional)", value=None)
            if books.tax_settings.vat_enabled:
                taxable = st.checkbox(f"Charge VAT ({books.tax_settings.vat_rate}%)")
            else:
                taxable = st.checkbox("Subject to sales tax")
            project = st.selectbox("Project", options=[None] + books.projects,
                                   format_func=lambda p: "No project" if p is None else p.name)
            submitted = st.form_submit_button("Create invoice")

        if submitted:
            if not customer.strip() or amount <= 0:
                st.error("Customer and a positive amount are required.")
            else:
                try:
                    invoice = run_async(bookkeeping.create_invoice(
                        customer.strip(),
                        Decimal(str(amount)),
                        invoice_date=invoice_date,
                        due_date=due_date,
                        taxable=taxable,
                        project_id=project.id if project else None,
                    ))
                    st.success(f"Invoice {invoice.invoice_number} created.")
                    st.rerun()
                except (BooksError, ValueError) as e:
                    st.error(str(e))

    st.markdown("---")
    for invoice in books.invoices:
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            st.markdown(
                f"**{invoice.invoice_number}** · {invoice.customer} · {money(invoice.amount)}  \n"
                f"Due {invoice.due_date} · {invoice.status.value}"
            )
        with col2:
            statuses = list(InvoiceStatus)
            new_status = st.selectbox(
                "Status",
                options=statuses,
                index=statuses.index(invoice.status),
                format_func=lambda s: s.value,
                key=f"status-{invoice.id}",
                disabled=invoice.is_paid,
                label_visibility="collapsed",
            )
            if new_status != invoice.status:
                try:
                    run_async(bookkeeping.update_invoice_status(invoice.id, new_status))
                    st.rerun()
                except BooksError as e:
                    st.error(str(e))
        with col3:
            if st.button("🗑️", key=f"delete-invoice-{invoice.id}"):
                run_async(bookkeeping.delete_invoice(invoice.id))
                st.rerun()


def render_payables_page(bookkeeping: BookkeepingFlow):
    books = bookkeeping.books
    st.title("📤 Payables")
    render_aging("A/P Aging", books.bills, books.today())

    with st.expander("➕ New bill"):
        with st.form("new-bill"):
            vendor = st.text_input("Vendor *")
            amount = st.number_input("Amount (pre-VAT) *", min_value=0.0, step=0.01, format="%.2f")
            vat_amount = 0.0
            if books.tax_settings.vat_enabled:
                vat_amount = st.number_input("VAT amount", min_value=0.0, step=0.01, format="%.2f")
            bill_number = st.text_input("Bill number (optional)")
            bill_date = st.date_input("Bill date", value=books.today())
            due_date = st.date_input("Due date (optional)", value=None)
            expense_accounts = sorted(books.chart.names_of_type(AccountType.EXPENSE))
            expense_account = st.selectbox("Expense account", options=expense_accounts,
                                           index=expense_accounts.index(MISCELLANEOUS_EXPENSE))
            submitted = st.form_submit_button("Create bill")

        if submitted:
            if not vendor.strip() or amount <= 0:
                st.error("Vendor and a positive amount are required.")
            else:
                try:
                    bill = run_async(bookkeeping.create_bill(
                        vendor.strip(),
                        Decimal(str(amount)),
                        bill_date=bill_date,
                        due_date=due_date,
                        vat_amount=Decimal(str(vat_amount)),
                        bill_number=bill_number.strip() or None,
                        expense_account=expense_account,
                    ))
                    st.success(f"Bill {bill.bill_number} created.")
                    st.rerun()
                except (BooksError, ValueError) as e:
                    st.error(str(e))

    st.markdown("---")
    for bill in books.bills:
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            st.markdown(
                f"**{bill.bill_number}** · {bill.vendor} · {money(bill.amount)}  \n"
                f"Due {bill.due_date} · {bill.status.value}"
            )
        with col2:
            if not bill.is_paid and st.button("💸 Mark paid", key=f"pay-{bill.id}"):
                run_async(bookkeeping.pay_bill(bill.id))
                st.rerun()
        with col3:
            if st.button("🗑️", key=f"delete-bill-{bill.id}"):
                run_async(bookkeeping.delete_bill(bill.id))
                st.rerun()


# =============================================================================
# RECURRING
# =============================================================================

def render_recurring_page(bookkeeping: BookkeepingFlow):
    books = bookkeeping.books
    st.title("🔁 Recurring")

    kind = st.radio("Type", options=list(RecurringType), format_func=lambda t: t.value.title(),
                    horizontal=True)

    with st.form("new-recurring"):
        description = st.text_input("Description *")
        start_date = st.date_input("Start date", value=books.today())
        if kind == RecurringType.DEPRECIATION:
            asset_cost = st.number_input("Asset cost *", min_value=0.0, step=0.01, format="%.2f")
            years = st.number_input("Useful life (years) *", min_value=1, max_value=100, value=5)
            frequency = Frequency.MONTHLY
        else:
            vendor = st.text_input("Vendor / customer *")
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            transaction_type = st.selectbox("Direction", options=list(TransactionType),
                                            format_func=lambda t: t.value.title())
            account = st.selectbox("Account", options=books.chart.names())
            frequency = st.selectbox("Frequency", options=list(Frequency),
                                     index=list(Frequency).index(Frequency.MONTHLY),
                                     format_func=lambda f: f.value.title())
        submitted = st.form_submit_button("Add schedule")

    if submitted:
        try:
            if kind == RecurringType.DEPRECIATION:
                template = build_depreciation_template(description, Decimal(str(asset_cost)), int(years))
                schedule = RecurringSchedule(
                    schedule_type=kind,
                    description=description,
                    frequency=frequency,
                    start_date=start_date,
                    template=template,
                    asset_cost=Decimal(str(asset_cost)),
                    depreciation_years=int(years),
                )
            else:
                template = build_payment_template(
                    vendor=vendor,
                    amount=Decimal(str(amount)),
                    transaction_type=transaction_type,
                    account=account,
                )
                schedule = RecurringSchedule(
                    description=description,
                    frequency=frequency,
                    start_date=start_date,
                    template=template,
                )
            bookkeeping.add_recurring(schedule)
            posted = run_async(bookkeeping.post_due_recurring())
            st.success(f"Schedule added. {len(posted)} transaction(s) posted so far.")
        except ValueError as e:
            st.error(f"Please check the form: {e}")

    if st.button("▶️ Post due transactions now"):
        posted = run_async(bookkeeping.post_due_recurring())
        st.info(f"Posted {len(posted)} transaction(s).")

    st.markdown("---")
    for schedule in books.recurring:
        col1, col2 = st.columns([4, 1])
        with col1:
            extra = f" · ends {schedule.end_date}" if schedule.end_date else ""
            st.markdown(
                f"**{schedule.description}** · {schedule.frequency.value} · "
                f"{money(schedule.template.amount)} · next {schedule.next_due_date}{extra}"
            )
        with col2:
            if st.button("🗑️", key=f"delete-recurring-{schedule.id}"):
                bookkeeping.delete_recurring(schedule.id)
                st.rerun()


# =============================================================================
# JOURNAL / ACCOUNTS / PROJECTS
# =============================================================================

def render_journal_page(bookkeeping: BookkeepingFlow):
    st.title("📓 General Journal")
    rows = journal_rows(bookkeeping.books.transactions)
    if not rows:
        st.info("No journal entries yet.")
        return
    st.dataframe(
        [
            {
                "Date": row.date.isoformat(),
                "Vendor": row.vendor,
                "Account": row.account,
                "Debit": f"{row.debit:.2f}" if row.debit else "",
                "Credit": f"{row.credit:.2f}" if row.credit else "",
            }
            for row in rows
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_accounts_page(bookkeeping: BookkeepingFlow):
    books = bookkeeping.books
    st.title("🗂️ Chart of Accounts")

    with st.form("new-account"):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Account name")
        with col2:
            account_type = st.selectbox("Type", options=list(AccountType), format_func=lambda t: t.value)
        if st.form_submit_button("Add account"):
            try:
                bookkeeping.add_account(name.strip(), account_type)
                st.success(f"Added {name.strip()}.")
            except (BooksError, ValueError) as e:
                st.error(str(e))

    for account_type in AccountType:
        names = sorted(books.chart.names_of_type(account_type))
        if names:
            st.subheader(account_type.value)
            st.markdown("  \n".join(names))


def render_projects_page(bookkeeping: BookkeepingFlow):
    books = bookkeeping.books
    st.title("📁 Projects")

    with st.form("new-project"):
        name = st.text_input("Project name")
        if st.form_submit_button("Add project"):
            if bookkeeping.add_project(name) is None:
                st.warning("Please enter a project name.")
            else:
                st.rerun()

    profitability = {p.project_id: p for p in compute_project_profitability(books)}
    for project in books.projects:
        stats = profitability.get(project.id)
        col1, col2 = st.columns([4, 1])
        with col1:
            if stats:
                st.markdown(
                    f"**{project.name}** · income {money(stats.income)} · "
                    f"expenses {money(stats.expenses)} · profit {money(stats.profit)}"
                )
            else:
                st.markdown(f"**{project.name}** · no activity yet")
        with col2:
            if st.button("🗑️", key=f"delete-project-{project.id}"):
                bookkeeping.delete_project(project.id)
                st.rerun()


# =============================================================================
# ADVISOR PAGES
# =============================================================================

def render_knowledge_base_page(advisor: AdvisorFlow):
    st.title("💡 Knowledge Base")
    st.markdown("Ask about your business. Answers are based on your recorded figures.")

    with st.expander("📝 Data the assistant sees"):
        st.text(advisor.knowledge_base_context())

    question = st.text_input("Your question:", placeholder="e.g., Which project is most profitable?")
    if st.button("🔍 Get Answer", type="primary") and question:
        with st.spinner("Thinking..."):
            answer = run_async(advisor.ask_knowledge_base(question))
        if answer:
            box("info", "📊 Answer", answer)


def render_tax_page(bookkeeping: BookkeepingFlow, advisor: AdvisorFlow):
    books = bookkeeping.books
    tax = books.tax_settings
    st.title("🧾 Tax Center")

    with st.expander("⚙️ Tax settings"):
        col1, col2 = st.columns(2)
        with col1:
            tax.self_employment_tax_rate = Decimal(str(st.number_input(
                "Self-employment tax rate (%)", value=float(tax.self_employment_tax_rate), step=0.1)))
            tax.sales_tax_rate = Decimal(str(st.number_input(
                "Sales tax rate (%)", value=float(tax.sales_tax_rate), step=0.1)))
            tax.mileage_rate = Decimal(str(st.number_input(
                "Mileage rate ($/mile)", value=float(tax.mileage_rate), step=0.01)))
        with col2:
            tax.vat_enabled = st.checkbox("VAT enabled", value=tax.vat_enabled)
            tax.vat_rate = Decimal(str(st.number_input(
                "VAT rate (%)", value=float(tax.vat_rate), step=0.1)))

        st.markdown("**Estimated payments made**")
        cols = st.columns(4)
        for quarter, col in enumerate(cols, start=1):
            with col:
                paid = st.number_input(
                    f"Q{quarter}",
                    min_value=0.0,
                    value=float(tax.quarterly_payments[quarter - 1]),
                    step=10.0,
                    key=f"q{quarter}-payment",
                )
                bookkeeping.set_quarterly_payment(quarter, Decimal(str(paid)))

    summary = compute_financials(books)
    estimate = compute_tax_estimate(summary, books)
    vat = compute_vat_summary(books)

    col1, col2, col3 = st.columns(3)
    col1.metric(f"Q{estimate.current_quarter} payment due", money(estimate.current_quarter_due))
    col2.metric("SE tax (YTD)", money(estimate.ytd_tax))
    col3.metric("Estimated sales tax", money(estimate.estimated_sales_tax))
    if tax.vat_enabled:
        col1, col2, col3 = st.columns(3)
        col1.metric("Output VAT", money(vat.output_vat))
        col2.metric("Input VAT", money(vat.input_vat))
        col3.metric("Net VAT payable", money(vat.net_payable))

    st.markdown("---")
    st.subheader("Profit & Loss")
    label = st.radio("Period", options=["Q1", "Q2", "Q3", "Q4", "YTD"], index=4, horizontal=True)
    period = summary.period(label)
    st.markdown(f"Income: **{money(period.income)}**")
    for account, amount in period.top_expense_accounts(limit=len(period.account_totals)):
        st.markdown(f"- {account}: {money(amount)}")
    st.markdown(f"Total expenses: **{money(period.expenses)}**")
    st.markdown(f"Net profit: **{money(period.net)}**")
    st.download_button(
        "⬇️ Export CSV",
        data=profit_and_loss_csv(period),
        file_name=f"profit_and_loss_{summary.fiscal_year}_{label}.csv",
        mime="text/csv",
    )

    st.markdown("---")
    render_reconciliation(bookkeeping)

    st.markdown("---")
    st.subheader("Ask the tax assistant")
    question = st.text_input("Your tax question:", placeholder="e.g., How much should I set aside this quarter?")
    if st.button("🔍 Ask", type="primary") and question:
        with st.spinner("Thinking..."):
            answer = run_async(advisor.ask_tax_assistant(question))
        if answer:
            box("info", "🧾 Answer", answer)


def render_reconciliation(bookkeeping: BookkeepingFlow):
    st.subheader("Bank reconciliation")
    statement = st.text_area(
        "Paste your bank statement (Date,Description,Amount per line)",
        placeholder="2025-03-01,Client payment,1500.00\n2025-03-03,Staples,-45.10",
        height=120,
    )
    if not st.button("🔗 Reconcile") or not statement.strip():
        return

    result = bookkeeping.reconcile(statement)
    changed = run_async(bookkeeping.apply_reconciliation(result))
    box(
        "success" if not result.unmatched_bank_entries else "warning",
        f"Matched {len(result.matches)} transaction(s)",
        f"{changed} newly marked reconciled.",
    )
    if result.unmatched_bank_entries:
        st.markdown("**Bank entries with no match:**")
        for entry in result.unmatched_bank_entries:
            st.markdown(f"- {entry.date} · {entry.description} · {money(entry.amount)}")
    if result.unmatched_transactions:
        with st.expander(f"{len(result.unmatched_transactions)} ledger transaction(s) not on the statement"):
            for txn in result.unmatched_transactions:
                st.markdown(f"- {txn.date} · {txn.vendor} · {money(txn.signed_amount)}")
    for skipped in result.skipped_lines:
        st.caption(f"Line {skipped.line_number} skipped: {skipped.reason}")


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(bookkeeping: BookkeepingFlow):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Your Books")
    st.markdown(f"Effective date: **{get_settings().app.today()}**")

    if st.button("💾 Save books", type="primary"):
        try:
            run_async(bookkeeping.save_books())
            st.success("Books saved.")
        except StorageError as e:
            st.error(f"Save failed: {e}")

    st.markdown("---")
    st.markdown("### Recent Activity")
    events = run_async(bookkeeping.recent_activity(limit=50))
    if not events:
        st.info("No activity recorded yet.")
    else:
        st.dataframe(
            [
                {
                    "When (UTC)": event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    "Event": event.event_type.value,
                    "Severity": event.severity.value,
                    "Description": event.description,
                }
                for event in events
            ],
            use_container_width=True,
            hide_index=True,
        )

        actions = list(dict.fromkeys(e.correlation_id for e in events if e.correlation_id))
        if actions:
            chosen = st.selectbox(
                "Trace one submission",
                options=[None] + actions,
                format_func=lambda c: "Select..." if c is None else str(c)[:8],
            )
            if chosen is not None:
                for event in run_async(bookkeeping.activity_for(chosen)):
                    st.markdown(
                        f"- `{event.timestamp.strftime('%H:%M:%S')}` "
                        f"**{event.event_type.value}**: {event.description}"
                    )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
