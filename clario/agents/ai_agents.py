"""
AI Agents for Clario

CRITICAL BOUNDARIES:

1. TRANSACTION EXTRACTION AGENT:
   - CAN: Turn free text into proposed double-entry transactions
   - CANNOT: Record anything. Proposals go through the validator
     and then Books, which refuses unbalanced journals.
   - CANNOT: Use accounts outside the chart it is given

2. ADVISOR AGENT:
   - CAN: Answer questions from computed summaries (P&L, tax, projects)
   - CANNOT: Answer from its own knowledge or invent figures
   - MUST: Return a fixed apology when the service fails

The LLM is a TRANSLATOR, not an ORACLE.
It never sees the raw ledger and never writes to it.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import UUID

import google.generativeai as genai
from pydantic import ValidationError

from clario.config import get_settings
from clario.models.ledger import (
    Classification,
    ExtractionResult,
    JournalLine,
    Transaction,
    TransactionType,
    VatType,
)
from clario.models.reports import (
    FinancialSummary,
    ProjectProfitability,
    TaxEstimate,
    VatSummary,
)


EXTRACTION_SYSTEM_INSTRUCTION = (
    "You are an expert bookkeeper. You MUST use accounts from the provided "
    "Chart of Accounts. For a cash receipt from a customer, determine if it "
    "is new revenue or a settlement of Accounts Receivable. For a bill to be "
    "paid later, credit 'Accounts Payable'. If VAT is enabled, you MUST "
    "correctly calculate and journalize it, ensuring the 'amount' field is "
    "pre-tax."
)

TAX_SYSTEM_INSTRUCTION = (
    "You are a professional AI tax assistant for freelancers and "
    "self-employed professionals. Based *only* on the financial data "
    "provided, answer the user's question. Do not provide financial or legal "
    "advice. Keep answers concise, clear, and directly related to the data. "
    "Start your response with 'Based on your data...'."
)

ANALYST_SYSTEM_INSTRUCTION = (
    "You are an expert financial analyst AI for small businesses. Your role "
    "is to answer questions based *only* on the provided financial data. "
    "Provide clear, concise, and data-driven answers. Format your answers "
    "clearly using headings or bullet points where appropriate. If the data "
    "doesn't support an answer, state that clearly. Do not provide financial "
    "advice or make up information not present in the summary."
)

ADVISOR_FALLBACK_ANSWER = (
    "Sorry, I encountered an error while processing your request. Please try again."
)

EXTRACTION_ERROR_PREFIX = "Failed to process transaction. "
EMPTY_RESPONSE_MESSAGE = "The AI returned an empty response."
CONFIGURATION_MESSAGE = "Configuration issue with the AI service."


# Structured-output schema sent with every extraction request
TRANSACTION_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "vendor": {"type": "STRING"},
            "amount": {"type": "NUMBER", "description": "Pre-VAT amount"},
            "vatAmount": {"type": "NUMBER"},
            "vatType": {"type": "STRING", "enum": ["input", "output"]},
            "currency": {"type": "STRING"},
            "date": {"type": "STRING", "description": "YYYY-MM-DD"},
            "category": {"type": "STRING"},
            "transactionType": {"type": "STRING", "enum": ["income", "expense"]},
            "classification": {"type": "STRING", "enum": ["business", "personal"]},
            "deductible": {"type": "BOOLEAN"},
            "miles": {"type": "NUMBER"},
            "journal": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "account": {"type": "STRING"},
                        "debit": {"type": "NUMBER"},
                        "credit": {"type": "NUMBER"},
                    },
                    "required": ["account"],
                },
            },
        },
        "required": [
            "vendor",
            "amount",
            "category",
            "transactionType",
            "date",
            "currency",
            "journal",
            "classification",
        ],
    },
}


class ExtractionError(Exception):
    """
    The AI call or its response failed as a whole.

    The message is already user-facing.
    """
    pass


def to_user_message(error: Exception) -> str:
    """Map a service/parse failure to the text shown to the user."""
    detail = str(error) or error.__class__.__name__
    if "API key" in detail:
        detail = CONFIGURATION_MESSAGE
    return f"{EXTRACTION_ERROR_PREFIX}{detail}"


def _optional_amount(value: Any) -> Optional[Any]:
    """AI output uses 0 or null for 'no amount on this side'."""
    if value in (None, "", 0, 0.0, "0"):
        return None
    return value


class TransactionExtractionAgent:
    """
    Turns free text into proposed transactions.

    RESPONSIBILITIES:
    - Build the prompt (date, project, VAT rules, chart of accounts)
    - Request structured JSON output
    - Parse each returned item independently

    BOUNDARIES:
    - NEVER records anything
    - NEVER repairs an unbalanced journal
    """

    def __init__(self, model: Optional[Any] = None):
        """
        Args:
            model: Anything with an async generate_content_async(prompt).
                   Defaults to a configured Gemini model.
        """
        self._model = model
        if self._model is None:
            self._settings = get_settings().gemini
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=EXTRACTION_SYSTEM_INSTRUCTION,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
                "response_schema": TRANSACTION_SCHEMA,
            }
        )

    def build_prompt(
        self,
        text: str,
        today: date,
        account_names: Iterable[str],
        project_name: Optional[str] = None,
        vat_enabled: bool = False,
        vat_rate: Optional[Decimal] = None,
    ) -> str:
        project_context = (
            f'This transaction is for the project named "{project_name}". '
            if project_name else ""
        )
        if vat_enabled:
            vat_context = (
                f"VAT (Value-Added Tax) is enabled at a rate of {vat_rate}%. "
                "For sales transactions (income), calculate the VAT and include it "
                "as a credit to 'VAT Payable'. This is output VAT. For expense "
                "transactions, calculate the input VAT and include it as a debit to "
                "'VAT Payable'. The main transaction 'amount' should be the pre-VAT "
                "amount. The total transaction value will be amount + VAT. The "
                "journal entry must balance."
            )
        else:
            vat_context = "VAT processing is disabled."

        account_list = ", ".join(account_names)

        return (
            f"The current date is {today:%B} {today.day}, {today.year}. "
            f"{project_context}{vat_context} "
            "From the text below, extract all financial transactions. Provide a "
            "standard double-entry journal using ONLY accounts from this list: "
            f"[{account_list}]. For 'category', use the exact expense account "
            "name. Classify each transaction as 'business' or 'personal'. "
            f'Text: "{text}"'
        )

    def parse_item(
        self,
        item: dict,
        project_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Convert one AI item to a Transaction.

        Raises:
            ValidationError / ValueError: the item is malformed
        """
        if not isinstance(item, dict):
            raise ValueError(f"Expected an object, got {type(item).__name__}")

        journal = []
        for line in item.get("journal") or []:
            if not isinstance(line, dict):
                raise ValueError("Journal line must be an object")
            journal.append(JournalLine(
                account=line.get("account", ""),
                debit=_optional_amount(line.get("debit")),
                credit=_optional_amount(line.get("credit")),
            ))

        transaction_type = str(item.get("transactionType", "")).strip().lower()
        classification = (
            Classification.PERSONAL
            if str(item.get("classification", "")).strip().lower() == "personal"
            else Classification.BUSINESS
        )
        vat_type = str(item.get("vatType") or "").strip().lower()
        vat_amount = _optional_amount(item.get("vatAmount"))

        return Transaction(
            vendor=item.get("vendor", ""),
            amount=item.get("amount"),
            currency=item.get("currency") or "USD",
            date=item.get("date"),
            category=item.get("category", ""),
            transaction_type=TransactionType(transaction_type),
            journal=journal,
            classification=classification,
            deductible=bool(item.get("deductible", False)),
            miles=_optional_amount(item.get("miles")),
            vat_amount=vat_amount,
            vat_type=VatType(vat_type) if vat_amount and vat_type else None,
            project_id=project_id,
            reconciled=False,
        )

    def parse_response(
        self,
        raw: str,
        project_id: Optional[UUID] = None,
    ) -> ExtractionResult:
        """
        Parse the full JSON reply.

        Raises:
            ExtractionError: empty reply, invalid JSON, or not a list of items
        """
        if not raw or not raw.strip():
            raise ExtractionError(f"{EXTRACTION_ERROR_PREFIX}{EMPTY_RESPONSE_MESSAGE}")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ExtractionError(to_user_message(e)) from e

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise ExtractionError(
                f"{EXTRACTION_ERROR_PREFIX}Unexpected response format from the AI."
            )

        result = ExtractionResult(raw_item_count=len(data))
        for i, item in enumerate(data, start=1):
            try:
                result.transactions.append(self.parse_item(item, project_id))
            except (ValidationError, ValueError, TypeError) as e:
                vendor = item.get("vendor") if isinstance(item, dict) else None
                label = f"Item {i}" + (f" ({vendor})" if vendor else "")
                result.rejected.append(f"{label}: {e}")

        return result

    async def extract(
        self,
        text: str,
        today: date,
        account_names: Iterable[str],
        project_id: Optional[UUID] = None,
        project_name: Optional[str] = None,
        vat_enabled: bool = False,
        vat_rate: Optional[Decimal] = None,
    ) -> ExtractionResult:
        """
        Ask the AI for transactions described in `text`.

        Raises:
            ExtractionError: with a user-facing message
        """
        prompt = self.build_prompt(
            text=text,
            today=today,
            account_names=account_names,
            project_name=project_name,
            vat_enabled=vat_enabled,
            vat_rate=vat_rate,
        )

        try:
            response = await self._model.generate_content_async(prompt)
            raw = response.text
        except Exception as e:
            raise ExtractionError(to_user_message(e)) from e

        return self.parse_response(raw, project_id)


def build_tax_context(
    summary: FinancialSummary,
    estimate: TaxEstimate,
    vat: VatSummary,
) -> str:
    ytd = summary.ytd
    return "\n".join([
        "Current Financial Summary (Year-to-Date):",
        f"- Total Income: ${ytd.income:.2f}",
        f"- Total Expenses: ${ytd.expenses:.2f}",
        f"- Net Profit (for tax purposes): ${ytd.net_profit_for_tax:.2f}",
        f"- Total Deductible Expenses: ${ytd.deductible_expenses:.2f}",
        f"- Calculated Mileage Deduction: ${ytd.mileage_deduction:.2f}",
        f"- Estimated YTD Self-Employment Tax Due: ${estimate.ytd_tax:.2f}",
        f"- Estimated Sales Tax Owed: ${estimate.estimated_sales_tax:.2f}",
        f"- Net VAT Payable: ${vat.net_payable:.2f}",
    ])


def build_knowledge_base_context(
    summary: FinancialSummary,
    projects: list[ProjectProfitability],
) -> str:
    ytd = summary.ytd
    top_expenses = "\n".join(
        f"- {name}: ${amount:.2f}"
        for name, amount in ytd.top_expense_accounts(5)
    )
    project_lines = "\n".join(
        f"- Project '{p.name}': Income ${p.income:.2f}, "
        f"Expenses ${p.expenses:.2f}, Net ${p.profit:.2f}"
        for p in projects
    )
    return "\n".join([
        "Current Financial Summary (Year-to-Date):",
        f"- Total Income: ${ytd.income:.2f}",
        f"- Total Expenses: ${ytd.expenses:.2f}",
        f"- Net Profit: ${ytd.net:.2f}",
        "",
        "Top 5 Expense Categories:",
        top_expenses or "No expenses recorded.",
        "",
        "Project Profitability Summary:",
        project_lines or "No projects with financial data.",
    ])


class AdvisorAgent:
    """
    Question answering over computed summaries.

    Two personas share one class: a tax assistant and a general
    financial analyst. Each gets its own model because the system
    instruction is fixed per model.
    """

    def __init__(
        self,
        tax_model: Optional[Any] = None,
        analyst_model: Optional[Any] = None,
    ):
        self._tax_model = tax_model
        self._analyst_model = analyst_model
        if self._tax_model is None or self._analyst_model is None:
            self._settings = get_settings().gemini
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        generation_config = {
            "temperature": self._settings.temperature,
            "max_output_tokens": self._settings.max_tokens,
        }
        if self._tax_model is None:
            self._tax_model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                system_instruction=TAX_SYSTEM_INSTRUCTION,
                generation_config=generation_config,
            )
        if self._analyst_model is None:
            self._analyst_model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                system_instruction=ANALYST_SYSTEM_INSTRUCTION,
                generation_config=generation_config,
            )

    async def _ask(self, model: Any, context: str, question: str) -> str:
        prompt = f'{context}\n\nUser\'s Question: "{question}"'
        try:
            response = await model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception:
            return ADVISOR_FALLBACK_ANSWER
        return text or ADVISOR_FALLBACK_ANSWER

    async def ask_tax_assistant(self, question: str, context: str) -> str:
        return await self._ask(self._tax_model, context, question)

    async def ask_knowledge_base(self, question: str, context: str) -> str:
        return await self._ask(self._analyst_model, context, question)
