"""
Chart of Accounts

The default chart is small-business oriented: one bank account, the
receivable/payable control accounts, VAT and sales tax liabilities,
and a spread of common expense accounts.

DESIGN DECISION: Account names are the identity. Journals reference
accounts by name, so names are unique case-insensitively.
"""

from typing import Iterable, Optional

from clario.ledger.exceptions import DuplicateAccountError
from clario.models.ledger import Account, AccountType


# Accounts the bookkeeping logic refers to directly
BANK = "Bank"
ACCOUNTS_RECEIVABLE = "Accounts Receivable"
ACCOUNTS_PAYABLE = "Accounts Payable"
VAT_PAYABLE = "VAT Payable"
SALES_REVENUE = "Sales Revenue"
MISCELLANEOUS_EXPENSE = "Miscellaneous Expense"
DEPRECIATION_EXPENSE = "Depreciation Expense"
ACCUMULATED_DEPRECIATION = "Accumulated Depreciation"


DEFAULT_ACCOUNTS: list[tuple[str, AccountType]] = [
    # Assets
    (BANK, AccountType.ASSET),
    (ACCOUNTS_RECEIVABLE, AccountType.ASSET),
    ("Allowance for Doubtful Accounts", AccountType.ASSET),
    ("Prepaid Expenses", AccountType.ASSET),
    (ACCUMULATED_DEPRECIATION, AccountType.ASSET),
    # Liabilities
    (ACCOUNTS_PAYABLE, AccountType.LIABILITY),
    ("Credit Card", AccountType.LIABILITY),
    ("Sales Tax Payable", AccountType.LIABILITY),
    (VAT_PAYABLE, AccountType.LIABILITY),
    # Equity
    ("Owner's Equity", AccountType.EQUITY),
    # Revenue
    (SALES_REVENUE, AccountType.REVENUE),
    ("Service Income", AccountType.REVENUE),
    ("Other Income", AccountType.REVENUE),
    # Expenses
    ("Advertising & Marketing", AccountType.EXPENSE),
    ("Bad Debt Expense", AccountType.EXPENSE),
    ("Bank Fees", AccountType.EXPENSE),
    ("Cost of Goods Sold", AccountType.EXPENSE),
    (DEPRECIATION_EXPENSE, AccountType.EXPENSE),
    ("Dues & Subscriptions", AccountType.EXPENSE),
    ("Insurance Expense", AccountType.EXPENSE),
    ("Labor Cost", AccountType.EXPENSE),
    ("Legal & Professional Fees", AccountType.EXPENSE),
    ("Meals & Entertainment", AccountType.EXPENSE),
    ("Mileage Expense", AccountType.EXPENSE),
    ("Office Supplies", AccountType.EXPENSE),
    ("Rent Expense", AccountType.EXPENSE),
    ("Repairs & Maintenance", AccountType.EXPENSE),
    ("Software & Subscriptions", AccountType.EXPENSE),
    ("Travel Expense", AccountType.EXPENSE),
    ("Utilities", AccountType.EXPENSE),
    (MISCELLANEOUS_EXPENSE, AccountType.EXPENSE),
]


class ChartOfAccounts:
    """
    Ordered, name-unique collection of accounts.

    Accounts are kept sorted by name so listings and the AI prompt are
    stable regardless of insertion order.
    """

    def __init__(self, accounts: Optional[Iterable[Account]] = None):
        if accounts is None:
            accounts = [Account(name=n, type=t) for n, t in DEFAULT_ACCOUNTS]
        self._accounts: list[Account] = []
        for account in accounts:
            self.add(account)

    def __iter__(self):
        return iter(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    def names(self) -> list[str]:
        return [a.name for a in self._accounts]

    def get(self, name: str) -> Optional[Account]:
        """Case-insensitive lookup."""
        key = name.strip().lower()
        for account in self._accounts:
            if account.name.lower() == key:
                return account
        return None

    def type_of(self, name: str) -> Optional[AccountType]:
        account = self.get(name)
        return account.type if account else None

    def names_of_type(self, account_type: AccountType) -> set[str]:
        return {a.name for a in self._accounts if a.type == account_type}

    @property
    def revenue_accounts(self) -> set[str]:
        return self.names_of_type(AccountType.REVENUE)

    @property
    def expense_accounts(self) -> set[str]:
        return self.names_of_type(AccountType.EXPENSE)

    def add(self, account: Account) -> Account:
        """
        Add an account, keeping the list sorted by name.

        Raises:
            DuplicateAccountError: name already exists (any case)
        """
        if self.get(account.name) is not None:
            raise DuplicateAccountError(f"Account '{account.name}' already exists")
        self._accounts.append(account)
        self._accounts.sort(key=lambda a: a.name.lower())
        return account
