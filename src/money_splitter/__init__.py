"""Money Splitter - Track shared expenses and settle up with the fewest payments."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .engine import (
    compute_net_balances,
    compute_pairwise_ledger,
    regenerate_transactions,
    settle,
    settle_by_pair,
    simplify_debts,
)
from .models import Debt, Expense, ExpenseCategory, Group, Payment, Person
from .service import LedgerService

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "compute_net_balances",
    "compute_pairwise_ledger",
    "regenerate_transactions",
    "settle",
    "settle_by_pair",
    "simplify_debts",
    "Debt",
    "Expense",
    "ExpenseCategory",
    "Group",
    "Payment",
    "Person",
    "LedgerService",
]
