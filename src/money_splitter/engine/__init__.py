"""Balance and debt-simplification engine.

Pure functions over in-memory expenses and payments; nothing here touches
storage or keeps state between calls.
"""

from .balances import (
    balances_from_payments,
    compute_expense_balances,
    compute_net_balances,
    net_balance_for,
    split_equally,
)
from .ledger import compute_pairwise_ledger, decompose_expense, decompose_obligations
from .money import EPSILON, amounts_equal, is_negative, is_positive, is_zero
from .settlement import (
    pending_payments,
    regenerate_transactions,
    settle,
    settle_by_pair,
    settled_payments,
)
from .simplifier import simplify_debts

__all__ = [
    "EPSILON",
    "amounts_equal",
    "is_negative",
    "is_positive",
    "is_zero",
    "balances_from_payments",
    "compute_expense_balances",
    "compute_net_balances",
    "net_balance_for",
    "split_equally",
    "compute_pairwise_ledger",
    "decompose_expense",
    "decompose_obligations",
    "pending_payments",
    "regenerate_transactions",
    "settle",
    "settle_by_pair",
    "settled_payments",
    "simplify_debts",
]
