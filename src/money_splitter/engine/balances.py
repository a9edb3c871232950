"""Net balance computation from expenses and payments."""

import logging
from collections import defaultdict
from collections.abc import Iterable

from ..models import Expense, Payment

logger = logging.getLogger(__name__)


def compute_net_balances(expenses: Iterable[Expense]) -> dict[str, float]:
    """
    Compute each person's net balance across all expenses.

    Positive = money owed to them (paid more than their share)
    Negative = money they owe (paid less than their share)

    Expenses are not validated. An expense whose payments and shares don't add
    up still contributes what it has, so the result may not sum to zero.

    Args:
        expenses: Expenses to total up

    Returns:
        Mapping of person id to net balance
    """
    balances: defaultdict[str, float] = defaultdict(float)

    for expense in expenses:
        for person_id, amount_paid in expense.paid_by.items():
            balances[person_id] += amount_paid

        for person_id, share in expense.participants.items():
            balances[person_id] -= share

    logger.debug(f"Computed balances for {len(balances)} people")

    return dict(balances)


def compute_expense_balances(expense: Expense) -> dict[str, float]:
    """Compute net balances for a single expense."""
    return compute_net_balances([expense])


def split_equally(person_ids: Iterable[str], total: float) -> dict[str, float]:
    """
    Split a total into equal amounts.

    Args:
        person_ids: People sharing the total (duplicates are ignored)
        total: Amount to split

    Returns:
        Mapping of person id to equal amount, empty if there is nobody to split with
    """
    unique_ids = list(dict.fromkeys(person_ids))
    if not unique_ids:
        return {}

    each = total / len(unique_ids)
    return {person_id: each for person_id in unique_ids}


def balances_from_payments(payments: Iterable[Payment]) -> dict[str, float]:
    """
    Compute net balances from the unsettled payments in a settlement plan.

    The debtor of each payment goes down by the amount and the creditor goes up.
    Settled payments are ignored.
    """
    balances: defaultdict[str, float] = defaultdict(float)

    for payment in payments:
        if payment.is_settled:
            continue
        balances[payment.from_id] -= payment.amount
        balances[payment.to_id] += payment.amount

    return dict(balances)


def net_balance_for(payments: Iterable[Payment], person_id: str) -> float:
    """What a person is owed minus what they owe, over unsettled payments."""
    you_owe = 0.0
    you_are_owed = 0.0

    for payment in payments:
        if payment.is_settled:
            continue
        if payment.from_id == person_id:
            you_owe += payment.amount
        if payment.to_id == person_id:
            you_are_owed += payment.amount

    return you_are_owed - you_owe
