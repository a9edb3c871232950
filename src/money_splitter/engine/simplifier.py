"""Debt simplification: turn net balances into a short list of payments."""

import logging

from ..models import Debt
from .money import is_negative, is_positive, is_zero

logger = logging.getLogger(__name__)


def simplify_debts(balances: dict[str, float]) -> list[Debt]:
    """
    Reduce net balances to a small set of payments.

    Greedy matching: repeatedly settle the largest creditor against the largest
    debtor for the smaller of the two amounts. Every round zeroes at least one
    of them, so N people with nonzero balances need at most N-1 payments when
    the balances sum to zero. This is a heuristic, not a guaranteed minimum.

    Ties between equal balances go to the lowest person id, so the same balances
    always produce the same plan.

    Args:
        balances: Mapping of person id to net balance (positive = is owed)

    Returns:
        Debts (debtor -> creditor) in the order they were settled
    """
    working = {person_id: balances[person_id] for person_id in sorted(balances)}
    debts: list[Debt] = []

    while any(not is_zero(balance) for balance in working.values()):
        # max()/min() keep the first extreme they see, i.e. the lowest id
        creditor = max(working, key=lambda person_id: working[person_id])
        credit = working[creditor]
        if not is_positive(credit):
            break

        debtor = min(working, key=lambda person_id: working[person_id])
        if not is_negative(working[debtor]):
            break
        debt = -working[debtor]

        amount = min(credit, debt)
        debts.append(Debt(from_id=debtor, to_id=creditor, amount=amount))

        working[creditor] = credit - amount
        working[debtor] = working[debtor] + amount

    residual = {pid: bal for pid, bal in working.items() if not is_zero(bal)}
    if residual:
        # Only happens when the input doesn't sum to zero
        logger.debug(f"Balances left unsettled after simplification: {residual}")

    logger.debug(f"Simplified {len(balances)} balances into {len(debts)} payments")

    return debts
