"""Settlement plan bookkeeping: regenerate payments and mark them settled.

All functions here return new lists and never modify the payments passed in.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import date

from ..models import Expense, Payment
from .balances import compute_net_balances
from .simplifier import simplify_debts

logger = logging.getLogger(__name__)


def new_payment_id() -> str:
    """Generate a random payment id."""
    return str(uuid.uuid4())


def pending_payments(payments: Iterable[Payment]) -> list[Payment]:
    return [payment for payment in payments if not payment.is_settled]


def settled_payments(payments: Iterable[Payment]) -> list[Payment]:
    return [payment for payment in payments if payment.is_settled]


def regenerate_transactions(
    expenses: Iterable[Expense],
    previous: Iterable[Payment],
    on: date | None = None,
    id_factory: Callable[[], str] = new_payment_id,
) -> list[Payment]:
    """
    Rebuild the settlement plan from the current expenses.

    Unsettled payments are thrown away and recomputed from scratch. Settled
    payments from the previous plan are carried over unchanged, after the new
    ones.

    Args:
        expenses: Current expenses
        previous: The plan being replaced
        on: Date stamped on new payments (defaults to today)
        id_factory: Generates ids for new payments

    Returns:
        New unsettled payments followed by the previously settled ones
    """
    payment_date = on or date.today()
    debts = simplify_debts(compute_net_balances(expenses))

    fresh = [
        Payment(
            id=id_factory(),
            from_id=debt.from_id,
            to_id=debt.to_id,
            amount=debt.amount,
            date=payment_date,
            is_settled=False,
        )
        for debt in debts
    ]
    kept = settled_payments(previous)

    logger.info(
        f"Regenerated settlement plan: {len(fresh)} pending, {len(kept)} settled kept"
    )

    return fresh + kept


def settle(payments: Iterable[Payment], payment_id: str) -> list[Payment]:
    """
    Mark one payment as settled.

    Settling an already settled payment, or an id that isn't in the list,
    leaves the payments as they are.
    """
    result = []
    found = False
    for payment in payments:
        if payment.id == payment_id:
            found = True
            if not payment.is_settled:
                payment = payment.model_copy(update={"is_settled": True})
        result.append(payment)

    if not found:
        logger.debug(f"No payment {payment_id} to settle")

    return result


def settle_by_pair(
    payments: Iterable[Payment], debtor_id: str, creditor_id: str
) -> list[Payment]:
    """
    Mark every unsettled payment from debtor to creditor as settled.

    Only payments in that exact direction are affected.
    """
    result = []
    count = 0
    for payment in payments:
        if not payment.is_settled and payment.matches_pair(debtor_id, creditor_id):
            payment = payment.model_copy(update={"is_settled": True})
            count += 1
        result.append(payment)

    logger.debug(f"Settled {count} payments from {debtor_id} to {creditor_id}")

    return result
