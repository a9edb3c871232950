"""Pairwise debt ledger: who owes whom, netted only within each pair."""

import logging
from collections.abc import Iterable

from ..models import Debt, Expense
from .money import is_negative, is_positive

logger = logging.getLogger(__name__)


def decompose_expense(expense: Expense) -> list[Debt]:
    """
    Break one expense into direct debts between participants and payers.

    Each participant whose share is larger than what they paid themselves owes
    the difference. That amount is spread over the people who paid more than
    their own share, in proportion to how much more each of them paid. With a
    single payer this is simply "everyone owes the payer their share".

    Args:
        expense: The expense to decompose

    Returns:
        Directed debts (participant -> payer) for this expense
    """
    people = list(dict.fromkeys([*expense.paid_by, *expense.participants]))
    net_paid = {
        person_id: expense.paid_by.get(person_id, 0.0)
        - expense.participants.get(person_id, 0.0)
        for person_id in people
    }

    contributors = {pid: net for pid, net in net_paid.items() if is_positive(net)}
    total_contributed = sum(contributors.values())
    if not contributors:
        return []

    debts = []
    for debtor_id, net in net_paid.items():
        if not is_negative(net):
            continue

        owed = -net
        for creditor_id, contributed in contributors.items():
            amount = owed * contributed / total_contributed
            if is_positive(amount):
                debts.append(Debt(from_id=debtor_id, to_id=creditor_id, amount=amount))

    return debts


def decompose_obligations(expenses: Iterable[Expense]) -> list[Debt]:
    """Decompose every expense into direct debts, in expense order."""
    obligations = []
    for expense in expenses:
        obligations.extend(decompose_expense(expense))
    return obligations


def compute_pairwise_ledger(obligations: Iterable[Debt]) -> list[Debt]:
    """
    Net direct debts between each pair of people.

    Debts in opposite directions between the same two people cancel out, so
    each pair ends up with at most one debt. Unlike simplify_debts(), money is
    never routed through a third person.

    Example:
        A owes B 50 and B owes A 30  ->  A owes B 20

    Args:
        obligations: Directed debts, in the order they were incurred

    Returns:
        One debt per pair that still owes something, largest amount first
    """
    ledger: dict[tuple[str, str], Debt] = {}

    for obligation in obligations:
        key = (obligation.from_id, obligation.to_id)
        reverse_key = (obligation.to_id, obligation.from_id)

        existing = ledger.get(reverse_key)
        if existing is not None:
            remaining = existing.amount - obligation.amount
            if is_positive(remaining):
                ledger[reverse_key] = existing.model_copy(update={"amount": remaining})
            elif is_negative(remaining):
                # Direction flips: the new debtor now owes the difference
                del ledger[reverse_key]
                ledger[key] = Debt(
                    from_id=obligation.from_id,
                    to_id=obligation.to_id,
                    amount=abs(remaining),
                )
            else:
                del ledger[reverse_key]
            continue

        current = ledger.get(key)
        if current is not None:
            ledger[key] = current.model_copy(
                update={"amount": current.amount + obligation.amount}
            )
        else:
            ledger[key] = Debt(
                from_id=obligation.from_id,
                to_id=obligation.to_id,
                amount=obligation.amount,
            )

    logger.debug(f"Pairwise ledger has {len(ledger)} open debts")

    return sorted(ledger.values(), key=lambda debt: debt.amount, reverse=True)
