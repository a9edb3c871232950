"""Worked examples of expense splitting, shown by `money-splitter demo`."""

from datetime import date

from pydantic import BaseModel

from .engine import compute_expense_balances, simplify_debts, split_equally
from .models import Debt, Expense, Person


class ScenarioResult(BaseModel):
    """An example expense with its balances and settlement plan."""

    title: str
    expense: Expense
    people: dict[str, Person]
    balances: dict[str, float]
    debts: list[Debt]


IFAZ = Person(id="1", name="Ifaz Ikram")
KALANA_P = Person(id="2", name="Kalana Pankaja")
SUHAS = Person(id="3", name="Suhas Dissanayaka")
SANGEETH = Person(id="4", name="Sangeeth Kariyapperuma")
KALANA_A = Person(id="5", name="Kalana Abeysundara")

MEMBERS = [IFAZ, KALANA_P, SUHAS, SANGEETH, KALANA_A]


def _run(title: str, expense: Expense) -> ScenarioResult:
    balances = compute_expense_balances(expense)
    return ScenarioResult(
        title=title,
        expense=expense,
        people={person.id: person for person in MEMBERS},
        balances=balances,
        debts=simplify_debts(balances),
    )


def bus_ticket(on: date | None = None) -> ScenarioResult:
    """
    Bus ticket of 1000 split equally between five people.

    Ifaz and Kalana Abeysundara paid 500 each, so both should receive 300 and
    everyone else pays 200.
    """
    expense = Expense(
        id="bus-ticket",
        description="Bus Ticket",
        amount=1000.0,
        date=on or date.today(),
        paid_by={IFAZ.id: 500.0, KALANA_A.id: 500.0},
        participants=split_equally([p.id for p in MEMBERS], 1000.0),
    )
    return _run("Bus Ticket (Equal Split)", expense)


def custom_consumption(on: date | None = None) -> ScenarioResult:
    """
    Group expense of 3200 where everyone paid and consumed different amounts.

    Expected balances: Ifaz +600, Kalana Pankaja +300, Suhas 0,
    Sangeeth -300, Kalana Abeysundara -600.
    """
    expense = Expense(
        id="group-expense",
        description="Group Expense (Custom Shares)",
        amount=3200.0,
        date=on or date.today(),
        paid_by={
            IFAZ.id: 1000.0,
            KALANA_P.id: 1000.0,
            SUHAS.id: 500.0,
            SANGEETH.id: 700.0,
        },
        participants={
            IFAZ.id: 400.0,
            KALANA_P.id: 700.0,
            KALANA_A.id: 600.0,
            SANGEETH.id: 1000.0,
            SUHAS.id: 500.0,
        },
    )
    return _run("Group Expense (Custom Consumption)", expense)


def all_scenarios(on: date | None = None) -> list[ScenarioResult]:
    return [bus_ticket(on), custom_consumption(on)]
