"""Tests for greedy debt simplification."""

import pytest

from money_splitter.engine.money import is_zero
from money_splitter.engine.simplifier import simplify_debts
from money_splitter.models import Debt


def apply_debts(balances: dict[str, float], debts: list[Debt]) -> dict[str, float]:
    """Apply each debt (debtor pays creditor) and return the resulting balances."""
    result = dict(balances)
    for debt in debts:
        result[debt.from_id] += debt.amount
        result[debt.to_id] -= debt.amount
    return result


class TestSimplifyDebts:
    """Tests for simplify_debts."""

    def test_dinner_scenario(self):
        """Alice paid for everyone: Bob and Carol each pay her 50."""
        balances = {"alice": 100.0, "bob": -50.0, "carol": -50.0}

        debts = simplify_debts(balances)

        assert len(debts) == 2
        assert set(debts) == {
            Debt(from_id="bob", to_id="alice", amount=50.0),
            Debt(from_id="carol", to_id="alice", amount=50.0),
        }

    def test_three_way_cancellation(self):
        """A paid 30 owing 10, B paid 10 owing 20, C paid nothing owing 10."""
        balances = {"a": 20.0, "b": -10.0, "c": -10.0}

        debts = simplify_debts(balances)

        assert debts == [
            Debt(from_id="b", to_id="a", amount=10.0),
            Debt(from_id="c", to_id="a", amount=10.0),
        ]
        assert all(is_zero(b) for b in apply_debts(balances, debts).values())

    def test_routes_through_third_party(self):
        """A owes B 10 and B owes C 10 collapses into A paying C."""
        balances = {"a": -10.0, "b": 0.0, "c": 10.0}

        assert simplify_debts(balances) == [Debt(from_id="a", to_id="c", amount=10.0)]

    def test_largest_creditor_and_debtor_first(self):
        balances = {"a": 600.0, "b": 300.0, "c": 0.0, "d": -300.0, "e": -600.0}

        debts = simplify_debts(balances)

        assert debts == [
            Debt(from_id="e", to_id="a", amount=600.0),
            Debt(from_id="d", to_id="b", amount=300.0),
        ]

    def test_ties_go_to_lowest_id(self):
        """Equal balances are picked in id order, whatever the input order."""
        balances = {"5": 300.0, "4": -200.0, "3": -200.0, "2": -200.0, "1": 300.0}

        debts = simplify_debts(balances)

        assert debts == [
            Debt(from_id="2", to_id="1", amount=200.0),
            Debt(from_id="3", to_id="5", amount=200.0),
            Debt(from_id="4", to_id="1", amount=100.0),
            Debt(from_id="4", to_id="5", amount=100.0),
        ]

    def test_deterministic(self):
        balances = {"x": 12.5, "y": -7.25, "z": -5.25, "w": 0.0}

        assert simplify_debts(balances) == simplify_debts(dict(reversed(balances.items())))

    def test_empty_balances(self):
        assert simplify_debts({}) == []

    def test_all_within_epsilon(self):
        assert simplify_debts({"a": 0.004, "b": -0.003, "c": 0.0}) == []

    def test_does_not_mutate_input(self):
        balances = {"a": 20.0, "b": -20.0}
        simplify_debts(balances)
        assert balances == {"a": 20.0, "b": -20.0}

    def test_non_zero_sum_input_terminates(self):
        """Leftover credit with no debtor to match simply stays unsettled."""
        balances = {"a": 100.0, "b": -40.0}

        assert simplify_debts(balances) == [Debt(from_id="b", to_id="a", amount=40.0)]

    @pytest.mark.parametrize(
        "balances",
        [
            {"a": 10.0},
            {"a": 90.0, "b": 50.0},
            {"a": 25.0, "b": 0.005},
            {"a": -10.0, "b": -5.0},
        ],
    )
    def test_no_debtors_or_no_creditors(self, balances):
        """Nobody pays when one side of the balances is missing."""
        assert simplify_debts(balances) == []


class TestSimplificationProperties:
    """Settling the plan zeroes everyone and needs at most N-1 payments."""

    @pytest.mark.parametrize(
        "balances",
        [
            {"a": 100.0, "b": -50.0, "c": -50.0},
            {"a": 33.33, "b": 33.34, "c": -66.67},
            {"a": 0.1, "b": 0.2, "c": -0.3},
            {"a": 45.5, "b": -12.25, "c": -8.75, "d": 30.0, "e": -54.5},
            {f"p{i}": (i - 4.5) * 7.3 for i in range(10)},
        ],
    )
    def test_settles_everyone(self, balances):
        debts = simplify_debts(balances)

        residual = apply_debts(balances, debts)

        assert all(is_zero(b) for b in residual.values())
        nonzero = [b for b in balances.values() if not is_zero(b)]
        assert len(debts) <= len(nonzero) - 1
        assert all(debt.amount > 0 for debt in debts)
