"""Tests for the LedgerService layer."""

from datetime import date

import pytest

from money_splitter.config import Settings
from money_splitter.db import Database
from money_splitter.engine.money import is_zero
from money_splitter.exceptions import (
    ExpenseNotFoundError,
    GroupNotFoundError,
    InvalidExpenseError,
    PersonNotFoundError,
)
from money_splitter.models import Debt, Expense, ExpenseCategory
from money_splitter.service import LedgerService


@pytest.fixture
def settings(tmp_path):
    """Create test settings backed by a temporary database file."""
    return Settings(database_path=tmp_path / "ledger.db")


@pytest.fixture
def mock_db(settings):
    """Create a temporary database."""
    db = Database(settings.database_path)
    yield db
    db.close()


@pytest.fixture
def service(settings, mock_db):
    """Create a LedgerService backed by the temporary database."""
    return LedgerService(settings, mock_db)


@pytest.fixture
def memory_service():
    """Create a LedgerService without a database."""
    return LedgerService(Settings(use_database=False))


@pytest.fixture
def friends(service):
    """Add Bob and Carol as friends."""
    return service.add_friend("Bob"), service.add_friend("Carol")


def record_dinner(service: LedgerService, bob, carol) -> Expense:
    """Me pays 150 for dinner split three ways."""
    me = service.current_user.id
    return service.record_expense(
        description="Dinner",
        amount=150.0,
        paid_by={me: 150.0},
        participants={me: 50.0, bob.id: 50.0, carol.id: 50.0},
        on=date(2025, 1, 10),
    )


class TestPeople:
    """Tests for friend management."""

    def test_current_user_exists(self, service, settings):
        assert service.current_user.id == settings.current_user_id
        assert service.get_person(settings.current_user_id) is not None

    def test_add_friend(self, service):
        bob = service.add_friend("  Bob ", email="bob@example.com")

        assert bob.name == "Bob"
        assert bob.added_by == service.current_user.id
        assert service.list_friends() == [bob]

    def test_blank_name_rejected(self, service):
        with pytest.raises(ValueError):
            service.add_friend("   ")

    def test_find_person_by_name_or_id(self, service, friends):
        bob, _ = friends

        assert service.find_person("bob") == bob
        assert service.find_person(bob.id) == bob
        assert service.find_person("Me") == service.current_user

    def test_find_person_unknown(self, service):
        with pytest.raises(PersonNotFoundError):
            service.find_person("Zed")

    def test_find_person_ambiguous(self, service):
        service.add_friend("Sam")
        service.add_friend("Sam")

        with pytest.raises(PersonNotFoundError, match="matches 2 people"):
            service.find_person("sam")

    def test_update_friend(self, service, friends):
        bob, _ = friends

        updated = service.update_friend(bob.id, "Robert", phone_number="555")

        assert service.get_person(bob.id).name == "Robert"
        assert updated.phone_number == "555"

    def test_mark_as_app_user_keeps_contact_details(self, service):
        bob = service.add_friend("Bob", email="bob@example.com")

        updated = service.mark_as_app_user(bob.id, phone_number="555")

        assert updated.is_app_user
        assert updated.email == "bob@example.com"
        assert updated.phone_number == "555"

    def test_delete_friend_keeps_person(self, service, friends):
        bob, carol = friends

        service.delete_friend(bob.id)

        assert service.list_friends() == [carol]
        assert service.person_name(bob.id) == "Bob"

    def test_delete_unknown_friend(self, service):
        with pytest.raises(PersonNotFoundError):
            service.delete_friend("nobody")

    def test_person_name_falls_back_to_id(self, service):
        assert service.person_name("ghost") == "ghost"


class TestGroups:
    """Tests for group management."""

    def test_add_update_delete(self, service, friends):
        bob, carol = friends

        group = service.add_group("Trip", [bob.id, carol.id, bob.id])
        assert group.member_ids == [bob.id, carol.id]

        updated = service.update_group(group.id, "Road Trip", [carol.id])
        assert service.list_groups() == [updated]

        service.delete_group(group.id)
        assert service.list_groups() == []

    def test_unknown_member(self, service):
        with pytest.raises(PersonNotFoundError):
            service.add_group("Trip", ["ghost"])

    def test_unknown_group(self, service):
        with pytest.raises(GroupNotFoundError):
            service.delete_group("missing")


class TestExpenses:
    """Tests for recording expenses and the regenerated plan."""

    def test_dinner_creates_two_payments(self, service, friends):
        bob, carol = friends
        me = service.current_user.id

        record_dinner(service, bob, carol)

        payments = service.list_payments()
        assert {(p.from_id, p.to_id, p.amount) for p in payments} == {
            (bob.id, me, 50.0),
            (carol.id, me, 50.0),
        }
        assert not any(p.is_settled for p in payments)

    def test_expense_balances(self, service, friends):
        bob, carol = friends
        record_dinner(service, bob, carol)

        balances = service.expense_balances()

        assert balances[service.current_user.id] == 100.0
        assert balances[bob.id] == -50.0
        assert is_zero(sum(balances.values()))

    def test_blank_description_defaults(self, service, friends):
        bob, _ = friends
        expense = service.record_expense(
            "  ", 10.0, {bob.id: 10.0}, {bob.id: 10.0}
        )

        assert expense.description == "Expense"
        assert expense.date == date.today()

    def test_non_positive_amount_rejected(self, service, friends):
        bob, _ = friends
        with pytest.raises(InvalidExpenseError):
            service.record_expense("Free", 0.0, {bob.id: 0.0}, {bob.id: 0.0})

    def test_payers_and_participants_required(self, service, friends):
        bob, _ = friends
        with pytest.raises(InvalidExpenseError):
            service.record_expense("Lunch", 10.0, {}, {bob.id: 10.0})
        with pytest.raises(InvalidExpenseError):
            service.record_expense("Lunch", 10.0, {bob.id: 10.0}, {})

    def test_unknown_person_rejected(self, service):
        with pytest.raises(PersonNotFoundError):
            service.record_expense("Lunch", 10.0, {"ghost": 10.0}, {"ghost": 10.0})

    def test_unbalanced_expense_accepted(self, service, friends):
        bob, _ = friends
        me = service.current_user.id

        expense = service.record_expense("Odd", 100.0, {me: 100.0}, {bob.id: 40.0})

        assert not expense.is_balanced()
        assert service.expense_balances() == {me: 100.0, bob.id: -40.0}

    def test_overpaid_expense_only_charges_debtors(self, service, friends):
        bob, carol = friends
        me = service.current_user.id

        service.record_expense(
            "Tickets", 100.0, {me: 100.0, bob.id: 50.0}, {me: 10.0, carol.id: 60.0}
        )

        payments = service.list_payments()
        assert [(p.from_id, p.to_id, p.amount) for p in payments] == [
            (carol.id, me, 60.0)
        ]
        assert all(p.from_id != p.to_id for p in payments)

    def test_expense_without_debtors_has_no_plan(self, service, friends):
        bob, _ = friends
        me = service.current_user.id

        service.record_expense("Tickets", 100.0, {me: 100.0, bob.id: 50.0}, {me: 10.0})

        assert service.list_payments() == []
        assert service.simplified_debts() == []

    def test_update_expense_replaces_plan(self, service, friends):
        bob, carol = friends
        me = service.current_user.id
        dinner = record_dinner(service, bob, carol)

        service.update_expense(
            dinner.model_copy(
                update={
                    "participants": {me: 75.0, bob.id: 75.0},
                    "category": ExpenseCategory.FOOD,
                }
            )
        )

        payments = service.list_payments()
        assert [(p.from_id, p.to_id, p.amount) for p in payments] == [
            (bob.id, me, 75.0)
        ]
        assert service.get_expense(dinner.id).category == ExpenseCategory.FOOD

    def test_delete_expense_clears_plan(self, service, friends):
        bob, carol = friends
        dinner = record_dinner(service, bob, carol)

        service.delete_expense(dinner.id)

        assert service.list_expenses() == []
        assert service.list_payments() == []

    def test_unknown_expense(self, service):
        with pytest.raises(ExpenseNotFoundError):
            service.delete_expense("missing")

    def test_duplicate_expense_id_rejected(self, service, friends):
        bob, carol = friends
        dinner = record_dinner(service, bob, carol)

        with pytest.raises(InvalidExpenseError):
            service.add_expense(dinner)


class TestSettling:
    """Tests for settling payments."""

    def test_settle_payment_is_idempotent(self, service, friends):
        bob, carol = friends
        record_dinner(service, bob, carol)
        payment_id = service.list_payments()[0].id

        service.settle_payment(payment_id)
        once = service.list_payments()
        service.settle_payment(payment_id)

        assert service.list_payments() == once

    def test_settled_payment_survives_new_expense(self, service, friends):
        bob, carol = friends
        me = service.current_user.id
        record_dinner(service, bob, carol)
        bob_payment = next(p for p in service.list_payments() if p.from_id == bob.id)

        service.settle_payment(bob_payment.id)
        service.record_expense("Coffee", 10.0, {me: 10.0}, {carol.id: 10.0})

        matching = [p for p in service.list_payments() if p.id == bob_payment.id]
        assert len(matching) == 1
        assert matching[0].is_settled

    def test_settle_by_pair(self, service, friends):
        bob, carol = friends
        me = service.current_user.id
        record_dinner(service, bob, carol)

        service.settle_payments_by_pair(bob.id, me)

        settled = [p for p in service.list_payments() if p.is_settled]
        assert [(p.from_id, p.to_id) for p in settled] == [(bob.id, me)]
        assert service.net_balances() == {carol.id: -50.0, me: 50.0}

    def test_settled_state_persists_across_restart(self, settings, mock_db, friends, service):
        bob, carol = friends
        record_dinner(service, bob, carol)
        payment_id = service.list_payments()[0].id
        service.settle_payment(payment_id)

        reloaded = LedgerService(settings, mock_db)

        matching = [p for p in reloaded.list_payments() if p.id == payment_id]
        assert len(matching) == 1
        assert matching[0].is_settled
        assert len(reloaded.list_expenses()) == 1
        assert {f.name for f in reloaded.list_friends()} == {"Bob", "Carol"}


class TestViews:
    """Tests for derived views."""

    def test_simplified_and_all_debts(self, service, friends):
        bob, carol = friends
        me = service.current_user.id
        record_dinner(service, bob, carol)

        expected = {
            Debt(from_id=bob.id, to_id=me, amount=50.0),
            Debt(from_id=carol.id, to_id=me, amount=50.0),
        }
        assert set(service.simplified_debts()) == expected
        assert set(service.all_debts()) == expected

    def test_expense_debts_net_within_pairs(self, service, friends):
        bob, _ = friends
        me = service.current_user.id
        service.record_expense("Dinner", 100.0, {me: 100.0}, {me: 50.0, bob.id: 50.0})
        service.record_expense("Taxi", 40.0, {bob.id: 40.0}, {me: 20.0, bob.id: 20.0})

        assert service.expense_debts() == [Debt(from_id=bob.id, to_id=me, amount=30.0)]

    def test_home_summary_when_owed(self, service, friends):
        bob, carol = friends
        record_dinner(service, bob, carol)

        summary = service.home_summary()

        assert summary.total_owed == 100.0
        assert summary.total_owe == 0.0
        assert set(summary.friend_debts) == {(bob.id, 50.0), (carol.id, 50.0)}

    def test_home_summary_when_owing(self, service, friends):
        bob, _ = friends
        me = service.current_user.id
        service.record_expense("Tickets", 60.0, {bob.id: 60.0}, {me: 30.0, bob.id: 30.0})

        summary = service.home_summary()

        assert summary.total_owed == 0.0
        assert summary.total_owe == 30.0
        assert summary.friend_debts == [(bob.id, -30.0)]

    def test_home_summary_empty(self, memory_service):
        summary = memory_service.home_summary()

        assert summary.total_owed == 0.0
        assert summary.total_owe == 0.0
        assert summary.friend_debts == []


class TestSubscribers:
    """Tests for change notifications."""

    def test_receives_snapshot_after_change(self, memory_service):
        snapshots = []
        memory_service.subscribe(snapshots.append)

        bob = memory_service.add_friend("Bob")

        assert len(snapshots) == 1
        assert snapshots[0].friends == (bob,)

    def test_snapshot_includes_regenerated_payments(self, memory_service):
        snapshots = []
        memory_service.subscribe(snapshots.append)
        bob = memory_service.add_friend("Bob")
        me = memory_service.current_user.id

        memory_service.record_expense("Lunch", 20.0, {me: 20.0}, {bob.id: 20.0})

        assert len(snapshots[-1].payments) == 1
        assert snapshots[-1].payments[0].from_id == bob.id

    def test_unsubscribe(self, memory_service):
        snapshots = []
        unsubscribe = memory_service.subscribe(snapshots.append)
        unsubscribe()

        memory_service.add_friend("Bob")

        assert snapshots == []


def test_in_memory_service_works_without_database(memory_service):
    bob = memory_service.add_friend("Bob")
    me = memory_service.current_user.id

    memory_service.record_expense("Lunch", 20.0, {me: 20.0}, {me: 10.0, bob.id: 10.0})

    assert memory_service.net_balances() == {bob.id: -10.0, me: 10.0}
