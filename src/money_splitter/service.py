"""Service layer that owns the current ledger state.

LedgerService is constructed once by the caller and passed to whatever needs
it. It keeps an in-memory snapshot of people, expenses, groups and payments,
writes changes through to the database when one is configured, and rebuilds the
settlement plan with the pure engine functions whenever expenses change.
"""

import logging
import threading
import uuid
from collections.abc import Callable, Iterable
from datetime import date

from pydantic import BaseModel, ConfigDict

from .config import Settings
from .db import Database
from .engine import (
    balances_from_payments,
    compute_net_balances,
    compute_pairwise_ledger,
    decompose_obligations,
    is_negative,
    is_positive,
    pending_payments,
    regenerate_transactions,
    settle,
    settle_by_pair,
    simplify_debts,
)
from .exceptions import (
    ExpenseNotFoundError,
    GroupNotFoundError,
    InvalidExpenseError,
    PersonNotFoundError,
)
from .models import Debt, Expense, ExpenseCategory, Group, HomeSummary, Payment, Person

logger = logging.getLogger(__name__)


class LedgerSnapshot(BaseModel):
    """A consistent, read-only view of everything the service holds."""

    model_config = ConfigDict(frozen=True)

    people: tuple[Person, ...]
    friends: tuple[Person, ...]
    expenses: tuple[Expense, ...]
    groups: tuple[Group, ...]
    payments: tuple[Payment, ...]


Subscriber = Callable[[LedgerSnapshot], None]


def new_id() -> str:
    """Generate a random id for people, groups and expenses."""
    return str(uuid.uuid4())


class LedgerService:
    """Service for recording expenses and settling the resulting debts."""

    def __init__(self, settings: Settings, database: Database | None = None):
        """Initialize the service and load any stored data."""
        self.settings = settings
        self.db = database
        self.current_user = Person(
            id=settings.current_user_id,
            name=settings.current_user_name,
            is_app_user=True,
        )

        self._lock = threading.RLock()
        self._subscribers: list[Subscriber] = []

        self._people: dict[str, Person] = {self.current_user.id: self.current_user}
        self._friend_ids: tuple[str, ...] = ()
        self._expenses: tuple[Expense, ...] = ()
        self._groups: tuple[Group, ...] = ()
        self._payments: tuple[Payment, ...] = ()

        self._load()

    def _load(self):
        """Load stored data and rebuild the settlement plan from it."""
        if self.db is None:
            logger.info("No database configured, keeping ledger in memory")
            return

        with self._lock:
            self.db.insert_user(self.current_user)

            for person in self.db.get_all_users():
                self._people[person.id] = person
            self._friend_ids = tuple(p.id for p in self.db.get_all_friends())
            self._expenses = tuple(self.db.get_all_expenses())
            self._groups = tuple(self.db.get_all_groups())

            # Stored unsettled payments are only a cache; settled ones are kept
            self._payments = tuple(self.db.get_all_payments())
            self._regenerate()

        logger.info(
            f"Loaded {len(self._friend_ids)} friends, {len(self._expenses)} expenses "
            f"and {len(self._groups)} groups"
        )

    # ========================================================================
    # Observers
    # ========================================================================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback that receives a snapshot after every change.

        Returns:
            A function that removes the callback again
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> LedgerSnapshot:
        """Return the current state as an immutable snapshot."""
        with self._lock:
            return LedgerSnapshot(
                people=tuple(self._people.values()),
                friends=tuple(self._people[pid] for pid in self._friend_ids),
                expenses=self._expenses,
                groups=self._groups,
                payments=self._payments,
            )

    def _notify(self):
        snapshot = self.snapshot()
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(snapshot)

    # ========================================================================
    # People
    # ========================================================================

    def list_people(self) -> list[Person]:
        with self._lock:
            return list(self._people.values())

    def list_friends(self) -> list[Person]:
        with self._lock:
            return [self._people[pid] for pid in self._friend_ids]

    def get_person(self, person_id: str) -> Person | None:
        """Look up a person by id, None if unknown."""
        return self._people.get(person_id)

    def person_name(self, person_id: str) -> str:
        """Display name for a person id, falling back to the id itself."""
        person = self._people.get(person_id)
        return person.name if person else person_id

    def find_person(self, reference: str) -> Person:
        """
        Find a person by id or by name (case-insensitive).

        Raises:
            PersonNotFoundError: If nobody matches, or the name is ambiguous
        """
        person = self._people.get(reference)
        if person:
            return person

        wanted = reference.strip().lower()
        matches = [p for p in self._people.values() if p.name.lower() == wanted]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise PersonNotFoundError(
                reference,
                f"'{reference}' matches {len(matches)} people, use an id instead",
            )
        raise PersonNotFoundError(reference)

    def add_friend(
        self,
        name: str,
        phone_number: str | None = None,
        email: str | None = None,
        is_app_user: bool = False,
    ) -> Person:
        """Create a new person and add them to the friend list."""
        if not name.strip():
            raise ValueError("Friend name cannot be empty")

        friend = Person(
            id=new_id(),
            name=name.strip(),
            is_app_user=is_app_user,
            phone_number=phone_number,
            email=email,
            added_by=self.current_user.id,
        )

        with self._lock:
            if self.db is not None:
                self.db.add_friend(friend)
            self._people[friend.id] = friend
            self._friend_ids = (*self._friend_ids, friend.id)

        logger.info(f"Added friend: {friend.name} ({friend.id})")
        self._notify()
        return friend

    def update_friend(
        self,
        friend_id: str,
        name: str,
        phone_number: str | None = None,
        email: str | None = None,
        is_app_user: bool = False,
    ) -> Person:
        """Replace a friend's details."""
        existing = self._require_person(friend_id)
        updated = existing.model_copy(
            update={
                "name": name,
                "phone_number": phone_number,
                "email": email,
                "is_app_user": is_app_user,
            }
        )
        self._save_person(updated)
        logger.info(f"Updated friend {friend_id}")
        return updated

    def mark_as_app_user(
        self,
        person_id: str,
        phone_number: str | None = None,
        email: str | None = None,
    ) -> Person:
        """Flag a contact as using the app, keeping contact details not given."""
        existing = self._require_person(person_id)
        updated = existing.model_copy(
            update={
                "is_app_user": True,
                "phone_number": phone_number or existing.phone_number,
                "email": email or existing.email,
            }
        )
        self._save_person(updated)
        logger.info(f"Marked {existing.name} as app user")
        return updated

    def delete_friend(self, friend_id: str):
        """
        Remove someone from the friend list.

        The person record itself is kept so existing expenses still resolve.
        """
        with self._lock:
            if friend_id not in self._friend_ids:
                raise PersonNotFoundError(friend_id)
            if self.db is not None:
                self.db.delete_friend(friend_id)
            self._friend_ids = tuple(pid for pid in self._friend_ids if pid != friend_id)

        logger.info(f"Removed friend {friend_id}")
        self._notify()

    def _require_person(self, person_id: str) -> Person:
        person = self._people.get(person_id)
        if person is None:
            raise PersonNotFoundError(person_id)
        return person

    def _save_person(self, person: Person):
        with self._lock:
            if self.db is not None:
                self.db.insert_user(person)
            self._people[person.id] = person
        self._notify()

    # ========================================================================
    # Groups
    # ========================================================================

    def list_groups(self) -> list[Group]:
        with self._lock:
            return list(self._groups)

    def get_group(self, group_id: str) -> Group:
        for group in self._groups:
            if group.id == group_id:
                return group
        raise GroupNotFoundError(group_id)

    def add_group(self, name: str, member_ids: Iterable[str]) -> Group:
        """Create a group of known people."""
        group = Group(id=new_id(), name=name, member_ids=self._check_members(member_ids))

        with self._lock:
            if self.db is not None:
                self.db.insert_group(group)
            self._groups = (*self._groups, group)

        logger.info(f"Added group: {group.name} ({len(group.member_ids)} members)")
        self._notify()
        return group

    def update_group(self, group_id: str, name: str, member_ids: Iterable[str]) -> Group:
        """Rename a group and replace its members."""
        updated = self.get_group(group_id).model_copy(
            update={"name": name, "member_ids": self._check_members(member_ids)}
        )

        with self._lock:
            if self.db is not None:
                self.db.insert_group(updated)
            self._groups = tuple(
                updated if group.id == group_id else group for group in self._groups
            )

        logger.info(f"Updated group {group_id}")
        self._notify()
        return updated

    def delete_group(self, group_id: str):
        self.get_group(group_id)

        with self._lock:
            if self.db is not None:
                self.db.delete_group(group_id)
            self._groups = tuple(g for g in self._groups if g.id != group_id)

        logger.info(f"Deleted group {group_id}")
        self._notify()

    def _check_members(self, member_ids: Iterable[str]) -> list[str]:
        members = list(dict.fromkeys(member_ids))
        for member_id in members:
            self._require_person(member_id)
        return members

    # ========================================================================
    # Expenses
    # ========================================================================

    def list_expenses(self) -> list[Expense]:
        with self._lock:
            return list(self._expenses)

    def get_expense(self, expense_id: str) -> Expense:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        raise ExpenseNotFoundError(expense_id)

    def record_expense(
        self,
        description: str,
        amount: float,
        paid_by: dict[str, float],
        participants: dict[str, float],
        on: date | None = None,
        category: ExpenseCategory = ExpenseCategory.OTHER,
    ) -> Expense:
        """
        Build a new expense from user input and add it.

        Args:
            description: What the money was spent on (blank becomes "Expense")
            amount: Total cost, must be positive
            paid_by: Person id -> amount paid
            participants: Person id -> share owed
            on: Date of the expense (defaults to today)
            category: Expense category

        Returns:
            The stored expense
        """
        if amount <= 0:
            raise InvalidExpenseError(f"Expense amount must be positive, got {amount}")

        expense = Expense(
            id=new_id(),
            description=description.strip() or "Expense",
            amount=amount,
            date=on or date.today(),
            category=category,
            paid_by=paid_by,
            participants=participants,
        )
        return self.add_expense(expense)

    def add_expense(self, expense: Expense) -> Expense:
        """Add an expense and rebuild the settlement plan."""
        self._validate_expense(expense)

        with self._lock:
            if any(existing.id == expense.id for existing in self._expenses):
                raise InvalidExpenseError(f"Expense {expense.id} already exists")
            if self.db is not None:
                self.db.insert_expense(expense)
            self._expenses = (*self._expenses, expense)
            self._regenerate()

        logger.info(f"Added expense: {expense.description} ({expense.amount:.2f})")
        self._notify()
        return expense

    def update_expense(self, expense: Expense) -> Expense:
        """Replace an existing expense (matched by id) and rebuild the plan."""
        self.get_expense(expense.id)
        self._validate_expense(expense)

        with self._lock:
            if self.db is not None:
                self.db.insert_expense(expense)
            self._expenses = tuple(
                expense if existing.id == expense.id else existing
                for existing in self._expenses
            )
            self._regenerate()

        logger.info(f"Updated expense {expense.id}")
        self._notify()
        return expense

    def delete_expense(self, expense_id: str):
        """Delete an expense and rebuild the plan."""
        self.get_expense(expense_id)

        with self._lock:
            if self.db is not None:
                self.db.delete_expense(expense_id)
            self._expenses = tuple(e for e in self._expenses if e.id != expense_id)
            self._regenerate()

        logger.info(f"Deleted expense {expense_id}")
        self._notify()

    def _validate_expense(self, expense: Expense):
        if not expense.paid_by:
            raise InvalidExpenseError("An expense needs at least one payer")
        if not expense.participants:
            raise InvalidExpenseError("An expense needs at least one participant")

        for person_id in [*expense.paid_by, *expense.participants]:
            self._require_person(person_id)

        if not expense.is_balanced():
            # Accepted anyway; balances just won't sum to zero
            logger.warning(
                f"Expense '{expense.description}' doesn't add up: "
                f"amount {expense.amount:.2f}, paid {expense.total_paid:.2f}, "
                f"shares {expense.total_shares:.2f}"
            )

    def _regenerate(self):
        """Rebuild the settlement plan from the current expenses. Caller holds the lock."""
        payments = tuple(regenerate_transactions(self._expenses, self._payments))
        if self.db is not None:
            self.db.replace_payments(list(payments))
        # Single reference swap so readers see the old or the new plan
        self._payments = payments

    # ========================================================================
    # Payments
    # ========================================================================

    def list_payments(self) -> list[Payment]:
        with self._lock:
            return list(self._payments)

    def settle_payment(self, payment_id: str):
        """Mark one payment as settled. Repeating this has no further effect."""
        with self._lock:
            self._payments = tuple(settle(self._payments, payment_id))
            if self.db is not None:
                self.db.settle_payment(payment_id)

        logger.info(f"Settled payment {payment_id}")
        self._notify()

    def settle_payments_by_pair(self, debtor_id: str, creditor_id: str):
        """Mark every pending payment from debtor to creditor as settled."""
        with self._lock:
            self._payments = tuple(
                settle_by_pair(self._payments, debtor_id, creditor_id)
            )
            if self.db is not None:
                self.db.replace_payments(list(self._payments))

        logger.info(
            f"Settled payments from {self.person_name(debtor_id)} "
            f"to {self.person_name(creditor_id)}"
        )
        self._notify()

    # ========================================================================
    # Views
    # ========================================================================

    def expense_balances(self) -> dict[str, float]:
        """Net balance per person computed directly from the expenses."""
        return compute_net_balances(self._expenses)

    def net_balances(self) -> dict[str, float]:
        """Net balance per person from the pending payments."""
        return balances_from_payments(self._payments)

    def simplified_debts(self) -> list[Debt]:
        """Fewest payments that settle the pending balances."""
        return simplify_debts(self.net_balances())

    def all_debts(self) -> list[Debt]:
        """Who has to pay whom, one entry per pair of people, from pending payments."""
        return compute_pairwise_ledger(p.as_debt() for p in pending_payments(self._payments))

    def expense_debts(self) -> list[Debt]:
        """Direct debts per pair derived from the individual expenses."""
        return compute_pairwise_ledger(decompose_obligations(self._expenses))

    def home_summary(self) -> HomeSummary:
        """Totals owed to and by the current user, and per-friend amounts."""
        me = self.current_user.id
        balance = self.net_balances().get(me, 0.0)

        friend_debts: dict[str, float] = {}
        for debt in self.simplified_debts():
            if debt.from_id == me:
                friend_debts[debt.to_id] = friend_debts.get(debt.to_id, 0.0) - debt.amount
            elif debt.to_id == me:
                friend_debts[debt.from_id] = (
                    friend_debts.get(debt.from_id, 0.0) + debt.amount
                )

        return HomeSummary(
            total_owed=balance if is_positive(balance) else 0.0,
            total_owe=abs(balance) if is_negative(balance) else 0.0,
            friend_debts=sorted(
                friend_debts.items(), key=lambda item: abs(item[1]), reverse=True
            ),
        )
