"""Pydantic domain models for Money Splitter."""

from datetime import date as date_type
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# People
# ============================================================================


class Person(BaseModel):
    """Someone who can pay for or take part in an expense.

    People are compared and hashed by id only, so a renamed person is still the
    same person everywhere balances are keyed.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    is_app_user: bool = False
    phone_number: str | None = None
    email: str | None = None
    added_by: str | None = None  # id of the person who added this contact

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Person):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)


class Group(BaseModel):
    """A named set of people, used only as a shortcut when entering expenses."""

    id: str
    name: str
    member_ids: list[str] = Field(default_factory=list)


# ============================================================================
# Expenses
# ============================================================================


class ExpenseCategory(StrEnum):
    """Category of an expense."""

    FOOD = "food"
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    UTILITIES = "utilities"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "ExpenseCategory":
        """Parse a stored category, falling back to OTHER for unknown values."""
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.OTHER


class Expense(BaseModel):
    """A recorded expense.

    paid_by maps person id -> amount that person contributed.
    participants maps person id -> that person's share of the cost.

    Both should sum to amount, but this is not enforced: the balance engine
    accepts inconsistent expenses and simply produces a non-zero-sum result.
    """

    id: str
    description: str
    amount: float = Field(gt=0)
    date: date_type
    category: ExpenseCategory = ExpenseCategory.OTHER
    paid_by: dict[str, float] = Field(default_factory=dict)
    participants: dict[str, float] = Field(default_factory=dict)

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value):
        if isinstance(value, ExpenseCategory):
            return value
        return ExpenseCategory.parse(value)

    @property
    def total_paid(self) -> float:
        return sum(self.paid_by.values())

    @property
    def total_shares(self) -> float:
        return sum(self.participants.values())

    def is_balanced(self) -> bool:
        """Check that payments and shares both add up to the expense amount."""
        from .engine.money import amounts_equal

        return amounts_equal(self.total_paid, self.amount) and amounts_equal(
            self.total_shares, self.amount
        )

    def involves(self, person_id: str) -> bool:
        return person_id in self.paid_by or person_id in self.participants


# ============================================================================
# Debts and payments
# ============================================================================


class Debt(BaseModel):
    """A directed amount of money: from_id owes to_id."""

    model_config = ConfigDict(frozen=True)

    from_id: str
    to_id: str
    amount: float


class Payment(BaseModel):
    """A transaction in the settlement plan.

    Unsettled payments are a cache that is rebuilt from expenses whenever they
    change. Settled payments are kept as they are.
    """

    id: str
    from_id: str  # debtor
    to_id: str  # creditor
    amount: float = Field(gt=0)
    date: date_type
    is_settled: bool = False

    def matches_pair(self, debtor_id: str, creditor_id: str) -> bool:
        return self.from_id == debtor_id and self.to_id == creditor_id

    def as_debt(self) -> Debt:
        return Debt(from_id=self.from_id, to_id=self.to_id, amount=self.amount)


# ============================================================================
# Views
# ============================================================================


class HomeSummary(BaseModel):
    """Totals for the current user.

    friend_debts holds (friend id, amount) with positive amounts meaning the
    friend owes the current user and negative meaning the user owes the friend,
    sorted by absolute amount, largest first.
    """

    total_owed: float = 0.0
    total_owe: float = 0.0
    friend_debts: list[tuple[str, float]] = Field(default_factory=list)
