"""Custom exceptions for Money Splitter."""


class MoneySplitterError(Exception):
    """Base exception for all Money Splitter errors."""

    pass


class ConfigurationError(MoneySplitterError):
    """Raised when configuration is invalid or missing."""

    pass


class PersonNotFoundError(MoneySplitterError):
    """Raised when a person id or name does not match anyone known."""

    def __init__(self, person_id: str, message: str | None = None):
        self.person_id = person_id
        super().__init__(message or f"No person found for '{person_id}'")


class ExpenseNotFoundError(MoneySplitterError):
    """Raised when an expense id does not exist."""

    def __init__(self, expense_id: str, message: str | None = None):
        self.expense_id = expense_id
        super().__init__(message or f"Expense {expense_id} does not exist")


class GroupNotFoundError(MoneySplitterError):
    """Raised when a group id does not exist."""

    def __init__(self, group_id: str, message: str | None = None):
        self.group_id = group_id
        super().__init__(message or f"Group {group_id} does not exist")


class InvalidExpenseError(MoneySplitterError):
    """Raised when expense input cannot be turned into an expense."""

    pass
