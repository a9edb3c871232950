"""Tolerant comparisons for floating-point money amounts.

Repeated additions and subtractions of currency values drift by fractions of a
cent, so every balance and debt check goes through these predicates instead of
comparing floats directly.
"""

EPSILON = 0.01  # one cent


def is_zero(amount: float) -> bool:
    """True when the amount is within one cent of zero."""
    return abs(amount) < EPSILON


def is_positive(amount: float) -> bool:
    """True when the amount is more than one cent above zero."""
    return amount > EPSILON


def is_negative(amount: float) -> bool:
    """True when the amount is more than one cent below zero."""
    return amount < -EPSILON


def amounts_equal(a: float, b: float) -> bool:
    """True when two amounts differ by less than one cent."""
    return is_zero(a - b)
