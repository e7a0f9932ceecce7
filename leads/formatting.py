"""
Display helpers for the en-IN locale.

Amounts use Indian digit grouping (12,34,567) and the rupee sign; large
budgets can be shown compactly in lakh (L) and crore (Cr).
"""

from datetime import datetime
from typing import Optional, Union

from .validation import parse_number

RUPEE = "₹"
LAKH = 100_000
CRORE = 10_000_000

Amount = Union[int, float, str, None]


def group_indian(number: int) -> str:
    """1234567 -> '12,34,567'"""
    sign = "-" if number < 0 else ""
    digits = str(abs(number))
    if len(digits) <= 3:
        return sign + digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def format_currency(amount: Amount) -> str:
    """Whole-rupee amount, ``₹0`` for empty or non-numeric input."""
    number = parse_number(amount) if amount not in (None, "") else None
    if not number:
        return f"{RUPEE}0"
    return f"{RUPEE}{group_indian(round(number))}"


def format_compact_amount(amount: Union[int, float]) -> str:
    if amount >= CRORE:
        return f"{RUPEE}{amount / CRORE:.1f}Cr"
    if amount >= LAKH:
        return f"{RUPEE}{amount / LAKH:.1f}L"
    return format_currency(amount)


def format_budget(budget_min: Optional[int] = None, budget_max: Optional[int] = None) -> str:
    if not budget_min and not budget_max:
        return "Budget not specified"
    if not budget_min:
        return f"Up to {format_currency(budget_max)}"
    if not budget_max:
        return f"From {format_currency(budget_min)}"
    return f"{format_currency(budget_min)} - {format_currency(budget_max)}"


def format_date(value: Optional[datetime], with_time: bool = False) -> str:
    """``05 Mar 2025`` or, with time, ``05 March 2025, 02:30 PM``."""
    if value is None:
        return ""
    if with_time:
        return value.strftime("%d %B %Y, %I:%M %p")
    return value.strftime("%d %b %Y")
