"""
Calendar month helpers shared by budgets and reports.

A month window is the half-open range [first day 00:00, first day of next month 00:00).
"""
from datetime import datetime
from typing import Tuple

MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                       "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """Move `offset` months from (year, month); negative goes back in time."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"
