"""Date manipulation utilities"""

from datetime import date
from typing import Optional


# Two-digit years below the pivot land in the 2000s, the rest in the 1900s
YEAR_PIVOT = 50


def widen_year(token: str) -> int:
    """Expand a two-digit year ("24" -> 2024, "98" -> 1998); four-digit years pass through"""
    year = int(token)
    if len(token) != 2:
        return year
    return 2000 + year if year < YEAR_PIVOT else 1900 + year


def safe_date(year: int, month: int, day: int) -> Optional[date]:
    """Build a date, returning None for impossible calendar days (31/02)"""
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value: date) -> str:
    """Format as DD/MM/YYYY"""
    return value.strftime("%d/%m/%Y")
