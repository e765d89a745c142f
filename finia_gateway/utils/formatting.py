"""Currency formatting for reply messages"""

from decimal import Decimal


def format_currency(value: Decimal) -> str:
    """Format an amount the Brazilian way: R$ 1.234,56"""
    text = f"{abs(value):,.2f}"
    text = text.replace(",", "X").replace(".", ",").replace("X", ".")
    sign = "- " if value < 0 else ""
    return f"{sign}R$ {text}"
