"""Monetary and date extraction from free-text messages (DD/MM/YYYY, comma-decimal)"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from finia_gateway.domain.models import LocalHint, UNSPECIFIED_ORIGIN
from finia_gateway.utils.date_utils import safe_date, widen_year


CENTS = Decimal("0.01")

# 1.234,56 | 1.234 | 230,50 | 10.5 | 50
_NUMBER = r"\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?|\d+(?:[.,]\d{1,2})?"

# Ordered from most to least specific
AMOUNT_PATTERNS = [
    re.compile(r"R\$\s*(" + _NUMBER + r")(?!\d|[.,]\d)", re.IGNORECASE),
    re.compile(r"(?<![\d/.,])(" + _NUMBER + r")\s*(?:reais|real)?\s*[.!]?\s*$", re.IGNORECASE),
    re.compile(r"(?<![\d/.,])(" + _NUMBER + r")(?![\d/])", re.IGNORECASE),
]

DATE_PATTERN = re.compile(r"(?<![\d/])(\d{1,2})[/-](\d{1,2})(?:[/-](\d{4}|\d{2}))?(?![\d/])")

CURRENCY_TOKEN = re.compile(r"R\$\s*[\d.,]*", re.IGNORECASE)
BARE_NUMBER = re.compile(r"\d+(?:[.,]\d+)*")
CURRENCY_WORD = re.compile(r"\b(?:reais|real)\b", re.IGNORECASE)

ORIGIN_PATTERNS = [
    re.compile(r"\bde\s+([^,.]+)", re.IGNORECASE),  # "Recebi de Cliente ABC"
    re.compile(r"\bpara\s+([^,.]+)", re.IGNORECASE),  # "Pagamento para Fornecedor XYZ"
    re.compile(r"\bdo\s+([^,.]+)", re.IGNORECASE),
    re.compile(r"\bda\s+([^,.]+)", re.IGNORECASE),
    re.compile(r"\bno\s+([^,.]+)", re.IGNORECASE),  # "Compra no Mercado"
    re.compile(r"\bna\s+([^,.]+)", re.IGNORECASE),
    re.compile(r"\bem\s+([^,.]+)", re.IGNORECASE),
    re.compile(r"\bcom\s+([^,.]+)", re.IGNORECASE),  # "Reunião com Cliente"
]


def parse_amount(token: str) -> Optional[Decimal]:
    """Convert "1.234,56" style text to Decimal; None when it isn't a number"""
    # Dots in front of a 3-digit group are thousands separators
    normalized = re.sub(r"\.(?=\d{3}(?:\D|$))", "", token.strip())
    normalized = normalized.replace(",", ".")
    try:
        value = Decimal(normalized)
        if not value.is_finite():
            return None
        # Digit runs past the context precision can't be quantized
        return value.quantize(CENTS)
    except InvalidOperation:
        return None


def remove_dates(text: str) -> str:
    return DATE_PATTERN.sub(" ", text)


def extract_amount(text: str) -> Decimal:
    """
    Extract the transaction amount from a message.

    Patterns are tried from most to least specific:
    1. "R$ 1.234,56" currency-marker form
    2. a bare number ending the message ("Uber 35")
    3. any bare number

    Date tokens are ignored by the bare-number patterns so "12/04" never
    becomes an amount. Returns Decimal("0") when nothing positive is found.
    """
    if not text:
        return Decimal("0")

    marker_pattern, *bare_patterns = AMOUNT_PATTERNS
    candidates = [(marker_pattern, text)]
    without_dates = remove_dates(text)
    candidates.extend((pattern, without_dates) for pattern in bare_patterns)

    for pattern, haystack in candidates:
        for match in pattern.finditer(haystack):
            value = parse_amount(match.group(1))
            if value is not None and value > 0:
                return value

    return Decimal("0")


def find_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """First valid D/M[/YY[YY]] token in the text, or None"""
    current_year = (today or date.today()).year
    for match in DATE_PATTERN.finditer(text or ""):
        day = int(match.group(1))
        month = int(match.group(2))
        year = widen_year(match.group(3)) if match.group(3) else current_year
        found = safe_date(year, month, day)
        if found is not None:
            return found
    return None


def extract_date(text: str, today: Optional[date] = None) -> date:
    """Date mentioned in the message, defaulting to today"""
    return find_date(text, today) or today or date.today()


def strip_amount_and_date(text: str) -> str:
    """Message text left after removing currency, number and date tokens"""
    residue = remove_dates(text)
    residue = CURRENCY_TOKEN.sub(" ", residue)
    residue = BARE_NUMBER.sub(" ", residue)
    residue = CURRENCY_WORD.sub(" ", residue)
    residue = re.sub(r"\s+", " ", residue)
    return residue.strip(" \t-–:;,.")


def extract_origin(description: str) -> str:
    """Counterparty/place guessed from preposition phrases ("no Mercado" -> "Mercado")"""
    for pattern in ORIGIN_PATTERNS:
        match = pattern.search(description)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return UNSPECIFIED_ORIGIN


def extract_hint(text: str) -> LocalHint:
    """Local best-effort amount/description/origin used when the classifier can't decide"""
    description = strip_amount_and_date(text or "")
    return LocalHint(
        amount=extract_amount(text or ""),
        description=description,
        origin=extract_origin(description),
    )
