"""
Keyword/context detector.

Cheap heuristics for income-vs-expense and business-vs-personal. They are
the fallback tier below the AI classifier, so false positives are tolerated.
"""

import re
from typing import Iterable, List, Optional

from finia_gateway.domain.categories import guess_category
from finia_gateway.domain.extractor import extract_hint
from finia_gateway.domain.models import (
    BusinessContext,
    Classification,
    DetectedContext,
    ErrorKind,
    ExpenseType,
    Nature,
    Outcome,
    ProfileKind,
)
from finia_gateway.domain.vocabulary import (
    BUSINESS_KEYWORDS,
    FIXED_EXPENSE_KEYWORDS,
    PERSONAL_KEYWORDS,
    VARIABLE_EXPENSE_KEYWORDS,
    income_keywords,
)


INCOME_PATTERNS = [
    re.compile(r"r\$\s*\d+(?:[.,]\d+)*\s+(?:recebido|recebidos|entrou|entraram|caiu|caíram)"),
    re.compile(r"^(?:do |da )?(?:cliente|empresa)\b.*r\$"),
    re.compile(r"\bpix\s+(?:de|do|da|recebido)\b.*r\$"),
]


def _count_hits(lowered: str, keywords: Iterable[str]) -> int:
    hits = 0
    for keyword in keywords:
        keyword = keyword.strip().lower()
        if keyword and re.search(r"(?<!\w)" + re.escape(keyword), lowered):
            hits += 1
    return hits


def is_income(text: str, profile_kind: ProfileKind = ProfileKind.PERSONAL) -> bool:
    """True when an income keyword or a receiving pattern shows up"""
    lowered = (text or "").lower()
    if any(keyword in lowered for keyword in income_keywords(profile_kind)):
        return True
    return any(pattern.search(lowered) for pattern in INCOME_PATTERNS)


def detect_context(
    text: str,
    extra_business: Iterable[str] = (),
    extra_personal: Iterable[str] = (),
) -> DetectedContext:
    """Whichever keyword list has strictly more hits; ties are UNKNOWN"""
    lowered = (text or "").lower()
    business = _count_hits(lowered, list(BUSINESS_KEYWORDS) + list(extra_business))
    personal = _count_hits(lowered, list(PERSONAL_KEYWORDS) + list(extra_personal))
    if business > personal:
        return DetectedContext.BUSINESS
    if personal > business:
        return DetectedContext.PERSONAL
    return DetectedContext.UNKNOWN


def detect_expense_type(text: str) -> ExpenseType:
    lowered = (text or "").lower()
    fixed = _count_hits(lowered, FIXED_EXPENSE_KEYWORDS)
    variable = _count_hits(lowered, VARIABLE_EXPENSE_KEYWORDS)
    if fixed > variable:
        return ExpenseType.FIXED
    if variable > fixed:
        return ExpenseType.VARIABLE
    return ExpenseType.UNKNOWN


def keyword_classification(
    text: str,
    profile_kind: ProfileKind,
    error_kind: Optional[ErrorKind] = None,
    extra_business: List[str] = None,
    extra_personal: List[str] = None,
) -> Classification:
    """
    Best-effort FAILED classification built only from keywords.

    Personal profiles are always PERSONAL. Business profiles take the
    detector verdict and keep business_context as None when it is UNKNOWN,
    so callers can tell "no usable context" apart from a real guess.
    """
    nature = Nature.INCOME if is_income(text, profile_kind) else Nature.EXPENSE
    hint = extract_hint(text)

    if profile_kind == ProfileKind.PERSONAL:
        context: Optional[BusinessContext] = BusinessContext.PERSONAL
    else:
        detected = detect_context(text, extra_business or [], extra_personal or [])
        context = None if detected == DetectedContext.UNKNOWN else BusinessContext(detected.value)

    category = guess_category(text, profile_kind, nature, context or BusinessContext.PERSONAL)

    return Classification(
        nature=nature,
        business_context=context,
        category=category,
        origin=hint.origin,
        confidence=0.0,
        outcome=Outcome.FAILED,
        error_kind=error_kind,
        hint=hint,
    )
