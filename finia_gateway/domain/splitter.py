"""Split one message into several transaction candidates"""

import re
from datetime import date
from decimal import Decimal
from typing import List, Optional

from finia_gateway.domain.models import TransactionCandidate
from finia_gateway.domain.validator import validate
from finia_gateway.utils.formatting import format_currency


CURRENCY_OCCURRENCE = re.compile(r"R\$\s*\d+", re.IGNORECASE)

_AMOUNT = r"\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?|\d+(?:[.,]\d{1,2})?"
_DATE = r"\d{1,2}[/-]\d{1,2}(?:[/-](?:\d{4}|\d{2}))?(?![\d/])"

# "<description> R$ <amount> [DD/MM]" repeated on a single line; a date
# right after the amount belongs to that span, not the next one
INLINE_TRANSACTION = re.compile(r"(.+?)R\$\s*(" + _AMOUNT + r")(?:\s+" + _DATE + r")?", re.IGNORECASE)

SENTENCE_END = re.compile(r"\.(?=\s|$)")
LEADING_CONNECTOR = re.compile(r"^(?:[,;]|\be\b|\s)+", re.IGNORECASE)

SUMMARY_LIMIT = 5


def _lines(message: str) -> List[str]:
    normalized = message.replace("\r\n", "\n")
    return [line.strip() for line in normalized.split("\n") if line.strip()]


def looks_multiple(message: Optional[str]) -> bool:
    """More than one non-blank line, or more than one "R$ <n>" occurrence"""
    if not message:
        return False
    if len(_lines(message)) > 1:
        return True
    return len(CURRENCY_OCCURRENCE.findall(message)) > 1


def _valid_candidates(segments: List[str], today: Optional[date]) -> List[TransactionCandidate]:
    candidates = []
    for segment in segments:
        result = validate(segment, today)
        if result.valid:
            candidates.append(result.to_candidate())
    return candidates


def split(message: Optional[str], today: Optional[date] = None) -> List[TransactionCandidate]:
    """
    Break a message into valid transaction candidates.

    Strategies, in order:
    1. one candidate per non-blank line
    2. one candidate per "description R$ amount" span on a single line
    3. one candidate per sentence containing "R$"

    Segments that fail validation are dropped silently. A message that
    doesn't look multiple yields what validate() alone would produce.
    """
    if not looks_multiple(message):
        result = validate(message, today)
        return [result.to_candidate()] if result.valid else []

    lines = _lines(message)
    if len(lines) > 1:
        return _valid_candidates(lines, today)

    spans = []
    for match in INLINE_TRANSACTION.finditer(message):
        segment = LEADING_CONNECTOR.sub("", match.group(0)).strip()
        if segment:
            spans.append(segment)
    if len(spans) > 1:
        candidates = _valid_candidates(spans, today)
        if candidates:
            return candidates

    sentences = [s.strip() for s in SENTENCE_END.split(message) if "R$" in s.upper()]
    return _valid_candidates(sentences, today)


def format_batch_summary(recorded: List[TransactionCandidate], skipped: List[TransactionCandidate]) -> str:
    """Reply summarizing a multi-transaction message"""
    total = sum((c.amount for c in recorded), Decimal("0"))
    lines = [f"✅ {len(recorded)} transações registradas!", f"💰 Total: {format_currency(total)}", ""]

    for candidate in recorded[:SUMMARY_LIMIT]:
        lines.append(f"• {candidate.description}: {format_currency(candidate.amount)}")
    if len(recorded) > SUMMARY_LIMIT:
        lines.append(f"...e mais {len(recorded) - SUMMARY_LIMIT}")

    if skipped:
        lines.append("")
        lines.append("⚠️ Não registrei (envie separadamente):")
        for candidate in skipped:
            lines.append(f"• {candidate.description}: {format_currency(candidate.amount)}")

    return "\n".join(lines).strip()
