"""Unit tests for multi-transaction splitting"""

from datetime import date
from decimal import Decimal
from finia_gateway.domain.splitter import format_batch_summary, looks_multiple, split
from finia_gateway.domain.models import TransactionCandidate


TODAY = date(2024, 6, 15)


def _candidate(description: str, amount: str) -> TransactionCandidate:
    return TransactionCandidate(
        raw_text=f"{description} R$ {amount}",
        description=description,
        amount=Decimal(amount),
        date=TODAY,
    )


def test_looks_multiple():
    """Test detection of several lines or several currency values"""
    assert looks_multiple("Mercado R$ 100\nUber R$ 35") is True
    assert looks_multiple("Mercado R$ 100 e Uber R$ 35") is True
    assert looks_multiple("Mercado R$ 100") is False
    assert looks_multiple("Mercado R$ 100\n\n  ") is False
    assert looks_multiple("") is False
    assert looks_multiple(None) is False


def test_split_lines():
    """Test one candidate per line"""
    candidates = split("Mercado R$ 100\nUber R$ 35", TODAY)

    assert [c.amount for c in candidates] == [Decimal("100.00"), Decimal("35.00")]
    assert [c.description for c in candidates] == ["Mercado", "Uber"]


def test_split_windows_line_endings():
    """Test CRLF separated lines"""
    candidates = split("Mercado R$ 100\r\nUber R$ 35\r\n", TODAY)

    assert len(candidates) == 2


def test_split_inline():
    """Test several description/amount pairs on a single line"""
    candidates = split("Mercado R$ 100 e Uber R$ 35", TODAY)

    assert [c.amount for c in candidates] == [Decimal("100.00"), Decimal("35.00")]
    assert [c.description for c in candidates] == ["Mercado", "Uber"]


def test_split_inline_dates_stay_with_their_amount():
    """Test a date after an amount belongs to that transaction"""
    candidates = split("Mercado R$ 100 12/04 e Uber R$ 35 13/04", TODAY)

    assert [c.description for c in candidates] == ["Mercado", "Uber"]
    assert [c.date for c in candidates] == [date(2024, 4, 12), date(2024, 4, 13)]


def test_split_sentences():
    """Test amount-first sentences are split on periods"""
    candidates = split("R$ 50 no almoço. R$ 30 no táxi.", TODAY)

    assert [c.amount for c in candidates] == [Decimal("50.00"), Decimal("30.00")]
    assert [c.description for c in candidates] == ["no almoço", "no táxi"]


def test_split_sentences_when_inline_spans_fail():
    """Test sentences are tried when every inline span is invalid"""
    candidates = split("Mercado R$ 0 e Uber R$ 0. R$ 12 na padaria.", TODAY)

    assert len(candidates) == 1
    assert candidates[0].amount == Decimal("12.00")
    assert candidates[0].description == "na padaria"


def test_split_drops_invalid_lines():
    """Test lines that fail validation are dropped"""
    candidates = split("Mercado R$ 100\nobrigado!", TODAY)

    assert len(candidates) == 1
    assert candidates[0].description == "Mercado"


def test_split_nothing_valid():
    """Test an empty list when no segment validates"""
    assert split("oi\ntudo bem?", TODAY) == []
    assert split("", TODAY) == []


def test_split_single_message():
    """Test a single transaction yields exactly what validate produces"""
    candidates = split("Almoço com cliente R$ 50", TODAY)

    assert len(candidates) == 1
    assert candidates[0].amount == Decimal("50.00")
    assert candidates[0].description == "Almoço com cliente"


def test_split_keeps_dates_per_line():
    """Test each line keeps its own date"""
    candidates = split("Mercado R$ 100 10/06\nUber R$ 35 11/06", TODAY)

    assert [c.date for c in candidates] == [date(2024, 6, 10), date(2024, 6, 11)]


def test_format_batch_summary():
    """Test the summary lists count, total and items"""
    summary = format_batch_summary([_candidate("Mercado", "100"), _candidate("Uber", "35")], [])

    assert summary.splitlines() == [
        "✅ 2 transações registradas!",
        "💰 Total: R$ 135,00",
        "",
        "• Mercado: R$ 100,00",
        "• Uber: R$ 35,00",
    ]


def test_format_batch_summary_truncates():
    """Test only the first five items are listed"""
    recorded = [_candidate(f"Item {i}", "10") for i in range(7)]

    summary = format_batch_summary(recorded, [])

    assert "✅ 7 transações registradas!" in summary
    assert "💰 Total: R$ 70,00" in summary
    assert "• Item 4: R$ 10,00" in summary
    assert "Item 5" not in summary
    assert "...e mais 2" in summary


def test_format_batch_summary_skipped():
    """Test skipped items are listed separately"""
    summary = format_batch_summary([_candidate("Mercado", "100")], [_candidate("Pix", "20")])

    assert "⚠️ Não registrei (envie separadamente):" in summary
    assert summary.endswith("• Pix: R$ 20,00")
    assert "💰 Total: R$ 100,00" in summary
