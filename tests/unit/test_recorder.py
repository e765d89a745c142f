"""Unit tests for the transaction recorder and reply templates"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from finia_gateway.domain.exceptions import PersistenceError
from finia_gateway.domain.messages import (
    confirmation_prompt,
    is_affirmative,
    is_negative,
)
from finia_gateway.domain.models import (
    BusinessContext,
    Classification,
    Nature,
    Outcome,
    ProfileKind,
    TransactionCandidate,
    UNSPECIFIED_ORIGIN,
    UserProfile,
)
from finia_gateway.domain.recorder import TransactionRecorder, ledger_handle_for


PERSONAL = UserProfile(
    id=1,
    phone_number="+5511900000001",
    profile_kind=ProfileKind.PERSONAL,
    onboarding_complete=True,
    ledger_handle="sheet-ana",
)
BUSINESS = UserProfile(
    id=2, phone_number="+5511900000002", profile_kind=ProfileKind.BUSINESS_INDIVIDUAL, onboarding_complete=True
)

CANDIDATE = TransactionCandidate(
    raw_text="Almoço com cliente R$ 1.234,56 12/04",
    description="Almoço com cliente",
    amount=Decimal("1234.56"),
    date=date(2024, 4, 12),
)


def _classification(nature=Nature.EXPENSE, context=BusinessContext.BUSINESS, origin="cliente") -> Classification:
    return Classification(
        nature=nature,
        business_context=context,
        category="Alimentação PJ",
        origin=origin,
        confidence=0.95,
        outcome=Outcome.RESOLVED,
    )


def test_ledger_handle_for():
    """Test the user's handle, or a per-user default"""
    assert ledger_handle_for(PERSONAL) == "sheet-ana"
    assert ledger_handle_for(BUSINESS) == "user:2"


async def test_record_appends_and_confirms():
    """Test a record is appended and the reply describes it"""
    ledger = AsyncMock()
    recorder = TransactionRecorder(ledger)

    reply = await recorder.record(_classification(), CANDIDATE, BUSINESS)

    ledger.append_record.assert_awaited_once()
    handle, record = ledger.append_record.await_args.args
    assert handle == "user:2"
    assert record.amount == Decimal("1234.56")
    assert record.business_context == BusinessContext.BUSINESS
    assert record.date == date(2024, 4, 12)

    assert reply.splitlines()[0] == "✅ Despesa registrada (empresarial)!"
    assert "💵 R$ 1.234,56" in reply
    assert "📅 12/04/2024" in reply
    assert "📍 cliente" in reply


async def test_record_income_personal_profile():
    """Test income header and no scope suffix for personal profiles"""
    recorder = TransactionRecorder(AsyncMock())

    reply = await recorder.record(
        _classification(Nature.INCOME, BusinessContext.PERSONAL, UNSPECIFIED_ORIGIN), CANDIDATE, PERSONAL
    )

    assert reply.splitlines()[0] == "💰 Receita registrada!"
    assert "📍" not in reply


async def test_record_missing_context_defaults_to_personal():
    """Test a classification without context is stored as PERSONAL"""
    ledger = AsyncMock()

    await TransactionRecorder(ledger).append(_classification(context=None), CANDIDATE, BUSINESS)

    _, record = ledger.append_record.await_args.args
    assert record.business_context == BusinessContext.PERSONAL


async def test_record_failure_propagates():
    """Test a ledger failure is never reported as success"""
    ledger = AsyncMock()
    ledger.append_record.side_effect = PersistenceError("sheet offline")

    with pytest.raises(PersistenceError):
        await TransactionRecorder(ledger).record(_classification(), CANDIDATE, BUSINESS)


@pytest.mark.parametrize("text", ["sim", "Sim!", " S ", "ok", "1", "Confirmo."])
def test_is_affirmative(text):
    """Test yes-like answers"""
    assert is_affirmative(text)
    assert not is_negative(text)


@pytest.mark.parametrize("text", ["não", "NAO", "n", "2", "errado"])
def test_is_negative(text):
    """Test no-like answers, with or without accents"""
    assert is_negative(text)
    assert not is_affirmative(text)


def test_confirmation_prompt():
    """Test the yes/no prompt lists the parsed fields"""
    prompt = confirmation_prompt(CANDIDATE, _classification(), BUSINESS)

    assert "📝 Almoço com cliente" in prompt
    assert "🏢 Empresarial (PJ)" in prompt
    assert prompt.endswith("Responda *sim* para registrar ou *não* para corrigir.")
    assert "🏢" not in confirmation_prompt(CANDIDATE, _classification(), PERSONAL)
