"""Unit tests for message validation"""

import pytest
from datetime import date
from decimal import Decimal
from finia_gateway.domain.validator import (
    AMOUNT_NOT_FOUND,
    DESCRIPTION_NOT_FOUND,
    EMPTY_MESSAGE,
    format_validation_error,
    validate,
)
from finia_gateway.domain.models import ValidationResult


TODAY = date(2024, 6, 15)


def test_valid_message():
    """Test a well-formed message yields description, amount and date"""
    result = validate("Compra supermercado R$ 230,50 12/04", TODAY)

    assert result.valid is True
    assert result.error is None
    assert result.description == "Compra supermercado"
    assert result.amount == Decimal("230.50")
    assert result.date == date(2024, 4, 12)
    assert result.raw_text == "Compra supermercado R$ 230,50 12/04"


@pytest.mark.parametrize("message", ["", "   ", "\n\t", None])
def test_empty_message(message):
    """Test blank input is rejected as an empty message"""
    result = validate(message, TODAY)

    assert result.valid is False
    assert result.error == EMPTY_MESSAGE
    assert "empty message" in result.error
    assert result.amount == Decimal("0")


def test_amount_not_found_keeps_raw_text():
    """Test a message without a positive amount keeps the raw text as description"""
    result = validate("  Almoço com cliente  ", TODAY)

    assert result.valid is False
    assert result.error == AMOUNT_NOT_FOUND
    assert result.description == "Almoço com cliente"
    assert result.date == TODAY


def test_description_not_found():
    """Test an amount alone is not a transaction"""
    result = validate("R$ 50", TODAY)

    assert result.valid is False
    assert result.error == DESCRIPTION_NOT_FOUND
    assert result.amount == Decimal("50.00")
    assert result.description == "R$ 50"


def test_to_candidate():
    """Test a valid result converts to a transaction candidate"""
    candidate = validate("Uber 35", TODAY).to_candidate()

    assert candidate.description == "Uber"
    assert candidate.amount == Decimal("35.00")
    assert candidate.date == TODAY
    assert candidate.is_valid


@pytest.mark.parametrize(
    "message",
    ["🍕🍕🍕", "R$ R$ R$", "\x00\x01", "١٢٣ café", "////", ",,,...", "R$ -5", "Compra R$ 1234567890123456789012345678"],
)
def test_validate_never_raises(message):
    """Test arbitrary input always produces a result"""
    result = validate(message, TODAY)

    assert isinstance(result, ValidationResult)
    if not result.valid:
        assert result.error in (EMPTY_MESSAGE, AMOUNT_NOT_FOUND, DESCRIPTION_NOT_FOUND)


def test_format_validation_error():
    """Test the user-facing error explains the expected format"""
    reply = format_validation_error(validate("", TODAY))

    assert reply.startswith("❌ Mensagem vazia.")
    assert "Descrição R$ Valor [DD/MM]" in reply
    assert "Almoço com cliente R$ 50" in reply


def test_format_validation_error_amount():
    """Test the missing-amount error asks for an R$ value"""
    reply = format_validation_error(validate("Almoço", TODAY))

    assert "Valor monetário não encontrado" in reply
