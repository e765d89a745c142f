"""Input validation: is this message a well-formed transaction?"""

from datetime import date
from decimal import Decimal
from typing import Optional

from finia_gateway.domain.extractor import extract_amount, extract_date, strip_amount_and_date
from finia_gateway.domain.models import ValidationResult


EMPTY_MESSAGE = "empty message"
AMOUNT_NOT_FOUND = "amount not found, include a currency value"
DESCRIPTION_NOT_FOUND = "description not found"

_USER_FACING_ERRORS = {
    EMPTY_MESSAGE: "Mensagem vazia.",
    AMOUNT_NOT_FOUND: "Valor monetário não encontrado. Por favor, inclua um valor com R$.",
    DESCRIPTION_NOT_FOUND: "Descrição não encontrada. Por favor, informe o que está registrando.",
}


def validate(message: Optional[str], today: Optional[date] = None) -> ValidationResult:
    """
    Validate a message and extract description, amount and date.

    Never raises: every input, including None and text without digits,
    produces a ValidationResult. On failure `description` carries the raw
    (trimmed) message and `error` one of the module-level error strings.
    """
    text = (message or "").strip()
    today = today or date.today()

    if not text:
        return ValidationResult(
            valid=False,
            raw_text="",
            description="",
            amount=Decimal("0"),
            date=today,
            error=EMPTY_MESSAGE,
        )

    amount = extract_amount(text)
    if amount == 0:
        return ValidationResult(
            valid=False,
            raw_text=text,
            description=text,
            amount=Decimal("0"),
            date=today,
            error=AMOUNT_NOT_FOUND,
        )

    when = extract_date(text, today)
    description = strip_amount_and_date(text)
    if not description:
        return ValidationResult(
            valid=False,
            raw_text=text,
            description=text,
            amount=amount,
            date=when,
            error=DESCRIPTION_NOT_FOUND,
        )

    return ValidationResult(
        valid=True,
        raw_text=text,
        description=description,
        amount=amount,
        date=when,
    )


def format_validation_error(result: ValidationResult) -> str:
    """Friendly reply explaining the expected message format"""
    reason = _USER_FACING_ERRORS.get(result.error or "", "Formato inválido.")
    return (
        f"❌ {reason}\n\n"
        '📝 Por favor, use o formato: "Descrição R$ Valor [DD/MM]"\n\n'
        "Exemplos:\n"
        '✅ "Almoço com cliente R$ 50"\n'
        '✅ "Recebi R$ 1000 do cliente ABC"\n'
        '✅ "Compra supermercado R$ 230,50 12/04"'
    )
