"""Reply templates and yes/no recognition"""

import unicodedata
from typing import List

from finia_gateway.domain.categories import TypeOption
from finia_gateway.domain.models import (
    BusinessContext,
    Classification,
    Nature,
    TransactionCandidate,
    UNSPECIFIED_ORIGIN,
    UserProfile,
)
from finia_gateway.utils.date_utils import format_date
from finia_gateway.utils.formatting import format_currency


AFFIRMATIVE_WORDS = {"sim", "s", "yes", "y", "1", "ok", "isso", "correto", "confirmo", "certo"}
NEGATIVE_WORDS = {"nao", "n", "no", "2", "errado", "incorreto"}

SAVE_FAILED = "❌ Não consegui salvar sua transação agora. Por favor, tente novamente em instantes."
GENERIC_ERROR = "❌ Desculpe, ocorreu um erro ao processar sua mensagem. Por favor, tente novamente."
NOT_REGISTERED = (
    "Olá! Seu número ainda não está cadastrado. "
    "Faça seu cadastro no site para começar a registrar suas finanças por aqui."
)
START_OVER = "⚠️ Perdi o fio da nossa conversa anterior. Vamos recomeçar! Envie sua transação novamente."
RESTARTED = "🔄 Tudo certo, vamos recomeçar do zero!"
NO_TRANSACTIONS_FOUND = (
    "❌ Não encontrei nenhuma transação válida na sua mensagem.\n\n"
    '📝 Envie uma por linha, no formato "Descrição R$ Valor [DD/MM]".'
)
RESEND_WITH_DETAILS = (
    "🤔 Não consegui entender essa transação.\n\n"
    "Por favor, envie novamente com mais detalhes, por exemplo:\n"
    '"Almoço com cliente R$ 50" ou "Recebi R$ 1000 do cliente ABC".'
)
INVALID_OPTION = "❌ Opção inválida. Responda apenas com o número de uma das opções."
CONFIRM_OR_DENY = "Por favor, responda *sim* para confirmar ou *não* para corrigir."

HELP = (
    "📘 *Como usar*\n\n"
    'Envie suas transações no formato "Descrição R$ Valor [DD/MM]".\n\n'
    "Exemplos:\n"
    '✅ "Almoço com cliente R$ 50"\n'
    '✅ "Recebi R$ 1000 do cliente ABC"\n'
    '✅ "Compra supermercado R$ 230,50 12/04"\n\n'
    "Você pode enviar várias transações de uma vez, uma por linha.\n"
    'Digite "reiniciar" para refazer a configuração inicial.'
)


def _normalize(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", (text or "").strip().lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip(" .!?")


def is_affirmative(text: str) -> bool:
    return _normalize(text) in AFFIRMATIVE_WORDS


def is_negative(text: str) -> bool:
    return _normalize(text) in NEGATIVE_WORDS


def nature_label(nature: Nature) -> str:
    return "Receita" if nature == Nature.INCOME else "Despesa"


def context_label(context: BusinessContext) -> str:
    return "Empresarial (PJ)" if context == BusinessContext.BUSINESS else "Pessoal (PF)"


def confirmation_prompt(candidate: TransactionCandidate, classification: Classification, user: UserProfile) -> str:
    """Ask the user to confirm a classification the assistant isn't sure about"""
    lines = [
        "🤔 Entendi assim, confere?",
        "",
        f"📝 {candidate.description}",
        f"💰 {format_currency(candidate.amount)}",
        f"📅 {format_date(candidate.date)}",
        f"🔖 {nature_label(classification.nature)}",
    ]
    if user.is_business and classification.business_context is not None:
        lines.append(f"🏢 {context_label(classification.business_context)}")
    lines.append(f"📂 {classification.category}")
    lines += ["", "Responda *sim* para registrar ou *não* para corrigir."]
    return "\n".join(lines)


def correction_type_prompt(options: List[TypeOption]) -> str:
    lines = ["Certo! Que tipo de transação é essa?", ""]
    lines += [f"{i}. {option.label}" for i, option in enumerate(options, start=1)]
    lines += ["", "Responda com o número da opção."]
    return "\n".join(lines)


def category_prompt(options: List[str]) -> str:
    lines = ["Qual a categoria?", ""]
    lines += [f"{i}. {name}" for i, name in enumerate(options, start=1)]
    lines += ["", "Responda com o número ou digite o nome de uma nova categoria."]
    return "\n".join(lines)


def recorded_message(candidate: TransactionCandidate, classification: Classification, user: UserProfile) -> str:
    """Confirmation sent after a successful ledger append"""
    if classification.nature == Nature.INCOME:
        header = "💰 Receita registrada!"
    else:
        header = "✅ Despesa registrada!"
    if user.is_business and classification.business_context is not None:
        scope = "empresarial" if classification.business_context == BusinessContext.BUSINESS else "pessoal"
        header = f"{header[:-1]} ({scope})!"

    lines = [
        header,
        "",
        f"📝 {candidate.description}",
        f"💵 {format_currency(candidate.amount)}",
        f"📅 {format_date(candidate.date)}",
        f"📂 {classification.category}",
    ]
    if classification.origin and classification.origin != UNSPECIFIED_ORIGIN:
        lines.append(f"📍 {classification.origin}")
    return "\n".join(lines)
