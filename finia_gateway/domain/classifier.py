"""
AI transaction classifier.

Builds the prompts, calls a chat-completion collaborator once and turns its
JSON reply into a Classification. Every failure degrades to the keyword
detector; classify() never raises.
"""

import json
import logging
import re
import time
from typing import Any, Dict, Optional, Protocol

from finia_gateway.domain.categories import default_categories, guess_category
from finia_gateway.domain.detector import keyword_classification
from finia_gateway.domain.exceptions import ClassifierAPIError
from finia_gateway.domain.extractor import extract_hint
from finia_gateway.domain.models import (
    BusinessContext,
    Classification,
    ErrorKind,
    Nature,
    Outcome,
    ProfileKind,
    UNSPECIFIED_ORIGIN,
    UserPreferences,
    UserProfile,
)
from finia_gateway.domain.vocabulary import (
    BUSINESS_EXPENSE_KEYWORDS,
    BUSINESS_INCOME_KEYWORDS,
    PERSONAL_EXPENSE_KEYWORDS,
    PERSONAL_INCOME_KEYWORDS,
)
from finia_gateway.infrastructure.observability.metrics import record_classification


logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.8

CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

_NATURE_VALUES = {
    "EXPENSE": Nature.EXPENSE,
    "GASTO": Nature.EXPENSE,
    "DESPESA": Nature.EXPENSE,
    "INCOME": Nature.INCOME,
    "GANHO": Nature.INCOME,
    "RECEITA": Nature.INCOME,
}

_CONTEXT_VALUES = {
    "BUSINESS": BusinessContext.BUSINESS,
    "PJ": BusinessContext.BUSINESS,
    "PERSONAL": BusinessContext.PERSONAL,
    "PF": BusinessContext.PERSONAL,
}


class CompletionClient(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        ...


class ReplyParseError(ValueError):
    """Classifier reply could not be turned into a classification"""


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def parse_reply(raw: str) -> Dict[str, Any]:
    """
    Decode the model reply, tolerating ```json fences and chatter around the object.

    Returns a dict with nature, business_context, category, origin and
    confidence. Accepts both the English keys asked for in the prompt and
    the Portuguese ones (natureza/tipo/categoria/origem/probabilidade).
    """
    cleaned = CODE_FENCE.sub("", raw or "").strip()
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end < start:
        raise ReplyParseError("no JSON object in classifier reply")

    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as e:
        raise ReplyParseError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ReplyParseError("classifier reply is not an object")

    nature = _NATURE_VALUES.get(str(_first(data, "nature", "natureza") or "").strip().upper())
    if nature is None:
        raise ReplyParseError("missing or unknown nature")

    context_raw = str(_first(data, "businessContext", "business_context", "tipo") or "").strip().upper()
    business_context = _CONTEXT_VALUES.get(context_raw)

    confidence_raw = _first(data, "confidence", "probabilidade")
    try:
        confidence = float(confidence_raw)
    except (TypeError, ValueError) as e:
        raise ReplyParseError("missing or non-numeric confidence") from e
    if confidence != confidence:
        raise ReplyParseError("confidence is NaN")
    if confidence > 1:
        confidence = confidence / 100
    confidence = min(max(confidence, 0.0), 1.0)

    category = str(_first(data, "category", "categoria") or "").strip()
    origin = str(_first(data, "origin", "origem") or "").strip() or UNSPECIFIED_ORIGIN

    return {
        "nature": nature,
        "business_context": business_context,
        "category": category,
        "origin": origin,
        "confidence": confidence,
    }


class TransactionClassifier:
    """Classifies messages with a chat-completion model and a keyword fallback"""

    def __init__(self, client: CompletionClient, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD):
        self.client = client
        self.threshold = threshold

    def build_system_prompt(self, profile: UserProfile, preferences: Optional[UserPreferences] = None) -> str:
        preferences = preferences or UserPreferences()
        business_expense = BUSINESS_EXPENSE_KEYWORDS + preferences.business_keywords
        personal_expense = PERSONAL_EXPENSE_KEYWORDS + preferences.personal_keywords
        categories = default_categories(profile.profile_kind)

        def names(context: BusinessContext, nature: Nature) -> str:
            return ", ".join(c.name for c in categories if c.business_context == context and c.nature == nature)

        lines = [
            "Você é um assistente financeiro que classifica transações financeiras, "
            "distinguindo GASTOS (saída de dinheiro) de GANHOS (entrada de dinheiro).",
            "",
            "INSTRUÇÕES:",
            '1. Defina "nature": "EXPENSE" para gasto ou "INCOME" para ganho.',
            '2. Defina "businessContext": "BUSINESS" (empresarial/PJ) ou "PERSONAL" (pessoal/PF).',
            '3. Defina "category" com uma categoria específica, de preferência da lista abaixo.',
            '4. Defina "origin": para gastos, onde ou de quem foi comprado; para ganhos, quem pagou.',
            '5. Defina "confidence" entre 0 e 1. Mensagens curtas ou ambíguas (ex: "R$ 200") devem ter confiança abaixo de 0.4.',
            "",
        ]

        if profile.profile_kind == ProfileKind.BUSINESS_INDIVIDUAL:
            lines += [
                "O usuário é empresário individual: separe gastos e ganhos do negócio dos pessoais.",
                f"PALAVRAS-CHAVE DE GASTOS PJ: {', '.join(business_expense)}",
                f"PALAVRAS-CHAVE DE GASTOS PF: {', '.join(personal_expense)}",
                f"PALAVRAS-CHAVE DE GANHOS PJ: {', '.join(BUSINESS_INCOME_KEYWORDS)}",
                f"PALAVRAS-CHAVE DE GANHOS PF: {', '.join(PERSONAL_INCOME_KEYWORDS)}",
                "",
                f"CATEGORIAS DE GASTOS PJ: {names(BusinessContext.BUSINESS, Nature.EXPENSE)}",
                f"CATEGORIAS DE GANHOS PJ: {names(BusinessContext.BUSINESS, Nature.INCOME)}",
            ]
        else:
            lines += [
                'O usuário é pessoa física: use sempre "businessContext": "PERSONAL".',
                f"PALAVRAS-CHAVE DE GASTOS: {', '.join(personal_expense)}",
                f"PALAVRAS-CHAVE DE GANHOS: {', '.join(PERSONAL_INCOME_KEYWORDS)}",
                "",
            ]
        lines += [
            f"CATEGORIAS DE GASTOS PF: {names(BusinessContext.PERSONAL, Nature.EXPENSE)}",
            f"CATEGORIAS DE GANHOS PF: {names(BusinessContext.PERSONAL, Nature.INCOME)}",
            "",
            "Responda APENAS com um objeto JSON, sem texto adicional:",
            '{"nature": "...", "businessContext": "...", "category": "...", "origin": "...", "confidence": 0.0}',
        ]
        return "\n".join(lines)

    def build_user_prompt(self, message: str) -> str:
        return f'Transação a classificar: "{message}"'

    async def classify(
        self,
        message: str,
        profile: UserProfile,
        preferences: Optional[UserPreferences] = None,
    ) -> Classification:
        """Classify one transaction message; one attempt, never raises"""
        preferences = preferences or UserPreferences()
        start_time = time.time()

        try:
            raw = await self.client.complete(
                self.build_system_prompt(profile, preferences),
                self.build_user_prompt(message),
            )
        except ClassifierAPIError as e:
            logger.warning(f"Classifier unavailable, using keyword fallback: {e}")
            return self._fallback(message, profile, preferences, ErrorKind.API_ERROR, start_time)
        except Exception:
            logger.exception("Unexpected classifier client failure, using keyword fallback")
            return self._fallback(message, profile, preferences, ErrorKind.API_ERROR, start_time)

        try:
            parsed = parse_reply(raw)
        except ReplyParseError as e:
            logger.warning(f"Unparseable classifier reply, using keyword fallback: {e}")
            return self._fallback(message, profile, preferences, ErrorKind.PARSE_ERROR, start_time)

        business_context = parsed["business_context"]
        if profile.profile_kind == ProfileKind.PERSONAL or business_context is None:
            # Missing context on a business profile can't be RESOLVED
            if profile.profile_kind == ProfileKind.BUSINESS_INDIVIDUAL:
                parsed["confidence"] = min(parsed["confidence"], self.threshold)
            business_context = BusinessContext.PERSONAL

        category = parsed["category"] or guess_category(
            message, profile.profile_kind, parsed["nature"], business_context
        )

        if parsed["confidence"] <= self.threshold:
            outcome = Outcome.LOW_CONFIDENCE
            hint = extract_hint(message)
        else:
            outcome = Outcome.RESOLVED
            hint = None

        classification = Classification(
            nature=parsed["nature"],
            business_context=business_context,
            category=category,
            origin=parsed["origin"],
            confidence=parsed["confidence"],
            outcome=outcome,
            hint=hint,
        )
        record_classification(classification.outcome.value, time.time() - start_time)
        return classification

    def _fallback(
        self,
        message: str,
        profile: UserProfile,
        preferences: UserPreferences,
        error_kind: ErrorKind,
        start_time: float,
    ) -> Classification:
        classification = keyword_classification(
            message,
            profile.profile_kind,
            error_kind=error_kind,
            extra_business=preferences.business_keywords,
            extra_personal=preferences.personal_keywords,
        )
        record_classification(classification.outcome.value, time.time() - start_time, error_kind.value)
        return classification
