"""
Onboarding flow for the "onboarding" topic.

Personal profiles: name, expense example, income example, categories,
learning mode. Business individuals additionally describe the business,
give business and personal examples, may customize business and/or
personal categories and list keywords for each context.
"""

import logging
from typing import Callable, Dict, List, Optional, Protocol

from finia_gateway.domain.categories import (
    Category,
    default_categories,
    custom_categories,
    parse_choice,
)
from finia_gateway.domain.exceptions import CorruptedStateError
from finia_gateway.domain.messages import is_affirmative, is_negative
from finia_gateway.domain.models import BusinessContext, LearningMode, UserPreferences, UserProfile
from finia_gateway.domain.states import (
    ONBOARDING_TOPIC,
    OnboardingState,
    OnboardingStep,
    decode_onboarding,
    encode_state,
)


logger = logging.getLogger(__name__)

LEARNING_MODES = [LearningMode.ASSISTED, LearningMode.AUTOMATIC, LearningMode.HYBRID]

LEARNING_MODE_LABELS = {
    LearningMode.ASSISTED: "Assistido",
    LearningMode.AUTOMATIC: "Automático",
    LearningMode.HYBRID: "Híbrido",
}

CATEGORY_SCOPES = ["business", "personal", "both"]

WELCOME = (
    "🌟 *Vamos personalizar seu assistente financeiro!* 🌟\n\n"
    "Você já completou o cadastro no site, agora vamos ajustar alguns detalhes.\n\n"
    "Como você gostaria de ser chamado(a)?"
)
WELCOME_BUSINESS_NOTE = (
    "\n\nComo empreendedor(a), vamos configurar tanto suas finanças pessoais quanto as da empresa."
)

LEARNING_MODE_PROMPT = (
    "Como você prefere que o assistente aprenda com você?\n\n"
    "1️⃣ *Modo Assistido* - Pergunta antes de cada registro\n"
    "2️⃣ *Modo Automático* - Registra direto e aprende com as correções\n"
    "3️⃣ *Modo Híbrido* - Pergunta apenas quando não tem certeza\n\n"
    "Responda com o número da sua preferência."
)

CATEGORY_SCOPE_PROMPT = (
    "Quais categorias você quer personalizar?\n\n"
    "1. Empresariais (PJ)\n"
    "2. Pessoais (PF)\n"
    "3. Ambas\n\n"
    "Responda com 1, 2 ou 3."
)


class UserDirectory(Protocol):
    def update_user(self, user_id: int, *, name: Optional[str] = None, onboarding_complete: Optional[bool] = None) -> None:
        ...


class CategoryWriter(Protocol):
    def replace_categories(self, user_id: int, categories: List[Category]) -> None:
        ...


class PreferenceWriter(Protocol):
    def save_preferences(self, user_id: int, preferences: UserPreferences) -> None:
        ...


class StateStore(Protocol):
    def get_state(self, user_id: int, topic: str):
        ...

    def set_state(self, user_id: int, topic: str, payload: Dict) -> None:
        ...

    def clear_state(self, user_id: int, topic: str) -> None:
        ...


def _names(categories: List[Category]) -> str:
    return ", ".join(c.name for c in categories)


def _split_words(text: str) -> List[str]:
    return [word.strip() for word in (text or "").split(",") if word.strip()]


class OnboardingFlow:
    """Step-by-step setup run until the user's onboarding is complete"""

    def __init__(
        self,
        states: StateStore,
        users: UserDirectory,
        categories: CategoryWriter,
        preferences: PreferenceWriter,
    ):
        self.states = states
        self.users = users
        self.categories = categories
        self.preferences = preferences

    def begin(self, user: UserProfile) -> str:
        """Store a fresh state at the name step and return the welcome message"""
        self._save(user, OnboardingState())
        if user.is_business:
            return WELCOME + WELCOME_BUSINESS_NOTE
        return WELCOME

    def handle(self, user: UserProfile, text: str) -> str:
        stored = self.states.get_state(user.id, ONBOARDING_TOPIC)
        if stored is None:
            return self.begin(user)

        try:
            state = decode_onboarding(stored.payload)
        except CorruptedStateError as e:
            logger.warning(f"Restarting onboarding after corrupted state: {e}", extra={"user_id": user.id})
            self.states.clear_state(user.id, ONBOARDING_TOPIC)
            return self.begin(user)

        answer = (text or "").strip()
        handlers: Dict[OnboardingStep, Callable[[UserProfile, OnboardingState, str], str]] = {
            OnboardingStep.NAME: self._on_name,
            OnboardingStep.BUSINESS_DESCRIPTION: self._on_business_description,
            OnboardingStep.EXPENSE_EXAMPLE: self._on_example,
            OnboardingStep.INCOME_EXAMPLE: self._on_example,
            OnboardingStep.BUSINESS_EXPENSE_EXAMPLE: self._on_example,
            OnboardingStep.BUSINESS_INCOME_EXAMPLE: self._on_example,
            OnboardingStep.PERSONAL_EXPENSE_EXAMPLE: self._on_example,
            OnboardingStep.CATEGORY_CONFIRMATION: self._on_category_confirmation,
            OnboardingStep.CATEGORY_SCOPE: self._on_category_scope,
            OnboardingStep.CUSTOM_CATEGORIES: self._on_custom_categories,
            OnboardingStep.CUSTOM_BUSINESS_CATEGORIES: self._on_custom_categories,
            OnboardingStep.CUSTOM_PERSONAL_CATEGORIES: self._on_custom_categories,
            OnboardingStep.BUSINESS_KEYWORDS: self._on_keywords,
            OnboardingStep.PERSONAL_KEYWORDS: self._on_keywords,
            OnboardingStep.LEARNING_MODE: self._on_learning_mode,
        }
        return handlers[state.step](user, state, answer)

    def _save(self, user: UserProfile, state: OnboardingState) -> None:
        self.states.set_state(user.id, ONBOARDING_TOPIC, encode_state(state))

    def _advance(self, user: UserProfile, state: OnboardingState, step: OnboardingStep, reply: str) -> str:
        state.step = step
        self._save(user, state)
        return reply

    def _on_name(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        if not answer:
            return "Por favor, me diga como você gostaria de ser chamado(a)."
        state.name = answer
        self.users.update_user(user.id, name=answer)

        if user.is_business:
            return self._advance(
                user,
                state,
                OnboardingStep.BUSINESS_DESCRIPTION,
                f"Prazer, {answer}! 😊\n\nConte em poucas palavras: qual é o seu negócio?",
            )
        return self._advance(
            user,
            state,
            OnboardingStep.EXPENSE_EXAMPLE,
            f"Prazer, {answer}! 😊\n\n"
            "Me mande um exemplo de *gasto* como você costuma escrever.\n"
            'Ex: "Almoço R$ 35"',
        )

    def _on_business_description(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        if not answer:
            return "Por favor, descreva rapidamente o seu negócio."
        state.business_description = answer
        return self._advance(
            user,
            state,
            OnboardingStep.BUSINESS_EXPENSE_EXAMPLE,
            "Ótimo! Agora um exemplo de *gasto da empresa*.\n"
            'Ex: "Anúncio Instagram R$ 150"',
        )

    def _on_example(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        if not answer:
            return "Por favor, envie um exemplo para eu aprender com você."
        state.examples[state.step.value] = answer

        if state.step == OnboardingStep.EXPENSE_EXAMPLE:
            return self._advance(
                user,
                state,
                OnboardingStep.INCOME_EXAMPLE,
                'Agora um exemplo de *ganho*.\nEx: "Salário R$ 3000"',
            )
        if state.step == OnboardingStep.BUSINESS_EXPENSE_EXAMPLE:
            return self._advance(
                user,
                state,
                OnboardingStep.BUSINESS_INCOME_EXAMPLE,
                'Agora um exemplo de *ganho da empresa*.\nEx: "Recebi R$ 1000 do cliente ABC"',
            )
        if state.step == OnboardingStep.BUSINESS_INCOME_EXAMPLE:
            return self._advance(
                user,
                state,
                OnboardingStep.PERSONAL_EXPENSE_EXAMPLE,
                'E um exemplo de *gasto pessoal*.\nEx: "Mercado R$ 200"',
            )
        return self._advance(
            user,
            state,
            OnboardingStep.CATEGORY_CONFIRMATION,
            self._category_suggestion(user),
        )

    def _category_suggestion(self, user: UserProfile) -> str:
        if user.is_business:
            business = default_categories(user.profile_kind, BusinessContext.BUSINESS)
            personal = default_categories(user.profile_kind, BusinessContext.PERSONAL)
            listing = f"🏢 *Empresariais:* {_names(business)}\n\n🏠 *Pessoais:* {_names(personal)}"
        else:
            listing = f"📂 {_names(default_categories(user.profile_kind))}"
        return (
            "Estas são as categorias sugeridas para você:\n\n"
            f"{listing}\n\n"
            "Quer usar essas categorias? Responda *sim* ou *não*."
        )

    def _on_category_confirmation(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        if is_affirmative(answer):
            state.use_default_categories = True
            if user.is_business:
                return self._advance(user, state, OnboardingStep.BUSINESS_KEYWORDS, self._business_keywords_prompt())
            return self._advance(user, state, OnboardingStep.LEARNING_MODE, f"Ótimo! {LEARNING_MODE_PROMPT}")

        if is_negative(answer):
            state.use_default_categories = False
            if user.is_business:
                return self._advance(user, state, OnboardingStep.CATEGORY_SCOPE, CATEGORY_SCOPE_PROMPT)
            return self._advance(
                user,
                state,
                OnboardingStep.CUSTOM_CATEGORIES,
                "Sem problemas! 📝 Digite suas categorias preferidas, separadas por vírgula.\n"
                'Ex: "Mercado, Restaurantes, Transporte, Moradia, Lazer"',
            )

        return 'Não entendi. Responda "sim" para usar as categorias sugeridas ou "não" para personalizá-las.'

    def _on_category_scope(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        index = parse_choice(answer, len(CATEGORY_SCOPES))
        if index is None:
            return "Por favor, responda com 1, 2 ou 3."
        state.category_scope = CATEGORY_SCOPES[index]
        if state.category_scope == "personal":
            return self._advance(user, state, OnboardingStep.CUSTOM_PERSONAL_CATEGORIES, self._personal_categories_prompt())
        return self._advance(user, state, OnboardingStep.CUSTOM_BUSINESS_CATEGORIES, self._business_categories_prompt())

    def _business_categories_prompt(self) -> str:
        return (
            "📝 Digite suas categorias *empresariais (PJ)*, separadas por vírgula.\n"
            'Ex: "Marketing, Materiais, Software, Impostos, Vendas"'
        )

    def _personal_categories_prompt(self) -> str:
        return (
            "📝 Digite suas categorias *pessoais (PF)*, separadas por vírgula.\n"
            'Ex: "Alimentação, Moradia, Transporte, Lazer, Salário"'
        )

    def _business_keywords_prompt(self) -> str:
        return (
            "🔍 Quais palavras você associa com *gastos da empresa*?\n"
            "Digite algumas separadas por vírgula.\n\n"
            "Ex: cliente, fornecedor, escritório, material"
        )

    def _on_custom_categories(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        names = _split_words(answer)
        if not names:
            return 'Por favor, digite pelo menos uma categoria, separada por vírgula.\nEx: "Alimentação, Transporte, Lazer"'

        if state.step == OnboardingStep.CUSTOM_CATEGORIES:
            state.personal_categories = names
            return self._advance(
                user, state, OnboardingStep.LEARNING_MODE, f"✅ Categorias salvas!\n\n{LEARNING_MODE_PROMPT}"
            )

        if state.step == OnboardingStep.CUSTOM_BUSINESS_CATEGORIES:
            state.business_categories = names
            if state.category_scope == "both":
                return self._advance(
                    user,
                    state,
                    OnboardingStep.CUSTOM_PERSONAL_CATEGORIES,
                    f"✅ Categorias empresariais salvas!\n\n{self._personal_categories_prompt()}",
                )
        else:
            state.personal_categories = names

        return self._advance(
            user,
            state,
            OnboardingStep.BUSINESS_KEYWORDS,
            f"✅ Categorias salvas!\n\n{self._business_keywords_prompt()}",
        )

    def _on_keywords(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        words = _split_words(answer)
        if not words:
            return "Por favor, digite ao menos uma palavra, separando-as por vírgula."

        if state.step == OnboardingStep.BUSINESS_KEYWORDS:
            state.business_keywords = words
            return self._advance(
                user,
                state,
                OnboardingStep.PERSONAL_KEYWORDS,
                "✅ Palavras-chave empresariais salvas!\n\n"
                "🔍 E quais palavras você associa com *gastos pessoais*?\n\n"
                "Ex: casa, família, mercado, lazer",
            )

        state.personal_keywords = words
        return self._advance(
            user,
            state,
            OnboardingStep.LEARNING_MODE,
            f"✅ Palavras-chave pessoais salvas!\n\nPor fim: {LEARNING_MODE_PROMPT}",
        )

    def _on_learning_mode(self, user: UserProfile, state: OnboardingState, answer: str) -> str:
        index = parse_choice(answer, len(LEARNING_MODES))
        if index is None:
            return "Por favor, escolha uma opção válida (1, 2 ou 3) para o modo de aprendizado."
        mode = LEARNING_MODES[index]

        categories = self._chosen_categories(user, state)
        self.categories.replace_categories(user.id, categories)
        self.preferences.save_preferences(
            user.id,
            UserPreferences(
                learning_mode=mode,
                business_keywords=state.business_keywords,
                personal_keywords=state.personal_keywords,
                examples=self._examples(state),
            ),
        )
        self.states.clear_state(user.id, ONBOARDING_TOPIC)
        self.users.update_user(user.id, onboarding_complete=True)
        logger.info("Onboarding completed", extra={"user_id": user.id, "learning_mode": mode.value})

        return (
            "🎉 *Configuração concluída!* 🎉\n\n"
            f"Olá, {state.name or user.name or ''}! Seu assistente financeiro está pronto.\n\n"
            f"*Modo de aprendizado:* {LEARNING_MODE_LABELS[mode]}\n"
            f"*Categorias configuradas:* {len(categories)}\n\n"
            'Agora é só mandar suas transações, por exemplo "Almoço R$ 35".'
        )

    def _examples(self, state: OnboardingState) -> Dict[str, str]:
        examples = dict(state.examples)
        if state.business_description:
            examples["business_description"] = state.business_description
        return examples

    def _chosen_categories(self, user: UserProfile, state: OnboardingState) -> List[Category]:
        if not user.is_business:
            if state.personal_categories:
                return custom_categories(state.personal_categories, BusinessContext.PERSONAL)
            return default_categories(user.profile_kind)

        business = (
            custom_categories(state.business_categories, BusinessContext.BUSINESS)
            if state.business_categories
            else default_categories(user.profile_kind, BusinessContext.BUSINESS)
        )
        personal = (
            custom_categories(state.personal_categories, BusinessContext.PERSONAL)
            if state.personal_categories
            else default_categories(user.profile_kind, BusinessContext.PERSONAL)
        )
        return business + personal
