"""
Conversation state machine for the "conversation" topic.

IDLE is the absence of a stored state. Every transition reads the stored
payload, computes the next one and writes it back (or deletes it). Ledger
writes always happen before the state is cleared, so a PersistenceError
leaves the pending confirmation/correction untouched.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Protocol

from finia_gateway.domain import messages
from finia_gateway.domain.categories import (
    Category,
    category_options,
    correction_type_options,
    parse_choice,
)
from finia_gateway.domain.classifier import TransactionClassifier
from finia_gateway.domain.exceptions import CorruptedStateError
from finia_gateway.domain.models import (
    Classification,
    LearningMode,
    Outcome,
    StoredState,
    TransactionCandidate,
    UserPreferences,
    UserProfile,
)
from finia_gateway.domain.recorder import TransactionRecorder
from finia_gateway.domain.splitter import format_batch_summary, looks_multiple, split
from finia_gateway.domain.states import (
    CONVERSATION_TOPIC,
    AwaitingConfirmation,
    AwaitingCorrectionCategory,
    AwaitingCorrectionType,
    decode_conversation,
    encode_state,
)
from finia_gateway.domain.validator import format_validation_error, validate


logger = logging.getLogger(__name__)


class StateStore(Protocol):
    def get_state(self, user_id: int, topic: str) -> Optional[StoredState]:
        ...

    def set_state(self, user_id: int, topic: str, payload: Dict[str, Any]) -> None:
        ...

    def clear_state(self, user_id: int, topic: str) -> None:
        ...


class CategoryStore(Protocol):
    def list_categories(self, user_id: int) -> List[Category]:
        ...

    def add_category(self, user_id: int, category: Category) -> None:
        ...


class ConversationStateMachine:
    """Interprets a message as a new transaction or as the answer to a pending question"""

    def __init__(
        self,
        states: StateStore,
        categories: CategoryStore,
        classifier: TransactionClassifier,
        recorder: TransactionRecorder,
    ):
        self.states = states
        self.categories = categories
        self.classifier = classifier
        self.recorder = recorder

    async def handle(self, user: UserProfile, text: str, preferences: Optional[UserPreferences] = None) -> str:
        """Return the reply for one message. Raises PersistenceError when the ledger write fails."""
        preferences = preferences or UserPreferences()
        stored = self.states.get_state(user.id, CONVERSATION_TOPIC)
        if stored is None:
            return await self._handle_new(user, text, preferences)

        try:
            state = decode_conversation(stored.payload)
        except CorruptedStateError as e:
            logger.warning(f"Dropping corrupted conversation state: {e}", extra={"user_id": user.id})
            self.states.clear_state(user.id, CONVERSATION_TOPIC)
            return messages.START_OVER

        if isinstance(state, AwaitingConfirmation):
            return await self._on_confirmation(user, text, state)
        if isinstance(state, AwaitingCorrectionType):
            return self._on_correction_type(user, text, state)
        return await self._on_correction_category(user, text, state)

    # IDLE

    async def _handle_new(self, user: UserProfile, text: str, preferences: UserPreferences) -> str:
        if looks_multiple(text):
            candidates = split(text)
            if not candidates:
                return messages.NO_TRANSACTIONS_FOUND
            if len(candidates) > 1:
                return await self._handle_batch(user, candidates, preferences)
            candidate = candidates[0]
        else:
            result = validate(text)
            if not result.valid:
                return format_validation_error(result)
            candidate = result.to_candidate()

        classification = await self.classifier.classify(candidate.raw_text, user, preferences)
        return await self._route(user, candidate, classification, preferences)

    async def _route(
        self,
        user: UserProfile,
        candidate: TransactionCandidate,
        classification: Classification,
        preferences: UserPreferences,
    ) -> str:
        mode = preferences.learning_mode

        if classification.outcome == Outcome.FAILED:
            if classification.business_context is None:
                return messages.RESEND_WITH_DETAILS
            return self._ask_confirmation(user, candidate, classification)

        if classification.outcome == Outcome.LOW_CONFIDENCE and mode != LearningMode.AUTOMATIC:
            return self._ask_confirmation(user, candidate, classification)

        if classification.outcome == Outcome.RESOLVED and mode == LearningMode.ASSISTED:
            return self._ask_confirmation(user, candidate, classification)

        return await self.recorder.record(classification, candidate, user)

    def _ask_confirmation(self, user: UserProfile, candidate: TransactionCandidate, classification: Classification) -> str:
        state = AwaitingConfirmation(candidate=candidate, classification=classification)
        self.states.set_state(user.id, CONVERSATION_TOPIC, encode_state(state))
        return messages.confirmation_prompt(candidate, classification, user)

    async def _handle_batch(
        self,
        user: UserProfile,
        candidates: List[TransactionCandidate],
        preferences: UserPreferences,
    ) -> str:
        """Record every candidate the classifier (or its fallback) could place; report the rest"""
        recorded: List[TransactionCandidate] = []
        skipped: List[TransactionCandidate] = []

        for candidate in candidates:
            classification = await self.classifier.classify(candidate.raw_text, user, preferences)
            if classification.outcome == Outcome.FAILED and classification.business_context is None:
                skipped.append(candidate)
                continue
            await self.recorder.append(classification, candidate, user)
            recorded.append(candidate)

        if not recorded:
            return messages.RESEND_WITH_DETAILS
        return format_batch_summary(recorded, skipped)

    # AWAITING_CONFIRMATION

    async def _on_confirmation(self, user: UserProfile, text: str, state: AwaitingConfirmation) -> str:
        if messages.is_affirmative(text):
            reply = await self.recorder.record(state.classification, state.candidate, user)
            self.states.clear_state(user.id, CONVERSATION_TOPIC)
            return reply

        if messages.is_negative(text):
            next_state = AwaitingCorrectionType(candidate=state.candidate, classification=state.classification)
            self.states.set_state(user.id, CONVERSATION_TOPIC, encode_state(next_state))
            return messages.correction_type_prompt(correction_type_options(user.profile_kind))

        return messages.CONFIRM_OR_DENY

    # AWAITING_CORRECTION_TYPE

    def _on_correction_type(self, user: UserProfile, text: str, state: AwaitingCorrectionType) -> str:
        options = correction_type_options(user.profile_kind)
        index = parse_choice(text, len(options))
        if index is None:
            return f"{messages.INVALID_OPTION}\n\n{messages.correction_type_prompt(options)}"

        choice = options[index]
        corrected = replace(
            state.classification,
            nature=choice.nature,
            business_context=choice.business_context,
        )
        names = category_options(
            user.profile_kind,
            choice.nature,
            choice.business_context,
            saved=self.categories.list_categories(user.id),
        )
        next_state = AwaitingCorrectionCategory(
            candidate=state.candidate,
            classification=corrected,
            options=names,
        )
        self.states.set_state(user.id, CONVERSATION_TOPIC, encode_state(next_state))
        return messages.category_prompt(names)

    # AWAITING_CORRECTION_CATEGORY

    async def _on_correction_category(self, user: UserProfile, text: str, state: AwaitingCorrectionCategory) -> str:
        answer = (text or "").strip()
        index = parse_choice(answer, len(state.options))

        if index is not None:
            category = state.options[index]
        elif not answer or answer.isdigit():
            return f"{messages.INVALID_OPTION}\n\n{messages.category_prompt(state.options)}"
        else:
            category = answer

        corrected = replace(
            state.classification,
            category=category,
            confidence=1.0,
            outcome=Outcome.RESOLVED,
            error_kind=None,
        )
        reply = await self.recorder.record(corrected, state.candidate, user)

        if index is None and category.lower() not in [name.lower() for name in state.options]:
            self.categories.add_category(
                user.id,
                Category(category, corrected.business_context, corrected.nature),
            )
        self.states.clear_state(user.id, CONVERSATION_TOPIC)
        return reply
