"""Entry point for inbound messages: routes to restart, help, onboarding or conversation"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Protocol

from finia_gateway.domain import messages
from finia_gateway.domain.conversation import ConversationStateMachine
from finia_gateway.domain.models import UserPreferences, UserProfile
from finia_gateway.domain.onboarding import OnboardingFlow


logger = logging.getLogger(__name__)

RESTART_COMMANDS = {"reiniciar", "!reiniciar"}
HELP_COMMANDS = {"ajuda", "!ajuda"}


class UserDirectory(Protocol):
    def find_by_channel_address(self, address: str) -> Optional[UserProfile]:
        ...

    def update_user(self, user_id: int, *, name: Optional[str] = None, onboarding_complete: Optional[bool] = None) -> None:
        ...


class StateReset(Protocol):
    def clear_all(self, user_id: int) -> None:
        ...


class PreferenceReader(Protocol):
    def get_preferences(self, user_id: int) -> UserPreferences:
        ...


@dataclass
class AssistantReply:
    text: str
    route: str
    user_id: Optional[int] = None


class BookkeepingAssistant:
    """Turns one inbound message into one reply"""

    def __init__(
        self,
        users: UserDirectory,
        states: StateReset,
        preferences: PreferenceReader,
        onboarding: OnboardingFlow,
        conversation: ConversationStateMachine,
    ):
        self.users = users
        self.states = states
        self.preferences = preferences
        self.onboarding = onboarding
        self.conversation = conversation

    async def handle_message(self, sender_address: str, text: str) -> AssistantReply:
        """
        Route a message from the channel.

        Order: unknown sender, restart command, help command, onboarding
        (until complete), conversation. Raises PersistenceError when a
        ledger write fails so the caller can roll back pending state writes.
        """
        user = self.users.find_by_channel_address(sender_address)
        if user is None:
            logger.info("Message from unregistered sender")
            return AssistantReply(messages.NOT_REGISTERED, route="unregistered")

        command = (text or "").strip().lower()

        if command in RESTART_COMMANDS:
            self.states.clear_all(user.id)
            self.users.update_user(user.id, onboarding_complete=False)
            welcome = self.onboarding.begin(replace(user, onboarding_complete=False))
            return AssistantReply(f"{messages.RESTARTED}\n\n{welcome}", route="restart", user_id=user.id)

        if command in HELP_COMMANDS:
            return AssistantReply(messages.HELP, route="help", user_id=user.id)

        if not user.onboarding_complete:
            reply = self.onboarding.handle(user, text)
            return AssistantReply(reply, route="onboarding", user_id=user.id)

        reply = await self.conversation.handle(user, text, self.preferences.get_preferences(user.id))
        return AssistantReply(reply, route="conversation", user_id=user.id)
