"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from finia_gateway.config import Settings
from finia_gateway.domain.assistant import BookkeepingAssistant
from finia_gateway.domain.classifier import CompletionClient, TransactionClassifier
from finia_gateway.domain.conversation import ConversationStateMachine
from finia_gateway.domain.onboarding import OnboardingFlow
from finia_gateway.domain.recorder import Ledger, TransactionRecorder
from finia_gateway.infrastructure.database.repositories import (
    CategoryRepository,
    ConversationStateRepository,
    PreferenceRepository,
    SqlLedger,
    UserRepository,
)
from finia_gateway.infrastructure.database.session import get_db
from finia_gateway.utils.locks import KeyedLocks


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_locks(request: Request) -> KeyedLocks:
    return request.app.state.user_locks


def get_completion_client(request: Request) -> CompletionClient:
    """Provide the chat-completion client built at startup"""
    return request.app.state.completion_client


def get_ledger(request: Request, db: Session = Depends(get_db)) -> Ledger:
    """Webhook ledger client when configured, otherwise the ledger_entries table"""
    ledger_client = getattr(request.app.state, "ledger_client", None)
    if ledger_client is not None:
        return ledger_client
    return SqlLedger(db)


def build_assistant(
    db: Session,
    completion_client: CompletionClient,
    ledger: Ledger,
    confidence_threshold: float,
) -> BookkeepingAssistant:
    """Wire the assistant for one request's database session"""
    states = ConversationStateRepository(db)
    users = UserRepository(db)
    categories = CategoryRepository(db)
    preferences = PreferenceRepository(db)

    conversation = ConversationStateMachine(
        states=states,
        categories=categories,
        classifier=TransactionClassifier(completion_client, threshold=confidence_threshold),
        recorder=TransactionRecorder(ledger),
    )
    onboarding = OnboardingFlow(states=states, users=users, categories=categories, preferences=preferences)
    return BookkeepingAssistant(
        users=users,
        states=states,
        preferences=preferences,
        onboarding=onboarding,
        conversation=conversation,
    )


def get_assistant(
    db: Session = Depends(get_db),
    completion_client: CompletionClient = Depends(get_completion_client),
    ledger: Ledger = Depends(get_ledger),
    settings: Settings = Depends(get_settings),
) -> BookkeepingAssistant:
    return build_assistant(db, completion_client, ledger, settings.confidence_threshold)
