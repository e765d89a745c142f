"""Pytest fixtures for testing"""

import json
import pytest
from typing import Generator, List, Optional, Tuple, Union
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from finia_gateway.api.dependencies import get_completion_client
from finia_gateway.api.main import create_app
from finia_gateway.config import Settings
from finia_gateway.domain.classifier import TransactionClassifier
from finia_gateway.domain.conversation import ConversationStateMachine
from finia_gateway.domain.exceptions import PersistenceError
from finia_gateway.domain.models import LedgerRecord, ProfileKind, UserProfile
from finia_gateway.domain.recorder import TransactionRecorder
from finia_gateway.infrastructure.database.models import Base
from finia_gateway.infrastructure.database.repositories import (
    CategoryRepository,
    ConversationStateRepository,
    UserRepository,
)
from finia_gateway.infrastructure.database.session import get_db


# Test database (in-memory, one shared connection)
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def classifier_reply(
    nature: str = "EXPENSE",
    business_context: str = "PERSONAL",
    category: str = "Alimentação",
    origin: str = "Restaurante",
    confidence: float = 0.95,
) -> str:
    """JSON body the chat-completion model is asked to produce"""
    return json.dumps(
        {
            "nature": nature,
            "businessContext": business_context,
            "category": category,
            "origin": origin,
            "confidence": confidence,
        }
    )


class FakeCompletionClient:
    """Returns queued replies in order (the last one repeats); exceptions are raised"""

    def __init__(self, *replies: Union[str, Exception]):
        self.replies: List[Union[str, Exception]] = list(replies) or [classifier_reply()]
        self.calls: List[Tuple[str, str]] = []

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeLedger:
    """In-memory ledger; fails every append when `fail` is set"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.records: List[Tuple[str, LedgerRecord]] = []

    async def append_record(self, ledger_handle: str, record: LedgerRecord) -> None:
        if self.fail:
            raise PersistenceError("ledger unavailable")
        self.records.append((ledger_handle, record))


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def personal_user(db: Session) -> UserProfile:
    """Personal profile that already finished onboarding"""
    user = UserRepository(db).create_user(
        "+5511900000001",
        profile_kind=ProfileKind.PERSONAL,
        name="Ana",
        ledger_handle="sheet-ana",
        onboarding_complete=True,
    )
    db.commit()
    return user


@pytest.fixture
def business_user(db: Session) -> UserProfile:
    """Business-individual profile that already finished onboarding"""
    user = UserRepository(db).create_user(
        "+5511900000002",
        profile_kind=ProfileKind.BUSINESS_INDIVIDUAL,
        name="Bruno",
        onboarding_complete=True,
    )
    db.commit()
    return user


@pytest.fixture
def new_user(db: Session) -> UserProfile:
    """Registered personal profile that has not started onboarding"""
    user = UserRepository(db).create_user("+5511900000003", profile_kind=ProfileKind.PERSONAL)
    db.commit()
    return user


def build_machine(
    db: Session,
    completion_client: FakeCompletionClient,
    ledger: FakeLedger,
    threshold: Optional[float] = None,
) -> ConversationStateMachine:
    classifier = (
        TransactionClassifier(completion_client)
        if threshold is None
        else TransactionClassifier(completion_client, threshold=threshold)
    )
    return ConversationStateMachine(
        states=ConversationStateRepository(db),
        categories=CategoryRepository(db),
        classifier=classifier,
        recorder=TransactionRecorder(ledger),
    )


@pytest.fixture
def machine(db: Session, completion_client: FakeCompletionClient, ledger: FakeLedger) -> ConversationStateMachine:
    return build_machine(db, completion_client, ledger)


@pytest.fixture
def app(db: Session, completion_client: FakeCompletionClient):
    """FastAPI app wired to the test session and the fake classifier"""
    app = create_app(Settings(database_url=TEST_DATABASE_URL, _env_file=None))

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: completion_client
    return app


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with test database"""
    with TestClient(app) as client:
        yield client
