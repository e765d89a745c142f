"""Data access layer for users, conversation state, categories, preferences and the ledger"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from finia_gateway.infrastructure.database.models import (
    ConversationState,
    LedgerEntry,
    User,
    UserCategory,
    UserPreference,
)
from finia_gateway.domain.categories import Category
from finia_gateway.domain.exceptions import PersistenceError
from finia_gateway.domain.models import (
    BusinessContext,
    LearningMode,
    LedgerRecord,
    Nature,
    ProfileKind,
    StoredState,
    UserPreferences,
    UserProfile,
)
from finia_gateway.infrastructure.observability.metrics import ledger_failure_counter

CHANNEL_PREFIX = "whatsapp:"


def normalize_address(address: str) -> str:
    """Phone number behind a sender address ("whatsapp:+55..." -> "+55...")"""
    phone = (address or "").strip()
    if phone.lower().startswith(CHANNEL_PREFIX):
        phone = phone[len(CHANNEL_PREFIX):]
    return phone


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        phone_number=user.phone_number,
        profile_kind=ProfileKind(user.profile_kind),
        onboarding_complete=bool(user.onboarding_complete),
        ledger_handle=user.ledger_handle,
        name=user.name,
    )


class UserRepository:
    """Repository for registered users"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_channel_address(self, address: str) -> Optional[UserProfile]:
        """Look up an active user by sender address ("whatsapp:+55..." or "+55...")"""
        phone = normalize_address(address)
        if not phone:
            return None

        user = (
            self.db.query(User)
            .filter(User.phone_number == phone, User.active.is_(True))
            .first()
        )
        return _to_profile(user) if user else None

    def update_user(
        self,
        user_id: int,
        *,
        name: Optional[str] = None,
        onboarding_complete: Optional[bool] = None,
    ) -> None:
        """Update only the fields passed explicitly"""
        user = self.db.get(User, user_id)
        if user is None:
            raise PersistenceError(f"User {user_id} not found")
        if name is not None:
            user.name = name
        if onboarding_complete is not None:
            user.onboarding_complete = onboarding_complete
        user.updated_at = _now()
        self.db.flush()

    def create_user(
        self,
        phone_number: str,
        profile_kind: ProfileKind = ProfileKind.PERSONAL,
        name: Optional[str] = None,
        ledger_handle: Optional[str] = None,
        onboarding_complete: bool = False,
    ) -> UserProfile:
        """Insert a user (the sign-up site does this in production)"""
        user = User(
            phone_number=phone_number,
            profile_kind=profile_kind.value,
            name=name,
            ledger_handle=ledger_handle,
            onboarding_complete=onboarding_complete,
        )
        self.db.add(user)
        self.db.flush()
        return _to_profile(user)


class ConversationStateRepository:
    """Repository for per-(user, topic) conversation state; the latest updated row wins"""

    def __init__(self, db: Session):
        self.db = db

    def _latest(self, user_id: int, topic: str) -> Optional[ConversationState]:
        return (
            self.db.query(ConversationState)
            .filter(ConversationState.user_id == user_id, ConversationState.topic == topic)
            .order_by(ConversationState.updated_at.desc(), ConversationState.id.desc())
            .first()
        )

    def get_state(self, user_id: int, topic: str) -> Optional[StoredState]:
        row = self._latest(user_id, topic)
        if row is None:
            return None
        return StoredState(
            user_id=row.user_id,
            topic=row.topic,
            payload=row.payload,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def set_state(self, user_id: int, topic: str, payload: Dict[str, Any]) -> None:
        """Overwrite the latest row for the topic, inserting one when none exists"""
        row = self._latest(user_id, topic)
        now = _now()
        if row is None:
            row = ConversationState(user_id=user_id, topic=topic, payload=payload, created_at=now, updated_at=now)
            self.db.add(row)
        else:
            row.payload = payload
            row.updated_at = now
        self.db.flush()

    def clear_state(self, user_id: int, topic: str) -> None:
        """Delete every row for the topic, duplicates included"""
        (
            self.db.query(ConversationState)
            .filter(ConversationState.user_id == user_id, ConversationState.topic == topic)
            .delete(synchronize_session=False)
        )
        self.db.flush()

    def clear_all(self, user_id: int) -> None:
        (
            self.db.query(ConversationState)
            .filter(ConversationState.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()


class CategoryRepository:
    """Repository for user categories"""

    def __init__(self, db: Session):
        self.db = db

    def list_categories(self, user_id: int) -> List[Category]:
        rows = (
            self.db.query(UserCategory)
            .filter(UserCategory.user_id == user_id, UserCategory.active.is_(True))
            .order_by(UserCategory.position, UserCategory.id)
            .all()
        )
        return [Category(row.name, BusinessContext(row.business_context), Nature(row.nature)) for row in rows]

    def replace_categories(self, user_id: int, categories: List[Category]) -> None:
        """Swap the active set for a new one (onboarding result)"""
        (
            self.db.query(UserCategory)
            .filter(UserCategory.user_id == user_id)
            .delete(synchronize_session=False)
        )
        for position, category in enumerate(categories):
            self.db.add(
                UserCategory(
                    user_id=user_id,
                    name=category.name,
                    business_context=category.business_context.value,
                    nature=category.nature.value,
                    position=position,
                )
            )
        self.db.flush()

    def add_category(self, user_id: int, category: Category) -> None:
        position = self.db.query(UserCategory).filter(UserCategory.user_id == user_id).count()
        self.db.add(
            UserCategory(
                user_id=user_id,
                name=category.name,
                business_context=category.business_context.value,
                nature=category.nature.value,
                position=position,
            )
        )
        self.db.flush()


class PreferenceRepository:
    """Repository for learning mode and keyword preferences"""

    def __init__(self, db: Session):
        self.db = db

    def get_preferences(self, user_id: int) -> UserPreferences:
        """Stored preferences, or the defaults (hybrid mode, no keywords)"""
        row = self.db.get(UserPreference, user_id)
        if row is None:
            return UserPreferences()
        return UserPreferences(
            learning_mode=LearningMode(row.learning_mode),
            business_keywords=list(row.business_keywords or []),
            personal_keywords=list(row.personal_keywords or []),
            examples=dict(row.examples or {}),
        )

    def save_preferences(self, user_id: int, preferences: UserPreferences) -> None:
        row = self.db.get(UserPreference, user_id)
        if row is None:
            row = UserPreference(user_id=user_id)
            self.db.add(row)
        row.learning_mode = preferences.learning_mode.value
        row.business_keywords = list(preferences.business_keywords)
        row.personal_keywords = list(preferences.personal_keywords)
        row.examples = dict(preferences.examples)
        row.updated_at = _now()
        self.db.flush()


class SqlLedger:
    """Ledger backed by the ledger_entries table"""

    def __init__(self, db: Session):
        self.db = db

    async def append_record(self, ledger_handle: str, record: LedgerRecord) -> None:
        """Flush one ledger row; database failures become PersistenceError"""
        entry = LedgerEntry(
            ledger_handle=ledger_handle,
            nature=record.nature.value,
            business_context=record.business_context.value,
            entry_date=record.date,
            description=record.description,
            amount=record.amount,
            category=record.category,
            origin=record.origin,
        )
        try:
            self.db.add(entry)
            self.db.flush()
        except SQLAlchemyError as e:
            ledger_failure_counter.inc()
            raise PersistenceError(f"Ledger append failed: {e}") from e

    def list_entries(self, ledger_handle: str) -> List[LedgerEntry]:
        return (
            self.db.query(LedgerEntry)
            .filter(LedgerEntry.ledger_handle == ledger_handle)
            .order_by(LedgerEntry.entry_date, LedgerEntry.created_at)
            .all()
        )
