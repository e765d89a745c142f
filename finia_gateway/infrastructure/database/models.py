"""SQLAlchemy ORM models for users, conversation state and the ledger"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, ForeignKey, Numeric, Text, JSON, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    """Registered user (created by the sign-up site, read and updated here)"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    phone_number = Column(String(32), nullable=False, unique=True, index=True)
    name = Column(Text, nullable=True)
    profile_kind = Column(String(32), nullable=False, default="pessoa_fisica")
    onboarding_complete = Column(Boolean, nullable=False, default=False)
    ledger_handle = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    states = relationship("ConversationState", back_populates="user", cascade="all, delete-orphan")
    categories = relationship("UserCategory", back_populates="user", cascade="all, delete-orphan")


class ConversationState(Base):
    """Persisted multi-step interaction, one live row per (user, topic)"""

    __tablename__ = "conversation_states"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    topic = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="states")


class LedgerEntry(Base):
    """One recorded transaction"""

    __tablename__ = "ledger_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ledger_handle = Column(Text, nullable=False, index=True)
    nature = Column(String(16), nullable=False)  # EXPENSE | INCOME
    business_context = Column(String(16), nullable=False)  # BUSINESS | PERSONAL
    entry_date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(Text, nullable=False)
    origin = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class UserCategory(Base):
    """Category chosen during onboarding or typed during a correction"""

    __tablename__ = "user_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    business_context = Column(String(16), nullable=False)
    nature = Column(String(16), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="categories")


class UserPreference(Base):
    """Learning mode and keyword lists collected during onboarding"""

    __tablename__ = "user_preferences"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    learning_mode = Column(String(16), nullable=False, default="hibrido")
    business_keywords = Column(JSON, nullable=False, default=list)
    personal_keywords = Column(JSON, nullable=False, default=list)
    examples = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
