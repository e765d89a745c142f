"""Domain models - pure Python dataclasses representing bookkeeping entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


UNSPECIFIED_ORIGIN = "não especificado"


class Nature(str, Enum):
    """Direction of the money"""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


class BusinessContext(str, Enum):
    """Whether a transaction belongs to the business or to personal life"""

    BUSINESS = "BUSINESS"
    PERSONAL = "PERSONAL"


class DetectedContext(str, Enum):
    """Keyword detector verdict (may be undecided)"""

    BUSINESS = "BUSINESS"
    PERSONAL = "PERSONAL"
    UNKNOWN = "UNKNOWN"


class ExpenseType(str, Enum):
    FIXED = "FIXED"
    VARIABLE = "VARIABLE"
    UNKNOWN = "UNKNOWN"


class Outcome(str, Enum):
    """Routing outcome of a classification"""

    RESOLVED = "RESOLVED"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    FAILED = "FAILED"


class ErrorKind(str, Enum):
    PARSE_ERROR = "PARSE_ERROR"
    API_ERROR = "API_ERROR"


class ProfileKind(str, Enum):
    """Profile chosen at sign-up (stored values match the users table)"""

    PERSONAL = "pessoa_fisica"
    BUSINESS_INDIVIDUAL = "empresario_individual"


class LearningMode(str, Enum):
    """How eagerly the assistant asks before recording"""

    ASSISTED = "assistido"
    AUTOMATIC = "automatico"
    HYBRID = "hibrido"


@dataclass
class TransactionCandidate:
    """Parsed-but-unclassified transaction fields"""

    raw_text: str
    description: str
    amount: Decimal
    date: date

    @property
    def is_valid(self) -> bool:
        return self.amount > 0 and bool(self.description.strip())


@dataclass
class ValidationResult:
    """Outcome of validating one message (or message segment)"""

    valid: bool
    raw_text: str
    description: str
    amount: Decimal
    date: date
    error: Optional[str] = None

    def to_candidate(self) -> TransactionCandidate:
        return TransactionCandidate(
            raw_text=self.raw_text,
            description=self.description,
            amount=self.amount,
            date=self.date,
        )


@dataclass
class LocalHint:
    """Best-effort fields extracted locally when the classifier is unsure or unavailable"""

    amount: Decimal
    description: str
    origin: str = UNSPECIFIED_ORIGIN


@dataclass
class Classification:
    """Result of classifying a transaction candidate"""

    nature: Nature
    business_context: Optional[BusinessContext]  # None only when FAILED and the detector is undecided
    category: str
    origin: str
    confidence: float
    outcome: Outcome
    error_kind: Optional[ErrorKind] = None
    hint: Optional[LocalHint] = None


@dataclass
class UserProfile:
    """Read-only view of a registered user"""

    id: int
    phone_number: str
    profile_kind: ProfileKind
    onboarding_complete: bool
    ledger_handle: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_business(self) -> bool:
        return self.profile_kind == ProfileKind.BUSINESS_INDIVIDUAL


@dataclass
class UserPreferences:
    """Per-user settings collected during onboarding"""

    learning_mode: LearningMode = LearningMode.HYBRID
    business_keywords: List[str] = field(default_factory=list)
    personal_keywords: List[str] = field(default_factory=list)
    examples: Dict[str, str] = field(default_factory=dict)


@dataclass
class LedgerRecord:
    """Row appended to a user's ledger"""

    nature: Nature
    business_context: BusinessContext
    date: date
    description: str
    amount: Decimal
    category: str
    origin: str


@dataclass
class StoredState:
    """Conversation state row as read from the store"""

    user_id: int
    topic: str
    payload: Dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
