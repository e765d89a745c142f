"""
Persisted conversation state payloads.

Each topic stores one JSON document. Conversation payloads are a tagged
union on `step`; anything that fails to decode is a CorruptedStateError so
callers can drop it and start over.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from finia_gateway.domain.exceptions import CorruptedStateError
from finia_gateway.domain.models import Classification, TransactionCandidate


CONVERSATION_TOPIC = "conversation"
ONBOARDING_TOPIC = "onboarding"


class AwaitingConfirmation(BaseModel):
    """A classification waiting for the user's yes/no"""

    step: Literal["awaiting_confirmation"] = "awaiting_confirmation"
    candidate: TransactionCandidate
    classification: Classification


class AwaitingCorrectionType(BaseModel):
    """User said no; waiting for the numbered nature/context choice"""

    step: Literal["awaiting_correction_type"] = "awaiting_correction_type"
    candidate: TransactionCandidate
    classification: Classification


class AwaitingCorrectionCategory(BaseModel):
    """Nature/context corrected; waiting for a category number or a free-form name"""

    step: Literal["awaiting_correction_category"] = "awaiting_correction_category"
    candidate: TransactionCandidate
    classification: Classification
    options: List[str] = Field(default_factory=list)


ConversationState = Annotated[
    Union[AwaitingConfirmation, AwaitingCorrectionType, AwaitingCorrectionCategory],
    Field(discriminator="step"),
]

_conversation_adapter: TypeAdapter = TypeAdapter(ConversationState)


class OnboardingStep(str, Enum):
    NAME = "name"
    BUSINESS_DESCRIPTION = "business_description"
    EXPENSE_EXAMPLE = "expense_example"
    INCOME_EXAMPLE = "income_example"
    BUSINESS_EXPENSE_EXAMPLE = "business_expense_example"
    BUSINESS_INCOME_EXAMPLE = "business_income_example"
    PERSONAL_EXPENSE_EXAMPLE = "personal_expense_example"
    CATEGORY_CONFIRMATION = "category_confirmation"
    CATEGORY_SCOPE = "category_scope"
    CUSTOM_CATEGORIES = "custom_categories"
    CUSTOM_BUSINESS_CATEGORIES = "custom_business_categories"
    CUSTOM_PERSONAL_CATEGORIES = "custom_personal_categories"
    BUSINESS_KEYWORDS = "business_keywords"
    PERSONAL_KEYWORDS = "personal_keywords"
    LEARNING_MODE = "learning_mode"


class OnboardingState(BaseModel):
    """Current onboarding step plus the answers collected so far"""

    step: OnboardingStep = OnboardingStep.NAME
    name: Optional[str] = None
    business_description: Optional[str] = None
    examples: Dict[str, str] = Field(default_factory=dict)
    use_default_categories: bool = True
    category_scope: Optional[str] = None  # business | personal | both
    business_categories: List[str] = Field(default_factory=list)
    personal_categories: List[str] = Field(default_factory=list)
    business_keywords: List[str] = Field(default_factory=list)
    personal_keywords: List[str] = Field(default_factory=list)


def encode_state(state: BaseModel) -> Dict[str, Any]:
    """JSON-safe dict for the store (Decimal and dates become strings)"""
    return state.model_dump(mode="json")


def decode_conversation(payload: Any) -> Union[AwaitingConfirmation, AwaitingCorrectionType, AwaitingCorrectionCategory]:
    try:
        return _conversation_adapter.validate_python(payload)
    except ValidationError as e:
        raise CorruptedStateError(f"Unrecognized conversation payload: {e.error_count()} error(s)") from e


def decode_onboarding(payload: Any) -> OnboardingState:
    try:
        return OnboardingState.model_validate(payload)
    except ValidationError as e:
        raise CorruptedStateError(f"Unrecognized onboarding payload: {e.error_count()} error(s)") from e
