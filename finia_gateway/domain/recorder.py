"""Transaction recorder: append to the user's ledger and build the confirmation reply"""

import logging
from typing import Protocol

from finia_gateway.domain.exceptions import PersistenceError
from finia_gateway.domain.messages import recorded_message
from finia_gateway.domain.models import (
    BusinessContext,
    Classification,
    LedgerRecord,
    TransactionCandidate,
    UserProfile,
)


logger = logging.getLogger(__name__)


class Ledger(Protocol):
    async def append_record(self, ledger_handle: str, record: LedgerRecord) -> None:
        """Persist one record; raise PersistenceError on failure"""
        ...


def ledger_handle_for(user: UserProfile) -> str:
    return user.ledger_handle or f"user:{user.id}"


class TransactionRecorder:
    """Writes finalized transactions to the ledger"""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def build_record(self, classification: Classification, candidate: TransactionCandidate) -> LedgerRecord:
        return LedgerRecord(
            nature=classification.nature,
            business_context=classification.business_context or BusinessContext.PERSONAL,
            date=candidate.date,
            description=candidate.description,
            amount=candidate.amount,
            category=classification.category,
            origin=classification.origin,
        )

    async def append(self, classification: Classification, candidate: TransactionCandidate, user: UserProfile) -> None:
        """Append without building a reply (used by batches). Raises PersistenceError."""
        record = self.build_record(classification, candidate)
        try:
            await self.ledger.append_record(ledger_handle_for(user), record)
        except PersistenceError:
            logger.error("Ledger append failed", extra={"user_id": user.id})
            raise

    async def record(self, classification: Classification, candidate: TransactionCandidate, user: UserProfile) -> str:
        """Persist and return the confirmation message; never reports success on failure"""
        await self.append(classification, candidate, user)
        logger.info(
            "Transaction recorded",
            extra={
                "user_id": user.id,
                "nature": classification.nature.value,
                "business_context": (classification.business_context or BusinessContext.PERSONAL).value,
                "outcome": classification.outcome.value,
            },
        )
        return recorded_message(candidate, classification, user)
