"""POST /v1/webhook/message - messaging channel entry point"""

import time
import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finia_gateway.api.v1.schemas import InboundMessage, ReplyResponse
from finia_gateway.api.dependencies import get_assistant, get_request_id, get_user_locks
from finia_gateway.infrastructure.database.session import get_db
from finia_gateway.infrastructure.database.repositories import normalize_address
from finia_gateway.domain import messages
from finia_gateway.domain.assistant import BookkeepingAssistant
from finia_gateway.domain.exceptions import PersistenceError
from finia_gateway.infrastructure.observability.metrics import record_message
from finia_gateway.infrastructure.observability.logging import log_message_handled
from finia_gateway.utils.locks import KeyedLocks

router = APIRouter()


@router.post("/webhook/message", response_model=ReplyResponse)
async def receive_message(
    body: InboundMessage,
    request: Request,
    db: Session = Depends(get_db),
    assistant: BookkeepingAssistant = Depends(get_assistant),
    locks: KeyedLocks = Depends(get_user_locks),
):
    """
    Handle one inbound message and answer with the reply text.

    Always answers 200 with a reply so the channel never retries:
    - persistence failures roll back and ask the user to try again
    - anything unexpected rolls back and apologizes
    The session is committed only after the reply is ready, so nothing is
    reported as saved unless the commit succeeds.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    # Messages from one sender are handled one at a time in this process
    async with locks.hold(normalize_address(body.sender_address)):
        try:
            result = await assistant.handle_message(body.sender_address, body.text)
            db.commit()

            duration_ms = (time.time() - start_time) * 1000
            record_message(result.route, "ok")
            log_message_handled(request_id, result.user_id, result.route, duration_ms)

            return ReplyResponse(reply=result.text)

        except (PersistenceError, SQLAlchemyError) as e:
            db.rollback()
            record_message("unknown", "save_failed")
            logging.error(f"Persistence error: {e.__class__.__name__}", extra={"request_id": request_id})
            return ReplyResponse(reply=messages.SAVE_FAILED)

        except Exception as e:
            db.rollback()
            record_message("unknown", "error")
            logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
            return ReplyResponse(reply=messages.GENERIC_ERROR)
