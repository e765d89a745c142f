"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


SERVICE_NAME = "finia-gateway"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and service name"""

    def __init__(self, *args: Any, service_name: str = SERVICE_NAME, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = SERVICE_NAME) -> None:
    """Configure structured JSON logging on stdout"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_message_handled(
    request_id: str,
    user_id: Any,
    route: str,
    duration_ms: float,
) -> None:
    """Log one structured record per inbound message (never the message text)"""
    logging.info(
        "Message handled",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "message_handled",
            "route": route,
            "duration_ms": duration_ms,
        },
    )
