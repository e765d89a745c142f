"""Ledger webhook client: posts each record to an external ledger service"""

import httpx
from typing import Any, Dict, Optional
from finia_gateway.domain.exceptions import PersistenceError
from finia_gateway.domain.models import LedgerRecord
from finia_gateway.infrastructure.observability.metrics import ledger_latency_histogram, ledger_failure_counter


class LedgerClient:
    """Client for sending ledger records to a webhook (one attempt, no retries)"""

    def __init__(self, webhook_url: str, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @staticmethod
    def to_payload(ledger_handle: str, record: LedgerRecord) -> Dict[str, Any]:
        return {
            "ledger_handle": ledger_handle,
            "nature": record.nature.value,
            "business_context": record.business_context.value,
            "date": record.date.isoformat(),
            "description": record.description,
            "amount": str(record.amount),
            "category": record.category,
            "origin": record.origin,
        }

    async def append_record(self, ledger_handle: str, record: LedgerRecord) -> None:
        """
        Append one record.

        Raises:
            PersistenceError: On network failure or a non-2xx answer
        """
        try:
            with ledger_latency_histogram.time():
                response = await self._client.post(self.webhook_url, json=self.to_payload(ledger_handle, record))
                response.raise_for_status()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            ledger_failure_counter.inc()
            raise PersistenceError(f"Ledger webhook failed: {e.__class__.__name__}") from e

    async def aclose(self) -> None:
        await self._client.aclose()
