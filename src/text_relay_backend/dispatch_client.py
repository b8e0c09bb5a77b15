"""
Outbound client handing text to the external processor's webhook.

The processor (an n8n workflow) receives ``{db_id, text_to_analyze, timestamp}``
and answers later, out of band, on the callback endpoint. A dispatch is a
single attempt: transport errors and non-2xx answers surface immediately as
DispatchError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import DispatchError
from .utils import utc_timestamp

logger = logging.getLogger(__name__)


class DispatchClient:
    """
    Posts work items to the processor webhook over httpx.

    Attributes:
        webhook_url: Processor endpoint receiving dispatched requests
        timeout: HTTP timeout in seconds for the single outbound attempt
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        # Created on first use so the client binds to the serving event loop
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    @staticmethod
    def build_payload(request_id: str, text: Any) -> Dict[str, Any]:
        return {
            "db_id": request_id,
            "text_to_analyze": text,
            "timestamp": utc_timestamp(),
        }

    async def dispatch(self, request_id: str, text: Any) -> None:
        """
        Send one request to the processor.

        Raises:
            DispatchError: On network failure or a non-2xx response
        """
        payload = self.build_payload(request_id, text)
        try:
            response = await self._get_client().post(
                self.webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DispatchError(
                f"Processor webhook returned status {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DispatchError(f"Processor webhook unreachable: {exc}") from exc
        logger.debug(f"Dispatched request {request_id} to {self.webhook_url}")

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
