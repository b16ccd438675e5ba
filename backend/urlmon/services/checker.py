"""Checker service - performs a single HTTP(S) probe against an endpoint."""
import logging
from datetime import datetime
from typing import List, Optional

import httpx

from ..config import settings
from ..models import MonitoredEndpoint, MonitoringResult

logger = logging.getLogger(__name__)


class CheckerService:
    """Issues one GET per probe and turns the outcome into a MonitoringResult.

    Transport failures are captured on the result, never raised. The result
    is not persisted here.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_payload_chars: int = 1_000_000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_payload_chars = max_payload_chars
        # Tests swap in httpx.MockTransport
        self.transport = transport

    def _client(self, hops: List[httpx.Response]) -> httpx.AsyncClient:
        async def record_hop(response: httpx.Response):
            hops.append(response)

        kwargs = {
            "follow_redirects": True,
            "transport": self.transport,
            "event_hooks": {"response": [record_hop]},
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return httpx.AsyncClient(**kwargs)

    def _payload(self, response: httpx.Response) -> Optional[str]:
        try:
            text = response.text
        except httpx.ResponseNotRead:
            return None
        if len(text) > self.max_payload_chars:
            text = text[: self.max_payload_chars]
        return text

    def _fill_from_response(self, result: MonitoringResult, response: httpx.Response):
        result.http_code = response.status_code
        result.content_type = response.headers.get("content-type")
        result.payload = self._payload(response)

    async def probe(self, endpoint: MonitoredEndpoint) -> MonitoringResult:
        """GET endpoint.url once and describe what happened."""
        result = MonitoringResult(
            checked_date=datetime.utcnow(),
            monitored_endpoint_id=endpoint.id,
        )

        hops: List[httpx.Response] = []
        try:
            async with self._client(hops) as client:
                response = await client.get(endpoint.url)
            self._fill_from_response(result, response)

        except httpx.TimeoutException as e:
            result.error = f"Request timeout: {e}" if str(e) else "Request timeout"
        except httpx.ConnectError as e:
            result.error = f"Connection error: {e}"
        except httpx.TooManyRedirects as e:
            result.error = f"{type(e).__name__}: {e}"
            # Last redirect received before giving up
            if hops:
                self._fill_from_response(result, hops[-1])
        except httpx.HTTPError as e:
            result.error = f"{type(e).__name__}: {e}"
            # Some failures still carry the response that triggered them
            partial = getattr(e, "response", None)
            if isinstance(partial, httpx.Response):
                self._fill_from_response(result, partial)
        except Exception as e:
            logger.warning(f"Unexpected error probing {endpoint.url}: {e}")
            result.error = f"{type(e).__name__}: {e}"

        return result


# Global instance
checker_service = CheckerService(
    timeout=settings.check_timeout,
    max_payload_chars=settings.max_payload_chars,
)
