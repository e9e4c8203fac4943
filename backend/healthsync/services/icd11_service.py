"""ICD-11 code search, proxied to the NLM clinical tables service."""

import httpx
import structlog

from healthsync.config import get_settings
from healthsync.exceptions import UpstreamError, UpstreamTimeout

logger = structlog.get_logger(__name__)


class Icd11Client:
    def __init__(self, api_url: str = None, timeout: float = None, transport: httpx.AsyncBaseTransport = None):
        if api_url is None or timeout is None:
            settings = get_settings()
            api_url = api_url or settings.icd11_api_url
            timeout = timeout if timeout is not None else settings.upstream_timeout_seconds
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    async def search(self, terms: str, max_list: int = 15):
        params = {"terms": terms or "", "maxList": str(max_list)}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.api_url, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("icd11_timeout", terms=terms, timeout=self.timeout)
            raise UpstreamTimeout("icd11 lookup timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("icd11_transport_error", terms=terms, error=str(exc))
            raise UpstreamError("icd11 proxy failed") from exc

        if response.is_error:
            logger.warning("icd11_upstream_status", terms=terms, status_code=response.status_code)
            raise UpstreamError("icd11 proxy failed", details={"status": response.status_code})
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("icd11 proxy returned invalid JSON") from exc
