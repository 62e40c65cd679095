#services/base_api_service.py
"""
Shared async HTTP plumbing for the TravelPayouts clients.

One lazily created httpx.AsyncClient per service, a default timeout on every
call, and exponential backoff on 429/5xx answers and transport faults.
Only endpoints are logged: query strings carry the API token.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Optional


import httpx




class BaseAPIService:
    DEFAULT_TIMEOUT_S = 15.0
    RETRY_STATUSES = {429, 500, 502, 503, 504}


    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout_s: Optional[float] = None,
        retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout_s = timeout_s or self.DEFAULT_TIMEOUT_S
        self.retries = max(1, retries)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = logging.getLogger(self.__class__.__name__)


    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                headers=self.headers,
                transport=self._transport,
            )
        return self._client


    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


    async def _backoff(self, attempt: int, backoff_base: float, reason: str, method: str, endpoint: str) -> None:
        delay = (2 ** attempt) * backoff_base
        self.logger.warning(
            "%s on %s %s, retry %d/%d in %.1fs",
            reason, method, endpoint, attempt + 1, self.retries - 1, delay,
        )
        await asyncio.sleep(delay)


    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        backoff_base: float = 0.5,
        ) -> Any:
        """
        Send one request, retrying transient failures, and return decoded JSON.

        Raises:
            httpx.HTTPStatusError: non-2xx after the last attempt
            httpx.TransportError: network fault or timeout after the last attempt
            ValueError: body is not JSON
        """
        last_attempt = self.retries - 1
        for attempt in range(self.retries):
            try:
                client = await self._get_client()
                resp = await client.request(method, endpoint, params=params)
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status in self.RETRY_STATUSES and attempt < last_attempt:
                    await self._backoff(attempt, backoff_base, f"HTTP {status}", method, endpoint)
                    continue
                self.logger.error("HTTP error %s on %s %s", status, method, endpoint)
                raise
            except httpx.TransportError as e:
                if attempt < last_attempt:
                    await self._backoff(attempt, backoff_base, type(e).__name__, method, endpoint)
                    continue
                self.logger.error("Transport error on %s %s: %s", method, endpoint, e)
                raise


    async def _get(self, endpoint: str, *, params: Optional[Dict[str, Any]] = None, **kw) -> Any:
        return await self._request("GET", endpoint, params=params, **kw)
