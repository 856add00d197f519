"""Async HTTP transport shared by the attempt client and the availability service."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from daily_quiz.constants.network_constants import (
    CDN_HEADERS,
    DEFAULT_HEADERS,
    DEFAULT_TIMEOUT_SECONDS,
    NETWORK_FAILURE_STATUS,
    TIMEOUT_STATUS,
)
from daily_quiz.core.errors import ApiError
from daily_quiz.core.services.collaborators import IdentityProvider

logger = logging.getLogger(__name__)


class ApiHttpClient:
    """Thin wrapper over ``httpx.AsyncClient``.

    Every failure leaves this class as an ``ApiError``: HTTP errors keep their
    status, network failures use status 0, timeouts 408 and identity
    failures 401. Nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        identity: IdentityProvider | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._identity = identity
        self._timeout = timeout
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def get(self, endpoint: str, *, authenticated: bool = True) -> Any:
        return await self.request("GET", endpoint, authenticated=authenticated)

    async def post(self, endpoint: str, payload: Any = None, *, authenticated: bool = True) -> Any:
        return await self.request("POST", endpoint, payload, authenticated=authenticated)

    async def request(
        self,
        method: str,
        endpoint: str,
        payload: Any = None,
        *,
        authenticated: bool = True,
        timeout: float | None = None,
    ) -> Any:
        headers = dict(DEFAULT_HEADERS)
        if authenticated:
            headers["Authorization"] = f"Bearer {await self._bearer_token()}"

        logger.debug("%s %s", method, endpoint)
        response = await self._send(method, endpoint, payload, headers, timeout)
        data = self._decode(response)
        logger.debug("%s %s - %s", method, endpoint, response.status_code)

        if response.is_error:
            raise ApiError(self._error_message(data, response.status_code), response.status_code, data)
        return data

    async def fetch_json(self, url: str, *, timeout: float | None = None) -> Any:
        """Unauthenticated GET of an absolute URL (CDN documents), bypassing caches."""
        response = await self._send("GET", url, None, dict(CDN_HEADERS), timeout)
        if response.is_error:
            raise ApiError(
                f"CDN responded with {response.status_code}: {response.reason_phrase}",
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError("CDN returned a body that is not JSON", response.status_code) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _bearer_token(self) -> str:
        if self._identity is None:
            raise ApiError("Authentication required", 401)
        try:
            token = await self._identity.get_token()
        except Exception as exc:  # identity SDKs raise their own exception types
            raise ApiError(f"Authentication failed: {exc}", 401) from exc
        if not token:
            raise ApiError("Authentication required", 401)
        return token

    async def _send(
        self,
        method: str,
        url: str,
        payload: Any,
        headers: dict[str, str],
        timeout: float | None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out", method, url)
            raise ApiError("Request timeout", TIMEOUT_STATUS) from exc
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError("Network error - please check your connection", NETWORK_FAILURE_STATUS) from exc

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    @staticmethod
    def _error_message(data: Any, status: int) -> str:
        if isinstance(data, dict):
            message = data.get("message") or data.get("detail")
            if isinstance(message, str) and message:
                return message
        if isinstance(data, str) and data:
            return data
        return f"HTTP {status}"
