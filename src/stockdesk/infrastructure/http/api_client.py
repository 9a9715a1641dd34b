"""Thin async JSON client for the stock API, built on httpx.

Every non-2xx answer and every transport failure becomes a
``RemoteError``.  The server's own ``message`` is kept verbatim when it
sends one.
"""

from __future__ import annotations

from typing import Any

import httpx

from stockdesk.domain.exceptions import RemoteError
from stockdesk.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ApiClient:

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, params: dict[str, str] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        return await self._request("POST", path, json=json)

    async def patch(self, path: str, json: dict[str, Any] | None = None) -> Any:
        return await self._request("PATCH", path, json=json)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error("api_timeout", method=method, path=path)
            raise RemoteError(None) from exc
        except httpx.HTTPError as exc:
            logger.error("api_unreachable", method=method, path=path, error=str(exc))
            raise RemoteError(None) from exc

        if response.is_error:
            message = _server_message(response)
            logger.warning(
                "api_error",
                method=method,
                path=path,
                status=response.status_code,
                message=message,
            )
            raise RemoteError(message, response.status_code)

        if not response.content:
            return None
        return response.json()


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, list):
        return "; ".join(str(m) for m in message) or None
    return str(message) if message else None
