"""Shared plumbing for the httpx-based collaborator clients."""

from __future__ import annotations

from typing import Any

import httpx

from ..core.errors import RemoteCallError
from ..core.retry import call_with_retry, error_message


class BaseHttpClient:
    """Owns one ``httpx.AsyncClient`` and routes every request through the retry executor."""

    def __init__(
        self,
        *,
        base_url: str = "",
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        retry_delay: float = 300.0,
        max_retries: int = 3,
    ) -> None:
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )
        self._owns_client = client is None
        self.retry_delay = retry_delay
        self.max_retries = max_retries

    def _resolve(self, url: str) -> str:
        """Join a relative ``url`` onto ``base_url``; absolute URLs pass through."""

        if not self.base_url or not httpx.URL(url).is_relative_url:
            return url
        return f"{self.base_url.rstrip('/')}/{url.lstrip('/')}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        name: str,
        retry_delay: float | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        target = self._resolve(url)

        async def _send() -> httpx.Response:
            response = await self._client.request(method, target, **kwargs)
            response.raise_for_status()
            return response

        return await call_with_retry(
            _send,
            name=name,
            retry_delay=self.retry_delay if retry_delay is None else retry_delay,
            max_retries=self.max_retries,
        )

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        name: str,
        retry_delay: float | None = None,
        **kwargs: Any,
    ) -> Any:
        response = await self._request(method, url, name=name, retry_delay=retry_delay, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteCallError(name, error_message(name, exc), status_code=response.status_code) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["BaseHttpClient"]
