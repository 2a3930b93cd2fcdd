"""Retry-aware executor wrapping every outward call."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from .errors import RemoteCallError

logger = logging.getLogger("services.ghostfolio_sync.retry")

T = TypeVar("T")

RATE_LIMITED = 429


def status_code_of(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return getattr(exc, "status_code", None)


def error_message(name: str, exc: BaseException) -> str:
    return f"Failed call {name}(): {exc}, cause: {exc.__cause__}"


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    retry_delay: float,
    max_retries: int = 3,
) -> T:
    """Run ``operation``, retrying only when it is rate-limited (HTTP 429).

    The first call is attempt 1; a 429 on attempt ``n`` is retried after
    ``retry_delay`` seconds while ``n <= max_retries``. Everything else, and
    the final 429, is raised as :class:`RemoteCallError`.
    """

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            status = status_code_of(exc)
            if status == RATE_LIMITED and attempt <= max_retries:
                logger.info("Call %s() rate-limited, waiting %.0fs before retry", name, retry_delay)
                await asyncio.sleep(retry_delay)
                logger.info("Retrying call %s(). Retry number %d", name, attempt)
                attempt += 1
                continue
            raise RemoteCallError(name, error_message(name, exc), status_code=status) from exc


__all__ = ["call_with_retry", "status_code_of", "error_message", "RATE_LIMITED"]
