"""Small aiohttp helper for the GET-style JSON APIs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from visionchat.errors import RemoteAPIError

_LOG = logging.getLogger(__name__)


def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


async def get_json(url: str, *, params: Mapping[str, str], timeout: float) -> dict[str, Any]:
    """GET *url* and return its decoded JSON object.

    Raises:
        RemoteAPIError: on timeouts, connection failures, non-2xx statuses
            or a body that is not a JSON object.
    """
    try:
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url, params=dict(params)) as response:
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = None
                status = response.status
    except asyncio.TimeoutError:
        _LOG.warning("Timeout calling %s after %.0fs", url, timeout)
        raise RemoteAPIError(f"Request to {url} timed out") from None
    except aiohttp.ClientError as exc:
        _LOG.error("Connection error calling %s: %s", url, exc)
        raise RemoteAPIError(f"Request to {url} failed: {exc}") from exc

    if status >= 400:
        message = _error_message(body, f"HTTP {status}")
        _LOG.error("%s returned status %s: %s", url, status, message)
        raise RemoteAPIError(message, status=status, details=body)

    if not isinstance(body, dict):
        raise RemoteAPIError(f"Unexpected response from {url}", status=status, details=body)

    return body
