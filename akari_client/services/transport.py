from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp


class AkariClientError(RuntimeError):
    """Base error for controller communication."""


class TransportError(AkariClientError):
    def __init__(
        self, method: str, path: str, message: str, status: int | None = None
    ) -> None:
        super().__init__(f"{method} {path} failed: {message}")
        self.method = method
        self.path = path
        self.status = status


class Transport(Protocol):
    """Request/response seam to the controller. Returns the decoded JSON object."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...

    async def close(self) -> None: ...


def _encode_params(params: dict[str, Any] | None) -> dict[str, str] | None:
    # aiohttp rejects bool query values; the controller expects JSON-style literals
    if params is None:
        return None
    out: dict[str, str] = {}
    for key, value in params.items():
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = str(value)
    return out


class HttpTransport:
    """aiohttp client for the controller's HTTP API (one lazily created session)."""

    def __init__(self, base_url: str, timeout: float = 1.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        try:
            async with session.request(
                method, url, params=_encode_params(params), json=json
            ) as resp:
                if resp.status >= 400:
                    raise TransportError(
                        method, path, f"HTTP {resp.status}", status=resp.status
                    )
                body = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TransportError(method, path, "timeout") from e
        except aiohttp.ClientError as e:
            raise TransportError(method, path, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise TransportError(method, path, f"invalid JSON: {e}") from e

        if body is None:
            return {}
        if not isinstance(body, dict):
            raise TransportError(method, path, "response is not a JSON object")
        logging.debug("%s %s -> %s", method, path, body)
        return body

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
