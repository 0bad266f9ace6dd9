from __future__ import annotations

from types import TracebackType
from typing import Any, Dict, Optional, Type

import httpx


class AsyncHttpClient:
    """Thin asynchronous HTTP client wrapper around httpx.AsyncClient.

    - Normalizes base URLs and paths.
    - Applies a default timeout.
    - Raises for non-successful responses unless told otherwise.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    def url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def get(
        self, path: str, *, raise_for_status: bool = True, **kwargs: Any
    ) -> httpx.Response:
        resp = await self._client.get(self.url(path), **kwargs)
        if raise_for_status:
            resp.raise_for_status()
        return resp

    async def post(
        self,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        raise_for_status: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        resp = await self._client.post(self.url(path), json=json, **kwargs)
        if raise_for_status:
            resp.raise_for_status()
        return resp

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
