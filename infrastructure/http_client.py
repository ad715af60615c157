"""Async HTTP client for outbound provider calls (the transactional email API)."""

from typing import Any, Optional

import httpx

from shared.logging import get_logger

log = get_logger(__name__)


class HttpClient:
    """httpx.AsyncClient with a fixed timeout and default headers.

    Built once in the app lifespan and injected into providers; closed on
    shutdown.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json", **(headers or {})},
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        response = await self._client.post(url, **kwargs)
        log.debug("http_post", url=url, status_code=response.status_code)
        return response

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
