"""
Outbound HTTP for the mail provider.

The only outbound call this service makes is ZeptoMailNotifier posting a
JSON message to the ZeptoMail send endpoint. The app lifespan creates one
client with the email send_timeout_seconds setting and closes it on
shutdown.
"""

from typing import Any

import httpx


class HttpClient:
    """POST-only wrapper around httpx.AsyncClient.

    A send that exceeds the timeout raises httpx.TimeoutException; the
    notifier turns that into a False result. Nothing is retried.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self._client = httpx.AsyncClient(timeout=timeout)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
