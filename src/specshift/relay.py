"""Outbound HTTP relay -- forward a GET with caller-supplied credentials.

:class:`HttpRelay` is a thin wrapper around :class:`httpx.AsyncClient` that
sends ``Content-type: application/json`` plus whatever ``apikey`` and
``Authorization`` headers the caller provided, and hands back the response
body. Headers whose value is ``None`` are not sent.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from specshift.exceptions import RelayError
from specshift.models import RelayConfig

logger = logging.getLogger(__name__)


class HttpRelay:
    """Forward authenticated GET requests to arbitrary URLs.

    Must be closed with :meth:`aclose` (the web app does this on shutdown).

    Args:
        config: Timeout and SSL settings.
        client: Optional pre-built client, mainly for tests with
            :class:`httpx.MockTransport`.

    Example::

        relay = HttpRelay(RelayConfig())
        body = await relay.forward(url, {"apikey": key, "Authorization": token})
    """

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        config = config or RelayConfig()
        self._client = client or httpx.AsyncClient(
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
        )

    async def forward(self, url: str, headers: dict[str, Optional[str]]) -> Any:
        """GET *url* with *headers* and return the decoded body.

        Returns:
            The JSON-decoded body, or the raw text when it is not JSON.

        Raises:
            RelayError: On network failures or a 4xx/5xx response.
        """
        sent = {"Content-type": "application/json"}
        sent.update({k: v for k, v in headers.items() if v is not None})

        try:
            response = await self._client.get(url, headers=sent)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Relay to %s returned HTTP %s: %s",
                url,
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise RelayError(f"HTTP {exc.response.status_code} from {url}") from exc
        except httpx.RequestError as exc:
            logger.error("Relay to %s failed: %s", url, exc)
            raise RelayError(f"Request to {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError:
            return response.text

    async def aclose(self) -> None:
        await self._client.aclose()
