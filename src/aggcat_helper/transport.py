"""Transport seam between the client and the signed HTTP layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import httpx

from .errors import TransportError


if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from .config import AggcatConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """HTTP response as seen by the client."""

    status_code: int
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Return header `name`, matched case-insensitively, or `None`."""
        lowered = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lowered:
                return v
        return None


class Transport(Protocol):
    """Sends one signed request. Token handling and TLS live behind this call."""

    async def __call__(
        self,
        method: str,
        url: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        """Send a request and return the response, whatever its status."""
        ...


class HttpxTransport:
    """`Transport` backed by an `httpx.AsyncClient`.

    Request signing is delegated to the client's `auth`, e.g. an OAuth 1.0a
    `httpx.Auth` implementation scoped to the configured customer.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize new instance.

        Args:
            client: configured client; closed by `aclose`.

        """
        self._client = client

    @classmethod
    def from_config(
        cls, config: AggcatConfig, auth: httpx.Auth | None = None
    ) -> HttpxTransport:
        """Create a transport using the configured timeout.

        Args:
            config: resolved client configuration.
            auth: request signer.

        Returns:
            New transport owning its own `httpx.AsyncClient`.

        """
        return cls(httpx.AsyncClient(auth=auth, timeout=httpx.Timeout(config.timeout)))

    async def __call__(
        self,
        method: str,
        url: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        try:
            resp = await self._client.request(
                method,
                url,
                content=body.encode("utf-8") if body is not None else None,
                headers=dict(headers) if headers else None,
            )
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            msg = f"{method} {url} failed: {e}"
            raise TransportError(msg) from e
        return TransportResponse(
            status_code=resp.status_code, body=resp.text, headers=dict(resp.headers)
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
