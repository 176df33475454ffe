"""Content-descriptor lookup across the basket mirrors.

An item's ``card.json`` (description, characteristics) lives on exactly one
of the numbered ``basket-NN`` hosts and nothing tells us which. We probe the
hosts in order and stop at the first valid answer. Exhausting the range is a
normal outcome: the caller treats it as "no enrichment", not as a failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

from . import endpoints
from .config import Settings
from .errors import AcquisitionError

logger = logging.getLogger(__name__)

JsonFetcher = Callable[[str], Awaitable[Any]]


@dataclass(frozen=True)
class MirrorHit:
    host: int
    url: str
    descriptor: dict[str, Any]


class HttpJsonFetcher:
    """Plain HTTP GET returning JSON; the mirrors are static and need no browser."""

    def __init__(self, *, timeout: float, user_agent: str) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._client: Optional[httpx.AsyncClient] = None

    async def __call__(self, url: str) -> Any:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"User-Agent": self._user_agent, "Accept": "application/json"},
                follow_redirects=True,
            )
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise AcquisitionError(f"Request to {url} failed: {exc}") from exc

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class MirrorResolver:
    def __init__(
        self,
        fetch_json: JsonFetcher,
        *,
        first_host: int = 1,
        last_host: int = 36,
        lang: str = "ru",
    ) -> None:
        self._fetch_json = fetch_json
        self.hosts = range(first_host, last_host + 1)
        self.lang = lang

    @classmethod
    def from_settings(cls, settings: Settings, fetch_json: Optional[JsonFetcher] = None) -> "MirrorResolver":
        if fetch_json is None:
            fetch_json = HttpJsonFetcher(timeout=settings.WB_MIRROR_TIMEOUT_S, user_agent=settings.WB_USER_AGENT)
        return cls(fetch_json, first_host=settings.WB_BASKET_MIN, last_host=settings.WB_BASKET_MAX, lang=settings.WB_LANG)

    @staticmethod
    def is_valid(payload: Any) -> bool:
        return isinstance(payload, dict) and bool(payload)

    async def resolve(self, product_id: int) -> Optional[MirrorHit]:
        """Return the first mirror holding the content descriptor, or None."""
        for host in self.hosts:
            url = endpoints.content_descriptor_url(host, product_id, self.lang)
            try:
                payload = await self._fetch_json(url)
            except AcquisitionError:
                continue
            if self.is_valid(payload):
                logger.debug("Content descriptor for %s found on basket-%02d", product_id, host)
                return MirrorHit(host=host, url=url, descriptor=payload)
        logger.info("No mirror holds a content descriptor for %s (%d hosts probed)", product_id, len(self.hosts))
        return None

    async def aclose(self) -> None:
        closer = getattr(self._fetch_json, "aclose", None)
        if closer is not None:
            await closer()
