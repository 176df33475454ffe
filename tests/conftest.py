"""Shared fakes: a scripted browser session and mirror fetcher (no browser, no network)."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from wb_mcp.config import Settings
from wb_mcp.context import ServerContext
from wb_mcp.errors import AcquisitionError
from wb_mcp.lookups import CARD_SCRIPT, FILTERS_SCRIPT
from wb_mcp.mirror import MirrorResolver


class FakeSession:
    """Stands in for BrowserSession.

    ``routes`` maps a URL substring to a JSON payload (or an exception to raise).
    Unmatched URLs fail like a rejected in-page fetch.
    """

    def __init__(
        self,
        *,
        cards: Optional[list[dict[str, Any]]] = None,
        filters: Optional[list[str]] = None,
        has_results: bool = True,
        routes: Optional[dict[str, Any]] = None,
    ) -> None:
        self.cards = cards or []
        self.filters = filters or []
        self.has_results = has_results
        self.routes = routes or {}
        self.ready_calls = 0
        self.visited: list[str] = []
        self.fetched: list[str] = []
        self.torn_down = False

    async def ensure_ready(self) -> None:
        self.ready_calls += 1

    async def goto(self, url: str) -> None:
        self.visited.append(url)

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        return self.has_results

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if script is CARD_SCRIPT:
            return self.cards[: arg["limit"]]
        if script is FILTERS_SCRIPT:
            return list(self.filters)
        raise AssertionError("unexpected script")

    async def fetch_json(self, url: str) -> Any:
        self.fetched.append(url)
        for fragment, payload in self.routes.items():
            if fragment in url:
                if isinstance(payload, Exception):
                    raise payload
                return payload
        raise AcquisitionError(f"Request to {url} failed: HTTP 404")

    async def teardown(self) -> None:
        self.torn_down = True


class FakeMirrors:
    """Mirror fetcher keyed by basket host number."""

    def __init__(self, descriptors: Optional[dict[int, Any]] = None) -> None:
        self.descriptors = descriptors or {}
        self.requested: list[str] = []
        self.closed = False

    async def __call__(self, url: str) -> Any:
        self.requested.append(url)
        for host, payload in self.descriptors.items():
            if f"basket-{host:02d}." in url:
                return payload
        raise AcquisitionError(f"Request to {url} failed: 404")

    async def aclose(self) -> None:
        self.closed = True


def make_card(product_id: int, price: Optional[str] = None, **extra: Any) -> dict[str, Any]:
    """Raw card values as CARD_SCRIPT returns them."""
    card: dict[str, Any] = {
        "id": [str(product_id)],
        "url": [f"https://www.wildberries.ru/catalog/{product_id}/detail.aspx"],
        "name": [f"Product {product_id}"],
        "brand": ["Brand / Shop"],
        "price": [price] if price else [],
        "image": [f"https://img.example/{product_id}.webp"],
    }
    card.update(extra)
    return card


def descriptor(*products: dict[str, Any]) -> dict[str, Any]:
    return {"products": list(products)}


def product_entry(product_id: int, basic: Optional[int] = None, final: Optional[int] = None, **extra: Any) -> dict[str, Any]:
    price: dict[str, Any] = {}
    if basic is not None:
        price["basic"] = basic
    if final is not None:
        price["product"] = final
    entry: dict[str, Any] = {"id": product_id, "name": f"Product {product_id}", "sizes": [{"price": price, "stocks": []}]}
    entry.update(extra)
    return entry


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        WB_WARMUP_DELAY_S=0,
        WB_SEARCH_SETTLE_S=0,
        WB_FILTERS_SETTLE_S=0,
        WB_BASKET_MAX=5,
        MCP_KEEPALIVE_S=0,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def mirror_fetcher() -> FakeMirrors:
    return FakeMirrors()


@pytest.fixture
def server(settings: Settings, session: FakeSession, mirror_fetcher: FakeMirrors) -> ServerContext:
    mirrors = MirrorResolver(mirror_fetcher, first_host=settings.WB_BASKET_MIN, last_host=settings.WB_BASKET_MAX)
    return ServerContext(settings, session=session, mirrors=mirrors)
