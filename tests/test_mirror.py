from __future__ import annotations

import httpx
import pytest

from conftest import FakeMirrors
from wb_mcp.errors import AcquisitionError
from wb_mcp.mirror import HttpJsonFetcher, MirrorResolver


async def test_resolve_stops_at_first_valid_host() -> None:
    fetch = FakeMirrors({3: {"description": "ok"}, 4: {"description": "later"}})
    resolver = MirrorResolver(fetch, first_host=1, last_host=10)

    hit = await resolver.resolve(123456789)

    assert hit is not None
    assert hit.host == 3
    assert hit.descriptor == {"description": "ok"}
    assert [u.split(".")[0] for u in fetch.requested] == [
        "https://basket-01",
        "https://basket-02",
        "https://basket-03",
    ]


async def test_resolve_skips_structurally_invalid_payloads() -> None:
    fetch = FakeMirrors({1: {}, 2: ["not", "a", "card"], 3: {"options": []}})
    hit = await MirrorResolver(fetch, first_host=1, last_host=5).resolve(1)
    assert hit is not None and hit.host == 3


async def test_resolve_exhaustion_is_not_an_error() -> None:
    fetch = FakeMirrors()
    resolver = MirrorResolver(fetch, first_host=1, last_host=4)

    assert await resolver.resolve(42) is None
    assert len(fetch.requested) == 4


async def test_aclose_closes_fetcher() -> None:
    fetch = FakeMirrors()
    await MirrorResolver(fetch).aclose()
    assert fetch.closed


async def test_http_fetcher_wraps_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "basket-01" in str(request.url):
            return httpx.Response(404)
        return httpx.Response(200, json={"description": "found"})

    fetcher = HttpJsonFetcher(timeout=1.0, user_agent="test")
    fetcher._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(AcquisitionError):
            await fetcher("https://basket-01.wbbasket.ru/x/card.json")
        assert await fetcher("https://basket-02.wbbasket.ru/x/card.json") == {"description": "found"}
    finally:
        await fetcher.aclose()
