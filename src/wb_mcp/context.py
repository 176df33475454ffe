"""Process-wide state handed to every acquisition call."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from .browser_session import BrowserSession
from .config import Settings, get_settings
from .destination import DestinationState
from .lookups import CardSelectors, load_selectors
from .mirror import MirrorResolver

logger = logging.getLogger(__name__)


class ServerContext:
    """One browser session and one destination, shared by all clients of this process.

    Navigation-bearing operations must hold ``navigation_lock`` for the whole
    navigate/wait/settle/extract sequence, since they share a single page.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session: Optional[Any] = None,
        mirrors: Optional[MirrorResolver] = None,
        selectors: Optional[CardSelectors] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session or BrowserSession(self.settings)
        self.destination = DestinationState(dest=self.settings.WB_DEFAULT_DEST)
        if mirrors is None:
            fetch = self.session.fetch_json if self.settings.WB_MIRROR_VIA_BROWSER else None
            mirrors = MirrorResolver.from_settings(self.settings, fetch)
        self.mirrors = mirrors
        self.selectors = selectors or load_selectors(self.settings.WB_SELECTORS_FILE)
        self.navigation_lock = asyncio.Lock()

    async def close(self) -> None:
        try:
            await self.session.teardown()
        finally:
            await self.mirrors.aclose()
        logger.info("Server context closed")
