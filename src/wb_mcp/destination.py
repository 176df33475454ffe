"""Delivery destination (zone code) shared by every price-bearing request.

There is one destination per process. Whoever sets it last wins, for all
clients; this server is single-tenant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from . import endpoints
from .errors import AcquisitionError

if TYPE_CHECKING:
    from .context import ServerContext

logger = logging.getLogger(__name__)


@dataclass
class DestinationState:
    dest: str
    address: str | None = None
    destinations: list[Any] = field(default_factory=list)

    def apply(self, geo: Any) -> bool:
        """Adopt a geo lookup result; leaves the state untouched if it has no zones.

        The candidate list runs from general to specific, so the last entry is used.
        """
        if not isinstance(geo, dict):
            return False
        candidates = geo.get("destinations")
        if not isinstance(candidates, list) or not candidates:
            return False
        self.dest = str(candidates[-1])
        self.address = geo.get("address")
        self.destinations = list(candidates)
        return True


async def set_destination(ctx: "ServerContext", address: str) -> dict[str, Any]:
    await ctx.session.ensure_ready()
    url = endpoints.geo_info_url(ctx.settings, address)
    try:
        geo = await ctx.session.fetch_json(url)
    except AcquisitionError as exc:
        logger.error("Failed to set destination: %s", exc)
        geo = None

    state = ctx.destination
    if not state.apply(geo):
        return {"success": False, "error": "Could not find destination", "dest": state.dest}

    logger.info("Destination set to %s (dest=%s)", state.address, state.dest)
    return {
        "success": True,
        "address": state.address,
        "dest": state.dest,
        "destinations": state.destinations,
    }
