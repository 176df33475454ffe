"""DOM lookup strategies for search cards and filter controls.

The storefront markup is not ours and drifts over time. Each card field is
an ordered tuple of independent lookups; the first one that yields a usable
value wins. The lists are data: override them with ``WB_SELECTORS_FILE``
instead of touching the extraction logic.

Override file format::

    {
      "card": [".product-card"],
      "filters": ["[class*=\\"dropdown-filter\\"] button"],
      "fields": {"price": [{"selector": ".price-block__final-price"}]}
    }
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from .endpoints import product_url
from .models import CatalogItem
from .records import format_rub

logger = logging.getLogger(__name__)

# Plausible price magnitude in rubles (exclusive bounds).
PRICE_MIN = 0
PRICE_MAX = 100_000_000

_NUMBER_RE = re.compile(r"\d[\d\s]*")
_CATALOG_ID_RE = re.compile(r"/catalog/(\d+)/")
_BRAND_TAIL_RE = re.compile(r"\s*/.*", re.DOTALL)


@dataclass(frozen=True)
class FieldLookup:
    """One way of reading a field out of a card.

    ``selector`` is relative to the card root (empty = the root itself).
    ``attribute`` names an attribute/property to read; None reads text content.
    """

    selector: str = ""
    attribute: Optional[str] = None

    def to_js(self) -> dict[str, Any]:
        return {"selector": self.selector, "attribute": self.attribute}


@dataclass(frozen=True)
class CardSelectors:
    card: tuple[str, ...]
    fields: Mapping[str, tuple[FieldLookup, ...]]
    filters: tuple[str, ...] = field(default_factory=tuple)

    @property
    def card_selector(self) -> str:
        return ", ".join(self.card)

    @property
    def filter_selector(self) -> str:
        return ", ".join(self.filters)

    def script_arg(self, limit: int) -> dict[str, Any]:
        return {
            "cardSelector": self.card_selector,
            "limit": limit,
            "fields": {name: [lk.to_js() for lk in lookups] for name, lookups in self.fields.items()},
        }


DEFAULT_SELECTORS = CardSelectors(
    card=(".product-card", "article[data-nm-id]"),
    fields={
        "id": (FieldLookup("", "data-nm-id"), FieldLookup("[data-nm-id]", "data-nm-id")),
        "url": (FieldLookup("a[href*='/catalog/']", "href"), FieldLookup("a", "href")),
        "name": (FieldLookup('[class*="product-card__name"]'),),
        "brand": (FieldLookup('[class*="product-card__brand"]'),),
        # wallet price is what the buyer actually pays, then the final price, then anything price-like
        "price": (
            FieldLookup('[class*="price-block__wallet-price"]'),
            FieldLookup('[class*="price-block__final-price"]'),
            FieldLookup('[class*="price"]'),
        ),
        "image": (FieldLookup("img", "src"), FieldLookup("img", "data-src")),
    },
    filters=('[class*="dropdown-filter"] button',),
)


# Runs in the page. Returns, per card, the values every lookup produced, in lookup order.
CARD_SCRIPT = """
({cardSelector, limit, fields}) => {
    const read = (root, lookup) => {
        const el = lookup.selector ? root.querySelector(lookup.selector) : root;
        if (!el) return null;
        let value;
        if (lookup.attribute) {
            value = (lookup.attribute in el && typeof el[lookup.attribute] === 'string')
                ? el[lookup.attribute]
                : el.getAttribute(lookup.attribute);
        } else {
            value = el.textContent;
        }
        value = (value || '').trim();
        return value || null;
    };
    const cards = Array.from(document.querySelectorAll(cardSelector)).slice(0, limit);
    return cards.map(card => {
        const out = {};
        for (const [name, lookups] of Object.entries(fields)) {
            out[name] = lookups.map(lk => read(card, lk)).filter(v => v !== null);
        }
        return out;
    });
}
"""

FILTERS_SCRIPT = """
(selector) => Array.from(document.querySelectorAll(selector))
    .map(el => (el.textContent || '').trim())
    .filter(Boolean)
"""


def parse_price(text: Optional[str]) -> Optional[int]:
    """Return the first number in ``text`` within the plausible price range.

    Digit groups separated by (no-break) spaces are joined; currency glyphs and
    other noise are skipped.
    """
    if not text:
        return None
    for match in _NUMBER_RE.finditer(text):
        value = int(re.sub(r"\s", "", match.group()))
        if PRICE_MIN < value < PRICE_MAX:
            return value
    return None


def _first(values: Any) -> Optional[str]:
    for value in values or []:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _parse_id(raw: Mapping[str, Any]) -> Optional[int]:
    for value in raw.get("id") or []:
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
    for value in raw.get("url") or []:
        match = _CATALOG_ID_RE.search(value or "")
        if match:
            return int(match.group(1))
    return None


def build_card(raw: Mapping[str, Any], base_url: str) -> CatalogItem:
    """Resolve one card from the per-field candidate values collected in the page."""
    product_id = _parse_id(raw)
    price = None
    for text in raw.get("price") or []:
        price = parse_price(text)
        if price is not None:
            break

    brand = _first(raw.get("brand"))
    if brand:
        brand = _BRAND_TAIL_RE.sub("", brand) or None

    url = _first(raw.get("url"))
    if url is None and product_id is not None:
        url = product_url(base_url, product_id)

    return CatalogItem(
        id=product_id,
        url=url,
        name=_first(raw.get("name")),
        brand=brand,
        price=price,
        price_formatted=format_rub(price),
        image=_first(raw.get("image")),
    )


def dedupe(labels: Any) -> list[str]:
    seen: dict[str, None] = {}
    for label in labels or []:
        if isinstance(label, str) and label.strip():
            seen.setdefault(label.strip(), None)
    return list(seen)


def _lookups(items: Any) -> tuple[FieldLookup, ...]:
    out = []
    for item in items:
        if isinstance(item, str):
            out.append(FieldLookup(item))
        else:
            out.append(FieldLookup(item.get("selector", ""), item.get("attribute")))
    return tuple(out)


def load_selectors(path: Optional[str]) -> CardSelectors:
    """Return the default lookups, overridden by the JSON file at ``path`` if given."""
    if not path:
        return DEFAULT_SELECTORS
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    fields = dict(DEFAULT_SELECTORS.fields)
    for name, items in (data.get("fields") or {}).items():
        fields[name] = _lookups(items)
    selectors = replace(
        DEFAULT_SELECTORS,
        card=tuple(data.get("card") or DEFAULT_SELECTORS.card),
        fields=fields,
        filters=tuple(data.get("filters") or DEFAULT_SELECTORS.filters),
    )
    logger.info("Loaded selector overrides from %s", path)
    return selectors
