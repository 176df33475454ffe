"""Exceptions raised by the acquisition engine."""

from __future__ import annotations


class WBError(Exception):
    """Base class for marketplace acquisition failures."""


class AcquisitionError(WBError):
    """Browser launch, navigation or descriptor fetch failed.

    The browser session stays re-initializable after this error.
    """


class ProductNotFoundError(WBError):
    """The price/stock descriptor has no entry for the requested item."""

    def __init__(self, product_id: int | str) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")
