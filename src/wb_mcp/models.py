"""Catalog records returned by the tools.

Attribute names are snake_case; records serialise with the camelCase keys
clients see (``priceFinal``, ``supplierRating`` ...).
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Price = Optional[Union[int, float]]


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class CatalogItem(Record):
    """Search result card. ``price`` may stay empty until reconciled."""

    id: Optional[int] = None
    url: Optional[str] = None
    name: Optional[str] = None
    brand: Optional[str] = None
    price: Price = None
    price_formatted: Optional[str] = None
    image: Optional[str] = None


class StockEntry(Record):
    warehouse: Optional[int] = None
    qty: Optional[int] = None
    delivery_time: Optional[str] = None


class SizeStock(Record):
    name: str = "One size"
    option_id: Optional[int] = None
    price: Price = None
    stocks: list[StockEntry] = Field(default_factory=list)


class Characteristic(Record):
    name: Optional[str] = None
    value: Any = None


class CatalogItemDetail(Record):
    id: int
    name: Optional[str] = None
    brand: Optional[str] = None
    brand_id: Optional[int] = None
    supplier: Optional[str] = None
    supplier_id: Optional[int] = None
    supplier_rating: Optional[float] = None
    rating: Optional[float] = None
    feedbacks: Optional[int] = None
    feedback_points: Optional[int] = None
    colors: list[Any] = Field(default_factory=list)
    pics: Optional[int] = None
    images: list[str] = Field(default_factory=list)
    price_basic: Price = None
    price_final: Price = None
    discount: Optional[int] = None
    in_stock: Optional[int] = None
    sizes: list[SizeStock] = Field(default_factory=list)
    delivery_time: Optional[str] = None
    description: Optional[str] = None
    characteristics: list[Characteristic] = Field(default_factory=list)
    url: str


class CatalogListItem(Record):
    id: int
    name: Optional[str] = None
    brand: Optional[str] = None
    supplier: Optional[str] = None
    supplier_rating: Optional[float] = None
    rating: Optional[float] = None
    feedbacks: Optional[int] = None
    price_basic: Price = None
    price_final: Price = None
    discount: Optional[int] = None
    in_stock: Optional[int] = None
    delivery_time: Optional[str] = None
    url: str


class SortOption(Record):
    value: str
    name: str


class FilterDescriptor(Record):
    query: str
    available_filters: list[str] = Field(default_factory=list)
    sort_options: list[SortOption] = Field(default_factory=list)
    url_params: dict[str, str] = Field(default_factory=dict)
