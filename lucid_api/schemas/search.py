from typing import Any

from pydantic import BaseModel


class SearchRequest(BaseModel):
    # Left untyped so a missing or non-string query gets the domain 400, not a schema error
    query: Any = None
    priceFilter: str | float | None = None


class RetailerOut(BaseModel):
    name: str
    url: str
    price: float
    isLowestPrice: bool
    isReputable: bool


class ProductOut(BaseModel):
    productName: str
    productImageUrl: str
    averageRating: float
    reviewCount: int
    pros: str
    cons: str
    priceMin: float
    priceMax: float
    retailers: list[RetailerOut]


class SearchResponse(BaseModel):
    products: list[ProductOut]
