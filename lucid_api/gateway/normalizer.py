"""Response Normalizer: turns completion text into canonical Products.

Upstream models do not reliably follow the requested JSON layout, so the
completion is first decoded into one of a few recognised shapes:

  - ProductListShape:  {"products": [...]}, {"recommendations": [...]} or a bare array
  - SingleProductShape: any other JSON object, read as one product
  - UnparseableShape:  not JSON at all

and every item is then mapped onto the Product schema by ``to_product``,
which accepts the alternate key names models tend to use and defaults
whatever is missing. Nothing in this module raises on bad input.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from lucid_api.gateway.types import (
    NOT_AVAILABLE,
    PLACEHOLDER_IMAGE_URL,
    CompletionShape,
    Product,
    ProductListShape,
    Retailer,
    SingleProductShape,
    UnparseableShape,
)

logger = logging.getLogger(__name__)

# Alternate key names, canonical first
PRODUCT_KEYS: dict[str, tuple[str, ...]] = {
    "productName": ("productName", "product_name", "name", "title"),
    "productImageUrl": ("productImageUrl", "product_image_url", "image_url", "imageUrl", "image", "thumbnail"),
    "averageRating": ("averageRating", "average_rating", "rating", "stars"),
    "reviewCount": ("reviewCount", "review_count", "reviews", "numReviews", "num_reviews", "reviewsCount"),
    "pros": ("pros", "advantages", "strengths"),
    "cons": ("cons", "disadvantages", "weaknesses"),
    "priceMin": ("priceMin", "price_min", "minPrice", "min_price", "lowestPrice", "price"),
    "priceMax": ("priceMax", "price_max", "maxPrice", "max_price", "highestPrice", "price"),
    "retailers": ("retailers", "stores", "sellers", "offers"),
}

RETAILER_KEYS: dict[str, tuple[str, ...]] = {
    "name": ("name", "retailer", "store", "seller"),
    "url": ("url", "link", "href"),
    "price": ("price", "cost"),
    "isLowestPrice": ("isLowestPrice", "is_lowest_price", "lowestPrice", "lowest"),
    "isReputable": ("isReputable", "is_reputable", "reputable", "trusted"),
}

LIST_KEYS = ("products", "recommendations")

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
_TRUE_STRINGS = frozenset({"true", "yes", "y", "1"})


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _strip_code_fence(text: str) -> str:
    """Drop a ```json ... ``` wrapper some models add despite instructions."""
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()


def decode_completion(text: str) -> CompletionShape:
    """Classify completion text into a recognised shape (first match wins)."""
    try:
        parsed = json.loads(_strip_code_fence(text or ""))
    except (ValueError, TypeError) as e:
        return UnparseableShape(raw=text or "", reason=str(e))

    if isinstance(parsed, list):
        return ProductListShape(items=parsed, source="array")

    if not isinstance(parsed, dict):
        return UnparseableShape(raw=text, reason=f"unexpected JSON {type(parsed).__name__}")

    for key in LIST_KEYS:
        if key in parsed:
            items = parsed[key]
            if isinstance(items, dict):
                items = [items]
            elif not isinstance(items, list):
                items = []
            return ProductListShape(items=items, source=key)

    return SingleProductShape(payload=parsed)


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _pick(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _to_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        match = _NUMBER_PATTERN.search(value.replace(",", ""))
        value = match.group() if match else None
    if not isinstance(value, (int, float, str)):
        return default
    try:
        number = float(value)
    except OverflowError:
        return default
    return number if math.isfinite(number) else default


def _to_int(value: Any, default: int = 0) -> int:
    return int(_to_float(value, float(default)))


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def _to_text(value: Any, default: str) -> str:
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v).strip() for v in value if v is not None and str(v).strip())
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


# ---------------------------------------------------------------------------
# Mapping onto the canonical schema
# ---------------------------------------------------------------------------


def to_retailer(data: Any) -> Retailer:
    """Map one upstream retailer entry onto Retailer. Total."""
    if isinstance(data, str):
        data = {"name": data}
    if not isinstance(data, dict):
        return Retailer()

    defaults = Retailer()
    return Retailer(
        name=_to_text(_pick(data, RETAILER_KEYS["name"]), defaults.name),
        url=_to_text(_pick(data, RETAILER_KEYS["url"]), defaults.url),
        price=_to_float(_pick(data, RETAILER_KEYS["price"])),
        isLowestPrice=_to_bool(_pick(data, RETAILER_KEYS["isLowestPrice"])),
        isReputable=_to_bool(_pick(data, RETAILER_KEYS["isReputable"])),
    )


def to_product(data: Any) -> Product:
    """Map one upstream product description onto Product. Total."""
    if not isinstance(data, dict):
        return Product()

    defaults = Product()
    retailers = _pick(data, PRODUCT_KEYS["retailers"])
    if isinstance(retailers, dict):
        retailers = [retailers]
    elif not isinstance(retailers, list):
        retailers = []

    return Product(
        productName=_to_text(_pick(data, PRODUCT_KEYS["productName"]), defaults.productName),
        productImageUrl=_to_text(_pick(data, PRODUCT_KEYS["productImageUrl"]), defaults.productImageUrl),
        averageRating=_to_float(_pick(data, PRODUCT_KEYS["averageRating"])),
        reviewCount=_to_int(_pick(data, PRODUCT_KEYS["reviewCount"])),
        pros=_to_text(_pick(data, PRODUCT_KEYS["pros"]), defaults.pros),
        cons=_to_text(_pick(data, PRODUCT_KEYS["cons"]), defaults.cons),
        priceMin=_to_float(_pick(data, PRODUCT_KEYS["priceMin"])),
        priceMax=_to_float(_pick(data, PRODUCT_KEYS["priceMax"])),
        retailers=[to_retailer(r) for r in retailers],
    )


def fallback_product(query: str) -> Product:
    """Placeholder returned when the completion could not be parsed."""
    return Product(
        productName=query,
        productImageUrl=PLACEHOLDER_IMAGE_URL,
        averageRating=0.0,
        reviewCount=0,
        pros=NOT_AVAILABLE,
        cons=NOT_AVAILABLE,
        priceMin=0.0,
        priceMax=0.0,
        retailers=[],
    )


def normalize_shape(shape: CompletionShape, query: str) -> list[Product]:
    if isinstance(shape, ProductListShape):
        return [to_product(item) for item in shape.items]
    if isinstance(shape, SingleProductShape):
        return [to_product(shape.payload)]

    logger.warning("Unparseable search completion for %r (%s), returning placeholder", query, shape.reason)
    return [fallback_product(query)]


def normalize_products(text: str, query: str) -> list[Product]:
    """Decode completion text and map it onto canonical Products."""
    shape = decode_completion(text)
    products = normalize_shape(shape, query)
    logger.debug("Normalized %d product(s) from %s completion", len(products), type(shape).__name__)
    return products
