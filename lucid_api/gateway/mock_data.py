"""Fixed sample products served when SEARCH_MODE=mock."""

from __future__ import annotations

from lucid_api.gateway.types import PLACEHOLDER_IMAGE_URL, Product, Retailer


def mock_products(query: str) -> list[Product]:
    return [
        Product(
            productName=f"{query} - Premium Model",
            productImageUrl=PLACEHOLDER_IMAGE_URL,
            averageRating=4.5,
            reviewCount=128,
            pros="Great performance, excellent build quality",
            cons="Expensive, limited color options",
            priceMin=99.99,
            priceMax=149.99,
            retailers=[
                Retailer(name="Amazon", url="https://amazon.com", price=99.99, isLowestPrice=True, isReputable=True),
                Retailer(name="Best Buy", url="https://bestbuy.com", price=149.99, isReputable=True),
            ],
        ),
        Product(
            productName=f"{query} - Budget Option",
            productImageUrl=PLACEHOLDER_IMAGE_URL,
            averageRating=3.8,
            reviewCount=84,
            pros="Good value, attractive price",
            cons="Average build quality, fewer features",
            priceMin=49.99,
            priceMax=79.99,
            retailers=[
                Retailer(name="Walmart", url="https://walmart.com", price=49.99, isLowestPrice=True, isReputable=True),
                Retailer(name="Target", url="https://target.com", price=79.99, isReputable=True),
            ],
        ),
    ]
