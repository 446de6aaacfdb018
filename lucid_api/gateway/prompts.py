"""Prompt templates for product search and the shopping assistant."""

from __future__ import annotations

from typing import Any

SEARCH_SYSTEM_PROMPT = """You are a product research assistant for an online shopping app.

You MUST follow these rules STRICTLY:

1. Output MUST be a single, complete, valid JSON object. No markdown, no comments.
2. The object MUST have exactly one key: "products", holding a list of 3 to 5 products.
3. Each product MUST have these keys:
   - "productName" (string)
   - "productImageUrl" (string, a real image URL or "")
   - "averageRating" (number from 0 to 5)
   - "reviewCount" (integer)
   - "pros" (string, short comma-separated list)
   - "cons" (string, short comma-separated list)
   - "priceMin" (number, USD)
   - "priceMax" (number, USD)
   - "retailers" (list of objects with "name", "url", "price", "isLowestPrice", "isReputable")
4. Exactly one retailer per product has "isLowestPrice": true.
5. Prefer well-known, reputable retailers.
6. Do NOT invent products that do not exist.
"""

CHAT_SYSTEM_PREFIX = "You are a helpful shopping assistant. "

# Context digest is kept short so the system prompt stays small
MAX_CONTEXT_PRODUCTS = 5


def build_search_prompt(query: str, price_filter: str | float | int | None = None) -> str:
    """Turn a search query and optional price filter into the user prompt."""
    prompt = f"Find the best products matching this search: {query.strip()}."
    if price_filter is not None and str(price_filter).strip():
        if isinstance(price_filter, (int, float)) and not isinstance(price_filter, bool):
            prompt += f" Only include products priced at or under ${price_filter:g}."
        else:
            prompt += f" Price preference: {str(price_filter).strip()}."
    prompt += " Respond with the JSON object described in the instructions."
    return prompt


def _first(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value not in (None, ""):
            return value
    return None


def build_context_prompt(context: dict[str, Any] | None) -> str | None:
    """Build the system message describing what the user is shopping for.

    Returns None when the context carries nothing usable.
    """
    if not context:
        return None

    prompt = CHAT_SYSTEM_PREFIX
    search_query = context.get("searchQuery")
    if isinstance(search_query, str) and search_query.strip():
        prompt += f"The user is searching for: {search_query.strip()}. "

    products = context.get("products")
    if isinstance(products, list) and products:
        prompt += "Here is information about some relevant products:\n"
        for item in products[:MAX_CONTEXT_PRODUCTS]:
            if not isinstance(item, dict):
                continue
            name = _first(item, "productName", "name", "title") or "Unnamed product"
            pros = _first(item, "pros") or "n/a"
            cons = _first(item, "cons") or "n/a"
            prompt += f"\n- {name}\n  Pros: {pros}\n  Cons: {cons}\n"

    return prompt
