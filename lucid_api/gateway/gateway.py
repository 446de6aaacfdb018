"""Shopping gateway: orchestrates validation, upstream calls and normalization.

Main entry point used by the HTTP routes:
  1. Validates the client payload (before any network call)
  2. Checks the provider credential is configured
  3. Dispatches via the vendor adapter (bounded timeout, no retries)
  4. Normalizes the completion (search) or extracts the reply (chat)
  5. Maps failed calls onto the AppError taxonomy

Usage:
    gateway = ShoppingGateway.from_settings(settings)

    products = await gateway.search("wireless earbuds", price_filter=100)
    reply = await gateway.chat(messages, context={"searchQuery": "earbuds"})
"""

from __future__ import annotations

import logging
from typing import Any

from lucid_api.core.exceptions import (
    ConfigurationError,
    UpstreamBadResponseError,
    UpstreamError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
    ValidationError,
)
from lucid_api.gateway.mock_data import mock_products
from lucid_api.gateway.normalizer import normalize_products
from lucid_api.gateway.prompts import SEARCH_SYSTEM_PROMPT, build_context_prompt, build_search_prompt
from lucid_api.gateway.types import (
    ChatMessage,
    ChatRole,
    CompletionRequest,
    CompletionResponse,
    GatewayVendor,
    Product,
    RequestStatus,
    VendorConfig,
)
from lucid_api.gateway.vendor_adapters import OpenAICompatibleAdapter, get_adapter

logger = logging.getLogger(__name__)

SEARCH_TEMPERATURE = 0.3
CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 500

CHAT_FAILURE_MESSAGE = "Failed to get AI response"

# Friendlier wording for upstream statuses a shopper cannot act on
_REJECTION_MESSAGES = {
    401: "Search provider rejected the server credentials",
    403: "Search provider denied access to this request",
    404: "Search provider endpoint not found",
}


def validate_query(query: Any) -> str:
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("Search query is required")
    return query.strip()


def validate_messages(messages: Any) -> list[ChatMessage]:
    """Check the conversation and convert it to ChatMessages."""
    if not isinstance(messages, list) or not messages:
        raise ValidationError("Messages are required and must be an array")

    result: list[ChatMessage] = []
    for index, item in enumerate(messages):
        if not isinstance(item, dict):
            raise ValidationError(f"Message {index} must be an object with role and content")
        try:
            role = ChatRole(item.get("role"))
        except (ValueError, TypeError):
            raise ValidationError(f"Message {index} has an invalid role") from None
        content = item.get("content")
        if not isinstance(content, str):
            raise ValidationError(f"Message {index} content must be a string")
        result.append(ChatMessage(role=role, content=content))
    return result


def search_error(response: CompletionResponse) -> UpstreamError:
    """Map a failed search call onto the error taxonomy."""
    if response.status == RequestStatus.TIMEOUT:
        return UpstreamTimeoutError()
    if response.status == RequestStatus.UNREACHABLE:
        return UpstreamUnreachableError()
    if response.status == RequestStatus.REJECTED and response.status_code >= 400:
        message = _REJECTION_MESSAGES.get(response.status_code) or response.error_message or "Failed to search products"
        return UpstreamRejectedError(message, status_code=response.status_code)
    return UpstreamBadResponseError()


class ShoppingGateway:
    """Holds one adapter per configured provider and runs the two call flows."""

    def __init__(
        self,
        search_config: VendorConfig,
        chat_config: VendorConfig,
        search_api_key: str = "",
        chat_api_key: str = "",
        search_mode: str = "live",
    ):
        self.search_config = search_config
        self.chat_config = chat_config
        self.search_mode = search_mode

        # Missing keys leave the adapter unset; the route answers 500 instead
        self.search_adapter: OpenAICompatibleAdapter | None = (
            get_adapter(search_config, search_api_key) if search_api_key else None
        )
        self.chat_adapter: OpenAICompatibleAdapter | None = (
            get_adapter(chat_config, chat_api_key) if chat_api_key else None
        )

    @classmethod
    def from_settings(cls, settings) -> ShoppingGateway:
        return cls(
            search_config=VendorConfig(
                vendor=GatewayVendor.DEEPSEEK,
                base_url=settings.deepseek_base_url,
                model=settings.deepseek_model,
                timeout_seconds=settings.search_timeout_seconds,
            ),
            chat_config=VendorConfig(
                vendor=GatewayVendor.OPENAI,
                base_url=settings.openai_base_url,
                model=settings.openai_model,
                timeout_seconds=settings.chat_timeout_seconds,
            ),
            search_api_key=settings.deepseek_api_key,
            chat_api_key=settings.openai_api_key,
            search_mode=settings.search_mode,
        )

    # -- Search ------------------------------------------------------------

    async def search(self, query: Any, price_filter: Any = None) -> list[Product]:
        original_query = query
        query = validate_query(query)

        if self.search_mode == "mock":
            logger.info("Search (mock mode): %r", query)
            return mock_products(query)

        if self.search_adapter is None:
            raise ConfigurationError("Search provider API key is not configured")

        request = CompletionRequest(
            messages=[
                ChatMessage(role=ChatRole.SYSTEM, content=SEARCH_SYSTEM_PROMPT),
                ChatMessage(role=ChatRole.USER, content=build_search_prompt(query, price_filter)),
            ],
            temperature=SEARCH_TEMPERATURE,
            json_response=True,
        )
        logger.info("Search: %r (price filter: %r)", query, price_filter)
        response = await self.search_adapter.complete(request)

        if not response.ok:
            raise search_error(response)

        # The placeholder product is named after the query exactly as sent
        return normalize_products(response.text, original_query)

    # -- Chat --------------------------------------------------------------

    def build_conversation(self, messages: list[ChatMessage], context: dict | None) -> list[ChatMessage]:
        context_prompt = build_context_prompt(context if isinstance(context, dict) else None)
        if context_prompt is None:
            return list(messages)
        return [ChatMessage(role=ChatRole.SYSTEM, content=context_prompt), *messages]

    async def chat(self, messages: Any, context: Any = None) -> str:
        conversation = validate_messages(messages)

        if self.chat_adapter is None:
            raise ConfigurationError("Chat provider API key is not configured")

        request = CompletionRequest(
            messages=self.build_conversation(conversation, context),
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )
        logger.info("Chat: %d message(s), context=%s", len(conversation), bool(context))
        response = await self.chat_adapter.complete(request)

        if not response.ok:
            raise UpstreamError(CHAT_FAILURE_MESSAGE, status_code=500)

        return response.text

    # -- Diagnostics -------------------------------------------------------

    async def diagnose(self) -> dict:
        """Echo configuration and probe the search provider once."""
        connectivity: dict[str, Any]
        if self.search_adapter is None:
            connectivity = {"attempted": False, "ok": False, "error": "Search provider API key is not configured"}
        else:
            probe = await self.search_adapter.ping()
            connectivity = {
                "attempted": True,
                "ok": probe.ok,
                "status_code": probe.status_code,
                "latency_ms": probe.latency_ms,
                "error": probe.error_message or None,
            }

        return {
            "search": {
                "vendor": self.search_config.vendor.value,
                "configured": self.search_adapter is not None,
                "base_url": self.search_config.base_url,
                "model": self.search_config.model,
                "mode": self.search_mode,
                "timeout_seconds": self.search_config.timeout_seconds,
            },
            "chat": {
                "vendor": self.chat_config.vendor.value,
                "configured": self.chat_adapter is not None,
                "base_url": self.chat_config.base_url,
                "model": self.chat_config.model,
            },
            "connectivity": connectivity,
        }
