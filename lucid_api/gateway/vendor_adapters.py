"""Vendor-Specific Adapters: protocol-level handling for each LLM vendor.

Each adapter translates a CompletionRequest into the vendor's HTTP protocol,
sends it, and returns a CompletionResponse. Adapters never raise: every
failure is folded into the response status.

Vendor-specific behaviors:
  - DeepSeek: OpenAI-compatible, JSON-object output for product search
  - OpenAI: Standard chat completions for the shopping assistant
"""

from __future__ import annotations

import logging
import time

import httpx

from lucid_api.core.metrics import record_upstream_call
from lucid_api.gateway.types import (
    CompletionRequest,
    CompletionResponse,
    GatewayVendor,
    RequestStatus,
    VendorConfig,
)

logger = logging.getLogger(__name__)


def _extract_error_message(resp: httpx.Response) -> str:
    """Pull the provider's error text out of an error body."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])
    return resp.reason_phrase or f"HTTP {resp.status_code}"


def _token_count(value) -> int:
    """Usage counters as ints; anything missing or malformed counts as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    try:
        return max(int(value), 0)
    except (OverflowError, ValueError):
        return 0


class OpenAICompatibleAdapter:
    """Base adapter for vendors exposing ``POST {base_url}/chat/completions``."""

    vendor: GatewayVendor
    default_base_url: str
    default_model: str
    default_timeout: float = 30.0
    supports_json_mode: bool = True

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.model = model or self.default_model
        self.timeout = timeout or self.default_timeout

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def models_url(self) -> str:
        return f"{self.base_url}/models"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, request: CompletionRequest) -> dict:
        payload = {
            "model": request.model or self.model,
            "messages": [m.to_dict() for m in request.messages],
            "temperature": request.temperature,
        }
        if request.max_tokens:
            payload["max_tokens"] = request.max_tokens
        if request.json_response and self.supports_json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send a chat completion and return the single top choice."""
        response = CompletionResponse(vendor=self.vendor)
        timeout = request.timeout or self.timeout
        payload = self.build_payload(request)
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(self.chat_url, json=payload, headers=self._headers())

            response.status_code = resp.status_code
            if resp.status_code >= 400:
                response.status = RequestStatus.REJECTED
                response.error_message = _extract_error_message(resp)
            else:
                self._parse_completion(resp, response, payload["model"])

        except httpx.TimeoutException:
            response.status = RequestStatus.TIMEOUT
            response.error_message = f"{self.vendor.value} timeout after {timeout}s"
        except httpx.TransportError as e:
            response.status = RequestStatus.UNREACHABLE
            response.error_message = f"{type(e).__name__}: {e}"

        response.latency_ms = int((time.monotonic() - start) * 1000)
        record_upstream_call(self.vendor.value, response.status.value, response.latency_ms)

        if not response.ok:
            logger.warning(
                "%s call failed: status=%s http=%s (%d ms) %s",
                self.vendor.value,
                response.status.value,
                response.status_code or "-",
                response.latency_ms,
                response.error_message,
            )
        else:
            logger.debug(
                "%s call ok: model=%s tokens=%d (%d ms)",
                self.vendor.value,
                response.model_version,
                response.total_tokens,
                response.latency_ms,
            )
        return response

    @staticmethod
    def _parse_completion(resp: httpx.Response, response: CompletionResponse, model: str) -> None:
        try:
            data = resp.json()
            text = data["choices"][0]["message"]["content"]
            if text is not None and not isinstance(text, str):
                raise TypeError("content is not text")
        except (ValueError, KeyError, IndexError, TypeError):
            response.status = RequestStatus.BAD_RESPONSE
            response.error_message = "Response is not a chat completion"
            return

        response.status = RequestStatus.SUCCESS
        response.text = text or ""
        response.model_version = str(data.get("model") or model)

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        response.input_tokens = _token_count(usage.get("prompt_tokens"))
        response.output_tokens = _token_count(usage.get("completion_tokens"))

    async def ping(self) -> CompletionResponse:
        """Lightweight connectivity probe: list the vendor's models."""
        response = CompletionResponse(vendor=self.vendor)
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=min(self.timeout, 10.0)) as client:
                resp = await client.get(self.models_url, headers=self._headers())
            response.status_code = resp.status_code
            if resp.status_code >= 400:
                response.status = RequestStatus.REJECTED
                response.error_message = _extract_error_message(resp)
        except httpx.TimeoutException:
            response.status = RequestStatus.TIMEOUT
            response.error_message = "Connectivity probe timed out"
        except httpx.TransportError as e:
            response.status = RequestStatus.UNREACHABLE
            response.error_message = f"{type(e).__name__}: {e}"
        response.latency_ms = int((time.monotonic() - start) * 1000)
        return response


# ---------------------------------------------------------------------------
# DeepSeek Adapter
# ---------------------------------------------------------------------------


class DeepSeekAdapter(OpenAICompatibleAdapter):
    """DeepSeek adapter used for structured product search."""

    vendor = GatewayVendor.DEEPSEEK
    default_base_url = "https://api.deepseek.com"
    default_model = "deepseek-chat"
    default_timeout = 15.0


# ---------------------------------------------------------------------------
# OpenAI Adapter
# ---------------------------------------------------------------------------


class OpenAIAdapter(OpenAICompatibleAdapter):
    """OpenAI Chat Completions adapter used for the shopping assistant."""

    vendor = GatewayVendor.OPENAI
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4-turbo"
    default_timeout = 30.0


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

ADAPTER_REGISTRY: dict[GatewayVendor, type[OpenAICompatibleAdapter]] = {
    GatewayVendor.DEEPSEEK: DeepSeekAdapter,
    GatewayVendor.OPENAI: OpenAIAdapter,
}


def get_adapter(config: VendorConfig, api_key: str) -> OpenAICompatibleAdapter:
    """Create an adapter instance for a configured vendor."""
    adapter_cls = ADAPTER_REGISTRY.get(config.vendor)
    if adapter_cls is None:
        raise ValueError(f"No adapter registered for vendor: {config.vendor}")
    return adapter_cls(
        api_key=api_key,
        base_url=config.base_url,
        model=config.model,
        timeout=config.timeout_seconds,
    )
