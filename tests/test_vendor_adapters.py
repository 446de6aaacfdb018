"""Tests for vendor adapters (mocked HTTP)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from lucid_api.gateway.types import (
    ChatMessage,
    ChatRole,
    CompletionRequest,
    GatewayVendor,
    RequestStatus,
    VendorConfig,
)
from lucid_api.gateway.vendor_adapters import (
    ADAPTER_REGISTRY,
    DeepSeekAdapter,
    OpenAIAdapter,
    get_adapter,
)


def _make_httpx_response(status_code: int, json_data: dict | None = None, text: str = "") -> httpx.Response:
    request = httpx.Request("POST", "https://example.com")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    return httpx.Response(status_code, text=text, request=request)


def _mock_completion(text="Hello world", model="deepseek-chat", input_tokens=10, output_tokens=20):
    return _make_httpx_response(
        200,
        json_data={
            "choices": [{"message": {"content": text}, "finish_reason": "stop"}],
            "model": model,
            "usage": {"prompt_tokens": input_tokens, "completion_tokens": output_tokens},
        },
    )


def _request(**kwargs) -> CompletionRequest:
    return CompletionRequest(messages=[ChatMessage(role=ChatRole.USER, content="Hello")], **kwargs)


def _patched_client(mock_client_cls, *, post=None, get=None, side_effect=None):
    mock_client = AsyncMock()
    if post is not None:
        mock_client.post.return_value = post
    if get is not None:
        mock_client.get.return_value = get
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
        mock_client.get.side_effect = side_effect
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    mock_client_cls.return_value = mock_client
    return mock_client


class TestDeepSeekAdapter:
    @pytest.mark.asyncio
    async def test_success(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            mock_client = _patched_client(mock_client_cls, post=_mock_completion('{"products": []}'))
            resp = await adapter.complete(_request(json_response=True))

        assert resp.status == RequestStatus.SUCCESS
        assert resp.ok
        assert resp.text == '{"products": []}'
        assert resp.model_version == "deepseek-chat"
        assert resp.total_tokens == 30
        assert resp.latency_ms >= 0

        url = mock_client.post.call_args.args[0]
        payload = mock_client.post.call_args.kwargs["json"]
        headers = mock_client.post.call_args.kwargs["headers"]
        assert url == "https://api.deepseek.com/chat/completions"
        assert payload["response_format"] == {"type": "json_object"}
        assert payload["messages"] == [{"role": "user", "content": "Hello"}]
        assert headers["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_uses_configured_timeout(self):
        adapter = DeepSeekAdapter(api_key="test-key", timeout=15.0)

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_mock_completion())
            await adapter.complete(_request())

        assert mock_client_cls.call_args.kwargs["timeout"] == 15.0

    @pytest.mark.asyncio
    async def test_base_url_override(self):
        adapter = DeepSeekAdapter(api_key="test-key", base_url="https://proxy.internal/deepseek/")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            mock_client = _patched_client(mock_client_cls, post=_mock_completion())
            await adapter.complete(_request())

        assert mock_client.post.call_args.args[0] == "https://proxy.internal/deepseek/chat/completions"

    @pytest.mark.asyncio
    async def test_timeout(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, side_effect=httpx.ReadTimeout("timeout"))
            resp = await adapter.complete(_request(timeout=5.0))

        assert resp.status == RequestStatus.TIMEOUT
        assert resp.status_code == 0
        assert "5.0" in resp.error_message

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, side_effect=httpx.ConnectError("Connection refused"))
            resp = await adapter.complete(_request())

        assert resp.status == RequestStatus.UNREACHABLE
        assert "Connection refused" in resp.error_message

    @pytest.mark.asyncio
    async def test_rejected_with_upstream_message(self):
        adapter = DeepSeekAdapter(api_key="bad-key")
        body = {"error": {"message": "Authentication Fails (no such user)", "type": "authentication_error"}}

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_make_httpx_response(401, json_data=body))
            resp = await adapter.complete(_request())

        assert resp.status == RequestStatus.REJECTED
        assert resp.status_code == 401
        assert resp.error_message == "Authentication Fails (no such user)"

    @pytest.mark.asyncio
    async def test_rejected_with_plain_text_body(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_make_httpx_response(503, text="Server is busy"))
            resp = await adapter.complete(_request())

        assert resp.status == RequestStatus.REJECTED
        assert resp.status_code == 503
        assert resp.error_message == "Server is busy"

    @pytest.mark.asyncio
    async def test_bad_envelope(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_make_httpx_response(200, json_data={"unexpected": True}))
            resp = await adapter.complete(_request())

        assert resp.status == RequestStatus.BAD_RESPONSE

    @pytest.mark.asyncio
    async def test_null_content_is_empty_text(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_mock_completion(text=None))
            resp = await adapter.complete(_request())

        assert resp.ok
        assert resp.text == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "usage",
        [
            [{"prompt_tokens": 5}],
            {"prompt_tokens": None, "completion_tokens": None},
            {"prompt_tokens": "12", "completion_tokens": True},
            "n/a",
        ],
    )
    async def test_malformed_usage_counts_as_zero(self, usage):
        adapter = DeepSeekAdapter(api_key="test-key")
        body = {"choices": [{"message": {"content": "[]"}}], "model": "deepseek-chat", "usage": usage}

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_make_httpx_response(200, json_data=body))
            resp = await adapter.complete(_request())

        assert resp.ok
        assert resp.text == "[]"
        assert resp.input_tokens == 0
        assert resp.output_tokens == 0
        assert resp.total_tokens == 0

    @pytest.mark.asyncio
    async def test_non_text_content_is_bad_response(self):
        adapter = DeepSeekAdapter(api_key="test-key")
        body = {"choices": [{"message": {"content": {"products": []}}}]}

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_make_httpx_response(200, json_data=body))
            resp = await adapter.complete(_request())

        assert resp.status == RequestStatus.BAD_RESPONSE

    @pytest.mark.asyncio
    async def test_ping(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            mock_client = _patched_client(mock_client_cls, get=_make_httpx_response(200, json_data={"data": []}))
            resp = await adapter.ping()

        assert resp.ok
        assert resp.status_code == 200
        assert mock_client.get.call_args.args[0] == "https://api.deepseek.com/models"

    @pytest.mark.asyncio
    async def test_ping_unreachable(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, side_effect=httpx.ConnectError("dns failure"))
            resp = await adapter.ping()

        assert resp.status == RequestStatus.UNREACHABLE


class TestOpenAIAdapter:
    @pytest.mark.asyncio
    async def test_success(self):
        adapter = OpenAIAdapter(api_key="sk-test")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            mock_client = _patched_client(mock_client_cls, post=_mock_completion("Try the Sony pair.", model="gpt-4-turbo"))
            resp = await adapter.complete(_request(temperature=0.7, max_tokens=500))

        assert resp.ok
        assert resp.text == "Try the Sony pair."
        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["model"] == "gpt-4-turbo"
        assert payload["max_tokens"] == 500
        assert payload["temperature"] == 0.7
        assert "response_format" not in payload
        assert mock_client.post.call_args.args[0] == "https://api.openai.com/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_rate_limited_upstream(self):
        adapter = OpenAIAdapter(api_key="sk-test")

        with patch("lucid_api.gateway.vendor_adapters.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, post=_make_httpx_response(429, json_data={"error": "slow down"}))
            resp = await adapter.complete(_request())

        assert resp.status == RequestStatus.REJECTED
        assert resp.status_code == 429
        assert resp.error_message == "slow down"


class TestRegistry:
    def test_registry_covers_vendors(self):
        assert set(ADAPTER_REGISTRY) == set(GatewayVendor)

    def test_get_adapter_applies_config(self):
        config = VendorConfig(
            vendor=GatewayVendor.OPENAI,
            base_url="https://openai.test/v1",
            model="gpt-4o-mini",
            timeout_seconds=12.0,
        )
        adapter = get_adapter(config, "sk-test")
        assert isinstance(adapter, OpenAIAdapter)
        assert adapter.chat_url == "https://openai.test/v1/chat/completions"
        assert adapter.model == "gpt-4o-mini"
        assert adapter.timeout == 12.0
