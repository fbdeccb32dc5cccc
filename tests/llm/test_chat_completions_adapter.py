# test_chat_completions_adapter.py
# =============================================================================
# ChatCompletionsAdapter 单元测试 / ChatCompletionsAdapter unit tests
# - URL 补全逻辑 / URL completion logic
# - 请求构建 / Request building
# - 响应解析 / Response parsing
# - 传输错误与重试 / Transport errors & retries
# - from_gateway_config 工厂方法 / Factory method
# =============================================================================

import json

import httpx
import pytest

from vendorscope.config import GatewayConfig
from vendorscope.errors import ConfigurationError, TransportFailure
from vendorscope.llm.chat_completions_adapter import ChatCompletionsAdapter


def _ok(content):
    return httpx.Response(
        200, json={"choices": [{"message": {"role": "assistant", "content": content}}]}
    )


class TestResolveEndpoint:
    """URL 补全逻辑测试。 / URL completion logic tests."""

    def test_appends_chat_completions_to_base_url(self):
        assert (
            ChatCompletionsAdapter._resolve_endpoint("https://api.openai.com/v1")
            == "https://api.openai.com/v1/chat/completions"
        )

    def test_preserves_existing_chat_completions_path(self):
        url = "https://api.openai.com/v1/chat/completions"
        assert ChatCompletionsAdapter._resolve_endpoint(url) == url

    def test_preserves_query_params(self):
        url = "https://proxy.example.com/v1/chat/completions?tenant=a"
        assert "tenant=a" in ChatCompletionsAdapter._resolve_endpoint(url)

    def test_strips_trailing_slash(self):
        assert (
            ChatCompletionsAdapter._resolve_endpoint("https://api.openai.com/v1/")
            == "https://api.openai.com/v1/chat/completions"
        )


class TestBuildRequest:
    """请求构建测试。 / Request building tests."""

    def _adapter(self):
        return ChatCompletionsAdapter(
            url="https://api.openai.com/v1", api_key="test-key", model="gpt-5-turbo",
        )

    def test_includes_system_and_user_messages(self):
        body = self._adapter()._build_request("You are an analyst.", "Hello", 0.3, 2000)
        assert body["model"] == "gpt-5-turbo"
        assert body["messages"] == [
            {"role": "system", "content": "You are an analyst."},
            {"role": "user", "content": "Hello"},
        ]
        assert body["temperature"] == 0.3
        assert body["max_tokens"] == 2000

    def test_omits_system_when_empty(self):
        body = self._adapter()._build_request("", "Hello", 0.2)
        assert [m["role"] for m in body["messages"]] == ["user"]
        assert "max_tokens" not in body


class TestExtractText:
    """响应解析测试。 / Response parsing tests."""

    def test_extracts_from_standard_response(self):
        data = {"choices": [{"message": {"role": "assistant", "content": "Hi"}}], "usage": {}}
        assert ChatCompletionsAdapter._extract_text(data) == "Hi"

    def test_returns_empty_on_missing_choices(self):
        assert ChatCompletionsAdapter._extract_text({}) == ""

    def test_returns_empty_on_empty_choices(self):
        assert ChatCompletionsAdapter._extract_text({"choices": []}) == ""

    def test_returns_empty_on_null_content(self):
        data = {"choices": [{"message": {"role": "assistant", "content": None}}]}
        assert ChatCompletionsAdapter._extract_text(data) == ""


class TestCall:
    """HTTP 调用测试。 / HTTP call tests."""

    @pytest.mark.asyncio
    async def test_sends_bearer_auth_and_body(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return _ok('{"analysis": "ok"}')

        adapter = ChatCompletionsAdapter(
            url="https://api.openai.com/v1", api_key="sk-test", model="gpt-5-turbo",
            transport=httpx.MockTransport(handler),
        )
        text = await adapter.call("sys", "user", temperature=0.3, max_tokens=2000)

        assert text == '{"analysis": "ok"}'
        assert seen["auth"] == "Bearer sk-test"
        assert seen["url"] == "https://api.openai.com/v1/chat/completions"
        assert seen["body"]["temperature"] == 0.3
        assert seen["body"]["max_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self):
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) < 3:
                return httpx.Response(503)
            return _ok("done")

        adapter = ChatCompletionsAdapter(
            url="https://api.openai.com/v1", api_key="k", model="m", max_retries=2,
            transport=httpx.MockTransport(handler),
        )
        assert await adapter.call("s", "u", temperature=0.2) == "done"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_status(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(503)

        adapter = ChatCompletionsAdapter(
            url="https://api.openai.com/v1", api_key="k", model="m", max_retries=2,
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(TransportFailure) as exc_info:
            await adapter.call("s", "u", temperature=0.2)
        assert len(calls) == 3
        assert exc_info.value.status_code == 503
        assert "503" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(401)

        adapter = ChatCompletionsAdapter(
            url="https://api.openai.com/v1", api_key="k", model="m", max_retries=3,
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(TransportFailure) as exc_info:
            await adapter.call("s", "u", temperature=0.2)
        assert exc_info.value.status_code == 401
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connection_error_raises_transport_failure(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        adapter = ChatCompletionsAdapter(
            url="https://api.openai.com/v1", api_key="k", model="m", max_retries=1,
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(TransportFailure) as exc_info:
            await adapter.call("s", "u", temperature=0.2)
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_json_body_raises_transport_failure(self):
        adapter = ChatCompletionsAdapter(
            url="https://api.openai.com/v1", api_key="k", model="m",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b"oops")),
        )
        with pytest.raises(TransportFailure):
            await adapter.call("s", "u", temperature=0.2)


class TestFromGatewayConfig:
    """工厂方法测试。 / Factory method tests."""

    def test_raises_without_api_key(self):
        with pytest.raises(ConfigurationError, match="API key"):
            ChatCompletionsAdapter.from_gateway_config(GatewayConfig(api_key=None))

    def test_raises_without_url(self):
        with pytest.raises(ConfigurationError, match="URL"):
            ChatCompletionsAdapter.from_gateway_config(GatewayConfig(api_key="k", url=""))

    def test_creates_adapter_with_valid_config(self):
        adapter = ChatCompletionsAdapter.from_gateway_config(
            GatewayConfig(api_key="sk-test", model="gpt-5-turbo", timeout=10.0, max_retries=1)
        )
        assert adapter.model == "gpt-5-turbo"
        assert adapter.endpoint == "https://api.openai.com/v1/chat/completions"
        assert adapter._max_retries == 1
