# chat_completions_adapter.py
# =============================================================================
# Chat Completions API 适配器 / Chat Completions API adapter
#
# 职责 / Responsibilities:
#   - 将 (system_prompt, user_message) 调用转换为 Chat Completions 请求
#     / Turn a (system_prompt, user_message) call into a Chat Completions request
#   - 提取 choices[0].message.content 文本
#     / Extract the choices[0].message.content text
#   - 网络/HTTP 失败统一抛出 TransportFailure，与内容解析错误区分
#     / Network and HTTP failures surface as TransportFailure, distinct from
#       content-shape errors
#
# URL 兼容性 / URL handling:
#   1. 基础 URL：https://api.openai.com/v1 -> 自动追加 /chat/completions
#   2. 完整路径：.../chat/completions      -> 直接使用（保留 query 参数）
#
# 请求格式 / Request format:
#   {"model": "xxx", "messages": [{"role": "system", ...}, {"role": "user", ...}],
#    "temperature": 0.3, "max_tokens": 2000}
#   -> response["choices"][0]["message"]["content"]
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse, urlunparse

import httpx

from vendorscope.errors import TransportFailure

logger = logging.getLogger(__name__)

# 值得重试的 HTTP 状态码 / HTTP statuses worth retrying
_RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}


class ChatCompletionsAdapter:
    """Chat Completions API 适配器。

    通过 httpx 异步直连端点，Bearer 认证。
    / Talks to the endpoint directly over httpx with bearer auth.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._endpoint = self._resolve_endpoint(url)
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def model(self) -> str:
        return self._model

    async def call(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float,
        max_tokens: Optional[int] = None,
    ) -> str:
        """调用 Chat Completions API 并返回文本内容。

        Returns:
            choices[0].message.content；信封中缺失时为空字符串。
            / The message content, or "" when the envelope lacks it.

        Raises:
            TransportFailure: 非 2xx、超时、连接错误或响应体不是 JSON。
                / non-2xx, timeout, connection error, or a non-JSON body.
        """
        request_body = self._build_request(
            system_prompt, user_message, temperature, max_tokens
        )
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

        last_detail = "no attempt made"
        last_status: Optional[int] = None
        last_exc: Optional[Exception] = None
        for attempt in range(max(0, self._max_retries) + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport
                ) as client:
                    response = await client.post(
                        self._endpoint,
                        headers=headers,
                        json=request_body,
                    )
                    response.raise_for_status()
                    result = response.json()
                    return self._extract_text(result)

            except httpx.HTTPStatusError as e:
                last_status = e.response.status_code
                last_detail = f"HTTP {last_status} {e.response.reason_phrase}"
                last_exc = e
                logger.warning(
                    "Chat Completions API 调用失败 (HTTP %d)，第 %d/%d 次: %s",
                    last_status,
                    attempt + 1,
                    self._max_retries + 1,
                    e.response.text[:200],
                )
                if last_status not in _RETRYABLE_STATUS:
                    break
            except httpx.RequestError as e:
                last_status = None
                last_detail = f"{type(e).__name__}: {e}"
                last_exc = e
                logger.warning(
                    "Chat Completions API 请求异常，第 %d/%d 次: %s",
                    attempt + 1,
                    self._max_retries + 1,
                    e,
                )
            except json.JSONDecodeError as e:
                raise TransportFailure(
                    f"分析服务返回的响应体不是 JSON / response body is not JSON: {e}"
                ) from e

        raise TransportFailure(
            f"分析服务调用失败 / analysis service call failed: {last_detail}",
            status_code=last_status,
        ) from last_exc

    # =========================================================================
    # URL 解析 / URL resolution
    # =========================================================================

    @staticmethod
    def _resolve_endpoint(url: str) -> str:
        parsed = urlparse(url)
        path = parsed.path
        if "/chat/completions" not in path:
            path = path.rstrip("/") + "/chat/completions"
        return urlunparse(parsed._replace(path=path))

    # =========================================================================
    # 请求构建与响应解析 / Request building & response parsing
    # =========================================================================

    def _build_request(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_message})

        body: Dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        return body

    @staticmethod
    def _extract_text(response_data: Any) -> str:
        """标准格式 / Standard shape: response["choices"][0]["message"]["content"]"""
        if isinstance(response_data, dict):
            choices = response_data.get("choices") or []
            if isinstance(choices, list) and choices and isinstance(choices[0], dict):
                message = choices[0].get("message") or {}
                content = message.get("content") if isinstance(message, dict) else None
                if isinstance(content, str):
                    return content

        logger.warning(
            "Chat Completions API 响应中未找到文本内容: %s",
            json.dumps(response_data, ensure_ascii=False)[:300],
        )
        return ""

    @classmethod
    def from_gateway_config(
        cls,
        config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> ChatCompletionsAdapter:
        """从 GatewayConfig 创建适配器。 / Build an adapter from a GatewayConfig.

        Raises:
            ConfigurationError: 缺少 api_key 或 url。 / api_key or url missing.
        """
        error = config.validate()
        if error is not None:
            raise error
        return cls(
            url=config.url,
            api_key=config.api_key,
            model=config.model,
            timeout=config.timeout,
            max_retries=config.max_retries,
            transport=transport,
        )
