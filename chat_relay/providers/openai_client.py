"""OpenAI Provider 适配器。

本模块负责：

1. 接收已清洗的 ChatRequest。
2. 将其转换为 OpenAI chat/completions 请求体。
3. 在硬超时内调用 HTTP 接口，并把超时/网络/接口错误映射为业务异常。
4. 提取第一个 choice 的文本与 usage 块，构造 ChatResult。

不做任何重试：一次失败直接上抛给调用方。
"""

import json
import time
from typing import Any, Dict, Optional

import httpx

from chat_relay.domain.exceptions import (
    BadGateway,
    ConfigurationError,
    UpstreamError,
    UpstreamTimeout,
)
from chat_relay.domain.models import ChatRequest, ChatResult
from chat_relay.infrastructure.logging.logger import logger
from chat_relay.providers.registry import OPENAI_CONFIG, ProviderConfig


GENERIC_UPSTREAM_ERROR = "Failed to retrieve a response from OpenAI."


def extract_error_message(body: Any, fallback: str = GENERIC_UPSTREAM_ERROR) -> str:
    """从上游错误响应中提取 error.message。

    body 可以是原始文本或已解析的 JSON；任何形状不符都返回 fallback，
    本函数不会抛出异常。
    """

    data = body
    if isinstance(body, (str, bytes, bytearray)):
        try:
            data = json.loads(body)
        except (ValueError, TypeError):
            return fallback
    if not isinstance(data, dict):
        return fallback
    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return fallback


class OpenAIClient:
    """OpenAI chat/completions 客户端实现。"""

    name = "openai"

    def __init__(self, settings, provider_config: ProviderConfig = OPENAI_CONFIG):
        # settings 提供 api_key、base_url、超时等配置
        self._settings = settings
        self._provider_config = provider_config

    def chat(self, req: ChatRequest) -> ChatResult:
        """执行一次非流式对话调用。

        整个调用（连接、发送、读完响应体）受 http_timeout 秒的总时限约束，
        超过时限立即退出 with 块，释放底层连接并抛出 UpstreamTimeout。
        """

        api_key = getattr(self._settings, "openai_api_key", None)
        if not api_key:
            raise ConfigurationError(
                code="MISSING_API_KEY",
                message="OPENAI_API_KEY is not configured on the server.",
            )
        payload = self._build_payload(req)
        base = getattr(self._settings, "openai_base_url", None) or self._provider_config.base_url
        timeout = self._settings.http_timeout
        deadline = time.monotonic() + timeout
        try:
            with httpx.Client(timeout=timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    f"{base.rstrip('/')}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                ) as resp:
                    status_code = resp.status_code
                    body = self._read_body(resp, deadline)
        except httpx.TimeoutException as e:
            logger.error(f"OpenAI request timed out: {e}")
            raise UpstreamTimeout(code="UPSTREAM_TIMEOUT", message="The OpenAI request timed out.")
        except httpx.RequestError as e:
            logger.error(f"Error contacting OpenAI: {e}")
            raise BadGateway(code="UPSTREAM_UNREACHABLE", message="Unable to complete the request to OpenAI.")

        if not 200 <= status_code < 300:
            text = body.decode("utf-8", errors="replace")
            logger.error(
                f"OpenAI API error: {status_code}",
                extra={"extra": {"status": status_code, "body": text}},
            )
            raise UpstreamError(
                code="UPSTREAM_ERROR",
                message=extract_error_message(text),
                http_status=status_code,
            )
        try:
            data = json.loads(body)
        except ValueError:
            raise BadGateway(code="UPSTREAM_BAD_RESPONSE", message="Invalid response format from OpenAI.")
        return self._parse_response(data, req)

    @staticmethod
    def _read_body(resp, deadline: float) -> bytes:
        """逐块读取响应体，超过截止时间即抛出 UpstreamTimeout。"""

        chunks = []
        for chunk in resp.iter_bytes():
            chunks.append(chunk)
            if time.monotonic() > deadline:
                logger.error("OpenAI request exceeded the overall deadline")
                raise UpstreamTimeout(code="UPSTREAM_TIMEOUT", message="The OpenAI request timed out.")
        return b"".join(chunks)

    def _build_payload(self, req: ChatRequest) -> Dict[str, Any]:
        """将 ChatRequest 转成 OpenAI 所需的请求 JSON，max_tokens 为 None 时省略。"""

        payload: Dict[str, Any] = {
            "model": req.model,
            "messages": [m.to_payload() for m in req.messages],
            "temperature": req.temperature,
        }
        if req.max_tokens is not None:
            payload["max_tokens"] = req.max_tokens
        return payload

    @staticmethod
    def _first_content(data: Any) -> str:
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return ""
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return ""
        content = message.get("content")
        return content if isinstance(content, str) else ""

    def _parse_response(self, data: Any, req: ChatRequest) -> ChatResult:
        usage: Optional[Dict[str, Any]] = None
        if isinstance(data, dict) and isinstance(data.get("usage"), dict):
            usage = data["usage"]
        return ChatResult(model=req.model, content=self._first_content(data), usage=usage, raw=data)
