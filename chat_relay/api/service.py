"""对话中继服务。

与 HTTP 框架无关的中继逻辑：读取并校验请求体、清洗消息、调用 Provider，
所有失败都以 domain.exceptions 中的异常形式抛出，由 HTTP 层统一转换。
"""

import json
from typing import Any, BinaryIO, Dict, List, Optional

from chat_relay.config.settings import settings
from chat_relay.domain.exceptions import BadRequest, ConfigurationError, PayloadTooLarge
from chat_relay.domain.models import ChatMessage, ChatRequest
from chat_relay.providers import create_provider
from chat_relay.providers.base import ProviderClient
from chat_relay.providers.registry import OPENAI_CONFIG


READ_CHUNK_SIZE = 64 * 1024

_provider: Optional[ProviderClient] = None


def get_default_provider() -> ProviderClient:
    """获取默认 Provider 实例（单例）。"""
    global _provider
    if _provider is None:
        _provider = create_provider()
    return _provider


def read_body(stream: BinaryIO, length: int, limit: int) -> bytes:
    """按块读取请求体，超过 limit 字节时抛出 PayloadTooLarge。

    声明的长度已经超限时不再读取。
    """
    if length > limit + 1:
        raise PayloadTooLarge(code="PAYLOAD_TOO_LARGE", message="Request body too large")
    chunks: List[bytes] = []
    total = 0
    remaining = length
    while remaining > 0:
        chunk = stream.read(min(READ_CHUNK_SIZE, remaining))
        if not chunk:
            break
        chunks.append(chunk)
        total += len(chunk)
        remaining -= len(chunk)
        if total > limit:
            raise PayloadTooLarge(code="PAYLOAD_TOO_LARGE", message="Request body too large")
    return b"".join(chunks)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_chat_request(body: bytes, cfg=settings) -> ChatRequest:
    """解析并校验 /api/chat 请求体，返回清洗后的 ChatRequest。

    只保留每条消息的 role/content；temperature 不是数字时取默认值，
    max_tokens 只在是数字时转发。
    """
    try:
        payload = json.loads(body.decode("utf-8") or "{}") if body else {}
    except (UnicodeDecodeError, ValueError):
        raise BadRequest(code="INVALID_JSON", message="Request body must be valid JSON.")

    if not isinstance(payload, dict):
        payload = {}
    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        raise BadRequest(code="MISSING_MESSAGES", message='The "messages" array is required.')

    sanitized: List[ChatMessage] = []
    for index, item in enumerate(messages):
        if not isinstance(item, dict):
            raise BadRequest(
                code="INVALID_MESSAGE",
                message=f"messages[{index}] must be an object with role and content strings.",
            )
        for field_name in ("role", "content"):
            if not isinstance(item.get(field_name), str):
                raise BadRequest(
                    code="INVALID_MESSAGE",
                    message=f"messages[{index}].{field_name} must be a string.",
                    field=f"messages[{index}].{field_name}",
                )
        sanitized.append(ChatMessage(role=item["role"], content=item["content"]))

    temperature = payload.get("temperature")
    max_tokens = payload.get("max_tokens")
    return ChatRequest(
        model=getattr(cfg, "openai_model", None) or OPENAI_CONFIG.default_model,
        messages=sanitized,
        temperature=temperature if _is_number(temperature) else OPENAI_CONFIG.default_temperature,
        max_tokens=max_tokens if _is_number(max_tokens) else None,
    )


def ensure_configured(cfg=settings) -> None:
    """未配置 OPENAI_API_KEY 时抛出 ConfigurationError（只影响当前请求）。"""
    if not getattr(cfg, "openai_api_key", None):
        raise ConfigurationError(
            code="MISSING_API_KEY",
            message="OPENAI_API_KEY is not configured on the server.",
        )


def relay_chat(
    body: bytes,
    provider: Optional[ProviderClient] = None,
    cfg=settings,
) -> Dict[str, Any]:
    """处理一次 /api/chat 请求，返回 {"message", "usage"}。

    Raises:
        ConfigurationError: 未配置 OPENAI_API_KEY。
        BadRequest: 请求体不是合法 JSON 或 messages 不合法。
        UpstreamTimeout / UpstreamError / BadGateway: 上游调用失败。
    """
    ensure_configured(cfg)
    req = parse_chat_request(body, cfg)
    result = (provider or get_default_provider()).chat(req)
    return {"message": result.content, "usage": result.usage}
