"""访问中继服务 /api/chat 的 HTTP 客户端。"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from chat_relay.domain.exceptions import RelayClientError
from chat_relay.domain.models import ChatUsage


UNKNOWN_SERVER_ERROR = "Unknown server error."


@dataclass
class RelayReply:
    message: Any
    usage: Optional[ChatUsage] = None


class RelayClient:
    """把对话提交给中继服务。

    网络错误、非 2xx 和无法解析的响应都统一抛出 RelayClientError，
    message 为可直接展示给用户的文字。
    """

    def __init__(self, base_url: str, timeout: float = 90.0):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def chat(self, messages: List[Dict[str, str]], temperature: Optional[float] = None) -> RelayReply:
        payload: Dict[str, Any] = {"messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        try:
            with httpx.Client(timeout=self._timeout, trust_env=False) as client:
                resp = client.post(f"{self._base_url}/api/chat", json=payload)
        except httpx.RequestError as e:
            raise RelayClientError(code="NETWORK_ERROR", message=f"Could not reach the relay server: {e}")
        try:
            data = resp.json()
        except ValueError:
            raise RelayClientError(
                code="BAD_RESPONSE",
                message="The server returned an unreadable response.",
                http_status=resp.status_code,
            )
        if not isinstance(data, dict):
            data = {}
        if not 200 <= resp.status_code < 300:
            error = data.get("error")
            raise RelayClientError(
                code="SERVER_ERROR",
                message=error if isinstance(error, str) and error else UNKNOWN_SERVER_ERROR,
                http_status=resp.status_code,
            )
        return RelayReply(message=data.get("message"), usage=ChatUsage.from_payload(data.get("usage")))
