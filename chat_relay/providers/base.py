"""Provider 抽象接口。

中继服务不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：
实现者负责把 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult，
同时把网络/接口错误映射为 domain.exceptions 中的异常。
"""

from typing import Protocol

from chat_relay.domain.models import ChatRequest, ChatResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。"""

    name: str

    def chat(self, req: ChatRequest) -> ChatResult:
        ...
