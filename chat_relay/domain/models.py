"""统一的对话与结果数据模型。

- ChatMessage: 一条对话消息（system/user/assistant）。
- ChatRequest: 发给上游 Provider 的完整请求。
- ChatUsage: token 统计。
- ChatResult: 从上游响应解析后的结果。

Provider 适配器与中继服务只依赖这些模型，
并负责在各自的 JSON 结构和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


# 消息角色（与 OpenAI chat/completions 的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass
class ChatMessage:
    """一条对话消息。

    role 在客户端恢复时可能是任意字符串（只校验类型），
    转发给上游时原样保留。
    """

    role: str
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatRequest:
    """一次完整的上游聊天请求（已清洗，只含 role/content）。"""

    model: str
    messages: List[ChatMessage]
    temperature: float = 0.7
    # None 表示不限制，不会出现在上游请求体中
    max_tokens: Optional[float] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class ChatUsage:
    """token 统计信息，字段缺失或非数字时为 None。"""

    prompt_tokens: Optional[float] = None
    completion_tokens: Optional[float] = None
    total_tokens: Optional[float] = None

    @classmethod
    def from_payload(cls, raw: Any) -> Optional["ChatUsage"]:
        if not isinstance(raw, dict):
            return None
        return cls(**{
            name: raw[name] if _is_number(raw.get(name)) else None
            for name in ("prompt_tokens", "completion_tokens", "total_tokens")
        })

    def summary(self) -> str:
        parts = []
        if self.prompt_tokens is not None:
            parts.append(f"prompt: {self.prompt_tokens}")
        if self.completion_tokens is not None:
            parts.append(f"completion: {self.completion_tokens}")
        if self.total_tokens is not None:
            parts.append(f"total: {self.total_tokens}")
        return ", ".join(parts)


@dataclass
class ChatResult:
    """一次上游调用的结果。

    - content: 第一个 choice 的消息内容（缺失时为空字符串）。
    - usage: 上游 usage 块原样透传（缺失时为 None）。
    - raw: 原始响应 JSON，用于调试。
    """

    model: str
    content: str
    usage: Optional[Dict[str, Any]] = None
    raw: Optional[Any] = field(default=None, repr=False)
