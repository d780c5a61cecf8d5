"""对话记录与客户端本地存储协议。"""

from typing import Any, Iterable, Iterator, List, Optional, Protocol

from .models import ChatMessage


def is_valid_message(item: Any) -> bool:
    """持久化/提交的消息只要求 role 与 content 都是字符串。"""
    return (
        isinstance(item, dict)
        and isinstance(item.get("role"), str)
        and isinstance(item.get("content"), str)
    )


class Conversation:
    """有序的消息列表。

    不变量：最多一条 system 消息，且只能位于下标 0。
    除 system 消息可被原地改写外，追加后的消息不再修改。
    """

    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None):
        self._messages: List[ChatMessage] = list(messages or [])

    @classmethod
    def from_payload(cls, items: Any) -> "Conversation":
        """从持久化数据恢复，丢弃格式不正确的条目。"""
        if not isinstance(items, list):
            return cls()
        return cls(
            ChatMessage(role=item["role"], content=item["content"])
            for item in items
            if is_valid_message(item)
        )

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> ChatMessage:
        return self._messages[index]

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def system_message(self) -> Optional[ChatMessage]:
        if self._messages and self._messages[0].role == "system":
            return self._messages[0]
        return None

    def sync_system(self, prompt: str) -> None:
        """让 system 消息与提示词输入保持一致。

        去掉首尾空白后为空则删除 system 消息；否则改写或插入到最前面。
        其余位置上残留的 system 消息一并移除。
        """
        text = (prompt or "").strip()
        existing = [m for m in self._messages if m.role == "system"]
        if existing:
            self._messages = [m for m in self._messages if m.role != "system"]
        if not text:
            return
        if existing:
            system = existing[0]
            system.content = text
        else:
            system = ChatMessage(role="system", content=text)
        self._messages.insert(0, system)

    def append(self, role: str, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content)
        self._messages.append(message)
        return message

    def remove(self, message: ChatMessage) -> bool:
        """按对象身份移除最后一次出现的消息，找不到时返回 False。"""
        for index in range(len(self._messages) - 1, -1, -1):
            if self._messages[index] is message:
                del self._messages[index]
                return True
        return False

    def reset(self, prompt: str = "") -> None:
        """清空对话，提示词非空时只保留一条 system 消息。"""
        text = (prompt or "").strip()
        self._messages = [ChatMessage(role="system", content=text)] if text else []

    def to_payload(self) -> List[dict]:
        return [m.to_payload() for m in self._messages]


class StateStore(Protocol):
    """客户端本地存储（键 -> 字符串），语义与浏览器 localStorage 相同。"""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...
