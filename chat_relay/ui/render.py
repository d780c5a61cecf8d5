"""把 Conversation 渲染成与界面无关的结构。

渲染是整体替换：每次都从当前 Conversation 重新生成全部条目。
内容按空行拆成段落，段落内按单个换行拆成行，不做任何 markdown 解析。
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from chat_relay.domain.models import ChatMessage


EMPTY_PLACEHOLDER = "No messages yet. Ask a question to get started."

ROLE_LABELS = {
    "system": "System",
    "assistant": "Assistant",
    "user": "You",
}

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")


def role_label(role: str) -> str:
    return ROLE_LABELS.get(role, role)


def split_paragraphs(content: str) -> List[List[str]]:
    return [block.split("\n") for block in _PARAGRAPH_BREAK.split(content)]


@dataclass
class RenderedMessage:
    role: str
    label: str
    paragraphs: List[List[str]]


@dataclass
class Transcript:
    """渲染结果；对话为空时 messages 为空且 placeholder 有值。"""

    messages: List[RenderedMessage] = field(default_factory=list)
    placeholder: Optional[str] = None


def render_transcript(messages: Iterable[ChatMessage]) -> Transcript:
    rendered = [
        RenderedMessage(role=m.role, label=role_label(m.role), paragraphs=split_paragraphs(m.content))
        for m in messages
    ]
    if not rendered:
        return Transcript(placeholder=EMPTY_PLACEHOLDER)
    return Transcript(messages=rendered)


def transcript_text(transcript: Transcript) -> str:
    """纯文本形式：标题行 + 段落，段落之间空一行，消息之间空一行。"""
    if transcript.placeholder is not None:
        return transcript.placeholder
    blocks = []
    for message in transcript.messages:
        body = "\n\n".join("\n".join(lines) for lines in message.paragraphs)
        blocks.append(f"{message.label}\n{body}")
    return "\n\n".join(blocks)
