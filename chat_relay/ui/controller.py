"""对话客户端控制器。

ChatController 持有全部界面状态（ChatState），只通过以下操作修改：
start / restore / set_system_prompt / set_system_input / set_temperature /
set_compose_text / send / clear / compose_advice_prompt。每次渲染后都会把状态写入本地存储。

界面通过 ChatView 协议接收更新，控制器本身不依赖任何界面库。
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from chat_relay.domain.conversation import Conversation, StateStore
from chat_relay.domain.exceptions import BusinessError
from chat_relay.infrastructure.logging.logger import logger
from chat_relay.prompts import build_advice_prompt, load_system_prompt
from chat_relay.ui.relay_client import RelayClient
from chat_relay.ui.render import Transcript, render_transcript


STORAGE_KEY = "remote-chatgpt-state-v1"
DEFAULT_TEMPERATURE = "0.7"
NO_CONTENT_PLACEHOLDER = "(No content in response)"

IDLE = "idle"
SENDING = "sending"


@dataclass
class Status:
    text: str = ""
    kind: str = "info"  # info / warning / error


@dataclass
class ChatState:
    system_prompt: str = ""
    # 与滑块控件一致，保存为文本
    temperature: str = DEFAULT_TEMPERATURE
    compose_text: str = ""
    phase: str = IDLE
    status: Status = field(default_factory=Status)
    conversation: Conversation = field(default_factory=Conversation)

    @property
    def sending(self) -> bool:
        return self.phase == SENDING


class ChatView(Protocol):
    def show_transcript(self, transcript: Transcript) -> None:
        """整体替换显示内容，并滚动到底部。"""
        ...

    def show_status(self, status: Status) -> None:
        ...

    def set_busy(self, busy: bool) -> None:
        """发送期间禁用发送按钮与输入框。"""
        ...

    def set_compose_text(self, text: str) -> None:
        ...


class NullView:
    def show_transcript(self, transcript: Transcript) -> None:
        pass

    def show_status(self, status: Status) -> None:
        pass

    def set_busy(self, busy: bool) -> None:
        pass

    def set_compose_text(self, text: str) -> None:
        pass


def _parse_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def format_number(value: float) -> str:
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


class ChatController:
    def __init__(
        self,
        storage: StateStore,
        client: RelayClient,
        view: Optional[ChatView] = None,
        default_system_prompt: Optional[str] = None,
    ):
        self._storage = storage
        self._client = client
        self._view = view or NullView()
        self._default_system_prompt = (
            default_system_prompt if default_system_prompt is not None else load_system_prompt()
        )
        self.state = ChatState()

    @property
    def conversation(self) -> Conversation:
        return self.state.conversation

    def attach_view(self, view: ChatView) -> None:
        self._view = view

    # ---- 启动与持久化 ----

    def start(self) -> None:
        self.restore()
        self.render()
        self.set_status("Ready to chat.")

    def restore(self) -> None:
        """从本地存储恢复状态；没有数据或数据损坏时使用默认 system prompt。"""
        state = self.state
        try:
            raw = self._storage.get_item(STORAGE_KEY)
            if raw is None:
                self._restore_defaults()
                return
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                raise ValueError("persisted state is not an object")
        except (BusinessError, ValueError) as e:
            logger.warning(f"Could not load saved conversation: {e}")
            self._restore_defaults()
            return

        system = parsed.get("system")
        state.system_prompt = system if isinstance(system, str) else self._default_system_prompt
        state.conversation = Conversation.from_payload(parsed.get("conversation"))
        state.conversation.sync_system(state.system_prompt)

        temperature = _parse_number(parsed.get("temperature"))
        if temperature is not None:
            state.temperature = format_number(min(max(temperature, 0.0), 1.0))

    def _restore_defaults(self) -> None:
        self.state.system_prompt = self._default_system_prompt
        self.state.conversation = Conversation()
        self.state.conversation.sync_system(self.state.system_prompt)

    def snapshot(self) -> dict:
        """持久化用的规范形式。"""
        return {
            "system": self.state.system_prompt,
            "temperature": self.state.temperature,
            "conversation": self.state.conversation.to_payload(),
        }

    def persist(self) -> None:
        try:
            self._storage.set_item(STORAGE_KEY, json.dumps(self.snapshot(), ensure_ascii=False))
        except BusinessError as e:
            logger.warning(f"Could not save conversation: {e.message}")

    def render(self) -> Transcript:
        transcript = render_transcript(self.state.conversation)
        self._view.show_transcript(transcript)
        self.persist()
        return transcript

    # ---- 状态 ----

    def set_status(self, text: str, kind: str = "info") -> None:
        self.state.status = Status(text=text, kind=kind)
        self._view.show_status(self.state.status)

    def _set_loading(self, loading: bool) -> None:
        self.state.phase = SENDING if loading else IDLE
        self._view.set_busy(loading)

    def _set_compose(self, text: str) -> None:
        self.state.compose_text = text
        self._view.set_compose_text(text)

    def set_compose_text(self, text: str) -> None:
        self.state.compose_text = text

    def set_system_input(self, text: str) -> None:
        """只记录输入框内容；下一次发送前才同步到对话。"""
        self.state.system_prompt = text

    def set_system_prompt(self, text: str) -> None:
        self.state.system_prompt = text
        self.state.conversation.sync_system(text)
        self.render()
        self.set_status("System message updated.")

    def set_temperature(self, value: Any) -> None:
        number = _parse_number(value)
        if number is not None:
            self.state.temperature = format_number(min(max(number, 0.0), 1.0))
        self.persist()

    def temperature_label(self) -> str:
        number = _parse_number(self.state.temperature)
        return f"{number if number is not None else 0.0:.1f}"

    # ---- 操作 ----

    def send(self) -> bool:
        """发送输入框中的消息，返回是否成功拿到回答。

        发送中再次调用会被忽略；输入为空白时只给出警告。
        失败时撤回刚追加的用户消息，并把原文放回输入框。
        """
        state = self.state
        if state.sending:
            return False

        user_text = state.compose_text.strip()
        if not user_text:
            self.set_status("Type a message first.", "warning")
            return False

        state.conversation.sync_system(state.system_prompt)
        user_message = state.conversation.append("user", user_text)
        self._set_compose("")
        self.render()

        self._set_loading(True)
        try:
            self.set_status("Requesting response...")
            reply = self._client.chat(
                state.conversation.to_payload(),
                temperature=_parse_number(state.temperature),
            )
            answer = reply.message.strip() if isinstance(reply.message, str) else ""
            state.conversation.append("assistant", answer or NO_CONTENT_PLACEHOLDER)
            self.render()
            summary = reply.usage.summary() if reply.usage else ""
            self.set_status(f"Response received ({summary})." if summary else "Response received.")
            return True
        except BusinessError as e:
            logger.error(f"Failed to fetch response: {e.message}")
            state.conversation.remove(user_message)
            self.render()
            self._set_compose(user_message.content)
            self.set_status(e.message, "error")
            return False
        finally:
            self._set_loading(False)

    def clear(self) -> None:
        if not len(self.state.conversation):
            return
        self.state.conversation.reset(self.state.system_prompt)
        self.render()
        self.set_status("Conversation cleared.")

    def compose_advice_prompt(
        self,
        home_description: Optional[str],
        usage_details: Optional[str],
        location: Optional[str],
        data_sources: Optional[str],
    ) -> str:
        """生成咨询提示词放进输入框，不发送。"""
        prompt = build_advice_prompt(home_description, usage_details, location, data_sources)
        self._set_compose(prompt)
        self.set_status("Advice prompt generated. Adjust it as needed and send.", "info")
        return prompt
