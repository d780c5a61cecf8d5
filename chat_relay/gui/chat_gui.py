import threading
import tkinter as tk
from tkinter import scrolledtext

from chat_relay.config.settings import settings
from chat_relay.infrastructure.storage.json_store import JsonStateStore
from chat_relay.ui.controller import ChatController, Status
from chat_relay.ui.relay_client import RelayClient
from chat_relay.ui.render import Transcript


class TkChatView:
    """把控制器的更新投递到 Tk 主循环。"""

    def __init__(self, app: "App"):
        self.app = app

    def show_transcript(self, transcript: Transcript) -> None:
        self.app.root.after(0, lambda: self.app.draw_transcript(transcript))

    def show_status(self, status: Status) -> None:
        self.app.root.after(0, lambda: self.app.draw_status(status))

    def set_busy(self, busy: bool) -> None:
        self.app.root.after(0, lambda: self.app.draw_busy(busy))

    def set_compose_text(self, text: str) -> None:
        self.app.root.after(0, lambda: self.app.draw_compose(text))


class App:
    STATUS_COLORS = {"info": "#5f6368", "warning": "#e37400", "error": "#d93025"}

    def __init__(self, root, controller: ChatController):
        self.root = root
        self.root.title("Chat Relay")
        self.controller = controller
        main = tk.PanedWindow(root, orient=tk.HORIZONTAL)
        main.pack(fill=tk.BOTH, expand=True)
        left = tk.Frame(main)
        right = tk.Frame(main)
        main.add(left, minsize=260)
        main.add(right)

        # 左侧：system prompt、温度与咨询提示词生成
        tk.Label(left, text="System message").pack(anchor=tk.W)
        self.system_text = tk.Text(left, height=5, width=36, wrap=tk.WORD)
        self.system_text.pack(fill=tk.X)
        tk.Button(left, text="Apply", command=self.on_system_change).pack(anchor=tk.E)
        temp_row = tk.Frame(left)
        temp_row.pack(fill=tk.X)
        tk.Label(temp_row, text="Temperature").pack(side=tk.LEFT)
        self.temp_value = tk.Label(temp_row, text="")
        self.temp_value.pack(side=tk.RIGHT)
        self.temperature = tk.Scale(
            left, from_=0.0, to=1.0, resolution=0.1, orient=tk.HORIZONTAL,
            showvalue=False, command=self.on_temperature,
        )
        self.temperature.pack(fill=tk.X)
        advice = tk.LabelFrame(left, text="Advice prompt")
        advice.pack(fill=tk.BOTH, expand=True)
        self.home_entry = self._mk_labeled_entry(advice, "Home")
        self.usage_entry = self._mk_labeled_entry(advice, "Usage")
        self.location_entry = self._mk_labeled_entry(advice, "Location")
        self.sources_entry = self._mk_labeled_entry(advice, "Data sources")
        tk.Button(advice, text="Build prompt", command=self.on_build_prompt).pack(anchor=tk.E)

        # 右侧：对话记录与输入
        self.chat = scrolledtext.ScrolledText(right, width=80, height=24, wrap=tk.WORD)
        self.chat.pack(fill=tk.BOTH, expand=True)
        self.chat.tag_config("label", font=("TkDefaultFont", 10, "bold"))
        self.chat.tag_config("user", foreground="#1a73e8")
        self.chat.tag_config("assistant", foreground="#34a853")
        self.chat.tag_config("system", foreground="#5f6368")
        self.chat.tag_config("placeholder", foreground="#9aa0a6")
        rt_in = tk.Frame(right)
        rt_in.pack(fill=tk.X)
        self.entry = tk.Text(rt_in, height=4, wrap=tk.WORD)
        self.entry.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.entry.bind("<Control-Return>", self.on_send_event)
        buttons = tk.Frame(rt_in)
        buttons.pack(side=tk.LEFT, fill=tk.Y)
        self.send_btn = tk.Button(buttons, text="Send", command=self.on_send)
        self.send_btn.pack(fill=tk.X)
        tk.Button(buttons, text="Clear", command=self.on_clear).pack(fill=tk.X)
        self.status = tk.Label(right, text="", anchor=tk.W)
        self.status.pack(fill=tk.X)

        self.controller.attach_view(TkChatView(self))
        self.controller.start()
        self.system_text.insert("1.0", self.controller.state.system_prompt)
        self.temperature.set(float(self.controller.state.temperature))
        self.temp_value.config(text=self.controller.temperature_label())

    def _mk_labeled_entry(self, parent, label):
        fr = tk.Frame(parent)
        fr.pack(fill=tk.X)
        tk.Label(fr, text=label, width=12, anchor=tk.W).pack(side=tk.LEFT)
        ent = tk.Entry(fr)
        ent.pack(side=tk.LEFT, fill=tk.X, expand=True)
        return ent

    # ---- 绘制 ----

    def draw_transcript(self, transcript: Transcript):
        self.chat.delete("1.0", tk.END)
        if transcript.placeholder is not None:
            self.chat.insert(tk.END, transcript.placeholder, "placeholder")
        for message in transcript.messages:
            tag = message.role if message.role in ("user", "assistant", "system") else "system"
            self.chat.insert(tk.END, f"{message.label}\n", ("label", tag))
            for lines in message.paragraphs:
                self.chat.insert(tk.END, "\n".join(lines) + "\n\n", tag)
        self.chat.see(tk.END)

    def draw_status(self, status: Status):
        self.status.config(text=status.text, fg=self.STATUS_COLORS.get(status.kind, "#5f6368"))

    def draw_busy(self, busy: bool):
        state = tk.DISABLED if busy else tk.NORMAL
        self.send_btn.config(state=state)
        self.entry.config(state=state)

    def draw_compose(self, text: str):
        self.entry.config(state=tk.NORMAL)
        self.entry.delete("1.0", tk.END)
        self.entry.insert("1.0", text)
        self.entry.focus_set()

    # ---- 事件 ----

    def on_system_change(self):
        self.controller.set_system_prompt(self.system_text.get("1.0", "end-1c"))

    def on_temperature(self, value):
        self.controller.set_temperature(value)
        self.temp_value.config(text=self.controller.temperature_label())

    def on_build_prompt(self):
        self.controller.compose_advice_prompt(
            self.home_entry.get(),
            self.usage_entry.get(),
            self.location_entry.get(),
            self.sources_entry.get(),
        )

    def on_clear(self):
        self.controller.clear()

    def on_send(self):
        if self.controller.state.sending:
            return
        self.controller.set_compose_text(self.entry.get("1.0", "end-1c"))
        self.controller.set_system_input(self.system_text.get("1.0", "end-1c"))
        self.draw_busy(True)
        threading.Thread(target=self.controller.send, daemon=True).start()

    def on_send_event(self, event):
        self.on_send()
        return "break"


def main():
    controller = ChatController(
        JsonStateStore(settings.state_file),
        RelayClient(settings.relay_url, timeout=settings.client_timeout),
    )
    root = tk.Tk()
    App(root, controller)
    root.mainloop()


if __name__ == "__main__":
    main()
