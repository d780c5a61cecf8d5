"""Chat Relay 顶层包。

该包提供一个最小化的对话中继：HTTP 服务端把前端提交的对话转发给
OpenAI 兼容的 chat/completions 接口并回传结果，同时托管静态页面资源；
客户端部分（ui / gui）负责维护、渲染并在本地持久化对话记录。
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
