"""领域层模型与协议。

包含：
- models: ChatMessage / ChatRequest / ChatUsage / ChatResult 等统一数据结构。
- conversation: 对话记录 Conversation 及客户端本地存储协议 StateStore。
- exceptions: 业务异常类型定义（附带 HTTP 状态码）。
"""
