"""对话客户端：状态控制器（controller）、渲染（render）与中继访问（relay_client）。

控制器不依赖任何界面库，tkinter 前端（chat_relay.gui）与测试都通过它驱动。
"""
