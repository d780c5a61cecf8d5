"""tkinter 桌面前端。"""
