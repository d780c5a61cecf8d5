"""HTTP 层：中继服务（service）、静态文件（static）与服务器入口（server）。"""
