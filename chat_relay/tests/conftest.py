import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class _SlowUpstreamHandler(BaseHTTPRequestHandler):
    """本地慢速上游。

    stall: 发送响应头之前先等待 delay 秒。
    drip: 立即返回 200，然后每 delay 秒写出一个字节。
    """

    mode = "stall"
    delay = 1.5
    body = b'{"choices": [{"message": {"content": "late"}}]}'

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        try:
            if self.mode == "stall":
                time.sleep(self.delay)
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(self.body)))
            self.end_headers()
            for i in range(len(self.body)):
                if self.mode == "drip":
                    time.sleep(self.delay)
                self.wfile.write(self.body[i:i + 1])
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def slow_upstream():
    """返回一个工厂：slow_upstream(mode, delay) -> 上游 base_url。"""

    servers = []

    def start(mode="stall", delay=1.5):
        handler = type("Handler", (_SlowUpstreamHandler,), {"mode": mode, "delay": delay})
        server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}/v1"

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()
