"""HTTP server for the chat relay.

Routes:
  POST /api/chat  -> chat relay (JSON in, JSON out)
  GET  /*         -> static files under the public directory
  anything else   -> 405 JSON
"""

import argparse
import json
from http.server import BaseHTTPRequestHandler, HTTPServer
from socketserver import ThreadingMixIn
from typing import Optional
from urllib.parse import urlsplit

from chat_relay.api.service import read_body, relay_chat
from chat_relay.api.static import open_static_file, stream_file
from chat_relay.config.settings import settings
from chat_relay.domain.exceptions import (
    BusinessError,
    InternalError,
    LengthRequired,
    MethodNotAllowed,
    PayloadTooLarge,
)
from chat_relay.infrastructure.logging.logger import logger
from chat_relay.providers import create_provider
from chat_relay.providers.base import ProviderClient


CHAT_PATH = "/api/chat"


class RelayHTTPServer(ThreadingMixIn, HTTPServer):
    """One thread per connection; no state is shared between requests."""

    daemon_threads = True

    def __init__(self, address, provider: ProviderClient, cfg=settings, public_dir: Optional[str] = None):
        super().__init__(address, RelayRequestHandler)
        self.provider = provider
        self.cfg = cfg
        self.public_dir = public_dir or cfg.public_dir


class RelayRequestHandler(BaseHTTPRequestHandler):
    """Request handler with chat relay and static file routing."""

    server: RelayHTTPServer

    def log_message(self, format, *args):
        logger.info(format % args, extra={"extra": {"client": self.client_address[0]}})

    def _json(self, data, status=200):
        """Send JSON response."""
        body = json.dumps(data).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self._headers_sent = True
        self.wfile.write(body)

    def _text(self, message, status):
        body = message.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self._headers_sent = True
        self.wfile.write(body)

    def _method_not_allowed(self):
        self._guarded(self._reject_method)

    def _reject_method(self):
        raise MethodNotAllowed(code="METHOD_NOT_ALLOWED", message="Method not allowed")

    do_PUT = do_DELETE = do_PATCH = do_HEAD = do_OPTIONS = _method_not_allowed

    def _guarded(self, handler):
        """Run a route; errors become JSON responses, never a crashed thread."""
        self._headers_sent = False
        try:
            handler()
        except BusinessError as e:
            if isinstance(e, (PayloadTooLarge, LengthRequired)):
                self.close_connection = True
            self._json({"error": e.message}, e.http_status)
        except Exception:
            logger.exception(f"Unexpected server error: {self.command} {self.path}")
            if self._headers_sent:
                self.close_connection = True
            else:
                error = InternalError(code="INTERNAL_ERROR", message="Internal server error")
                self._json({"error": error.message}, error.http_status)

    def do_POST(self):
        """Handle POST requests."""
        if urlsplit(self.path).path == CHAT_PATH:
            self._guarded(self._handle_chat)
        else:
            self._method_not_allowed()

    def do_GET(self):
        """Handle GET requests."""
        self._guarded(self._serve_static)

    def _handle_chat(self):
        if "chunked" in self.headers.get("Transfer-Encoding", "").lower():
            raise LengthRequired(
                code="LENGTH_REQUIRED",
                message="Chunked request bodies are not supported; send a Content-Length header.",
            )
        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            length = 0
        body = read_body(self.rfile, max(length, 0), self.server.cfg.max_body_bytes)
        result = relay_chat(body, provider=self.server.provider, cfg=self.server.cfg)
        self._json(result)

    def _serve_static(self):
        path = urlsplit(self.path).path
        try:
            fh, content_type, size = open_static_file(self.server.public_dir, path)
        except BusinessError as e:
            self._text(e.message, e.http_status)
            return

        with fh:
            self.send_response(200)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(size))
            self.end_headers()
            self._headers_sent = True
            try:
                stream_file(fh, self.wfile.write)
            except OSError as e:
                # Headers are already out; just end the body
                logger.error(f"Stream error: {path}: {e}")
                self.close_connection = True


def create_server(
    port: Optional[int] = None,
    host: Optional[str] = None,
    provider: Optional[ProviderClient] = None,
    cfg=settings,
    public_dir: Optional[str] = None,
) -> RelayHTTPServer:
    """Build the server without starting it (port 0 picks a free port)."""
    return RelayHTTPServer(
        (host if host is not None else cfg.host, port if port is not None else cfg.port),
        provider or create_provider(cfg=cfg),
        cfg=cfg,
        public_dir=public_dir,
    )


def run_server(port: Optional[int] = None, host: Optional[str] = None, public_dir: Optional[str] = None):
    """Start the HTTP server."""
    server = create_server(port=port, host=host, public_dir=public_dir)
    bound_host, bound_port = server.server_address[:2]
    logger.info(f"Chat relay server listening on http://{bound_host}:{bound_port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Chat relay server stopped")
    finally:
        server.server_close()


def main():
    """Entry point for the server."""
    parser = argparse.ArgumentParser(description="Chat Relay Server")
    parser.add_argument("-p", "--port", type=int, default=settings.port,
                        help=f"Port to run on (default: {settings.port})")
    parser.add_argument("--host", default=settings.host,
                        help=f"Interface to bind (default: {settings.host})")
    parser.add_argument("--public-dir", default=None,
                        help="Directory with the static UI files")
    args = parser.parse_args()

    run_server(args.port, args.host, args.public_dir)


if __name__ == "__main__":
    main()
