"""HTTP server answering node-to-node commands."""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Protocol
from urllib.parse import urlsplit

from .rpc_model import Command, CommandResponse

logger = logging.getLogger(__name__)

_TEXT = "text/plain; charset=utf-8"
_JSON = "application/json"


class CommandProcessor(Protocol):
    def process_command(self, cmd: Command) -> CommandResponse: ...


class RpcServer:
    """Serves POST /rpc, passing each command to a processor."""

    def __init__(self, processor: CommandProcessor | None = None) -> None:
        self.processor = processor
        self.ready = threading.Event()
        self._server: ThreadingHTTPServer | None = None

    @property
    def port(self) -> int | None:
        """The port actually bound, or None when not serving."""
        server = self._server
        return server.server_address[1] if server is not None else None

    def handle_request(self, method: str, body: bytes) -> tuple[int, str, bytes]:
        """Answer one /rpc request with (status, content type, body)."""
        if method != "POST":
            return 405, _TEXT, b"Method not allowed\n"
        try:
            cmd = Command.from_dict(json.loads(body))
        except ValueError as exc:
            return 400, _TEXT, f"Failed to unmarshal command: {exc}\n".encode("utf-8")
        if self.processor is None:
            raise RuntimeError("RPC server has no command processor")
        response = self.processor.process_command(cmd)
        payload = json.dumps(response.to_dict(), separators=(",", ":"))
        return 200, _JSON, payload.encode("utf-8")

    def start(self, port: str | int, processor: CommandProcessor) -> None:
        """Serve on all interfaces until stop() is called."""
        self.processor = processor
        server = ThreadingHTTPServer(("0.0.0.0", int(port)), self._handler_class())
        self._server = server
        logger.info("Starting RPC server on port %s", port)
        self.ready.set()
        try:
            server.serve_forever()
        finally:
            server.server_close()

    def stop(self) -> None:
        """Stop serving; does nothing when not started."""
        server = self._server
        if server is None:
            return
        server.shutdown()
        self._server = None
        self.ready.clear()

    def _handler_class(self) -> type[BaseHTTPRequestHandler]:
        rpc = self

        class _Handler(BaseHTTPRequestHandler):
            def _dispatch(self) -> None:
                try:
                    length = int(self.headers.get("Content-Length") or 0)
                except ValueError:
                    self._reply(400, _TEXT, b"Invalid Content-Length\n")
                    return
                body = self.rfile.read(length) if length > 0 else b""
                if urlsplit(self.path).path != "/rpc":
                    self._reply(404, _TEXT, b"404 page not found\n")
                    return
                self._reply(*rpc.handle_request(self.command, body))

            def _reply(self, status: int, content_type: str, payload: bytes) -> None:
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                if self.command != "HEAD":
                    self.wfile.write(payload)

            do_GET = do_POST = do_PUT = do_DELETE = _dispatch
            do_PATCH = do_HEAD = do_OPTIONS = _dispatch

            def log_message(self, format: str, *args: object) -> None:
                logger.debug("rpc %s", format % args)

        return _Handler