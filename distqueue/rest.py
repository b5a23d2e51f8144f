"""HTTP API for queue operations on a broker node."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

from .queue_service import QueueService, QueueServiceError
from .repository import RepositoryError

logger = logging.getLogger(__name__)

_JSON = "application/json"
_TEXT = "text/plain; charset=utf-8"

Reply = tuple[int, str, bytes]


def _first_json_value(body: bytes) -> Any:
    """Decode the first JSON value of a body; trailing data is ignored."""
    text = body.decode("utf-8", "replace").lstrip(" \t\r\n")
    value, _ = json.JSONDecoder().raw_decode(text)
    return value


def _lookup(data: dict[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    lowered = key.lower()
    for name, value in data.items():
        if name.lower() == lowered:
            return value
    return None


def _text_field(data: dict[str, Any], key: str) -> str:
    value = _lookup(data, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _require_object(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


@dataclass
class CreateQueueRequest:
    """Body of a queue creation request."""

    name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> CreateQueueRequest:
        """Build the request from decoded JSON."""
        data = _require_object(data)
        return cls(name=_text_field(data, "name"))


@dataclass
class AppendDataRequest:
    """Body of a data append request."""

    queue_id: str = ""
    client_id: str = ""
    data: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> AppendDataRequest:
        """Build the request from decoded JSON."""
        data = _require_object(data)
        return cls(
            queue_id=_text_field(data, "queueId"),
            client_id=_text_field(data, "clientId"),
            data=_text_field(data, "data"),
        )


def _encode(payload: Any, sort_keys: bool = False) -> bytes:
    text = json.dumps(
        payload, separators=(",", ":"), ensure_ascii=False, sort_keys=sort_keys
    )
    for raw, escaped in (
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("&", "\\u0026"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(raw, escaped)
    return text.encode("utf-8")


def _json_reply(status: int, payload: Any, sort_keys: bool = False) -> Reply:
    try:
        return status, _JSON, _encode(payload, sort_keys)
    except (TypeError, ValueError) as exc:
        logger.error("Error marshaling JSON response: %s", exc)
        return 500, _TEXT, b""


def _error(status: int, message: str) -> Reply:
    return _json_reply(status, {"error": message})


class RestHandler:
    """Routes client HTTP requests to a queue service."""

    def __init__(self, queue_service: QueueService) -> None:
        self.queue_service = queue_service
        self._routes: dict[str, Callable[[str, dict[str, list[str]], bytes], Reply]] = {
            "/createQueue": self._create_queue,
            "/appendData": self._append_data,
            "/readData": self._read_data,
            "/status": self._status,
        }

    def handle(self, method: str, target: str, body: bytes = b"") -> Reply:
        """Answer one request with (status, content type, body)."""
        parts = urlsplit(target)
        route = self._routes.get(parts.path)
        if route is None:
            return 404, _TEXT, b"404 page not found\n"
        query = parse_qs(parts.query, keep_blank_values=True)
        return route(method, query, body)

    def _create_queue(self, method: str, query: dict[str, list[str]], body: bytes) -> Reply:
        if method != "POST":
            return _error(405, "Method not allowed")
        try:
            request = CreateQueueRequest.from_dict(_first_json_value(body))
        except ValueError:
            return _error(400, "Invalid request body")
        try:
            queue_id = self.queue_service.create_queue(request.name)
        except (QueueServiceError, RepositoryError) as exc:
            return _error(500, str(exc))
        return _json_reply(
            201, {"queueId": queue_id, "message": "Queue created successfully"}
        )

    def _append_data(self, method: str, query: dict[str, list[str]], body: bytes) -> Reply:
        if method != "POST":
            return _error(405, "Method not allowed")
        try:
            request = AppendDataRequest.from_dict(_first_json_value(body))
        except ValueError:
            return _error(400, "Invalid request body")
        try:
            message_id = self.queue_service.append_message(
                request.queue_id, request.client_id, request.data.encode("utf-8")
            )
        except (QueueServiceError, RepositoryError) as exc:
            return _error(500, str(exc))
        return _json_reply(
            200, {"messageId": message_id, "message": "Data appended successfully"}
        )

    def _read_data(self, method: str, query: dict[str, list[str]], body: bytes) -> Reply:
        if method != "GET":
            return _error(405, "Method not allowed")
        queue_id = (query.get("queueId") or [""])[0]
        if not queue_id:
            return _error(400, "queueId parameter is required")
        client_id = (query.get("clientId") or [""])[0]
        if not client_id:
            return _error(400, "clientId parameter is required")
        try:
            message = self.queue_service.read_message(queue_id, client_id)
        except (QueueServiceError, RepositoryError) as exc:
            return _error(500, str(exc))
        return _json_reply(
            200,
            {"messageId": message.id, "data": message.data.decode("utf-8", "replace")},
        )

    def _status(self, method: str, query: dict[str, list[str]], body: bytes) -> Reply:
        if method != "GET":
            return _error(405, "Method not allowed")
        return _json_reply(200, self.queue_service.node_status(), sort_keys=True)

    def make_server(self, host: str, port: str | int) -> ThreadingHTTPServer:
        """Bind an HTTP server that serves this API; call serve_forever on it."""
        rest = self

        class _Handler(BaseHTTPRequestHandler):
            def _dispatch(self) -> None:
                try:
                    length = int(self.headers.get("Content-Length") or 0)
                except ValueError:
                    self._reply(400, _TEXT, b"Invalid Content-Length\n")
                    return
                body = self.rfile.read(length) if length > 0 else b""
                self._reply(*rest.handle(self.command, self.path, body))

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
                logger.debug("http %s", format % args)

        return ThreadingHTTPServer((host, int(port)), _Handler)