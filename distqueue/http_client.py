"""Client for a queue server's JSON HTTP API."""

from __future__ import annotations

import argparse
import json
import urllib.error
import urllib.request
from http import HTTPStatus
from typing import Any

DEFAULT_BASE_URL = "http://localhost:5000"


class ClientError(Exception):
    """Raised when a request to the queue server fails."""


def _status_text(code: int) -> str:
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return str(code)


def _field(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ClientError(f"invalid response: {key} has the wrong type")
    return value


class QueueClient:
    """Calls the /api endpoints of a queue server."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float | None = None) -> None:
        self.base_url = base_url
        self.timeout = timeout

    def create_client(self) -> str:
        """Register a client and return its id."""
        body = self._post("/api/client", {"name": "default-client"})
        return _field(body, "client_id", str, "")

    def create_queue(self, name: str) -> str:
        """Create a queue and return its id."""
        body = self._post("/api/queue", {"name": name})
        return _field(body, "queue_id", str, "")

    def append_message(self, queue_id: str, message: int) -> str:
        """Append a number to a queue and return the message id."""
        body = self._post("/api/message/append", {"queue_id": queue_id, "message": message})
        return _field(body, "message_id", str, "")

    def read_message(self, queue_id: str, client_id: str) -> tuple[str, int]:
        """Return the id and value of the client's next message."""
        body = self._post(
            "/api/message/read", {"queue_id": queue_id, "client_id": client_id}
        )
        return _field(body, "message_id", str, ""), _field(body, "message", int, 0)

    def list_queues(self) -> list[dict[str, str]]:
        """Return the server's queues."""
        queues = _field(self._get("/api/queues"), "queues", list, [])
        for queue in queues:
            if not isinstance(queue, dict) or not all(
                isinstance(v, str) for v in queue.values()
            ):
                raise ClientError("invalid response: queues must map to strings")
        return [dict(queue) for queue in queues]

    def health_check(self) -> str:
        """Return the server's health status."""
        return _field(self._get("/api/health"), "status", str, "")

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        data = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        request = urllib.request.Request(
            self.base_url + path,
            data=data,
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        return self._send(request)

    def _get(self, path: str) -> dict[str, Any]:
        return self._send(urllib.request.Request(self.base_url + path, method="GET"))

    def _send(self, request: urllib.request.Request) -> dict[str, Any]:
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            exc.close()
            body = b""
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise ClientError(f"request failed: {exc}") from exc

        if status >= 400:
            raise ClientError(f"server returned error status: {_status_text(status)}")
        try:
            decoded = json.loads(body)
        except ValueError as exc:
            raise ClientError(f"invalid response: {exc}") from exc
        if decoded is None:
            return {}
        if not isinstance(decoded, dict):
            raise ClientError("invalid response: expected a JSON object")
        return decoded


def main(argv: list[str] | None = None) -> int:
    """Check a server's health and optionally read one message."""
    parser = argparse.ArgumentParser(description="Talk to a queue server.")
    parser.add_argument("--url", default=DEFAULT_BASE_URL, help="server base URL")
    parser.add_argument("--queue-id", help="queue to read from")
    parser.add_argument("--client-id", help="client reading the queue")
    args = parser.parse_args(argv)

    client = QueueClient(args.url)
    try:
        status = client.health_check()
    except ClientError:
        status = ""
    print("Health check:", status)

    if args.queue_id and args.client_id:
        try:
            message_id, value = client.read_message(args.queue_id, args.client_id)
        except ClientError as exc:
            print(f"Read Message failed: {exc}")
            return 1
        print(f"Read Message: id={message_id}, value={value}")
    return 0