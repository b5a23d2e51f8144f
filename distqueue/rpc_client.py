"""HTTP client for node-to-node commands."""

from __future__ import annotations

import json
import urllib.error
import urllib.request

from .rpc_model import Command, CommandResponse, CommandType, MessageData


class RpcError(Exception):
    """Raised when a command to another node fails."""


def _error_body(exc: urllib.error.HTTPError) -> bytes:
    try:
        return exc.read()
    except OSError:
        return b""
    finally:
        exc.close()


class RpcClient:
    """Sends commands to the /rpc endpoint of other nodes."""

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout

    def ping(self, address: str) -> None:
        """Check that a node answers."""
        self._send(address, Command(CommandType.PING))

    def create_queue(
        self, address: str, queue_id: str, queue_name: str, replicas: list[str]
    ) -> None:
        """Create a queue on another node."""
        self._send(
            address,
            Command(
                CommandType.CREATE_QUEUE,
                queue_id=queue_id,
                queue_name=queue_name,
                replicas=list(replicas),
            ),
        )

    def append_message(
        self, address: str, queue_id: str, message_id: str, data: bytes
    ) -> None:
        """Append a message to a queue on another node."""
        self._send(
            address,
            Command(
                CommandType.APPEND_MESSAGE,
                queue_id=queue_id,
                message_id=message_id,
                data=data,
            ),
        )

    def read_message(self, address: str, queue_id: str, client_id: str) -> MessageData:
        """Read a client's next message from a queue on another node."""
        resp = self._send(
            address,
            Command(CommandType.READ_MESSAGE, queue_id=queue_id, client_id=client_id),
        )
        return MessageData(id=resp.message_id, data=resp.data)

    def update_client_offset(
        self, address: str, queue_id: str, client_id: str, offset: int
    ) -> None:
        """Set a client's read offset on another node."""
        self._send(
            address,
            Command(
                CommandType.UPDATE_OFFSET,
                queue_id=queue_id,
                client_id=client_id,
                index=offset,
            ),
        )

    def _send(self, address: str, cmd: Command) -> CommandResponse:
        if not address.startswith("http://"):
            address = "http://" + address
        payload = json.dumps(cmd.to_dict(), separators=(",", ":")).encode("utf-8")
        request = urllib.request.Request(
            address + "/rpc",
            data=payload,
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            body = _error_body(exc)
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise RpcError(f"failed to send request: {exc}") from exc

        if status != 200:
            text = body.decode("utf-8", "replace")
            raise RpcError(f"request failed with status {status}: {text}")

        try:
            resp = CommandResponse.from_dict(json.loads(body))
        except ValueError as exc:
            raise RpcError(f"failed to unmarshal response: {exc}") from exc

        if not resp.success:
            raise RpcError(f"command failed: {resp.error}")
        return resp