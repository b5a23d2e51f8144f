import json
import threading
import urllib.error
import urllib.request

import pytest

from distqueue.rpc_client import RpcClient
from distqueue.rpc_model import Command, CommandResponse, CommandType
from distqueue.rpc_server import RpcServer


class RecordingProcessor:
    def __init__(self, response):
        self.response = response
        self.commands = []

    def process_command(self, cmd):
        self.commands.append(cmd)
        return self.response


@pytest.fixture
def running():
    processor = RecordingProcessor(CommandResponse(success=True))
    server = RpcServer()
    thread = threading.Thread(target=server.start, args=("0", processor), daemon=True)
    thread.start()
    assert server.ready.wait(5)
    port = server.port
    yield server, processor, port
    server.stop()
    thread.join(5)


def test_non_post_is_rejected():
    server = RpcServer(RecordingProcessor(CommandResponse(success=True)))
    assert server.handle_request("GET", b"") == (
        405,
        "text/plain; charset=utf-8",
        b"Method not allowed\n",
    )


def test_bad_json_is_rejected():
    processor = RecordingProcessor(CommandResponse(success=True))
    status, _, body = RpcServer(processor).handle_request("POST", b"{oops")
    assert status == 400
    assert body.startswith(b"Failed to unmarshal command")
    assert processor.commands == []


def test_command_is_processed_and_answered():
    processor = RecordingProcessor(CommandResponse(success=True, message_id="m1"))
    body = json.dumps({"type": "readMessage", "queueId": "q1", "clientId": "c1"})
    status, content_type, payload = RpcServer(processor).handle_request(
        "POST", body.encode()
    )
    assert (status, content_type) == (200, "application/json")
    assert json.loads(payload) == {"success": True, "messageId": "m1"}
    assert processor.commands == [
        Command(CommandType.READ_MESSAGE, queue_id="q1", client_id="c1")
    ]


def test_missing_processor_raises():
    with pytest.raises(RuntimeError):
        RpcServer().handle_request("POST", b'{"type":"ping"}')


def test_serves_commands_over_http(running):
    server, processor, port = running
    RpcClient(timeout=5).ping(f"127.0.0.1:{port}")
    assert [cmd.type for cmd in processor.commands] == [CommandType.PING]


def test_unknown_path_is_not_found(running):
    _, processor, port = running
    request = urllib.request.Request(
        f"http://127.0.0.1:{port}/other", data=b"{}", method="POST"
    )
    with pytest.raises(urllib.error.HTTPError) as info:
        urllib.request.urlopen(request, timeout=5)
    info.value.close()
    assert info.value.code == 404
    assert processor.commands == []


def test_stop_ends_start():
    server = RpcServer()
    thread = threading.Thread(
        target=server.start,
        args=(0, RecordingProcessor(CommandResponse(success=True))),
        daemon=True,
    )
    thread.start()
    assert server.ready.wait(5)
    RpcClient(timeout=5).ping(f"127.0.0.1:{server.port}")
    server.stop()
    thread.join(5)
    assert not thread.is_alive()
    assert server.port is None