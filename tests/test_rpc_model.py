import pytest

from distqueue.rpc_model import Command, CommandResponse, CommandType


@pytest.mark.parametrize(
    "command_type, wire",
    [
        (CommandType.PING, "ping"),
        (CommandType.CREATE_QUEUE, "createQueue"),
        (CommandType.APPEND_MESSAGE, "appendMessage"),
        (CommandType.READ_MESSAGE, "readMessage"),
        (CommandType.UPDATE_OFFSET, "updateOffset"),
    ],
)
def test_command_type_wire_names(command_type, wire):
    assert Command(command_type).to_dict() == {"type": wire}
    assert Command.from_dict({"type": wire}).type is command_type


def test_empty_fields_are_omitted():
    assert Command(CommandType.PING).to_dict() == {"type": "ping"}


def test_data_is_base64_encoded():
    cmd = Command(CommandType.APPEND_MESSAGE, queue_id="q", message_id="m", data=b"hi")
    assert cmd.to_dict() == {
        "type": "appendMessage",
        "queueId": "q",
        "messageId": "m",
        "data": "aGk=",
    }


def test_command_round_trip():
    cmd = Command(
        CommandType.CREATE_QUEUE,
        queue_id="q1",
        queue_name="orders",
        message_id="m1",
        client_id="c1",
        data=b"\x00\x01payload",
        index=7,
        replicas=["node1", "node2"],
    )
    assert Command.from_dict(cmd.to_dict()) == cmd


def test_unknown_type_is_kept_as_text():
    cmd = Command.from_dict({"type": "explode"})
    assert cmd.type == "explode"
    assert not isinstance(cmd.type, CommandType)


def test_missing_fields_take_defaults():
    cmd = Command.from_dict({"type": "ping", "data": None, "replicas": None})
    assert cmd == Command(CommandType.PING)


def test_invalid_base64_is_rejected():
    with pytest.raises(ValueError):
        Command.from_dict({"type": "appendMessage", "data": "not base64!"})


def test_wrong_field_type_is_rejected():
    with pytest.raises(ValueError):
        Command.from_dict({"type": "updateOffset", "index": "3"})


def test_non_object_is_rejected():
    with pytest.raises(ValueError):
        Command.from_dict(["ping"])


def test_failed_response_keeps_success_flag():
    resp = CommandResponse(success=False, error="boom")
    assert resp.to_dict() == {"success": False, "error": "boom"}


def test_response_round_trip():
    resp = CommandResponse(success=True, message_id="m9", data=b"value")
    assert CommandResponse.from_dict(resp.to_dict()) == resp