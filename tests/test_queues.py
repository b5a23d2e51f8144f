import json

import pytest

from distqueue.message import Message
from distqueue.queues import NoMoreMessagesError, Queue


def _queue(count=3):
    queue = Queue("q1", "orders", ["node1", "node2"])
    for i in range(count):
        queue.append_message(Message(f"m{i}", "q1", i, f"data{i}".encode()))
    return queue


def test_reads_in_order_and_advances_offset():
    queue = _queue()
    ids = [queue.read_message_for_client("c1").id for _ in range(3)]
    assert ids == ["m0", "m1", "m2"]
    assert queue.client_offset("c1") == queue.message_count()


def test_clients_have_independent_offsets():
    queue = _queue()
    queue.read_message_for_client("c1")
    assert queue.read_message_for_client("c2").id == "m0"
    assert queue.client_offset("c1") == 1


def test_exhausted_queue_raises():
    queue = _queue(1)
    queue.read_message_for_client("c1")
    with pytest.raises(NoMoreMessagesError, match="client c1"):
        queue.read_message_for_client("c1")


def test_empty_queue_records_offset_zero():
    queue = Queue("q", "n")
    with pytest.raises(NoMoreMessagesError):
        queue.read_message_for_client("c1")
    assert queue.client_offsets == {"c1": 0}


def test_unknown_client_offset_is_zero():
    assert _queue().client_offset("nobody") == 0


def test_set_client_offset_skips_messages():
    queue = _queue()
    queue.set_client_offset("c1", 2)
    assert queue.read_message_for_client("c1").id == "m2"


def test_replicas():
    queue = _queue()
    queue.add_replica("node3")
    queue.add_replica("node3")
    assert queue.replicas == ["node1", "node2", "node3"]
    queue.remove_replica("node1")
    queue.remove_replica("absent")
    assert queue.replicas == ["node2", "node3"]
    assert queue.has_replica("node2")
    assert not queue.has_replica("node1")


def test_messages_from():
    queue = _queue()
    assert [m.id for m in queue.messages_from(1)] == ["m1", "m2"]
    assert queue.messages_from(3) == []
    assert queue.messages_from(10) == []


def test_messages_from_is_a_copy():
    queue = _queue()
    copy = queue.messages_from(0)
    copy.clear()
    assert queue.message_count() == 3


def test_messages_from_negative_rejected():
    with pytest.raises(ValueError):
        _queue().messages_from(-1)


def test_append_updates_timestamp():
    queue = Queue("q", "n")
    before = queue.last_updated_at
    queue.append_message(Message("m", "q", 0, b"x"))
    assert queue.last_updated_at >= before
    assert queue.message_count() == 1


def test_round_trip_through_json():
    queue = _queue()
    queue.read_message_for_client("c1")
    restored = Queue.from_dict(json.loads(json.dumps(queue.to_dict())))
    assert restored == queue
    assert restored.client_offset("c1") == 1


def test_from_dict_with_nulls():
    restored = Queue.from_dict(
        {"ID": "q", "Name": "n", "Replicas": None, "Messages": None,
         "ClientOffsets": None, "CreatedAt": "2024-01-02T03:04:05Z"}
    )
    assert restored.replicas == []
    assert restored.messages == []
    assert restored.last_updated_at == restored.created_at