import pytest

from distqueue.memory_repository import MemoryQueueRepository
from distqueue.message import Message
from distqueue.queues import Queue
from distqueue.repository import (
    MessageNotFoundError,
    QueueExistsError,
    QueueNotFoundError,
)


@pytest.fixture
def repo():
    repository = MemoryQueueRepository()
    repository.create_queue(Queue("q1", "first", ["node1", "node2"]))
    return repository


def _msg(message_id, index, data):
    return Message(message_id, "q1", index, data)


def test_get_returns_created_queue(repo):
    queue = repo.get_queue("q1")
    assert (queue.id, queue.name, queue.replicas) == ("q1", "first", ["node1", "node2"])


def test_create_duplicate_raises(repo):
    with pytest.raises(QueueExistsError, match="queue with ID q1 already exists"):
        repo.create_queue(Queue("q1", "again"))


def test_get_missing_raises(repo):
    with pytest.raises(QueueNotFoundError, match="queue with ID zz not found"):
        repo.get_queue("zz")


def test_list_queues(repo):
    repo.create_queue(Queue("q2", "second"))
    assert sorted(q.id for q in repo.list_queues()) == ["q1", "q2"]


def test_append_and_get_messages(repo):
    repo.append_message("q1", _msg("a", 0, b"one"))
    repo.append_message("q1", _msg("b", 1, b"two"))
    assert [m.data for m in repo.get_messages("q1")] == [b"one", b"two"]
    assert repo.get_queue("q1").message_count() == 2


def test_append_to_missing_queue_raises(repo):
    with pytest.raises(QueueNotFoundError):
        repo.append_message("zz", _msg("a", 0, b"x"))


def test_get_message(repo):
    repo.append_message("q1", _msg("a", 0, b"one"))
    assert repo.get_message("q1", "a").data == b"one"
    with pytest.raises(MessageNotFoundError, match="message with ID b not found in queue q1"):
        repo.get_message("q1", "b")


def test_get_messages_returns_copy(repo):
    repo.append_message("q1", _msg("a", 0, b"one"))
    copy = repo.get_messages("q1")
    copy.clear()
    assert len(repo.get_messages("q1")) == 1


def test_get_messages_from(repo):
    for i, ident in enumerate("abc"):
        repo.append_message("q1", _msg(ident, i, ident.encode()))
    assert [m.id for m in repo.get_messages_from("q1", 1)] == ["b", "c"]
    assert repo.get_messages_from("q1", 3) == []
    assert repo.get_messages_from("q1", 10) == []


def test_client_offsets(repo):
    assert repo.get_client_offset("q1", "c1") == 0
    repo.update_client_offset("q1", "c1", 5)
    assert repo.get_client_offset("q1", "c1") == 5
    with pytest.raises(QueueNotFoundError):
        repo.update_client_offset("zz", "c1", 1)
    with pytest.raises(QueueNotFoundError):
        repo.get_client_offset("zz", "c1")


def test_update_replicas_and_lookup_by_replica(repo):
    repo.create_queue(Queue("q2", "second", ["node3"]))
    repo.update_queue_replicas("q1", ["node3"])
    assert sorted(q.id for q in repo.get_queues_by_replica("node3")) == ["q1", "q2"]
    assert repo.get_queues_by_replica("node1") == []


def test_update_replicas_missing_queue(repo):
    with pytest.raises(QueueNotFoundError):
        repo.update_queue_replicas("zz", ["node1"])


def test_stored_queue_is_shared(repo):
    queue = repo.get_queue("q1")
    queue.append_message(_msg("a", 0, b"x"))
    assert repo.get_message("q1", "a") is queue.messages[0]