"""Tests for ResponseQueue."""

import dataclasses
import threading

import pytest

from mockwebserver import DEFAULT_CONTENT_TYPE, EmptyResponseQueue, QueueItem, ResponseQueue


class TestResponseQueue:
    """Test ResponseQueue functionality."""

    def test_pops_in_enqueue_order(self):
        """Responses come back in the order they were enqueued."""
        queue = ResponseQueue()
        for i in range(5):
            queue.enqueue(200 + i, f"body {i}")

        popped = [queue.pop_next() for _ in range(5)]

        assert [item.status_code for item in popped] == [200, 201, 202, 203, 204]
        assert [item.body for item in popped] == [f"body {i}" for i in range(5)]
        assert len(queue) == 0

    def test_default_content_type_is_json(self):
        queue = ResponseQueue()
        queue.enqueue(200, "{}")

        assert queue.pop_next().content_type == DEFAULT_CONTENT_TYPE == "application/json"

    def test_custom_content_type(self):
        queue = ResponseQueue()
        queue.enqueue(200, "hello", "text/plain")

        assert queue.pop_next() == QueueItem(200, "hello", "text/plain")

    def test_any_status_code_accepted(self):
        """Status codes are not validated."""
        queue = ResponseQueue()
        queue.enqueue(799, "")
        queue.enqueue(-1, "")

        assert queue.pop_next().status_code == 799
        assert queue.pop_next().status_code == -1

    def test_pop_empty_raises(self):
        queue = ResponseQueue()

        with pytest.raises(EmptyResponseQueue, match="no response queued"):
            queue.pop_next()

    def test_each_item_consumed_once(self):
        queue = ResponseQueue()
        queue.enqueue(200, "only")

        queue.pop_next()
        with pytest.raises(EmptyResponseQueue):
            queue.pop_next()

    def test_clear(self):
        queue = ResponseQueue()
        queue.enqueue(200, "a")
        queue.enqueue(200, "b")

        queue.clear()

        assert len(queue) == 0
        with pytest.raises(EmptyResponseQueue):
            queue.pop_next()

    def test_empty_queue_error_is_lookup_error(self):
        """Callers can catch the error generically."""
        with pytest.raises(LookupError):
            ResponseQueue().pop_next()

    def test_queue_item_is_immutable(self):
        item = QueueItem(200, "body")

        with pytest.raises(dataclasses.FrozenInstanceError):
            item.status_code = 500  # type: ignore[misc]

    def test_shared_lock(self):
        """A caller-provided lock guards the queue."""
        lock = threading.RLock()
        queue = ResponseQueue(lock)

        with lock:
            queue.enqueue(200, "reentrant")
            assert len(queue) == 1
