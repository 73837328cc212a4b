"""Tests for metadata refresh scheduling."""

import json
from unittest.mock import MagicMock

import pytest

from conftest import ITEM_ID
from services.queue import QueueManager
from services.subtitles.drivers import QueueRefreshScheduler
from shared.enums import MetadataRefreshMode, RefreshPriority
from shared.models import MetadataRefreshOptions


@pytest.fixture
def queue():
    return QueueManager()


def test_refresh_message(queue):
    scheduler = QueueRefreshScheduler(queue=queue, queue_key="refresh_message")
    options = MetadataRefreshOptions(replace_all_metadata=True)

    scheduler.queue_refresh(ITEM_ID, options, RefreshPriority.NORMAL)

    message = json.loads(queue.dequeue("refresh_message"))
    assert message["item_id"] == str(ITEM_ID)
    assert message["priority"] == "normal"
    assert message["options"]["replace_all_metadata"] is True
    assert message["options"]["metadata_refresh_mode"] == MetadataRefreshMode.DEFAULT.value
    assert "queued_at" in message


def test_high_priority_jumps_queue(queue):
    scheduler = QueueRefreshScheduler(queue=queue, queue_key="refresh_priority")
    options = MetadataRefreshOptions()

    scheduler.queue_refresh(ITEM_ID, options, RefreshPriority.LOW)
    scheduler.queue_refresh(ITEM_ID, options, RefreshPriority.NORMAL)
    scheduler.queue_refresh(ITEM_ID, options, RefreshPriority.HIGH)

    priorities = [json.loads(queue.dequeue("refresh_priority"))["priority"] for _ in range(3)]
    assert priorities == ["high", "low", "normal"]
    assert queue.get_length("refresh_priority") == 0


def test_queue_created_lazily():
    scheduler = QueueRefreshScheduler(queue_key="refresh_lazy")
    assert scheduler._queue is None

    scheduler.queue_refresh(ITEM_ID, MetadataRefreshOptions(), RefreshPriority.HIGH)

    assert isinstance(scheduler.queue, QueueManager)
    assert scheduler.queue.get_length("refresh_lazy") == 1


def test_enqueue_failure_propagates():
    queue = MagicMock()
    queue.enqueue.side_effect = ConnectionError("Redis enqueue operation failed")
    scheduler = QueueRefreshScheduler(queue=queue)

    with pytest.raises(ConnectionError):
        scheduler.queue_refresh(ITEM_ID, MetadataRefreshOptions(), RefreshPriority.HIGH)
