"""Metadata refresh scheduling over the Redis work queue."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from uuid import UUID

from services.queue import QueueManager
from shared.enums import RefreshPriority
from shared.models import MetadataRefreshOptions
from shared.utils import config as service_config, setup_logging

from .base import RefreshScheduler


class QueueRefreshScheduler(RefreshScheduler):
    """Push refresh requests onto a Redis list consumed by the metadata worker."""

    def __init__(self, queue: QueueManager | None = None, queue_key: str | None = None) -> None:
        self.logger = setup_logging("refresh-scheduler")
        self._queue = queue
        self.queue_key = queue_key or service_config.get("refresh_queue_key", "metadata_refresh")

    @property
    def queue(self) -> QueueManager:
        if self._queue is None:
            self._queue = QueueManager()
        return self._queue

    def queue_refresh(
        self, item_id: UUID, options: MetadataRefreshOptions, priority: RefreshPriority
    ) -> None:
        message = json.dumps(
            {
                "item_id": str(item_id),
                "options": options.model_dump(mode="json"),
                "priority": priority.value,
                "queued_at": datetime.now(UTC).isoformat(),
            }
        )
        # high priority refreshes jump the queue
        self.queue.enqueue(self.queue_key, message, front=priority == RefreshPriority.HIGH)
        self.logger.info(f"Queued {priority.value} priority metadata refresh for item {item_id}")
