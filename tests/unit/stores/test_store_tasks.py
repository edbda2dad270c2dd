from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import sqlalchemy as sa

from webscaffold.exceptions import TransientStoreError
from webscaffold.stores.task import QueueStatus, TaskStore

pytestmark = pytest.mark.unit


@pytest.fixture()
def task_store(engine: sa.engine.Engine) -> TaskStore:
    store = TaskStore(engine)
    store.auto_migrate()
    store.definition_create("send-mail", title="Send mail")
    return store


def test_enqueue_claim_complete(task_store: TaskStore) -> None:
    queue_id = task_store.queue_enqueue("send-mail", {"to": "ada@example.org"})

    item = task_store.queue_claim_next()
    assert item["id"] == queue_id
    assert item["status"] == QueueStatus.RUNNING.value
    assert item["parameters"] == {"to": "ada@example.org"}
    assert task_store.queue_claim_next() is None

    task_store.queue_complete(queue_id, success=True, output="sent")


def test_unknown_definition_and_queue_item(task_store: TaskStore) -> None:
    with pytest.raises(TransientStoreError, match="definition"):
        task_store.queue_enqueue("unknown")
    with pytest.raises(TransientStoreError, match="queue item"):
        task_store.queue_complete("missing")


def test_clear_removes_only_old_finished_items(task_store: TaskStore) -> None:
    completed_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    finished = task_store.queue_enqueue("send-mail")
    pending = task_store.queue_enqueue("send-mail")
    task_store.queue_complete(finished, success=False, now=completed_at)

    removed = task_store.queue_clear(timedelta(days=1), now=completed_at + timedelta(days=2))

    assert removed == 1
    assert task_store.queue_claim_next()["id"] == pending
