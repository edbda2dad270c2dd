"""Background task definitions, the task queue and recurring schedules."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Mapping

import sqlalchemy as sa

from ..exceptions import TransientStoreError, handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps, utcnow


class QueueStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


FINISHED_STATUSES = (QueueStatus.SUCCESS.value, QueueStatus.FAILED.value)

_metadata = sa.MetaData()

task_definitions = sa.Table(
    table_name("tasks", "task_definition"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("alias", sa.String(100), nullable=False, unique=True),
    sa.Column("title", sa.String(255), nullable=False, default=""),
    sa.Column("description", sa.Text, nullable=False, default=""),
    sa.Column("status", sa.String(20), nullable=False, default="active"),
    *timestamps(),
)

task_queue = sa.Table(
    table_name("tasks", "task_queue"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("task_id", sa.String(32), nullable=False, index=True),
    sa.Column("status", sa.String(20), nullable=False, default=QueueStatus.QUEUED.value, index=True),
    sa.Column("parameters", sa.Text, nullable=False, default="{}"),
    sa.Column("output", sa.Text, nullable=False, default=""),
    sa.Column("attempts", sa.Integer, nullable=False, default=0),
    sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    *timestamps(),
)

schedules = sa.Table(
    table_name("tasks", "schedule"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("task_id", sa.String(32), nullable=False, index=True),
    sa.Column("cron", sa.String(100), nullable=False),
    sa.Column("next_run_at", sa.DateTime(timezone=True), nullable=True),
    *timestamps(),
)


class TaskStore(SqlStore):
    metadata = _metadata
    entity = "task"

    def definition_create(self, alias: str, *, title: str = "", description: str = "") -> str:
        definition_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(task_definitions).values(
                    id=definition_id,
                    alias=alias,
                    title=title or alias,
                    description=description,
                )
            )
        return definition_id

    def queue_enqueue(self, alias: str, parameters: Mapping[str, Any] | None = None) -> str:
        queue_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            task_id = conn.execute(
                sa.select(task_definitions.c.id).where(task_definitions.c.alias == alias)
            ).scalar_one_or_none()
            if task_id is None:
                raise TransientStoreError(f"task: definition {alias!r} not found")
            conn.execute(
                sa.insert(task_queue).values(
                    id=queue_id,
                    task_id=task_id,
                    parameters=json.dumps(dict(parameters or {}), default=str),
                )
            )
        return queue_id

    def queue_claim_next(self, *, now: datetime | None = None) -> dict[str, Any] | None:
        """Move the oldest queued item to ``running`` and return it."""

        current = now or utcnow()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            while True:
                row = conn.execute(
                    sa.select(task_queue)
                    .where(task_queue.c.status == QueueStatus.QUEUED.value)
                    .order_by(task_queue.c.created_at)
                    .limit(1)
                ).mappings().first()
                if row is None:
                    return None
                claimed = conn.execute(
                    sa.update(task_queue)
                    .where(
                        task_queue.c.id == row["id"],
                        task_queue.c.status == QueueStatus.QUEUED.value,
                    )
                    .values(
                        status=QueueStatus.RUNNING.value,
                        started_at=current,
                        attempts=task_queue.c.attempts + 1,
                    )
                ).rowcount
                if claimed:
                    item = dict(row)
                    item["status"] = QueueStatus.RUNNING.value
                    item["parameters"] = json.loads(item["parameters"] or "{}")
                    return item

    def queue_complete(
        self,
        queue_id: str,
        *,
        success: bool = True,
        output: str = "",
        now: datetime | None = None,
    ) -> None:
        status = QueueStatus.SUCCESS if success else QueueStatus.FAILED
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            updated = conn.execute(
                sa.update(task_queue)
                .where(task_queue.c.id == queue_id)
                .values(status=status.value, output=output, completed_at=now or utcnow())
            ).rowcount
        if not updated:
            raise TransientStoreError(f"task: queue item {queue_id} not found")

    def queue_clear(self, older_than: timedelta, *, now: datetime | None = None) -> int:
        """Delete finished queue items completed more than ``older_than`` ago."""

        cutoff = (now or utcnow()) - older_than
        stmt = sa.delete(task_queue).where(
            task_queue.c.status.in_(FINISHED_STATUSES),
            task_queue.c.completed_at < cutoff,
        )
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return conn.execute(stmt).rowcount


__all__ = ["QueueStatus", "TaskStore", "schedules", "task_definitions", "task_queue"]
