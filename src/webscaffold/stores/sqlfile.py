"""File storage kept inside the SQL database.

The storage owns its schema: the table is created on first use rather than
through the registry migration phase.
"""

from __future__ import annotations

import posixpath
import threading

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

FILES_TABLE = table_name("files", "file")

_metadata = sa.MetaData()

files = sa.Table(
    FILES_TABLE,
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("path", sa.String(510), nullable=False, unique=True),
    sa.Column("size", sa.Integer, nullable=False, default=0),
    sa.Column("contents", sa.LargeBinary, nullable=False),
    *timestamps(),
)


def _normalize(path: str) -> str:
    cleaned = posixpath.normpath("/" + path.strip().lstrip("/"))
    if cleaned == "/":
        raise ValueError("sql file storage: path is required")
    return cleaned


class SqlFileStorage(SqlStore):
    metadata = _metadata
    entity = "sql_file_storage"

    def __init__(self, engine: Engine, *, url_prefix: str = "/files") -> None:
        super().__init__(engine)
        self._url_prefix = url_prefix.rstrip("/")
        self._ready = False
        self._ready_lock = threading.Lock()

    def auto_migrate(self) -> None:
        """No-op: the schema is created lazily by :meth:`_ensure_schema`."""

    def _ensure_schema(self) -> None:
        if self._ready:
            return
        with self._ready_lock:
            if not self._ready:
                with handle_sqlalchemy_errors(entity=self.entity):
                    _metadata.create_all(self._engine)
                self._ready = True

    def put(self, path: str, contents: bytes) -> str:
        key = _normalize(path)
        self._ensure_schema()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            updated = conn.execute(
                sa.update(files).where(files.c.path == key).values(contents=contents, size=len(contents))
            ).rowcount
            if not updated:
                conn.execute(sa.insert(files).values(id=new_id(), path=key, contents=contents, size=len(contents)))
        return key

    def read(self, path: str) -> bytes | None:
        self._ensure_schema()
        stmt = sa.select(files.c.contents).where(files.c.path == _normalize(path))
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one_or_none()

    def exists(self, path: str) -> bool:
        self._ensure_schema()
        stmt = sa.select(files.c.id).where(files.c.path == _normalize(path))
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return conn.execute(stmt).first() is not None

    def delete(self, path: str) -> bool:
        self._ensure_schema()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return bool(conn.execute(sa.delete(files).where(files.c.path == _normalize(path))).rowcount)

    def url(self, path: str) -> str:
        return f"{self._url_prefix}{_normalize(path)}"


__all__ = ["FILES_TABLE", "SqlFileStorage", "files"]
