"""Chat conversations and their messages."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa

from ..exceptions import TransientStoreError, handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

_metadata = sa.MetaData()

chats = sa.Table(
    table_name("chat", "chats"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("owner_id", sa.String(64), nullable=False, index=True),
    sa.Column("title", sa.String(255), nullable=False, default=""),
    *timestamps(),
)

messages = sa.Table(
    table_name("chat", "messages"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("chat_id", sa.String(32), sa.ForeignKey(chats.c.id, ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("sender_id", sa.String(64), nullable=False),
    sa.Column("role", sa.String(20), nullable=False, default="user"),
    sa.Column("text", sa.Text, nullable=False),
    sa.Column("sequence", sa.Integer, nullable=False),
    *timestamps(),
)


class ChatStore(SqlStore):
    metadata = _metadata
    entity = "chat"

    def chat_create(self, owner_id: str, *, title: str = "") -> str:
        chat_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(sa.insert(chats).values(id=chat_id, owner_id=owner_id, title=title))
        return chat_id

    def message_create(self, chat_id: str, sender_id: str, text: str, *, role: str = "user") -> str:
        message_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            exists = conn.execute(sa.select(chats.c.id).where(chats.c.id == chat_id)).first()
            if exists is None:
                raise TransientStoreError(f"chat: chat {chat_id} not found")
            last = conn.execute(
                sa.select(sa.func.coalesce(sa.func.max(messages.c.sequence), 0)).where(messages.c.chat_id == chat_id)
            ).scalar_one()
            conn.execute(
                sa.insert(messages).values(
                    id=message_id,
                    chat_id=chat_id,
                    sender_id=sender_id,
                    role=role,
                    text=text,
                    sequence=last + 1,
                )
            )
        return message_id

    def message_list(self, chat_id: str, *, limit: int = 100) -> list[dict[str, Any]]:
        stmt = sa.select(messages).where(messages.c.chat_id == chat_id).order_by(messages.c.sequence).limit(limit)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]


__all__ = ["ChatStore", "chats", "messages"]
