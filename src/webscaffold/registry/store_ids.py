"""Identifiers of the optional stores, in initialization order."""

from __future__ import annotations

from enum import Enum


class StoreId(str, Enum):
    AUDIT = "audit"
    BLIND_INDEX_EMAIL = "blind_index_email"
    BLIND_INDEX_FIRST_NAME = "blind_index_first_name"
    BLIND_INDEX_LAST_NAME = "blind_index_last_name"
    BLOG = "blog"
    CACHE = "cache"
    CHAT = "chat"
    CMS = "cms"
    CUSTOM = "custom"
    ENTITY = "entity"
    FEED = "feed"
    GEO = "geo"
    LOG = "log"
    META = "meta"
    SESSION = "session"
    SETTING = "setting"
    SHOP = "shop"
    SQL_FILE_STORAGE = "sql_file_storage"
    STATS = "stats"
    SUBSCRIPTION = "subscription"
    TASK = "task"
    USER = "user"
    VAULT = "vault"


STORE_ORDER: tuple[StoreId, ...] = tuple(StoreId)

__all__ = ["STORE_ORDER", "StoreId"]
