"""Composition root holding every process-wide service."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Generic, TypeVar, overload

from sqlalchemy.engine import Engine

from ..cache import FileCache, MemoryCache
from ..core.config import Config
from ..db.database import open_database
from ..exceptions import ConfigError
from ..logging import create_console_logger, create_database_logger
from ..stores.base import Store
from .definitions import STORE_DEFINITIONS, initialize_stores, migrate_stores
from .store_ids import StoreId

logger = logging.getLogger(__name__)

StoreT = TypeVar("StoreT")


class _StoreSlot(Generic[StoreT]):
    """Attribute access to one store slot, e.g. ``registry.user_store``."""

    def __init__(self, store_id: StoreId) -> None:
        self.store_id = store_id

    @overload
    def __get__(self, instance: None, owner: type) -> "_StoreSlot[StoreT]":
        ...

    @overload
    def __get__(self, instance: "Registry", owner: type) -> StoreT | None:
        ...

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.get_store(self.store_id)

    def __set__(self, instance: "Registry", value: StoreT | None) -> None:
        instance.set_store(self.store_id, value)


class Registry:
    """Holds config, database, loggers, caches and the optional stores.

    Plain storage: :func:`create_registry` runs the boot sequence. Getters
    never raise; a disabled store reads as ``None``.
    """

    audit_store = _StoreSlot(StoreId.AUDIT)
    blind_index_email_store = _StoreSlot(StoreId.BLIND_INDEX_EMAIL)
    blind_index_first_name_store = _StoreSlot(StoreId.BLIND_INDEX_FIRST_NAME)
    blind_index_last_name_store = _StoreSlot(StoreId.BLIND_INDEX_LAST_NAME)
    blog_store = _StoreSlot(StoreId.BLOG)
    cache_store = _StoreSlot(StoreId.CACHE)
    chat_store = _StoreSlot(StoreId.CHAT)
    cms_store = _StoreSlot(StoreId.CMS)
    custom_store = _StoreSlot(StoreId.CUSTOM)
    entity_store = _StoreSlot(StoreId.ENTITY)
    feed_store = _StoreSlot(StoreId.FEED)
    geo_store = _StoreSlot(StoreId.GEO)
    log_store = _StoreSlot(StoreId.LOG)
    meta_store = _StoreSlot(StoreId.META)
    session_store = _StoreSlot(StoreId.SESSION)
    setting_store = _StoreSlot(StoreId.SETTING)
    shop_store = _StoreSlot(StoreId.SHOP)
    sql_file_storage = _StoreSlot(StoreId.SQL_FILE_STORAGE)
    stats_store = _StoreSlot(StoreId.STATS)
    subscription_store = _StoreSlot(StoreId.SUBSCRIPTION)
    task_store = _StoreSlot(StoreId.TASK)
    user_store = _StoreSlot(StoreId.USER)
    vault_store = _StoreSlot(StoreId.VAULT)

    def __init__(
        self,
        config: Config,
        *,
        database: Engine | None = None,
        console_logger: Any = None,
        memory_cache: MemoryCache | None = None,
        file_cache: FileCache | None = None,
    ) -> None:
        if config is None:
            raise ConfigError("registry: config is required")
        self._config = config
        self._database = database
        self._console_logger = console_logger
        self._database_logger: Any = None
        self._active_logger: Any = console_logger
        self._logger_lock = threading.Lock()
        self._memory_cache = memory_cache
        self._file_cache = file_cache
        self._stores: Dict[StoreId, Store] = {}
        self._closed = False

    @property
    def config(self) -> Config:
        return self._config

    @config.setter
    def config(self, value: Config) -> None:
        self._config = value

    @property
    def database(self) -> Engine | None:
        return self._database

    @database.setter
    def database(self, value: Engine | None) -> None:
        self._database = value
        self._closed = False

    @property
    def console_logger(self) -> Any:
        return self._console_logger

    @console_logger.setter
    def console_logger(self, value: Any) -> None:
        with self._logger_lock:
            if self._active_logger is self._console_logger:
                self._active_logger = value
            self._console_logger = value

    @property
    def database_logger(self) -> Any:
        return self._database_logger

    @database_logger.setter
    def database_logger(self, value: Any) -> None:
        """Install ``value`` as the database logger and make it the active one."""

        with self._logger_lock:
            self._database_logger = value
            self._active_logger = value if value is not None else self._console_logger

    @property
    def logger(self) -> Any:
        """The active logger: database backed once promoted, console before."""

        return self._active_logger

    @property
    def memory_cache(self) -> MemoryCache | None:
        return self._memory_cache

    @memory_cache.setter
    def memory_cache(self, value: MemoryCache | None) -> None:
        self._memory_cache = value

    @property
    def file_cache(self) -> FileCache | None:
        return self._file_cache

    @file_cache.setter
    def file_cache(self, value: FileCache | None) -> None:
        self._file_cache = value

    def get_store(self, store_id: StoreId) -> Any:
        return self._stores.get(store_id)

    def set_store(self, store_id: StoreId, store: Store | None) -> None:
        if store is None:
            self._stores.pop(store_id, None)
        else:
            self._stores[store_id] = store

    @property
    def enabled_stores(self) -> list[StoreId]:
        return [store_id for store_id in StoreId if store_id in self._stores]

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Dispose of the database engine. Safe to call repeatedly."""

        if self._closed or self._database is None:
            return
        self._database.dispose()
        self._closed = True
        logger.info("registry.closed")


def create_registry(
    config: Config | None,
    *,
    memory_cache: MemoryCache | None = None,
    file_cache: FileCache | None = None,
    console_logger: Any = None,
    database_opener: Callable[[Config], Engine] = open_database,
) -> Registry:
    """Build a registry and run the full boot sequence.

    Steps: caches, console logger, database, store construction, store
    migration, then promotion to the database logger when the log store is
    enabled. A failing step disposes of the database and re-raises.
    """

    if config is None:
        raise ConfigError("registry: config is required")

    memory_cache = memory_cache or MemoryCache()
    file_cache = file_cache or FileCache()
    console = console_logger or create_console_logger()

    database = database_opener(config)

    registry = Registry(
        config,
        database=database,
        console_logger=console,
        memory_cache=memory_cache,
        file_cache=file_cache,
    )

    try:
        initialize_stores(registry, STORE_DEFINITIONS)
        migrate_stores(registry, STORE_DEFINITIONS)
    except Exception:
        registry.close()
        raise

    log_store = registry.log_store
    if log_store is not None:
        registry.database_logger = create_database_logger(log_store, console)

    console.info(
        "registry.ready",
        env=config.app.env,
        stores=[store_id.value for store_id in registry.enabled_stores],
        database_logger=log_store is not None,
    )
    return registry


def close_registry(registry: Registry | None) -> None:
    if registry is None:
        return
    registry.close()


__all__ = ["Registry", "close_registry", "create_registry"]
