"""Two-phase store lifecycle driven by a table of store definitions.

Phase 1 constructs every enabled store without touching the schema.
Phase 2 walks the same list again and runs each store's migrator. Both
phases stop at the first failure and name the store that failed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence

from sqlalchemy.engine import Engine

from ..core.config import Config
from ..exceptions import StoreInitError, StoreMigrateError
from ..stores.audit import AuditStore
from ..stores.base import Store
from ..stores.blindindex import EMAIL_TABLE, FIRST_NAME_TABLE, LAST_NAME_TABLE, BlindIndexStore
from ..stores.blog import BlogStore
from ..stores.cache import CacheStore
from ..stores.chat import ChatStore
from ..stores.cms import CmsStore
from ..stores.custom import CustomStore
from ..stores.entity import EntityStore
from ..stores.feed import FeedStore
from ..stores.geo import GeoStore
from ..stores.log import LogStore
from ..stores.meta import MetaStore
from ..stores.session import SessionStore
from ..stores.setting import SettingStore
from ..stores.shop import ShopStore
from ..stores.sqlfile import SqlFileStorage
from ..stores.stats import StatsStore
from ..stores.subscription import SubscriptionStore
from ..stores.task import TaskStore
from ..stores.user import UserStore, UserVault
from ..stores.vault import VaultStore
from .store_ids import StoreId

if TYPE_CHECKING:  # pragma: no cover
    from .registry import Registry

logger = logging.getLogger(__name__)

StoreFactory = Callable[[Engine, Config, "Registry"], Store]


def _auto_migrate(store: Store) -> None:
    store.auto_migrate()


def _no_migration(store: Store) -> None:  # noqa: ARG001
    return None


@dataclass(frozen=True, slots=True)
class StoreDefinition:
    id: StoreId
    enabled: Callable[[Config], bool]
    create: StoreFactory
    migrate: Callable[[Store], None] = _auto_migrate


def _blind_index_enabled(config: Config) -> bool:
    return config.stores.user_store_used and config.stores.vault_store_used


def _blind_index(table: str) -> StoreFactory:
    def create(engine: Engine, config: Config, registry: "Registry") -> Store:
        return BlindIndexStore(engine, table=table)

    return create


def _create_user_store(engine: Engine, config: Config, registry: "Registry") -> Store:
    if not config.stores.user_store_vault_enabled:
        return UserStore(engine)

    indexes = [
        registry.get_store(StoreId.BLIND_INDEX_EMAIL),
        registry.get_store(StoreId.BLIND_INDEX_FIRST_NAME),
        registry.get_store(StoreId.BLIND_INDEX_LAST_NAME),
    ]
    if any(index is None for index in indexes):
        raise ValueError("vault mode requires the blind index stores")
    email_index, first_name_index, last_name_index = indexes
    # The vault store is built after the user store, so resolve it lazily.
    return UserStore(
        engine,
        vault=UserVault(
            vault=lambda: registry.get_store(StoreId.VAULT),
            email_index=email_index,
            first_name_index=first_name_index,
            last_name_index=last_name_index,
        ),
    )


STORE_DEFINITIONS: tuple[StoreDefinition, ...] = (
    StoreDefinition(
        StoreId.AUDIT,
        lambda cfg: cfg.stores.audit_store_used,
        lambda engine, cfg, reg: AuditStore(engine),
    ),
    StoreDefinition(StoreId.BLIND_INDEX_EMAIL, _blind_index_enabled, _blind_index(EMAIL_TABLE)),
    StoreDefinition(StoreId.BLIND_INDEX_FIRST_NAME, _blind_index_enabled, _blind_index(FIRST_NAME_TABLE)),
    StoreDefinition(StoreId.BLIND_INDEX_LAST_NAME, _blind_index_enabled, _blind_index(LAST_NAME_TABLE)),
    StoreDefinition(
        StoreId.BLOG,
        lambda cfg: cfg.stores.blog_store_used,
        lambda engine, cfg, reg: BlogStore(engine),
    ),
    StoreDefinition(
        StoreId.CACHE,
        lambda cfg: cfg.stores.cache_store_used,
        lambda engine, cfg, reg: CacheStore(engine),
    ),
    StoreDefinition(
        StoreId.CHAT,
        lambda cfg: cfg.stores.chat_store_used,
        lambda engine, cfg, reg: ChatStore(engine),
    ),
    StoreDefinition(
        StoreId.CMS,
        lambda cfg: cfg.stores.cms_store_used,
        lambda engine, cfg, reg: CmsStore(engine, template_id=cfg.stores.cms_template_id),
    ),
    StoreDefinition(
        StoreId.CUSTOM,
        lambda cfg: cfg.stores.custom_store_used,
        lambda engine, cfg, reg: CustomStore(engine),
    ),
    StoreDefinition(
        StoreId.ENTITY,
        lambda cfg: cfg.stores.entity_store_used,
        lambda engine, cfg, reg: EntityStore(engine),
    ),
    StoreDefinition(
        StoreId.FEED,
        lambda cfg: cfg.stores.feed_store_used,
        lambda engine, cfg, reg: FeedStore(engine),
    ),
    StoreDefinition(
        StoreId.GEO,
        lambda cfg: cfg.stores.geo_store_used,
        lambda engine, cfg, reg: GeoStore(engine),
    ),
    StoreDefinition(
        StoreId.LOG,
        lambda cfg: cfg.stores.log_store_used,
        lambda engine, cfg, reg: LogStore(engine),
    ),
    StoreDefinition(
        StoreId.META,
        lambda cfg: cfg.stores.meta_store_used,
        lambda engine, cfg, reg: MetaStore(engine),
    ),
    StoreDefinition(
        StoreId.SESSION,
        lambda cfg: cfg.stores.session_store_used,
        lambda engine, cfg, reg: SessionStore(engine),
    ),
    StoreDefinition(
        StoreId.SETTING,
        lambda cfg: cfg.stores.setting_store_used,
        lambda engine, cfg, reg: SettingStore(engine),
    ),
    StoreDefinition(
        StoreId.SHOP,
        lambda cfg: cfg.stores.shop_store_used,
        lambda engine, cfg, reg: ShopStore(engine),
    ),
    StoreDefinition(
        StoreId.SQL_FILE_STORAGE,
        lambda cfg: cfg.stores.sql_file_store_used,
        lambda engine, cfg, reg: SqlFileStorage(engine),
        migrate=_no_migration,
    ),
    StoreDefinition(
        StoreId.STATS,
        lambda cfg: cfg.stores.stats_store_used,
        lambda engine, cfg, reg: StatsStore(engine),
    ),
    StoreDefinition(
        StoreId.SUBSCRIPTION,
        lambda cfg: cfg.stores.subscription_store_used,
        lambda engine, cfg, reg: SubscriptionStore(engine),
    ),
    StoreDefinition(
        StoreId.TASK,
        lambda cfg: cfg.stores.task_store_used,
        lambda engine, cfg, reg: TaskStore(engine),
    ),
    StoreDefinition(StoreId.USER, lambda cfg: cfg.stores.user_store_used, _create_user_store),
    StoreDefinition(
        StoreId.VAULT,
        lambda cfg: cfg.stores.vault_store_used,
        lambda engine, cfg, reg: VaultStore(engine, key=cfg.stores.vault_store_key),
    ),
)


def initialize_stores(
    registry: "Registry",
    definitions: Sequence[StoreDefinition] = STORE_DEFINITIONS,
) -> list[StoreId]:
    """Phase 1: construct every enabled store. Returns the ids created."""

    created: list[StoreId] = []
    for definition in definitions:
        if not definition.enabled(registry.config):
            continue
        try:
            store = definition.create(registry.database, registry.config, registry)
        except Exception as exc:
            raise StoreInitError(definition.id.value, str(exc)) from exc
        if store is None:
            raise StoreInitError(definition.id.value, "factory returned no store")
        registry.set_store(definition.id, store)
        created.append(definition.id)
    logger.info("registry.stores.initialized", extra={"stores": [item.value for item in created]})
    return created


def migrate_stores(
    registry: "Registry",
    definitions: Sequence[StoreDefinition] = STORE_DEFINITIONS,
) -> list[StoreId]:
    """Phase 2: run the migrator of every enabled store, in the same order."""

    migrated: list[StoreId] = []
    for definition in definitions:
        if not definition.enabled(registry.config):
            continue
        store = registry.get_store(definition.id)
        if store is None:
            raise StoreMigrateError(definition.id.value, "store is not initialized")
        try:
            definition.migrate(store)
        except Exception as exc:
            raise StoreMigrateError(definition.id.value, str(exc)) from exc
        migrated.append(definition.id)
    logger.info("registry.stores.migrated", extra={"stores": [item.value for item in migrated]})
    return migrated


__all__ = [
    "STORE_DEFINITIONS",
    "StoreDefinition",
    "initialize_stores",
    "migrate_stores",
]
