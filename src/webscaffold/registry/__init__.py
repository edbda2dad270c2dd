"""Registry: the composition root and the store lifecycle."""

from .definitions import STORE_DEFINITIONS, StoreDefinition, initialize_stores, migrate_stores
from .registry import Registry, close_registry, create_registry
from .store_ids import STORE_ORDER, StoreId

__all__ = [
    "Registry",
    "STORE_DEFINITIONS",
    "STORE_ORDER",
    "StoreDefinition",
    "StoreId",
    "close_registry",
    "create_registry",
    "initialize_stores",
    "migrate_stores",
]
