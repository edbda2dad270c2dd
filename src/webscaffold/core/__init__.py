"""Core infrastructure: configuration record, loader and env vaults."""

from .config import Config
from .loader import load_config

__all__ = ["Config", "load_config"]
