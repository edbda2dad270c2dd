"""Database gateway."""

from .database import DatabaseOptions, build_url, open_database

__all__ = ["DatabaseOptions", "build_url", "open_database"]
