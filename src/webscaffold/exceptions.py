"""Application level exceptions raised during boot and by store adapters."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Sequence

from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "ConfigError",
    "MissingEnvError",
    "InvalidEnvError",
    "ConfigValidationError",
    "VaultError",
    "DatabaseOpenError",
    "StoreError",
    "StoreInitError",
    "StoreMigrateError",
    "TransientStoreError",
    "handle_sqlalchemy_errors",
]


class AppError(Exception):
    """Base class for application specific errors."""


class ConfigError(AppError):
    """Raised when configuration cannot be assembled."""


class MissingEnvError(ConfigError):
    """A required environment variable is blank or unset."""

    def __init__(self, key: str, context: str = "") -> None:
        self.key = key
        self.context = context
        super().__init__(self._render())

    def _render(self) -> str:
        if not self.context.strip():
            return f'config: required env "{self.key}" is missing'
        return f'config: required env "{self.key}" is missing: {self.context}'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MissingEnvError):
            return NotImplemented
        return (self.key, self.context) == (other.key, other.context)

    def __hash__(self) -> int:
        return hash((self.key, self.context))


class InvalidEnvError(ConfigError):
    """An environment variable is present but cannot be interpreted."""

    def __init__(self, key: str, value: str, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f'config: env "{key}" has invalid value {value!r}: {reason}')


class ConfigValidationError(ConfigError):
    """Aggregate of every problem found while loading configuration."""

    def __init__(self, errors: Sequence[Exception]) -> None:
        self._errors = list(errors)
        super().__init__(self._render())

    def _render(self) -> str:
        if not self._errors:
            return "config: validation failed"
        lines = ["config: validation failed:"]
        lines.extend(f" - {error}" for error in self._errors)
        return "\n".join(lines)

    @property
    def errors(self) -> list[Exception]:
        """Return a copy of the underlying errors in insertion order."""

        return list(self._errors)

    def missing_keys(self) -> list[str]:
        return [error.key for error in self._errors if isinstance(error, MissingEnvError)]


class VaultError(AppError):
    """Raised when the environment vault cannot be derived, found or decrypted."""


class DatabaseOpenError(AppError):
    """Raised when the database connection cannot be opened."""


class StoreError(AppError):
    """Base class for store failures."""


class StoreInitError(StoreError):
    """Construction of a store failed."""

    def __init__(self, store: str, message: str) -> None:
        self.store = store
        super().__init__(f"store {store}: initialize failed: {message}")


class StoreMigrateError(StoreError):
    """Schema migration of a store failed."""

    def __init__(self, store: str, message: str) -> None:
        self.store = store
        super().__init__(f"store {store}: migrate failed: {message}")


class TransientStoreError(StoreError):
    """Raised for database errors surfaced by store operations at runtime."""


@dataclass(slots=True)
class _EntityContext:
    """Internal helper describing the entity for error messages."""

    entity: str | None = None

    def format(self, message: str) -> str:
        if self.entity:
            return f"{self.entity}: {message}"
        return message


def _translate_sqlalchemy_error(exc: Exception, *, context: _EntityContext) -> StoreError:
    if isinstance(exc, sa_exc.IntegrityError):
        return TransientStoreError(context.format("integrity constraint violated"))
    if isinstance(exc, sa_exc.DBAPIError):
        return TransientStoreError(context.format("database operation failed"))
    return StoreError(context.format(str(exc)))


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into store level ones."""

    context = _EntityContext(entity)
    try:
        yield
    except (sa_exc.IntegrityError, sa_exc.DBAPIError) as exc:
        raise _translate_sqlalchemy_error(exc, context=context) from exc
