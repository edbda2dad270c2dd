"""Validation error collection used while building a :class:`Config`."""

from __future__ import annotations

import os
from typing import Mapping

from ..exceptions import ConfigValidationError, MissingEnvError


def ensure_required(value: str, key: str, context: str) -> MissingEnvError | None:
    """Return a :class:`MissingEnvError` when ``value`` is blank after trimming."""

    if value.strip():
        return None
    return MissingEnvError(key, context)


def require_when(condition: bool, key: str, context: str, value: str) -> MissingEnvError | None:
    if not condition:
        return None
    return ensure_required(value, key, context)


class LoadAccumulator:
    """Collects every config problem so one load reports all of them."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ
        self._errors: list[Exception] = []

    def add(self, error: Exception | None) -> None:
        if error is not None:
            self._errors.append(error)

    def must_string(self, key: str, context: str) -> str:
        """Read a trimmed value, recording a missing-env error when blank."""

        value = self._environ.get(key, "").strip()
        error = ensure_required(value, key, context)
        self.add(error)
        return "" if error else value

    def must_when(self, condition: bool, key: str, context: str, value: str) -> bool:
        """Record a missing-env error when ``condition`` holds and ``value`` is blank.

        Returns whether an error was recorded.
        """

        error = require_when(condition, key, context, value)
        self.add(error)
        return error is not None

    def err(self) -> ConfigValidationError | None:
        if not self._errors:
            return None
        return ConfigValidationError(self._errors)

    def __len__(self) -> int:
        return len(self._errors)


__all__ = ["LoadAccumulator", "ensure_required", "require_when"]
