from __future__ import annotations

import pytest

from webscaffold.core.accumulator import LoadAccumulator, ensure_required, require_when
from webscaffold.exceptions import ConfigValidationError, MissingEnvError

pytestmark = pytest.mark.unit


def test_ensure_required_blank_values() -> None:
    assert ensure_required("value", "KEY", "ctx") is None
    error = ensure_required("   ", "KEY", "ctx")
    assert isinstance(error, MissingEnvError)
    assert error.key == "KEY"


def test_require_when_only_checks_when_condition_holds() -> None:
    assert require_when(False, "KEY", "ctx", "") is None
    assert require_when(True, "KEY", "ctx", "set") is None
    assert require_when(True, "KEY", "ctx", "") == MissingEnvError("KEY", "ctx")


def test_missing_env_rendering() -> None:
    assert str(MissingEnvError("DB_HOST")) == 'config: required env "DB_HOST" is missing'
    assert (
        str(MissingEnvError("DB_HOST", "required when `DB_DRIVER` is not sqlite"))
        == 'config: required env "DB_HOST" is missing: required when `DB_DRIVER` is not sqlite'
    )


def test_add_ignores_none() -> None:
    acc = LoadAccumulator({})
    acc.add(None)
    assert len(acc) == 0
    assert acc.err() is None


def test_must_string_trims_and_records_missing() -> None:
    acc = LoadAccumulator({"APP_HOST": "  example.org  ", "APP_PORT": "   "})

    assert acc.must_string("APP_HOST", "host") == "example.org"
    assert acc.must_string("APP_PORT", "port") == ""
    assert acc.must_string("APP_ENV", "env") == ""

    error = acc.err()
    assert isinstance(error, ConfigValidationError)
    assert error.missing_keys() == ["APP_PORT", "APP_ENV"]


def test_must_when_records_only_when_condition_holds() -> None:
    acc = LoadAccumulator({})
    assert acc.must_when(False, "CMS_STORE_TEMPLATE_ID", "ctx", "") is False
    assert acc.must_when(True, "VAULT_STORE_KEY", "ctx", "") is True
    assert acc.must_when(True, "OPENAI_API_KEY", "ctx", "sk-test") is False

    error = acc.err()
    assert error is not None
    assert error.missing_keys() == ["VAULT_STORE_KEY"]


def test_aggregate_renders_one_line_per_error_in_order() -> None:
    acc = LoadAccumulator({})
    acc.add(MissingEnvError("A"))
    acc.add(ValueError("second problem"))
    acc.add(MissingEnvError("B", "because"))

    rendered = str(acc.err()).splitlines()

    assert rendered[0] == "config: validation failed:"
    assert rendered[1:] == [
        ' - config: required env "A" is missing',
        " - second problem",
        ' - config: required env "B" is missing: because',
    ]


def test_aggregate_errors_is_a_copy() -> None:
    error = ConfigValidationError([MissingEnvError("A")])

    errors = error.errors
    errors.append(MissingEnvError("B"))

    assert len(error.errors) == 1
