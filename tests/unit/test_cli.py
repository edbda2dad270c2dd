from __future__ import annotations

from pathlib import Path

import pytest

from webscaffold import cli
from webscaffold.core import envenc

pytestmark = pytest.mark.unit

PUBLIC_KEY = "p" * 32
PRIVATE_KEY = "q" * 32


def _run(argv: list[str], environ: dict[str, str], tmp_path: Path) -> int:
    return cli.main(["--env-file", str(tmp_path / "absent.env"), *argv], environ=environ)


def test_check_config_success(tmp_path: Path, minimal_env: dict[str, str], capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["check-config"], minimal_env, tmp_path) == 0

    assert "config ok: env=testing driver=sqlite" in capsys.readouterr().out


def test_check_config_failure_lists_every_problem(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["check-config"], {}, tmp_path) == 1

    err = capsys.readouterr().err
    assert err.startswith("config: validation failed:")
    assert 'required env "APP_HOST" is missing' in err
    assert "Traceback" not in err


def test_debug_flag_prints_traceback(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--debug", "--env-file", str(tmp_path / "absent.env"), "check-config"], environ={}) == 1

    assert "Traceback" in capsys.readouterr().err


def test_migrate_reports_enabled_stores(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    minimal_env: dict[str, str],
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    minimal_env.update({"SETTING_STORE_USED": "true", "META_STORE_USED": "true"})

    assert _run(["migrate"], minimal_env, tmp_path) == 0

    assert "migrated 2 stores: meta, setting" in capsys.readouterr().out


def test_vault_encrypt_writes_a_readable_vault(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(envenc, "ENVENC_KEY_PUBLIC", PUBLIC_KEY)
    source = tmp_path / "production.env"
    source.write_text("DB_PASSWORD=s3cret\nOPENAI_API_KEY=sk\n", encoding="utf-8")
    target = tmp_path / ".env.production.vault"

    code = _run(
        ["vault-encrypt", "--input", str(source), "--env", "production", "--output", str(target)],
        {"ENVENC_KEY_PRIVATE": PRIVATE_KEY},
        tmp_path,
    )

    assert code == 0
    assert "wrote 2 values" in capsys.readouterr().out
    derived = envenc.derive_key(PUBLIC_KEY, PRIVATE_KEY)
    assert envenc.decrypt_vault(target.read_text(encoding="utf-8"), derived) == {
        "DB_PASSWORD": "s3cret",
        "OPENAI_API_KEY": "sk",
    }


def test_vault_encrypt_requires_private_key(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "plain.env"
    source.write_text("A=1\n", encoding="utf-8")

    assert _run(["vault-encrypt", "--input", str(source), "--env", "local"], {}, tmp_path) == 1
    assert "ENVENC_KEY_PRIVATE is required" in capsys.readouterr().err


def test_serve_rejects_non_numeric_port(
    tmp_path: Path, minimal_env: dict[str, str], capsys: pytest.CaptureFixture[str]
) -> None:
    minimal_env["APP_PORT"] = "abc"

    assert _run(["serve"], minimal_env, tmp_path) == 1

    err = capsys.readouterr().err
    assert 'env "APP_PORT" has invalid value' in err
    assert "Traceback" not in err


def test_serve_runs_uvicorn_with_integer_port(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, minimal_env: dict[str, str]
) -> None:
    monkeypatch.chdir(tmp_path)
    calls: list[dict] = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

    assert _run(["serve"], minimal_env, tmp_path) == 0

    assert calls == [{"host": "localhost", "port": 8080, "log_level": "info"}]
