from __future__ import annotations

import logging
from textwrap import dedent
from typing import TYPE_CHECKING

import pytest

from config.loader import ConfigFileNotFoundError, ConfigFormatError, ConfigLoader, ConfigValueError

if TYPE_CHECKING:
    from pathlib import Path


def _write_ini(tmp_path: Path, content: str) -> Path:
    ini_path: Path = tmp_path / "transrelay.ini"
    ini_path.write_text(dedent(content), encoding="utf-8")
    return ini_path


def test_config_loader_raises_for_missing_file(tmp_path: Path) -> None:
    ini_path: Path = tmp_path / "missing.ini"
    with pytest.raises(ConfigFileNotFoundError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_config_loader_reads_typed_values(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [GENERAL]
        DEBUG = True
        LOG_FILE = "relay.log"

        [SERVER]
        HOST = 0.0.0.0
        PORT = 9000

        [CACHE]
        DB_PATH = "cache/relay.db"
        MEMORY_LIMIT = 100
        TTL_DAYS = 3

        [TRANSLATION]
        MODEL = "gpt-4o-mini"
        TIMEOUT = 30
        """,
    )

    config = ConfigLoader(config_filename=str(ini_path), script_name="test").config

    assert config.GENERAL.DEBUG is True
    assert config.GENERAL.LOG_FILE == "relay.log"
    assert config.GENERAL.SCRIPT_NAME == "test"
    assert config.SERVER.HOST == "0.0.0.0"  # noqa: S104
    assert config.SERVER.PORT == 9000
    assert config.CACHE.DB_PATH == "cache/relay.db"
    assert config.CACHE.MEMORY_LIMIT == 100
    assert config.CACHE.TTL_DAYS == 3
    assert config.TRANSLATION.MODEL == "gpt-4o-mini"
    assert config.TRANSLATION.TIMEOUT == 30.0


def test_config_loader_keeps_defaults_for_missing_sections(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [GENERAL]
        DEBUG = False
        """,
    )

    config = ConfigLoader(config_filename=str(ini_path), script_name="test").config

    assert config.SERVER.HOST == "127.0.0.1"
    assert config.SERVER.PORT == 8787
    assert config.CACHE.MEMORY_LIMIT == 500
    assert config.CACHE.TTL_DAYS == 7
    assert config.TRANSLATION.MODEL == ""


def test_config_loader_applies_overrides(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [SERVER]
        PORT = 9000

        [TRANSLATION]
        MODEL = "gemini-2.5-flash"
        """,
    )

    config = ConfigLoader(
        config_filename=str(ini_path),
        script_name="test",
        debug=True,
        host="localhost",
        port=9100,
        model="claude-3-5-haiku-latest",
    ).config

    assert config.GENERAL.DEBUG is True
    assert config.SERVER.HOST == "localhost"
    assert config.SERVER.PORT == 9100
    assert config.TRANSLATION.MODEL == "claude-3-5-haiku-latest"


def test_config_loader_ignores_none_overrides(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [SERVER]
        PORT = 9000
        """,
    )

    config = ConfigLoader(config_filename=str(ini_path), script_name="test", port=None, debug=False).config

    assert config.SERVER.PORT == 9000
    assert config.GENERAL.DEBUG is False


def test_config_loader_rejects_out_of_range_port(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [SERVER]
        PORT = 70000
        """,
    )

    with pytest.raises(ConfigValueError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_config_loader_rejects_zero_memory_limit(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [CACHE]
        MEMORY_LIMIT = 0
        """,
    )

    with pytest.raises(ConfigValueError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_config_loader_rejects_non_numeric_value(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [CACHE]
        TTL_DAYS = seven
        """,
    )

    with pytest.raises(ConfigFormatError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_config_loader_warns_for_unknown_model(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TRANSLATION]
        MODEL = "mistral-large"
        """,
    )
    caplog.set_level(logging.WARNING)

    config = ConfigLoader(config_filename=str(ini_path), script_name="test").config

    assert config.TRANSLATION.MODEL == "mistral-large"
    assert any("Unknown model 'mistral-large'" in rec.getMessage() for rec in caplog.records)
