from __future__ import annotations

import logging

import pytest

from subs_merkle.cli.config import DEFAULT_RPC_URL, ConfigError, load_cli_config


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch) -> None:
    for name in ("SUBS_MERKLE_DB_PATH", "SUBS_MERKLE_RPC_URL", "SUBS_MERKLE_CONTRACT_ADDRESS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_file_missing(tmp_path) -> None:
    config = load_cli_config(tmp_path / "missing.toml")
    assert config.rpc_url == DEFAULT_RPC_URL
    assert config.hex_prefix is True
    assert config.logging_level == logging.WARNING


def test_values_read_from_section(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        "[subs_merkle]\n"
        'db_path = "/tmp/subs.db"\n'
        'rpc_url = "http://localhost:8545"\n'
        'hex_prefix = "no"\n'
        'log_level = "debug"\n'
        "rpc_timeout = 2.5\n",
        encoding="utf-8",
    )
    config = load_cli_config(config_path)
    assert config.db_path == "/tmp/subs.db"
    assert config.rpc_url == "http://localhost:8545"
    assert config.hex_prefix is False
    assert config.log_level == "DEBUG"
    assert config.rpc_timeout == 2.5


def test_env_overrides_config_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('rpc_url = "http://localhost:8545"\n', encoding="utf-8")
    monkeypatch.setenv("SUBS_MERKLE_RPC_URL", "https://env.rpc.example")
    monkeypatch.setenv("SUBS_MERKLE_DB_PATH", str(tmp_path / "env.db"))
    config = load_cli_config(config_path)
    assert config.rpc_url == "https://env.rpc.example"
    assert config.db_path == str(tmp_path / "env.db")


@pytest.mark.parametrize(
    "content",
    [
        'log_level = "LOUD"\n',
        'hex_prefix = "maybe"\n',
        "rpc_timeout = 0\n",
        'rpc_url = ""\n',
        'subs_merkle = "flat"\n',
        "not = valid = toml\n",
    ],
)
def test_invalid_config_rejected(tmp_path, content: str) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_cli_config(config_path)
