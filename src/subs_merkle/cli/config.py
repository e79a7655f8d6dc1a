"""Configuration helpers for the subs-merkle CLI."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

DEFAULT_CONFIG_PATH = Path.home() / ".subs_merkle" / "config.toml"
DEFAULT_DB_PATH = str(Path.home() / ".subs_merkle" / "subscribers.db")
DEFAULT_RPC_URL = "https://testnet-rpc.monad.xyz"
DEFAULT_CONTRACT_ADDRESS = "0x0000000000000000000000000000000000000000"
DB_PATH_ENV_VAR = "SUBS_MERKLE_DB_PATH"
RPC_URL_ENV_VAR = "SUBS_MERKLE_RPC_URL"
CONTRACT_ADDRESS_ENV_VAR = "SUBS_MERKLE_CONTRACT_ADDRESS"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
_BOOL_WORDS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


@dataclass(frozen=True)
class CLIConfig:
    db_path: str = DEFAULT_DB_PATH
    rpc_url: str = DEFAULT_RPC_URL
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    rpc_timeout: float = 10.0
    hex_prefix: bool = True
    log_level: str = "WARNING"

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


class ConfigError(ValueError):
    """Raised when CLI config is invalid."""


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path} is not valid TOML: {exc}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    word = value.strip().lower() if isinstance(value, str) else None
    if word not in _BOOL_WORDS:
        raise ConfigError(f"{key} must be a boolean")
    return _BOOL_WORDS[word]


def _non_empty(source: dict[str, Any], key: str, default: str, env_var: str | None = None) -> str:
    env_value = os.getenv(env_var) if env_var else None
    value = env_value.strip() if env_value else str(source.get(key, default)).strip()
    if not value:
        raise ConfigError(f"{key} must not be empty")
    return value


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if config_path.exists():
        parsed = _read_toml(config_path)
    else:
        parsed = {}

    section = parsed.get("subs_merkle")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[subs_merkle] must be a table")

    db_path = _non_empty(source, "db_path", DEFAULT_DB_PATH, DB_PATH_ENV_VAR)
    rpc_url = _non_empty(source, "rpc_url", DEFAULT_RPC_URL, RPC_URL_ENV_VAR)
    contract_address = _non_empty(
        source, "contract_address", DEFAULT_CONTRACT_ADDRESS, CONTRACT_ADDRESS_ENV_VAR
    )

    try:
        rpc_timeout = float(source.get("rpc_timeout", 10.0))
    except (TypeError, ValueError) as exc:
        raise ConfigError("rpc_timeout must be a number") from exc
    if rpc_timeout <= 0:
        raise ConfigError("rpc_timeout must be positive")

    hex_prefix = _as_bool(source.get("hex_prefix", True), "hex_prefix")

    log_level = str(source.get("log_level", "WARNING")).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")

    return CLIConfig(
        db_path=db_path,
        rpc_url=rpc_url,
        contract_address=contract_address,
        rpc_timeout=rpc_timeout,
        hex_prefix=hex_prefix,
        log_level=log_level,
    )
