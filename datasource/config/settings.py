# =============================================================================
# datasource/config/settings.py
# Configuration Loading (TOML file + .env + environment + overrides)
# =============================================================================
"""
Configuration for the DataSource layer.

Sources are applied in order, later ones winning:

1. Dataclass defaults
2. ``[datasource]`` table of a TOML file
3. ``DATASOURCE_*`` environment variables (a ``.env`` file is loaded first)
4. Keyword overrides passed to :func:`load_config`

Expected TOML format::

    [datasource]
    base_url = "https://api.example.com/v1"
    connect_timeout = 10
    receive_timeout = 30
    storage_dir = "local_data"
    log_requests = false

    [datasource.default_headers]
    Accept-Language = "en"
"""

from __future__ import annotations
import os
import tomllib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

from datasource.errors import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}

CONFIG_PATH_ENV = "DATASOURCE_CONFIG"

# Environment variable -> config field
ENV_OVERRIDES = {
    "DATASOURCE_BASE_URL": "base_url",
    "DATASOURCE_CONNECT_TIMEOUT": "connect_timeout",
    "DATASOURCE_RECEIVE_TIMEOUT": "receive_timeout",
    "DATASOURCE_STORAGE_DIR": "storage_dir",
    "DATASOURCE_SECURE_KEY": "secure_key",
    "DATASOURCE_LOG_REQUESTS": "log_requests",
}


def _default_headers() -> Dict[str, str]:
    return {"Accept": "application/json"}


@dataclass
class DataSourceConfig:
    """Settings shared by the remote client and the on-device stores"""
    base_url: str = ""
    connect_timeout: float = 10.0
    receive_timeout: float = 30.0
    default_headers: Dict[str, str] = field(default_factory=_default_headers)
    storage_dir: Path = Path("local_data")
    secure_key: Optional[str] = None
    log_requests: bool = True

    def __post_init__(self):
        self.storage_dir = Path(self.storage_dir)
        self.connect_timeout = _as_seconds(self.connect_timeout, "connect_timeout")
        self.receive_timeout = _as_seconds(self.receive_timeout, "receive_timeout")
        self.default_headers = _as_headers(self.default_headers)
        self.log_requests = _as_flag(self.log_requests, "log_requests")

    @property
    def timeout(self) -> tuple[float, float]:
        """(connect, read) tuple in the form requests expects"""
        return (self.connect_timeout, self.receive_timeout)

    @property
    def local_db_path(self) -> Path:
        return self.storage_dir / "local.db"

    @property
    def secure_db_path(self) -> Path:
        return self.storage_dir / "secure.db"

    @property
    def secure_key_path(self) -> Path:
        return self.storage_dir / "secure.key"

    def require_base_url(self) -> str:
        """Return the base URL, raising if it was never configured."""
        if not self.base_url:
            raise ConfigurationError(
                "base_url is not configured. Set it in the [datasource] table "
                "or via DATASOURCE_BASE_URL.",
                config_key="base_url",
                expected_type="str",
            )
        return self.base_url.rstrip("/")


def _as_seconds(value: Any, key: str) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid value for {key}: {value!r}",
            config_key=key,
            expected_type="float",
        )
    if seconds <= 0:
        raise ConfigurationError(
            f"{key} must be positive, got {seconds}",
            config_key=key,
            expected_type="float",
        )
    return seconds


def _as_flag(value: Any, key: str) -> bool:
    """Accept a bool, or a true/false word as it arrives from the environment."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_VALUES:
            return True
        if word in _FALSE_VALUES:
            return False
    raise ConfigurationError(
        f"Invalid value for {key}: {value!r}",
        config_key=key,
        expected_type="bool",
    )


def _as_headers(value: Any) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"default_headers must be a table of header names to values, got {value!r}",
            config_key="default_headers",
            expected_type="table",
        )
    for name, header in value.items():
        if not isinstance(name, str) or not isinstance(header, str):
            raise ConfigurationError(
                f"Invalid header {name!r}: {header!r} (names and values must be strings)",
                config_key="default_headers",
                expected_type="str",
            )
    return dict(value)


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read the [datasource] table of a TOML file."""
    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}", config_key=CONFIG_PATH_ENV)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}", config_key=CONFIG_PATH_ENV)

    section = document.get("datasource", {})
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"[datasource] in {path} must be a table",
            config_key="datasource",
            expected_type="table",
        )
    return section


def load_config(
    path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> DataSourceConfig:
    """
    Build a DataSourceConfig from file, environment and overrides.

    Args:
        path: TOML file to read (default: $DATASOURCE_CONFIG if set)
        env_file: .env file to load (default: python-dotenv's lookup)
        **overrides: Field values that take precedence over everything else

    Returns:
        Validated DataSourceConfig
    """
    load_dotenv(dotenv_path=env_file)

    known = {f.name for f in fields(DataSourceConfig)}
    values: Dict[str, Any] = {}

    path = path or os.getenv(CONFIG_PATH_ENV)
    if path:
        for key, value in _read_toml(Path(path)).items():
            if key in known:
                values[key] = value
            else:
                logger.warning(f"Ignoring unknown config key '{key}' in {path}")

    for env_name, key in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[key] = env_value

    for key, value in overrides.items():
        if key not in known:
            raise ConfigurationError(f"Unknown config key: {key}", config_key=key)
        values[key] = value

    if "default_headers" in values:
        values["default_headers"] = {**_default_headers(), **_as_headers(values["default_headers"])}

    return DataSourceConfig(**values)
