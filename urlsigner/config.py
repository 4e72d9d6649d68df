# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Configuration for the ``urlsigner`` command.

Configuration is loaded from a YAML file.  The default location follows
the XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/urlsigner/urlsigner.yaml``
    (typically ``~/.config/urlsigner/urlsigner.yaml``)

``!env`` tags resolve values from environment variables, e.g.::

    service_account_key: !env GOOGLE_APPLICATION_CREDENTIALS
    default_duration: 900
    log_level: INFO
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_path

from urlsigner.dotenv_loader import load_dotenv_once


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "urlsigner"

#: Default validity period of a signed URL, in seconds.
DEFAULT_DURATION_SECONDS = 900

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigError(Exception):
    """Raised for missing or invalid configuration."""


def get_config_path() -> Path:
    """Return the default config file path (XDG)."""
    return user_config_path(_APP_NAME) / "urlsigner.yaml"


def get_dotenv_path() -> Path:
    """Return the default ``.env`` path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is unset or empty.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name) or None
    if value is None:
        return None
    return str(value)


def _resolve_int(value: object, name: str, default: int) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    resolved = _raw_resolve(value)
    if resolved is None:
        return default
    try:
        return int(resolved)
    except ValueError:
        raise ConfigError(
            f"'{name}' must be an integer, got {resolved!r}"
        ) from None


def _resolve_path(value: object) -> Path | None:
    resolved = _raw_resolve(value)
    if resolved is None:
        return None
    return Path(resolved).expanduser()


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignerConfig:
    """Settings for the ``urlsigner`` command.

    Attributes:
        service_account_key: Path to a service account JSON key file.
        default_duration: Validity period in seconds when none is given.
        log_level: Logging level name.
    """

    service_account_key: Path | None = None
    default_duration: int = DEFAULT_DURATION_SECONDS
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.default_duration <= 0:
            raise ConfigError(
                f"'default_duration' must be positive, "
                f"got {self.default_duration}"
            )
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(
                f"'log_level' must be one of {sorted(_LOG_LEVELS)}, "
                f"got {self.log_level!r}"
            )

    @property
    def effective_log_level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "SignerConfig":
        """Load configuration from a YAML file.

        A ``.env`` file is loaded first if present, so ``!env`` tags can
        refer to variables defined there.

        Args:
            config_path: Path to the YAML file.  Defaults to
                ``~/.config/urlsigner/urlsigner.yaml`` (XDG); a missing
                default file yields the built-in defaults.

        Returns:
            SignerConfig instance.

        Raises:
            ConfigError: If an explicit file is missing or a value is
                invalid.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()
            if not config_path.exists():
                logger.debug("No config at %s, using defaults", config_path)
                return cls()
        elif not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path) as f:
                raw = yaml.load(f, Loader=_make_loader())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        logger.debug("Loaded config from %s", config_path)
        return cls._from_raw(raw)

    @classmethod
    def _from_raw(cls, raw: dict[str, Any]) -> "SignerConfig":
        level = _raw_resolve(raw.get("log_level"))
        return cls(
            service_account_key=_resolve_path(raw.get("service_account_key")),
            default_duration=_resolve_int(
                raw.get("default_duration"),
                "default_duration",
                DEFAULT_DURATION_SECONDS,
            ),
            log_level=level.upper() if level else "INFO",
        )
