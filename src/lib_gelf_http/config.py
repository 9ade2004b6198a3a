"""Configuration loading: JSON files, ``GELF_*`` environment variables, and ``.env``.

Purpose
-------
Resolve a :class:`~lib_gelf_http.domain.configuration.GraylogConfiguration`
from the places host applications keep settings. Precedence (lowest first):
built-in defaults, the JSON configuration file, environment variables. A
``.env`` file can seed the environment without overriding values already set.

Contents
--------
* :func:`enable_dotenv` – load the nearest ``.env`` once per process.
* :func:`load_configuration` – build the configuration value.
* Parsing helpers for booleans, integers, and ``HOST:PORT`` endpoints.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .domain.configuration import GraylogConfiguration

LOGGER = logging.getLogger(__name__)

DOTENV_ENV_VAR = "GELF_USE_DOTENV"
CONFIG_FILE_ENV_VAR = "GELF_CONFIG_FILE"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

_STRING_VARS = {
    "GELF_FACILITY": "facility",
    "GELF_HOST": "host",
    "GELF_CLIENT_CERTIFICATE_PATH": "client_certificate_path",
    "GELF_CLIENT_CERTIFICATE_NAME": "client_certificate_name",
    "GELF_CLIENT_CERTIFICATE_PASSWORD": "client_certificate_password",
    "GELF_CERTIFICATE_STORE": "certificate_store_path",
}
_BOOL_VARS = {
    "GELF_USE_SSL": "use_ssl",
    "GELF_USE_COMPRESSION": "use_compression",
    "GELF_EXPECT_CONTINUE": "expect_continue",
}
_INT_VARS = {
    "GELF_PORT": "port",
    "GELF_REQUEST_TIMEOUT": "request_timeout_seconds",
}

_dotenv_path: Path | None = None
_dotenv_loaded = False


def enable_dotenv(search_from: str | Path | None = None) -> Path | None:
    """Load the nearest ``.env`` file into :data:`os.environ` without overriding.

    The search walks up from ``search_from`` (default: the working directory).
    Returns the resolved path of the loaded file, or ``None`` when none exists.
    Subsequent calls return the first result without re-reading the file.
    """

    global _dotenv_path, _dotenv_loaded
    if _dotenv_loaded:
        return _dotenv_path

    if search_from is None:
        found = find_dotenv(usecwd=True)
    else:
        found = _find_upwards(Path(search_from))
    _dotenv_loaded = True
    if not found:
        LOGGER.debug("No .env file found")
        return None
    _dotenv_path = Path(found).resolve()
    load_dotenv(_dotenv_path, override=False)
    LOGGER.debug("Loaded environment from %s", _dotenv_path)
    return _dotenv_path


def _find_upwards(start: Path) -> str:
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        env_file = candidate / ".env"
        if env_file.is_file():
            return str(env_file)
    return ""


def _reset_dotenv_state_for_testing() -> None:
    global _dotenv_path, _dotenv_loaded
    _dotenv_path = None
    _dotenv_loaded = False


def should_use_dotenv(*, explicit: bool | None = None, env_value: str | None = None) -> bool:
    """Decide whether to load ``.env``: an explicit CLI flag wins over ``GELF_USE_DOTENV``.

    Examples
    --------
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    >>> should_use_dotenv(env_value="yes")
    True
    """

    if explicit is not None:
        return explicit
    return env_bool(env_value, default=False, name=DOTENV_ENV_VAR)


def env_bool(value: str | None, *, default: bool, name: str = "value") -> bool:
    """Parse ``1/true/yes/on`` and ``0/false/no/off`` strings.

    Examples
    --------
    >>> env_bool("On", default=False)
    True
    >>> env_bool(None, default=True)
    True
    """

    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag (1/0, true/false, yes/no, on/off), got {value!r}")


def env_int(value: str, *, name: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def parse_endpoint(value: str) -> tuple[str, int]:
    """Parse ``HOST:PORT`` into a tuple.

    Examples
    --------
    >>> parse_endpoint("graylog.local:12201")
    ('graylog.local', 12201)
    """

    host, sep, port_str = value.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"GELF_ENDPOINT must use HOST:PORT format, got {value!r}")
    port = env_int(port_str, name="GELF_ENDPOINT port")
    if port <= 0:
        raise ValueError(f"GELF_ENDPOINT port must be positive, got {port}")
    return host, port


def read_configuration_file(path: str | Path) -> dict[str, Any]:
    """Return the JSON object stored at ``path``."""

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object")
    return data


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect configuration fields set through ``GELF_*`` variables."""

    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    endpoint = env.get("GELF_ENDPOINT")
    if endpoint:
        overrides["host"], overrides["port"] = parse_endpoint(endpoint)

    for var, name in _STRING_VARS.items():
        if var in env:
            overrides[name] = env[var]
    for var, name in _BOOL_VARS.items():
        if env.get(var, "").strip():
            overrides[name] = env_bool(env[var], default=False, name=var)
    for var, name in _INT_VARS.items():
        if env.get(var, "").strip():
            overrides[name] = env_int(env[var], name=var)
    return overrides


def load_configuration(path: str | Path | None = None, *, environ: Mapping[str, str] | None = None) -> GraylogConfiguration:
    """Resolve the client configuration.

    Parameters
    ----------
    path:
        Optional JSON file using the camelCase keys (``facility``, ``host``,
        ``port``, ``useSsl``, ``useCompression``, ``clientCertificatePath``,
        ``clientCertificateName``, ``clientCertificatePassword``,
        ``requestTimeout``). Falls back to ``GELF_CONFIG_FILE``.
    environ:
        Environment mapping; defaults to :data:`os.environ`.
    """

    env = os.environ if environ is None else environ
    source = path or env.get(CONFIG_FILE_ENV_VAR)
    base = read_configuration_file(source) if source else {}
    configuration = GraylogConfiguration.from_mapping(base)
    overrides = environment_overrides(env)
    if overrides:
        configuration = configuration.with_overrides(**overrides)
    return configuration


__all__ = [
    "CONFIG_FILE_ENV_VAR",
    "DOTENV_ENV_VAR",
    "enable_dotenv",
    "env_bool",
    "environment_overrides",
    "load_configuration",
    "parse_endpoint",
    "read_configuration_file",
    "should_use_dotenv",
]
