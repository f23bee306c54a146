"""Client configuration: socket path and default timeouts.

The socket path is resolved in this order:

1. an explicit ``socket_path`` argument
2. ``socket_path`` from a YAML client config file
3. ``$SWAYSOCK``
4. ``$I3SOCK``
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import SwayConfigError

SOCKET_ENV_VARS: tuple[str, ...] = ("SWAYSOCK", "I3SOCK")


@dataclass(frozen=True)
class ClientConfig:
    """Client settings.

    Attributes:
        socket_path: IPC socket path (None = resolve from the environment)
        timeout: Default per-request timeout in seconds (None = no deadline)
        connect_timeout: Timeout for opening the socket in seconds
    """

    socket_path: str | None = None
    timeout: float | None = None
    connect_timeout: float | None = 5.0


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise SwayConfigError(f"File not found: {path}")
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as err:
        raise SwayConfigError(f"Invalid YAML in {path}") from err
    if not isinstance(data, Mapping):
        raise SwayConfigError(f"Expected a mapping at top level of {path}")
    return dict(data)


def _timeout(data: Mapping[str, Any], key: str, default: float | None) -> float | None:
    if key not in data:
        return default
    value = data[key]
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SwayConfigError(f"{key} must be a number of seconds, got {value!r}")
    if value <= 0:
        raise SwayConfigError(f"{key} must be positive, got {value!r}")
    return float(value)


def load_config(path: Path | str) -> ClientConfig:
    """Load a client config file.

    Example file:

        socket_path: /run/user/1000/sway-ipc.1000.1234.sock
        timeout: 2.5
        connect_timeout: 1

    Raises:
        SwayConfigError: If the file is missing or malformed.
    """
    data = _load_yaml(Path(path))
    socket_path = data.get("socket_path")
    if socket_path is not None and not isinstance(socket_path, str):
        raise SwayConfigError(f"socket_path must be a string, got {socket_path!r}")
    defaults = ClientConfig()
    return ClientConfig(
        socket_path=socket_path.strip() if socket_path else None,
        timeout=_timeout(data, "timeout", defaults.timeout),
        connect_timeout=_timeout(data, "connect_timeout", defaults.connect_timeout),
    )


def socket_path_from_env(environ: Mapping[str, str] | None = None) -> str | None:
    """Return the first non-empty socket variable from the environment."""
    env = os.environ if environ is None else environ
    for name in SOCKET_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            return value
    return None


def resolve_socket_path(
    socket_path: str | None = None,
    config: ClientConfig | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Return the first socket path set, in resolution order.

    Raises:
        SwayConfigError: If no socket path can be found.
    """
    configured = config.socket_path if config is not None else None
    path = socket_path or configured or socket_path_from_env(environ)
    if not path:
        raise SwayConfigError("$SWAYSOCK is empty")
    return path


def resolve_config(
    socket_path: str | None = None,
    config: ClientConfig | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Return ``config`` with ``socket_path`` filled in.

    Raises:
        SwayConfigError: If no socket path can be found.
    """
    path = resolve_socket_path(socket_path, config, environ=environ)
    return replace(config or ClientConfig(), socket_path=path)
