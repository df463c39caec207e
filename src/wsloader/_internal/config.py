"""Run configuration loading for wsloader."""

from __future__ import annotations

import dataclasses
import os
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from wsloader._internal.errors import ConfigError
from wsloader.protocol.messages import Topic

if TYPE_CHECKING:
    from wsloader._internal.types import HostPort

DEFAULT_METRICS_ADDR = "127.0.0.1:9100"
DEFAULT_DRAIN_TIMEOUT_SECS = 5.0
DEFAULT_CONNECT_TIMEOUT_SECS = 10.0


class LoadPatternKind(str, Enum):
    """Load pattern names as written in the config file."""

    STEADY = "steady"
    BURST = "burst"
    RAMP_UP = "ramp-up"


@dataclass(frozen=True)
class RunConfig:
    """Settings for a single load run.

    Values are validated on construction, so any ``RunConfig`` in hand is
    usable as-is.

    Attributes:
        connect_addr: WebSocket URL of the target server (``ws://`` or ``wss://``).
        payload_path: Path to the JSON file used as the ``data`` of every request.
        clients: Number of virtual clients to spawn.
        interval_ms: Base pause between sends of one client, in milliseconds.
        duration_secs: Run duration in seconds.
        pattern: Spawn policy for the clients.
        metrics_addr: ``host:port`` for the Prometheus exporter.
        topic: Topic stamped on every outgoing request.
        drain_timeout_secs: Upper bound on the post-deadline drain phase of a
            client. ``None`` leaves draining unbounded.
        connect_timeout_secs: Timeout for the WebSocket handshake.
    """

    connect_addr: str
    payload_path: Path
    clients: int
    interval_ms: int
    duration_secs: float
    pattern: LoadPatternKind = LoadPatternKind.STEADY
    metrics_addr: str = DEFAULT_METRICS_ADDR
    topic: Topic = Topic.VAULT_OPEN
    drain_timeout_secs: float | None = DEFAULT_DRAIN_TIMEOUT_SECS
    connect_timeout_secs: float = DEFAULT_CONNECT_TIMEOUT_SECS

    def __post_init__(self) -> None:
        _validate_url(self.connect_addr)
        if isinstance(self.clients, bool) or not isinstance(self.clients, int):
            msg = f"clients must be an integer, got: {self.clients!r}"
            raise ConfigError(msg)
        if self.clients < 1:
            msg = f"clients must be >= 1, got: {self.clients}"
            raise ConfigError(msg)
        if isinstance(self.interval_ms, bool) or not isinstance(self.interval_ms, int):
            msg = f"interval_ms must be an integer, got: {self.interval_ms!r}"
            raise ConfigError(msg)
        if self.interval_ms < 0:
            msg = f"interval_ms must be >= 0, got: {self.interval_ms}"
            raise ConfigError(msg)
        if self.duration_secs <= 0:
            msg = f"duration_secs must be positive, got: {self.duration_secs}"
            raise ConfigError(msg)
        if self.drain_timeout_secs is not None and self.drain_timeout_secs <= 0:
            msg = f"drain_timeout_secs must be positive, got: {self.drain_timeout_secs}"
            raise ConfigError(msg)
        if self.connect_timeout_secs <= 0:
            msg = f"connect_timeout_secs must be positive, got: {self.connect_timeout_secs}"
            raise ConfigError(msg)
        parse_metrics_addr(self.metrics_addr)

    def with_overrides(self, **changes: Any) -> RunConfig:
        """Return a copy with the non-``None`` entries of *changes* applied.

        Raises:
            ConfigError: If the resulting configuration is invalid.
        """
        applied = {key: value for key, value in changes.items() if value is not None}
        if "pattern" in applied:
            applied["pattern"] = _parse_pattern(applied["pattern"])
        if "topic" in applied:
            applied["topic"] = _parse_topic(applied["topic"])
        if "payload_path" in applied:
            applied["payload_path"] = Path(applied["payload_path"])
        return dataclasses.replace(self, **applied)


def load_config(path: str | Path) -> RunConfig:
    """Load a run configuration from a TOML document.

    The document has a ``[server]`` table (``connect_addr``, ``json_path``,
    optional ``metrics_addr``) and a ``[load]`` table (``clients``,
    ``interval_ms``, ``duration_secs``, ``pattern`` and the optional
    ``topic``, ``drain_timeout_secs``, ``connect_timeout_secs``). A relative
    ``json_path`` is resolved against the directory of the config file.

    Environment variables:
        WSLOADER_CONNECT_ADDR: Overrides ``server.connect_addr``.
        WSLOADER_METRICS_ADDR: Overrides ``server.metrics_addr``.

    Args:
        path: Path to the TOML file.

    Returns:
        A validated RunConfig.

    Raises:
        ConfigError: If the file is unreadable, not valid TOML, or holds
            missing or out-of-range values.
    """
    config_path = Path(path)
    try:
        with config_path.open("rb") as fh:
            document = tomllib.load(fh)
    except OSError as exc:
        msg = f"Cannot read config file {config_path}: {exc}"
        raise ConfigError(msg) from exc
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {config_path}: {exc}"
        raise ConfigError(msg) from exc

    server = _table(document, "server")
    load = _table(document, "load")

    payload_path = Path(_require(server, "server", "json_path"))
    if not payload_path.is_absolute():
        payload_path = config_path.parent / payload_path

    drain_timeout = load.get("drain_timeout_secs", DEFAULT_DRAIN_TIMEOUT_SECS)

    return RunConfig(
        connect_addr=(
            os.environ.get("WSLOADER_CONNECT_ADDR") or _require(server, "server", "connect_addr")
        ),
        payload_path=payload_path,
        clients=_require(load, "load", "clients"),
        interval_ms=_require(load, "load", "interval_ms"),
        duration_secs=_number(_require(load, "load", "duration_secs"), "duration_secs"),
        pattern=_parse_pattern(_require(load, "load", "pattern")),
        metrics_addr=os.environ.get(
            "WSLOADER_METRICS_ADDR", server.get("metrics_addr", DEFAULT_METRICS_ADDR)
        ),
        topic=_parse_topic(load.get("topic", Topic.VAULT_OPEN.value)),
        drain_timeout_secs=_number(drain_timeout, "drain_timeout_secs"),
        connect_timeout_secs=_number(
            load.get("connect_timeout_secs", DEFAULT_CONNECT_TIMEOUT_SECS),
            "connect_timeout_secs",
        ),
    )


def parse_metrics_addr(addr: str) -> HostPort:
    """Split a ``host:port`` string into its parts.

    Raises:
        ConfigError: If the port is missing or not a valid port number.
    """
    host, sep, port_str = addr.rpartition(":")
    if not sep or not host:
        msg = f"metrics_addr must look like host:port, got: {addr!r}"
        raise ConfigError(msg)
    try:
        port = int(port_str)
    except ValueError:
        msg = f"metrics_addr port must be an integer, got: {port_str!r}"
        raise ConfigError(msg) from None
    if not 0 <= port <= 65535:
        msg = f"metrics_addr port out of range: {port}"
        raise ConfigError(msg)
    return host.strip("[]"), port


def _table(document: dict[str, Any], name: str) -> dict[str, Any]:
    table = document.get(name)
    if not isinstance(table, dict):
        msg = f"Config is missing the [{name}] table"
        raise ConfigError(msg)
    return table


def _require(table: dict[str, Any], table_name: str, key: str) -> Any:
    if key not in table:
        msg = f"Config is missing {table_name}.{key}"
        raise ConfigError(msg)
    return table[key]


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"{name} must be a number, got: {value!r}"
        raise ConfigError(msg)
    return float(value)


def _parse_pattern(value: Any) -> LoadPatternKind:
    if isinstance(value, LoadPatternKind):
        return value
    normalized = str(value).strip().lower().replace("_", "-")
    if normalized == "rampup":
        normalized = LoadPatternKind.RAMP_UP.value
    try:
        return LoadPatternKind(normalized)
    except ValueError:
        choices = ", ".join(kind.value for kind in LoadPatternKind)
        msg = f"Unknown pattern: {value!r}. Choose from: {choices}"
        raise ConfigError(msg) from None


def _parse_topic(value: Any) -> Topic:
    if isinstance(value, Topic):
        return value
    try:
        return Topic(value)
    except ValueError:
        choices = ", ".join(topic.value for topic in Topic)
        msg = f"Unknown topic: {value!r}. Choose from: {choices}"
        raise ConfigError(msg) from None


def _validate_url(url: str) -> None:
    parts = urlsplit(url)
    if parts.scheme not in ("ws", "wss") or not parts.netloc:
        msg = f"connect_addr must be a ws:// or wss:// URL, got: {url!r}"
        raise ConfigError(msg)
