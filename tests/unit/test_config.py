"""Tests for run configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from wsloader._internal.config import (
    LoadPatternKind,
    RunConfig,
    load_config,
    parse_metrics_addr,
)
from wsloader._internal.errors import ConfigError
from wsloader.protocol.messages import Topic

_VALID_TOML = """\
[server]
connect_addr = "ws://127.0.0.1:8080/ws"
json_path = "payload.json"

[load]
clients = 4
interval_ms = 100
duration_secs = 30
pattern = "ramp-up"
"""


def _config(**overrides: object) -> RunConfig:
    values: dict[str, object] = {
        "connect_addr": "ws://localhost:8080/ws",
        "payload_path": Path("payload.json"),
        "clients": 3,
        "interval_ms": 100,
        "duration_secs": 1.0,
    }
    values.update(overrides)
    return RunConfig(**values)  # type: ignore[arg-type]


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "loader.toml"
    path.write_text(text)
    return path


class TestRunConfig:
    """Tests for the RunConfig dataclass."""

    def test_defaults(self) -> None:
        config = _config()
        assert config.pattern is LoadPatternKind.STEADY
        assert config.metrics_addr == "127.0.0.1:9100"
        assert config.topic is Topic.VAULT_OPEN
        assert config.drain_timeout_secs == 5.0
        assert config.connect_timeout_secs == 10.0

    def test_frozen(self) -> None:
        config = _config()
        with pytest.raises(AttributeError):
            config.clients = 10  # type: ignore[misc]

    @pytest.mark.parametrize("clients", [0, -1])
    def test_rejects_non_positive_clients(self, clients: int) -> None:
        with pytest.raises(ConfigError, match="clients"):
            _config(clients=clients)

    def test_rejects_bool_clients(self) -> None:
        with pytest.raises(ConfigError, match="clients"):
            _config(clients=True)

    def test_rejects_negative_interval(self) -> None:
        with pytest.raises(ConfigError, match="interval_ms"):
            _config(interval_ms=-5)

    def test_accepts_zero_interval(self) -> None:
        assert _config(interval_ms=0).interval_ms == 0

    def test_rejects_non_positive_duration(self) -> None:
        with pytest.raises(ConfigError, match="duration_secs"):
            _config(duration_secs=0)

    @pytest.mark.parametrize("url", ["http://localhost/ws", "localhost:8080", "ws://"])
    def test_rejects_non_websocket_url(self, url: str) -> None:
        with pytest.raises(ConfigError, match="connect_addr"):
            _config(connect_addr=url)

    def test_accepts_wss(self) -> None:
        assert _config(connect_addr="wss://example.com/ws").connect_addr.startswith("wss")

    def test_rejects_non_positive_drain_timeout(self) -> None:
        with pytest.raises(ConfigError, match="drain_timeout_secs"):
            _config(drain_timeout_secs=0)

    def test_none_drain_timeout_means_unbounded(self) -> None:
        assert _config(drain_timeout_secs=None).drain_timeout_secs is None

    def test_rejects_bad_metrics_addr(self) -> None:
        with pytest.raises(ConfigError, match="metrics_addr"):
            _config(metrics_addr="9100")


class TestWithOverrides:
    """Tests for RunConfig.with_overrides."""

    def test_none_values_are_ignored(self) -> None:
        config = _config()
        assert config.with_overrides(clients=None, pattern=None) == config

    def test_applies_and_parses_values(self) -> None:
        config = _config().with_overrides(
            clients=7,
            pattern="burst",
            topic="/vault/borrow",
            payload_path="other.json",
        )
        assert config.clients == 7
        assert config.pattern is LoadPatternKind.BURST
        assert config.topic is Topic.VAULT_BORROW
        assert config.payload_path == Path("other.json")

    def test_invalid_override_raises(self) -> None:
        with pytest.raises(ConfigError):
            _config().with_overrides(clients=0)


class TestLoadConfig:
    """Tests for load_config."""

    def test_loads_valid_document(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, _VALID_TOML))
        assert config.connect_addr == "ws://127.0.0.1:8080/ws"
        assert config.clients == 4
        assert config.interval_ms == 100
        assert config.duration_secs == 30.0
        assert config.pattern is LoadPatternKind.RAMP_UP

    def test_payload_path_is_relative_to_config(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, _VALID_TOML))
        assert config.payload_path == tmp_path / "payload.json"

    def test_absolute_payload_path_is_kept(self, tmp_path: Path) -> None:
        absolute = tmp_path / "elsewhere" / "p.json"
        text = _VALID_TOML.replace('"payload.json"', f'"{absolute.as_posix()}"')
        config = load_config(_write(tmp_path, text))
        assert config.payload_path == absolute

    def test_optional_keys(self, tmp_path: Path) -> None:
        text = _VALID_TOML.replace(
            'json_path = "payload.json"',
            'json_path = "payload.json"\nmetrics_addr = "0.0.0.0:9200"',
        ) + 'topic = "/unit/reserve"\ndrain_timeout_secs = 2\nconnect_timeout_secs = 3.5\n'
        config = load_config(_write(tmp_path, text))
        assert config.metrics_addr == "0.0.0.0:9200"
        assert config.topic is Topic.UNIT_RESERVE
        assert config.drain_timeout_secs == 2.0
        assert config.connect_timeout_secs == 3.5

    @pytest.mark.parametrize(
        ("written", "expected"),
        [
            ("steady", LoadPatternKind.STEADY),
            ("burst", LoadPatternKind.BURST),
            ("ramp-up", LoadPatternKind.RAMP_UP),
            ("ramp_up", LoadPatternKind.RAMP_UP),
            ("RampUp", LoadPatternKind.RAMP_UP),
        ],
    )
    def test_pattern_spellings(
        self, tmp_path: Path, written: str, expected: LoadPatternKind
    ) -> None:
        text = _VALID_TOML.replace('"ramp-up"', f'"{written}"')
        assert load_config(_write(tmp_path, text)).pattern is expected

    def test_unknown_pattern(self, tmp_path: Path) -> None:
        text = _VALID_TOML.replace('"ramp-up"', '"sawtooth"')
        with pytest.raises(ConfigError, match="Unknown pattern"):
            load_config(_write(tmp_path, text))

    def test_unknown_topic(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown topic"):
            load_config(_write(tmp_path, _VALID_TOML + 'topic = "/vault/explode"\n'))

    def test_missing_table(self, tmp_path: Path) -> None:
        text = _VALID_TOML.split("[load]")[0]
        with pytest.raises(ConfigError, match=r"\[load\]"):
            load_config(_write(tmp_path, text))

    def test_missing_key(self, tmp_path: Path) -> None:
        text = _VALID_TOML.replace("clients = 4\n", "")
        with pytest.raises(ConfigError, match="load.clients"):
            load_config(_write(tmp_path, text))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(_write(tmp_path, "[server\nconnect_addr = "))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "absent.toml")

    def test_non_numeric_duration(self, tmp_path: Path) -> None:
        text = _VALID_TOML.replace("duration_secs = 30", 'duration_secs = "30"')
        with pytest.raises(ConfigError, match="duration_secs"):
            load_config(_write(tmp_path, text))

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WSLOADER_CONNECT_ADDR", "wss://override.example/ws")
        monkeypatch.setenv("WSLOADER_METRICS_ADDR", "127.0.0.1:9999")
        config = load_config(_write(tmp_path, _VALID_TOML))
        assert config.connect_addr == "wss://override.example/ws"
        assert config.metrics_addr == "127.0.0.1:9999"


class TestParseMetricsAddr:
    """Tests for parse_metrics_addr."""

    def test_host_and_port(self) -> None:
        assert parse_metrics_addr("127.0.0.1:9100") == ("127.0.0.1", 9100)

    def test_ipv6_brackets_are_stripped(self) -> None:
        assert parse_metrics_addr("[::1]:9100") == ("::1", 9100)

    @pytest.mark.parametrize("addr", ["9100", ":9100", "host:port", "host:70000"])
    def test_invalid(self, addr: str) -> None:
        with pytest.raises(ConfigError):
            parse_metrics_addr(addr)


class TestEnvOverrideWithoutFileValue:
    def test_env_connect_addr_fills_missing_key(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("WSLOADER_CONNECT_ADDR", "ws://from-env.example/ws")
        text = _VALID_TOML.replace('connect_addr = "ws://127.0.0.1:8080/ws"\n', "")
        config = load_config(_write(tmp_path, text))
        assert config.connect_addr == "ws://from-env.example/ws"

    def test_missing_connect_addr_without_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("WSLOADER_CONNECT_ADDR", raising=False)
        text = _VALID_TOML.replace('connect_addr = "ws://127.0.0.1:8080/ws"\n', "")
        with pytest.raises(ConfigError, match="server.connect_addr"):
            load_config(_write(tmp_path, text))
