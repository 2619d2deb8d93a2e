"""Configuration file support (``<user config dir>/xfr/config.toml``)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import platformdirs

TIMESTAMP_FORMATS = ("relative", "iso8601", "unix")

_INT_LIMITS = {
    "u8": 2**8 - 1,
    "u16": 2**16 - 1,
    "u32": 2**32 - 1,
    "u64": 2**64 - 1,
}


class ConfigError(ValueError):
    """Raised when a configuration file is malformed."""


def _kind(name: str) -> dict[str, str]:
    return {"kind": name}


def _check(value: Any, kind: str, where: str) -> Any:
    if value is None:
        return None
    if kind in _INT_LIMITS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{where}: expected an integer, got {value!r}")
        if not 0 <= value <= _INT_LIMITS[kind]:
            raise ConfigError(f"{where}: {value} is out of range for {kind}")
        return value
    if kind == "bool":
        if not isinstance(value, bool):
            raise ConfigError(f"{where}: expected a boolean, got {value!r}")
        return value
    if kind == "str":
        if not isinstance(value, str):
            raise ConfigError(f"{where}: expected a string, got {value!r}")
        return value
    if kind == "str_list":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"{where}: expected a list of strings, got {value!r}")
        return list(value)
    if kind == "timestamp":
        if value not in TIMESTAMP_FORMATS:
            raise ConfigError(
                f"{where}: unknown timestamp format {value!r}, "
                f"expected one of {', '.join(TIMESTAMP_FORMATS)}"
            )
        return value
    raise ConfigError(f"{where}: unsupported field kind {kind}")


def _build(cls: type, data: Any, section: str) -> Any:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{section}: expected a table, got {data!r}")
    values = {}
    for f in fields(cls):
        where = f"{section}.{f.name}"
        if f.name in data:
            values[f.name] = _check(data[f.name], f.metadata["kind"], where)
        elif f.metadata.get("required"):
            raise ConfigError(f"{where}: missing required field")
    return cls(**values)


@dataclass
class ClientDefaults:
    """Default settings for client mode."""

    duration_secs: int | None = field(default=None, metadata=_kind("u64"))
    parallel_streams: int | None = field(default=None, metadata=_kind("u8"))
    tcp_nodelay: bool | None = field(default=None, metadata=_kind("bool"))
    window_size: str | None = field(default=None, metadata=_kind("str"))
    json_output: bool | None = field(default=None, metadata=_kind("bool"))
    no_tui: bool | None = field(default=None, metadata=_kind("bool"))
    timestamp_format: str | None = field(default=None, metadata=_kind("timestamp"))
    log_file: str | None = field(default=None, metadata=_kind("str"))
    log_level: str | None = field(default=None, metadata=_kind("str"))
    psk: str | None = field(default=None, metadata=_kind("str"))
    theme: str | None = field(default=None, metadata=_kind("str"))
    address_family: str | None = field(default=None, metadata=_kind("str"))
    omit_secs: int | None = field(default=None, metadata=_kind("u64"))


@dataclass
class ServerDefaults:
    """Default settings for server mode."""

    port: int | None = field(default=None, metadata=_kind("u16"))
    one_off: bool | None = field(default=None, metadata=_kind("bool"))
    prometheus_port: int | None = field(default=None, metadata=_kind("u16"))
    push_gateway: str | None = field(default=None, metadata=_kind("str"))
    log_file: str | None = field(default=None, metadata=_kind("str"))
    log_level: str | None = field(default=None, metadata=_kind("str"))
    psk: str | None = field(default=None, metadata=_kind("str"))
    rate_limit: int | None = field(default=None, metadata=_kind("u32"))
    rate_limit_window: int | None = field(default=None, metadata=_kind("u64"))
    allow: list[str] | None = field(default=None, metadata=_kind("str_list"))
    deny: list[str] | None = field(default=None, metadata=_kind("str_list"))
    acl_file: str | None = field(default=None, metadata=_kind("str"))
    address_family: str | None = field(default=None, metadata=_kind("str"))
    no_mdns: bool | None = field(default=None, metadata=_kind("bool"))


@dataclass
class ServerPreset:
    """A named server preset selected with ``--preset``."""

    name: str = field(metadata={"kind": "str", "required": "yes"})
    bandwidth_limit: str | None = field(default=None, metadata=_kind("str"))
    allowed_clients: list[str] | None = field(default=None, metadata=_kind("str_list"))
    max_duration_secs: int | None = field(default=None, metadata=_kind("u64"))


@dataclass
class Config:
    """Root configuration."""

    client: ClientDefaults = field(default_factory=ClientDefaults)
    server: ServerDefaults = field(default_factory=ServerDefaults)
    presets: list[ServerPreset] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        """Build a configuration from parsed TOML data; unknown keys are ignored."""
        client = _build(ClientDefaults, data.get("client", {}), "client")
        server = _build(ServerDefaults, data.get("server", {}), "server")
        raw_presets = data.get("presets", [])
        if not isinstance(raw_presets, list):
            raise ConfigError(f"presets: expected an array of tables, got {raw_presets!r}")
        presets = [
            _build(ServerPreset, item, f"presets[{index}]")
            for index, item in enumerate(raw_presets)
        ]
        return cls(client=client, server=server, presets=presets)

    @classmethod
    def from_toml(cls, text: str) -> "Config":
        """Parse a configuration from TOML text."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def load(cls) -> "Config":
        """Load from the default path, or return defaults if the file is absent."""
        path = cls.config_path()
        if path.exists():
            return cls.from_toml(path.read_text(encoding="utf-8"))
        return cls()

    @classmethod
    def config_path(cls) -> Path:
        """Return the default configuration file path."""
        base = platformdirs.user_config_dir() or "."
        return Path(base) / "xfr" / "config.toml"

    def get_preset(self, name: str) -> ServerPreset | None:
        """Return the first preset with the given name, if any."""
        return next((p for p in self.presets if p.name == name), None)