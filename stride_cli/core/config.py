"""Configuration loading and persistence."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.10
    import tomli as tomllib  # type: ignore[no-redef]

from stride_cli.core.constants import (
    DEFAULT_REST_SECONDS,
    DEFAULT_TICK_SECONDS,
    END_POLICIES,
    END_POLICY_TRUST_LOCAL,
)


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_data_dir() -> Path:
    """Resolve XDG-style data directory with env override."""
    raw = os.getenv("STRIDE_DATA_DIR", "~/.local/share/stride")
    return expand_path(raw)


def default_config_path() -> Path:
    raw = os.getenv("STRIDE_CONFIG_FILE", "~/.config/stride/config.toml")
    return expand_path(raw)


def legacy_config_path() -> Path:
    return expand_path("~/.stride/config.json")


def default_config() -> Dict[str, Any]:
    data_dir = default_data_dir()
    return {
        "session": {
            "rest_seconds": DEFAULT_REST_SECONDS,
            "tick_seconds": DEFAULT_TICK_SECONDS,
            "strict_transitions": False,
        },
        "voice": {
            "enabled": True,
        },
        "companion": {
            "enabled": True,
            "reachable": True,
            "end_policy": END_POLICY_TRUST_LOCAL,
        },
        "history": {
            "file": str(data_dir / "sessions.json"),
        },
        "logging": {
            "level": "WARNING",
        },
    }


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Check the values the session engine depends on."""
    session = config.get("session", {})
    try:
        rest = int(session.get("rest_seconds", DEFAULT_REST_SECONDS))
        tick = float(session.get("tick_seconds", DEFAULT_TICK_SECONDS))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid [session] value: {exc}") from exc
    if rest < 0:
        raise ConfigError("session.rest_seconds cannot be negative")
    if tick < 0:
        raise ConfigError("session.tick_seconds cannot be negative")

    policy = config.get("companion", {}).get("end_policy", END_POLICY_TRUST_LOCAL)
    if policy not in END_POLICIES:
        raise ConfigError(f"companion.end_policy must be one of {', '.join(END_POLICIES)}")
    return config


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = default_config()

    source: Optional[Path] = None
    if cfg_path.exists():
        source = cfg_path
    elif path is None:
        legacy = legacy_config_path()
        if legacy.exists():
            source = legacy

    if source:
        loaded = _read_config(source)
        cfg = _deep_merge(cfg, loaded)

    return validate_config(cfg)


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        items = ", ".join(_toml_literal(item) for item in value if item is not None)
        return f"[{items}]"
    raise TypeError(f"Unsupported TOML value type: {type(value)!r}")


def _dict_to_toml(data: Dict[str, Any], prefix: Optional[str] = None) -> str:
    lines = []
    plain_keys = []
    nested_keys = []

    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            nested_keys.append((key, value))
        else:
            plain_keys.append((key, value))

    if prefix is not None:
        lines.append(f"[{prefix}]")

    for key, value in plain_keys:
        lines.append(f"{key} = {_toml_literal(value)}")

    if plain_keys and nested_keys:
        lines.append("")

    for index, (key, value) in enumerate(nested_keys):
        table_name = key if prefix is None else f"{prefix}.{key}"
        lines.append(_dict_to_toml(value, prefix=table_name))
        if index != len(nested_keys) - 1:
            lines.append("")

    return "\n".join(lines)


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Save configuration to disk as TOML (default) or JSON."""
    cfg_path = path or default_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    if cfg_path.suffix.lower() == ".json":
        cfg_path.write_text(json.dumps(config, indent=2) + "\n")
        return cfg_path

    cfg_path.write_text(_dict_to_toml(config).strip() + "\n")
    return cfg_path


def resolve_history_file(config: Dict[str, Any]) -> Path:
    """Resolve session history path from env/config."""
    raw = os.getenv("STRIDE_HISTORY_FILE") or config.get("history", {}).get("file")
    if not raw:
        raw = str(default_data_dir() / "sessions.json")
    return expand_path(raw)


def resolve_log_level(config: Dict[str, Any], verbose: bool = False, quiet: bool = False) -> str:
    if verbose:
        return "DEBUG"
    if quiet:
        return "ERROR"
    return str(config.get("logging", {}).get("level", "WARNING")).upper()
