"""
Persistent preferences (``~/.config/vaultpad/config.toml``).

Only a flat ``key = value`` subset is read. Unknown keys and invalid values
are skipped, so a hand-edited file can never stop the tool from starting.
The key-derivation iteration count is not a preference.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

logger = logging.getLogger("vaultpad.config")

_CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "vaultpad"
_CONFIG_FILE = _CONFIG_DIR / "config.toml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULTS: dict[str, object] = {
    "default_path": "vault.html",
    "title": "Vault",
    "log_level": "WARNING",
    "confirm_quit": True,
}

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _parse_bool(raw: str) -> bool | None:
    value = raw.lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return None


def _parse_str(raw: str) -> str | None:
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        raw = raw[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    elif len(raw) >= 2 and raw[0] == raw[-1] == "'":
        raw = raw[1:-1]
    return raw or None


def _parse_log_level(raw: str) -> str | None:
    value = (_parse_str(raw) or "").upper()
    return value if value in LOG_LEVELS else None


_PARSERS = {
    "default_path": _parse_str,
    "title": _parse_str,
    "log_level": _parse_log_level,
    "confirm_quit": _parse_bool,
}


def parse_setting(key: str, raw: str) -> object:
    """Parse one ``key = value`` setting. Raises ValueError if it is not valid."""
    parser = _PARSERS.get(key)
    if parser is None:
        raise ValueError(f"Unknown setting {key!r} (known: {', '.join(_PARSERS)})")
    value = parser(raw.strip())
    if value is None:
        raise ValueError(f"Invalid value for {key!r}: {raw!r}")
    return value


def load_config() -> dict[str, object]:
    """Read the config file. Returns {} when it does not exist."""
    try:
        text = _CONFIG_FILE.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("Cannot read %s: %s", _CONFIG_FILE, exc)
        return {}

    config: dict[str, object] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        key = key.strip()
        parser = _PARSERS.get(key)
        if parser is None:
            logger.debug("config line %d: unknown key %r ignored", lineno, key)
            continue
        value = parser(raw.strip())
        if value is None:
            logger.warning("config line %d: invalid value for %r ignored", lineno, key)
            continue
        config[key] = value
    return config


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def save_config(settings: dict[str, object]) -> Path:
    """Write known keys of *settings* to the config file (mode 0600)."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    lines = ["# vaultpad preferences"]
    for key in _PARSERS:
        if key in settings:
            lines.append(f"{key} = {_format_value(settings[key])}")
    fd = os.open(_CONFIG_FILE, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    os.chmod(_CONFIG_FILE, 0o600)
    return _CONFIG_FILE


def config_file() -> Path:
    return _CONFIG_FILE


def apply_config_defaults(args: argparse.Namespace, config: dict[str, object]) -> None:
    """Fill argparse values the user left unset (None) from *config*, then DEFAULTS."""
    for key, default in DEFAULTS.items():
        if not hasattr(args, key):
            continue
        if getattr(args, key) is None:
            setattr(args, key, config.get(key, default))
