"""Address book configuration loading and validation.

Reads ``addressbook.toml``, resolves ``${VAR}`` references against the
environment, and returns a validated ``EditorConfig`` dataclass.
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "addressbook.toml"
DEFAULT_UPLOAD_CHUNK_SIZE = 100

# Pattern matching ${VAR_NAME}.
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigError(Exception):
    """Raised when configuration is missing, malformed, or invalid."""


@dataclass
class LoggingConfig:
    """Logging configuration from the [logging] section."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_root: str | None = None


@dataclass
class StoreConfig:
    """Remote contact store settings from the [store] section."""

    base_url: str = ""
    timeout_s: float = 20.0
    upload_chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE


@dataclass
class ProgressConfig:
    """Output range of progress reports from the [progress] section."""

    minimum: float = 0.0
    maximum: float = 100.0


@dataclass
class I18nConfig:
    """Message catalog lookup from the [i18n] section."""

    domain: str = "addressbook"
    localedir: str | None = None
    languages: list[str] = field(default_factory=list)


@dataclass
class EditorConfig:
    """Parsed and validated address book configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    progress: ProgressConfig = field(default_factory=ProgressConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    i18n: I18nConfig = field(default_factory=I18nConfig)


def resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${VAR_NAME}`` references in config values.

    Walks dicts, lists and strings; other leaf values pass through.

    Raises
    ------
    ConfigError
        If a referenced environment variable is not set.
    """
    if isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [resolve_env_vars(item) for item in value]

    if isinstance(value, str):
        return _resolve_string(value)

    return value


def _resolve_string(s: str) -> str:
    """Replace all ``${VAR_NAME}`` occurrences in *s*, reporting every missing name at once."""
    missing: list[str] = []

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            missing.append(var_name)
            return match.group(0)
        return env_value

    result = _ENV_VAR_PATTERN.sub(_replace, s)

    if missing:
        vars_str = ", ".join(missing)
        raise ConfigError(
            f"Unresolved environment variable(s) in config value: {vars_str} (original: {s!r})"
        )

    return result


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a TOML table")
    return section


def _parse_store(section: dict[str, Any]) -> StoreConfig:
    base_url = str(section.get("base_url", "")).strip()
    if base_url and not base_url.startswith(("http://", "https://")):
        raise ConfigError(f"Invalid store.base_url: {base_url!r}. Expected an http(s) URL.")

    try:
        timeout_s = float(section.get("timeout_s", 20.0))
        chunk_size = int(section.get("upload_chunk_size", DEFAULT_UPLOAD_CHUNK_SIZE))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid [store] value: {exc}") from exc

    if timeout_s <= 0:
        raise ConfigError(f"Invalid store.timeout_s: {timeout_s!r}. Must be positive.")
    if chunk_size <= 0:
        raise ConfigError(
            f"Invalid store.upload_chunk_size: {chunk_size!r}. Must be a positive integer."
        )
    return StoreConfig(base_url=base_url, timeout_s=timeout_s, upload_chunk_size=chunk_size)


def _parse_progress(section: dict[str, Any]) -> ProgressConfig:
    try:
        minimum = float(section.get("minimum", 0.0))
        maximum = float(section.get("maximum", 100.0))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid [progress] value: {exc}") from exc
    if maximum < minimum:
        raise ConfigError(
            f"progress.maximum ({maximum}) must not be lower than progress.minimum ({minimum})"
        )
    return ProgressConfig(minimum=minimum, maximum=maximum)


def _parse_logging(section: dict[str, Any]) -> LoggingConfig:
    level = str(section.get("level", "INFO")).upper()
    fmt = str(section.get("format", "text")).lower()
    if fmt not in ("text", "json"):
        raise ConfigError(f"Invalid logging.format: {fmt!r}. Must be 'text' or 'json'.")
    log_root = section.get("log_root")
    if log_root is not None and not isinstance(log_root, str):
        raise ConfigError("logging.log_root must be a string when set")
    return LoggingConfig(level=level, format=fmt, log_root=log_root or None)


def _parse_i18n(section: dict[str, Any]) -> I18nConfig:
    domain = str(section.get("domain", "addressbook")).strip()
    if not domain:
        raise ConfigError("i18n.domain must be a non-empty string")
    languages = section.get("languages", [])
    if not isinstance(languages, list) or not all(isinstance(lang, str) for lang in languages):
        raise ConfigError("i18n.languages must be a list of strings")
    localedir = section.get("localedir")
    return I18nConfig(domain=domain, localedir=localedir, languages=list(languages))


def parse_config(data: dict[str, Any]) -> EditorConfig:
    """Validate an already-parsed TOML document."""
    data = resolve_env_vars(data)
    return EditorConfig(
        store=_parse_store(_section(data, "store")),
        progress=_parse_progress(_section(data, "progress")),
        logging=_parse_logging(_section(data, "logging")),
        i18n=_parse_i18n(_section(data, "i18n")),
    )


def load_config(path: Path) -> EditorConfig:
    """Load and validate configuration from *path*.

    *path* may be the TOML file itself or a directory containing
    ``addressbook.toml``.

    Raises
    ------
    ConfigError
        If the file is missing, contains invalid TOML, or holds invalid values.
    """
    toml_path = path / CONFIG_FILENAME if path.is_dir() else path

    if not toml_path.exists():
        raise ConfigError(f"Config file not found: {toml_path}")

    try:
        data = tomllib.loads(toml_path.read_text())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc

    return parse_config(data)
