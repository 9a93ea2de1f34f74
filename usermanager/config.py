"""Configuration management for the user management service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

from .database import resolve_database_path
from .security import parse_tokens

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _resolve_path(raw: str, base_path: Path | None) -> Path:
    candidate = Path(raw).expanduser()
    if candidate.is_absolute() or base_path is None:
        return candidate.resolve(strict=False)
    return (base_path / candidate).resolve(strict=False)


def _normalise_log_level(value: object) -> str:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Invalid log_level {value!r}; expected one of {', '.join(sorted(_LOG_LEVELS))}")
    return level


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime settings for the API server and its database."""

    database_path: Path
    host: str = "127.0.0.1"
    port: int = 8000
    api_tokens: Tuple[str, ...] = ()
    log_level: str = "INFO"

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "ServiceConfig":
        """Create a :class:`ServiceConfig` from raw dictionary data.

        Relative ``database_path`` values are resolved against ``base_path``,
        normally the directory holding the configuration file.
        """
        raw_db_path = data.get("database_path")
        if raw_db_path:
            database_path = _resolve_path(str(raw_db_path), base_path)
        else:
            database_path = resolve_database_path(None)

        try:
            port = int(data.get("port", 8000))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid port {data.get('port')!r} in configuration") from exc
        if not 1 <= port <= 65535:
            raise ValueError(f"Invalid port {port} in configuration")

        raw_tokens = data.get("api_tokens") or []
        if isinstance(raw_tokens, str):
            tokens = parse_tokens(raw_tokens)
        elif isinstance(raw_tokens, list):
            tokens = [str(token).strip() for token in raw_tokens if str(token).strip()]
        else:
            raise ValueError("api_tokens must be a list of strings or a comma separated string")

        return ServiceConfig(
            database_path=database_path,
            host=str(data.get("host", "127.0.0.1")),
            port=port,
            api_tokens=tuple(tokens),
            log_level=_normalise_log_level(data.get("log_level", "INFO")),
        )

    def with_env_overrides(self, environ: Mapping[str, str]) -> "ServiceConfig":
        """Return a copy with ``USERMANAGER_*`` environment values applied."""
        config = self
        db_path = environ.get("USERMANAGER_DB_PATH")
        if db_path:
            config = replace(config, database_path=resolve_database_path(db_path))
        tokens = environ.get("USERMANAGER_API_TOKENS")
        if tokens:
            config = replace(config, api_tokens=tuple(parse_tokens(tokens)))
        log_level = environ.get("USERMANAGER_LOG_LEVEL")
        if log_level:
            config = replace(config, log_level=_normalise_log_level(log_level))
        return config


def load_config(config_path: Optional[Path]) -> ServiceConfig:
    """Load service settings from a YAML file.

    A missing file yields the defaults.
    """
    if config_path is None or not config_path.exists():
        return ServiceConfig.from_dict({})

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")

    section = raw.get("service", raw)
    if not isinstance(section, dict):
        raise ValueError("The 'service' key must contain a mapping")
    return ServiceConfig.from_dict(section, base_path=config_path.parent)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "usermanager.yaml").resolve(strict=False)
    return candidate


def load_settings(config_path: Optional[str] = None) -> ServiceConfig:
    """Resolve, load and apply environment overrides in one step."""
    path = resolve_config_path(config_path or os.getenv("USERMANAGER_CONFIG"))
    return load_config(path).with_env_overrides(os.environ)


__all__ = ["ServiceConfig", "load_config", "load_settings", "resolve_config_path"]
