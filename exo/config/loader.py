"""Configuration loading & validation.

Precedence (last wins): base.yaml → overrides.local.yaml → ENV (EXO__*).

- `schema_version` missing → assume 1, warn.
- Each section validated by its own schema (`exo.config.schemas.*`).
- Unknown top-level or section keys rejected.
"""
from __future__ import annotations

import logging
import os
import pathlib
import threading
from functools import lru_cache
from typing import Any, Dict, Type

import yaml
from pydantic import BaseModel, ConfigDict

from exo import metrics
from exo.errors import validate_error_type

from .schemas.autoload import AutoloadConfig, BundleConfig
from .schemas.observability import LoggingConfig
from .schemas.runtime import RuntimeConfig, SiteConfig


class AggregatedConfig(BaseModel):
    schema_version: int = 1
    runtime: RuntimeConfig = RuntimeConfig()
    autoload: AutoloadConfig = AutoloadConfig()
    bundle: BundleConfig = BundleConfig()
    site: SiteConfig = SiteConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = ConfigDict(extra="forbid")


DEFAULT_CONFIG_DIR = "configs"
ENV_PREFIX = "EXO__"
CONFIG_DIR_ENV = "EXO_CONFIG_DIR"
# File layers, later ones win.
CONFIG_LAYERS = ("base.yaml", "overrides.local.yaml")

SUB_SCHEMA_CLASSES: Dict[str, Type[BaseModel]] = {
    "runtime": RuntimeConfig,
    "autoload": AutoloadConfig,
    "bundle": BundleConfig,
    "site": SiteConfig,
    "logging": LoggingConfig,
}

logger = logging.getLogger("exo.config")


class ConfigError(Exception):
    pass


def _load_yaml_if_exists(path: pathlib.Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name}: top level must be a mapping")
    return data


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _coerce_env_value(raw: str) -> Any:
    """Booleans ("true"/"false"), then int, then float, else the raw string."""
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def _apply_env(cfg: Dict[str, Any]) -> None:
    """Overlay EXO__SECTION__KEY variables onto the merged file layers."""
    for env_key in sorted(os.environ):
        if not env_key.startswith(ENV_PREFIX):
            continue
        parts = env_key[len(ENV_PREFIX):].lower().split("__")
        node = cfg
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = _coerce_env_value(os.environ[env_key])
        dotted = ".".join(parts)
        metrics.inc("env_override_total", {"path": dotted})
        logger.info("config env override path=%s", dotted)


_lock = threading.Lock()


def _resolve_config_dir() -> pathlib.Path:
    """Resolve config directory each call honoring env var changes."""
    return pathlib.Path(os.getenv(CONFIG_DIR_ENV, DEFAULT_CONFIG_DIR))


def _migrate_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    if "schema_version" not in data:
        logger.warning("config schema_version missing, assuming 1")
        data["schema_version"] = 1
    return data


def _validate_sub_schemas(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Validate each known section via its schema class."""
    validated: Dict[str, Any] = {}
    for name, cls in SUB_SCHEMA_CLASSES.items():
        if name in raw:
            try:
                validated[name] = cls.model_validate(raw[name] or {})
            except Exception as e:  # noqa: BLE001
                raise ConfigError(
                    f"Validation failed for section '{name}': {e}"
                ) from e
    return validated


def _normalize_and_validate(raw: Dict[str, Any]) -> None:
    """Cross-field checks on file naming conventions.

    - autoload.fragment_suffix must end with autoload.extension
    - bundle.filename must end with the extension and must not itself look
      like a fragment (it would get bundled into itself)
    """
    errors: list[tuple[str, str, str]] = []  # (path, code, msg)
    autoload = raw.get("autoload") or {}
    bundle = raw.get("bundle") or {}
    ext = autoload.get("extension", AutoloadConfig().extension)
    suffix = autoload.get("fragment_suffix", AutoloadConfig().fragment_suffix)
    filename = bundle.get("filename", BundleConfig().filename)

    if not str(suffix).endswith(str(ext)):
        errors.append(
            (
                "autoload.fragment_suffix",
                "config-invalid",
                f"must end with {ext}",
            )
        )
    if not str(filename).endswith(str(ext)):
        errors.append(
            ("bundle.filename", "config-invalid", f"must end with {ext}")
        )
    if str(filename).endswith(str(suffix)):
        errors.append(
            (
                "bundle.filename",
                "config-invalid",
                "must not use the fragment suffix",
            )
        )

    if errors:
        for path, code, _ in errors:
            metrics.inc(
                "config_validation_errors_total",
                {"path": path, "code": code},
            )
        for _, code, _ in errors:
            validate_error_type(code)
        details = ", ".join(f"{p}:{c}:{m}" for p, c, m in errors)
        raise ConfigError(f"config validation failed: {details}")


@lru_cache(maxsize=1)
def get_config() -> AggregatedConfig:  # noqa: D401
    with _lock:
        cfg_dir = _resolve_config_dir()
        merged: Dict[str, Any] = {}
        for layer in CONFIG_LAYERS:
            merged = _deep_merge(merged, _load_yaml_if_exists(cfg_dir / layer))
        _apply_env(merged)
        migrated = _migrate_legacy(merged)
        _normalize_and_validate(migrated)
        validated_sub = _validate_sub_schemas(migrated)
        try:
            return AggregatedConfig.model_validate(
                {**migrated, **validated_sub}
            )
        except Exception as e:  # noqa: BLE001
            raise ConfigError(str(e)) from e


def clear_config_cache() -> None:
    """Clear cached config (primarily for tests)."""
    get_config.cache_clear()


def as_dict() -> Dict[str, Any]:
    return get_config().model_dump()
