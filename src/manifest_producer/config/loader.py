"""YAML configuration loader with env var interpolation."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from manifest_producer.config.defaults import CONFIG_FILE_NAMES, CONFIG_SEARCH_PATHS
from manifest_producer.config.models import ManifestConfig
from manifest_producer.errors import ConfigError
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)(?::([^}]*))?\}")
_SECTIONS = frozenset(ManifestConfig.model_fields)


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        default = match.group(2)
        return os.environ.get(match.group(1), default if default is not None else "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: object) -> object:
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(item) for item in obj]
    return obj


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


def find_config_file(explicit_path: str | Path | None = None) -> Path | None:
    """Locate a manifest-producer config file, returning the first found or None."""
    if explicit_path is not None:
        p = Path(explicit_path)
        return p if p.is_file() else None

    for search_dir in CONFIG_SEARCH_PATHS:
        for name in CONFIG_FILE_NAMES:
            candidate = search_dir / name
            if candidate.is_file():
                return candidate
    return None


def parse_config(raw: object, source: str = "<config>") -> ManifestConfig:
    """Validate an already-parsed YAML document.

    Only the ``analysis``, ``output`` and ``logging`` sections are accepted;
    anything else is reported rather than silently dropped.
    """
    if raw is None:
        return ManifestConfig()
    if not isinstance(raw, dict):
        raise ConfigError(source, f"expected a mapping at top level, got {type(raw).__name__}")
    unknown = sorted(set(raw) - _SECTIONS)
    if unknown:
        raise ConfigError(source, f"unknown section(s): {', '.join(map(str, unknown))}")
    try:
        return ManifestConfig.model_validate(_walk_and_interpolate(raw))
    except ValidationError as exc:
        raise ConfigError(source, _format_errors(exc)) from exc


def load_config(path: str | Path | None = None) -> ManifestConfig:
    """Load and validate configuration, falling back to defaults.

    Raises :class:`ConfigError` when the file is not valid YAML or does not
    describe a valid configuration.
    """
    config_path = find_config_file(path)
    if config_path is None:
        if path is not None:
            log.warning("config_not_found", path=str(path))
        return ManifestConfig()

    try:
        raw = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(str(config_path), f"malformed YAML ({exc})") from exc
    config = parse_config(raw, str(config_path))
    log.debug("config_loaded", path=str(config_path), mode=config.analysis.mode)
    return config
