"""Configuration helpers for import runs and source-kind vocabularies."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .ingestion.consolidation import RuleSet, build_rule_set, default_rule_sets
from .tags import DEFAULT_TAG_COLOR

LOGGER = logging.getLogger(__name__)

MAX_WORKERS = 8


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: Optional[str | Path]) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file (``None`` gives an empty config)."""

    if path is None:
        return {}

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    suffix = file_path.suffix.lower()
    if suffix not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in '{file_path}': {exc}") from exc
    else:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - dependency optional
            raise ConfigurationError(
                "YAML configuration requires the 'pyyaml' package to be installed"
            ) from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in '{file_path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root in '{file_path}' must be a mapping")
    return data


@dataclass(frozen=True)
class ImportSettings:
    """Tunables for one import run."""

    batch_size: int = 25
    max_workers: int = 1
    tag_color: str = DEFAULT_TAG_COLOR
    lookup_chunk_size: int = 200

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ImportSettings":
        defaults = cls()
        section = config.get("import") or config
        settings = cls(
            batch_size=_positive_int(section, "batch_size", defaults.batch_size),
            max_workers=min(_positive_int(section, "max_workers", defaults.max_workers), MAX_WORKERS),
            tag_color=str(section.get("tag_color") or defaults.tag_color),
            lookup_chunk_size=_positive_int(section, "lookup_chunk_size", defaults.lookup_chunk_size),
        )
        LOGGER.debug("Import settings: %s", settings)
        return settings


def _positive_int(section: Mapping[str, Any], key: str, default: int) -> int:
    value = section.get(key)
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}") from exc
    if number <= 0:
        raise ConfigurationError(f"'{key}' must be positive, got {number}")
    return number


def build_rule_sets(config: Mapping[str, Any]) -> Dict[str, RuleSet]:
    """Return the built-in rule sets extended (or overridden) by ``source_kinds`` in ``config``."""

    rule_sets = default_rule_sets()
    for name, spec in (config.get("source_kinds") or {}).items():
        if not isinstance(spec, Mapping):
            raise ConfigurationError(f"Source kind '{name}' must be a mapping")
        try:
            rule_sets[name] = build_rule_set(name, spec)
        except (ValueError, re.error) as exc:
            raise ConfigurationError(f"Invalid rules for source kind '{name}': {exc}") from exc
        LOGGER.debug("Loaded source kind %s from configuration", name)
    return rule_sets


__all__ = [
    "ConfigurationError",
    "ImportSettings",
    "MAX_WORKERS",
    "build_rule_sets",
    "load_configuration",
]
