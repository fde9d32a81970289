"""Project configuration from ``config.yml``.

Only the ``build_order`` and ``docs`` sections are read.  A missing file or
section yields defaults; CLI options override whatever is loaded here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml

from pkgtools.build.discovery import DEFAULT_MARKER
from pkgtools.build.text_search import BACKENDS
from pkgtools.docs.categorizer import SELECTOR_BLACKLIST, SELECTOR_EXCLUDE

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"


class ConfigError(ValueError):
    """A config value has the wrong type or an unknown value."""


@dataclass(frozen=True)
class BuildOrderConfig:
    scope: str = ""
    marker: str = DEFAULT_MARKER
    exclude: tuple[str, ...] = ()
    backend: str = "auto"
    include: str = "*.ts"
    timeout: float | None = 60.0


@dataclass(frozen=True)
class DocsConfig:
    selector_blacklist: frozenset[str] = SELECTOR_BLACKLIST
    selector_exclude: str = SELECTOR_EXCLUDE


@dataclass(frozen=True)
class Config:
    build_order: BuildOrderConfig = field(default_factory=BuildOrderConfig)
    docs: DocsConfig = field(default_factory=DocsConfig)


def _string(section: dict[str, Any], key: str, default: str) -> str:
    value = section.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        msg = f"'{key}' must be a string, got {type(value).__name__}"
        raise ConfigError(msg)
    return value


def _string_list(section: dict[str, Any], key: str) -> list[str] | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"'{key}' must be a list of strings"
        raise ConfigError(msg)
    return value


def _parse_build_order(section: dict[str, Any]) -> BuildOrderConfig:
    defaults = BuildOrderConfig()

    backend = _string(section, "backend", defaults.backend)
    if backend not in BACKENDS:
        msg = f"Unknown backend '{backend}', expected one of: {', '.join(BACKENDS)}"
        raise ConfigError(msg)

    timeout_raw = section.get("timeout", defaults.timeout)
    if timeout_raw is not None and (
        isinstance(timeout_raw, bool) or not isinstance(timeout_raw, (int, float))
    ):
        msg = "'timeout' must be a number"
        raise ConfigError(msg)

    exclude = _string_list(section, "exclude")
    return BuildOrderConfig(
        scope=_string(section, "scope", defaults.scope),
        marker=_string(section, "marker", defaults.marker),
        exclude=tuple(exclude) if exclude is not None else defaults.exclude,
        backend=backend,
        include=_string(section, "include", defaults.include),
        timeout=float(timeout_raw) if timeout_raw is not None else None,
    )


def _parse_docs(section: dict[str, Any]) -> DocsConfig:
    defaults = DocsConfig()
    blacklist = _string_list(section, "selector_blacklist")
    return DocsConfig(
        selector_blacklist=(
            frozenset(blacklist) if blacklist is not None else defaults.selector_blacklist
        ),
        selector_exclude=_string(section, "selector_exclude", defaults.selector_exclude),
    )


def load_config(project_root: Path) -> Config:
    """Load ``config.yml`` from *project_root*.

    Falls back to defaults for a missing or unreadable file and for missing
    sections.  Raises :class:`ConfigError` for values of the wrong type.
    """
    config_path = project_root / CONFIG_FILE
    if not config_path.is_file():
        return Config()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using defaults", config_path)
        return Config()

    if not isinstance(data, dict):
        return Config()

    build_section = data.get("build_order")
    docs_section = data.get("docs")
    return Config(
        build_order=(
            _parse_build_order(build_section)
            if isinstance(build_section, dict)
            else BuildOrderConfig()
        ),
        docs=_parse_docs(docs_section) if isinstance(docs_section, dict) else DocsConfig(),
    )
