"""Analyzer settings: ``sa4u.toml``, then the environment, then the client."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping
import tomllib

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "sa4u.toml"
CONFIG_SECTIONS = ("analyzer", "diagnostics")

_ENV_RUNTIME = "SA4U_ANALYZER_RUNTIME"
_ENV_IMAGE = "SA4U_ANALYZER_IMAGE"
_ENV_TIMEOUT_SECONDS = "SA4U_ANALYZER_TIMEOUT_SECONDS"


@dataclass(frozen=True)
class AnalyzerSettings:
    runtime: str = "docker"
    image: str = "sa4u-z3"
    priors: str = "ex_prior.json"
    model: str = "CMASI.xml"
    timeout_seconds: float = 300.0
    max_problems: int = 1000


def config_file(root: Path | None = None, config_path: Path | None = None) -> Path:
    if config_path is not None:
        return config_path
    return (root if root is not None else Path.cwd()) / DEFAULT_CONFIG_NAME


def load_config(
    root: Path | None = None, config_path: Path | None = None
) -> dict[str, dict[str, Any]]:
    """The recognised tables of the config file, keyed by section name.

    A missing file is no configuration. An unreadable or malformed one is
    logged and ignored so that a typo never stops analysis.
    """
    path = config_file(root, config_path)
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        LOGGER.warning("ignoring %s: %s", path, exc)
        return {}
    return {
        name: data[name]
        for name in CONFIG_SECTIONS
        if isinstance(data.get(name), dict)
    }


def _as_text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_seconds(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        seconds = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not seconds.is_finite() or seconds <= 0:
        return None
    return float(seconds)


def _as_count(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        try:
            count = int(value.strip())
        except ValueError:
            return None
        return count if count > 0 else None
    return None


def merge_settings(settings: AnalyzerSettings, overrides: Mapping[str, object]) -> AnalyzerSettings:
    """Apply the recognised keys of ``overrides``; invalid values keep the current value."""
    changes: dict[str, object] = {}
    for key in ("runtime", "image", "priors", "model"):
        text = _as_text(overrides.get(key))
        if text is not None:
            changes[key] = text
    seconds = _as_seconds(overrides.get("timeout_seconds"))
    if seconds is not None:
        changes["timeout_seconds"] = seconds
    count = _as_count(overrides.get("max_problems"))
    if count is not None:
        changes["max_problems"] = count
    return replace(settings, **changes) if changes else settings


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, object]:
    env = os.environ if environ is None else environ
    overrides: dict[str, object] = {}
    runtime = env.get(_ENV_RUNTIME, "").strip()
    if runtime:
        overrides["runtime"] = runtime
    image = env.get(_ENV_IMAGE, "").strip()
    if image:
        overrides["image"] = image
    timeout = env.get(_ENV_TIMEOUT_SECONDS, "").strip()
    if timeout:
        overrides["timeout_seconds"] = timeout
    return overrides


def resolve_settings(
    root: Path | None = None,
    *,
    config_path: Path | None = None,
    initialization_options: object = None,
    environ: Mapping[str, str] | None = None,
) -> AnalyzerSettings:
    """Settings from ``sa4u.toml``, then the environment, then the client's options."""
    settings = AnalyzerSettings()
    for table in load_config(root=root, config_path=config_path).values():
        settings = merge_settings(settings, table)
    settings = merge_settings(settings, env_overrides(environ))
    if isinstance(initialization_options, Mapping):
        settings = merge_settings(settings, initialization_options)
    return settings
