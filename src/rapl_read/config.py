"""Discovery limit resolution for topology and domain enumeration."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from typing import Final

from rapl_read.settings import RaplReadSettings, get_settings

DEFAULT_MAX_CPUS: Final[int] = 1024
DEFAULT_MAX_PACKAGES: Final[int] = 16


@dataclass(slots=True, frozen=True)
class DiscoveryLimits:
    """Upper bounds applied while enumerating CPUs and packages."""

    max_cpus: int = DEFAULT_MAX_CPUS
    max_packages: int = DEFAULT_MAX_PACKAGES


def _load_defaults_payload() -> dict[str, object]:
    """Load discovery defaults from the packaged JSON resource.

    Returns:
        Dictionary containing default configuration values. The mapping is
        empty when the resource file is unavailable or malformed.
    """
    try:
        defaults_path = resources.files("rapl_read.data").joinpath("defaults.json")
        data = defaults_path.read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError, OSError, UnicodeDecodeError):
        return {}

    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        return {}

    if not isinstance(payload, dict):
        return {}

    return {str(key): value for key, value in payload.items()}


@lru_cache(maxsize=1)
def _cached_defaults() -> dict[str, object]:
    """Return cached discovery defaults."""
    return _load_defaults_payload()


def _resolve_bound(env_value: int | None, key: str, fallback: int) -> int:
    if env_value is not None:
        return env_value

    candidate = _cached_defaults().get(key)
    if isinstance(candidate, bool):
        return fallback
    if isinstance(candidate, int) and candidate > 0:
        return candidate

    return fallback


def resolve_discovery_limits(
    settings: RaplReadSettings | None = None,
) -> DiscoveryLimits:
    """Resolve the CPU and package enumeration bounds.

    Resolution order: the ``RAPL_READ_MAX_CPUS`` / ``RAPL_READ_MAX_PACKAGES``
    environment variables (parsed via :class:`RaplReadSettings`), followed by
    packaged defaults, and finally constant fallbacks.

    Args:
        settings: Optional settings instance; read from the environment when
            omitted.

    Returns:
        The effective :class:`DiscoveryLimits`.
    """
    settings_obj = settings or get_settings()
    return DiscoveryLimits(
        max_cpus=_resolve_bound(settings_obj.max_cpus, "MAX_CPUS", DEFAULT_MAX_CPUS),
        max_packages=_resolve_bound(
            settings_obj.max_packages, "MAX_PACKAGES", DEFAULT_MAX_PACKAGES
        ),
    )
