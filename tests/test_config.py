"""Tests for environment settings and discovery limit resolution."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from rapl_read import config
from rapl_read.settings import get_settings


@pytest.fixture(autouse=True)
def _clear_cached_defaults() -> Iterator[None]:
    """Ensure cached defaults do not leak between tests."""

    config._cached_defaults.cache_clear()  # type: ignore[attr-defined]
    yield
    config._cached_defaults.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "RAPL_READ_POWERCAP_ROOT",
        "RAPL_READ_CPU_ROOT",
        "RAPL_READ_CPUINFO",
        "RAPL_READ_MAX_CPUS",
        "RAPL_READ_MAX_PACKAGES",
        "RAPL_READ_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env: pytest.MonkeyPatch) -> None:
    """Without environment overrides the canonical sysfs paths are used."""

    settings = get_settings()
    assert settings.powercap_root == Path("/sys/class/powercap/intel-rapl")
    assert settings.cpu_root == Path("/sys/devices/system/cpu")
    assert settings.cpuinfo_path == Path("/proc/cpuinfo")
    assert settings.max_cpus is None
    assert settings.log_level == "WARNING"


def test_settings_read_environment(clean_env: pytest.MonkeyPatch) -> None:
    """Environment variables override paths and bounds."""

    clean_env.setenv("RAPL_READ_POWERCAP_ROOT", "/tmp/powercap")
    clean_env.setenv("RAPL_READ_MAX_CPUS", " 64 ")
    clean_env.setenv("RAPL_READ_LOG_LEVEL", "debug")

    settings = get_settings()
    assert settings.powercap_root == Path("/tmp/powercap")
    assert settings.max_cpus == 64
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("raw", ["invalid", "0", "-3"])
def test_settings_ignore_malformed_bounds(
    clean_env: pytest.MonkeyPatch, raw: str
) -> None:
    """Malformed or non-positive bounds fall back to ``None``."""

    clean_env.setenv("RAPL_READ_MAX_PACKAGES", raw)
    assert get_settings().max_packages is None


def test_resolve_limits_env_wins(clean_env: pytest.MonkeyPatch) -> None:
    """Environment bounds take precedence over packaged defaults."""

    clean_env.setenv("RAPL_READ_MAX_CPUS", "8")
    clean_env.setattr(config, "_load_defaults_payload", lambda: {"MAX_CPUS": 32})

    limits = config.resolve_discovery_limits()
    assert limits.max_cpus == 8
    assert limits.max_packages == config.DEFAULT_MAX_PACKAGES


def test_resolve_limits_packaged_defaults(clean_env: pytest.MonkeyPatch) -> None:
    """Packaged defaults are used when the environment is unset."""

    clean_env.setattr(
        config,
        "_load_defaults_payload",
        lambda: {"MAX_CPUS": 32, "MAX_PACKAGES": 4},
    )
    limits = config.resolve_discovery_limits()
    assert limits == config.DiscoveryLimits(max_cpus=32, max_packages=4)


def test_resolve_limits_fallback(clean_env: pytest.MonkeyPatch) -> None:
    """Constants apply when defaults are missing or malformed."""

    clean_env.setattr(
        config,
        "_load_defaults_payload",
        lambda: {"MAX_CPUS": True, "MAX_PACKAGES": "x"},
    )
    limits = config.resolve_discovery_limits()
    assert limits == config.DiscoveryLimits(max_cpus=1024, max_packages=16)


def test_packaged_defaults_resource() -> None:
    """The shipped defaults.json carries both bounds."""

    payload = config._load_defaults_payload()  # type: ignore[attr-defined]
    assert payload == {"MAX_CPUS": 1024, "MAX_PACKAGES": 16}
