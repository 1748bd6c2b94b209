"""Environment-backed settings primitives for :mod:`rapl_read`."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["RaplReadSettings", "get_settings"]


class RaplReadSettings(BaseSettings):
    """Expose environment-derived configuration knobs for the RAPL reader.

    All environment lookups go through this class so the sysfs roots can be
    redirected (for example at a captured sysfs tree) without touching the
    command line.

    Attributes:
        powercap_root: Directory holding the ``intel-rapl:<n>`` package zones.
        cpu_root: Directory holding the ``cpu<n>`` topology entries.
        cpuinfo_path: Pseudo-file describing the processor.
        max_cpus: Override for the logical CPU enumeration bound.
        max_packages: Override for the package count bound.
        log_level: Diagnostic verbosity name (``DEBUG``, ``INFO``, ...).
    """

    powercap_root: Path = Field(
        default=Path("/sys/class/powercap/intel-rapl"),
        alias="RAPL_READ_POWERCAP_ROOT",
    )
    cpu_root: Path = Field(
        default=Path("/sys/devices/system/cpu"), alias="RAPL_READ_CPU_ROOT"
    )
    cpuinfo_path: Path = Field(default=Path("/proc/cpuinfo"), alias="RAPL_READ_CPUINFO")
    max_cpus: int | None = Field(default=None, alias="RAPL_READ_MAX_CPUS")
    max_packages: int | None = Field(default=None, alias="RAPL_READ_MAX_PACKAGES")
    log_level: str = Field(default="WARNING", alias="RAPL_READ_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator("max_cpus", "max_packages", mode="before")
    @classmethod
    def _parse_optional_bound(cls, value: object) -> int | None:
        """Parse optional positive integer bounds while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed integer when conversion succeeds and is positive, otherwise
            ``None``.
        """

        if value is None:
            return None
        parsed: int | None = None
        if isinstance(value, int):
            parsed = value
        elif isinstance(value, float) and value.is_integer():
            parsed = int(value)
        elif isinstance(value, str):
            try:
                parsed = int(value.strip())
            except ValueError:
                return None
        if parsed is None or parsed <= 0:
            return None
        return parsed

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        """Upper-case the level name, defaulting to ``WARNING`` when blank."""

        if value in (None, ""):
            return "WARNING"
        return str(value).strip().upper()


def get_settings() -> RaplReadSettings:
    """Return a :class:`RaplReadSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return RaplReadSettings()
